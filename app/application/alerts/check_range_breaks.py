"""
Use case: Dismiss range alerts whose price left the entry range.

Input: None (sweeps every ACTIVE `rango` alert).
Output: RangeBreakReport
Side effects: Broken alerts become DESESTIMADA with exit fields set.
Failure cases: None raised; per-alert failures are counted and logged.
"""

import logging

from app.application.alerts.dtos import RangeBreakReport
from app.domain.alerts.entities import AlertKind
from app.domain.alerts.ports import AlertRepository

logger = logging.getLogger(__name__)


class CheckRangeBreaksUseCase:
    """Checks each active range alert against its current price."""

    def __init__(self, alert_repo: AlertRepository) -> None:
        self._alert_repo = alert_repo

    def execute(self) -> RangeBreakReport:
        """Dismiss range alerts whose current price left the entry range.

        Returns:
            RangeBreakReport; per-alert failures are counted, never raised.
        """
        alerts = self._alert_repo.list_active(kind=AlertKind.RANGO)
        broken = 0
        closed = 0
        errors = 0
        details = []

        for alert in alerts:
            try:
                check = alert.check_range_break(alert.current_price)
                if not check.is_broken:
                    continue
                broken += 1
                alert.dismiss_for_range_break(check.reason)
                self._alert_repo.save(alert)
                closed += 1
                details.append(
                    {
                        "alert_id": str(alert.id),
                        "symbol": alert.symbol,
                        "price": alert.current_price,
                        "reason": check.reason,
                    }
                )
                logger.info("Range break: alert=%s symbol=%s %s", alert.id, alert.symbol, check.reason)
            except Exception:
                errors += 1
                logger.exception("Range check failed for alert %s", alert.id)

        logger.info(
            "Range sweep done: checked=%d broken=%d closed=%d errors=%d",
            len(alerts),
            broken,
            closed,
            errors,
        )
        return RangeBreakReport(
            checked=len(alerts), broken=broken, closed=closed, errors=errors, details=details
        )
