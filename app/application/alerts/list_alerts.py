"""
Use case: List alerts, newest first, with the total match count.

Input: ListAlertsQuery
Output: AlertListResult
Side effects: None.
Failure cases: InvalidAlertError for unknown filters.
"""

import logging

from app.application.alerts.create_alert import parse_service
from app.application.alerts.dtos import AlertListResult, ListAlertsQuery
from app.domain.alerts.entities import AlertStatus
from app.domain.alerts.errors import InvalidAlertError
from app.domain.alerts.ports import AlertRepository

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


class ListAlertsUseCase:
    """Paginated alert listing with optional service and status filters."""

    def __init__(self, alert_repo: AlertRepository) -> None:
        self._alert_repo = alert_repo

    def execute(self, query: ListAlertsQuery) -> AlertListResult:
        """Return one page of alerts, newest first.

        Args:
            query: Optional service and status filters plus paging.

        Returns:
            AlertListResult with the page and the unpaged total.

        Raises:
            InvalidAlertError: If a filter value is unknown.
        """
        tipo = parse_service(query.tipo) if query.tipo else None

        status = None
        if query.status and query.status.upper() != "ALL":
            try:
                status = AlertStatus(query.status.upper())
            except ValueError as exc:
                raise InvalidAlertError(f"Invalid status filter: {query.status}") from exc

        limit = max(1, min(query.limit, MAX_PAGE_SIZE))
        page = max(1, query.page)
        alerts, total = self._alert_repo.list_page(
            tipo=tipo, status=status, limit=limit, offset=(page - 1) * limit
        )
        logger.debug("Listed %d/%d alerts (tipo=%s status=%s)", len(alerts), total, tipo, status)
        return AlertListResult(alerts=alerts, total=total, page=page, limit=limit)
