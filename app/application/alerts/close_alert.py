"""
Use cases: Close, partially sell and discard alerts.

Closing settles the admin's liquidity distribution at the exit price.
A partial sale sells a fixed share of every distribution holding the
alert and closes the alert once no shares remain.
Side effects: Persists the alert and liquidity records, enqueues the
    subscriber announcement.
Failure cases: AlertNotFoundError, AlertNotActiveError, InvalidAlertError,
    InvalidSaleError.
"""

import logging
import math
from typing import Any

from app.application.alerts.dtos import (
    CloseAlertCommand,
    CloseAlertResult,
    DiscardAlertCommand,
    PartialSaleCommand,
    PartialSaleResult,
)
from app.application.alerts.edit_alert import load_active_alert
from app.domain.alerts.entities import Alert, AlertAction, ExitReason
from app.domain.alerts.errors import (
    InvalidAlertError,
    InvalidSaleError,
)
from app.domain.alerts.ports import (
    AlertNotificationPort,
    AlertRepository,
    LiquidityRepository,
)

logger = logging.getLogger(__name__)

PARTIAL_SALE_PERCENTAGES = (25, 50)


def _announce(
    notifier: AlertNotificationPort, alert: Alert, overrides: dict[str, Any]
) -> None:
    try:
        notifier.alert_published(alert, overrides)
    except Exception:
        logger.exception("Could not enqueue announcement for alert %s", alert.id)


class CloseAlertUseCase:
    """Close an ACTIVE alert at a price and settle its liquidity."""

    def __init__(
        self,
        alert_repo: AlertRepository,
        liquidity_repo: LiquidityRepository,
        notifier: AlertNotificationPort,
    ) -> None:
        self._alert_repo = alert_repo
        self._liquidity_repo = liquidity_repo
        self._notifier = notifier

    def execute(self, command: CloseAlertCommand) -> CloseAlertResult:
        """Close the alert and settle the admin's distribution.

        Args:
            command: Alert, admin, exit price and reason.

        Returns:
            CloseAlertResult with the final profit and the liquidity released.

        Raises:
            InvalidAlertError: If the price is not positive or the reason is unknown.
            AlertNotFoundError: If the alert does not exist.
            AlertNotActiveError: If the alert is no longer ACTIVE.
        """
        if command.price <= 0:
            raise InvalidAlertError("Price must be greater than 0")
        try:
            reason = ExitReason(command.reason)
        except ValueError as exc:
            raise InvalidAlertError(f"Invalid exit reason: {command.reason}") from exc

        alert = load_active_alert(self._alert_repo, command.alert_id)
        profit = alert.close(command.price, reason)
        self._alert_repo.save(alert)
        logger.info(
            "Alert closed: id=%s symbol=%s price=%.4f profit=%.2f%% reason=%s",
            alert.id,
            alert.symbol,
            command.price,
            profit,
            reason.value,
        )

        released, realized = self._settle_liquidity(alert, command.admin_id, command.price)

        _announce(
            self._notifier,
            alert,
            {
                "title": f"🔒 Cierre de posición {alert.symbol}",
                "message": command.email_message
                or (
                    f"Cierre de posición en {alert.symbol} a ${command.price}. "
                    f"Resultado: {profit:.1f}%"
                ),
                "image_url": command.email_image_url,
                "price": command.price,
                "profit_percentage": round(profit, 2),
                "skip_duplicate_check": True,
            },
        )
        return CloseAlertResult(
            alert=alert, profit=profit, liquidity_released=released, realized_profit=realized
        )

    def _settle_liquidity(self, alert: Alert, admin_id: str, price: float) -> tuple[float, float]:
        """Sell every remaining share; failures are logged, never raised."""
        try:
            liquidity = self._liquidity_repo.get(admin_id, alert.tipo)
            if liquidity is None:
                return 0.0, 0.0
            dist = liquidity.find_distribution(alert.id)
            if dist is None or dist.shares <= 0:
                return 0.0, 0.0

            sale = liquidity.sell_shares(alert.id, dist.shares, price)
            if sale.remaining_shares == 0:
                liquidity.remove_distribution(alert.id)
            self._liquidity_repo.save(liquidity)
            logger.info(
                "Liquidity settled on close: alert=%s cash=%.2f realized=%.2f",
                alert.id,
                sale.returned_cash,
                sale.realized,
            )
            return sale.returned_cash, sale.realized
        except Exception:
            logger.exception("Liquidity settlement failed for alert %s", alert.id)
            return 0.0, 0.0


class PartialSaleUseCase:
    """Sell 25% or 50% of an alert's position."""

    def __init__(
        self,
        alert_repo: AlertRepository,
        liquidity_repo: LiquidityRepository,
        notifier: AlertNotificationPort,
    ) -> None:
        self._alert_repo = alert_repo
        self._liquidity_repo = liquidity_repo
        self._notifier = notifier

    def execute(self, command: PartialSaleCommand) -> PartialSaleResult:
        """Sell 25% or 50% of the position across every distribution holding it.

        Args:
            command: Alert, admin, percentage and sale price.

        Returns:
            PartialSaleResult. The alert comes back CLOSED once no shares remain.

        Raises:
            InvalidSaleError: Wrong percentage, non-positive price, more than is
                held, or no shares to sell.
            AlertNotFoundError: If the alert does not exist.
            AlertNotActiveError: If the alert is no longer ACTIVE.
        """
        if command.percentage not in PARTIAL_SALE_PERCENTAGES:
            raise InvalidSaleError("Percentage must be 25 or 50")
        if command.price <= 0:
            raise InvalidSaleError("Price must be greater than 0")

        alert = load_active_alert(self._alert_repo, command.alert_id)
        if command.percentage > alert.participation_percentage:
            raise InvalidSaleError(
                f"Cannot sell {command.percentage}% when only "
                f"{alert.participation_percentage}% is held"
            )
        holdings = []
        for liquidity in self._liquidity_repo.find_by_alert(alert.id):
            dist = liquidity.find_distribution(alert.id)
            if dist is not None and dist.shares > 0:
                holdings.append(liquidity)
        if not holdings:
            raise InvalidSaleError("No shares available for a partial sale")

        # Selling the last of the participation liquidates every share left
        # over from flooring earlier sales.
        final_sale = command.percentage >= alert.participation_percentage
        shares_sold = 0.0
        remaining = 0.0
        released = 0.0
        realized = 0.0
        allocated = 0.0
        for liquidity in holdings:
            dist = liquidity.find_distribution(alert.id)
            if final_sale:
                to_sell = dist.shares
            else:
                to_sell = math.floor(dist.shares * command.percentage / 100)
            if to_sell > 0:
                sale = liquidity.sell_shares(alert.id, to_sell, command.price)
                shares_sold += to_sell
                released += sale.returned_cash
                realized += sale.realized
                if sale.remaining_shares <= 0:
                    liquidity.remove_distribution(alert.id)
                self._liquidity_repo.save(liquidity)
            remaining += dist.shares
            allocated += dist.allocated_amount

        alert.current_price = command.price
        alert.calculate_profit()
        sale = alert.sell_partial(
            command.percentage,
            command.price,
            shares_sold=shares_sold,
            liquidity_released=released,
            realized_profit=realized,
        )
        if remaining <= 0 and alert.is_active:
            alert.close(command.price, ExitReason.MANUAL)
        alert.calculate_total_profit()
        self._alert_repo.save(alert)
        logger.info(
            "Partial sale: alert=%s pct=%s shares=%s released=%.2f realized=%.2f status=%s",
            alert.id,
            command.percentage,
            shares_sold,
            released,
            realized,
            alert.status.value,
        )

        _announce(
            self._notifier,
            alert,
            {
                "title": f"💰 Venta parcial {alert.symbol}",
                "message": command.email_message
                or (
                    f"Venta parcial del {command.percentage:g}% de {alert.symbol} "
                    f"a ${command.price}. Resultado: {sale.realized_gain:.1f}%"
                ),
                "image_url": command.email_image_url,
                "price": command.price,
                "action": AlertAction.SELL.value,
                "sold_percentage": command.percentage,
                "profit_loss": round(realized, 2),
                "skip_duplicate_check": True,
            },
        )
        return PartialSaleResult(
            alert=alert,
            shares_sold=shares_sold,
            shares_remaining=remaining,
            liquidity_released=released,
            realized_profit=realized,
            new_allocated_amount=allocated,
        )


class DiscardAlertUseCase:
    """Mark an ACTIVE alert as discarded (DESCARTADA).

    Closed, dismissed and already discarded alerts keep their outcome.
    """

    def __init__(self, alert_repo: AlertRepository) -> None:
        self._alert_repo = alert_repo

    def execute(self, command: DiscardAlertCommand) -> Alert:
        """Raises:
            InvalidAlertError: Empty reason or non-positive price.
            AlertNotActiveError: The alert already has an outcome.
        """
        if not command.reason.strip():
            raise InvalidAlertError("A discard reason is required")
        if command.price <= 0:
            raise InvalidAlertError("Price must be greater than 0")

        alert = load_active_alert(self._alert_repo, command.alert_id)
        alert.discard(command.reason.strip(), command.price)
        self._alert_repo.save(alert)
        logger.info("Alert discarded: id=%s reason=%s", alert.id, command.reason)
        return alert
