"""
Use case: Publish a new trading alert.

Input: CreateAlertCommand
Output: CreateAlertResult
Side effects: Persists the alert, optionally allocates liquidity and
    enqueues the subscriber announcement.
Failure cases: InvalidAlertError. Liquidity and announcement failures
    are logged and never fail the creation.
"""

import logging

from app.application.alerts.dtos import CreateAlertCommand, CreateAlertResult
from app.application.alerts.liquidity import allocate_liquidity
from app.domain.alerts.entities import (
    Alert,
    AlertAction,
    AlertKind,
    AlertService,
    PriceRange,
)
from app.domain.alerts.errors import InvalidAlertError
from app.domain.alerts.ports import (
    AlertNotificationPort,
    AlertRepository,
    LiquidityRepository,
)

logger = logging.getLogger(__name__)


def parse_action(value: str) -> AlertAction:
    """Accepts BUY or SELL exactly."""
    try:
        return AlertAction(value)
    except ValueError as exc:
        raise InvalidAlertError("Action must be BUY or SELL") from exc


def parse_service(value: str) -> AlertService:
    try:
        return AlertService(value)
    except ValueError as exc:
        raise InvalidAlertError(f"Invalid alert service: {value}") from exc


def parse_kind(value: str) -> AlertKind:
    """`precio` or `rango`."""
    try:
        return AlertKind(value)
    except ValueError as exc:
        raise InvalidAlertError("Alert kind must be precio or rango") from exc


class CreateAlertUseCase:
    """Validates and persists a new alert, then announces it."""

    def __init__(
        self,
        alert_repo: AlertRepository,
        liquidity_repo: LiquidityRepository,
        notifier: AlertNotificationPort,
    ) -> None:
        self._alert_repo = alert_repo
        self._liquidity_repo = liquidity_repo
        self._notifier = notifier

    def execute(self, command: CreateAlertCommand) -> CreateAlertResult:
        """Create the alert.

        Raises:
            InvalidAlertError: If a required field is missing or inconsistent.
        """
        alert = self._build_alert(command)
        self._alert_repo.save(alert)
        logger.info(
            "Alert created: id=%s symbol=%s action=%s tipo=%s",
            alert.id,
            alert.symbol,
            alert.action.value,
            alert.tipo.value,
        )

        liquidity_allocated = False
        if command.liquidity_percentage > 0:
            try:
                allocate_liquidity(
                    self._liquidity_repo,
                    command.admin_id,
                    alert,
                    command.liquidity_percentage,
                )
                liquidity_allocated = True
            except Exception:
                logger.exception("Liquidity allocation failed for alert %s", alert.id)

        overrides = {
            "message": command.email_message,
            "image_url": command.email_image_url,
            "liquidity_percentage": command.liquidity_percentage or None,
        }
        if alert.entry_price_range is not None:
            overrides["price_range"] = {
                "min": alert.entry_price_range.min,
                "max": alert.entry_price_range.max,
            }

        notification_queued = False
        try:
            self._notifier.alert_published(alert, overrides)
            notification_queued = True
        except Exception:
            logger.exception("Could not enqueue announcement for alert %s", alert.id)

        return CreateAlertResult(
            alert=alert,
            liquidity_allocated=liquidity_allocated,
            notification_queued=notification_queued,
        )

    def _build_alert(self, command: CreateAlertCommand) -> Alert:
        if not command.symbol.strip():
            raise InvalidAlertError("Symbol is required")
        action = parse_action(command.action)
        kind = parse_kind(command.tipo_alerta)
        tipo = parse_service(command.tipo)
        if command.stop_loss <= 0 or command.take_profit <= 0:
            raise InvalidAlertError("Stop loss and take profit must be greater than 0")

        alert = Alert(
            symbol=command.symbol,
            action=action,
            stop_loss=command.stop_loss,
            take_profit=command.take_profit,
            tipo=tipo,
            tipo_alerta=kind,
            analysis=command.analysis,
            horario_cierre=command.horario_cierre,
            created_by=command.admin_id,
        )
        if command.date is not None:
            alert.date = command.date

        if kind is AlertKind.PRECIO:
            if not command.entry_price or command.entry_price <= 0:
                raise InvalidAlertError("Entry price is required for price alerts")
            alert.entry_price = command.entry_price
            alert.current_price = command.entry_price
        else:
            low, high = command.price_min, command.price_max
            if not low or not high or low <= 0 or high <= 0:
                raise InvalidAlertError("Minimum and maximum prices are required for range alerts")
            if low >= high:
                raise InvalidAlertError("Minimum price must be lower than maximum price")
            alert.entry_price_range = PriceRange(min=low, max=high)
            alert.current_price = low if action is AlertAction.BUY else high
            alert.horario_cierre = "17:30"
        return alert
