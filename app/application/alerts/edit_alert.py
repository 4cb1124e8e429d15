"""
Use case: Edit an active alert.

Input: EditAlertCommand
Output: Alert
Side effects: Persists the alert with audit entries in its price history.
Failure cases: AlertNotFoundError, AlertNotActiveError, InvalidAlertError,
    NoChangesError.
"""

import logging

from app.application.alerts.create_alert import parse_action
from app.application.alerts.dtos import EditAlertCommand, UpdateAlertPriceCommand
from app.domain.alerts.entities import Alert, AlertKind
from app.domain.alerts.errors import (
    AlertNotActiveError,
    AlertNotFoundError,
    InvalidAlertError,
    NoChangesError,
)
from app.domain.alerts.ports import AlertRepository

logger = logging.getLogger(__name__)

DEFAULT_EDIT_REASON = "Edición por administrador"


def load_active_alert(alert_repo: AlertRepository, alert_id) -> Alert:
    """Fetch an alert that can still be changed.

    Raises:
        AlertNotFoundError: If the alert does not exist.
        AlertNotActiveError: If the alert is no longer ACTIVE.
    """
    alert = alert_repo.get(alert_id)
    if alert is None:
        raise AlertNotFoundError(str(alert_id))
    if not alert.is_active:
        raise AlertNotActiveError(str(alert.id), alert.status.value)
    return alert


class EditAlertUseCase:
    """Apply admin edits to an ACTIVE alert, recording who changed what."""

    def __init__(self, alert_repo: AlertRepository) -> None:
        self._alert_repo = alert_repo

    def execute(self, command: EditAlertCommand) -> Alert:
        """Apply the non-None fields of the command.

        Entry price changes are recorded in the price history with the editor
        and reason.

        Args:
            command: Alert id, editor and the fields to change.

        Returns:
            The saved alert.

        Raises:
            InvalidAlertError: If a new value is empty or not positive.
            NoChangesError: If every field is None or equal to the stored value.
        """
        alert = load_active_alert(self._alert_repo, command.alert_id)
        changes: dict[str, object] = {}

        if command.symbol is not None and command.symbol.strip().upper() != alert.symbol:
            if not command.symbol.strip():
                raise InvalidAlertError("Symbol cannot be empty")
            changes["symbol"] = command.symbol.strip().upper()

        if command.action is not None and command.action != alert.action.value:
            changes["action"] = parse_action(command.action)

        is_range = alert.tipo_alerta is AlertKind.RANGO or alert.entry_price_range is not None
        new_price = None
        if command.entry_price is not None and command.entry_price != alert.entry_price:
            if not is_range and command.entry_price <= 0:
                raise InvalidAlertError("Entry price must be greater than 0")
            if is_range and command.entry_price < 0:
                raise InvalidAlertError("Entry price cannot be negative")
            changes["entry_price"] = command.entry_price
            if command.entry_price > 0:
                new_price = command.entry_price

        for name in ("stop_loss", "take_profit"):
            value = getattr(command, name)
            if value is not None and value != getattr(alert, name):
                if value <= 0:
                    raise InvalidAlertError(f"{name.replace('_', ' ').capitalize()} must be greater than 0")
                changes[name] = value

        if command.analysis is not None and command.analysis != alert.analysis:
            changes["analysis"] = command.analysis

        if (
            command.available_for_purchase is not None
            and command.available_for_purchase != alert.available_for_purchase
        ):
            changes["available_for_purchase"] = command.available_for_purchase

        if not changes:
            raise NoChangesError()

        for name, value in changes.items():
            setattr(alert, name, value)

        reason = command.reason or DEFAULT_EDIT_REASON
        if new_price is not None:
            alert.record_price_change(command.editor, new_price, reason)
        else:
            alert.calculate_profit()
        alert.record_edit(command.editor, list(changes))

        self._alert_repo.save(alert)
        logger.info("Alert edited: id=%s fields=%s by=%s", alert.id, sorted(changes), command.editor)
        return alert


class UpdateAlertPriceUseCase:
    """Set an alert's current price and audit the change."""

    def __init__(self, alert_repo: AlertRepository) -> None:
        self._alert_repo = alert_repo

    def execute(self, command: UpdateAlertPriceCommand) -> Alert:
        """Set the current price and recompute profit, keeping the history."""
        if command.price <= 0:
            raise InvalidAlertError("Price must be greater than 0")
        alert = self._alert_repo.get(command.alert_id)
        if alert is None:
            raise AlertNotFoundError(str(command.alert_id))

        alert.record_price_change(command.editor, command.price, command.reason)
        self._alert_repo.save(alert)
        logger.info(
            "Alert price updated: id=%s price=%.4f profit=%.2f%%",
            alert.id,
            command.price,
            alert.profit,
        )
        return alert
