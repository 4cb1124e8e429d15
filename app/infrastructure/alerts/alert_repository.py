"""
Adapter: Alert repository.

Implements AlertRepository port.
Reads/writes the alerts table; partial sales, the price audit trail and
the email flags are JSON columns.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.domain.alerts.entities import (
    Alert,
    AlertAction,
    AlertKind,
    AlertService,
    AlertStatus,
    ExitReason,
    PartialSale,
    PriceChange,
    PriceRange,
)
from app.domain.alerts.ports import AlertRepository
from app.infrastructure.database import (
    from_db_datetime,
    from_json,
    to_db_datetime,
    to_json,
    to_optional_float,
)

logger = logging.getLogger(__name__)

_FIELDS = [
    "id", "symbol", "action", "tipo", "tipo_alerta", "status", "entry_price",
    "range_min", "range_max", "current_price", "stop_loss", "take_profit",
    "profit", "analysis", "alert_date", "horario_cierre", "exit_price",
    "exit_date", "exit_reason", "final_price", "available_for_purchase",
    "participation_percentage", "partial_sales", "realized_profit",
    "unrealized_profit", "discard_reason", "discard_price", "dismissal_reason",
    "price_change_history", "emails_sent", "created_by", "created_at",
]
_COLUMNS = ", ".join(_FIELDS)


def _sale_to_dict(sale: PartialSale) -> dict[str, Any]:
    return {
        "date": to_db_datetime(sale.date),
        "price": sale.price,
        "percentage_sold": sale.percentage_sold,
        "realized_gain": sale.realized_gain,
        "shares_sold": sale.shares_sold,
        "liquidity_released": sale.liquidity_released,
        "realized_profit": sale.realized_profit,
    }


def _sale_from_dict(data: dict[str, Any]) -> PartialSale:
    return PartialSale(
        date=from_db_datetime(data["date"]),
        price=float(data["price"]),
        percentage_sold=float(data["percentage_sold"]),
        realized_gain=float(data.get("realized_gain", 0)),
        shares_sold=float(data.get("shares_sold", 0)),
        liquidity_released=float(data.get("liquidity_released", 0)),
        realized_profit=float(data.get("realized_profit", 0)),
    )


def _change_to_dict(change: PriceChange) -> dict[str, Any]:
    return {
        "changed_by": change.changed_by,
        "changed_at": to_db_datetime(change.changed_at),
        "old_price": change.old_price,
        "new_price": change.new_price,
        "reason": change.reason,
    }


def _change_from_dict(data: dict[str, Any]) -> PriceChange:
    return PriceChange(
        changed_by=data["changed_by"],
        changed_at=from_db_datetime(data["changed_at"]),
        old_price=float(data["old_price"]),
        new_price=float(data["new_price"]),
        reason=data.get("reason", ""),
    )


def _alert_to_params(alert: Alert) -> dict[str, Any]:
    price_range = alert.entry_price_range
    return {
        "id": str(alert.id),
        "symbol": alert.symbol,
        "action": alert.action.value,
        "tipo": alert.tipo.value,
        "tipo_alerta": alert.tipo_alerta.value,
        "status": alert.status.value,
        "entry_price": alert.entry_price,
        "range_min": price_range.min if price_range else None,
        "range_max": price_range.max if price_range else None,
        "current_price": alert.current_price,
        "stop_loss": alert.stop_loss,
        "take_profit": alert.take_profit,
        "profit": alert.profit,
        "analysis": alert.analysis,
        "alert_date": to_db_datetime(alert.date),
        "horario_cierre": alert.horario_cierre,
        "exit_price": alert.exit_price,
        "exit_date": to_db_datetime(alert.exit_date),
        "exit_reason": alert.exit_reason.value if alert.exit_reason else None,
        "final_price": alert.final_price,
        "available_for_purchase": alert.available_for_purchase,
        "participation_percentage": alert.participation_percentage,
        "partial_sales": to_json([_sale_to_dict(s) for s in alert.partial_sales]),
        "realized_profit": alert.realized_profit,
        "unrealized_profit": alert.unrealized_profit,
        "discard_reason": alert.discard_reason,
        "discard_price": alert.discard_price,
        "dismissal_reason": alert.dismissal_reason,
        "price_change_history": to_json(
            [_change_to_dict(c) for c in alert.price_change_history]
        ),
        "emails_sent": to_json(alert.emails_sent),
        "created_by": alert.created_by,
        "created_at": to_db_datetime(alert.created_at),
    }


def _row_to_alert(row: Any) -> Alert:
    r = dict(zip(_FIELDS, row))
    price_range = None
    if r["range_min"] is not None and r["range_max"] is not None:
        price_range = PriceRange(min=float(r["range_min"]), max=float(r["range_max"]))
    return Alert(
        id=UUID(r["id"]),
        symbol=r["symbol"],
        action=AlertAction(r["action"]),
        tipo=AlertService(r["tipo"]),
        tipo_alerta=AlertKind(r["tipo_alerta"]),
        status=AlertStatus(r["status"]),
        entry_price=to_optional_float(r["entry_price"]),
        entry_price_range=price_range,
        current_price=float(r["current_price"] or 0),
        stop_loss=float(r["stop_loss"]),
        take_profit=float(r["take_profit"]),
        profit=float(r["profit"] or 0),
        analysis=r["analysis"] or "",
        date=from_db_datetime(r["alert_date"]),
        horario_cierre=r["horario_cierre"] or "17:30",
        exit_price=to_optional_float(r["exit_price"]),
        exit_date=from_db_datetime(r["exit_date"]),
        exit_reason=ExitReason(r["exit_reason"]) if r["exit_reason"] else None,
        final_price=to_optional_float(r["final_price"]),
        available_for_purchase=bool(r["available_for_purchase"]),
        participation_percentage=float(r["participation_percentage"]),
        partial_sales=[_sale_from_dict(s) for s in from_json(r["partial_sales"], [])],
        realized_profit=float(r["realized_profit"] or 0),
        unrealized_profit=float(r["unrealized_profit"] or 0),
        discard_reason=r["discard_reason"],
        discard_price=to_optional_float(r["discard_price"]),
        dismissal_reason=r["dismissal_reason"],
        price_change_history=[
            _change_from_dict(c) for c in from_json(r["price_change_history"], [])
        ],
        emails_sent=from_json(r["emails_sent"], {"creation": False, "market_close": False}),
        created_by=r["created_by"],
        created_at=from_db_datetime(r["created_at"]),
    )


class AlertRepositoryAdapter(AlertRepository):
    """SQL adapter for the alerts table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, alert_id: UUID) -> Optional[Alert]:
        query = text(f"SELECT {_COLUMNS} FROM alerts WHERE id = :id")
        with self._engine.connect() as conn:
            row = conn.execute(query, {"id": str(alert_id)}).fetchone()
        return _row_to_alert(row) if row else None

    def save(self, alert: Alert) -> None:
        """Upsert an alert with all its nested collections."""
        updates = ",\n                ".join(
            f"{name} = EXCLUDED.{name}" for name in _FIELDS if name not in ("id", "created_at")
        )
        query = text(
            f"""
            INSERT INTO alerts ({_COLUMNS})
            VALUES ({", ".join(":" + name for name in _FIELDS)})
            ON CONFLICT (id)
            DO UPDATE SET
                {updates}
            """
        )
        with self._engine.begin() as conn:
            conn.execute(query, _alert_to_params(alert))
        logger.debug(
            "Saved alert: id=%s symbol=%s status=%s", alert.id, alert.symbol, alert.status.value
        )

    def list_page(
        self,
        tipo: Optional[AlertService] = None,
        status: Optional[AlertStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Alert], int]:
        """Return one page of alerts and the total matching the filters.

        Args:
            tipo: Optional service filter.
            status: Optional status filter.
            limit: Page size.
            offset: Rows to skip.

        Returns:
            Tuple of the alerts ordered by created_at descending and the
            unpaged count.
        """
        clauses = []
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if tipo is not None:
            clauses.append("tipo = :tipo")
            params["tipo"] = tipo.value
        if status is not None:
            clauses.append("status = :status")
            params["status"] = status.value
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        count_query = text(f"SELECT COUNT(*) FROM alerts {where}")
        page_query = text(
            f"""
            SELECT {_COLUMNS} FROM alerts {where}
            ORDER BY created_at DESC
            LIMIT :limit OFFSET :offset
            """
        )
        with self._engine.connect() as conn:
            total = conn.execute(count_query, params).scalar() or 0
            rows = conn.execute(page_query, params).fetchall()
        return [_row_to_alert(r) for r in rows], int(total)

    def list_active(self, kind: Optional[AlertKind] = None) -> list[Alert]:
        """ACTIVE alerts, oldest first, optionally of one kind."""
        params: dict[str, Any] = {"status": AlertStatus.ACTIVE.value}
        where = "status = :status"
        if kind is not None:
            where += " AND tipo_alerta = :kind"
            params["kind"] = kind.value
        query = text(f"SELECT {_COLUMNS} FROM alerts WHERE {where} ORDER BY created_at ASC")
        with self._engine.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_alert(r) for r in rows]
