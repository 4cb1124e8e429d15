"""
Adapter: Liquidity repository.

Implements LiquidityRepository port.
One row per (admin, pool); distributions are a JSON column.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.domain.alerts.entities import AlertService, Liquidity, LiquidityDistribution
from app.domain.alerts.ports import LiquidityRepository
from app.infrastructure.database import (
    from_db_datetime,
    from_json,
    to_db_datetime,
    to_json,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, pool, created_by, initial_liquidity, total_liquidity,
    available_liquidity, distributed_liquidity, distributions,
    total_profit_loss, total_profit_loss_percentage, created_at, updated_at
"""


def _distribution_to_dict(dist: LiquidityDistribution) -> dict[str, Any]:
    return {
        "alert_id": str(dist.alert_id),
        "symbol": dist.symbol,
        "percentage": dist.percentage,
        "allocated_amount": dist.allocated_amount,
        "entry_price": dist.entry_price,
        "current_price": dist.current_price,
        "shares": dist.shares,
        "sold_shares": dist.sold_shares,
        "profit_loss": dist.profit_loss,
        "profit_loss_percentage": dist.profit_loss_percentage,
        "realized_profit_loss": dist.realized_profit_loss,
        "is_active": dist.is_active,
        "created_at": to_db_datetime(dist.created_at),
    }


def _distribution_from_dict(data: dict[str, Any]) -> LiquidityDistribution:
    return LiquidityDistribution(
        alert_id=UUID(data["alert_id"]),
        symbol=data["symbol"],
        percentage=float(data["percentage"]),
        allocated_amount=float(data["allocated_amount"]),
        entry_price=float(data["entry_price"]),
        current_price=float(data["current_price"]),
        shares=float(data["shares"]),
        sold_shares=float(data.get("sold_shares", 0)),
        profit_loss=float(data.get("profit_loss", 0)),
        profit_loss_percentage=float(data.get("profit_loss_percentage", 0)),
        realized_profit_loss=float(data.get("realized_profit_loss", 0)),
        is_active=bool(data.get("is_active", True)),
        created_at=from_db_datetime(data.get("created_at")),
    )


def _row_to_liquidity(row: Any) -> Liquidity:
    return Liquidity(
        id=UUID(row[0]),
        pool=AlertService(row[1]),
        created_by=row[2],
        initial_liquidity=float(row[3]),
        total_liquidity=float(row[4]),
        available_liquidity=float(row[5]),
        distributed_liquidity=float(row[6]),
        distributions=[_distribution_from_dict(d) for d in from_json(row[7], [])],
        total_profit_loss=float(row[8]),
        total_profit_loss_percentage=float(row[9]),
        created_at=from_db_datetime(row[10]),
        updated_at=from_db_datetime(row[11]),
    )


class LiquidityRepositoryAdapter(LiquidityRepository):
    """SQL adapter for the liquidity table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, created_by: str, pool: AlertService) -> Optional[Liquidity]:
        query = text(
            f"SELECT {_COLUMNS} FROM liquidity WHERE created_by = :created_by AND pool = :pool"
        )
        with self._engine.connect() as conn:
            row = conn.execute(query, {"created_by": created_by, "pool": pool.value}).fetchone()
        return _row_to_liquidity(row) if row else None

    def list_by_pool(self, pool: AlertService) -> list[Liquidity]:
        query = text(f"SELECT {_COLUMNS} FROM liquidity WHERE pool = :pool ORDER BY created_at")
        with self._engine.connect() as conn:
            rows = conn.execute(query, {"pool": pool.value}).fetchall()
        return [_row_to_liquidity(r) for r in rows]

    def find_by_alert(self, alert_id: UUID) -> list[Liquidity]:
        """Records holding a distribution for the alert.

        The LIKE filter narrows the scan on the serialized distributions; the
        match is confirmed on the decoded record.
        """
        query = text(
            f"SELECT {_COLUMNS} FROM liquidity WHERE distributions LIKE :pattern ORDER BY created_at"
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query, {"pattern": f"%{alert_id}%"}).fetchall()
        records = [_row_to_liquidity(r) for r in rows]
        return [rec for rec in records if rec.find_distribution(alert_id) is not None]

    def save(self, liquidity: Liquidity) -> None:
        """Upsert the record with its serialized distributions."""
        query = text(
            """
            INSERT INTO liquidity (
                id, pool, created_by, initial_liquidity, total_liquidity,
                available_liquidity, distributed_liquidity, distributions,
                total_profit_loss, total_profit_loss_percentage, created_at, updated_at
            )
            VALUES (
                :id, :pool, :created_by, :initial_liquidity, :total_liquidity,
                :available_liquidity, :distributed_liquidity, :distributions,
                :total_profit_loss, :total_profit_loss_percentage, :created_at, :updated_at
            )
            ON CONFLICT (id)
            DO UPDATE SET
                initial_liquidity = EXCLUDED.initial_liquidity,
                total_liquidity = EXCLUDED.total_liquidity,
                available_liquidity = EXCLUDED.available_liquidity,
                distributed_liquidity = EXCLUDED.distributed_liquidity,
                distributions = EXCLUDED.distributions,
                total_profit_loss = EXCLUDED.total_profit_loss,
                total_profit_loss_percentage = EXCLUDED.total_profit_loss_percentage,
                updated_at = EXCLUDED.updated_at
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                query,
                {
                    "id": str(liquidity.id),
                    "pool": liquidity.pool.value,
                    "created_by": liquidity.created_by,
                    "initial_liquidity": liquidity.initial_liquidity,
                    "total_liquidity": liquidity.total_liquidity,
                    "available_liquidity": liquidity.available_liquidity,
                    "distributed_liquidity": liquidity.distributed_liquidity,
                    "distributions": to_json(
                        [_distribution_to_dict(d) for d in liquidity.distributions]
                    ),
                    "total_profit_loss": liquidity.total_profit_loss,
                    "total_profit_loss_percentage": liquidity.total_profit_loss_percentage,
                    "created_at": to_db_datetime(liquidity.created_at),
                    "updated_at": to_db_datetime(liquidity.updated_at),
                },
            )
        logger.debug(
            "Saved liquidity: pool=%s admin=%s distributions=%d",
            liquidity.pool.value,
            liquidity.created_by,
            len(liquidity.distributions),
        )
