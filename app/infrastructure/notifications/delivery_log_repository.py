"""
Adapter: Delivery log.

Implements DeliveryLogRepository port on the delivery_log table.
One row per sent reminder or daily announcement; timestamps are ISO
strings so the window checks compare lexically.
"""

import logging
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.domain.notifications.ports import DeliveryLogRepository
from app.infrastructure.database import to_db_datetime

logger = logging.getLogger(__name__)


class DeliveryLogRepositoryAdapter(DeliveryLogRepository):
    """SQL adapter for the delivery_log table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def was_sent(self, key: str, since: datetime) -> bool:
        """Whether `key` was recorded at or after `since`.

        Timestamps are stored as ISO strings in UTC, so the comparison is
        lexicographic.
        """
        query = text(
            "SELECT 1 FROM delivery_log WHERE message_key = :key AND sent_at >= :since LIMIT 1"
        )
        with self._engine.connect() as conn:
            row = conn.execute(query, {"key": key, "since": to_db_datetime(since)}).fetchone()
        return row is not None

    def record(self, key: str, sent_at: datetime) -> None:
        query = text("INSERT INTO delivery_log (message_key, sent_at) VALUES (:key, :sent_at)")
        with self._engine.begin() as conn:
            conn.execute(query, {"key": key, "sent_at": to_db_datetime(sent_at)})

    def purge_before(self, cutoff: datetime) -> int:
        """Delete entries older than `cutoff` and return how many went."""
        query = text("DELETE FROM delivery_log WHERE sent_at < :cutoff")
        with self._engine.begin() as conn:
            result = conn.execute(query, {"cutoff": to_db_datetime(cutoff)})
        removed = result.rowcount or 0
        if removed:
            logger.info("Purged %d delivery log entries older than %s", removed, cutoff)
        return removed
