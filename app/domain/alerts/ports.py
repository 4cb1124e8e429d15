"""
Port interfaces (ABCs) for the alerts bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from app.domain.alerts.entities import (
    Alert,
    AlertKind,
    AlertService,
    AlertStatus,
    Liquidity,
)


class AlertRepository(ABC):
    """Port for persisting and querying alerts."""

    @abstractmethod
    def get(self, alert_id: UUID) -> Optional[Alert]:
        """Return the alert with the given id, or None."""
        raise NotImplementedError

    @abstractmethod
    def save(self, alert: Alert) -> None:
        """Insert or update an alert."""
        raise NotImplementedError

    @abstractmethod
    def list_page(
        self,
        tipo: Optional[AlertService] = None,
        status: Optional[AlertStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Alert], int]:
        """Return a page of alerts (newest first) and the total match count."""
        raise NotImplementedError

    @abstractmethod
    def list_active(self, kind: Optional[AlertKind] = None) -> list[Alert]:
        """Return all ACTIVE alerts, optionally restricted to one kind."""
        raise NotImplementedError


class LiquidityRepository(ABC):
    """Port for the per-admin, per-pool liquidity records."""

    @abstractmethod
    def get(self, created_by: str, pool: AlertService) -> Optional[Liquidity]:
        """Return the liquidity record of an admin for a pool, or None."""
        raise NotImplementedError

    @abstractmethod
    def list_by_pool(self, pool: AlertService) -> list[Liquidity]:
        """Return every liquidity record of a pool."""
        raise NotImplementedError

    @abstractmethod
    def find_by_alert(self, alert_id: UUID) -> list[Liquidity]:
        """Return liquidity records holding a distribution for the alert."""
        raise NotImplementedError

    @abstractmethod
    def save(self, liquidity: Liquidity) -> None:
        """Insert or update a liquidity record."""
        raise NotImplementedError


class AlertNotificationPort(ABC):
    """Port used by alert use cases to announce alert events.

    Implementations must never raise into the caller's workflow beyond
    what they document; callers still guard the call.
    """

    @abstractmethod
    def alert_published(self, alert: Alert, overrides: Optional[dict[str, Any]] = None) -> None:
        """Announce a new or updated alert to its subscribers."""
        raise NotImplementedError
