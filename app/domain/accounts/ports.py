"""
Port interfaces (ABCs) for the accounts bounded context.

Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from app.domain.accounts.entities import Service, User


class UserRepository(ABC):
    """Port for persisting and querying platform users."""

    @abstractmethod
    def get(self, user_id: UUID) -> Optional[User]:
        """Return the user with the given id, or None."""
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Return the user with the given email (case-insensitive), or None."""
        raise NotImplementedError

    @abstractmethod
    def get_by_token_hash(self, token_hash: str) -> Optional[User]:
        """Return the user owning the given API token digest, or None."""
        raise NotImplementedError

    @abstractmethod
    def save(self, user: User) -> None:
        """Insert or update a user."""
        raise NotImplementedError

    @abstractmethod
    def set_api_token_hash(self, user_id: UUID, token_hash: str) -> None:
        """Replace the API token digest of an existing user."""
        raise NotImplementedError

    @abstractmethod
    def list_subscribers(self, service: Service, now: datetime) -> list[User]:
        """Return users holding an active, unexpired subscription to the service.

        Both full and trial subscriptions count.
        """
        raise NotImplementedError

    @abstractmethod
    def list_with_active_subscriptions(self) -> list[User]:
        """Return users that have at least one subscription flagged active."""
        raise NotImplementedError

    @abstractmethod
    def list_with_subscriptions(self) -> list[User]:
        """Return users holding at least one subscription entry, active or lapsed."""
        raise NotImplementedError

    @abstractmethod
    def list_admins(self) -> list[User]:
        """Return all admin users."""
        raise NotImplementedError
