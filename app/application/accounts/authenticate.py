"""
Use case: Resolve the caller from a bearer API token.

Input: raw token string
Output: User
Side effects: None.
Failure cases: AuthenticationError.

Only the SHA-256 digest of a token is ever stored or compared.
"""

import hashlib
import logging

from app.domain.accounts.entities import User
from app.domain.accounts.errors import AuthenticationError, PermissionDeniedError
from app.domain.accounts.ports import UserRepository

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    """Digest stored in place of the API token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthenticateUserUseCase:
    """Look up the user that owns a bearer token."""

    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def execute(self, token: str) -> User:
        """Resolve a bearer token to its user.

        Args:
            token: Raw API token from the Authorization header.

        Returns:
            The owning user.

        Raises:
            AuthenticationError: If the token is empty or unknown.
        """
        if not token:
            raise AuthenticationError()
        user = self._user_repo.get_by_token_hash(hash_token(token))
        if user is None:
            logger.warning("Rejected unknown API token")
            raise AuthenticationError()
        return user


def ensure_admin(user: User) -> User:
    """Raise PermissionDeniedError unless the user is an admin."""
    if not user.is_admin:
        raise PermissionDeniedError("admin")
    return user
