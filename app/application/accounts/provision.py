"""
Use case: Provision a user and issue an API token.

Input: ProvisionUserCommand
Output: ProvisionedUser (the raw token is returned exactly once)
Side effects: Creates the user when the email is new; replaces the stored
    token digest, so any previous token of that user stops working.
Failure cases: InvalidUserError for a malformed email or unknown role.
"""

import logging
import re
import secrets
from typing import Callable

from app.application.accounts.authenticate import hash_token
from app.application.accounts.dtos import ProvisionedUser, ProvisionUserCommand
from app.domain.accounts.entities import User, UserRole
from app.domain.accounts.errors import InvalidUserError
from app.domain.accounts.ports import UserRepository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def new_api_token() -> str:
    return secrets.token_urlsafe(32)


class ProvisionUserUseCase:
    """Operator-side account creation and token issuing."""

    def __init__(
        self,
        user_repo: UserRepository,
        token_factory: Callable[[], str] = new_api_token,
    ) -> None:
        self._user_repo = user_repo
        self._token_factory = token_factory

    def execute(self, command: ProvisionUserCommand) -> ProvisionedUser:
        """Create the user if needed and issue a fresh API token.

        Any previous token of the user stops working.

        Args:
            command: Email, optional name and optional role.

        Returns:
            ProvisionedUser carrying the plaintext token, shown only once.

        Raises:
            InvalidUserError: If the email or the role is invalid.
        """
        email = command.email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise InvalidUserError(f"Invalid email: {command.email}")
        role = None
        if command.role is not None:
            try:
                role = UserRole(command.role)
            except ValueError as exc:
                raise InvalidUserError(f"Invalid role: {command.role}") from exc

        user = self._user_repo.get_by_email(email)
        created = user is None
        if user is None:
            user = User(email=email, name=command.name.strip(), role=role or UserRole.NORMAL)
            self._user_repo.save(user)
        elif role is not None and role is not user.role:
            user.role = role
            self._user_repo.save(user)

        token = self._token_factory()
        self._user_repo.set_api_token_hash(user.id, hash_token(token))
        logger.info(
            "Issued API token: user=%s role=%s created=%s", user.id, user.role.value, created
        )
        return ProvisionedUser(user=user, api_token=token, created=created)
