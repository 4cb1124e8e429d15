"""
Domain-specific errors for the accounts bounded context.

These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class AccountsDomainError(Exception):
    """Base error for all accounts domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class UserNotFoundError(AccountsDomainError):
    """Raised when a user cannot be found."""

    def __init__(self, user_ref: str) -> None:
        super().__init__(f"User not found: {user_ref}")
        self.user_ref = user_ref


class AuthenticationError(AccountsDomainError):
    """Raised when the caller could not be identified."""

    def __init__(self, reason: str = "Missing or invalid credentials") -> None:
        super().__init__(reason)


class PermissionDeniedError(AccountsDomainError):
    """Raised when an authenticated user lacks the required role."""

    def __init__(self, required_role: str) -> None:
        super().__init__(f"Insufficient permissions: {required_role} role required")
        self.required_role = required_role


class InvalidServiceError(AccountsDomainError):
    """Raised for an unknown subscription service name."""

    def __init__(self, service: str) -> None:
        super().__init__(f"Invalid service: {service}")
        self.service = service


class TrialAlreadyUsedError(AccountsDomainError):
    """Raised when a user requests a second trial for the same service."""

    def __init__(self, service: str) -> None:
        super().__init__(f"Trial already used for service: {service}")
        self.service = service


class InvalidUserError(AccountsDomainError):
    """Raised when user details fail validation."""
