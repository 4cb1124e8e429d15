"""
Domain-specific errors for the alerts bounded context.

Covers alert lifecycle rules and liquidity bookkeeping.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class AlertsDomainError(Exception):
    """Base error for all alerts domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class AlertNotFoundError(AlertsDomainError):
    """Raised when an alert cannot be found."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert not found: {alert_id}")
        self.alert_id = alert_id


class InvalidAlertError(AlertsDomainError):
    """Raised when alert input fails a business validation rule."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class AlertNotActiveError(AlertsDomainError):
    """Raised when an operation needs an ACTIVE alert."""

    def __init__(self, alert_id: str, status: str) -> None:
        super().__init__(f"Alert {alert_id} is not active (status: {status})")
        self.alert_id = alert_id
        self.status = status


class NoChangesError(AlertsDomainError):
    """Raised when an edit request does not change anything."""

    def __init__(self) -> None:
        super().__init__("No changes detected")


class InvalidSaleError(AlertsDomainError):
    """Raised for a partial sale or share sale that breaks a rule."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class LiquidityNotConfiguredError(AlertsDomainError):
    """Raised when a pool has no liquidity to distribute."""

    def __init__(self, pool: str) -> None:
        super().__init__(f"No liquidity configured for pool: {pool}")
        self.pool = pool


class InsufficientLiquidityError(AlertsDomainError):
    """Raised when an allocation exceeds the pool's liquidity."""

    def __init__(self, requested: float, available: float) -> None:
        super().__init__(
            f"Insufficient liquidity: requested {requested:.2f}, available {available:.2f}"
        )
        self.requested = requested
        self.available = available


class DistributionNotFoundError(AlertsDomainError):
    """Raised when a pool holds no distribution for the alert."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Distribution not found for alert: {alert_id}")
        self.alert_id = alert_id


class AlreadyDistributedError(AlertsDomainError):
    """Raised when liquidity was already assigned to the alert."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert {alert_id} already has a liquidity distribution")
        self.alert_id = alert_id


class InvalidLiquidityError(AlertsDomainError):
    """Raised for liquidity input that breaks a bookkeeping rule."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
