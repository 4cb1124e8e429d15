"""
Domain-specific errors for the notifications bounded context.

These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class NotificationsDomainError(Exception):
    """Base error for all notifications domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class NotificationNotFoundError(NotificationsDomainError):
    """Raised when a notification cannot be found."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(f"Notification not found: {notification_id}")
        self.notification_id = notification_id


class InvalidNotificationError(NotificationsDomainError):
    """Raised when notification content breaks a field rule."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class EmailDeliveryError(NotificationsDomainError):
    """Raised by an email sender when a message could not be delivered."""

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"Email to {recipient} failed: {reason}")
        self.recipient = recipient
        self.reason = reason


class EmailRateLimitError(EmailDeliveryError):
    """Raised when the email provider throttles the sender."""


class UnknownJobTypeError(NotificationsDomainError):
    """Raised when a queued job has no registered handler."""

    def __init__(self, job_type: str) -> None:
        super().__init__(f"No handler registered for job type: {job_type}")
        self.job_type = job_type
