"""
Domain-specific errors for the billing bounded context.

These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class BillingDomainError(Exception):
    """Base error for all billing domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class SubscriptionAlreadyActiveError(BillingDomainError):
    """Raised when buying a service the user can already access."""

    def __init__(self, service: str) -> None:
        super().__init__(f"Subscription already active for service: {service}")
        self.service = service


class TrialNotAvailableError(BillingDomainError):
    """Raised when a trial is requested for a service that has none."""

    def __init__(self, service: str) -> None:
        super().__init__(f"Trial not available for service: {service}")
        self.service = service


class InvalidCheckoutError(BillingDomainError):
    """Raised for malformed checkout requests."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidWebhookError(BillingDomainError):
    """Raised when a webhook body does not identify a payment."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class PaymentGatewayError(BillingDomainError):
    """Raised when the payment processor cannot be reached or refuses a call."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Payment gateway error: {reason}")
        self.reason = reason
