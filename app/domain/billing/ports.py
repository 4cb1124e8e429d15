"""
Port interfaces (ABCs) for the billing bounded context.

Infrastructure adapters implement these interfaces.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from app.domain.billing.entities import CheckoutPreference, GatewayPayment, Payment


class PaymentRepository(ABC):
    """Port for the local payment records."""

    @abstractmethod
    def get_by_external_reference(self, reference: str) -> Optional[Payment]:
        raise NotImplementedError

    @abstractmethod
    def save(self, payment: Payment) -> None:
        """Insert or update a payment."""
        raise NotImplementedError


class PaymentGateway(ABC):
    """Port for the hosted payment processor."""

    @abstractmethod
    def create_preference(
        self,
        title: str,
        amount: float,
        currency: str,
        external_reference: str,
        payer_email: str,
        back_urls: dict[str, str],
        metadata: Optional[dict[str, Any]] = None,
    ) -> CheckoutPreference:
        """Create a hosted checkout.

        Raises:
            PaymentGatewayError: If the processor rejects the request.
        """
        raise NotImplementedError

    @abstractmethod
    def get_payment(self, payment_id: str) -> Optional[GatewayPayment]:
        """Fetch a payment; None when it is not (yet) visible."""
        raise NotImplementedError

    @abstractmethod
    def get_merchant_order_payment_id(self, merchant_order_id: str) -> Optional[str]:
        """Return the approved (else first) payment id of a merchant order."""
        raise NotImplementedError
