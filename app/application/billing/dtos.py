"""
Data Transfer Objects for the billing application layer.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class CheckoutCommand:
    """Input DTO for starting a hosted checkout.

    Attributes:
        checkout_type: `subscription`, `trial` or `training`.
        service: Service name for subscriptions and trials.
        training_id: Monthly training being paid for (training checkouts).
    """

    checkout_type: str
    service: Optional[str] = None
    training_id: Optional[UUID] = None


@dataclass(frozen=True)
class CheckoutResult:
    """Output DTO with everything the client needs to redirect the buyer."""

    preference_id: str
    init_point: str
    sandbox_init_point: str
    external_reference: str
    amount: float
    currency: str


@dataclass(frozen=True)
class WebhookResult:
    """Outcome of a payment webhook.

    Attributes:
        status: `ignored`, `already_processed`, `approved`, `rejected`
            or `pending`.
        payment_id: Gateway payment id, when one was resolved.
        external_reference: Reference of the local payment record.
    """

    status: str
    payment_id: Optional[str] = None
    external_reference: Optional[str] = None
