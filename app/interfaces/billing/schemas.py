"""
Pydantic schemas for the billing API.
"""

from uuid import UUID

from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    """Request schema for starting a hosted checkout.

    Attributes:
        checkout_type: subscription, trial or training.
        service: TraderCall, SmartMoney or CashFlow (subscriptions and trials).
        training_id: Monthly training to pay for (training checkouts).
    """

    checkout_type: str = Field(default="subscription")
    service: str | None = None
    training_id: UUID | None = None


class CheckoutResponse(BaseModel):
    preference_id: str
    init_point: str
    sandbox_init_point: str
    external_reference: str
    amount: float
    currency: str


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the payment processor."""

    status: str
    payment_id: str | None = None
    external_reference: str | None = None
