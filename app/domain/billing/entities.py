"""
Domain entities for the billing bounded context.

Payments are keyed by an external reference that encodes what was
bought: `trial_{service}_{userId}_{ts}`, `{type}_{service}_{userId}_{ts}`
or `MTS_{trainingId}_{userId}_{ts}` for monthly trainings.
No framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from app.domain.billing.errors import TrialNotAvailableError

TRIAL_PRICES = {
    "TraderCall": 1.0,
    "SmartMoney": 2.0,
}
MONTHLY_TRAINING_PREFIX = "MTS_"
TRIAL_PREFIX = "trial_"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckoutType(Enum):
    SUBSCRIPTION = "subscription"
    TRIAL = "trial"
    TRAINING = "training"


class PaymentStatus(Enum):
    """Statuses reported by the payment processor."""

    PENDING = "pending"
    APPROVED = "approved"
    AUTHORIZED = "authorized"
    IN_PROCESS = "in_process"
    IN_MEDIATION = "in_mediation"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    CHARGED_BACK = "charged_back"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PaymentStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING

    @property
    def is_successful(self) -> bool:
        return self in (PaymentStatus.APPROVED, PaymentStatus.AUTHORIZED)

    @property
    def is_rejected(self) -> bool:
        return self in (
            PaymentStatus.REJECTED,
            PaymentStatus.CANCELLED,
            PaymentStatus.REFUNDED,
            PaymentStatus.CHARGED_BACK,
        )

    @property
    def is_pending(self) -> bool:
        return self in (
            PaymentStatus.PENDING,
            PaymentStatus.IN_PROCESS,
            PaymentStatus.IN_MEDIATION,
        )


def trial_price(service: str) -> float:
    """Price charged for a trial, or TrialNotAvailableError."""
    if service not in TRIAL_PRICES:
        raise TrialNotAvailableError(service)
    return TRIAL_PRICES[service]


def build_external_reference(
    checkout_type: CheckoutType, service: str, user_id: str, timestamp_ms: int
) -> str:
    if checkout_type is CheckoutType.TRIAL:
        return f"{TRIAL_PREFIX}{service}_{user_id}_{timestamp_ms}"
    return f"{checkout_type.value}_{service}_{user_id}_{timestamp_ms}"


def build_training_reference(training_id: str, user_id: str, timestamp_ms: int) -> str:
    return f"{MONTHLY_TRAINING_PREFIX}{training_id}_{user_id}_{timestamp_ms}"


@dataclass(frozen=True)
class ParsedReference:
    kind: str
    target: str
    user_id: Optional[str]


def parse_external_reference(reference: str) -> ParsedReference:
    """Split a reference into (kind, service or training id, user id)."""
    if reference.startswith(MONTHLY_TRAINING_PREFIX):
        parts = reference[len(MONTHLY_TRAINING_PREFIX):].split("_")
        return ParsedReference(
            kind="monthly_training",
            target=parts[0] if parts else "",
            user_id=parts[1] if len(parts) > 1 else None,
        )
    parts = reference.split("_")
    return ParsedReference(
        kind=parts[0] if parts else "",
        target=parts[1] if len(parts) > 1 else "TraderCall",
        user_id=parts[2] if len(parts) > 2 else None,
    )


@dataclass(frozen=True)
class GatewayPayment:
    """Payment as reported by the payment processor."""

    id: str
    status: PaymentStatus
    external_reference: str
    amount: float
    currency: str
    payer_email: str = ""
    payment_method_id: str = ""
    payment_type_id: str = ""
    installments: int = 1
    status_detail: str = ""


@dataclass(frozen=True)
class CheckoutPreference:
    """Hosted checkout created at the payment processor."""

    preference_id: str
    init_point: str
    sandbox_init_point: str = ""


@dataclass
class Payment:
    """Local record of a payment, created at checkout or from a webhook."""

    user_email: str
    service: str
    amount: float
    external_reference: str
    id: UUID = field(default_factory=uuid4)
    user_id: Optional[UUID] = None
    currency: str = "ARS"
    status: PaymentStatus = PaymentStatus.PENDING
    mercadopago_payment_id: Optional[str] = None
    payment_method_id: str = ""
    payment_type_id: str = ""
    installments: int = 1
    transaction_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_trial(self) -> bool:
        return (
            self.metadata.get("subscription_type") == "trial"
            or self.external_reference.startswith(TRIAL_PREFIX)
        )

    @property
    def is_monthly_training(self) -> bool:
        return self.external_reference.startswith(MONTHLY_TRAINING_PREFIX)

    def apply_gateway_payment(self, info: GatewayPayment, now: Optional[datetime] = None) -> None:
        """Copy the processor's view of the payment onto the local record."""
        self.mercadopago_payment_id = info.id
        self.status = info.status
        self.payment_method_id = info.payment_method_id
        self.payment_type_id = info.payment_type_id
        self.installments = info.installments or 1
        self.transaction_date = now or _utcnow()
