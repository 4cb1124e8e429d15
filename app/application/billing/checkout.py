"""
Use case: Start a hosted checkout for a subscription, trial or training.

Input: User, CheckoutCommand
Output: CheckoutResult
Side effects: Creates a checkout preference at the payment processor and a
    pending Payment record.
Failure cases: InvalidCheckoutError, InvalidServiceError,
    SubscriptionAlreadyActiveError, TrialAlreadyUsedError,
    TrialNotAvailableError, TrainingNotFoundError, PaymentGatewayError.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.application.billing.dtos import CheckoutCommand, CheckoutResult
from app.domain.accounts.entities import User, parse_service
from app.domain.accounts.errors import TrialAlreadyUsedError
from app.domain.billing.entities import (
    CheckoutType,
    Payment,
    build_external_reference,
    build_training_reference,
    trial_price,
)
from app.domain.billing.errors import InvalidCheckoutError, SubscriptionAlreadyActiveError
from app.domain.billing.ports import PaymentGateway, PaymentRepository
from app.domain.content.errors import TrainingNotFoundError
from app.domain.content.ports import TrainingRepository

logger = logging.getLogger(__name__)

CURRENCY = "ARS"


class CreateCheckoutUseCase:
    """Prices the purchase, opens a checkout and records a pending payment."""

    def __init__(
        self,
        payment_repo: PaymentRepository,
        gateway: PaymentGateway,
        training_repo: TrainingRepository,
        subscription_prices: dict[str, float],
        base_url: str,
    ) -> None:
        self._payment_repo = payment_repo
        self._gateway = gateway
        self._training_repo = training_repo
        self._subscription_prices = subscription_prices
        self._base_url = base_url.rstrip("/")

    def execute(
        self, user: User, command: CheckoutCommand, now: Optional[datetime] = None
    ) -> CheckoutResult:
        """Open a checkout for the user.

        Args:
            user: The buyer.
            command: Checkout type plus the service or training being bought.
            now: Reference instant. Defaults to the current time.

        Returns:
            CheckoutResult with the processor redirect URL and the external
            reference of the pending payment.

        Raises:
            InvalidCheckoutError: Unknown checkout type or missing service.
            SubscriptionAlreadyActiveError: The user already has access.
            TrialAlreadyUsedError: The trial for the service was already used.
            TrainingNotFoundError: The training does not exist.
            PaymentGatewayError: The processor rejected the preference.
        """
        now = now or datetime.now(timezone.utc)
        timestamp_ms = int(now.timestamp() * 1000)
        try:
            checkout_type = CheckoutType(command.checkout_type)
        except ValueError as exc:
            raise InvalidCheckoutError(f"Invalid checkout type: {command.checkout_type}") from exc

        if checkout_type is CheckoutType.TRAINING:
            return self._training_checkout(user, command, timestamp_ms)

        if not command.service:
            raise InvalidCheckoutError("Service is required")
        service = parse_service(command.service)
        if user.has_service_access(service, now):
            raise SubscriptionAlreadyActiveError(service.value)

        if checkout_type is CheckoutType.TRIAL:
            if user.has_used_trial(service):
                raise TrialAlreadyUsedError(service.value)
            amount = trial_price(service.value)
            title = f"Prueba {service.value} - 30 días"
        else:
            amount = self._subscription_prices.get(service.value)
            if not amount:
                raise InvalidCheckoutError(f"No price configured for {service.value}")
            title = f"Suscripción {service.value} - 30 días"

        reference = build_external_reference(
            checkout_type, service.value, str(user.id), timestamp_ms
        )
        metadata = {
            "user_id": str(user.id),
            "service": service.value,
            "subscription_type": "trial" if checkout_type is CheckoutType.TRIAL else "full",
        }
        return self._open(user, title, amount, reference, service.value, metadata)

    def _training_checkout(
        self, user: User, command: CheckoutCommand, timestamp_ms: int
    ) -> CheckoutResult:
        if command.training_id is None:
            raise InvalidCheckoutError("training_id is required")
        training = self._training_repo.get(command.training_id)
        if training is None:
            raise TrainingNotFoundError(str(command.training_id))
        if training.find_student(str(user.id), user.email) is None:
            raise InvalidCheckoutError("Enroll in the training before paying")

        reference = build_training_reference(str(training.id), str(user.id), timestamp_ms)
        metadata = {
            "user_id": str(user.id),
            "training_id": str(training.id),
            "payment_range": training.payment_range,
        }
        return self._open(
            user,
            f"{training.title} - {training.month_name} {training.year}",
            training.price,
            reference,
            "MonthlyTraining",
            metadata,
        )

    def _open(
        self,
        user: User,
        title: str,
        amount: float,
        reference: str,
        service: str,
        metadata: dict[str, str],
    ) -> CheckoutResult:
        back_urls = {
            "success": f"{self._base_url}/payment/success?reference={reference}",
            "failure": f"{self._base_url}/payment/failure?reference={reference}",
            "pending": f"{self._base_url}/payment/pending?reference={reference}",
        }
        preference = self._gateway.create_preference(
            title=title,
            amount=amount,
            currency=CURRENCY,
            external_reference=reference,
            payer_email=user.email,
            back_urls=back_urls,
            metadata=metadata,
        )
        payment = Payment(
            user_email=user.email,
            service=service,
            amount=amount,
            external_reference=reference,
            user_id=user.id,
            currency=CURRENCY,
            metadata={**metadata, "preference_id": preference.preference_id},
        )
        self._payment_repo.save(payment)
        logger.info(
            "Checkout created: reference=%s amount=%.2f %s preference=%s",
            reference,
            amount,
            CURRENCY,
            preference.preference_id,
        )
        return CheckoutResult(
            preference_id=preference.preference_id,
            init_point=preference.init_point,
            sandbox_init_point=preference.sandbox_init_point,
            external_reference=reference,
            amount=amount,
            currency=CURRENCY,
        )
