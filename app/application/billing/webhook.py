"""
Use case: Process a payment notification from the payment processor.

Input: raw webhook body (JSON object)
Output: WebhookResult
Side effects: Creates or updates the Payment, activates trials and
    subscriptions, completes training enrollments and sends the admin and
    buyer confirmation emails exactly once each.
Failure cases: InvalidWebhookError (unusable body), PaymentGatewayError
    (payment never visible at the processor).
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import UUID

from app.application.billing.dtos import WebhookResult
from app.domain.accounts.entities import ActiveSubscription, User, parse_service
from app.domain.accounts.errors import AccountsDomainError
from app.domain.accounts.ports import UserRepository
from app.domain.billing.entities import (
    GatewayPayment,
    Payment,
    parse_external_reference,
)
from app.domain.billing.errors import InvalidWebhookError, PaymentGatewayError
from app.domain.billing.ports import PaymentGateway, PaymentRepository
from app.domain.content.ports import TrainingRepository
from app.domain.notifications.ports import EmailSender
from app.domain.notifications.templates import (
    render_admin_new_subscriber,
    render_subscription_confirmation,
)

logger = logging.getLogger(__name__)

FETCH_ATTEMPTS = 3
FETCH_RETRY_DELAY_SECONDS = 0.8


class ProcessPaymentWebhookUseCase:
    """Reconciles a processor payment with the local payment and user records."""

    def __init__(
        self,
        payment_repo: PaymentRepository,
        user_repo: UserRepository,
        training_repo: TrainingRepository,
        gateway: PaymentGateway,
        email_sender: EmailSender,
        admin_email: Optional[str],
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._payment_repo = payment_repo
        self._user_repo = user_repo
        self._training_repo = training_repo
        self._gateway = gateway
        self._email_sender = email_sender
        self._admin_email = admin_email
        self._sleep = sleep

    def execute(self, body: dict[str, Any]) -> WebhookResult:
        """Process one processor notification.

        Payment and merchant-order topics are resolved to a payment id and
        the payment is fetched from the processor before anything changes.
        Reprocessing an approved payment is a no-op.

        Args:
            body: The decoded notification body.

        Returns:
            WebhookResult whose status is ignored, already_processed,
            approved, rejected or pending.

        Raises:
            InvalidWebhookError: If the body names a resource but no payment.
            PaymentGatewayError: If the payment cannot be fetched.
        """
        payment_id = self._resolve_payment_id(body)
        if payment_id is None:
            return WebhookResult(status="ignored")

        info = self._fetch(payment_id)
        payment = self._payment_repo.get_by_external_reference(info.external_reference)
        if payment is None:
            payment = self._payment_from_gateway(info)

        if payment.status.is_successful and payment.mercadopago_payment_id == info.id:
            logger.info("Payment %s already processed", info.id)
            return WebhookResult(
                status="already_processed",
                payment_id=info.id,
                external_reference=payment.external_reference,
            )

        was_approved = payment.status.is_successful
        payment.apply_gateway_payment(info)

        if info.status.is_successful and not was_approved:
            self._activate(payment, info)
            status = "approved"
        elif info.status.is_rejected:
            logger.warning(
                "Payment %s rejected: status=%s detail=%s",
                info.id,
                info.status.value,
                info.status_detail,
            )
            status = "rejected"
        else:
            status = "approved" if info.status.is_successful else "pending"

        self._payment_repo.save(payment)
        return WebhookResult(
            status=status, payment_id=info.id, external_reference=payment.external_reference
        )

    # ── Resolution ────────────────────────────────────────────────

    def _resolve_payment_id(self, body: dict[str, Any]) -> Optional[str]:
        topic = body.get("topic") or body.get("type") or "payment"
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        resource = body.get("resource")

        if topic == "payment":
            raw_id = data.get("id") or body.get("id")
            if raw_id:
                return str(raw_id)
        elif topic == "merchant_order":
            order_id = None
            if isinstance(resource, str) and "/merchant_orders/" in resource:
                order_id = resource.rstrip("/").split("/")[-1]
            elif resource:
                order_id = str(resource)
            elif body.get("id"):
                order_id = str(body["id"])
            if order_id:
                payment_id = self._gateway.get_merchant_order_payment_id(order_id)
                if payment_id is None:
                    logger.info("Merchant order %s has no payments yet", order_id)
                return payment_id

        if resource or body.get("id"):
            logger.info("Ignoring webhook without a usable payment id (topic=%s)", topic)
            return None
        raise InvalidWebhookError("Webhook body does not identify a payment")

    def _fetch(self, payment_id: str) -> GatewayPayment:
        for attempt in range(1, FETCH_ATTEMPTS + 1):
            info = self._gateway.get_payment(payment_id)
            if info is not None:
                return info
            if attempt < FETCH_ATTEMPTS:
                self._sleep(FETCH_RETRY_DELAY_SECONDS)
        raise PaymentGatewayError(f"payment {payment_id} not found")

    def _payment_from_gateway(self, info: GatewayPayment) -> Payment:
        parsed = parse_external_reference(info.external_reference)
        user = self._find_user(parsed.user_id, info.payer_email)
        service = "MonthlyTraining" if parsed.kind == "monthly_training" else parsed.target
        logger.info("Creating payment record from webhook for reference %s", info.external_reference)
        return Payment(
            user_email=user.email if user else info.payer_email,
            service=service,
            amount=info.amount,
            currency=info.currency or "ARS",
            external_reference=info.external_reference,
            user_id=user.id if user else None,
            metadata={"subscription_type": "trial" if parsed.kind == "trial" else "full"},
        )

    def _find_user(self, user_id: Optional[str], email: str) -> Optional[User]:
        if user_id:
            try:
                user = self._user_repo.get(UUID(user_id))
            except ValueError:
                user = None
            if user is not None:
                return user
        if email:
            return self._user_repo.get_by_email(email)
        return None

    # ── Activation ────────────────────────────────────────────────

    def _activate(self, payment: Payment, info: GatewayPayment) -> None:
        if payment.is_monthly_training:
            self._complete_training(payment, info)
            return

        user = self._find_user(
            str(payment.user_id) if payment.user_id else None, payment.user_email
        )
        if user is None:
            logger.error("No user for approved payment %s (%s)", info.id, payment.external_reference)
            return

        try:
            service = parse_service(payment.service)
        except AccountsDomainError:
            logger.error("Approved payment %s has unknown service %s", info.id, payment.service)
            return

        is_renewal = user.has_service_access(service)
        subscription: Optional[ActiveSubscription]
        if payment.is_trial:
            if user.has_used_trial(service):
                logger.warning("Trial already used by %s for %s; ignoring", user.email, service.value)
                subscription = None
            else:
                subscription = user.add_trial_subscription(
                    service, payment.amount, payment.currency, info.id
                )
        else:
            subscription = user.renew_subscription(
                service, payment.amount, payment.currency, info.id
            )

        if subscription is None:
            return
        self._user_repo.save(user)
        payment.user_id = user.id
        payment.expiry_date = subscription.expiry_date
        logger.info(
            "Subscription activated: user=%s service=%s type=%s expiry=%s",
            user.email,
            service.value,
            subscription.subscription_type.value,
            subscription.expiry_date.isoformat(),
        )
        self._send_emails(payment, user, subscription, is_renewal)

    def _complete_training(self, payment: Payment, info: GatewayPayment) -> None:
        parsed = parse_external_reference(payment.external_reference)
        try:
            training = self._training_repo.get(UUID(parsed.target))
        except ValueError:
            training = None
        if training is None:
            logger.error("Training for payment %s not found (%s)", info.id, parsed.target)
            return
        if not training.complete_payment(parsed.user_id or "", info.id):
            logger.error("User %s is not enrolled in training %s", parsed.user_id, training.id)
            return
        self._training_repo.save(training)
        logger.info("Training payment completed: training=%s user=%s", training.id, parsed.user_id)

    def _send_emails(
        self,
        payment: Payment,
        user: User,
        subscription: ActiveSubscription,
        is_renewal: bool,
    ) -> None:
        if self._admin_email and not payment.metadata.get("admin_notified"):
            subject, html, text = render_admin_new_subscriber(
                user.email,
                user.name,
                subscription.service.value,
                payment.amount,
                payment.currency,
                payment.mercadopago_payment_id or "",
                subscription.expiry_date,
            )
            try:
                self._email_sender.send(self._admin_email, subject, html, text)
                payment.metadata["admin_notified"] = True
                payment.metadata["admin_notified_at"] = datetime.now(timezone.utc).isoformat()
            except Exception:
                logger.exception("Admin notification email failed for payment %s", payment.id)

        if not payment.metadata.get("confirmation_sent"):
            subject, html, text = render_subscription_confirmation(
                user.name or user.email,
                subscription.service.value,
                subscription.start_date,
                subscription.expiry_date,
                is_renewal=is_renewal,
                is_trial=payment.is_trial,
            )
            try:
                self._email_sender.send(user.email, subject, html, text)
                payment.metadata["confirmation_sent"] = True
            except Exception:
                logger.exception("Confirmation email failed for payment %s", payment.id)
