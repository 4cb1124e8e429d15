"""
Dependency injection for the billing bounded context.
"""

from fastapi import Depends
from sqlalchemy.engine import Engine

from app.application.billing.checkout import CreateCheckoutUseCase
from app.application.billing.webhook import ProcessPaymentWebhookUseCase
from app.core.config import settings
from app.domain.billing.ports import PaymentGateway
from app.domain.notifications.ports import EmailSender
from app.infrastructure.accounts.user_repository import UserRepositoryAdapter
from app.infrastructure.billing.payment_repository import PaymentRepositoryAdapter
from app.infrastructure.content.training_repository import TrainingRepositoryAdapter
from app.interfaces.dependencies import get_db_engine, get_email_sender, get_payment_gateway


def get_checkout_use_case(
    engine: Engine = Depends(get_db_engine),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> CreateCheckoutUseCase:
    """Build CreateCheckoutUseCase with its infrastructure dependencies."""
    return CreateCheckoutUseCase(
        payment_repo=PaymentRepositoryAdapter(engine),
        gateway=gateway,
        training_repo=TrainingRepositoryAdapter(engine),
        subscription_prices=settings.subscription_prices(),
        base_url=settings.base_url,
    )


def get_webhook_use_case(
    engine: Engine = Depends(get_db_engine),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    email_sender: EmailSender = Depends(get_email_sender),
) -> ProcessPaymentWebhookUseCase:
    """Build ProcessPaymentWebhookUseCase with its infrastructure dependencies."""
    return ProcessPaymentWebhookUseCase(
        payment_repo=PaymentRepositoryAdapter(engine),
        user_repo=UserRepositoryAdapter(engine),
        training_repo=TrainingRepositoryAdapter(engine),
        gateway=gateway,
        email_sender=email_sender,
        admin_email=settings.admin_email,
    )
