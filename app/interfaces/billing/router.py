"""
FastAPI router for the billing bounded context.

Checkout creation for signed-in users and the public payment webhook.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from app.application.billing.checkout import CreateCheckoutUseCase
from app.application.billing.dtos import CheckoutCommand
from app.application.billing.webhook import ProcessPaymentWebhookUseCase
from app.core.config import settings
from app.domain.accounts.entities import User
from app.interfaces.billing.dependencies import get_checkout_use_case, get_webhook_use_case
from app.interfaces.billing.schemas import CheckoutRequest, CheckoutResponse, WebhookResponse
from app.interfaces.dependencies import get_current_user
from app.interfaces.schemas import ErrorResponse
from app.shared.security.rate_limiting import limiter

router = APIRouter(tags=["billing"])


def webhook_payload(request: Request, body: dict[str, Any]) -> dict[str, Any]:
    """Merge the notification query string into the JSON body.

    The processor sends `?type=payment&data.id=123` (or `?topic=...&id=...`)
    with or without a body; body fields win over query fields.
    """
    payload: dict[str, Any] = {}
    for key, value in request.query_params.items():
        if key == "data.id":
            payload["data"] = {"id": value}
        else:
            payload[key] = value
    payload.update(body)
    return payload


@router.post(
    "/payments/checkout",
    response_model=CheckoutResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Start a checkout",
    description=(
        "Open a hosted checkout for a subscription, a trial or a monthly "
        "training and record the pending payment."
    ),
)
def create_checkout(
    body: CheckoutRequest,
    user: User = Depends(get_current_user),
    use_case: CreateCheckoutUseCase = Depends(get_checkout_use_case),
) -> CheckoutResponse:
    """Open a hosted checkout for a subscription, trial or training."""
    result = use_case.execute(
        user,
        CheckoutCommand(
            checkout_type=body.checkout_type,
            service=body.service,
            training_id=body.training_id,
        ),
    )
    return CheckoutResponse(**result.__dict__)


@router.post(
    "/webhooks/mercadopago",
    response_model=WebhookResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Payment webhook",
    description=(
        "Payment notification from the processor. Approved payments activate "
        "the purchased subscription, trial or training enrollment."
    ),
)
@limiter.limit(settings.rate_limit_heavy)
def mercadopago_webhook(
    request: Request,
    body: dict[str, Any] = Body(default={}),
    use_case: ProcessPaymentWebhookUseCase = Depends(get_webhook_use_case),
) -> WebhookResponse:
    """Reconcile a payment notification from the processor."""
    result = use_case.execute(webhook_payload(request, body))
    return WebhookResponse(
        status=result.status,
        payment_id=result.payment_id,
        external_reference=result.external_reference,
    )
