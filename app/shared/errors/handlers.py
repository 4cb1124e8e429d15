"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.accounts.errors import (
    AccountsDomainError,
    AuthenticationError,
    PermissionDeniedError,
    TrialAlreadyUsedError,
    UserNotFoundError,
)
from app.domain.alerts.errors import (
    AlertNotFoundError,
    AlertsDomainError,
    AlreadyDistributedError,
    DistributionNotFoundError,
)
from app.domain.billing.errors import (
    BillingDomainError,
    PaymentGatewayError,
    SubscriptionAlreadyActiveError,
)
from app.domain.content.errors import (
    ContentDomainError,
    DuplicateTrainingError,
    ReportNotFoundError,
    TrainingLockedError,
    TrainingNotFoundError,
)
from app.domain.notifications.errors import (
    EmailDeliveryError,
    NotificationNotFoundError,
    NotificationsDomainError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_401 = 401
HTTP_403 = 403
HTTP_404 = 404
HTTP_409 = 409
HTTP_500 = 500
HTTP_502 = 502

# Domain errors that are not plain validation failures (400).
STATUS_BY_ERROR: dict[type[Exception], int] = {
    UserNotFoundError: HTTP_404,
    AlertNotFoundError: HTTP_404,
    DistributionNotFoundError: HTTP_404,
    ReportNotFoundError: HTTP_404,
    TrainingNotFoundError: HTTP_404,
    NotificationNotFoundError: HTTP_404,
    TrialAlreadyUsedError: HTTP_409,
    SubscriptionAlreadyActiveError: HTTP_409,
    AlreadyDistributedError: HTTP_409,
    DuplicateTrainingError: HTTP_409,
    TrainingLockedError: HTTP_409,
}

ERROR_LABELS = {
    HTTP_400: "Invalid request",
    HTTP_404: "Not found",
    HTTP_409: "Conflict",
}


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def _domain_response(exc: Exception, message: str) -> JSONResponse:
    status_code = HTTP_400
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            status_code = STATUS_BY_ERROR[error_type]
            break
    logger.warning("%s (%d): %s", type(exc).__name__, status_code, message)
    return _error_response(status_code, ERROR_LABELS[status_code], message)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(
        _request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle missing or invalid credentials."""
        logger.warning("Authentication failed: %s", exc.message)
        return _error_response(HTTP_401, "Unauthorized", exc.message)

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(
        _request: Request, exc: PermissionDeniedError
    ) -> JSONResponse:
        """Handle callers lacking the required role."""
        logger.warning("Permission denied: %s", exc.message)
        return _error_response(HTTP_403, "Forbidden", exc.message)

    @app.exception_handler(PaymentGatewayError)
    async def handle_payment_gateway(
        _request: Request, exc: PaymentGatewayError
    ) -> JSONResponse:
        """Handle payment processor failures."""
        logger.error("Payment gateway error: %s", exc.message)
        return _error_response(HTTP_500, "Payment processor error")

    @app.exception_handler(EmailDeliveryError)
    async def handle_email_delivery(
        _request: Request, exc: EmailDeliveryError
    ) -> JSONResponse:
        """Handle email delivery failures that reach a request."""
        logger.error("Email delivery error: %s", exc.message)
        return _error_response(HTTP_502, "Email delivery failed")

    @app.exception_handler(AccountsDomainError)
    async def handle_accounts_domain(
        _request: Request, exc: AccountsDomainError
    ) -> JSONResponse:
        return _domain_response(exc, exc.message)

    @app.exception_handler(AlertsDomainError)
    async def handle_alerts_domain(
        _request: Request, exc: AlertsDomainError
    ) -> JSONResponse:
        return _domain_response(exc, exc.message)

    @app.exception_handler(BillingDomainError)
    async def handle_billing_domain(
        _request: Request, exc: BillingDomainError
    ) -> JSONResponse:
        return _domain_response(exc, exc.message)

    @app.exception_handler(ContentDomainError)
    async def handle_content_domain(
        _request: Request, exc: ContentDomainError
    ) -> JSONResponse:
        return _domain_response(exc, exc.message)

    @app.exception_handler(NotificationsDomainError)
    async def handle_notifications_domain(
        _request: Request, exc: NotificationsDomainError
    ) -> JSONResponse:
        return _domain_response(exc, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
