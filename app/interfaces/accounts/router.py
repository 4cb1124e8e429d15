"""
FastAPI router for the accounts bounded context.

All routes delegate to use cases. No business logic here.
"""

from fastapi import APIRouter, Depends, Query

from app.application.accounts.dtos import ProvisionUserCommand
from app.application.accounts.provision import ProvisionUserUseCase
from app.application.accounts.subscriptions import (
    GetSubscriptionsUseCase,
    GetTrialStatusUseCase,
)
from app.domain.accounts.entities import User
from app.interfaces.accounts.dependencies import (
    get_provision_user_use_case,
    get_subscriptions_use_case,
    get_trial_status_use_case,
)
from app.interfaces.accounts.schemas import (
    ProvisionedUserResponse,
    ProvisionUserRequest,
    SubscriptionItem,
    SubscriptionsResponse,
    TrialStatusResponse,
    UserResponse,
)
from app.interfaces.dependencies import get_current_user, require_admin
from app.interfaces.schemas import ErrorResponse

router = APIRouter(tags=["accounts"])


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role.value,
        active_services=[s.value for s in user.active_services()],
        trials_used=user.trials_used,
        subscription_expiry=user.subscription_expiry,
        last_payment_date=user.last_payment_date,
        created_at=user.created_at,
    )


@router.get(
    "/users/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Current user",
    description="Return the profile of the authenticated caller.",
)
def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    """Return the authenticated user."""
    return to_user_response(user)


@router.get(
    "/users/me/subscriptions",
    response_model=SubscriptionsResponse,
    responses={401: {"model": ErrorResponse}},
    summary="My subscriptions",
    description="List every subscription entry of the caller with its remaining days.",
)
def get_my_subscriptions(
    user: User = Depends(get_current_user),
    use_case: GetSubscriptionsUseCase = Depends(get_subscriptions_use_case),
) -> SubscriptionsResponse:
    views = use_case.execute(user)
    return SubscriptionsResponse(
        subscriptions=[SubscriptionItem(**view.__dict__) for view in views]
    )


@router.get(
    "/users/me/trial-status",
    response_model=TrialStatusResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Trial eligibility",
    description="Whether the caller can still start a trial for a service.",
)
def get_trial_status(
    service: str = Query(..., description="TraderCall, SmartMoney or CashFlow"),
    user: User = Depends(get_current_user),
    use_case: GetTrialStatusUseCase = Depends(get_trial_status_use_case),
) -> TrialStatusResponse:
    """Report whether the caller may start a trial for a service."""
    status = use_case.execute(user, service)
    return TrialStatusResponse(
        service=status.service,
        has_used_trial=status.has_used_trial,
        has_access=status.has_access,
        can_start_trial=status.can_start_trial,
        trial_expiry=status.trial_expiry,
    )


@router.post(
    "/admin/users",
    response_model=ProvisionedUserResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
    summary="Issue an API token",
    description=(
        "Create the user if the email is new and issue a fresh API token. "
        "The previous token of that user stops working."
    ),
)
def provision_user(
    body: ProvisionUserRequest,
    admin: User = Depends(require_admin),
    use_case: ProvisionUserUseCase = Depends(get_provision_user_use_case),
) -> ProvisionedUserResponse:
    """Create or update a user and issue a new API token."""
    result = use_case.execute(
        ProvisionUserCommand(email=body.email, name=body.name, role=body.role)
    )
    return ProvisionedUserResponse(
        user=to_user_response(result.user), api_token=result.api_token, created=result.created
    )
