"""
Pydantic schemas for the accounts API.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class SubscriptionItem(BaseModel):
    """One subscription entry of the caller."""

    service: str
    subscription_type: str
    start_date: datetime
    expiry_date: datetime
    is_active: bool
    is_current: bool
    days_remaining: int
    amount: float
    currency: str


class UserResponse(BaseModel):
    """The authenticated user's profile."""

    id: UUID
    email: str
    name: str
    role: str
    active_services: list[str]
    trials_used: dict[str, bool]
    subscription_expiry: datetime | None = None
    last_payment_date: datetime | None = None
    created_at: datetime


class SubscriptionsResponse(BaseModel):
    subscriptions: list[SubscriptionItem]


class TrialStatusResponse(BaseModel):
    """Trial eligibility for one service.

    Attributes:
        can_start_trial: False once a trial was used or while access is active.
    """

    service: str
    has_used_trial: bool
    has_access: bool
    can_start_trial: bool
    trial_expiry: datetime | None = None


class ExpireSubscriptionsResponse(BaseModel):
    checked: int
    updated: int
    downgraded: int
    errors: int


class ProvisionUserRequest(BaseModel):
    """Request schema for issuing an API token.

    Attributes:
        email: Existing or new user.
        role: normal, suscriptor or admin. Omit to keep the current role.
    """

    email: str = Field(..., min_length=3, max_length=254)
    name: str = Field(default="", max_length=100)
    role: str | None = None


class ProvisionedUserResponse(BaseModel):
    """The user and its new API token. The token is not retrievable later."""

    user: UserResponse
    api_token: str
    created: bool
