"""
Data Transfer Objects for the accounts application layer.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.domain.accounts.entities import User


@dataclass(frozen=True)
class SubscriptionView:
    """One subscription entry as shown to its owner.

    Attributes:
        service: Service name.
        subscription_type: `full` or `trial`.
        start_date: Start of the current period.
        expiry_date: End of the current period.
        is_active: Active flag stored on the entry.
        is_current: Active and not yet expired.
        days_remaining: Whole days until expiry (0 when expired).
    """

    service: str
    subscription_type: str
    start_date: datetime
    expiry_date: datetime
    is_active: bool
    is_current: bool
    days_remaining: int
    amount: float
    currency: str


@dataclass(frozen=True)
class TrialStatus:
    """Trial eligibility of a user for one service."""

    service: str
    has_used_trial: bool
    has_access: bool
    can_start_trial: bool
    trial_expiry: Optional[datetime] = None


@dataclass(frozen=True)
class ExpireSubscriptionsResult:
    """Counts returned by the expiry sweep."""

    checked: int
    updated: int
    downgraded: int
    errors: int


@dataclass(frozen=True)
class ProvisionUserCommand:
    """Create or look up a user by email and issue a fresh API token.

    Attributes:
        role: Role to set; None keeps the role of an existing user
            (`normal` for a new one).
    """

    email: str
    name: str = ""
    role: Optional[str] = None


@dataclass(frozen=True)
class ProvisionedUser:
    user: User
    api_token: str
    created: bool
