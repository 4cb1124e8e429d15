"""
Domain entities for the accounts bounded context.

A user carries its role and the list of service subscriptions that
grant access to alerts. Subscription rules (trials, renewals that stack
time, expiry downgrades) live on the entity.
No framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from app.domain.accounts.errors import InvalidServiceError, TrialAlreadyUsedError

SUBSCRIPTION_PERIOD = timedelta(days=30)


class UserRole(Enum):
    """Platform role. Admins are never downgraded by billing rules."""

    NORMAL = "normal"
    SUSCRIPTOR = "suscriptor"
    ADMIN = "admin"


class Service(Enum):
    """Subscription services sold by the platform."""

    TRADER_CALL = "TraderCall"
    SMART_MONEY = "SmartMoney"
    CASH_FLOW = "CashFlow"


class SubscriptionType(Enum):
    """Paid subscription or free-ish trial."""

    FULL = "full"
    TRIAL = "trial"


def parse_service(value: str) -> Service:
    """Return the Service for a raw name or raise InvalidServiceError."""
    try:
        return Service(value)
    except ValueError as exc:
        raise InvalidServiceError(value) from exc


@dataclass
class ActiveSubscription:
    """One service subscription period held by a user."""

    service: Service
    start_date: datetime
    expiry_date: datetime
    is_active: bool = True
    payment_id: Optional[str] = None
    amount: float = 0.0
    currency: str = "ARS"
    subscription_type: SubscriptionType = SubscriptionType.FULL

    def is_current(self, now: datetime) -> bool:
        """Active and not yet expired."""
        return self.is_active and self.expiry_date > now


@dataclass
class User:
    """A platform account."""

    email: str
    id: UUID = field(default_factory=uuid4)
    name: str = ""
    role: UserRole = UserRole.NORMAL
    active_subscriptions: list[ActiveSubscription] = field(default_factory=list)
    trials_used: dict[str, bool] = field(default_factory=dict)
    subscription_expiry: Optional[datetime] = None
    last_payment_date: Optional[datetime] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        self.email = self.email.strip().lower()

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    def subscription_for(self, service: Service) -> Optional[ActiveSubscription]:
        for sub in self.active_subscriptions:
            if sub.service is service:
                return sub
        return None

    def has_service_access(self, service: Service, now: Optional[datetime] = None) -> bool:
        """True iff some subscription for the service is active and unexpired."""
        now = now or datetime.now(timezone.utc)
        return any(
            sub.service is service and sub.is_current(now)
            for sub in self.active_subscriptions
        )

    def active_services(self, now: Optional[datetime] = None) -> list[Service]:
        now = now or datetime.now(timezone.utc)
        return [sub.service for sub in self.active_subscriptions if sub.is_current(now)]

    def has_used_trial(self, service: Service) -> bool:
        if self.trials_used.get(service.value):
            return True
        return any(
            sub.service is service and sub.subscription_type is SubscriptionType.TRIAL
            for sub in self.active_subscriptions
        )

    def add_trial_subscription(
        self,
        service: Service,
        amount: float,
        currency: str,
        payment_id: Optional[str],
        now: Optional[datetime] = None,
    ) -> ActiveSubscription:
        """Grant a 30-day trial. Only one trial per service is allowed.

        Raises:
            TrialAlreadyUsedError: If a trial for the service was used before.
        """
        if self.has_used_trial(service):
            raise TrialAlreadyUsedError(service.value)

        now = now or datetime.now(timezone.utc)
        subscription = ActiveSubscription(
            service=service,
            start_date=now,
            expiry_date=now + SUBSCRIPTION_PERIOD,
            payment_id=payment_id,
            amount=amount,
            currency=currency,
            subscription_type=SubscriptionType.TRIAL,
        )
        self._replace_subscription(subscription)
        self.trials_used[service.value] = True
        self._after_payment(subscription, now)
        return subscription

    def renew_subscription(
        self,
        service: Service,
        amount: float,
        currency: str,
        payment_id: Optional[str],
        subscription_type: SubscriptionType = SubscriptionType.FULL,
        now: Optional[datetime] = None,
    ) -> ActiveSubscription:
        """Add one period, stacking on top of a still-running subscription."""
        now = now or datetime.now(timezone.utc)
        existing = self.subscription_for(service)
        if existing is not None and existing.is_current(now):
            start = existing.expiry_date
        else:
            start = now

        subscription = ActiveSubscription(
            service=service,
            start_date=start,
            expiry_date=start + SUBSCRIPTION_PERIOD,
            payment_id=payment_id,
            amount=amount,
            currency=currency,
            subscription_type=subscription_type,
        )
        self._replace_subscription(subscription)
        self._after_payment(subscription, now)
        return subscription

    def expire_subscriptions(self, now: Optional[datetime] = None) -> bool:
        """Deactivate expired entries and downgrade idle subscribers.

        Returns:
            True if anything on the user changed.
        """
        now = now or datetime.now(timezone.utc)
        changed = False
        for sub in self.active_subscriptions:
            if sub.is_active and sub.expiry_date <= now:
                sub.is_active = False
                changed = True

        still_active = any(sub.is_current(now) for sub in self.active_subscriptions)
        if not still_active and self.role is UserRole.SUSCRIPTOR:
            self.role = UserRole.NORMAL
            changed = True
        return changed

    def _replace_subscription(self, subscription: ActiveSubscription) -> None:
        self.active_subscriptions = [
            sub for sub in self.active_subscriptions
            if sub.service is not subscription.service
        ]
        self.active_subscriptions.append(subscription)

    def _after_payment(self, subscription: ActiveSubscription, now: datetime) -> None:
        if self.role is UserRole.NORMAL:
            self.role = UserRole.SUSCRIPTOR
        self.subscription_expiry = subscription.expiry_date
        self.last_payment_date = now
