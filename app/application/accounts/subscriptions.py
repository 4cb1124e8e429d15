"""
Use cases: Subscription views and the expiry sweep.

GetSubscriptionsUseCase lists a user's subscriptions, GetTrialStatusUseCase
reports trial eligibility for one service and ExpireSubscriptionsUseCase
deactivates lapsed subscriptions across all users (cron).
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from app.application.accounts.dtos import (
    ExpireSubscriptionsResult,
    SubscriptionView,
    TrialStatus,
)
from app.domain.accounts.entities import (
    SubscriptionType,
    User,
    UserRole,
    parse_service,
)
from app.domain.accounts.ports import UserRepository

logger = logging.getLogger(__name__)


class GetSubscriptionsUseCase:
    """Describe every subscription entry of a user."""

    def execute(self, user: User, now: Optional[datetime] = None) -> list[SubscriptionView]:
        now = now or datetime.now(timezone.utc)
        views = []
        for sub in user.active_subscriptions:
            seconds_left = (sub.expiry_date - now).total_seconds()
            views.append(
                SubscriptionView(
                    service=sub.service.value,
                    subscription_type=sub.subscription_type.value,
                    start_date=sub.start_date,
                    expiry_date=sub.expiry_date,
                    is_active=sub.is_active,
                    is_current=sub.is_current(now),
                    days_remaining=max(0, math.ceil(seconds_left / 86400)),
                    amount=sub.amount,
                    currency=sub.currency,
                )
            )
        return views


class GetTrialStatusUseCase:
    """Report whether a user may still start a trial for a service.

    Raises:
        InvalidServiceError: For an unknown service name.
    """

    def execute(self, user: User, service_name: str, now: Optional[datetime] = None) -> TrialStatus:
        service = parse_service(service_name)
        now = now or datetime.now(timezone.utc)
        used = user.has_used_trial(service)
        access = user.has_service_access(service, now)

        trial_expiry = None
        sub = user.subscription_for(service)
        if sub is not None and sub.subscription_type is SubscriptionType.TRIAL:
            trial_expiry = sub.expiry_date

        return TrialStatus(
            service=service.value,
            has_used_trial=used,
            has_access=access,
            can_start_trial=not used and not access,
            trial_expiry=trial_expiry,
        )


class ExpireSubscriptionsUseCase:
    """Deactivate expired subscriptions and downgrade idle subscribers."""

    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def execute(self, now: Optional[datetime] = None) -> ExpireSubscriptionsResult:
        """Run the sweep at `now`.

        Returns:
            ExpireSubscriptionsResult. A user that fails to save is counted
            in `errors` and the sweep moves on.
        """
        now = now or datetime.now(timezone.utc)
        users = self._user_repo.list_with_active_subscriptions()
        updated = 0
        downgraded = 0
        errors = 0

        for user in users:
            try:
                was_subscriber = user.role is UserRole.SUSCRIPTOR
                if not user.expire_subscriptions(now):
                    continue
                self._user_repo.save(user)
                updated += 1
                if was_subscriber and user.role is UserRole.NORMAL:
                    downgraded += 1
            except Exception:
                errors += 1
                logger.exception("Failed to expire subscriptions for user %s", user.id)

        logger.info(
            "Subscription expiry sweep: checked=%d updated=%d downgraded=%d errors=%d",
            len(users),
            updated,
            downgraded,
            errors,
        )
        return ExpireSubscriptionsResult(
            checked=len(users), updated=updated, downgraded=downgraded, errors=errors
        )
