"""
Dependency injection for the accounts bounded context.
"""

from fastapi import Depends
from sqlalchemy.engine import Engine

from app.application.accounts.provision import ProvisionUserUseCase
from app.application.accounts.subscriptions import (
    ExpireSubscriptionsUseCase,
    GetSubscriptionsUseCase,
    GetTrialStatusUseCase,
)
from app.infrastructure.accounts.user_repository import UserRepositoryAdapter
from app.interfaces.dependencies import get_db_engine


def get_subscriptions_use_case() -> GetSubscriptionsUseCase:
    return GetSubscriptionsUseCase()


def get_trial_status_use_case() -> GetTrialStatusUseCase:
    return GetTrialStatusUseCase()


def get_expire_subscriptions_use_case(
    engine: Engine = Depends(get_db_engine),
) -> ExpireSubscriptionsUseCase:
    """Build ExpireSubscriptionsUseCase with its infrastructure dependencies."""
    return ExpireSubscriptionsUseCase(user_repo=UserRepositoryAdapter(engine))


def get_provision_user_use_case(
    engine: Engine = Depends(get_db_engine),
) -> ProvisionUserUseCase:
    return ProvisionUserUseCase(user_repo=UserRepositoryAdapter(engine))
