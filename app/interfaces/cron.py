"""
Cron router.

Endpoints hit by an external scheduler. Every route requires the cron
secret and accepts GET or POST.
"""

from fastapi import APIRouter, Depends, Query

from app.application.accounts.subscriptions import ExpireSubscriptionsUseCase
from app.application.alerts.check_range_breaks import CheckRangeBreaksUseCase
from app.application.alerts.market_close import MarketCloseUseCase
from app.application.notifications.process_jobs import ProcessNotificationJobsUseCase
from app.application.notifications.reminders import (
    SubscriptionRemindersUseCase,
    TrainingRemindersUseCase,
)
from app.interfaces.accounts.dependencies import get_expire_subscriptions_use_case
from app.interfaces.accounts.schemas import ExpireSubscriptionsResponse
from app.interfaces.alerts.dependencies import (
    get_check_range_breaks_use_case,
    get_market_close_use_case,
)
from app.interfaces.alerts.schemas import MarketCloseResponse, RangeBreakResponse
from app.interfaces.dependencies import verify_cron_secret
from app.interfaces.notifications.dependencies import (
    get_process_jobs_use_case,
    get_subscription_reminders_use_case,
    get_training_reminders_use_case,
)
from app.interfaces.notifications.schemas import (
    ProcessJobsResponse,
    SubscriptionRemindersResponse,
    TrainingRemindersResponse,
)
from app.interfaces.schemas import ErrorResponse

router = APIRouter(
    prefix="/cron",
    tags=["cron"],
    dependencies=[Depends(verify_cron_secret)],
    responses={401: {"model": ErrorResponse}},
)


@router.api_route(
    "/send-notification-jobs",
    methods=["GET", "POST"],
    response_model=ProcessJobsResponse,
    summary="Deliver queued notifications",
)
def send_notification_jobs(
    limit: int = Query(default=10, ge=1, le=50),
    use_case: ProcessNotificationJobsUseCase = Depends(get_process_jobs_use_case),
) -> ProcessJobsResponse:
    """Deliver due notification jobs."""
    return ProcessJobsResponse(**use_case.execute(limit).__dict__)


@router.api_route(
    "/expire-subscriptions",
    methods=["GET", "POST"],
    response_model=ExpireSubscriptionsResponse,
    summary="Expire subscriptions",
    description="Deactivate lapsed subscription entries and downgrade users left without access.",
)
def expire_subscriptions(
    use_case: ExpireSubscriptionsUseCase = Depends(get_expire_subscriptions_use_case),
) -> ExpireSubscriptionsResponse:
    return ExpireSubscriptionsResponse(**use_case.execute().__dict__)


@router.api_route(
    "/check-range-breaks",
    methods=["GET", "POST"],
    response_model=RangeBreakResponse,
    summary="Check range breaks",
)
def check_range_breaks(
    use_case: CheckRangeBreaksUseCase = Depends(get_check_range_breaks_use_case),
) -> RangeBreakResponse:
    return RangeBreakResponse(**use_case.execute().__dict__)


@router.api_route(
    "/market-close",
    methods=["GET", "POST"],
    response_model=MarketCloseResponse,
    summary="Fix final prices at market close",
    description=(
        "On business days, settle ACTIVE alerts whose closing time has passed. "
        "Range alerts that closed outside their range are dismissed."
    ),
)
def market_close(
    use_case: MarketCloseUseCase = Depends(get_market_close_use_case),
) -> MarketCloseResponse:
    """Settle alerts whose closing time has passed."""
    return MarketCloseResponse(**use_case.execute().__dict__)


@router.api_route(
    "/subscription-notifications",
    methods=["GET", "POST"],
    response_model=SubscriptionRemindersResponse,
    summary="Send subscription expiry reminders",
)
def subscription_notifications(
    use_case: SubscriptionRemindersUseCase = Depends(get_subscription_reminders_use_case),
) -> SubscriptionRemindersResponse:
    """Email expiry warnings and expired notices."""
    return SubscriptionRemindersResponse(**use_case.execute().__dict__)


@router.api_route(
    "/training-reminders",
    methods=["GET", "POST"],
    response_model=TrainingRemindersResponse,
    summary="Remind students of upcoming classes",
)
def training_reminders(
    use_case: TrainingRemindersUseCase = Depends(get_training_reminders_use_case),
) -> TrainingRemindersResponse:
    """Email paid students about classes starting soon."""
    return TrainingRemindersResponse(**use_case.execute().__dict__)
