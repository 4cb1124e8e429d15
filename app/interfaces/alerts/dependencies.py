"""
Dependency injection for the alerts bounded context.

Wires the SQL repositories and the notification job queue into the
alert and liquidity use cases.
"""

from fastapi import Depends
from sqlalchemy.engine import Engine

from app.application.alerts.check_range_breaks import CheckRangeBreaksUseCase
from app.application.alerts.close_alert import (
    CloseAlertUseCase,
    DiscardAlertUseCase,
    PartialSaleUseCase,
)
from app.application.alerts.create_alert import CreateAlertUseCase
from app.application.alerts.edit_alert import EditAlertUseCase, UpdateAlertPriceUseCase
from app.application.alerts.liquidity import (
    ConfigureLiquidityUseCase,
    DistributeLiquidityUseCase,
    GetLiquidityUseCase,
    GetLiquiditySummaryUseCase,
    RemoveDistributionUseCase,
    SellLiquiditySharesUseCase,
    UpdateLiquidityPricesUseCase,
)
from app.application.alerts.list_alerts import ListAlertsUseCase
from app.application.alerts.market_close import MarketCloseUseCase
from app.application.notifications.queue import NotificationJobQueue
from app.core.config import settings
from app.domain.notifications.ports import EmailSender, TelegramPublisher
from app.infrastructure.accounts.user_repository import UserRepositoryAdapter
from app.infrastructure.alerts.alert_repository import AlertRepositoryAdapter
from app.infrastructure.alerts.liquidity_repository import LiquidityRepositoryAdapter
from app.infrastructure.notifications.delivery_log_repository import (
    DeliveryLogRepositoryAdapter,
)
from app.interfaces.dependencies import (
    get_db_engine,
    get_email_sender,
    get_notification_queue,
    get_telegram_publisher,
)


def get_create_alert_use_case(
    engine: Engine = Depends(get_db_engine),
    queue: NotificationJobQueue = Depends(get_notification_queue),
) -> CreateAlertUseCase:
    """Build CreateAlertUseCase with its infrastructure dependencies."""
    return CreateAlertUseCase(
        alert_repo=AlertRepositoryAdapter(engine),
        liquidity_repo=LiquidityRepositoryAdapter(engine),
        notifier=queue,
    )


def get_list_alerts_use_case(engine: Engine = Depends(get_db_engine)) -> ListAlertsUseCase:
    return ListAlertsUseCase(alert_repo=AlertRepositoryAdapter(engine))


def get_edit_alert_use_case(engine: Engine = Depends(get_db_engine)) -> EditAlertUseCase:
    return EditAlertUseCase(alert_repo=AlertRepositoryAdapter(engine))


def get_update_alert_price_use_case(
    engine: Engine = Depends(get_db_engine),
) -> UpdateAlertPriceUseCase:
    return UpdateAlertPriceUseCase(alert_repo=AlertRepositoryAdapter(engine))


def get_close_alert_use_case(
    engine: Engine = Depends(get_db_engine),
    queue: NotificationJobQueue = Depends(get_notification_queue),
) -> CloseAlertUseCase:
    """Build CloseAlertUseCase with its infrastructure dependencies."""
    return CloseAlertUseCase(
        alert_repo=AlertRepositoryAdapter(engine),
        liquidity_repo=LiquidityRepositoryAdapter(engine),
        notifier=queue,
    )


def get_partial_sale_use_case(
    engine: Engine = Depends(get_db_engine),
    queue: NotificationJobQueue = Depends(get_notification_queue),
) -> PartialSaleUseCase:
    """Build PartialSaleUseCase with its infrastructure dependencies."""
    return PartialSaleUseCase(
        alert_repo=AlertRepositoryAdapter(engine),
        liquidity_repo=LiquidityRepositoryAdapter(engine),
        notifier=queue,
    )


def get_discard_alert_use_case(engine: Engine = Depends(get_db_engine)) -> DiscardAlertUseCase:
    return DiscardAlertUseCase(alert_repo=AlertRepositoryAdapter(engine))


def get_check_range_breaks_use_case(
    engine: Engine = Depends(get_db_engine),
) -> CheckRangeBreaksUseCase:
    return CheckRangeBreaksUseCase(alert_repo=AlertRepositoryAdapter(engine))


# ── Liquidity ─────────────────────────────────────────────────────


def get_liquidity_use_case(engine: Engine = Depends(get_db_engine)) -> GetLiquidityUseCase:
    return GetLiquidityUseCase(liquidity_repo=LiquidityRepositoryAdapter(engine))


def get_configure_liquidity_use_case(
    engine: Engine = Depends(get_db_engine),
) -> ConfigureLiquidityUseCase:
    return ConfigureLiquidityUseCase(liquidity_repo=LiquidityRepositoryAdapter(engine))


def get_distribute_liquidity_use_case(
    engine: Engine = Depends(get_db_engine),
) -> DistributeLiquidityUseCase:
    return DistributeLiquidityUseCase(
        alert_repo=AlertRepositoryAdapter(engine),
        liquidity_repo=LiquidityRepositoryAdapter(engine),
    )


def get_sell_shares_use_case(
    engine: Engine = Depends(get_db_engine),
) -> SellLiquiditySharesUseCase:
    return SellLiquiditySharesUseCase(liquidity_repo=LiquidityRepositoryAdapter(engine))


def get_remove_distribution_use_case(
    engine: Engine = Depends(get_db_engine),
) -> RemoveDistributionUseCase:
    return RemoveDistributionUseCase(liquidity_repo=LiquidityRepositoryAdapter(engine))


def get_update_liquidity_prices_use_case(
    engine: Engine = Depends(get_db_engine),
) -> UpdateLiquidityPricesUseCase:
    return UpdateLiquidityPricesUseCase(
        alert_repo=AlertRepositoryAdapter(engine),
        liquidity_repo=LiquidityRepositoryAdapter(engine),
    )


def get_liquidity_summary_use_case(
    engine: Engine = Depends(get_db_engine),
) -> GetLiquiditySummaryUseCase:
    return GetLiquiditySummaryUseCase(liquidity_repo=LiquidityRepositoryAdapter(engine))


def get_market_close_use_case(
    engine: Engine = Depends(get_db_engine),
    email_sender: EmailSender = Depends(get_email_sender),
    telegram: TelegramPublisher = Depends(get_telegram_publisher),
    queue: NotificationJobQueue = Depends(get_notification_queue),
) -> MarketCloseUseCase:
    """Build MarketCloseUseCase with its infrastructure dependencies."""
    return MarketCloseUseCase(
        alert_repo=AlertRepositoryAdapter(engine),
        liquidity_repo=LiquidityRepositoryAdapter(engine),
        user_repo=UserRepositoryAdapter(engine),
        email_sender=email_sender,
        telegram=telegram,
        telegram_channels=settings.telegram_channels(),
        notifier=queue,
        delivery_log=DeliveryLogRepositoryAdapter(engine),
        market_timezone=settings.scheduler_timezone,
        holidays=settings.market_holidays,
    )
