"""
FastAPI router for the alerts bounded context.

Alert publishing and lifecycle routes plus the admin liquidity pools.
All routes delegate to use cases. No business logic here.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.application.alerts.check_range_breaks import CheckRangeBreaksUseCase
from app.application.alerts.close_alert import (
    CloseAlertUseCase,
    DiscardAlertUseCase,
    PartialSaleUseCase,
)
from app.application.alerts.create_alert import CreateAlertUseCase
from app.application.alerts.dtos import (
    CloseAlertCommand,
    ConfigureLiquidityCommand,
    CreateAlertCommand,
    DiscardAlertCommand,
    DistributeLiquidityCommand,
    EditAlertCommand,
    ListAlertsQuery,
    PartialSaleCommand,
    SellSharesCommand,
    UpdateAlertPriceCommand,
)
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
from app.core.config import settings
from app.domain.accounts.entities import User
from app.domain.alerts.entities import Alert, Liquidity
from app.interfaces.alerts.dependencies import (
    get_check_range_breaks_use_case,
    get_close_alert_use_case,
    get_configure_liquidity_use_case,
    get_create_alert_use_case,
    get_discard_alert_use_case,
    get_distribute_liquidity_use_case,
    get_edit_alert_use_case,
    get_list_alerts_use_case,
    get_liquidity_summary_use_case,
    get_liquidity_use_case,
    get_partial_sale_use_case,
    get_remove_distribution_use_case,
    get_sell_shares_use_case,
    get_update_alert_price_use_case,
    get_update_liquidity_prices_use_case,
)
from app.interfaces.alerts.schemas import (
    AlertItem,
    AlertListResponse,
    CloseAlertRequest,
    CloseAlertResponse,
    ConfigureLiquidityRequest,
    CreateAlertRequest,
    CreateAlertResponse,
    DiscardAlertRequest,
    DistributeLiquidityRequest,
    DistributionItem,
    EditAlertRequest,
    LiquidityResponse,
    LiquiditySummaryResponse,
    PartialSaleItem,
    PartialSaleRequest,
    PartialSaleResponse,
    POOL_DESCRIPTION,
    PriceRangeItem,
    RangeBreakResponse,
    SellSharesRequest,
    SellSharesResponse,
    UpdatePriceRequest,
    UpdatePricesResponse,
)
from app.interfaces.dependencies import get_current_user, require_admin
from app.interfaces.schemas import ErrorResponse
from app.shared.security.rate_limiting import limiter

router = APIRouter(tags=["alerts"])

ADMIN_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}
ADMIN_ITEM_ERRORS = {**ADMIN_ERRORS, 404: {"model": ErrorResponse}}


def to_alert_item(alert: Alert) -> AlertItem:
    """Map a domain alert onto its API representation."""
    price_range = None
    if alert.entry_price_range is not None:
        price_range = PriceRangeItem(
            min=alert.entry_price_range.min, max=alert.entry_price_range.max
        )
    return AlertItem(
        id=alert.id,
        symbol=alert.symbol,
        action=alert.action.value,
        tipo=alert.tipo.value,
        tipo_alerta=alert.tipo_alerta.value,
        status=alert.status.value,
        entry_price=alert.entry_price,
        entry_price_range=price_range,
        entry_display=alert.entry_display(),
        current_price=alert.current_price,
        stop_loss=alert.stop_loss,
        take_profit=alert.take_profit,
        profit=alert.profit,
        analysis=alert.analysis,
        date=alert.date,
        horario_cierre=alert.horario_cierre,
        exit_price=alert.exit_price,
        exit_date=alert.exit_date,
        exit_reason=alert.exit_reason.value if alert.exit_reason else None,
        final_price=alert.final_price,
        available_for_purchase=alert.available_for_purchase,
        participation_percentage=alert.participation_percentage,
        partial_sales=[PartialSaleItem(**sale.__dict__) for sale in alert.partial_sales],
        realized_profit=alert.realized_profit,
        unrealized_profit=alert.unrealized_profit,
        discard_reason=alert.discard_reason,
        dismissal_reason=alert.dismissal_reason,
        created_at=alert.created_at,
    )


def to_liquidity_response(liquidity: Liquidity) -> LiquidityResponse:
    """Map a Liquidity entity to its response schema."""
    return LiquidityResponse(
        id=liquidity.id,
        pool=liquidity.pool.value,
        initial_liquidity=liquidity.initial_liquidity,
        total_liquidity=liquidity.total_liquidity,
        available_liquidity=liquidity.available_liquidity,
        distributed_liquidity=liquidity.distributed_liquidity,
        total_profit_loss=liquidity.total_profit_loss,
        total_profit_loss_percentage=liquidity.total_profit_loss_percentage,
        distributions=[DistributionItem(**d.__dict__) for d in liquidity.distributions],
        updated_at=liquidity.updated_at,
    )


# ══════════════════════════════════════════════════════════════════════
# Alerts
# ══════════════════════════════════════════════════════════════════════


@router.post(
    "/alerts",
    response_model=CreateAlertResponse,
    status_code=201,
    responses=ADMIN_ERRORS,
    summary="Publish an alert",
    description=(
        "Create a price or range alert, optionally allocate liquidity to it "
        "and queue the announcement to subscribers."
    ),
)
@limiter.limit(settings.rate_limit_heavy)
def create_alert(
    request: Request,
    body: CreateAlertRequest,
    admin: User = Depends(require_admin),
    use_case: CreateAlertUseCase = Depends(get_create_alert_use_case),
) -> CreateAlertResponse:
    """Publish an alert and optionally allocate liquidity to it."""
    result = use_case.execute(
        CreateAlertCommand(admin_id=str(admin.id), **body.model_dump())
    )
    return CreateAlertResponse(
        alert=to_alert_item(result.alert),
        liquidity_allocated=result.liquidity_allocated,
        notification_queued=result.notification_queued,
    )


@router.get(
    "/alerts",
    response_model=AlertListResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="List alerts",
    description="Paginated alert listing, newest first.",
)
def list_alerts(
    tipo: str | None = Query(default=None, description="TraderCall or SmartMoney"),
    status: str = Query(default="ALL", description="Alert status or ALL"),
    limit: int = Query(default=50, ge=1, le=200),
    page: int = Query(default=1, ge=1),
    user: User = Depends(get_current_user),
    use_case: ListAlertsUseCase = Depends(get_list_alerts_use_case),
) -> AlertListResponse:
    """Page through alerts, filtered by service and status."""
    result = use_case.execute(
        ListAlertsQuery(tipo=tipo, status=status, limit=limit, page=page)
    )
    return AlertListResponse(
        alerts=[to_alert_item(a) for a in result.alerts],
        total=result.total,
        page=result.page,
        limit=result.limit,
    )


@router.put(
    "/alerts/{alert_id}",
    response_model=AlertItem,
    responses=ADMIN_ITEM_ERRORS,
    summary="Edit an alert",
    description="Edit the fields of an active alert. Changes are audited.",
)
def edit_alert(
    alert_id: UUID,
    body: EditAlertRequest,
    admin: User = Depends(require_admin),
    use_case: EditAlertUseCase = Depends(get_edit_alert_use_case),
) -> AlertItem:
    """Edit the mutable fields of an active alert."""
    alert = use_case.execute(
        EditAlertCommand(alert_id=alert_id, editor=admin.email, **body.model_dump())
    )
    return to_alert_item(alert)


@router.post(
    "/alerts/{alert_id}/price",
    response_model=AlertItem,
    responses=ADMIN_ITEM_ERRORS,
    summary="Update current price",
)
def update_alert_price(
    alert_id: UUID,
    body: UpdatePriceRequest,
    admin: User = Depends(require_admin),
    use_case: UpdateAlertPriceUseCase = Depends(get_update_alert_price_use_case),
) -> AlertItem:
    alert = use_case.execute(
        UpdateAlertPriceCommand(
            alert_id=alert_id, editor=admin.email, price=body.price, reason=body.reason
        )
    )
    return to_alert_item(alert)


@router.post(
    "/alerts/{alert_id}/close",
    response_model=CloseAlertResponse,
    responses=ADMIN_ITEM_ERRORS,
    summary="Close an alert",
    description="Close at the given price, settle its liquidity and announce the exit.",
)
def close_alert(
    alert_id: UUID,
    body: CloseAlertRequest,
    admin: User = Depends(require_admin),
    use_case: CloseAlertUseCase = Depends(get_close_alert_use_case),
) -> CloseAlertResponse:
    """Close an alert and settle its liquidity distribution."""
    result = use_case.execute(
        CloseAlertCommand(alert_id=alert_id, admin_id=str(admin.id), **body.model_dump())
    )
    return CloseAlertResponse(
        alert=to_alert_item(result.alert),
        profit=result.profit,
        liquidity_released=result.liquidity_released,
        realized_profit=result.realized_profit,
    )


@router.post(
    "/alerts/{alert_id}/partial-sale",
    response_model=PartialSaleResponse,
    responses=ADMIN_ITEM_ERRORS,
    summary="Partial sale",
    description="Sell 25% or 50% of the position. Selling the rest closes the alert.",
)
def partial_sale(
    alert_id: UUID,
    body: PartialSaleRequest,
    admin: User = Depends(require_admin),
    use_case: PartialSaleUseCase = Depends(get_partial_sale_use_case),
) -> PartialSaleResponse:
    """Sell 25% or 50% of an alert's position."""
    result = use_case.execute(
        PartialSaleCommand(alert_id=alert_id, admin_id=str(admin.id), **body.model_dump())
    )
    return PartialSaleResponse(
        alert=to_alert_item(result.alert),
        shares_sold=result.shares_sold,
        shares_remaining=result.shares_remaining,
        liquidity_released=result.liquidity_released,
        realized_profit=result.realized_profit,
        new_allocated_amount=result.new_allocated_amount,
    )


@router.post(
    "/alerts/{alert_id}/discard",
    response_model=AlertItem,
    responses=ADMIN_ITEM_ERRORS,
    summary="Discard an alert",
)
def discard_alert(
    alert_id: UUID,
    body: DiscardAlertRequest,
    admin: User = Depends(require_admin),
    use_case: DiscardAlertUseCase = Depends(get_discard_alert_use_case),
) -> AlertItem:
    """Discard an active alert without settling liquidity."""
    alert = use_case.execute(
        DiscardAlertCommand(alert_id=alert_id, reason=body.reason, price=body.price)
    )
    return to_alert_item(alert)


@router.post(
    "/alerts/check-range-breaks",
    response_model=RangeBreakResponse,
    responses=ADMIN_ERRORS,
    summary="Check range breaks",
    description="Dismiss every active range alert whose price left its entry range.",
)
def check_range_breaks(
    admin: User = Depends(require_admin),
    use_case: CheckRangeBreaksUseCase = Depends(get_check_range_breaks_use_case),
) -> RangeBreakResponse:
    report = use_case.execute()
    return RangeBreakResponse(**report.__dict__)


# ══════════════════════════════════════════════════════════════════════
# Liquidity
# ══════════════════════════════════════════════════════════════════════


@router.get(
    "/liquidity",
    response_model=LiquidityResponse,
    responses=ADMIN_ITEM_ERRORS,
    summary="Get liquidity pool",
)
def get_liquidity(
    pool: str = Query(default="TraderCall", description=POOL_DESCRIPTION),
    admin: User = Depends(require_admin),
    use_case: GetLiquidityUseCase = Depends(get_liquidity_use_case),
) -> LiquidityResponse:
    return to_liquidity_response(use_case.execute(str(admin.id), pool))


@router.post(
    "/liquidity",
    response_model=LiquidityResponse,
    responses=ADMIN_ERRORS,
    summary="Configure liquidity pool",
    description="Set the initial capital of the caller's pool, creating it if needed.",
)
def configure_liquidity(
    body: ConfigureLiquidityRequest,
    admin: User = Depends(require_admin),
    use_case: ConfigureLiquidityUseCase = Depends(get_configure_liquidity_use_case),
) -> LiquidityResponse:
    """Set the initial capital of a liquidity pool."""
    liquidity = use_case.execute(
        ConfigureLiquidityCommand(
            admin_id=str(admin.id), pool=body.pool, initial_liquidity=body.initial_liquidity
        )
    )
    return to_liquidity_response(liquidity)


@router.post(
    "/liquidity/distribute",
    response_model=LiquidityResponse,
    responses={**ADMIN_ITEM_ERRORS, 409: {"model": ErrorResponse}},
    summary="Distribute liquidity to an alert",
)
def distribute_liquidity(
    body: DistributeLiquidityRequest,
    admin: User = Depends(require_admin),
    use_case: DistributeLiquidityUseCase = Depends(get_distribute_liquidity_use_case),
) -> LiquidityResponse:
    liquidity = use_case.execute(
        DistributeLiquidityCommand(
            admin_id=str(admin.id), alert_id=body.alert_id, percentage=body.percentage
        )
    )
    return to_liquidity_response(liquidity)


@router.post(
    "/liquidity/sell",
    response_model=SellSharesResponse,
    responses=ADMIN_ITEM_ERRORS,
    summary="Sell distribution shares",
)
def sell_shares(
    body: SellSharesRequest,
    admin: User = Depends(require_admin),
    use_case: SellLiquiditySharesUseCase = Depends(get_sell_shares_use_case),
) -> SellSharesResponse:
    """Sell shares of one distribution at a given price."""
    result = use_case.execute(
        SellSharesCommand(admin_id=str(admin.id), **body.model_dump())
    )
    return SellSharesResponse(
        liquidity=to_liquidity_response(result.liquidity),
        realized=result.realized,
        returned_cash=result.returned_cash,
        remaining_shares=result.remaining_shares,
    )


@router.delete(
    "/liquidity/distributions/{alert_id}",
    response_model=LiquidityResponse,
    responses=ADMIN_ITEM_ERRORS,
    summary="Remove a distribution",
)
def remove_distribution(
    alert_id: UUID,
    pool: str = Query(default="TraderCall", description=POOL_DESCRIPTION),
    admin: User = Depends(require_admin),
    use_case: RemoveDistributionUseCase = Depends(get_remove_distribution_use_case),
) -> LiquidityResponse:
    return to_liquidity_response(use_case.execute(str(admin.id), pool, alert_id))


@router.post(
    "/liquidity/update-prices",
    response_model=UpdatePricesResponse,
    responses=ADMIN_ITEM_ERRORS,
    summary="Mark distributions to market",
    description="Copy each alert's current price onto its active distribution.",
)
def update_liquidity_prices(
    pool: str = Query(default="TraderCall", description=POOL_DESCRIPTION),
    admin: User = Depends(require_admin),
    use_case: UpdateLiquidityPricesUseCase = Depends(get_update_liquidity_prices_use_case),
) -> UpdatePricesResponse:
    """Refresh every distribution with its alert's current price."""
    liquidity, updated = use_case.execute(str(admin.id), pool)
    return UpdatePricesResponse(liquidity=to_liquidity_response(liquidity), updated=updated)


@router.get(
    "/liquidity/summary",
    response_model=LiquiditySummaryResponse,
    responses=ADMIN_ITEM_ERRORS,
    summary="Liquidity summary",
)
def liquidity_summary(
    pool: str = Query(default="TraderCall", description=POOL_DESCRIPTION),
    admin: User = Depends(require_admin),
    use_case: GetLiquiditySummaryUseCase = Depends(get_liquidity_summary_use_case),
) -> LiquiditySummaryResponse:
    return LiquiditySummaryResponse(**use_case.execute(str(admin.id), pool).__dict__)
