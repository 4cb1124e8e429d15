"""
Pydantic schemas for the alerts and liquidity API.

These schemas enforce input validation and define the API contract.
Business rules (price relations, range bounds) are checked by the use cases.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

SYMBOL_DESCRIPTION = "Ticker symbol"
POOL_DESCRIPTION = "Liquidity pool: TraderCall or SmartMoney"


# ══════════════════════════════════════════════════════════════════════
# Alerts
# ══════════════════════════════════════════════════════════════════════


class CreateAlertRequest(BaseModel):
    """Request schema for publishing an alert.

    Attributes:
        symbol: Ticker symbol.
        action: BUY or SELL.
        tipo: Service the alert belongs to.
        tipo_alerta: `precio` needs entry_price, `rango` needs price_min/price_max.
        liquidity_percentage: Share of the admin's pool to allocate (0 = none).
    """

    symbol: str = Field(..., min_length=1, max_length=20, description=SYMBOL_DESCRIPTION)
    action: str = Field(..., description="BUY or SELL")
    stop_loss: float = Field(..., description="Stop-loss price")
    take_profit: float = Field(..., description="Take-profit price")
    tipo: str = Field(default="TraderCall", description="TraderCall or SmartMoney")
    tipo_alerta: str = Field(default="precio", description="precio or rango")
    entry_price: float | None = None
    price_min: float | None = None
    price_max: float | None = None
    analysis: str = Field(default="", max_length=5000)
    date: datetime | None = None
    horario_cierre: str = Field(default="17:30", pattern=r"^\d{2}:\d{2}$")
    liquidity_percentage: float = Field(default=0.0, ge=0, le=100)
    email_message: str | None = Field(default=None, max_length=2000)
    email_image_url: str | None = None


class PriceRangeItem(BaseModel):
    min: float
    max: float


class PartialSaleItem(BaseModel):
    date: datetime
    price: float
    percentage_sold: float
    realized_gain: float
    shares_sold: float
    liquidity_released: float
    realized_profit: float


class AlertItem(BaseModel):
    """An alert as returned by the API."""

    id: UUID
    symbol: str
    action: str
    tipo: str
    tipo_alerta: str
    status: str
    entry_price: float | None
    entry_price_range: PriceRangeItem | None
    entry_display: str
    current_price: float
    stop_loss: float
    take_profit: float
    profit: float
    analysis: str
    date: datetime
    horario_cierre: str
    exit_price: float | None
    exit_date: datetime | None
    exit_reason: str | None
    final_price: float | None
    available_for_purchase: bool
    participation_percentage: float
    partial_sales: list[PartialSaleItem]
    realized_profit: float
    unrealized_profit: float
    discard_reason: str | None
    dismissal_reason: str | None
    created_at: datetime


class CreateAlertResponse(BaseModel):
    alert: AlertItem
    liquidity_allocated: bool
    notification_queued: bool


class AlertListResponse(BaseModel):
    alerts: list[AlertItem]
    total: int
    page: int
    limit: int


class EditAlertRequest(BaseModel):
    """Fields to change on an active alert; omitted fields stay as they are."""

    symbol: str | None = Field(default=None, max_length=20)
    action: str | None = None
    entry_price: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    analysis: str | None = Field(default=None, max_length=5000)
    available_for_purchase: bool | None = None
    reason: str = Field(default="", max_length=500)


class UpdatePriceRequest(BaseModel):
    price: float = Field(..., gt=0)
    reason: str = Field(default="", max_length=500)


class CloseAlertRequest(BaseModel):
    """Request schema for closing an alert.

    Attributes:
        price: Exit price, must be positive.
        reason: TAKE_PROFIT, STOP_LOSS or MANUAL.
    """

    price: float = Field(..., gt=0)
    reason: str = Field(default="MANUAL")
    email_message: str | None = Field(default=None, max_length=2000)
    email_image_url: str | None = None


class CloseAlertResponse(BaseModel):
    alert: AlertItem
    profit: float
    liquidity_released: float
    realized_profit: float


class PartialSaleRequest(BaseModel):
    percentage: Literal[25, 50] = Field(..., description="Share of the position to sell")
    price: float = Field(..., gt=0)
    email_message: str | None = Field(default=None, max_length=2000)
    email_image_url: str | None = None


class PartialSaleResponse(BaseModel):
    alert: AlertItem
    shares_sold: float
    shares_remaining: float
    liquidity_released: float
    realized_profit: float
    new_allocated_amount: float


class DiscardAlertRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    price: float = Field(..., gt=0)


class RangeBreakResponse(BaseModel):
    checked: int
    broken: int
    closed: int
    errors: int
    details: list[dict]


class MarketCloseResponse(BaseModel):
    """Counts of one end-of-session sweep."""

    is_business_day: bool
    total_alerts: int
    processed: int
    dismissed: int
    emails_sent: int
    errors: int
    no_activity_sent: bool


# ══════════════════════════════════════════════════════════════════════
# Liquidity
# ══════════════════════════════════════════════════════════════════════


class DistributionItem(BaseModel):
    alert_id: UUID
    symbol: str
    percentage: float
    allocated_amount: float
    entry_price: float
    current_price: float
    shares: float
    sold_shares: float
    profit_loss: float
    profit_loss_percentage: float
    realized_profit_loss: float
    is_active: bool
    created_at: datetime


class LiquidityResponse(BaseModel):
    """A liquidity pool with its distributions."""

    id: UUID
    pool: str
    initial_liquidity: float
    total_liquidity: float
    available_liquidity: float
    distributed_liquidity: float
    total_profit_loss: float
    total_profit_loss_percentage: float
    distributions: list[DistributionItem]
    updated_at: datetime


class ConfigureLiquidityRequest(BaseModel):
    pool: str = Field(default="TraderCall", description=POOL_DESCRIPTION)
    initial_liquidity: float = Field(..., gt=0)


class DistributeLiquidityRequest(BaseModel):
    alert_id: UUID
    percentage: float = Field(..., gt=0, le=100)


class SellSharesRequest(BaseModel):
    pool: str = Field(default="TraderCall", description=POOL_DESCRIPTION)
    alert_id: UUID
    shares: float = Field(..., gt=0)
    price: float = Field(..., gt=0)


class SellSharesResponse(BaseModel):
    liquidity: LiquidityResponse
    realized: float
    returned_cash: float
    remaining_shares: float


class UpdatePricesResponse(BaseModel):
    liquidity: LiquidityResponse
    updated: int


class LiquiditySummaryResponse(BaseModel):
    pool: str
    initial_liquidity: float
    total_liquidity: float
    available_liquidity: float
    distributed_liquidity: float
    total_profit_loss: float
    total_profit_loss_percentage: float
    realized_profit_loss: float
    unrealized_profit_loss: float
    active_distributions: int
    total_distributions: int
