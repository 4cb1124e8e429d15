"""
Data Transfer Objects for the alerts application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from app.domain.alerts.entities import Alert, Liquidity


@dataclass(frozen=True)
class CreateAlertCommand:
    """Input DTO for publishing a new alert.

    Attributes:
        admin_id: Id of the admin publishing the alert.
        symbol: Ticker symbol.
        action: BUY or SELL.
        stop_loss: Stop-loss price.
        take_profit: Take-profit price.
        tipo: Service the alert is published under.
        tipo_alerta: `precio` (fixed entry) or `rango` (entry range).
        entry_price: Entry price for `precio` alerts.
        price_min: Lower bound of the range for `rango` alerts.
        price_max: Upper bound of the range for `rango` alerts.
        liquidity_percentage: Share of the pool to allocate (0 = none).
        email_message: Custom text for the announcement.
        email_image_url: Image attached to the announcement.
    """

    admin_id: str
    symbol: str
    action: str
    stop_loss: float
    take_profit: float
    tipo: str = "TraderCall"
    tipo_alerta: str = "precio"
    entry_price: Optional[float] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    analysis: str = ""
    date: Optional[datetime] = None
    horario_cierre: str = "17:30"
    liquidity_percentage: float = 0.0
    email_message: Optional[str] = None
    email_image_url: Optional[str] = None


@dataclass(frozen=True)
class CreateAlertResult:
    """Output DTO of alert creation.

    Attributes:
        alert: The persisted alert.
        liquidity_allocated: Whether a liquidity distribution was created.
        notification_queued: Whether the announcement job was enqueued.
    """

    alert: Alert
    liquidity_allocated: bool
    notification_queued: bool


@dataclass(frozen=True)
class ListAlertsQuery:
    """Input DTO for the paginated alert listing.

    Attributes:
        tipo: Optional service filter.
        status: Status filter; `ALL` disables it.
        limit: Page size.
        page: 1-based page number.
    """

    tipo: Optional[str] = None
    status: str = "ALL"
    limit: int = 50
    page: int = 1


@dataclass(frozen=True)
class AlertListResult:
    """Output DTO of the alert listing."""

    alerts: list[Alert]
    total: int
    page: int
    limit: int


@dataclass(frozen=True)
class EditAlertCommand:
    """Input DTO for editing an active alert. None means unchanged."""

    alert_id: UUID
    editor: str
    symbol: Optional[str] = None
    action: Optional[str] = None
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    analysis: Optional[str] = None
    available_for_purchase: Optional[bool] = None
    reason: str = ""


@dataclass(frozen=True)
class UpdateAlertPriceCommand:
    """Input DTO for an admin price update."""

    alert_id: UUID
    editor: str
    price: float
    reason: str = ""


@dataclass(frozen=True)
class CloseAlertCommand:
    """Input DTO for closing an alert.

    Attributes:
        alert_id: Alert to close.
        admin_id: Admin whose liquidity pool is settled.
        price: Exit price.
        reason: TAKE_PROFIT, STOP_LOSS or MANUAL.
        email_message: Custom text for the closing announcement.
        email_image_url: Image attached to the announcement.
    """

    alert_id: UUID
    admin_id: str
    price: float
    reason: str = "MANUAL"
    email_message: Optional[str] = None
    email_image_url: Optional[str] = None


@dataclass(frozen=True)
class CloseAlertResult:
    alert: Alert
    profit: float
    liquidity_released: float = 0.0
    realized_profit: float = 0.0


@dataclass(frozen=True)
class PartialSaleCommand:
    """Input DTO for a partial sale.

    Attributes:
        alert_id: Alert whose position is reduced.
        admin_id: Admin executing the sale.
        percentage: 25 or 50.
        price: Sale price.
    """

    alert_id: UUID
    admin_id: str
    percentage: float
    price: float
    email_message: Optional[str] = None
    email_image_url: Optional[str] = None


@dataclass(frozen=True)
class PartialSaleResult:
    alert: Alert
    shares_sold: float
    shares_remaining: float
    liquidity_released: float
    realized_profit: float
    new_allocated_amount: float


@dataclass(frozen=True)
class DiscardAlertCommand:
    alert_id: UUID
    reason: str
    price: float


@dataclass(frozen=True)
class RangeBreakReport:
    """Counts returned by a range-break sweep."""

    checked: int = 0
    broken: int = 0
    closed: int = 0
    errors: int = 0
    details: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class MarketCloseReport:
    """Counts returned by the end-of-session sweep.

    Attributes:
        is_business_day: False on weekends and market holidays (nothing ran).
        total_alerts: ACTIVE alerts whose closing time had passed.
        processed: Alerts that got a final price or were dismissed.
        dismissed: Range alerts dismissed because the close left the range.
        emails_sent: Summary emails delivered to the publishing admins.
        errors: Alerts that failed to process.
        no_activity_sent: Whether the "nothing to trade today" post went out.
    """

    is_business_day: bool = True
    total_alerts: int = 0
    processed: int = 0
    dismissed: int = 0
    emails_sent: int = 0
    errors: int = 0
    no_activity_sent: bool = False


# ══════════════════════════════════════════════════════════════════════
# Liquidity
# ══════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ConfigureLiquidityCommand:
    admin_id: str
    pool: str
    initial_liquidity: float


@dataclass(frozen=True)
class DistributeLiquidityCommand:
    """Input DTO for allocating part of a pool to an alert.

    Attributes:
        admin_id: Owner of the liquidity record.
        alert_id: Alert receiving the allocation.
        percentage: Share of the pool, in (0, 100].
    """

    admin_id: str
    alert_id: UUID
    percentage: float


@dataclass(frozen=True)
class SellSharesCommand:
    admin_id: str
    pool: str
    alert_id: UUID
    shares: float
    price: float


@dataclass(frozen=True)
class SellSharesResult:
    liquidity: Liquidity
    realized: float
    returned_cash: float
    remaining_shares: float


@dataclass(frozen=True)
class LiquiditySummary:
    """Aggregated view of one liquidity pool."""

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
