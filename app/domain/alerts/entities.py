"""
Domain entities for the alerts bounded context.

An Alert is a published buy/sell signal with its own lifecycle
(ACTIVE → CLOSED / STOPPED / DESESTIMADA / DESCARTADA) and optional
partial sales. Liquidity tracks the notional capital pool that admins
spread across alerts.
No framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from app.domain.alerts.errors import (
    DistributionNotFoundError,
    InsufficientLiquidityError,
    InvalidSaleError,
)


DEFAULT_CLOSE_MINUTES = 17 * 60 + 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertAction(Enum):
    """Direction of the trading signal."""

    BUY = "BUY"
    SELL = "SELL"


class AlertStatus(Enum):
    """Alert lifecycle status."""

    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    STOPPED = "STOPPED"
    DESESTIMADA = "DESESTIMADA"
    DESCARTADA = "DESCARTADA"


class AlertService(Enum):
    """Subscription product an alert is published under (also the liquidity pool)."""

    TRADER_CALL = "TraderCall"
    SMART_MONEY = "SmartMoney"


class AlertKind(Enum):
    """Fixed entry price or entry range."""

    PRECIO = "precio"
    RANGO = "rango"


class ExitReason(Enum):
    """Why an alert left the ACTIVE state."""

    TAKE_PROFIT = "TAKE_PROFIT"
    STOP_LOSS = "STOP_LOSS"
    MANUAL = "MANUAL"
    RANGE_BREAK = "RANGE_BREAK"


@dataclass(frozen=True)
class PriceRange:
    """Entry price range of a `rango` alert."""

    min: float
    max: float


@dataclass(frozen=True)
class PriceChange:
    """Audit record of an admin price change or edit."""

    changed_by: str
    changed_at: datetime
    old_price: float
    new_price: float
    reason: str


@dataclass(frozen=True)
class PartialSale:
    """A recorded reduction of position size before full closure."""

    date: datetime
    price: float
    percentage_sold: float
    realized_gain: float
    shares_sold: float = 0.0
    liquidity_released: float = 0.0
    realized_profit: float = 0.0


@dataclass(frozen=True)
class RangeCheck:
    """Result of checking a price against an alert's entry range."""

    is_broken: bool
    reason: str = ""


def percent_change(action: AlertAction, entry: float, price: float) -> float:
    """Signed gain in percent for a position opened at `entry`."""
    if not entry:
        return 0.0
    if action is AlertAction.BUY:
        return (price - entry) / entry * 100
    return (entry - price) / entry * 100


@dataclass
class Alert:
    """A buy/sell trading signal published to subscribers."""

    symbol: str
    action: AlertAction
    stop_loss: float
    take_profit: float
    id: UUID = field(default_factory=uuid4)
    tipo: AlertService = AlertService.TRADER_CALL
    tipo_alerta: AlertKind = AlertKind.PRECIO
    entry_price: Optional[float] = None
    entry_price_range: Optional[PriceRange] = None
    current_price: float = 0.0
    profit: float = 0.0
    status: AlertStatus = AlertStatus.ACTIVE
    analysis: str = ""
    date: datetime = field(default_factory=_utcnow)
    horario_cierre: str = "17:30"
    exit_price: Optional[float] = None
    exit_date: Optional[datetime] = None
    exit_reason: Optional[ExitReason] = None
    final_price: Optional[float] = None
    available_for_purchase: bool = False
    participation_percentage: float = 100.0
    partial_sales: list[PartialSale] = field(default_factory=list)
    realized_profit: float = 0.0
    unrealized_profit: float = 0.0
    discard_reason: Optional[str] = None
    discard_price: Optional[float] = None
    dismissal_reason: Optional[str] = None
    price_change_history: list[PriceChange] = field(default_factory=list)
    emails_sent: dict[str, bool] = field(
        default_factory=lambda: {"creation": False, "market_close": False}
    )
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.symbol = self.symbol.strip().upper()

    @property
    def is_active(self) -> bool:
        return self.status is AlertStatus.ACTIVE

    @property
    def reference_entry_price(self) -> float:
        """Entry used for profit math: range minimum, else the fixed price."""
        if self.entry_price_range is not None and self.entry_price_range.min:
            return self.entry_price_range.min
        return self.entry_price or 0.0

    @property
    def liquidity_entry_price(self) -> float:
        """Entry used when buying shares: range maximum, else the fixed price."""
        if self.entry_price_range is not None and self.entry_price_range.max:
            return self.entry_price_range.max
        return self.entry_price or 0.0

    def entry_display(self) -> str:
        """Human readable entry: fixed price first, then range, then final price."""
        if self.entry_price:
            return f"${self.entry_price:.2f}"
        if self.entry_price_range is not None:
            return f"${self.entry_price_range.min:.2f} / ${self.entry_price_range.max:.2f}"
        if self.final_price:
            return f"${self.final_price:.2f}"
        return "$0.00"

    def calculate_profit(self) -> float:
        self.profit = percent_change(self.action, self.reference_entry_price, self.current_price)
        return self.profit

    def set_final_price(self, price: float) -> float:
        """Fix the final price and recompute profit against it."""
        self.final_price = price
        self.profit = percent_change(self.action, self.reference_entry_price, price)
        return self.profit

    def record_price_change(
        self,
        changed_by: str,
        new_price: float,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> None:
        """Move the current price, keeping the previous one in the history."""
        self.price_change_history.append(
            PriceChange(
                changed_by=changed_by,
                changed_at=now or _utcnow(),
                old_price=self.current_price,
                new_price=new_price,
                reason=reason,
            )
        )
        self.current_price = new_price
        self.calculate_profit()

    def record_edit(self, changed_by: str, fields: list[str], now: Optional[datetime] = None) -> None:
        """Audit an edit that did not move the current price."""
        self.price_change_history.append(
            PriceChange(
                changed_by=changed_by,
                changed_at=now or _utcnow(),
                old_price=self.current_price,
                new_price=self.current_price,
                reason=f"Edición general: {', '.join(fields)}",
            )
        )

    def check_range_break(self, price: float) -> RangeCheck:
        """Range alerts are dismissed when the price leaves the entry range."""
        if self.tipo_alerta is not AlertKind.RANGO or not self.is_active:
            return RangeCheck(is_broken=False)
        if self.entry_price_range is None:
            return RangeCheck(is_broken=False)

        low, high = self.entry_price_range.min, self.entry_price_range.max
        if price < low:
            return RangeCheck(True, f"Precio {price} por debajo del rango mínimo {low}")
        if price > high:
            return RangeCheck(True, f"Precio {price} por encima del rango máximo {high}")
        return RangeCheck(is_broken=False)

    def dismiss_for_range_break(self, reason: str, now: Optional[datetime] = None) -> None:
        """The price left the entry range before the alert triggered."""
        self.status = AlertStatus.DESESTIMADA
        self.exit_price = self.current_price
        self.exit_date = now or _utcnow()
        self.exit_reason = ExitReason.RANGE_BREAK
        self.dismissal_reason = reason

    @property
    def close_minutes(self) -> int:
        """Minutes after midnight of `horario_cierre` (17:30 when unparsable)."""
        try:
            hours, minutes = self.horario_cierre.split(":")
            return int(hours) * 60 + int(minutes)
        except (AttributeError, ValueError):
            return DEFAULT_CLOSE_MINUTES

    def fix_market_close_price(self, price: float) -> float:
        """Fix the session's final price and return the profit against it.

        A range entry collapses to a fixed entry at the closing price, and
        an alert published without an entry takes the closing price as one.
        """
        self.current_price = price
        profit = self.set_final_price(price)
        if self.entry_price_range is not None:
            self.entry_price = price
            self.entry_price_range = None
        elif not self.entry_price:
            self.entry_price = price
        self.emails_sent["market_close"] = True
        return profit

    def dismiss_at_market_close(self, price: float, reason: str, now: Optional[datetime] = None) -> None:
        """The closing price left the entry range: the alert never triggered."""
        self.current_price = price
        self.dismiss_for_range_break(reason, now)
        self.profit = 0.0
        self.emails_sent["market_close"] = True

    def discard(self, reason: str, price: float) -> None:
        self.status = AlertStatus.DESCARTADA
        self.discard_reason = reason
        self.discard_price = price

    def close(
        self,
        price: float,
        reason: ExitReason = ExitReason.MANUAL,
        now: Optional[datetime] = None,
    ) -> float:
        """Close at `price` and return the final profit percentage."""
        self.current_price = price
        profit = self.set_final_price(price)
        self.status = AlertStatus.CLOSED
        self.exit_price = price
        self.exit_date = now or _utcnow()
        self.exit_reason = reason
        return profit

    def sell_partial(
        self,
        percentage: float,
        price: float,
        now: Optional[datetime] = None,
        shares_sold: float = 0.0,
        liquidity_released: float = 0.0,
        realized_profit: float = 0.0,
    ) -> PartialSale:
        """Reduce participation; selling the last part closes the alert.

        Raises:
            InvalidSaleError: If more than the remaining participation is sold.
        """
        if percentage > self.participation_percentage:
            raise InvalidSaleError(
                f"Cannot sell {percentage}% when only "
                f"{self.participation_percentage}% is held"
            )
        now = now or _utcnow()
        sale = PartialSale(
            date=now,
            price=price,
            percentage_sold=percentage,
            realized_gain=percent_change(self.action, self.reference_entry_price, price),
            shares_sold=shares_sold,
            liquidity_released=liquidity_released,
            realized_profit=realized_profit,
        )
        self.partial_sales.append(sale)
        self.participation_percentage = max(0.0, self.participation_percentage - percentage)

        if self.participation_percentage == 0:
            self.close(price, ExitReason.MANUAL, now=now)
        return sale

    def calculate_total_profit(self) -> dict[str, float]:
        """Realized (average of partial-sale gains) plus participation-weighted open gain."""
        realized = 0.0
        if self.partial_sales:
            realized = sum(s.realized_gain for s in self.partial_sales) / len(self.partial_sales)

        unrealized = 0.0
        entry = self.reference_entry_price
        if entry > 0 and self.participation_percentage > 0:
            change = (self.current_price - entry) / entry * 100
            unrealized = change * (self.participation_percentage / 100)

        self.realized_profit = realized
        self.unrealized_profit = unrealized
        total = realized + unrealized
        return {"realized": realized, "unrealized": unrealized, "total": total}


# ══════════════════════════════════════════════════════════════════════
# Liquidity
# ══════════════════════════════════════════════════════════════════════


@dataclass
class LiquidityDistribution:
    """Capital assigned to one alert inside a liquidity pool."""

    alert_id: UUID
    symbol: str
    percentage: float
    allocated_amount: float
    entry_price: float
    current_price: float
    shares: float
    sold_shares: float = 0.0
    profit_loss: float = 0.0
    profit_loss_percentage: float = 0.0
    realized_profit_loss: float = 0.0
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ShareSale:
    """Outcome of selling shares out of a distribution."""

    realized: float
    returned_cash: float
    remaining_shares: float


@dataclass
class Liquidity:
    """A notional capital pool (one per service pool per admin)."""

    pool: AlertService
    created_by: str
    id: UUID = field(default_factory=uuid4)
    initial_liquidity: float = 0.0
    total_liquidity: float = 0.0
    available_liquidity: float = 0.0
    distributed_liquidity: float = 0.0
    distributions: list[LiquidityDistribution] = field(default_factory=list)
    total_profit_loss: float = 0.0
    total_profit_loss_percentage: float = 0.0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def find_distribution(self, alert_id: UUID) -> Optional[LiquidityDistribution]:
        for dist in self.distributions:
            if dist.alert_id == alert_id:
                return dist
        return None

    def configure(self, initial_liquidity: float) -> None:
        """Overwrite the initial capital and rebuild the derived totals."""
        self.initial_liquidity = initial_liquidity
        self.recalculate()

    def add_distribution(
        self,
        alert_id: UUID,
        symbol: str,
        percentage: float,
        entry_price: float,
        now: Optional[datetime] = None,
    ) -> LiquidityDistribution:
        """Allocate `percentage` of the pool to an alert at `entry_price`."""
        amount = self.total_liquidity * percentage / 100
        if amount > self.total_liquidity:
            raise InsufficientLiquidityError(amount, self.total_liquidity)

        dist = LiquidityDistribution(
            alert_id=alert_id,
            symbol=symbol.upper(),
            percentage=percentage,
            allocated_amount=amount,
            entry_price=entry_price,
            current_price=entry_price,
            shares=amount / entry_price,
            created_at=now or _utcnow(),
        )
        self.distributions.append(dist)
        self.recalculate()
        return dist

    def update_distribution(self, alert_id: UUID, price: float) -> LiquidityDistribution:
        """Mark a distribution to market."""
        dist = self.find_distribution(alert_id)
        if dist is None:
            raise DistributionNotFoundError(str(alert_id))

        dist.current_price = price
        if dist.entry_price:
            dist.profit_loss_percentage = (price - dist.entry_price) / dist.entry_price * 100
        else:
            dist.profit_loss_percentage = 0.0
        dist.profit_loss = dist.profit_loss_percentage / 100 * dist.allocated_amount
        self.recalculate()
        return dist

    def sell_shares(self, alert_id: UUID, shares: float, price: float) -> ShareSale:
        """Sell shares out of a distribution and realize the gain.

        Raises:
            DistributionNotFoundError: No distribution for the alert.
            InvalidSaleError: Non-positive amount or more than held.
        """
        dist = self.find_distribution(alert_id)
        if dist is None:
            raise DistributionNotFoundError(str(alert_id))
        if shares <= 0:
            raise InvalidSaleError("Shares to sell must be greater than 0")
        if shares > dist.shares + 1e-9:
            raise InvalidSaleError(
                f"Cannot sell {shares} shares, only {dist.shares} held"
            )

        shares = min(shares, dist.shares)
        realized = shares * (price - dist.entry_price)
        returned_cash = shares * price

        dist.shares -= shares
        dist.sold_shares += shares
        dist.realized_profit_loss += realized
        dist.allocated_amount = dist.shares * dist.entry_price
        dist.current_price = price
        dist.is_active = dist.shares > 0
        if dist.is_active and dist.entry_price:
            dist.profit_loss_percentage = (price - dist.entry_price) / dist.entry_price * 100
            dist.profit_loss = dist.profit_loss_percentage / 100 * dist.allocated_amount
        else:
            dist.profit_loss = 0.0
            dist.profit_loss_percentage = 0.0

        self.recalculate()
        return ShareSale(realized=realized, returned_cash=returned_cash, remaining_shares=dist.shares)

    def remove_distribution(self, alert_id: UUID) -> LiquidityDistribution:
        """Drop the distribution outright and recompute the pool totals.

        Raises:
            DistributionNotFoundError: If the alert holds no distribution.
        """
        dist = self.find_distribution(alert_id)
        if dist is None:
            raise DistributionNotFoundError(str(alert_id))
        self.distributions.remove(dist)
        self.recalculate()
        return dist

    def realized_total(self) -> float:
        return sum(d.realized_profit_loss for d in self.distributions)

    def unrealized_total(self) -> float:
        """Open profit or loss of the distributions still holding shares."""
        return sum(d.profit_loss for d in self.distributions if d.is_active and d.shares > 0)

    def recalculate(self) -> None:
        """Rebuild every derived total from the distributions."""
        self.distributed_liquidity = sum(
            d.allocated_amount for d in self.distributions if d.is_active and d.shares > 0
        )
        realized = self.realized_total()
        unrealized = self.unrealized_total()

        self.total_profit_loss = realized + unrealized
        self.total_liquidity = self.initial_liquidity + realized + unrealized
        self.available_liquidity = self.initial_liquidity - self.distributed_liquidity + realized
        if self.distributed_liquidity > 0:
            self.total_profit_loss_percentage = (
                self.total_profit_loss / self.distributed_liquidity * 100
            )
        else:
            self.total_profit_loss_percentage = 0.0
        self.updated_at = _utcnow()
