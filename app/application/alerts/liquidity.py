"""
Use cases: Liquidity pool management.

Each admin owns one liquidity record per pool (TraderCall, SmartMoney)
and spreads it across active alerts. Covers reading, configuring,
distributing, selling, removing, marking to market and summarizing.
Failure cases: LiquidityNotConfiguredError, AlreadyDistributedError,
    DistributionNotFoundError, InvalidLiquidityError, InvalidSaleError,
    AlertNotFoundError, AlertNotActiveError.
"""

import logging
from uuid import UUID

from app.application.alerts.dtos import (
    ConfigureLiquidityCommand,
    DistributeLiquidityCommand,
    LiquiditySummary,
    SellSharesCommand,
    SellSharesResult,
)
from app.domain.alerts.entities import (
    Alert,
    AlertService,
    Liquidity,
    LiquidityDistribution,
)
from app.domain.alerts.errors import (
    AlertNotActiveError,
    AlertNotFoundError,
    AlreadyDistributedError,
    InvalidLiquidityError,
    LiquidityNotConfiguredError,
)
from app.domain.alerts.ports import AlertRepository, LiquidityRepository

logger = logging.getLogger(__name__)


def parse_pool(value: str) -> AlertService:
    """Map a pool name to its service; InvalidLiquidityError otherwise."""
    try:
        return AlertService(value)
    except ValueError as exc:
        raise InvalidLiquidityError(f"Invalid liquidity pool: {value}") from exc


def _configured(
    liquidity_repo: LiquidityRepository, admin_id: str, pool: AlertService
) -> Liquidity:
    liquidity = liquidity_repo.get(admin_id, pool)
    if liquidity is None or liquidity.initial_liquidity <= 0:
        raise LiquidityNotConfiguredError(pool.value)
    return liquidity


def allocate_liquidity(
    liquidity_repo: LiquidityRepository,
    admin_id: str,
    alert: Alert,
    percentage: float,
) -> LiquidityDistribution:
    """Assign `percentage` of the admin's pool to the alert.

    Shares are bought at the range maximum for range alerts, else at the
    entry price.
    """
    if not 0 < percentage <= 100:
        raise InvalidLiquidityError("Percentage must be greater than 0 and at most 100")

    liquidity = _configured(liquidity_repo, admin_id, alert.tipo)
    if liquidity.find_distribution(alert.id) is not None:
        raise AlreadyDistributedError(str(alert.id))

    entry = alert.liquidity_entry_price
    if entry <= 0:
        raise InvalidLiquidityError("Alert has no valid entry price")

    dist = liquidity.add_distribution(alert.id, alert.symbol, percentage, entry)
    liquidity_repo.save(liquidity)
    logger.info(
        "Liquidity distributed: pool=%s alert=%s pct=%.2f amount=%.2f shares=%.4f",
        alert.tipo.value,
        alert.id,
        percentage,
        dist.allocated_amount,
        dist.shares,
    )
    return dist


class GetLiquidityUseCase:
    """Return the admin's record for a pool, creating an empty one if missing."""

    def __init__(self, liquidity_repo: LiquidityRepository) -> None:
        self._liquidity_repo = liquidity_repo

    def execute(self, admin_id: str, pool: str) -> Liquidity:
        """Load the pool record, creating an empty one on first access.

        Args:
            admin_id: Owner of the record.
            pool: Pool name (TraderCall or SmartMoney).

        Returns:
            The stored or freshly created Liquidity.

        Raises:
            InvalidLiquidityError: If the pool name is unknown.
        """
        service = parse_pool(pool)
        liquidity = self._liquidity_repo.get(admin_id, service)
        if liquidity is None:
            liquidity = Liquidity(pool=service, created_by=admin_id)
            self._liquidity_repo.save(liquidity)
            logger.info("Created empty liquidity record: pool=%s admin=%s", pool, admin_id)
        return liquidity


class ConfigureLiquidityUseCase:
    """Set the initial capital of a pool.

    Every record of the pool receives the same initial amount so that all
    admins see consistent totals.
    """

    def __init__(self, liquidity_repo: LiquidityRepository) -> None:
        self._liquidity_repo = liquidity_repo

    def execute(self, command: ConfigureLiquidityCommand) -> Liquidity:
        """Apply the initial capital to every record of the pool.

        Args:
            command: Admin, pool and initial amount.

        Returns:
            The calling admin's record after configuration.

        Raises:
            InvalidLiquidityError: If the pool is unknown or the amount is not positive.
        """
        service = parse_pool(command.pool)
        if command.initial_liquidity <= 0:
            raise InvalidLiquidityError("Initial liquidity must be greater than 0")

        records = self._liquidity_repo.list_by_pool(service)
        own = next((r for r in records if r.created_by == command.admin_id), None)
        if own is None:
            own = Liquidity(pool=service, created_by=command.admin_id)
            records.append(own)

        for record in records:
            record.configure(command.initial_liquidity)
            self._liquidity_repo.save(record)

        logger.info(
            "Liquidity configured: pool=%s initial=%.2f records=%d",
            service.value,
            command.initial_liquidity,
            len(records),
        )
        return own


class DistributeLiquidityUseCase:
    """Allocate part of a pool to an active alert."""

    def __init__(
        self, alert_repo: AlertRepository, liquidity_repo: LiquidityRepository
    ) -> None:
        self._alert_repo = alert_repo
        self._liquidity_repo = liquidity_repo

    def execute(self, command: DistributeLiquidityCommand) -> Liquidity:
        """Allocate a share of the pool to the alert.

        Args:
            command: Admin, alert and percentage of the pool.

        Returns:
            The updated liquidity record.

        Raises:
            InvalidLiquidityError: If the percentage is outside (0, 100].
            AlertNotFoundError: If the alert does not exist.
            AlertNotActiveError: If the alert is no longer ACTIVE.
            AlreadyDistributedError: If the alert already holds a distribution.
        """
        if not 0 < command.percentage <= 100:
            raise InvalidLiquidityError("Percentage must be greater than 0 and at most 100")

        alert = self._alert_repo.get(command.alert_id)
        if alert is None:
            raise AlertNotFoundError(str(command.alert_id))
        if not alert.is_active:
            raise AlertNotActiveError(str(alert.id), alert.status.value)

        allocate_liquidity(self._liquidity_repo, command.admin_id, alert, command.percentage)
        return self._liquidity_repo.get(command.admin_id, alert.tipo)


class SellLiquiditySharesUseCase:
    """Sell shares of one distribution at a given price."""

    def __init__(self, liquidity_repo: LiquidityRepository) -> None:
        self._liquidity_repo = liquidity_repo

    def execute(self, command: SellSharesCommand) -> SellSharesResult:
        """Sell shares of one distribution and return the realized outcome.

        Raises:
            InvalidSaleError: When selling more shares than the distribution holds.
        """
        service = parse_pool(command.pool)
        if command.price <= 0:
            raise InvalidLiquidityError("Price must be greater than 0")

        liquidity = _configured(self._liquidity_repo, command.admin_id, service)
        sale = liquidity.sell_shares(command.alert_id, command.shares, command.price)
        self._liquidity_repo.save(liquidity)
        logger.info(
            "Shares sold: pool=%s alert=%s shares=%.4f realized=%.2f",
            service.value,
            command.alert_id,
            command.shares,
            sale.realized,
        )
        return SellSharesResult(
            liquidity=liquidity,
            realized=sale.realized,
            returned_cash=sale.returned_cash,
            remaining_shares=sale.remaining_shares,
        )


class RemoveDistributionUseCase:
    """Undo an allocation without selling."""

    def __init__(self, liquidity_repo: LiquidityRepository) -> None:
        self._liquidity_repo = liquidity_repo

    def execute(self, admin_id: str, pool: str, alert_id: UUID) -> Liquidity:
        """Drop the alert's distribution, returning its capital to the pool.

        Args:
            admin_id: Owner of the record.
            pool: Pool name.
            alert_id: Alert whose distribution is removed.

        Returns:
            The updated liquidity record.

        Raises:
            LiquidityNotConfiguredError: If the admin has no record for the pool.
            DistributionNotFoundError: If the alert holds no distribution.
        """
        service = parse_pool(pool)
        liquidity = self._liquidity_repo.get(admin_id, service)
        if liquidity is None:
            raise LiquidityNotConfiguredError(service.value)
        liquidity.remove_distribution(alert_id)
        self._liquidity_repo.save(liquidity)
        logger.info("Distribution removed: pool=%s alert=%s", service.value, alert_id)
        return liquidity


class UpdateLiquidityPricesUseCase:
    """Mark every active distribution to its alert's current price."""

    def __init__(
        self, alert_repo: AlertRepository, liquidity_repo: LiquidityRepository
    ) -> None:
        self._alert_repo = alert_repo
        self._liquidity_repo = liquidity_repo

    def execute(self, admin_id: str, pool: str) -> tuple[Liquidity, int]:
        """Mark each active distribution to its alert's current price.

        Alerts that are gone or have no price yet are skipped.

        Returns:
            The refreshed record and the number of distributions updated.

        Raises:
            LiquidityNotConfiguredError: If the admin has no record for the pool.
        """
        service = parse_pool(pool)
        liquidity = self._liquidity_repo.get(admin_id, service)
        if liquidity is None:
            raise LiquidityNotConfiguredError(service.value)

        updated = 0
        for dist in list(liquidity.distributions):
            if not dist.is_active:
                continue
            alert = self._alert_repo.get(dist.alert_id)
            if alert is None or alert.current_price <= 0:
                continue
            liquidity.update_distribution(dist.alert_id, alert.current_price)
            updated += 1

        self._liquidity_repo.save(liquidity)
        logger.info("Liquidity prices refreshed: pool=%s updated=%d", service.value, updated)
        return liquidity, updated


class GetLiquiditySummaryUseCase:
    """Read-only totals of one pool."""

    def __init__(self, liquidity_repo: LiquidityRepository) -> None:
        self._liquidity_repo = liquidity_repo

    def execute(self, admin_id: str, pool: str) -> LiquiditySummary:
        """Aggregate the pool totals for the dashboard.

        An admin without a record gets an all-zero summary.

        Args:
            admin_id: Owner of the record.
            pool: Pool name.

        Returns:
            LiquiditySummary with realized and unrealized profit split out.
        """
        service = parse_pool(pool)
        liquidity = self._liquidity_repo.get(admin_id, service)
        if liquidity is None:
            liquidity = Liquidity(pool=service, created_by=admin_id)

        return LiquiditySummary(
            pool=service.value,
            initial_liquidity=liquidity.initial_liquidity,
            total_liquidity=liquidity.total_liquidity,
            available_liquidity=liquidity.available_liquidity,
            distributed_liquidity=liquidity.distributed_liquidity,
            total_profit_loss=liquidity.total_profit_loss,
            total_profit_loss_percentage=liquidity.total_profit_loss_percentage,
            realized_profit_loss=liquidity.realized_total(),
            unrealized_profit_loss=liquidity.unrealized_total(),
            active_distributions=sum(
                1 for d in liquidity.distributions if d.is_active and d.shares > 0
            ),
            total_distributions=len(liquidity.distributions),
        )
