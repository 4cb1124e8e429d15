"""
Tests for the alerts application layer.

Use cases run against the SQL adapters on an in-memory SQLite database;
announcements go to the real job queue so enqueued jobs can be inspected.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

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
from app.application.alerts.market_close import MarketCloseUseCase, is_business_day
from app.application.notifications.queue import NotificationJobQueue
from app.domain.accounts.entities import UserRole
from app.domain.alerts.entities import AlertService, AlertStatus, ExitReason
from app.domain.alerts.errors import (
    AlertNotActiveError,
    AlertNotFoundError,
    AlreadyDistributedError,
    InvalidAlertError,
    InvalidLiquidityError,
    InvalidSaleError,
    LiquidityNotConfiguredError,
    NoChangesError,
)
from app.infrastructure.alerts.alert_repository import AlertRepositoryAdapter
from app.infrastructure.alerts.liquidity_repository import LiquidityRepositoryAdapter
from app.infrastructure.notifications.delivery_log_repository import (
    DeliveryLogRepositoryAdapter,
)
from app.infrastructure.notifications.job_repository import (
    NotificationJobRepositoryAdapter,
)

ADMIN_ID = "admin-1"


@pytest.fixture
def alert_repo(engine):
    return AlertRepositoryAdapter(engine)


@pytest.fixture
def liquidity_repo(engine):
    return LiquidityRepositoryAdapter(engine)


@pytest.fixture
def job_repo(engine):
    return NotificationJobRepositoryAdapter(engine)


@pytest.fixture
def create_alert(alert_repo, liquidity_repo, job_repo):
    return CreateAlertUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))


@pytest.fixture
def configured_pool(liquidity_repo):
    ConfigureLiquidityUseCase(liquidity_repo).execute(
        ConfigureLiquidityCommand(admin_id=ADMIN_ID, pool="TraderCall", initial_liquidity=10_000.0)
    )


def _command(**overrides) -> CreateAlertCommand:
    fields = {
        "admin_id": ADMIN_ID,
        "symbol": "aapl",
        "action": "BUY",
        "stop_loss": 90.0,
        "take_profit": 130.0,
        "entry_price": 100.0,
    }
    fields.update(overrides)
    return CreateAlertCommand(**fields)


def _claim(job_repo):
    return job_repo.claim_next(datetime.now(timezone.utc) + timedelta(seconds=1), "test")


# ══════════════════════════════════════════════════════════════════════
# Create
# ══════════════════════════════════════════════════════════════════════


class TestCreateAlert:
    def test_price_alert_is_saved_and_announced(self, create_alert, alert_repo, job_repo):
        result = create_alert.execute(_command(email_message="Entramos"))

        stored = alert_repo.get(result.alert.id)
        assert stored.symbol == "AAPL"
        assert stored.current_price == 100.0
        assert stored.status is AlertStatus.ACTIVE
        assert result.notification_queued
        assert not result.liquidity_allocated

        job = _claim(job_repo)
        assert job.type == "alert_notification"
        assert job.payload["alert_id"] == str(result.alert.id)
        assert job.payload["overrides"] == {"message": "Entramos"}

    def test_range_alert_starts_at_range_edge(self, create_alert):
        buy = create_alert.execute(
            _command(tipo_alerta="rango", entry_price=None, price_min=95.0, price_max=105.0,
                     horario_cierre="16:00")
        ).alert
        sell = create_alert.execute(
            _command(action="SELL", tipo_alerta="rango", entry_price=None,
                     price_min=95.0, price_max=105.0)
        ).alert
        assert buy.current_price == 95.0
        assert sell.current_price == 105.0
        assert buy.horario_cierre == "17:30"

    def test_range_announcement_carries_bounds(self, create_alert, job_repo):
        create_alert.execute(
            _command(tipo_alerta="rango", entry_price=None, price_min=95.0, price_max=105.0)
        )
        job = _claim(job_repo)
        assert job.payload["overrides"]["price_range"] == {"min": 95.0, "max": 105.0}

    @pytest.mark.parametrize(
        "overrides",
        [
            {"symbol": "  "},
            {"action": "HOLD"},
            {"tipo": "Unknown"},
            {"tipo_alerta": "otro"},
            {"stop_loss": 0.0},
            {"entry_price": None},
            {"tipo_alerta": "rango", "entry_price": None, "price_min": 105.0, "price_max": 95.0},
            {"tipo_alerta": "rango", "entry_price": None, "price_min": 95.0},
        ],
    )
    def test_invalid_commands_are_rejected(self, create_alert, overrides):
        with pytest.raises(InvalidAlertError):
            create_alert.execute(_command(**overrides))

    def test_allocates_liquidity_when_pool_configured(
        self, create_alert, liquidity_repo, configured_pool
    ):
        result = create_alert.execute(_command(liquidity_percentage=10))

        assert result.liquidity_allocated
        liquidity = liquidity_repo.get(ADMIN_ID, AlertService.TRADER_CALL)
        dist = liquidity.find_distribution(result.alert.id)
        assert dist.allocated_amount == pytest.approx(1_000.0)
        assert dist.shares == pytest.approx(10.0)

    def test_missing_pool_does_not_fail_creation(self, create_alert, alert_repo):
        result = create_alert.execute(_command(liquidity_percentage=10))
        assert not result.liquidity_allocated
        assert alert_repo.get(result.alert.id) is not None

    def test_queue_failure_does_not_fail_creation(self, alert_repo, liquidity_repo):
        notifier = MagicMock()
        notifier.alert_published.side_effect = RuntimeError("queue down")
        use_case = CreateAlertUseCase(alert_repo, liquidity_repo, notifier)

        result = use_case.execute(_command())
        assert not result.notification_queued
        assert alert_repo.get(result.alert.id) is not None


# ══════════════════════════════════════════════════════════════════════
# Close, partial sale, discard
# ══════════════════════════════════════════════════════════════════════


class TestCloseAlert:
    def test_close_settles_liquidity(
        self, create_alert, alert_repo, liquidity_repo, job_repo, configured_pool
    ):
        alert = create_alert.execute(_command(liquidity_percentage=10)).alert
        _claim(job_repo)
        use_case = CloseAlertUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))

        result = use_case.execute(
            CloseAlertCommand(alert_id=alert.id, admin_id=ADMIN_ID, price=120.0,
                              reason="TAKE_PROFIT")
        )

        assert result.profit == pytest.approx(20.0)
        assert result.liquidity_released == pytest.approx(1_200.0)
        assert result.realized_profit == pytest.approx(200.0)
        stored = alert_repo.get(alert.id)
        assert stored.status is AlertStatus.CLOSED
        assert stored.exit_reason is ExitReason.TAKE_PROFIT
        liquidity = liquidity_repo.get(ADMIN_ID, AlertService.TRADER_CALL)
        assert liquidity.find_distribution(alert.id) is None

        job = _claim(job_repo)
        assert job.payload["overrides"]["skip_duplicate_check"] is True
        assert job.payload["overrides"]["price"] == 120.0

    def test_closed_alert_cannot_be_closed_again(
        self, create_alert, alert_repo, liquidity_repo, job_repo
    ):
        alert = create_alert.execute(_command()).alert
        use_case = CloseAlertUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))
        command = CloseAlertCommand(alert_id=alert.id, admin_id=ADMIN_ID, price=110.0)
        use_case.execute(command)
        with pytest.raises(AlertNotActiveError):
            use_case.execute(command)

    def test_rejects_unknown_reason(self, alert_repo, liquidity_repo, job_repo):
        use_case = CloseAlertUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))
        with pytest.raises(InvalidAlertError):
            use_case.execute(
                CloseAlertCommand(alert_id=uuid4(), admin_id=ADMIN_ID, price=10.0, reason="BORED")
            )

    def test_unknown_alert(self, alert_repo, liquidity_repo, job_repo):
        use_case = CloseAlertUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))
        with pytest.raises(AlertNotFoundError):
            use_case.execute(CloseAlertCommand(alert_id=uuid4(), admin_id=ADMIN_ID, price=10.0))


class TestPartialSale:
    def test_half_position_is_sold(
        self, create_alert, alert_repo, liquidity_repo, job_repo, configured_pool
    ):
        alert = create_alert.execute(_command(liquidity_percentage=10)).alert
        _claim(job_repo)
        use_case = PartialSaleUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))

        result = use_case.execute(
            PartialSaleCommand(alert_id=alert.id, admin_id=ADMIN_ID, percentage=50, price=110.0)
        )

        assert result.shares_sold == 5
        assert result.shares_remaining == pytest.approx(5.0)
        assert result.liquidity_released == pytest.approx(550.0)
        assert result.realized_profit == pytest.approx(50.0)
        assert result.new_allocated_amount == pytest.approx(500.0)

        stored = alert_repo.get(alert.id)
        assert stored.participation_percentage == 50.0
        assert stored.status is AlertStatus.ACTIVE
        assert len(stored.partial_sales) == 1

        job = _claim(job_repo)
        assert job.payload["overrides"]["action"] == "SELL"
        assert job.payload["overrides"]["sold_percentage"] == 50

    def test_two_half_sales_liquidate_fractional_shares(
        self, create_alert, alert_repo, liquidity_repo, job_repo, configured_pool
    ):
        alert = create_alert.execute(
            _command(entry_price=150.0, take_profit=200.0, liquidity_percentage=10)
        ).alert
        use_case = PartialSaleUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))
        sale = PartialSaleCommand(alert_id=alert.id, admin_id=ADMIN_ID, percentage=50, price=160.0)

        first = use_case.execute(sale)
        assert first.shares_sold == 3
        assert first.alert.status is AlertStatus.ACTIVE

        second = use_case.execute(sale)
        assert second.shares_sold == pytest.approx(1000.0 / 150.0 - 3)
        assert second.shares_remaining == 0

        stored = alert_repo.get(alert.id)
        assert stored.status is AlertStatus.CLOSED
        assert stored.final_price == 160.0
        assert stored.profit == pytest.approx(10.0 / 150.0 * 100)
        assert stored.exit_reason is ExitReason.MANUAL

        liquidity = liquidity_repo.get(ADMIN_ID, AlertService.TRADER_CALL)
        assert liquidity.find_distribution(alert.id) is None
        assert liquidity.distributed_liquidity == 0

    def test_overselling_leaves_liquidity_untouched(
        self, create_alert, alert_repo, liquidity_repo, job_repo, configured_pool
    ):
        alert = create_alert.execute(_command(liquidity_percentage=10)).alert
        use_case = PartialSaleUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))
        use_case.execute(
            PartialSaleCommand(alert_id=alert.id, admin_id=ADMIN_ID, percentage=50, price=110.0)
        )
        use_case.execute(
            PartialSaleCommand(alert_id=alert.id, admin_id=ADMIN_ID, percentage=25, price=110.0)
        )

        with pytest.raises(InvalidSaleError):
            use_case.execute(
                PartialSaleCommand(alert_id=alert.id, admin_id=ADMIN_ID, percentage=50, price=110.0)
            )

        dist = liquidity_repo.get(ADMIN_ID, AlertService.TRADER_CALL).find_distribution(alert.id)
        assert dist.shares == pytest.approx(4.0)

    def test_requires_holdings(self, create_alert, alert_repo, liquidity_repo, job_repo):
        alert = create_alert.execute(_command()).alert
        use_case = PartialSaleUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))
        with pytest.raises(InvalidSaleError):
            use_case.execute(
                PartialSaleCommand(alert_id=alert.id, admin_id=ADMIN_ID, percentage=25, price=110.0)
            )

    def test_only_quarter_or_half(self, alert_repo, liquidity_repo, job_repo):
        use_case = PartialSaleUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo))
        with pytest.raises(InvalidSaleError):
            use_case.execute(
                PartialSaleCommand(alert_id=uuid4(), admin_id=ADMIN_ID, percentage=30, price=110.0)
            )


class TestDiscardAlert:
    def test_discard(self, create_alert, alert_repo):
        alert = create_alert.execute(_command()).alert
        DiscardAlertUseCase(alert_repo).execute(
            DiscardAlertCommand(alert_id=alert.id, reason="  Gap bajista ", price=98.0)
        )
        stored = alert_repo.get(alert.id)
        assert stored.status is AlertStatus.DESCARTADA
        assert stored.discard_reason == "Gap bajista"
        assert stored.discard_price == 98.0

    def test_closed_alert_keeps_its_outcome(self, create_alert, alert_repo, liquidity_repo, job_repo):
        alert = create_alert.execute(_command()).alert
        CloseAlertUseCase(alert_repo, liquidity_repo, NotificationJobQueue(job_repo)).execute(
            CloseAlertCommand(alert_id=alert.id, admin_id=ADMIN_ID, price=120.0)
        )

        with pytest.raises(AlertNotActiveError):
            DiscardAlertUseCase(alert_repo).execute(
                DiscardAlertCommand(alert_id=alert.id, reason="tarde", price=98.0)
            )
        assert alert_repo.get(alert.id).status is AlertStatus.CLOSED

    def test_reason_required(self, alert_repo):
        with pytest.raises(InvalidAlertError):
            DiscardAlertUseCase(alert_repo).execute(
                DiscardAlertCommand(alert_id=uuid4(), reason=" ", price=98.0)
            )

    def test_unknown_alert(self, alert_repo):
        with pytest.raises(AlertNotFoundError):
            DiscardAlertUseCase(alert_repo).execute(
                DiscardAlertCommand(alert_id=uuid4(), reason="x", price=98.0)
            )


# ══════════════════════════════════════════════════════════════════════
# Edit, price update, listing, range breaks
# ══════════════════════════════════════════════════════════════════════


class TestEditAlert:
    def test_edit_records_history(self, create_alert, alert_repo):
        alert = create_alert.execute(_command()).alert
        edited = EditAlertUseCase(alert_repo).execute(
            EditAlertCommand(alert_id=alert.id, editor="admin@x.com", stop_loss=95.0)
        )
        assert edited.stop_loss == 95.0
        stored = alert_repo.get(alert.id)
        assert stored.stop_loss == 95.0
        assert "stop_loss" in stored.price_change_history[-1].reason

    def test_entry_price_change_moves_current_price(self, create_alert, alert_repo):
        alert = create_alert.execute(_command()).alert
        edited = EditAlertUseCase(alert_repo).execute(
            EditAlertCommand(alert_id=alert.id, editor="admin@x.com", entry_price=104.0)
        )
        assert edited.entry_price == 104.0
        assert edited.current_price == 104.0

    def test_no_changes(self, create_alert, alert_repo):
        alert = create_alert.execute(_command()).alert
        with pytest.raises(NoChangesError):
            EditAlertUseCase(alert_repo).execute(
                EditAlertCommand(alert_id=alert.id, editor="admin@x.com", stop_loss=90.0)
            )

    def test_update_price(self, create_alert, alert_repo):
        alert = create_alert.execute(_command()).alert
        updated = UpdateAlertPriceUseCase(alert_repo).execute(
            UpdateAlertPriceCommand(alert_id=alert.id, editor="admin@x.com", price=110.0)
        )
        assert updated.profit == pytest.approx(10.0)
        assert alert_repo.get(alert.id).current_price == 110.0


class TestListAlerts:
    def test_filters_by_status_and_service(self, create_alert, alert_repo):
        first = create_alert.execute(_command()).alert
        create_alert.execute(_command(symbol="msft"))
        create_alert.execute(_command(symbol="gld", tipo="SmartMoney"))
        DiscardAlertUseCase(alert_repo).execute(
            DiscardAlertCommand(alert_id=first.id, reason="x", price=99.0)
        )
        use_case = ListAlertsUseCase(alert_repo)

        everything = use_case.execute(ListAlertsQuery())
        active_tc = use_case.execute(ListAlertsQuery(tipo="TraderCall", status="active"))

        assert everything.total == 3
        assert [a.symbol for a in active_tc.alerts] == ["MSFT"]

    def test_page_size_is_capped(self, alert_repo):
        result = ListAlertsUseCase(alert_repo).execute(ListAlertsQuery(limit=10_000))
        assert result.limit == 200

    def test_unknown_status(self, alert_repo):
        with pytest.raises(InvalidAlertError):
            ListAlertsUseCase(alert_repo).execute(ListAlertsQuery(status="PAUSED"))


class TestCheckRangeBreaks:
    def test_out_of_range_alerts_are_dismissed(self, create_alert, alert_repo):
        inside = create_alert.execute(
            _command(tipo_alerta="rango", entry_price=None, price_min=95.0, price_max=105.0)
        ).alert
        outside = create_alert.execute(
            _command(symbol="msft", tipo_alerta="rango", entry_price=None,
                     price_min=95.0, price_max=105.0)
        ).alert
        UpdateAlertPriceUseCase(alert_repo).execute(
            UpdateAlertPriceCommand(alert_id=outside.id, editor="admin@x.com", price=90.0)
        )

        report = CheckRangeBreaksUseCase(alert_repo).execute()

        assert report.checked == 2
        assert report.broken == 1
        assert report.closed == 1
        assert alert_repo.get(inside.id).status is AlertStatus.ACTIVE
        broken = alert_repo.get(outside.id)
        assert broken.status is AlertStatus.DESESTIMADA
        assert broken.exit_reason is ExitReason.RANGE_BREAK


# Monday 2026-10-19, 18:00 in Buenos Aires.
SESSION_END = datetime(2026, 10, 19, 21, 0, tzinfo=timezone.utc)


@pytest.fixture
def market_close(engine, alert_repo, liquidity_repo, user_repo, job_repo, email_sender, telegram):
    return MarketCloseUseCase(
        alert_repo=alert_repo,
        liquidity_repo=liquidity_repo,
        user_repo=user_repo,
        email_sender=email_sender,
        telegram=telegram,
        telegram_channels={"TraderCall": "@tradercall", "SmartMoney": "@smartmoney"},
        notifier=NotificationJobQueue(job_repo),
        delivery_log=DeliveryLogRepositoryAdapter(engine),
    )


def _move_price(alert_repo, alert_id, price: float) -> None:
    UpdateAlertPriceUseCase(alert_repo).execute(
        UpdateAlertPriceCommand(alert_id=alert_id, editor="admin@x.com", price=price)
    )


class TestMarketClose:
    def test_fixes_final_price_and_reports_it(
        self, create_alert, alert_repo, market_close, make_user, email_sender, telegram
    ):
        publisher = make_user("admin@alertas.example", UserRole.ADMIN)
        alert = create_alert.execute(_command(admin_id=str(publisher.id))).alert
        _move_price(alert_repo, alert.id, 110.0)

        report = market_close.execute(now=SESSION_END)

        assert report.total_alerts == 1
        assert report.processed == 1
        assert report.emails_sent == 1
        stored = alert_repo.get(alert.id)
        assert stored.status is AlertStatus.ACTIVE
        assert stored.final_price == 110.0
        assert stored.profit == pytest.approx(10.0)
        assert stored.emails_sent["market_close"] is True
        assert telegram.messages == [
            ("@tradercall", "📊 Cierre de mercado: AAPL cerró a $110.00. Resultado: +10.00%")
        ]
        assert email_sender.sent[0]["to"] == publisher.email
        assert email_sender.sent[0]["subject"] == "🔔 Cierre de Mercado - AAPL - TraderCall"

    def test_range_entry_becomes_the_closing_price(self, create_alert, alert_repo, market_close):
        alert = create_alert.execute(
            _command(tipo_alerta="rango", entry_price=None, price_min=95.0, price_max=105.0)
        ).alert
        _move_price(alert_repo, alert.id, 100.0)

        market_close.execute(now=SESSION_END)

        stored = alert_repo.get(alert.id)
        assert stored.final_price == 100.0
        assert stored.entry_price == 100.0
        assert stored.entry_price_range is None
        assert stored.status is AlertStatus.ACTIVE

    def test_close_outside_range_dismisses_and_releases_liquidity(
        self, create_alert, alert_repo, liquidity_repo, job_repo, market_close, configured_pool
    ):
        alert = create_alert.execute(
            _command(tipo_alerta="rango", entry_price=None, price_min=95.0, price_max=105.0,
                     liquidity_percentage=10)
        ).alert
        _move_price(alert_repo, alert.id, 90.0)

        report = market_close.execute(now=SESSION_END)

        assert report.dismissed == 1
        stored = alert_repo.get(alert.id)
        assert stored.status is AlertStatus.DESESTIMADA
        assert stored.exit_reason is ExitReason.RANGE_BREAK
        assert stored.profit == 0.0
        liquidity = liquidity_repo.get(ADMIN_ID, AlertService.TRADER_CALL)
        assert liquidity.find_distribution(alert.id) is None
        assert liquidity.distributed_liquidity == 0.0

        titles = [_claim(job_repo).payload["overrides"].get("title") for _ in range(2)]
        assert "❌ Alerta desestimada AAPL" in titles

    def test_settled_alerts_are_not_settled_twice(self, create_alert, alert_repo, market_close, telegram):
        create_alert.execute(_command())

        market_close.execute(now=SESSION_END)
        again = market_close.execute(now=SESSION_END + timedelta(minutes=30))

        assert again.total_alerts == 0
        assert not again.no_activity_sent
        assert len(telegram.messages) == 1

    def test_quiet_day_is_announced_once(self, market_close, telegram):
        first = market_close.execute(now=SESSION_END)
        second = market_close.execute(now=SESSION_END + timedelta(minutes=30))

        assert first.no_activity_sent
        assert not second.no_activity_sent
        assert sorted(chat for chat, _ in telegram.messages) == ["@smartmoney", "@tradercall"]
        assert "Hoy no tenemos activos" in telegram.messages[0][1]

    def test_alerts_wait_for_their_closing_time(self, create_alert, alert_repo, market_close):
        alert = create_alert.execute(_command()).alert

        # 12:00 in Buenos Aires.
        report = market_close.execute(now=datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc))

        assert report.total_alerts == 0
        assert alert_repo.get(alert.id).final_price is None

    @pytest.mark.parametrize(
        "now",
        [
            datetime(2026, 10, 17, 21, 0, tzinfo=timezone.utc),  # Saturday
            datetime(2026, 10, 12, 21, 0, tzinfo=timezone.utc),  # holiday
        ],
    )
    def test_no_session_on_weekends_and_holidays(self, create_alert, market_close, telegram, now):
        create_alert.execute(_command())

        report = market_close.execute(now=now)

        assert not report.is_business_day
        assert report.total_alerts == 0
        assert telegram.messages == []

    def test_configured_holidays_replace_the_defaults(self):
        monday = datetime(2026, 10, 19).date()
        assert is_business_day(monday)
        assert not is_business_day(monday, holidays=["10-19"])
        assert is_business_day(datetime(2026, 10, 12).date(), holidays=[])


# ══════════════════════════════════════════════════════════════════════
# Liquidity
# ══════════════════════════════════════════════════════════════════════


class TestLiquidityUseCases:
    def test_get_creates_empty_record(self, liquidity_repo):
        liquidity = GetLiquidityUseCase(liquidity_repo).execute(ADMIN_ID, "SmartMoney")
        assert liquidity.initial_liquidity == 0.0
        assert liquidity_repo.get(ADMIN_ID, AlertService.SMART_MONEY) is not None

    def test_configure_applies_to_every_record_of_pool(self, liquidity_repo):
        GetLiquidityUseCase(liquidity_repo).execute("admin-2", "TraderCall")
        ConfigureLiquidityUseCase(liquidity_repo).execute(
            ConfigureLiquidityCommand(admin_id=ADMIN_ID, pool="TraderCall", initial_liquidity=5_000.0)
        )
        records = liquidity_repo.list_by_pool(AlertService.TRADER_CALL)
        assert len(records) == 2
        assert all(r.initial_liquidity == 5_000.0 for r in records)

    def test_configure_rejects_non_positive(self, liquidity_repo):
        with pytest.raises(InvalidLiquidityError):
            ConfigureLiquidityUseCase(liquidity_repo).execute(
                ConfigureLiquidityCommand(admin_id=ADMIN_ID, pool="TraderCall", initial_liquidity=0)
            )

    def test_distribute_once_per_alert(
        self, create_alert, alert_repo, liquidity_repo, configured_pool
    ):
        alert = create_alert.execute(_command()).alert
        use_case = DistributeLiquidityUseCase(alert_repo, liquidity_repo)
        command = DistributeLiquidityCommand(admin_id=ADMIN_ID, alert_id=alert.id, percentage=20)

        liquidity = use_case.execute(command)
        assert liquidity.distributed_liquidity == pytest.approx(2_000.0)
        with pytest.raises(AlreadyDistributedError):
            use_case.execute(command)

    def test_sell_requires_configured_pool(self, liquidity_repo):
        with pytest.raises(LiquidityNotConfiguredError):
            SellLiquiditySharesUseCase(liquidity_repo).execute(
                SellSharesCommand(admin_id=ADMIN_ID, pool="TraderCall", alert_id=uuid4(),
                                  shares=1, price=10.0)
            )

    def test_mark_to_market_sell_and_remove(
        self, create_alert, alert_repo, liquidity_repo, configured_pool
    ):
        alert = create_alert.execute(_command(liquidity_percentage=10)).alert
        UpdateAlertPriceUseCase(alert_repo).execute(
            UpdateAlertPriceCommand(alert_id=alert.id, editor="admin@x.com", price=110.0)
        )

        liquidity, updated = UpdateLiquidityPricesUseCase(alert_repo, liquidity_repo).execute(
            ADMIN_ID, "TraderCall"
        )
        assert updated == 1
        assert liquidity.find_distribution(alert.id).profit_loss == pytest.approx(100.0)

        sale = SellLiquiditySharesUseCase(liquidity_repo).execute(
            SellSharesCommand(admin_id=ADMIN_ID, pool="TraderCall", alert_id=alert.id,
                              shares=4, price=110.0)
        )
        assert sale.realized == pytest.approx(40.0)
        assert sale.remaining_shares == pytest.approx(6.0)

        summary = GetLiquiditySummaryUseCase(liquidity_repo).execute(ADMIN_ID, "TraderCall")
        assert summary.realized_profit_loss == pytest.approx(40.0)
        assert summary.active_distributions == 1

        remaining = RemoveDistributionUseCase(liquidity_repo).execute(
            ADMIN_ID, "TraderCall", alert.id
        )
        assert remaining.distributions == []

    def test_summary_without_record(self, liquidity_repo):
        summary = GetLiquiditySummaryUseCase(liquidity_repo).execute(ADMIN_ID, "SmartMoney")
        assert summary.total_distributions == 0
        assert summary.total_liquidity == 0.0

    def test_unknown_pool(self, liquidity_repo):
        with pytest.raises(InvalidLiquidityError):
            GetLiquidityUseCase(liquidity_repo).execute(ADMIN_ID, "Gold")
