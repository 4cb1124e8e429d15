"""
Use case: Fix final prices at the end of the trading session.

Input: None (sweeps ACTIVE alerts whose `horario_cierre` has passed).
Output: MarketCloseReport
Side effects: Persists final prices, dismisses range alerts whose close
    left the range (releasing their liquidity), posts to Telegram and
    emails the publishing admin. With nothing due, posts the daily
    "no activity" message once per day.
Failure cases: None raised; per-alert failures are counted and logged.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from app.application.alerts.dtos import MarketCloseReport
from app.domain.accounts.ports import UserRepository
from app.domain.alerts.entities import Alert
from app.domain.alerts.ports import (
    AlertNotificationPort,
    AlertRepository,
    LiquidityRepository,
)
from app.domain.notifications.ports import (
    DeliveryLogRepository,
    EmailSender,
    TelegramPublisher,
)
from app.domain.notifications.templates import (
    NO_MARKET_ACTIVITY_MESSAGE,
    format_telegram_market_close,
    render_market_close_email,
)

logger = logging.getLogger(__name__)

# Argentine market holidays as MM-DD.
DEFAULT_MARKET_HOLIDAYS = (
    "01-01", "01-06", "04-19", "05-01", "05-18", "06-19",
    "07-18", "08-25", "10-12", "11-02", "12-25",
)


def is_business_day(day: date, holidays: Iterable[str] = DEFAULT_MARKET_HOLIDAYS) -> bool:
    """Weekdays that are not listed market holidays."""
    if day.weekday() >= 5:
        return False
    return day.strftime("%m-%d") not in set(holidays)


class MarketCloseUseCase:
    """Settles every due ACTIVE alert at its last known price.

    There is no market data feed; the closing price is the alert's
    current price as last updated by an admin.
    """

    def __init__(
        self,
        alert_repo: AlertRepository,
        liquidity_repo: LiquidityRepository,
        user_repo: UserRepository,
        email_sender: EmailSender,
        telegram: TelegramPublisher,
        telegram_channels: dict[str, str],
        notifier: AlertNotificationPort,
        delivery_log: DeliveryLogRepository,
        market_timezone: str = "America/Argentina/Buenos_Aires",
        holidays: Iterable[str] = DEFAULT_MARKET_HOLIDAYS,
    ) -> None:
        self._alert_repo = alert_repo
        self._liquidity_repo = liquidity_repo
        self._user_repo = user_repo
        self._email_sender = email_sender
        self._telegram = telegram
        self._telegram_channels = telegram_channels
        self._notifier = notifier
        self._delivery_log = delivery_log
        self._timezone = ZoneInfo(market_timezone)
        self._holidays = tuple(holidays)

    def execute(self, now: Optional[datetime] = None) -> MarketCloseReport:
        """Run the end-of-session sweep.

        Args:
            now: Reference instant (UTC). Defaults to the current time.

        Returns:
            MarketCloseReport with the per-outcome counts.
        """
        now = now or datetime.now(timezone.utc)
        local = now.astimezone(self._timezone)
        if not is_business_day(local.date(), self._holidays):
            logger.info("Market close skipped: %s is not a business day", local.date())
            return MarketCloseReport(is_business_day=False)

        minutes = local.hour * 60 + local.minute
        due = [
            alert
            for alert in self._alert_repo.list_active()
            if alert.final_price is None and minutes >= alert.close_minutes
        ]
        if not due:
            sent = self._announce_no_activity(local.date(), now)
            return MarketCloseReport(no_activity_sent=sent)

        processed = 0
        dismissed = 0
        emails = 0
        errors = 0
        for alert in due:
            try:
                price = alert.current_price
                check = alert.check_range_break(price)
                profit: Optional[float] = None
                if check.is_broken:
                    alert.dismiss_at_market_close(price, check.reason, now)
                    self._alert_repo.save(alert)
                    self._release_liquidity(alert)
                    self._announce_dismissal(alert, check.reason)
                    dismissed += 1
                else:
                    profit = alert.fix_market_close_price(price)
                    self._alert_repo.save(alert)
                processed += 1
                logger.info(
                    "Market close: alert=%s symbol=%s price=%.4f dismissed=%s",
                    alert.id,
                    alert.symbol,
                    price,
                    check.is_broken,
                )

                self._post_close(alert, price, profit)
                if self._email_publisher(alert, price, profit, check.is_broken):
                    emails += 1
            except Exception:
                errors += 1
                logger.exception("Market close failed for alert %s", alert.id)

        if processed:
            self._delivery_log.record(self._session_key(local.date()), now)
        logger.info(
            "Market close done: due=%d processed=%d dismissed=%d emails=%d errors=%d",
            len(due),
            processed,
            dismissed,
            emails,
            errors,
        )
        return MarketCloseReport(
            total_alerts=len(due),
            processed=processed,
            dismissed=dismissed,
            emails_sent=emails,
            errors=errors,
        )

    def _release_liquidity(self, alert: Alert) -> None:
        for liquidity in self._liquidity_repo.find_by_alert(alert.id):
            liquidity.remove_distribution(alert.id)
            self._liquidity_repo.save(liquidity)
            logger.info("Released liquidity of dismissed alert %s (%s)", alert.id, liquidity.id)

    def _announce_dismissal(self, alert: Alert, reason: str) -> None:
        try:
            self._notifier.alert_published(
                alert,
                {
                    "title": f"❌ Alerta desestimada {alert.symbol}",
                    "message": f"{alert.symbol} cerró fuera del rango de entrada. {reason}",
                    "price": alert.current_price,
                    "skip_duplicate_check": True,
                },
            )
        except Exception:
            logger.exception("Could not enqueue dismissal of alert %s", alert.id)

    def _post(self, chat_id: str, text: str) -> bool:
        if not self._telegram.enabled or not chat_id:
            return False
        try:
            return self._telegram.send_message(chat_id, text)
        except Exception:
            logger.exception("Telegram post to %s failed", chat_id)
            return False

    def _post_close(self, alert: Alert, price: float, profit: Optional[float]) -> None:
        chat_id = self._telegram_channels.get(alert.tipo.value, "")
        self._post(chat_id, format_telegram_market_close(alert.symbol, price, profit))

    def _email_publisher(
        self, alert: Alert, price: float, profit: Optional[float], dismissed: bool
    ) -> bool:
        if not alert.created_by:
            return False
        try:
            publisher = self._user_repo.get(UUID(alert.created_by))
        except ValueError:
            publisher = None
        if publisher is None:
            logger.warning("Publisher %s of alert %s not found", alert.created_by, alert.id)
            return False

        subject, html, text = render_market_close_email(alert, price, profit, dismissed)
        try:
            self._email_sender.send(publisher.email, subject, html, text)
            return True
        except Exception:
            logger.exception("Market close email to %s failed", publisher.email)
            return False

    @staticmethod
    def _session_key(day: date) -> str:
        return f"market_close:session:{day.isoformat()}"

    def _announce_no_activity(self, day: date, now: datetime) -> bool:
        """Post the quiet-day message unless today already had a close or the post."""
        key = f"market_close:no_activity:{day.isoformat()}"
        since = now - timedelta(days=1)
        if self._delivery_log.was_sent(key, since) or self._delivery_log.was_sent(
            self._session_key(day), since
        ):
            logger.info("No-activity message not needed for %s", day)
            return False

        posted = False
        for service, chat_id in self._telegram_channels.items():
            if self._post(chat_id, NO_MARKET_ACTIVITY_MESSAGE):
                posted = True
                logger.info("Posted no-activity message to %s", service)
        if posted:
            self._delivery_log.record(key, now)
        return posted
