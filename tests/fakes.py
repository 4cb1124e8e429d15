"""
In-memory stand-ins for the outbound adapters used across the test suite.
"""

from typing import Optional
from unittest.mock import MagicMock

from app.domain.billing.entities import CheckoutPreference
from app.domain.billing.ports import PaymentGateway
from app.domain.notifications.ports import EmailSender, TelegramPublisher

CRON_SECRET = "test-cron-secret"


class FakeEmailSender(EmailSender):
    """Records every email instead of sending it."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: list[dict[str, str]] = []
        self._error = error

    def send(self, to: str, subject: str, html: str, text: str = "") -> None:
        if self._error is not None:
            raise self._error
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})


class FakeTelegram(TelegramPublisher):
    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self.messages: list[tuple[str, str]] = []
        self.photos: list[tuple[str, str, str]] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def send_message(self, chat_id: str, text: str) -> bool:
        self.messages.append((chat_id, text))
        return True

    def send_photo(self, chat_id: str, photo_url: str, caption: str) -> bool:
        self.photos.append((chat_id, photo_url, caption))
        return True


def make_gateway() -> MagicMock:
    gateway = MagicMock(spec=PaymentGateway)
    gateway.create_preference.return_value = CheckoutPreference(
        preference_id="pref-1",
        init_point="https://checkout.example/pref-1",
        sandbox_init_point="https://sandbox.checkout.example/pref-1",
    )
    gateway.get_payment.return_value = None
    gateway.get_merchant_order_payment_id.return_value = None
    return gateway


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
