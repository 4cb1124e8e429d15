"""
Adapter: Telegram Bot API publisher.

Implements TelegramPublisher port over httpx. Every call reports success
as a bool; network and API failures are logged, never raised.
"""

import logging
from typing import Any, Optional

import httpx

from app.domain.notifications.ports import TelegramPublisher

logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"


class TelegramBotPublisher(TelegramPublisher):
    """Posts Markdown messages and photos to Telegram channels."""

    def __init__(
        self,
        bot_token: Optional[str],
        enabled: bool = True,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._bot_token = bot_token
        self._enabled = enabled
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return self._enabled and bool(self._bot_token)

    def send_message(self, chat_id: str, text: str) -> bool:
        """Post Markdown text to a chat. False when disabled or rejected."""
        return self._call(
            "sendMessage",
            chat_id,
            {"chat_id": chat_id, "text": text, "parse_mode": "Markdown"},
        )

    def send_photo(self, chat_id: str, photo_url: str, caption: str) -> bool:
        return self._call(
            "sendPhoto",
            chat_id,
            {
                "chat_id": chat_id,
                "photo": photo_url,
                "caption": caption,
                "parse_mode": "Markdown",
            },
        )

    def _call(self, method: str, chat_id: str, payload: dict[str, Any]) -> bool:
        if not self.enabled:
            logger.debug("Telegram disabled; skipping %s", method)
            return False
        if not chat_id:
            logger.warning("No Telegram channel configured for %s", method)
            return False

        url = f"{API_BASE}/bot{self._bot_token}/{method}"
        try:
            resp = self._client.post(url, json=payload)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Telegram %s to %s failed: %s", method, chat_id, exc)
            return False

        if resp.status_code != 200 or not data.get("ok"):
            logger.error(
                "Telegram %s to %s rejected: %s",
                method,
                chat_id,
                data.get("description", resp.status_code),
            )
            return False
        logger.info("Telegram %s delivered to %s", method, chat_id)
        return True
