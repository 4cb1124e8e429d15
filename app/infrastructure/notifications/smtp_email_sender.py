"""
Adapter: SMTP email sender.

Implements EmailSender port with smtplib. Throttling replies from the
server (421, 450, 451, 452) surface as EmailRateLimitError so callers can
back off before the next message.
"""

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from app.domain.notifications.errors import EmailDeliveryError, EmailRateLimitError
from app.domain.notifications.ports import EmailSender

logger = logging.getLogger(__name__)

RATE_LIMIT_CODES = frozenset({421, 450, 451, 452})


class SmtpEmailSender(EmailSender):
    """Sends multipart (text + HTML) emails through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        from_name: str = "",
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 20.0,
    ) -> None:
        self._host = host
        self._port = port
        self._from_address = from_address
        self._from_name = from_name
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def _build_message(self, to: str, subject: str, html: str, text: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self._from_name, self._from_address))
        msg["To"] = to
        if text:
            msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def send(self, to: str, subject: str, html: str, text: str = "") -> None:
        """Send a multipart email over SMTP.

        Args:
            to: Recipient address.
            subject: Subject line.
            html: HTML body.
            text: Optional plain-text alternative.

        Raises:
            EmailRateLimitError: If the server throttles the sender or recipient.
            EmailDeliveryError: For any other SMTP or connection failure.
        """
        msg = self._build_message(to, subject, html, text)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.sendmail(self._from_address, [to], msg.as_string())
        except smtplib.SMTPResponseException as exc:
            if exc.smtp_code in RATE_LIMIT_CODES:
                logger.warning("SMTP throttled sending to %s (code %s)", to, exc.smtp_code)
                raise EmailRateLimitError(to, f"SMTP {exc.smtp_code}") from exc
            raise EmailDeliveryError(to, f"SMTP {exc.smtp_code}") from exc
        except smtplib.SMTPRecipientsRefused as exc:
            codes = {code for code, _ in exc.recipients.values()}
            if codes & RATE_LIMIT_CODES:
                raise EmailRateLimitError(to, "recipient throttled") from exc
            raise EmailDeliveryError(to, "recipient refused") from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(to, str(exc)) from exc
        logger.debug("Email sent to %s: %s", to, subject)
