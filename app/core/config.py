"""
Application configuration.

Loads settings from environment variables and .env file.
Every tunable lives here; modules import `settings` instead of reading the environment.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_heavy: Rate limit for fan-out and webhook endpoints.
        rate_limit_enabled: False disables rate limiting (tests, trusted networks).
        database_url: Explicit SQLAlchemy URL. Built from postgres_* when unset.
        cron_secret: Shared secret required by the /cron endpoints.
        base_url: Public site URL used in email links and checkout redirects.
        email_testing_mode: When True, alert emails only go to admins.
        telegram_enabled: Master switch for the Telegram channel.
        scheduler_enabled: Start the background job scheduler on startup.
        market_close_hour: Local hour of the weekday end-of-session sweep.
        market_holidays: MM-DD dates with no trading session.
        training_reminder_lookahead_hours: How far ahead class reminders look.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "Alertas Trading"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_default: str = "60/minute"
    rate_limit_heavy: str = "10/minute"
    rate_limit_enabled: bool = True

    # Database
    database_url: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "alertas"

    # Cron / public URL
    cron_secret: Optional[str] = None
    base_url: str = "http://localhost:3000"

    # Email (SMTP)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    email_from: str = "no-reply@alertas.local"
    email_from_name: str = "Alertas Trading"
    admin_email: Optional[str] = None
    email_testing_mode: bool = False

    # Telegram
    telegram_enabled: bool = False
    telegram_bot_token: Optional[str] = None
    telegram_channel_tradercall: str = ""
    telegram_channel_smartmoney: str = ""

    # Mercado Pago
    mercadopago_access_token: Optional[str] = None
    mercadopago_api_url: str = "https://api.mercadopago.com"
    subscription_price_tradercall: float = 15000.0
    subscription_price_smartmoney: float = 20000.0
    subscription_price_cashflow: float = 20000.0

    # Scheduler
    scheduler_enabled: bool = False
    scheduler_timezone: str = "America/Argentina/Buenos_Aires"
    notification_jobs_interval_seconds: int = 60
    notification_jobs_batch_size: int = 10
    range_check_interval_minutes: int = 15
    market_close_hour: int = 17
    market_close_minute: int = 35
    market_holidays: list[str] = [
        "01-01", "01-06", "04-19", "05-01", "05-18", "06-19",
        "07-18", "08-25", "10-12", "11-02", "12-25",
    ]
    subscription_reminders_hour: int = 9
    training_reminders_hour: int = 10
    training_reminder_lookahead_hours: int = 24

    def get_database_url(self) -> str:
        """Return the effective database URL.

        Priority:
        1. Explicit `DATABASE_URL`
        2. Build DSN from postgres_* values (useful for Docker Compose or local setups)
        """
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}@"
            f"{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    def subscription_prices(self) -> dict[str, float]:
        """Monthly price per subscription service."""
        return {
            "TraderCall": self.subscription_price_tradercall,
            "SmartMoney": self.subscription_price_smartmoney,
            "CashFlow": self.subscription_price_cashflow,
        }

    def telegram_channels(self) -> dict[str, str]:
        """Telegram channel id per alert service."""
        return {
            "TraderCall": self.telegram_channel_tradercall,
            "SmartMoney": self.telegram_channel_smartmoney,
        }


settings = Settings()
