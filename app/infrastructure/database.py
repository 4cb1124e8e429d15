"""
Database plumbing shared by every repository adapter.

Builds the SQLAlchemy engine from settings, creates the schema
idempotently and converts values at the storage boundary.
Nested document collections are stored as JSON text columns.
"""

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from app.core.config import settings

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id                   VARCHAR(36) PRIMARY KEY,
        email                VARCHAR(255) NOT NULL UNIQUE,
        name                 VARCHAR(255) NOT NULL DEFAULT '',
        role                 VARCHAR(20)  NOT NULL DEFAULT 'normal',
        api_token_hash       VARCHAR(64),
        active_subscriptions TEXT NOT NULL DEFAULT '[]',
        trials_used          TEXT NOT NULL DEFAULT '{}',
        subscription_expiry  VARCHAR(40),
        last_payment_date    VARCHAR(40),
        created_at           VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS alerts (
        id                       VARCHAR(36) PRIMARY KEY,
        symbol                   VARCHAR(20) NOT NULL,
        action                   VARCHAR(4)  NOT NULL,
        tipo                     VARCHAR(20) NOT NULL,
        tipo_alerta              VARCHAR(10) NOT NULL,
        status                   VARCHAR(20) NOT NULL,
        entry_price              DOUBLE PRECISION,
        range_min                DOUBLE PRECISION,
        range_max                DOUBLE PRECISION,
        current_price            DOUBLE PRECISION NOT NULL DEFAULT 0,
        stop_loss                DOUBLE PRECISION NOT NULL,
        take_profit              DOUBLE PRECISION NOT NULL,
        profit                   DOUBLE PRECISION NOT NULL DEFAULT 0,
        analysis                 TEXT NOT NULL DEFAULT '',
        alert_date               VARCHAR(40) NOT NULL,
        horario_cierre           VARCHAR(5)  NOT NULL DEFAULT '17:30',
        exit_price               DOUBLE PRECISION,
        exit_date                VARCHAR(40),
        exit_reason              VARCHAR(20),
        final_price              DOUBLE PRECISION,
        available_for_purchase   BOOLEAN NOT NULL DEFAULT FALSE,
        participation_percentage DOUBLE PRECISION NOT NULL DEFAULT 100,
        partial_sales            TEXT NOT NULL DEFAULT '[]',
        realized_profit          DOUBLE PRECISION NOT NULL DEFAULT 0,
        unrealized_profit        DOUBLE PRECISION NOT NULL DEFAULT 0,
        discard_reason           TEXT,
        discard_price            DOUBLE PRECISION,
        dismissal_reason         TEXT,
        price_change_history     TEXT NOT NULL DEFAULT '[]',
        emails_sent              TEXT NOT NULL DEFAULT '{}',
        created_by               VARCHAR(36),
        created_at               VARCHAR(40) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_alerts_tipo_status ON alerts (tipo, status)",
    """
    CREATE TABLE IF NOT EXISTS liquidity (
        id                           VARCHAR(36) PRIMARY KEY,
        pool                         VARCHAR(20) NOT NULL,
        created_by                   VARCHAR(36) NOT NULL,
        initial_liquidity            DOUBLE PRECISION NOT NULL DEFAULT 0,
        total_liquidity              DOUBLE PRECISION NOT NULL DEFAULT 0,
        available_liquidity          DOUBLE PRECISION NOT NULL DEFAULT 0,
        distributed_liquidity        DOUBLE PRECISION NOT NULL DEFAULT 0,
        distributions                TEXT NOT NULL DEFAULT '[]',
        total_profit_loss            DOUBLE PRECISION NOT NULL DEFAULT 0,
        total_profit_loss_percentage DOUBLE PRECISION NOT NULL DEFAULT 0,
        created_at                   VARCHAR(40) NOT NULL,
        updated_at                   VARCHAR(40) NOT NULL,
        UNIQUE (created_by, pool)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id               VARCHAR(36) PRIMARY KEY,
        title            VARCHAR(100) NOT NULL,
        message          VARCHAR(500) NOT NULL,
        type             VARCHAR(20)  NOT NULL,
        priority         VARCHAR(10)  NOT NULL,
        target_users     VARCHAR(20)  NOT NULL,
        is_active        BOOLEAN NOT NULL DEFAULT TRUE,
        created_by       VARCHAR(255) NOT NULL,
        expires_at       VARCHAR(40),
        icon             VARCHAR(16),
        action_url       TEXT,
        action_text      VARCHAR(100),
        is_automatic     BOOLEAN NOT NULL DEFAULT FALSE,
        related_alert_id VARCHAR(36),
        email_sent       BOOLEAN NOT NULL DEFAULT FALSE,
        read_by          TEXT NOT NULL DEFAULT '[]',
        dismissed_by     TEXT NOT NULL DEFAULT '[]',
        total_reads      INTEGER NOT NULL DEFAULT 0,
        metadata         TEXT NOT NULL DEFAULT '{}',
        created_at       VARCHAR(40) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_notifications_target ON notifications (target_users, is_active)",
    """
    CREATE TABLE IF NOT EXISTS notification_jobs (
        id              VARCHAR(36) PRIMARY KEY,
        type            VARCHAR(50) NOT NULL,
        status          VARCHAR(20) NOT NULL,
        payload         TEXT NOT NULL DEFAULT '{}',
        attempts        INTEGER NOT NULL DEFAULT 0,
        max_attempts    INTEGER NOT NULL DEFAULT 5,
        next_attempt_at VARCHAR(40) NOT NULL,
        locked_at       VARCHAR(40),
        lock_id         VARCHAR(64),
        last_error      TEXT,
        sent_at         VARCHAR(40),
        created_at      VARCHAR(40) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_jobs_due ON notification_jobs (status, next_attempt_at)",
    """
    CREATE TABLE IF NOT EXISTS delivery_log (
        message_key VARCHAR(255) NOT NULL,
        sent_at     VARCHAR(40)  NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_delivery_log_key ON delivery_log (message_key, sent_at)",
    """
    CREATE TABLE IF NOT EXISTS payments (
        id                     VARCHAR(36) PRIMARY KEY,
        user_id                VARCHAR(36),
        user_email             VARCHAR(255) NOT NULL DEFAULT '',
        service                VARCHAR(50)  NOT NULL,
        amount                 DOUBLE PRECISION NOT NULL,
        currency               VARCHAR(3)   NOT NULL DEFAULT 'ARS',
        status                 VARCHAR(20)  NOT NULL,
        mercadopago_payment_id VARCHAR(50),
        external_reference     VARCHAR(255) NOT NULL UNIQUE,
        payment_method_id      VARCHAR(50)  NOT NULL DEFAULT '',
        payment_type_id        VARCHAR(50)  NOT NULL DEFAULT '',
        installments           INTEGER NOT NULL DEFAULT 1,
        transaction_date       VARCHAR(40),
        expiry_date            VARCHAR(40),
        metadata               TEXT NOT NULL DEFAULT '{}',
        created_at             VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reports (
        id           VARCHAR(36) PRIMARY KEY,
        title        VARCHAR(255) NOT NULL,
        type         VARCHAR(10)  NOT NULL,
        category     VARCHAR(20)  NOT NULL,
        content      TEXT NOT NULL,
        summary      TEXT NOT NULL,
        status       VARCHAR(20)  NOT NULL,
        is_feature   BOOLEAN NOT NULL DEFAULT FALSE,
        author       VARCHAR(255) NOT NULL DEFAULT '',
        author_id    VARCHAR(36),
        articles     TEXT NOT NULL DEFAULT '[]',
        images       TEXT NOT NULL DEFAULT '[]',
        cover_image  TEXT,
        views        INTEGER NOT NULL DEFAULT 0,
        created_at   VARCHAR(40) NOT NULL,
        published_at VARCHAR(40)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS monthly_trainings (
        id                      VARCHAR(36) PRIMARY KEY,
        type                    VARCHAR(30) NOT NULL,
        title                   VARCHAR(255) NOT NULL,
        description             TEXT NOT NULL,
        month                   INTEGER NOT NULL,
        year                    INTEGER NOT NULL,
        max_students            INTEGER NOT NULL,
        price                   DOUBLE PRECISION NOT NULL,
        classes                 TEXT NOT NULL DEFAULT '[]',
        students                TEXT NOT NULL DEFAULT '[]',
        status                  VARCHAR(20) NOT NULL,
        registration_open_date  VARCHAR(40),
        registration_close_date VARCHAR(40),
        created_by              VARCHAR(255) NOT NULL DEFAULT '',
        created_at              VARCHAR(40) NOT NULL,
        UNIQUE (month, year, type)
    )
    """,
]


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Build (once) a SQLAlchemy engine from application settings."""
    return create_engine(settings.get_database_url(), pool_pre_ping=True)


def ensure_schema(engine: Engine) -> None:
    """Create missing tables and indexes (idempotent)."""
    with engine.begin() as conn:
        for ddl in SCHEMA_STATEMENTS:
            conn.execute(text(ddl))
    logger.info("Database schema verified (%d statements).", len(SCHEMA_STATEMENTS))


# ══════════════════════════════════════════════════════════════════════
# Value conversion at the storage boundary
# ══════════════════════════════════════════════════════════════════════


def to_db_datetime(value: Optional[datetime]) -> Optional[str]:
    """Store timestamps as ISO-8601 UTC strings so ordering is lexical."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_db_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_json(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def from_json(value: Any, default: Any) -> Any:
    if value is None or value == "":
        return default
    if isinstance(value, (dict, list)):
        return value
    return json.loads(value)


def to_optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)
