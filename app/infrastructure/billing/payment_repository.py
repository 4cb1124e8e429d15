"""
Adapter: Payment repository.

Implements PaymentRepository port on the payments table, keyed by the
external reference sent to the payment processor.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.domain.billing.entities import Payment, PaymentStatus
from app.domain.billing.ports import PaymentRepository
from app.infrastructure.database import (
    from_db_datetime,
    from_json,
    to_db_datetime,
    to_json,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, user_id, user_email, service, amount, currency, status,
    mercadopago_payment_id, external_reference, payment_method_id,
    payment_type_id, installments, transaction_date, expiry_date,
    metadata, created_at
"""


def _row_to_payment(row: Any) -> Payment:
    return Payment(
        id=UUID(row[0]),
        user_id=UUID(row[1]) if row[1] else None,
        user_email=row[2] or "",
        service=row[3],
        amount=float(row[4]),
        currency=row[5],
        status=PaymentStatus.parse(row[6]),
        mercadopago_payment_id=row[7],
        external_reference=row[8],
        payment_method_id=row[9] or "",
        payment_type_id=row[10] or "",
        installments=int(row[11] or 1),
        transaction_date=from_db_datetime(row[12]),
        expiry_date=from_db_datetime(row[13]),
        metadata=from_json(row[14], {}),
        created_at=from_db_datetime(row[15]),
    )


class PaymentRepositoryAdapter(PaymentRepository):
    """SQL adapter for the payments table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get_by_external_reference(self, reference: str) -> Optional[Payment]:
        query = text(f"SELECT {_COLUMNS} FROM payments WHERE external_reference = :reference")
        with self._engine.connect() as conn:
            row = conn.execute(query, {"reference": reference}).fetchone()
        return _row_to_payment(row) if row else None

    def save(self, payment: Payment) -> None:
        query = text(
            """
            INSERT INTO payments (
                id, user_id, user_email, service, amount, currency, status,
                mercadopago_payment_id, external_reference, payment_method_id,
                payment_type_id, installments, transaction_date, expiry_date,
                metadata, created_at
            )
            VALUES (
                :id, :user_id, :user_email, :service, :amount, :currency, :status,
                :mercadopago_payment_id, :external_reference, :payment_method_id,
                :payment_type_id, :installments, :transaction_date, :expiry_date,
                :metadata, :created_at
            )
            ON CONFLICT (id)
            DO UPDATE SET
                user_id = EXCLUDED.user_id,
                user_email = EXCLUDED.user_email,
                status = EXCLUDED.status,
                mercadopago_payment_id = EXCLUDED.mercadopago_payment_id,
                payment_method_id = EXCLUDED.payment_method_id,
                payment_type_id = EXCLUDED.payment_type_id,
                installments = EXCLUDED.installments,
                transaction_date = EXCLUDED.transaction_date,
                expiry_date = EXCLUDED.expiry_date,
                metadata = EXCLUDED.metadata
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                query,
                {
                    "id": str(payment.id),
                    "user_id": str(payment.user_id) if payment.user_id else None,
                    "user_email": payment.user_email,
                    "service": payment.service,
                    "amount": payment.amount,
                    "currency": payment.currency,
                    "status": payment.status.value,
                    "mercadopago_payment_id": payment.mercadopago_payment_id,
                    "external_reference": payment.external_reference,
                    "payment_method_id": payment.payment_method_id,
                    "payment_type_id": payment.payment_type_id,
                    "installments": payment.installments,
                    "transaction_date": to_db_datetime(payment.transaction_date),
                    "expiry_date": to_db_datetime(payment.expiry_date),
                    "metadata": to_json(payment.metadata),
                    "created_at": to_db_datetime(payment.created_at),
                },
            )
        logger.debug(
            "Saved payment: reference=%s status=%s",
            payment.external_reference,
            payment.status.value,
        )
