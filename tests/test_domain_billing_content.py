"""
Tests for the billing and content domain layers.

External payment references, payment statuses, report formatting and
monthly training enrollment.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from app.domain.billing.entities import (
    CheckoutType,
    GatewayPayment,
    Payment,
    PaymentStatus,
    build_external_reference,
    build_training_reference,
    parse_external_reference,
    trial_price,
)
from app.domain.billing.errors import TrialNotAvailableError
from app.domain.content.entities import (
    MonthlyTraining,
    StudentPaymentStatus,
    TrainingClass,
    TrainingStatus,
)
from app.domain.content.errors import EnrollmentError, InvalidContentError
from app.domain.content.formatting import format_content, plain_text

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════════════
# Billing
# ══════════════════════════════════════════════════════════════════════


class TestExternalReference:
    def test_subscription_reference_roundtrip(self):
        ref = build_external_reference(CheckoutType.SUBSCRIPTION, "SmartMoney", "u1", 1700)
        assert ref == "subscription_SmartMoney_u1_1700"
        parsed = parse_external_reference(ref)
        assert (parsed.kind, parsed.target, parsed.user_id) == ("subscription", "SmartMoney", "u1")

    def test_trial_reference(self):
        ref = build_external_reference(CheckoutType.TRIAL, "TraderCall", "u1", 1700)
        assert ref == "trial_TraderCall_u1_1700"
        assert parse_external_reference(ref).kind == "trial"

    def test_training_reference(self):
        ref = build_training_reference("t-9", "u1", 1700)
        assert ref == "MTS_t-9_u1_1700"
        parsed = parse_external_reference(ref)
        assert parsed.kind == "monthly_training"
        assert parsed.target == "t-9"
        assert parsed.user_id == "u1"

    def test_short_reference_defaults_to_trader_call(self):
        parsed = parse_external_reference("subscription")
        assert parsed.target == "TraderCall"
        assert parsed.user_id is None


class TestPaymentStatus:
    def test_unknown_status_is_pending(self):
        assert PaymentStatus.parse("weird") is PaymentStatus.PENDING
        assert PaymentStatus.parse(None) is PaymentStatus.PENDING

    def test_status_groups(self):
        assert PaymentStatus.AUTHORIZED.is_successful
        assert PaymentStatus.CHARGED_BACK.is_rejected
        assert PaymentStatus.IN_MEDIATION.is_pending

    def test_trial_prices(self):
        assert trial_price("TraderCall") == 1.0
        with pytest.raises(TrialNotAvailableError):
            trial_price("CashFlow")

    def test_payment_kind_flags(self):
        trial = Payment(user_email="a@x.com", service="TraderCall", amount=1,
                        external_reference="trial_TraderCall_u1_1")
        training = Payment(user_email="a@x.com", service="MonthlyTraining", amount=1,
                           external_reference="MTS_t_u1_1")
        assert trial.is_trial and not trial.is_monthly_training
        assert training.is_monthly_training and not training.is_trial

    def test_apply_gateway_payment(self):
        payment = Payment(user_email="a@x.com", service="TraderCall", amount=10,
                          external_reference="subscription_TraderCall_u1_1")
        info = GatewayPayment(
            id="mp-1", status=PaymentStatus.APPROVED, external_reference="x",
            amount=10, currency="ARS", payment_method_id="visa", installments=0,
        )
        payment.apply_gateway_payment(info, now=NOW)
        assert payment.mercadopago_payment_id == "mp-1"
        assert payment.status is PaymentStatus.APPROVED
        assert payment.installments == 1
        assert payment.transaction_date == NOW


# ══════════════════════════════════════════════════════════════════════
# Content
# ══════════════════════════════════════════════════════════════════════


class TestFormatting:
    def test_plain_text_becomes_paragraphs(self):
        assert format_content("one\ntwo\n\nthree") == "<p>one<br>two</p><p>three</p>"

    def test_html_is_kept(self):
        assert format_content("  <h1>Hi</h1> ") == "<h1>Hi</h1>"

    def test_plain_text_strips_tags(self):
        assert plain_text("<p>Hello</p><p>world</p>") == "Hello world"


def _training(**overrides) -> MonthlyTraining:
    fields = {
        "title": "Swing",
        "description": "Monthly class",
        "month": 6,
        "year": 2024,
        "price": 50000,
        "max_students": 2,
        "classes": [TrainingClass(date=NOW, start_time="19:00", title="Intro")],
    }
    fields.update(overrides)
    return MonthlyTraining(**fields)


class TestMonthlyTraining:
    def test_invalid_month(self):
        with pytest.raises(InvalidContentError):
            _training(month=13)

    def test_derived_fields(self):
        training = _training()
        assert training.month_name == "Junio"
        assert training.payment_range == "swing-trading-2024-06"
        assert training.available_spots == 2

    def test_enroll_fills_training(self):
        training = _training()
        student = training.enroll("u1", "Ana", "Ana@X.com", now=NOW)
        assert student.email == "ana@x.com"
        assert student.payment_status is StudentPaymentStatus.PENDING
        assert student.attendance == [
            {"class_id": str(training.classes[0].id), "attended": False}
        ]
        training.enroll("u2", "Bob", "bob@x.com", now=NOW)
        assert training.status is TrainingStatus.FULL
        assert not training.can_enroll(NOW)

    def test_enroll_twice_is_rejected(self):
        training = _training(max_students=5)
        training.enroll("u1", "Ana", "ana@x.com", now=NOW)
        with pytest.raises(EnrollmentError):
            training.enroll("u9", "Ana again", "ANA@x.com", now=NOW)

    def test_registration_window(self):
        training = _training(registration_open_date=NOW + timedelta(days=1))
        assert not training.registration_open(NOW)
        with pytest.raises(EnrollmentError):
            training.enroll("u1", "Ana", "ana@x.com", now=NOW)

        closed = _training(registration_close_date=NOW - timedelta(days=1))
        with pytest.raises(EnrollmentError):
            closed.enroll("u1", "Ana", "ana@x.com", now=NOW)

    def test_complete_payment(self):
        training = _training()
        training.enroll("u1", "Ana", "ana@x.com", now=NOW)
        assert training.complete_payment("u1", "mp-7")
        assert training.students[0].payment_status is StudentPaymentStatus.COMPLETED
        assert not training.complete_payment("nobody", "mp-8")


class TestTrainingClassStart:
    BUENOS_AIRES = ZoneInfo("America/Argentina/Buenos_Aires")

    def test_start_time_on_the_local_class_day(self):
        cls = TrainingClass(
            date=datetime(2026, 10, 20, 2, 0, tzinfo=timezone.utc),
            start_time="19:00",
            title="Gestión del riesgo",
        )
        assert cls.starts_at(self.BUENOS_AIRES) == datetime(
            2026, 10, 19, 19, 0, tzinfo=self.BUENOS_AIRES
        )

    def test_unparsable_start_time_keeps_the_date(self):
        cls = TrainingClass(
            date=datetime(2026, 10, 20, 15, 0, tzinfo=timezone.utc),
            start_time="a confirmar",
            title="Soportes",
        )
        assert cls.starts_at(self.BUENOS_AIRES) == datetime(
            2026, 10, 20, 15, 0, tzinfo=timezone.utc
        )
