"""
API tests for alerts, liquidity and the cron endpoints.

Requests go through the real routers and use cases against the
per-test SQLite database; outbound adapters are fakes.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.domain.accounts.entities import ActiveSubscription, Service, User, UserRole
from tests.fakes import CRON_SECRET, auth

ALERT = {
    "symbol": "aapl",
    "action": "BUY",
    "stop_loss": 90.0,
    "take_profit": 130.0,
    "entry_price": 100.0,
    "analysis": "Rebote en soporte",
}


def _create_alert(client: TestClient, headers: dict, **overrides) -> dict:
    response = client.post("/api/v1/alerts", json={**ALERT, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ══════════════════════════════════════════════════════════════════════
# Authentication and roles
# ══════════════════════════════════════════════════════════════════════


class TestAccessControl:
    def test_missing_token(self, client):
        response = client.get("/api/v1/alerts")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    def test_unknown_token(self, client, subscriber):
        assert client.get("/api/v1/alerts", headers=auth("forged")).status_code == 401

    def test_subscriber_cannot_publish(self, client, subscriber_headers):
        response = client.post("/api/v1/alerts", json=ALERT, headers=subscriber_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

    def test_subscriber_can_list(self, client, admin_headers, subscriber_headers):
        _create_alert(client, admin_headers)
        body = client.get("/api/v1/alerts", headers=subscriber_headers).json()
        assert body["total"] == 1
        assert body["alerts"][0]["symbol"] == "AAPL"


# ══════════════════════════════════════════════════════════════════════
# Alert lifecycle
# ══════════════════════════════════════════════════════════════════════


class TestAlertEndpoints:
    def test_create_queues_announcement(self, client, admin_headers):
        body = _create_alert(client, admin_headers)

        assert body["notification_queued"] is True
        assert body["liquidity_allocated"] is False
        alert = body["alert"]
        assert alert["status"] == "ACTIVE"
        assert alert["entry_display"] == "$100.00"
        assert alert["horario_cierre"] == "17:30"

    def test_business_rule_violation_is_400(self, client, admin_headers):
        response = client.post(
            "/api/v1/alerts", json={**ALERT, "stop_loss": 0.0}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_range_alert(self, client, admin_headers):
        body = _create_alert(
            client,
            admin_headers,
            tipo_alerta="rango",
            entry_price=None,
            price_min=95.0,
            price_max=105.0,
        )
        assert body["alert"]["entry_price_range"] == {"min": 95.0, "max": 105.0}

    def test_edit_and_close(self, client, admin_headers):
        alert_id = _create_alert(client, admin_headers)["alert"]["id"]

        edited = client.put(
            f"/api/v1/alerts/{alert_id}",
            json={"take_profit": 140.0, "reason": "Objetivo ampliado"},
            headers=admin_headers,
        )
        assert edited.status_code == 200
        assert edited.json()["take_profit"] == 140.0

        closed = client.post(
            f"/api/v1/alerts/{alert_id}/close",
            json={"price": 120.0, "reason": "TAKE_PROFIT"},
            headers=admin_headers,
        )
        assert closed.status_code == 200
        assert closed.json()["alert"]["status"] == "CLOSED"
        assert closed.json()["profit"] == pytest.approx(20.0)

        again = client.post(
            f"/api/v1/alerts/{alert_id}/close", json={"price": 120.0}, headers=admin_headers
        )
        assert again.status_code == 400

    def test_unknown_alert_is_404(self, client, admin_headers):
        response = client.post(
            "/api/v1/alerts/00000000-0000-0000-0000-000000000000/discard",
            json={"reason": "Sin volumen", "price": 100.0},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_partial_sale_only_accepts_quarter_or_half(self, client, admin_headers):
        alert_id = _create_alert(client, admin_headers)["alert"]["id"]
        response = client.post(
            f"/api/v1/alerts/{alert_id}/partial-sale",
            json={"percentage": 33, "price": 110.0},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_discard(self, client, admin_headers):
        alert_id = _create_alert(client, admin_headers)["alert"]["id"]
        response = client.post(
            f"/api/v1/alerts/{alert_id}/discard",
            json={"reason": "Sin volumen", "price": 98.0},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "DESCARTADA"
        assert response.json()["discard_reason"] == "Sin volumen"


# ══════════════════════════════════════════════════════════════════════
# Liquidity
# ══════════════════════════════════════════════════════════════════════


class TestLiquidityEndpoints:
    def test_allocation_and_settlement(self, client, admin_headers):
        configured = client.post(
            "/api/v1/liquidity", json={"initial_liquidity": 10000.0}, headers=admin_headers
        )
        assert configured.status_code == 200
        assert configured.json()["available_liquidity"] == 10000.0

        created = _create_alert(client, admin_headers, liquidity_percentage=10.0)
        assert created["liquidity_allocated"] is True

        summary = client.get("/api/v1/liquidity/summary", headers=admin_headers).json()
        assert summary["distributed_liquidity"] == pytest.approx(1000.0)
        assert summary["active_distributions"] == 1

        client.post(
            f"/api/v1/alerts/{created['alert']['id']}/close",
            json={"price": 120.0},
            headers=admin_headers,
        )
        pool = client.get("/api/v1/liquidity", headers=admin_headers).json()
        assert pool["distributions"] == []
        assert pool["available_liquidity"] == pytest.approx(10000.0)

    def test_distributing_twice_is_a_conflict(self, client, admin_headers):
        client.post(
            "/api/v1/liquidity", json={"initial_liquidity": 10000.0}, headers=admin_headers
        )
        alert_id = _create_alert(client, admin_headers)["alert"]["id"]
        payload = {"alert_id": alert_id, "percentage": 5.0}

        first = client.post("/api/v1/liquidity/distribute", json=payload, headers=admin_headers)
        second = client.post("/api/v1/liquidity/distribute", json=payload, headers=admin_headers)

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["error"] == "Conflict"

    def test_liquidity_is_admin_only(self, client, subscriber_headers):
        assert client.get("/api/v1/liquidity", headers=subscriber_headers).status_code == 403


# ══════════════════════════════════════════════════════════════════════
# Cron
# ══════════════════════════════════════════════════════════════════════


class TestCronEndpoints:
    @pytest.mark.parametrize(
        "path",
        [
            "/send-notification-jobs",
            "/expire-subscriptions",
            "/check-range-breaks",
            "/market-close",
            "/subscription-notifications",
            "/training-reminders",
        ],
    )
    def test_secret_required(self, client, path):
        assert client.post(f"/api/v1/cron{path}").status_code == 401
        assert client.get(f"/api/v1/cron{path}?secret=wrong").status_code == 401

    def test_secret_as_query_param(self, client):
        response = client.get(f"/api/v1/cron/expire-subscriptions?secret={CRON_SECRET}")
        assert response.status_code == 200
        assert response.json()["errors"] == 0

    def test_published_alert_reaches_subscribers(
        self, client, admin_headers, subscriber, email_sender, telegram
    ):
        _create_alert(client, admin_headers)

        response = client.post("/api/v1/cron/send-notification-jobs", headers=auth(CRON_SECRET))

        assert response.status_code == 200
        assert response.json()["processed"] == 1
        assert response.json()["sent"] == 1
        assert [e["to"] for e in email_sender.sent] == [subscriber.email]
        assert telegram.messages[0][0] == "@tradercall"

    def test_range_break_sweep(self, client, admin_headers):
        alert = _create_alert(
            client,
            admin_headers,
            tipo_alerta="rango",
            entry_price=None,
            price_min=95.0,
            price_max=105.0,
        )["alert"]
        client.post(
            f"/api/v1/alerts/{alert['id']}/price", json={"price": 110.0}, headers=admin_headers
        )

        report = client.post(
            "/api/v1/cron/check-range-breaks", headers=auth(CRON_SECRET)
        ).json()

        assert report["broken"] == 1
        assert report["closed"] == 1

    def test_market_close_reports_its_sweep(self, client, admin_headers):
        _create_alert(client, admin_headers)

        response = client.post("/api/v1/cron/market-close", headers=auth(CRON_SECRET))

        assert response.status_code == 200
        assert set(response.json()) == {
            "is_business_day",
            "total_alerts",
            "processed",
            "dismissed",
            "emails_sent",
            "errors",
            "no_activity_sent",
        }
        assert response.json()["errors"] == 0

    def test_subscription_notifications_warn_expiring_subscribers(
        self, client, user_repo, email_sender
    ):
        now = datetime.now(timezone.utc)
        user = User(email="vence@example.com", name="Vence", role=UserRole.SUSCRIPTOR)
        user.active_subscriptions = [
            ActiveSubscription(
                service=Service.SMART_MONEY,
                start_date=now - timedelta(days=29),
                expiry_date=now + timedelta(hours=12),
            )
        ]
        user_repo.save(user)

        response = client.get(
            f"/api/v1/cron/subscription-notifications?secret={CRON_SECRET}"
        )

        assert response.status_code == 200
        assert response.json()["warnings_sent"] == 1
        assert email_sender.sent[0]["to"] == "vence@example.com"
        assert email_sender.sent[0]["subject"] == "⚠️ Tu suscripción de Smart Money vence en 1 día"

    def test_training_reminders_without_classes(self, client):
        response = client.post("/api/v1/cron/training-reminders", headers=auth(CRON_SECRET))

        assert response.status_code == 200
        assert response.json() == {
            "classes": 0, "sent": 0, "skipped": 0, "failed": 0, "errors": []
        }
