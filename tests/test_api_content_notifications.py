"""
API tests for reports, monthly trainings and the notification feed.
"""

import pytest

from tests.fakes import CRON_SECRET, auth

TRAINING = {
    "title": "Swing Trading Mayo",
    "description": "Cohorte mensual",
    "month": 5,
    "year": 2030,
    "price": 50000.0,
    "max_students": 1,
    "classes": [{"date": "2030-05-06T22:00:00Z", "start_time": "19:00", "title": "Clase 1"}],
}

REPORT = {
    "title": "Semana clave",
    "content": "Primer párrafo\n\nSegundo párrafo",
    "summary": "Lo que viene",
    "category": "trader-call",
}


# ══════════════════════════════════════════════════════════════════════
# Reports
# ══════════════════════════════════════════════════════════════════════


class TestReportEndpoints:
    def test_publish_and_read(self, client, admin_headers, subscriber_headers):
        created = client.post("/api/v1/admin/reports", json=REPORT, headers=admin_headers)
        assert created.status_code == 201
        report_id = created.json()["id"]

        listed = client.get(
            "/api/v1/reports", params={"category": "trader-call"}, headers=subscriber_headers
        ).json()
        assert [r["id"] for r in listed["reports"]] == [report_id]

        read = client.get(f"/api/v1/reports/{report_id}", headers=subscriber_headers).json()
        assert read["views"] == 1
        assert "<p>" in read["content"]

    def test_subscriber_cannot_publish(self, client, subscriber_headers):
        response = client.post("/api/v1/admin/reports", json=REPORT, headers=subscriber_headers)
        assert response.status_code == 403

    def test_unknown_category_is_400(self, client, admin_headers):
        response = client.post(
            "/api/v1/admin/reports", json={**REPORT, "category": "crypto"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_report_announcement_reaches_subscribers(
        self, client, admin_headers, subscriber, email_sender
    ):
        client.post("/api/v1/admin/reports", json=REPORT, headers=admin_headers)

        run = client.post(
            "/api/v1/cron/send-notification-jobs", headers=auth(CRON_SECRET)
        ).json()

        assert run["sent"] == 1
        assert [e["to"] for e in email_sender.sent] == [subscriber.email]


# ══════════════════════════════════════════════════════════════════════
# Monthly trainings
# ══════════════════════════════════════════════════════════════════════


class TestTrainingEndpoints:
    def test_create_enroll_and_fill(self, client, admin_headers, subscriber_headers, make_user):
        created = client.post(
            "/api/v1/admin/monthly-trainings", json=TRAINING, headers=admin_headers
        )
        assert created.status_code == 201
        training_id = created.json()["id"]
        assert created.json()["month_name"] == "Mayo"

        open_list = client.get("/api/v1/monthly-trainings").json()["trainings"]
        assert [t["id"] for t in open_list] == [training_id]

        seat = client.post(
            f"/api/v1/monthly-trainings/{training_id}/enroll",
            json={"phone": "+54 11 5555"},
            headers=subscriber_headers,
        )
        assert seat.status_code == 201
        assert seat.json()["payment_status"] == "pending"

        make_user("leo@example.com", token="leo-token")
        full = client.post(
            f"/api/v1/monthly-trainings/{training_id}/enroll", json={}, headers=auth("leo-token")
        )
        assert full.status_code == 400
        assert client.get("/api/v1/monthly-trainings").json()["trainings"] == []

    def test_duplicate_month_is_a_conflict(self, client, admin_headers):
        client.post("/api/v1/admin/monthly-trainings", json=TRAINING, headers=admin_headers)
        again = client.post(
            "/api/v1/admin/monthly-trainings", json=TRAINING, headers=admin_headers
        )
        assert again.status_code == 409

    def test_update_and_delete(self, client, admin_headers):
        training_id = client.post(
            "/api/v1/admin/monthly-trainings", json=TRAINING, headers=admin_headers
        ).json()["id"]

        updated = client.put(
            f"/api/v1/admin/monthly-trainings/{training_id}",
            json={"price": 45000.0},
            headers=admin_headers,
        )
        assert updated.json()["price"] == 45000.0

        deleted = client.delete(
            f"/api/v1/admin/monthly-trainings/{training_id}", headers=admin_headers
        )
        assert deleted.status_code == 204
        missing = client.get(
            "/api/v1/admin/monthly-trainings", params={"id": training_id}, headers=admin_headers
        )
        assert missing.status_code == 404


# ══════════════════════════════════════════════════════════════════════
# Notification feed
# ══════════════════════════════════════════════════════════════════════


class TestNotificationEndpoints:
    def _broadcast(self, client, headers, **overrides):
        body = {"title": "Mantenimiento", "message": "Domingo 10hs", **overrides}
        response = client.post("/api/v1/admin/notifications", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    def test_feed_read_and_dismiss(self, client, admin_headers, subscriber_headers):
        notification = self._broadcast(client, admin_headers)
        self._broadcast(client, admin_headers, target_users="admin", title="Solo admins")

        feed = client.get("/api/v1/notifications", headers=subscriber_headers).json()
        assert [n["title"] for n in feed["notifications"]] == ["Mantenimiento"]
        assert feed["unread_count"] == 1

        read = client.post(
            f"/api/v1/notifications/{notification['id']}/read", headers=subscriber_headers
        )
        assert read.status_code == 200
        feed = client.get("/api/v1/notifications", headers=subscriber_headers).json()
        assert feed["unread_count"] == 0
        assert feed["notifications"][0]["is_read"] is True

        client.post(
            f"/api/v1/notifications/{notification['id']}/dismiss", headers=subscriber_headers
        )
        feed = client.get("/api/v1/notifications", headers=subscriber_headers).json()
        assert feed["total"] == 0

    def test_admin_sees_every_group(self, client, admin_headers):
        self._broadcast(client, admin_headers, target_users="alertas_smart")
        feed = client.get("/api/v1/notifications", headers=admin_headers).json()
        assert feed["total"] == 1

    @pytest.mark.parametrize(
        "overrides", [{"target_users": "everyone"}, {"priority": "urgent"}, {"type": "spam"}]
    )
    def test_invalid_broadcast(self, client, admin_headers, overrides):
        body = {"title": "x", "message": "y", **overrides}
        response = client.post("/api/v1/admin/notifications", json=body, headers=admin_headers)
        assert response.status_code == 400

    def test_admin_notifications_are_hidden_from_subscribers(
        self, client, admin_headers, subscriber_headers
    ):
        hidden = self._broadcast(client, admin_headers, target_users="admin", title="Solo admins")
        for action in ("read", "dismiss"):
            response = client.post(
                f"/api/v1/notifications/{hidden['id']}/{action}", headers=subscriber_headers
            )
            assert response.status_code == 404

    def test_unknown_notification(self, client, subscriber_headers):
        response = client.post(
            "/api/v1/notifications/00000000-0000-0000-0000-000000000000/read",
            headers=subscriber_headers,
        )
        assert response.status_code == 404

    def test_broadcast_is_admin_only(self, client, subscriber_headers):
        response = client.post(
            "/api/v1/admin/notifications",
            json={"title": "x", "message": "y"},
            headers=subscriber_headers,
        )
        assert response.status_code == 403
