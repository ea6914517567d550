"""
Notification tests.

Notifications are self-scoped; the read flag only moves false -> true.
"""

from visionx.services import notification_service


class TestNotifications:

    def test_list_and_unread_filter(self, client, db_session, patient_user, patient_headers):
        first = notification_service.create_notification(patient_user.id, "One", "first")
        notification_service.create_notification(patient_user.id, "Two", "second", "order")

        client.patch(f"/api/notifications/{first.id}/read", headers=patient_headers)

        everything = client.get("/api/notifications", headers=patient_headers).get_json()
        unread = client.get("/api/notifications?unread=true", headers=patient_headers).get_json()
        assert len(everything) == 2
        assert [n["title"] for n in unread] == ["Two"]
        assert unread[0]["type"] == "order"

    def test_cannot_mark_someone_elses(self, client, staff_user, patient_headers):
        other = notification_service.create_notification(staff_user.id, "Staff only", "hidden")
        resp = client.patch(f"/api/notifications/{other.id}/read", headers=patient_headers)
        assert resp.status_code == 404

    def test_read_all(self, client, patient_user, patient_headers):
        for i in range(3):
            notification_service.create_notification(patient_user.id, f"N{i}", "msg")

        resp = client.patch("/api/notifications/read-all", headers=patient_headers)
        assert resp.get_json() == {"updated": 3}
        assert client.get("/api/notifications?unread=true", headers=patient_headers).get_json() == []

    def test_mark_read_is_idempotent(self, client, patient_user, patient_headers):
        n = notification_service.create_notification(patient_user.id, "Once", "msg")
        for _ in range(2):
            resp = client.patch(f"/api/notifications/{n.id}/read", headers=patient_headers)
            assert resp.status_code == 200
            assert resp.get_json()["is_read"] is True

    def test_admin_sends_notification(self, client, patient_user, admin_headers, patient_headers):
        resp = client.post(
            "/api/notifications",
            json={"user_id": patient_user.id, "title": "Sale", "message": "20% off frames", "type": "info"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        titles = [n["title"] for n in client.get("/api/notifications", headers=patient_headers).get_json()]
        assert titles == ["Sale"]

    def test_send_validates(self, client, patient_user, admin_headers):
        bad_category = {"user_id": patient_user.id, "title": "x", "message": "y", "category": "spam"}
        unknown_user = {"user_id": 999, "title": "x", "message": "y"}
        assert client.post("/api/notifications", json=bad_category, headers=admin_headers).status_code == 400
        assert client.post("/api/notifications", json=unknown_user, headers=admin_headers).status_code == 400
