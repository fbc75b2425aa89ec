"""Tests for the HTTP API (masjid_sign/api and the per-plugin routers)."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from masjid_sign.api.server import create_app
from masjid_sign.plugins.events.service import save_events
from masjid_sign.plugins.prayer.service import save_prayer_times
from masjid_sign.sign.engine import SignEngine

pytestmark = pytest.mark.usefixtures("db")


@pytest.fixture
def client(sign_app):
    return TestClient(create_app(sign_app))


@pytest.fixture
def admin_client(sign_app):
    sign_app.config.data["api"]["admin_token"] = "s3cret"
    return TestClient(create_app(sign_app))


# ----------------------------------------------------------------------------
# Core endpoints
# ----------------------------------------------------------------------------


class TestCoreEndpoints:
    def test_state_before_first_tick(self, client):
        assert client.get("/api/sign/state").status_code == 503

    def test_state_after_tick(self, client, sign_app, local):
        engine = SignEngine(timezone_name="America/Chicago")
        engine.update(adhan_times={"Dhuhr": "13:00"})
        sign_app.last_state = engine.tick(local(2025, 1, 15, 11, 0))

        body = client.get("/api/sign/state").json()
        assert body["next_prayer"]["name"] == "Dhuhr"
        assert body["next_prayer"]["countdown"] == "02h 00m 00s"
        assert body["one_hour_before"]["formatted_time"] == "12:00 PM"
        assert body["view"] == {"kind": "prayer_times"}
        assert body["overlay"] is None

    def test_tasks(self, client):
        body = client.get("/api/tasks").json()
        assert body == {"db_schedules": [], "active_timers": []}


# ----------------------------------------------------------------------------
# Prayer
# ----------------------------------------------------------------------------


class TestPrayerApi:
    def test_data(self, client):
        assert client.get("/api/components/prayer/data").status_code == 404
        save_prayer_times(date(2025, 1, 15), {"Fajr": "05:42"}, "15 Jan 2025", "15-07-1446")
        body = client.get("/api/components/prayer/data").json()
        assert body["timings"] == {"Fajr": "05:42"}
        assert body["hijri_date"] == "15-07-1446"

    def test_iqamah_update_triggers_refresh(self, client, sign_app):
        response = client.put("/api/components/prayer/iqamah/Dhuhr", json={"iqamah_time": "13:30"})
        assert response.status_code == 200
        assert response.json() == {"prayer_name": "Dhuhr", "iqamah_time": "13:30"}
        sign_app.task_manager.refresh_now.assert_called_once_with("prayer_times")
        assert client.get("/api/components/prayer/iqamah").json() == [
            {"prayer_name": "Dhuhr", "iqamah_time": "13:30"}
        ]

    def test_invalid_iqamah(self, client, sign_app):
        response = client.put("/api/components/prayer/iqamah/Dhuhr", json={"iqamah_time": "1:30pm"})
        assert response.status_code == 400
        sign_app.task_manager.refresh_now.assert_not_called()


# ----------------------------------------------------------------------------
# Admin token
# ----------------------------------------------------------------------------


class TestAdminToken:
    def test_write_without_token_is_rejected(self, admin_client):
        response = admin_client.put("/api/components/prayer/iqamah/Dhuhr", json={"iqamah_time": "13:30"})
        assert response.status_code == 401

    def test_wrong_token_is_rejected(self, admin_client):
        response = admin_client.put("/api/components/sign_config/settings", json={"max_announcements": 1},
                                    headers={"X-Admin-Token": "guess"})
        assert response.status_code == 401

    def test_right_token_is_accepted(self, admin_client):
        response = admin_client.put("/api/components/prayer/iqamah/Dhuhr", json={"iqamah_time": "13:30"},
                                    headers={"X-Admin-Token": "s3cret"})
        assert response.status_code == 200

    def test_reads_stay_public(self, admin_client):
        assert admin_client.get("/api/components/sign_config/settings").status_code == 200


# ----------------------------------------------------------------------------
# Sign config
# ----------------------------------------------------------------------------


class TestSignConfigApi:
    def test_settings_floor(self, client):
        assert client.put("/api/components/sign_config/settings",
                          json={"rotation_interval_seconds": 3}).status_code == 400
        response = client.put("/api/components/sign_config/settings", json={"rotation_interval_seconds": 10})
        assert response.status_code == 200
        assert response.json()["rotation_interval_seconds"] == 10

    def test_rule_crud(self, client, sign_app):
        created = client.post("/api/components/sign_config/downtime-rules", json={
            "type": "time_range", "days_of_week": ["Friday"], "start_time": "12:00", "end_time": "14:00",
        })
        assert created.status_code == 201
        rule_id = created.json()["id"]
        sign_app.task_manager.refresh_now.assert_called_with("sign_config")

        updated = client.put(f"/api/components/sign_config/downtime-rules/{rule_id}", json={
            "type": "prayer_iqamah", "prayer_name": "Jumuah",
            "minutes_before_iqamah": 15, "minutes_after_iqamah": 45,
        })
        assert updated.status_code == 200
        assert updated.json()["start_time"] is None

        assert client.delete(f"/api/components/sign_config/downtime-rules/{rule_id}").status_code == 200
        assert client.get(f"/api/components/sign_config/downtime-rules/{rule_id}").status_code == 404

    def test_rule_with_both_payloads(self, client):
        response = client.post("/api/components/sign_config/downtime-rules", json={
            "type": "time_range", "start_time": "12:00", "end_time": "14:00", "prayer_name": "Dhuhr",
        })
        assert response.status_code == 400

    def test_rule_missing_type(self, client):
        assert client.post("/api/components/sign_config/downtime-rules", json={}).status_code == 422


# ----------------------------------------------------------------------------
# Announcements
# ----------------------------------------------------------------------------


class TestAnnouncementsApi:
    def test_create_list_and_upload(self, client, sign_app):
        response = client.post("/api/components/announcements/", json={
            "title": "Open house", "description": "All welcome", "announcement_date": "2025-02-01",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["email_sent"] is True
        assert body["warning"] is None
        sign_app.task_manager.refresh_now.assert_called_with("announcements")

        active = client.get("/api/components/announcements/active").json()
        assert [a["title"] for a in active] == ["Open house"]

        upload = client.post(f"/api/components/announcements/{body['id']}/image",
                             files={"file": ("poster.png", b"\x89PNG", "image/png")})
        assert upload.status_code == 200
        assert upload.json()["image_url"].startswith("http://sign.local/files/announcement-images/")

    def test_empty_upload(self, client):
        created = client.post("/api/components/announcements/", json={
            "title": "Open house", "announcement_date": "2025-02-01",
        }).json()
        upload = client.post(f"/api/components/announcements/{created['id']}/image",
                             files={"file": ("poster.png", b"", "image/png")})
        assert upload.status_code == 400

    def test_blank_title(self, client):
        response = client.post("/api/components/announcements/", json={
            "title": " ", "announcement_date": "2025-02-01",
        })
        assert response.status_code == 400

    def test_update_and_delete_unknown(self, client):
        assert client.put("/api/components/announcements/99", json={"title": "x"}).status_code == 404
        assert client.delete("/api/components/announcements/99").status_code == 404


# ----------------------------------------------------------------------------
# Notifications, events, community
# ----------------------------------------------------------------------------


class TestPublicForms:
    def test_subscribe(self, client):
        assert client.post("/api/components/notifications/subscribe",
                           json={"email": "reader@example.org"}).json() == {"email": "reader@example.org",
                                                                             "created": True}
        assert client.post("/api/components/notifications/subscribe",
                           json={"email": "nope"}).status_code == 400
        assert client.get("/api/components/notifications/subscribers").json() == ["reader@example.org"]

    def test_contact_without_mail_setup_warns(self, client):
        response = client.post("/api/components/notifications/contact", json={
            "name": "Sara", "email": "sara@example.org", "subject": "Parking", "message": "Where?",
        })
        assert response.status_code == 200
        assert response.json()["sent"] is False
        assert response.json()["warning"]


class TestEventsApi:
    def test_upcoming_drops_past_events(self, client):
        save_events([
            {"id": "past", "title": "Old", "start": "2000-01-01T10:00:00Z", "end": "2000-01-01T11:00:00Z"},
            {"id": "future", "title": "Later", "start": "2099-01-01T10:00:00Z", "end": "2099-01-01T11:00:00Z"},
        ])
        assert [e["id"] for e in client.get("/api/components/events/upcoming").json()] == ["future"]

    def test_refresh(self, client, sign_app):
        assert client.post("/api/components/events/refresh").json() == {"scheduled": True}
        sign_app.task_manager.refresh_now.assert_called_once_with("calendar_events")


class TestCommunityApi:
    def test_crud(self, client):
        assert "trustees" in client.get("/api/components/community/kinds").json()
        created = client.post("/api/components/community/trustees", json={"name": "Amina"})
        assert created.status_code == 201
        assert created.json()["display_order"] == 1
        entity_id = created.json()["id"]

        upload = client.post(f"/api/components/community/trustees/{entity_id}/file",
                             files={"file": ("photo.jpg", b"jpeg", "image/jpeg")})
        assert upload.json()["file_url"].startswith("http://sign.local/files/trustees-files/")

        assert [e["name"] for e in client.get("/api/components/community/trustees").json()] == ["Amina"]
        assert client.delete(f"/api/components/community/trustees/{entity_id}").status_code == 200

    def test_unknown_kind(self, client):
        assert client.get("/api/components/community/caterers").status_code == 404
