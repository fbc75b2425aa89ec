"""Tests for announcement storage, images and subscriber email hooks."""

from datetime import date
from unittest.mock import Mock

import pytest

from masjid_sign.core.storage import BlobStorage, StorageError
from masjid_sign.plugins.announcements.service import (
    IMAGE_BUCKET,
    attach_image,
    delete_announcement,
    get_announcement,
    get_eligible_announcements,
    list_announcements,
    save_announcement,
)
from masjid_sign.plugins.announcements.task import AnnouncementsTask

pytestmark = pytest.mark.usefixtures("db")


def new(title="Fundraiser dinner", **extra):
    data = {"title": title, "description": "Saturday after Maghrib", "announcement_date": date(2025, 1, 18)}
    data.update(extra)
    return data


@pytest.fixture
def storage(tmp_path):
    return BlobStorage({"directory": str(tmp_path / "files"), "public_url": "http://sign.local/files/"})


# ----------------------------------------------------------------------------
# Saving
# ----------------------------------------------------------------------------


class TestSaveAnnouncement:
    def test_create_active_notifies_subscribers(self):
        notify = Mock(return_value=True)
        row, notified = save_announcement(new(), notify=notify)
        assert row.id is not None
        assert row.is_active is True
        assert notified is True
        sent = notify.call_args.args[0]
        assert sent["title"] == "Fundraiser dinner"
        assert sent["announcement_date"] == "2025-01-18"

    def test_inactive_does_not_notify(self):
        notify = Mock(return_value=True)
        _, notified = save_announcement(new(is_active=False), notify=notify)
        assert notified is None
        notify.assert_not_called()

    def test_failed_email_still_saves(self):
        row, notified = save_announcement(new(), notify=Mock(return_value=False))
        assert notified is False
        assert get_announcement(row.id).title == "Fundraiser dinner"

    @pytest.mark.parametrize("data", [
        {"title": "", "announcement_date": date(2025, 1, 18)},
        {"title": "   ", "announcement_date": date(2025, 1, 18)},
        {"title": "No date"},
    ])
    def test_invalid_input_writes_nothing(self, data):
        notify = Mock(return_value=True)
        with pytest.raises(ValueError):
            save_announcement(data, notify=notify)
        assert list_announcements() == []
        notify.assert_not_called()

    def test_partial_update_keeps_other_fields(self):
        row, _ = save_announcement(new(), notify=Mock(return_value=True))
        save_announcement({"title": "Fundraiser moved"}, announcement_id=row.id, notify=Mock(return_value=True))
        updated = get_announcement(row.id)
        assert updated.title == "Fundraiser moved"
        assert updated.description == "Saturday after Maghrib"

    def test_update_unknown(self):
        with pytest.raises(LookupError):
            save_announcement({"title": "x"}, announcement_id=404, notify=Mock())


# ----------------------------------------------------------------------------
# Eligibility query
# ----------------------------------------------------------------------------


class TestEligibleAnnouncements:
    def test_active_unexpired_newest_first(self):
        notify = Mock(return_value=True)
        first, _ = save_announcement(new("First"), notify=notify)
        save_announcement(new("Hidden", is_active=False), notify=notify)
        save_announcement(new("Expired", expiration_date=date(2025, 1, 14)), notify=notify)
        last, _ = save_announcement(new("Last day", expiration_date=date(2025, 1, 15)), notify=notify)

        rows = get_eligible_announcements(date(2025, 1, 15))
        assert [row.id for row in rows] == [last.id, first.id]
        assert [row.id for row in get_eligible_announcements(date(2025, 1, 15), limit=1)] == [last.id]

    def test_task_payload(self):
        save_announcement(new(), notify=Mock(return_value=True))
        task = AnnouncementsTask(60, "America/Chicago")
        payload = task.fetch({})
        assert payload[0]["title"] == "Fundraiser dinner"
        assert task.to_snapshots(payload) == {"announcements": payload}


# ----------------------------------------------------------------------------
# Images
# ----------------------------------------------------------------------------


class TestImages:
    def test_attach_stores_file_and_url(self, storage):
        row, _ = save_announcement(new(), notify=Mock(return_value=True))
        updated = attach_image(row.id, "poster.PNG", b"\x89PNG", storage)
        assert updated.image_path.endswith("-poster.png")
        assert updated.image_url == f"http://sign.local/files/{IMAGE_BUCKET}/{updated.image_path}"
        assert storage.path_for(IMAGE_BUCKET, updated.image_path).read_bytes() == b"\x89PNG"

    def test_replacing_image_removes_old_file(self, storage):
        row, _ = save_announcement(new(), notify=Mock(return_value=True))
        first = attach_image(row.id, "a.png", b"one", storage).image_path
        second = attach_image(row.id, "b.png", b"two", storage).image_path
        assert not storage.path_for(IMAGE_BUCKET, first).exists()
        assert storage.path_for(IMAGE_BUCKET, second).exists()

    def test_failed_upload_leaves_record(self, storage):
        row, _ = save_announcement(new(), notify=Mock(return_value=True))
        with pytest.raises(StorageError):
            attach_image(row.id, "empty.png", b"", storage)
        assert get_announcement(row.id).image_path is None

    def test_delete_removes_image(self, storage):
        row, _ = save_announcement(new(), notify=Mock(return_value=True))
        path = attach_image(row.id, "a.png", b"one", storage).image_path
        assert delete_announcement(row.id, storage) is True
        assert get_announcement(row.id) is None
        assert not storage.path_for(IMAGE_BUCKET, path).exists()
        assert delete_announcement(row.id, storage) is False
