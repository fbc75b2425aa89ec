"""Tests for generic community listings (masjid_sign/plugins/community)."""

import pytest

from masjid_sign.core.storage import BlobStorage
from masjid_sign.plugins.community.service import (
    attach_file,
    bucket_for,
    delete_entity,
    get_entity,
    list_entities,
    save_entity,
)

pytestmark = pytest.mark.usefixtures("db")


@pytest.fixture
def storage(tmp_path):
    return BlobStorage({"directory": str(tmp_path), "public_url": "http://sign.local/files"})


class TestCommunityEntities:
    def test_new_entities_append_in_order(self):
        first = save_entity("board_members", {"name": "Amina", "subtitle": "Chair"})
        second = save_entity("board_members", {"name": "Yusuf", "subtitle": "Treasurer"})
        assert (first.display_order, second.display_order) == (1, 2)
        assert [row.name for row in list_entities("board_members")] == ["Amina", "Yusuf"]

    def test_explicit_order_wins(self):
        save_entity("trustees", {"name": "Later", "display_order": 5})
        save_entity("trustees", {"name": "Sooner", "display_order": 1})
        assert [row.name for row in list_entities("trustees")] == ["Sooner", "Later"]

    def test_kinds_are_separate(self):
        save_entity("trustees", {"name": "Trustee"})
        row = save_entity("donation_causes", {"name": "Roof repair"})
        assert row.display_order == 1
        assert get_entity("trustees", row.id) is None

    def test_unknown_kind(self):
        with pytest.raises(LookupError):
            list_entities("caterers")
        with pytest.raises(LookupError):
            save_entity("caterers", {"name": "x"})

    def test_name_required(self):
        with pytest.raises(ValueError):
            save_entity("leadership", {"subtitle": "Imam"})

    def test_update(self):
        row = save_entity("leadership", {"name": "Imam Ali"})
        save_entity("leadership", {"subtitle": "Resident Imam"}, entity_id=row.id)
        updated = get_entity("leadership", row.id)
        assert updated.name == "Imam Ali"
        assert updated.subtitle == "Resident Imam"

    def test_delete_removes_file(self, storage):
        row = save_entity("annual_reports", {"name": "2024 report"})
        updated = attach_file("annual_reports", row.id, "report.pdf", b"%PDF-1.4", storage)
        path = storage.path_for(bucket_for("annual_reports"), updated.file_path)
        assert path.exists()
        assert updated.file_url.startswith("http://sign.local/files/annual-reports-files/")

        assert delete_entity("annual_reports", row.id, storage) is True
        assert not path.exists()
        assert delete_entity("annual_reports", row.id, storage) is False
