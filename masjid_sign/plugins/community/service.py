"""
Service layer: generic community entities ordered by display_order.
Files live in one bucket per kind; removing a record removes its file.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from masjid_sign.core.db import session_scope
from masjid_sign.core.storage import BlobStorage
from masjid_sign.plugins.community.models import CommunityEntity

KINDS = (
    "board_members",
    "trustees",
    "leadership",
    "donation_causes",
    "youth_events",
    "youth_subprograms",
    "annual_reports",
)
EDITABLE_FIELDS = ("name", "subtitle", "description", "link_url", "display_order")


def _check_kind(kind: str) -> None:
    if kind not in KINDS:
        raise LookupError(f"Unknown entity kind: {kind}")


def bucket_for(kind: str) -> str:
    return kind.replace("_", "-") + "-files"


def list_entities(kind: str) -> List[CommunityEntity]:
    _check_kind(kind)
    with session_scope() as session:
        query = (
            select(CommunityEntity)
            .where(CommunityEntity.kind == kind)
            .order_by(CommunityEntity.display_order, CommunityEntity.created_at.desc())
        )
        return list(session.execute(query).scalars().all())


def get_entity(kind: str, entity_id: int) -> Optional[CommunityEntity]:
    _check_kind(kind)
    with session_scope() as session:
        row = session.get(CommunityEntity, entity_id)
        return row if row is not None and row.kind == kind else None


def save_entity(kind: str, data: Dict[str, Any], entity_id: Optional[int] = None) -> CommunityEntity:
    """Create or update. New records without display_order go to the end of the list."""
    _check_kind(kind)
    values = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    with session_scope() as session:
        if entity_id is None:
            if not str(values.get("name") or "").strip():
                raise ValueError("Name is required")
            if values.get("display_order") is None:
                highest = session.execute(
                    select(func.max(CommunityEntity.display_order)).where(CommunityEntity.kind == kind)
                ).scalar()
                values["display_order"] = (highest or 0) + 1
            row = CommunityEntity(kind=kind)
            session.add(row)
        else:
            row = session.get(CommunityEntity, entity_id)
            if row is None or row.kind != kind:
                raise LookupError(f"{kind} {entity_id} not found")
            if "name" in values and not str(values["name"] or "").strip():
                raise ValueError("Name is required")
            if values.get("display_order", 0) is None:
                values.pop("display_order")
        for key, value in values.items():
            setattr(row, key, value)
        session.flush()
        return row


def attach_file(kind: str, entity_id: int, filename: str, content: bytes, storage: BlobStorage) -> CommunityEntity:
    """Upload first; the record only changes once the file is stored."""
    if get_entity(kind, entity_id) is None:
        raise LookupError(f"{kind} {entity_id} not found")
    bucket = bucket_for(kind)
    name, url = storage.upload(bucket, filename, content)
    with session_scope() as session:
        row = session.get(CommunityEntity, entity_id)
        previous = row.file_path
        row.file_path = name
        row.file_url = url
    if previous and previous != name:
        storage.delete(bucket, previous)
    return row


def delete_entity(kind: str, entity_id: int, storage: Optional[BlobStorage] = None) -> bool:
    _check_kind(kind)
    with session_scope() as session:
        row = session.get(CommunityEntity, entity_id)
        if row is None or row.kind != kind:
            return False
        file_path = row.file_path
        session.delete(row)
    if storage is not None and file_path:
        storage.delete(bucket_for(kind), file_path)
    return True
