"""
Service layer: announcement CRUD, the sign's eligibility query and image files.
"""
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import or_, select

from masjid_sign.core.db import session_scope
from masjid_sign.core.storage import BlobStorage
from masjid_sign.plugins.announcements.models import Announcement
from masjid_sign.plugins.notifications.service import notify_announcement

logger = logging.getLogger(__name__)

IMAGE_BUCKET = "announcement-images"
EDITABLE_FIELDS = ("title", "description", "announcement_date", "is_active", "expiration_date", "image_url")


def to_dict(row: Announcement) -> Dict[str, Any]:
    return {
        "id": row.id,
        "title": row.title,
        "description": row.description,
        "announcement_date": row.announcement_date.isoformat() if row.announcement_date else None,
        "image_path": row.image_path,
        "image_url": row.image_url,
        "is_active": bool(row.is_active),
        "posted_at": row.posted_at.isoformat() if row.posted_at else None,
        "expiration_date": row.expiration_date.isoformat() if row.expiration_date else None,
    }


def list_announcements() -> List[Announcement]:
    with session_scope() as session:
        return list(session.execute(select(Announcement).order_by(Announcement.posted_at.desc())).scalars().all())


def get_announcement(announcement_id: int) -> Optional[Announcement]:
    with session_scope() as session:
        return session.get(Announcement, announcement_id)


def get_eligible_announcements(today: date, limit: Optional[int] = None) -> List[Announcement]:
    """Active and not expired on `today`, newest posted first."""
    query = (
        select(Announcement)
        .where(Announcement.is_active.is_(True))
        .where(or_(Announcement.expiration_date.is_(None), Announcement.expiration_date >= today))
        .order_by(Announcement.posted_at.desc())
    )
    if limit is not None:
        query = query.limit(max(0, int(limit)))
    with session_scope() as session:
        return list(session.execute(query).scalars().all())


def _validate(values: Dict[str, Any]) -> None:
    if not str(values.get("title") or "").strip():
        raise ValueError("Title is required")
    if values.get("announcement_date") is None:
        raise ValueError("Announcement date is required")


def save_announcement(
    data: Dict[str, Any],
    announcement_id: Optional[int] = None,
    config_data: Optional[Dict[str, Any]] = None,
    notify: Callable[[Dict[str, Any], Optional[Dict[str, Any]]], bool] = notify_announcement,
) -> Tuple[Announcement, Optional[bool]]:
    """
    Create (no id) or update an announcement. When the saved row is active, subscribers
    are emailed; the second element is the email outcome, None when nothing was sent.
    Raises ValueError on invalid input or LookupError for an unknown id.
    """
    with session_scope() as session:
        if announcement_id is None:
            row = Announcement()
            session.add(row)
        else:
            row = session.get(Announcement, announcement_id)
            if row is None:
                raise LookupError(f"Announcement {announcement_id} not found")
        values = {field: getattr(row, field) for field in EDITABLE_FIELDS}
        values.update({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
        if values.get("is_active") is None:
            values["is_active"] = True
        _validate(values)
        for field, value in values.items():
            setattr(row, field, value)
        if row.description is None:
            row.description = ""
        session.flush()
        saved = to_dict(row)

    notified = None
    if saved["is_active"]:
        notified = notify(saved, config_data)
        if not notified:
            logger.warning(f"Announcement {saved['id']} saved but subscriber email failed")
    return row, notified


def attach_image(announcement_id: int, filename: str, content: bytes, storage: BlobStorage) -> Announcement:
    """Store an image and point the announcement at it. Upload errors leave the row untouched."""
    if get_announcement(announcement_id) is None:
        raise LookupError(f"Announcement {announcement_id} not found")
    name, url = storage.upload(IMAGE_BUCKET, filename, content)
    with session_scope() as session:
        row = session.get(Announcement, announcement_id)
        previous = row.image_path
        row.image_path = name
        row.image_url = url
    if previous and previous != name:
        storage.delete(IMAGE_BUCKET, previous)
    return row


def delete_announcement(announcement_id: int, storage: Optional[BlobStorage] = None) -> bool:
    """Delete the row, then its image. A failed file delete is logged only."""
    with session_scope() as session:
        row = session.get(Announcement, announcement_id)
        if row is None:
            return False
        image_path = row.image_path
        session.delete(row)
    if storage is not None and image_path:
        storage.delete(IMAGE_BUCKET, image_path)
    return True
