"""
Announcements admin and public listing. Mounted at /api/components/announcements/.
"""
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict

from masjid_sign.api.security import admin_guard
from masjid_sign.core.clock import get_zone
from masjid_sign.core.storage import BlobStorage, StorageError
from masjid_sign.plugins.announcements.service import (
    attach_image,
    delete_announcement,
    get_announcement,
    get_eligible_announcements,
    list_announcements,
    save_announcement,
)
from masjid_sign.plugins.announcements.task import TASK_NAME


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    announcement_date: date
    image_url: Optional[str] = None
    is_active: bool
    posted_at: datetime
    expiration_date: Optional[date] = None


class AnnouncementCreate(BaseModel):
    title: str
    description: str = ""
    announcement_date: date
    is_active: bool = True
    expiration_date: Optional[date] = None
    image_url: Optional[str] = None


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    announcement_date: Optional[date] = None
    is_active: Optional[bool] = None
    expiration_date: Optional[date] = None
    image_url: Optional[str] = None


class AnnouncementSaved(AnnouncementResponse):
    email_sent: Optional[bool] = None
    warning: Optional[str] = None


def get_router(sign_app) -> Optional[APIRouter]:
    router = APIRouter(tags=["Announcements"])
    require_admin = admin_guard(sign_app)

    def _storage() -> BlobStorage:
        return BlobStorage(sign_app.config.data.get("storage") or {})

    def _refresh() -> None:
        task_manager = getattr(sign_app, "task_manager", None)
        if task_manager is not None:
            task_manager.refresh_now(TASK_NAME)

    def _saved(row, notified: Optional[bool]) -> AnnouncementSaved:
        saved = AnnouncementSaved.model_validate(row)
        saved.email_sent = notified
        if notified is False:
            saved.warning = "Announcement saved, but the subscriber email could not be sent."
        return saved

    @router.get("/", response_model=List[AnnouncementResponse])
    def get_all() -> List[AnnouncementResponse]:
        return [AnnouncementResponse.model_validate(row) for row in list_announcements()]

    @router.get("/active", response_model=List[AnnouncementResponse])
    def get_active(limit: Optional[int] = None) -> List[AnnouncementResponse]:
        """Announcements currently eligible for display, newest first."""
        zone = get_zone((sign_app.config.data.get("sign") or {}).get("timezone"))
        rows = get_eligible_announcements(datetime.now(zone).date(), limit)
        return [AnnouncementResponse.model_validate(row) for row in rows]

    @router.get("/{announcement_id}", response_model=AnnouncementResponse)
    def get_one(announcement_id: int) -> AnnouncementResponse:
        row = get_announcement(announcement_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Announcement not found")
        return AnnouncementResponse.model_validate(row)

    @router.post("/", response_model=AnnouncementSaved, status_code=201, dependencies=[Depends(require_admin)])
    def create(body: AnnouncementCreate) -> AnnouncementSaved:
        try:
            row, notified = save_announcement(body.model_dump(), config_data=sign_app.config.data)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _refresh()
        return _saved(row, notified)

    @router.put("/{announcement_id}", response_model=AnnouncementSaved, dependencies=[Depends(require_admin)])
    def update(announcement_id: int, body: AnnouncementUpdate) -> AnnouncementSaved:
        try:
            row, notified = save_announcement(
                body.model_dump(exclude_unset=True),
                announcement_id=announcement_id,
                config_data=sign_app.config.data,
            )
        except LookupError:
            raise HTTPException(status_code=404, detail="Announcement not found")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _refresh()
        return _saved(row, notified)

    @router.post("/{announcement_id}/image", response_model=AnnouncementResponse, dependencies=[Depends(require_admin)])
    async def upload_image(announcement_id: int, file: UploadFile = File(...)) -> AnnouncementResponse:
        content = await file.read()
        try:
            row = attach_image(announcement_id, file.filename or "image", content, _storage())
        except LookupError:
            raise HTTPException(status_code=404, detail="Announcement not found")
        except StorageError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _refresh()
        return AnnouncementResponse.model_validate(row)

    @router.delete("/{announcement_id}", dependencies=[Depends(require_admin)])
    def delete(announcement_id: int) -> dict:
        if not delete_announcement(announcement_id, _storage()):
            raise HTTPException(status_code=404, detail="Announcement not found")
        _refresh()
        return {"deleted": announcement_id}

    return router
