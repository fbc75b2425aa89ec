"""
Upcoming calendar events. Mounted at /api/components/events/.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from masjid_sign.api.security import admin_guard
from masjid_sign.core.clock import get_zone
from masjid_sign.plugins.events.service import get_latest_events
from masjid_sign.plugins.events.task import TASK_NAME
from masjid_sign.sign.rotation import upcoming_events


class CalendarEvent(BaseModel):
    id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    location: Optional[str] = None
    html_link: Optional[str] = None
    calendar_id: Optional[str] = None


def get_router(sign_app) -> Optional[APIRouter]:
    router = APIRouter(tags=["Events"])
    require_admin = admin_guard(sign_app)

    @router.get("/upcoming", response_model=List[CalendarEvent])
    def get_upcoming() -> List[CalendarEvent]:
        """Events from the latest fetch that have not ended yet."""
        zone = get_zone((sign_app.config.data.get("sign") or {}).get("timezone"))
        events = upcoming_events(get_latest_events(), datetime.now(zone))
        return [CalendarEvent(**event) for event in events]

    @router.post("/refresh", dependencies=[Depends(require_admin)])
    def refresh() -> dict:
        task_manager = getattr(sign_app, "task_manager", None)
        if task_manager is None:
            return {"scheduled": False}
        task_manager.refresh_now(TASK_NAME)
        return {"scheduled": True}

    return router
