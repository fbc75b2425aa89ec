"""
Per-plugin API for prayer times and Iqamah administration.
Mounted at /api/components/prayer/.
"""
from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from masjid_sign.api.security import admin_guard
from masjid_sign.plugins.prayer.service import (
    get_iqamah_records,
    get_latest_prayer_times_record,
    save_iqamah_time,
)
from masjid_sign.plugins.prayer.task import TASK_NAME


class PrayerTimesRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    fetched_at: Optional[datetime] = None
    prayer_date: Optional[date] = None
    timings: Optional[Dict[str, str]] = None
    readable_date: Optional[str] = None
    hijri_date: Optional[str] = None


class IqamahTimeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    prayer_name: str
    iqamah_time: str


class IqamahTimeUpdate(BaseModel):
    iqamah_time: str


def get_router(sign_app) -> Optional[APIRouter]:
    router = APIRouter(tags=["Prayer Times"])
    require_admin = admin_guard(sign_app)

    @router.get("/data", response_model=PrayerTimesRecordResponse)
    def get_data() -> PrayerTimesRecordResponse:
        """Latest stored AlAdhan timings."""
        record = get_latest_prayer_times_record()
        if record is None:
            raise HTTPException(status_code=404, detail="No prayer times data available")
        return PrayerTimesRecordResponse.model_validate(record)

    @router.get("/iqamah", response_model=List[IqamahTimeResponse])
    def list_iqamah() -> List[IqamahTimeResponse]:
        return [IqamahTimeResponse.model_validate(row) for row in get_iqamah_records()]

    @router.put("/iqamah/{prayer_name}", response_model=IqamahTimeResponse, dependencies=[Depends(require_admin)])
    def put_iqamah(prayer_name: str, body: IqamahTimeUpdate) -> IqamahTimeResponse:
        try:
            row = save_iqamah_time(prayer_name, body.iqamah_time)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        task_manager = getattr(sign_app, "task_manager", None)
        if task_manager is not None:
            task_manager.refresh_now(TASK_NAME)
        return IqamahTimeResponse.model_validate(row)

    return router
