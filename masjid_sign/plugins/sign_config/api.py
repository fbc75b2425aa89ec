"""
Digital sign settings and downtime rules. Mounted at /api/components/sign_config/.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from masjid_sign.api.security import admin_guard
from masjid_sign.plugins.sign_config.service import (
    delete_rule,
    get_rule,
    get_settings,
    list_rules,
    save_rule,
    save_settings,
)
from masjid_sign.plugins.sign_config.task import TASK_NAME


class SettingsModel(BaseModel):
    max_announcements: int = 3
    show_descriptions: bool = True
    show_images: bool = True
    rotation_interval_seconds: int = 15


class SettingsUpdate(BaseModel):
    max_announcements: Optional[int] = None
    show_descriptions: Optional[bool] = None
    show_images: Optional[bool] = None
    rotation_interval_seconds: Optional[int] = None


class DowntimeRuleBody(BaseModel):
    type: str
    days_of_week: Optional[List[str]] = None
    is_active: bool = True
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    prayer_name: Optional[str] = None
    minutes_before_iqamah: Optional[int] = None
    minutes_after_iqamah: Optional[int] = None


class DowntimeRuleResponse(DowntimeRuleBody):
    model_config = ConfigDict(from_attributes=True)

    id: int


def get_router(sign_app) -> Optional[APIRouter]:
    router = APIRouter(tags=["Sign Config"])
    require_admin = admin_guard(sign_app)

    def _refresh() -> None:
        task_manager = getattr(sign_app, "task_manager", None)
        if task_manager is not None:
            task_manager.refresh_now(TASK_NAME)

    @router.get("/settings", response_model=SettingsModel)
    def read_settings() -> SettingsModel:
        return SettingsModel(**get_settings())

    @router.put("/settings", response_model=SettingsModel, dependencies=[Depends(require_admin)])
    def write_settings(body: SettingsUpdate) -> SettingsModel:
        try:
            saved = save_settings(body.model_dump(exclude_none=True))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _refresh()
        return SettingsModel(**saved)

    @router.get("/downtime-rules", response_model=List[DowntimeRuleResponse])
    def read_rules() -> List[DowntimeRuleResponse]:
        return [DowntimeRuleResponse.model_validate(row) for row in list_rules()]

    @router.get("/downtime-rules/{rule_id}", response_model=DowntimeRuleResponse)
    def read_rule(rule_id: int) -> DowntimeRuleResponse:
        row = get_rule(rule_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Downtime rule not found")
        return DowntimeRuleResponse.model_validate(row)

    @router.post("/downtime-rules", response_model=DowntimeRuleResponse, status_code=201,
                 dependencies=[Depends(require_admin)])
    def create_rule(body: DowntimeRuleBody) -> DowntimeRuleResponse:
        try:
            row = save_rule(body.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _refresh()
        return DowntimeRuleResponse.model_validate(row)

    @router.put("/downtime-rules/{rule_id}", response_model=DowntimeRuleResponse,
                dependencies=[Depends(require_admin)])
    def update_rule(rule_id: int, body: DowntimeRuleBody) -> DowntimeRuleResponse:
        try:
            row = save_rule(body.model_dump(), rule_id=rule_id)
        except LookupError:
            raise HTTPException(status_code=404, detail="Downtime rule not found")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _refresh()
        return DowntimeRuleResponse.model_validate(row)

    @router.delete("/downtime-rules/{rule_id}", dependencies=[Depends(require_admin)])
    def remove_rule(rule_id: int) -> dict:
        if not delete_rule(rule_id):
            raise HTTPException(status_code=404, detail="Downtime rule not found")
        _refresh()
        return {"deleted": rule_id}

    return router
