"""
Generic CRUD for community listings. Mounted at /api/components/community/{kind}.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict

from masjid_sign.api.security import admin_guard
from masjid_sign.core.storage import BlobStorage, StorageError
from masjid_sign.plugins.community.service import (
    KINDS,
    attach_file,
    delete_entity,
    get_entity,
    list_entities,
    save_entity,
)


class EntityBody(BaseModel):
    name: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    link_url: Optional[str] = None
    display_order: Optional[int] = None


class EntityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: str
    name: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    link_url: Optional[str] = None
    file_url: Optional[str] = None
    display_order: int
    created_at: datetime


def get_router(sign_app) -> Optional[APIRouter]:
    router = APIRouter(tags=["Community"])
    require_admin = admin_guard(sign_app)

    def _storage() -> BlobStorage:
        return BlobStorage(sign_app.config.data.get("storage") or {})

    def _known(kind: str) -> str:
        if kind not in KINDS:
            raise HTTPException(status_code=404, detail=f"Unknown entity kind: {kind}")
        return kind

    @router.get("/kinds", response_model=List[str])
    def get_kinds() -> List[str]:
        return list(KINDS)

    @router.get("/{kind}", response_model=List[EntityResponse])
    def get_all(kind: str) -> List[EntityResponse]:
        return [EntityResponse.model_validate(row) for row in list_entities(_known(kind))]

    @router.get("/{kind}/{entity_id}", response_model=EntityResponse)
    def get_one(kind: str, entity_id: int) -> EntityResponse:
        row = get_entity(_known(kind), entity_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Not found")
        return EntityResponse.model_validate(row)

    @router.post("/{kind}", response_model=EntityResponse, status_code=201, dependencies=[Depends(require_admin)])
    def create(kind: str, body: EntityBody) -> EntityResponse:
        try:
            row = save_entity(_known(kind), body.model_dump(exclude_none=True))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return EntityResponse.model_validate(row)

    @router.put("/{kind}/{entity_id}", response_model=EntityResponse, dependencies=[Depends(require_admin)])
    def update(kind: str, entity_id: int, body: EntityBody) -> EntityResponse:
        try:
            row = save_entity(_known(kind), body.model_dump(exclude_unset=True), entity_id=entity_id)
        except LookupError:
            raise HTTPException(status_code=404, detail="Not found")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return EntityResponse.model_validate(row)

    @router.post("/{kind}/{entity_id}/file", response_model=EntityResponse, dependencies=[Depends(require_admin)])
    async def upload_file(kind: str, entity_id: int, file: UploadFile = File(...)) -> EntityResponse:
        content = await file.read()
        try:
            row = attach_file(_known(kind), entity_id, file.filename or "file", content, _storage())
        except LookupError:
            raise HTTPException(status_code=404, detail="Not found")
        except StorageError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return EntityResponse.model_validate(row)

    @router.delete("/{kind}/{entity_id}", dependencies=[Depends(require_admin)])
    def delete(kind: str, entity_id: int) -> dict:
        if not delete_entity(_known(kind), entity_id, _storage()):
            raise HTTPException(status_code=404, detail="Not found")
        return {"deleted": entity_id}

    return router
