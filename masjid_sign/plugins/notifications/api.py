"""
Public forms and announcement subscriptions. Mounted at /api/components/notifications/.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from masjid_sign.api.security import admin_guard
from masjid_sign.plugins.notifications.service import (
    CONTACT,
    MEMBERSHIP,
    QURAN_REQUEST,
    get_subscriber_emails,
    send_form,
    subscribe,
    unsubscribe,
)


class SubscribeRequest(BaseModel):
    email: str


class ContactForm(BaseModel):
    name: str
    email: str
    subject: str
    message: str


class QuranRequestForm(BaseModel):
    name: str
    email: str
    address: str
    city: str
    state: str
    zip: str


class MembershipForm(BaseModel):
    name: str
    email: str
    phone: str = ""
    address: str = ""
    message: str = ""


class SubmissionResponse(BaseModel):
    sent: bool
    warning: Optional[str] = None


def get_router(sign_app) -> Optional[APIRouter]:
    router = APIRouter(tags=["Notifications"])
    require_admin = admin_guard(sign_app)

    def _submit(form_type: str, data: Dict[str, Any]) -> SubmissionResponse:
        sent = send_form(form_type, data, sign_app.config.data)
        if sent:
            return SubmissionResponse(sent=True)
        return SubmissionResponse(sent=False, warning="Your message was received but the email could not be delivered.")

    @router.post("/subscribe")
    def post_subscribe(body: SubscribeRequest) -> Dict[str, Any]:
        try:
            row, created = subscribe(body.email)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"email": row.email, "created": created}

    @router.delete("/subscribe")
    def delete_subscribe(email: str) -> Dict[str, Any]:
        try:
            removed = unsubscribe(email)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"email": email, "removed": removed}

    @router.get("/subscribers", response_model=List[str], dependencies=[Depends(require_admin)])
    def list_subscribers() -> List[str]:
        return get_subscriber_emails()

    @router.post("/contact", response_model=SubmissionResponse)
    def post_contact(body: ContactForm) -> SubmissionResponse:
        return _submit(CONTACT, body.model_dump())

    @router.post("/quran-request", response_model=SubmissionResponse)
    def post_quran_request(body: QuranRequestForm) -> SubmissionResponse:
        return _submit(QURAN_REQUEST, body.model_dump())

    @router.post("/membership", response_model=SubmissionResponse)
    def post_membership(body: MembershipForm) -> SubmissionResponse:
        return _submit(MEMBERSHIP, body.model_dump())

    return router
