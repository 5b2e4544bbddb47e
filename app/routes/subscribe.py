import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.database import get_session
from app.schemas.subscriber_schemas import SubscribeSchema
from app.services.analytics_service import record_event
from app.services.email_service import is_valid_email
from app.services.subscriber_service import SubscriberStoreError, upsert_subscriber
from app.utils.request_info import RequesterInfo

logger = logging.getLogger(__name__)

router = APIRouter()


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.post("/subscribe")
def subscribe(
    payload: SubscribeSchema,
    request: Request,
    session: Session = Depends(get_session),
):
    if not is_valid_email(payload.email):
        return _fail(400, "Valid email is required")

    if not payload.name:
        return _fail(400, "Name is required")

    try:
        upsert_subscriber(payload.email, name=payload.name, phone=payload.phone)
    except SubscriberStoreError as e:
        return _fail(e.status_code, e.message)

    record_event(
        session,
        action="newsletter_signup",
        category="engagement",
        label="subscribe",
        requester=RequesterInfo.from_request(request),
    )

    return {
        "success": True,
        "message": "Thank you! You have been subscribed successfully.",
    }
