import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlmodel import Session

from app.database import get_session
from app.dependencies.operator import require_operator
from app.schemas.analytics_schemas import TrackEventSchema
from app.services.analytics_service import record_event, summarize
from app.utils.request_info import RequesterInfo

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_day(raw: Optional[str]) -> Optional[date]:
    if not raw or raw == "total":
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD or 'total'")


@router.get("/analytics", dependencies=[Depends(require_operator)])
def analytics_summary(
    date_param: Optional[str] = Query(default=None, alias="date"),
    session: Session = Depends(get_session),
):
    day = _parse_day(date_param)
    summary = summarize(session, day)
    return {
        "success": True,
        "date": day.isoformat() if day else "total",
        "data": summary.model_dump(),
    }


@router.post("/analytics")
def track_event(
    payload: TrackEventSchema,
    request: Request,
    session: Session = Depends(get_session),
):
    if not payload.action or not payload.category:
        raise HTTPException(status_code=400, detail="Action and category are required")

    requester = RequesterInfo.from_request(request)
    event = record_event(
        session,
        action=payload.action,
        category=payload.category,
        label=payload.label,
        value=payload.value,
        metadata=payload.metadata,
        requester=requester,
    )
    if event is None:
        logger.warning(f"Analytics event {payload.action} not persisted")

    return {
        "success": True,
        "event": {
            "action": payload.action,
            "category": payload.category,
            "label": payload.label,
            "value": payload.value,
            "metadata": payload.metadata,
            "userAgent": requester.user_agent,
            "ip": requester.ip_address,
            "referer": requester.referer,
        },
    }
