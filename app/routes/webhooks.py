import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.schemas.paystack_schemas import PaystackEvent
from app.services.paystack_client import SIGNATURE_HEADER, verify_webhook_signature
from app.services.webhook_service import handle_paystack_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook/paystack")
async def paystack_webhook(
    request: Request,
    session: Session = Depends(get_session),
):
    # raw bytes: the signature covers the body exactly as Paystack sent it
    raw_body = await request.body()

    secret = settings.paystack_secret_key
    if not secret:
        logger.error("Paystack secret key not configured; cannot verify webhook")
        return JSONResponse(status_code=500, content={"error": "Server configuration error"})

    signature = request.headers.get(SIGNATURE_HEADER)
    if not verify_webhook_signature(raw_body, signature, secret):
        logger.warning("Invalid webhook signature", extra={"has_signature": bool(signature)})
        return JSONResponse(status_code=401, content={"error": "Invalid signature"})

    # From here on always 200, otherwise Paystack keeps retrying
    try:
        event = PaystackEvent.model_validate_json(raw_body)
        await run_in_threadpool(handle_paystack_event, session, event)
    except Exception:
        logger.exception("Webhook processing error")
        return {"received": True, "error": "Processing error"}

    return {"received": True}
