import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.database import get_session
from app.schemas.payment_schemas import VerifyPaymentSchema
from app.services.payment_service import (
    PaymentConfigurationError,
    PaymentDeclined,
    verify_payment,
)
from app.services.paystack_client import PaystackClient, get_paystack_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/verify-payment")
def verify_payment_route(
    payload: VerifyPaymentSchema,
    session: Session = Depends(get_session),
    client: Optional[PaystackClient] = Depends(get_paystack_client),
):
    try:
        outcome = verify_payment(session, payload, client)

    except PaymentDeclined as e:
        body = {"success": False, "message": e.message}
        if e.details:
            body["details"] = e.details
        return JSONResponse(status_code=400, content=body)

    except PaymentConfigurationError as e:
        return JSONResponse(status_code=500, content={"success": False, "message": e.message})

    except Exception:
        logger.exception(f"Payment verification error for {payload.reference}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    response = {
        "success": True,
        "message": outcome.message,
        "bookType": outcome.book_type,
        "emailSent": outcome.email_sent,
    }
    if outcome.download_url:
        response["downloadUrl"] = outcome.download_url

    return response
