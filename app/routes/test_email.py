# app/routes/test_email.py

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from app.config import settings
from app.services.email_service import send_email
from app.utils.clock import utc_now
from app.utils.template import render_template

router = APIRouter()


@router.get("/test-email")
def test_email(to: str):
    """Check the Brevo setup from a dev machine. Not exposed in production."""
    if settings.is_production:
        raise HTTPException(status_code=404, detail="Not Found")

    html = render_template(
        "user_emails/test_email.html",
        sender_name=settings.mail_sender_name,
        sent_at=utc_now().isoformat(),
    )

    if send_email(to, f"Test Email - {settings.mail_sender_name}", html):
        return {
            "success": True,
            "message": f"Test email sent successfully to {to}",
        }

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Failed to send test email. Check server logs for details.",
        },
    )
