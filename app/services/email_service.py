import base64
import logging
import re
from typing import List, Optional, Sequence, Tuple, Union

import requests

from app.config import settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(email):
    if isinstance(email, (list, tuple)):
        return all(is_valid_email(e) for e in email)

    if not email or not isinstance(email, str):
        return False

    return EMAIL_RE.match(email) is not None


def send_email(
    to: Union[str, Sequence[str]],
    subject: str,
    html: str,
    attachments: Optional[List[Tuple[str, bytes, str]]] = None,
) -> bool:
    """
    Send email via Brevo. Best effort: returns False instead of raising.

    attachments: List of tuples
        (filename, file_bytes, mime_type)
    """

    if isinstance(to, str):
        recipients = [to]
    else:
        recipients = list(to)
    valid_emails = [e for e in recipients if is_valid_email(e)]

    if not valid_emails:
        logger.warning(f"No valid emails found: {to}")
        return False

    if not settings.brevo_api_key:
        logger.error("BREVO_API_KEY is not set; cannot send transactional email")
        return False

    payload = {
        "sender": {
            "email": settings.mail_from,
            "name": settings.mail_sender_name,
        },
        "to": [{"email": e} for e in valid_emails],
        "subject": subject,
        "htmlContent": html,
    }

    if attachments:
        payload["attachment"] = [
            {
                "name": filename,
                "content": base64.b64encode(file_bytes).decode("utf-8"),
            }
            for filename, file_bytes, mime_type in attachments
        ]

    headers = {
        "api-key": settings.brevo_api_key,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            BREVO_API_URL,
            json=payload,
            headers=headers,
            timeout=settings.http_timeout_seconds,
        )

        if response.status_code >= 400:
            logger.error(
                f"Brevo email failed ({response.status_code}): {response.text}"
            )
            return False

        logger.info(f"Brevo email sent to {valid_emails}")
        return True

    except requests.RequestException:
        logger.exception("Brevo email exception")
        return False
