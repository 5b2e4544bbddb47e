import logging
from typing import Dict, List, Optional
from urllib.parse import quote

import requests

from app.config import settings

logger = logging.getLogger(__name__)

BREVO_CONTACTS_URL = "https://api.brevo.com/v3/contacts"
DEFAULT_COUNTRY_CODE = "233"  # Ghana

DUPLICATE_CODES = {"duplicate_parameter", "duplicate_unique_field"}


class SubscriberStoreError(Exception):
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def normalize_phone(phone: str) -> str:
    """Brevo's SMS attribute wants E.164; bare numbers are assumed Ghanaian."""
    phone = phone.strip().replace(" ", "")
    if phone.startswith("+"):
        return phone
    if phone.startswith("0"):
        return f"+{DEFAULT_COUNTRY_CODE}{phone[1:]}"
    if phone.startswith(DEFAULT_COUNTRY_CODE):
        return f"+{phone}"
    return f"+{DEFAULT_COUNTRY_CODE}{phone}"


def build_attributes(name: Optional[str], phone: Optional[str]) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    if name:
        parts = name.split()
        attributes["FNAME"] = parts[0]
        if len(parts) > 1:
            attributes["LNAME"] = " ".join(parts[1:])
    if phone:
        attributes["SMS"] = normalize_phone(phone)
    return attributes


def _headers() -> Dict[str, str]:
    return {
        "api-key": settings.brevo_api_key,
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def _error_body(response: requests.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _raise_for_brevo(response: requests.Response) -> None:
    body = _error_body(response)
    code = body.get("code")
    message = str(body.get("message") or "")
    logger.error(
        f"Brevo contact error ({response.status_code}): code={code} message={message}"
    )

    if code == "invalid_parameter" and ("phone" in message.lower() or "sms" in message.lower()):
        raise SubscriberStoreError(
            "Invalid phone number format. Please include country code (e.g., +233...).",
            400,
        )
    if response.status_code == 401:
        raise SubscriberStoreError("Invalid API credentials. Please contact support.", 500)
    if response.status_code == 400:
        raise SubscriberStoreError("Invalid contact data. Please check your information.", 400)
    raise SubscriberStoreError("Subscription failed. Please try again later.", 500)


def _update_contact(email: str, attributes: Dict[str, str], list_ids: List[int]) -> None:
    payload: Dict[str, object] = {}
    if attributes:
        payload["attributes"] = attributes
    if list_ids:
        payload["listIds"] = list_ids

    response = requests.put(
        f"{BREVO_CONTACTS_URL}/{quote(email, safe='')}",
        json=payload,
        headers=_headers(),
        timeout=settings.http_timeout_seconds,
    )
    if response.status_code >= 400:
        _raise_for_brevo(response)


def upsert_subscriber(
    email: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    list_ids: Optional[List[int]] = None,
) -> None:
    """
    Create or update a Brevo contact (Brevo deduplicates by email).
    """
    if not settings.brevo_api_key:
        raise SubscriberStoreError("Email service is not configured. Please contact support.", 500)

    email = email.strip().lower()
    list_ids = list_ids if list_ids is not None else settings.newsletter_list_ids
    attributes = build_attributes(name, phone)

    payload: Dict[str, object] = {"email": email, "updateEnabled": True}
    if attributes:
        payload["attributes"] = attributes
    if list_ids:
        payload["listIds"] = list_ids

    try:
        response = requests.post(
            BREVO_CONTACTS_URL,
            json=payload,
            headers=_headers(),
            timeout=settings.http_timeout_seconds,
        )

        if response.status_code < 400:
            logger.info(f"Subscriber upserted: {email}")
            return

        # updateEnabled should cover this, but Brevo still answers
        # duplicate_parameter for some attribute clashes
        if _error_body(response).get("code") in DUPLICATE_CODES:
            _update_contact(email, attributes, list_ids)
            logger.info(f"Subscriber updated: {email}")
            return

        _raise_for_brevo(response)

    except requests.RequestException:
        logger.exception("Brevo contacts request failed")
        raise SubscriberStoreError("Subscription failed. Please try again later.", 500)
