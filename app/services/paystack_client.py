import hashlib
import hmac
import logging
from typing import Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from app.config import settings
from app.schemas.paystack_schemas import PaystackTransaction, PaystackVerifyResponse

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"


class PaystackError(Exception):
    """Paystack could not confirm a transaction (network, HTTP or payload error)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PaystackClient:
    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        timeout: float = 10,
        http: Optional[requests.Session] = None,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def verify_transaction(self, reference: str) -> PaystackTransaction:
        """
        Server-to-server lookup of a transaction by reference.

        Only the returned ``data.status`` decides whether a payment
        succeeded; whatever the browser claimed is ignored.
        """
        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self.http.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Paystack verify request failed for {reference}: {e}")
            raise PaystackError("Payment gateway unreachable")

        try:
            body = PaystackVerifyResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            logger.error(
                f"Paystack returned an unreadable body ({response.status_code}) for {reference}"
            )
            raise PaystackError("Invalid response from payment gateway", response.status_code)

        if response.status_code >= 400 or not body.status or body.data is None:
            logger.warning(
                f"Paystack verify rejected {reference} ({response.status_code}): {body.message}"
            )
            raise PaystackError(body.message or "Payment verification failed", response.status_code)

        try:
            return PaystackTransaction.model_validate(body.data)
        except ValidationError:
            logger.error(f"Paystack transaction payload malformed for {reference}")
            raise PaystackError("Invalid response from payment gateway", response.status_code)


def compute_webhook_signature(raw_body: bytes, secret_key: str) -> str:
    return hmac.new(secret_key.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: Optional[str], secret_key: str) -> bool:
    """HMAC-SHA512 over the raw request body, exactly as received."""
    if not secret_key or not signature:
        return False

    expected = compute_webhook_signature(raw_body, secret_key)
    signature = signature.strip().lower()
    if len(signature) != len(expected) or not signature.isascii():
        return False
    return hmac.compare_digest(signature.encode("ascii"), expected.encode("ascii"))


def get_paystack_client() -> Optional[PaystackClient]:
    if not settings.paystack_secret_key:
        return None
    return PaystackClient(
        secret_key=settings.paystack_secret_key,
        base_url=settings.paystack_base_url,
        timeout=settings.http_timeout_seconds,
    )
