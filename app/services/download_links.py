"""
Download capabilities: self-contained, expiring, signed download URLs.

A link carries ``email``, ``product``, ``expires`` (epoch milliseconds) and
``sig`` = HMAC(DOWNLOAD_SECRET, "email:product:expires"). Nothing is stored
server-side; a link is valid for any number of downloads until it expires.
"""
import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode

from app.config import settings
from app.constants.products import PRODUCTS
from app.utils import signing

logger = logging.getLogger(__name__)

DOWNLOAD_PATH = "/download"


class DownloadLinkError(Exception):
    status_code = 400
    message = "Invalid download link"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class MissingParameters(DownloadLinkError):
    status_code = 400
    message = "Missing required parameters"


class LinkExpired(DownloadLinkError):
    status_code = 410
    message = "Download link has expired. Please contact support for a new link."


class InvalidSignature(DownloadLinkError):
    status_code = 403
    message = "Invalid download link"


class InvalidProduct(DownloadLinkError):
    status_code = 400
    message = "Invalid product"


@dataclass(frozen=True)
class DownloadLink:
    email: str
    product: str
    expires: int
    sig: str

    @property
    def query(self) -> str:
        return urlencode({
            "email": self.email,
            "product": self.product,
            "expires": str(self.expires),
            "sig": self.sig,
        })

    @property
    def path(self) -> str:
        return f"{DOWNLOAD_PATH}?{self.query}"

    def url(self, base_url: Optional[str] = None) -> str:
        base = (base_url if base_url is not None else settings.site_url).rstrip("/")
        return f"{base}{self.path}"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _secret(secret: Optional[str]) -> str:
    return settings.download_secret if secret is None else secret


def issue_download_link(
    email: str,
    product: str,
    ttl: Optional[timedelta] = None,
    *,
    now_ms: Optional[int] = None,
    secret: Optional[str] = None,
) -> DownloadLink:
    if product not in PRODUCTS:
        raise InvalidProduct()

    if ttl is None:
        ttl = timedelta(hours=settings.download_link_ttl_hours)

    now = _now_ms() if now_ms is None else now_ms
    expires = now + int(ttl.total_seconds() * 1000)
    sig = signing.sign([email, product, str(expires)], _secret(secret))

    return DownloadLink(email=email, product=product, expires=expires, sig=sig)


def verify_download_link(
    email: Optional[str],
    product: Optional[str],
    expires: Optional[str],
    sig: Optional[str],
    *,
    now_ms: Optional[int] = None,
    secret: Optional[str] = None,
) -> DownloadLink:
    """
    Validate the raw query values of a download request.

    Checks run in a fixed order and stop at the first failure:
    presence, expiry, signature, catalog membership.
    """
    if not email or not product or not expires or not sig:
        raise MissingParameters()

    try:
        expires_at = int(expires)
    except ValueError:
        raise LinkExpired()

    now = _now_ms() if now_ms is None else now_ms
    if now > expires_at:
        raise LinkExpired()

    # sign over the string exactly as received
    if not signing.verify([email, product, expires], _secret(secret), sig):
        logger.warning("download_link_bad_signature", extra={"product": product})
        raise InvalidSignature()

    if product not in PRODUCTS:
        raise InvalidProduct()

    return DownloadLink(email=email, product=product, expires=expires_at, sig=sig)
