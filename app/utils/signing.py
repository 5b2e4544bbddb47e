"""
Keyed signatures over an ordered tuple of string fields.

Fields are joined with ``FIELD_SEPARATOR`` in the order given and signed
with HMAC-SHA256; the digest travels as lowercase hex. Both directions fail
closed when no secret is configured: ``sign`` raises and ``verify`` returns
False. There is no default key.
"""
import hashlib
import hmac
from typing import Optional, Sequence, Union

FIELD_SEPARATOR = ":"

Secret = Union[str, bytes, None]


class MissingSecretError(RuntimeError):
    """Raised when a signature is requested without a signing secret."""


def _key(secret: Secret) -> Optional[bytes]:
    if not secret:
        return None
    if isinstance(secret, str):
        return secret.encode("utf-8")
    return secret


def _digest(fields: Sequence[str], key: bytes) -> str:
    message = FIELD_SEPARATOR.join(str(f) for f in fields).encode("utf-8")
    return hmac.new(key, message, hashlib.sha256).hexdigest()


def sign(fields: Sequence[str], secret: Secret) -> str:
    key = _key(secret)
    if key is None:
        raise MissingSecretError("signing secret is not configured")
    return _digest(fields, key)


def verify(fields: Sequence[str], secret: Secret, candidate: Optional[str]) -> bool:
    key = _key(secret)
    if key is None or not candidate:
        return False

    expected = _digest(fields, key)
    if len(candidate) != len(expected):
        return False

    try:
        candidate_bytes = candidate.encode("ascii")
    except UnicodeEncodeError:
        return False

    return hmac.compare_digest(candidate_bytes, expected.encode("ascii"))
