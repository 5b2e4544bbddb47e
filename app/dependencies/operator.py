import hmac
from typing import Optional

from fastapi import HTTPException, Query

from app.config import settings


def require_operator(key: Optional[str] = Query(default=None)):
    """Gate the analytics dashboard when ANALYTICS_SECRET is configured."""
    secret = settings.analytics_secret
    if not secret:
        return

    if not key or not hmac.compare_digest(key.encode("utf-8"), secret.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")
