from dataclasses import dataclass
from typing import Optional

from fastapi import Request


@dataclass(frozen=True)
class RequesterInfo:
    user_agent: str = "unknown"
    ip_address: Optional[str] = None
    referer: str = "direct"

    @classmethod
    def from_request(cls, request: Request) -> "RequesterInfo":
        forwarded = (
            request.headers.get("x-forwarded-for")
            or request.headers.get("x-real-ip")
            or ""
        )
        # first hop only
        ip = forwarded.split(",")[0].strip() or None
        if ip is None and request.client:
            ip = request.client.host

        return cls(
            user_agent=request.headers.get("user-agent") or "unknown",
            ip_address=ip,
            referer=request.headers.get("referer") or "direct",
        )
