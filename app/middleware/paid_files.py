# app/middleware/paid_files.py
import re
from urllib.parse import unquote

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

PROTECTED_PREFIX = "/books/"

# paid book files must never be served statically, even if one lands in public/
BLOCKED_PATTERNS = [
    re.compile(r"path.*to.*purpose", re.IGNORECASE),
]

# free research papers
ALLOWED_FILES = [
    "ai-job-security-human-condition.pdf",
]


class PaidFileGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        path = request.url.path

        if path.startswith(PROTECTED_PREFIX):
            filename = unquote(path.rsplit("/", 1)[-1])

            if not any(f in filename for f in ALLOWED_FILES) and any(
                p.search(filename) for p in BLOCKED_PATTERNS
            ):
                return JSONResponse(
                    status_code=403,
                    content={"error": "This content requires purchase. Visit the book page to buy."},
                )

        return await call_next(request)
