import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.database import create_db_and_tables
from app.logging_config import setup_logging
from app.middleware.paid_files import PaidFileGuardMiddleware
from app.routes import (
    analytics,
    downloads,
    payments,
    subscribe,
    test_email,
    webhooks,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    settings.validate_secrets()
    # Run DB creation ONLY outside production; production uses alembic
    if not settings.is_production:
        create_db_and_tables()
    yield


app = FastAPI(title="The Path to Purpose API", lifespan=lifespan)
app.add_middleware(PaidFileGuardMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(status_code=400, content={"success": False, "message": message})


app.include_router(downloads.router, tags=["Downloads"])
app.include_router(payments.router, tags=["Payments"])
app.include_router(webhooks.router, tags=["Webhooks"])
app.include_router(subscribe.router, tags=["Newsletter"])
app.include_router(analytics.router, tags=["Analytics"])
app.include_router(test_email.router, tags=["Dev"])

# Free research papers live under PUBLIC_DIR/books; paid files never do
BOOKS_DIR = os.path.join(settings.public_dir, "books")
if os.path.isdir(BOOKS_DIR):
    app.mount("/books", StaticFiles(directory=BOOKS_DIR), name="books")


@app.get("/")
def root():
    return {
        "service": "The Path to Purpose API",
        "download_endpoints": [
            "/download", "/download-research"
        ],
        "payment_endpoints": [
            "/verify-payment", "/webhook/paystack"
        ],
        "newsletter_endpoints": [
            "/subscribe"
        ],
        "analytics_endpoints": [
            "/analytics"
        ],
    }
