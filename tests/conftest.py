import os
import tempfile

import pytest

# Must be set BEFORE app.config / app.database are imported:
# settings and the engine are built at module level.
_TMP_ROOT = tempfile.mkdtemp(prefix="ptp-tests-")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_store.db")
os.environ.setdefault("DOWNLOAD_SECRET", "test-download-secret-at-least-32-chars!")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_paystack_secret")
os.environ.setdefault("PRIVATE_FILES_DIR", os.path.join(_TMP_ROOT, "private"))
os.environ.setdefault("PUBLIC_DIR", os.path.join(_TMP_ROOT, "public"))
os.environ.setdefault("SITE_URL", "https://author.example")
os.environ.setdefault("BREVO_API_KEY", "test-brevo-key")
os.environ.setdefault("ADMIN_EMAILS", "")
os.environ.setdefault("ANALYTICS_SECRET", "")

# R2 disabled by default; tests that need object storage use mock_s3
for _var in ("R2_ACCOUNT_ID", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_BUCKET_NAME"):
    os.environ.pop(_var, None)

from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from app.config import settings
from app.database import engine
from app.main import app
from app.models import analytics_event, download, purchase  # noqa: F401

BOOK_BYTES = b"%PDF-1.7 the path to purpose"
RESEARCH_BYTES = b"%PDF-1.7 research paper"


@pytest.fixture(autouse=True)
def db():
    """Recreate all tables fresh before every test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(db):
    with Session(engine) as s:
        yield s


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def private_dir(tmp_path, monkeypatch):
    root = tmp_path / "private"
    monkeypatch.setattr(settings, "private_files_dir", str(root))
    return root


@pytest.fixture
def public_dir(tmp_path, monkeypatch):
    root = tmp_path / "public"
    monkeypatch.setattr(settings, "public_dir", str(root))
    return root


@pytest.fixture
def book_on_disk(private_dir):
    path = private_dir / "books" / "the-path-to-purpose.pdf"
    path.parent.mkdir(parents=True)
    path.write_bytes(BOOK_BYTES)
    return path


@pytest.fixture
def research_on_disk(public_dir):
    path = public_dir / "books" / "ai-job-security-human-condition.pdf"
    path.parent.mkdir(parents=True)
    path.write_bytes(RESEARCH_BYTES)
    return path


@pytest.fixture
def mock_s3():
    """
    In-process moto S3 standing in for R2.

    Yields a client bound to the mock with an empty bucket created; the lazy
    R2 singleton is reset before and after so it never leaks between tests.
    """
    from moto import mock_aws
    import boto3
    from app.services import r2_client

    with mock_aws():
        r2_client.reset_s3_client()
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket="ptp-test-books")
        yield s3
        r2_client.reset_s3_client()


@pytest.fixture
def sent_emails():
    """Capture outbound mail instead of calling Brevo."""
    from unittest.mock import patch

    with patch("app.notifications.email_handlers.send_email", return_value=True) as mocked:
        yield mocked
