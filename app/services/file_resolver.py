"""
Locate the bytes behind a catalog entry.

Sources are tried in order (R2 first when configured, then local disk) and
each answers "found" or "not found". Storage errors on one tier are logged
and treated as a miss so the next tier still gets a chance.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.constants.products import CatalogEntry
from app.services.r2_client import get_s3_client

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass(frozen=True)
class Blob:
    content: bytes
    content_type: Optional[str] = None


@dataclass(frozen=True)
class ResolvedFile:
    content: bytes
    filename: str
    content_type: str
    source: str


class BlobSource(Protocol):
    name: str

    def fetch(self, locator: str) -> Optional[Blob]:
        ...


class R2BlobSource:
    name = "r2"

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def fetch(self, locator: str) -> Optional[Blob]:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=locator)
            return Blob(
                content=response["Body"].read(),
                content_type=response.get("ContentType"),
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code not in MISSING_OBJECT_CODES:
                logger.error(f"R2 fetch failed for {locator}: {code}")
            return None
        except BotoCoreError:
            logger.exception(f"R2 unreachable while fetching {locator}")
            return None


class LocalBlobSource:
    name = "local"

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def fetch(self, locator: str) -> Optional[Blob]:
        path = (self.root / locator).resolve()

        # catalog paths are static, but never read outside the root
        if self.root not in path.parents:
            logger.warning(f"Refusing path outside {self.root}: {locator}")
            return None

        if not path.is_file():
            return None

        try:
            return Blob(content=path.read_bytes())
        except OSError:
            logger.exception(f"Failed to read {path}")
            return None


class FileResolver:
    def __init__(self, sources: Iterable[BlobSource]):
        self.sources: List[BlobSource] = list(sources)

    def resolve(self, entry: CatalogEntry) -> Optional[ResolvedFile]:
        for source in self.sources:
            blob = source.fetch(entry.path)
            if blob is None:
                continue
            return ResolvedFile(
                content=blob.content,
                filename=entry.filename,
                content_type=entry.content_type,
                source=source.name,
            )

        logger.error(f"File not found in any source: {entry.path}")
        return None


def _r2_sources() -> List[BlobSource]:
    client = get_s3_client()
    if client is None:
        return []
    return [R2BlobSource(client, settings.r2_bucket_name)]


def build_file_resolver() -> FileResolver:
    """Paid files: R2, then PRIVATE_FILES_DIR (never a publicly served dir)."""
    return FileResolver(_r2_sources() + [LocalBlobSource(settings.private_files_dir)])


def build_research_resolver() -> FileResolver:
    """Free research papers: R2, then the public directory."""
    return FileResolver(_r2_sources() + [LocalBlobSource(settings.public_dir)])


def get_file_resolver() -> FileResolver:
    return build_file_resolver()


def get_research_resolver() -> FileResolver:
    return build_research_resolver()
