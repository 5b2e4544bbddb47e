import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlmodel import Session

from app.constants.products import get_product, get_research_paper
from app.database import get_session
from app.services.analytics_service import record_download
from app.services.download_links import DownloadLinkError, verify_download_link
from app.services.file_resolver import (
    FileResolver,
    ResolvedFile,
    get_file_resolver,
    get_research_resolver,
)
from app.utils.request_info import RequesterInfo

logger = logging.getLogger(__name__)

router = APIRouter()

FILE_NOT_FOUND = "File not found. Please contact support."


def _file_response(resolved: ResolvedFile) -> Response:
    return Response(
        content=resolved.content,
        media_type=resolved.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{resolved.filename}"',
            "Cache-Control": "no-store, no-cache, must-revalidate",
            "X-Content-Type-Options": "nosniff",
        },
    )


@router.get("/download")
def download_book(
    request: Request,
    email: Optional[str] = None,
    product: Optional[str] = None,
    expires: Optional[str] = None,
    sig: Optional[str] = None,
    session: Session = Depends(get_session),
    resolver: FileResolver = Depends(get_file_resolver),
):
    """Serve a purchased book to the holder of a valid signed link."""
    try:
        link = verify_download_link(email, product, expires, sig)
    except DownloadLinkError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    resolved = resolver.resolve(get_product(link.product))
    if not resolved:
        raise HTTPException(status_code=404, detail=FILE_NOT_FOUND)

    record_download(
        session,
        email=link.email,
        product=link.product,
        requester=RequesterInfo.from_request(request),
    )
    logger.info("download", extra={"product": link.product, "source": resolved.source})

    return _file_response(resolved)


@router.get("/download-research")
def download_research(
    request: Request,
    id: Optional[str] = None,
    session: Session = Depends(get_session),
    resolver: FileResolver = Depends(get_research_resolver),
):
    """Free research papers; no signature required."""
    paper = get_research_paper(id)
    if not paper:
        raise HTTPException(status_code=400, detail="Invalid paper ID")

    resolved = resolver.resolve(paper)
    if not resolved:
        raise HTTPException(status_code=404, detail=FILE_NOT_FOUND)

    record_download(
        session,
        email="anonymous",
        product=f"research:{paper.key}",
        requester=RequesterInfo.from_request(request),
    )

    return _file_response(resolved)
