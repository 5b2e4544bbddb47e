import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.constants.products import PRODUCTS, download_display_name
from app.models.analytics_event import AnalyticsEvent
from app.models.download import Download
from app.models.purchase import Purchase
from app.schemas.analytics_schemas import AnalyticsSummary
from app.utils.request_info import RequesterInfo

logger = logging.getLogger(__name__)

FUNNEL_ACTIONS = {
    "newsletter_signup": "newsletter_signups",
    "payment_initiated": "payment_initiated",
    "payment_success": "payment_success",
    "payment_cancelled": "payment_cancelled",
}


# -----------------------------
# Recorders (write-only, best effort)
# -----------------------------

def record_event(
    session: Session,
    *,
    action: str,
    category: str,
    label: Optional[str] = None,
    value: Optional[float] = None,
    metadata: Optional[Dict[str, Any]] = None,
    requester: Optional[RequesterInfo] = None,
) -> Optional[AnalyticsEvent]:
    requester = requester or RequesterInfo()
    event = AnalyticsEvent(
        action=action,
        category=category,
        label=label,
        value=value,
        meta=metadata or {},
        user_agent=requester.user_agent,
        ip_address=requester.ip_address,
        referer=requester.referer,
    )
    try:
        session.add(event)
        session.commit()
        session.refresh(event)
        return event
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Failed to save analytics event {action}")
        return None


def record_download(
    session: Session,
    *,
    email: str,
    product: str,
    requester: Optional[RequesterInfo] = None,
) -> Optional[Download]:
    requester = requester or RequesterInfo()
    download = Download(
        email=email,
        product=product,
        user_agent=requester.user_agent,
        ip_address=requester.ip_address,
    )
    try:
        session.add(download)
        session.commit()
        return download
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Failed to save download of {product}")
        return None


# -----------------------------
# Aggregation for the dashboard
# -----------------------------

def _in_day(statement, column, day: Optional[date]):
    if day is None:
        return statement
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=1)
    return statement.where(column >= start, column < end)


def summarize(session: Session, day: Optional[date] = None) -> AnalyticsSummary:
    summary = AnalyticsSummary()

    events = session.exec(
        _in_day(
            select(AnalyticsEvent.action, AnalyticsEvent.label),
            AnalyticsEvent.created_at,
            day,
        )
    ).all()

    for action, label in events:
        if action == "page_view":
            page = label or "/"
            summary.pageViews.total += 1
            summary.pageViews.byPage[page] = summary.pageViews.byPage.get(page, 0) + 1
        elif action in FUNNEL_ACTIONS:
            attr = FUNNEL_ACTIONS[action]
            setattr(summary.events, attr, getattr(summary.events, attr) + 1)

    # downloads table is the single source of truth for download counts
    downloads = session.exec(
        _in_day(select(Download.product), Download.created_at, day)
    ).all()

    for product in downloads:
        name = download_display_name(product)
        summary.downloads.byProduct[name] = summary.downloads.byProduct.get(name, 0) + 1
        summary.downloads.total += 1
        if product in PRODUCTS:
            summary.downloads.byProductSummary["book"] += 1
        elif product.startswith("research:"):
            summary.downloads.byProductSummary["research"] += 1

    purchases = session.exec(
        _in_day(
            select(Purchase.book_type, Purchase.amount, Purchase.status),
            Purchase.created_at,
            day,
        )
    ).all()

    for book_type, amount, status in purchases:
        summary.purchases.total += 1
        if status != "refunded":
            summary.purchases.revenue += float(amount or 0)
        if book_type in summary.purchases.byType:
            summary.purchases.byType[book_type] += 1

    return summary
