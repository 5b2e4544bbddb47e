from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TrackEventSchema(BaseModel):
    action: Optional[str] = None
    category: Optional[str] = None
    label: Optional[str] = None
    value: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PageViewStats(BaseModel):
    total: int = 0
    byPage: Dict[str, int] = Field(default_factory=dict)


class DownloadStats(BaseModel):
    total: int = 0
    byProduct: Dict[str, int] = Field(default_factory=dict)
    byProductSummary: Dict[str, int] = Field(
        default_factory=lambda: {"book": 0, "research": 0}
    )


class PurchaseStats(BaseModel):
    total: int = 0
    revenue: float = 0
    byType: Dict[str, int] = Field(
        default_factory=lambda: {"ebook": 0, "hardcopy": 0, "bundle": 0}
    )


class EventStats(BaseModel):
    newsletter_signups: int = 0
    payment_initiated: int = 0
    payment_success: int = 0
    payment_cancelled: int = 0


class AnalyticsSummary(BaseModel):
    pageViews: PageViewStats = Field(default_factory=PageViewStats)
    downloads: DownloadStats = Field(default_factory=DownloadStats)
    purchases: PurchaseStats = Field(default_factory=PurchaseStats)
    events: EventStats = Field(default_factory=EventStats)
