from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Column, JSON
from typing import Optional, Dict, Any
from datetime import datetime

from app.utils.clock import utc_now


class AnalyticsEvent(SQLModel, table=True):
    __tablename__ = "analytics_event"

    id: Optional[int] = Field(default=None, primary_key=True)

    action: str = Field(index=True)
    category: str
    label: Optional[str] = None
    value: Optional[float] = None
    meta: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    referer: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now, index=True, sa_type=DateTime(timezone=True)
    )
