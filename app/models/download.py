from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.utils.clock import utc_now


class Download(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    email: str = Field(default="anonymous")
    product: str = Field(index=True)  # book | bundle | research:<paper-id>

    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now, index=True, sa_type=DateTime(timezone=True)
    )
