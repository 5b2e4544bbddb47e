from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.utils.clock import utc_now


class Purchase(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Paystack transaction reference; the unique index is what serializes
    # /verify-payment against the charge.success webhook
    reference: str = Field(index=True, unique=True, nullable=False)

    email: str = Field(index=True)
    name: Optional[str] = None
    phone: Optional[str] = None

    book_type: str  # ebook | bundle | hardcopy
    amount: float
    currency: str = Field(default="GHS")
    delivery_address: Optional[str] = None

    status: str = Field(default="success")  # success | refunded
    source: str = Field(default="verify")   # verify | webhook

    # set by whichever path claims the customer confirmation first
    confirmation_sent_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)
    )

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
