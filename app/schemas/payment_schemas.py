from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

BookType = Literal["ebook", "hardcopy", "bundle"]


class DeliveryAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    street: str = ""
    city: str = ""
    region: str = ""
    postal_code: str = Field(default="", alias="postalCode")
    country: str = "Ghana"

    def as_line(self) -> str:
        parts = [self.street, self.city, self.region, self.postal_code, self.country]
        return ", ".join(p.strip() for p in parts if p and p.strip())


class VerifyPaymentSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reference: str
    # Client-side values are display data only; the buyer identity comes
    # from Paystack's customer record.
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    book_type: Optional[BookType] = Field(default=None, alias="bookType")
    delivery_address: Optional[DeliveryAddress] = Field(default=None, alias="deliveryAddress")
    include_bundle: bool = Field(default=False, alias="includeBundle")

    @field_validator("reference")
    @classmethod
    def reference_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Payment reference is required")
        return v

    @field_validator("email", "name", "phone")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None
