import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CustomField(BaseModel):
    model_config = ConfigDict(extra="ignore")

    variable_name: str
    value: Any = None
    display_name: Optional[str] = None


class CheckoutMetadata(BaseModel):
    """
    Named view of the checkout widget's ``metadata.custom_fields`` array.

    Built once at the boundary; handlers read attributes, never the raw list.
    """

    customer_name: Optional[str] = None
    product: Optional[str] = None
    phone: Optional[str] = None
    delivery_address: Optional[str] = None

    @classmethod
    def from_raw(cls, metadata: Any) -> "CheckoutMetadata":
        # Paystack returns "" or a JSON string when the widget sent none
        if isinstance(metadata, str):
            try:
                metadata = json.loads(metadata)
            except ValueError:
                return cls()

        if not isinstance(metadata, dict):
            return cls()

        raw_fields = metadata.get("custom_fields")
        if not isinstance(raw_fields, list):
            return cls()

        values: Dict[str, str] = {}
        for item in raw_fields:
            if not isinstance(item, dict) or "variable_name" not in item:
                continue
            field = CustomField.model_validate(item)
            if field.variable_name not in cls.model_fields:
                continue
            if field.value is None:
                continue
            text = str(field.value).strip()
            if text:
                values.setdefault(field.variable_name, text)

        return cls(**values)


class PaystackCustomer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or None


class PaystackTransaction(BaseModel):
    """``data`` object of /transaction/verify and of charge.* webhook events."""

    model_config = ConfigDict(extra="ignore")

    reference: str
    status: str
    amount: int  # minor units (pesewas)
    currency: Optional[str] = None
    customer: PaystackCustomer
    metadata_raw: Any = Field(default=None, alias="metadata")

    @property
    def metadata(self) -> CheckoutMetadata:
        return CheckoutMetadata.from_raw(self.metadata_raw)

    @property
    def customer_email(self) -> str:
        return self.customer.email.strip().lower()

    @property
    def is_successful(self) -> bool:
        return self.status == "success"


class PaystackEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str
    data: Dict[str, Any] = Field(default_factory=dict)

    def transaction(self) -> PaystackTransaction:
        return PaystackTransaction.model_validate(self.data)


class PaystackVerifyResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: bool
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


