from typing import Any, Optional

from pydantic import BaseModel, field_validator


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    return None


class SubscribeSchema(BaseModel):
    # Validated in the route so a bad address is a 400, not a 422
    email: str = ""
    name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> str:
        return str(v or "").strip().lower()

    @field_validator("name", "phone", mode="before")
    @classmethod
    def optional_text(cls, v: Any) -> Optional[str]:
        return _optional_text(v)
