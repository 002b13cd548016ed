from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, validator

from app.utils.dates import to_datetime


class BaseSchema(BaseModel):
    """A stored document: every record carries the id of its document."""

    id: str

    class Config:
        from_attributes = True


def parse_timestamp(cls, v: Any) -> Optional[datetime]:
    return to_datetime(v)


def timestamp_validator(*fields: str):
    """Accept every stored timestamp shape for the named fields."""
    return validator(*fields, pre=True, allow_reuse=True)(parse_timestamp)


def first_present(data: dict, *keys: str, default: Any = None) -> Any:
    """First non-empty value among ``keys``; stored documents use several spellings."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return default
