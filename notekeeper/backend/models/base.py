"""
Record Base Model.

Base classes for records persisted in the JSON store, with common fields
and conversion to and from the on-disk representation.
"""

from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notekeeper.backend.core.utils import ensure_utc


class RecordModel(BaseModel):
    """
    Base class for all persisted records.

    Attributes use snake_case; the stored JSON uses each field's alias.
    Unknown keys found on disk are dropped on load.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        """Build an instance from a decoded JSON object."""
        return cls.model_validate(record)

    def to_record(self) -> dict[str, Any]:
        """Return the JSON-ready dict written to disk."""
        return self.model_dump(mode="json", by_alias=True)


class TimestampedRecord(RecordModel):
    """Record with an opaque string id and creation/update timestamps."""

    id: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

