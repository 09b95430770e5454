"""
Note Schemas.

Pydantic schemas for note API request/response validation.

Request schemas accept both the camelCase names used on the wire and the
snake_case attribute names. Keys outside the known field set are ignored.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notekeeper.backend.core.utils import ensure_utc
from notekeeper.backend.models.note import Note


class _NoteInput(BaseModel):
    """Shared configuration for note request bodies."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("reminder_date", mode="after", check_fields=False)
    @classmethod
    def _reminder_date_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class NoteCreate(_NoteInput):
    """
    Schema for creating a new note.

    Title and content are required by NoteService; they are optional here
    so a missing value surfaces as the service's validation error.
    """

    title: str | None = Field(
        default=None,
        description="Note title",
        examples=["Buy milk"],
    )
    content: str | None = Field(
        default=None,
        description="Note content",
        examples=["2%"],
    )
    category: str | None = Field(
        default=None,
        description="Category, blank or missing means Personal",
        examples=["Work"],
    )
    is_reminder: bool | None = Field(
        default=None,
        alias="isReminder",
        description="Whether the note is a reminder",
    )
    reminder_date: datetime | None = Field(
        default=None,
        alias="reminderDate",
        description="When the reminder is due (ISO-8601)",
    )

    @field_validator("category")
    @classmethod
    def _blank_category_is_default(cls, value: str | None) -> str | None:
        return value if value is not None and value.strip() else None


class NoteUpdate(_NoteInput):
    """
    Schema for updating an existing note.

    Only fields present in the request are applied. An explicit null is
    ignored for every field except reminderDate, where it clears the date.
    """

    title: str | None = Field(
        default=None,
        min_length=1,
        description="Note title",
    )
    content: str | None = Field(
        default=None,
        min_length=1,
        description="Note content",
    )
    category: str | None = Field(
        default=None,
        min_length=1,
        description="Category",
    )
    is_reminder: bool | None = Field(
        default=None,
        alias="isReminder",
        description="Whether the note is a reminder",
    )
    reminder_date: datetime | None = Field(
        default=None,
        alias="reminderDate",
        description="When the reminder is due (ISO-8601), null to clear",
    )
    completed: bool | None = Field(
        default=None,
        description="Completion status",
    )

    @field_validator("title", "content", "category")
    @classmethod
    def _not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("must not be blank")
        return value


class NoteResponse(BaseModel):
    """Schema for note in API responses."""

    id: str = Field(description="Note unique identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note content")
    category: str = Field(description="Note category")
    is_reminder: bool = Field(alias="isReminder", description="Whether the note is a reminder")
    reminder_date: datetime | None = Field(alias="reminderDate", description="Reminder due time")
    completed: bool = Field(description="Completion status")
    created_at: datetime = Field(alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(alias="updatedAt", description="Last update timestamp")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_note(cls, note: Note) -> "NoteResponse":
        """Build the response from a stored note."""
        return cls.model_validate(note.to_record())


class NoteDeleted(BaseModel):
    """Schema for a delete confirmation."""

    id: str
    deleted: bool = True
