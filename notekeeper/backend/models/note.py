"""
Note Model.

The persisted note record. Field aliases are the camelCase names used in
the notes file and in API payloads.
"""

from datetime import datetime

from pydantic import Field

from notekeeper.backend.models.base import TimestampedRecord

DEFAULT_CATEGORY = "Personal"


class Note(TimestampedRecord):
    """
    A user's note, optionally flagged as a reminder.

    reminder_date is only meaningful when is_reminder is set. Past
    reminder dates are legal and mark overdue items.
    """

    title: str
    content: str
    category: str = DEFAULT_CATEGORY
    is_reminder: bool = Field(default=False, alias="isReminder")
    reminder_date: datetime | None = Field(default=None, alias="reminderDate")
    completed: bool = False

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r})>"
