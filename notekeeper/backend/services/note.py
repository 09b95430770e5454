"""
Note Service.

Business logic layer for notes. Every operation reads the current
collection from the store, computes the next one, and hands it back to the
store to persist. No collection is kept between calls.

Concurrent operations are not serialized: when two writes overlap, the
one whose replace_all finishes last wins and the other's change is lost.
"""

from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from notekeeper.backend.core.exceptions import NotFoundError, StorageError
from notekeeper.backend.core.utils import ensure_utc, utc_now
from notekeeper.backend.models.note import DEFAULT_CATEGORY, Note
from notekeeper.backend.repositories.note import NoteStore
from notekeeper.backend.schemas.note import NoteCreate, NoteUpdate
from notekeeper.backend.services.base import BaseService

DEFAULT_REMINDER_WINDOW_SECONDS = 300

# Patch fields where an explicit null is a value rather than "leave as is"
NULLABLE_FIELDS = frozenset({"reminder_date"})


def _new_note_id(taken: set[str]) -> str:
    note_id = str(uuid4())
    while note_id in taken:
        note_id = str(uuid4())
    return note_id


def _index_of(notes: list[Note], note_id: str) -> int | None:
    for index, note in enumerate(notes):
        if note.id == note_id:
            return index
    return None


def _next_updated_at(previous: datetime) -> datetime:
    """Current time, nudged forward so updatedAt always increases."""
    now = utc_now()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class NoteService(BaseService):
    """
    Service for note business logic.

    Handles note creation, field-level merge updates, deletion, and
    lookups with validation and error handling.
    """

    def __init__(
        self,
        store: NoteStore,
        reminder_window_seconds: int = DEFAULT_REMINDER_WINDOW_SECONDS,
    ) -> None:
        super().__init__(store)
        self.reminder_window_seconds = reminder_window_seconds

    async def _load(self, operation: str) -> list[Note]:
        return await self._execute_store_operation(operation, self.store.load)

    async def _persist(self, operation: str, notes: list[Note]) -> None:
        """
        Write the full collection.

        Raises:
            StorageError: If the store could not make the collection durable.
                Any in-memory copy the caller holds is then stale.
        """
        written = await self._execute_store_operation(operation, self.store.replace_all, notes)
        if not written:
            raise StorageError(f"Failed to persist notes: {operation}")

    async def create_note(self, data: NoteCreate | Mapping[str, Any]) -> Note:
        """
        Create a new note.

        Args:
            data: Note creation data

        Returns:
            Created note

        Raises:
            ValidationError: If title or content is missing or blank
            StorageError: If the note could not be persisted
        """
        data = self._coerce(NoteCreate, data)
        self._validate_required(data.model_dump(), ["title", "content"])

        notes = await self._load("create_note")
        now = utc_now()
        note = Note(
            id=_new_note_id({n.id for n in notes}),
            title=data.title,
            content=data.content,
            category=data.category or DEFAULT_CATEGORY,
            is_reminder=bool(data.is_reminder),
            reminder_date=data.reminder_date,
            completed=False,
            created_at=now,
            updated_at=now,
        )

        self._log_operation("Creating note", note_id=note.id, title=note.title)
        await self._persist("create_note", [*notes, note])

        self._log_debug("Note created", note_id=note.id)
        return note

    async def find_note(self, note_id: str) -> Note | None:
        """
        Look a note up by exact id.

        Returns:
            The note, or None when no note has that id
        """
        notes = await self._load("find_note")
        index = _index_of(notes, note_id)
        return notes[index] if index is not None else None

    async def get_note(self, note_id: str) -> Note:
        """
        Get a note by ID.

        Raises:
            NotFoundError: If note not found
        """
        note = await self.find_note(note_id)
        if note is None:
            raise NotFoundError("Note not found")
        return note

    async def list_notes(self, category: str | None = None) -> list[Note]:
        """
        List notes in stored order.

        Args:
            category: Only return notes whose category equals this value
                exactly (case-sensitive). None returns every note.

        Returns:
            List of notes
        """
        notes = await self._load("list_notes")
        if category is None:
            return notes
        return [note for note in notes if note.category == category]

    async def update_note(self, note_id: str, data: NoteUpdate | Mapping[str, Any]) -> Note:
        """
        Merge a partial update onto an existing note.

        Fields present in data replace the stored value; absent fields are
        left untouched. updatedAt is refreshed even when nothing else
        changes.

        Args:
            note_id: Note ID to update
            data: Update data (unknown keys are ignored)

        Returns:
            Updated note

        Raises:
            NotFoundError: If note not found
            ValidationError: If a present field is invalid
            StorageError: If the update could not be persisted
        """
        data = self._coerce(NoteUpdate, data)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_FIELDS
        }

        notes = await self._load("update_note")
        index = _index_of(notes, note_id)
        if index is None:
            raise NotFoundError("Note not found")

        current = notes[index]
        changes["updated_at"] = _next_updated_at(current.updated_at)
        updated = current.model_copy(update=changes)

        self._log_operation(
            "Updating note",
            note_id=note_id,
            fields=sorted(k for k in changes if k != "updated_at"),
        )
        notes[index] = updated
        await self._persist("update_note", notes)
        return updated

    async def delete_note(self, note_id: str) -> None:
        """
        Permanently delete a note.

        Raises:
            NotFoundError: If note not found
            StorageError: If the deletion could not be persisted
        """
        notes = await self._load("delete_note")
        remaining = [note for note in notes if note.id != note_id]
        if len(remaining) == len(notes):
            raise NotFoundError("Note not found")

        self._log_operation("Deleting note", note_id=note_id)
        await self._persist("delete_note", remaining)

    async def list_due_reminders(
        self,
        window_seconds: int | None = None,
        now: datetime | None = None,
    ) -> list[Note]:
        """
        List open reminders that are overdue or due within the window.

        Args:
            window_seconds: Look-ahead in seconds, defaults to the
                service's configured window
            now: Reference time, defaults to the current time

        Returns:
            Reminders ordered by reminder date, earliest first
        """
        window = timedelta(
            seconds=self.reminder_window_seconds if window_seconds is None else window_seconds
        )
        cutoff = ensure_utc(now or utc_now()) + window

        notes = await self._load("list_due_reminders")
        due = [
            note
            for note in notes
            if note.is_reminder
            and note.reminder_date is not None
            and not note.completed
            and note.reminder_date <= cutoff
        ]
        return sorted(due, key=lambda note: note.reminder_date)
