"""
Unit Tests for Note Service.

Tests the NoteService business logic against a temporary store. Storage
failures are simulated with patch.object on the store.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from notekeeper.backend.core.exceptions import NotFoundError, StorageError, ValidationError
from notekeeper.backend.schemas.note import NoteCreate, NoteUpdate
from notekeeper.backend.services.note import NoteService, _new_note_id, _next_updated_at

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestNoteServiceCreate:
    """Tests for note creation."""

    @pytest.mark.asyncio
    async def test_create_note_defaults(self, note_service, note_store):
        """Should create a Personal, non-reminder, open note."""
        note = await note_service.create_note({"title": "Buy milk", "content": "2%"})

        assert note.id
        assert note.title == "Buy milk"
        assert note.content == "2%"
        assert note.category == "Personal"
        assert note.is_reminder is False
        assert note.reminder_date is None
        assert note.completed is False
        assert note.created_at == note.updated_at
        assert note.created_at.tzinfo is not None

        stored = note_store.load()
        assert [n.id for n in stored] == [note.id]

    @pytest.mark.asyncio
    async def test_create_note_from_schema(self, note_service):
        """Should accept a NoteCreate instance."""
        data = NoteCreate(title="Standup", content="Prepare notes", category="Work")
        note = await note_service.create_note(data)

        assert note.category == "Work"

    @pytest.mark.asyncio
    async def test_create_note_long_title(self, note_service, note_store):
        """Title and content have no length cap."""
        note = await note_service.create_note({"title": "t" * 300, "content": "c"})

        assert note.title == "t" * 300
        assert note_store.load()[0].title == "t" * 300

    @pytest.mark.asyncio
    @pytest.mark.parametrize("category", ["", "   "])
    async def test_create_note_blank_category_defaults(self, note_service, category):
        note = await note_service.create_note({"title": "A", "content": "a", "category": category})

        assert note.category == "Personal"

    @pytest.mark.asyncio
    async def test_create_note_appends(self, note_service):
        """New notes go to the end of the collection."""
        first = await note_service.create_note({"title": "A", "content": "a"})
        second = await note_service.create_note({"title": "B", "content": "b"})

        notes = await note_service.list_notes()

        assert [n.id for n in notes] == [first.id, second.id]
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_create_reminder_normalizes_to_utc(self, note_service):
        """Naive reminder dates are taken as UTC."""
        note = await note_service.create_note({
            "title": "Dentist",
            "content": "Call",
            "isReminder": True,
            "reminderDate": "2024-06-01T09:00:00",
        })

        assert note.is_reminder is True
        assert note.reminder_date == datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data, missing",
        [
            ({"title": "", "content": "x"}, ["title"]),
            ({"title": "x", "content": "   "}, ["content"]),
            ({"content": "x"}, ["title"]),
            ({}, ["title", "content"]),
        ],
    )
    async def test_create_note_requires_title_and_content(
        self, note_service, note_store, data, missing
    ):
        """Should reject missing or blank title/content without writing."""
        with pytest.raises(ValidationError) as exc_info:
            await note_service.create_note(data)

        assert exc_info.value.details["missing_fields"] == missing
        assert note_store.load() == []

    @pytest.mark.asyncio
    async def test_create_note_invalid_type(self, note_service):
        """Should report schema errors as ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            await note_service.create_note({"title": "x", "content": "y", "isReminder": "maybe"})

        fields = [e["field"] for e in exc_info.value.details["validation_errors"]]
        assert "isReminder" in fields

    @pytest.mark.asyncio
    async def test_create_note_persist_failure(self, note_service, note_store):
        """Should raise StorageError when the store reports a failed write."""
        with patch.object(note_store, "replace_all", return_value=False):
            with pytest.raises(StorageError):
                await note_service.create_note({"title": "x", "content": "y"})

        assert note_store.load() == []

    @pytest.mark.asyncio
    async def test_create_note_load_failure(self, note_service, note_store):
        """Should wrap filesystem errors from load."""
        with patch.object(note_store, "load", side_effect=PermissionError("denied")):
            with pytest.raises(StorageError) as exc_info:
                await note_service.create_note({"title": "x", "content": "y"})

        assert exc_info.value.code == "SYS_STORAGE_ERROR"


class TestNoteServiceGet:
    """Tests for looking notes up."""

    @pytest.mark.asyncio
    async def test_find_note(self, note_service):
        created = await note_service.create_note({"title": "x", "content": "y"})

        found = await note_service.find_note(created.id)

        assert found is not None
        assert found.to_record() == created.to_record()

    @pytest.mark.asyncio
    async def test_find_note_missing(self, note_service):
        assert await note_service.find_note("nonexistent") is None

    @pytest.mark.asyncio
    async def test_get_note_not_found(self, note_service):
        """Should raise NotFoundError when note doesn't exist."""
        with pytest.raises(NotFoundError):
            await note_service.get_note("nonexistent")


class TestNoteServiceList:
    """Tests for listing notes."""

    @pytest.mark.asyncio
    async def test_list_empty(self, note_service):
        assert await note_service.list_notes() == []

    @pytest.mark.asyncio
    async def test_list_by_category(self, note_service):
        """Category filter is exact and case-sensitive."""
        await note_service.create_note({"title": "A", "content": "a"})
        work = await note_service.create_note({"title": "B", "content": "b", "category": "Work"})
        await note_service.create_note({"title": "C", "content": "c", "category": "Shopping"})

        assert [n.id for n in await note_service.list_notes(category="Work")] == [work.id]
        assert await note_service.list_notes(category="work") == []
        assert len(await note_service.list_notes()) == 3


class TestNoteServiceUpdate:
    """Tests for field-level merge updates."""

    @pytest.fixture
    async def existing(self, note_service):
        return await note_service.create_note({
            "title": "Buy milk",
            "content": "2%",
            "isReminder": True,
            "reminderDate": "2024-06-01T09:00:00Z",
        })

    @pytest.mark.asyncio
    async def test_update_merges_present_fields(self, note_service, existing):
        """Only fields present in the patch change."""
        updated = await note_service.update_note(existing.id, {"title": "Buy oat milk"})

        assert updated.title == "Buy oat milk"
        assert updated.content == "2%"
        assert updated.category == "Personal"
        assert updated.is_reminder is True
        assert updated.reminder_date == existing.reminder_date
        assert updated.created_at == existing.created_at
        assert updated.updated_at > existing.updated_at

        stored = await note_service.get_note(existing.id)
        assert stored.to_record() == updated.to_record()

    @pytest.mark.asyncio
    async def test_update_from_schema(self, note_service, existing):
        updated = await note_service.update_note(existing.id, NoteUpdate(completed=True))

        assert updated.completed is True
        assert updated.title == "Buy milk"

    @pytest.mark.asyncio
    async def test_empty_patch_refreshes_updated_at(self, note_service, existing):
        updated = await note_service.update_note(existing.id, {})

        assert updated.updated_at > existing.updated_at
        assert updated.title == existing.title

    @pytest.mark.asyncio
    async def test_unknown_keys_are_ignored(self, note_service, existing):
        updated = await note_service.update_note(
            existing.id, {"color": "red", "id": "other", "completed": True}
        )

        assert updated.id == existing.id
        assert updated.completed is True

    @pytest.mark.asyncio
    async def test_null_is_ignored_except_reminder_date(self, note_service, existing):
        updated = await note_service.update_note(
            existing.id,
            {"title": None, "isReminder": False, "reminderDate": None},
        )

        assert updated.title == "Buy milk"
        assert updated.is_reminder is False
        assert updated.reminder_date is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "patch_data", [{"title": ""}, {"content": "  "}, {"category": ""}, {"category": " \t"}]
    )
    async def test_update_rejects_blank_text(self, note_service, existing, patch_data):
        with pytest.raises(ValidationError):
            await note_service.update_note(existing.id, patch_data)

        stored = await note_service.get_note(existing.id)
        assert stored.updated_at == existing.updated_at

    @pytest.mark.asyncio
    async def test_update_not_found(self, note_service, note_store, existing):
        before = note_store.path.read_bytes()

        with pytest.raises(NotFoundError):
            await note_service.update_note("nonexistent", {"title": "x"})

        assert note_store.path.read_bytes() == before

    @pytest.mark.asyncio
    async def test_updated_at_increases_when_clock_stalls(self, note_service, existing):
        with patch(
            "notekeeper.backend.services.note.utc_now",
            return_value=existing.updated_at,
        ):
            first = await note_service.update_note(existing.id, {"content": "a"})
            second = await note_service.update_note(existing.id, {"content": "b"})

        assert existing.updated_at < first.updated_at < second.updated_at

    @pytest.mark.asyncio
    async def test_update_persist_failure(self, note_service, note_store, existing):
        with patch.object(note_store, "replace_all", return_value=False):
            with pytest.raises(StorageError):
                await note_service.update_note(existing.id, {"title": "x"})

        stored = await note_service.get_note(existing.id)
        assert stored.title == "Buy milk"


class TestNoteServiceDelete:
    """Tests for deletion."""

    @pytest.mark.asyncio
    async def test_delete_note(self, note_service):
        keep = await note_service.create_note({"title": "A", "content": "a"})
        drop = await note_service.create_note({"title": "B", "content": "b"})

        await note_service.delete_note(drop.id)

        assert [n.id for n in await note_service.list_notes()] == [keep.id]
        assert await note_service.find_note(drop.id) is None

    @pytest.mark.asyncio
    async def test_delete_twice(self, note_service):
        note = await note_service.create_note({"title": "A", "content": "a"})
        await note_service.delete_note(note.id)

        with pytest.raises(NotFoundError):
            await note_service.delete_note(note.id)

    @pytest.mark.asyncio
    async def test_delete_persist_failure(self, note_service, note_store):
        note = await note_service.create_note({"title": "A", "content": "a"})

        with patch.object(note_store, "replace_all", return_value=False):
            with pytest.raises(StorageError):
                await note_service.delete_note(note.id)

        assert await note_service.find_note(note.id) is not None


class TestConcurrentWrites:
    """Overlapping writes are not serialized; the last write wins."""

    @pytest.mark.asyncio
    async def test_overlapping_creates_lose_one_update(self, note_service, note_store):
        snapshot = note_store.load()

        # Both operations read the same collection before either writes.
        with patch.object(note_store, "load", side_effect=lambda: list(snapshot)):
            await note_service.create_note({"title": "A", "content": "a"})
            second = await note_service.create_note({"title": "B", "content": "b"})

        assert [n.id for n in note_store.load()] == [second.id]


class TestDueReminders:
    """Tests for listing reminders that are due."""

    @pytest.fixture
    def seeded(self, note_store, make_note):
        notes = [
            make_note("later", is_reminder=True, reminder_date=NOW + timedelta(hours=2)),
            make_note("soon", is_reminder=True, reminder_date=NOW + timedelta(minutes=3)),
            make_note("overdue", is_reminder=True, reminder_date=NOW - timedelta(days=1)),
            make_note("done", is_reminder=True, reminder_date=NOW, completed=True),
            make_note("plain", reminder_date=NOW),
            make_note("undated", is_reminder=True),
        ]
        assert note_store.replace_all(notes)
        return notes

    @pytest.mark.asyncio
    async def test_default_window(self, note_service, seeded):
        due = await note_service.list_due_reminders(now=NOW)

        assert [n.id for n in due] == ["overdue", "soon"]

    @pytest.mark.asyncio
    async def test_zero_window(self, note_service, seeded):
        due = await note_service.list_due_reminders(window_seconds=0, now=NOW)

        assert [n.id for n in due] == ["overdue"]

    @pytest.mark.asyncio
    async def test_configured_window(self, note_store, seeded):
        service = NoteService(note_store, reminder_window_seconds=3 * 3600)

        due = await service.list_due_reminders(now=NOW)

        assert [n.id for n in due] == ["overdue", "soon", "later"]


class TestHelpers:
    """Tests for module-level helpers."""

    def test_new_note_id_skips_taken(self):
        with patch("notekeeper.backend.services.note.uuid4", side_effect=["dup", "fresh"]):
            assert _new_note_id({"dup"}) == "fresh"

    def test_next_updated_at_uses_clock(self):
        earlier = NOW - timedelta(seconds=5)
        with patch("notekeeper.backend.services.note.utc_now", return_value=NOW):
            assert _next_updated_at(earlier) == NOW

    def test_next_updated_at_never_goes_back(self):
        with patch(
            "notekeeper.backend.services.note.utc_now",
            return_value=NOW - timedelta(seconds=5),
        ):
            assert _next_updated_at(NOW) == NOW + timedelta(microseconds=1)
