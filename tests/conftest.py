"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Test Storage:
    Every test that touches notes gets its own notes file under pytest's
    tmp_path, so tests never read or write the configured data/notes.json
    and never see each other's data.
"""

from pathlib import Path

import pytest

from notekeeper.backend.repositories.note import NoteStore
from notekeeper.backend.services.note import NoteService


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def notes_path(tmp_path: Path) -> Path:
    """Location of a notes file that does not exist yet."""
    return tmp_path / "data" / "notes.json"


@pytest.fixture
def note_store(notes_path: Path) -> NoteStore:
    """
    Provide a NoteStore backed by a fresh temporary file.

    fsync is disabled to keep tests fast; durability is not under test.

    Usage:
        def test_roundtrip(note_store: NoteStore):
            assert note_store.load() == []
    """
    return NoteStore(notes_path, indent=2, fsync=False, backup_corrupt=True)


@pytest.fixture
def note_service(note_store: NoteStore) -> NoteService:
    """Provide a NoteService over the temporary store."""
    return NoteService(note_store, reminder_window_seconds=300)


# =============================================================================
# Utility Fixtures
# =============================================================================


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"
