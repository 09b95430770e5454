"""
Unit Test Fixtures.

Fixtures for unit tests. Unit tests run against temporary files or mocks
and never touch the configured notes file.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from notekeeper.backend.models.note import Note


# =============================================================================
# Note Fixtures
# =============================================================================


@pytest.fixture
def make_note():
    """
    Factory for Note records with fixed timestamps.

    Usage:
        def test_something(make_note):
            note = make_note("n1", title="Standup", category="Work")
    """
    created = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def _make(note_id: str = "note-1", **fields) -> Note:
        values = {
            "id": note_id,
            "title": "Title",
            "content": "Content",
            "created_at": created,
            "updated_at": created,
        }
        values.update(fields)
        return Note(**values)

    return _make


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        def test_logging(mock_logger):
            with patch("module.logger", mock_logger):
                # Test code that logs
                mock_logger.info.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger
