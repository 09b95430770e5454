"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Request

from notekeeper.backend.core.config import get_app_config
from notekeeper.backend.repositories.note import NoteStore
from notekeeper.backend.services.note import NoteService


def get_note_store() -> NoteStore:
    """Store bound to the configured notes file. Override in tests."""
    return NoteStore.from_config()


def get_note_service(
    store: Annotated[NoteStore, Depends(get_note_store)],
) -> NoteService:
    """A fresh NoteService per request; it holds no state between calls."""
    return NoteService(
        store,
        reminder_window_seconds=get_app_config().reminders.window_seconds,
    )


NoteServiceDep = Annotated[NoteService, Depends(get_note_service)]


async def get_request_id(request: Request) -> str:
    """
    Request ID assigned by RequestContextMiddleware.

    Falls back to the X-Request-ID header, then a new UUID, when the
    middleware is not installed.
    """
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get("x-request-id") or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]
