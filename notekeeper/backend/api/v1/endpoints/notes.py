"""
Notes API Endpoints.

REST API endpoints for note management.
"""

from fastapi import APIRouter, Query

from notekeeper.backend.core.dependencies import NoteServiceDep, RequestId
from notekeeper.backend.schemas.base import ApiResponse, ResponseMetadata
from notekeeper.backend.schemas.note import (
    NoteCreate,
    NoteDeleted,
    NoteResponse,
    NoteUpdate,
)

router = APIRouter()


def _envelope(data, request_id: str) -> ApiResponse:
    return ApiResponse(data=data, metadata=ResponseMetadata(request_id=request_id))


@router.get(
    "",
    response_model=ApiResponse[list[NoteResponse]],
    summary="List notes",
    description="List all notes, optionally only those in one category.",
)
async def list_notes(
    service: NoteServiceDep,
    request_id: RequestId,
    category: str | None = Query(
        default=None,
        description="Exact, case-sensitive category to filter by",
    ),
) -> ApiResponse[list[NoteResponse]]:
    """List notes."""
    notes = await service.list_notes(category=category)
    return _envelope([NoteResponse.from_note(note) for note in notes], request_id)


@router.get(
    "/reminders/due",
    response_model=ApiResponse[list[NoteResponse]],
    summary="List due reminders",
    description="Open reminders that are overdue or due within the window.",
)
async def list_due_reminders(
    service: NoteServiceDep,
    request_id: RequestId,
    window_seconds: int | None = Query(
        default=None,
        ge=0,
        le=7 * 24 * 3600,
        description="Look-ahead in seconds, defaults to reminders.yaml",
    ),
) -> ApiResponse[list[NoteResponse]]:
    """List reminders due now or soon."""
    notes = await service.list_due_reminders(window_seconds=window_seconds)
    return _envelope([NoteResponse.from_note(note) for note in notes], request_id)


@router.post(
    "",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Create a note",
    description="Create a note. Title and content are required.",
)
async def create_note(
    data: NoteCreate,
    service: NoteServiceDep,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Create a new note."""
    note = await service.create_note(data)
    return _envelope(NoteResponse.from_note(note), request_id)


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
    description="Get a single note by ID.",
)
async def get_note(
    note_id: str,
    service: NoteServiceDep,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Get a note by ID."""
    note = await service.get_note(note_id)
    return _envelope(NoteResponse.from_note(note), request_id)


@router.api_route(
    "/{note_id}",
    methods=["PUT", "PATCH"],
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Update an existing note. Only provided fields are updated.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    service: NoteServiceDep,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    """Update a note."""
    note = await service.update_note(note_id, data)
    return _envelope(NoteResponse.from_note(note), request_id)


@router.delete(
    "/{note_id}",
    response_model=ApiResponse[NoteDeleted],
    summary="Delete a note",
    description="Permanently delete a note.",
)
async def delete_note(
    note_id: str,
    service: NoteServiceDep,
    request_id: RequestId,
) -> ApiResponse[NoteDeleted]:
    """Delete a note."""
    await service.delete_note(note_id)
    return _envelope(NoteDeleted(id=note_id), request_id)
