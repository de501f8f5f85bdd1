"""
Session Notes API Endpoints.

REST API endpoints for session notes and the goal assessments recorded in
them.
"""

from fastapi import APIRouter, Query

from clinic.backend.core.dependencies import DbSession, RequestId
from clinic.backend.schemas.base import ApiResponse
from clinic.backend.schemas.session import (
    CompleteSessionNoteResponse,
    GoalAssessmentCreate,
    GoalAssessmentResponse,
    GoalAssessmentUpdate,
    NoteStatus,
    SessionNoteCreate,
    SessionNoteResponse,
    SessionNoteUpdate,
)
from clinic.backend.services.session import SessionNoteService

router = APIRouter()


@router.post(
    "/sessions/{session_id}/note",
    response_model=ApiResponse[SessionNoteResponse],
    status_code=201,
    summary="Write a session note",
    description=(
        "Write the note for a session. A session has at most one note; "
        "products must be items of the client's active budget plan."
    ),
)
async def create_note(
    session_id: str,
    data: SessionNoteCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SessionNoteResponse]:
    """Create the note of a session."""
    service = SessionNoteService(db)
    note = await service.create_note(session_id, data)
    return ApiResponse(data=SessionNoteResponse.model_validate(note))


@router.get(
    "/sessions/{session_id}/note",
    response_model=ApiResponse[SessionNoteResponse],
    summary="Get a session's note",
)
async def get_session_note(
    session_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SessionNoteResponse]:
    """Get the note of a session."""
    service = SessionNoteService(db)
    note = await service.get_note_for_session(session_id)
    return ApiResponse(data=SessionNoteResponse.model_validate(note))


@router.get(
    "/sessions/{session_id}/note/complete",
    response_model=ApiResponse[CompleteSessionNoteResponse],
    summary="Get a session's note with assessments",
)
async def get_complete_note(
    session_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[CompleteSessionNoteResponse]:
    """Get the note of a session together with its goal assessments."""
    service = SessionNoteService(db)
    note, assessments = await service.get_complete_note(session_id)
    return ApiResponse(
        data=CompleteSessionNoteResponse(
            **SessionNoteResponse.model_validate(note).model_dump(),
            assessments=[GoalAssessmentResponse.model_validate(a) for a in assessments],
        )
    )


@router.get(
    "/clients/{client_id}/session-notes",
    response_model=ApiResponse[list[SessionNoteResponse]],
    summary="List a client's session notes",
)
async def list_client_notes(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
    status: NoteStatus | None = Query(default=None, description="Only notes with this status"),
) -> ApiResponse[list[SessionNoteResponse]]:
    """List the notes of a client's sessions in session order."""
    service = SessionNoteService(db)
    notes = await service.list_client_notes(client_id, status=status)
    return ApiResponse(data=[SessionNoteResponse.model_validate(note) for note in notes])


@router.put(
    "/session-notes/{note_id}",
    response_model=ApiResponse[SessionNoteResponse],
    summary="Update a session note",
)
async def update_note(
    note_id: str,
    data: SessionNoteUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SessionNoteResponse]:
    """Update a session note."""
    service = SessionNoteService(db)
    note = await service.update_note(note_id, data)
    return ApiResponse(data=SessionNoteResponse.model_validate(note))


@router.delete(
    "/session-notes/{note_id}",
    status_code=204,
    summary="Delete a session note",
)
async def delete_note(
    note_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a session note."""
    service = SessionNoteService(db)
    await service.delete_note(note_id)


# =============================================================================
# Goal assessments
# =============================================================================


@router.post(
    "/session-notes/{note_id}/assessments",
    response_model=ApiResponse[GoalAssessmentResponse],
    status_code=201,
    summary="Assess a goal",
    description="Record progress on one of the client's goals (and optionally a subgoal).",
)
async def create_assessment(
    note_id: str,
    data: GoalAssessmentCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[GoalAssessmentResponse]:
    """Create a goal assessment in a session note."""
    service = SessionNoteService(db)
    assessment = await service.create_assessment(note_id, data)
    return ApiResponse(data=GoalAssessmentResponse.model_validate(assessment))


@router.get(
    "/session-notes/{note_id}/assessments",
    response_model=ApiResponse[list[GoalAssessmentResponse]],
    summary="List a note's assessments",
)
async def list_assessments(
    note_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[list[GoalAssessmentResponse]]:
    """List the goal assessments of a session note."""
    service = SessionNoteService(db)
    assessments = await service.list_assessments(note_id)
    return ApiResponse(data=[GoalAssessmentResponse.model_validate(a) for a in assessments])


@router.put(
    "/goal-assessments/{assessment_id}",
    response_model=ApiResponse[GoalAssessmentResponse],
    summary="Update a goal assessment",
)
async def update_assessment(
    assessment_id: str,
    data: GoalAssessmentUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[GoalAssessmentResponse]:
    """Update a goal assessment."""
    service = SessionNoteService(db)
    assessment = await service.update_assessment(assessment_id, data)
    return ApiResponse(data=GoalAssessmentResponse.model_validate(assessment))


@router.delete(
    "/goal-assessments/{assessment_id}",
    status_code=204,
    summary="Delete a goal assessment",
)
async def delete_assessment(
    assessment_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a goal assessment."""
    service = SessionNoteService(db)
    await service.delete_assessment(assessment_id)
