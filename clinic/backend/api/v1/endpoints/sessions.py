"""
Sessions API Endpoints.

REST API endpoints for therapy sessions.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from clinic.backend.core.dependencies import DbSession, RequestId
from clinic.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from clinic.backend.schemas.base import ApiResponse
from clinic.backend.schemas.session import (
    SessionCreate,
    SessionResponse,
    SessionStatus,
    SessionUpdate,
)
from clinic.backend.services.session import SessionService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[SessionResponse],
    status_code=201,
    summary="Create a session",
    description="Schedule a session. The therapist, when given, must be an active ally of the client.",
)
async def create_session(
    data: SessionCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SessionResponse]:
    """Create a session."""
    service = SessionService(db)
    therapy_session = await service.create_session(data)
    return ApiResponse(data=SessionResponse.model_validate(therapy_session))


@router.get(
    "",
    summary="List sessions (paginated)",
    description="List sessions, newest first, optionally filtered by client and status.",
)
async def list_sessions(
    db: DbSession,
    request_id: RequestId,
    pagination: PaginationParams = Depends(get_pagination_params),
    client_id: str | None = Query(default=None, description="Only sessions of this client"),
    status: SessionStatus | None = Query(default=None, description="Only sessions with this status"),
) -> dict[str, Any]:
    """List sessions with full pagination support."""
    service = SessionService(db)
    sessions, total = await service.list_sessions_paginated(
        client_id=client_id,
        status=status,
        limit=pagination.limit,
        offset=pagination.offset,
    )

    return create_paginated_response(
        items=sessions,
        item_schema=SessionResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.get(
    "/{session_id}",
    response_model=ApiResponse[SessionResponse],
    summary="Get a session",
)
async def get_session(
    session_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SessionResponse]:
    """Get a session by ID."""
    service = SessionService(db)
    therapy_session = await service.get_session(session_id)
    return ApiResponse(data=SessionResponse.model_validate(therapy_session))


@router.put(
    "/{session_id}",
    response_model=ApiResponse[SessionResponse],
    summary="Update a session",
    description="Update a session. Only provided fields are updated.",
)
async def update_session(
    session_id: str,
    data: SessionUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SessionResponse]:
    """Update a session."""
    service = SessionService(db)
    therapy_session = await service.update_session(session_id, data)
    return ApiResponse(data=SessionResponse.model_validate(therapy_session))


@router.delete(
    "/{session_id}",
    status_code=204,
    summary="Delete a session",
    description="Delete a session together with its note and assessments.",
)
async def delete_session(
    session_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a session."""
    service = SessionService(db)
    await service.delete_session(session_id)
