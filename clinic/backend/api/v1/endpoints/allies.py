"""
Allies API Endpoints.

REST API endpoints for a client's allies (caregivers and supporters).
"""

from fastapi import APIRouter, Query

from clinic.backend.core.dependencies import DbSession, RequestId
from clinic.backend.schemas.base import ApiResponse
from clinic.backend.schemas.client import AllyCreate, AllyResponse, AllyUpdate
from clinic.backend.services.client import AllyService

router = APIRouter()


@router.post(
    "/clients/{client_id}/allies",
    response_model=ApiResponse[AllyResponse],
    status_code=201,
    summary="Add an ally",
    description="Add an ally to a client. At least one access flag must be set.",
)
async def create_ally(
    client_id: str,
    data: AllyCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AllyResponse]:
    """Add an ally to a client."""
    service = AllyService(db)
    ally = await service.create_ally(client_id, data)
    return ApiResponse(data=AllyResponse.model_validate(ally))


@router.get(
    "/clients/{client_id}/allies",
    response_model=ApiResponse[list[AllyResponse]],
    summary="List a client's allies",
)
async def list_allies(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
    include_archived: bool = Query(
        default=False,
        description="Include archived allies",
    ),
) -> ApiResponse[list[AllyResponse]]:
    """List a client's allies."""
    service = AllyService(db)
    allies = await service.list_allies(client_id, include_archived=include_archived)
    return ApiResponse(data=[AllyResponse.model_validate(ally) for ally in allies])


@router.get(
    "/allies/{ally_id}",
    response_model=ApiResponse[AllyResponse],
    summary="Get an ally",
)
async def get_ally(
    ally_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AllyResponse]:
    """Get an ally by ID."""
    service = AllyService(db)
    ally = await service.get_ally(ally_id)
    return ApiResponse(data=AllyResponse.model_validate(ally))


@router.put(
    "/allies/{ally_id}",
    response_model=ApiResponse[AllyResponse],
    summary="Update an ally",
    description="Update an ally. Only provided fields are updated.",
)
async def update_ally(
    ally_id: str,
    data: AllyUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AllyResponse]:
    """Update an ally."""
    service = AllyService(db)
    ally = await service.update_ally(ally_id, data)
    return ApiResponse(data=AllyResponse.model_validate(ally))


@router.post(
    "/allies/{ally_id}/archive",
    response_model=ApiResponse[AllyResponse],
    summary="Archive an ally",
)
async def archive_ally(
    ally_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AllyResponse]:
    """Archive an ally."""
    service = AllyService(db)
    ally = await service.archive_ally(ally_id)
    return ApiResponse(data=AllyResponse.model_validate(ally))


@router.post(
    "/allies/{ally_id}/unarchive",
    response_model=ApiResponse[AllyResponse],
    summary="Unarchive an ally",
)
async def unarchive_ally(
    ally_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AllyResponse]:
    """Restore an archived ally."""
    service = AllyService(db)
    ally = await service.unarchive_ally(ally_id)
    return ApiResponse(data=AllyResponse.model_validate(ally))


@router.delete(
    "/allies/{ally_id}",
    status_code=204,
    summary="Delete an ally",
)
async def delete_ally(
    ally_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete an ally."""
    service = AllyService(db)
    await service.delete_ally(ally_id)
