"""
Clients API Endpoints.

REST API endpoints for client records.
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
from clinic.backend.schemas.client import (
    ClientCreate,
    ClientListResponse,
    ClientResponse,
    ClientUpdate,
)
from clinic.backend.services.client import ClientService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[ClientResponse],
    status_code=201,
    summary="Create a client",
    description="Register a new client. Onboarding starts as incomplete unless stated.",
)
async def create_client(
    data: ClientCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[ClientResponse]:
    """Create a new client."""
    service = ClientService(db)
    client = await service.create_client(data)
    return ApiResponse(data=ClientResponse.model_validate(client))


@router.get(
    "",
    summary="List clients (paginated)",
    description="List clients ordered by name. Clients still being onboarded are hidden by default.",
)
async def list_clients(
    db: DbSession,
    request_id: RequestId,
    pagination: PaginationParams = Depends(get_pagination_params),
    include_incomplete: bool = Query(
        default=False,
        description="Include clients whose onboarding is not complete",
    ),
    q: str | None = Query(
        default=None,
        min_length=1,
        max_length=100,
        description="Case-insensitive name search",
    ),
) -> dict[str, Any]:
    """List clients with full pagination support."""
    service = ClientService(db)
    clients, total = await service.list_clients_paginated(
        include_incomplete=include_incomplete,
        query=q,
        limit=pagination.limit,
        offset=pagination.offset,
    )

    return create_paginated_response(
        items=clients,
        item_schema=ClientListResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.get(
    "/{client_id}",
    response_model=ApiResponse[ClientResponse],
    summary="Get a client",
)
async def get_client(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[ClientResponse]:
    """Get a client by ID."""
    service = ClientService(db)
    client = await service.get_client(client_id)
    return ApiResponse(data=ClientResponse.model_validate(client))


@router.put(
    "/{client_id}",
    response_model=ApiResponse[ClientResponse],
    summary="Update a client",
    description="Update an existing client. Only provided fields are updated.",
)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[ClientResponse]:
    """Update a client."""
    service = ClientService(db)
    client = await service.update_client(client_id, data)
    return ApiResponse(data=ClientResponse.model_validate(client))


@router.post(
    "/{client_id}/complete-onboarding",
    response_model=ApiResponse[ClientResponse],
    summary="Complete onboarding",
    description="Mark the client's onboarding complete so they appear in client lists.",
)
async def complete_onboarding(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[ClientResponse]:
    """Complete a client's onboarding."""
    service = ClientService(db)
    client = await service.complete_onboarding(client_id)
    return ApiResponse(data=ClientResponse.model_validate(client))


@router.delete(
    "/{client_id}",
    status_code=204,
    summary="Delete a client",
    description="Permanently delete a client and everything recorded for them.",
)
async def delete_client(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
) -> None:
    """Delete a client."""
    service = ClientService(db)
    await service.delete_client(client_id)
