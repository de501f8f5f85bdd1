"""
Budget Catalog API Endpoints.

REST API endpoints for the clinic-wide catalog of billable products.
"""

from fastapi import APIRouter, Query

from clinic.backend.core.dependencies import DbSession, RequestId
from clinic.backend.schemas.base import ApiResponse
from clinic.backend.schemas.budget import (
    CatalogItemCreate,
    CatalogItemResponse,
    CatalogItemUpdate,
)
from clinic.backend.services.catalog import CatalogService

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[CatalogItemResponse]],
    summary="List catalog items",
)
async def list_catalog_items(
    db: DbSession,
    request_id: RequestId,
    include_inactive: bool = Query(
        default=False,
        description="Include items no longer offered",
    ),
) -> ApiResponse[list[CatalogItemResponse]]:
    """List catalog entries ordered by item code."""
    service = CatalogService(db)
    items = await service.list_items(active_only=not include_inactive)
    return ApiResponse(data=[CatalogItemResponse.model_validate(item) for item in items])


@router.post(
    "",
    response_model=ApiResponse[CatalogItemResponse],
    status_code=201,
    summary="Add a catalog item",
)
async def create_catalog_item(
    data: CatalogItemCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[CatalogItemResponse]:
    """Add a catalog entry."""
    service = CatalogService(db)
    item = await service.create_item(data)
    return ApiResponse(data=CatalogItemResponse.model_validate(item))


@router.get(
    "/{item_code}",
    response_model=ApiResponse[CatalogItemResponse],
    summary="Get a catalog item",
)
async def get_catalog_item(
    item_code: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[CatalogItemResponse]:
    """Get a catalog entry by item code."""
    service = CatalogService(db)
    item = await service.get_item(item_code)
    return ApiResponse(data=CatalogItemResponse.model_validate(item))


@router.put(
    "/{item_code}",
    response_model=ApiResponse[CatalogItemResponse],
    summary="Update a catalog item",
)
async def update_catalog_item(
    item_code: str,
    data: CatalogItemUpdate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[CatalogItemResponse]:
    """Update a catalog entry."""
    service = CatalogService(db)
    item = await service.update_item(item_code, data)
    return ApiResponse(data=CatalogItemResponse.model_validate(item))
