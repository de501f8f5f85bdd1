"""
Unit Tests for Pagination Utilities.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from clinic.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)


class _Item(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class TestPaginationParams:
    """Tests for the pagination dependency."""

    def test_returns_params(self):
        params = get_pagination_params(limit=10, offset=30)
        assert params == PaginationParams(limit=10, offset=30)


class TestCreatePaginatedResponse:
    """Tests for the paginated envelope."""

    def test_serializes_items_with_schema(self):
        body = create_paginated_response(
            items=[{"id": "1", "name": "Ava"}, {"id": "2", "name": "Ben"}],
            item_schema=_Item,
            total=2,
            limit=20,
            offset=0,
            request_id="req-1",
        )

        assert body["success"] is True
        assert body["data"] == [{"id": "1", "name": "Ava"}, {"id": "2", "name": "Ben"}]
        assert body["metadata"]["request_id"] == "req-1"
        datetime.fromisoformat(body["metadata"]["timestamp"])

    def test_has_more_when_items_remain(self):
        body = create_paginated_response(
            items=[{"id": "1", "name": "Ava"}],
            item_schema=_Item,
            total=3,
            limit=1,
            offset=1,
        )

        assert body["pagination"] == {"total": 3, "limit": 1, "offset": 1, "has_more": True}

    def test_no_more_on_last_page(self):
        body = create_paginated_response(
            items=[{"id": "3", "name": "Cleo"}],
            item_schema=_Item,
            total=3,
            limit=1,
            offset=2,
        )

        assert body["pagination"]["has_more"] is False
