"""
Integration Test Fixtures.

Fixtures for integration tests - real database and services behind the
HTTP API. Model calls are answered by FakeAssistant.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.backend.agents.vertical.clinical.assistant.agent import (
    ModelOptions,
    get_clinical_assistant,
)
from clinic.backend.core.database import get_db_session

API = "/api/v1"


# =============================================================================
# Assistant Fake
# =============================================================================


class FakeAssistant:
    """
    Stand-in for ClinicalAssistant with scripted replies.

    Records every question and query context it receives.
    """

    def __init__(self) -> None:
        self.data_question = False
        self.query = "SELECT name FROM clients ORDER BY name"
        self.reply = "Here is what I found."
        self.connection_ok = True
        self.answers: list[dict[str, Any]] = []

    async def answer(
        self,
        question: str,
        options: ModelOptions,
        history: list | None = None,
        query_context: str | None = None,
    ) -> str:
        self.answers.append(
            {"question": question, "history": history or [], "query_context": query_context}
        )
        return self.reply

    async def is_data_question(self, question: str, options: ModelOptions) -> bool:
        return self.data_question

    async def generate_query(self, question: str, options: ModelOptions) -> str:
        return self.query

    async def check_connection(self, options: ModelOptions) -> bool:
        return self.connection_ok


@pytest.fixture
def fake_assistant() -> FakeAssistant:
    """Scripted assistant shared by the client fixture and the test."""
    return FakeAssistant()


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
async def client(
    db_session: AsyncSession,
    fake_assistant: FakeAssistant,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client bound to the test database session.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    from clinic.backend.main import create_app

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_clinical_assistant] = lambda: fake_assistant

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
    ) -> dict[str, Any]:
        """Assert API response is a request validation error (422)."""
        data = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")

        if field:
            errors = data["error"].get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()


# =============================================================================
# Data Builders
# =============================================================================


class ClinicData:
    """Creates clinic records through the API and returns their JSON."""

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.post(f"{API}{path}", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    async def client_record(self, name: str = "Ava Thompson", **fields: Any) -> dict[str, Any]:
        return await self._post(
            "/clients",
            {"name": name, "onboarding_status": "complete", **fields},
        )

    async def ally(self, client_id: str, name: str = "Maria Thompson", **fields: Any) -> dict[str, Any]:
        return await self._post(f"/clients/{client_id}/allies", {"name": name, **fields})

    async def goal(self, client_id: str, title: str = "Produce /s/ in words", **fields: Any) -> dict[str, Any]:
        return await self._post(f"/clients/{client_id}/goals", {"title": title, **fields})

    async def session(
        self,
        client_id: str,
        session_date: str = "2024-03-05T10:00:00",
        **fields: Any,
    ) -> dict[str, Any]:
        return await self._post(
            "/sessions",
            {
                "client_id": client_id,
                "title": "Articulation therapy",
                "session_date": session_date,
                "duration": 60,
                **fields,
            },
        )

    async def plan(self, client_id: str, **fields: Any) -> dict[str, Any]:
        payload = {
            "plan_code": "NDIS-2024",
            "total_funds": 10000,
            "start_date": "2024-01-01",
            "end_date": "2024-12-31",
            **fields,
        }
        return await self._post(f"/clients/{client_id}/budget-plans", payload)

    async def item(self, plan_id: str, item_code: str = "SPEECH-1H", **fields: Any) -> dict[str, Any]:
        payload = {"item_code": item_code, "unit_price": 150.0, "quantity": 20, **fields}
        return await self._post(f"/budget-plans/{plan_id}/items", payload)

    async def note(self, session_id: str, **fields: Any) -> dict[str, Any]:
        return await self._post(f"/sessions/{session_id}/note", fields)


@pytest.fixture
def clinic(client: AsyncClient) -> ClinicData:
    """Builders for clinic records."""
    return ClinicData(client)
