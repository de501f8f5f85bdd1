"""
Integration Tests for Reports API.

Builds a client with sessions, notes and assessments, then checks the
aggregated performance report.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

API = "/api/v1"


def utc_today():
    return datetime.now(timezone.utc).date()


async def _subgoal(client: AsyncClient, goal_id: str, title: str, status: str) -> None:
    response = await client.post(
        f"{API}/goals/{goal_id}/subgoals",
        json={"title": title, "status": status},
    )
    assert response.status_code == 201, response.text


async def _assess(client: AsyncClient, note_id: str, goal_id: str, level: int, strategies) -> None:
    response = await client.post(
        f"{API}/session-notes/{note_id}/assessments",
        json={"goal_id": goal_id, "achievement_level": level, "strategies": strategies},
    )
    assert response.status_code == 201, response.text


@pytest.fixture
async def history(client: AsyncClient, clinic) -> dict:
    """
    A client with three sessions:

    - 2024-03-05, completed: both goals assessed
    - 2024-03-12, draft: no assessments
    - 2024-05-01, completed: speech goal assessed
    """
    record = await clinic.client_record(
        "Ava Thompson",
        date_of_birth="2018-06-15",
        funds_management="Self-Managed",
    )
    await clinic.ally(record["id"], "Maria Thompson", relationship="Mother", preferred_language="English")
    speech = await clinic.goal(record["id"], "Produce /s/ in words", importance_level=8)
    listening = await clinic.goal(record["id"], "Follow two-step instructions", importance_level=5)
    await _subgoal(client, speech["id"], "Initial position", "completed")
    await _subgoal(client, speech["id"], "Final position", "in_progress")

    march = await clinic.session(record["id"], "2024-03-05T10:00:00", status="completed")
    draft = await clinic.session(record["id"], "2024-03-12T10:00:00")
    may = await clinic.session(record["id"], "2024-05-01T10:00:00", status="completed")

    march_note = await clinic.note(
        march["id"],
        mood_rating=8,
        focus_rating=6,
        cooperation_rating=7,
        physical_activity_rating=5,
        status="completed",
    )
    await clinic.note(draft["id"], mood_rating=6)
    may_note = await clinic.note(may["id"], mood_rating=4, status="completed")

    await _assess(client, march_note["id"], speech["id"], 6, ["Modelling", "Visual cues"])
    await _assess(client, march_note["id"], listening["id"], 4, ["Modelling"])
    await _assess(client, may_note["id"], speech["id"], 8, ["Visual cues"])

    return {"client": record, "speech": speech, "listening": listening}


class TestPerformanceReport:
    """Tests for GET /clients/{id}/reports/performance."""

    @pytest.mark.asyncio
    async def test_full_report(self, client: AsyncClient, api, history):
        record = history["client"]
        today = utc_today()

        response = await client.get(f"{API}/clients/{record['id']}/reports/performance")

        report = api.assert_success(response)["data"]
        assert report["start_date"] is None
        assert report["client"] == {
            "id": record["id"],
            "name": "Ava Thompson",
            "age": today.year - 2018 - ((today.month, today.day) < (6, 15)),
            "funds_management": "Self-Managed",
            "allies": [
                {"name": "Maria Thompson", "relationship": "Mother", "preferred_language": "English"}
            ],
        }
        assert report["observations"] == {
            "mood": 6.0,
            "physical_activity": 5.0,
            "focus": 6.0,
            "cooperation": 7.0,
            "note_count": 3,
        }
        assert report["sessions"] == {
            "total": 3,
            "completed": 2,
            "draft": 1,
            "completed_percentage": 66.67,
            "draft_percentage": 33.33,
        }
        assert report["strategies"] == [
            {"name": "Modelling", "times_used": 2, "average_achievement": 5.0},
            {"name": "Visual cues", "times_used": 2, "average_achievement": 7.0},
        ]
        assert [
            (g["id"], g["achievement_score"], g["assessment_count"], g["subgoal_progress"])
            for g in report["goals"]
        ] == [
            (history["speech"]["id"], 7.0, 2, 7.5),
            (history["listening"]["id"], 4.0, 1, 0.0),
        ]

    @pytest.mark.asyncio
    async def test_date_range_limits_sessions(self, client: AsyncClient, api, history):
        response = await client.get(
            f"{API}/clients/{history['client']['id']}/reports/performance",
            params={"start_date": "2024-03-01", "end_date": "2024-03-31"},
        )

        report = api.assert_success(response)["data"]
        assert report["start_date"] == "2024-03-01"
        assert report["sessions"]["total"] == 2
        assert report["observations"]["mood"] == 7.0
        assert report["strategies"] == [
            {"name": "Modelling", "times_used": 2, "average_achievement": 5.0},
            {"name": "Visual cues", "times_used": 1, "average_achievement": 6.0},
        ]
        assert report["goals"][0]["achievement_score"] == 6.0
        assert report["goals"][0]["assessment_count"] == 1

    @pytest.mark.asyncio
    async def test_end_date_is_inclusive(self, client: AsyncClient, api, history):
        response = await client.get(
            f"{API}/clients/{history['client']['id']}/reports/performance",
            params={"start_date": "2024-05-01", "end_date": "2024-05-01"},
        )

        report = api.assert_success(response)["data"]
        assert report["sessions"]["total"] == 1
        assert report["observations"]["mood"] == 4.0

    @pytest.mark.asyncio
    async def test_key_metrics_from_active_plan(self, client: AsyncClient, clinic, api):
        today = utc_today()
        record = await clinic.client_record()
        plan = await clinic.plan(
            record["id"],
            total_funds=3000,
            start_date=(today - timedelta(days=60)).isoformat(),
            end_date=(today + timedelta(days=30)).isoformat(),
        )
        await clinic.item(plan["id"], quantity=10)

        response = await client.get(f"{API}/clients/{record['id']}/reports/performance")

        report = api.assert_success(response)["data"]
        assert report["key_metrics"] == {
            "has_active_plan": True,
            "spending_deviation": -1500.0,
            "plan_expiration_days": 30,
        }

    @pytest.mark.asyncio
    async def test_client_without_records(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record("Ben Carter")

        response = await client.get(f"{API}/clients/{record['id']}/reports/performance")

        report = api.assert_success(response)["data"]
        assert report["client"]["age"] is None
        assert report["key_metrics"] == {
            "has_active_plan": False,
            "spending_deviation": 0.0,
            "plan_expiration_days": 0,
        }
        assert report["observations"] == {
            "mood": None,
            "physical_activity": None,
            "focus": None,
            "cooperation": None,
            "note_count": 0,
        }
        assert report["sessions"]["total"] == 0
        assert report["sessions"]["completed_percentage"] == 0.0
        assert report["strategies"] == []
        assert report["goals"] == []

    @pytest.mark.asyncio
    async def test_inverted_range_rejected(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()

        response = await client.get(
            f"{API}/clients/{record['id']}/reports/performance",
            params={"start_date": "2024-05-01", "end_date": "2024-03-01"},
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_missing_client(self, client: AsyncClient, api):
        response = await client.get(f"{API}/clients/does-not-exist/reports/performance")
        api.assert_error(response, 404, "RES_NOT_FOUND")


class TestStrategyReport:
    """Tests for GET /clients/{id}/reports/strategies."""

    @pytest.mark.asyncio
    async def test_lists_strategy_usage(self, client: AsyncClient, api, history):
        response = await client.get(f"{API}/clients/{history['client']['id']}/reports/strategies")

        data = api.assert_success(response)
        assert [s["name"] for s in data["data"]] == ["Modelling", "Visual cues"]
        assert data["data"][1]["average_achievement"] == 7.0

    @pytest.mark.asyncio
    async def test_missing_client(self, client: AsyncClient, api):
        response = await client.get(f"{API}/clients/does-not-exist/reports/strategies")
        api.assert_error(response, 404, "RES_NOT_FOUND")
