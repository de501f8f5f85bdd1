"""
Reports API Endpoints.

REST API endpoints for client performance reports.
"""

from datetime import date

from fastapi import APIRouter, Query

from clinic.backend.core.dependencies import DbSession, RequestId
from clinic.backend.schemas.base import ApiResponse
from clinic.backend.schemas.report import ClientReportResponse, StrategyUsage
from clinic.backend.services.report import ReportService

router = APIRouter()


@router.get(
    "/clients/{client_id}/reports/performance",
    response_model=ApiResponse[ClientReportResponse],
    summary="Client performance report",
    description=(
        "Client details, budget key metrics, average observations, session "
        "completion, strategy usage and goal achievement."
    ),
)
async def get_performance_report(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
    start_date: date | None = Query(default=None, description="First session date to include"),
    end_date: date | None = Query(default=None, description="Last session date to include"),
) -> ApiResponse[ClientReportResponse]:
    """Get the performance report of a client."""
    service = ReportService(db)
    report = await service.performance_report(client_id, start_date, end_date)
    return ApiResponse(data=report)


@router.get(
    "/clients/{client_id}/reports/strategies",
    response_model=ApiResponse[list[StrategyUsage]],
    summary="Client strategy usage",
)
async def get_strategy_report(
    client_id: str,
    db: DbSession,
    request_id: RequestId,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> ApiResponse[list[StrategyUsage]]:
    """Strategies used in a client's goal assessments, most used first."""
    service = ReportService(db)
    strategies = await service.strategy_report(client_id, start_date, end_date)
    return ApiResponse(data=strategies)
