"""Health API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from healthwatch.services.health import (
    CheckScope,
    HealthAggregator,
    HealthResponse,
    OverallStatus,
    ReadinessResponse,
)

router = APIRouter(prefix="/health", tags=["Health"])


def get_health_aggregator(request: Request) -> HealthAggregator:
    """Aggregator created at application startup."""
    return request.app.state.health_aggregator


Aggregator = Annotated[HealthAggregator, Depends(get_health_aggregator)]


@router.get("/liveness", response_model=HealthResponse)
async def liveness(aggregator: Aggregator) -> HealthResponse:
    """Kubernetes liveness probe endpoint.

    Always answers 200; the body carries the status.
    """
    report = await aggregator.evaluate(CheckScope.LIVENESS)
    return HealthResponse.from_report(report)


@router.get(
    "/readiness",
    response_model=ReadinessResponse,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ReadinessResponse}},
)
async def readiness(aggregator: Aggregator, response: Response) -> ReadinessResponse:
    """Kubernetes readiness probe endpoint.

    Returns:
        Readiness report, 503 when any check is not UP
    """
    report = await aggregator.evaluate(CheckScope.READINESS)

    if report.status == OverallStatus.DOWN:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse.from_report(report)
