"""Health aggregation service module."""

from healthwatch.services.health.aggregator import DEFAULT_TIMEOUT, HealthAggregator
from healthwatch.services.health.errors import (
    TIMEOUT_MESSAGE,
    DuplicateCheckError,
    HealthCheckError,
    ProbeFailure,
    ProbeTimeout,
    RegistryFrozenError,
)
from healthwatch.services.health.factory import create_health_aggregator
from healthwatch.services.health.schemas import (
    CheckDefinition,
    CheckResult,
    CheckScope,
    CheckSummary,
    HealthReport,
    HealthResponse,
    HealthStatus,
    OverallStatus,
    ReadinessResponse,
)

__all__ = [
    # Aggregation
    "HealthAggregator",
    "DEFAULT_TIMEOUT",
    "create_health_aggregator",
    # Models
    "CheckDefinition",
    "CheckResult",
    "CheckScope",
    "HealthReport",
    "HealthStatus",
    "OverallStatus",
    # Responses
    "CheckSummary",
    "HealthResponse",
    "ReadinessResponse",
    # Errors
    "HealthCheckError",
    "DuplicateCheckError",
    "RegistryFrozenError",
    "ProbeFailure",
    "ProbeTimeout",
    "TIMEOUT_MESSAGE",
]
