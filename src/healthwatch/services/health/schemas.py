"""Health check schemas."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Union

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    """Status of a single check."""

    UP = "UP"
    DOWN = "DOWN"
    UNKNOWN = "UNKNOWN"


class OverallStatus(str, Enum):
    """Aggregated status of a report."""

    UP = "UP"
    DOWN = "DOWN"


class CheckScope(str, Enum):
    """Which probe a check takes part in.

    Liveness checks are cheap self-tests only; readiness checks may touch
    external dependencies.
    """

    LIVENESS = "LIVENESS"
    READINESS = "READINESS"


class CheckResult(BaseModel):
    """Outcome of one probe invocation."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Check name")
    status: HealthStatus = Field(..., description="Check status")
    message: str = Field(default="", description="Status message")
    latency_ms: float | None = Field(None, description="Probe latency in ms")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional details")

    @property
    def is_up(self) -> bool:
        return self.status == HealthStatus.UP


class HealthReport(BaseModel):
    """Aggregated result of one evaluation."""

    model_config = ConfigDict(frozen=True)

    scope: CheckScope = Field(..., description="Evaluated scope")
    status: OverallStatus = Field(..., description="Overall status")
    message: str = Field(..., description="Summary message")
    checks: tuple[CheckResult, ...] = Field(
        default=(), description="Results in registration order"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Evaluation timestamp",
    )

    @property
    def failing(self) -> list[str]:
        """Names of checks that are not UP."""
        return [c.name for c in self.checks if not c.is_up]


ProbeOutcome = Union[CheckResult, HealthStatus, bool]
Probe = Callable[[], Union[ProbeOutcome, Awaitable[ProbeOutcome]]]


@dataclass(frozen=True)
class CheckDefinition:
    """A registered, named probe."""

    name: str
    probe: Probe
    scopes: frozenset[CheckScope] = frozenset({CheckScope.READINESS})
    timeout: float | None = None

    def in_scope(self, scope: CheckScope) -> bool:
        return scope in self.scopes


class CheckSummary(BaseModel):
    """Per-check entry of the readiness response."""

    name: str = Field(..., description="Check name")
    status: HealthStatus = Field(..., description="Check status")
    message: str = Field(..., description="Status message")


class HealthResponse(BaseModel):
    """Liveness response body."""

    status: OverallStatus = Field(..., description="Overall status")
    message: str = Field(..., description="Summary message")

    @classmethod
    def from_report(cls, report: HealthReport) -> "HealthResponse":
        return cls(status=report.status, message=report.message)


class ReadinessResponse(HealthResponse):
    """Readiness response body with per-check detail."""

    checks: list[CheckSummary] = Field(default_factory=list, description="Check results")

    @classmethod
    def from_report(cls, report: HealthReport) -> "ReadinessResponse":
        return cls(
            status=report.status,
            message=report.message,
            checks=[
                CheckSummary(name=c.name, status=c.status, message=c.message)
                for c in report.checks
            ],
        )
