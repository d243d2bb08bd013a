"""Health check errors."""

from healthwatch.services.health.schemas import CheckResult, HealthStatus

TIMEOUT_MESSAGE = "check timed out"


class HealthCheckError(Exception):
    """Base class for health check errors."""


class DuplicateCheckError(HealthCheckError):
    """A check with the same name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Health check already registered: {name}")


class RegistryFrozenError(HealthCheckError):
    """Registration attempted after startup."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot register {name}: health checks are frozen")


class ProbeTimeout(HealthCheckError):
    """A probe did not finish within its timeout."""

    def __init__(self, name: str, timeout: float):
        self.name = name
        self.timeout = timeout
        super().__init__(f"Health check {name} timed out after {timeout}s")

    def to_result(self, latency_ms: float | None = None) -> CheckResult:
        return CheckResult(
            name=self.name,
            status=HealthStatus.UNKNOWN,
            message=TIMEOUT_MESSAGE,
            latency_ms=latency_ms,
        )


class ProbeFailure(HealthCheckError):
    """A probe raised or returned something unusable."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        super().__init__(f"Health check {name} failed: {description}")

    @classmethod
    def from_exception(cls, name: str, exc: BaseException) -> "ProbeFailure":
        return cls(name, str(exc) or type(exc).__name__)

    def to_result(self, latency_ms: float | None = None) -> CheckResult:
        return CheckResult(
            name=self.name,
            status=HealthStatus.DOWN,
            message=self.description,
            latency_ms=latency_ms,
        )
