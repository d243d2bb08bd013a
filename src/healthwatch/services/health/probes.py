"""Built-in health probes."""

import asyncio
import os
import time

import httpx
import psutil

from healthwatch.services.health.schemas import CheckResult, HealthStatus, Probe


def process_probe() -> Probe:
    """Liveness probe: the event loop is responsive."""
    process = psutil.Process(os.getpid())

    async def check_process() -> CheckResult:
        await asyncio.sleep(0)
        return CheckResult(
            name="process",
            status=HealthStatus.UP,
            message="Process is responsive",
            details={
                "pid": process.pid,
                "uptime_seconds": round(time.time() - process.create_time(), 1),
            },
        )

    return check_process


def memory_probe(threshold_percent: float = 90.0) -> Probe:
    """Readiness probe: virtual memory usage below a threshold."""

    def check_memory() -> CheckResult:
        memory = psutil.virtual_memory()
        percent_used = memory.percent

        if percent_used > threshold_percent:
            status = HealthStatus.DOWN
            message = f"Critical memory usage: {percent_used}%"
        else:
            status = HealthStatus.UP
            message = f"Memory usage: {percent_used}%"

        return CheckResult(
            name="memory",
            status=status,
            message=message,
            details={
                "total_gb": round(memory.total / (1024**3), 2),
                "available_gb": round(memory.available / (1024**3), 2),
                "used_percent": percent_used,
            },
        )

    return check_memory


def disk_probe(path: str = "/", threshold_percent: float = 95.0) -> Probe:
    """Readiness probe: disk usage at ``path`` below a threshold."""

    def check_disk() -> CheckResult:
        disk = psutil.disk_usage(path)
        percent_used = disk.percent

        if percent_used > threshold_percent:
            status = HealthStatus.DOWN
            message = f"Critical disk usage: {percent_used}%"
        else:
            status = HealthStatus.UP
            message = f"Disk usage: {percent_used}%"

        return CheckResult(
            name="disk",
            status=status,
            message=message,
            details={
                "path": path,
                "total_gb": round(disk.total / (1024**3), 2),
                "free_gb": round(disk.free / (1024**3), 2),
                "used_percent": percent_used,
            },
        )

    return check_disk


def http_probe(
    url: str,
    expected_status: int = 200,
    timeout: float = 2.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Probe:
    """Readiness probe: a dependency answers GET ``url`` with ``expected_status``.

    Connection errors are raised and reported as DOWN by the aggregator.
    """

    async def check_http() -> CheckResult:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(url)

        if response.status_code == expected_status:
            status = HealthStatus.UP
            message = f"{response.status_code} OK"
        else:
            status = HealthStatus.DOWN
            message = f"Unexpected status {response.status_code} from {url}"

        return CheckResult(
            name=url,
            status=status,
            message=message,
            details={"url": url, "status_code": response.status_code},
        )

    return check_http
