"""Health aggregator: runs registered checks and folds them into a report."""

import asyncio
import inspect
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from types import MappingProxyType
from typing import Iterable, Mapping

from healthwatch.services.health.errors import (
    DuplicateCheckError,
    ProbeFailure,
    ProbeTimeout,
    RegistryFrozenError,
)
from healthwatch.services.health.schemas import (
    CheckDefinition,
    CheckResult,
    CheckScope,
    HealthReport,
    HealthStatus,
    OverallStatus,
    Probe,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 2.0

_MESSAGES: dict[CheckScope, tuple[str, str]] = {
    CheckScope.LIVENESS: ("Application is alive", "Application is not alive"),
    CheckScope.READINESS: ("Application is ready", "Application is not ready"),
}


class HealthAggregator:
    """Runs named health checks and aggregates their results.

    Supports:
    - Liveness and readiness scopes per check
    - Concurrent probes with a per-check timeout and an optional global cap
    - Sync probes (run on the aggregator's own thread pool) and async probes
    - Optional short-lived report caching per scope

    Checks are registered during startup only. After ``freeze()`` the
    registration table is read-only and safe to share between requests.

    A check has at most one call in flight. Evaluations that find a call
    still running (e.g. a hung probe from an earlier request) wait on that
    call instead of starting another one. A concurrency slot is held until
    the probe call itself finishes, even after its result was given up on.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrency: int | None = None,
        cache_ttl: float = 0.0,
    ):
        """Initialize aggregator.

        Args:
            timeout: Default per-check timeout in seconds
            max_concurrency: Max probe calls running at once across all
                evaluations (None = unbounded)
            cache_ttl: Seconds a report is reused (0 disables caching)
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if cache_ttl < 0:
            raise ValueError("cache_ttl must not be negative")

        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self.cache_ttl = cache_ttl
        self._registry: dict[str, CheckDefinition] = {}
        self._frozen = False
        self._background: set[asyncio.Task] = set()
        self._cache: dict[CheckScope, tuple[float, HealthReport]] = {}
        self._slots = asyncio.Semaphore(max_concurrency) if max_concurrency else None
        self._executor: ThreadPoolExecutor | None = None
        self._inflight: dict[str, asyncio.Task] = {}
        self._abandoned: set[asyncio.Task] = set()

    @property
    def checks(self) -> Mapping[str, CheckDefinition]:
        """Read-only view of registered checks."""
        return MappingProxyType(self._registry)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def pending(self) -> int:
        """Number of probe tasks still running."""
        return sum(1 for task in self._background if not task.done())

    def names(self, scope: CheckScope | None = None) -> list[str]:
        """Get registered check names in registration order.

        Args:
            scope: Only names tagged with this scope

        Returns:
            Check names
        """
        return [
            name
            for name, definition in self._registry.items()
            if scope is None or definition.in_scope(scope)
        ]

    def register(
        self,
        name: str,
        probe: Probe,
        scopes: Iterable[CheckScope] = (CheckScope.READINESS,),
        timeout: float | None = None,
    ) -> CheckDefinition:
        """Register a health check.

        Args:
            name: Unique check name
            probe: Zero-argument callable (sync or async) returning a
                CheckResult, a HealthStatus or a bool
            scopes: Scopes the check takes part in
            timeout: Per-check timeout overriding the default

        Returns:
            The registered definition

        Raises:
            DuplicateCheckError: Name already registered
            RegistryFrozenError: Registration after freeze()
        """
        if self._frozen:
            raise RegistryFrozenError(name)
        if name in self._registry:
            raise DuplicateCheckError(name)

        scope_set = frozenset(CheckScope(s) for s in scopes)
        if not scope_set:
            raise ValueError(f"Health check {name} needs at least one scope")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"Health check {name} timeout must be positive")

        definition = CheckDefinition(
            name=name, probe=probe, scopes=scope_set, timeout=timeout
        )
        self._registry[name] = definition

        # Thread pool is sized from the registry, rebuild on next use
        if self._executor is not None and self.max_concurrency is None:
            self._shutdown_executor()

        logger.info(
            f"Registered health check {name} "
            f"(scopes={sorted(s.value for s in scope_set)}, timeout={timeout or self.timeout}s)"
        )
        return definition

    def freeze(self) -> None:
        """End the registration phase."""
        if not self._frozen:
            self._frozen = True
            logger.info(f"Health checks frozen: {list(self._registry)}")

    def invalidate(self) -> None:
        """Drop cached reports."""
        self._cache.clear()

    async def evaluate(self, scope: CheckScope) -> HealthReport:
        """Run all checks of a scope and aggregate them.

        Never raises for probe failures: those become DOWN or UNKNOWN
        results inside the report.

        Args:
            scope: LIVENESS or READINESS

        Returns:
            Health report with results in registration order
        """
        scope = CheckScope(scope)

        cached = self._cached(scope)
        if cached is not None:
            return cached

        definitions = [d for d in self._registry.values() if d.in_scope(scope)]
        results = await self._run_all(definitions)
        report = self._build_report(scope, results)

        if self.cache_ttl > 0:
            self._cache[scope] = (time.monotonic(), report)

        if report.status == OverallStatus.DOWN:
            logger.warning(f"{scope.value} report DOWN, failing checks: {report.failing}")
        else:
            logger.debug(f"{scope.value} report UP ({len(results)} checks)")

        return report

    async def drain(self, timeout: float | None = None) -> int:
        """Wait for background probes to finish and release the thread pool.

        Args:
            timeout: Max seconds to wait (None = no limit)

        Returns:
            Number of probes still running
        """
        still_running = 0
        pending = {task for task in self._background if not task.done()}
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=timeout)
            still_running = len(still_pending)

        self._shutdown_executor()
        return still_running

    def _cached(self, scope: CheckScope) -> HealthReport | None:
        if self.cache_ttl <= 0:
            return None

        entry = self._cache.get(scope)
        if entry is None:
            return None

        stored_at, report = entry
        if time.monotonic() - stored_at < self.cache_ttl:
            return report
        return None

    async def _run_all(self, definitions: list[CheckDefinition]) -> list[CheckResult]:
        if not definitions:
            return []

        tasks = [self._spawn(self._run_check(d)) for d in definitions]

        # asyncio.wait leaves the tasks running if this call is cancelled
        await asyncio.wait(tasks)
        return [task.result() for task in tasks]

    async def _run_check(self, definition: CheckDefinition) -> CheckResult:
        name = definition.name
        timeout = definition.timeout or self.timeout
        start = time.perf_counter()

        call = self._inflight.get(name)
        if call is None:
            if not await self._acquire_slot(timeout):
                return self._timed_out(name, timeout, start)

            # Another evaluation may have started the check while we waited
            call = self._inflight.get(name)
            if call is None:
                start = time.perf_counter()
                call = self._start_call(definition)
            elif self._slots is not None:
                self._slots.release()

        done, _ = await asyncio.wait({call}, timeout=timeout)
        if not done:
            self._abandoned.add(call)
            return self._timed_out(name, timeout, start)

        latency_ms = (time.perf_counter() - start) * 1000

        # A probe raising CancelledError leaves its task cancelled
        if call.cancelled():
            error = ProbeFailure(name, "CancelledError")
            logger.warning(str(error))
            return error.to_result(latency_ms)

        try:
            result = call.result()
        except ProbeFailure as e:
            logger.warning(str(e))
            return e.to_result(latency_ms)

        return result.model_copy(update={"name": name, "latency_ms": latency_ms})

    async def _acquire_slot(self, timeout: float) -> bool:
        if self._slots is None:
            return True
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def _start_call(self, definition: CheckDefinition) -> asyncio.Task:
        """Start a probe call that owns one slot until it finishes."""
        call = self._spawn(self._call(definition))
        self._inflight[definition.name] = call
        call.add_done_callback(partial(self._finish_call, definition.name))
        return call

    def _finish_call(self, name: str, call: asyncio.Task) -> None:
        if self._inflight.get(name) is call:
            del self._inflight[name]
        if self._slots is not None:
            self._slots.release()

        if call in self._abandoned:
            self._abandoned.discard(call)
            if call.cancelled():
                logger.debug(f"Discarded late result of {name}: cancelled")
            elif call.exception() is not None:
                logger.debug(f"Discarded late failure of {name}: {call.exception()}")
            else:
                logger.debug(f"Discarded late result of {name}: {call.result().status.value}")

    def _timed_out(self, name: str, timeout: float, start: float) -> CheckResult:
        error = ProbeTimeout(name, timeout)
        logger.warning(str(error))
        return error.to_result((time.perf_counter() - start) * 1000)

    async def _call(self, definition: CheckDefinition) -> CheckResult:
        probe = definition.probe
        try:
            if inspect.iscoroutinefunction(probe):
                outcome = await probe()
            else:
                loop = asyncio.get_running_loop()
                outcome = await loop.run_in_executor(self._get_executor(), probe)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
        except Exception as e:
            raise ProbeFailure.from_exception(definition.name, e) from e

        return _coerce(definition.name, outcome)

    def _get_executor(self) -> ThreadPoolExecutor:
        # One call per check at a time, so one worker per check is enough
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_concurrency or max(len(self._registry), 1),
                thread_name_prefix="health-probe",
            )
        return self._executor

    def _shutdown_executor(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    @staticmethod
    def _build_report(scope: CheckScope, results: list[CheckResult]) -> HealthReport:
        up_message, down_message = _MESSAGES[scope]
        failing = [r.name for r in results if not r.is_up]

        if failing:
            return HealthReport(
                scope=scope,
                status=OverallStatus.DOWN,
                message=f"{down_message}: {', '.join(failing)}",
                checks=tuple(results),
            )

        return HealthReport(
            scope=scope,
            status=OverallStatus.UP,
            message=up_message,
            checks=tuple(results),
        )


def _coerce(name: str, outcome: object) -> CheckResult:
    """Turn a probe's return value into a CheckResult."""
    if isinstance(outcome, CheckResult):
        return outcome
    if isinstance(outcome, bool):
        return CheckResult(
            name=name,
            status=HealthStatus.UP if outcome else HealthStatus.DOWN,
        )
    if isinstance(outcome, HealthStatus):
        return CheckResult(name=name, status=outcome)

    raise ProbeFailure(name, f"invalid probe result: {type(outcome).__name__}")
