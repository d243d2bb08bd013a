"""Build the health aggregator from settings."""

import logging

from healthwatch.core.config import Settings
from healthwatch.services.health.aggregator import HealthAggregator
from healthwatch.services.health.probes import (
    disk_probe,
    http_probe,
    memory_probe,
    process_probe,
)
from healthwatch.services.health.schemas import CheckScope

logger = logging.getLogger(__name__)

# HTTP client timeout as a share of the check timeout; client errors
# are reported DOWN, a check timeout UNKNOWN
HTTP_TIMEOUT_RATIO = 0.8


def create_health_aggregator(settings: Settings) -> HealthAggregator:
    """Create an aggregator with the configured built-in checks.

    Args:
        settings: Application settings

    Returns:
        Aggregator, not yet frozen

    Raises:
        DuplicateCheckError: A dependency name clashes with a built-in check
    """
    aggregator = HealthAggregator(
        timeout=settings.health_check_timeout_seconds,
        max_concurrency=settings.health_max_concurrency,
        cache_ttl=settings.health_cache_ttl_seconds,
    )

    if settings.health_process_check:
        aggregator.register("process", process_probe(), scopes=[CheckScope.LIVENESS])

    if settings.health_system_checks:
        aggregator.register(
            "memory", memory_probe(settings.health_memory_threshold_percent)
        )
        aggregator.register(
            "disk",
            disk_probe(settings.health_disk_path, settings.health_disk_threshold_percent),
        )

    for name, url in settings.health_dependency_urls.items():
        aggregator.register(
            name,
            http_probe(url, timeout=settings.health_check_timeout_seconds * HTTP_TIMEOUT_RATIO),
        )

    logger.info(f"Health aggregator created with {len(aggregator.checks)} checks")
    return aggregator
