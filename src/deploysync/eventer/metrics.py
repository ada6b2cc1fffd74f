"""Prometheus metrics for deployment API requests."""

from __future__ import annotations

import time
from collections.abc import Mapping

from prometheus_client import Gauge, Histogram

from deploysync.lib.logging_config import get_logger

logger = get_logger(__name__)

RATE_LIMIT_LIMIT_HEADER = "X-RateLimit-Limit"
RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"

REQUEST_DURATION = Histogram(
    "deploysync_github_request_duration_seconds",
    "Time spent on GitHub deployment API requests.",
    ["method", "endpoint", "organisation", "project", "status_code"],
)

RATE_LIMIT_LIMIT = Gauge(
    "deploysync_github_rate_limit_limit",
    "Maximum number of GitHub API requests per hour.",
)
RATE_LIMIT_REMAINING = Gauge(
    "deploysync_github_rate_limit_remaining",
    "Remaining GitHub API requests in the current window.",
)
RATE_LIMIT_RESET = Gauge(
    "deploysync_github_rate_limit_reset_timestamp",
    "Unix time at which the GitHub rate limit window resets.",
)


def observe_request(
    method: str,
    endpoint: str,
    organisation: str,
    project: str,
    status_code: int,
    start_time: float,
) -> None:
    """Record the duration of a finished request.

    Args:
        method: HTTP method
        endpoint: Logical endpoint, ``deployments`` or ``deployment_statuses``
        organisation: Repository owner
        project: Repository name
        status_code: Response status code
        start_time: ``time.monotonic()`` value taken before the request
    """
    REQUEST_DURATION.labels(
        method=method,
        endpoint=endpoint,
        organisation=organisation,
        project=project,
        status_code=str(status_code),
    ).observe(time.monotonic() - start_time)


def update_rate_limit_metrics(headers: Mapping[str, str]) -> None:
    """Update rate limit gauges from response headers, when present."""
    gauges = (
        (RATE_LIMIT_LIMIT_HEADER, RATE_LIMIT_LIMIT),
        (RATE_LIMIT_REMAINING_HEADER, RATE_LIMIT_REMAINING),
        (RATE_LIMIT_RESET_HEADER, RATE_LIMIT_RESET),
    )
    for header, gauge in gauges:
        raw = headers.get(header)
        if raw is None:
            continue
        try:
            gauge.set(int(raw))
        except ValueError:
            logger.debug("Ignoring non-integer %s header: %r", header, raw)
