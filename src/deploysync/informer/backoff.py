"""Retry policy construction for the reconciliation loop."""

from __future__ import annotations

import time
from collections.abc import Callable

from tenacity import (
    RetryCallState,
    Retrying,
    stop_after_attempt,
    stop_after_delay,
    stop_never,
    wait_exponential,
    wait_none,
)

from deploysync.models.config import RetryPolicy


def build_retrying(
    policy: RetryPolicy,
    *,
    should_stop: Callable[[], bool] | None = None,
    sleep: Callable[[float], object] = time.sleep,
    after: Callable[[RetryCallState], None] | None = None,
) -> Retrying:
    """Build a tenacity controller for the given policy.

    Delays grow as ``initial_interval * multiplier ** (attempt - 1)`` capped at
    ``max_interval``. Retrying ends when the elapsed time or attempt ceiling is
    reached, or when ``should_stop`` returns True.

    Args:
        policy: Backoff settings
        should_stop: Extra predicate checked after every failed attempt
        sleep: Function used to wait between attempts
        after: Callback invoked after every failed attempt

    Returns:
        A Retrying instance; calling it with a function runs the retry loop
        and raises ``tenacity.RetryError`` once it gives up.
    """
    if policy.initial_interval == 0:
        wait = wait_none()
    else:
        wait = wait_exponential(
            multiplier=policy.initial_interval,
            exp_base=policy.multiplier,
            max=policy.max_interval,
        )

    stop = stop_never
    if policy.max_elapsed_time > 0:
        stop = stop | stop_after_delay(policy.max_elapsed_time)
    if policy.max_attempts is not None:
        stop = stop | stop_after_attempt(policy.max_attempts)
    if should_stop is not None:
        stop = stop | (lambda _retry_state: should_stop())

    return Retrying(wait=wait, stop=stop, sleep=sleep, after=after)
