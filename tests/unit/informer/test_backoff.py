"""Tests for the retry controller built from a RetryPolicy."""

from unittest.mock import MagicMock

import pytest
from tenacity import RetryError

from deploysync.informer.backoff import build_retrying
from deploysync.models.config import RetryPolicy


def _failing(times: int) -> MagicMock:
    """A callable failing ``times`` times before returning "ok"."""
    return MagicMock(side_effect=[RuntimeError("boom")] * times + ["ok"])


@pytest.mark.unit
class TestBuildRetrying:
    """Tests for build_retrying."""

    def test_retries_until_success(self) -> None:
        """Failed attempts are retried with growing delays."""
        sleep = MagicMock()
        retrying = build_retrying(
            RetryPolicy(initial_interval=1, multiplier=2, max_interval=60),
            sleep=sleep,
        )
        func = _failing(3)

        assert retrying(func) == "ok"
        assert func.call_count == 4
        assert [c.args[0] for c in sleep.call_args_list] == [1, 2, 4]

    def test_delay_is_capped(self) -> None:
        """No single delay exceeds max_interval."""
        sleep = MagicMock()
        retrying = build_retrying(
            RetryPolicy(initial_interval=1, multiplier=10, max_interval=5),
            sleep=sleep,
        )

        retrying(_failing(3))

        assert [c.args[0] for c in sleep.call_args_list] == [1, 5, 5]

    def test_zero_initial_interval_disables_waiting(self) -> None:
        """An initial interval of zero retries immediately."""
        sleep = MagicMock()
        retrying = build_retrying(RetryPolicy(initial_interval=0), sleep=sleep)

        retrying(_failing(2))

        assert all(c.args[0] == 0 for c in sleep.call_args_list)

    def test_gives_up_after_max_attempts(self) -> None:
        """The attempt ceiling ends retrying with a RetryError."""
        func = MagicMock(side_effect=RuntimeError("boom"))
        retrying = build_retrying(
            RetryPolicy(initial_interval=0, max_attempts=3), sleep=MagicMock()
        )

        with pytest.raises(RetryError) as exc_info:
            retrying(func)

        assert func.call_count == 3
        assert exc_info.value.last_attempt.attempt_number == 3

    def test_should_stop_predicate(self) -> None:
        """An external stop request ends retrying after the current attempt."""
        func = MagicMock(side_effect=RuntimeError("boom"))
        retrying = build_retrying(
            RetryPolicy(initial_interval=0),
            should_stop=lambda: func.call_count >= 2,
            sleep=MagicMock(),
        )

        with pytest.raises(RetryError):
            retrying(func)

        assert func.call_count == 2

    def test_after_callback_sees_failures(self) -> None:
        """The after hook runs once per failed attempt."""
        after = MagicMock()
        retrying = build_retrying(
            RetryPolicy(initial_interval=0), sleep=MagicMock(), after=after
        )

        retrying(_failing(2))

        assert after.call_count == 2
