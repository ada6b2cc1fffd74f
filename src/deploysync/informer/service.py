"""Reconciliation loop keeping the desired state in line with deployment events.

The informer bootstraps the desired state from the latest deployment of every
configured project, then applies new deployment events as the event source
reports them. The whole sequence runs under an exponential backoff retry
policy; once the policy gives up the failure is escalated to the process.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections.abc import Callable, Sequence

from tenacity import RetryCallState, RetryError

from deploysync.eventer.base import BaseEventer
from deploysync.eventer.stream import EventStream
from deploysync.informer.backoff import build_retrying
from deploysync.informer.merge import ensure_project, project_from_event
from deploysync.lib.errors import InvalidConfigError, NotFoundError, RetryExhaustedError
from deploysync.lib.logging_config import get_logger
from deploysync.models.config import RetryPolicy
from deploysync.models.deployment import DeploymentEvent
from deploysync.models.desired_state import DesiredState
from deploysync.state.base import BaseStateStore

logger = get_logger(__name__)

BOOTSTRAP_PHASE = "bootstrap"
STEADY_STATE_PHASE = "steady-state"


def exit_process(code: int) -> None:
    """Exit the process with ``code``, also from a background thread.

    ``sys.exit`` on a worker thread only ends that thread, so off the main
    thread logging is flushed and the process ends through ``os._exit``.
    """
    if threading.current_thread() is threading.main_thread():
        sys.exit(code)
    logging.shutdown()
    os._exit(code)


class Informer:
    """Merges deployment events into the desired state.

    Use ``boot()`` to run the loop on the calling thread, or ``start()`` and
    ``stop()`` to run it in the background.

    Attributes:
        environment: Deployment environment being watched
        projects: Project names, in processing order
    """

    def __init__(
        self,
        eventer: BaseEventer,
        state_store: BaseStateStore,
        retry_policy: RetryPolicy,
        *,
        environment: str,
        projects: Sequence[str],
        exit_func: Callable[[int], object] = exit_process,
    ) -> None:
        """Initialize the informer.

        Args:
            eventer: Source of deployment events
            state_store: Store holding the desired state
            retry_policy: Backoff policy wrapping the boot sequence
            environment: Deployment environment to watch
            projects: Non-empty list of project names
            exit_func: Called with exit code 1 when retries are exhausted

        Raises:
            InvalidConfigError: If a collaborator or setting is missing
        """
        if eventer is None:
            raise InvalidConfigError("eventer", "must not be empty")
        if state_store is None:
            raise InvalidConfigError("state_store", "must not be empty")
        if retry_policy is None:
            raise InvalidConfigError("retry", "must not be empty")
        if exit_func is None:
            raise InvalidConfigError("exit_func", "must not be empty")
        if not environment:
            raise InvalidConfigError("informer.environment", "must not be empty")
        if not projects or any(not p for p in projects):
            raise InvalidConfigError(
                "informer.projects", "must not be empty or contain empty names"
            )

        self._eventer = eventer
        self._state_store = state_store
        self._retry_policy = retry_policy
        self._exit_func = exit_func
        self.environment = environment
        self.projects = list(projects)

        self._boot_lock = threading.Lock()
        self._booted = False
        self._stop_event = threading.Event()
        self._stream_lock = threading.Lock()
        self._stream: EventStream | None = None
        self._thread: threading.Thread | None = None

    def boot(self) -> None:
        """Run the retry-wrapped boot sequence, at most once per instance.

        Exhausting the retry policy is logged and reported to ``exit_func``
        with code 1.
        """
        with self._boot_lock:
            if self._booted:
                logger.debug("Informer already booted")
                return
            self._booted = True

        try:
            self.run()
        except RetryExhaustedError as e:
            logger.error("Stopping informer boot retries due to too many errors: %s", e)
            self._exit_func(1)

    def start(self) -> None:
        """Run ``boot()`` on a background thread.

        With the default ``exit_func`` an exhausted retry policy still ends
        the whole process.
        """
        self._thread = threading.Thread(
            target=self.boot, name="deploysync-informer", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the loop, close the event stream and wait for the thread."""
        self._stop_event.set()
        with self._stream_lock:
            if self._stream is not None:
                self._stream.close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    @property
    def stopped(self) -> bool:
        """Return True once ``stop()`` was called."""
        return self._stop_event.is_set()

    def run(self) -> None:
        """Run attempts until one ends cleanly or the retry policy gives up.

        Raises:
            RetryExhaustedError: If the retry policy gave up
        """
        retrying = build_retrying(
            self._retry_policy,
            should_stop=self._stop_event.is_set,
            sleep=self._stop_event.wait,
            after=self._log_failed_attempt,
        )
        try:
            retrying(self._attempt)
        except RetryError as e:
            if self._stop_event.is_set():
                logger.info("Informer stopped")
                return
            last_error = e.last_attempt.exception()
            raise RetryExhaustedError(
                e.last_attempt.attempt_number, last_error
            ) from last_error

    def _attempt(self) -> None:
        """Bootstrap the desired state, then follow deployment events."""
        if self._stop_event.is_set():
            return

        # A failed attempt may have advanced cache tokens without persisting
        # anything, so every attempt starts from unconditional requests.
        self._eventer.reset_cache_tokens()

        state = self._load_state()
        for project in self.projects:
            try:
                event = self._eventer.fetch_latest(project, self.environment)
            except NotFoundError as e:
                logger.debug("%s: skipping project %s: %s", BOOTSTRAP_PHASE, project, e)
                continue
            self._align(event, state, BOOTSTRAP_PHASE)

        stream = self._eventer.fetch_continuously(self.projects, self.environment)
        with self._stream_lock:
            self._stream = stream
        try:
            if self._stop_event.is_set():
                return
            for event in stream:
                if self._stop_event.is_set():
                    break
                state = self._load_state()
                self._align(event, state, STEADY_STATE_PHASE)
        finally:
            # The poller must exit before the next attempt resets cache tokens.
            stream.close()
            stream.join()
            with self._stream_lock:
                self._stream = None

    def _load_state(self) -> DesiredState:
        """Read the desired state, starting empty if it does not exist yet."""
        try:
            return self._state_store.get()
        except NotFoundError:
            logger.debug("Desired state does not exist yet, starting empty")
            return DesiredState()

    def _align(self, event: DeploymentEvent, state: DesiredState, phase: str) -> bool:
        """Merge an event into ``state``; persist and notify if it changed.

        The state is persisted before the pending status is posted, so a
        status is only ever visible for a durable desired state.

        Returns:
            True if the desired state changed.
        """
        project = project_from_event(event)
        state.spec.projects, changed = ensure_project(state.spec.projects, project)
        if not changed:
            return False

        logger.info(
            "%s: found new deployment for project %s (id=%s, ref=%s)",
            phase,
            project.name,
            project.id,
            project.ref,
        )
        self._state_store.ensure(state)
        self._eventer.set_pending_status(event)
        return True

    def _log_failed_attempt(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Informer boot attempt %d failed: %r",
            retry_state.attempt_number,
            error,
        )
