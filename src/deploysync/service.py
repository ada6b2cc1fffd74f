"""Wiring of the deploysync daemon.

Builds the event source, the state store and the informer from a
ServiceConfig and runs them.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import requests
from prometheus_client import start_http_server

from deploysync.eventer import BaseEventer, create_eventer
from deploysync.informer.service import Informer, exit_process
from deploysync.lib.logging_config import get_logger
from deploysync.models.config import ServiceConfig
from deploysync.state import BaseStateStore, create_state_store

logger = get_logger(__name__)


class Service:
    """The deploysync daemon.

    Attributes:
        eventer: Deployment event source
        state_store: Desired-state store
        informer: Reconciliation loop
    """

    def __init__(
        self,
        config: ServiceConfig,
        *,
        session: requests.Session | None = None,
        eventer: BaseEventer | None = None,
        state_store: BaseStateStore | None = None,
        exit_func: Callable[[int], object] = exit_process,
    ) -> None:
        """Create all collaborators.

        Args:
            config: Validated daemon configuration
            session: HTTP session for the event source
            eventer: Event source to use instead of building one
            state_store: State store to use instead of building one
            exit_func: Called with code 1 when the informer gives up

        Raises:
            InvalidConfigError: If any component rejects its configuration
        """
        self._config = config
        self.eventer = eventer or create_eventer(config.github, session)
        self.state_store = state_store or create_state_store(config.state)
        self.informer = Informer(
            self.eventer,
            self.state_store,
            config.retry,
            environment=config.informer.environment,
            projects=config.informer.projects,
            exit_func=exit_func,
        )
        self._boot_lock = threading.Lock()
        self._booted = False

    def boot(self) -> None:
        """Start the metrics endpoint, if configured, and run the informer."""
        with self._boot_lock:
            if self._booted:
                return
            self._booted = True

        if self._config.metrics_port:
            start_http_server(self._config.metrics_port)
            logger.info("Serving metrics on port %d", self._config.metrics_port)

        logger.info(
            "Watching %s deployments of %s in %s",
            self._config.informer.environment,
            ", ".join(self._config.informer.projects),
            self._config.github.organisation,
        )
        self.informer.boot()

    def stop(self) -> None:
        """Stop the informer and its polling."""
        self.informer.stop()
