"""Base interface for deployment event sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from deploysync.eventer.stream import EventStream
from deploysync.models.deployment import DeploymentEvent


class BaseEventer(ABC):
    """Abstract base class for deployment event sources."""

    @abstractmethod
    def fetch_continuously(
        self, projects: Sequence[str], environment: str
    ) -> EventStream:
        """Poll for new deployment events in the background.

        Args:
            projects: Project names, polled in this order on every tick.
            environment: Deployment environment to watch.

        Returns:
            An open EventStream. Closing it stops the polling.
        """

    @abstractmethod
    def fetch_latest(self, project: str, environment: str) -> DeploymentEvent:
        """Return the newest deployment event for a project, whatever its status.

        Args:
            project: Project name.
            environment: Deployment environment.

        Returns:
            The latest DeploymentEvent.

        Raises:
            NotFoundError: If there is no deployment or nothing changed.
            UnexpectedStatusError: If the remote answers unexpectedly.
        """

    @abstractmethod
    def set_pending_status(self, event: DeploymentEvent) -> None:
        """Mark the deployment behind ``event`` as pending.

        Raises:
            UnexpectedStatusError: If the remote does not acknowledge creation.
        """

    def reset_cache_tokens(self) -> None:
        """Forget response validation tokens so the next fetch is unconditional."""
        return None
