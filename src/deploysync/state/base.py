"""Base interface for desired-state stores."""

from __future__ import annotations

from abc import ABC, abstractmethod

from deploysync.models.desired_state import DesiredState


class BaseStateStore(ABC):
    """Abstract base class for desired-state stores."""

    @abstractmethod
    def get(self) -> DesiredState:
        """Read the current desired state.

        Returns:
            The persisted DesiredState.

        Raises:
            NotFoundError: If the object does not exist yet.
            StateStoreError: If reading fails.
        """

    @abstractmethod
    def ensure(self, state: DesiredState) -> None:
        """Persist ``state``, creating the object if it does not exist.

        Raises:
            StateStoreError: If writing fails.
        """
