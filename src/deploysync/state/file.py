"""Desired state persisted as a JSON document on disk."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from deploysync.lib.errors import InvalidConfigError, NotFoundError, StateStoreError
from deploysync.models.desired_state import DesiredState
from deploysync.state.base import BaseStateStore


class FileStateStore(BaseStateStore):
    """Store the desired state in a local JSON file.

    Useful for running the daemon without a cluster. The file is replaced
    atomically on every write.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the state file; parent directories are created

        Raises:
            InvalidConfigError: If the path is empty
        """
        if not path:
            raise InvalidConfigError("state.path", "must not be empty")
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Return the state file location."""
        return self._path

    def get(self) -> DesiredState:
        """Load the desired state from disk."""
        if not self._path.exists():
            raise NotFoundError(f"desired state file {self._path} does not exist")

        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StateStoreError(
                "get", f"Failed to read desired state at {self._path}: {exc}"
            ) from exc

        if not content.strip():
            raise NotFoundError(f"desired state file {self._path} is empty")

        try:
            return DesiredState.model_validate_json(content)
        except ValidationError as exc:
            raise StateStoreError(
                "get", f"Invalid desired state format in {self._path}: {exc}"
            ) from exc

    def ensure(self, state: DesiredState) -> None:
        """Write the desired state to disk."""
        payload = json.dumps(state.to_document(), indent=2, sort_keys=True)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    tmp.write(payload)
                os.replace(tmp_name, self._path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StateStoreError(
                "ensure", f"Failed to write desired state to {self._path}: {exc}"
            ) from exc
