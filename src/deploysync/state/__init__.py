"""Desired-state stores for deploysync."""

from __future__ import annotations

from pathlib import Path

from deploysync.lib.errors import InvalidConfigError
from deploysync.models.config import StateBackend, StateConfig
from deploysync.state.base import BaseStateStore


def create_state_store(config: StateConfig) -> BaseStateStore:
    """Create a desired-state store based on the configured backend."""
    if config.backend == StateBackend.FILE:
        from deploysync.state.file import FileStateStore

        return FileStateStore(Path(config.path))

    if config.backend == StateBackend.KUBERNETES:
        from deploysync.state.kubernetes import (
            KubernetesStateStore,
            create_custom_objects_api,
        )

        api = create_custom_objects_api(config.kubernetes)
        return KubernetesStateStore(config.kubernetes, api)

    raise InvalidConfigError("state.backend", f"Unsupported backend: {config.backend}")


__all__ = ["BaseStateStore", "create_state_store"]
