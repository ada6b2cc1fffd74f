"""Data models for deploysync."""

from deploysync.models.deployment import (
    Completion,
    DeploymentEvent,
    RawDeploymentRecord,
    StatusRecord,
    StatusState,
)
from deploysync.models.desired_state import DesiredState, Project

__all__ = [
    "Completion",
    "DeploymentEvent",
    "DesiredState",
    "Project",
    "RawDeploymentRecord",
    "StatusRecord",
    "StatusState",
]
