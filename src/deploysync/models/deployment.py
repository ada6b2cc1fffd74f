"""Pydantic models for remote deployment records and deployment events.

The remote API returns deployment records and, through a separate endpoint,
the status history of each record. Records are filtered and mapped into
``DeploymentEvent`` instances, which are what the reconciliation loop consumes.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class StatusState(str, Enum):
    """Deployment status states known to the remote API."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    INACTIVE = "inactive"
    IN_PROGRESS = "in_progress"
    QUEUED = "queued"


class Completion(str, Enum):
    """Completion of a deployment record, derived from its statuses."""

    UNSTARTED = "unstarted"
    IN_FLIGHT = "in_flight"
    FINISHED = "finished"


class StatusRecord(BaseModel):
    """A single status entry attached to a deployment record."""

    model_config = ConfigDict(extra="ignore")

    state: str = Field(..., description="Status state, e.g. pending or success")

    @property
    def is_pending(self) -> bool:
        """Return True if this status is the pending state."""
        return self.state == StatusState.PENDING.value


class RawDeploymentRecord(BaseModel):
    """A deployment record as returned by the remote API.

    Statuses are not part of the list response; they are fetched per record
    and attached afterwards.
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Remote-assigned deployment id")
    sha: str = Field(..., description="Revision to deploy")
    environment: str = Field(default="", description="Target environment")
    ref: str | None = Field(
        default=None, description="Ref the deployment was made from"
    )
    created_at: str | None = Field(default=None, description="Creation timestamp")
    statuses: list[StatusRecord] = Field(
        default_factory=list, description="Status history, newest first"
    )

    @property
    def completion(self) -> Completion:
        """Derive the completion of this record from its status history.

        No statuses means unstarted, any non-pending status means finished,
        and only pending statuses means in flight.
        """
        if not self.statuses:
            return Completion.UNSTARTED
        if any(not status.is_pending for status in self.statuses):
            return Completion.FINISHED
        return Completion.IN_FLIGHT

    def to_event(self, project: str) -> "DeploymentEvent":
        """Map this record to a deployment event for the given project."""
        return DeploymentEvent(id=self.id, project=project, revision=self.sha)


class DeploymentEvent(BaseModel):
    """A request for a project to be deployed at a specific revision."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: int = Field(..., description="Remote deployment id")
    project: str = Field(..., description="Project name, e.g. api")
    revision: str = Field(..., description="Revision to deploy, e.g. a commit SHA")
