"""Desired-state models persisted for the deployment controller."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_VERSION = "deploysync.io/v1"
DEFAULT_KIND = "DesiredState"
DEFAULT_NAME = "deploysync-desired-state"


class Project(BaseModel):
    """The deployment currently tracked for a single project."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default="", description="Remote deployment id")
    name: str = Field(default="", description="Project name, unique key")
    ref: str = Field(default="", description="Revision to deploy")


class ObjectMeta(BaseModel):
    """Identity of the persisted desired-state object."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(default=DEFAULT_NAME, description="Object name")
    namespace: str | None = Field(default=None, description="Object namespace")
    resource_version: str | None = Field(
        default=None,
        alias="resourceVersion",
        description="Store revision used for replace operations",
    )


class DesiredStateSpec(BaseModel):
    """Tracked projects."""

    model_config = ConfigDict(extra="ignore")

    projects: list[Project] = Field(default_factory=list)


class DesiredState(BaseModel):
    """The document shared with the deployment controller.

    Maps project names to their latest requested deployment. Projects are
    only ever added or updated, never removed.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    api_version: str = Field(default=DEFAULT_API_VERSION, alias="apiVersion")
    kind: str = Field(default=DEFAULT_KIND)
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: DesiredStateSpec = Field(default_factory=DesiredStateSpec)

    def project_map(self) -> dict[str, Project]:
        """Return the tracked projects keyed by name."""
        return {project.name: project for project in self.spec.projects}

    def to_document(self) -> dict[str, object]:
        """Serialize to the wire document, dropping unset store metadata."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
