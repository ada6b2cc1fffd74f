"""Merging of deployment events into the desired-state project list."""

from __future__ import annotations

from deploysync.models.deployment import DeploymentEvent
from deploysync.models.desired_state import Project


def project_from_event(event: DeploymentEvent) -> Project:
    """Map a deployment event to a desired-state project entry."""
    return Project(id=str(event.id), name=event.project, ref=event.revision)


def ensure_project(
    projects: list[Project], project: Project
) -> tuple[list[Project], bool]:
    """Add or update ``project`` in ``projects``, keyed by name.

    Projects are identified by name. An unknown name is appended. A known
    name is replaced in place when its deployment id differs, and left alone
    otherwise. Entries are never removed or reordered. Candidates with an
    empty id, name or ref are ignored.

    Args:
        projects: Current project list, updated in place
        project: Candidate entry

    Returns:
        The project list and whether it changed.
    """
    if not project.id or not project.name or not project.ref:
        return projects, False

    for index, existing in enumerate(projects):
        if existing.name != project.name:
            continue
        if existing.id == project.id:
            return projects, False
        projects[index] = existing.model_copy(
            update={"id": project.id, "ref": project.ref}
        )
        return projects, True

    projects.append(project)
    return projects, True
