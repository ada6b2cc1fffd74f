"""Tests for merging deployment events into the project list."""

import pytest

from deploysync.informer.merge import ensure_project, project_from_event
from deploysync.models.deployment import DeploymentEvent
from deploysync.models.desired_state import Project


@pytest.mark.unit
class TestProjectFromEvent:
    """Tests for project_from_event."""

    def test_maps_fields(self) -> None:
        """The deployment id becomes a string and the revision becomes the ref."""
        project = project_from_event(
            DeploymentEvent(id=100, project="api", revision="sha1")
        )
        assert project == Project(id="100", name="api", ref="sha1")


@pytest.mark.unit
class TestEnsureProject:
    """Tests for ensure_project."""

    def test_appends_unknown_project(self) -> None:
        """A new name is added at the end."""
        projects = [Project(id="1", name="web", ref="a")]

        result, changed = ensure_project(projects, Project(id="2", name="api", ref="b"))

        assert changed is True
        assert [p.name for p in result] == ["web", "api"]

    def test_same_id_is_unchanged(self) -> None:
        """Merging the tracked deployment again is a no-op."""
        projects = [Project(id="1", name="api", ref="a")]

        result, changed = ensure_project(projects, Project(id="1", name="api", ref="a"))

        assert changed is False
        assert result == [Project(id="1", name="api", ref="a")]

    def test_idempotent(self) -> None:
        """A second merge of the same candidate reports no change."""
        projects: list[Project] = []
        candidate = Project(id="5", name="api", ref="abc")

        projects, first = ensure_project(projects, candidate)
        projects, second = ensure_project(projects, candidate)

        assert (first, second) == (True, False)
        assert len(projects) == 1

    def test_new_id_replaces_in_place(self) -> None:
        """A newer deployment updates id and ref without moving the entry."""
        projects = [
            Project(id="1", name="api", ref="a"),
            Project(id="2", name="web", ref="b"),
        ]

        result, changed = ensure_project(
            projects, Project(id="3", name="api", ref="c")
        )

        assert changed is True
        assert result[0] == Project(id="3", name="api", ref="c")
        assert result[1] == Project(id="2", name="web", ref="b")

    def test_same_ref_new_id_is_change(self) -> None:
        """A redeploy of the same revision still counts as new."""
        projects = [Project(id="1", name="api", ref="a")]

        result, changed = ensure_project(projects, Project(id="2", name="api", ref="a"))

        assert changed is True
        assert result[0].id == "2"

    def test_never_removes_or_duplicates(self) -> None:
        """Names stay unique and existing entries survive every merge."""
        projects: list[Project] = []
        candidates = [
            Project(id="1", name="api", ref="a"),
            Project(id="2", name="web", ref="b"),
            Project(id="3", name="api", ref="c"),
            Project(id="4", name="worker", ref="d"),
            Project(id="5", name="web", ref="e"),
        ]

        for candidate in candidates:
            projects, _ = ensure_project(projects, candidate)

        assert [p.name for p in projects] == ["api", "web", "worker"]
        assert [p.id for p in projects] == ["3", "5", "4"]

    @pytest.mark.parametrize(
        "candidate",
        [
            Project(id="", name="api", ref="a"),
            Project(id="1", name="", ref="a"),
            Project(id="1", name="api", ref=""),
        ],
    )
    def test_ignores_incomplete_candidates(self, candidate: Project) -> None:
        """Candidates missing any field leave the list alone."""
        projects = [Project(id="9", name="api", ref="z")]

        result, changed = ensure_project(projects, candidate)

        assert changed is False
        assert result == [Project(id="9", name="api", ref="z")]
