"""Pytest configuration and shared fixtures for deploysync tests."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from deploysync.eventer.base import BaseEventer
from deploysync.eventer.stream import EventStream
from deploysync.lib.errors import NotFoundError
from deploysync.models.config import GitHubConfig
from deploysync.models.deployment import DeploymentEvent
from deploysync.models.desired_state import DesiredState
from deploysync.state.base import BaseStateStore


class FakeEventer(BaseEventer):
    """In-memory event source.

    ``latest`` maps project names to the event returned by ``fetch_latest``;
    projects missing from it raise NotFoundError. ``events`` are delivered
    through an already closed stream, so iteration ends once they are drained.
    """

    def __init__(
        self,
        latest: dict[str, DeploymentEvent] | None = None,
        events: Sequence[DeploymentEvent] = (),
    ) -> None:
        self.latest = latest or {}
        self.events = list(events)
        self.pending: list[DeploymentEvent] = []
        self.streams: list[EventStream] = []
        self.resets = 0

    def fetch_continuously(
        self, projects: Sequence[str], environment: str
    ) -> EventStream:
        stream = EventStream(maxsize=0, poll_timeout=0.01)
        for event in self.events:
            stream.put(event)
        stream.close()
        self.streams.append(stream)
        return stream

    def fetch_latest(self, project: str, environment: str) -> DeploymentEvent:
        if project not in self.latest:
            raise NotFoundError(f"no deployments for project '{project}'")
        return self.latest[project]

    def set_pending_status(self, event: DeploymentEvent) -> None:
        self.pending.append(event)

    def reset_cache_tokens(self) -> None:
        self.resets += 1


class MemoryStateStore(BaseStateStore):
    """State store keeping a serialized copy of the last written state."""

    def __init__(self, initial: DesiredState | None = None) -> None:
        self.document: dict[str, Any] | None = (
            initial.to_document() if initial is not None else None
        )
        self.writes: list[dict[str, Any]] = []

    def get(self) -> DesiredState:
        if self.document is None:
            raise NotFoundError("desired state does not exist")
        return DesiredState.model_validate(self.document)

    def ensure(self, state: DesiredState) -> None:
        self.document = state.to_document()
        self.writes.append(self.document)


@pytest.fixture
def github_config() -> GitHubConfig:
    """GitHub settings with a short poll interval."""
    return GitHubConfig(
        oauth_token="test-token",
        organisation="acme",
        api_url="https://api.github.test",
        poll_interval=0.05,
        timeout=5.0,
    )


@pytest.fixture
def mock_session() -> MagicMock:
    """A requests.Session stand-in; configure ``request.side_effect`` per test."""
    return MagicMock()


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    """Location of a desired-state file inside a temporary directory."""
    return tmp_path / "state" / "desired-state.json"


def make_response(
    status_code: int,
    body: Any = None,
    headers: dict[str, str] | None = None,
) -> MagicMock:
    """Build a mocked requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response
