"""Deployment event sources for deploysync."""

from __future__ import annotations

import requests

from deploysync.eventer.base import BaseEventer
from deploysync.eventer.stream import EventStream
from deploysync.models.config import GitHubConfig


def create_eventer(
    config: GitHubConfig, session: requests.Session | None = None
) -> BaseEventer:
    """Create the GitHub event source with a fresh HTTP session by default."""
    from deploysync.eventer.github import GitHubEventer

    return GitHubEventer(config, session if session is not None else requests.Session())


__all__ = ["BaseEventer", "EventStream", "create_eventer"]
