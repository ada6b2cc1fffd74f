"""GitHub Deployments event source.

This module provides the GitHubEventer, which polls the GitHub Deployments
API for new deployment requests and reports progress back through
deployment statuses.

See https://docs.github.com/en/rest/deployments for the API it talks to.
"""

from __future__ import annotations

import contextlib
import threading
import time
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import requests
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from deploysync.eventer.base import BaseEventer
from deploysync.eventer.metrics import observe_request, update_rate_limit_metrics
from deploysync.eventer.stream import EventStream
from deploysync.lib.errors import (
    DeploySyncError,
    EventSourceConnectionError,
    EventSourceResponseError,
    InvalidConfigError,
    NotFoundError,
    UnexpectedStatusError,
)
from deploysync.lib.logging_config import get_logger
from deploysync.models.config import GitHubConfig
from deploysync.models.deployment import (
    Completion,
    DeploymentEvent,
    RawDeploymentRecord,
    StatusRecord,
    StatusState,
)

logger = get_logger(__name__)

ETAG_HEADER = "ETag"
IF_NONE_MATCH_HEADER = "If-None-Match"
GITHUB_MEDIA_TYPE = "application/vnd.github+json"

DEPLOYMENTS_ENDPOINT = "deployments"
DEPLOYMENT_STATUSES_ENDPOINT = "deployment_statuses"

_RECORDS = TypeAdapter(list[RawDeploymentRecord])
_STATUSES = TypeAdapter(list[StatusRecord])


def filter_unfinished(records: list[RawDeploymentRecord]) -> list[RawDeploymentRecord]:
    """Drop records that already carry a non-pending status.

    Records without any status and records with only pending statuses are
    kept, so a deployment stops being reported once it starts settling.
    """
    return [r for r in records if r.completion != Completion.FINISHED]


class GitHubEventer(BaseEventer):
    """Deployment event source backed by GitHub Deployments.

    Keeps one ETag per project so unchanged deployment lists are answered
    with 304 Not Modified and cost no rate limit.

    Example:
        >>> eventer = GitHubEventer(config, requests.Session())
        >>> event = eventer.fetch_latest("api", "production")
        >>> eventer.set_pending_status(event)
    """

    def __init__(self, config: GitHubConfig, session: requests.Session | None) -> None:
        """Initialize the eventer.

        Args:
            config: GitHub settings
            session: HTTP transport used for every request

        Raises:
            InvalidConfigError: If a required setting is missing or zero
        """
        if session is None:
            raise InvalidConfigError("session", "HTTP session must not be empty")
        if not config.oauth_token:
            raise InvalidConfigError("github.oauth_token", "must not be empty")
        if not config.organisation:
            raise InvalidConfigError("github.organisation", "must not be empty")
        if not config.api_url:
            raise InvalidConfigError("github.api_url", "must not be empty")
        if config.poll_interval <= 0:
            raise InvalidConfigError(
                "github.poll_interval", "must be greater than zero"
            )
        if config.timeout <= 0:
            raise InvalidConfigError("github.timeout", "must be greater than zero")

        self._session = session
        self._oauth_token = config.oauth_token
        self._organisation = config.organisation
        self._api_url = config.api_url.rstrip("/")
        self._poll_interval = config.poll_interval
        self._timeout = config.timeout

        self._cache_tokens: dict[str, str] = {}
        self._cache_lock = threading.Lock()
        self._stream: EventStream | None = None

    @property
    def organisation(self) -> str:
        """Return the watched organisation."""
        return self._organisation

    def cache_token(self, project: str) -> str | None:
        """Return the stored ETag for a project, if any."""
        with self._cache_lock:
            return self._cache_tokens.get(project)

    def reset_cache_tokens(self) -> None:
        """Forget all stored ETags."""
        with self._cache_lock:
            self._cache_tokens.clear()

    def fetch_continuously(
        self, projects: Sequence[str], environment: str
    ) -> EventStream:
        """Start the polling thread and return the stream it feeds.

        The first poll happens one full interval after this call. Any stream
        returned by an earlier call is closed first.
        """
        if self._stream is not None and not self._stream.closed:
            logger.warning("Closing previous deployment event stream")
            self._stream.close()
            self._stream.join()

        stream = EventStream()
        poller = threading.Thread(
            target=self._poll,
            args=(stream, list(projects), environment),
            name="deploysync-poller",
            daemon=True,
        )
        stream.attach(poller)
        self._stream = stream
        poller.start()
        return stream

    def fetch_latest(self, project: str, environment: str) -> DeploymentEvent:
        """Return the newest deployment for a project regardless of its status."""
        logger.debug("Fetching latest deployment for project %s", project)
        records = self._fetch_deployments(project, environment, only_pending=False)
        return records[0].to_event(project)

    def set_pending_status(self, event: DeploymentEvent) -> None:
        """Create a pending deployment status for the event's deployment."""
        logger.debug(
            "Posting %s status for project %s deployment %d",
            StatusState.PENDING.value,
            event.project,
            event.id,
        )
        url = self._statuses_url(event.project, event.id)
        response = self._request(
            "POST",
            url,
            project=event.project,
            endpoint=DEPLOYMENT_STATUSES_ENDPOINT,
            json={"state": StatusState.PENDING.value},
        )
        if response.status_code != requests.codes.created:
            raise UnexpectedStatusError(
                url, response.status_code, _error_detail(response)
            )

    def _poll(self, stream: EventStream, projects: list[str], environment: str) -> None:
        """Polling loop run on the background thread."""
        logger.info(
            "Polling GitHub deployments for %s every %ss",
            ", ".join(projects),
            self._poll_interval,
        )
        try:
            while not stream.wait_closed(self._poll_interval):
                for project in projects:
                    if stream.closed:
                        break
                    try:
                        records = self._fetch_deployments(
                            project, environment, only_pending=True
                        )
                    except NotFoundError as e:
                        logger.debug("No new deployments: %s", e.message)
                        continue
                    except DeploySyncError as e:
                        logger.error(
                            "Could not fetch deployment events for project %s: %s",
                            project,
                            e,
                        )
                        continue

                    # Oldest first, so the newest deployment is merged last.
                    for record in reversed(records):
                        if not stream.put(record.to_event(project)):
                            return
        except Exception as e:
            logger.exception("Deployment poller stopped unexpectedly")
            stream.fail(e)
            return
        logger.debug("Deployment poller stopped")

    def _fetch_deployments(
        self, project: str, environment: str, only_pending: bool
    ) -> list[RawDeploymentRecord]:
        """Conditionally fetch deployments for a project, with their statuses.

        Args:
            project: Repository name
            environment: Deployment environment to filter on
            only_pending: Drop deployments that already have a final status

        Returns:
            Deployment records, newest first

        Raises:
            NotFoundError: Nothing new, or no matching deployments
            UnexpectedStatusError: Status other than 200 or 304
        """
        url = self._deployments_url(project)
        headers: dict[str, str] = {}

        etag = self.cache_token(project)
        if etag:
            headers[IF_NONE_MATCH_HEADER] = etag

        response = self._request(
            "GET",
            url,
            project=project,
            endpoint=DEPLOYMENTS_ENDPOINT,
            params={"environment": environment},
            headers=headers,
        )

        if response.status_code == requests.codes.not_modified:
            raise NotFoundError(f"deployments for project '{project}' not modified")
        if response.status_code != requests.codes.ok:
            raise UnexpectedStatusError(
                url, response.status_code, _error_detail(response)
            )

        # Advance the token before anything else can fail, so the same
        # response is not examined again on the next tick.
        new_etag = response.headers.get(ETAG_HEADER)
        if new_etag:
            with self._cache_lock:
                self._cache_tokens[project] = new_etag

        records = _decode(_RECORDS, url, response)
        for index, record in enumerate(records):
            statuses = self._fetch_statuses(project, record.id)
            records[index] = record.model_copy(update={"statuses": statuses})

        if only_pending:
            records = filter_unfinished(records)

        if not records:
            raise NotFoundError(
                f"no deployments for project '{project}' in environment "
                f"'{environment}'"
            )

        return records

    def _fetch_statuses(self, project: str, deployment_id: int) -> list[StatusRecord]:
        """Fetch the status history of a single deployment."""
        url = self._statuses_url(project, deployment_id)
        response = self._request(
            "GET", url, project=project, endpoint=DEPLOYMENT_STATUSES_ENDPOINT
        )
        if response.status_code != requests.codes.ok:
            raise UnexpectedStatusError(
                url, response.status_code, _error_detail(response)
            )
        return _decode(_STATUSES, url, response)

    def _request(
        self,
        method: str,
        url: str,
        *,
        project: str,
        endpoint: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> requests.Response:
        """Execute an authenticated request and record its metrics.

        Raises:
            EventSourceConnectionError: Connection, timeout or transport issues
        """
        request_headers = {
            "Authorization": f"token {self._oauth_token}",
            "Accept": GITHUB_MEDIA_TYPE,
        }
        if headers:
            request_headers.update(headers)

        start_time = time.monotonic()
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                headers=request_headers,
                json=json,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise EventSourceConnectionError(url, original_error=e) from e

        observe_request(
            method,
            endpoint,
            self._organisation,
            project,
            response.status_code,
            start_time,
        )
        update_rate_limit_metrics(response.headers)
        return response

    def _deployments_url(self, project: str) -> str:
        return (
            f"{self._api_url}/repos/{quote(self._organisation, safe='')}/"
            f"{quote(project, safe='')}/deployments"
        )

    def _statuses_url(self, project: str, deployment_id: int) -> str:
        return f"{self._deployments_url(project)}/{deployment_id}/statuses"


def _decode(adapter: TypeAdapter[Any], url: str, response: requests.Response) -> Any:
    """Decode a JSON response body with the given adapter."""
    try:
        return adapter.validate_python(response.json())
    except (ValueError, PydanticValidationError) as e:
        raise EventSourceResponseError(url, str(e)) from e


def _error_detail(response: requests.Response) -> str | None:
    """Extract the ``message`` field GitHub puts in error bodies."""
    detail = None
    with contextlib.suppress(Exception):
        detail = response.json().get("message")
    return detail
