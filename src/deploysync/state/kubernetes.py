"""Desired state persisted as a Kubernetes custom object."""

from __future__ import annotations

from typing import Any

from kubernetes import client
from kubernetes import config as kube_config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from deploysync.lib.errors import InvalidConfigError, NotFoundError, StateStoreError
from deploysync.lib.logging_config import get_logger
from deploysync.models.config import KubernetesStateConfig
from deploysync.models.desired_state import DesiredState
from deploysync.state.base import BaseStateStore

logger = get_logger(__name__)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409


def create_custom_objects_api(
    config: KubernetesStateConfig,
) -> client.CustomObjectsApi:
    """Build a CustomObjectsApi from in-cluster or kubeconfig credentials."""
    try:
        if config.in_cluster:
            kube_config.load_incluster_config()
        else:
            kube_config.load_kube_config(config_file=config.kubeconfig)
    except ConfigException as exc:
        raise InvalidConfigError(
            "state.kubernetes", f"Failed to load Kubernetes credentials: {exc}"
        ) from exc

    return client.CustomObjectsApi()


class KubernetesStateStore(BaseStateStore):
    """Store the desired state in a namespaced custom object.

    ``ensure`` creates the object and falls back to a replace when it already
    exists. The object's resourceVersion is tracked on the DesiredState so
    consecutive writes from the same read do not conflict.
    """

    def __init__(
        self, config: KubernetesStateConfig, api: client.CustomObjectsApi | None
    ) -> None:
        """Initialize the store.

        Args:
            config: Location of the custom object
            api: Kubernetes custom objects client

        Raises:
            InvalidConfigError: If a location field is empty or api is missing
        """
        if api is None:
            raise InvalidConfigError(
                "state.kubernetes", "API client must not be empty"
            )
        for field in ("group", "version", "plural", "kind", "namespace", "name"):
            if not getattr(config, field):
                raise InvalidConfigError(
                    f"state.kubernetes.{field}", "must not be empty"
                )

        self._api = api
        self._config = config

    @property
    def api_version(self) -> str:
        """Return the ``group/version`` of the custom object."""
        return f"{self._config.group}/{self._config.version}"

    def get(self) -> DesiredState:
        """Read the custom object."""
        return DesiredState.model_validate(self._read("get"))

    def ensure(self, state: DesiredState) -> None:
        """Create or replace the custom object with ``state``."""
        state.api_version = self.api_version
        state.kind = self._config.kind
        state.metadata.name = self._config.name
        state.metadata.namespace = self._config.namespace

        if state.metadata.resource_version:
            result = self._replace(state)
        else:
            try:
                result = self._api.create_namespaced_custom_object(
                    group=self._config.group,
                    version=self._config.version,
                    namespace=self._config.namespace,
                    plural=self._config.plural,
                    body=state.to_document(),
                )
                logger.info(
                    "Created desired state object %s/%s",
                    self._config.namespace,
                    self._config.name,
                )
            except ApiException as exc:
                if _status(exc) != HTTP_CONFLICT:
                    raise _store_error("create", exc) from exc
                current = self._read("replace")
                state.metadata.resource_version = current.get("metadata", {}).get(
                    "resourceVersion"
                )
                result = self._replace(state)

        state.metadata.resource_version = _resource_version(result)

    def _replace(self, state: DesiredState) -> Any:
        try:
            return self._api.replace_namespaced_custom_object(
                group=self._config.group,
                version=self._config.version,
                namespace=self._config.namespace,
                plural=self._config.plural,
                name=self._config.name,
                body=state.to_document(),
            )
        except ApiException as exc:
            raise _store_error("replace", exc) from exc

    def _read(self, operation: str) -> dict[str, Any]:
        try:
            result = self._api.get_namespaced_custom_object(
                group=self._config.group,
                version=self._config.version,
                namespace=self._config.namespace,
                plural=self._config.plural,
                name=self._config.name,
            )
        except ApiException as exc:
            if _status(exc) == HTTP_NOT_FOUND:
                raise NotFoundError(
                    f"desired state object {self._config.namespace}/"
                    f"{self._config.name} does not exist"
                ) from exc
            raise _store_error(operation, exc) from exc
        return dict(result)


def _status(exc: ApiException) -> int | None:
    """Return the HTTP status of a kubernetes ApiException, if any."""
    status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def _resource_version(result: Any) -> str | None:
    if isinstance(result, dict):
        return result.get("metadata", {}).get("resourceVersion")
    return None


def _store_error(operation: str, exc: ApiException) -> StateStoreError:
    status = _status(exc)
    reason = getattr(exc, "reason", None) or str(exc)
    if status is not None:
        return StateStoreError(operation, f"status {status}: {reason}")
    return StateStoreError(operation, reason)
