"""Unit tests for the Kubernetes custom object desired-state store."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from deploysync.lib.errors import InvalidConfigError, NotFoundError, StateStoreError
from deploysync.models.config import KubernetesStateConfig
from deploysync.models.desired_state import DesiredState, Project
from deploysync.state.kubernetes import KubernetesStateStore, create_custom_objects_api

LOCATION = {
    "group": "deploysync.io",
    "version": "v1",
    "namespace": "ops",
    "plural": "desiredstates",
}


@pytest.fixture
def kube_config() -> KubernetesStateConfig:
    """Custom object location in the ops namespace."""
    return KubernetesStateConfig(namespace="ops", name="desired")


@pytest.fixture
def api() -> MagicMock:
    """A CustomObjectsApi stand-in."""
    return MagicMock()


def _document(resource_version: str, *projects: dict[str, str]) -> dict[str, Any]:
    return {
        "apiVersion": "deploysync.io/v1",
        "kind": "DesiredState",
        "metadata": {
            "name": "desired",
            "namespace": "ops",
            "resourceVersion": resource_version,
        },
        "spec": {"projects": list(projects)},
    }


def _state(*projects: Project) -> DesiredState:
    state = DesiredState()
    state.spec.projects.extend(projects)
    return state


@pytest.mark.unit
class TestKubernetesStateStoreInit:
    """Tests for KubernetesStateStore construction."""

    def test_requires_api(self, kube_config: KubernetesStateConfig) -> None:
        """A missing API client is a configuration error."""
        with pytest.raises(InvalidConfigError):
            KubernetesStateStore(kube_config, None)

    @pytest.mark.parametrize("field", ["group", "plural", "namespace", "name"])
    def test_requires_location(
        self, kube_config: KubernetesStateConfig, api: MagicMock, field: str
    ) -> None:
        """Every part of the object location is required."""
        config = kube_config.model_copy(update={field: ""})

        with pytest.raises(InvalidConfigError) as exc_info:
            KubernetesStateStore(config, api)

        assert exc_info.value.field == f"state.kubernetes.{field}"


@pytest.mark.unit
class TestKubernetesStateStoreGet:
    """Tests for KubernetesStateStore.get."""

    def test_reads_object(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """The custom object is parsed into a DesiredState."""
        api.get_namespaced_custom_object.return_value = _document(
            "7", {"id": "1", "name": "api", "ref": "a"}
        )

        state = KubernetesStateStore(kube_config, api).get()

        api.get_namespaced_custom_object.assert_called_once_with(
            name="desired", **LOCATION
        )
        assert state.metadata.resource_version == "7"
        assert state.spec.projects == [Project(id="1", name="api", ref="a")]

    def test_missing_object_is_not_found(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """A 404 means the object was not created yet."""
        api.get_namespaced_custom_object.side_effect = ApiException(status=404)

        with pytest.raises(NotFoundError):
            KubernetesStateStore(kube_config, api).get()

    def test_other_errors(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """Other API failures are store errors."""
        api.get_namespaced_custom_object.side_effect = ApiException(
            status=500, reason="Internal Server Error"
        )

        with pytest.raises(StateStoreError) as exc_info:
            KubernetesStateStore(kube_config, api).get()

        assert "500" in exc_info.value.message


@pytest.mark.unit
class TestKubernetesStateStoreEnsure:
    """Tests for KubernetesStateStore.ensure."""

    def test_creates_missing_object(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """A state without a resourceVersion is created."""
        api.create_namespaced_custom_object.return_value = _document("1")
        state = _state(Project(id="1", name="api", ref="a"))

        KubernetesStateStore(kube_config, api).ensure(state)

        body = api.create_namespaced_custom_object.call_args.kwargs["body"]
        assert body["metadata"] == {"name": "desired", "namespace": "ops"}
        assert body["spec"]["projects"] == [{"id": "1", "name": "api", "ref": "a"}]
        api.replace_namespaced_custom_object.assert_not_called()
        assert state.metadata.resource_version == "1"

    def test_conflict_falls_back_to_replace(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """An existing object is replaced at its current resourceVersion."""
        api.create_namespaced_custom_object.side_effect = ApiException(status=409)
        api.get_namespaced_custom_object.return_value = _document("5")
        api.replace_namespaced_custom_object.return_value = _document("6")
        state = _state(Project(id="1", name="api", ref="a"))

        KubernetesStateStore(kube_config, api).ensure(state)

        replace = api.replace_namespaced_custom_object.call_args.kwargs
        assert replace["name"] == "desired"
        assert replace["body"]["metadata"]["resourceVersion"] == "5"
        assert state.metadata.resource_version == "6"

    def test_known_version_replaces_directly(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """A state read from the store is written back with a replace."""
        api.replace_namespaced_custom_object.return_value = _document("9")
        state = DesiredState.model_validate(_document("8"))

        KubernetesStateStore(kube_config, api).ensure(state)

        api.create_namespaced_custom_object.assert_not_called()
        assert state.metadata.resource_version == "9"

    def test_consecutive_writes_do_not_conflict(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """The second write of the same state uses the version from the first."""
        api.create_namespaced_custom_object.return_value = _document("1")
        api.replace_namespaced_custom_object.return_value = _document("2")
        store = KubernetesStateStore(kube_config, api)
        state = _state(Project(id="1", name="api", ref="a"))

        store.ensure(state)
        state.spec.projects.append(Project(id="2", name="web", ref="b"))
        store.ensure(state)

        replace_body = api.replace_namespaced_custom_object.call_args.kwargs["body"]
        assert replace_body["metadata"]["resourceVersion"] == "1"
        assert api.create_namespaced_custom_object.call_count == 1

    def test_create_failure(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """Non-conflict create failures are store errors."""
        api.create_namespaced_custom_object.side_effect = ApiException(status=403)

        with pytest.raises(StateStoreError) as exc_info:
            KubernetesStateStore(kube_config, api).ensure(DesiredState())

        assert exc_info.value.operation == "create"

    def test_replace_failure(
        self, kube_config: KubernetesStateConfig, api: MagicMock
    ) -> None:
        """Replace failures are store errors."""
        api.replace_namespaced_custom_object.side_effect = ApiException(status=409)

        with pytest.raises(StateStoreError) as exc_info:
            KubernetesStateStore(kube_config, api).ensure(
                DesiredState.model_validate(_document("3"))
            )

        assert exc_info.value.operation == "replace"


@pytest.mark.unit
class TestCreateCustomObjectsApi:
    """Tests for create_custom_objects_api."""

    def test_in_cluster(self) -> None:
        """In-cluster credentials are loaded by default."""
        with patch("deploysync.state.kubernetes.kube_config") as mock_config, patch(
            "deploysync.state.kubernetes.client"
        ) as mock_client:
            api = create_custom_objects_api(KubernetesStateConfig())

        mock_config.load_incluster_config.assert_called_once()
        assert api is mock_client.CustomObjectsApi.return_value

    def test_kubeconfig(self) -> None:
        """Out of cluster, the configured kubeconfig is used."""
        with patch("deploysync.state.kubernetes.kube_config") as mock_config, patch(
            "deploysync.state.kubernetes.client"
        ):
            create_custom_objects_api(
                KubernetesStateConfig(in_cluster=False, kubeconfig="/tmp/kubeconfig")
            )

        mock_config.load_kube_config.assert_called_once_with(
            config_file="/tmp/kubeconfig"
        )

    def test_missing_credentials(self) -> None:
        """Credential loading failures are configuration errors."""
        with patch("deploysync.state.kubernetes.kube_config") as mock_config:
            mock_config.load_incluster_config.side_effect = ConfigException("no sa")

            with pytest.raises(InvalidConfigError):
                create_custom_objects_api(KubernetesStateConfig())
