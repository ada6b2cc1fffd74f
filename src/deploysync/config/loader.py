"""Configuration loader for the deploysync daemon.

Configuration precedence (highest to lowest):
1. Explicit overrides (CLI options)
2. ``DEPLOYSYNC_*`` environment variables
3. YAML configuration file
4. Model defaults
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from deploysync.config.env_loader import load_env_file, substitute_env_vars
from deploysync.config.validator import config_error_from_validation
from deploysync.lib.errors import InvalidConfigError
from deploysync.models.config import ServiceConfig

logger = logging.getLogger(__name__)

# Environment variable to config path mapping
ENV_VAR_MAP: dict[str, tuple[str, ...]] = {
    "DEPLOYSYNC_GITHUB_TOKEN": ("github", "oauth_token"),
    "DEPLOYSYNC_GITHUB_ORGANISATION": ("github", "organisation"),
    "DEPLOYSYNC_GITHUB_API_URL": ("github", "api_url"),
    "DEPLOYSYNC_POLL_INTERVAL": ("github", "poll_interval"),
    "DEPLOYSYNC_HTTP_TIMEOUT": ("github", "timeout"),
    "DEPLOYSYNC_ENVIRONMENT": ("informer", "environment"),
    "DEPLOYSYNC_PROJECTS": ("informer", "projects"),
    "DEPLOYSYNC_STATE_BACKEND": ("state", "backend"),
    "DEPLOYSYNC_STATE_PATH": ("state", "path"),
    "DEPLOYSYNC_KUBERNETES_NAMESPACE": ("state", "kubernetes", "namespace"),
    "DEPLOYSYNC_KUBERNETES_IN_CLUSTER": ("state", "kubernetes", "in_cluster"),
    "DEPLOYSYNC_KUBECONFIG": ("state", "kubernetes", "kubeconfig"),
    "DEPLOYSYNC_METRICS_PORT": ("metrics_port",),
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> None:
    """Deep merge override into base (in-place), skipping None values."""
    for key, override_value in override.items():
        if override_value is None:
            continue
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(override_value, Mapping)
        ):
            _deep_merge(base[key], override_value)
        elif isinstance(override_value, Mapping):
            base[key] = {}
            _deep_merge(base[key], override_value)
        else:
            base[key] = override_value


def _set_path(data: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    node = data
    for key in path[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[path[-1]] = value


def env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect configuration values from ``DEPLOYSYNC_*`` environment variables."""
    data: dict[str, Any] = {}
    for name, path in ENV_VAR_MAP.items():
        value = env.get(name)
        if value is None or value == "":
            continue
        _set_path(data, path, value)
    return data


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file with environment variable substitution.

    Raises:
        InvalidConfigError: If the file is missing, unreadable or not a mapping
    """
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidConfigError(
            "config", f"Configuration file not found or unreadable at {path}: {e}"
        ) from e

    try:
        content = yaml.safe_load(substitute_env_vars(raw_text))
    except yaml.YAMLError as e:
        raise InvalidConfigError(
            "config", f"Failed to parse YAML file {path}: {e}"
        ) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise InvalidConfigError(
            "config", f"Configuration file {path} must contain a mapping"
        )
    return content


def load_config(
    path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
    env_file: str | Path | None = None,
) -> ServiceConfig:
    """Load and validate the daemon configuration.

    Args:
        path: Optional YAML configuration file
        overrides: Nested values that win over every other source
        env: Environment mapping; defaults to ``os.environ`` after loading .env
        env_file: Optional .env file, only used when ``env`` is not given

    Returns:
        Validated ServiceConfig

    Raises:
        InvalidConfigError: If any source is invalid
    """
    if env is None:
        load_env_file(env_file)
        env = os.environ

    data: dict[str, Any] = {}
    if path is not None:
        logger.debug("Loading configuration from %s", path)
        data = read_config_file(Path(path))

    _deep_merge(data, env_overrides(env))
    if overrides:
        _deep_merge(data, overrides)

    try:
        return ServiceConfig.model_validate(data)
    except PydanticValidationError as e:
        raise config_error_from_validation(e, ENV_VAR_MAP) from e
