"""Pydantic models for deploysync configuration.

Component constructors perform their own required-value checks, so most
fields default to empty values here and are rejected where they are used.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GITHUB_API_URL = "https://api.github.com"


class GitHubConfig(BaseModel):
    """Settings for the GitHub deployment event source.

    Attributes:
        oauth_token: Token sent in the Authorization header
        organisation: Owner of the watched repositories
        api_url: Base URL of the GitHub REST API
        poll_interval: Seconds between two poll ticks
        timeout: Per-request timeout in seconds
    """

    model_config = ConfigDict(extra="forbid")

    oauth_token: str = Field(default="", description="GitHub OAuth token")
    organisation: str = Field(default="", description="GitHub organisation")
    api_url: str = Field(default=DEFAULT_GITHUB_API_URL, description="API base URL")
    poll_interval: float = Field(default=60.0, ge=0, description="Poll interval (s)")
    timeout: float = Field(default=10.0, ge=0, description="Request timeout (s)")


class InformerConfig(BaseModel):
    """Settings for the reconciliation loop."""

    model_config = ConfigDict(extra="forbid")

    environment: str = Field(default="", description="Deployment environment")
    projects: list[str] = Field(default_factory=list, description="Watched projects")

    @field_validator("projects", mode="before")
    @classmethod
    def split_projects(cls, v: object) -> object:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [p.strip() for p in v.split(",")]
        return v


class StateBackend(str, Enum):
    """Supported desired-state stores."""

    KUBERNETES = "kubernetes"
    FILE = "file"


class KubernetesStateConfig(BaseModel):
    """Location of the desired-state custom object."""

    model_config = ConfigDict(extra="forbid")

    group: str = Field(default="deploysync.io", description="API group")
    version: str = Field(default="v1", description="API version")
    plural: str = Field(default="desiredstates", description="Resource plural")
    kind: str = Field(default="DesiredState", description="Resource kind")
    namespace: str = Field(default="default", description="Object namespace")
    name: str = Field(default="deploysync-desired-state", description="Object name")
    in_cluster: bool = Field(default=True, description="Use in-cluster credentials")
    kubeconfig: str | None = Field(default=None, description="Kubeconfig path")


class StateConfig(BaseModel):
    """Settings for the desired-state store."""

    model_config = ConfigDict(extra="forbid")

    backend: StateBackend = Field(default=StateBackend.KUBERNETES)
    path: str = Field(
        default=".deploysync/desired-state.json",
        description="State file path for the file backend",
    )
    kubernetes: KubernetesStateConfig = Field(default_factory=KubernetesStateConfig)


class RetryPolicy(BaseModel):
    """Exponential backoff policy for the reconciliation loop.

    Attributes:
        initial_interval: First delay in seconds; 0 disables waiting
        multiplier: Growth factor between two delays
        max_interval: Upper bound for a single delay in seconds
        max_elapsed_time: Give up after this many seconds; 0 means never
        max_attempts: Give up after this many attempts; None means never
    """

    model_config = ConfigDict(extra="forbid")

    initial_interval: float = Field(default=0.5, ge=0)
    multiplier: float = Field(default=1.5, ge=1)
    max_interval: float = Field(default=60.0, ge=0)
    max_elapsed_time: float = Field(default=300.0, ge=0)
    max_attempts: int | None = Field(default=None, ge=1)


class ServiceConfig(BaseModel):
    """Top-level daemon configuration."""

    model_config = ConfigDict(extra="forbid")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    informer: InformerConfig = Field(default_factory=InformerConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    metrics_port: int = Field(default=0, ge=0, le=65535, description="0 disables")
