"""CLI command running the deploysync daemon."""

from __future__ import annotations

import signal
import sys
from collections.abc import Generator
from contextlib import contextmanager
from types import FrameType
from typing import Any

import click

from deploysync.config.loader import load_config
from deploysync.lib.errors import DeploySyncError, InvalidConfigError
from deploysync.lib.logging_config import get_logger, setup_logging
from deploysync.service import Service

logger = get_logger(__name__)


@contextmanager
def handle_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in CLI commands.

    Exit codes:
        2: Configuration error
        3: Runtime error
    """
    try:
        yield
    except InvalidConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except DeploySyncError as e:
        logger.error(f"Runtime error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


def config_options(func: Any) -> Any:
    """Options shared by every command that needs the daemon configuration."""
    options = [
        click.option(
            "--config",
            "config_file",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="Path to a YAML configuration file",
        ),
        click.option(
            "--organisation",
            default=None,
            help="GitHub organisation owning the projects",
        ),
        click.option(
            "--environment",
            default=None,
            help="Deployment environment to watch",
        ),
        click.option(
            "--state-backend",
            type=click.Choice(["kubernetes", "file"]),
            default=None,
            help="Where the desired state is stored",
        ),
        click.option(
            "--state-path",
            type=click.Path(dir_okay=False),
            default=None,
            help="State file path for the file backend",
        ),
        click.option("--verbose", "-v", is_flag=True, help="Enable debug logging"),
        click.option(
            "--quiet", "-q", is_flag=True, help="Only log warnings and errors"
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_overrides(
    organisation: str | None,
    environment: str | None,
    state_backend: str | None,
    state_path: str | None,
    **extra: Any,
) -> dict[str, Any]:
    """Translate CLI options into nested configuration overrides."""
    overrides: dict[str, Any] = {
        "github": {
            "organisation": organisation,
            "poll_interval": extra.get("poll_interval"),
        },
        "informer": {
            "environment": environment,
            "projects": extra.get("projects"),
        },
        "state": {"backend": state_backend, "path": state_path},
        "metrics_port": extra.get("metrics_port"),
    }
    return overrides


@click.command(name="run")
@config_options
@click.option(
    "--projects",
    default=None,
    help="Comma-separated list of projects to watch",
)
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between two polls of the deployment API",
)
@click.option(
    "--metrics-port",
    type=click.IntRange(min=0, max=65535),
    default=None,
    help="Serve Prometheus metrics on this port (0 disables)",
)
def run(
    config_file: str | None,
    organisation: str | None,
    environment: str | None,
    state_backend: str | None,
    state_path: str | None,
    verbose: bool,
    quiet: bool,
    projects: str | None,
    poll_interval: float | None,
    metrics_port: int | None,
) -> None:
    """Watch deployment events and keep the desired state up to date.

    Runs until interrupted. Exits with code 1 when the state store or the
    deployment API stay unavailable past the retry policy.

    \b
    EXAMPLES:

        deploysync run --config deploysync.yaml

        deploysync run --projects api,worker --environment production
    """
    setup_logging(verbose=verbose, quiet=quiet)

    with handle_errors():
        config = load_config(
            config_file,
            overrides=build_overrides(
                organisation,
                environment,
                state_backend,
                state_path,
                projects=projects,
                poll_interval=poll_interval,
                metrics_port=metrics_port,
            ),
        )
        service = Service(config)

        def shutdown(signum: int, frame: FrameType | None) -> None:
            logger.info("Received signal %d, shutting down", signum)
            service.stop()

        signal.signal(signal.SIGTERM, shutdown)
        signal.signal(signal.SIGINT, shutdown)

        service.boot()
