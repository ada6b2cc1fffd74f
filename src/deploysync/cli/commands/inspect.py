"""CLI commands for one-shot inspection of deployments and desired state."""

from __future__ import annotations

import json
import sys

import click

from deploysync.cli.commands.run import build_overrides, config_options, handle_errors
from deploysync.config.loader import load_config
from deploysync.eventer import create_eventer
from deploysync.lib.errors import InvalidConfigError, NotFoundError
from deploysync.lib.logging_config import setup_logging
from deploysync.state import create_state_store


@click.command(name="latest")
@click.argument("project")
@config_options
def latest(
    project: str,
    config_file: str | None,
    organisation: str | None,
    environment: str | None,
    state_backend: str | None,
    state_path: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Print the latest deployment event of PROJECT as JSON.

    Exits with code 1 when the project has no deployment in the environment.
    """
    setup_logging(verbose=verbose, quiet=quiet)

    with handle_errors():
        config = load_config(
            config_file,
            overrides=build_overrides(
                organisation, environment, state_backend, state_path
            ),
        )
        if not config.informer.environment:
            raise InvalidConfigError("informer.environment", "must not be empty")

        eventer = create_eventer(config.github)
        try:
            event = eventer.fetch_latest(project, config.informer.environment)
        except NotFoundError as e:
            click.echo(f"No deployment found: {e.message}", err=True)
            sys.exit(1)

        click.echo(json.dumps(event.model_dump(mode="json"), indent=2))


@click.command(name="state")
@config_options
def state(
    config_file: str | None,
    organisation: str | None,
    environment: str | None,
    state_backend: str | None,
    state_path: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Print the current desired state as JSON.

    Exits with code 1 when the desired state does not exist yet.
    """
    setup_logging(verbose=verbose, quiet=quiet)

    with handle_errors():
        config = load_config(
            config_file,
            overrides=build_overrides(
                organisation, environment, state_backend, state_path
            ),
        )
        store = create_state_store(config.state)
        try:
            desired = store.get()
        except NotFoundError as e:
            click.echo(f"No desired state: {e.message}", err=True)
            sys.exit(1)

        click.echo(json.dumps(desired.to_document(), indent=2, sort_keys=True))
