"""Entry point for the deploysync command line."""

import click

from deploysync import __version__
from deploysync.cli.commands.inspect import latest, state
from deploysync.cli.commands.run import run


@click.group(name="deploysync")
@click.version_option(__version__, prog_name="deploysync")
def main() -> None:
    """Sync GitHub deployment requests into a shared desired state.

    \b
    COMMANDS:

        run     Run the daemon
        latest  Show the latest deployment of a project
        state   Show the current desired state
    """
    pass


main.add_command(run)
main.add_command(latest)
main.add_command(state)


if __name__ == "__main__":
    main()
