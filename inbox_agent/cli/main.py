"""
Main CLI group for the inbox agent.

Integrates all commands into a single CLI application.
"""

import click

from ..config import load_config_from_env_file
from .commands.run import run
from .commands.inspect import classify, resolve, draft


@click.group()
@click.version_option(version='0.1.0', prog_name='Inbox Agent')
def cli():
    """
    Inbox Agent - triage unseen mail in one pass.

    Replies to important messages on your behalf and unsubscribes from
    marketing mail, then reports what it did.
    """
    pass


cli.add_command(run, name='run')
cli.add_command(classify, name='classify')
cli.add_command(resolve, name='resolve')
cli.add_command(draft, name='draft')


def main():
    """Console entry point: load .env, then dispatch."""
    load_config_from_env_file()
    cli()


if __name__ == '__main__':
    main()
