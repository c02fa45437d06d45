"""
Run command for the inbox agent.

Loads the run configuration, performs one triage pass and prints the report.
"""

from pathlib import Path

import click

from ...agent import InboxAgent
from ...agent.report import RunReport
from ...config import Config
from ...exceptions import ConfigurationError, MailboxConnectionError
from ...logging import configure_agent_logging
from ..utils import load_config_with_prompt, echo_json, fail


LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def print_report(report: RunReport):
    """Print a human-readable run report."""
    summary = report.summary

    click.secho(f"✓ Run complete at {report.synced_at.isoformat()}", fg='green')
    click.echo(f"  Messages fetched: {summary.fetched}")
    click.echo(f"  Important replies: {summary.important_replies}")
    click.echo(f"  Marketing unsubscribes: {summary.marketing_unsubscribes}")
    click.echo(f"  Skipped: {summary.skipped}")

    if report.important_replies:
        click.echo("\nReplies:")
        for entry in report.important_replies:
            color = 'green' if entry.status == 'sent' else 'red'
            click.secho(f"  [{entry.status}] {entry.subject} -> {entry.to}", fg=color)

    if report.marketing_unsubscribes:
        click.echo("\nUnsubscribes:")
        for entry in report.marketing_unsubscribes:
            color = 'green' if entry.status == 'requested' else 'red'
            click.secho(f"  [{entry.status}] {entry.subject} via {entry.channel}: {entry.endpoint}", fg=color)

    if report.skipped:
        click.echo("\nSkipped:")
        for entry in report.skipped:
            click.echo(f"  {entry.subject}: {entry.reason}")

    if report.errors:
        click.secho(f"\n⚠ {len(report.errors)} error(s):", fg='yellow')
        for error in report.errors:
            click.echo(f"  {error}")


@click.command('run')
@click.option('--config', 'config_path', required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Run configuration JSON file')
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              help='Logging level (defaults to LOG_LEVEL)')
def run(config_path, as_json, log_level):
    """
    Triage the most recent unseen messages.

    Replies to important mail, unsubscribes from marketing mail and marks
    handled messages as seen.

    Example:
        python main.py run --config agent.json
        python main.py run --config agent.json --json
    """
    configure_agent_logging(level=log_level or Config.LOG_LEVEL, format=Config.LOG_FORMAT)

    try:
        run_config = load_config_with_prompt(config_path)
    except ConfigurationError as e:
        fail(f"Invalid configuration: {e}", as_json)

    agent = InboxAgent(run_config)

    try:
        report = agent.run()
    except MailboxConnectionError as e:
        fail(f"Mailbox connection failed: {e}", as_json)

    if as_json:
        echo_json(report.to_dict())
    else:
        print_report(report)
