"""
Offline inspection commands for the inbox agent.

Classify a stored message, resolve a List-Unsubscribe header, or preview the
reply that would be sent. None of these touch the network.
"""

from pathlib import Path

import click

from ...config import parse_agent_profile, read_config_document
from ...email_processor import parse_raw_email, classify_email
from ...email_processor.unsubscribe import parse_list_unsubscribe
from ...exceptions import ConfigurationError, ParseError
from ...reply import craft_formal_reply
from ..utils import echo_json, fail, read_message_file


MESSAGE_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _load_message(path: Path, as_json: bool = False):
    try:
        return parse_raw_email(read_message_file(path))
    except ParseError as e:
        fail(f"Cannot parse {path}: {e}", as_json)


@click.command('classify')
@click.argument('message_file', type=MESSAGE_FILE)
@click.option('--summaries/--no-summaries', default=True, help='Generate summary bullets')
@click.option('--json', 'as_json', is_flag=True, help='Print the classification as JSON')
def classify(message_file, summaries, as_json):
    """
    Classify a stored message as marketing or score its importance.

    Example:
        python main.py classify message.eml
    """
    email = _load_message(message_file, as_json)
    classification = classify_email(email, include_summary=summaries)

    if as_json:
        echo_json({
            'messageId': email.message_id,
            'subject': email.subject,
            'from': email.from_address,
            'classification': classification.to_dict(),
        })
        return

    click.echo(f"Subject: {email.subject}")
    click.echo(f"From: {email.from_address}")
    if classification.is_marketing:
        click.secho("Marketing: yes", fg='yellow')
    else:
        click.echo("Marketing: no")
    click.echo(f"Importance: {classification.importance_score}/100")
    click.echo(f"Reason: {classification.reason}")

    if classification.summary:
        click.echo("Summary:")
        for bullet in classification.summary:
            click.echo(f"  - {bullet}")


@click.command('resolve')
@click.argument('header_value')
@click.option('--json', 'as_json', is_flag=True, help='Print the channels as JSON')
def resolve(header_value, as_json):
    """
    Resolve the unsubscribe channels of a List-Unsubscribe header value.

    Example:
        python main.py resolve "<https://example.com/u?id=1>, <mailto:leave@example.com>"
    """
    channels = parse_list_unsubscribe(header_value)
    if channels is None:
        fail("No unsubscribe instructions found", as_json)

    if as_json:
        echo_json(channels.to_dict())
        return

    if channels.is_empty:
        click.secho("⚠ No supported unsubscribe channel", fg='yellow')
        return

    for url in channels.http:
        click.echo(f"http: {url}")
    for target in channels.mailto:
        click.echo(f"mailto: {target}")


@click.command('draft')
@click.argument('message_file', type=MESSAGE_FILE)
@click.option('--config', 'config_path', required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Run configuration JSON file (agentProfile is used)')
@click.option('--summaries/--no-summaries', default=True, help='Include summary bullets')
def draft(message_file, config_path, summaries):
    """
    Print the reply that would be sent for a stored message.

    Example:
        python main.py draft message.eml --config agent.json
    """
    try:
        document = read_config_document(config_path)
        section = document.get('agentProfile') if isinstance(document, dict) else None
        if not isinstance(section, dict):
            raise ConfigurationError("Missing 'agentProfile' section", field='agentProfile')
        profile = parse_agent_profile(section)
    except ConfigurationError as e:
        fail(f"Invalid configuration: {e}")

    email = _load_message(message_file)
    classification = classify_email(email, include_summary=summaries)
    reply = craft_formal_reply(email, profile, classification.summary)

    click.echo(f"To: {email.from_address}")
    click.echo(f"Subject: {reply.subject}")
    click.echo("")
    click.echo(reply.body)
