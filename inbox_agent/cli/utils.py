"""
Common utilities for CLI commands.

Shared helper functions used across multiple command modules.
"""

import getpass
import json
from pathlib import Path
from typing import Any, Dict

import click

from ..config import RunConfig, load_run_config
from ..exceptions import ConfigurationError


# Password fields that may be prompted for when absent from file and environment
PROMPTABLE_FIELDS = {
    'imap.password': 'imap',
    'smtp.password': 'smtp',
}


def prompt_password(service: str) -> str:
    return getpass.getpass(f"{service.upper()} password: ")


def load_config_with_prompt(path: Path) -> RunConfig:
    """
    Load the run configuration, prompting for passwords that are missing.

    Args:
        path: Run configuration JSON file

    Returns:
        Validated RunConfig

    Raises:
        ConfigurationError: for any other validation failure
    """
    overrides: Dict[str, Dict[str, Any]] = {}

    while True:
        try:
            return load_run_config(path, overrides)
        except ConfigurationError as e:
            service = PROMPTABLE_FIELDS.get(e.field)
            if service is None or service in overrides:
                raise
            overrides[service] = {'password': prompt_password(service)}


def echo_json(data: Any):
    click.echo(json.dumps(data, indent=2, default=str))


def fail(message: str, as_json: bool = False):
    """Report a top-level failure and exit with status 1."""
    if as_json:
        echo_json({'message': message})
    else:
        click.secho(f"✗ {message}", fg='red')
    click.get_current_context().exit(1)


def read_message_file(path: Path) -> bytes:
    """Read a stored message (.eml) as raw bytes."""
    with open(path, 'rb') as f:
        return f.read()
