"""
Run configuration bundle: mailbox and transport credentials, the agent's
identity profile and the automation settings for one run.

The bundle is validated once at the boundary and is immutable afterwards.
Keys follow the camelCase names of the JSON request document.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional

from ..exceptions import ConfigurationError
from .settings import Config


REPLY_TONES = ('formal', 'neutral')


@dataclass(frozen=True)
class ImapSettings:
    host: str
    user: str
    password: str = field(repr=False)
    port: int = 993
    secure: bool = True
    mailbox: str = 'INBOX'


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    user: str
    password: str = field(repr=False)
    port: int = 465
    secure: bool = True


@dataclass(frozen=True)
class AgentProfile:
    """Identity used to sign and phrase replies."""

    display_name: str
    job_title: Optional[str] = None
    company: Optional[str] = None
    signature: Optional[str] = None
    reply_tone: str = 'formal'


@dataclass(frozen=True)
class AgentSettings:
    """Automation switches for a run. Closed set of options."""

    auto_reply_important: bool = True
    auto_unsubscribe_marketing: bool = True
    include_summaries: bool = True
    reply_delay_minutes: int = 3
    importance_threshold: int = 65


@dataclass(frozen=True)
class RunConfig:
    imap: ImapSettings
    smtp: SmtpSettings
    agent_profile: AgentProfile
    settings: AgentSettings = field(default_factory=AgentSettings)


_SETTINGS_KEYS = {
    'autoReplyImportant': 'auto_reply_important',
    'autoUnsubscribeMarketing': 'auto_unsubscribe_marketing',
    'includeSummaries': 'include_summaries',
    'replyDelayMinutes': 'reply_delay_minutes',
    'importanceThreshold': 'importance_threshold',
}


def _section(data: Dict[str, Any], name: str, required: bool = True) -> Dict[str, Any]:
    section = data.get(name)
    if section is None:
        if required:
            raise ConfigurationError(f"Missing '{name}' section", field=name)
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{name}' must be an object", field=name)
    return section


def _string(section: Dict[str, Any], prefix: str, key: str,
            required: bool = False, default: Optional[str] = None) -> Optional[str]:
    value = section.get(key, default)
    if value is None or value == '':
        if required:
            raise ConfigurationError(f"'{prefix}.{key}' is required", field=f'{prefix}.{key}')
        return default
    if not isinstance(value, str):
        raise ConfigurationError(f"'{prefix}.{key}' must be a string", field=f'{prefix}.{key}')
    return value


def _boolean(section: Dict[str, Any], prefix: str, key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{prefix}.{key}' must be true or false", field=f'{prefix}.{key}')
    return value


def _integer(section: Dict[str, Any], prefix: str, key: str, default: int,
             minimum: int, maximum: int) -> int:
    value = section.get(key, default)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{prefix}.{key}' must be an integer", field=f'{prefix}.{key}')
    if not minimum <= value <= maximum:
        raise ConfigurationError(
            f"'{prefix}.{key}' must be between {minimum} and {maximum}",
            field=f'{prefix}.{key}'
        )
    return value


def _password(section: Dict[str, Any], prefix: str, fallback: Optional[str]) -> str:
    password = _string(section, prefix, 'password')
    if password is None:
        password = Config.get_password_from_env(prefix) or fallback
    if password is None:
        raise ConfigurationError(f"'{prefix}.password' is required", field=f'{prefix}.password')
    return password


def parse_settings(section: Dict[str, Any]) -> AgentSettings:
    """Validate the settings block. Unknown options are rejected."""
    unknown = sorted(set(section) - set(_SETTINGS_KEYS))
    if unknown:
        raise ConfigurationError(
            f"Unknown settings option(s): {', '.join(unknown)}",
            field=f'settings.{unknown[0]}'
        )

    defaults = AgentSettings()
    return AgentSettings(
        auto_reply_important=_boolean(section, 'settings', 'autoReplyImportant', defaults.auto_reply_important),
        auto_unsubscribe_marketing=_boolean(
            section, 'settings', 'autoUnsubscribeMarketing', defaults.auto_unsubscribe_marketing
        ),
        include_summaries=_boolean(section, 'settings', 'includeSummaries', defaults.include_summaries),
        reply_delay_minutes=_integer(section, 'settings', 'replyDelayMinutes', defaults.reply_delay_minutes, 0, 60),
        importance_threshold=_integer(
            section, 'settings', 'importanceThreshold', defaults.importance_threshold, 0, 100
        ),
    )


def parse_agent_profile(section: Dict[str, Any]) -> AgentProfile:
    tone = _string(section, 'agentProfile', 'replyTone', default='formal')
    if tone not in REPLY_TONES:
        raise ConfigurationError(
            f"'agentProfile.replyTone' must be one of {', '.join(REPLY_TONES)}",
            field='agentProfile.replyTone'
        )

    return AgentProfile(
        display_name=_string(section, 'agentProfile', 'displayName', required=True),
        job_title=_string(section, 'agentProfile', 'jobTitle'),
        company=_string(section, 'agentProfile', 'company'),
        signature=_string(section, 'agentProfile', 'signature'),
        reply_tone=tone,
    )


def parse_run_config(data: Dict[str, Any]) -> RunConfig:
    """
    Validate a run configuration document.

    Args:
        data: Decoded request document with imap, smtp, agentProfile and
              settings sections

    Returns:
        Immutable RunConfig

    Raises:
        ConfigurationError: naming the first offending field
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Run configuration must be an object")

    imap_section = _section(data, 'imap')
    imap = ImapSettings(
        host=_string(imap_section, 'imap', 'host', required=True),
        port=_integer(imap_section, 'imap', 'port', 993, 1, 65535),
        secure=_boolean(imap_section, 'imap', 'secure', True),
        user=_string(imap_section, 'imap', 'user', required=True),
        password=_password(imap_section, 'imap', None),
        mailbox=_string(imap_section, 'imap', 'mailbox', default='INBOX'),
    )

    # SMTP credentials fall back to the mailbox credentials
    smtp_section = _section(data, 'smtp')
    smtp = SmtpSettings(
        host=_string(smtp_section, 'smtp', 'host', required=True),
        port=_integer(smtp_section, 'smtp', 'port', 465, 1, 65535),
        secure=_boolean(smtp_section, 'smtp', 'secure', True),
        user=_string(smtp_section, 'smtp', 'user', default=imap.user),
        password=_password(smtp_section, 'smtp', imap.password),
    )

    return RunConfig(
        imap=imap,
        smtp=smtp,
        agent_profile=parse_agent_profile(_section(data, 'agentProfile')),
        settings=parse_settings(_section(data, 'settings', required=False)),
    )


def read_config_document(path: Path) -> Dict[str, Any]:
    """Read a run configuration JSON file without validating it."""
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}")
    except IOError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}")


def load_run_config(path: Path, overrides: Optional[Dict[str, Any]] = None) -> RunConfig:
    """
    Load and validate a run configuration JSON file.

    Args:
        path: JSON document path
        overrides: Per-section values merged over the document, e.g.
                   {'imap': {'password': '...'}}
    """
    data = read_config_document(path)

    if overrides and isinstance(data, dict):
        for section_name, values in overrides.items():
            section = data.setdefault(section_name, {})
            if isinstance(section, dict):
                section.update(values)

    return parse_run_config(data)
