"""
Configuration module.
"""

from .settings import Config, load_config_from_env_file
from .run_config import (
    RunConfig, ImapSettings, SmtpSettings, AgentProfile, AgentSettings,
    REPLY_TONES, parse_settings, parse_agent_profile, parse_run_config,
    read_config_document, load_run_config
)

__all__ = [
    'Config', 'load_config_from_env_file',
    'RunConfig', 'ImapSettings', 'SmtpSettings', 'AgentProfile', 'AgentSettings',
    'REPLY_TONES', 'parse_settings', 'parse_agent_profile', 'parse_run_config',
    'read_config_document', 'load_run_config'
]
