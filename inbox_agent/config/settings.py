"""
Process-level settings for the inbox agent, read from the environment.
"""

import os
from pathlib import Path

from dotenv import load_dotenv


class Config:
    """Configuration settings."""

    # Run bounds
    MAX_BATCH_SIZE = int(os.getenv('MAX_BATCH_SIZE', '25'))
    MAX_BODY_LENGTH = int(os.getenv('MAX_BODY_LENGTH', '10000'))

    # Connection settings
    IMAP_TIMEOUT = int(os.getenv('IMAP_TIMEOUT', '30'))
    SMTP_TIMEOUT = int(os.getenv('SMTP_TIMEOUT', '30'))

    # Unsubscribe settings
    REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '10'))
    RATE_LIMIT_DELAY = float(os.getenv('RATE_LIMIT_DELAY', '1.0'))
    USER_AGENT = os.getenv('USER_AGENT', 'InboxAgent/1.0')

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'json')

    @classmethod
    def get_password_from_env(cls, service: str):
        """Return INBOX_AGENT_<SERVICE>_PASSWORD if set."""
        return os.getenv(f'INBOX_AGENT_{service.upper()}_PASSWORD')


def load_config_from_env_file(env_file: str = '.env'):
    """Load configuration from environment file."""
    env_path = Path(env_file)
    if env_path.exists():
        load_dotenv(env_path)
        # Class attributes were read at import time
        Config.MAX_BATCH_SIZE = int(os.getenv('MAX_BATCH_SIZE', str(Config.MAX_BATCH_SIZE)))
        Config.MAX_BODY_LENGTH = int(os.getenv('MAX_BODY_LENGTH', str(Config.MAX_BODY_LENGTH)))
        Config.IMAP_TIMEOUT = int(os.getenv('IMAP_TIMEOUT', str(Config.IMAP_TIMEOUT)))
        Config.SMTP_TIMEOUT = int(os.getenv('SMTP_TIMEOUT', str(Config.SMTP_TIMEOUT)))
        Config.REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', str(Config.REQUEST_TIMEOUT)))
        Config.RATE_LIMIT_DELAY = float(os.getenv('RATE_LIMIT_DELAY', str(Config.RATE_LIMIT_DELAY)))
        Config.USER_AGENT = os.getenv('USER_AGENT', Config.USER_AGENT)
        Config.LOG_LEVEL = os.getenv('LOG_LEVEL', Config.LOG_LEVEL)
        Config.LOG_FORMAT = os.getenv('LOG_FORMAT', Config.LOG_FORMAT)
