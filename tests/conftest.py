"""
Shared fixtures for inbox agent tests.
"""

import pytest

from inbox_agent.config import (
    RunConfig, ImapSettings, SmtpSettings, AgentProfile, AgentSettings
)


@pytest.fixture
def raw_email():
    """Factory for raw RFC 5322 message bytes."""
    def build(subject='Quarterly contract review', sender='Alice Smith <alice@partner.com>',
              body='Hi Jordan,\n\nCould you review the attached contract?\n',
              message_id='<msg-1@partner.com>', extra_headers=None, content_type='text/plain'):
        lines = [f'From: {sender}', 'To: jordan@example.com']
        if subject is not None:
            lines.append(f'Subject: {subject}')
        if message_id is not None:
            lines.append(f'Message-ID: {message_id}')
        lines.append('Date: Mon, 05 Oct 2026 09:30:00 +0000')
        for name, value in (extra_headers or {}).items():
            lines.append(f'{name}: {value}')
        lines.append('MIME-Version: 1.0')
        lines.append(f'Content-Type: {content_type}; charset="utf-8"')
        return ('\r\n'.join(lines) + '\r\n\r\n' + body).encode('utf-8')
    return build


@pytest.fixture
def agent_profile():
    return AgentProfile(
        display_name='Jordan Lee',
        job_title='Operations Manager',
        company='Example Corp'
    )


@pytest.fixture
def run_config_factory(agent_profile):
    """Factory for RunConfig with overridable automation settings."""
    def build(**settings):
        return RunConfig(
            imap=ImapSettings(host='imap.example.com', user='jordan@example.com', password='imap-secret'),
            smtp=SmtpSettings(host='smtp.example.com', user='jordan@example.com', password='smtp-secret'),
            agent_profile=agent_profile,
            settings=AgentSettings(**settings),
        )
    return build
