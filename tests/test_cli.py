"""
Tests for the click command-line interface.

The agent itself is mocked for the run command; the offline commands run
against real stored messages.
"""

import json

import pytest
from click.testing import CliRunner
from unittest.mock import patch

from inbox_agent.agent.report import (
    RunReportBuilder, ImportantReply, UnsubscribeOutcome
)
from inbox_agent.cli.main import cli
from inbox_agent.exceptions import MailboxConnectionError


@pytest.fixture
def runner():
    """Create Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.delenv('INBOX_AGENT_IMAP_PASSWORD', raising=False)
    monkeypatch.delenv('INBOX_AGENT_SMTP_PASSWORD', raising=False)
    with patch('inbox_agent.cli.commands.run.configure_agent_logging'):
        yield


@pytest.fixture
def config_document():
    return {
        'imap': {'host': 'imap.example.com', 'user': 'jordan@example.com', 'password': 'imap-secret'},
        'smtp': {'host': 'smtp.example.com'},
        'agentProfile': {'displayName': 'Jordan Lee', 'company': 'Example Corp'},
        'settings': {'importanceThreshold': 60},
    }


@pytest.fixture
def config_file(tmp_path, config_document):
    path = tmp_path / 'agent.json'
    path.write_text(json.dumps(config_document))
    return path


@pytest.fixture
def sample_report():
    builder = RunReportBuilder(fetched=3)
    builder.add_reply(ImportantReply(
        message_id='<msg-1@partner.com>', subject='Contract review', to='alice@partner.com',
        status='sent', preview='Importance 80/100: direct question', reply_preview='Dear Alice,'
    ))
    builder.add_unsubscribe(UnsubscribeOutcome(
        message_id='<promo-2@shop.example.com>', subject='Flash sale', channel='http',
        endpoint='https://shop.example.com/unsub', status='requested', detail='GET returned HTTP 200'
    ))
    builder.add_skipped('<lunch-3@company.example.com>', 'Lunch', 'Below importance threshold')
    return builder.build()


class TestRunCommand:
    """Test 'run' command."""

    def test_run_prints_summary(self, runner, config_file, sample_report):
        with patch('inbox_agent.cli.commands.run.InboxAgent') as mock_agent:
            mock_agent.return_value.run.return_value = sample_report

            result = runner.invoke(cli, ['run', '--config', str(config_file)])

        assert result.exit_code == 0
        assert '✓ Run complete' in result.output
        assert 'Messages fetched: 3' in result.output
        assert 'Contract review -> alice@partner.com' in result.output
        assert 'Below importance threshold' in result.output

    def test_run_passes_validated_config(self, runner, config_file, sample_report):
        with patch('inbox_agent.cli.commands.run.InboxAgent') as mock_agent:
            mock_agent.return_value.run.return_value = sample_report

            runner.invoke(cli, ['run', '--config', str(config_file)])

        run_config = mock_agent.call_args[0][0]
        assert run_config.settings.importance_threshold == 60
        assert run_config.smtp.user == 'jordan@example.com'

    def test_run_json(self, runner, config_file, sample_report):
        """--json prints the report document."""
        with patch('inbox_agent.cli.commands.run.InboxAgent') as mock_agent:
            mock_agent.return_value.run.return_value = sample_report

            result = runner.invoke(cli, ['run', '--config', str(config_file), '--json'])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data['summary'] == {
            'fetched': 3, 'importantReplies': 1, 'marketingUnsubscribes': 1, 'skipped': 1
        }
        assert data['importantReplies'][0]['replyPreview'] == 'Dear Alice,'

    def test_connection_failure(self, runner, config_file):
        """Connection failures exit 1 with a single message."""
        with patch('inbox_agent.cli.commands.run.InboxAgent') as mock_agent:
            mock_agent.return_value.run.side_effect = MailboxConnectionError(
                'Failed to connect to jordan@example.com', host='imap.example.com', stage='login'
            )

            result = runner.invoke(cli, ['run', '--config', str(config_file), '--json'])

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert set(data) == {'message'}
        assert data['message'].startswith('Mailbox connection failed: Failed to connect')

    def test_invalid_configuration(self, runner, tmp_path, config_document):
        config_document['settings'] = {'importanceThreshold': 500}
        path = tmp_path / 'agent.json'
        path.write_text(json.dumps(config_document))

        with patch('inbox_agent.cli.commands.run.InboxAgent') as mock_agent:
            result = runner.invoke(cli, ['run', '--config', str(path)])

        assert result.exit_code == 1
        assert 'Invalid configuration' in result.output
        mock_agent.assert_not_called()

    def test_password_prompt(self, runner, tmp_path, config_document, sample_report):
        """A missing password is prompted for and never read from disk."""
        del config_document['imap']['password']
        path = tmp_path / 'agent.json'
        path.write_text(json.dumps(config_document))

        with patch('inbox_agent.cli.commands.run.InboxAgent') as mock_agent, \
                patch('inbox_agent.cli.utils.getpass.getpass', return_value='typed-secret') as mock_getpass:
            mock_agent.return_value.run.return_value = sample_report

            result = runner.invoke(cli, ['run', '--config', str(path)])

        assert result.exit_code == 0
        mock_getpass.assert_called_once()
        run_config = mock_agent.call_args[0][0]
        assert run_config.imap.password == 'typed-secret'
        assert run_config.smtp.password == 'typed-secret'

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(cli, ['run', '--config', str(tmp_path / 'missing.json')])

        assert result.exit_code != 0


class TestInspectCommands:
    """Test the offline 'classify', 'resolve' and 'draft' commands."""

    def test_classify_json(self, runner, tmp_path, raw_email):
        path = tmp_path / 'promo.eml'
        path.write_bytes(raw_email(
            subject='Flash sale: 50% off everything',
            sender='deals@shop.example.com',
            body='Shop now.',
            extra_headers={'List-Unsubscribe': '<https://shop.example.com/unsub>'}
        ))

        result = runner.invoke(cli, ['classify', str(path), '--json'])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data['classification']['isMarketing'] is True
        assert data['subject'] == 'Flash sale: 50% off everything'

    def test_classify_human(self, runner, tmp_path, raw_email):
        path = tmp_path / 'mail.eml'
        path.write_bytes(raw_email())

        result = runner.invoke(cli, ['classify', str(path), '--no-summaries'])

        assert result.exit_code == 0
        assert 'Marketing: no' in result.output
        assert 'Importance: ' in result.output
        assert 'Summary:' not in result.output

    def test_classify_unparseable(self, runner, tmp_path):
        path = tmp_path / 'bad.eml'
        path.write_bytes(b'')

        result = runner.invoke(cli, ['classify', str(path)])

        assert result.exit_code == 1
        assert 'Cannot parse' in result.output

    def test_resolve(self, runner):
        result = runner.invoke(cli, ['resolve', '<https://example.com/u>, <mailto:leave@example.com>'])

        assert result.exit_code == 0
        assert 'http: https://example.com/u' in result.output
        assert 'mailto: leave@example.com' in result.output

    def test_resolve_json(self, runner):
        result = runner.invoke(cli, ['resolve', '<https://example.com/u>', '--json'])

        assert json.loads(result.output) == {'http': ['https://example.com/u'], 'mailto': []}

    def test_resolve_without_instructions(self, runner):
        result = runner.invoke(cli, ['resolve', 'no uris here'])

        assert result.exit_code == 1
        assert 'No unsubscribe instructions found' in result.output

    def test_resolve_unsupported_only(self, runner):
        result = runner.invoke(cli, ['resolve', '<ftp://example.com/u>'])

        assert result.exit_code == 0
        assert 'No supported unsubscribe channel' in result.output

    def test_draft(self, runner, tmp_path, raw_email, config_file):
        """draft needs only the agent profile."""
        path = tmp_path / 'mail.eml'
        path.write_bytes(raw_email())

        result = runner.invoke(cli, ['draft', str(path), '--config', str(config_file)])

        assert result.exit_code == 0
        assert 'To: alice@partner.com' in result.output
        assert 'Subject: Re: Quarterly contract review' in result.output
        assert 'Dear Alice Smith,' in result.output
        assert 'Jordan Lee\nExample Corp' in result.output

    def test_draft_without_profile(self, runner, tmp_path, raw_email):
        config_path = tmp_path / 'agent.json'
        config_path.write_text(json.dumps({'imap': {}}))
        path = tmp_path / 'mail.eml'
        path.write_bytes(raw_email())

        result = runner.invoke(cli, ['draft', str(path), '--config', str(config_path)])

        assert result.exit_code == 1
        assert 'Invalid configuration' in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert '0.1.0' in result.output
