"""
Tests for the SMTP transport with smtplib mocked.
"""

import smtplib
from email.utils import getaddresses

import pytest
from unittest.mock import MagicMock, patch

from inbox_agent.email_processor.smtp_client import SMTPConnection, OutgoingMessage
from inbox_agent.reply import ReplySender


MESSAGE = OutgoingMessage(
    from_addr='Jordan Lee <jordan@example.com>',
    to_addr='alice@partner.com',
    subject='Re: Contract review',
    body='Thanks, I will review it.',
    in_reply_to='<msg-1@partner.com>',
    references=('<msg-1@partner.com>',)
)


class TestCompose:
    """Test MIME message composition."""

    def test_headers(self):
        msg = SMTPConnection('smtp.example.com').compose(MESSAGE)

        assert msg['From'] == 'Jordan Lee <jordan@example.com>'
        assert msg['To'] == 'alice@partner.com'
        assert msg['Subject'] == 'Re: Contract review'
        assert msg['In-Reply-To'] == '<msg-1@partner.com>'
        assert msg['References'] == '<msg-1@partner.com>'
        assert 'Thanks, I will review it.' in msg.get_content()

    def test_threading_headers_omitted(self):
        """Fresh messages carry no threading headers."""
        msg = SMTPConnection('smtp.example.com').compose(
            OutgoingMessage(from_addr='a@example.com', to_addr='b@example.com', subject='Hi', body='x')
        )

        assert msg['In-Reply-To'] is None
        assert msg['References'] is None

    def test_display_name_with_comma(self):
        """The composed From header names a single mailbox."""
        sender = ReplySender('jordan@example.com', 'Lee, Jordan')
        msg = SMTPConnection('smtp.example.com').compose(OutgoingMessage(
            from_addr=sender.from_header, to_addr='alice@partner.com', subject='Hi', body='x'
        ))

        assert getaddresses([str(msg['From'])]) == [('Lee, Jordan', 'jordan@example.com')]


class TestSend:
    """Test sending through a mocked server."""

    @patch('inbox_agent.email_processor.smtp_client.smtplib.SMTP_SSL')
    def test_send_over_ssl(self, mock_ssl):
        """Implicit TLS connection, login and send."""
        server = mock_ssl.return_value.__enter__.return_value
        server.send_message.return_value = {}
        connection = SMTPConnection('smtp.example.com', 465, True, 'jordan@example.com', 'secret', timeout=7)

        result = connection.send(MESSAGE)

        mock_ssl.assert_called_once_with('smtp.example.com', 465, timeout=7)
        server.login.assert_called_once_with('jordan@example.com', 'secret')
        server.send_message.assert_called_once()
        assert result.accepted is True
        assert result.rejected_recipients == ()

    @patch('inbox_agent.email_processor.smtp_client.smtplib.SMTP_SSL')
    def test_partially_refused(self, mock_ssl):
        """Refused recipients are reported."""
        server = mock_ssl.return_value.__enter__.return_value
        server.send_message.return_value = {'alice@partner.com': (550, b'No such user')}

        result = SMTPConnection('smtp.example.com').send(MESSAGE)

        assert result.accepted is False
        assert result.rejected_recipients == ('alice@partner.com',)

    @patch('inbox_agent.email_processor.smtp_client.smtplib.SMTP_SSL')
    def test_all_refused(self, mock_ssl):
        """SMTPRecipientsRefused becomes a rejected list rather than an exception."""
        server = mock_ssl.return_value.__enter__.return_value
        server.send_message.side_effect = smtplib.SMTPRecipientsRefused(
            {'alice@partner.com': (550, b'No such user')}
        )

        result = SMTPConnection('smtp.example.com').send(MESSAGE)

        assert result.rejected_recipients == ('alice@partner.com',)

    @patch('inbox_agent.email_processor.smtp_client.smtplib.SMTP_SSL')
    def test_authentication_error_propagates(self, mock_ssl):
        """Other SMTP errors propagate to the caller."""
        server = mock_ssl.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b'bad credentials')

        with pytest.raises(smtplib.SMTPAuthenticationError):
            SMTPConnection('smtp.example.com', username='jordan@example.com', password='wrong').send(MESSAGE)

    @patch('inbox_agent.email_processor.smtp_client.smtplib.SMTP')
    def test_starttls_when_not_secure(self, mock_smtp):
        """Plain connections upgrade with STARTTLS when offered."""
        raw_server = mock_smtp.return_value
        raw_server.has_extn.return_value = True
        raw_server.__enter__.return_value.send_message.return_value = {}

        SMTPConnection('smtp.example.com', 587, use_ssl=False).send(MESSAGE)

        raw_server.starttls.assert_called_once()

    @patch('inbox_agent.email_processor.smtp_client.smtplib.SMTP_SSL')
    def test_no_login_without_credentials(self, mock_ssl):
        server = mock_ssl.return_value.__enter__.return_value
        server.send_message.return_value = {}

        SMTPConnection('smtp.example.com').send(MESSAGE)

        server.login.assert_not_called()

    @patch('inbox_agent.email_processor.smtp_client.smtplib.SMTP')
    def test_failed_starttls_closes_socket(self, mock_smtp):
        """A handshake failure closes the connection before propagating."""
        raw_server = mock_smtp.return_value
        raw_server.has_extn.return_value = True
        raw_server.starttls.side_effect = smtplib.SMTPNotSupportedError('STARTTLS refused')

        with pytest.raises(smtplib.SMTPNotSupportedError):
            SMTPConnection('smtp.example.com', 587, use_ssl=False).send(MESSAGE)

        raw_server.close.assert_called_once()
        raw_server.send_message.assert_not_called()
