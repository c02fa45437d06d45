"""
Tests for the IMAP mailbox connection with imaplib mocked.
"""

import imaplib

import pytest
from unittest.mock import MagicMock, patch

from inbox_agent.email_processor.imap_client import IMAPConnection


RAW = (
    b'From: Alice Smith <alice@partner.com>\r\n'
    b'Subject: Contract review\r\n'
    b'Message-ID: <msg-1@partner.com>\r\n'
    b'\r\n'
    b'Body\r\n'
)


@pytest.fixture
def connected():
    """IMAPConnection with a mocked, logged-in server connection."""
    with patch('inbox_agent.email_processor.imap_client.imaplib.IMAP4_SSL') as mock_ssl:
        connection = IMAPConnection('imap.example.com')
        assert connection.connect('jordan@example.com', 'secret') is True
        yield connection, mock_ssl.return_value


class TestConnect:
    """Test login and logout."""

    @patch('inbox_agent.email_processor.imap_client.imaplib.IMAP4_SSL')
    def test_connect(self, mock_ssl):
        connection = IMAPConnection('imap.example.com', 993, timeout=5)

        assert connection.connect('jordan@example.com', 'secret') is True
        mock_ssl.assert_called_once_with('imap.example.com', 993, timeout=5)
        mock_ssl.return_value.login.assert_called_once_with('jordan@example.com', 'secret')

    @patch('inbox_agent.email_processor.imap_client.imaplib.IMAP4')
    def test_connect_without_ssl(self, mock_plain):
        connection = IMAPConnection('imap.example.com', 143, use_ssl=False)

        assert connection.connect('jordan@example.com', 'secret') is True
        mock_plain.assert_called_once()

    @patch('inbox_agent.email_processor.imap_client.imaplib.IMAP4_SSL')
    def test_login_failure(self, mock_ssl):
        """Authentication errors return False."""
        mock_ssl.return_value.login.side_effect = imaplib.IMAP4.error('AUTHENTICATIONFAILED')
        connection = IMAPConnection('imap.example.com')

        assert connection.connect('jordan@example.com', 'wrong') is False
        assert connection.connection is None

    @patch('inbox_agent.email_processor.imap_client.imaplib.IMAP4_SSL')
    def test_unreachable_server(self, mock_ssl):
        mock_ssl.side_effect = OSError('Network is unreachable')

        assert IMAPConnection('imap.example.com').connect('jordan@example.com', 'secret') is False

    def test_disconnect_logs_out(self, connected):
        connection, server = connected

        connection.disconnect()

        server.logout.assert_called_once()
        assert connection.connection is None

    def test_disconnect_falls_back_to_shutdown(self, connected):
        """A failed logout still closes the socket."""
        connection, server = connected
        server.logout.side_effect = imaplib.IMAP4.abort('connection lost')

        connection.disconnect()

        server.shutdown.assert_called_once()
        assert connection.connection is None

    def test_context_manager_disconnects(self, connected):
        connection, server = connected

        with connection:
            pass

        server.logout.assert_called_once()


class TestMailboxOperations:
    """Test search, fetch and flagging by UID."""

    def test_select_folder(self, connected):
        connection, server = connected
        server.select.return_value = ('OK', [b'3'])

        assert connection.select_folder('INBOX') is True
        server.select.assert_called_once_with('INBOX')

    def test_select_missing_folder(self, connected):
        connection, server = connected
        server.select.return_value = ('NO', [b'Mailbox does not exist'])

        assert connection.select_folder('Missing') is False

    def test_search_unseen(self, connected):
        connection, server = connected
        server.uid.return_value = ('OK', [b'3 7 9 12'])

        assert connection.search_unseen() == [3, 7, 9, 12]
        server.uid.assert_called_once_with('SEARCH', None, 'UNSEEN')

    def test_search_unseen_keeps_most_recent(self, connected):
        """The limit keeps the highest UIDs."""
        connection, server = connected
        server.uid.return_value = ('OK', [b'3 7 9 12'])

        assert connection.search_unseen(limit=2) == [9, 12]

    def test_search_unseen_empty(self, connected):
        connection, server = connected
        server.uid.return_value = ('OK', [b''])

        assert connection.search_unseen() == []

    def test_fetch_message_peeks(self, connected):
        """Fetching uses BODY.PEEK[] and extracts envelope fields."""
        connection, server = connected
        server.uid.return_value = ('OK', [(b'7 (UID 7 BODY[] {120}', RAW), b')'])

        fetched = connection.fetch_message(7)

        server.uid.assert_called_once_with('FETCH', '7', '(BODY.PEEK[])')
        assert fetched.uid == 7
        assert fetched.raw_source == RAW
        assert fetched.envelope_from == 'alice@partner.com'
        assert fetched.envelope_message_id == '<msg-1@partner.com>'

    def test_fetch_message_without_source(self, connected):
        connection, server = connected
        server.uid.return_value = ('OK', [None])

        fetched = connection.fetch_message(7)

        assert fetched.raw_source is None
        assert fetched.envelope_from is None

    def test_fetch_message_failure(self, connected):
        connection, server = connected
        server.uid.return_value = ('NO', [])

        assert connection.fetch_message(7) is None

    def test_mark_seen(self, connected):
        connection, server = connected
        server.uid.return_value = ('OK', [b'7 (FLAGS (\\Seen))'])

        assert connection.mark_seen(7) is True
        server.uid.assert_called_once_with('STORE', '7', '+FLAGS', '(\\Seen)')

    def test_operations_without_connection(self):
        """Operations on an unconnected mailbox return empty results."""
        connection = IMAPConnection('imap.example.com')

        assert connection.select_folder() is False
        assert connection.search_unseen() == []
        assert connection.fetch_message(1) is None
        assert connection.mark_seen(1) is False

    def test_fetch_message_with_raw_utf8_sender(self, connected):
        """Unencoded UTF-8 in the From header still yields the sender address."""
        connection, server = connected
        raw = 'From: José García <jose@partner.com>\r\nMessage-ID: <msg-9@partner.com>\r\n\r\nHola\r\n'.encode('utf-8')
        server.uid.return_value = ('OK', [(b'9 (UID 9 BODY[] {60}', raw), b')'])

        fetched = connection.fetch_message(9)

        assert fetched.envelope_from == 'jose@partner.com'
        assert fetched.envelope_message_id == '<msg-9@partner.com>'
