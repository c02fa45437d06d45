"""
IMAP mailbox connection: unseen search, peek fetch and seen flagging.
"""

import imaplib
from dataclasses import dataclass
from email import policy
from email.parser import BytesHeaderParser
from email.utils import parseaddr
from typing import List, Optional

from ..config.settings import Config
from ..logging import AgentLogger


@dataclass(frozen=True)
class FetchedMessage:
    """Raw message source plus the envelope fields the agent replies with."""

    uid: int
    raw_source: Optional[bytes]
    envelope_from: Optional[str] = None
    envelope_message_id: Optional[str] = None


class IMAPConnection:
    """Manages an IMAP session against one mailbox. Operations use UIDs."""

    def __init__(self, server: str, port: int = 993, use_ssl: bool = True,
                 timeout: Optional[int] = None):
        self.server = server
        self.port = port
        self.use_ssl = use_ssl
        self.timeout = timeout if timeout is not None else Config.IMAP_TIMEOUT
        self.connection = None
        self.logger = AgentLogger("imap")
        self.logger.bind(server=server)

    def connect(self, username: str, password: str) -> bool:
        """Connect to the IMAP server and authenticate."""
        try:
            if self.use_ssl:
                self.connection = imaplib.IMAP4_SSL(self.server, self.port, timeout=self.timeout)
            else:
                self.connection = imaplib.IMAP4(self.server, self.port, timeout=self.timeout)

            self.connection.login(username, password)
            return True

        except (imaplib.IMAP4.error, OSError) as e:
            self.logger.error("Failed to connect to IMAP server", {"error": str(e), "user": username})
            self.connection = None
            return False

    def disconnect(self):
        """Log out, falling back to closing the socket."""
        if self.connection:
            try:
                self.connection.logout()
            except (imaplib.IMAP4.error, OSError) as e:
                self.logger.warning("IMAP logout failed, closing socket", {"error": str(e)})
                try:
                    self.connection.shutdown()
                except OSError as close_error:
                    self.logger.debug("IMAP socket already closed", {"error": str(close_error)})
            self.connection = None

    def select_folder(self, folder: str = 'INBOX') -> bool:
        """Select a folder read-write so that seen flags can be stored."""
        if not self.connection:
            return False

        try:
            status, _ = self.connection.select(folder)
            return status == 'OK'
        except (imaplib.IMAP4.error, OSError) as e:
            self.logger.error(f"Error selecting folder {folder}", {"error": str(e)})
            return False

    def search_unseen(self, limit: Optional[int] = None) -> List[int]:
        """
        UIDs of unseen messages in ascending order.

        Args:
            limit: Keep only the most recent N UIDs
        """
        if not self.connection:
            return []

        status, data = self.connection.uid('SEARCH', None, 'UNSEEN')
        if status != 'OK' or not data or not data[0]:
            return []

        uid_list = [int(uid) for uid in data[0].split()]
        if limit:
            uid_list = uid_list[-limit:]
        return uid_list

    def fetch_message(self, uid: int) -> Optional[FetchedMessage]:
        """Fetch the full source without setting the \\Seen flag."""
        if not self.connection:
            return None

        status, data = self.connection.uid('FETCH', str(uid), '(BODY.PEEK[])')
        if status != 'OK' or not data:
            return None

        raw_source = None
        for item in data:
            if isinstance(item, tuple) and len(item) >= 2:
                raw_source = item[1]
                break

        if not raw_source:
            return FetchedMessage(uid=uid, raw_source=None)

        return self._build_fetched_message(uid, raw_source)

    def mark_seen(self, uid: int) -> bool:
        """Add the \\Seen flag to a message."""
        if not self.connection:
            return False

        status, _ = self.connection.uid('STORE', str(uid), '+FLAGS', '(\\Seen)')
        return status == 'OK'

    def _build_fetched_message(self, uid: int, raw_source: bytes) -> FetchedMessage:
        headers = BytesHeaderParser(policy=policy.default).parsebytes(raw_source)

        _, sender_email = parseaddr(str(headers.get('From') or ''))
        message_id = str(headers.get('Message-ID') or '').strip() or None

        return FetchedMessage(
            uid=uid,
            raw_source=raw_source,
            envelope_from=sender_email or None,
            envelope_message_id=message_id
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
