"""
SMTP mail transport for replies and mailto unsubscribe requests.
"""

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Tuple

from ..config.settings import Config
from ..logging import AgentLogger


@dataclass(frozen=True)
class OutgoingMessage:
    from_addr: str
    to_addr: str
    subject: str
    body: str
    in_reply_to: Optional[str] = None
    references: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SendResult:
    rejected_recipients: Tuple[str, ...] = ()

    @property
    def accepted(self) -> bool:
        return not self.rejected_recipients


class SMTPConnection:
    """
    Sends messages through an authenticated SMTP server.

    A connection is opened per send, so constructing an SMTPConnection
    never touches the network.
    """

    def __init__(
        self,
        host: str,
        port: int = 465,
        use_ssl: bool = True,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[int] = None
    ):
        self.host = host
        self.port = port
        self.use_ssl = use_ssl
        self.username = username
        self.password = password
        self.timeout = timeout if timeout is not None else Config.SMTP_TIMEOUT
        self.logger = AgentLogger("smtp")
        self.logger.bind(server=host)

    def compose(self, message: OutgoingMessage) -> EmailMessage:
        msg = EmailMessage()
        msg['From'] = message.from_addr
        msg['To'] = message.to_addr
        msg['Subject'] = message.subject
        if message.in_reply_to:
            msg['In-Reply-To'] = message.in_reply_to
        if message.references:
            msg['References'] = ' '.join(message.references)
        msg.set_content(message.body)
        return msg

    def _open(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)

        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            server.ehlo()
            if server.has_extn('starttls'):
                server.starttls()
                server.ehlo()
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server

    def send(self, message: OutgoingMessage) -> SendResult:
        """
        Send one message.

        Returns:
            SendResult listing recipients the server refused

        Raises:
            smtplib.SMTPException, OSError: on connection, authentication
            or protocol failures
        """
        msg = self.compose(message)

        with self._open() as server:
            if self.username and self.password:
                server.login(self.username, self.password)
            try:
                refused = server.send_message(msg)
            except smtplib.SMTPRecipientsRefused as e:
                refused = e.recipients

        rejected = tuple(sorted(refused.keys())) if refused else ()
        self.logger.info("Message handed to SMTP server", {
            "to": message.to_addr,
            "rejected": list(rejected)
        })
        return SendResult(rejected_recipients=rejected)
