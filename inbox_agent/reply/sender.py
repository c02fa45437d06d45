"""
Reply dispatch through the mail transport, with failures returned as values.
"""

from email.utils import formataddr
from typing import Optional, Sequence

from ..email_processor.smtp_client import OutgoingMessage
from ..email_processor.unsubscribe.types import ExecutionResult
from ..logging import AgentLogger
from .crafter import ReplyDraft


class ReplySender:
    """Sends reply drafts. send() never raises."""

    def __init__(self, from_address: str, display_name: Optional[str] = None):
        self.from_address = from_address
        self.display_name = display_name
        self.logger = AgentLogger("reply_sender")

    @property
    def from_header(self) -> str:
        if self.display_name:
            return formataddr((self.display_name, self.from_address))
        return self.from_address

    def build_message(self, draft: ReplyDraft, to_address: str,
                      in_reply_to: Optional[str] = None,
                      references: Sequence[str] = ()) -> OutgoingMessage:
        return OutgoingMessage(
            from_addr=self.from_header,
            to_addr=to_address,
            subject=draft.subject,
            body=draft.body,
            in_reply_to=in_reply_to,
            references=tuple(references)
        )

    def send(self, transport, draft: ReplyDraft, to_address: str,
             in_reply_to: Optional[str] = None,
             references: Sequence[str] = ()) -> ExecutionResult:
        """
        Send a reply.

        Returns:
            ExecutionResult; failed when the transport refused a recipient,
            failed with raised=True when the transport raised.
        """
        message = self.build_message(draft, to_address, in_reply_to, references)

        try:
            outcome = transport.send(message)
        except Exception as e:
            self.logger.exception("Reply dispatch raised", {"to": to_address})
            return ExecutionResult.failed(f'Dispatch error: {str(e)}', raised=True)

        if outcome.rejected_recipients:
            detail = f"Recipient rejected: {', '.join(outcome.rejected_recipients)}"
            self.logger.warning("Reply rejected by transport", {"to": to_address, "detail": detail})
            return ExecutionResult.failed(detail)

        self.logger.info("Reply sent", {"to": to_address, "subject": draft.subject})
        return ExecutionResult.ok(f'Reply sent to {to_address}')
