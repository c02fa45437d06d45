"""
Inbox agent run orchestration.

One run takes the most recent unseen messages (bounded by MAX_BATCH_SIZE) and
processes them strictly one after another:

    fetched -> parsed -> classified -> marketing branch | important branch

Every message ends in exactly one of importantReplies, marketingUnsubscribes
or skipped. Failures of a single message are recorded in the report and never
stop the batch; only a mailbox connection failure aborts the run.
"""

import imaplib
from typing import Callable, Optional

from ..config.run_config import RunConfig
from ..config.settings import Config
from ..email_processor.classifier import classify_email
from ..email_processor.imap_client import IMAPConnection, FetchedMessage
from ..email_processor.parser import parse_raw_email
from ..email_processor.smtp_client import SMTPConnection
from ..email_processor.types import ParsedEmail, Classification, DEFAULT_SUBJECT
from ..email_processor.unsubscribe.constants import (
    CHANNEL_HTTP, CHANNEL_EMAIL, STATUS_REQUESTED, STATUS_FAILED
)
from ..email_processor.unsubscribe.resolver import parse_list_unsubscribe
from ..exceptions import MailboxConnectionError, ParseError
from ..logging import AgentLogger, OutcomeTally, SCRUBBER, log_scope, message_scope, run_scope
from ..reply.crafter import craft_formal_reply
from ..reply.sender import ReplySender
from ..unsubscribe_executor import HttpUnsubscribeExecutor, MailtoUnsubscribeExecutor
from .report import (
    RunReport, RunReportBuilder, ImportantReply, UnsubscribeOutcome,
    REPLY_STATUS_SENT, REPLY_STATUS_FAILED
)


REASON_MISSING_SOURCE = 'Missing source or sender information'
REASON_UNPARSEABLE = 'Unparseable message'
REASON_MARKETING_DISABLED = 'Marketing detected but automation disabled'
REASON_NO_INSTRUCTIONS = 'Marketing detected but no unsubscribe instructions found'
REASON_NO_SUPPORTED_CHANNEL = 'Marketing detected but no supported unsubscribe channel'
REASON_BELOW_THRESHOLD = 'Below importance threshold'
REASON_AUTO_REPLY_DISABLED = 'Important but auto-reply disabled'

REPLY_FAILURE_PREVIEW = 'Reply dispatch failed. Check logs for details.'


class InboxAgent:
    """Runs one triage pass over a mailbox."""

    def __init__(
        self,
        config: RunConfig,
        mailbox=None,
        transport=None,
        http_executor: Optional[HttpUnsubscribeExecutor] = None,
        mailto_executor: Optional[MailtoUnsubscribeExecutor] = None,
        reply_sender: Optional[ReplySender] = None,
        parser: Callable[[bytes], ParsedEmail] = parse_raw_email,
        classifier: Callable[..., Classification] = classify_email,
        batch_size: Optional[int] = None
    ):
        """
        Args:
            config: Validated run configuration
            mailbox: Mailbox source; an IMAPConnection is built from config.imap if omitted
            transport: Mail transport; an SMTPConnection is built on first use if omitted
            http_executor: HTTP unsubscribe executor
            mailto_executor: mailto unsubscribe executor
            reply_sender: Reply dispatcher
            parser: Raw source -> ParsedEmail
            classifier: (ParsedEmail, include_summary=bool) -> Classification
            batch_size: Most recent unseen messages to process
        """
        self.config = config
        self.settings = config.settings
        self.mailbox = mailbox or IMAPConnection(
            config.imap.host, config.imap.port, config.imap.secure
        )
        self._transport = transport
        self.http_executor = http_executor or HttpUnsubscribeExecutor()
        self.mailto_executor = mailto_executor or MailtoUnsubscribeExecutor(config.smtp.user)
        self.reply_sender = reply_sender or ReplySender(
            config.smtp.user, config.agent_profile.display_name
        )
        self.parser = parser
        self.classifier = classifier
        self.batch_size = batch_size or Config.MAX_BATCH_SIZE
        self.logger = AgentLogger("orchestrator")
        self.tally = OutcomeTally()

        SCRUBBER.register_secret(config.imap.password)
        SCRUBBER.register_secret(config.smtp.password)

    @property
    def transport(self):
        """Mail transport, created on first use."""
        if self._transport is None:
            smtp = self.config.smtp
            self._transport = SMTPConnection(
                smtp.host, smtp.port, smtp.secure, smtp.user, smtp.password
            )
        return self._transport

    def run(self) -> RunReport:
        """
        Process the bounded batch of unseen messages.

        Returns:
            RunReport for the batch

        Raises:
            MailboxConnectionError: if the mailbox session cannot be established
        """
        builder = RunReportBuilder()
        self.tally = OutcomeTally()
        imap = self.config.imap

        with run_scope(f"{imap.user}@{imap.host}/{imap.mailbox}"):
            self.logger.info("Starting run", {
                "batch_size": self.batch_size,
                "importance_threshold": self.settings.importance_threshold,
                "reply_delay_minutes": self.settings.reply_delay_minutes
            })

            with self.logger.timed("run"):
                try:
                    self._open_mailbox()
                    workload = self._unseen_workload()

                    if not workload:
                        self.logger.info("No unseen messages")
                        return builder.build()

                    for uid in workload:
                        builder.fetched += 1
                        with message_scope(uid):
                            try:
                                self.process_message(uid, builder)
                            except Exception as e:
                                self.logger.exception("Message processing raised")
                                builder.add_error(f"Failed to process uid {uid}: {str(e)}")
                                self.tally.record('errors', type(e).__name__)
                finally:
                    self.mailbox.disconnect()

            report = builder.build()
            self.logger.info("Run complete", {
                "summary": report.summary.to_dict(),
                "errors": len(report.errors),
                "outcomes": self.tally.as_dict()
            })
        return report

    def _open_mailbox(self):
        imap = self.config.imap
        if not self.mailbox.connect(imap.user, imap.password):
            raise MailboxConnectionError(
                f"Failed to connect to {imap.user}", host=imap.host, stage='login'
            )
        if not self.mailbox.select_folder(imap.mailbox):
            raise MailboxConnectionError(
                f"Failed to open mailbox {imap.mailbox}", host=imap.host, stage='select'
            )

    def _unseen_workload(self):
        try:
            uids = self.mailbox.search_unseen(limit=self.batch_size)
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxConnectionError(
                f"Unseen search failed: {e}", host=self.config.imap.host, stage='search'
            )
        return list(uids)[-self.batch_size:]

    def process_message(self, uid: int, builder: RunReportBuilder):
        """Take one message to a terminal state."""
        fetched: Optional[FetchedMessage] = self.mailbox.fetch_message(uid)

        if fetched is None or not fetched.raw_source or not fetched.envelope_from:
            self._skip(builder, str(uid), DEFAULT_SUBJECT, REASON_MISSING_SOURCE)
            self.logger.warning("Skipping message without source or sender")
            return

        try:
            email = self.parser(fetched.raw_source)
        except ParseError as e:
            builder.add_skipped(str(uid), DEFAULT_SUBJECT, f"{REASON_UNPARSEABLE}: {str(e)}")
            self.tally.record('skipped', REASON_UNPARSEABLE)
            self.logger.warning("Skipping unparseable message", {"error": str(e)})
            return

        with log_scope(message_id=email.message_id):
            self._triage(uid, email, fetched, builder)

    def _triage(self, uid: int, email: ParsedEmail, fetched: FetchedMessage,
                builder: RunReportBuilder):
        classification = self.classifier(email, include_summary=self.settings.include_summaries)
        self.logger.info("Message classified", {
            "is_marketing": classification.is_marketing,
            "importance_score": classification.importance_score,
            "reason": classification.reason
        })

        if classification.is_marketing:
            self._handle_marketing(email, builder)
        else:
            self._handle_important(email, classification, fetched, builder)

        self.logger.info("Message handled", {"subject": email.subject})

        if not self.mailbox.mark_seen(uid):
            builder.add_error(f"Failed to mark uid {uid} as seen")

    def _handle_marketing(self, email: ParsedEmail, builder: RunReportBuilder):
        if not self.settings.auto_unsubscribe_marketing:
            self._skip(builder, email.message_id, email.subject, REASON_MARKETING_DISABLED)
            return

        channels = parse_list_unsubscribe(email.list_unsubscribe)
        if channels is None:
            self._skip(builder, email.message_id, email.subject, REASON_NO_INSTRUCTIONS)
            return
        if channels.is_empty:
            self._skip(builder, email.message_id, email.subject, REASON_NO_SUPPORTED_CHANNEL)
            return

        unsubscribed = False
        if channels.http:
            url = channels.http[0]
            result = self.http_executor.execute(url, one_click=email.supports_one_click)
            outcome = UnsubscribeOutcome(
                message_id=email.message_id,
                subject=email.subject,
                channel=CHANNEL_HTTP,
                endpoint=url,
                status=STATUS_REQUESTED if result.success else STATUS_FAILED,
                detail=result.detail
            )
            builder.add_unsubscribe(outcome)
            self.tally.record('marketingUnsubscribes', f'{CHANNEL_HTTP}:{outcome.status}')
            if result.success:
                unsubscribed = True
            else:
                builder.add_error(
                    f"HTTP unsubscribe failed for {email.subject}: {result.detail or 'unknown error'}"
                )

        if not unsubscribed and channels.mailto:
            target = channels.mailto[0]
            result = self.mailto_executor.execute(target, transport=self.transport)
            outcome = UnsubscribeOutcome(
                message_id=email.message_id,
                subject=email.subject,
                channel=CHANNEL_EMAIL,
                endpoint=target,
                status=STATUS_REQUESTED if result.success else STATUS_FAILED,
                detail=result.detail
            )
            builder.add_unsubscribe(outcome)
            self.tally.record('marketingUnsubscribes', f'{CHANNEL_EMAIL}:{outcome.status}')
            if result.raised:
                builder.add_error(
                    f"Failed to trigger unsubscribe email for {email.subject}: {result.detail}"
                )
            elif not result.success:
                builder.add_error(
                    f"Mailto unsubscribe failed for {email.subject}: {result.detail or 'unknown error'}"
                )

    def _handle_important(self, email: ParsedEmail, classification: Classification,
                          fetched: FetchedMessage, builder: RunReportBuilder):
        # Threshold is checked before the auto-reply switch
        if classification.importance_score < self.settings.importance_threshold:
            self._skip(builder, email.message_id, email.subject, REASON_BELOW_THRESHOLD)
            return

        if not self.settings.auto_reply_important:
            self._skip(builder, email.message_id, email.subject, REASON_AUTO_REPLY_DISABLED)
            return

        to_address = fetched.envelope_from or email.from_address
        in_reply_to = fetched.envelope_message_id or email.message_id
        references = (fetched.envelope_message_id,) if fetched.envelope_message_id else ()

        summary = classification.summary if self.settings.include_summaries else ()
        draft = craft_formal_reply(email, self.config.agent_profile, summary)
        result = self.reply_sender.send(self.transport, draft, to_address, in_reply_to, references)

        reply = ImportantReply(
            message_id=email.message_id,
            subject=email.subject,
            to=to_address,
            status=REPLY_STATUS_SENT if result.success else REPLY_STATUS_FAILED,
            preview=classification.reason,
            reply_preview=REPLY_FAILURE_PREVIEW if result.raised else draft.body,
            summary=tuple(summary)
        )
        builder.add_reply(reply)

        self.tally.record('importantReplies', reply.status)
        if not result.success:
            builder.add_error(f"Failed to send reply for {email.subject}: {result.detail}")

    def _skip(self, builder: RunReportBuilder, message_id: str, subject: str, reason: str):
        builder.add_skipped(message_id, subject, reason)
        self.tally.record('skipped', reason)
