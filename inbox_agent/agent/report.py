"""
Run report: per-message outcomes and aggregate counts for one run.

RunReportBuilder accumulates entries while the run is in progress. build()
returns an immutable RunReport, which is what callers receive.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Tuple


REPLY_STATUS_SENT = 'sent'
REPLY_STATUS_FAILED = 'failed'


@dataclass(frozen=True)
class ImportantReply:
    message_id: str
    subject: str
    to: str
    status: str
    preview: str
    reply_preview: str
    summary: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'messageId': self.message_id,
            'subject': self.subject,
            'to': self.to,
            'status': self.status,
            'preview': self.preview,
            'replyPreview': self.reply_preview,
        }
        if self.summary:
            data['summary'] = list(self.summary)
        return data


@dataclass(frozen=True)
class UnsubscribeOutcome:
    """One attempted unsubscribe channel for one message."""

    message_id: str
    subject: str
    channel: str
    endpoint: str
    status: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'messageId': self.message_id,
            'subject': self.subject,
            'channel': self.channel,
            'endpoint': self.endpoint,
            'status': self.status,
        }
        if self.detail is not None:
            data['detail'] = self.detail
        return data


@dataclass(frozen=True)
class SkippedMessage:
    message_id: str
    subject: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {'messageId': self.message_id, 'subject': self.subject, 'reason': self.reason}


@dataclass(frozen=True)
class RunSummary:
    fetched: int = 0
    important_replies: int = 0
    marketing_unsubscribes: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'fetched': self.fetched,
            'importantReplies': self.important_replies,
            'marketingUnsubscribes': self.marketing_unsubscribes,
            'skipped': self.skipped,
        }


@dataclass(frozen=True)
class RunReport:
    synced_at: datetime
    summary: RunSummary
    important_replies: Tuple[ImportantReply, ...] = ()
    marketing_unsubscribes: Tuple[UnsubscribeOutcome, ...] = ()
    skipped: Tuple[SkippedMessage, ...] = ()
    errors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'syncedAt': self.synced_at.isoformat(),
            'summary': self.summary.to_dict(),
            'importantReplies': [entry.to_dict() for entry in self.important_replies],
            'marketingUnsubscribes': [entry.to_dict() for entry in self.marketing_unsubscribes],
            'skipped': [entry.to_dict() for entry in self.skipped],
            'errors': list(self.errors),
        }


@dataclass
class RunReportBuilder:
    fetched: int = 0
    important_replies: List[ImportantReply] = field(default_factory=list)
    marketing_unsubscribes: List[UnsubscribeOutcome] = field(default_factory=list)
    skipped: List[SkippedMessage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def add_reply(self, entry: ImportantReply):
        self.important_replies.append(entry)

    def add_unsubscribe(self, entry: UnsubscribeOutcome):
        self.marketing_unsubscribes.append(entry)

    def add_skipped(self, message_id: str, subject: str, reason: str):
        self.skipped.append(SkippedMessage(message_id=message_id, subject=subject, reason=reason))

    def add_error(self, message: str):
        self.errors.append(message)

    def build(self, synced_at: Optional[datetime] = None) -> RunReport:
        return RunReport(
            synced_at=synced_at or datetime.now(timezone.utc),
            summary=RunSummary(
                fetched=self.fetched,
                important_replies=len(self.important_replies),
                marketing_unsubscribes=len(self.marketing_unsubscribes),
                skipped=len(self.skipped),
            ),
            important_replies=tuple(self.important_replies),
            marketing_unsubscribes=tuple(self.marketing_unsubscribes),
            skipped=tuple(self.skipped),
            errors=tuple(self.errors),
        )
