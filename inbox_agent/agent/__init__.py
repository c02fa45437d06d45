"""
Run orchestration and reporting.
"""

from .orchestrator import InboxAgent
from .report import (
    RunReport, RunSummary, RunReportBuilder,
    ImportantReply, UnsubscribeOutcome, SkippedMessage
)

__all__ = [
    'InboxAgent', 'RunReport', 'RunSummary', 'RunReportBuilder',
    'ImportantReply', 'UnsubscribeOutcome', 'SkippedMessage'
]
