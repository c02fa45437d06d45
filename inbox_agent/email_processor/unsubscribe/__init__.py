"""
Unsubscribe channel resolution.

Parses List-Unsubscribe headers into HTTP and mailto channels and defines the
result types shared with the unsubscribe executors.
"""

from .resolver import parse_list_unsubscribe, parse_mailto_target
from .types import UnsubscribeChannels, ExecutionResult, MailtoTarget

__all__ = [
    'parse_list_unsubscribe',
    'parse_mailto_target',
    'UnsubscribeChannels',
    'ExecutionResult',
    'MailtoTarget'
]
