"""
Exceptions raised by the inbox agent, carrying context for diagnostics.

Only connection and configuration problems are allowed to escape a run.
Everything that goes wrong for a single message is absorbed into the run
report instead.
"""

from typing import Dict, Any, Optional


class InboxAgentError(Exception):
    """Base class for all inbox agent errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}

    def __str__(self) -> str:
        base_message = super().__str__()
        if self.context:
            context_info = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_message} ({context_info})"
        return base_message


class ConfigurationError(InboxAgentError):
    """Raised when the run configuration bundle fails validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {'field': field} if field else None)
        self.field = field


class MailboxConnectionError(InboxAgentError):
    """Raised when the mailbox session cannot be established."""

    def __init__(self, message: str, host: Optional[str] = None, stage: Optional[str] = None):
        context = {}
        if host:
            context['host'] = host
        if stage:
            context['stage'] = stage
        super().__init__(message, context)
        self.host = host
        self.stage = stage


class ParseError(InboxAgentError):
    """Raised when raw message bytes cannot be read as an email at all."""
