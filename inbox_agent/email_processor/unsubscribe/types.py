"""
Type-safe dataclasses for unsubscribe resolution and execution results.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple


@dataclass(frozen=True)
class UnsubscribeChannels:
    """
    Unsubscribe endpoints resolved from a List-Unsubscribe header.

    Both sequences keep header order. Only the first entry of each is
    executed, the rest are retained for inspection.
    """

    http: Tuple[str, ...] = ()
    mailto: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.http and not self.mailto

    def to_dict(self) -> Dict[str, Any]:
        return {'http': list(self.http), 'mailto': list(self.mailto)}


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one best-effort network action. Failures are values."""

    success: bool
    detail: Optional[str] = None
    status_code: Optional[int] = None
    raised: bool = False

    @classmethod
    def ok(cls, detail: Optional[str] = None, status_code: Optional[int] = None) -> 'ExecutionResult':
        return cls(success=True, detail=detail, status_code=status_code)

    @classmethod
    def failed(cls, detail: str, status_code: Optional[int] = None,
               raised: bool = False) -> 'ExecutionResult':
        return cls(success=False, detail=detail, status_code=status_code, raised=raised)


@dataclass(frozen=True)
class MailtoTarget:
    """A mailto endpoint split into address and RFC 6068 fields."""

    address: str
    subject: Optional[str] = None
    body: Optional[str] = None
