"""
Immutable records produced by the parser and classifier.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Any, Mapping, Optional, Tuple


DEFAULT_SUBJECT = '(no subject)'


@dataclass(frozen=True)
class ParsedEmail:
    """Structured view of one raw message, derived once."""

    message_id: str
    subject: str = DEFAULT_SUBJECT
    from_address: str = ''
    from_name: str = ''
    list_unsubscribe: Optional[str] = None
    list_unsubscribe_post: Optional[str] = None
    body_text: str = ''
    date: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # Read-only view over a private copy
        object.__setattr__(self, 'headers', MappingProxyType(dict(self.headers)))

    @property
    def supports_one_click(self) -> bool:
        """True when the sender advertises RFC 8058 one-click unsubscribe."""
        return bool(
            self.list_unsubscribe_post
            and 'list-unsubscribe=one-click' in self.list_unsubscribe_post.lower()
        )

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)


@dataclass(frozen=True)
class Classification:
    """Marketing/importance verdict for exactly one ParsedEmail."""

    is_marketing: bool
    importance_score: int
    reason: str
    summary: Tuple[str, ...] = ()
    signals: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isMarketing': self.is_marketing,
            'importanceScore': self.importance_score,
            'reason': self.reason,
            'summary': list(self.summary),
            'signals': list(self.signals),
        }
