"""
Reply drafting and dispatch.
"""

from .crafter import ReplyDraft, craft_formal_reply, reply_subject, signature_block
from .sender import ReplySender

__all__ = ['ReplyDraft', 'craft_formal_reply', 'reply_subject', 'signature_block', 'ReplySender']
