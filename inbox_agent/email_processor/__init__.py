"""
Email processing modules.
"""

from .types import ParsedEmail, Classification, DEFAULT_SUBJECT
from .parser import parse_raw_email
from .classifier import EmailClassifier, classify_email
from .imap_client import IMAPConnection, FetchedMessage
from .smtp_client import SMTPConnection, OutgoingMessage, SendResult

__all__ = [
    'ParsedEmail', 'Classification', 'DEFAULT_SUBJECT',
    'parse_raw_email', 'EmailClassifier', 'classify_email',
    'IMAPConnection', 'FetchedMessage',
    'SMTPConnection', 'OutgoingMessage', 'SendResult'
]
