"""
Raw message parsing.

Turns RFC 5322 bytes as fetched from the mailbox into a ParsedEmail. Missing
optional headers get documented defaults; only input that cannot be read as
a message at all raises ParseError.
"""

import email
import hashlib
import re
from email import policy
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from email.message import Message
from email.utils import parseaddr
from typing import Dict, Optional, Union

from bs4 import BeautifulSoup

from ..config.settings import Config
from ..exceptions import ParseError
from .types import ParsedEmail, DEFAULT_SUBJECT


SYNTHETIC_ID_DOMAIN = 'inbox-agent.local'

_BLANK_LINES = re.compile(r'\n\s*\n\s*\n+')
_HEADER_LINE = re.compile(rb'[\x21-\x39\x3b-\x7e]+:')

# Kept as sent; the policy would reformat them
_VERBATIM_HEADERS = frozenset({'date'})


def _header_text(message: Message, name: str, raw_value: str) -> str:
    """
    Decoded text of one header.

    Encoded words and raw UTF-8 are decoded by the message policy. A header
    the policy cannot parse falls back to plain RFC 2047 decoding.
    """
    try:
        decoded = str(message.policy.header_fetch_parse(name, raw_value))
    except (HeaderParseError, ValueError, IndexError, TypeError):
        try:
            decoded = str(make_header(decode_header(raw_value)))
        except (UnicodeError, LookupError, HeaderParseError):
            decoded = raw_value.encode('utf-8', 'surrogateescape').decode('utf-8', 'replace')
    return ' '.join(decoded.split())


def _synthetic_message_id(raw: bytes) -> str:
    digest = hashlib.sha1(raw).hexdigest()[:16]
    return f'<generated-{digest}@{SYNTHETIC_ID_DOMAIN}>'


def _decode_part(part: Message) -> str:
    payload = part.get_payload(decode=True)
    if payload is None:
        return ''
    charset = part.get_content_charset() or 'utf-8'
    try:
        return payload.decode(charset, errors='replace')
    except LookupError:
        # Unknown charset label
        return payload.decode('utf-8', errors='replace')


def html_to_text(html: str) -> str:
    """Render an HTML body as plain text."""
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(['script', 'style', 'head']):
        tag.decompose()
    text = soup.get_text(separator='\n')
    lines = [line.strip() for line in text.splitlines()]
    return '\n'.join(lines)


def extract_body_text(message: Message, max_length: Optional[int] = None) -> str:
    """Plain-text rendering of a message: text/plain preferred, HTML as fallback."""
    plain_parts = []
    html_parts = []

    for part in message.walk():
        if part.is_multipart():
            continue
        if part.get_content_disposition() == 'attachment':
            continue

        content_type = part.get_content_type()
        if content_type == 'text/plain':
            plain_parts.append(_decode_part(part))
        elif content_type == 'text/html':
            html_parts.append(_decode_part(part))

    if any(p.strip() for p in plain_parts):
        body = '\n'.join(plain_parts)
    elif html_parts:
        body = '\n'.join(html_to_text(html) for html in html_parts)
    else:
        body = ''

    body = body.replace('\r\n', '\n').replace('\r', '\n')
    body = _BLANK_LINES.sub('\n\n', body).strip()

    limit = max_length if max_length is not None else Config.MAX_BODY_LENGTH
    return body[:limit]


def _collect_headers(message: Message) -> Dict[str, str]:
    headers = {}
    for name, raw_value in message.raw_items():
        key = name.lower()
        if key in headers:
            continue
        if key in _VERBATIM_HEADERS:
            headers[key] = ' '.join(raw_value.split())
        else:
            headers[key] = _header_text(message, name, raw_value)
    return headers


def parse_raw_email(raw: Union[bytes, bytearray, str]) -> ParsedEmail:
    """
    Parse raw message source into a ParsedEmail.

    Args:
        raw: Message source as fetched from the mailbox

    Returns:
        Fully populated ParsedEmail

    Raises:
        ParseError: if the input is empty or carries no header block
    """
    if isinstance(raw, str):
        raw = raw.encode('utf-8', errors='surrogateescape')
    if not isinstance(raw, (bytes, bytearray)):
        raise ParseError("Message source must be bytes", {'type': type(raw).__name__})

    raw = bytes(raw)
    if not raw.strip():
        raise ParseError("Message source is empty")
    first_line, _, rest = raw.lstrip().partition(b'\n')
    if first_line.startswith(b'From '):
        # mbox envelope line
        first_line = rest.partition(b'\n')[0]
    if not _HEADER_LINE.match(first_line):
        raise ParseError("Message source does not start with a header block")

    try:
        message = email.message_from_bytes(raw, policy=policy.default)
    except Exception as e:
        raise ParseError(f"Message source is not a readable MIME message: {e}")

    if not message.keys():
        raise ParseError("Message carries no headers")

    headers = _collect_headers(message)

    from_header = headers.get('from', '')
    sender_name, sender_email = parseaddr(from_header)

    subject = headers.get('subject', '').strip() or DEFAULT_SUBJECT
    message_id = headers.get('message-id', '').strip() or _synthetic_message_id(raw)

    try:
        body_text = extract_body_text(message)
    except Exception as e:
        raise ParseError(f"Message body could not be decoded: {e}")

    return ParsedEmail(
        message_id=message_id,
        subject=subject,
        from_address=sender_email.lower() if sender_email else '',
        from_name=sender_name.strip('"').strip() if sender_name else '',
        list_unsubscribe=headers.get('list-unsubscribe') or None,
        list_unsubscribe_post=headers.get('list-unsubscribe-post') or None,
        body_text=body_text,
        date=headers.get('date') or None,
        headers=headers,
    )
