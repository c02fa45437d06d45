"""
List-Unsubscribe header resolution (RFC 2369 / RFC 8058).

Turns the raw header value into ordered HTTP and mailto channels. Resolution
is purely textual, no endpoint is ever contacted here.
"""

import urllib.parse
from typing import Dict, List, Optional

from .constants import HEADER_URL_PATTERN, EMAIL_PATTERN, HTTP_SCHEMES, MAILTO_SCHEME
from .types import UnsubscribeChannels, MailtoTarget


def _append_unique(items: List[str], value: str):
    if value not in items:
        items.append(value)


def _is_http_endpoint(uri: str) -> bool:
    parsed = urllib.parse.urlparse(uri)
    return parsed.scheme.lower() in HTTP_SCHEMES and bool(parsed.netloc) and '.' in parsed.netloc


def _mailto_fields(query: str) -> Dict[str, str]:
    """
    Percent-decode RFC 6068 header fields.

    "+" is a literal character in mailto URIs, not an encoded space. Field
    names are case-insensitive and the first non-empty value wins.
    """
    fields: Dict[str, str] = {}
    for pair in query.split('&'):
        name, _, value = pair.partition('=')
        name = urllib.parse.unquote(name).strip().lower()
        value = urllib.parse.unquote(value)
        if name and value and name not in fields:
            fields[name] = value
    return fields


def parse_mailto_target(target: str) -> MailtoTarget:
    """
    Split a mailto target (the part after "mailto:") into its fields.

    Args:
        target: e.g. "leave@example.com?subject=unsubscribe"

    Returns:
        MailtoTarget with URL-decoded address, subject and body
    """
    if target.lower().startswith(f'{MAILTO_SCHEME}:'):
        target = target[len(MAILTO_SCHEME) + 1:]

    address, _, query = target.partition('?')
    fields = _mailto_fields(query)

    return MailtoTarget(
        address=urllib.parse.unquote(address).strip(),
        subject=fields.get('subject'),
        body=fields.get('body')
    )


def parse_list_unsubscribe(header_value: Optional[str]) -> Optional[UnsubscribeChannels]:
    """
    Resolve a List-Unsubscribe header value into unsubscribe channels.

    Args:
        header_value: Raw header value such as
            "<https://example.com/u/1>, <mailto:leave@example.com>"

    Returns:
        UnsubscribeChannels (possibly empty when the header only lists
        unsupported schemes), or None when the header is absent or carries
        no angle-bracket delimited URI at all
    """
    if header_value is None or not header_value.strip():
        return None

    matches = HEADER_URL_PATTERN.findall(header_value)
    if not matches:
        return None

    http: List[str] = []
    mailto: List[str] = []

    for match in matches:
        # Folding whitespace may split long URIs
        uri = ''.join(match.split())
        if not uri:
            continue

        scheme = uri.split(':', 1)[0].lower()
        if scheme in HTTP_SCHEMES:
            if _is_http_endpoint(uri):
                _append_unique(http, uri)
        elif scheme == MAILTO_SCHEME:
            target = uri[len(MAILTO_SCHEME) + 1:]
            if EMAIL_PATTERN.match(parse_mailto_target(target).address):
                _append_unique(mailto, target)

    return UnsubscribeChannels(http=tuple(http), mailto=tuple(mailto))
