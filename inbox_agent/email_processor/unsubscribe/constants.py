"""
Constants shared by unsubscribe resolution and execution.
"""

import re
from typing import Pattern

# Angle-bracket delimited URI inside a List-Unsubscribe value (RFC 2369)
HEADER_URL_PATTERN: Pattern = re.compile(r'<([^>]*)>')

EMAIL_PATTERN: Pattern = re.compile(
    r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$'
)

HTTP_SCHEMES = ('http', 'https')
MAILTO_SCHEME = 'mailto'

# RFC 8058
ONE_CLICK_POST_BODY = 'List-Unsubscribe=One-Click'

# Channel names as reported in run outcomes
CHANNEL_HTTP = 'http'
CHANNEL_EMAIL = 'email'

STATUS_REQUESTED = 'requested'
STATUS_FAILED = 'failed'

DEFAULT_MAILTO_SUBJECT = 'Unsubscribe'
DEFAULT_MAILTO_BODY = 'Please unsubscribe me from this mailing list.'
