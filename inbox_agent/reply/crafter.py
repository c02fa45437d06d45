"""
Acknowledgment reply drafting.

A reply is assembled from fixed phrasing templates selected by the agent's
reply tone, the original subject and sender, optional summary bullets and a
signature block built from the agent profile. Output depends only on the
inputs.
"""

import re
from dataclasses import dataclass
from typing import Dict, Sequence

from ..config.run_config import AgentProfile
from ..email_processor.types import ParsedEmail, DEFAULT_SUBJECT


REPLY_PREFIX = re.compile(r'^\s*re\s*:', re.IGNORECASE)


@dataclass(frozen=True)
class ReplyDraft:
    subject: str
    body: str


TONE_TEMPLATES: Dict[str, Dict[str, str]] = {
    'formal': {
        'greeting': 'Dear {name},',
        'fallback_name': 'Sir or Madam',
        'opening': (
            'Thank you for your message regarding "{subject}". '
            'I confirm that it has been received and will be reviewed with due care.'
        ),
        'summary_intro': 'For reference, I have noted the following points:',
        'closing': (
            'I will revert with a complete response as soon as possible. '
            'Should the matter require more immediate attention, please do not hesitate to let me know.'
        ),
        'sign_off': 'Kind regards,',
    },
    'neutral': {
        'greeting': 'Hello {name},',
        'fallback_name': 'there',
        'opening': 'Thanks for your email about "{subject}". I have received it and will look into it.',
        'summary_intro': 'Here is what I noted:',
        'closing': 'I will get back to you with a full reply shortly.',
        'sign_off': 'Best regards,',
    },
}


def reply_subject(subject: str) -> str:
    """Original subject with a single reply marker."""
    subject = (subject or '').strip() or DEFAULT_SUBJECT
    if REPLY_PREFIX.match(subject):
        return subject
    return f'Re: {subject}'


def signature_block(profile: AgentProfile) -> str:
    """Custom signature text if set, otherwise name, title and company lines."""
    if profile.signature and profile.signature.strip():
        return profile.signature.strip()

    lines = [profile.display_name]
    if profile.job_title:
        lines.append(profile.job_title)
    if profile.company:
        lines.append(profile.company)
    return '\n'.join(lines)


def craft_formal_reply(email: ParsedEmail, profile: AgentProfile,
                       summary: Sequence[str] = ()) -> ReplyDraft:
    """
    Draft an acknowledgment reply.

    Args:
        email: The message being answered
        profile: Agent identity; its reply_tone selects the templates
        summary: Bullets to echo back, empty for none

    Returns:
        ReplyDraft with subject and plain-text body
    """
    templates = TONE_TEMPLATES.get(profile.reply_tone, TONE_TEMPLATES['formal'])
    original_subject = (email.subject or '').strip() or DEFAULT_SUBJECT
    name = email.from_name or templates['fallback_name']

    paragraphs = [
        templates['greeting'].format(name=name),
        templates['opening'].format(subject=original_subject),
    ]

    bullets = [item.strip() for item in summary if item and item.strip()]
    if bullets:
        paragraphs.append('\n'.join([templates['summary_intro']] + [f'- {item}' for item in bullets]))

    paragraphs.append(templates['closing'])
    paragraphs.append(f"{templates['sign_off']}\n{signature_block(profile)}")

    return ReplyDraft(subject=reply_subject(original_subject), body='\n\n'.join(paragraphs))
