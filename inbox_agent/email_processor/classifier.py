"""
Heuristic marketing/importance classification of parsed messages.

Two independent scores are computed from the same ParsedEmail:

- a marketing score from bulk-mail markers (List-Unsubscribe, Precedence,
  List-Id), sender patterns and promotional vocabulary;
- an importance score (0-100) from urgency vocabulary, direct addressing,
  questions, thread membership, priority headers and sender reputation.

The classifier is a pure function of its input. Summary bullets are an
extractive condensation of the body and are only computed when requested.
"""

import re
from typing import List, Tuple

from .types import ParsedEmail, Classification


# Weighted signal: (label, weight)
Signal = Tuple[str, int]


class EmailClassifier:
    """Classifies messages as marketing and scores their importance."""

    MARKETING_THRESHOLD = 4

    MARKETING_KEYWORDS = (
        'sale', 'deal', 'offer', 'discount', 'promo', 'coupon', 'newsletter',
        'limited time', 'exclusive', 'free shipping', '% off', 'save up to',
        'shop now', 'buy now', 'subscribe', 'webinar', 'special offer',
        'new arrivals', 'last chance', 'black friday', 'deals'
    )

    MARKETING_SENDER_PATTERNS = (
        'newsletter', 'news', 'marketing', 'promo', 'promotions', 'offers',
        'deals', 'campaign', 'mailer', 'hello', 'info', 'updates', 'digest'
    )

    AUTOMATED_SENDER_PATTERNS = (
        'noreply', 'no-reply', 'donotreply', 'do-not-reply', 'notifications',
        'notification', 'bounce', 'mailer-daemon', 'auto'
    )

    BULK_PRECEDENCE = ('bulk', 'list', 'junk')

    URGENCY_KEYWORDS = (
        'urgent', 'asap', 'as soon as possible', 'deadline', 'action required',
        'important', 'immediately', 'overdue', 'invoice', 'payment', 'contract',
        'approval', 'approve', 'by tomorrow', 'end of day', 'eod', 'meeting',
        'review', 'sign', 'time-sensitive', 'escalation'
    )

    GREETING_PATTERN = re.compile(r'^\s*(hi|hello|hey|dear|good (morning|afternoon|evening))\b', re.IGNORECASE)
    DIRECT_ADDRESS_PATTERN = re.compile(r'\b(you|your|could you|can you|would you|please)\b', re.IGNORECASE)
    REPLY_PREFIX_PATTERN = re.compile(r'^\s*(re|aw|sv|fwd?)\s*:', re.IGNORECASE)

    BASELINE_IMPORTANCE = 20
    EMPTY_BODY_IMPORTANCE = 10
    URGENCY_WEIGHT = 12
    URGENCY_CAP = 36

    MAX_SUMMARY_BULLETS = 3
    MAX_BULLET_LENGTH = 160

    def classify(self, email: ParsedEmail, include_summary: bool = False) -> Classification:
        """
        Classify a parsed email.

        Args:
            email: Parsed message
            include_summary: Generate summary bullets from the body

        Returns:
            Classification with marketing flag, importance score and rationale
        """
        marketing_signals = self.marketing_signals(email)
        marketing_score = sum(weight for _, weight in marketing_signals)
        is_marketing = marketing_score >= self.MARKETING_THRESHOLD

        has_content = bool(email.body_text.strip())
        if has_content:
            importance_signals = self.importance_signals(email)
            importance = self.BASELINE_IMPORTANCE + sum(weight for _, weight in importance_signals)
        else:
            importance_signals = []
            importance = self.EMPTY_BODY_IMPORTANCE
        importance = max(0, min(100, importance))

        reason = self._build_reason(
            is_marketing, marketing_signals, importance, importance_signals, has_content
        )

        summary = tuple(self.summarize(email.body_text)) if include_summary else ()
        signals = tuple(label for label, _ in marketing_signals + importance_signals)

        return Classification(
            is_marketing=is_marketing,
            importance_score=importance,
            reason=reason,
            summary=summary,
            signals=signals,
        )

    def marketing_signals(self, email: ParsedEmail) -> List[Signal]:
        """Bulk-mail markers found on the message, strongest first."""
        signals: List[Signal] = []

        if email.list_unsubscribe:
            signals.append(('List-Unsubscribe header present', 3))
        if email.supports_one_click:
            signals.append(('one-click unsubscribe advertised', 1))

        precedence = (email.header('precedence') or '').strip().lower()
        if precedence in self.BULK_PRECEDENCE:
            signals.append((f'Precedence: {precedence}', 2))

        if email.header('list-id'):
            signals.append(('mailing list identifier', 1))

        local_part = self._sender_local_part(email)
        if local_part and any(p in local_part for p in self.MARKETING_SENDER_PATTERNS):
            signals.append((f'bulk sender address ({local_part}@)', 2))

        subject_hits = self._keyword_hits(email.subject, self.MARKETING_KEYWORDS)
        if subject_hits:
            signals.append((f"marketing keywords in subject ({', '.join(subject_hits[:3])})",
                            2 * min(len(subject_hits), 2)))

        body_hits = self._keyword_hits(email.body_text, self.MARKETING_KEYWORDS)
        if body_hits:
            signals.append((f"marketing keywords in body ({', '.join(body_hits[:3])})",
                            min(len(body_hits), 2)))

        if 'unsubscribe' in email.body_text.lower():
            signals.append(('unsubscribe link in body', 1))

        return sorted(signals, key=lambda s: -s[1])

    def importance_signals(self, email: ParsedEmail) -> List[Signal]:
        """Weighted importance contributions, strongest first."""
        signals: List[Signal] = []
        text = f"{email.subject}\n{email.body_text}"

        urgency_hits = self._keyword_hits(text, self.URGENCY_KEYWORDS)
        if urgency_hits:
            weight = min(len(urgency_hits) * self.URGENCY_WEIGHT, self.URGENCY_CAP)
            signals.append((f"urgency keywords ({', '.join(urgency_hits[:3])})", weight))

        if self.GREETING_PATTERN.search(email.body_text):
            signals.append(('direct greeting', 10))
        if self.DIRECT_ADDRESS_PATTERN.search(email.body_text):
            signals.append(('addressed to recipient', 5))

        questions = email.body_text.count('?')
        if questions >= 2:
            signals.append(('multiple direct questions', 12))
        elif questions == 1:
            signals.append(('direct question', 8))

        if self.REPLY_PREFIX_PATTERN.match(email.subject) or email.header('in-reply-to'):
            signals.append(('part of an ongoing thread', 10))

        importance_header = (email.header('importance') or '').lower()
        priority_header = (email.header('x-priority') or '').strip()
        if importance_header == 'high' or priority_header.startswith(('1', '2')):
            signals.append(('sender marked high priority', 15))

        local_part = self._sender_local_part(email)
        if not local_part:
            signals.append(('unknown sender', -10))
        elif any(p in local_part for p in self.AUTOMATED_SENDER_PATTERNS):
            signals.append(('automated sender', -20))
        elif not any(p in local_part for p in self.MARKETING_SENDER_PATTERNS):
            signals.append(('personal sender address', 10))

        return sorted(signals, key=lambda s: -abs(s[1]))

    def summarize(self, body_text: str) -> List[str]:
        """Extractive summary: the most informative sentences, in body order."""
        sentences = self._candidate_sentences(body_text)
        if not sentences:
            return []

        scored = []
        for position, sentence in enumerate(sentences):
            score = len(self._keyword_hits(sentence, self.URGENCY_KEYWORDS)) * 2
            score += 1 if '?' in sentence else 0
            score += 1 if position == 0 else 0
            scored.append((score, position, sentence))

        best = sorted(scored, key=lambda s: (-s[0], s[1]))[:self.MAX_SUMMARY_BULLETS]
        return [self._shorten(sentence) for _, _, sentence in sorted(best, key=lambda s: s[1])]

    def _candidate_sentences(self, body_text: str) -> List[str]:
        lines = []
        for line in body_text.splitlines():
            stripped = line.strip()
            if stripped.startswith('>'):
                continue
            # Quoted reply trail
            if re.match(r'^on .+wrote:$', stripped, re.IGNORECASE):
                break
            if stripped in ('--', '-- '):
                break
            lines.append(stripped)

        text = ' '.join(line for line in lines if line)
        sentences = re.split(r'(?<=[.!?])\s+', text)

        candidates = []
        for sentence in sentences:
            sentence = sentence.strip()
            if len(sentence) < 15:
                continue
            if self.GREETING_PATTERN.match(sentence) and len(sentence) < 40:
                continue
            if re.match(r'^(thanks|thank you|best|regards|kind regards|cheers|sincerely)\b',
                        sentence, re.IGNORECASE) and len(sentence) < 40:
                continue
            candidates.append(sentence)
        return candidates

    def _shorten(self, sentence: str) -> str:
        if len(sentence) <= self.MAX_BULLET_LENGTH:
            return sentence
        cut = sentence[:self.MAX_BULLET_LENGTH - 3].rsplit(' ', 1)[0]
        return f"{cut}..."

    def _build_reason(self, is_marketing: bool, marketing_signals: List[Signal],
                      importance: int, importance_signals: List[Signal],
                      has_content: bool) -> str:
        if is_marketing:
            labels = [label for label, _ in marketing_signals[:2]]
            return f"Marketing: {'; '.join(labels)}"

        if not has_content:
            return f"Insufficient content to assess importance (score {importance}/100)"

        drivers = [label for label, weight in importance_signals if weight > 0][:3]
        if not drivers:
            return f"No strong importance signals (score {importance}/100)"
        return f"Importance {importance}/100: {'; '.join(drivers)}"

    @staticmethod
    def _sender_local_part(email: ParsedEmail) -> str:
        if '@' not in email.from_address:
            return ''
        return email.from_address.split('@', 1)[0].lower()

    @staticmethod
    def _keyword_hits(text: str, keywords) -> List[str]:
        text_lower = text.lower()
        hits = []
        for keyword in keywords:
            if keyword.isalpha():
                if re.search(rf'\b{re.escape(keyword)}\b', text_lower):
                    hits.append(keyword)
            elif keyword in text_lower:
                hits.append(keyword)
        return hits


_default_classifier = EmailClassifier()


def classify_email(email: ParsedEmail, include_summary: bool = False) -> Classification:
    """Classify with the default heuristic weights."""
    return _default_classifier.classify(email, include_summary=include_summary)
