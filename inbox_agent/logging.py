"""
Logging for the inbox agent.

Records are ordinary stdlib log records; the agent-specific parts travel in
``extra`` and are rendered by the formatters installed with
configure_agent_logging():

- ``component``: which part of the agent wrote the record
- ``context``: run and message scope (run id, mailbox, uid, message id),
  shared by every component while a scope is open
- ``fields``: per-record key/value data

Mailbox passwords and the per-recipient tokens found in unsubscribe URLs are
masked by a process-wide CredentialScrubber before anything is written.
"""

import json
import logging
import re
import time
import uuid
from collections import Counter, defaultdict
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, ContextManager, Dict, Iterator, Mapping, Optional, Set


ROOT_LOGGER_NAME = "inbox_agent"
REDACTED = "***"

_scope: ContextVar[Dict[str, Any]] = ContextVar("inbox_agent_log_scope", default={})


class CredentialScrubber:
    """Masks credentials and unsubscribe tokens in log text and fields."""

    SENSITIVE_FIELDS = frozenset({'password', 'secret', 'token', 'api_key', 'authorization'})

    _ASSIGNMENT = re.compile(
        r'\b(password|passwd|secret|token|api_key)(["\']?\s*[:=]\s*["\']?)[^"\'\s&,]+',
        re.IGNORECASE
    )
    # Query strings of unsubscribe links identify the recipient
    _URL_QUERY = re.compile(r'(https?://[^\s?#"\'<>]+\?)([^\s#"\'<>]+)', re.IGNORECASE)

    def __init__(self):
        self._secrets: Set[str] = set()

    def register_secret(self, value: Optional[str]):
        """Mask this exact value wherever it appears from now on."""
        if value:
            self._secrets.add(value)

    def forget_secrets(self):
        self._secrets.clear()

    def text(self, value: str) -> str:
        for secret in sorted(self._secrets, key=len, reverse=True):
            value = value.replace(secret, REDACTED)
        value = self._ASSIGNMENT.sub(lambda m: f'{m.group(1)}{m.group(2)}{REDACTED}', value)
        return self._URL_QUERY.sub(lambda m: m.group(1) + self._mask_query(m.group(2)), value)

    def fields(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return {key: self._value(key, value) for key, value in data.items()}

    def _value(self, key: str, value: Any) -> Any:
        if str(key).lower() in self.SENSITIVE_FIELDS:
            return REDACTED
        if isinstance(value, str):
            return self.text(value)
        if isinstance(value, Mapping):
            return self.fields(value)
        if isinstance(value, (list, tuple)):
            return [self._value('', item) for item in value]
        return value

    @staticmethod
    def _mask_query(query: str) -> str:
        masked = []
        for pair in query.split('&'):
            name, sep, _ = pair.partition('=')
            masked.append(f'{name}={REDACTED}' if sep else name)
        return '&'.join(masked)


SCRUBBER = CredentialScrubber()


def current_scope() -> Dict[str, Any]:
    """Scope fields attached to records written on this thread right now."""
    return dict(_scope.get())


@contextmanager
def log_scope(**values: Any) -> Iterator[Dict[str, Any]]:
    """Attach fields to every record written inside the block, by any component."""
    token = _scope.set({**_scope.get(), **values})
    try:
        yield current_scope()
    finally:
        _scope.reset(token)


def run_scope(mailbox: str) -> ContextManager[Dict[str, Any]]:
    """Scope for one agent run; records carry a fresh run id and the mailbox."""
    return log_scope(run_id=uuid.uuid4().hex[:12], mailbox=mailbox)


def message_scope(uid: int, message_id: Optional[str] = None) -> ContextManager[Dict[str, Any]]:
    """Scope for one message of a run."""
    values: Dict[str, Any] = {'uid': uid}
    if message_id:
        values['message_id'] = message_id
    return log_scope(**values)


class AgentLogger(logging.LoggerAdapter):
    """
    Logger for one component, under the ``inbox_agent`` hierarchy.

    The level methods take an optional mapping of fields as their second
    argument::

        logger.info("Reply sent", {"to": address})
    """

    def __init__(self, component: str):
        super().__init__(logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}"), {})
        self.component = component
        self.bound: Dict[str, Any] = {}

    def bind(self, **values: Any):
        """Fields added to every record of this logger."""
        self.bound.update(values)

    def log(self, level: int, msg: str, fields: Optional[Mapping[str, Any]] = None, **kwargs):
        if not self.isEnabledFor(level):
            return
        extra = {
            'component': self.component,
            'context': {**_scope.get(), **self.bound},
            'fields': dict(fields or {}),
        }
        self.logger.log(level, msg, extra=extra, **kwargs)

    @contextmanager
    def timed(self, step: str):
        """Log how long a step took and whether it raised."""
        started = time.monotonic()
        try:
            yield
        except Exception as e:
            self.error(f"{step} failed", {
                "step": step,
                "duration_ms": round((time.monotonic() - started) * 1000),
                "error": str(e)
            })
            raise
        self.info(f"{step} finished", {
            "step": step,
            "duration_ms": round((time.monotonic() - started) * 1000)
        })


class OutcomeTally:
    """Counts of terminal outcomes per category, e.g. reply -> sent: 2."""

    def __init__(self):
        self._counts: Dict[str, Counter] = defaultdict(Counter)

    def record(self, category: str, outcome: str):
        self._counts[category][outcome] += 1

    def count(self, category: str, outcome: Optional[str] = None) -> int:
        counts = self._counts.get(category, Counter())
        return counts[outcome] if outcome is not None else sum(counts.values())

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        return {category: dict(counts) for category, counts in self._counts.items()}


def _record_document(record: logging.LogRecord) -> Dict[str, Any]:
    document: Dict[str, Any] = {
        'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
        'level': record.levelname,
        'component': getattr(record, 'component', record.name),
        'message': SCRUBBER.text(record.getMessage()),
    }
    context = getattr(record, 'context', None)
    if context:
        document['context'] = SCRUBBER.fields(context)
    fields = getattr(record, 'fields', None)
    if fields:
        document['fields'] = SCRUBBER.fields(fields)
    if record.exc_info and record.exc_info[1] is not None:
        error = record.exc_info[1]
        document['exception'] = {
            'type': type(error).__name__,
            'message': SCRUBBER.text(str(error)),
        }
        if getattr(error, 'context', None):
            document['exception']['context'] = SCRUBBER.fields(error.context)
    return document


class JsonRecordFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        document = _record_document(record)
        if record.exc_info:
            document['traceback'] = SCRUBBER.text(self.formatException(record.exc_info))
        return json.dumps(document, default=str)


class TextRecordFormatter(logging.Formatter):
    """Human-readable lines with scope and fields appended as key=value."""

    def __init__(self):
        super().__init__('%(asctime)s %(levelname)s %(name)s %(message)s')

    def format(self, record: logging.LogRecord) -> str:
        line = SCRUBBER.text(super().format(record))
        document = _record_document(record)
        pairs = {**document.get('context', {}), **document.get('fields', {})}
        if pairs:
            line += ' ' + ' '.join(f'{key}={value}' for key, value in pairs.items())
        return line


def configure_agent_logging(
    level: str = "INFO",
    format: str = "json",
    output: str = "console",
    filename: Optional[str] = None
) -> logging.Logger:
    """
    Install handlers on the ``inbox_agent`` logger, replacing earlier ones.

    Args:
        level: Level name, e.g. "DEBUG"
        format: "json" or "text"
        output: "console", "file" or "both"
        filename: Log file used when output includes "file"
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JsonRecordFormatter() if format == "json" else TextRecordFormatter()

    handlers = []
    if output in ("console", "both"):
        handlers.append(logging.StreamHandler())
    if output in ("file", "both") and filename:
        handlers.append(logging.FileHandler(filename))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
