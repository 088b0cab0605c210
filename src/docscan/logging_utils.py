"""Logging setup: secret redaction, request correlation and JSON output."""

from __future__ import annotations

import json
import logging
import re
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Pattern, Sequence, Tuple

REDACTED = "[redacted]"

# (pattern, group kept in front of the redaction marker)
_KNOWN_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(Bearer\s+)([A-Za-z0-9\-._~+/=]+)", re.IGNORECASE),
    re.compile(r"(api[_-]?(?:key|token)[=:]\s*)([^&\s,]+)", re.IGNORECASE),
    # Base64 image payloads are both bulky and sensitive.
    re.compile(r"(data:[\w/+.-]+;base64,)([A-Za-z0-9+/=]{32,})"),
)

_CONTEXT_FIELDS = ("request_id", "document_type", "provider")

_request_id: ContextVar[Optional[str]] = ContextVar("docscan_request_id", default=None)


def redact(message: str, secrets: Sequence[str] = ()) -> str:
    """Mask auth headers, key/token assignments, inline images and literal secrets."""

    for pattern in _KNOWN_PATTERNS:
        message = pattern.sub(r"\1" + REDACTED, message)
    for secret in secrets:
        if secret:
            message = message.replace(secret, REDACTED)
    return message


def current_request_id() -> Optional[str]:
    return _request_id.get()


@contextmanager
def bind_request_id(request_id: str) -> Iterator[None]:
    """Attach ``request_id`` to every record logged inside the block."""

    token = _request_id.set(request_id)
    try:
        yield
    finally:
        _request_id.reset(token)


class RequestContextFilter(logging.Filter):
    """Stamp the bound request id onto records that do not carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            request_id = _request_id.get()
            if request_id is not None:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Filter that redacts configured secrets from log records."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self._secrets: List[str] = [secret.strip() for secret in secrets if secret and secret.strip()]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        sanitized = redact(message, self._secrets)
        if sanitized != message:
            record.msg = sanitized
            record.args = ()

        for key, value in list(vars(record).items()):
            if key not in {"msg", "message"} and isinstance(value, str):
                setattr(record, key, redact(value, self._secrets))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including correlation fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field_name in _CONTEXT_FIELDS:
            value = getattr(record, field_name, None)
            if value:
                payload[field_name] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


class PlainFormatter(logging.Formatter):
    """Pipe-separated text format with a trailing request id when one is bound."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        request_id = getattr(record, "request_id", None)
        return f"{line} | request_id={request_id}" if request_id else line


def configure_logging(level_name: str, fmt: str, secrets: Iterable[str]) -> None:
    """Route everything through one redacting stderr handler on the root logger."""

    numeric_level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if (fmt or "plain").lower() == "json" else PlainFormatter())
    redaction = SensitiveDataFilter(secrets)
    handler.addFilter(RequestContextFilter())
    handler.addFilter(redaction)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(numeric_level)
    logging.captureWarnings(True)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = []
        logger.setLevel(numeric_level)
        logger.propagate = True
        logger.addFilter(redaction)

    # Request lines from httpx include upstream URLs; keep them out of INFO output.
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))


__all__ = [
    "JsonFormatter",
    "PlainFormatter",
    "RequestContextFilter",
    "SensitiveDataFilter",
    "bind_request_id",
    "configure_logging",
    "current_request_id",
    "redact",
]
