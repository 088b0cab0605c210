"""Tests for logging utilities and sensitive data redaction."""

from __future__ import annotations

import json
import logging

import pytest

from docscan.logging_utils import (
    JsonFormatter,
    RequestContextFilter,
    bind_request_id,
    configure_logging,
    current_request_id,
    redact,
)


def _emit(handler: logging.Handler, msg: str, *args: object, **extra: object) -> str:
    record = logging.LogRecord(
        name="docscan.test.redaction",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    for filter_ in handler.filters:
        filter_.filter(record)
    return handler.format(record)


@pytest.mark.parametrize("fmt", ["plain", "json"])
def test_sensitive_data_filter_redacts_tokens(fmt):
    secret = "top-secret-token"
    configure_logging("INFO", fmt, [secret])

    handler = logging.getLogger().handlers[0]
    formatted = _emit(handler, "Authorization header Bearer %s", secret)

    assert secret not in formatted
    assert "[redacted]" in formatted


def test_configured_secrets_are_redacted_anywhere():
    configure_logging("INFO", "plain", ["cf-token-abcdef", ""])

    handler = logging.getLogger().handlers[0]
    formatted = _emit(handler, "calling workers ai with %s", "cf-token-abcdef")

    assert "cf-token-abcdef" not in formatted


def test_inline_image_payloads_are_redacted():
    configure_logging("DEBUG", "plain", [])

    handler = logging.getLogger().handlers[0]
    payload = "data:image/png;base64," + "QUJD" * 20
    formatted = _emit(handler, "posting document %s", payload)

    assert "QUJDQUJD" not in formatted
    assert "data:image/png;base64,[redacted]" in formatted


def test_json_formatter_includes_request_context():
    formatter = JsonFormatter()
    record = logging.LogRecord(
        name="docscan.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg="HTTP %s %s",
        args=("POST", "/receipt"),
        exc_info=None,
    )
    record.request_id = "req-1"
    record.document_type = "receipt"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "HTTP POST /receipt"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["document_type"] == "receipt"


def test_httpx_logger_is_quieted():
    configure_logging("DEBUG", "plain", [])

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger().level == logging.DEBUG


def test_redact_masks_key_assignments():
    assert redact("retrying with api_key=abc123, attempt 2") == "retrying with api_key=[redacted], attempt 2"


def test_bound_request_id_is_stamped_on_records():
    record = logging.LogRecord("docscan.pipeline", logging.INFO, __file__, 0, "scan", (), None)

    with bind_request_id("req-42"):
        assert current_request_id() == "req-42"
        RequestContextFilter().filter(record)

    assert record.request_id == "req-42"
    assert current_request_id() is None


def test_plain_format_appends_request_id():
    configure_logging("INFO", "plain", [])

    handler = logging.getLogger().handlers[0]
    with bind_request_id("req-7"):
        formatted = _emit(handler, "scan finished")

    assert formatted.endswith("| request_id=req-7")
