"""Utilities for masking OCR output before it is logged."""

from __future__ import annotations

import re

_CARD_PATTERN = re.compile(r"(?<!\d)\d(?:[ -]?\d){11,18}(?!\d)")
# The on-us field of a MICR line, delimited by the E-13B on-us symbol or its OCR stand-ins.
_MICR_ACCOUNT_PATTERN = re.compile(r"([⑈Cc])(\d{4,17})([⑈Cc])")
_WHITESPACE = re.compile(r"\s+")


def _keep_edges(digits: str, keep: int = 4) -> str:
    if len(digits) <= keep * 2:
        return "*" * len(digits)
    return digits[:keep] + "*" * (len(digits) - keep * 2) + digits[-keep:]


def sanitize_text(value: str) -> str:
    """Mask card-like digit runs and MICR account numbers."""

    masked = _CARD_PATTERN.sub(lambda match: _keep_edges(re.sub(r"\D", "", match.group())), value)
    return _MICR_ACCOUNT_PATTERN.sub(
        lambda match: match.group(1) + _keep_edges(match.group(2), keep=2) + match.group(3),
        masked,
    )


def preview_text(value: str, limit: int = 160) -> str:
    """Return a single-line, masked excerpt suitable for debug logs."""

    collapsed = _WHITESPACE.sub(" ", value).strip()
    if len(collapsed) > limit:
        collapsed = collapsed[:limit] + "..."
    return sanitize_text(collapsed)


__all__ = ["sanitize_text", "preview_text"]
