"""Confidence scoring for extraction responses."""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

_COMPLETE_FINISH_SCORE = 1.0
_TRUNCATED_FINISH_SCORE = 0.75
_FINISH_WEIGHT = 0.7

_POPULATED_SCORE = 0.9
_EMPTY_SCORE = 0.3
_COMPLETENESS_WEIGHT = 0.3

_INVALID_INPUT_PENALTY = 0.3
_PROVIDER_WEIGHT = 0.8
_SELF_REPORTED_WEIGHT = 0.2


def _self_reported_confidence(payload: Mapping[str, Any]) -> Optional[float]:
    value = payload.get("confidence")
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0.0 or number > 1.0:
        return None
    return number


def score_extraction(finish_reason: Optional[str], payload: Mapping[str, Any]) -> float:
    """Score an extraction by how it finished and what it returned.

    The model's own ``confidence`` field, when present and within [0, 1], is blended
    in at a low weight. A payload that declares ``isValidInput: false`` is penalized.
    """

    finish_score = (
        _COMPLETE_FINISH_SCORE
        if (finish_reason or "").lower() == "stop"
        else _TRUNCATED_FINISH_SCORE
    )
    completeness = _POPULATED_SCORE if payload else _EMPTY_SCORE
    score = finish_score * _FINISH_WEIGHT + completeness * _COMPLETENESS_WEIGHT

    valid_flag = payload.get("isValidInput", payload.get("is_valid_input"))
    if valid_flag is False:
        score *= _INVALID_INPUT_PENALTY

    reported = _self_reported_confidence(payload)
    if reported is not None:
        score = score * _PROVIDER_WEIGHT + reported * _SELF_REPORTED_WEIGHT

    return round(min(1.0, max(0.0, score)), 2)


__all__ = ["score_extraction"]
