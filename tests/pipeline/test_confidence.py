"""Tests for the overall confidence calculation."""

from __future__ import annotations

import math

import pytest

from docscan.pipeline.confidence import combine_confidence


@pytest.mark.parametrize(
    ("ocr", "extraction", "expected"),
    [
        (1.0, 1.0, 1.0),
        (0.0, 0.0, 0.0),
        (0.9, 0.85, 0.88),
        (1.0, 0.3, 0.72),
        (0.5, 0.5, 0.5),
    ],
)
def test_weighted_mean_is_rounded(ocr, extraction, expected):
    assert combine_confidence(ocr, extraction) == expected


def test_inputs_are_clamped():
    assert combine_confidence(1.7, 2.0) == 1.0
    assert combine_confidence(-0.5, -1.0) == 0.0
    assert combine_confidence(1.5, 0.0) == 0.6


def test_non_finite_inputs_count_as_zero():
    assert combine_confidence(math.nan, 1.0) == 0.4
    assert combine_confidence(1.0, math.inf) == 0.6


def test_result_is_stable():
    results = {combine_confidence(0.731, 0.412) for _ in range(50)}
    assert results == {0.6}
