from __future__ import annotations

import pytest

from digitcast.core.patterns import PatternRecognizer, pattern_confidence
from digitcast.errors import InsufficientDataError, InvalidDigitError


def trained(digits: list[int]) -> PatternRecognizer:
    rec = PatternRecognizer()
    rec.train(digits)
    return rec


def test_train_counts_and_last_seen() -> None:
    rec = trained([1, 2, 1, 2, 1])
    p12 = rec.get([1, 2])
    p21 = rec.get((2, 1))
    assert p12 is not None and p21 is not None
    assert (p12.frequency, p12.last_seen) == (2, 2)
    assert (p21.frequency, p21.last_seen) == (2, 3)
    assert rec.get([1, 2, 1]).frequency == 2  # type: ignore[union-attr]
    assert rec.get([1, 2, 1, 2, 1]).frequency == 1  # type: ignore[union-attr]
    # 2 + 2 + 2 + 1 distinct windows of length 2..5
    assert len(rec) == 7
    assert rec.corpus_length == 5


def test_confidence_formula() -> None:
    rec = trained([1, 2, 1, 2, 1])
    # 0.6 * (2/5 * 1000) + 0.4 * (2/5 * 100)
    assert rec.get([1, 2]).confidence == pytest.approx(256.0)  # type: ignore[union-attr]
    assert rec.get([2, 1]).confidence == pytest.approx(264.0)  # type: ignore[union-attr]


def test_confidence_monotonic_in_frequency() -> None:
    low = pattern_confidence(frequency=3, last_seen=40, corpus_length=100)
    high = pattern_confidence(frequency=4, last_seen=40, corpus_length=100)
    assert high > low


def test_train_accumulates_across_calls() -> None:
    rec = trained([4, 5, 4, 5])
    rec.train([4, 5, 4, 5])
    assert rec.get([4, 5]).frequency == 4  # type: ignore[union-attr]


def test_train_rejects_empty_and_invalid() -> None:
    rec = PatternRecognizer()
    with pytest.raises(InsufficientDataError):
        rec.train([])
    for bad in ([1, 10], [-1], [2.5], [True, 1]):
        with pytest.raises(InvalidDigitError):
            rec.train(bad)  # type: ignore[arg-type]


def test_detect_patterns_threshold_and_order() -> None:
    rec = trained([1, 2, 1, 2, 1])
    found = rec.detect_patterns([1, 2, 1])
    # (2,1) scores 264, (1,2,1) scores 256
    assert [p.sequence for p in found] == [(2, 1), (1, 2, 1)]
    assert rec.detect_patterns([2, 1], min_confidence=300) == []


def test_detect_patterns_skips_long_windows() -> None:
    rec = trained([1, 2, 1, 2, 1])
    found = rec.detect_patterns([2, 1])
    assert [p.sequence for p in found] == [(2, 1)]
    assert rec.detect_patterns([]) == []


def test_predict_next_sums_matching_prefixes() -> None:
    rec = trained([1, 2, 1, 2, 1])
    assert rec.predict_next([1]) == {2: pytest.approx(256.0)}
    # (1,2) via prefix (1,) plus (2,1,2) via prefix (2,1): 256 + 128
    assert rec.predict_next([2, 1]) == {2: pytest.approx(384.0)}


def test_predict_next_without_match_is_empty() -> None:
    rec = trained([1, 2])
    assert rec.predict_next([5]) == {}
    assert rec.predict_next([]) == {}
