from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import InsufficientDataError
from .digits import DIGITS, validate_digits

logger = logging.getLogger(__name__)

WINDOW_SIZES: Tuple[int, ...] = (2, 3, 4, 5)

PatternKey = Tuple[int, ...]


@dataclass
class Pattern:
    sequence: PatternKey
    frequency: int
    confidence: float
    last_seen: int
    success_rate: float = 0.0  # reserved


def pattern_confidence(frequency: int, last_seen: int, corpus_length: int) -> float:
    """Blend of occurrence rate (per mille) and recency (percent of corpus)."""
    recency = last_seen / corpus_length * 100
    rate = frequency / corpus_length * 1000
    return rate * 0.6 + recency * 0.4


class PatternRecognizer:
    """Learn fixed-length digit subsequences and score them by frequency and recency.

    Patterns of every length in ``WINDOW_SIZES`` are tracked in a single table
    keyed by the digit tuple. Repeated ``train`` calls accumulate counts; the
    confidence pass always rescales against the latest corpus length, so the
    usual pattern is one ``train`` per history snapshot.
    """

    def __init__(self) -> None:
        self._patterns: Dict[PatternKey, Pattern] = {}
        self._corpus_length = 0

    def __len__(self) -> int:
        return len(self._patterns)

    @property
    def patterns(self) -> Mapping[PatternKey, Pattern]:
        return MappingProxyType(self._patterns)

    @property
    def corpus_length(self) -> int:
        return self._corpus_length

    def get(self, sequence: Sequence[int]) -> Optional[Pattern]:
        return self._patterns.get(tuple(sequence))

    def train(self, digits: Sequence[int]) -> None:
        digits = validate_digits(digits)
        if not digits:
            raise InsufficientDataError("cannot train on an empty digit sequence")
        n = len(digits)
        for size in WINDOW_SIZES:
            for i in range(n - size + 1):
                key = tuple(digits[i:i + size])
                existing = self._patterns.get(key)
                if existing is not None:
                    existing.frequency += 1
                    existing.last_seen = i
                else:
                    self._patterns[key] = Pattern(
                        sequence=key, frequency=1, confidence=0.0, last_seen=i
                    )

        self._corpus_length = n
        for pattern in self._patterns.values():
            pattern.confidence = pattern_confidence(pattern.frequency, pattern.last_seen, n)
        logger.debug("trained pattern table", extra={"corpus_length": n, "patterns": len(self._patterns)})

    def detect_patterns(self, recent_digits: Sequence[int], min_confidence: float = 60) -> List[Pattern]:
        recent = validate_digits(recent_digits)
        detected: List[Pattern] = []
        for size in WINDOW_SIZES:
            if len(recent) < size:
                continue
            pattern = self._patterns.get(tuple(recent[-size:]))
            if pattern is not None and pattern.confidence >= min_confidence:
                detected.append(pattern)
        return sorted(detected, key=lambda p: p.confidence, reverse=True)

    def predict_next(self, recent_digits: Sequence[int]) -> Dict[int, float]:
        """Sum the confidence of every pattern whose prefix matches the tail.

        Returns a mapping of candidate next digit to accumulated weight; empty
        when no stored prefix matches.
        """
        recent = validate_digits(recent_digits)
        predictions: Dict[int, float] = {}
        for size in WINDOW_SIZES:
            prefix_len = size - 1
            if len(recent) < prefix_len:
                continue
            prefix = tuple(recent[-prefix_len:])
            for digit in DIGITS:
                pattern = self._patterns.get(prefix + (digit,))
                if pattern is not None:
                    predictions[digit] = predictions.get(digit, 0.0) + pattern.confidence
        return predictions
