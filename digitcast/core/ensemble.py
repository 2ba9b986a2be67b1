from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence

import numpy as np

from ..config import ConfidenceBuckets, EnsembleWeights, MarkovConfig
from ..errors import InsufficientDataError
from .digits import validate_digits
from .markov import MarkovModel, build_markov
from .methods import SignalSpec, build_registry, ensemble_label
from .patterns import PatternRecognizer

logger = logging.getLogger(__name__)

ConfidenceLevel = Literal["very_high", "high", "medium", "low"]

# Self-fed steps past this horizon stop once confidence drops to "low".
EARLY_EXIT_STEP = 3


@dataclass
class MultiStepPrediction:
    step: int
    digit: int
    probability: float
    confidence: ConfidenceLevel
    method: str


def classify_confidence(score: float, buckets: Optional[ConfidenceBuckets] = None) -> ConfidenceLevel:
    b = buckets or ConfidenceBuckets()
    if score >= b.very_high:
        return "very_high"
    if score >= b.high:
        return "high"
    if score >= b.medium:
        return "medium"
    return "low"


class EnsemblePredictor:
    """Forecast the next digits from pattern, Markov and frequency signals.

    The pattern table and Markov matrix are built once from ``history`` and
    never updated; build a new predictor to take newer ticks into account.
    """

    def __init__(
        self,
        history: Sequence[int],
        weights: Optional[EnsembleWeights] = None,
        buckets: Optional[ConfidenceBuckets] = None,
        markov_config: Optional[MarkovConfig] = None,
    ) -> None:
        digits = validate_digits(history)
        if not digits:
            raise InsufficientDataError("predictor needs at least one historical digit")
        self.weights = weights or EnsembleWeights()
        self.buckets = buckets or ConfidenceBuckets()
        self.recognizer = PatternRecognizer()
        self.recognizer.train(digits)
        self.markov: MarkovModel = build_markov(digits, markov_config)
        self._registry: Dict[str, SignalSpec] = build_registry(self.recognizer, self.markov, self.weights)
        self.method = ensemble_label(self._registry)
        logger.info(
            "ensemble predictor built",
            extra={"history_length": len(digits), "patterns": len(self.recognizer)},
        )

    def score(self, digits: Sequence[int]) -> np.ndarray:
        """Weighted ensemble score of every candidate digit given ``digits``."""
        total = np.zeros(10)
        for spec in self._registry.values():
            total = total + spec.weight * spec.compute(digits)
        return total

    def predict_next_n(self, recent_digits: Sequence[int], steps: int = 5) -> List[MultiStepPrediction]:
        working = validate_digits(recent_digits)
        if not working:
            raise InsufficientDataError("predict_next_n needs at least one recent digit")

        predictions: List[MultiStepPrediction] = []
        for step in range(1, steps + 1):
            scores = self.score(working)
            # argmax returns the first maximum, so the lowest digit wins ties
            digit = int(np.argmax(scores))
            probability = float(scores[digit])
            confidence = classify_confidence(probability, self.buckets)
            predictions.append(
                MultiStepPrediction(
                    step=step,
                    digit=digit,
                    probability=probability,
                    confidence=confidence,
                    method=self.method,
                )
            )
            working.append(digit)
            if confidence == "low" and step >= EARLY_EXIT_STEP:
                break
        return predictions
