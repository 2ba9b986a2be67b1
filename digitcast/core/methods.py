from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Sequence

import numpy as np

from ..config import EnsembleWeights
from .digits import digit_frequencies
from .markov import MarkovModel
from .patterns import PatternRecognizer

# Maps the working digit sequence to a score for each digit 0-9.
SignalFunc = Callable[[Sequence[int]], np.ndarray]


@dataclass
class SignalSpec:
    key: str
    compute: SignalFunc
    weight: float
    label: str


def build_registry(
    recognizer: PatternRecognizer,
    markov: MarkovModel,
    weights: EnsembleWeights,
) -> Dict[str, SignalSpec]:
    """Signals combined by the ensemble, in the order their scores are summed."""

    def pattern(digits: Sequence[int]) -> np.ndarray:
        scores = np.zeros(10)
        for digit, weight in recognizer.predict_next(digits).items():
            scores[digit] = weight
        return scores

    def transition(digits: Sequence[int]) -> np.ndarray:
        return markov.row(digits[-1])

    def frequency(digits: Sequence[int]) -> np.ndarray:
        return digit_frequencies(digits)

    return {
        "pattern": SignalSpec(key="pattern", compute=pattern, weight=weights.pattern, label="Pattern"),
        "markov": SignalSpec(key="markov", compute=transition, weight=weights.markov, label="Markov"),
        "frequency": SignalSpec(
            key="frequency", compute=frequency, weight=weights.frequency, label="Frequency"
        ),
    }


def ensemble_label(registry: Dict[str, SignalSpec]) -> str:
    return "Ensemble (" + " + ".join(spec.label for spec in registry.values()) + ")"
