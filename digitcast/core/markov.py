from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..config import MarkovConfig


@dataclass(frozen=True)
class MarkovModel:
    """First-order digit transition model on a 0-100 scale.

    ``raw`` holds the decayed transition probabilities (rows sum to 100 for
    any digit with an outgoing transition). ``matrix`` adds the boost term
    ``decayed_count / boost_divisor`` to each cell and caps it at 100; rows
    of ``matrix`` can therefore sum to more than 100.
    """

    counts: np.ndarray
    raw: np.ndarray
    matrix: np.ndarray

    def row(self, digit: int) -> np.ndarray:
        return self.matrix[digit]


def build_markov(digits: Sequence[int], config: Optional[MarkovConfig] = None) -> MarkovModel:
    cfg = config or MarkovConfig()
    counts = np.zeros((10, 10), dtype=float)
    n = len(digits)
    if n >= 2:
        seq = np.asarray(digits, dtype=np.int64)
        # Transition i -> i+1 is weighted decay ** (n - 1 - i); the newest weighs decay ** 1.
        weights = cfg.decay ** (n - 1 - np.arange(n - 1, dtype=float))
        np.add.at(counts, (seq[:-1], seq[1:]), weights)

    totals = counts.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = np.where(totals > 0, counts / totals * 100, 0.0)
    matrix = np.minimum(raw + counts / cfg.boost_divisor, 100.0)
    return MarkovModel(counts=counts, raw=raw, matrix=matrix)
