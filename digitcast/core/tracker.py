from __future__ import annotations

import threading
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Literal, Optional

from ..config import BacktestConfig
from .digits import validate_digits

Strategy = Literal["match", "differ"]
STRATEGIES = ("match", "differ")


def _pct(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator else 0.0


@dataclass
class OutcomeTally:
    """Classification counters and fixed-payout P&L for one strategy.

    Every trade is either a hit (true positive) or a miss (false positive);
    there is no abstain outcome, so true and false negatives stay at zero.
    Ratios with a zero denominator are reported as 0.0.
    """

    true_positives: int = 0
    false_positives: int = 0
    true_negatives: int = 0
    false_negatives: int = 0
    profit_loss: float = 0.0

    @property
    def total(self) -> int:
        return self.true_positives + self.false_positives + self.true_negatives + self.false_negatives

    @property
    def accuracy(self) -> float:
        return _pct(self.true_positives + self.true_negatives, self.total)

    @property
    def precision(self) -> float:
        return _pct(self.true_positives, self.true_positives + self.false_positives)

    @property
    def recall(self) -> float:
        return _pct(self.true_positives, self.true_positives + self.false_negatives)

    @property
    def f1_score(self) -> float:
        p, r = self.precision, self.recall
        return (2 * p * r / (p + r)) if (p + r) else 0.0

    def settle(self, strategy: Strategy, predicted: int, actual: int, config: BacktestConfig) -> bool:
        """Book one trade and return whether it won."""
        if strategy == "match":
            won = predicted == actual
            payout = config.match_payout
        elif strategy == "differ":
            won = predicted != actual
            payout = config.differ_payout
        else:
            raise ValueError(f"unknown strategy {strategy!r}; expected one of {STRATEGIES}")
        if won:
            self.true_positives += 1
            self.profit_loss += payout * config.stake
        else:
            self.false_positives += 1
            self.profit_loss -= config.stake
        return won


@dataclass
class TrackedPrediction:
    strategy: Strategy
    digit: int
    probability: float
    resolved: bool = False
    actual_digit: Optional[int] = None
    won: Optional[bool] = None


class PredictionTracker:
    """Record live one-step predictions and settle them on the next tick."""

    def __init__(self, config: Optional[BacktestConfig] = None, history_size: int = 1000) -> None:
        self.config = config or BacktestConfig()
        self._lock = threading.RLock()
        self._history: Deque[TrackedPrediction] = deque(maxlen=history_size)
        self._open: List[TrackedPrediction] = []
        self._stats: Dict[str, OutcomeTally] = defaultdict(OutcomeTally)

    def record(self, strategy: Strategy, digit: int, probability: float = 0.0) -> TrackedPrediction:
        if strategy not in STRATEGIES:
            raise ValueError(f"unknown strategy {strategy!r}; expected one of {STRATEGIES}")
        (d,) = validate_digits([digit])
        p = TrackedPrediction(strategy=strategy, digit=d, probability=probability)
        with self._lock:
            self._open.append(p)
            self._history.append(p)
        return p

    def resolve(self, actual_digit: int) -> int:
        """Settle every open prediction against ``actual_digit``; return how many."""
        (actual,) = validate_digits([actual_digit])
        with self._lock:
            settling, self._open = self._open, []
            for p in settling:
                p.won = self._stats[p.strategy].settle(p.strategy, p.digit, actual, self.config)
                p.actual_digit = actual
                p.resolved = True
        return len(settling)

    def pending(self) -> int:
        with self._lock:
            return len(self._open)

    def recent(self, limit: int = 100) -> List[TrackedPrediction]:
        if limit <= 0:
            return []
        with self._lock:
            return list(self._history)[-limit:]

    def stats(self) -> Dict[str, OutcomeTally]:
        with self._lock:
            return {k: OutcomeTally(**vars(v)) for k, v in self._stats.items()}
