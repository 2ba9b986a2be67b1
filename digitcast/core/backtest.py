from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from ..config import BacktestConfig
from .digits import validate_digits
from .ensemble import MultiStepPrediction
from .tracker import STRATEGIES, OutcomeTally, Strategy

logger = logging.getLogger(__name__)

# Leading observations used only as history, never scored.
WARMUP = 50


class SupportsPredictNextN(Protocol):
    def predict_next_n(self, recent_digits: Sequence[int], steps: int = ...) -> List[MultiStepPrediction]:
        ...


@dataclass(frozen=True)
class BacktestResult:
    accuracy: float
    precision: float
    recall: float
    f1_score: float
    true_positives: int
    false_positives: int
    true_negatives: int
    false_negatives: int
    profit_loss: float

    @property
    def scored(self) -> int:
        return self.true_positives + self.false_positives + self.true_negatives + self.false_negatives

    @classmethod
    def from_tally(cls, tally: OutcomeTally) -> "BacktestResult":
        return cls(
            accuracy=tally.accuracy,
            precision=tally.precision,
            recall=tally.recall,
            f1_score=tally.f1_score,
            true_positives=tally.true_positives,
            false_positives=tally.false_positives,
            true_negatives=tally.true_negatives,
            false_negatives=tally.false_negatives,
            profit_loss=tally.profit_loss,
        )


@dataclass(frozen=True)
class StrategyComparison:
    strategy: str
    result: BacktestResult


class BacktestEngine:
    """Replay history through a fixed predictor and book fixed-payout trades.

    For every index ``i`` from ``WARMUP`` to ``len(test_data) - 2`` the digits
    before ``i`` are the history and ``test_data[i]`` is the outcome of a
    single-step prediction. The predictor is never retrained during a run.
    """

    def __init__(self, config: Optional[BacktestConfig] = None) -> None:
        self.config = config or BacktestConfig()

    def backtest(
        self,
        predictor: SupportsPredictNextN,
        test_data: Sequence[int],
        strategy: Strategy = "match",
    ) -> BacktestResult:
        if strategy not in STRATEGIES:
            raise ValueError(f"unknown strategy {strategy!r}; expected one of {STRATEGIES}")
        data = validate_digits(test_data)
        tally = OutcomeTally()

        for i in range(WARMUP, len(data) - 1):
            predictions = predictor.predict_next_n(data[:i], 1)
            if not predictions:
                continue
            tally.settle(strategy, predictions[0].digit, data[i], self.config)

        result = BacktestResult.from_tally(tally)
        logger.info(
            "backtest complete",
            extra={
                "strategy": strategy,
                "scored": result.scored,
                "accuracy": round(result.accuracy, 2),
                "profit_loss": round(result.profit_loss, 2),
            },
        )
        return result

    def compare_strategies(
        self, predictor: SupportsPredictNextN, test_data: Sequence[int]
    ) -> List[StrategyComparison]:
        return [
            StrategyComparison(strategy="Match", result=self.backtest(predictor, test_data, "match")),
            StrategyComparison(strategy="Differ", result=self.backtest(predictor, test_data, "differ")),
        ]
