"""Core primitives: digit helpers, pattern table, Markov model, ensemble,
anomaly detection, outcome tracking and backtesting.
"""

from .anomaly import Anomaly, AnomalyDetector
from .backtest import BacktestEngine, BacktestResult, StrategyComparison
from .digits import DigitBuffer, last_digit, parity_split, validate_digits
from .ensemble import EnsemblePredictor, MultiStepPrediction
from .markov import MarkovModel, build_markov
from .patterns import Pattern, PatternRecognizer
from .tracker import OutcomeTally, PredictionTracker

__all__ = [
    "Anomaly",
    "AnomalyDetector",
    "BacktestEngine",
    "BacktestResult",
    "DigitBuffer",
    "EnsemblePredictor",
    "MarkovModel",
    "MultiStepPrediction",
    "OutcomeTally",
    "Pattern",
    "PatternRecognizer",
    "PredictionTracker",
    "StrategyComparison",
    "build_markov",
    "last_digit",
    "parity_split",
    "validate_digits",
]
