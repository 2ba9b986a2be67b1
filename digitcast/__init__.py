"""Last-digit prediction and anomaly detection engine.

The package learns recurring digit subsequences from a stream of 0-9
observations (typically the last digit of successive price ticks), forecasts
the next digits with an ensemble of pattern, Markov and frequency signals,
flags unusual recent behavior against a calibrated baseline, and replays
history through a sliding window to score predictors.
"""

__all__ = [
    "config",
    "core",
    "data",
    "errors",
    "utils",
]

__version__ = "0.1.0"
