from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence

import numpy as np

from ..config import AnomalyThresholds
from ..errors import InsufficientDataError
from .digits import digit_frequencies, std_about, validate_digits

logger = logging.getLogger(__name__)

AnomalyType = Literal["frequency", "volatility", "pattern", "distribution"]
Severity = Literal["low", "medium", "high", "critical"]

SEVERITY_RANK: Dict[str, int] = {"critical": 4, "high": 3, "medium": 2, "low": 1}

# Share of each digit under a perfectly uniform distribution, in percent.
IDEAL_FREQUENCY = 10.0


@dataclass
class Anomaly:
    type: AnomalyType
    severity: Severity
    description: str
    affected_digits: List[int] = field(default_factory=list)
    recommendation: str = ""


def uniformity(frequencies: np.ndarray) -> float:
    """1 for a perfectly uniform distribution, falling to 0 as it skews."""
    avg_deviation = float(np.mean(np.abs(frequencies - IDEAL_FREQUENCY)))
    return max(0.0, 1 - avg_deviation / IDEAL_FREQUENCY)


def unusual_sequences(digits: Sequence[int], streak_length: int = 5) -> List[str]:
    """Describe streaks, perfect alternation and unit-step runs in ``digits``.

    A streak is reported once for every length it reaches from
    ``streak_length`` up, so eight 4s in a row yield four entries.
    """
    found: List[str] = []

    streak = 1
    for i in range(1, len(digits)):
        if digits[i] == digits[i - 1]:
            streak += 1
            if streak >= streak_length:
                found.append(f"{streak}x consecutive {digits[i]}s")
        else:
            streak = 1

    if len(digits) >= 6:
        a, b = digits[-6], digits[-5]
        if a != b and list(digits[-6:]) == [a, b] * 3:
            found.append(f"Perfect alternation: {a}-{b}")

    if len(digits) >= 4:
        last4 = list(digits[-4:])
        steps = [y - x for x, y in zip(last4, last4[1:])]
        joined = "-".join(str(d) for d in last4)
        if all(s == 1 for s in steps):
            found.append(f"Ascending sequence: {joined}")
        if all(s == -1 for s in steps):
            found.append(f"Descending sequence: {joined}")

    return found


class AnomalyDetector:
    """Score recent digits against a frequency and volatility baseline.

    Until ``calibrate`` is called the baseline is a uniform 10% per digit with
    zero volatility.
    """

    def __init__(self, thresholds: Optional[AnomalyThresholds] = None) -> None:
        self.thresholds = thresholds or AnomalyThresholds()
        self._baseline_frequency = np.full(10, IDEAL_FREQUENCY)
        self._baseline_volatility = 0.0
        self._calibrated = False

    @property
    def baseline_frequency(self) -> np.ndarray:
        return self._baseline_frequency.copy()

    @property
    def baseline_volatility(self) -> float:
        return self._baseline_volatility

    @property
    def calibrated(self) -> bool:
        return self._calibrated

    def calibrate(self, historical_digits: Sequence[int]) -> None:
        digits = validate_digits(historical_digits)
        frequencies = digit_frequencies(digits)
        missing = [d for d in range(10) if frequencies[d] == 0]
        if missing:
            raise InsufficientDataError(
                f"baseline history never contains digit(s) {missing}; need a longer history"
            )
        self._baseline_frequency = frequencies
        self._baseline_volatility = std_about(frequencies, IDEAL_FREQUENCY)
        self._calibrated = True
        logger.info(
            "anomaly baseline calibrated",
            extra={"history_length": len(digits), "baseline_volatility": self._baseline_volatility},
        )

    def detect(self, recent_digits: Sequence[int]) -> List[Anomaly]:
        digits = validate_digits(recent_digits)
        current = digit_frequencies(digits)

        anomalies: List[Anomaly] = []
        anomalies.extend(self._frequency_anomalies(current))
        anomalies.extend(self._volatility_anomalies(current))
        anomalies.extend(self._pattern_anomalies(digits))
        anomalies.extend(self._distribution_anomalies(current))

        # sorted() is stable, so equal severities keep detection order
        return sorted(anomalies, key=lambda a: SEVERITY_RANK[a.severity], reverse=True)

    def _frequency_anomalies(self, current: np.ndarray) -> List[Anomaly]:
        th = self.thresholds
        found: List[Anomaly] = []
        for digit in range(10):
            freq = float(current[digit])
            baseline = float(self._baseline_frequency[digit])
            percent_change = abs(freq - baseline) / baseline * 100
            if percent_change <= th.frequency_deviation_pct:
                continue
            if percent_change > th.frequency_critical_pct:
                severity: Severity = "critical"
            elif percent_change > th.frequency_high_pct:
                severity = "high"
            else:
                severity = "medium"
            above = freq > baseline
            found.append(
                Anomaly(
                    type="frequency",
                    severity=severity,
                    description=(
                        f"Digit {digit} appearing {percent_change:.0f}% "
                        f"{'above' if above else 'below'} normal rate"
                    ),
                    affected_digits=[digit],
                    recommendation=(
                        f"Consider differing from digit {digit}"
                        if above
                        else f"Consider matching digit {digit} (overdue)"
                    ),
                )
            )
        return found

    def _volatility_anomalies(self, current: np.ndarray) -> List[Anomaly]:
        th = self.thresholds
        baseline = self._baseline_volatility
        volatility = std_about(current, IDEAL_FREQUENCY)
        change = abs(volatility - baseline)
        if change <= baseline * th.volatility_change_ratio:
            return []

        increased = volatility > baseline
        if baseline > 0:
            amount = f"{change / baseline * 100:.0f}%"
        else:
            # No relative change against a flat baseline; report percentage points.
            amount = f"{change:.1f} points"
        return [
            Anomaly(
                type="volatility",
                severity="high" if change > baseline * th.volatility_high_ratio else "medium",
                description=f"Market volatility {'increased' if increased else 'decreased'} by {amount}",
                affected_digits=[],
                recommendation=(
                    "Reduce stake size due to high volatility"
                    if increased
                    else "Stable market conditions detected"
                ),
            )
        ]

    def _pattern_anomalies(self, digits: Sequence[int]) -> List[Anomaly]:
        return [
            Anomaly(
                type="pattern",
                severity="medium",
                description=f"Unusual pattern detected: {text}",
                affected_digits=[],
                recommendation="Monitor for pattern continuation",
            )
            for text in unusual_sequences(digits, self.thresholds.streak_length)
        ]

    def _distribution_anomalies(self, current: np.ndarray) -> List[Anomaly]:
        th = self.thresholds
        score = uniformity(current)
        if score >= th.uniformity_floor:
            return []
        dominant = int(np.argmax(current))
        return [
            Anomaly(
                type="distribution",
                severity="high" if score < th.uniformity_high else "medium",
                description=f"Non-uniform distribution detected (uniformity: {score * 100:.0f}%)",
                affected_digits=[dominant],
                recommendation=f"Digit {dominant} is dominating - consider differing",
            )
        ]
