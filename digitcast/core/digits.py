from __future__ import annotations

import numbers
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Deque, Iterable, List, Optional, Sequence

import numpy as np

from ..errors import InsufficientDataError, InvalidDigitError

DIGITS = range(10)


def utc_now_ts() -> float:
    return datetime.now(timezone.utc).timestamp()


def validate_digits(digits: Iterable[int]) -> List[int]:
    """Return ``digits`` as a list of ints, rejecting anything outside 0-9."""
    out: List[int] = []
    for d in digits:
        if isinstance(d, bool) or not isinstance(d, numbers.Integral):
            raise InvalidDigitError(f"expected an integer digit, got {d!r}")
        d = int(d)
        if not 0 <= d <= 9:
            raise InvalidDigitError(f"digit out of range 0-9: {d}")
        out.append(d)
    return out


def digit_counts(digits: Sequence[int]) -> np.ndarray:
    return np.bincount(np.asarray(digits, dtype=np.int64), minlength=10)


def digit_frequencies(digits: Sequence[int]) -> np.ndarray:
    """Percentage share of each digit 0-9 in ``digits``."""
    if len(digits) == 0:
        raise InsufficientDataError("cannot compute digit frequencies of an empty sequence")
    return digit_counts(digits) / len(digits) * 100


def std_about(values: np.ndarray, mean: float) -> float:
    """Population standard deviation of ``values`` about a fixed ``mean``."""
    return float(np.sqrt(np.mean((np.asarray(values, dtype=float) - mean) ** 2)))


def last_digit(price: float, decimals: int = 2) -> int:
    """Last decimal digit of ``price`` quoted at ``decimals`` places.

    Quotes drop trailing zeros on the wire, so 1234.5 at 2 decimals is
    1234.50 and its last digit is 0.
    """
    quantum = Decimal(1).scaleb(-decimals)
    quoted = Decimal(str(price)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(str(quoted.copy_abs())[-1])


@dataclass
class ParitySplit:
    even: int
    odd: int

    @property
    def total(self) -> int:
        return self.even + self.odd

    @property
    def even_pct(self) -> float:
        return self.even / self.total * 100 if self.total else 0.0

    @property
    def odd_pct(self) -> float:
        return self.odd / self.total * 100 if self.total else 0.0


def parity_split(digits: Sequence[int]) -> ParitySplit:
    even = sum(1 for d in digits if d % 2 == 0)
    return ParitySplit(even=even, odd=len(digits) - even)


@dataclass
class TimedDigit:
    timestamp: float
    digit: int


class DigitBuffer:
    """Thread-safe bounded buffer of timestamped digits.

    The feed thread appends, strategy code snapshots. Oldest digits fall off
    once ``capacity`` is reached.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity: int = capacity
        self._buffer: Deque[TimedDigit] = deque(maxlen=capacity)
        self._lock = threading.RLock()

    def add(self, digit: int, timestamp: Optional[float] = None) -> None:
        (d,) = validate_digits([digit])
        ts = timestamp if timestamp is not None else utc_now_ts()
        with self._lock:
            self._buffer.append(TimedDigit(timestamp=ts, digit=d))

    def extend(self, digits: Iterable[int]) -> None:
        checked = validate_digits(digits)
        ts = utc_now_ts()
        with self._lock:
            self._buffer.extend(TimedDigit(timestamp=ts, digit=d) for d in checked)

    def size(self) -> int:
        with self._lock:
            return len(self._buffer)

    def capacity(self) -> int:
        return self._capacity

    def snapshot(self) -> List[TimedDigit]:
        with self._lock:
            return list(self._buffer)

    def digits(self) -> List[int]:
        with self._lock:
            return [item.digit for item in self._buffer]

    def last(self, n: int) -> List[int]:
        if n <= 0:
            return []
        with self._lock:
            return [item.digit for item in list(self._buffer)[-n:]]
