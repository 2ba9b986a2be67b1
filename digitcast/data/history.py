from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from ..core.digits import last_digit, validate_digits
from ..errors import InsufficientDataError, InvalidDigitError

logger = logging.getLogger(__name__)

DIGIT_COLUMNS = ("digit", "last_digit")
PRICE_COLUMNS = ("quote", "price", "close")


def digits_from_frame(df: pd.DataFrame, column: Optional[str] = None, decimals: int = 2) -> List[int]:
    """Extract the digit stream from a tick frame.

    A digit column is used as-is; a price column is reduced to the last digit
    of each quote at ``decimals`` places. Rows with a missing value are dropped.
    """
    if column is None:
        lowered = {c.lower(): c for c in df.columns}
        for name in DIGIT_COLUMNS + PRICE_COLUMNS:
            if name in lowered:
                column = lowered[name]
                break
    if column is None or column not in df.columns:
        raise InsufficientDataError(
            f"no usable column in {list(df.columns)}; expected one of {DIGIT_COLUMNS + PRICE_COLUMNS}"
        )

    series = df[column].dropna()
    if column.lower() in DIGIT_COLUMNS:
        try:
            # Int64 refuses lossy casts, so 3.7 fails instead of truncating to 3
            values = pd.to_numeric(series).astype("Int64")
        except (TypeError, ValueError) as exc:
            raise InvalidDigitError(f"column {column!r} holds values that are not whole digits") from exc
        return validate_digits(values.tolist())
    try:
        prices = pd.to_numeric(series)
    except (TypeError, ValueError) as exc:
        raise InvalidDigitError(f"column {column!r} holds non-numeric quotes") from exc
    return [last_digit(float(v), decimals) for v in prices]


def load_digits(path: Union[str, Path], column: Optional[str] = None, decimals: int = 2) -> List[int]:
    """Load a digit history from a CSV of ticks, oldest first."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"history file not found: {path}")
    df = pd.read_csv(path)
    if "epoch" in df.columns:
        df = df.sort_values("epoch", kind="stable")
    digits = digits_from_frame(df, column=column, decimals=decimals)
    logger.info("loaded digit history", extra={"path": str(path), "digits": len(digits)})
    return digits
