from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from digitcast.data.history import digits_from_frame, load_digits
from digitcast.errors import InsufficientDataError, InvalidDigitError


def test_load_price_column(tmp_path: Path) -> None:
    path = tmp_path / "ticks.csv"
    path.write_text("epoch,quote\n3,1234.5\n1,1234.56\n2,1234.61\n", encoding="utf-8")
    # rows are reordered by epoch before the last digit is taken
    assert load_digits(path) == [6, 1, 0]
    assert load_digits(path, decimals=1) == [6, 6, 5]


def test_load_digit_column(tmp_path: Path) -> None:
    path = tmp_path / "digits.csv"
    path.write_text("Digit\n4\n0\n9\n", encoding="utf-8")
    assert load_digits(path) == [4, 0, 9]


def test_explicit_column_and_missing_values() -> None:
    df = pd.DataFrame({"bid": [10.25, None, 10.37], "quote": [1.0, 2.0, 3.0]})
    assert digits_from_frame(df, column="bid") == [5, 7]


def test_invalid_digit_column() -> None:
    with pytest.raises(InvalidDigitError):
        digits_from_frame(pd.DataFrame({"digit": [3, 11]}))


def test_fractional_digits_are_rejected() -> None:
    with pytest.raises(InvalidDigitError):
        digits_from_frame(pd.DataFrame({"digit": [3.7, 9.9, None]}))


def test_whole_float_digits_are_accepted() -> None:
    # a missing cell turns the column into float64
    assert digits_from_frame(pd.DataFrame({"digit": [3.0, None, 9.0]})) == [3, 9]


def test_non_numeric_cells_are_rejected() -> None:
    with pytest.raises(InvalidDigitError):
        digits_from_frame(pd.DataFrame({"digit": ["1", "x"]}))
    with pytest.raises(InvalidDigitError):
        digits_from_frame(pd.DataFrame({"quote": ["1234.5", "n/a"]}))


def test_no_usable_column() -> None:
    with pytest.raises(InsufficientDataError):
        digits_from_frame(pd.DataFrame({"volume": [1, 2]}))


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_digits(tmp_path / "nope.csv")
