from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Iterator

import pytest
from typer.testing import CliRunner

from digitcast.cli import app
from digitcast.utils.logging import clear_context

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logging.getLogger().handlers.clear()
    clear_context()


@pytest.fixture
def history(tmp_path: Path) -> Path:
    rng = random.Random(3)
    path = tmp_path / "ticks.csv"
    rows = "\n".join(str(rng.randint(0, 9)) for _ in range(300))
    path.write_text("digit\n" + rows + "\n", encoding="utf-8")
    return path


def test_predict(history: Path) -> None:
    result = runner.invoke(app, ["predict", str(history), "--steps", "3"])
    assert result.exit_code == 0, result.output
    assert "step 1: digit=" in result.output


def test_patterns(history: Path) -> None:
    result = runner.invoke(app, ["patterns", str(history), "--min-confidence", "0"])
    assert result.exit_code == 0, result.output
    assert "frequency=" in result.output


def test_detect(history: Path) -> None:
    result = runner.invoke(app, ["detect", str(history), "--window", "40"])
    assert result.exit_code == 0, result.output


def test_backtest_compare(history: Path) -> None:
    result = runner.invoke(app, ["backtest", str(history)])
    assert result.exit_code == 0, result.output
    assert "Match: scored=" in result.output
    assert "Differ: scored=" in result.output


def test_backtest_single_strategy(history: Path) -> None:
    result = runner.invoke(app, ["backtest", str(history), "--strategy", "differ"])
    assert result.exit_code == 0, result.output
    assert "Differ: scored=" in result.output
    assert "Match:" not in result.output


def test_digits(history: Path) -> None:
    result = runner.invoke(app, ["digits", str(history), "--count", "5"])
    assert result.exit_code == 0, result.output
    assert "even=" in result.output


def test_replay(history: Path) -> None:
    result = runner.invoke(app, ["replay", str(history), "--retrain-every", "50"])
    assert result.exit_code == 0, result.output
    assert "match: trades=" in result.output
    assert "differ: trades=" in result.output


def test_invalid_history_exits_with_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("digit\n1\n12\n", encoding="utf-8")
    result = runner.invoke(app, ["predict", str(path)])
    assert result.exit_code == 1


def test_non_numeric_history_exits_cleanly(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("digit\n1\nx\n", encoding="utf-8")
    result = runner.invoke(app, ["predict", str(path)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
