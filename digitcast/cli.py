from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import AppConfig, load_config
from .core.anomaly import AnomalyDetector
from .core.backtest import WARMUP, BacktestEngine, BacktestResult
from .core.digits import DigitBuffer, parity_split
from .core.ensemble import EnsemblePredictor
from .core.tracker import PredictionTracker
from .data.history import load_digits
from .errors import DigitcastError
from .utils.logging import bind_context, setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Last-digit prediction, anomaly detection and backtesting.")

HistoryArg = typer.Argument(..., exists=True, dir_okay=False, help="CSV of ticks with a digit or price column")
ConfigOpt = typer.Option(None, "--config", help="YAML runtime configuration")


def _prepare(
    command: str, history: Path, config: Optional[Path], log_level: Optional[str] = None
) -> tuple[AppConfig, List[int]]:
    cfg = load_config(config)
    setup_logging(log_level or cfg.env.LOG_LEVEL)
    bind_context(command=command, history=str(history))
    digits = load_digits(history, decimals=cfg.runtime.pip_decimals)
    return cfg, digits


def _build_predictor(cfg: AppConfig, digits: List[int]) -> EnsemblePredictor:
    rt = cfg.runtime
    return EnsemblePredictor(digits, weights=rt.weights, buckets=rt.confidence, markov_config=rt.markov)


def _fail(exc: Exception) -> typer.Exit:
    logger.error("command failed", extra={"error": str(exc)})
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=1)


def _echo_result(label: str, r: BacktestResult) -> None:
    typer.echo(
        f"{label}: scored={r.scored} TP={r.true_positives} FP={r.false_positives} "
        f"acc={r.accuracy:.2f}% precision={r.precision:.2f}% recall={r.recall:.2f}% "
        f"f1={r.f1_score:.2f} pnl={r.profit_loss:+.2f}"
    )


@app.command()
def predict(
    history: Path = HistoryArg,
    steps: Optional[int] = typer.Option(None, min=1, help="Prediction horizon"),
    config: Optional[Path] = ConfigOpt,
) -> None:
    """Forecast the next digits from the whole history."""
    try:
        cfg, digits = _prepare("predict", history, config)
        predictor = _build_predictor(cfg, digits)
        recent = digits[-cfg.runtime.recent_window:]
        for p in predictor.predict_next_n(recent, steps or cfg.runtime.steps):
            typer.echo(f"step {p.step}: digit={p.digit} score={p.probability:.2f} confidence={p.confidence}")
    except DigitcastError as exc:
        raise _fail(exc) from exc


@app.command()
def patterns(
    history: Path = HistoryArg,
    min_confidence: Optional[float] = typer.Option(None, help="Minimum pattern confidence"),
    config: Optional[Path] = ConfigOpt,
) -> None:
    """List learned patterns matching the latest digits."""
    try:
        cfg, digits = _prepare("patterns", history, config)
        predictor = _build_predictor(cfg, digits)
        threshold = cfg.runtime.min_pattern_confidence if min_confidence is None else min_confidence
        found = predictor.recognizer.detect_patterns(digits[-cfg.runtime.recent_window:], threshold)
        if not found:
            typer.echo("No patterns above threshold.")
        for p in found:
            seq = "-".join(str(d) for d in p.sequence)
            typer.echo(f"{seq}: frequency={p.frequency} confidence={p.confidence:.2f} last_seen={p.last_seen}")
    except DigitcastError as exc:
        raise _fail(exc) from exc


@app.command()
def detect(
    history: Path = HistoryArg,
    window: Optional[int] = typer.Option(None, min=1, help="Recent digits scored against the baseline"),
    config: Optional[Path] = ConfigOpt,
) -> None:
    """Calibrate on older digits and flag anomalies in the latest window."""
    try:
        cfg, digits = _prepare("detect", history, config)
        size = window or cfg.runtime.recent_window
        detector = AnomalyDetector(cfg.runtime.anomaly)
        detector.calibrate(digits[:-size] if len(digits) > size else digits)
        anomalies = detector.detect(digits[-size:])
        if not anomalies:
            typer.echo("No anomalies detected.")
        for a in anomalies:
            typer.echo(f"[{a.severity}] {a.type}: {a.description} -> {a.recommendation}")
    except DigitcastError as exc:
        raise _fail(exc) from exc


@app.command()
def backtest(
    history: Path = HistoryArg,
    strategy: str = typer.Option("compare", help="match, differ or compare"),
    train_ratio: float = typer.Option(0.5, min=0.05, max=0.95, help="Share of history used to build the predictor"),
    config: Optional[Path] = ConfigOpt,
) -> None:
    """Build a predictor on the head of the history and replay the tail."""
    try:
        cfg, digits = _prepare("backtest", history, config)
        split = int(len(digits) * train_ratio)
        predictor = _build_predictor(cfg, digits[:split])
        test_data = digits[split:]
        if len(test_data) <= WARMUP + 1:
            typer.echo(f"Warning: test segment has {len(test_data)} digits; nothing past the {WARMUP}-digit warm-up")
        engine = BacktestEngine(cfg.runtime.backtest)
        if strategy == "compare":
            for c in engine.compare_strategies(predictor, test_data):
                _echo_result(c.strategy, c.result)
        elif strategy in ("match", "differ"):
            _echo_result(strategy.capitalize(), engine.backtest(predictor, test_data, strategy))  # type: ignore[arg-type]
        else:
            raise typer.BadParameter("strategy must be match, differ or compare", param_hint="--strategy")
    except DigitcastError as exc:
        raise _fail(exc) from exc


@app.command()
def digits(
    history: Path = HistoryArg,
    count: int = typer.Option(20, min=1, help="How many latest digits to show"),
    config: Optional[Path] = ConfigOpt,
) -> None:
    """Show the latest digits and the even/odd split."""
    try:
        _, seq = _prepare("digits", history, config)
        split = parity_split(seq)
        typer.echo(" ".join(str(d) for d in seq[-count:]))
        typer.echo(f"last digit: {seq[-1] if seq else '-'}")
        typer.echo(f"even={split.even_pct:.1f}% odd={split.odd_pct:.1f}% total={split.total}")
    except DigitcastError as exc:
        raise _fail(exc) from exc


@app.command()
def replay(
    history: Path = HistoryArg,
    retrain_every: Optional[int] = typer.Option(None, min=1, help="Ticks between predictor rebuilds"),
    config: Optional[Path] = ConfigOpt,
    log_level: str = typer.Option("WARNING"),
) -> None:
    """Stream the history tick by tick, predicting and settling each next digit."""
    try:
        cfg, seq = _prepare("replay", history, config, log_level)
        rt = cfg.runtime
        every = retrain_every or rt.retrain_every
        buffer = DigitBuffer(capacity=rt.buffer_size)
        tracker = PredictionTracker(rt.backtest)
        predictor: Optional[EnsemblePredictor] = None
        since_build = 0

        for i, digit in enumerate(seq):
            tracker.resolve(digit)
            buffer.add(digit, timestamp=float(i))
            if buffer.size() < WARMUP:
                continue
            if predictor is None or since_build >= every:
                predictor = _build_predictor(cfg, buffer.digits())
                since_build = 0
            since_build += 1
            predictions = predictor.predict_next_n(buffer.last(rt.recent_window), 1)
            if predictions:
                p = predictions[0]
                tracker.record("match", p.digit, p.probability)
                tracker.record("differ", p.digit, p.probability)

        for name, tally in sorted(tracker.stats().items()):
            typer.echo(
                f"{name}: trades={tally.total} wins={tally.true_positives} "
                f"acc={tally.accuracy:.2f}% pnl={tally.profit_loss:+.2f}"
            )
        typer.echo(f"pending={tracker.pending()}")
    except DigitcastError as exc:
        raise _fail(exc) from exc


if __name__ == "__main__":
    app()
