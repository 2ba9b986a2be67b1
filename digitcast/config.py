from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError


class EnsembleWeights(BaseModel):
    """Weights applied to each signal when scoring a candidate digit."""

    pattern: float = Field(0.5, ge=0.0, description="Weight of pattern-prefix candidates")
    markov: float = Field(0.35, ge=0.0, description="Weight of the decayed Markov row")
    frequency: float = Field(0.15, ge=0.0, description="Weight of raw digit frequency")


class ConfidenceBuckets(BaseModel):
    """Ensemble score thresholds for the confidence labels."""

    very_high: float = 80.0
    high: float = 65.0
    medium: float = 50.0

    @model_validator(mode="after")
    def _ordered(self) -> "ConfidenceBuckets":
        if not (self.very_high >= self.high >= self.medium):
            raise ValueError("confidence buckets must satisfy very_high >= high >= medium")
        return self


class MarkovConfig(BaseModel):
    decay: float = Field(0.99, gt=0.0, le=1.0, description="Per-step temporal decay factor")
    boost_divisor: float = Field(10.0, gt=0.0, description="Decayed count / this is added to each cell")


class AnomalyThresholds(BaseModel):
    frequency_deviation_pct: float = Field(50.0, description="Flag a digit above this % deviation")
    frequency_high_pct: float = 75.0
    frequency_critical_pct: float = 100.0
    volatility_change_ratio: float = Field(0.5, description="Flag when |change| exceeds this share of baseline")
    volatility_high_ratio: float = 1.0
    streak_length: int = Field(5, ge=2, description="Shortest identical-digit streak reported")
    uniformity_floor: float = Field(0.7, description="Flag distributions less uniform than this")
    uniformity_high: float = 0.5


class BacktestConfig(BaseModel):
    stake: float = Field(1.0, gt=0.0)
    match_payout: float = Field(0.95, description="Profit per unit stake on a winning match trade")
    differ_payout: float = Field(0.90, description="Profit per unit stake on a winning differ trade")


class RuntimeConfig(BaseModel):
    steps: int = Field(5, ge=1, description="Default prediction horizon")
    recent_window: int = Field(50, ge=1, description="Number of latest digits treated as 'recent'")
    min_pattern_confidence: float = 60.0
    pip_decimals: int = Field(2, ge=0, description="Decimals used to take the last digit of a price")
    buffer_size: int = 10_000
    retrain_every: int = Field(100, ge=1, description="Ticks between predictor rebuilds during replay")
    weights: EnsembleWeights = Field(default_factory=EnsembleWeights)
    confidence: ConfidenceBuckets = Field(default_factory=ConfidenceBuckets)
    markov: MarkovConfig = Field(default_factory=MarkovConfig)
    anomaly: AnomalyThresholds = Field(default_factory=AnomalyThresholds)
    backtest: BacktestConfig = Field(default_factory=BacktestConfig)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    LOG_LEVEL: str = "INFO"
    DIGITCAST_CONFIG: Optional[str] = None


class AppConfig(BaseModel):
    env: EnvSettings
    runtime: RuntimeConfig

    @staticmethod
    def load(config_path: Optional[Path] = None) -> "AppConfig":
        env = EnvSettings()  # loads from environment and .env

        runtime = RuntimeConfig()
        if config_path is None:
            if env.DIGITCAST_CONFIG:
                config_path = Path(env.DIGITCAST_CONFIG)
            else:
                default_path = Path("config.yaml")
                config_path = default_path if default_path.exists() else None

        if config_path and Path(config_path).exists():
            with open(config_path, "r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            try:
                runtime = RuntimeConfig(**raw)
            except ValidationError as ve:
                raise ConfigError(f"Invalid {config_path}: {ve}") from ve

        return AppConfig(env=env, runtime=runtime)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load merged configuration from environment and optional YAML."""

    return AppConfig.load(config_path)
