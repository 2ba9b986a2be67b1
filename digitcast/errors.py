from __future__ import annotations


class DigitcastError(Exception):
    """Base class for errors raised by digitcast."""


class InvalidDigitError(DigitcastError, ValueError):
    """An observation is not an integer digit in [0, 9]."""


class InsufficientDataError(DigitcastError, ValueError):
    """Not enough observations to compute a statistic without dividing by zero."""


class ConfigError(DigitcastError, ValueError):
    """The YAML configuration could not be validated."""
