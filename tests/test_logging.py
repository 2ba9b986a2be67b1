from __future__ import annotations

import json
import logging
from typing import Iterator

import numpy as np
import pytest

from digitcast.utils.logging import JsonFormatter, bind_context, clear_context


@pytest.fixture(autouse=True)
def _clean_context() -> Iterator[None]:
    yield
    clear_context()


def make_record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord("digitcast.test", logging.INFO, __file__, 1, "built %s", ("predictor",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_payload_carries_service_and_extras() -> None:
    payload = json.loads(JsonFormatter().format(make_record(history_length=300)))
    assert payload["service"] == "digitcast"
    assert payload["message"] == "built predictor"
    assert payload["level"] == "INFO"
    assert payload["history_length"] == 300
    assert "args" not in payload


def test_bound_context_is_stamped_on_records() -> None:
    bind_context(command="detect")
    bind_context(history="ticks.csv")
    payload = json.loads(JsonFormatter().format(make_record()))
    assert payload["command"] == "detect"
    assert payload["history"] == "ticks.csv"
    clear_context()
    assert "command" not in json.loads(JsonFormatter().format(make_record()))


def test_numpy_values_serialize_natively() -> None:
    payload = json.loads(
        JsonFormatter().format(make_record(volatility=np.float64(6.5), counts=np.array([1, 2])))
    )
    assert payload["volatility"] == 6.5
    assert payload["counts"] == [1, 2]
