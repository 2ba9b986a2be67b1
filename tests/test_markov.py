from __future__ import annotations

import random

import numpy as np
import pytest

from digitcast.config import MarkovConfig
from digitcast.core.markov import build_markov


def test_raw_rows_sum_to_100() -> None:
    rng = random.Random(7)
    digits = [rng.randint(0, 9) for _ in range(500)]
    model = build_markov(digits)
    for d in range(10):
        if model.counts[d].sum() > 0:
            assert model.raw[d].sum() == pytest.approx(100.0)
    assert (model.matrix <= 100.0).all()
    assert (model.matrix >= model.raw).all()


def test_boost_can_push_row_above_100() -> None:
    # The decayed-count boost is added on top of normalized probabilities and
    # is intentionally left unnormalized.
    model = build_markov([3, 4, 3, 5])
    assert model.raw[3].sum() == pytest.approx(100.0)
    assert model.matrix[3].sum() > 100.0
    assert model.matrix[3][4] == pytest.approx(model.raw[3][4] + 0.99 ** 3 / 10)


def test_single_successor_is_capped() -> None:
    model = build_markov([0, 1, 0, 1])
    assert model.raw[0][1] == pytest.approx(100.0)
    assert model.matrix[0][1] == 100.0
    assert model.matrix[1][0] == 100.0
    assert not model.matrix[5].any()


def test_recent_transitions_weigh_more() -> None:
    model = build_markov([2, 7, 2, 8])
    assert model.raw[2][8] > model.raw[2][7]
    assert model.counts[2][8] == pytest.approx(0.99)
    assert model.counts[2][7] == pytest.approx(0.99 ** 3)


def test_no_decay_counts_transitions() -> None:
    model = build_markov([1, 1, 1, 2], MarkovConfig(decay=1.0))
    assert model.counts[1][1] == 2.0
    assert model.counts[1][2] == 1.0


def test_short_history_is_empty() -> None:
    for digits in ([], [4]):
        model = build_markov(digits)
        assert not model.counts.any()
        assert np.array_equal(model.matrix, np.zeros((10, 10)))
