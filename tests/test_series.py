import math

import numpy as np

from stocksim.series import ema, rolling_sma, sma, stddev


def test_sma_uses_trailing_window():
    assert sma([1, 2, 3, 4, 5], 2) == 4.5
    assert sma([1, 2, 3, 4, 5], 5) == 3.0


def test_sma_short_input_is_zero():
    assert sma([1.0, 2.0], 3) == 0.0


def test_ema_is_seeded_by_sma_and_aligned():
    out = ema([1, 2, 3, 4, 5], 3)
    assert len(out) == 5
    assert math.isnan(out[0]) and math.isnan(out[1])
    assert out[2] == 2.0
    assert out[3] == 3.0
    assert out[4] == 4.0


def test_ema_short_input_is_all_nan():
    assert np.isnan(ema([1, 2], 3)).all()


def test_stddev_is_population():
    assert stddev([2, 4, 4, 4, 5, 5, 7, 9], 8) == 2.0
    assert stddev([10, 2, 4, 4, 4, 5, 5, 7, 9], 8) == 2.0
    assert stddev([1.0], 2) == 0.0


def test_rolling_sma_pads_warmup():
    out = rolling_sma([1, 2, 3, 4], 2)
    assert math.isnan(out[0])
    assert out[1:].tolist() == [1.5, 2.5, 3.5]
