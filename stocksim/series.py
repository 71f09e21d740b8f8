from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def sma(values: Sequence[float], period: int) -> float:
    if period <= 0 or len(values) < period:
        return 0.0
    window = np.asarray(values[-period:], dtype=float)
    return float(window.mean())


def ema(values: Sequence[float], period: int) -> np.ndarray:
    """EMA aligned to ``values``; entries before ``period - 1`` are NaN."""
    arr = np.asarray(values, dtype=float)
    out = np.full(len(arr), np.nan)
    if period <= 0 or len(arr) < period:
        return out

    k = 2.0 / (period + 1)
    out[period - 1] = arr[:period].mean()
    for i in range(period, len(arr)):
        out[i] = (arr[i] - out[i - 1]) * k + out[i - 1]
    return out


def stddev(values: Sequence[float], period: int) -> float:
    if period <= 0 or len(values) < period:
        return 0.0
    window = np.asarray(values[-period:], dtype=float)
    return float(np.sqrt(np.mean((window - window.mean()) ** 2)))


def rolling_sma(values: Sequence[float], period: int) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if period <= 0 or len(arr) < period:
        return np.full(len(arr), np.nan)
    valid = np.convolve(arr, np.ones(period) / period, mode="valid")
    return np.concatenate([np.full(period - 1, np.nan), valid])
