from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .config import (
    BB_MULTIPLIER,
    BB_OVERBOUGHT,
    BB_OVERSOLD,
    BB_PERIOD,
    EMA_PERIOD,
    MA_LONG,
    MA_SHORT,
    MACD_FAST,
    MACD_SIGNAL,
    MACD_SLOW,
    RSI_NEUTRAL_VALUE,
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    RSI_PERIOD,
    VOLUME_BAND_PCT,
    VOLUME_PERIOD,
)
from .models import (
    BandPoint,
    BollingerBandsData,
    MACDData,
    MACDPoint,
    MovingAveragesData,
    OHLCVPoint,
    RSIData,
    RSIPoint,
    TechnicalIndicators,
    VolumeData,
)
from .series import ema, rolling_sma, sma, stddev


class SeriesOrderError(ValueError):
    pass


def validate_series(points: Sequence[OHLCVPoint]) -> None:
    """Reject series whose dates are not strictly ascending."""
    for prev, cur in zip(points, points[1:]):
        if cur.date == prev.date:
            raise SeriesOrderError(f"duplicate date {cur.date.isoformat()}")
        if cur.date < prev.date:
            raise SeriesOrderError(f"date {cur.date.isoformat()} follows {prev.date.isoformat()}")


def _closes(points: Sequence[OHLCVPoint]) -> np.ndarray:
    return np.array([p.close for p in points], dtype=float)


def calculate_rsi(points: Sequence[OHLCVPoint], period: int = RSI_PERIOD) -> RSIData:
    if len(points) < period + 1:
        return RSIData(value=RSI_NEUTRAL_VALUE, signal="neutral", history=[], available=False)

    deltas = np.diff(_closes(points))
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(gains[:period].mean())
    avg_loss = float(losses[:period].mean())

    history: list[RSIPoint] = []
    for i in range(period, len(points)):
        if i > period:
            # deltas[i - 1] is the change from day i-1 to day i
            avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
            avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        rs = 100.0 if avg_loss == 0 else avg_gain / avg_loss
        rsi = 100.0 - 100.0 / (1.0 + rs)
        history.append(RSIPoint(date=points[i].date, value=round(rsi, 2)))

    current = history[-1].value
    signal = "neutral"
    if current <= RSI_OVERSOLD:
        signal = "oversold"
    elif current >= RSI_OVERBOUGHT:
        signal = "overbought"
    return RSIData(value=current, signal=signal, history=history)


def calculate_macd(
    points: Sequence[OHLCVPoint],
    fast_period: int = MACD_FAST,
    slow_period: int = MACD_SLOW,
    signal_period: int = MACD_SIGNAL,
) -> MACDData:
    if len(points) < slow_period + signal_period:
        return MACDData(macd=0.0, signal=0.0, histogram=0.0, trend="neutral", history=[], available=False)

    closes = _closes(points)
    fast = ema(closes, fast_period)
    slow = ema(closes, slow_period)
    macd_line = fast[slow_period - 1 :] - slow[slow_period - 1 :]
    signal_line = ema(macd_line, signal_period)

    history: list[MACDPoint] = []
    for i in range(signal_period - 1, len(macd_line)):
        macd = float(macd_line[i])
        signal = float(signal_line[i])
        history.append(
            MACDPoint(
                date=points[slow_period - 1 + i].date,
                macd=round(macd, 4),
                signal=round(signal, 4),
                histogram=round(macd - signal, 4),
            )
        )

    latest = history[-1]
    trend = "neutral"
    if latest.histogram > 0 and latest.macd > latest.signal:
        trend = "bullish"
    elif latest.histogram < 0 and latest.macd < latest.signal:
        trend = "bearish"
    return MACDData(
        macd=latest.macd,
        signal=latest.signal,
        histogram=latest.histogram,
        trend=trend,
        history=history,
    )


def calculate_moving_averages(points: Sequence[OHLCVPoint]) -> MovingAveragesData:
    if len(points) < MA_LONG:
        return MovingAveragesData(
            sma20=0.0,
            sma50=0.0,
            ema20=0.0,
            price_vs_sma20="above",
            price_vs_sma50="above",
            signal="neutral",
            available=False,
        )

    closes = _closes(points)
    price = closes[-1]
    sma_short = sma(closes, MA_SHORT)
    sma_long = sma(closes, MA_LONG)
    ema_short = float(ema(closes, EMA_PERIOD)[-1])

    vs_short = "above" if price >= sma_short else "below"
    vs_long = "above" if price >= sma_long else "below"

    signal = "neutral"
    if vs_short == "above" and vs_long == "above" and sma_short > sma_long:
        signal = "bullish"
    elif vs_short == "below" and vs_long == "below" and sma_short < sma_long:
        signal = "bearish"

    return MovingAveragesData(
        sma20=round(sma_short, 2),
        sma50=round(sma_long, 2),
        ema20=round(ema_short, 2),
        price_vs_sma20=vs_short,
        price_vs_sma50=vs_long,
        signal=signal,
    )


def calculate_bollinger_bands(
    points: Sequence[OHLCVPoint],
    period: int = BB_PERIOD,
    multiplier: float = BB_MULTIPLIER,
) -> BollingerBandsData:
    if len(points) < period:
        return BollingerBandsData(
            upper=0.0, middle=0.0, lower=0.0, percent_b=50.0, signal="neutral", history=[], available=False
        )

    closes = _closes(points)
    history: list[BandPoint] = []
    for i in range(period - 1, len(closes)):
        window = closes[i - period + 1 : i + 1]
        mean = sma(window, period)
        sigma = stddev(window, period)
        history.append(
            BandPoint(
                date=points[i].date,
                upper=round(mean + multiplier * sigma, 2),
                middle=round(mean, 2),
                lower=round(mean - multiplier * sigma, 2),
            )
        )

    latest = history[-1]
    price = closes[-1]
    if latest.upper != latest.lower:
        percent_b = (price - latest.lower) / (latest.upper - latest.lower) * 100.0
    else:
        percent_b = 50.0

    signal = "neutral"
    if percent_b >= BB_OVERBOUGHT:
        signal = "overbought"
    elif percent_b <= BB_OVERSOLD:
        signal = "oversold"

    return BollingerBandsData(
        upper=latest.upper,
        middle=latest.middle,
        lower=latest.lower,
        percent_b=round(float(percent_b), 2),
        signal=signal,
        history=history,
    )


def calculate_volume_analysis(points: Sequence[OHLCVPoint], period: int = VOLUME_PERIOD) -> VolumeData:
    if len(points) < period:
        return VolumeData(current=0, average20=0, trend="average", percent_vs_average=0.0, available=False)

    volumes = np.array([p.volume for p in points], dtype=float)
    current = int(volumes[-1])
    average = float(volumes[-period:].mean())
    percent = (current - average) / average * 100.0 if average > 0 else 0.0

    trend = "average"
    if percent > VOLUME_BAND_PCT:
        trend = "above_average"
    elif percent < -VOLUME_BAND_PCT:
        trend = "below_average"

    return VolumeData(
        current=current,
        average20=int(round(average)),
        trend=trend,
        percent_vs_average=round(percent, 2),
    )


def calculate_all_indicators(points: Sequence[OHLCVPoint]) -> TechnicalIndicators:
    return TechnicalIndicators(
        rsi=calculate_rsi(points),
        macd=calculate_macd(points),
        moving_averages=calculate_moving_averages(points),
        bollinger_bands=calculate_bollinger_bands(points),
        volume=calculate_volume_analysis(points),
    )


def sma_history(points: Sequence[OHLCVPoint], period: int) -> list[dict]:
    """Date-aligned SMA values for charting, starting at index ``period - 1``."""
    values = rolling_sma(_closes(points), period)
    return [
        {"date": points[i].date.isoformat(), "value": round(float(values[i]), 2)}
        for i in range(period - 1, len(points))
    ]


def volume_history(points: Sequence[OHLCVPoint], period: int = VOLUME_PERIOD) -> list[dict]:
    volumes = np.array([p.volume for p in points], dtype=float)
    averages = rolling_sma(volumes, period)
    return [
        {"date": points[i].date.isoformat(), "volume": int(points[i].volume), "avg": int(round(averages[i]))}
        for i in range(period - 1, len(points))
    ]
