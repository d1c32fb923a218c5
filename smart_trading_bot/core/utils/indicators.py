"""
Technical indicators calculation module
"""

from typing import List, Dict, Optional, Sequence, Tuple
import numpy as np

# Approximation used when a tick carries no high/low
HIGH_APPROX = 1.001
LOW_APPROX = 0.999

def calculate_rsi(closes: Sequence[float], period: int = 14) -> float:
    """
    Calculate Relative Strength Index

    Parameters:
    -----------
    closes : Sequence[float]
        List of closing prices
    period : int
        RSI period

    Returns:
    --------
    float
        RSI value
    """
    try:
        if len(closes) < period + 1:
            return 50.0

        deltas = np.diff(np.asarray(closes, dtype=float))
        gains = np.where(deltas > 0, deltas, 0)
        losses = np.where(deltas < 0, -deltas, 0)

        avg_gain = np.mean(gains[-period:])
        avg_loss = np.mean(losses[-period:])

        if avg_loss == 0:
            return 100.0

        rs = avg_gain / avg_loss
        rsi = 100 - (100 / (1 + rs))

        return float(rsi)

    except Exception:
        return 50.0

def calculate_sma(values: Sequence[float], period: int) -> float:
    """
    Calculate Simple Moving Average over the last min(period, len) values

    Parameters:
    -----------
    values : Sequence[float]
        Input series
    period : int
        SMA period

    Returns:
    --------
    float
        SMA value, 0 for an empty series
    """
    if len(values) == 0:
        return 0.0
    window = np.asarray(values[-min(period, len(values)):], dtype=float)
    return float(np.mean(window))

def calculate_ema(values: Sequence[float], period: int) -> float:
    """
    Calculate Exponential Moving Average seeded with the first value

    Parameters:
    -----------
    values : Sequence[float]
        Input series, oldest first
    period : int
        EMA period

    Returns:
    --------
    float
        EMA value, 0 for an empty series
    """
    if len(values) == 0:
        return 0.0

    multiplier = 2 / (period + 1)
    ema = float(values[0])
    for value in values[1:]:
        ema = (float(value) - ema) * multiplier + ema
    return ema

def calculate_macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26
) -> Dict[str, float]:
    """
    Calculate MACD with the simplified signal line (macd * 0.9)

    Parameters:
    -----------
    closes : Sequence[float]
        List of closing prices
    fast : int
        Fast EMA period
    slow : int
        Slow EMA period

    Returns:
    --------
    Dict[str, float]
        macd, signal and histogram values
    """
    macd_line = calculate_ema(closes, fast) - calculate_ema(closes, slow)
    signal_line = macd_line * 0.9
    return {
        "macd": macd_line,
        "signal": signal_line,
        "histogram": macd_line - signal_line
    }

def calculate_bollinger_bands(
    closes: Sequence[float],
    period: int = 20,
    multiplier: float = 2.0
) -> Dict[str, float]:
    """
    Calculate Bollinger Bands using the population standard deviation

    Parameters:
    -----------
    closes : Sequence[float]
        List of closing prices
    period : int
        Window length
    multiplier : float
        Standard deviation multiplier

    Returns:
    --------
    Dict[str, float]
        upper, middle and lower bands
    """
    middle = calculate_sma(closes, period)
    window = np.asarray(closes[-min(period, len(closes)):], dtype=float)
    std_dev = float(np.sqrt(np.mean((window - middle) ** 2))) if len(window) else 0.0
    return {
        "upper": middle + std_dev * multiplier,
        "middle": middle,
        "lower": middle - std_dev * multiplier
    }

def fill_highs_lows(
    closes: Sequence[float],
    highs: Optional[Sequence[Optional[float]]] = None,
    lows: Optional[Sequence[Optional[float]]] = None
) -> Tuple[List[float], List[float]]:
    """Replace missing highs/lows with the close-based approximation"""
    filled_highs = []
    filled_lows = []
    for i, close in enumerate(closes):
        high = highs[i] if highs is not None and i < len(highs) else None
        low = lows[i] if lows is not None and i < len(lows) else None
        filled_highs.append(float(high) if high else close * HIGH_APPROX)
        filled_lows.append(float(low) if low else close * LOW_APPROX)
    return filled_highs, filled_lows

def calculate_true_ranges(
    closes: Sequence[float],
    highs: Optional[Sequence[Optional[float]]] = None,
    lows: Optional[Sequence[Optional[float]]] = None
) -> List[float]:
    """
    Calculate true ranges for every sample after the first

    Parameters:
    -----------
    closes : Sequence[float]
        List of closing prices
    highs : Sequence[Optional[float]], optional
        Sample highs, None entries are approximated
    lows : Sequence[Optional[float]], optional
        Sample lows, None entries are approximated

    Returns:
    --------
    List[float]
        max(high-low, |high-prevClose|, |low-prevClose|) per sample
    """
    filled_highs, filled_lows = fill_highs_lows(closes, highs, lows)
    ranges = []
    for i in range(1, len(closes)):
        high = filled_highs[i]
        low = filled_lows[i]
        prev_close = closes[i - 1]
        ranges.append(max(high - low, abs(high - prev_close), abs(low - prev_close)))
    return ranges

def calculate_atr(
    closes: Sequence[float],
    highs: Optional[Sequence[Optional[float]]] = None,
    lows: Optional[Sequence[Optional[float]]] = None,
    period: int = 14
) -> float:
    """
    Calculate Average True Range over the last period true ranges

    Returns:
    --------
    float
        ATR value, 0 when fewer than two samples are available
    """
    true_ranges = calculate_true_ranges(closes, highs, lows)
    if not true_ranges:
        return 0.0
    return calculate_sma(true_ranges, period)

def calculate_stochastic(
    closes: Sequence[float],
    highs: Optional[Sequence[Optional[float]]] = None,
    lows: Optional[Sequence[Optional[float]]] = None,
    period: int = 14
) -> Dict[str, float]:
    """
    Calculate Stochastic oscillator, %D simplified as %K * 0.9

    Returns:
    --------
    Dict[str, float]
        k and d values, 50/50 on insufficient history or a flat range
    """
    if len(closes) < period:
        return {"k": 50.0, "d": 50.0}

    filled_highs, filled_lows = fill_highs_lows(closes, highs, lows)
    highest_high = max(filled_highs[-period:])
    lowest_low = min(filled_lows[-period:])
    if highest_high == lowest_low:
        return {"k": 50.0, "d": 50.0}

    k = (closes[-1] - lowest_low) / (highest_high - lowest_low) * 100
    return {"k": float(k), "d": float(k * 0.9)}
