"""
Market calculations for Smart Trading Bot
Provides rate-of-change, volatility, extrema and level clustering helpers
"""

import numpy as np
from typing import List, Dict, Sequence

def calculate_roc(values: Sequence[float], period: int) -> float:
    """
    Calculate Rate of Change as a fraction

    Parameters:
    -----------
    values : Sequence[float]
        Input series, oldest first
    period : int
        Lookback in samples

    Returns:
    --------
    float
        (current - previous) / previous, 0 on insufficient history
    """
    if len(values) < period + 1:
        return 0.0
    current = values[-1]
    previous = values[-1 - period]
    if previous == 0:
        return 0.0
    return (current - previous) / previous

def calculate_volatility(closes: Sequence[float], min_samples: int = 20) -> float:
    """
    Calculate realized volatility as the population std of simple returns

    Parameters:
    -----------
    closes : Sequence[float]
        Prices to measure
    min_samples : int
        Below this many prices the default 0.02 is returned

    Returns:
    --------
    float
        Standard deviation of returns
    """
    if len(closes) < min_samples:
        return 0.02
    prices = np.asarray(closes, dtype=float)
    returns = np.diff(prices) / prices[:-1]
    if len(returns) == 0:
        return 0.0
    return float(np.std(returns))

def calculate_variance(values: Sequence[float]) -> float:
    """Population variance"""
    if len(values) == 0:
        return 0.0
    return float(np.var(np.asarray(values, dtype=float)))

def find_local_highs(closes: Sequence[float], span: int = 2) -> List[float]:
    """
    Find prices strictly above their span neighbours on each side

    Parameters:
    -----------
    closes : Sequence[float]
        Price series
    span : int
        Neighbours checked on each side

    Returns:
    --------
    List[float]
        Local highs, oldest first
    """
    highs = []
    for i in range(span, len(closes) - span):
        neighbours = list(closes[i - span:i]) + list(closes[i + 1:i + span + 1])
        if all(closes[i] > n for n in neighbours):
            highs.append(closes[i])
    return highs

def find_local_lows(closes: Sequence[float], span: int = 2) -> List[float]:
    """Find prices strictly below their span neighbours on each side"""
    lows = []
    for i in range(span, len(closes) - span):
        neighbours = list(closes[i - span:i]) + list(closes[i + 1:i + span + 1])
        if all(closes[i] < n for n in neighbours):
            lows.append(closes[i])
    return lows

def group_price_levels(
    extremes: Sequence[float],
    level_type: str,
    tolerance: float = 0.01,
    initial_strength: float = 0.3,
    strength_per_touch: float = 0.2
) -> List[Dict]:
    """
    Cluster extrema into support/resistance levels

    Parameters:
    -----------
    extremes : Sequence[float]
        Local highs or lows
    level_type : str
        'SUPPORT' or 'RESISTANCE'
    tolerance : float
        Relative distance within which prices join an existing level
    initial_strength : float
        Strength of a level touched once
    strength_per_touch : float
        Strength per touch once a level is revisited, capped at 1.0

    Returns:
    --------
    List[Dict]
        Levels with price, type, strength and touches
    """
    levels: List[Dict] = []
    for price in extremes:
        existing = next(
            (level for level in levels if abs(level['price'] - price) / price < tolerance),
            None
        )
        if existing:
            existing['touches'] += 1
            existing['strength'] = min(1.0, existing['touches'] * strength_per_touch)
        else:
            levels.append({
                'price': price,
                'type': level_type,
                'strength': initial_strength,
                'touches': 1
            })
    return levels

def calculate_risk_reward_ratio(
    entry: float,
    stop_loss: float,
    take_profit: float
) -> float:
    """
    Calculate Risk/Reward ratio

    Parameters:
    -----------
    entry : float
        Entry price
    stop_loss : float
        Stop loss price
    take_profit : float
        Take profit price

    Returns:
    --------
    float
        Risk/Reward ratio
    """
    risk = abs(entry - stop_loss)
    reward = abs(take_profit - entry)
    return reward / risk if risk > 0 else 0.0

def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Clamp value into [lower, upper]"""
    return max(lower, min(upper, value))
