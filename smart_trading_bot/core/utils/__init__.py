"""
Smart Trading Bot Utilities Module
Contains indicator kernels, market calculations and validators
"""

# Module information
__version__ = "2.0.0"
__author__ = "Anhbaza"
__created_at__ = "2025-06-02 09:22:07"

# Import utilities
from .indicators import (
    calculate_rsi,
    calculate_sma,
    calculate_ema,
    calculate_macd,
    calculate_bollinger_bands,
    calculate_true_ranges,
    calculate_atr,
    calculate_stochastic
)

from .calculations import (
    calculate_roc,
    calculate_volatility,
    calculate_variance,
    find_local_highs,
    find_local_lows,
    group_price_levels,
    calculate_risk_reward_ratio,
    clamp
)

from .validators import (
    validate_price,
    validate_symbol,
    validate_trade_parameters
)

# Export all utilities
__all__ = [
    # Indicators
    'calculate_rsi',
    'calculate_sma',
    'calculate_ema',
    'calculate_macd',
    'calculate_bollinger_bands',
    'calculate_true_ranges',
    'calculate_atr',
    'calculate_stochastic',

    # Calculations
    'calculate_roc',
    'calculate_volatility',
    'calculate_variance',
    'find_local_highs',
    'find_local_lows',
    'group_price_levels',
    'calculate_risk_reward_ratio',
    'clamp',

    # Validators
    'validate_price',
    'validate_symbol',
    'validate_trade_parameters'
]
