"""Trading configuration parameters"""

FUSION_WEIGHTS = {
    'technical': 0.25,
    'momentum': 0.20,
    'volume': 0.15,
    'patterns': 0.15,
    'levels': 0.10,
    'structure': 0.10,
    'sentiment': 0.03,
    'ml': 0.02
}

TECHNICAL_PARAMS = {
    'rsi_period': 14,
    'rsi_overbought': 70,
    'rsi_oversold': 30,
    'rsi_overbought_volatile': 75,
    'rsi_oversold_volatile': 25,
    'volatile_threshold': 0.05,
    'macd_sets': [(5, 13), (12, 26), (26, 52)],
    'bollinger_period': 20,
    'bollinger_k': 2.0,
    'squeeze_width': 0.02,
    'ema_cascade': (8, 21, 55),
    'sma_long': 200,
    'stoch_period': 14,
    'stoch_oversold': 20,
    'stoch_overbought': 80,
    'atr_period': 14,
    'volatility_window': 20
}

INDICATOR_PARAMS = {
    'history_capacity': 50,
    'min_history': 20,
    'macd_fast': 12,
    'macd_slow': 26,
    'ma_period': 20
}

SIGNAL_THRESHOLDS = {
    'min_history': 50,
    'strong_buy': (0.8, 80),
    'buy': (0.65, 65),
    'strong_sell': (0.2, 80),
    'sell': (0.35, 65),
    'min_stop_fraction': 0.015,
    'atr_stop_multiplier': 2.0,
    'reward_ratio': 3.0,
    'base_position_size': 0.02,
    'min_position_size': 0.005,
    'max_position_size': 0.05,
    'risk_size_multipliers': {'LOW': 1.5, 'HIGH': 0.5}
}

SIGNAL_RISK_SCORES = {
    'extreme_volatility': (0.08, 40),
    'high_volatility': (0.05, 25),
    'moderate_volatility': (0.03, 10),
    'momentum': (0.1, 20),
    'low_volume': (0.3, 15),
    'off_hours': 10,
    'levels': [(60, 'EXTREME'), (40, 'HIGH'), (20, 'MEDIUM'), (10, 'LOW')]
}

OPEN_CONDITIONS = {
    'min_confidence': 85,
    'min_probability': 0.8,
    'max_drawdown': 0.10,
    'min_balance_ratio': 0.95,
    'min_history': 50
}

CLOSE_CONDITIONS = {
    'min_confidence': 50,
    'trail_activation': 0.01
}

RISK_PARAMS = {
    'default_risk_reward': 2.0,
    'atr_stop_multiplier': 1.5,
    'min_position_size': 0.001,
    'market_risk_levels': [(75, 'EXTREME'), (50, 'HIGH'), (25, 'MEDIUM')],
    'size_multipliers': {'LOW': 1.0, 'MEDIUM': 0.8, 'HIGH': 0.5, 'EXTREME': 0.25}
}

SESSION_VOLATILITY = {
    'london': ((8, 17), 1.8),
    'new_york': ((13, 22), 2.2),
    'asia': 1.3,
    'quiet': 0.8
}

SYNTHETIC_PARAMS = {
    'base_price': 45000.0,
    'base_volume': 800000.0,
    'momentum_carry': 0.15,
    'noise': 0.005
}

ACTION_LOG_LIMIT = 50
LEARNING_HISTORY_LIMIT = 50
