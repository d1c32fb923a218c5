"""
Indicator calculator component
Maintains a bounded tick history and recomputes the indicator snapshot
"""

import logging
from collections import deque
from typing import Dict, List, Optional

from ..models import PriceSample, Indicators, MACD, BollingerBands
from ..utils.indicators import (
    calculate_rsi,
    calculate_sma,
    calculate_ema,
    calculate_macd,
    calculate_bollinger_bands,
    calculate_atr,
    calculate_stochastic
)
from ...config.trading_config import INDICATOR_PARAMS, TECHNICAL_PARAMS

class IndicatorCalculator:
    def __init__(self, settings: Optional[Dict] = None):
        """Initialize the calculator"""
        self.logger = logging.getLogger(__name__)

        settings = settings or {}
        self.HISTORY_CAPACITY = settings.get('history_capacity', INDICATOR_PARAMS['history_capacity'])
        self.MIN_HISTORY = settings.get('min_history', INDICATOR_PARAMS['min_history'])
        self.RSI_PERIOD = settings.get('rsi_period', TECHNICAL_PARAMS['rsi_period'])
        self.MACD_FAST = settings.get('macd_fast', INDICATOR_PARAMS['macd_fast'])
        self.MACD_SLOW = settings.get('macd_slow', INDICATOR_PARAMS['macd_slow'])
        self.MA_PERIOD = settings.get('ma_period', INDICATOR_PARAMS['ma_period'])
        self.ATR_PERIOD = settings.get('atr_period', TECHNICAL_PARAMS['atr_period'])
        self.STOCH_PERIOD = settings.get('stoch_period', TECHNICAL_PARAMS['stoch_period'])

        self.history: deque = deque(maxlen=self.HISTORY_CAPACITY)

    def __len__(self) -> int:
        return len(self.history)

    def reset(self):
        """Drop all history"""
        self.history.clear()

    def update(self, sample: PriceSample) -> Indicators:
        """
        Append a sample and recompute indicators

        Parameters:
        -----------
        sample : PriceSample
            Latest market tick

        Returns:
        --------
        Indicators
            Current indicator snapshot, neutral defaults during cold start
        """
        self.history.append(sample)

        if len(self.history) < self.MIN_HISTORY:
            return self.default_indicators(sample.price)

        closes: List[float] = [s.price for s in self.history]
        highs = [s.high for s in self.history]
        lows = [s.low for s in self.history]

        macd = calculate_macd(closes, self.MACD_FAST, self.MACD_SLOW)
        bands = calculate_bollinger_bands(closes, self.MA_PERIOD, TECHNICAL_PARAMS['bollinger_k'])
        stoch = calculate_stochastic(closes, highs, lows, self.STOCH_PERIOD)

        return Indicators(
            rsi=calculate_rsi(closes, self.RSI_PERIOD),
            macd=MACD(**macd),
            bollinger=BollingerBands(**bands),
            sma20=calculate_sma(closes, self.MA_PERIOD),
            ema20=calculate_ema(closes, self.MA_PERIOD),
            atr=calculate_atr(closes, highs, lows, self.ATR_PERIOD),
            volume=sample.volume,
            stoch_k=stoch['k'],
            stoch_d=stoch['d']
        )

    @staticmethod
    def default_indicators(price: float) -> Indicators:
        """Neutral indicators used until enough history is collected"""
        return Indicators(
            rsi=50.0,
            macd=MACD(0.0, 0.0, 0.0),
            bollinger=BollingerBands(
                upper=price * 1.02,
                middle=price,
                lower=price * 0.98
            ),
            sma20=price,
            ema20=price,
            atr=price * 0.01,
            volume=0.0
        )
