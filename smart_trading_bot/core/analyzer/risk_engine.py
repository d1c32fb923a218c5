"""
Risk engine component
Position sizing, stop/target distances and coarse market risk
"""

import logging
from typing import Dict, List, Optional

from ..models import (
    Indicators,
    PriceSample,
    RiskSnapshot,
    MarketRiskAssessment,
    MarketRiskLevel,
    PositionSide
)
from ..utils.calculations import calculate_risk_reward_ratio
from ...config.trading_config import RISK_PARAMS

class RiskEngine:
    def __init__(self, settings: Optional[Dict] = None):
        """Initialize the risk engine"""
        self.logger = logging.getLogger(__name__)

        settings = settings or {}
        self.RISK_REWARD_RATIO = settings.get('risk_reward_ratio', RISK_PARAMS['default_risk_reward'])
        self.ATR_STOP_MULTIPLIER = settings.get('atr_stop_multiplier', RISK_PARAMS['atr_stop_multiplier'])
        self.MIN_POSITION_SIZE = settings.get('min_position_size', RISK_PARAMS['min_position_size'])
        self.SIZE_MULTIPLIERS = settings.get('size_multipliers', RISK_PARAMS['size_multipliers'])

    def compute_risk(
        self,
        indicators: Indicators,
        price: float,
        balance: float,
        max_risk_per_trade: float = 0.02
    ) -> RiskSnapshot:
        """
        Compute position sizing and stop/target distances

        Parameters:
        -----------
        indicators : Indicators
            Current indicator snapshot, ATR is used
        price : float
            Current market price
        balance : float
            Account balance
        max_risk_per_trade : float
            Fraction of balance risked per trade

        Returns:
        --------
        RiskSnapshot
            Risk metrics for the current cycle
        """
        volatility = self.calculate_volatility(indicators.atr, price)
        stop_distance = self.calculate_stop_distance(volatility, indicators.atr)
        target_distance = stop_distance * self.RISK_REWARD_RATIO
        position_size = self.calculate_position_size(balance, max_risk_per_trade, stop_distance, price)

        return RiskSnapshot(
            current_risk=max_risk_per_trade,
            max_risk=max_risk_per_trade,
            position_size=position_size,
            stop_loss_distance=stop_distance,
            take_profit_distance=target_distance,
            risk_reward_ratio=calculate_risk_reward_ratio(price, price - stop_distance, price + target_distance),
            volatility=volatility
        )

    @staticmethod
    def calculate_volatility(atr: float, price: float) -> float:
        """ATR as a percentage of price"""
        return atr / price * 100 if price > 0 else 0.0

    def calculate_stop_distance(self, volatility: float, atr: float) -> float:
        """ATR based stop widened for volatile markets"""
        return atr * self.ATR_STOP_MULTIPLIER * max(1.0, volatility / 2)

    def calculate_position_size(
        self,
        balance: float,
        risk_fraction: float,
        stop_distance: float,
        price: float
    ) -> float:
        """
        Quantity risking balance * risk_fraction at the stop distance

        Returns:
        --------
        float
            Quantity, never below MIN_POSITION_SIZE, 0 for a non-positive stop
        """
        if stop_distance <= 0 or price <= 0:
            return 0.0
        quantity = balance * risk_fraction / stop_distance / price
        return max(self.MIN_POSITION_SIZE, quantity)

    def calculate_dynamic_stop_loss(
        self,
        entry_price: float,
        current_price: float,
        side: PositionSide,
        atr: float,
        trail_multiplier: float = 2.0
    ) -> float:
        """ATR trailing stop that never sits behind the entry based stop"""
        trail_distance = atr * trail_multiplier
        if side == PositionSide.LONG:
            return max(current_price - trail_distance, entry_price - trail_distance)
        return min(current_price + trail_distance, entry_price + trail_distance)

    def calculate_dynamic_take_profit(
        self,
        entry_price: float,
        current_price: float,
        side: PositionSide,
        volatility: float,
        base_risk_reward: float = 2.0
    ) -> float:
        """Take profit widened with volatility"""
        adjusted_risk_reward = base_risk_reward * max(1.0, volatility / 10)
        distance = abs(current_price - entry_price) * 0.5
        if side == PositionSide.LONG:
            return entry_price + distance * adjusted_risk_reward
        return entry_price - distance * adjusted_risk_reward

    def assess_market_risk(
        self,
        indicators: Indicators,
        sample: PriceSample
    ) -> MarketRiskAssessment:
        """
        Additive market risk score

        Parameters:
        -----------
        indicators : Indicators
            Current indicator snapshot
        sample : PriceSample
            Latest tick, price and 24h change are used

        Returns:
        --------
        MarketRiskAssessment
            Level LOW/MEDIUM/HIGH/EXTREME, score 0-100 and contributing factors
        """
        score = 0
        factors: List[str] = []

        rsi = indicators.rsi
        if rsi > 80 or rsi < 20:
            score += 25
            factors.append(f"Extreme RSI: {rsi:.1f}")
        elif rsi > 70 or rsi < 30:
            score += 15
            factors.append(f"High RSI: {rsi:.1f}")

        volatility = self.calculate_volatility(indicators.atr, sample.price)
        if volatility > 5:
            score += 30
            factors.append(f"High volatility: {volatility:.1f}%")
        elif volatility > 3:
            score += 15
            factors.append(f"Medium volatility: {volatility:.1f}%")

        if abs(indicators.macd.histogram) > abs(indicators.macd.macd) * 0.5:
            score += 10
            factors.append("MACD divergence detected")

        if indicators.bollinger.width > 0.1:
            score += 15
            factors.append("High Bollinger Band width")

        if abs(sample.change_24h) > 10:
            score += 20
            factors.append(f"Large 24h change: {sample.change_24h:.1f}%")

        level = MarketRiskLevel.LOW
        for threshold, name in RISK_PARAMS['market_risk_levels']:
            if score > threshold:
                level = MarketRiskLevel[name]
                break

        return MarketRiskAssessment(level=level, score=min(100, score), factors=factors)

    @staticmethod
    def should_reduce_position_size(assessment: MarketRiskAssessment) -> bool:
        return assessment.level in (MarketRiskLevel.HIGH, MarketRiskLevel.EXTREME)

    def get_position_size_multiplier(self, level: MarketRiskLevel) -> float:
        """Scale factor applied to position size for a market risk level"""
        return self.SIZE_MULTIPLIERS.get(level.value, 1.0)
