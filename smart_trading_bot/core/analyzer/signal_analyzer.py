"""
Signal analyzer component
Fuses technical, momentum, volume, pattern, level, structure, sentiment
and ML-proxy scores into a single trading signal
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..models import (
    PriceSample,
    Signal,
    Trade,
    Direction,
    SignalLabel,
    RiskLevel
)
from ..utils.indicators import (
    calculate_rsi,
    calculate_sma,
    calculate_ema,
    calculate_macd,
    calculate_bollinger_bands,
    calculate_atr,
    calculate_stochastic
)
from ..utils.calculations import (
    calculate_roc,
    calculate_volatility,
    calculate_variance,
    find_local_highs,
    find_local_lows,
    group_price_levels,
    clamp
)
from ...config.trading_config import (
    FUSION_WEIGHTS,
    TECHNICAL_PARAMS,
    SIGNAL_THRESHOLDS,
    SIGNAL_RISK_SCORES,
    LEARNING_HISTORY_LIMIT
)

@dataclass
class MarketWindow:
    """Column view of the analyzed history"""
    closes: List[float]
    volumes: List[float]
    highs: List[Optional[float]]
    lows: List[Optional[float]]
    timestamps: List[datetime]

    @classmethod
    def from_samples(cls, samples: Sequence[PriceSample]) -> 'MarketWindow':
        return cls(
            closes=[s.price for s in samples],
            volumes=[s.volume for s in samples],
            highs=[s.high for s in samples],
            lows=[s.low for s in samples],
            timestamps=[s.timestamp for s in samples]
        )

    @property
    def price(self) -> float:
        return self.closes[-1]

    @property
    def volatility(self) -> float:
        # Measured over the leading window of the history
        window = TECHNICAL_PARAMS['volatility_window']
        if len(self.closes) < window:
            return 0.02
        return calculate_volatility(self.closes[:window], min_samples=window)

    @property
    def atr(self) -> float:
        # Measured over the leading window of the history
        period = TECHNICAL_PARAMS['atr_period']
        if len(self.closes) < period:
            return self.price * 0.02
        return calculate_atr(
            self.closes[:period],
            self.highs[:period],
            self.lows[:period],
            period
        )

    def volume_ratio(self, period: int = 20) -> float:
        average = calculate_sma(self.volumes, period)
        return self.volumes[-1] / average if average > 0 else 1.0


class SignalAnalyzer:
    def __init__(self, settings: Optional[Dict] = None):
        """Initialize the analyzer"""
        self.logger = logging.getLogger(__name__)

        settings = settings or {}
        self.HISTORY_CAPACITY = settings.get('history_capacity', 200)
        self.MIN_HISTORY = settings.get('min_history', SIGNAL_THRESHOLDS['min_history'])
        self.WEIGHTS = settings.get('weights', FUSION_WEIGHTS)
        self.BASE_POSITION_SIZE = settings.get('base_position_size', SIGNAL_THRESHOLDS['base_position_size'])

        self.history: deque = deque(maxlen=self.HISTORY_CAPACITY)

        # Learning bookkeeping
        self.successful_trades: deque = deque(maxlen=LEARNING_HISTORY_LIMIT)
        self.failed_trades: deque = deque(maxlen=LEARNING_HISTORY_LIMIT)
        self.learning_rate = 0.1

    def __len__(self) -> int:
        return len(self.history)

    def reset(self):
        """Drop history and learning state"""
        self.history.clear()
        self.successful_trades.clear()
        self.failed_trades.clear()
        self.learning_rate = 0.1

    def update(self, sample: PriceSample):
        """Append a sample to the rolling history"""
        self.history.append(sample)

    def analyze(self, history: Optional[Sequence[PriceSample]] = None) -> Signal:
        """
        Analyze the market and derive a trading signal

        Parameters:
        -----------
        history : Sequence[PriceSample], optional
            Samples to analyze, defaults to the internal history

        Returns:
        --------
        Signal
            Fused signal, or the default HOLD with fewer than MIN_HISTORY samples
        """
        samples = list(history)[-self.HISTORY_CAPACITY:] if history is not None else list(self.history)
        if not samples:
            raise ValueError("Cannot analyze an empty history")

        if len(samples) < self.MIN_HISTORY:
            return self.default_signal(samples[-1].price)

        window = MarketWindow.from_samples(samples)

        technical = self.analyze_technical(window)
        momentum = self.analyze_momentum(window)
        volume = self.analyze_volume_profile(window)
        patterns = self.detect_patterns(window)
        levels = self.find_key_levels(window)
        structure = self.analyze_market_structure(window)
        sentiment = self.analyze_sentiment(window)
        ml = self.generate_ml_prediction(window)
        risk = self.assess_risk(window)

        combined = self.combine_scores({
            'technical': technical['score'],
            'momentum': momentum['score'],
            'volume': volume['score'],
            'patterns': patterns['score'],
            'levels': levels['score'],
            'structure': structure['score'],
            'sentiment': sentiment['score'],
            'ml': ml['score']
        })

        reasoning = (
            technical['signals']
            + momentum['signals']
            + volume['signals']
            + patterns['signals']
            + levels['signals']
        )

        return self.build_signal(combined, window, risk, reasoning)

    # ------------------------------------------------------------------
    # Sub-analyses
    # ------------------------------------------------------------------

    def analyze_technical(self, window: MarketWindow) -> Dict:
        """RSI, multi-period MACD, Bollinger, MA cascade and stochastic votes"""
        closes = window.closes
        price = window.price
        signals: List[str] = []
        bullish = 0
        bearish = 0
        strength = 0.0

        rsi = calculate_rsi(closes, TECHNICAL_PARAMS['rsi_period'])
        volatile = window.volatility > TECHNICAL_PARAMS['volatile_threshold']
        overbought = TECHNICAL_PARAMS['rsi_overbought_volatile'] if volatile else TECHNICAL_PARAMS['rsi_overbought']
        oversold = TECHNICAL_PARAMS['rsi_oversold_volatile'] if volatile else TECHNICAL_PARAMS['rsi_oversold']

        if rsi < oversold:
            bullish += 1
            signals.append(f"RSI oversold at {rsi:.1f}")
            strength += (oversold - rsi) / oversold * 20
        elif rsi > overbought:
            bearish += 1
            signals.append(f"RSI overbought at {rsi:.1f}")
            strength += (rsi - overbought) / (100 - overbought) * 20

        histograms = [
            calculate_macd(closes, fast, slow)['histogram']
            for fast, slow in TECHNICAL_PARAMS['macd_sets']
        ]
        if all(h > 0 for h in histograms):
            bullish += 2
            signals.append("Multi-timeframe MACD bullish alignment")
            strength += 25
        elif all(h < 0 for h in histograms):
            bearish += 2
            signals.append("Multi-timeframe MACD bearish alignment")
            strength += 25

        bands = calculate_bollinger_bands(
            closes,
            TECHNICAL_PARAMS['bollinger_period'],
            TECHNICAL_PARAMS['bollinger_k']
        )
        if bands['middle'] > 0:
            width = (bands['upper'] - bands['lower']) / bands['middle']
            if width < TECHNICAL_PARAMS['squeeze_width']:
                signals.append("Bollinger Band squeeze - breakout imminent")
                strength += 15

        if price <= bands['lower'] * 1.001:
            bullish += 1
            signals.append("Price at Bollinger lower band")
            strength += 15
        elif price >= bands['upper'] * 0.999:
            bearish += 1
            signals.append("Price at Bollinger upper band")
            strength += 15

        fast, medium, slow = TECHNICAL_PARAMS['ema_cascade']
        ema_fast = calculate_ema(closes, fast)
        ema_medium = calculate_ema(closes, medium)
        ema_slow = calculate_ema(closes, slow)
        sma_long = calculate_sma(closes, TECHNICAL_PARAMS['sma_long'])

        if ema_fast > ema_medium > ema_slow > sma_long and price > ema_fast:
            bullish += 2
            signals.append("Perfect bullish MA alignment")
            strength += 30
        elif ema_fast < ema_medium < ema_slow < sma_long and price < ema_fast:
            bearish += 2
            signals.append("Perfect bearish MA alignment")
            strength += 30

        stoch = calculate_stochastic(closes, window.highs, window.lows, TECHNICAL_PARAMS['stoch_period'])
        if stoch['k'] < TECHNICAL_PARAMS['stoch_oversold'] and stoch['d'] < TECHNICAL_PARAMS['stoch_oversold']:
            bullish += 1
            signals.append(f"Stochastic oversold: K={stoch['k']:.1f}")
            strength += 10
        elif stoch['k'] > TECHNICAL_PARAMS['stoch_overbought'] and stoch['d'] > TECHNICAL_PARAMS['stoch_overbought']:
            bearish += 1
            signals.append(f"Stochastic overbought: K={stoch['k']:.1f}")
            strength += 10

        score = 0.5 + (bullish - bearish) / (bullish + bearish + 1) * 0.5
        return {'score': clamp(score), 'signals': signals, 'strength': strength}

    def analyze_momentum(self, window: MarketWindow) -> Dict:
        """Cross-timeframe rate of change with volume confirmation"""
        signals: List[str] = []
        roc1 = calculate_roc(window.closes, 1)
        roc5 = calculate_roc(window.closes, 5)
        roc14 = calculate_roc(window.closes, 14)
        volume_roc = calculate_roc(window.volumes, 5)
        acceleration = roc1 - roc5

        score = 0.5
        if roc1 > 0 and roc5 > 0 and roc14 > 0:
            score += 0.3
            signals.append("Positive momentum across all timeframes")
        elif roc1 < 0 and roc5 < 0 and roc14 < 0:
            score -= 0.3
            signals.append("Negative momentum across all timeframes")

        if (roc5 > 0 and volume_roc > 0) or (roc5 < 0 and volume_roc < 0):
            score += 0.15 if roc5 > 0 else -0.15
            signals.append("Volume confirms price momentum")

        if abs(acceleration) > 0.005:
            direction = "acceleration" if acceleration > 0 else "deceleration"
            signals.append(f"Price momentum {direction} detected")
            score += 0.1 if acceleration > 0 else -0.1

        momentum = {
            'short_term': roc1,
            'medium_term': roc5,
            'long_term': roc14,
            'acceleration': acceleration,
            'volume': volume_roc
        }
        return {'score': clamp(score), 'signals': signals, 'momentum': momentum}

    def analyze_volume_profile(self, window: MarketWindow) -> Dict:
        """Volume spikes, volume trend and price-volume agreement"""
        signals: List[str] = []
        score = 0.5
        pattern = 'NORMAL'
        volumes = window.volumes

        if len(volumes) < 20:
            return {'score': score, 'signals': signals, 'pattern': pattern}

        ratio = window.volume_ratio(20)
        if ratio > 2.0:
            pattern = 'SPIKE'
            signals.append(f"Volume spike: {ratio:.1f}x average")
            score += 0.2
        elif ratio > 1.5:
            pattern = 'HIGH'
            signals.append(f"High volume: {ratio:.1f}x average")
            score += 0.1
        elif ratio < 0.3:
            pattern = 'LOW'
            signals.append("Low volume - weak conviction")
            score -= 0.1

        short_ma = calculate_sma(volumes, 5)
        long_ma = calculate_sma(volumes, 20)
        if short_ma > long_ma * 1.2:
            signals.append("Volume trend increasing")
            score += 0.1
        elif short_ma < long_ma * 0.8:
            signals.append("Volume trend decreasing")
            score -= 0.1

        price_change = window.closes[-1] / window.closes[-5] - 1
        volume_change = volumes[-1] / volumes[-5] - 1 if volumes[-5] > 0 else 0.0
        if abs(price_change) > 0.01 and volume_change > 0.2:
            signals.append("Strong price-volume correlation")
            score += 0.15 if price_change > 0 else -0.15

        return {'score': clamp(score), 'signals': signals, 'pattern': pattern}

    def detect_patterns(self, window: MarketWindow) -> Dict:
        """Three-tick hammer and shooting star heuristics"""
        signals: List[str] = []
        patterns: List[Dict] = []
        score = 0.5

        if len(window.closes) < 30:
            return {'score': score, 'signals': signals, 'patterns': patterns}

        for detector in (self._detect_candlestick, self._detect_triangle, self._detect_head_and_shoulders):
            pattern = detector(window.closes)
            if pattern:
                patterns.append(pattern)
                signals.append(f"{pattern['name']} pattern detected")
                score += pattern['weight'] if pattern['bullish'] else -pattern['weight']

        return {'score': clamp(score), 'signals': signals, 'patterns': patterns}

    def _detect_candlestick(self, closes: Sequence[float]) -> Optional[Dict]:
        prev2, prev1, current = closes[-3:]

        if prev1 < prev2 and current > prev1 and (current - prev1) > (prev2 - prev1) * 0.6:
            return {'name': 'Bullish Hammer', 'bullish': True, 'weight': 0.15, 'reliability': 0.7}

        if prev1 > prev2 and current < prev1 and (prev1 - current) > (prev1 - prev2) * 0.6:
            return {'name': 'Bearish Shooting Star', 'bullish': False, 'weight': 0.15, 'reliability': 0.7}

        return None

    def _detect_triangle(self, closes: Sequence[float]) -> Optional[Dict]:
        # No-op detector, never reports a triangle
        return None

    def _detect_head_and_shoulders(self, closes: Sequence[float]) -> Optional[Dict]:
        # No-op detector, never reports head and shoulders
        return None

    def find_key_levels(self, window: MarketWindow) -> Dict:
        """Support/resistance proximity nudges"""
        signals: List[str] = []
        score = 0.5

        if len(window.closes) < 50:
            return {'score': score, 'signals': signals, 'levels': []}

        price = window.price
        supports = sorted(
            group_price_levels(find_local_lows(window.closes), 'SUPPORT'),
            key=lambda level: level['strength'],
            reverse=True
        )[:3]
        resistances = sorted(
            group_price_levels(find_local_highs(window.closes), 'RESISTANCE'),
            key=lambda level: level['price']
        )[:3]

        nearest_support = next((level for level in supports if level['price'] < price), None)
        nearest_resistance = next((level for level in resistances if level['price'] > price), None)

        if nearest_support and (price - nearest_support['price']) / price < 0.01:
            signals.append(f"Price near strong support at {nearest_support['price']:.2f}")
            score += 0.15 * nearest_support['strength']

        if nearest_resistance and (nearest_resistance['price'] - price) / price < 0.01:
            signals.append(f"Price near strong resistance at {nearest_resistance['price']:.2f}")
            score -= 0.15 * nearest_resistance['strength']

        return {'score': clamp(score), 'signals': signals, 'levels': supports + resistances}

    def analyze_market_structure(self, window: MarketWindow) -> Dict:
        """Higher-high/higher-low structure of recent swings"""
        signals: List[str] = []
        score = 0.5
        structure = 'SIDEWAYS'

        if len(window.closes) < 30:
            return {'score': score, 'signals': signals, 'structure': structure}

        highs = find_local_highs(window.closes)[-3:]
        lows = find_local_lows(window.closes)[-3:]

        if len(highs) >= 2 and len(lows) >= 2:
            higher_highs = highs[1] > highs[0]
            higher_lows = lows[1] > lows[0]
            lower_highs = highs[1] < highs[0]
            lower_lows = lows[1] < lows[0]

            if higher_highs and higher_lows:
                structure = 'UPTREND'
                signals.append("Market structure: Higher highs and higher lows")
                score += 0.25
            elif lower_highs and lower_lows:
                structure = 'DOWNTREND'
                signals.append("Market structure: Lower highs and lower lows")
                score -= 0.25
            elif higher_highs and lower_lows:
                structure = 'EXPANDING'
                signals.append("Market structure: Expanding range")
            elif lower_highs and higher_lows:
                structure = 'CONTRACTING'
                signals.append("Market structure: Contracting range - breakout expected")
                score += 0.1

        return {'score': clamp(score), 'signals': signals, 'structure': structure}

    def analyze_sentiment(self, window: MarketWindow) -> Dict:
        """Fear/greed proxy from volatility and 14-period momentum"""
        signals: List[str] = []
        score = 0.5
        volatility = window.volatility
        momentum = calculate_roc(window.closes, 14)

        if volatility > 0.05 and momentum < -0.05:
            score -= 0.2
            signals.append("Market sentiment: Fear (high volatility + sell-off)")
        elif volatility < 0.02 and momentum > 0.03:
            score += 0.2
            signals.append("Market sentiment: Greed (low volatility + rally)")
        elif volatility > 0.08:
            score -= 0.3
            signals.append("Market sentiment: Panic (extreme volatility)")

        return {'score': clamp(score), 'signals': signals}

    def extract_features(self, window: MarketWindow) -> List[float]:
        """Five normalized features for the ML proxy"""
        volume_ma = calculate_sma(window.volumes, 20)
        return [
            calculate_rsi(window.closes, 14) / 100,
            (calculate_roc(window.closes, 5) + 0.1) / 0.2,
            min(1.0, window.volatility / 0.1),
            min(1.0, window.volumes[-1] / (volume_ma * 3)) if volume_ma > 0 else 0.0,
            (calculate_roc(window.closes, 20) + 0.2) / 0.4
        ]

    def generate_ml_prediction(self, window: MarketWindow) -> Dict:
        """Fixed-weight linear combination of normalized features"""
        features = self.extract_features(window)
        weights = [0.3, 0.25, 0.2, 0.15, 0.1]

        prediction = 0.5
        for feature, weight in zip(features, weights):
            prediction += (feature - 0.5) * weight
        prediction = clamp(prediction)

        confidence = max(0.1, 1 - calculate_variance(features) * 2)
        return {'score': prediction, 'prediction': prediction, 'confidence': confidence}

    def assess_risk(self, window: MarketWindow) -> Dict:
        """Additive risk score mapped to VERY_LOW..EXTREME"""
        factors: List[str] = []
        risk_score = 0
        volatility = window.volatility

        for key in ('extreme_volatility', 'high_volatility', 'moderate_volatility'):
            threshold, points = SIGNAL_RISK_SCORES[key]
            if volatility > threshold:
                risk_score += points
                label = key.split('_')[0].capitalize()
                factors.append(f"{label} volatility: {volatility * 100:.1f}%")
                break

        threshold, points = SIGNAL_RISK_SCORES['momentum']
        if abs(calculate_roc(window.closes, 5)) > threshold:
            risk_score += points
            factors.append("High momentum - potential reversal risk")

        threshold, points = SIGNAL_RISK_SCORES['low_volume']
        if window.volume_ratio(20) < threshold:
            risk_score += points
            factors.append("Low volume - liquidity risk")

        hour = window.timestamps[-1].hour
        if hour < 6 or hour > 22:
            risk_score += SIGNAL_RISK_SCORES['off_hours']
            factors.append("Outside major trading hours")

        level = RiskLevel.VERY_LOW
        for threshold, name in SIGNAL_RISK_SCORES['levels']:
            if risk_score > threshold:
                level = RiskLevel[name]
                break

        return {'level': level, 'score': risk_score / 100, 'factors': factors}

    # ------------------------------------------------------------------
    # Fusion
    # ------------------------------------------------------------------

    def combine_scores(self, scores: Dict[str, float]) -> float:
        """Weighted average re-normalized by the weight actually applied"""
        total_score = 0.0
        total_weight = 0.0
        for key, score in scores.items():
            weight = self.WEIGHTS.get(key, 0)
            total_score += score * weight
            total_weight += weight
        return total_score / total_weight if total_weight > 0 else 0.5

    @staticmethod
    def classify(score: float, confidence: float) -> Tuple[SignalLabel, Direction]:
        """Map combined score and confidence onto a label and direction"""
        strong_buy = SIGNAL_THRESHOLDS['strong_buy']
        buy = SIGNAL_THRESHOLDS['buy']
        strong_sell = SIGNAL_THRESHOLDS['strong_sell']
        sell = SIGNAL_THRESHOLDS['sell']

        if score >= strong_buy[0] and confidence >= strong_buy[1]:
            return SignalLabel.STRONG_BUY, Direction.BULLISH
        if score >= buy[0] and confidence >= buy[1]:
            return SignalLabel.BUY, Direction.BULLISH
        if score <= strong_sell[0] and confidence >= strong_sell[1]:
            return SignalLabel.STRONG_SELL, Direction.BEARISH
        if score <= sell[0] and confidence >= sell[1]:
            return SignalLabel.SELL, Direction.BEARISH
        return SignalLabel.HOLD, Direction.NEUTRAL

    def build_signal(
        self,
        score: float,
        window: MarketWindow,
        risk: Dict,
        reasoning: List[str]
    ) -> Signal:
        """
        Derive the final signal from the combined score

        Parameters:
        -----------
        score : float
            Combined score in [0, 1]
        window : MarketWindow
            Analyzed history
        risk : Dict
            Output of assess_risk
        reasoning : List[str]
            Ordered human-readable reasons

        Returns:
        --------
        Signal
            Immutable trading signal
        """
        price = window.price
        confidence = min(100.0, abs(score - 0.5) * 200)
        label, direction = self.classify(score, confidence)

        stop_distance = max(
            window.atr * SIGNAL_THRESHOLDS['atr_stop_multiplier'],
            price * SIGNAL_THRESHOLDS['min_stop_fraction']
        )
        target_distance = stop_distance * SIGNAL_THRESHOLDS['reward_ratio']

        if direction == Direction.BULLISH:
            stop_loss = price - stop_distance
            take_profit = price + target_distance
        else:
            stop_loss = price + stop_distance
            take_profit = price - target_distance

        risk_level: RiskLevel = risk['level']
        risk_multiplier = SIGNAL_THRESHOLDS['risk_size_multipliers'].get(risk_level.value, 1.0)
        position_size = self.BASE_POSITION_SIZE * (confidence / 100) * risk_multiplier
        position_size = clamp(
            position_size,
            SIGNAL_THRESHOLDS['min_position_size'],
            SIGNAL_THRESHOLDS['max_position_size']
        )

        if confidence > 80:
            timeframe = 45
        elif confidence > 60:
            timeframe = 30
        else:
            timeframe = 20

        return Signal(
            direction=direction,
            label=label,
            confidence=confidence,
            probability=min(1.0, abs(score - 0.5) * 2),
            risk_level=risk_level,
            entry_price=price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            position_size=position_size,
            reasoning=reasoning,
            timeframe_minutes=timeframe,
            strength=score * 100,
            risk_factors=risk['factors']
        )

    @staticmethod
    def default_signal(price: float) -> Signal:
        """HOLD signal returned while history is insufficient"""
        return Signal(
            direction=Direction.NEUTRAL,
            label=SignalLabel.HOLD,
            confidence=20.0,
            probability=0.5,
            risk_level=RiskLevel.MEDIUM,
            entry_price=price,
            stop_loss=price * 0.985,
            take_profit=price * 1.045,
            position_size=0.01,
            reasoning=["Insufficient data for analysis"],
            timeframe_minutes=15,
            strength=50.0
        )

    # ------------------------------------------------------------------
    # Learning bookkeeping
    # ------------------------------------------------------------------

    def record_trade_result(self, trade: Trade, successful: bool):
        """Record a closed trade and adapt the learning rate"""
        if successful:
            self.successful_trades.append(trade)
        else:
            self.failed_trades.append(trade)

        total = len(self.successful_trades) + len(self.failed_trades)
        success_rate = len(self.successful_trades) / total

        if success_rate < 0.4:
            self.learning_rate *= 1.1
        elif success_rate > 0.7:
            self.learning_rate *= 0.95

    def get_performance_metrics(self) -> Dict[str, float]:
        """Win rate, average profit/loss and profit factor of recorded trades"""
        wins = len(self.successful_trades)
        losses = len(self.failed_trades)
        total = wins + losses

        avg_profit = sum(t.profit for t in self.successful_trades) / max(1, wins)
        avg_loss = sum(abs(t.profit) for t in self.failed_trades) / max(1, losses)

        return {
            'total_trades': total,
            'win_rate': wins / total * 100 if total > 0 else 0.0,
            'avg_profit': avg_profit,
            'avg_loss': avg_loss,
            'profit_factor': avg_profit / avg_loss if avg_loss > 0 else 0.0,
            'learning_rate': self.learning_rate
        }
