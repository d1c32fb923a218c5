"""
Test cases for SignalAnalyzer
"""

import unittest
from datetime import datetime, timedelta

from ..core.analyzer import SignalAnalyzer
from ..core.models import (
    Direction,
    PositionSide,
    PriceSample,
    RiskLevel,
    SignalLabel,
    Trade
)

START = datetime(2025, 6, 2, 12, 0, 0)

def make_samples(prices, volumes=None):
    volumes = volumes or [1000.0] * len(prices)
    return [
        PriceSample(price=p, volume=v, timestamp=START + timedelta(seconds=i))
        for i, (p, v) in enumerate(zip(prices, volumes))
    ]

def make_trade(profit: float) -> Trade:
    return Trade(
        id="trade_1",
        symbol="BTC/USD",
        side=PositionSide.LONG,
        entry_price=100.0,
        exit_price=100.0 + profit,
        quantity=1.0,
        profit=profit,
        duration_minutes=5,
        closed_at=START,
        reason="stop/target hit"
    )

class TestSignalAnalyzer(unittest.TestCase):
    """Test cases for SignalAnalyzer"""

    def setUp(self):
        self.analyzer = SignalAnalyzer()

    def test_insufficient_history_returns_hold(self):
        """19 identical samples give the default HOLD signal"""
        for sample in make_samples([100.0] * 19):
            self.analyzer.update(sample)

        signal = self.analyzer.analyze()

        self.assertEqual(signal.label, SignalLabel.HOLD)
        self.assertEqual(signal.direction, Direction.NEUTRAL)
        self.assertEqual(signal.confidence, 20.0)
        self.assertAlmostEqual(signal.stop_loss, 98.5)
        self.assertAlmostEqual(signal.take_profit, 104.5)
        self.assertEqual(signal.timeframe_minutes, 15)
        self.assertEqual(signal.position_size, 0.01)
        self.assertEqual(signal.risk_level, RiskLevel.MEDIUM)

    def test_empty_history_raises(self):
        with self.assertRaises(ValueError):
            self.analyzer.analyze()

    def test_explicit_history(self):
        signal = self.analyzer.analyze(make_samples([250.0] * 10))
        self.assertEqual(signal.entry_price, 250.0)
        self.assertEqual(len(self.analyzer), 0)

    def test_classify(self):
        cases = [
            ((0.85, 90), SignalLabel.STRONG_BUY, Direction.BULLISH),
            ((0.85, 70), SignalLabel.BUY, Direction.BULLISH),
            ((0.70, 70), SignalLabel.BUY, Direction.BULLISH),
            ((0.10, 90), SignalLabel.STRONG_SELL, Direction.BEARISH),
            ((0.30, 70), SignalLabel.SELL, Direction.BEARISH),
            ((0.85, 50), SignalLabel.HOLD, Direction.NEUTRAL),
            ((0.50, 0), SignalLabel.HOLD, Direction.NEUTRAL),
        ]
        for (score, confidence), label, direction in cases:
            with self.subTest(score=score, confidence=confidence):
                self.assertEqual(SignalAnalyzer.classify(score, confidence), (label, direction))

    def test_combine_scores(self):
        scores = {key: 0.7 for key in self.analyzer.WEIGHTS}
        self.assertAlmostEqual(self.analyzer.combine_scores(scores), 0.7)
        self.assertEqual(self.analyzer.combine_scores({}), 0.5)

    def test_candlestick_patterns(self):
        hammer = self.analyzer._detect_candlestick([100.0, 90.0, 97.0])
        self.assertEqual(hammer['name'], 'Bullish Hammer')
        self.assertTrue(hammer['bullish'])

        star = self.analyzer._detect_candlestick([100.0, 110.0, 103.0])
        self.assertEqual(star['name'], 'Bearish Shooting Star')
        self.assertFalse(star['bullish'])

        self.assertIsNone(self.analyzer._detect_candlestick([100.0, 101.0, 102.0]))

    def test_rising_market_analysis(self):
        prices = [100.0 * 1.005 ** i for i in range(60)]
        volumes = [1000.0 * 1.01 ** i for i in range(60)]
        signal = self.analyzer.analyze(make_samples(prices, volumes))

        self.assertIn("Positive momentum across all timeframes", signal.reasoning)
        self.assertIn("Multi-timeframe MACD bullish alignment", signal.reasoning)
        self.assertGreater(signal.strength, 50)
        self.assertTrue(0 <= signal.confidence <= 100)
        self.assertEqual(signal.entry_price, prices[-1])

    def test_falling_market_analysis(self):
        prices = [100.0 * 0.995 ** i for i in range(60)]
        signal = self.analyzer.analyze(make_samples(prices))

        self.assertIn("Negative momentum across all timeframes", signal.reasoning)
        self.assertLess(signal.strength, 50)

    def test_signal_geometry_matches_direction(self):
        prices = [100.0 + (i % 9) * 0.7 - (i % 4) * 0.3 for i in range(80)]
        signal = self.analyzer.analyze(make_samples(prices))

        if signal.direction == Direction.BULLISH:
            self.assertLess(signal.stop_loss, signal.entry_price)
            self.assertGreater(signal.take_profit, signal.entry_price)
        else:
            self.assertGreater(signal.stop_loss, signal.entry_price)
            self.assertLess(signal.take_profit, signal.entry_price)
        self.assertTrue(0.005 <= signal.position_size <= 0.05)
        self.assertIn(signal.timeframe_minutes, (20, 30, 45))

    def test_learning_rate_adapts(self):
        for _ in range(3):
            self.analyzer.record_trade_result(make_trade(-1.0), False)
        self.assertAlmostEqual(self.analyzer.learning_rate, 0.1 * 1.1 ** 3)

        metrics = self.analyzer.get_performance_metrics()
        self.assertEqual(metrics['total_trades'], 3)
        self.assertEqual(metrics['win_rate'], 0.0)
        self.assertEqual(metrics['avg_loss'], 1.0)

    def test_performance_metrics(self):
        self.analyzer.record_trade_result(make_trade(2.0), True)
        self.analyzer.record_trade_result(make_trade(-1.0), False)

        metrics = self.analyzer.get_performance_metrics()
        self.assertEqual(metrics['win_rate'], 50.0)
        self.assertEqual(metrics['profit_factor'], 2.0)

    def test_reset(self):
        for sample in make_samples([100.0] * 5):
            self.analyzer.update(sample)
        self.analyzer.record_trade_result(make_trade(-1.0), False)
        self.analyzer.reset()

        self.assertEqual(len(self.analyzer), 0)
        self.assertEqual(self.analyzer.learning_rate, 0.1)
        self.assertEqual(self.analyzer.get_performance_metrics()['total_trades'], 0)

if __name__ == '__main__':
    unittest.main()
