"""
Test cases for data model entities
"""

import unittest
from datetime import datetime

from ..core.models import (
    ActionType,
    BotAction,
    BotConfig,
    BotState,
    BotStatus,
    Position,
    PositionSide,
    PriceSample
)

NOW = datetime(2025, 6, 2, 12, 0, 0)

class TestEntities(unittest.TestCase):

    def test_price_sample_validation(self):
        with self.assertRaises(ValueError):
            PriceSample(price=0.0, volume=1.0, timestamp=NOW)
        with self.assertRaises(ValueError):
            PriceSample(price=1.0, volume=-1.0, timestamp=NOW)

    def test_bot_config_validation(self):
        with self.assertRaises(ValueError):
            BotConfig(max_risk_per_trade=0.1)
        with self.assertRaises(ValueError):
            BotConfig(history_capacity=10)
        self.assertEqual(BotConfig().risk_reward_ratio, 3.0)

    def test_position_pnl(self):
        long = Position(
            id="p1", symbol="BTC/USD", side=PositionSide.LONG, entry_price=100.0,
            current_price=100.0, quantity=2.0, stop_loss=95.0, take_profit=115.0,
            opened_at=NOW, initial_stop_loss=95.0
        )
        short = Position(
            id="p2", symbol="BTC/USD", side=PositionSide.SHORT, entry_price=100.0,
            current_price=100.0, quantity=2.0, stop_loss=105.0, take_profit=85.0,
            opened_at=NOW, initial_stop_loss=105.0
        )
        long.update_pnl(110.0)
        short.update_pnl(110.0)

        self.assertEqual(long.unrealized_pnl, 20.0)
        self.assertEqual(short.unrealized_pnl, -20.0)
        self.assertAlmostEqual(long.profit_fraction(110.0), 0.1)

    def test_state_serialization(self):
        state = BotState(
            config=BotConfig(),
            status=BotStatus(current_balance=50.0, peak_balance=50.0),
            actions=[BotAction(ActionType.START, NOW, "started", True)]
        )
        data = state.to_dict()

        self.assertEqual(data['actions'][0]['type'], 'START')
        self.assertEqual(data['actions'][0]['timestamp'], '2025-06-02T12:00:00')
        self.assertEqual(data['status']['current_balance'], 50.0)
        self.assertEqual(data['risk_snapshot']['position_size'], 0.0)
        self.assertIsNone(data['latest_signal'])

if __name__ == '__main__':
    unittest.main()
