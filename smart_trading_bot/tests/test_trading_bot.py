"""
Test cases for the TradingBot orchestrator
"""

import asyncio
import unittest
from datetime import datetime, timedelta
from unittest.mock import Mock, AsyncMock

from prometheus_client import CollectorRegistry

from ..core.models import (
    ActionType,
    BotConfig,
    Direction,
    MarketRiskAssessment,
    MarketRiskLevel,
    Position,
    PositionSide,
    PositionStatus,
    PriceSample,
    RiskLevel,
    Signal,
    SignalLabel
)
from ..services import AccountInfo, BrokerConnectionError, BrokerUnavailable
from ..trading_bot import TradingBot

class FakeClock:
    """Clock advancing one second per call"""

    def __init__(self, start=datetime(2025, 6, 2, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now

def strong_buy_signal() -> Signal:
    return Signal(
        direction=Direction.BULLISH,
        label=SignalLabel.STRONG_BUY,
        confidence=90.0,
        probability=0.9,
        risk_level=RiskLevel.LOW,
        entry_price=100.0,
        stop_loss=95.0,
        take_profit=115.0,
        position_size=0.02,
        reasoning=["test"],
        timeframe_minutes=30
    )

def fixed_source(price: float):
    source = Mock()
    source.get_latest_sample = AsyncMock(
        return_value=PriceSample(price=price, volume=1000.0, timestamp=datetime(2025, 6, 2, 12))
    )
    return source

class TestTradingBot(unittest.IsolatedAsyncioTestCase):
    """Test cases for start/stop/reset and the trading cycle"""

    async def asyncSetUp(self):
        self.config = BotConfig(seed=7, tick_interval=0.01, data_timeout=0.5)
        self.clock = FakeClock()
        self.bot = self.make_bot()

    async def asyncTearDown(self):
        await self.bot.stop()

    def make_bot(self, **kwargs) -> TradingBot:
        return TradingBot(self.config, clock=self.clock, registry=CollectorRegistry(), **kwargs)

    def action_types(self):
        return [a.type for a in self.bot.state.actions]

    def add_open_position(self, price: float = 110.0) -> Position:
        position = Position(
            id="pos_test",
            symbol="BTC/USD",
            side=PositionSide.LONG,
            entry_price=100.0,
            current_price=price,
            quantity=0.02,
            stop_loss=95.0,
            take_profit=115.0,
            opened_at=self.clock(),
            initial_stop_loss=95.0
        )
        self.bot.state.positions.append(position)
        return position

    async def test_initial_state(self):
        state = self.bot.get_state()
        self.assertEqual(state.status.current_balance, 50.0)
        self.assertEqual(state.status.total_profit, 0.0)
        self.assertFalse(state.status.is_running)
        self.assertEqual(state.actions, [])

    async def test_start_twice(self):
        self.assertTrue(await self.bot.start())
        self.assertFalse(await self.bot.start())

        action = self.bot.state.actions[0]
        self.assertEqual(action.type, ActionType.START)
        self.assertFalse(action.success)

    async def test_loop_runs_cycles(self):
        await self.bot.start()
        await asyncio.sleep(0.1)
        self.assertTrue(await self.bot.stop())

        self.assertIsNotNone(self.bot.state.latest_sample)
        self.assertFalse(self.bot.is_running)
        self.assertIsNone(self.bot._task)
        self.assertEqual(self.bot.state.actions[0].type, ActionType.STOP)

    async def test_stop_when_not_running(self):
        """stop() on an idle bot returns False and mutates nothing"""
        before = self.bot.get_state()
        self.assertFalse(await self.bot.stop())
        after = self.bot.get_state()

        self.assertEqual(after.status.current_balance, before.status.current_balance)
        self.assertEqual(after.trades, before.trades)
        self.assertEqual(after.actions, before.actions)

    async def test_stop_closes_open_position(self):
        self.add_open_position(price=110.0)
        self.bot.state.status.is_running = True

        self.assertTrue(await self.bot.stop())

        status = self.bot.state.status
        trade = self.bot.state.trades[0]
        self.assertEqual(trade.reason, "manual stop")
        self.assertAlmostEqual(trade.profit, 0.2)
        self.assertAlmostEqual(status.current_balance, 50.2)
        self.assertAlmostEqual(status.total_profit, status.current_balance - 50.0)
        self.assertEqual(self.bot.state.open_positions, [])

        balance = status.current_balance
        self.assertFalse(await self.bot.stop())
        self.assertEqual(self.bot.state.status.current_balance, balance)
        self.assertEqual(len(self.bot.state.trades), 1)

    async def test_target_latch(self):
        self.config = BotConfig(target_profit=1.0, tick_interval=0.01)
        self.bot = self.make_bot()
        status = self.bot.state.status
        status.is_running = True
        status.current_balance = 51.5
        status.total_profit = 1.5

        await self.bot.run_cycle()

        self.assertTrue(status.target_reached)
        self.assertFalse(status.is_running)
        self.assertEqual(self.bot.state.actions[0].type, ActionType.TARGET_REACHED)

        self.assertFalse(await self.bot.start())
        self.assertFalse(self.bot.is_running)

        # the latch only clears on reset
        await self.bot.run_cycle()
        self.assertTrue(self.bot.state.status.target_reached)
        await self.bot.reset()
        self.assertFalse(self.bot.state.status.target_reached)
        self.assertTrue(await self.bot.start())

    async def test_reset_round_trip(self):
        for _ in range(5):
            await self.bot.run_cycle()
        self.add_open_position()
        await self.bot.reset()

        fresh = TradingBot(self.config, registry=CollectorRegistry())
        self.assertEqual(self.bot.get_state().to_dict(), fresh.get_state().to_dict())
        self.assertEqual(len(self.bot.indicator_calculator), 0)
        self.assertEqual(len(self.bot.signal_analyzer), 0)

    async def test_get_state_is_a_copy(self):
        state = self.bot.get_state()
        state.status.current_balance = 0.0
        state.actions.append(None)
        self.assertEqual(self.bot.state.status.current_balance, 50.0)
        self.assertEqual(self.bot.state.actions, [])

    async def test_fallback_on_source_failure(self):
        source = Mock()
        source.get_latest_sample = AsyncMock(side_effect=BrokerUnavailable("feed down"))
        self.bot = self.make_bot(data_source=source)

        await self.bot.run_cycle()

        self.assertIsNotNone(self.bot.state.latest_sample)
        errors = [a for a in self.bot.state.actions if a.type == ActionType.BROKER_ERROR]
        self.assertEqual(len(errors), 1)
        self.assertFalse(errors[0].success)
        self.assertEqual(errors[0].error, "feed down")

    async def test_fallback_on_timeout(self):
        async def slow(symbol):
            await asyncio.sleep(1)

        source = Mock()
        source.get_latest_sample = slow
        self.config = BotConfig(data_timeout=0.01)
        self.bot = self.make_bot(data_source=source)

        await self.bot.run_cycle()

        self.assertIsNotNone(self.bot.state.latest_sample)
        self.assertIn(ActionType.BROKER_ERROR, self.action_types())

    async def test_cycle_errors_are_logged(self):
        self.bot.signal_analyzer.analyze = Mock(side_effect=RuntimeError("boom"))

        await self.bot.run_cycle()

        action = self.bot.state.actions[0]
        self.assertEqual(action.type, ActionType.UPDATE)
        self.assertFalse(action.success)
        self.assertEqual(action.error, "boom")

    async def test_cycle_skipped_while_locked(self):
        async with self.bot._cycle_lock:
            await self.bot.run_cycle()
        self.assertEqual(self.bot.state.actions, [])
        self.assertIsNone(self.bot.state.latest_sample)

    async def test_cold_start_waits(self):
        await self.bot.run_cycle()
        action = self.bot.state.actions[0]
        self.assertEqual(action.type, ActionType.ANALYSIS)
        self.assertTrue(action.details.startswith("Waiting for optimal conditions"))
        self.assertEqual(self.bot.state.latest_signal.label, SignalLabel.HOLD)

    async def test_action_log_is_bounded(self):
        for _ in range(70):
            await self.bot.run_cycle()

        actions = self.bot.state.actions
        self.assertLessEqual(len(actions), 50)
        self.assertGreater(len(actions), 0)
        self.assertGreaterEqual(actions[0].timestamp, actions[-1].timestamp)
        self.assertEqual(self.bot.state.status.last_action, actions[0].details)

    async def test_profit_invariant(self):
        for _ in range(80):
            await self.bot.run_cycle()

        status = self.bot.state.status
        self.assertAlmostEqual(status.total_profit, status.current_balance - self.config.initial_capital)
        self.assertEqual(status.trades_count, len(self.bot.state.trades))
        self.assertLessEqual(len(self.bot.state.open_positions), 1)

    async def test_open_and_close_through_executor(self):
        executor = Mock()
        executor.place_order = AsyncMock(return_value="T-1")
        executor.close_order = AsyncMock(return_value=True)
        self.bot = self.make_bot(data_source=fixed_source(100.0), executor=executor)
        self.bot.signal_analyzer.analyze = Mock(return_value=strong_buy_signal())
        self.bot.position_manager.evaluate_open = Mock(return_value=(True, []))

        await self.bot.run_cycle()

        position = self.bot.state.positions[0]
        self.assertEqual(position.broker_ticket, "T-1")
        self.assertAlmostEqual(position.quantity, 0.02)
        order = executor.place_order.await_args.args[0]
        self.assertEqual(order.side, "BUY")
        self.assertEqual(order.comment, position.id)
        self.assertIn(ActionType.OPEN_POSITION, self.action_types())
        self.assertIn(ActionType.BROKER_ORDER, self.action_types())

        self.bot.data_source = fixed_source(120.0)
        await self.bot.run_cycle()

        trade = self.bot.state.trades[0]
        self.assertEqual(trade.reason, "stop/target hit")
        self.assertAlmostEqual(trade.profit, 0.4)
        self.assertAlmostEqual(self.bot.state.status.current_balance, 50.4)
        executor.close_order.assert_awaited_with("T-1")
        self.assertIn(ActionType.BROKER_CLOSE, self.action_types())
        self.assertIn(ActionType.UPDATE_SL, self.action_types())

    async def test_executor_failure_keeps_position(self):
        executor = Mock()
        executor.place_order = AsyncMock(side_effect=BrokerUnavailable("rejected"))
        self.bot = self.make_bot(data_source=fixed_source(100.0), executor=executor)
        self.bot.signal_analyzer.analyze = Mock(return_value=strong_buy_signal())
        self.bot.position_manager.evaluate_open = Mock(return_value=(True, []))

        await self.bot.run_cycle()

        self.assertEqual(len(self.bot.state.open_positions), 1)
        self.assertIsNone(self.bot.state.positions[0].broker_ticket)
        self.assertEqual(self.bot.state.actions[0].type, ActionType.BROKER_ERROR)

    async def test_drawdown_tracks_peak(self):
        self.add_open_position(price=90.0)
        self.bot.state.status.is_running = True
        await self.bot.stop()

        status = self.bot.state.status
        # loss of 10 * 0.02 on a peak of 50
        self.assertAlmostEqual(status.max_drawdown, 0.2 / 50)
        self.assertEqual(status.win_rate, 0.0)

    async def test_connect_broker(self):
        session = Mock()
        session.connect = AsyncMock(return_value=AccountInfo(balance=1000.0, equity=1000.0))
        self.bot = self.make_bot(session=session)

        self.assertTrue(await self.bot.connect_broker())

        self.assertEqual(self.bot.config.initial_capital, 1000.0)
        self.assertEqual(self.bot.state.status.current_balance, 1000.0)
        self.assertEqual(self.bot.state.status.total_profit, 0.0)
        self.assertEqual(self.bot.state.actions[0].type, ActionType.BROKER_CONNECTED)

        await self.bot.reset()
        self.assertEqual(self.bot.state.status.current_balance, 1000.0)

    async def test_connect_broker_failure(self):
        session = Mock()
        session.connect = AsyncMock(side_effect=BrokerConnectionError("bad credentials"))
        self.bot = self.make_bot(session=session)

        self.assertFalse(await self.bot.connect_broker())
        self.assertEqual(self.bot.state.actions[0].type, ActionType.BROKER_ERROR)
        self.assertEqual(self.bot.state.status.current_balance, 50.0)

    async def test_connect_broker_without_session(self):
        self.assertFalse(await self.bot.connect_broker())

    async def test_metrics_exported(self):
        await self.bot.run_cycle()
        output = self.bot.metrics.export().decode()
        self.assertIn("trading_bot_balance 50.0", output)
        self.assertIn("trading_bot_cycles_total 1.0", output)

    def slow_source(self, price: float = 100.0):
        """Source that blocks inside the cycle until self.release is set"""
        self.fetching = asyncio.Event()
        self.release = asyncio.Event()

        async def get_latest_sample(symbol):
            self.fetching.set()
            await self.release.wait()
            return PriceSample(price=price, volume=1000.0, timestamp=datetime(2025, 6, 2, 12))

        source = Mock()
        source.get_latest_sample = get_latest_sample
        return source

    def force_open(self):
        self.bot.signal_analyzer.analyze = Mock(return_value=strong_buy_signal())
        self.bot.position_manager.evaluate_open = Mock(return_value=(True, []))

    async def test_stop_waits_for_in_flight_cycle(self):
        self.bot = self.make_bot(data_source=self.slow_source(100.0))
        self.force_open()
        await self.bot.start()
        await self.fetching.wait()

        stop_task = asyncio.create_task(self.bot.stop())
        await asyncio.sleep(0)
        self.assertFalse(stop_task.done())

        self.release.set()
        self.assertTrue(await stop_task)

        state = self.bot.state
        self.assertEqual(state.latest_sample.price, 100.0)
        self.assertEqual(len(state.positions), 1)
        self.assertEqual(state.open_positions, [])
        self.assertEqual(len(state.trades), 1)
        self.assertEqual(state.trades[0].reason, "manual stop")
        self.assertEqual(state.actions[0].type, ActionType.STOP)

    async def test_reset_after_pending_stop(self):
        self.bot = self.make_bot(data_source=self.slow_source())
        await self.bot.start()
        await self.fetching.wait()

        stop_task = asyncio.create_task(self.bot.stop())
        await asyncio.sleep(0)
        reset_task = asyncio.create_task(self.bot.reset())
        await asyncio.sleep(0)

        self.release.set()
        self.assertTrue(await stop_task)
        await reset_task

        fresh = TradingBot(self.config, registry=CollectorRegistry())
        self.assertEqual(self.bot.get_state().to_dict(), fresh.get_state().to_dict())
        self.assertEqual(self.bot.state.actions, [])

    async def test_stop_queued_behind_reset(self):
        self.bot = self.make_bot(data_source=self.slow_source())
        await self.bot.start()
        await self.fetching.wait()

        reset_task = asyncio.create_task(self.bot.reset())
        await asyncio.sleep(0)
        stop_task = asyncio.create_task(self.bot.stop())
        await asyncio.sleep(0)

        self.release.set()
        await reset_task
        self.assertFalse(await stop_task)

        self.assertEqual(self.bot.state.actions, [])
        self.assertEqual(self.bot.state.trades, [])
        self.assertFalse(self.bot.is_running)

    async def test_target_latch_closes_open_position(self):
        self.config = BotConfig(target_profit=1.0, tick_interval=0.01)
        self.bot = self.make_bot()
        position = self.add_open_position(price=110.0)
        status = self.bot.state.status
        status.is_running = True
        status.current_balance = 51.5
        status.total_profit = 1.5

        await self.bot.run_cycle()

        trades = self.bot.state.trades
        self.assertEqual(len(trades), 1)
        self.assertEqual(trades[0].reason, "manual stop")
        self.assertAlmostEqual(trades[0].profit, 0.2)
        self.assertEqual(position.status, PositionStatus.CLOSED)
        self.assertEqual(self.bot.state.open_positions, [])
        self.assertAlmostEqual(status.current_balance, 51.7)
        self.assertAlmostEqual(status.total_profit, status.current_balance - 50.0)
        self.assertTrue(status.target_reached)
        self.assertFalse(status.is_running)
        self.assertEqual(self.bot.state.actions[0].type, ActionType.TARGET_REACHED)

    async def test_trailing_stop_never_loosens(self):
        self.bot = self.make_bot(data_source=fixed_source(100.0))
        self.force_open()
        await self.bot.run_cycle()
        position = self.bot.state.positions[0]

        stops = [position.stop_loss]
        for price in (103.0, 106.0, 104.0, 108.0):
            self.bot.data_source = fixed_source(price)
            await self.bot.run_cycle()
            stops.append(position.stop_loss)

        self.assertEqual(stops, sorted(stops))
        self.assertGreater(stops[-1], stops[0])
        self.assertEqual(stops[3], stops[2])
        self.assertEqual(position.status, PositionStatus.OPEN)

    async def test_open_ignores_market_risk_multiplier(self):
        self.bot = self.make_bot(data_source=fixed_source(100.0))
        self.force_open()
        self.bot.risk_engine.assess_market_risk = Mock(
            return_value=MarketRiskAssessment(level=MarketRiskLevel.EXTREME, score=90.0)
        )

        await self.bot.run_cycle()

        self.assertEqual(self.bot.state.market_risk.level, MarketRiskLevel.EXTREME)
        self.assertEqual(self.bot.state.positions[0].quantity, 0.02)

if __name__ == '__main__':
    unittest.main()
