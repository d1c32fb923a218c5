#!/usr/bin/env python3
"""
Smart Trading Bot
Author: Anhbaza
Version: 2.0.0

Drives the periodic trading cycle: fetch a market sample, update indicators,
analyze, manage the open position, maybe open a new one, update metrics.
"""

import os
import copy
import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from prometheus_client import CollectorRegistry

from .config import build_bot_config, load_settings, setup_logging, validate_config
from .config.trading_config import ACTION_LOG_LIMIT
from .core.analyzer import IndicatorCalculator, RiskEngine, SignalAnalyzer
from .core.models import (
    ActionType,
    BotAction,
    BotConfig,
    BotState,
    BotStatus,
    Position,
    PositionSide,
    Trade
)
from .order_management.services.position_manager import PositionLifecycleManager
from .services import (
    BrokerSession,
    MarketDataSource,
    OrderExecutor,
    OrderRequest,
    SyntheticMarketData,
    create_broker
)
from .shared.constants import (
    CLOSE_REASON_MANUAL,
    ORDER_SIDE_BUY,
    ORDER_SIDE_SELL,
    SMART_METRICS_EVERY,
    TRADING_BOT_NAME
)
from .shared.metrics import BotMetrics

class TradingBot:
    def __init__(
        self,
        config: Optional[BotConfig] = None,
        data_source: Optional[MarketDataSource] = None,
        executor: Optional[OrderExecutor] = None,
        session: Optional[BrokerSession] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        registry: Optional[CollectorRegistry] = None
    ):
        """
        Initialize the bot

        Parameters:
        -----------
        config : BotConfig, optional
            Bot configuration, defaults to BotConfig()
        data_source : MarketDataSource, optional
            Market data provider, defaults to the synthetic generator
        executor : OrderExecutor, optional
            Order endpoint notified on open and close
        session : BrokerSession, optional
            Broker session used by connect_broker()
        clock : Callable[[], datetime]
            Source of the current time
        registry : CollectorRegistry, optional
            Prometheus registry receiving the bot metrics
        """
        self.logger = logging.getLogger(TRADING_BOT_NAME)
        self.config = config or BotConfig()
        self.clock = clock

        self.synthetic = SyntheticMarketData(seed=self.config.seed, clock=clock)
        self.data_source = data_source or self.synthetic
        self.executor = executor
        self.session = session

        self.indicator_calculator = IndicatorCalculator()
        self.signal_analyzer = SignalAnalyzer({'history_capacity': self.config.history_capacity})
        self.risk_engine = RiskEngine()
        self.position_manager = PositionLifecycleManager()
        self.metrics = BotMetrics(registry)

        self._cycle_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self.state = self._initial_state()

        self.logger.info(
            f"[+] Bot initialized at {self.clock().strftime('%Y-%m-%d %H:%M:%S')} UTC - "
            f"capital {self.config.initial_capital:.2f}, target {self.config.target_profit:.2f}"
        )

    def _initial_state(self) -> BotState:
        return BotState(
            config=self.config,
            status=BotStatus(
                current_balance=self.config.initial_capital,
                peak_balance=self.config.initial_capital
            )
        )

    @property
    def is_running(self) -> bool:
        return self.state.status.is_running

    # ------------------------------------------------------------------
    # Control operations
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Start the timer task, False if already running or target reached"""
        status = self.state.status
        if status.target_reached:
            self._log_action(
                ActionType.START,
                "Cannot start: target profit already reached",
                False,
                "Target reached"
            )
            return False
        if status.is_running:
            self._log_action(ActionType.START, "Bot is already running", False, "Already running")
            return False

        status.is_running = True
        status.start_time = self.clock()
        self._log_action(
            ActionType.START,
            f"Smart trading bot started - Capital: {self.config.initial_capital:.2f}, "
            f"Target: {self.config.target_profit:.2f}, Symbol: {self.config.symbol}",
            True
        )
        self._task = asyncio.create_task(self._run_loop())
        return True

    async def stop(self) -> bool:
        """
        Stop the bot and close the open position

        An in-flight cycle finishes before the position is closed.

        Returns:
        --------
        bool
            False without any mutation when the bot is not running
        """
        state = self.state
        if not state.status.is_running:
            return False

        state.status.is_running = False
        async with self._cycle_lock:
            if self.state is not state:
                # reset() replaced the state while we waited
                return False
            await self._cancel_timer()
            closed = await self._close_all(CLOSE_REASON_MANUAL)
            self._update_metrics()

        self._log_action(
            ActionType.STOP,
            f"Bot stopped - closed {closed} position(s), balance {self.state.status.current_balance:.2f}",
            True
        )
        return True

    async def reset(self):
        """
        Cancel the timer and restore the initial state

        Waits for an in-flight cycle or a pending stop() before replacing the
        state, so nothing queued earlier writes into the fresh one.
        """
        async with self._cycle_lock:
            await self._cancel_timer()
            self.indicator_calculator.reset()
            self.signal_analyzer.reset()
            self.state = self._initial_state()
            self._update_metrics()
        self.logger.info("[*] Bot reset to initial configuration")

    def get_state(self) -> BotState:
        """Deep copy of the current state"""
        return copy.deepcopy(self.state)

    def get_status(self) -> BotStatus:
        return copy.deepcopy(self.state.status)

    async def connect_broker(self) -> bool:
        """
        Connect the broker session and adopt its balance as capital

        Returns:
        --------
        bool
            True when the session connected and the balance was adopted
        """
        if self.session is None:
            self._log_action(ActionType.BROKER_ERROR, "No broker session configured", False, "No session")
            return False
        if self.state.status.is_running:
            self._log_action(
                ActionType.BROKER_ERROR,
                "Cannot connect broker while the bot is running",
                False,
                "Bot running"
            )
            return False

        try:
            account = await asyncio.wait_for(
                self.session.connect(self.config),
                timeout=self.config.data_timeout
            )
            config = replace(self.config, initial_capital=account.balance)
        except Exception as e:
            self.logger.error(f"[-] Broker connection failed: {str(e)}")
            self._log_action(ActionType.BROKER_ERROR, "Broker connection failed", False, str(e) or type(e).__name__)
            return False

        self.config = config
        self.state.config = config
        status = self.state.status
        status.current_balance = account.balance
        status.peak_balance = account.balance
        status.total_profit = status.current_balance - config.initial_capital
        self._update_metrics()

        self._log_action(
            ActionType.BROKER_CONNECTED,
            f"Broker connected - balance {account.balance:.2f} {account.currency}",
            True
        )
        return True

    # ------------------------------------------------------------------
    # Trading cycle
    # ------------------------------------------------------------------

    async def _run_loop(self):
        while self.state.status.is_running:
            await self.run_cycle()
            if not self.state.status.is_running:
                break
            await asyncio.sleep(self.config.tick_interval)

    async def _cancel_timer(self):
        task = self._task
        self._task = None
        if task is None or task is asyncio.current_task() or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def run_cycle(self):
        """Run one trading cycle, skipped when a previous one is still in flight"""
        if self._cycle_lock.locked():
            self.logger.debug("[*] Previous cycle still running, skipping tick")
            return

        async with self._cycle_lock:
            try:
                await self._cycle()
                self.metrics.record_cycle()
            except Exception as e:
                self.logger.error(f"[-] Error in trading cycle: {str(e)}")
                self.metrics.record_error()
                self._log_action(ActionType.UPDATE, "Trading cycle failed", False, str(e))

    async def _cycle(self):
        state = self.state
        status = state.status
        config = self.config

        # 1. Target latch
        if status.total_profit >= config.target_profit:
            if not status.target_reached:
                status.target_reached = True
                await self._halt()
                self._log_action(
                    ActionType.TARGET_REACHED,
                    f"Target profit reached: {status.total_profit:.2f} >= {config.target_profit:.2f}",
                    True
                )
            return

        # 2. Market data
        sample = await self._fetch_sample()
        now = self.clock()

        # 3. Analysis
        indicators = self.indicator_calculator.update(sample)
        self.signal_analyzer.update(sample)
        signal = self.signal_analyzer.analyze()

        state.latest_sample = sample
        state.latest_indicators = indicators
        state.latest_signal = signal
        state.risk_snapshot = self.risk_engine.compute_risk(
            indicators,
            sample.price,
            status.current_balance,
            config.max_risk_per_trade
        )
        state.market_risk = self.risk_engine.assess_market_risk(indicators, sample)

        # 4. Manage the open position
        for position in state.open_positions:
            self.position_manager.update_position(position, sample.price)

            moved = self.position_manager.update_trailing_stop(position, sample.price)
            if moved:
                old_stop, new_stop = moved
                self._log_action(
                    ActionType.UPDATE_SL,
                    f"Trailing stop updated: {old_stop:.2f} -> {new_stop:.2f}",
                    True
                )

            reason = self.position_manager.check_close_conditions(position, sample.price, signal, now)
            if reason:
                await self._close_position(position, sample.price, reason, now)

        # 5. Maybe open
        if not state.open_positions:
            should_open, reasons = self.position_manager.evaluate_open(
                signal,
                state.positions,
                status,
                config,
                len(self.signal_analyzer)
            )
            if should_open:
                position, message = self.position_manager.open_position(
                    signal,
                    state.positions,
                    config.symbol,
                    now
                )
                if position:
                    state.positions.append(position)
                    self._log_action(ActionType.OPEN_POSITION, message, True)
                    await self._notify_open(position)
                else:
                    self._log_action(ActionType.OPEN_POSITION, "Position not opened", False, message)
            else:
                self._log_action(
                    ActionType.ANALYSIS,
                    f"Waiting for optimal conditions: {', '.join(reasons)}",
                    True
                )

        # 6. Metrics
        self._update_metrics()

    async def _fetch_sample(self):
        """Latest sample from the data source, synthetic on failure"""
        symbol = self.config.symbol
        try:
            return await asyncio.wait_for(
                self.data_source.get_latest_sample(symbol),
                timeout=self.config.data_timeout
            )
        except Exception as e:
            error = str(e) or type(e).__name__
            self.logger.warning(f"[!] Market data unavailable, using simulated data: {error}")
            self._log_action(
                ActionType.BROKER_ERROR,
                "Market data unavailable, using simulated data",
                False,
                error
            )
            return self.synthetic.generate(symbol, self.state.latest_sample, self.clock())

    async def _halt(self):
        """Close everything and stop the loop from inside a cycle"""
        self.state.status.is_running = False
        await self._close_all(CLOSE_REASON_MANUAL)

    async def _close_all(self, reason: str) -> int:
        now = self.clock()
        open_positions = self.state.open_positions
        for position in open_positions:
            await self._close_position(position, position.current_price, reason, now)
        return len(open_positions)

    async def _close_position(self, position: Position, price: float, reason: str, now: datetime):
        trade = self.position_manager.close_position(position, price, reason, now)
        self._record_trade(trade)
        self.signal_analyzer.record_trade_result(trade, trade.profit > 0)

        self._log_action(
            ActionType.CLOSE_POSITION,
            f"{trade.side.value} position closed at {price:.2f}: {reason} "
            f"(P&L: {trade.profit:+.4f})",
            True
        )
        await self._notify_close(position)

    def _record_trade(self, trade: Trade):
        status = self.state.status
        self.state.trades.append(trade)
        status.current_balance += trade.profit
        status.total_profit = status.current_balance - self.config.initial_capital
        status.trades_count = len(self.state.trades)
        self.metrics.record_trade(trade.profit)
        self._update_metrics()

        if status.trades_count % SMART_METRICS_EVERY == 0:
            smart = self.signal_analyzer.get_performance_metrics()
            self._log_action(
                ActionType.ANALYSIS,
                f"Smart metrics: Win rate {smart['win_rate']:.1f}%, "
                f"Profit factor {smart['profit_factor']:.2f}, "
                f"Learning rate {smart['learning_rate'] * 100:.1f}%",
                True
            )

    def _update_metrics(self):
        state = self.state
        status = state.status
        initial = self.config.initial_capital

        if state.trades:
            wins = sum(1 for t in state.trades if t.profit > 0)
            status.win_rate = wins / len(state.trades) * 100

        status.peak_balance = max(status.peak_balance, status.current_balance)
        drawdown = max(0.0, (status.peak_balance - status.current_balance) / initial)
        status.max_drawdown = max(status.max_drawdown, drawdown)

        self.metrics.observe_status(status, len(state.open_positions))

    # ------------------------------------------------------------------
    # Broker notifications
    # ------------------------------------------------------------------

    async def _notify_open(self, position: Position):
        if self.executor is None:
            return

        order = OrderRequest(
            symbol=position.symbol,
            side=ORDER_SIDE_BUY if position.side == PositionSide.LONG else ORDER_SIDE_SELL,
            quantity=position.quantity,
            stop_loss=position.stop_loss,
            take_profit=position.take_profit,
            comment=position.id
        )
        try:
            ticket = await asyncio.wait_for(
                self.executor.place_order(order),
                timeout=self.config.data_timeout
            )
            position.broker_ticket = ticket
            self._log_action(ActionType.BROKER_ORDER, f"Broker order placed: {ticket}", True)
        except Exception as e:
            self.logger.error(f"[-] Broker order failed: {str(e)}")
            self._log_action(ActionType.BROKER_ERROR, "Broker order failed", False, str(e) or type(e).__name__)

    async def _notify_close(self, position: Position):
        if self.executor is None or position.broker_ticket is None:
            return

        try:
            closed = await asyncio.wait_for(
                self.executor.close_order(position.broker_ticket),
                timeout=self.config.data_timeout
            )
            self._log_action(
                ActionType.BROKER_CLOSE,
                f"Broker order closed: {position.broker_ticket}",
                closed,
                None if closed else "Unknown ticket"
            )
        except Exception as e:
            self.logger.error(f"[-] Broker close failed: {str(e)}")
            self._log_action(ActionType.BROKER_ERROR, "Broker close failed", False, str(e) or type(e).__name__)

    # ------------------------------------------------------------------
    # Action log
    # ------------------------------------------------------------------

    def _log_action(self, action_type: ActionType, details: str, success: bool, error: Optional[str] = None):
        """Prepend an action, keeping the newest ACTION_LOG_LIMIT entries"""
        action = BotAction(
            type=action_type,
            timestamp=self.clock(),
            details=details,
            success=success,
            error=error
        )
        actions = self.state.actions
        actions.insert(0, action)
        del actions[ACTION_LOG_LIMIT:]
        self.state.status.last_action = details

        if success:
            self.logger.info(f"[+] {action_type.value}: {details}")
        else:
            self.logger.warning(f"[!] {action_type.value}: {details} ({error})")


async def run_bot(settings) -> None:
    """Run the bot and its control server until cancelled"""
    from .control_server import ControlServer

    logger = logging.getLogger(TRADING_BOT_NAME)
    config = build_bot_config(settings)
    broker = create_broker(
        settings['BROKER'],
        settings.get('BINANCE_API_KEY', ''),
        settings.get('BINANCE_API_SECRET', ''),
        seed=config.seed
    )
    bot = TradingBot(config, data_source=broker, executor=broker, session=broker)
    server = ControlServer(bot, settings['CONTROL_HOST'], int(settings['CONTROL_PORT']))

    try:
        if not await bot.connect_broker():
            logger.warning("[!] Broker not connected, falling back to simulated data")
        await bot.start()
        await server.start()
    finally:
        await bot.stop()
        await server.stop()
        await broker.disconnect()
        logger.info("[*] Bot stopped")


def main():
    """Main entry point"""
    settings = load_settings()
    setup_logging(settings['LOG_LEVEL'], log_dir=settings['LOG_DIR'])
    if not validate_config(settings):
        print("\n[ERROR] Invalid configuration, see logs")
        return

    # Set event loop policy for Windows
    if os.name == 'nt':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    main_task = loop.create_task(run_bot(settings))

    try:
        loop.run_until_complete(main_task)

    except KeyboardInterrupt:
        print("\n[!] Bot stopped by user")
        main_task.cancel()
        try:
            loop.run_until_complete(main_task)
        except asyncio.CancelledError:
            pass
    except Exception as e:
        print(f"\n[ERROR] Fatal error: {str(e)}")
    finally:
        try:
            tasks = [t for t in asyncio.all_tasks(loop) if not t.done()]
            for task in tasks:
                task.cancel()
            if tasks:
                loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))

            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

        except Exception as e:
            print(f"\n[ERROR] Error during shutdown: {str(e)}")


if __name__ == "__main__":
    main()
