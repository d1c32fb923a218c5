"""
Prometheus metrics for Smart Trading Bot
Each bot owns its registry so several bots can live in one process
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from ..core.models import BotStatus

class BotMetrics:
    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.balance = Gauge('trading_bot_balance', 'Current account balance', registry=self.registry)
        self.total_profit = Gauge('trading_bot_total_profit', 'Balance minus initial capital', registry=self.registry)
        self.open_positions = Gauge('trading_bot_open_positions', 'Number of open positions', registry=self.registry)
        self.win_rate = Gauge('trading_bot_win_rate', 'Percentage of winning trades', registry=self.registry)
        self.max_drawdown = Gauge('trading_bot_max_drawdown', 'Peak-to-trough drawdown fraction', registry=self.registry)
        self.trades = Counter('trading_bot_trades', 'Closed trades', ['result'], registry=self.registry)
        self.cycles = Counter('trading_bot_cycles', 'Completed trading cycles', registry=self.registry)
        self.errors = Counter('trading_bot_errors', 'Failed trading cycles', registry=self.registry)

    def observe_status(self, status: BotStatus, open_positions: int):
        """Copy the status snapshot into the gauges"""
        self.balance.set(status.current_balance)
        self.total_profit.set(status.total_profit)
        self.open_positions.set(open_positions)
        self.win_rate.set(status.win_rate)
        self.max_drawdown.set(status.max_drawdown)

    def record_trade(self, profit: float):
        self.trades.labels(result='win' if profit > 0 else 'loss').inc()

    def record_cycle(self):
        self.cycles.inc()

    def record_error(self):
        self.errors.inc()

    def export(self) -> bytes:
        """Render the registry in the Prometheus text format"""
        return generate_latest(self.registry)
