"""
Simulated market data and paper broker for Smart Trading Bot
Used standalone and as the fallback when a real data source fails
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional

import numpy as np

from ..core.models import BotConfig, PriceSample
from ..config.trading_config import SESSION_VOLATILITY, SYNTHETIC_PARAMS
from .broker import (
    AccountInfo,
    BrokerAdapter,
    BrokerUnavailable,
    MarketDataSource,
    OrderRequest
)

def session_multiplier(hour: int) -> float:
    """Volatility multiplier for the trading session active at hour"""
    (london_start, london_end), london = SESSION_VOLATILITY['london']
    (ny_start, ny_end), new_york = SESSION_VOLATILITY['new_york']

    if london_start <= hour <= london_end:
        return london
    if ny_start <= hour <= ny_end:
        return new_york
    if hour >= 22 or hour <= 8:
        return SESSION_VOLATILITY['asia']
    return SESSION_VOLATILITY['quiet']


class SyntheticMarketData(MarketDataSource):
    """
    Seedable random walk with market regimes and session volatility

    Each tick draws a regime: trending (30%), ranging (50%) or breakout (20%).
    A fraction of the previous change is carried forward as momentum.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        base_price: float = SYNTHETIC_PARAMS['base_price'],
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.rng = np.random.default_rng(seed)
        self.base_price = base_price
        self.clock = clock
        self.last_sample: Optional[PriceSample] = None
        self.last_change = 0.0
        self.high_24h = 0.0
        self.low_24h = 0.0

    def next_change(self, multiplier: float) -> float:
        """Draw the fractional price change of the next tick"""
        regime = self.rng.random()
        if regime < 0.3:
            direction = 1 if self.rng.random() > 0.5 else -1
            change = (self.rng.random() * 0.02 + 0.005) * direction * multiplier
        elif regime < 0.8:
            change = (self.rng.random() - 0.5) * 0.01 * multiplier
        else:
            direction = 1 if self.rng.random() > 0.5 else -1
            change = (self.rng.random() * 0.03 + 0.01) * direction * multiplier

        momentum = self.last_change * SYNTHETIC_PARAMS['momentum_carry']
        noise = (self.rng.random() - 0.5) * SYNTHETIC_PARAMS['noise']
        return change + momentum + noise

    def generate(
        self,
        symbol: str,
        previous: Optional[PriceSample] = None,
        timestamp: Optional[datetime] = None
    ) -> PriceSample:
        """
        Generate the next tick

        Parameters:
        -----------
        symbol : str
            Symbol stamped on the sample
        previous : PriceSample, optional
            Tick to continue from, defaults to the last generated tick
        timestamp : datetime, optional
            Sample time, defaults to the clock

        Returns:
        --------
        PriceSample
            New synthetic tick
        """
        timestamp = timestamp or self.clock()
        previous = previous or self.last_sample
        current_price = previous.price if previous else self.base_price

        multiplier = session_multiplier(timestamp.hour)
        change = self.next_change(multiplier)
        new_price = max(current_price * (1 + change), 0.01)
        volume = float(np.floor(SYNTHETIC_PARAMS['base_volume'] * (1 + abs(change) * 50) * multiplier))

        if new_price > self.high_24h or self.high_24h == 0:
            self.high_24h = new_price
        if new_price < self.low_24h or self.low_24h == 0:
            self.low_24h = new_price

        sample = PriceSample(
            price=new_price,
            volume=volume,
            timestamp=timestamp,
            high=max(current_price, new_price),
            low=min(current_price, new_price),
            symbol=symbol,
            change_24h=change * 100
        )
        self.last_change = change
        self.last_sample = sample
        return sample

    async def get_latest_sample(self, symbol: str) -> PriceSample:
        return self.generate(symbol)


class PaperBroker(BrokerAdapter):
    """In-memory broker filling every order immediately"""

    name = "paper"

    def __init__(
        self,
        balance: Optional[float] = None,
        seed: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.logger = logging.getLogger(__name__)
        self.balance = balance
        self.market = SyntheticMarketData(seed=seed, clock=clock)
        self.orders: Dict[str, OrderRequest] = {}
        self.connected = False
        self._next_ticket = 1

    async def connect(self, config: BotConfig) -> AccountInfo:
        if self.balance is None:
            self.balance = config.initial_capital
        self.connected = True
        self.logger.info(f"[+] Paper broker connected - balance {self.balance:.2f}")
        return await self.get_account_info()

    async def disconnect(self):
        self.connected = False

    async def get_account_info(self) -> AccountInfo:
        balance = self.balance or 0.0
        return AccountInfo(balance=balance, equity=balance, free_margin=balance)

    async def get_latest_sample(self, symbol: str) -> PriceSample:
        if not self.connected:
            raise BrokerUnavailable("Paper broker is not connected")
        return self.market.generate(symbol)

    async def place_order(self, order: OrderRequest) -> str:
        if not self.connected:
            raise BrokerUnavailable("Paper broker is not connected")
        ticket = f"PAPER-{self._next_ticket}"
        self._next_ticket += 1
        self.orders[ticket] = order
        self.logger.info(f"[+] Paper order {ticket}: {order.side} {order.quantity:.6f} {order.symbol}")
        return ticket

    async def close_order(self, ticket: str) -> bool:
        if not self.connected:
            raise BrokerUnavailable("Paper broker is not connected")
        return self.orders.pop(ticket, None) is not None
