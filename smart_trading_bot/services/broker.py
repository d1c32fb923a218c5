"""
Broker capability interfaces for Smart Trading Bot
The orchestrator depends only on these abstractions
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..core.models import BotConfig, PriceSample


class BrokerError(Exception):
    """Base class for broker failures"""


class BrokerUnavailable(BrokerError):
    """Raised when market data or an order endpoint cannot be reached"""


class BrokerConnectionError(BrokerError):
    """Raised when a broker session cannot be established"""


@dataclass(frozen=True)
class AccountInfo:
    """Broker account snapshot"""
    balance: float
    equity: float
    currency: str = "USD"
    margin: float = 0.0
    free_margin: float = 0.0
    leverage: int = 1


@dataclass(frozen=True)
class OrderRequest:
    """Order sent to an executor"""
    symbol: str
    side: str  # 'BUY' or 'SELL'
    quantity: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    comment: str = ""

    def __post_init__(self):
        """Validate after initialization"""
        if self.side not in {'BUY', 'SELL'}:
            raise ValueError("Side must be 'BUY' or 'SELL'")
        if self.quantity <= 0:
            raise ValueError("Quantity must be positive")


class MarketDataSource(ABC):
    """Provides the latest tick for a symbol"""

    @abstractmethod
    async def get_latest_sample(self, symbol: str) -> PriceSample:
        """Return the latest sample, raise BrokerUnavailable on failure"""


class OrderExecutor(ABC):
    """Places and closes orders on a best-effort basis"""

    @abstractmethod
    async def place_order(self, order: OrderRequest) -> str:
        """Place an order and return its ticket"""

    @abstractmethod
    async def close_order(self, ticket: str) -> bool:
        """Close the order identified by ticket"""


class BrokerSession(ABC):
    """Authenticated broker session"""

    @abstractmethod
    async def connect(self, config: BotConfig) -> AccountInfo:
        """Connect and return account info, raise BrokerConnectionError on failure"""

    async def disconnect(self):
        """Release session resources"""


class BrokerAdapter(MarketDataSource, OrderExecutor, BrokerSession):
    """One venue implementing every broker capability"""

    name: str = "broker"

    @abstractmethod
    async def get_account_info(self) -> AccountInfo:
        """Return the current account snapshot"""
