"""
Smart Trading Bot Services Module
Contains broker capability interfaces and the paper and Binance adapters
"""

# Module information
__version__ = "2.0.0"
__author__ = "Anhbaza"
__created_at__ = "2025-06-02 09:14:51"

# Import services
from .broker import (
    AccountInfo,
    BrokerAdapter,
    BrokerConnectionError,
    BrokerError,
    BrokerSession,
    BrokerUnavailable,
    MarketDataSource,
    OrderExecutor,
    OrderRequest
)
from .simulated_broker import PaperBroker, SyntheticMarketData, session_multiplier
from .binance_client import BinanceBroker, to_exchange_symbol
from ..shared.constants import BROKER_BINANCE, BROKER_PAPER

def create_broker(name: str, api_key: str = "", api_secret: str = "", seed=None) -> BrokerAdapter:
    """
    Build a broker adapter by name

    Parameters:
    -----------
    name : str
        'paper' or 'binance'

    Returns:
    --------
    BrokerAdapter
        Configured adapter
    """
    if name == BROKER_PAPER:
        return PaperBroker(seed=seed)
    if name == BROKER_BINANCE:
        return BinanceBroker(api_key, api_secret)
    raise ValueError(f"Unknown broker: {name}")

# Export services
__all__ = [
    'AccountInfo',
    'BrokerAdapter',
    'BrokerConnectionError',
    'BrokerError',
    'BrokerSession',
    'BrokerUnavailable',
    'MarketDataSource',
    'OrderExecutor',
    'OrderRequest',
    'PaperBroker',
    'SyntheticMarketData',
    'session_multiplier',
    'BinanceBroker',
    'to_exchange_symbol',
    'create_broker'
]
