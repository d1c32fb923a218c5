"""
Binance broker adapter for Smart Trading Bot
Market data from the 24h ticker, orders validated against the testnet
"""

import asyncio
import logging
from typing import Dict, Optional
from datetime import datetime
from binance import AsyncClient
from binance.exceptions import BinanceAPIException

from ..core.models import BotConfig, PriceSample
from .broker import (
    AccountInfo,
    BrokerAdapter,
    BrokerConnectionError,
    BrokerUnavailable,
    OrderRequest
)

def to_exchange_symbol(symbol: str) -> str:
    """
    Convert a display symbol to the Binance format

    'BTC/USD' -> 'BTCUSDT', 'ETH/USDT' -> 'ETHUSDT', 'BTCUSDT' unchanged
    """
    if '/' not in symbol:
        return symbol.upper()
    base, quote = symbol.upper().split('/', 1)
    if quote == 'USD':
        quote = 'USDT'
    return f"{base}{quote}"


def ticker_to_sample(ticker: Dict, symbol: str, timestamp: datetime) -> PriceSample:
    """Map a Binance 24h ticker payload to a PriceSample"""
    return PriceSample(
        price=float(ticker['lastPrice']),
        volume=float(ticker.get('volume', 0.0)),
        timestamp=timestamp,
        high=float(ticker['highPrice']) if ticker.get('highPrice') else None,
        low=float(ticker['lowPrice']) if ticker.get('lowPrice') else None,
        symbol=symbol,
        change_24h=float(ticker.get('priceChangePercent', 0.0))
    )


class BinanceBroker(BrokerAdapter):
    name = "binance"

    def __init__(self, api_key: str = "", api_secret: str = "", testnet: bool = True):
        """
        Initialize Binance broker

        Parameters:
        -----------
        api_key : str
            Binance API key
        api_secret : str
            Binance API secret
        testnet : bool
            Route requests to the Binance testnet
        """
        self.api_key = api_key
        self.api_secret = api_secret
        self.testnet = testnet
        self.async_client: Optional[AsyncClient] = None
        self.logger = logging.getLogger(__name__)
        self.last_api_call = datetime.utcnow()
        self.RATE_LIMIT_DELAY = 0.1  # seconds between API calls
        self.quote_asset = "USDT"
        self.orders: Dict[str, OrderRequest] = {}

    async def connect(self, config: BotConfig) -> AccountInfo:
        """Create the async client and return the account snapshot"""
        if not self.api_key or not self.api_secret:
            raise BrokerConnectionError("Binance API key and secret are required")

        try:
            self.async_client = await AsyncClient.create(
                self.api_key,
                self.api_secret,
                testnet=self.testnet
            )
            exchange_symbol = to_exchange_symbol(config.symbol)
            self.quote_asset = 'USDT' if exchange_symbol.endswith('USDT') else exchange_symbol[-3:]
            account = await self.get_account_info()
            self.logger.info(f"[+] Connected to Binance - balance {account.balance:.2f} {account.currency}")
            return account

        except BinanceAPIException as e:
            self.logger.error(f"[-] Binance API error while connecting: {str(e)}")
            raise BrokerConnectionError(str(e)) from e
        except BrokerConnectionError:
            raise
        except Exception as e:
            self.logger.error(f"[-] Error connecting to Binance: {str(e)}")
            raise BrokerConnectionError(str(e)) from e

    async def disconnect(self):
        """Close async client"""
        if self.async_client:
            await self.async_client.close_connection()
            self.async_client = None

    async def check_health(self) -> bool:
        """Check API connection health"""
        try:
            await self._handle_rate_limit()
            await self._client().ping()
            return True
        except Exception as e:
            self.logger.error(f"Health check failed: {str(e)}")
            return False

    async def _handle_rate_limit(self):
        """Handle API rate limiting"""
        now = datetime.utcnow()
        elapsed = (now - self.last_api_call).total_seconds()
        if elapsed < self.RATE_LIMIT_DELAY:
            await asyncio.sleep(self.RATE_LIMIT_DELAY - elapsed)
        self.last_api_call = now

    def _client(self) -> AsyncClient:
        if self.async_client is None:
            raise BrokerUnavailable("Binance client is not connected")
        return self.async_client

    async def get_account_info(self) -> AccountInfo:
        """
        Get the free balance of the quote asset

        Returns:
        --------
        AccountInfo
            Account snapshot in the quote asset
        """
        try:
            await self._handle_rate_limit()
            balance = await self._client().get_asset_balance(asset=self.quote_asset)
            free = float(balance['free']) if balance else 0.0
            locked = float(balance['locked']) if balance else 0.0
            return AccountInfo(
                balance=free,
                equity=free + locked,
                currency=self.quote_asset,
                margin=locked,
                free_margin=free
            )
        except BinanceAPIException as e:
            self.logger.error(f"Binance API error getting account: {str(e)}")
            raise BrokerUnavailable(str(e)) from e

    async def get_latest_sample(self, symbol: str) -> PriceSample:
        """
        Get the latest 24h ticker as a sample

        Parameters:
        -----------
        symbol : str
            Trading symbol, e.g. 'BTC/USD'

        Returns:
        --------
        PriceSample
            Latest market sample
        """
        try:
            await self._handle_rate_limit()
            ticker = await self._client().get_ticker(symbol=to_exchange_symbol(symbol))
            return ticker_to_sample(ticker, symbol, datetime.utcnow())
        except BrokerUnavailable:
            raise
        except BinanceAPIException as e:
            self.logger.error(f"Binance API error getting ticker for {symbol}: {str(e)}")
            raise BrokerUnavailable(str(e)) from e
        except Exception as e:
            self.logger.error(f"Error getting ticker for {symbol}: {str(e)}")
            raise BrokerUnavailable(str(e)) from e

    async def place_order(self, order: OrderRequest) -> str:
        """
        Validate a market order against the exchange

        Returns:
        --------
        str
            Local ticket of the order
        """
        try:
            await self._handle_rate_limit()
            await self._client().create_test_order(
                symbol=to_exchange_symbol(order.symbol),
                side=order.side,
                type='MARKET',
                quantity=round(order.quantity, 6)
            )
            ticket = f"BINANCE-{int(datetime.utcnow().timestamp() * 1000)}"
            self.orders[ticket] = order
            self.logger.info(f"[+] Binance order {ticket}: {order.side} {order.quantity:.6f} {order.symbol}")
            return ticket

        except BinanceAPIException as e:
            self.logger.error(f"Binance API error creating order: {str(e)}")
            raise BrokerUnavailable(str(e)) from e

    async def close_order(self, ticket: str) -> bool:
        """Send the opposite market order for a ticket"""
        order = self.orders.get(ticket)
        if order is None:
            self.logger.warning(f"[!] Unknown order ticket {ticket}")
            return False

        try:
            await self._handle_rate_limit()
            await self._client().create_test_order(
                symbol=to_exchange_symbol(order.symbol),
                side='SELL' if order.side == 'BUY' else 'BUY',
                type='MARKET',
                quantity=round(order.quantity, 6)
            )
            del self.orders[ticket]
            return True

        except BinanceAPIException as e:
            self.logger.error(f"Binance API error closing order {ticket}: {str(e)}")
            raise BrokerUnavailable(str(e)) from e
