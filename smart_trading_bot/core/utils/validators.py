"""
Validation utilities for Smart Trading Bot
Provides functions for validating trading parameters and data
"""

from typing import Optional, Tuple
import re

def validate_price(
    price: float,
    min_price: float = 0,
    max_price: Optional[float] = None
) -> bool:
    """
    Validate price value

    Parameters:
    -----------
    price : float
        Price to validate
    min_price : float
        Minimum allowed price
    max_price : float, optional
        Maximum allowed price

    Returns:
    --------
    bool
        True if valid, False otherwise
    """
    try:
        if price <= min_price:
            return False
        if max_price and price >= max_price:
            return False
        return True
    except Exception:
        return False

def validate_symbol(symbol: str) -> bool:
    """
    Validate trading symbol format

    Accepts exchange style ('BTCUSDT') and pair style ('BTC/USD') symbols.

    Parameters:
    -----------
    symbol : str
        Trading symbol to validate

    Returns:
    --------
    bool
        True if valid, False otherwise
    """
    try:
        pattern = r'^[A-Z0-9]{2,10}(/[A-Z0-9]{2,10})?$'
        return bool(re.match(pattern, symbol)) and len(symbol.replace('/', '')) <= 20
    except Exception:
        return False

def validate_trade_parameters(
    side: str,
    entry: float,
    stop_loss: float,
    take_profit: float,
    quantity: float
) -> Tuple[bool, Optional[str]]:
    """
    Validate the price geometry of a position before it is opened

    Parameters:
    -----------
    side : str
        'LONG' or 'SHORT'
    entry : float
        Entry price
    stop_loss : float
        Stop loss price
    take_profit : float
        Take profit price
    quantity : float
        Position quantity

    Returns:
    --------
    Tuple[bool, Optional[str]]
        (is_valid, error_message)
    """
    if side not in ('LONG', 'SHORT'):
        return False, "Invalid side"
    if not validate_price(entry):
        return False, "Invalid entry price"
    if quantity <= 0:
        return False, "Invalid quantity"

    if side == 'LONG' and not stop_loss < entry < take_profit:
        return False, "LONG requires stop < entry < target"
    if side == 'SHORT' and not take_profit < entry < stop_loss:
        return False, "SHORT requires target < entry < stop"

    return True, None
