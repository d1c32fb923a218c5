"""
Smart Trading Bot Order Management Module
Position lifecycle: open conditions, trailing stops and close conditions
"""

from .services.position_manager import PositionLifecycleManager

__all__ = [
    'PositionLifecycleManager'
]
