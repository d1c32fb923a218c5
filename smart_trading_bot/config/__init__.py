"""
Smart Trading Bot Configuration Package
Initialize configuration settings and logging
"""

from .settings import load_settings, validate_config, build_bot_config, TRADING_CONFIG
from .logging_config import setup_logging, get_logger

# Version info
__version__ = "2.0.0"
__author__ = "Anhbaza"
__copyright__ = f"Copyright (c) 2025, {__author__}"

# Initialize package
__all__ = [
    'load_settings',
    'validate_config',
    'build_bot_config',
    'TRADING_CONFIG',
    'setup_logging',
    'get_logger'
]
