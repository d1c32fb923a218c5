"""
Configuration settings for Smart Trading Bot
Loads environment variables and an optional YAML file into one settings dict
"""

import os
import logging
from typing import Dict, Any, Optional

import yaml
from dotenv import load_dotenv

from ..core.models import BotConfig
from ..core.utils.validators import validate_symbol
from ..shared.constants import BROKER_BINANCE, BROKER_PAPER

# Trading Parameters
TRADING_CONFIG = {
    # Account
    'INITIAL_CAPITAL': 50.0,
    'TARGET_PROFIT': 100.0,
    'MAX_RISK_PER_TRADE': 0.01,    # 1% risk per trade
    'MAX_DAILY_LOSS': 0.05,
    'RISK_REWARD_RATIO': 3.0,

    # Market
    'SYMBOL': 'BTC/USD',
    'BROKER': 'paper',
    'SEED': None,

    # Time Settings
    'TICK_INTERVAL': 1.5,          # seconds
    'DATA_TIMEOUT': 5.0,           # seconds
    'HISTORY_CAPACITY': 200,

    # Control Server
    'CONTROL_HOST': 'localhost',
    'CONTROL_PORT': 8765,

    # Logging
    'LOG_LEVEL': 'INFO',
    'LOG_DIR': 'logs'
}

# Environment overrides and their types
ENV_OVERRIDES = {
    'INITIAL_CAPITAL': float,
    'TARGET_PROFIT': float,
    'MAX_RISK_PER_TRADE': float,
    'TICK_INTERVAL': float,
    'SYMBOL': str,
    'LOG_LEVEL': str,
    'LOG_DIR': str,
    'BINANCE_API_KEY': str,
    'BINANCE_API_SECRET': str,
    'BROKER': str,
    'CONTROL_HOST': str,
    'CONTROL_PORT': int,
    'SEED': int
}

logger = logging.getLogger(__name__)

def load_yaml_config(yaml_file: str) -> Dict[str, Any]:
    """
    Read upper-case settings from a YAML file

    Parameters:
    -----------
    yaml_file : str
        Path to the YAML file

    Returns:
    --------
    Dict[str, Any]
        Settings found in the file, empty if the file is missing
    """
    if not os.path.exists(yaml_file):
        return {}

    with open(yaml_file, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{yaml_file} must contain a mapping")

    return {str(key).upper(): value for key, value in data.items()}

def load_settings(
    env_file: Optional[str] = None,
    yaml_file: str = 'config.yaml'
) -> Dict[str, Any]:
    """
    Load settings from defaults, YAML and environment variables

    Later sources win: TRADING_CONFIG, then config.yaml, then the environment.
    A missing env file is not an error.

    Returns
    -------
    Dict[str, Any]
        Dictionary containing all settings
    """
    if env_file is None:
        env_file = '.env' if os.path.exists('.env') else 'data.env'
    if os.path.exists(env_file):
        load_dotenv(env_file)
        logger.info(f"[+] Loaded environment from: {os.path.abspath(env_file)}")

    settings: Dict[str, Any] = {
        **TRADING_CONFIG,
        'BINANCE_API_KEY': '',
        'BINANCE_API_SECRET': ''
    }
    settings.update(load_yaml_config(yaml_file))

    for var_name, var_type in ENV_OVERRIDES.items():
        value = os.getenv(var_name)
        if value is None or value == '':
            continue
        try:
            settings[var_name] = var_type(value)
        except ValueError:
            logger.warning(f"[!] Ignoring invalid {var_name}={value!r}")

    settings['BROKER'] = str(settings['BROKER']).lower()
    return settings

def validate_config(settings: Dict[str, Any]) -> bool:
    """
    Validate configuration values

    Returns:
    --------
    bool
        True if valid, False otherwise
    """
    try:
        if settings['INITIAL_CAPITAL'] <= 0:
            raise ValueError("INITIAL_CAPITAL must be positive")
        if settings['TARGET_PROFIT'] <= 0:
            raise ValueError("TARGET_PROFIT must be positive")
        if not 0 < settings['MAX_RISK_PER_TRADE'] <= 0.05:
            raise ValueError("MAX_RISK_PER_TRADE must be between 0 and 0.05")
        if not validate_symbol(str(settings['SYMBOL'])):
            raise ValueError(f"Invalid SYMBOL: {settings['SYMBOL']}")
        if settings['TICK_INTERVAL'] <= 0:
            raise ValueError("TICK_INTERVAL must be positive")
        if settings['BROKER'] not in (BROKER_PAPER, BROKER_BINANCE):
            raise ValueError("BROKER must be 'paper' or 'binance'")
        if settings['BROKER'] == BROKER_BINANCE and not (
                settings.get('BINANCE_API_KEY') and settings.get('BINANCE_API_SECRET')):
            raise ValueError("BINANCE_API_KEY and BINANCE_API_SECRET are required for the binance broker")
        if not 0 < int(settings['CONTROL_PORT']) < 65536:
            raise ValueError("CONTROL_PORT must be a valid port")

        return True

    except Exception as e:
        logger.error(f"Configuration validation failed: {str(e)}")
        return False

def build_bot_config(settings: Dict[str, Any]) -> BotConfig:
    """Create the BotConfig described by a settings dict"""
    seed = settings.get('SEED')
    return BotConfig(
        initial_capital=float(settings['INITIAL_CAPITAL']),
        target_profit=float(settings['TARGET_PROFIT']),
        max_risk_per_trade=float(settings['MAX_RISK_PER_TRADE']),
        max_daily_loss=float(settings.get('MAX_DAILY_LOSS', TRADING_CONFIG['MAX_DAILY_LOSS'])),
        risk_reward_ratio=float(settings.get('RISK_REWARD_RATIO', TRADING_CONFIG['RISK_REWARD_RATIO'])),
        symbol=str(settings['SYMBOL']),
        tick_interval=float(settings['TICK_INTERVAL']),
        data_timeout=float(settings.get('DATA_TIMEOUT', TRADING_CONFIG['DATA_TIMEOUT'])),
        history_capacity=int(settings.get('HISTORY_CAPACITY', TRADING_CONFIG['HISTORY_CAPACITY'])),
        seed=int(seed) if seed is not None else None
    )

# Export configuration
__all__ = [
    'TRADING_CONFIG',
    'ENV_OVERRIDES',
    'load_yaml_config',
    'load_settings',
    'validate_config',
    'build_bot_config'
]
