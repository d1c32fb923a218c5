"""
Smart Trading Bot Core Module
Contains the indicator, signal and risk analysis logic and data models
"""

# Core module information
__version__ = "2.0.0"
__author__ = "Anhbaza"
__copyright__ = f"Copyright (c) 2025, {__author__}"

# Import core components
from .analyzer import IndicatorCalculator, SignalAnalyzer, RiskEngine
from .models import PriceSample, Indicators, Signal, Position, Trade, BotState
from .utils import calculations, indicators

# Export core components
__all__ = [
    'IndicatorCalculator',
    'SignalAnalyzer',
    'RiskEngine',
    'PriceSample',
    'Indicators',
    'Signal',
    'Position',
    'Trade',
    'BotState',
    'calculations',
    'indicators'
]
