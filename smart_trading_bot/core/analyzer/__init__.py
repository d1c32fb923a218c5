"""
Smart Trading Bot Analyzer Module
Contains indicator, signal and risk analysis components
"""

# Module information
__version__ = "2.0.0"
__author__ = "Anhbaza"
__created_at__ = "2025-06-02 09:31:44"

# Import analyzers
from .indicator_calculator import IndicatorCalculator
from .signal_analyzer import SignalAnalyzer, MarketWindow
from .risk_engine import RiskEngine

# Export components
__all__ = [
    'IndicatorCalculator',
    'SignalAnalyzer',
    'MarketWindow',
    'RiskEngine'
]
