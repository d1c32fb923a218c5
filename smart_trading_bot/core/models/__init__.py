# Module information
__version__ = "2.0.0"
__author__ = "Anhbaza"
__created_at__ = "2025-06-02 09:14:51"

# Import all entities
from .entities import (
    Direction,
    SignalLabel,
    RiskLevel,
    MarketRiskLevel,
    PositionSide,
    PositionStatus,
    ActionType,
    PriceSample,
    MACD,
    BollingerBands,
    Indicators,
    Signal,
    Position,
    Trade,
    BotConfig,
    BotStatus,
    BotAction,
    RiskSnapshot,
    MarketRiskAssessment,
    BotState
)

# Export all models
__all__ = [
    'Direction',
    'SignalLabel',
    'RiskLevel',
    'MarketRiskLevel',
    'PositionSide',
    'PositionStatus',
    'ActionType',
    'PriceSample',
    'MACD',
    'BollingerBands',
    'Indicators',
    'Signal',
    'Position',
    'Trade',
    'BotConfig',
    'BotStatus',
    'BotAction',
    'RiskSnapshot',
    'MarketRiskAssessment',
    'BotState'
]
