"""
Data model entities for Smart Trading Bot
Defines the core data structures used throughout the system
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
from enum import Enum


class Direction(Enum):
    """Market direction of a signal"""
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class SignalLabel(Enum):
    """Discrete trading recommendation"""
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"

    @property
    def is_buy(self) -> bool:
        return self in (SignalLabel.STRONG_BUY, SignalLabel.BUY)

    @property
    def is_sell(self) -> bool:
        return self in (SignalLabel.STRONG_SELL, SignalLabel.SELL)


class RiskLevel(Enum):
    """Risk level attached to a signal"""
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class MarketRiskLevel(Enum):
    """Coarse market risk used to scale position size"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class PositionSide(Enum):
    """Position side"""
    LONG = "LONG"
    SHORT = "SHORT"


class PositionStatus(Enum):
    """Position status enumeration"""
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ActionType(Enum):
    """Action log entry types"""
    START = "START"
    STOP = "STOP"
    OPEN_POSITION = "OPEN_POSITION"
    CLOSE_POSITION = "CLOSE_POSITION"
    UPDATE_SL = "UPDATE_SL"
    UPDATE = "UPDATE"
    BROKER_CONNECTED = "BROKER_CONNECTED"
    BROKER_ERROR = "BROKER_ERROR"
    BROKER_ORDER = "BROKER_ORDER"
    BROKER_CLOSE = "BROKER_CLOSE"
    TARGET_REACHED = "TARGET_REACHED"
    ANALYSIS = "ANALYSIS"


@dataclass(frozen=True)
class PriceSample:
    """A single market tick"""
    price: float
    volume: float
    timestamp: datetime
    high: Optional[float] = None
    low: Optional[float] = None
    symbol: str = "BTC/USD"
    change_24h: float = 0.0  # percent

    def __post_init__(self):
        """Validate after initialization"""
        if self.price <= 0:
            raise ValueError("Price must be positive")
        if self.volume < 0:
            raise ValueError("Volume cannot be negative")


@dataclass(frozen=True)
class MACD:
    """MACD line, signal line and histogram"""
    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


@dataclass(frozen=True)
class BollingerBands:
    """Bollinger envelope"""
    upper: float
    middle: float
    lower: float

    @property
    def width(self) -> float:
        """Band width relative to the middle band"""
        if self.middle == 0:
            return 0.0
        return (self.upper - self.lower) / self.middle


@dataclass(frozen=True)
class Indicators:
    """Technical indicator snapshot for one cycle"""
    rsi: float
    macd: MACD
    bollinger: BollingerBands
    sma20: float
    ema20: float
    atr: float
    volume: float
    stoch_k: float = 50.0
    stoch_d: float = 50.0

    def __post_init__(self):
        """Validate after initialization"""
        if not 0 <= self.rsi <= 100:
            raise ValueError("RSI must be between 0 and 100")


@dataclass(frozen=True)
class Signal:
    """Trading signal produced by the analyzer"""
    direction: Direction
    label: SignalLabel
    confidence: float  # 0 - 100
    probability: float  # 0.0 - 1.0
    risk_level: RiskLevel
    entry_price: float
    stop_loss: float
    take_profit: float
    position_size: float
    reasoning: List[str]
    timeframe_minutes: int
    strength: float = 50.0
    risk_factors: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate after initialization"""
        if not 0 <= self.confidence <= 100:
            raise ValueError("Confidence must be between 0 and 100")
        if not 0 <= self.probability <= 1:
            raise ValueError("Probability must be between 0 and 1")
        if self.entry_price <= 0:
            raise ValueError("Entry price must be positive")


@dataclass
class Position:
    """Virtual trading position"""
    id: str
    symbol: str
    side: PositionSide
    entry_price: float
    current_price: float
    quantity: float
    stop_loss: float
    take_profit: float
    opened_at: datetime
    initial_stop_loss: float
    unrealized_pnl: float = 0.0
    status: PositionStatus = PositionStatus.OPEN
    broker_ticket: Optional[str] = None
    closed_at: Optional[datetime] = None
    close_reason: Optional[str] = None

    def __post_init__(self):
        """Validate after initialization"""
        if self.entry_price <= 0:
            raise ValueError("Entry price must be positive")
        if self.quantity <= 0:
            raise ValueError("Quantity must be positive")

    @property
    def is_open(self) -> bool:
        return self.status == PositionStatus.OPEN

    def pnl_at(self, price: float) -> float:
        """Profit or loss of the position valued at price"""
        if self.side == PositionSide.LONG:
            return (price - self.entry_price) * self.quantity
        return (self.entry_price - price) * self.quantity

    def profit_fraction(self, price: float) -> float:
        """Unrealized profit as a fraction of the entry price"""
        if self.side == PositionSide.LONG:
            return (price - self.entry_price) / self.entry_price
        return (self.entry_price - price) / self.entry_price

    def update_pnl(self, current_price: float):
        """Update position PNL"""
        self.current_price = current_price
        self.unrealized_pnl = self.pnl_at(current_price)


@dataclass(frozen=True)
class Trade:
    """Closed trade record"""
    id: str
    symbol: str
    side: PositionSide
    entry_price: float
    exit_price: float
    quantity: float
    profit: float
    duration_minutes: int
    closed_at: datetime
    reason: str


@dataclass
class BotConfig:
    """Bot configuration"""
    initial_capital: float = 50.0
    target_profit: float = 100.0
    max_risk_per_trade: float = 0.01
    max_daily_loss: float = 0.05
    risk_reward_ratio: float = 3.0
    symbol: str = "BTC/USD"
    tick_interval: float = 1.5  # seconds
    data_timeout: float = 5.0  # seconds
    history_capacity: int = 200
    seed: Optional[int] = None

    def __post_init__(self):
        """Validate after initialization"""
        if self.initial_capital <= 0:
            raise ValueError("Initial capital must be positive")
        if self.target_profit <= 0:
            raise ValueError("Target profit must be positive")
        if not 0 < self.max_risk_per_trade <= 0.05:
            raise ValueError("Max risk per trade must be between 0 and 0.05")
        if not 0 < self.max_daily_loss <= 1:
            raise ValueError("Max daily loss must be between 0 and 1")
        if self.risk_reward_ratio <= 0:
            raise ValueError("Risk reward ratio must be positive")
        if self.tick_interval <= 0:
            raise ValueError("Tick interval must be positive")
        if self.data_timeout <= 0:
            raise ValueError("Data timeout must be positive")
        if self.history_capacity < 50:
            raise ValueError("History capacity must be at least 50")


@dataclass
class BotStatus:
    """Running status of the bot"""
    current_balance: float
    peak_balance: float
    is_running: bool = False
    total_profit: float = 0.0
    target_reached: bool = False
    trades_count: int = 0
    win_rate: float = 0.0
    max_drawdown: float = 0.0
    last_action: str = ""
    start_time: Optional[datetime] = None


@dataclass(frozen=True)
class BotAction:
    """Action log entry"""
    type: ActionType
    timestamp: datetime
    details: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class RiskSnapshot:
    """Risk metrics computed from the current indicators"""
    current_risk: float = 0.0
    max_risk: float = 0.0
    position_size: float = 0.0
    stop_loss_distance: float = 0.0
    take_profit_distance: float = 0.0
    risk_reward_ratio: float = 0.0
    volatility: float = 0.0


@dataclass(frozen=True)
class MarketRiskAssessment:
    """Coarse market risk assessment"""
    level: MarketRiskLevel
    score: float  # 0 - 100
    factors: List[str] = field(default_factory=list)


@dataclass
class BotState:
    """Aggregate root owned by the orchestrator"""
    config: BotConfig
    status: BotStatus
    positions: List[Position] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    latest_sample: Optional[PriceSample] = None
    latest_indicators: Optional[Indicators] = None
    latest_signal: Optional[Signal] = None
    risk_snapshot: RiskSnapshot = field(default_factory=RiskSnapshot)
    market_risk: Optional[MarketRiskAssessment] = None
    actions: List[BotAction] = field(default_factory=list)

    @property
    def open_positions(self) -> List[Position]:
        return [p for p in self.positions if p.is_open]

    def to_dict(self) -> Dict:
        """Serialize the state to JSON-friendly primitives"""
        return _to_primitive(self)


def _to_primitive(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, '__dataclass_fields__'):
        return {name: _to_primitive(getattr(value, name)) for name in value.__dataclass_fields__}
    if isinstance(value, (list, tuple)):
        return [_to_primitive(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_primitive(v) for k, v in value.items()}
    return value
