"""
Position lifecycle management service
Decides when to open, trails the stop and evaluates close conditions
"""

import logging
import math
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ...core.models import (
    BotConfig,
    BotStatus,
    Position,
    PositionSide,
    PositionStatus,
    RiskLevel,
    Signal,
    SignalLabel,
    Trade
)
from ...core.utils.validators import validate_trade_parameters
from ...config.trading_config import OPEN_CONDITIONS, CLOSE_CONDITIONS
from ...shared.constants import (
    CLOSE_REASON_STOP_TARGET,
    CLOSE_REASON_TIME_LIMIT,
    CLOSE_REASON_REVERSAL,
    CLOSE_REASON_RISK,
    CLOSE_REASON_CONFIDENCE
)

class PositionLifecycleManager:
    def __init__(self, settings: Optional[Dict] = None):
        """Initialize position manager"""
        self.logger = logging.getLogger("PositionManager")

        settings = settings or {}
        self.MIN_CONFIDENCE = settings.get('min_confidence', OPEN_CONDITIONS['min_confidence'])
        self.MIN_PROBABILITY = settings.get('min_probability', OPEN_CONDITIONS['min_probability'])
        self.MAX_DRAWDOWN = settings.get('max_drawdown', OPEN_CONDITIONS['max_drawdown'])
        self.MIN_BALANCE_RATIO = settings.get('min_balance_ratio', OPEN_CONDITIONS['min_balance_ratio'])
        self.MIN_HISTORY = settings.get('min_history', OPEN_CONDITIONS['min_history'])
        self.EXIT_MIN_CONFIDENCE = settings.get('exit_min_confidence', CLOSE_CONDITIONS['min_confidence'])
        self.TRAIL_ACTIVATION = settings.get('trail_activation', CLOSE_CONDITIONS['trail_activation'])

    @staticmethod
    def open_positions(positions: Sequence[Position]) -> List[Position]:
        return [p for p in positions if p.status == PositionStatus.OPEN]

    def evaluate_open(
        self,
        signal: Signal,
        positions: Sequence[Position],
        status: BotStatus,
        config: BotConfig,
        history_length: int
    ) -> Tuple[bool, List[str]]:
        """
        Check every open condition

        Parameters:
        -----------
        signal : Signal
            Signal of the current cycle
        positions : Sequence[Position]
            All known positions
        status : BotStatus
            Current account status
        config : BotConfig
            Bot configuration
        history_length : int
            Samples available to the analyzer

        Returns:
        --------
        Tuple[bool, List[str]]
            (should_open, unmet conditions)
        """
        reasons: List[str] = []

        if self.open_positions(positions):
            reasons.append("Position already open")
        if signal.confidence < self.MIN_CONFIDENCE:
            reasons.append(f"Confidence {signal.confidence:.1f}% < {self.MIN_CONFIDENCE}%")
        if signal.label not in (SignalLabel.STRONG_BUY, SignalLabel.STRONG_SELL):
            reasons.append(f"Signal: {signal.label.value}")
        if signal.risk_level not in (RiskLevel.VERY_LOW, RiskLevel.LOW):
            reasons.append(f"Risk: {signal.risk_level.value}")
        if signal.probability < self.MIN_PROBABILITY:
            reasons.append(f"Probability: {signal.probability * 100:.1f}%")
        if status.max_drawdown >= self.MAX_DRAWDOWN:
            reasons.append(f"Drawdown: {status.max_drawdown * 100:.1f}%")
        if status.current_balance <= config.initial_capital * self.MIN_BALANCE_RATIO:
            reasons.append("Account health concern")
        if history_length < self.MIN_HISTORY:
            reasons.append("Insufficient market data")

        return not reasons, reasons

    def open_position(
        self,
        signal: Signal,
        positions: Sequence[Position],
        symbol: str,
        now: datetime
    ) -> Tuple[Optional[Position], str]:
        """
        Create a position from a signal

        Never raises: an existing OPEN position or an invalid price geometry
        yields (None, reason).

        Returns:
        --------
        Tuple[Optional[Position], str]
            (new position or None, description)
        """
        if self.open_positions(positions):
            self.logger.warning("[!] Cannot open position: a position is already open")
            return None, "Position already open"

        side = PositionSide.LONG if signal.label.is_buy else PositionSide.SHORT
        quantity = signal.position_size

        is_valid, error = validate_trade_parameters(
            side.value,
            signal.entry_price,
            signal.stop_loss,
            signal.take_profit,
            quantity
        )
        if not is_valid:
            self.logger.warning(f"[!] Cannot open position: {error}")
            return None, error

        position = Position(
            id=f"pos_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}",
            symbol=symbol,
            side=side,
            entry_price=signal.entry_price,
            current_price=signal.entry_price,
            quantity=quantity,
            stop_loss=signal.stop_loss,
            take_profit=signal.take_profit,
            opened_at=now,
            initial_stop_loss=signal.stop_loss
        )

        self.logger.info(
            f"[+] Opened {side.value} {symbol} at {position.entry_price:.2f} "
            f"(SL {position.stop_loss:.2f}, TP {position.take_profit:.2f}, qty {quantity:.6f})"
        )
        return position, (
            f"{side.value} position opened: Entry {position.entry_price:.2f}, "
            f"SL {position.stop_loss:.2f}, TP {position.take_profit:.2f} "
            f"(Confidence: {signal.confidence:.1f}%, Risk: {signal.risk_level.value})"
        )

    def update_position(self, position: Position, price: float):
        """Refresh current price and unrealized P&L"""
        position.update_pnl(price)

    def update_trailing_stop(self, position: Position, price: float) -> Optional[Tuple[float, float]]:
        """
        Ratchet the stop in the favorable direction

        The stop only moves once unrealized profit exceeds TRAIL_ACTIVATION of
        the entry price, and it is never loosened.

        Returns:
        --------
        Optional[Tuple[float, float]]
            (old_stop, new_stop) when the stop moved, otherwise None
        """
        profit_fraction = position.profit_fraction(price)
        if profit_fraction <= self.TRAIL_ACTIVATION:
            return None

        base_distance = abs(position.entry_price - position.initial_stop_loss) / 2
        trail_distance = base_distance * (1 + profit_fraction * 2)
        old_stop = position.stop_loss

        if position.side == PositionSide.LONG:
            new_stop = price - trail_distance
            if new_stop <= old_stop:
                return None
        else:
            new_stop = price + trail_distance
            if new_stop >= old_stop:
                return None

        position.stop_loss = new_stop
        self.logger.info(
            f"[*] Trailing stop {old_stop:.2f} -> {new_stop:.2f} "
            f"(Profit: {profit_fraction * 100:.1f}%)"
        )
        return old_stop, new_stop

    def check_close_conditions(
        self,
        position: Position,
        price: float,
        signal: Signal,
        now: datetime
    ) -> Optional[str]:
        """
        Check if position should be closed

        Returns:
        --------
        Optional[str]
            First matching close reason or None
        """
        if position.side == PositionSide.LONG:
            if price <= position.stop_loss or price >= position.take_profit:
                return CLOSE_REASON_STOP_TARGET
        else:
            if price >= position.stop_loss or price <= position.take_profit:
                return CLOSE_REASON_STOP_TARGET

        age_minutes = (now - position.opened_at).total_seconds() / 60
        if age_minutes > signal.timeframe_minutes:
            return CLOSE_REASON_TIME_LIMIT

        if (position.side == PositionSide.LONG and signal.label.is_sell) or \
                (position.side == PositionSide.SHORT and signal.label.is_buy):
            return CLOSE_REASON_REVERSAL

        if signal.risk_level in (RiskLevel.HIGH, RiskLevel.EXTREME):
            return CLOSE_REASON_RISK

        if signal.confidence < self.EXIT_MIN_CONFIDENCE:
            return CLOSE_REASON_CONFIDENCE

        return None

    def close_position(
        self,
        position: Position,
        price: float,
        reason: str,
        now: datetime
    ) -> Trade:
        """
        Close the position at price and realize P&L

        The exit is realized at the triggering price, not at the stop or
        target level.
        """
        if position.status != PositionStatus.OPEN:
            raise ValueError(f"Position {position.id} is not open")

        position.update_pnl(price)
        profit = position.pnl_at(price)
        position.status = PositionStatus.CLOSED
        position.closed_at = now
        position.close_reason = reason

        duration = math.floor((now - position.opened_at).total_seconds() / 60)
        trade = Trade(
            id=f"trade_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:6]}",
            symbol=position.symbol,
            side=position.side,
            entry_price=position.entry_price,
            exit_price=price,
            quantity=position.quantity,
            profit=profit,
            duration_minutes=max(0, duration),
            closed_at=now,
            reason=reason
        )

        result = "WIN" if profit > 0 else "LOSS"
        self.logger.info(
            f"[-] Closed {position.side.value} {position.symbol} at {price:.2f} "
            f"P&L {profit:.4f} ({result}) - {reason}"
        )
        return trade

    @staticmethod
    def position_risk(position: Position) -> float:
        """Money at risk between entry and the current stop"""
        return abs(position.entry_price - position.stop_loss) * position.quantity

    def position_summary(self, positions: Sequence[Position]) -> Dict:
        """Counts and unrealized P&L across positions"""
        open_positions = self.open_positions(positions)
        return {
            'total': len(positions),
            'open': len(open_positions),
            'closed': len(positions) - len(open_positions),
            'total_unrealized_pnl': sum(p.unrealized_pnl for p in open_positions),
            'total_risk': sum(self.position_risk(p) for p in open_positions)
        }
