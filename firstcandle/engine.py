"""
The per-day rule engine of the first-candle breakout strategy.

Logic:
1. Gap filter: trade the day only if it opens within the configured number of
   points of the previous close.
2. Calibrate on the first candle: its close `A` gives the upper trigger
   `A * upper_band_multiplier` and the lower trigger `A * lower_band_multiplier`.
3. Trigger candles: the first candle closing above the upper trigger arms the
   long side, the first candle closing below the lower trigger arms the short
   side.
4. Entry: long when a close breaks above the long trigger candle's high, short
   when a close breaks below the short trigger candle's low.
5. Exit: the day low stops a long and the day high stops a short. A fixed
   number of points from the entry price is the target.

The engine holds the state of a single trading day. `reset` replaces that state
with a fresh `TradeState`; nothing is cleared in place.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from firstcandle.candle import Candle
from firstcandle.config import StrategyConfig


class Side(str, Enum):
    LONG = "long"
    SHORT = "short"


class Action(str, Enum):
    NONE = "none"
    LONG_ENTRY = "long_entry"
    SHORT_ENTRY = "short_entry"
    LONG_EXIT = "long_exit"
    SHORT_EXIT = "short_exit"

    @property
    def side(self) -> Optional[Side]:
        if self in (Action.LONG_ENTRY, Action.LONG_EXIT):
            return Side.LONG
        if self in (Action.SHORT_ENTRY, Action.SHORT_EXIT):
            return Side.SHORT
        return None

    @property
    def is_entry(self) -> bool:
        return self in (Action.LONG_ENTRY, Action.SHORT_ENTRY)

    @property
    def is_exit(self) -> bool:
        return self in (Action.LONG_EXIT, Action.SHORT_EXIT)


class CandleSignal(BaseModel):
    """
    The outcome of feeding one candle to the engine.

    Args:
        action (Action): What the candle triggered.
        price (Optional[float]): Fill price for entries and exits (the candle's
            close), None when nothing happened.
        reason (str): Human-readable explanation.
    """
    action: Action = Action.NONE
    price: Optional[float] = None
    reason: str = "No action"


@dataclass
class SideState:
    """Trigger and position bookkeeping for one side of the market."""
    trigger_candle: Optional[Candle] = None
    entry_price: Optional[float] = None
    is_open: bool = False
    has_traded: bool = False


@dataclass
class TradeState:
    """Mutable state of one trading day."""
    is_gap_filter_valid: bool = False
    previous_close: Optional[float] = None
    first_candle_close: Optional[float] = None
    upper_trigger: Optional[float] = None
    lower_trigger: Optional[float] = None
    day_high: Optional[float] = None
    day_low: Optional[float] = None
    long: SideState = field(default_factory=SideState)
    short: SideState = field(default_factory=SideState)

    @property
    def is_calibrated(self) -> bool:
        return self.upper_trigger is not None and self.lower_trigger is not None

    @property
    def is_tradable(self) -> bool:
        return self.is_gap_filter_valid and self.is_calibrated

    def snapshot(self) -> "TradeState":
        return replace(self, long=replace(self.long), short=replace(self.short))


class RuleEngine:
    """
    Evaluates the breakout rules one candle at a time for a single day.

    An instance is owned by one sequential caller. Concurrent runs must each
    build their own engine.
    """

    def __init__(self, config: Optional[StrategyConfig] = None):
        """
        Initializes the engine.

        Args:
            config (Optional[StrategyConfig]): Strategy parameters. Defaults
                to `StrategyConfig()`.
        """
        self.config = config if config is not None else StrategyConfig()
        self._state = TradeState()

    @property
    def state(self) -> TradeState:
        return self._state

    def get_state(self) -> TradeState:
        """Returns a copy of the current day's state."""
        return self._state.snapshot()

    def reset(self) -> None:
        """Starts a new trading day with a fresh state."""
        self._state = TradeState()

    def check_gap_filter(self, open_price: float, previous_close: float) -> bool:
        """
        Decides whether the day may be traded at all.

        The verdict is stored in the state; a failed filter turns every later
        call for the day into a no-op.

        Args:
            open_price (float): The session's opening price.
            previous_close (float): The previous session's close.

        Returns:
            bool: True if the gap does not exceed `gap_filter_points`.
        """
        gap = abs(open_price - previous_close)
        self._state.previous_close = previous_close
        self._state.is_gap_filter_valid = gap <= self.config.gap_filter_points
        return self._state.is_gap_filter_valid

    def set_gap_filter_verdict(self, is_valid: bool) -> None:
        """Applies a gap filter verdict computed by the caller."""
        self._state.is_gap_filter_valid = is_valid

    def process_first_candle(self, candle: Candle) -> None:
        """Records the reference close and derives both triggers."""
        if not self._state.is_gap_filter_valid:
            return
        self._state.first_candle_close = candle.close
        self._state.upper_trigger = candle.close * self.config.upper_band_multiplier
        self._state.lower_trigger = candle.close * self.config.lower_band_multiplier

    def update_extremes(self, candle: Candle) -> None:
        """Widens the day range and records the first candle beyond each trigger."""
        state = self._state
        if not state.is_tradable:
            return

        state.day_high = candle.high if state.day_high is None else max(state.day_high, candle.high)
        state.day_low = candle.low if state.day_low is None else min(state.day_low, candle.low)

        if state.long.trigger_candle is None and candle.close > state.upper_trigger:
            state.long.trigger_candle = candle
        if state.short.trigger_candle is None and candle.close < state.lower_trigger:
            state.short.trigger_candle = candle

    def check_entry(self, candle: Candle) -> Optional[CandleSignal]:
        """
        Opens a position when the close breaks out of a trigger candle.

        Each side is entered at most once a day.

        Returns:
            Optional[CandleSignal]: The entry signal, or None.
        """
        if not self._state.is_gap_filter_valid:
            return None
        price = candle.close
        long = self._state.long
        if long.trigger_candle is not None and not long.has_traded and price > long.trigger_candle.high:
            self._open(long, price)
            return CandleSignal(action=Action.LONG_ENTRY, price=price, reason="Long trigger breakout")

        short = self._state.short
        if short.trigger_candle is not None and not short.has_traded and price < short.trigger_candle.low:
            self._open(short, price)
            return CandleSignal(action=Action.SHORT_ENTRY, price=price, reason="Short trigger breakout")

        return None

    def check_exit(self, candle: Candle) -> Optional[CandleSignal]:
        """
        Closes an open position at the day extreme or at the target.

        The long side is checked first. Only the reported position is closed.

        Returns:
            Optional[CandleSignal]: The exit signal, or None.
        """
        state = self._state
        if not state.is_gap_filter_valid:
            return None
        price = candle.close
        target = self.config.target_profit_points

        if state.long.is_open:
            if price <= state.day_low:
                reason = f"Long SL hit at Day Low ({state.day_low})"
            elif price >= state.long.entry_price + target:
                reason = f"Long target hit ({target} points profit)"
            else:
                reason = None
            if reason is not None:
                state.long.is_open = False
                return CandleSignal(action=Action.LONG_EXIT, price=price, reason=reason)

        if state.short.is_open:
            if price >= state.day_high:
                reason = f"Short SL hit at Day High ({state.day_high})"
            elif price <= state.short.entry_price - target:
                reason = f"Short target hit ({target} points profit)"
            else:
                reason = None
            if reason is not None:
                state.short.is_open = False
                return CandleSignal(action=Action.SHORT_EXIT, price=price, reason=reason)

        return None

    def process_candle(self, candle: Candle, is_first_candle: bool = False) -> CandleSignal:
        """
        Feeds one candle through the rules.

        The calibration candle never produces an action, and neither does any
        candle while the gap filter verdict is false, even one arriving after
        calibration. Every other candle updates the day range and trigger
        candles, then checks entries, and only checks exits when no entry
        fired.

        Args:
            candle (Candle): The next candle of the day.
            is_first_candle (bool): Whether this is the calibration candle.

        Returns:
            CandleSignal: The resulting action, `Action.NONE` if nothing fired.
        """
        if is_first_candle:
            self.process_first_candle(candle)
            return CandleSignal(reason="First candle processed")
        if not self._state.is_gap_filter_valid:
            return CandleSignal()

        self.update_extremes(candle)
        signal = self.check_entry(candle)
        if signal is None:
            signal = self.check_exit(candle)
        return signal if signal is not None else CandleSignal()

    @staticmethod
    def _open(side: SideState, price: float) -> None:
        side.is_open = True
        side.has_traded = True
        side.entry_price = price
