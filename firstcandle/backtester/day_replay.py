"""
Day-by-day replay of a historical candle series through the rule engine.

The series is split into calendar days. Each day starts from a fresh engine
state, is gated by the gap filter against the previous day's last close, and
is calibrated on its first candle. The remaining candles are fed in order and
every exit is paired with the open entry of the same side to form a trade.
"""
import logging
from datetime import date, datetime
from itertools import groupby
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from firstcandle.backtester.base import BaseBacktester
from firstcandle.backtester.results import BacktestResult, DailyResult, TradeResult
from firstcandle.candle import Candle
from firstcandle.engine import Action, RuleEngine, Side
from firstcandle.metrics import (
    calculate_gross_loss,
    calculate_gross_profit,
    calculate_max_drawdown,
    calculate_profit_factor,
    calculate_registered_metrics,
    calculate_win_rate,
)

logger = logging.getLogger(__name__)


def calculate_profit(entry_price: float, exit_price: float, side: Side) -> float:
    """
    Profit of a round trip in index points.

    One point of option premium is assumed per point of the index; no option
    pricing model is applied.
    """
    if side is Side.LONG:
        return exit_price - entry_price
    return entry_price - exit_price


def group_by_day(candles: Sequence[Candle]) -> List[Tuple[date, List[Candle]]]:
    """
    Splits candles into contiguous runs sharing the same calendar date.

    Raises:
        ValueError: If the timestamps are not strictly increasing.
    """
    for previous, current in zip(candles, candles[1:]):
        if current.timestamp <= previous.timestamp:
            raise ValueError(
                f"Candles must be in strictly increasing timestamp order: "
                f"{current.timestamp} follows {previous.timestamp}."
            )
    return [(day, list(group)) for day, group in groupby(candles, key=lambda c: c.timestamp.date())]


class DayReplayBacktester(BaseBacktester):
    """
    Replays candles one day at a time through a `RuleEngine`.
    """

    def run(self, candles: Sequence[Candle], previous_close: float) -> BacktestResult:
        """
        Runs the backtest.

        Args:
            candles (Sequence[Candle]): Chronologically ordered candles,
                possibly spanning many days.
            previous_close (float): Close of the session before the first day.
                Each later day uses the last close of the day before it.

        Returns:
            BacktestResult: Trade ledger, daily diagnostics and statistics.
                An empty series gives an all-zero result.
        """
        engine = RuleEngine(self._config)
        trades: List[TradeResult] = []
        daily_results: List[DailyResult] = []

        for day, day_candles in group_by_day(list(candles)):
            daily_result, day_trades = self._run_day(engine, day, day_candles, previous_close)
            trades.extend(day_trades)
            daily_results.append(daily_result)
            previous_close = day_candles[-1].close

        return self._calculate_results(trades, daily_results)

    def _run_day(
        self,
        engine: RuleEngine,
        day: date,
        candles: List[Candle],
        previous_close: float,
    ) -> Tuple[DailyResult, List[TradeResult]]:
        """Runs the engine over one day's candles."""
        engine.reset()

        first_candle = candles[0]
        if not engine.check_gap_filter(first_candle.open, previous_close):
            logger.info(f"{day}: Gap filter failed - no trading")
            return DailyResult(date=day, gap_filter_passed=False), []

        engine.process_candle(first_candle, is_first_candle=True)
        state = engine.get_state()

        trades: List[TradeResult] = []
        open_trades: Dict[Side, Tuple[datetime, float]] = {}

        for candle in candles[1:]:
            signal = engine.process_candle(candle)
            side = signal.action.side

            if signal.action.is_entry:
                open_trades[side] = (candle.timestamp, signal.price)
                logger.info(f"{day} {candle.timestamp:%H:%M}: {side.value.upper()} ENTRY at {signal.price}")

            elif signal.action.is_exit and side in open_trades:
                entry_time, entry_price = open_trades.pop(side)
                trade = TradeResult(
                    side=side,
                    entry_time=entry_time,
                    entry_price=entry_price,
                    exit_time=candle.timestamp,
                    exit_price=signal.price,
                    profit=calculate_profit(entry_price, signal.price, side),
                    reason=signal.reason,
                )
                trades.append(trade)
                logger.info(
                    f"{day} {candle.timestamp:%H:%M}: {side.value.upper()} EXIT at {signal.price} "
                    f"- Profit: {trade.profit} - {signal.reason}"
                )

        if open_trades:
            logger.warning(f"{day}: {len(open_trades)} position(s) still open at end of day, discarded")

        daily_result = DailyResult(
            date=day,
            trade_count=len(trades),
            profit=sum(t.profit for t in trades),
            gap_filter_passed=True,
            first_candle_close=state.first_candle_close,
            upper_trigger=state.upper_trigger,
            lower_trigger=state.lower_trigger,
            unclosed_positions=len(open_trades),
        )
        return daily_result, trades

    @staticmethod
    def _calculate_results(trades: List[TradeResult], daily_results: List[DailyResult]) -> BacktestResult:
        """Folds the trade ledger into summary statistics."""
        profits = pd.Series([t.profit for t in trades], dtype=float)
        winning = int((profits > 0).sum())

        gross_profit = calculate_gross_profit(profits)
        gross_loss = calculate_gross_loss(profits)

        return BacktestResult(
            total_trades=len(trades),
            winning_trades=winning,
            losing_trades=len(trades) - winning,
            win_rate=calculate_win_rate(profits),
            gross_profit=gross_profit,
            gross_loss=gross_loss,
            net_profit=gross_profit - gross_loss,
            max_drawdown=calculate_max_drawdown(profits),
            profit_factor=calculate_profit_factor(profits),
            metrics=calculate_registered_metrics(profits),
            trades=trades,
            daily_results=daily_results,
        )
