"""
Data structures for holding the results of a backtest.

All models serialize with camelCase keys (`to_dict`) so they can be handed to
an HTTP layer as JSON without further mapping.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from firstcandle.engine import Side


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Returns a JSON-compatible dictionary with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class TradeResult(_Record):
    """
    A completed round trip.

    Args:
        side (Side): Long or short.
        entry_time (datetime): Timestamp of the entry candle.
        entry_price (float): Close of the entry candle.
        exit_time (datetime): Timestamp of the exit candle.
        exit_price (float): Close of the exit candle.
        profit (float): Realized profit in index points, one point of premium
            per point of the underlying.
        reason (str): Why the position was closed.
    """
    side: Side
    entry_time: datetime
    entry_price: float
    exit_time: datetime
    exit_price: float
    profit: float
    reason: str


class DailyResult(_Record):
    """
    Diagnostics for one trading day.

    Args:
        date (date): The calendar day.
        trade_count (int): Number of completed trades.
        profit (float): Summed profit of the day's trades.
        gap_filter_passed (bool): Whether the day was traded.
        first_candle_close (Optional[float]): Reference close `A`.
        upper_trigger (Optional[float]): Long trigger level.
        lower_trigger (Optional[float]): Short trigger level.
        unclosed_positions (int): Entries still open when the day ended. They
            are discarded, not booked as trades.
    """
    date: date
    trade_count: int = 0
    profit: float = 0.0
    gap_filter_passed: bool = False
    first_candle_close: Optional[float] = None
    upper_trigger: Optional[float] = None
    lower_trigger: Optional[float] = None
    unclosed_positions: int = 0


class BacktestResult(_Record):
    """
    Holds all the results from a single backtest run.

    Args:
        total_trades (int): Number of completed trades.
        winning_trades (int): Trades with a strictly positive profit.
        losing_trades (int): Trades with zero or negative profit.
        win_rate (float): Winning trades as a percentage of all trades.
        gross_profit (float): Sum of winning trades.
        gross_loss (float): Absolute sum of losing trades.
        net_profit (float): Gross profit minus gross loss.
        max_drawdown (float): Largest decline of cumulative trade profit.
        profit_factor (float): Gross profit over gross loss, 0 with no loss.
        metrics (Dict[str, float]): Supplementary registered metrics.
        trades (List[TradeResult]): The trade ledger in chronological order.
        daily_results (List[DailyResult]): One entry per processed day.
    """
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    net_profit: float = 0.0
    max_drawdown: float = 0.0
    profit_factor: float = 0.0
    metrics: Dict[str, float] = Field(default_factory=dict)
    trades: List[TradeResult] = Field(default_factory=list)
    daily_results: List[DailyResult] = Field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        """Returns the aggregate statistics without the ledgers."""
        return self.model_dump(mode="json", by_alias=True, exclude={"trades", "daily_results"})

    def trades_frame(self) -> pd.DataFrame:
        """Returns the trade ledger as a DataFrame, one row per trade."""
        columns = list(TradeResult.model_fields)
        return pd.DataFrame([t.model_dump(mode="json") for t in self.trades], columns=columns)

    def daily_frame(self) -> pd.DataFrame:
        """Returns the daily diagnostics as a DataFrame, one row per day."""
        columns = list(DailyResult.model_fields)
        return pd.DataFrame([d.model_dump(mode="json") for d in self.daily_results], columns=columns)
