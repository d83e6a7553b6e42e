"""
Sample intraday data for exercising the rule engine and the backtester.

Each generated day opens with a gap from the previous day's last close and then
follows a small random walk of fixed-interval bars.
"""
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from pydantic import BaseModel

from firstcandle.candle import Candle

SESSION_OPEN = time(9, 15)
BAR_MINUTES = 5


class SampleData(BaseModel):
    """
    A generated candle series.

    Args:
        candles (List[Candle]): Candles of every day, in order.
        previous_close (float): Close of the session before the first day.
    """
    candles: List[Candle]
    previous_close: float


def generate_sample_data(
    days: int = 5,
    bars_per_day: int = 72,
    seed: Optional[int] = None,
    start: date = date(2024, 1, 1),
    base_price: float = 19500.0,
    max_gap: float = 150.0,
    gaps: Optional[Sequence[float]] = None,
    step: float = 20.0,
    wick: float = 10.0,
) -> SampleData:
    """
    Generates `days` weekdays of 5-minute candles starting at 09:15.

    Args:
        days (int): Number of trading days.
        bars_per_day (int): Candles per day.
        seed (Optional[int]): Seed for the random generator.
        start (date): First calendar day; weekends are skipped.
        base_price (float): Previous close of the first day.
        max_gap (float): Opening gaps are drawn uniformly from
            [-max_gap, max_gap] when `gaps` is not given.
        gaps (Optional[Sequence[float]]): Explicit opening gap of each day.
        step (float): Width of the uniform close-to-close move.
        wick (float): Largest wick beyond the candle body.

    Returns:
        SampleData: The candles and the previous close of the first day.
    """
    if days <= 0:
        raise ValueError("days must be positive.")
    if bars_per_day <= 0:
        raise ValueError("bars_per_day must be positive.")
    if gaps is not None and len(gaps) != days:
        raise ValueError(f"Expected {days} gaps, got {len(gaps)}.")

    rng = np.random.default_rng(seed)
    candles: List[Candle] = []
    last_close = base_price

    for day_idx, day in enumerate(pd.bdate_range(start=start, periods=days)):
        session_start = datetime.combine(day.date(), SESSION_OPEN)
        gap = gaps[day_idx] if gaps is not None else rng.uniform(-max_gap, max_gap)
        open_price = last_close + gap

        for i in range(bars_per_day):
            open_ = open_price if i == 0 else last_close
            close = open_ + rng.uniform(-step / 2, step / 2)
            high = max(open_, close) + rng.uniform(0, wick)
            low = min(open_, close) - rng.uniform(0, wick)
            candles.append(Candle(
                timestamp=session_start + timedelta(minutes=i * BAR_MINUTES),
                open=float(open_),
                high=float(high),
                low=float(low),
                close=float(close),
                volume=int(rng.integers(500_000, 1_500_000)),
            ))
            last_close = close

    return SampleData(candles=candles, previous_close=base_price)
