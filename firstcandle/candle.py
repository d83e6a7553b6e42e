"""
The price bar consumed by the rule engine and the backtester.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Candle(BaseModel):
    """
    One fixed-duration OHLCV price bar.

    Args:
        timestamp (datetime): The start time of the bar.
        open (float): The opening price.
        high (float): The highest price during the bar.
        low (float): The lowest price during the bar.
        close (float): The closing price.
        volume (int): The traded volume.
    """
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: int = Field(0, ge=0)
