"""
Abstract base class for backtesting engines.
"""
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from firstcandle.backtester.results import BacktestResult
from firstcandle.candle import Candle
from firstcandle.config import StrategyConfig


class BaseBacktester(ABC):
    """
    Abstract base class for all backtesting engines.

    It defines the common interface for replaying a candle series through the
    strategy and summarizing the trades it produced.
    """

    def __init__(self, config: Optional[StrategyConfig] = None):
        """
        Initializes the backtester.

        Args:
            config (Optional[StrategyConfig]): Strategy parameters used for
                every run. Defaults to `StrategyConfig()`.
        """
        self._config = config if config is not None else StrategyConfig()

    @property
    def config(self) -> StrategyConfig:
        return self._config

    @abstractmethod
    def run(self, candles: Sequence[Candle], previous_close: float) -> BacktestResult:
        """
        Runs a backtest over the given candles.

        Args:
            candles (Sequence[Candle]): Chronologically ordered candles.
            previous_close (float): Close of the session before the first
                candle.

        Returns:
            BacktestResult: An object containing the results of the backtest.
        """
        raise NotImplementedError
