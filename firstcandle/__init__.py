"""
This __init__.py file exposes the public API of the first-candle breakout
framework.
"""

from .candle import Candle
from .config import Config, StrategyConfig, validate_strategy_config
from .engine import Action, CandleSignal, RuleEngine, Side
from .io import load_config, save_results
from .metrics import register_metric
from .backtester.day_replay import DayReplayBacktester
from .backtester.results import BacktestResult, DailyResult, TradeResult
from .service import evaluate_candle, quick_backtest, run_backtest, validate_strategy

__all__ = [
    "Candle",
    "Config",
    "StrategyConfig",
    "validate_strategy_config",
    "Action",
    "CandleSignal",
    "RuleEngine",
    "Side",
    "load_config",
    "save_results",
    "register_metric",
    "DayReplayBacktester",
    "BacktestResult",
    "DailyResult",
    "TradeResult",
    "evaluate_candle",
    "quick_backtest",
    "run_backtest",
    "validate_strategy",
]
