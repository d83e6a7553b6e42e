"""
Entry points for callers such as HTTP handlers.

Candles may be passed as `Candle` objects or as plain mappings with
`timestamp`, `open`, `high`, `low`, `close` and `volume` keys; timestamps may be
ISO 8601 strings. Results are pydantic models with a `to_dict` method for JSON
transport.
"""
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from firstcandle.backtester.day_replay import DayReplayBacktester
from firstcandle.backtester.results import BacktestResult
from firstcandle.candle import Candle
from firstcandle.config import StrategyConfig, validate_strategy_config
from firstcandle.data.sample import generate_sample_data
from firstcandle.engine import CandleSignal, RuleEngine, TradeState

CandleInput = Union[Candle, Mapping[str, Any]]


def to_candle(candle: CandleInput) -> Candle:
    """Validates one candle record."""
    if isinstance(candle, Candle):
        return candle
    return Candle.model_validate(candle)


def run_backtest(
    historical_data: Sequence[CandleInput],
    previous_close: float,
    config: Optional[StrategyConfig] = None,
) -> BacktestResult:
    """
    Backtests the strategy over a historical candle series.

    Args:
        historical_data (Sequence[CandleInput]): Chronologically ordered
            candles.
        previous_close (float): Close of the session before the first candle.
        config (Optional[StrategyConfig]): Strategy parameters.

    Returns:
        BacktestResult: The trades, daily diagnostics and statistics.
    """
    candles = [to_candle(c) for c in historical_data]
    return DayReplayBacktester(config).run(candles, previous_close)


class CandleEvaluation(BaseModel):
    """
    Result of evaluating a single candle.

    Args:
        signal (CandleSignal): The engine's action for the candle.
        state (Optional[Dict[str, Any]]): Snapshot of the engine state after
            the candle, None when the gap filter stopped evaluation.
        gap_filter_valid (bool): The gap filter verdict in effect.
    """
    signal: CandleSignal
    state: Optional[Dict[str, Any]] = None
    gap_filter_valid: bool


def _state_to_dict(state: TradeState) -> Dict[str, Any]:
    data = asdict(state)
    for side in ("long", "short"):
        trigger = data[side]["trigger_candle"]
        if trigger is not None:
            data[side]["trigger_candle"] = trigger.model_dump(mode="json")
    return data


def evaluate_candle(
    candle: CandleInput,
    is_first_candle: bool = False,
    gap_filter_valid: Optional[bool] = None,
    previous_close: Optional[float] = None,
    engine: Optional[RuleEngine] = None,
    config: Optional[StrategyConfig] = None,
) -> CandleEvaluation:
    """
    Evaluates one candle, for callers that receive candles live.

    Pass the same `engine` on every call to build the day's state
    incrementally; without one, a fresh engine is used.

    Args:
        candle (CandleInput): The candle to evaluate.
        is_first_candle (bool): Whether this is the day's calibration candle.
        gap_filter_valid (Optional[bool]): A verdict the caller already has.
        previous_close (Optional[float]): When given, the gap filter is checked
            against the candle's open, taking precedence over
            `gap_filter_valid`.
        engine (Optional[RuleEngine]): Engine holding the day's state so far.
        config (Optional[StrategyConfig]): Parameters for a new engine.

    Returns:
        CandleEvaluation: The signal, the resulting state and the verdict.
    """
    candle = to_candle(candle)
    if engine is None:
        engine = RuleEngine(config)

    if previous_close is not None:
        if not engine.check_gap_filter(candle.open, previous_close):
            return CandleEvaluation(signal=CandleSignal(reason="Gap filter failed"), gap_filter_valid=False)
    elif gap_filter_valid is not None:
        engine.set_gap_filter_verdict(gap_filter_valid)

    signal = engine.process_candle(candle, is_first_candle=is_first_candle)
    state = engine.get_state()
    return CandleEvaluation(
        signal=signal,
        state=_state_to_dict(state),
        gap_filter_valid=state.is_gap_filter_valid,
    )


def validate_strategy(raw: Mapping[str, Any]) -> List[str]:
    """
    Checks strategy parameters before an engine is built.

    Returns:
        List[str]: Every problem found; empty when the parameters are valid.
    """
    return validate_strategy_config(raw)


def generate_sample_payload(days: int = 5, seed: Optional[int] = None) -> Dict[str, Any]:
    """Returns a generated candle series in transport form."""
    sample = generate_sample_data(days=days, seed=seed)
    return {
        "candles": [c.model_dump(mode="json") for c in sample.candles],
        "previousClose": sample.previous_close,
        "totalCandles": len(sample.candles),
        "days": days,
    }


def quick_backtest(
    days: int = 5,
    seed: Optional[int] = None,
    config: Optional[StrategyConfig] = None,
) -> Dict[str, Any]:
    """
    Backtests the strategy over a generated sample series.

    Returns:
        Dict[str, Any]: The full result under `results` and a formatted
        summary under `summary`.
    """
    sample = generate_sample_data(days=days, seed=seed)
    results = DayReplayBacktester(config).run(sample.candles, sample.previous_close)
    return {
        "results": results,
        "summary": {
            "totalTrades": results.total_trades,
            "winRate": f"{results.win_rate:.2f}%",
            "netProfit": f"{results.net_profit:.2f}",
            "profitFactor": f"{results.profit_factor:.2f}",
        },
    }
