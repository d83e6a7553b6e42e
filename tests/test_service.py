"""
Tests for the caller-facing entry points.
"""
import pytest
from pydantic import ValidationError

from firstcandle.config import StrategyConfig
from firstcandle.engine import Action, RuleEngine
from firstcandle.service import (
    evaluate_candle,
    generate_sample_payload,
    quick_backtest,
    run_backtest,
    validate_strategy,
)


def candle_record(minute, open_, high, low, close):
    return {
        "timestamp": f"2024-01-02T09:{15 + minute:02d}:00",
        "open": open_,
        "high": high,
        "low": low,
        "close": close,
        "volume": 1000,
    }


@pytest.fixture
def long_day_records():
    """
    Provides a day of plain candle records producing one long target trade.
    """
    return [
        candle_record(0, 100.0, 100.0, 100.0, 100.0),
        candle_record(5, 100.0, 100.5, 100.0, 100.2),
        candle_record(10, 100.4, 100.7, 100.3, 100.6),
        candle_record(15, 100.6, 101.6, 100.6, 101.6),
    ]


def test_run_backtest_from_records(long_day_records):
    result = run_backtest(long_day_records, previous_close=100.0, config=StrategyConfig(target_profit_points=1.0))

    assert result.total_trades == 1
    assert result.trades[0].profit == pytest.approx(1.0)
    data = result.to_dict()
    assert data["trades"][0]["exitTime"] == "2024-01-02T09:30:00"


def test_run_backtest_rejects_malformed_candle(long_day_records):
    del long_day_records[2]["close"]
    with pytest.raises(ValidationError):
        run_backtest(long_day_records, previous_close=100.0)


def test_run_backtest_empty():
    result = run_backtest([], previous_close=100.0)
    assert result.total_trades == 0
    assert result.win_rate == 0.0
    assert result.profit_factor == 0.0
    assert result.trades == [] and result.daily_results == []


def test_evaluate_candle_gap_filter_failure():
    evaluation = evaluate_candle(candle_record(0, 19800.0, 19810.0, 19790.0, 19805.0),
                                 is_first_candle=True, previous_close=19500.0)

    assert evaluation.gap_filter_valid is False
    assert evaluation.signal.action is Action.NONE
    assert evaluation.signal.reason == "Gap filter failed"
    assert evaluation.state is None


def test_evaluate_first_candle_with_previous_close():
    evaluation = evaluate_candle(candle_record(0, 19520.0, 19530.0, 19510.0, 19525.0),
                                 is_first_candle=True, previous_close=19500.0)

    assert evaluation.gap_filter_valid is True
    assert evaluation.signal.reason == "First candle processed"
    assert evaluation.state["first_candle_close"] == 19525.0
    assert evaluation.state["upper_trigger"] == pytest.approx(19525.0 * 1.0009)


def test_evaluate_candle_without_verdict_is_not_calibrated():
    evaluation = evaluate_candle(candle_record(0, 100.0, 100.0, 100.0, 100.0), is_first_candle=True)

    assert evaluation.gap_filter_valid is False
    assert evaluation.state["upper_trigger"] is None


def test_evaluate_candle_incrementally(long_day_records):
    """
    Tests that passing the same engine builds the day's state candle by
    candle, as in live evaluation.
    """
    engine = RuleEngine(StrategyConfig(target_profit_points=1.0))

    first = evaluate_candle(long_day_records[0], is_first_candle=True, gap_filter_valid=True, engine=engine)
    assert first.gap_filter_valid is True
    assert first.signal.action is Action.NONE

    actions = [evaluate_candle(record, engine=engine).signal.action for record in long_day_records[1:]]
    assert actions == [Action.NONE, Action.LONG_ENTRY, Action.LONG_EXIT]

    state = evaluate_candle(candle_record(20, 101.6, 101.7, 101.5, 101.6), engine=engine).state
    assert state["long"]["trigger_candle"]["close"] == 100.2
    assert state["long"]["has_traded"] is True
    assert state["long"]["is_open"] is False


def test_evaluate_candle_false_verdict_after_first_candle(long_day_records):
    engine = RuleEngine(StrategyConfig(target_profit_points=1.0))
    evaluate_candle(long_day_records[0], is_first_candle=True, gap_filter_valid=True, engine=engine)
    evaluate_candle(long_day_records[1], engine=engine)

    evaluation = evaluate_candle(long_day_records[2], gap_filter_valid=False, engine=engine)
    assert evaluation.gap_filter_valid is False
    assert evaluation.signal.action is Action.NONE
    assert evaluation.state["long"]["is_open"] is False

    # A fresh verdict of True resumes trading on the same state
    evaluation = evaluate_candle(long_day_records[2], gap_filter_valid=True, engine=engine)
    assert evaluation.signal.action is Action.LONG_ENTRY


def test_evaluate_candle_failed_previous_close_blocks_open_position(long_day_records):
    engine = RuleEngine(StrategyConfig(target_profit_points=1.0))
    evaluate_candle(long_day_records[0], is_first_candle=True, gap_filter_valid=True, engine=engine)
    evaluate_candle(long_day_records[1], engine=engine)
    assert evaluate_candle(long_day_records[2], engine=engine).signal.action is Action.LONG_ENTRY

    evaluation = evaluate_candle(long_day_records[3], previous_close=19500.0, engine=engine)
    assert evaluation.gap_filter_valid is False
    assert evaluation.signal.action is Action.NONE
    assert engine.state.long.is_open
    assert evaluate_candle(long_day_records[3], engine=engine).signal.action is Action.NONE


def test_validate_strategy():
    assert validate_strategy({
        "gap_filter_points": 150,
        "upper_band_multiplier": 1.0009,
        "lower_band_multiplier": 0.9991,
        "target_profit_points": 50,
    }) == []
    assert len(validate_strategy({})) == 4


def test_generate_sample_payload():
    payload = generate_sample_payload(days=2, seed=3)

    assert payload["days"] == 2
    assert payload["totalCandles"] == 144
    assert len(payload["candles"]) == 144
    assert payload["previousClose"] == 19500.0
    assert isinstance(payload["candles"][0]["timestamp"], str)


def test_quick_backtest():
    response = quick_backtest(days=3, seed=8)

    summary = response["summary"]
    results = response["results"]
    assert summary["totalTrades"] == results.total_trades
    assert summary["winRate"].endswith("%")
    assert summary["profitFactor"] == f"{results.profit_factor:.2f}"
    assert len(results.daily_results) == 3


def test_validate_strategy_with_transport_keys():
    assert validate_strategy({
        "gapFilterPoints": 150,
        "upperBandMultiplier": 1.0009,
        "lowerBandMultiplier": 0.9991,
        "targetProfitPoints": 50,
    }) == []
