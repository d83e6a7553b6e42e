"""
Tests for the DayReplayBacktester.
"""
from datetime import date, datetime, timedelta

import pytest

from firstcandle.backtester.day_replay import DayReplayBacktester, calculate_profit, group_by_day
from firstcandle.backtester.results import BacktestResult
from firstcandle.candle import Candle
from firstcandle.config import StrategyConfig
from firstcandle.data.sample import generate_sample_data
from firstcandle.engine import Side


def make_day(day, bars):
    """
    Builds one day of 5-minute candles from (open, high, low, close) tuples.
    """
    start = datetime.combine(day, datetime.min.time()).replace(hour=9, minute=15)
    return [
        Candle(timestamp=start + timedelta(minutes=5 * i), open=o, high=h, low=l, close=c, volume=1000)
        for i, (o, h, l, c) in enumerate(bars)
    ]


LONG_TARGET_DAY = [
    (100.0, 100.0, 100.0, 100.0),  # calibration, triggers 100.09 / 99.91
    (100.0, 100.5, 100.0, 100.2),  # long trigger candle
    (100.4, 100.7, 100.3, 100.6),  # breaks 100.5: long entry at 100.6
    (100.6, 101.6, 100.6, 101.6),  # entry + 1.0: target
]

LONG_STOP_DAY = [
    (100.0, 100.0, 100.0, 100.0),
    (100.0, 100.5, 100.0, 100.2),
    (100.4, 100.7, 100.3, 100.6),  # long entry at 100.6, day low 100.0
    (100.6, 100.6, 99.95, 99.95),  # closes at the new day low: stop
]


@pytest.fixture
def config() -> StrategyConfig:
    return StrategyConfig(target_profit_points=1.0)


def test_long_target_trade(config):
    candles = make_day(date(2024, 1, 2), LONG_TARGET_DAY)
    result = DayReplayBacktester(config).run(candles, previous_close=100.0)

    assert isinstance(result, BacktestResult)
    assert result.total_trades == 1
    trade = result.trades[0]
    assert trade.side is Side.LONG
    assert trade.entry_price == 100.6
    assert trade.entry_time == candles[2].timestamp
    assert trade.exit_price == 101.6
    assert trade.exit_time == candles[3].timestamp
    assert trade.profit == pytest.approx(config.target_profit_points)
    assert "target" in trade.reason.lower()

    assert result.winning_trades == 1
    assert result.losing_trades == 0
    assert result.win_rate == 100.0
    assert result.gross_loss == 0.0
    assert result.profit_factor == 0.0
    assert result.max_drawdown == 0.0

    daily = result.daily_results[0]
    assert daily.date == date(2024, 1, 2)
    assert daily.gap_filter_passed
    assert daily.trade_count == 1
    assert daily.profit == pytest.approx(1.0)
    assert daily.first_candle_close == 100.0
    assert daily.upper_trigger == pytest.approx(100.09)
    assert daily.lower_trigger == pytest.approx(99.91)
    assert daily.unclosed_positions == 0


def test_long_stop_loss_trade(config):
    candles = make_day(date(2024, 1, 2), LONG_STOP_DAY)
    result = DayReplayBacktester(config).run(candles, previous_close=100.0)

    assert result.total_trades == 1
    trade = result.trades[0]
    assert "Day Low" in trade.reason
    assert trade.profit == pytest.approx(99.95 - 100.6)
    assert trade.profit < 0
    assert result.winning_trades == 0
    assert result.losing_trades == 1
    assert result.win_rate == 0.0
    assert result.gross_loss == pytest.approx(0.65)
    assert result.net_profit == pytest.approx(-0.65)
    assert result.max_drawdown == pytest.approx(0.65)


def test_gap_filter_failure_skips_day():
    """
    Tests that a day opening 300 points from the previous close with a
    tolerance of 150 is not traded.
    """
    sample = generate_sample_data(days=1, gaps=[300.0], seed=3)
    result = DayReplayBacktester(StrategyConfig(gap_filter_points=150)).run(
        sample.candles, sample.previous_close
    )

    assert result.total_trades == 0
    assert len(result.daily_results) == 1
    daily = result.daily_results[0]
    assert daily.gap_filter_passed is False
    assert daily.trade_count == 0
    assert daily.first_candle_close is None
    assert daily.upper_trigger is None


def test_previous_close_is_carried_between_days():
    """
    Tests that each day's gap filter is checked against the previous day's
    last close, not against the caller's original value.
    """
    day1 = make_day(date(2024, 1, 2), [
        (100.0, 100.0, 100.0, 100.0),
        (100.0, 105.0, 100.0, 105.0),
    ])
    day2 = make_day(date(2024, 1, 3), [
        (105.5, 105.5, 105.5, 105.5),
        (105.5, 105.6, 105.4, 105.5),
    ])
    result = DayReplayBacktester(StrategyConfig(gap_filter_points=1.0)).run(day1 + day2, previous_close=100.0)

    assert [d.date for d in result.daily_results] == [date(2024, 1, 2), date(2024, 1, 3)]
    assert all(d.gap_filter_passed for d in result.daily_results)
    assert result.daily_results[1].first_candle_close == 105.5


def test_day_state_does_not_leak(config):
    """
    Tests that a position left open on one day is not closed by the next day.
    """
    open_day = make_day(date(2024, 1, 2), LONG_TARGET_DAY[:3])
    next_day = make_day(date(2024, 1, 3), [
        (100.6, 100.6, 100.6, 100.6),
        (100.6, 101.6, 100.6, 101.6),  # would hit the previous day's target
    ])
    result = DayReplayBacktester(config).run(open_day + next_day, previous_close=100.0)

    assert result.total_trades == 0
    assert result.daily_results[0].unclosed_positions == 1
    assert result.daily_results[1].unclosed_positions == 0


def test_open_trades_are_tracked_per_side(config):
    """
    Tests that a short entry while a long is open does not overwrite the long.
    """
    candles = make_day(date(2024, 1, 2), [
        (100.0, 100.0, 100.0, 100.0),
        (100.1, 100.5, 100.1, 100.2),    # long trigger
        (100.4, 100.6, 100.4, 100.6),    # long entry at 100.6
        (100.4, 100.4, 99.87, 99.88),    # short trigger
        (99.88, 99.9, 99.8, 99.8),       # short entry at 99.8
        (99.8, 99.85, 99.79, 99.79),     # long stopped at the day low
    ])
    result = DayReplayBacktester(config).run(candles, previous_close=100.0)

    assert result.total_trades == 1
    trade = result.trades[0]
    assert trade.side is Side.LONG
    assert trade.entry_price == 100.6
    assert trade.exit_price == 99.79
    assert result.daily_results[0].unclosed_positions == 1


def test_empty_series_gives_zero_result():
    result = DayReplayBacktester().run([], previous_close=19500.0)

    assert result.total_trades == 0
    assert result.winning_trades == 0
    assert result.losing_trades == 0
    assert result.win_rate == 0.0
    assert result.gross_profit == 0.0
    assert result.gross_loss == 0.0
    assert result.net_profit == 0.0
    assert result.max_drawdown == 0.0
    assert result.profit_factor == 0.0
    assert result.trades == []
    assert result.daily_results == []


def test_non_chronological_series_raises(config):
    candles = make_day(date(2024, 1, 2), LONG_TARGET_DAY)
    candles[2], candles[3] = candles[3], candles[2]
    with pytest.raises(ValueError, match="strictly increasing"):
        DayReplayBacktester(config).run(candles, previous_close=100.0)


def test_replay_is_deterministic():
    sample = generate_sample_data(days=10, seed=11)

    first = DayReplayBacktester().run(sample.candles, sample.previous_close)
    second = DayReplayBacktester().run(sample.candles, sample.previous_close)
    backtester = DayReplayBacktester()
    third = backtester.run(sample.candles, sample.previous_close)
    fourth = backtester.run(sample.candles, sample.previous_close)

    assert first.to_dict() == second.to_dict() == third.to_dict() == fourth.to_dict()
    assert len(first.daily_results) == 10


def test_daily_results_add_up():
    sample = generate_sample_data(days=10, seed=5, max_gap=100.0, step=40.0)
    result = DayReplayBacktester(StrategyConfig(target_profit_points=15)).run(
        sample.candles, sample.previous_close
    )

    assert sum(d.trade_count for d in result.daily_results) == result.total_trades
    assert sum(d.profit for d in result.daily_results) == pytest.approx(result.net_profit)
    assert result.winning_trades + result.losing_trades == result.total_trades
    for trade in result.trades:
        assert trade.entry_time < trade.exit_time
        assert trade.entry_time.date() == trade.exit_time.date()


def test_result_serializes_with_camel_case_keys(config):
    candles = make_day(date(2024, 1, 2), LONG_TARGET_DAY)
    data = DayReplayBacktester(config).run(candles, previous_close=100.0).to_dict()

    assert data["totalTrades"] == 1
    assert data["winRate"] == 100.0
    assert "profitFactor" in data and "maxDrawdown" in data
    assert data["trades"][0]["side"] == "long"
    assert data["trades"][0]["entryTime"] == "2024-01-02T09:25:00"
    assert data["dailyResults"][0]["date"] == "2024-01-02"
    assert data["dailyResults"][0]["gapFilterPassed"] is True


def test_group_by_day_keeps_order():
    day1 = make_day(date(2024, 1, 2), LONG_TARGET_DAY)
    day2 = make_day(date(2024, 1, 3), LONG_STOP_DAY)
    groups = group_by_day(day1 + day2)

    assert [day for day, _ in groups] == [date(2024, 1, 2), date(2024, 1, 3)]
    assert groups[0][1] == day1
    assert groups[1][1] == day2


@pytest.mark.parametrize("side, entry, exit_, expected", [
    (Side.LONG, 100.0, 110.0, 10.0),
    (Side.LONG, 100.0, 95.0, -5.0),
    (Side.SHORT, 100.0, 90.0, 10.0),
    (Side.SHORT, 100.0, 104.0, -4.0),
])
def test_calculate_profit(side, entry, exit_, expected):
    assert calculate_profit(entry, exit_, side) == pytest.approx(expected)
