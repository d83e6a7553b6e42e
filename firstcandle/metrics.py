"""
Functions for calculating the performance statistics of a trade ledger.

Every function takes the realized profit of each trade, in points and in
chronological order, as a pandas Series. A trade with zero profit counts as a
loss throughout.
"""
from typing import Callable, Dict

import pandas as pd

# Registry for supplementary metrics reported in BacktestResult.metrics
METRIC_REGISTRY: Dict[str, Callable[[pd.Series], float]] = {}


def register_metric(name: str, func: Callable[[pd.Series], float]):
    """
    Registers a supplementary metric computed for every backtest.

    Args:
        name (str): The name the metric is reported under.
        func (Callable[[pd.Series], float]): Function of the profit series.
    """
    if name in METRIC_REGISTRY:
        raise ValueError(f"Metric '{name}' is already registered.")
    METRIC_REGISTRY[name] = func


def get_metric(name: str) -> Callable[[pd.Series], float]:
    """
    Retrieves a metric function from the registry.

    Args:
        name (str): The name of the metric to retrieve.

    Returns:
        Callable[[pd.Series], float]: The requested metric function.
    """
    if name not in METRIC_REGISTRY:
        raise ValueError(f"Metric '{name}' is not registered. Available: {list(METRIC_REGISTRY.keys())}")
    return METRIC_REGISTRY[name]


def calculate_registered_metrics(profits: pd.Series) -> Dict[str, float]:
    """Evaluates every registered metric on the profit series."""
    return {name: float(func(profits)) for name, func in METRIC_REGISTRY.items()}


def calculate_win_rate(profits: pd.Series) -> float:
    """
    Calculates the percentage of trades with a strictly positive profit.

    Returns:
        float: Win rate in percent. Returns 0.0 if there are no trades.
    """
    if profits.empty:
        return 0.0
    return float((profits > 0).sum() / len(profits) * 100)


def calculate_gross_profit(profits: pd.Series) -> float:
    """Sum of the winning trades."""
    return float(profits[profits > 0].sum())


def calculate_gross_loss(profits: pd.Series) -> float:
    """Absolute sum of the losing (non-positive) trades."""
    return float(abs(profits[profits <= 0].sum()))


def calculate_profit_factor(profits: pd.Series) -> float:
    """
    Calculates gross profit divided by gross loss.

    Returns:
        float: The profit factor. Returns 0.0, not infinity, when there is no
        gross loss.
    """
    gross_loss = calculate_gross_loss(profits)
    if gross_loss == 0:
        return 0.0
    return calculate_gross_profit(profits) / gross_loss


def calculate_max_drawdown(profits: pd.Series) -> float:
    """
    Calculates the largest peak-to-trough decline of cumulative profit.

    The curve is evaluated trade by trade and its peak starts at zero, so a
    losing first trade is already a drawdown.

    Args:
        profits (pd.Series): Realized profit of each trade, in order.

    Returns:
        float: The maximum drawdown in points (non-negative). Returns 0.0 if
        there are no trades.
    """
    if profits.empty:
        return 0.0

    cumulative = profits.cumsum()
    peak = cumulative.cummax().clip(lower=0.0)
    return float((peak - cumulative).max())


def calculate_expectancy(profits: pd.Series) -> float:
    """
    Calculates the expectancy per trade.

    Expectancy is the (average win * win rate) - (average loss * loss rate).

    Returns:
        float: The calculated expectancy. Returns 0.0 if there are no trades.
    """
    if profits.empty:
        return 0.0

    wins = profits[profits > 0]
    losses = profits[profits <= 0]

    win_rate = len(wins) / len(profits)
    loss_rate = len(losses) / len(profits)

    avg_win = wins.mean() if not wins.empty else 0.0
    avg_loss = abs(losses.mean()) if not losses.empty else 0.0

    return float((win_rate * avg_win) - (loss_rate * avg_loss))


def calculate_average_trade(profits: pd.Series) -> float:
    """Mean profit per trade, 0.0 if there are no trades."""
    if profits.empty:
        return 0.0
    return float(profits.mean())


# Register the default supplementary metrics
register_metric("expectancy", calculate_expectancy)
register_metric("average_trade", calculate_average_trade)
