"""
Input/Output operations for the first-candle breakout framework.

This module provides utility functions for loading and saving framework
objects, such as configurations and backtest results.
"""
import json

import yaml

from firstcandle.backtester.results import BacktestResult
from firstcandle.config import Config


def load_config(path: str) -> Config:
    """
    Loads a YAML configuration file and parses it into a strongly-typed
    Config object.

    Args:
        path (str): The path to the YAML configuration file.

    Returns:
        Config: A Pydantic Config object with the validated configuration.
    """
    with open(path, 'r') as f:
        raw_config = yaml.safe_load(f)
    return Config(**(raw_config or {}))


def save_results(result: BacktestResult, path: str) -> None:
    """
    Writes a backtest result as JSON with camelCase keys.

    Args:
        result (BacktestResult): The result to save.
        path (str): Destination file.
    """
    with open(path, 'w') as f:
        json.dump(result.to_dict(), f, indent=2)
