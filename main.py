"""
Main entry point for running a first-candle breakout backtest.
"""
import argparse
import logging
import os
import sys

# Ensure the project root is in the python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

import firstcandle
from firstcandle.data.provider import get_provider
from firstcandle.data.sample import generate_sample_data
from firstcandle.results import generate_report, print_results


def main():
    """
    Main execution function.
    """
    parser = argparse.ArgumentParser(description="Run the first-candle breakout backtest.")
    parser.add_argument("--config", default="config.yaml", help="Path to the YAML run configuration.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level for the trade trace.")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    # 1. Load configuration from file
    config = firstcandle.load_config(args.config)
    print(f"Configuration loaded from '{args.config}'.")

    # 2. Load or generate candles
    if config.data.path:
        if config.data.previous_close is None:
            parser.error("data.previous_close is required when data.path is set.")
        candles = get_provider(config.data.path).load_candles()
        previous_close = config.data.previous_close
        print(f"Loaded {len(candles)} candles from '{config.data.path}'.")
    else:
        sample = generate_sample_data(
            days=config.data.sample_days,
            bars_per_day=config.data.bars_per_day,
            seed=config.data.seed,
        )
        candles = sample.candles
        previous_close = config.data.previous_close or sample.previous_close
        print(f"Generated {len(candles)} sample candles over {config.data.sample_days} days.")

    # 3. Run the backtest
    backtester = firstcandle.DayReplayBacktester(config.strategy)
    results = backtester.run(candles, previous_close)

    # 4. Report
    print_results(results)
    generate_report(results, output_dir=config.report.output_dir)
    print(f"Report generated in '{config.report.output_dir}'.")


if __name__ == "__main__":
    main()
