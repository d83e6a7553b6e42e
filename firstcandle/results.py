"""
Console and file reports for a backtest result.
"""
import json
import os

import matplotlib.pyplot as plt

from firstcandle.backtester.results import BacktestResult


def print_results(results: BacktestResult) -> None:
    """Prints the statistics, the daily breakdown and every trade."""
    print("\n" + "=" * 60)
    print("BACKTEST RESULTS - First Candle Breakout")
    print("=" * 60)

    print("\nOVERALL STATISTICS:")
    print(f"Total Trades: {results.total_trades}")
    print(f"Winning Trades: {results.winning_trades}")
    print(f"Losing Trades: {results.losing_trades}")
    print(f"Win Rate: {results.win_rate:.2f}%")

    print("\nPROFIT/LOSS:")
    print(f"Gross Profit: {results.gross_profit:.2f}")
    print(f"Gross Loss: {results.gross_loss:.2f}")
    print(f"Net Profit: {results.net_profit:.2f}")
    print(f"Max Drawdown: {results.max_drawdown:.2f}")
    print(f"Profit Factor: {results.profit_factor:.2f}")
    for name, value in results.metrics.items():
        print(f"{name}: {value:.2f}")

    print("\nDAILY BREAKDOWN:")
    for daily in results.daily_results:
        print(f"\n{daily.date}:")
        print(f"  Gap Filter: {'Passed' if daily.gap_filter_passed else 'Failed'}")
        if daily.gap_filter_passed:
            print(f"  First Candle Close: {daily.first_candle_close:.2f}")
            print(f"  Upper Trigger: {daily.upper_trigger:.2f}")
            print(f"  Lower Trigger: {daily.lower_trigger:.2f}")
            print(f"  Trades: {daily.trade_count}")
            print(f"  Profit: {daily.profit:.2f}")

    print("\nTRADE DETAILS:")
    for i, trade in enumerate(results.trades, start=1):
        print(f"\nTrade {i} ({'win' if trade.profit > 0 else 'loss'}):")
        print(f"  Side: {trade.side.value.upper()}")
        print(f"  Entry: {trade.entry_time} @ {trade.entry_price:.2f}")
        print(f"  Exit: {trade.exit_time} @ {trade.exit_price:.2f}")
        print(f"  Profit: {trade.profit:.2f}")
        print(f"  Reason: {trade.reason}")

    print("\n" + "=" * 60)


def generate_report(results: BacktestResult, output_dir: str) -> None:
    """
    Generates a collection of static report files in the specified output
    directory: `summary.json`, `trades.csv`, `daily_results.csv` and
    `cumulative_profit.png`.
    """
    os.makedirs(output_dir, exist_ok=True)

    with open(os.path.join(output_dir, "summary.json"), 'w') as f:
        json.dump(results.summary(), f, indent=2)

    results.trades_frame().to_csv(os.path.join(output_dir, "trades.csv"), index=False)
    results.daily_frame().to_csv(os.path.join(output_dir, "daily_results.csv"), index=False)

    _plot_cumulative_profit(results, output_dir)


def _plot_cumulative_profit(results: BacktestResult, output_dir: str) -> None:
    """Plots cumulative profit trade by trade."""
    trades = results.trades_frame()
    cumulative = trades["profit"].astype(float).cumsum()

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(range(1, len(cumulative) + 1), cumulative, marker='o', linestyle='-')
    ax.axhline(0.0, color="grey", linewidth=0.8)
    ax.set_xlabel("Trade")
    ax.set_ylabel("Cumulative Profit (points)")
    ax.set_title(f"Cumulative Profit (max drawdown {results.max_drawdown:.2f})")
    ax.grid(True)

    plt.savefig(os.path.join(output_dir, "cumulative_profit.png"))
    plt.close(fig)
