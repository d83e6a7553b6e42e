"""
Loading intraday OHLCV bars from files.

A provider reads one file into a DataFrame indexed by timestamp and checks that
the bars can be replayed: every OHLCV column present, no missing prices, no
repeated timestamps and no bar whose high is below its low. `load_candles`
turns the checked frame into `Candle` objects.
"""
from abc import ABC, abstractmethod
from typing import List

import pandas as pd

from firstcandle.candle import Candle


class DataProvider(ABC):
    """
    Base class for the file-backed candle sources.

    Subclasses only implement `_read`; `load` applies the checks shared by all
    formats.
    """
    REQUIRED_COLUMNS: List[str] = ["open", "high", "low", "close", "volume"]

    def __init__(self, path: str):
        """
        Args:
            path (str): The file holding the bars.
        """
        self._path = path

    @abstractmethod
    def _read(self) -> pd.DataFrame:
        """Reads the raw file into a DataFrame."""
        raise NotImplementedError

    def load(self) -> pd.DataFrame:
        """
        Reads and checks the bars.

        Returns:
            pd.DataFrame: The OHLCV columns, lowercased and in timestamp order.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the bars cannot be replayed.
        """
        return self._validate(self._read())

    def load_candles(self) -> List[Candle]:
        """Loads the bars as `Candle` objects in timestamp order."""
        return candles_from_frame(self.load())

    def _validate(self, df: pd.DataFrame) -> pd.DataFrame:
        df.columns = [str(col).lower() for col in df.columns]

        missing = [col for col in self.REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"DataFrame is missing required columns: {missing}")

        if not isinstance(df.index, pd.DatetimeIndex):
            raise ValueError("DataFrame must have a DatetimeIndex.")

        df = df[self.REQUIRED_COLUMNS].sort_index()

        duplicated = df.index[df.index.duplicated()]
        if len(duplicated):
            raise ValueError(f"{self._path}: duplicate timestamps, first at {duplicated[0]}")

        incomplete = df[df.isna().any(axis=1)]
        if not incomplete.empty:
            raise ValueError(f"{self._path}: {len(incomplete)} bars with missing values, first at {incomplete.index[0]}")

        inverted = df[df["high"] < df["low"]]
        if not inverted.empty:
            raise ValueError(f"{self._path}: {len(inverted)} bars with high below low, first at {inverted.index[0]}")

        return df


class ParquetProvider(DataProvider):
    """Reads bars from a Parquet file. Requires pyarrow."""

    def _read(self) -> pd.DataFrame:
        return pd.read_parquet(self._path)


class CSVProvider(DataProvider):
    """
    Reads bars from a CSV file whose first column holds the timestamps.
    """

    def _read(self) -> pd.DataFrame:
        return pd.read_csv(self._path, index_col=0, parse_dates=True)


def get_provider(path: str) -> DataProvider:
    """Picks the provider matching the file extension."""
    if path.endswith(".parquet"):
        return ParquetProvider(path=path)
    return CSVProvider(path=path)


def candles_from_frame(df: pd.DataFrame) -> List[Candle]:
    """
    Converts an OHLCV DataFrame indexed by timestamp into candles.

    Rows are converted as they are; a row that does not make a valid candle
    raises instead of being skipped.
    """
    return [
        Candle(
            timestamp=timestamp.to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=int(row.volume),
        )
        for timestamp, row in zip(df.index, df.itertuples(index=False))
    ]
