"""
Configuration models for the first-candle breakout framework.

This module defines the Pydantic models for validating the strategy
parameters and the run configuration, which is typically loaded from a YAML
file.
"""
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel


class StrategyConfig(BaseModel):
    """
    Immutable parameter set for the rule engine.

    Args:
        gap_filter_points (float): Largest tolerated distance, in points,
            between the session open and the previous close.
        upper_band_multiplier (float): Multiplier applied to the first candle's
            close to get the upper trigger. Must be greater than 1.
        lower_band_multiplier (float): Multiplier applied to the first candle's
            close to get the lower trigger. Must be between 0 and 1.
        first_candle_time (str): Nominal time of the calibration candle
            ("HH:MM"). Informational only.
        target_profit_points (float): Take-profit distance from the entry price.
        atm_strike_offset (int): Strike offset for callers that trade options
            on the index. Not read by the engine.
    """
    model_config = ConfigDict(frozen=True)

    gap_filter_points: float = Field(150.0, gt=0, description="Gap filter tolerance in points.")
    upper_band_multiplier: float = Field(1.0009, gt=1, description="Upper trigger multiplier.")
    lower_band_multiplier: float = Field(0.9991, gt=0, lt=1, description="Lower trigger multiplier.")
    first_candle_time: str = Field("09:20", pattern=r"^\d{2}:\d{2}$", description="Nominal first candle time.")
    target_profit_points: float = Field(50.0, gt=0, description="Target profit in points.")
    atm_strike_offset: int = Field(0, description="Strike offset from ATM.")


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    return float(value)


def _field_keys(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Maps camelCase keys such as `gapFilterPoints` to the field names."""
    names = {to_camel(name): name for name in StrategyConfig.model_fields}
    return {names.get(key, key): value for key, value in raw.items()}


def validate_strategy_config(raw: Mapping[str, Any]) -> List[str]:
    """
    Checks the numeric strategy parameters without raising.

    Args:
        raw (Mapping[str, Any]): Strategy parameters as supplied by a caller,
            keyed by the `StrategyConfig` field names or their camelCase
            forms.

    Returns:
        List[str]: One human-readable message per problem found. An empty
        list means the parameters can be used to build a `StrategyConfig`.
    """
    raw = _field_keys(raw)
    errors: List[str] = []

    gap = _as_number(raw.get("gap_filter_points"))
    if gap is None or gap <= 0:
        errors.append("Gap filter points must be greater than 0")

    upper = _as_number(raw.get("upper_band_multiplier"))
    if upper is None or upper <= 1:
        errors.append("Upper band multiplier must be greater than 1")

    lower = _as_number(raw.get("lower_band_multiplier"))
    if lower is None or lower >= 1:
        errors.append("Lower band multiplier must be less than 1")
    elif lower <= 0:
        errors.append("Lower band multiplier must be greater than 0")

    target = _as_number(raw.get("target_profit_points"))
    if target is None or target <= 0:
        errors.append("Target profit points must be greater than 0")

    if errors:
        return errors

    # The remaining fields are checked by the model itself.
    try:
        StrategyConfig.model_validate(raw)
    except ValidationError as e:
        errors.extend(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
    return errors


class DataConfig(BaseModel):
    """
    Configuration for the candle source.

    Args:
        path (Optional[str]): Path to a CSV or Parquet OHLCV file. When
            omitted, a sample series is generated instead.
        previous_close (Optional[float]): Close of the session before the
            first day in the data. Required when `path` is set.
        sample_days (int): Number of days to generate when `path` is omitted.
        bars_per_day (int): Bars per generated day.
        seed (int): Seed for the sample generator.
    """
    path: Optional[str] = Field(None, description="Path to the dataset file.")
    previous_close: Optional[float] = Field(None, gt=0, description="Close before the first day.")
    sample_days: int = Field(5, gt=0, description="Days of sample data to generate.")
    bars_per_day: int = Field(72, gt=1, description="Bars per generated day.")
    seed: int = Field(0, description="Sample generator seed.")


class ReportConfig(BaseModel):
    """
    Configuration for report output.

    Args:
        output_dir (str): Directory that receives the report files.
    """
    output_dir: str = Field("runs/latest", description="Report output directory.")


class Config(BaseModel):
    """
    Top-level configuration object for a backtest run.

    Args:
        strategy (StrategyConfig): Rule engine parameters.
        data (DataConfig): Candle source configuration.
        report (ReportConfig): Report output configuration.
    """
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
