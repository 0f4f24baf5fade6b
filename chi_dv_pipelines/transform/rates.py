# Normalize incident counts by block group population

from typing import Iterable, Optional

import pandas as pd
from rich.console import Console

from config import RATE_SCALE
from chi_dv_pipelines.transform.aggregate import count_by_unit, month_windows
from chi_dv_pipelines.utils.logging import log_step

console = Console()


def _rate_name(count_col: str) -> str:
    base = count_col[: -len("_count")] if count_col.endswith("_count") else count_col
    return f"{base}_rate"


def _per_name(count_col: str, per: int) -> str:
    base = count_col[: -len("_count")] if count_col.endswith("_count") else count_col
    return f"{base}_per_{per}"


def safe_divide(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """Element-wise division; zero or missing denominators give NaN."""
    denom = denominator.astype(float).where(denominator > 0)
    return numerator.astype(float) / denom


def compute_rates(
    counts: pd.DataFrame,
    demographics: pd.DataFrame,
    count_cols: Iterable[str],
    per: int = RATE_SCALE,
    unit_col: str = "geoid",
) -> pd.DataFrame:
    """
    Attach population and rates to per-unit counts.

    Every unit in demographics gets a row. Counts are matched by unit_col,
    units with no incidents count 0, and a unit with zero population gets
    a NaN rate.
    """
    count_cols = list(count_cols)
    if demographics[unit_col].duplicated().any():
        raise ValueError(f"Demographics must have one row per '{unit_col}'.")

    rates = demographics[[unit_col, "population"]].merge(counts, on=unit_col, how="left")

    for col in count_cols:
        if col not in rates.columns:
            rates[col] = 0
        rates[col] = rates[col].fillna(0).astype(int)
        rates[_rate_name(col)] = safe_divide(rates[col], rates["population"])
        rates[_per_name(col, per)] = rates[_rate_name(col)] * per

    return rates


def rates_for_window(
    incidents: pd.DataFrame,
    dv: pd.DataFrame,
    demographics: pd.DataFrame,
    start,
    end,
    label: Optional[str] = None,
    per: int = RATE_SCALE,
) -> pd.DataFrame:
    """All-incident and DV rates per unit for one [start, end) window."""
    all_counts = count_by_unit(incidents, start, end, name="all_count")
    dv_counts = count_by_unit(dv, start, end, name="dv_count")
    counts = all_counts.merge(dv_counts, on="geoid", how="outer")

    rates = compute_rates(counts, demographics, ["all_count", "dv_count"], per=per)
    rates["dv_share"] = safe_divide(rates["dv_count"], rates["all_count"])

    label = label or f"{pd.Timestamp(start).date()}_{pd.Timestamp(end).date()}"
    rates.insert(1, "period", label)
    rates.insert(2, "period_start", pd.Timestamp(start))
    rates.insert(3, "period_end", pd.Timestamp(end))
    return rates


def monthly_rates(
    incidents: pd.DataFrame,
    dv: pd.DataFrame,
    demographics: pd.DataFrame,
    start,
    end,
    per: int = RATE_SCALE,
) -> pd.DataFrame:
    """Per-month unit rates over [start, end) in long format (one row per unit x month)."""
    windows = month_windows(start, end)
    console.print(f"[cyan]Computing block group rates for {len(windows)} monthly windows...[/cyan]")

    frames = [
        rates_for_window(incidents, dv, demographics, w_start, w_end, label=label, per=per)
        for label, w_start, w_end in windows
    ]
    df = pd.concat(frames, ignore_index=True)
    log_step("Monthly block group rates", df)
    return df


def window_rates(
    incidents: pd.DataFrame,
    dv: pd.DataFrame,
    demographics: pd.DataFrame,
    windows: dict,
    per: int = RATE_SCALE,
) -> pd.DataFrame:
    """Rates for named comparison windows, e.g. {"spring_2020": (start, end)}."""
    frames = [
        rates_for_window(incidents, dv, demographics, w_start, w_end, label=label, per=per)
        for label, (w_start, w_end) in windows.items()
    ]
    df = pd.concat(frames, ignore_index=True)
    log_step("Comparison window rates", df)
    return df


def rate_change(window_table: pd.DataFrame, before: str, after: str, column: Optional[str] = None) -> pd.DataFrame:
    """Per-unit difference of a rate column between two labelled windows."""
    column = column or f"dv_per_{RATE_SCALE}"
    wide = window_table.pivot(index="geoid", columns="period", values=column)
    for label in (before, after):
        if label not in wide.columns:
            raise KeyError(f"Window '{label}' not found in rate table.")
    out = pd.DataFrame(
        {
            "geoid": wide.index,
            before: wide[before].to_numpy(),
            after: wide[after].to_numpy(),
        }
    )
    out["change"] = out[after] - out[before]
    return out.reset_index(drop=True)


__all__ = [
    "safe_divide",
    "compute_rates",
    "rates_for_window",
    "monthly_rates",
    "window_rates",
    "rate_change",
]
