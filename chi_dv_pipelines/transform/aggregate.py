# Counting incidents by geography and by time bucket

from typing import List, Optional, Tuple

import pandas as pd
from rich.console import Console

from chi_dv_pipelines.transform.filters import filter_date_range
from chi_dv_pipelines.transform.temporal import holiday_dates, week_start

console = Console()

Window = Tuple[str, pd.Timestamp, pd.Timestamp]


def _monday(ts) -> pd.Timestamp:
    return pd.Timestamp(ts).to_period("W-SUN").start_time


def month_windows(start, end) -> List[Window]:
    """
    One (label, start, end) window per calendar month between start and end.
    Windows are half-open and clipped to [start, end).
    """
    start = pd.Timestamp(start)
    end = pd.Timestamp(end)
    if end <= start:
        raise ValueError(f"Empty date range: {start.date()} → {end.date()}")

    last_instant = end - pd.Timedelta(1, unit="ns")
    windows = []
    for period in pd.period_range(start, last_instant, freq="M"):
        w_start = max(period.start_time, start)
        w_end = min((period + 1).start_time, end)
        windows.append((str(period), w_start, w_end))
    return windows


def count_by_unit(
    df: pd.DataFrame,
    start,
    end,
    unit_col: str = "geoid",
    name: str = "count",
    date_col: str = "date",
) -> pd.DataFrame:
    """Incidents per unit inside [start, end). Rows without a unit are not counted."""
    window = filter_date_range(df, start, end, date_col=date_col)
    window = window.dropna(subset=[unit_col])
    return window.groupby(unit_col).size().rename(name).reset_index()


def weekly_counts(
    df: pd.DataFrame,
    start=None,
    end=None,
    date_col: str = "date",
    count_name: str = "dv_count",
) -> pd.DataFrame:
    """
    Incident totals per Monday-start week.

    Every week between start (or the first incident) and end (or the last
    incident) gets a row; weeks without incidents count 0.
    """
    columns = ["week_start", count_name, "has_holiday"]

    if start is not None and end is not None:
        df = filter_date_range(df, start, end, date_col=date_col)

    dates = pd.to_datetime(df[date_col])
    if dates.empty and (start is None or end is None):
        return pd.DataFrame(columns=columns)

    first = _monday(start if start is not None else dates.min())
    if end is not None:
        last = _monday(pd.Timestamp(end) - pd.Timedelta(1, unit="ns"))
    else:
        last = _monday(dates.max())

    weeks = pd.date_range(first, last, freq="7D")
    counts = week_start(dates).value_counts().reindex(weeks, fill_value=0)

    weekly = pd.DataFrame({"week_start": weeks, count_name: counts.to_numpy().astype(int)})

    # the last week can run into the next year
    last_day = last + pd.Timedelta(days=6)
    holidays_ = pd.to_datetime(sorted(holiday_dates(range(first.year, last_day.year + 1))))
    holiday_weeks = set(week_start(pd.Series(holidays_)))
    weekly["has_holiday"] = weekly["week_start"].isin(list(holiday_weeks))

    return weekly[columns]


def monthly_totals(df: pd.DataFrame, date_col: str = "date", count_name: str = "dv_count") -> pd.DataFrame:
    """City-wide incident totals per calendar month, empty months filled with 0."""
    columns = ["year", "month", count_name]
    if df.empty:
        return pd.DataFrame(columns=columns)

    periods = pd.to_datetime(df[date_col]).dt.to_period("M")
    full = pd.period_range(periods.min(), periods.max(), freq="M")
    counts = periods.value_counts().reindex(full, fill_value=0)

    return pd.DataFrame(
        {
            "year": [p.year for p in full],
            "month": [p.month for p in full],
            count_name: counts.to_numpy().astype(int),
        }
    )


__all__ = ["month_windows", "count_by_unit", "weekly_counts", "monthly_totals"]
