# Adds temporal features: calendar parts, Monday week buckets, holidays, stay-at-home flag

import pandas as pd
import holidays
from rich.console import Console

from config import STAY_AT_HOME_DATE

console = Console()


def week_start(dates: pd.Series) -> pd.Series:
    """Monday 00:00 of the week each timestamp falls in."""
    return pd.to_datetime(dates).dt.to_period("W-SUN").dt.start_time


def holiday_dates(years) -> set:
    """US federal + Illinois holidays for the given years."""
    return set(holidays.country_holidays("US", subdiv="IL", years=sorted({int(y) for y in years})).keys())


def add_temporal_features(df: pd.DataFrame, reference_date=STAY_AT_HOME_DATE) -> pd.DataFrame:
    """Add calendar and context columns to an incident frame."""
    df = df.copy()
    df["date"] = pd.to_datetime(df["date"])
    dt = df["date"].dt

    df["year"] = dt.year
    df["month"] = dt.month
    df["day_of_week"] = dt.day_name()
    df["week_start"] = week_start(df["date"])

    years = df["year"].unique().tolist()
    df["is_holiday"] = dt.date.isin(list(holiday_dates(years))) if years else False

    df["after_stay_at_home"] = df["date"] >= pd.Timestamp(reference_date)

    console.print("[green]Temporal features added.[/green]")
    return df


__all__ = ["week_start", "holiday_dates", "add_temporal_features"]
