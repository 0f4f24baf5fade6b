# Core cleaning transformations applied to raw portal records
import re
from typing import Any
import numpy as np
import pandas as pd
from dateutil import parser
from rich.console import Console

from chi_dv_pipelines.utils.logging import log_step, log_dropped

console = Console()

TRUE_STRINGS = {"true", "t", "1", "y", "yes"}
FALSE_STRINGS = {"false", "f", "0", "n", "no"}

CATEGORICAL_COLS = ["primary_type", "description", "location_description"]


def standardize_column_name(col: str) -> str:
    """Convert arbitrary portal column names into clean_snake_case."""
    col = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", col)
    col = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", col)
    col = col.lower()
    col = re.sub(r"[\s\-\.\,\(\)\[\]\{\}]+", "_", col)
    col = re.sub(r"[^\w]", "", col)
    col = re.sub(r"_+", "_", col).strip("_")
    return col


def parse_incident_date(x: Any) -> pd.Timestamp:
    """
    Parse portal date strings. Handles the ISO form returned by the API
    and the "MM/DD/YYYY hh:mm:ss AM" form of the bulk CSV export.
    """
    if pd.isna(x):
        return pd.NaT

    if isinstance(x, pd.Timestamp):
        return x

    s = str(x).strip()
    if not s or s.lower() == "nan":
        return pd.NaT

    if re.match(r"^\d{1,2}/\d{1,2}/\d{4} \d{1,2}:\d{2}:\d{2} [APMapm]{2}$", s):
        return pd.to_datetime(s, format="%m/%d/%Y %I:%M:%S %p", errors="coerce")

    try:
        return pd.Timestamp(parser.parse(s))
    except (ValueError, OverflowError):
        return pd.NaT


def to_bool(x: Any) -> Any:
    """Coerce portal flag values to bool; unknown values become NaN."""
    if isinstance(x, (bool, np.bool_)):
        return bool(x)
    if pd.isna(x):
        return np.nan
    s = str(x).strip().lower()
    if s in TRUE_STRINGS:
        return True
    if s in FALSE_STRINGS:
        return False
    return np.nan


def cleanup_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Drop duplicated columns (same name) while preserving first occurrence."""
    duplicated = df.columns.duplicated()
    for c in df.columns[duplicated]:
        console.print(f"[yellow]Dropped duplicate column:[/yellow] {c}")

    return df.loc[:, ~duplicated]


def clean_crimes(df: pd.DataFrame) -> pd.DataFrame:
    """
    Cleaning sequence for raw crime records:
        1. snake_case headers, drop duplicate-named columns
        2. parse 'date', drop unparseable rows
        3. 'domestic' / 'arrest' to bool
        4. upper/strip categorical text
        5. numeric coordinates
        6. dedupe on 'id'
    """
    console.print("\n[bold cyan]Cleaning crime records...[/bold cyan]")

    df = df.copy()
    df.columns = [standardize_column_name(c) for c in df.columns]
    df = cleanup_duplicate_columns(df)

    for col in ["date", "primary_type", "location_description", "domestic"]:
        if col not in df.columns:
            raise KeyError(f"'{col}' column not found in crime data.")

    total_rows = len(df)
    df["date"] = pd.to_datetime(df["date"].apply(parse_incident_date), errors="coerce")
    df = df.dropna(subset=["date"])
    log_dropped("Date parsing", total_rows, len(df), "unparseable date")

    for col in ["domestic", "arrest"]:
        if col in df.columns:
            df[col] = df[col].apply(to_bool)

    for col in CATEGORICAL_COLS:
        if col in df.columns:
            df[col] = df[col].astype("string").str.strip().str.upper()

    for col in ["latitude", "longitude"]:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")

    if "id" in df.columns:
        before = len(df)
        df = df.drop_duplicates(subset=["id"])
        log_dropped("Dedupe", before, len(df), "duplicate id")

    df = df.sort_values("date").reset_index(drop=True)
    log_step("Crime records cleaned", df)
    return df


__all__ = ["standardize_column_name", "parse_incident_date", "to_bool", "cleanup_duplicate_columns", "clean_crimes"]
