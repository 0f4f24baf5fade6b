# Core data validation checks for the DV report pipeline

import numpy as np
import pandas as pd
from rich.console import Console
from rich.table import Table

from config import LAT_BOUNDS, LON_BOUNDS

console = Console()


def validate_geo_units(gdf: pd.DataFrame, id_col: str = "geoid") -> None:
    """Reference geometry must be non-empty with unique, non-null identifiers."""
    if gdf.empty:
        raise ValueError("Geographic reference set is empty.")
    if id_col not in gdf.columns:
        raise KeyError(f"Expected identifier column '{id_col}' not found.")

    nulls = int(gdf[id_col].isna().sum())
    if nulls:
        raise ValueError(f"{nulls:,} geographic units have no '{id_col}'.")

    dupes = gdf[id_col][gdf[id_col].duplicated()].unique().tolist()
    if dupes:
        raise ValueError(f"Duplicate '{id_col}' values in reference set: {dupes[:10]}")

    console.print(f"[green]PASS: {len(gdf):,} geographic units, '{id_col}' unique.[/green]")


def run_validation_checks(df: pd.DataFrame, step_name: str) -> None:
    """
    Key integrity checks:
    - id uniqueness
    - coordinate bounds (rough Chicago box)
    - core completeness
    """
    lat_min, lat_max = LAT_BOUNDS
    lon_min, lon_max = LON_BOUNDS

    if df.empty:
        console.print(f"[bold yellow]WARNING: {step_name} - no rows to validate.[/bold yellow]")
        return

    if "id" in df.columns:
        duplicates = df.duplicated(subset=["id"]).sum()
        if duplicates > 0:
            console.print(f"[bold red]FAIL: {step_name} - {duplicates:,} id duplicates.[/bold red]")
        else:
            console.print(f"[green]PASS: {step_name} - id unique.[/green]")

    if all(c in df.columns for c in ["latitude", "longitude"]):
        out_of_bounds = df[
            (df["latitude"] < lat_min)
            | (df["latitude"] > lat_max)
            | (df["longitude"] < lon_min)
            | (df["longitude"] > lon_max)
        ].shape[0]
        if out_of_bounds > 0:
            console.print(
                f"[bold yellow]WARNING: {step_name} - {out_of_bounds:,} rows outside expected Chicago bounds.[/bold yellow]"
            )
        else:
            console.print(f"[green]PASS: {step_name} - coordinates within expected bounds.[/green]")

    for col in ["date", "primary_type"]:
        if col in df.columns:
            missing_pct = df[col].isna().sum() / len(df)
            if missing_pct > 0.01:
                console.print(f"[bold red]FAIL: {step_name} - '{col}' missing {missing_pct:.2%} (>1%).[/bold red]")
            else:
                console.print(
                    f"[green]PASS: {step_name} - '{col}' completeness OK ({missing_pct:.2%} missing).[/green]"
                )


def join_coverage(df: pd.DataFrame, id_col: str = "geoid") -> float:
    """Share of incidents that landed inside a geographic unit."""
    if df.empty or id_col not in df.columns:
        return 0.0
    return float(df[id_col].notna().mean())


def validate_rates(rates: pd.DataFrame) -> None:
    """
    Rate tables must have:
    - one row per (geoid, period)
    - non-negative counts
    - no infinite rates (zero population gives NaN, not inf)
    """
    keys = [c for c in ["geoid", "period"] if c in rates.columns]
    dupes = int(rates.duplicated(subset=keys).sum())
    if dupes:
        raise ValueError(f"Rate table has {dupes:,} duplicate {keys} rows.")

    count_cols = [c for c in rates.columns if c.endswith("_count")]
    negative = [c for c in count_cols if (rates[c] < 0).any()]
    if negative:
        raise ValueError(f"Negative counts in rate table: {negative}")

    rate_cols = [c for c in rates.columns if c.endswith("_rate") or "_per_" in c]
    infinite = [c for c in rate_cols if np.isinf(rates[c].astype(float)).any()]
    if infinite:
        raise ValueError(f"Infinite rates in columns: {infinite}")

    console.print(f"[green]PASS: rate table ({len(rates):,} rows) - keys unique, rates finite.[/green]")


def show_missingness(df: pd.DataFrame, step_name: str) -> None:
    """Missing count and share per column."""
    table = Table(
        title=f"{step_name} - Missing Data",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Column", style="cyan")
    table.add_column("Missing", justify="right", style="red")
    table.add_column("Share", justify="right", style="yellow")

    for col in df.columns:
        missing = int(df[col].isna().sum())
        share = missing / len(df) * 100 if len(df) else 0.0
        table.add_row(col, f"{missing:,}", f"{share:.1f}%")

    console.print(table)


__all__ = [
    "validate_geo_units",
    "run_validation_checks",
    "join_coverage",
    "validate_rates",
    "show_missingness",
]
