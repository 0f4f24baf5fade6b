# ACS 5-year block group demographics via the Census API

from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd
from census import Census
from rich.console import Console
from rich.panel import Panel

from config import (
    ACS_VARIABLES,
    ACS_YEAR,
    CENSUS_API_KEY,
    COUNTY_FIPS,
    DEMOGRAPHICS_CSV,
    STATE_FIPS,
)
from chi_dv_pipelines.utils.logging import log_step

console = Console()

GEOID_PARTS = ["state", "county", "tract", "block group"]


def records_to_frame(records, variables: Dict[str, str] = ACS_VARIABLES) -> pd.DataFrame:
    """
    Turn Census API records into one row per block group.

    - geoid = state + county + tract + block group (12 digits)
    - ACS codes renamed to readable columns
    - annotation sentinels (large negative values) become NaN
    - unemployment_rate derived from labor force counts
    """
    df = pd.DataFrame.from_records(records)
    if df.empty:
        raise ValueError("Census API returned no block group records.")

    missing = [c for c in GEOID_PARTS if c not in df.columns]
    if missing:
        raise KeyError(f"Census records missing geography columns: {missing}")

    df["geoid"] = (
        df["state"].astype(str).str.zfill(2)
        + df["county"].astype(str).str.zfill(3)
        + df["tract"].astype(str).str.zfill(6)
        + df["block group"].astype(str)
    )

    df = df.rename(columns=variables)
    value_cols = list(variables.values())
    for col in value_cols:
        df[col] = pd.to_numeric(df[col], errors="coerce")
        df.loc[df[col] < 0, col] = np.nan

    if {"labor_force", "unemployed"} <= set(df.columns):
        labor_force = df["labor_force"].where(df["labor_force"] > 0)
        df["unemployment_rate"] = df["unemployed"] / labor_force

    keep = ["geoid"] + value_cols + (["unemployment_rate"] if "unemployment_rate" in df.columns else [])
    return df[keep].sort_values("geoid").reset_index(drop=True)


def fetch_acs_block_groups(
    api_key: Optional[str],
    year: int = ACS_YEAR,
    client: Optional[Census] = None,
    state_fips: str = STATE_FIPS,
    county_fips: str = COUNTY_FIPS,
) -> pd.DataFrame:
    """Fetch every block group in the county in a single ACS5 request."""
    if client is None:
        if not api_key:
            raise RuntimeError(
                "CENSUS_API_KEY is not set. Request a key at "
                "https://api.census.gov/data/key_signup.html and put it in .env"
            )
        client = Census(api_key)

    console.print(
        Panel(
            f"[bold cyan]Fetching ACS5 {year} block groups[/bold cyan]\n"
            f"State {state_fips}, county {county_fips}: {', '.join(ACS_VARIABLES.values())}",
            border_style="cyan",
        )
    )

    records = client.acs5.state_county_blockgroup(
        fields=tuple(ACS_VARIABLES.keys()),
        state_fips=state_fips,
        county_fips=county_fips,
        blockgroup=Census.ALL,
        year=year,
    )
    return records_to_frame(records)


def load_or_fetch_demographics(refresh: bool = False, path: Path = DEMOGRAPHICS_CSV) -> pd.DataFrame:
    """Load cached demographics if available, otherwise fetch from the Census API."""
    if refresh or not path.exists():
        console.print("[yellow]Fetching demographics from the Census API...[/yellow]")
        df = fetch_acs_block_groups(CENSUS_API_KEY)
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)
        log_step("Demographics fetched from API", df)
        return df

    console.print(f"[green]Using cached demographics:[/green] {path.name}")
    df = pd.read_csv(path, dtype={"geoid": str})
    log_step("Demographics loaded from cache", df)
    return df


__all__ = ["records_to_frame", "fetch_acs_block_groups", "load_or_fetch_demographics"]
