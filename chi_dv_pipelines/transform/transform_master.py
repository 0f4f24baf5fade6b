"""
transform_master.py

Orchestrates all transformation steps: clean → join → filter → aggregate → normalize.
"""

import geopandas as gpd
import pandas as pd
from rich.console import Console

from config import ANALYSIS_START, ANALYSIS_END, COMPARISON_WINDOWS
from chi_dv_pipelines.validate.core import run_validation_checks
from chi_dv_pipelines.utils.logging import log_step, show_pipeline_table, clear_pipeline_log

from chi_dv_pipelines.transform.cleaning import clean_crimes
from chi_dv_pipelines.transform.spatial import join_block_groups
from chi_dv_pipelines.transform.filters import filter_domestic_violence, filter_date_range
from chi_dv_pipelines.transform.temporal import add_temporal_features
from chi_dv_pipelines.transform.aggregate import weekly_counts, monthly_totals
from chi_dv_pipelines.transform.rates import monthly_rates, window_rates

console = Console()


def build_units(block_groups: gpd.GeoDataFrame, demographics: pd.DataFrame) -> pd.DataFrame:
    """
    One row per block group in the reference geometry with its demographics.
    Block groups the ACS does not report keep a NaN population.
    """
    demo = demographics.copy()
    demo["geoid"] = demo["geoid"].astype(str)
    units = pd.DataFrame(block_groups[["geoid"]]).merge(demo, on="geoid", how="left")

    missing = int(units["population"].isna().sum())
    if missing:
        console.print(f"[yellow]{missing:,} block groups have no ACS population.[/yellow]")
    return units


def run_transforms(
    ingestion_output: dict,
    start=ANALYSIS_START,
    end=ANALYSIS_END,
    comparison_windows: dict = COMPARISON_WINDOWS,
) -> dict:
    """
    Run complete transformation pipeline.

    Parameters:
        ingestion_output: Dict with keys:
            - crimes: raw crime records
            - demographics: ACS attributes per block group
            - block_groups: reference geometry (geoid, geometry)

    Returns:
        Dict with transformed data:
            - incidents: all incidents in range, with geoid
            - dv_incidents: domestic-violence subset
            - units: block groups with demographics
            - weekly: DV counts per week
            - monthly_totals: DV counts per calendar month
            - monthly_rates: per block group x month rates
            - window_rates: per block group rates for the comparison windows
    """
    console.print("\n[bold cyan]=== TRANSFORM PIPELINE START ===[/bold cyan]\n")
    clear_pipeline_log()

    df = ingestion_output["crimes"]
    block_groups = ingestion_output["block_groups"]
    log_step("Initial crime data", df)

    df = clean_crimes(df)
    df = filter_date_range(df, start, end)
    log_step("Within analysis window", df)
    run_validation_checks(df, "Transform: After cleaning")

    df = join_block_groups(df, block_groups)
    df = add_temporal_features(df)
    log_step("After temporal features", df)

    dv = filter_domestic_violence(df)

    units = build_units(block_groups, ingestion_output["demographics"])

    weekly = weekly_counts(dv, start, end)
    log_step("Weekly DV counts", weekly)

    totals = monthly_totals(dv)
    log_step("Monthly DV totals", totals)

    rates_by_month = monthly_rates(df, dv, units, start, end)
    rates_by_window = window_rates(df, dv, units, comparison_windows)

    console.print("\n[green]Transformation completed successfully.[/green]\n")
    show_pipeline_table()

    return {
        "incidents": df,
        "dv_incidents": dv,
        "units": units,
        "weekly": weekly,
        "monthly_totals": totals,
        "monthly_rates": rates_by_month,
        "window_rates": rates_by_window,
    }
