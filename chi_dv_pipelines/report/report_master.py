"""
report_master.py

Renders every figure and writes the Markdown report.
"""

from pathlib import Path
from typing import Dict

import geopandas as gpd
from rich.console import Console

from config import FIGURES_DIR, RATE_SCALE, REPORT_MD, STAY_AT_HOME_DATE
from chi_dv_pipelines.report.plots import (
    plot_weekly_counts,
    plot_weekly_counts_interactive,
    plot_year_over_year,
    plot_rate_choropleth,
    plot_rate_vs_income,
)
from chi_dv_pipelines.report.narrative import summarize, print_summary, write_report

console = Console()


def run_report(
    outputs: Dict,
    block_groups: gpd.GeoDataFrame,
    basemap: bool = True,
    figures_dir: Path = FIGURES_DIR,
    report_path: Path = REPORT_MD,
    reference_date=STAY_AT_HOME_DATE,
) -> Dict[str, Path]:
    """
    Parameters:
        outputs: Dict returned by run_transforms
        block_groups: reference geometry for the maps
        basemap: fetch CartoDB tiles under the choropleths

    Returns:
        Dict of figure/report name → path
    """
    console.print("\n[bold cyan]=== REPORT START ===[/bold cyan]\n")

    figures_dir = Path(figures_dir)
    per_col = f"dv_per_{RATE_SCALE}"
    windows = outputs["window_rates"]
    labels = list(dict.fromkeys(windows["period"]))

    figures = {
        "weekly": plot_weekly_counts(outputs["weekly"], figures_dir / "01_dv_weekly.png", reference_date),
        "weekly_html": plot_weekly_counts_interactive(outputs["weekly"], figures_dir / "01_dv_weekly.html", reference_date),
        "year_over_year": plot_year_over_year(outputs["monthly_totals"], figures_dir / "02_dv_year_over_year.png"),
    }

    # shared colour scale so the comparison maps read side by side
    vmax = float(windows[per_col].quantile(0.99)) if windows[per_col].notna().any() else None
    if not vmax:
        vmax = None

    if labels:
        before, after = labels[0], labels[-1]
        figures["choropleth_before"] = plot_rate_choropleth(
            block_groups, windows[windows["period"] == before], per_col,
            figures_dir / f"03_dv_rate_{before}.png",
            f"DV incidents per {RATE_SCALE:,} residents ({before})",
            basemap=basemap, vmax=vmax,
        )
        figures["choropleth_after"] = plot_rate_choropleth(
            block_groups, windows[windows["period"] == after], per_col,
            figures_dir / f"04_dv_rate_{after}.png",
            f"DV incidents per {RATE_SCALE:,} residents ({after})",
            basemap=basemap, vmax=vmax,
        )

        income = windows[windows["period"] == after].merge(
            outputs["units"][["geoid", "median_income"]], on="geoid", how="left"
        )
        figures["income"] = plot_rate_vs_income(income, figures_dir / "05_dv_rate_vs_income.png", per_col)

    summary = summarize(outputs, reference_date=reference_date)
    print_summary(summary)
    figures["report"] = write_report(summary, figures, report_path)

    console.print("\n[green]Report completed successfully.[/green]\n")
    return figures


__all__ = ["run_report"]
