# Figures for the DV report: weekly series, year-over-year, choropleths, income scatter

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import geopandas as gpd
import seaborn as sns
import plotly.express as px
import contextily as ctx
from rich.console import Console

from config import STAY_AT_HOME_DATE

console = Console()

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _save(fig, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=300, bbox_inches="tight")
    plt.close(fig)
    console.print(f"[dim cyan]  💾 Saved: {path.name}[/dim cyan]")
    return path


def plot_weekly_counts(
    weekly: pd.DataFrame,
    path: Path,
    reference_date=STAY_AT_HOME_DATE,
    count_col: str = "dv_count",
) -> Path:
    """Weekly DV incidents, holiday weeks marked, dashed line at the reference date."""
    sns.set(style="whitegrid")
    fig, ax = plt.subplots(figsize=(14, 6))

    ax.plot(weekly["week_start"], weekly[count_col], color="steelblue", marker="o", markersize=3, linewidth=1.5)

    if "has_holiday" in weekly.columns:
        hol = weekly[weekly["has_holiday"]]
        ax.scatter(hol["week_start"], hol[count_col], color="darkorange", zorder=3, label="Week with holiday")

    if reference_date is not None:
        ax.axvline(pd.Timestamp(reference_date), color="firebrick", linestyle="--", label="Stay-at-home order")

    ax.set_title("Domestic Violence Incidents per Week")
    ax.set_xlabel("Week starting")
    ax.set_ylabel("Incidents")
    ax.legend(loc="upper left")
    return _save(fig, path)


def plot_weekly_counts_interactive(
    weekly: pd.DataFrame,
    path: Path,
    reference_date=STAY_AT_HOME_DATE,
    count_col: str = "dv_count",
) -> Path:
    """Plotly HTML version of the weekly series."""
    fig = px.line(
        weekly,
        x="week_start",
        y=count_col,
        markers=True,
        title="Domestic Violence Incidents per Week",
        labels={"week_start": "Week starting", count_col: "Incidents"},
    )
    if reference_date is not None:
        ref = pd.Timestamp(reference_date).strftime("%Y-%m-%d")
        fig.add_shape(
            type="line", x0=ref, x1=ref, y0=0, y1=1, yref="paper",
            line={"color": "firebrick", "dash": "dash"},
        )

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(path))
    console.print(f"[dim cyan]  💾 Saved: {path.name}[/dim cyan]")
    return path


def plot_year_over_year(monthly_totals: pd.DataFrame, path: Path, count_col: str = "dv_count") -> Path:
    """One line per year across calendar months."""
    sns.set(style="whitegrid")
    fig, ax = plt.subplots(figsize=(12, 6))

    data = monthly_totals.copy()
    data["year"] = data["year"].astype(str)
    sns.lineplot(data=data, x="month", y=count_col, hue="year", marker="o", palette="tab10", ax=ax)

    ax.set_xticks(range(1, 13))
    ax.set_xticklabels(MONTH_LABELS)
    ax.set_title("Domestic Violence Incidents by Month and Year")
    ax.set_xlabel("Month")
    ax.set_ylabel("Incidents")
    ax.legend(title="Year")
    return _save(fig, path)


def plot_rate_choropleth(
    block_groups: gpd.GeoDataFrame,
    rates: pd.DataFrame,
    column: str,
    path: Path,
    title: str,
    basemap: bool = True,
    vmax: Optional[float] = None,
) -> Path:
    """
    Block group choropleth of one rate column.
    Units without a rate (no population) are drawn hatched grey.
    """
    gdf = block_groups[["geoid", "geometry"]].merge(rates[["geoid", column]], on="geoid", how="left")
    gdf = gdf.to_crs(epsg=3857)

    fig, ax = plt.subplots(figsize=(12, 14))
    missing_kwds = {"color": "lightgrey", "hatch": "///", "label": "No population"}

    if gdf[column].notna().any():
        vmax = vmax or float(gdf[column].max()) or 1.0
        gdf.plot(
            column=column,
            cmap="Reds",
            legend=True,
            edgecolor="white",
            linewidth=0.2,
            vmin=0,
            vmax=vmax,
            ax=ax,
            missing_kwds=missing_kwds,
            legend_kwds={"label": column.replace("_", " "), "shrink": 0.6},
        )
    else:
        gdf.plot(ax=ax, **missing_kwds)

    if basemap:
        try:
            ctx.add_basemap(ax, source=ctx.providers.CartoDB.Positron)
        except Exception as e:
            console.print(f"[yellow]Basemap unavailable, saving map without tiles: {e}[/yellow]")

    ax.set_title(title)
    ax.axis("off")
    return _save(fig, path)


def plot_rate_vs_income(
    data: pd.DataFrame,
    path: Path,
    rate_col: str,
    income_col: str = "median_income",
) -> Path:
    """Scatter of a block group rate against median household income, with a linear fit."""
    sns.set(style="whitegrid")
    fig, ax = plt.subplots(figsize=(10, 7))

    points = data[[income_col, rate_col]].dropna()
    if len(points) >= 2:
        sns.regplot(data=points, x=income_col, y=rate_col, ax=ax,
                    scatter_kws={"alpha": 0.4, "s": 12}, line_kws={"color": "firebrick"})
    else:
        sns.scatterplot(data=points, x=income_col, y=rate_col, ax=ax)

    ax.set_title("Domestic Violence Rate vs. Median Household Income")
    ax.set_xlabel("Median household income (USD)")
    ax.set_ylabel(rate_col.replace("_", " "))
    return _save(fig, path)


__all__ = [
    "plot_weekly_counts",
    "plot_weekly_counts_interactive",
    "plot_year_over_year",
    "plot_rate_choropleth",
    "plot_rate_vs_income",
]
