# Narrative commentary: summary statistics + Markdown rendering

from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from rich.console import Console
from rich.table import Table

from config import MIN_POPULATION_FOR_RANKING, RATE_SCALE, STAY_AT_HOME_DATE
from chi_dv_pipelines.transform.rates import rate_change

console = Console()


def pct_change(before: float, after: float) -> float:
    """Percent change from before to after; NaN when before is 0 or missing."""
    if before is None or pd.isna(before) or before == 0:
        return np.nan
    return (after - before) / before * 100


def _corr(df: pd.DataFrame, a: str, b: str) -> float:
    if a not in df.columns or b not in df.columns:
        return np.nan
    pair = df[[a, b]].dropna()
    if len(pair) < 3 or pair[a].nunique() < 2 or pair[b].nunique() < 2:
        return np.nan
    return float(pair[a].corr(pair[b]))


def summarize(
    outputs: Dict[str, Any],
    reference_date=STAY_AT_HOME_DATE,
    before_label: Optional[str] = None,
    after_label: Optional[str] = None,
    top_n: int = 10,
    min_population: int = MIN_POPULATION_FOR_RANKING,
) -> Dict[str, Any]:
    """
    Numbers behind the commentary.

    Weekly means are split at reference_date. Window comparisons and the
    block group ranking use the labelled comparison windows; by default the
    first and last windows in outputs["window_rates"].
    """
    incidents = outputs["incidents"]
    dv = outputs["dv_incidents"]
    weekly = outputs["weekly"]
    windows = outputs["window_rates"]
    units = outputs["units"]

    ref = pd.Timestamp(reference_date)
    before_weeks = weekly[weekly["week_start"] < ref]["dv_count"]
    after_weeks = weekly[weekly["week_start"] >= ref]["dv_count"]
    weekly_before = float(before_weeks.mean()) if len(before_weeks) else np.nan
    weekly_after = float(after_weeks.mean()) if len(after_weeks) else np.nan

    holiday_mean = float(weekly.loc[weekly["has_holiday"], "dv_count"].mean()) if weekly["has_holiday"].any() else np.nan
    other_mean = float(weekly.loc[~weekly["has_holiday"], "dv_count"].mean()) if (~weekly["has_holiday"]).any() else np.nan

    labels = list(dict.fromkeys(windows["period"]))
    before_label = before_label or (labels[0] if labels else None)
    after_label = after_label or (labels[-1] if labels else None)

    window_totals = windows.groupby("period", sort=False)[["all_count", "dv_count"]].sum().astype(int)
    dv_before = int(window_totals.loc[before_label, "dv_count"]) if before_label in window_totals.index else 0
    dv_after = int(window_totals.loc[after_label, "dv_count"]) if after_label in window_totals.index else 0

    per_col = f"dv_per_{RATE_SCALE}"
    after_rates = windows[windows["period"] == after_label]
    ranked = (
        after_rates[after_rates["population"] >= min_population]
        .dropna(subset=[per_col])
        .sort_values(per_col, ascending=False)
        .head(top_n)
    )
    top_units = [
        {
            "geoid": row.geoid,
            "dv_count": int(row.dv_count),
            "population": int(row.population),
            "rate": float(getattr(row, per_col)),
        }
        for row in ranked.itertuples(index=False)
    ]

    increases = []
    if before_label in labels and after_label in labels and before_label != after_label:
        change = rate_change(windows, before_label, after_label, column=per_col).merge(
            after_rates[["geoid", "population"]], on="geoid", how="left"
        )
        change = change[(change["population"] >= min_population) & (change["change"] > 0)]
        increases = [
            {"geoid": row["geoid"], "before": float(row[before_label]), "after": float(row[after_label]),
             "change": float(row["change"])}
            for _, row in change.sort_values("change", ascending=False).head(top_n).iterrows()
        ]

    demo_cols = [c for c in ["median_income", "unemployment_rate"] if c in units.columns]
    with_demo = after_rates.merge(units[["geoid"] + demo_cols], on="geoid", how="left")

    matched = int(incidents["geoid"].notna().sum()) if "geoid" in incidents.columns else 0

    return {
        "start": pd.to_datetime(incidents["date"]).min() if len(incidents) else pd.NaT,
        "end": pd.to_datetime(incidents["date"]).max() if len(incidents) else pd.NaT,
        "reference_date": ref,
        "total_incidents": int(len(incidents)),
        "unmatched_incidents": int(len(incidents) - matched),
        "total_dv": int(len(dv)),
        "dv_share": len(dv) / len(incidents) if len(incidents) else np.nan,
        "weekly_mean_before": weekly_before,
        "weekly_mean_after": weekly_after,
        "weekly_pct_change": pct_change(weekly_before, weekly_after),
        "holiday_week_mean": holiday_mean,
        "other_week_mean": other_mean,
        "before_label": before_label,
        "after_label": after_label,
        "window_dv_before": dv_before,
        "window_dv_after": dv_after,
        "window_pct_change": pct_change(dv_before, dv_after),
        "top_units": top_units,
        "largest_increases": increases,
        "min_population": min_population,
        "corr_income": _corr(with_demo, per_col, "median_income"),
        "corr_unemployment": _corr(with_demo, per_col, "unemployment_rate"),
        "units_without_population": int((units["population"].fillna(0) <= 0).sum()),
    }


def _fmt(value: float, pattern: str = ".1f", na: str = "n/a") -> str:
    if value is None or pd.isna(value):
        return na
    return format(value, pattern)


def _direction(change: float) -> str:
    if pd.isna(change):
        return "could not be compared"
    if change > 0:
        return f"rose {_fmt(change)}%"
    if change < 0:
        return f"fell {_fmt(abs(change))}%"
    return "did not change"


def _describe_corr(r: float) -> str:
    if pd.isna(r):
        return "not enough data to estimate"
    strength = "weak" if abs(r) < 0.3 else "moderate" if abs(r) < 0.6 else "strong"
    sign = "negative" if r < 0 else "positive"
    return f"{strength} {sign} (r = {r:.2f})"


def render_markdown(summary: Dict[str, Any], figures: Optional[Dict[str, Path]] = None, figures_root: Optional[Path] = None) -> str:
    """Markdown report text. Figure links are made relative to figures_root when given."""
    figures = figures or {}
    per = RATE_SCALE

    def link(key: str, caption: str) -> str:
        if key not in figures:
            return ""
        path = Path(figures[key])
        if figures_root is not None:
            try:
                path = path.relative_to(figures_root)
            except ValueError:
                pass
        return f"![{caption}]({path.as_posix()})\n"

    start = summary["start"].date() if not pd.isna(summary["start"]) else "n/a"
    end = summary["end"].date() if not pd.isna(summary["end"]) else "n/a"
    ref = summary["reference_date"].date()

    lines = [
        "# Domestic Violence in Chicago Block Groups",
        "",
        f"Incidents reported between {start} and {end}: **{summary['total_incidents']:,}**, "
        f"of which **{summary['total_dv']:,}** ({_fmt(summary['dv_share'] * 100)}%) "
        "were domestic, at a residence, and in a violent or sexual offense category.",
    ]
    if summary["unmatched_incidents"]:
        lines.append(
            f"{summary['unmatched_incidents']:,} incidents had no coordinates inside a city block group "
            "and are excluded from block group rates."
        )

    lines += [
        "",
        "## Weekly trend",
        "",
        f"Before {ref} the city averaged {_fmt(summary['weekly_mean_before'])} domestic violence incidents per week; "
        f"afterwards {_fmt(summary['weekly_mean_after'])}. The weekly average {_direction(summary['weekly_pct_change'])}.",
        f"Weeks containing a public holiday averaged {_fmt(summary['holiday_week_mean'])} incidents against "
        f"{_fmt(summary['other_week_mean'])} for other weeks.",
        "",
        link("weekly", "Weekly DV incidents"),
        link("year_over_year", "DV incidents by month and year"),
        "## Comparison windows",
        "",
        f"{summary['before_label']}: {summary['window_dv_before']:,} incidents. "
        f"{summary['after_label']}: {summary['window_dv_after']:,} incidents. "
        f"Between the two windows the count {_direction(summary['window_pct_change'])}.",
        "",
        link("choropleth_before", f"DV rate per {per:,}, {summary['before_label']}"),
        link("choropleth_after", f"DV rate per {per:,}, {summary['after_label']}"),
        f"## Highest rates ({summary['after_label']})",
        "",
        f"Block groups with at least {summary['min_population']:,} residents, ranked by incidents per {per:,} residents.",
        "",
    ]

    if summary["top_units"]:
        lines += ["| Block group | Incidents | Population | Rate |", "| --- | ---: | ---: | ---: |"]
        for unit in summary["top_units"]:
            lines.append(
                f"| {unit['geoid']} | {unit['dv_count']:,} | {unit['population']:,} | {unit['rate']:.2f} |"
            )
    else:
        lines.append("No block group met the population threshold.")

    lines += [
        "",
        f"## Largest increases ({summary['before_label']} to {summary['after_label']})",
        "",
    ]
    if summary["largest_increases"]:
        lines += [
            f"| Block group | {summary['before_label']} | {summary['after_label']} | Change |",
            "| --- | ---: | ---: | ---: |",
        ]
        for unit in summary["largest_increases"]:
            lines.append(
                f"| {unit['geoid']} | {unit['before']:.2f} | {unit['after']:.2f} | +{unit['change']:.2f} |"
            )
    else:
        lines.append("No block group's rate rose between the two windows.")

    lines += [
        "",
        "## Demographics",
        "",
        f"Across block groups the DV rate shows a {_describe_corr(summary['corr_income'])} relationship "
        f"with median household income and a {_describe_corr(summary['corr_unemployment'])} relationship "
        "with the unemployment rate.",
        f"{summary['units_without_population']:,} block groups report no residents; their rates are left undefined.",
        "",
        link("income", "DV rate vs. median income"),
    ]

    return "\n".join(lines).rstrip() + "\n"


def print_summary(summary: Dict[str, Any]) -> None:
    """Headline numbers as a rich table."""
    table = Table(title="Report Summary", show_lines=True)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    table.add_row("Incidents", f"{summary['total_incidents']:,}")
    table.add_row("DV incidents", f"{summary['total_dv']:,}")
    table.add_row("Weekly mean before", _fmt(summary["weekly_mean_before"]))
    table.add_row("Weekly mean after", _fmt(summary["weekly_mean_after"]))
    table.add_row("Weekly change (%)", _fmt(summary["weekly_pct_change"]))
    table.add_row("Corr. with income", _fmt(summary["corr_income"], ".2f"))

    console.print(table)


def write_report(summary: Dict[str, Any], figures: Dict[str, Path], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_markdown(summary, figures, figures_root=path.parent), encoding="utf-8")
    console.print(f"[green]Report written → {path}[/green]")
    return path


__all__ = ["pct_change", "summarize", "render_markdown", "print_summary", "write_report"]
