# End-to-end report pipeline with Rich console output

import argparse
from pathlib import Path
from typing import Dict

import pandas as pd
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from config import (
    ANALYSIS_START,
    ANALYSIS_END,
    INCIDENTS_PARQUET,
    DV_PARQUET,
    WEEKLY_CSV,
    MONTHLY_TOTALS_CSV,
    MONTHLY_RATES_CSV,
    WINDOW_RATES_CSV,
)
from chi_dv_pipelines.ingestion.ingestion_master import run_ingestion
from chi_dv_pipelines.transform.transform_master import run_transforms
from chi_dv_pipelines.validate.orchestrator import run_validations
from chi_dv_pipelines.report.report_master import run_report
from chi_dv_pipelines.utils.logging import show_pipeline_table

console = Console()


def create_header():
    header = """
    ╔═══════════════════════════════════════════════════════════════╗
    ║        CHICAGO DOMESTIC VIOLENCE RATE REPORT                  ║
    ║   Ingestion → Transform → Validate → Save → Report            ║
    ╚═══════════════════════════════════════════════════════════════╝
    """
    return Panel(header, style="bold cyan", border_style="bright_cyan", expand=False)


def create_step_panel(step_num, total_steps, title, status="running"):
    if status == "running":
        emoji, style = "⏳", "bold yellow"
    elif status == "complete":
        emoji, style = "✅", "bold green"
    else:
        emoji, style = "❌", "bold red"
    return Panel(f"{emoji} [bold]{title}[/bold]", title=f"[{style}]Step {step_num}/{total_steps}[/{style}]", border_style=style, expand=False)


def save_outputs(outputs: Dict) -> Dict[str, Path]:
    """Write processed tables; re-running overwrites them."""
    paths = {
        "incidents": INCIDENTS_PARQUET,
        "dv_incidents": DV_PARQUET,
        "weekly": WEEKLY_CSV,
        "monthly_totals": MONTHLY_TOTALS_CSV,
        "monthly_rates": MONTHLY_RATES_CSV,
        "window_rates": WINDOW_RATES_CSV,
    }
    for key, path in paths.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix == ".parquet":
            outputs[key].to_parquet(path, index=False)
        else:
            outputs[key].to_csv(path, index=False)
    return paths


def create_results_table(outputs: Dict, paths: Dict[str, Path]):
    table = Table(title="📊 Pipeline Results", box=box.ROUNDED, show_header=True, header_style="bold magenta", border_style="bright_magenta")
    table.add_column("Output", style="cyan", no_wrap=True)
    table.add_column("File", style="green")
    table.add_column("Rows", style="yellow")
    for key, path in paths.items():
        table.add_row(key, str(path.name), f"{len(outputs[key]):,}")
    dv = outputs["dv_incidents"]
    if not dv.empty:
        dates = pd.to_datetime(dv["date"])
        table.add_row("DV date range", f"{dates.min()} → {dates.max()}", "")
    return table


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Chicago domestic-violence rates by census block group."
    )
    parser.add_argument("--start", default=ANALYSIS_START, help="First day of the analysis window (inclusive)")
    parser.add_argument("--end", default=ANALYSIS_END, help="Day after the analysis window (exclusive)")
    parser.add_argument("--refresh", action="store_true", help="Ignore cached downloads and fetch again")
    parser.add_argument("--no-basemap", action="store_true", help="Skip map tiles under the choropleths")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    console.print()
    console.print(create_header())
    console.print()
    total_steps = 5
    try:
        console.print(create_step_panel(1, total_steps, "Ingestion", "running"))
        ingestion_output = run_ingestion(args.start, args.end, refresh=args.refresh)
        console.print(create_step_panel(1, total_steps, "Ingestion Complete", "complete"))
        console.print()

        console.print(create_step_panel(2, total_steps, "Transformations", "running"))
        outputs = run_transforms(ingestion_output, args.start, args.end)
        console.print(create_step_panel(2, total_steps, "Transformations Complete", "complete"))
        console.print()

        console.print(create_step_panel(3, total_steps, "Validation", "running"))
        outputs = run_validations(outputs)
        console.print(create_step_panel(3, total_steps, "Validation Complete", "complete"))
        console.print()

        console.print(create_step_panel(4, total_steps, "Saving Tables", "running"))
        with console.status("[bold yellow]Writing to disk...", spinner="dots"):
            paths = save_outputs(outputs)
        console.print(create_step_panel(4, total_steps, "Save Complete", "complete"))
        console.print()

        console.print(create_step_panel(5, total_steps, "Report", "running"))
        figures = run_report(outputs, ingestion_output["block_groups"], basemap=not args.no_basemap)
        console.print(create_step_panel(5, total_steps, "Report Complete", "complete"))
        console.print()

        console.print(Panel("[bold green] PIPELINE COMPLETED SUCCESSFULLY [/bold green]", border_style="bright_green", expand=False))
        console.print()
        console.print(create_results_table(outputs, paths))
        console.print()
        show_pipeline_table()
        console.print()
        console.print(Panel.fit(f"[bold] Report ready: [/bold][cyan]{figures['report']}[/cyan]", border_style="bright_blue", title="[bold green]Success[/bold green]"))
    except Exception as e:
        console.print()
        console.print(Panel(f"[bold red] PIPELINE FAILED [/bold red]\n\n[red]Error:[/red] {str(e)}\n\n[dim]Check logs above for details.[/dim]", border_style="bright_red", title="[bold red]Error[/bold red]", expand=False))
        raise


if __name__ == "__main__":
    main()
