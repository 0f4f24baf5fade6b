# Shape ledger for pipeline steps, printed with rich.

from typing import List, Dict, Any, Optional
import pandas as pd
from rich.console import Console
from rich.table import Table

console = Console()

pipeline_log: List[Dict[str, Any]] = []


def log_step(step_name: str, df: pd.DataFrame, note: Optional[str] = None) -> None:
    """
    Record a pipeline step with the shape of the frame it produced.

    Parameters:
        step_name: Description of the pipeline step
        df: DataFrame (or GeoDataFrame) produced by the step
        note: Optional free text shown in the summary table (e.g. rows dropped)
    """
    if not isinstance(df, pd.DataFrame):
        rows_val: Any = "N/A"
        cols_val: Any = "N/A"
    else:
        rows_val = int(df.shape[0])
        cols_val = int(df.shape[1])

    rows_str = f"{rows_val:,}" if isinstance(rows_val, int) else rows_val
    pipeline_log.append({"step": step_name, "rows": rows_val, "cols": cols_val, "note": note or ""})

    suffix = f" [dim]({note})[/dim]" if note else ""
    console.print(f"[green]{step_name}[/green] [cyan]shape: {rows_str} x {cols_val}[/cyan]{suffix}")


def log_dropped(step_name: str, before: int, after: int, reason: str) -> None:
    """Print how many rows a step removed, if any."""
    dropped = before - after
    if dropped > 0:
        console.print(f"[yellow]{step_name}: {dropped:,} rows dropped ({reason}).[/yellow]")


def show_pipeline_table() -> None:
    """Pretty-print pipeline log as a table."""
    if not pipeline_log:
        console.print("[red]No pipeline steps logged yet.[/red]")
        return

    table = Table(title="Data Pipeline Summary", show_lines=True)
    table.add_column("Step", style="cyan", no_wrap=True)
    table.add_column("Rows", style="green")
    table.add_column("Cols", style="yellow")
    table.add_column("Note", style="dim")

    for entry in pipeline_log:
        rows_val = entry["rows"]
        rows_str = f"{rows_val:,}" if isinstance(rows_val, int) else str(rows_val)
        table.add_row(entry["step"], rows_str, str(entry["cols"]), entry["note"])

    console.print(table)


def clear_pipeline_log() -> None:
    """Clear the pipeline log in place so imported references stay valid."""
    pipeline_log.clear()
    console.print("[yellow]Pipeline log cleared.[/yellow]")


__all__ = ["log_step", "log_dropped", "show_pipeline_table", "clear_pipeline_log", "pipeline_log"]
