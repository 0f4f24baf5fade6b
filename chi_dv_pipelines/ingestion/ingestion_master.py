# chi_dv_pipelines/ingestion/ingestion_master.py
from rich.console import Console

from config import ANALYSIS_START, ANALYSIS_END
from .crime_fetcher import load_or_fetch_crimes
from .census_fetcher import load_or_fetch_demographics
from .shapefile_loader import load_block_groups

console = Console()


def run_ingestion(start=ANALYSIS_START, end=ANALYSIS_END, refresh: bool = False) -> dict:
    console.print("\n[bold cyan]=== INGESTION PIPELINE START ===[/bold cyan]\n")

    # 1. Reference geometry (block groups inside the city)
    block_groups = load_block_groups(refresh=refresh)

    # 2. Demographics (cached or fetched)
    demographics = load_or_fetch_demographics(refresh=refresh)

    # 3. Crime incidents for the analysis window
    crimes = load_or_fetch_crimes(start, end, refresh=refresh)

    console.print("\n[green]✓ Ingestion completed successfully.[/green]\n")

    return {
        "crimes": crimes,
        "demographics": demographics,
        "block_groups": block_groups,
    }
