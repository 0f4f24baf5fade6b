# Crime incidents from the Chicago Data Portal (SODA API)

import io
from pathlib import Path
from typing import Optional

import pandas as pd
import requests
import requests_cache
from retry_requests import retry
from rich.console import Console
from rich.panel import Panel

from config import CRIMES_URL, CRIME_COLUMNS, SODA_PAGE_SIZE, RAW_CRIME_DIR, HTTP_CACHE
from chi_dv_pipelines.utils.logging import log_step

console = Console()


def build_session() -> requests.Session:
    """Cached session with retries, shared by every HTTP download."""
    cache_session = requests_cache.CachedSession(str(HTTP_CACHE), expire_after=-1)
    return retry(cache_session, retries=5, backoff_factor=0.3)


def _soda_timestamp(value) -> str:
    return pd.Timestamp(value).strftime("%Y-%m-%dT%H:%M:%S")


def build_where_clause(start, end) -> str:
    """SODA filter for incidents with start <= date < end."""
    return f"date >= '{_soda_timestamp(start)}' AND date < '{_soda_timestamp(end)}'"


def fetch_crimes(
    start,
    end,
    session: Optional[requests.Session] = None,
    page_size: int = SODA_PAGE_SIZE,
    refresh: bool = False,
) -> pd.DataFrame:
    """
    Page through the crimes dataset for one date range.
    refresh=True bypasses the HTTP cache and overwrites the stored responses.
    """
    session = session or build_session()
    get_kwargs = {"force_refresh": True} if refresh else {}

    console.print(
        Panel(
            f"[bold cyan]Fetching Chicago crimes ({start} → {end})[/bold cyan]\n"
            f"Source: {CRIMES_URL}",
            border_style="cyan",
        )
    )

    pages = []
    offset = 0
    while True:
        params = {
            "$select": ",".join(CRIME_COLUMNS),
            "$where": build_where_clause(start, end),
            "$order": "id",
            "$limit": page_size,
            "$offset": offset,
        }
        resp = session.get(CRIMES_URL, params=params, timeout=300, **get_kwargs)
        resp.raise_for_status()

        page = pd.read_csv(io.StringIO(resp.text))
        console.print(f"[cyan]  offset={offset:,}[/cyan] → {len(page):,} rows")

        if page.empty:
            break
        pages.append(page)
        if len(page) < page_size:
            break
        offset += page_size

    if not pages:
        return pd.DataFrame(columns=CRIME_COLUMNS)

    return pd.concat(pages, ignore_index=True)


def crime_cache_path(start, end, cache_dir: Path = RAW_CRIME_DIR) -> Path:
    start_str = pd.Timestamp(start).strftime("%Y%m%d")
    end_str = pd.Timestamp(end).strftime("%Y%m%d")
    return cache_dir / f"crimes_{start_str}_{end_str}.parquet"


def load_or_fetch_crimes(start, end, refresh: bool = False, cache_dir: Path = RAW_CRIME_DIR) -> pd.DataFrame:
    """Load cached crimes for the range if available, otherwise fetch fresh data."""
    path = crime_cache_path(start, end, cache_dir)

    if refresh or not path.exists():
        console.print("[yellow]Fetching crime records from the data portal...[/yellow]")
        df = fetch_crimes(start, end, refresh=refresh)
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_parquet(path, index=False)
        console.print(f"[green]Crimes saved → {path.name}[/green]")
        log_step("Crimes fetched from API", df)
        return df

    console.print(f"[green]Using cached crimes:[/green] {path.name}")
    df = pd.read_parquet(path)
    log_step("Crimes loaded from cache", df)
    return df


__all__ = ["build_session", "build_where_clause", "fetch_crimes", "crime_cache_path", "load_or_fetch_crimes"]
