# Loading TIGER/Line shapefiles (block groups, city boundary)

import io
import zipfile
from pathlib import Path
from typing import Optional

import geopandas as gpd
import requests
from rich.console import Console

from config import (
    BLOCK_GROUP_URL,
    CITY_NAME,
    COUNTY_FIPS,
    PLACE_URL,
    RAW_SHP_DIR,
)
from chi_dv_pipelines.ingestion.crime_fetcher import build_session
from chi_dv_pipelines.utils.logging import log_step, log_dropped
from chi_dv_pipelines.validate.core import validate_geo_units

console = Console()


def download_tiger_zip(
    url: str,
    dest_dir: Path = RAW_SHP_DIR,
    session: Optional[requests.Session] = None,
    refresh: bool = False,
) -> Path:
    """Download + extract a TIGER zip once; return the .shp path."""
    stem = Path(url).stem
    extract_dir = dest_dir / stem
    shp_path = extract_dir / f"{stem}.shp"

    if shp_path.exists() and not refresh:
        console.print(f"[green]Using cached shapefile:[/green] {shp_path.name}")
        return shp_path

    console.print(f"[cyan]Downloading:[/cyan] {url}")
    session = session or build_session()
    get_kwargs = {"force_refresh": True} if refresh else {}
    resp = session.get(url, timeout=300, **get_kwargs)
    resp.raise_for_status()

    extract_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
        zf.extractall(extract_dir)

    if not shp_path.exists():
        raise FileNotFoundError(f"{shp_path.name} not found inside {url}")

    return shp_path


def load_shapefile(path: Path, target_crs: str = "EPSG:4326") -> gpd.GeoDataFrame:
    """Load shapefile + enforce CRS."""
    if not path.exists():
        raise FileNotFoundError(f"Shapefile not found: {path}")

    console.print(f"[cyan]Loading shapefile:[/cyan] {path.name}")

    gdf = gpd.read_file(path)
    if gdf.crs is None:
        gdf = gdf.set_crs("EPSG:4326")

    return gdf.to_crs(target_crs)


def restrict_to_boundary(units: gpd.GeoDataFrame, boundary: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Keep units whose representative point falls inside the boundary."""
    boundary = boundary.to_crs(units.crs)
    outline = boundary.geometry.union_all()
    inside = units.geometry.representative_point().within(outline)
    return units[inside].copy()


def load_city_boundary(refresh: bool = False, city_name: str = CITY_NAME) -> gpd.GeoDataFrame:
    places = load_shapefile(download_tiger_zip(PLACE_URL, refresh=refresh))
    city = places[places["NAME"] == city_name]
    if city.empty:
        raise ValueError(f"Place '{city_name}' not found in {Path(PLACE_URL).name}")
    return city[["NAME", "geometry"]].reset_index(drop=True)


def load_block_groups(refresh: bool = False) -> gpd.GeoDataFrame:
    """County block groups restricted to the city boundary: geoid, aland, geometry."""
    bg = load_shapefile(download_tiger_zip(BLOCK_GROUP_URL, refresh=refresh))
    bg = bg[bg["COUNTYFP"] == COUNTY_FIPS]
    county_count = len(bg)

    city = load_city_boundary(refresh=refresh)
    bg = restrict_to_boundary(bg, city)
    log_dropped("Block groups", county_count, len(bg), f"outside {CITY_NAME}")

    bg = (
        bg.rename(columns={"GEOID": "geoid", "ALAND": "aland"})[["geoid", "aland", "geometry"]]
        .sort_values("geoid")
        .reset_index(drop=True)
    )

    validate_geo_units(bg)
    log_step("Block groups loaded", bg)
    return bg


__all__ = [
    "download_tiger_zip",
    "load_shapefile",
    "restrict_to_boundary",
    "load_city_boundary",
    "load_block_groups",
]
