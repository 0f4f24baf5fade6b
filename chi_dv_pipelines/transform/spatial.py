# Point-in-polygon join of incidents to census block groups

import numpy as np
import pandas as pd
import geopandas as gpd
from rich.console import Console

from chi_dv_pipelines.utils.logging import log_step, log_dropped

console = Console()


def to_gdf(df: pd.DataFrame, lon_col: str = "longitude", lat_col: str = "latitude") -> gpd.GeoDataFrame:
    """Convert a DataFrame into a point GeoDataFrame, dropping rows without coordinates."""
    for col in (lon_col, lat_col):
        if col not in df.columns:
            raise KeyError(f"Expected coordinate column '{col}' not found.")

    df_geo = df.dropna(subset=[lon_col, lat_col])
    log_dropped("Geocoding", len(df), len(df_geo), "missing coordinates")

    return gpd.GeoDataFrame(
        df_geo.copy(),
        geometry=gpd.points_from_xy(df_geo[lon_col], df_geo[lat_col]),
        crs="EPSG:4326",
    )


def join_block_groups(
    incidents: pd.DataFrame,
    block_groups: gpd.GeoDataFrame,
    id_col: str = "geoid",
    lon_col: str = "longitude",
    lat_col: str = "latitude",
) -> pd.DataFrame:
    """
    Attach the containing block group identifier to every incident.

    - left join: incidents outside every polygon, or without coordinates,
      are kept with geoid = NaN
    - points on a shared boundary keep their first match only
    - row order of the input is preserved
    - returns a plain DataFrame (geometry dropped)
    """
    console.print(f"[cyan]Spatial join:[/cyan] incidents → block groups ({len(block_groups):,} units)")

    gdf = to_gdf(incidents, lon_col=lon_col, lat_col=lat_col)
    units = block_groups[[id_col, "geometry"]].to_crs(gdf.crs)

    joined = gpd.sjoin(gdf, units, how="left", predicate="within")
    joined = joined.drop(columns=["index_right"], errors="ignore")
    joined = joined[~joined.index.duplicated(keep="first")]
    df_joined = pd.DataFrame(joined.drop(columns=["geometry"]))

    unlocated = incidents.loc[incidents.index.difference(df_joined.index)].copy()
    if not unlocated.empty:
        unlocated[id_col] = np.nan
        df_joined = pd.concat([df_joined, unlocated])
        console.print(f"[yellow]{len(unlocated):,} incidents without coordinates kept (geoid left empty).[/yellow]")

    df_joined = df_joined.sort_index().reset_index(drop=True)

    unmatched = int(df_joined[id_col].isna().sum())
    if unmatched:
        console.print(f"[yellow]{unmatched:,} incidents fell outside every block group (geoid left empty).[/yellow]")

    log_step("Spatial join complete", df_joined, note=f"{unmatched:,} unmatched")
    return df_joined


__all__ = ["to_gdf", "join_block_groups"]
