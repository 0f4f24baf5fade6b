# Filter incidents to the domestic-violence subset

import pandas as pd

from config import DV_PRIMARY_TYPES, RESIDENTIAL_LOCATIONS
from chi_dv_pipelines.utils.logging import log_step


def filter_domestic_violence(
    df: pd.DataFrame,
    primary_types=DV_PRIMARY_TYPES,
    locations=RESIDENTIAL_LOCATIONS,
) -> pd.DataFrame:
    """Domestic flag set, residential location, and a DV offense category."""
    is_domestic = df["domestic"].eq(True)
    at_residence = df["location_description"].isin(locations).fillna(False).astype(bool)
    dv_offense = df["primary_type"].isin(primary_types).fillna(False).astype(bool)

    df_dv = df[is_domestic & at_residence & dv_offense].copy()
    log_step("Domestic violence subset", df_dv)
    return df_dv


def filter_date_range(df: pd.DataFrame, start, end, date_col: str = "date") -> pd.DataFrame:
    """Rows with start <= date < end."""
    dates = pd.to_datetime(df[date_col])
    mask = (dates >= pd.Timestamp(start)) & (dates < pd.Timestamp(end))
    return df[mask].copy()


__all__ = ["filter_domestic_violence", "filter_date_range"]
