"""
Shared fixtures: four square block groups on a 2 x 2 grid in Chicago,
their demographics, and a small set of raw portal records covering the
cleaning, join, and filter edge cases.

    bg3 | bg4        lat 41.81 - 41.82
    ----+----
    bg1 | bg2        lat 41.80 - 41.81
  lon -87.70 .. -87.68
"""

import numpy as np
import pandas as pd
import geopandas as gpd
import pytest
from shapely.geometry import box

BG1, BG2, BG3, BG4 = "170310000001", "170310000002", "170310000003", "170310000004"

CENTERS = {
    BG1: (-87.695, 41.805),
    BG2: (-87.685, 41.805),
    BG3: (-87.695, 41.815),
    BG4: (-87.685, 41.815),
}

OUTSIDE = (-87.65, 41.95)


@pytest.fixture
def block_groups():
    return gpd.GeoDataFrame(
        {
            "geoid": [BG1, BG2, BG3, BG4],
            "aland": [1_000_000, 1_000_000, 1_000_000, 1_000_000],
        },
        geometry=[
            box(-87.70, 41.80, -87.69, 41.81),
            box(-87.69, 41.80, -87.68, 41.81),
            box(-87.70, 41.81, -87.69, 41.82),
            box(-87.69, 41.81, -87.68, 41.82),
        ],
        crs="EPSG:4326",
    )


@pytest.fixture
def demographics():
    return pd.DataFrame(
        {
            "geoid": [BG1, BG2, BG3, BG4],
            "population": [1000.0, 500.0, 0.0, 2000.0],
            "median_income": [42000.0, 55000.0, np.nan, 98000.0],
            "labor_force": [500.0, 260.0, 0.0, 1100.0],
            "unemployed": [50.0, 13.0, 0.0, 22.0],
            "unemployment_rate": [0.1, 0.05, np.nan, 0.02],
        }
    )


def _row(id_, date, primary_type, location, domestic, point):
    lon, lat = point if point is not None else (np.nan, np.nan)
    return {
        "id": id_,
        "case_number": f"JD{id_:06d}",
        "date": date,
        "primary_type": primary_type,
        "description": "DOMESTIC BATTERY SIMPLE",
        "location_description": location,
        "arrest": "false",
        "domestic": domestic,
        "community_area": 61,
        "latitude": lat,
        "longitude": lon,
    }


@pytest.fixture
def raw_crimes():
    rows = [
        _row(1, "2020-03-02T10:00:00.000", "BATTERY", "APARTMENT", "true", CENTERS[BG1]),
        _row(2, "2020-03-03T11:00:00.000", "ASSAULT", "RESIDENCE", "true", CENTERS[BG1]),
        _row(3, "2020-03-10T09:00:00.000", "BATTERY", "RESIDENCE", "true", CENTERS[BG2]),
        # not flagged domestic
        _row(4, "2020-03-10T12:00:00.000", "BATTERY", "RESIDENCE", "false", CENTERS[BG1]),
        # not at a residence
        _row(5, "2020-03-11T13:00:00.000", "BATTERY", "STREET", "true", CENTERS[BG4]),
        # not a DV offense category
        _row(6, "2020-03-12T14:00:00.000", "THEFT", "RESIDENCE", "true", CENTERS[BG4]),
        # outside every block group
        _row(7, "2020-03-24T08:00:00.000", "BATTERY", "RESIDENCE", "true", OUTSIDE),
        # no coordinates
        _row(8, "2020-03-25T08:00:00.000", "BATTERY", "RESIDENCE", "true", None),
        # unparseable date
        _row(9, "not a date", "BATTERY", "RESIDENCE", "true", CENTERS[BG1]),
        # duplicate of id 3
        _row(3, "2020-03-10T09:00:00.000", "BATTERY", "RESIDENCE", "true", CENTERS[BG2]),
        # messy text, zero-population block group
        _row(10, "03/26/2020 08:00:00 PM", " battery", "residence ", "TRUE", CENTERS[BG3]),
    ]
    return pd.DataFrame(rows)


@pytest.fixture
def ingestion_output(raw_crimes, demographics, block_groups):
    return {
        "crimes": raw_crimes,
        "demographics": demographics,
        "block_groups": block_groups,
    }


@pytest.fixture
def comparison_windows():
    return {
        "early_march": ("2020-03-01", "2020-03-15"),
        "late_march": ("2020-03-15", "2020-04-01"),
    }


@pytest.fixture
def transform_output(ingestion_output, comparison_windows):
    from chi_dv_pipelines.transform.transform_master import run_transforms

    return run_transforms(ingestion_output, "2020-03-01", "2020-04-01", comparison_windows=comparison_windows)
