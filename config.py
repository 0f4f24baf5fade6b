import os
from pathlib import Path

from dotenv import load_dotenv
from us import states

load_dotenv()

# Project Root
PROJECT_ROOT = Path(__file__).resolve().parent

# Data Directory
DATA_DIR = PROJECT_ROOT / "data"

RAW_DIR = DATA_DIR / "raw"
RAW_CRIME_DIR = RAW_DIR / "crimes"
RAW_SHP_DIR = RAW_DIR / "shapefiles"

PROCESSED_DIR = DATA_DIR / "processed"
EXTERNAL_DIR = DATA_DIR / "external"

# HTTP cache (requests_cache sqlite file)
HTTP_CACHE = PROJECT_ROOT / ".cache" / "http_cache"

# Processed outputs
INCIDENTS_PARQUET = PROCESSED_DIR / "incidents_joined.parquet"
DV_PARQUET = PROCESSED_DIR / "dv_incidents.parquet"
WEEKLY_CSV = PROCESSED_DIR / "dv_weekly_counts.csv"
MONTHLY_TOTALS_CSV = PROCESSED_DIR / "dv_monthly_totals.csv"
MONTHLY_RATES_CSV = PROCESSED_DIR / "block_group_monthly_rates.csv"
WINDOW_RATES_CSV = PROCESSED_DIR / "block_group_window_rates.csv"

# Demographics cache
DEMOGRAPHICS_CSV = EXTERNAL_DIR / "acs5_block_groups.csv"

# Reports
REPORTS_DIR = PROJECT_ROOT / "reports"
FIGURES_DIR = REPORTS_DIR / "figures"
REPORT_MD = REPORTS_DIR / "report.md"

# Chicago Data Portal, Crimes - 2001 to Present
CRIMES_URL = "https://data.cityofchicago.org/resource/ijzp-q8t2.csv"
CRIME_COLUMNS = [
    "id",
    "case_number",
    "date",
    "primary_type",
    "description",
    "location_description",
    "arrest",
    "domestic",
    "community_area",
    "latitude",
    "longitude",
]
SODA_PAGE_SIZE = 50_000

# TIGER/Line geometry
TIGER_YEAR = 2019
STATE_FIPS = states.IL.fips
COUNTY_FIPS = "031"
CITY_NAME = "Chicago"
BLOCK_GROUP_URL = (
    f"https://www2.census.gov/geo/tiger/TIGER{TIGER_YEAR}/BG/tl_{TIGER_YEAR}_{STATE_FIPS}_bg.zip"
)
PLACE_URL = (
    f"https://www2.census.gov/geo/tiger/TIGER{TIGER_YEAR}/PLACE/tl_{TIGER_YEAR}_{STATE_FIPS}_place.zip"
)

# ACS 5-year block group attributes
CENSUS_API_KEY = os.getenv("CENSUS_API_KEY")
ACS_YEAR = 2019
ACS_VARIABLES = {
    "B01003_001E": "population",
    "B19013_001E": "median_income",
    "B23025_003E": "labor_force",
    "B23025_005E": "unemployed",
}

# Analysis window [start, end)
ANALYSIS_START = "2019-01-01"
ANALYSIS_END = "2020-07-01"

# Illinois stay-at-home order took effect
STAY_AT_HOME_DATE = "2020-03-21"

# Months compared in the block group rate maps
COMPARISON_WINDOWS = {
    "spring_2019": ("2019-03-21", "2019-06-01"),
    "spring_2020": ("2020-03-21", "2020-06-01"),
}

RATE_SCALE = 1000  # rates reported per 1,000 residents
MIN_POPULATION_FOR_RANKING = 100

# Rough Chicago bounding box
LAT_BOUNDS = (41.6, 42.1)
LON_BOUNDS = (-87.95, -87.5)

# Domestic violence subset
DV_PRIMARY_TYPES = [
    "ASSAULT",
    "BATTERY",
    "CRIM SEXUAL ASSAULT",
    "CRIMINAL SEXUAL ASSAULT",
    "SEX OFFENSE",
    "OFFENSE INVOLVING CHILDREN",
    "STALKING",
    "INTIMIDATION",
    "KIDNAPPING",
    "HOMICIDE",
]

RESIDENTIAL_LOCATIONS = [
    "RESIDENCE",
    "APARTMENT",
    "HOUSE",
    "CHA APARTMENT",
    "RESIDENCE PORCH/HALLWAY",
    "RESIDENCE - PORCH / HALLWAY",
    "RESIDENCE-GARAGE",
    "RESIDENCE - GARAGE",
    "RESIDENTIAL YARD (FRONT/BACK)",
    "RESIDENCE - YARD (FRONT / BACK)",
    "DRIVEWAY - RESIDENTIAL",
    "COACH HOUSE",
    "ROOMING HOUSE",
]

# Create folders if missing
RAW_CRIME_DIR.mkdir(parents=True, exist_ok=True)
RAW_SHP_DIR.mkdir(parents=True, exist_ok=True)
EXTERNAL_DIR.mkdir(parents=True, exist_ok=True)
PROCESSED_DIR.mkdir(parents=True, exist_ok=True)
FIGURES_DIR.mkdir(parents=True, exist_ok=True)
HTTP_CACHE.parent.mkdir(parents=True, exist_ok=True)
