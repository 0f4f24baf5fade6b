import numpy as np
import pandas as pd
import pytest

from chi_dv_pipelines.transform.rates import (
    compute_rates,
    rate_change,
    rates_for_window,
    safe_divide,
)
from chi_dv_pipelines.validate.core import validate_rates

from conftest import BG1, BG2, BG3, BG4


def test_safe_divide_zero_and_missing_denominator():
    out = safe_divide(pd.Series([1, 2, 3]), pd.Series([4, 0, np.nan]))
    assert out.iloc[0] == 0.25
    assert np.isnan(out.iloc[1])
    assert np.isnan(out.iloc[2])


def test_compute_rates_missing_counts_are_zero(demographics):
    counts = pd.DataFrame({"geoid": [BG1], "dv_count": [5]})
    rates = compute_rates(counts, demographics, ["dv_count"], per=1000).set_index("geoid")

    assert len(rates) == len(demographics)
    assert rates.loc[BG1, "dv_rate"] == pytest.approx(0.005)
    assert rates.loc[BG1, "dv_per_1000"] == pytest.approx(5.0)
    assert rates.loc[BG2, "dv_count"] == 0
    assert rates.loc[BG2, "dv_rate"] == 0.0


def test_compute_rates_zero_population_is_nan(demographics):
    counts = pd.DataFrame({"geoid": [BG3], "dv_count": [2]})
    rates = compute_rates(counts, demographics, ["dv_count"]).set_index("geoid")
    assert np.isnan(rates.loc[BG3, "dv_rate"])
    assert not np.isinf(rates["dv_rate"]).any()


def test_compute_rates_matches_denominator_by_geoid(demographics):
    # counts arrive in a different order than demographics
    counts = pd.DataFrame({"geoid": [BG4, BG1], "dv_count": [20, 1]})
    rates = compute_rates(counts, demographics, ["dv_count"]).set_index("geoid")
    assert rates.loc[BG4, "dv_rate"] == pytest.approx(20 / 2000)
    assert rates.loc[BG1, "dv_rate"] == pytest.approx(1 / 1000)


def test_compute_rates_ignores_units_outside_reference(demographics):
    counts = pd.DataFrame({"geoid": ["999999999999"], "dv_count": [7]})
    rates = compute_rates(counts, demographics, ["dv_count"])
    assert "999999999999" not in rates["geoid"].tolist()
    assert rates["dv_count"].sum() == 0


def test_compute_rates_rejects_duplicate_units(demographics):
    doubled = pd.concat([demographics, demographics.iloc[[0]]])
    with pytest.raises(ValueError, match="one row per"):
        compute_rates(pd.DataFrame({"geoid": [], "dv_count": []}), doubled, ["dv_count"])


def test_rates_for_window(transform_output):
    incidents = transform_output["incidents"]
    dv = transform_output["dv_incidents"]
    units = transform_output["units"]

    rates = rates_for_window(incidents, dv, units, "2020-03-01", "2020-04-01", label="march").set_index("geoid")

    assert rates["period"].unique().tolist() == ["march"]
    assert rates["all_count"].to_dict() == {BG1: 3, BG2: 1, BG3: 1, BG4: 2}
    assert rates["dv_count"].to_dict() == {BG1: 2, BG2: 1, BG3: 1, BG4: 0}
    assert rates.loc[BG1, "dv_per_1000"] == pytest.approx(2.0)
    assert rates.loc[BG2, "dv_per_1000"] == pytest.approx(2.0)
    assert np.isnan(rates.loc[BG3, "dv_per_1000"])
    assert rates.loc[BG4, "dv_per_1000"] == 0.0
    assert rates.loc[BG1, "dv_share"] == pytest.approx(2 / 3)
    assert rates.loc[BG4, "dv_share"] == 0.0


def test_monthly_rates_long_format(transform_output):
    monthly = transform_output["monthly_rates"]
    assert monthly["period"].unique().tolist() == ["2020-03"]
    assert len(monthly) == 4
    validate_rates(monthly)


def test_window_rates_and_change(transform_output):
    windows = transform_output["window_rates"]
    assert windows["period"].unique().tolist() == ["early_march", "late_march"]
    assert windows.groupby("period")["dv_count"].sum().to_dict() == {"early_march": 3, "late_march": 1}

    change = rate_change(windows, "early_march", "late_march").set_index("geoid")
    assert change.loc[BG1, "change"] == pytest.approx(-2.0)
    assert np.isnan(change.loc[BG3, "change"])


def test_rate_change_unknown_window(transform_output):
    with pytest.raises(KeyError, match="nope"):
        rate_change(transform_output["window_rates"], "early_march", "nope")
