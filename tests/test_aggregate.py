import pandas as pd
import pytest

from chi_dv_pipelines.transform.aggregate import count_by_unit, month_windows, monthly_totals, weekly_counts
from chi_dv_pipelines.transform.temporal import add_temporal_features, week_start


def test_month_windows_clipped_and_half_open():
    windows = month_windows("2019-12-15", "2020-03-01")
    assert [label for label, _, _ in windows] == ["2019-12", "2020-01", "2020-02"]

    label, start, end = windows[0]
    assert start == pd.Timestamp("2019-12-15")
    assert end == pd.Timestamp("2020-01-01")
    assert windows[-1][2] == pd.Timestamp("2020-03-01")


def test_month_windows_partial_last_month():
    windows = month_windows("2020-01-01", "2020-02-10")
    assert windows[-1] == ("2020-02", pd.Timestamp("2020-02-01"), pd.Timestamp("2020-02-10"))


def test_month_windows_rejects_empty_range():
    with pytest.raises(ValueError):
        month_windows("2020-03-01", "2020-03-01")


def test_week_start_is_monday():
    dates = pd.Series(pd.to_datetime(["2020-03-01 23:00", "2020-03-02 00:00", "2020-03-08 12:00"]))
    out = week_start(dates)
    assert out.tolist() == [pd.Timestamp("2020-02-24"), pd.Timestamp("2020-03-02"), pd.Timestamp("2020-03-02")]


def test_add_temporal_features():
    df = pd.DataFrame({"date": ["2019-07-04 10:00", "2020-03-25 09:00"]})
    out = add_temporal_features(df, reference_date="2020-03-21")
    assert out["is_holiday"].tolist() == [True, False]
    assert out["after_stay_at_home"].tolist() == [False, True]
    assert out["day_of_week"].tolist() == ["Thursday", "Wednesday"]
    assert "week_start" in out.columns
    assert "year" not in df.columns


def test_count_by_unit_excludes_unmatched_and_out_of_window():
    df = pd.DataFrame(
        {
            "geoid": ["a", "a", "b", None, "b"],
            "date": pd.to_datetime(["2020-03-01", "2020-03-05", "2020-03-09", "2020-03-10", "2020-04-01"]),
        }
    )
    out = count_by_unit(df, "2020-03-01", "2020-04-01", name="dv_count").set_index("geoid")["dv_count"]
    assert out.to_dict() == {"a": 2, "b": 1}


def test_weekly_counts_fills_empty_weeks(transform_output):
    weekly = transform_output["weekly"]

    assert weekly["week_start"].tolist() == list(pd.date_range("2020-02-24", "2020-03-30", freq="7D"))
    assert weekly["dv_count"].tolist() == [0, 2, 1, 0, 3, 0]
    # unmatched DV incidents still count toward the city-wide series
    assert weekly["dv_count"].sum() == len(transform_output["dv_incidents"])


def test_weekly_counts_marks_holiday_weeks():
    df = pd.DataFrame({"date": pd.to_datetime(["2019-12-18", "2019-12-26"])})
    weekly = weekly_counts(df, "2019-12-16", "2020-01-06").set_index("week_start")

    assert weekly["dv_count"].tolist() == [1, 1, 0]
    assert not weekly.loc[pd.Timestamp("2019-12-16"), "has_holiday"]
    assert weekly.loc[pd.Timestamp("2019-12-23"), "has_holiday"]  # Christmas
    assert weekly.loc[pd.Timestamp("2019-12-30"), "has_holiday"]  # New Year's Day


def test_weekly_counts_empty_without_range():
    out = weekly_counts(pd.DataFrame({"date": pd.Series([], dtype="datetime64[ns]")}))
    assert out.empty
    assert list(out.columns) == ["week_start", "dv_count", "has_holiday"]


def test_monthly_totals_fills_gaps():
    df = pd.DataFrame({"date": pd.to_datetime(["2019-11-03", "2019-11-20", "2020-01-02"])})
    out = monthly_totals(df)
    assert out[["year", "month"]].values.tolist() == [[2019, 11], [2019, 12], [2020, 1]]
    assert out["dv_count"].tolist() == [2, 0, 1]
