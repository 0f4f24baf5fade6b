import numpy as np
import pandas as pd
import pytest

from chi_dv_pipelines import pipeline
from chi_dv_pipelines.utils import logging as pipeline_logging
from chi_dv_pipelines.validate.core import join_coverage, run_validation_checks, show_missingness, validate_rates
from chi_dv_pipelines.validate.orchestrator import run_validations


def test_validate_rates_rejects_infinite():
    rates = pd.DataFrame({"geoid": ["a"], "period": ["2020-03"], "dv_count": [1], "dv_rate": [np.inf]})
    with pytest.raises(ValueError, match="Infinite"):
        validate_rates(rates)


def test_validate_rates_rejects_duplicate_keys():
    rates = pd.DataFrame({"geoid": ["a", "a"], "period": ["2020-03", "2020-03"], "dv_count": [1, 2]})
    with pytest.raises(ValueError, match="duplicate"):
        validate_rates(rates)


def test_validate_rates_rejects_negative_counts():
    rates = pd.DataFrame({"geoid": ["a"], "period": ["2020-03"], "dv_count": [-1]})
    with pytest.raises(ValueError, match="Negative"):
        validate_rates(rates)


def test_validate_rates_allows_nan():
    rates = pd.DataFrame({"geoid": ["a"], "period": ["2020-03"], "dv_count": [1], "dv_rate": [np.nan]})
    validate_rates(rates)


def test_join_coverage():
    assert join_coverage(pd.DataFrame({"geoid": ["a", None, "b", "c"]})) == pytest.approx(0.75)
    assert join_coverage(pd.DataFrame()) == 0.0


def test_run_validation_checks_reports_out_of_bounds(capsys):
    df = pd.DataFrame(
        {"id": [1, 1], "latitude": [41.8, 45.0], "longitude": [-87.7, -87.7], "date": ["x", None], "primary_type": ["A", "B"]}
    )
    run_validation_checks(df, "check")
    out = capsys.readouterr().out
    assert "id duplicates" in out
    assert "outside expected Chicago bounds" in out
    assert "'date' missing" in out


def test_show_missingness_reports_share(capsys):
    show_missingness(pd.DataFrame({"median_income": [1.0, None], "population": [1, 2]}), "Units")
    out = capsys.readouterr().out
    assert "median_income" in out
    assert "50.0%" in out


def test_run_validations_returns_outputs(transform_output):
    assert run_validations(transform_output) is transform_output


def test_log_step_ledger():
    pipeline_logging.clear_pipeline_log()
    pipeline_logging.log_step("one", pd.DataFrame({"a": [1, 2]}))
    pipeline_logging.log_step("two", None, note="skipped")

    assert pipeline_logging.pipeline_log[0] == {"step": "one", "rows": 2, "cols": 1, "note": ""}
    assert pipeline_logging.pipeline_log[1]["rows"] == "N/A"
    pipeline_logging.show_pipeline_table()


def test_parse_args_defaults():
    args = pipeline.parse_args([])
    assert args.start == pipeline.ANALYSIS_START
    assert args.end == pipeline.ANALYSIS_END
    assert not args.refresh
    assert not args.no_basemap


def test_main_end_to_end(ingestion_output, comparison_windows, tmp_path, monkeypatch):
    for name in ["INCIDENTS_PARQUET", "DV_PARQUET"]:
        monkeypatch.setattr(pipeline, name, tmp_path / f"{name.lower()}.parquet")
    for name in ["WEEKLY_CSV", "MONTHLY_TOTALS_CSV", "MONTHLY_RATES_CSV", "WINDOW_RATES_CSV"]:
        monkeypatch.setattr(pipeline, name, tmp_path / f"{name.lower()}.csv")

    seen = {}

    def fake_ingestion(start, end, refresh=False):
        seen["ingestion"] = (start, end, refresh)
        return ingestion_output

    def transforms(ingestion, start, end):
        return pipeline_transforms(ingestion, start, end, comparison_windows=comparison_windows)

    def report(outputs, block_groups, basemap=True):
        seen["basemap"] = basemap
        return pipeline_report(
            outputs, block_groups, basemap=basemap,
            figures_dir=tmp_path / "figures", report_path=tmp_path / "report.md",
        )

    pipeline_transforms = pipeline.run_transforms
    pipeline_report = pipeline.run_report
    monkeypatch.setattr(pipeline, "run_ingestion", fake_ingestion)
    monkeypatch.setattr(pipeline, "run_transforms", transforms)
    monkeypatch.setattr(pipeline, "run_report", report)

    pipeline.main(["--start", "2020-03-01", "--end", "2020-04-01", "--no-basemap"])

    assert seen == {"ingestion": ("2020-03-01", "2020-04-01", False), "basemap": False}
    assert (tmp_path / "report.md").exists()
    weekly = pd.read_csv(tmp_path / "weekly_csv.csv")
    assert weekly["dv_count"].sum() == 6
    assert len(pd.read_parquet(tmp_path / "dv_parquet.parquet")) == 6


def test_main_reraises_failures(monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("CENSUS_API_KEY is not set")

    monkeypatch.setattr(pipeline, "run_ingestion", broken)
    with pytest.raises(RuntimeError, match="CENSUS_API_KEY"):
        pipeline.main([])
