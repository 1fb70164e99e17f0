import pandas as pd
import pytest

from ctas_validation.ctas.adapter import DATA_COLUMNS, get_ctas
from ctas_validation.ctas.oracle import OracleResult, OracleTuning
from conftest import ScriptedOracle


def test_get_ctas_builds_oracle_tables(two_param_study):
    oracle = ScriptedOracle({"S1": 2.0})
    tuning = OracleTuning(default_minimum_subjects_per_series=5)
    get_ctas(two_param_study, "average", oracle, tuning)

    assert len(oracle.calls) == 1
    call = oracle.calls[0]
    assert list(call["data"].columns) == DATA_COLUMNS
    assert len(call["data"]) == len(two_param_study)
    assert set(call["subjects"].columns) == {"subject_id", "site", "country", "region"}
    assert call["subjects"]["subject_id"].is_unique
    params = call["parameters"]
    assert set(params["parameter_id"]) == {"Alkaline Phosphatase", "Albumin"}
    assert (params["parameter_category_2"] == "no").all()
    assert params["time_point_count_min"].isna().all()
    assert not params["use_only_custom_timeseries"].any()
    assert call["features"] == "average"
    assert call["tuning"] is tuning


def test_get_ctas_takes_max_over_timeseries(study):
    oracle = ScriptedOracle({"S1": 4.0, "S2": 1.5}, n_timeseries=3)
    out = get_ctas(study, "average", oracle)
    scores = out.set_index("site")["score"]
    assert scores["S1"] == pytest.approx(4.0)
    assert scores["S2"] == pytest.approx(1.5)


def test_get_ctas_fills_unscored_pairs_with_zero(two_param_study):
    oracle = ScriptedOracle({"S2": 3.0})
    out = get_ctas(two_param_study, "sd", oracle)
    pairs = two_param_study[["site", "parameter_id"]].drop_duplicates()
    assert len(out) == len(pairs)
    assert not out.duplicated(["site", "parameter_id"]).any()
    assert (out["score"] >= 0).all()
    assert (out.loc[out["site"] != "S2", "score"] == 0).all()
    assert (out.loc[out["site"] == "S2", "score"] == 3.0).all()


def test_get_ctas_empty_oracle_output(study):
    class Silent:
        def score(self, data, subjects, parameters, *, features, tuning):
            return OracleResult(
                site_scores=pd.DataFrame(columns=["timeseries_id", "site", "fdr_corrected_pvalue_logp"]),
                timeseries=pd.DataFrame(columns=["timeseries_id", "parameter_id"]),
            )

    out = get_ctas(study, "average", Silent())
    assert len(out) == 2
    assert (out["score"] == 0).all()


def test_get_ctas_is_idempotent(study, mean_shift_oracle):
    a = get_ctas(study, "average", mean_shift_oracle)
    b = get_ctas(study, "average", mean_shift_oracle)
    pd.testing.assert_frame_equal(a, b)


def test_get_ctas_propagates_oracle_errors(study):
    with pytest.raises(RuntimeError, match="oracle failed"):
        get_ctas(study, "average", ScriptedOracle(fail=True))
