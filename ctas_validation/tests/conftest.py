import numpy as np
import pandas as pd
import pytest
from scipy.stats import false_discovery_control, levene, ttest_ind

from ctas_validation.ctas.oracle import OracleResult

SITE_SCORE_COLUMNS = ["timeseries_id", "site", "fdr_corrected_pvalue_logp"]


def make_study(
    site_sizes=None,
    parameters=("Alkaline Phosphatase",),
    n_visits=4,
    seed=0,
):
    """Canonical long-format data with normally distributed results."""
    site_sizes = site_sizes or {"S1": 10, "S2": 12}
    rng = np.random.default_rng(seed)
    rows = []
    for site, n in site_sizes.items():
        for j in range(n):
            subject = f"{site}-{j:03d}"
            for param in parameters:
                level = rng.normal(100.0, 10.0)
                for visit in range(1, n_visits + 1):
                    rows.append(
                        {
                            "subject_id": subject,
                            "site": site,
                            "parameter_id": param,
                            "parameter_name": param,
                            "parameter_category_1": "CHEMISTRY",
                            "timepoint_1_name": f"VISIT {visit}",
                            "timepoint_2_name": "no",
                            "timepoint_rank": float(visit),
                            "result": level + rng.normal(0.0, 5.0),
                            "baseline": np.nan,
                        }
                    )
    return pd.DataFrame(rows)


class ScriptedOracle:
    """Returns fixed scores; injected sites get ``injected_score``."""

    def __init__(self, site_scores=None, injected_score=0.0, n_timeseries=1, fail=False):
        self.site_scores = dict(site_scores or {})
        self.injected_score = injected_score
        self.n_timeseries = n_timeseries
        self.fail = fail
        self.calls = []

    def score(self, data, subjects, parameters, *, features, tuning):
        self.calls.append(
            {"data": data, "subjects": subjects, "parameters": parameters, "features": features, "tuning": tuning}
        )
        if self.fail:
            raise RuntimeError("oracle failed")
        ts_rows = []
        rows = []
        for pid in parameters["parameter_id"]:
            for k in range(self.n_timeseries):
                tid = f"{pid}|{features}|{k}"
                ts_rows.append({"timeseries_id": tid, "parameter_id": pid})
                for site in subjects["site"].unique():
                    if str(site).startswith("sample_site"):
                        value = self.injected_score
                    elif site in self.site_scores:
                        value = self.site_scores[site]
                    else:
                        continue
                    # later timeseries score lower so the max is the first
                    rows.append({"timeseries_id": tid, "site": site, "fdr_corrected_pvalue_logp": value - k})
        return OracleResult(
            site_scores=pd.DataFrame(rows, columns=SITE_SCORE_COLUMNS),
            timeseries=pd.DataFrame(ts_rows, columns=["timeseries_id", "parameter_id"]),
        )


class MeanShiftOracle:
    """Compares each site's subject means with all other sites.

    ``average`` uses Welch's t-test, ``sd`` uses Levene's test. P-values are
    BH corrected and reported as -log10.
    """

    def score(self, data, subjects, parameters, *, features, tuning):
        merged = data.merge(subjects[["subject_id", "site"]], on="subject_id")
        means = (
            merged.groupby(["parameter_id", "site", "subject_id"], as_index=False)["result"]
            .mean()
            .dropna()
        )
        ts_rows = []
        rows = []
        for pid, g in means.groupby("parameter_id"):
            tid = f"{pid}|{features}"
            ts_rows.append({"timeseries_id": tid, "parameter_id": pid})
            for site, gs in g.groupby("site"):
                rest = g.loc[g["site"] != site, "result"]
                if len(gs) < tuning.default_minimum_subjects_per_series or len(rest) < 2:
                    continue
                if features == "sd":
                    p = levene(gs["result"], rest).pvalue
                else:
                    p = ttest_ind(gs["result"], rest, equal_var=False).pvalue
                rows.append({"timeseries_id": tid, "site": site, "pvalue": p})
        site_scores = pd.DataFrame(rows, columns=["timeseries_id", "site", "pvalue"])
        if len(site_scores):
            q = false_discovery_control(site_scores["pvalue"].to_numpy(), method="bh")
            site_scores["fdr_corrected_pvalue_logp"] = -np.log10(np.clip(q, 1e-300, 1.0))
        else:
            site_scores["fdr_corrected_pvalue_logp"] = pd.Series(dtype=float)
        return OracleResult(
            site_scores=site_scores[SITE_SCORE_COLUMNS],
            timeseries=pd.DataFrame(ts_rows, columns=["timeseries_id", "parameter_id"]),
        )


@pytest.fixture
def study():
    return make_study()


@pytest.fixture
def two_param_study():
    return make_study(
        site_sizes={"S1": 8, "S2": 6, "S3": 5},
        parameters=("Alkaline Phosphatase", "Albumin"),
        seed=1,
    )


@pytest.fixture
def mean_shift_oracle():
    return MeanShiftOracle()
