import numpy as np
import pandas as pd
import pytest

from ctas_validation.metrics.classification import (
    CLASSES,
    classify,
    clopper_pearson,
    detection_rates,
    tabulate_classification,
)


def _scores():
    return pd.DataFrame(
        {
            "site": ["sample_site1", "sample_site2", "S1", "S2", "sample_site1", "S1"],
            "parameter_id": ["ALB", "ALB", "ALB", "ALB", "ALP", "ALP"],
            "score": [1.0, 0.2, 3.0, 0.0, 5.0, 0.5],
            "is_injected": [True, True, False, False, True, False],
        }
    )


def test_classify_threshold_is_inclusive():
    df = _scores()
    labels = classify(df["score"], df["is_injected"], thresh=1.0)
    assert list(labels) == ["TP", "FN", "FP", "TN", "TP", "TN"]
    assert list(labels.cat.categories) == CLASSES


def test_tabulate_classification_complete():
    counts = tabulate_classification(_scores(), thresh=1.0).set_index("parameter_id")
    assert list(counts.columns) == CLASSES
    assert counts.loc["ALB"].tolist() == [1, 1, 1, 1]
    assert counts.loc["ALP"].tolist() == [1, 0, 0, 1]
    n_sites = _scores().groupby("parameter_id")["site"].nunique()
    assert (counts.sum(axis=1) == n_sites).all()


def test_detection_rates_sum_counts():
    run = pd.DataFrame({"parameter_id": ["ALB"], "TP": [1], "FN": [0], "FP": [1], "TN": [1]})
    runs = pd.concat(
        [run.assign(anomaly_degree=1.0, feature_set="average"), run.assign(anomaly_degree=1.0, feature_set="average")]
    )
    out = detection_rates(runs, by=["anomaly_degree", "feature_set", "parameter_id"])
    assert len(out) == 1
    row = out.iloc[0]
    assert (row["TP"], row["FN"], row["FP"], row["TN"]) == (2, 0, 2, 2)
    assert row["tpr"] == pytest.approx(1.0)
    assert row["fpr"] == pytest.approx(0.5)


def test_detection_rates_nan_on_empty_denominator():
    counts = pd.DataFrame({"parameter_id": ["ALB"], "TP": [0], "FN": [0], "FP": [0], "TN": [3]})
    out = detection_rates(counts, by=["parameter_id"])
    assert np.isnan(out.loc[0, "tpr"])
    assert np.isnan(out.loc[0, "tpr_lower"])
    assert out.loc[0, "fpr"] == 0.0


def test_clopper_pearson_bounds():
    lower, upper = clopper_pearson(np.array([0, 5, 10, 0]), np.array([10, 10, 10, 0]))
    assert lower[0] == 0.0
    assert upper[2] == 1.0
    assert lower[1] < 0.5 < upper[1]
    assert 0.0 < upper[0] < 0.5
    assert np.isnan(lower[3]) and np.isnan(upper[3])
