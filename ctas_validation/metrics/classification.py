from typing import Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.stats import beta

CLASSES = ["TP", "FN", "FP", "TN"]


def classify(scores: pd.Series, is_injected: pd.Series, thresh: float) -> pd.Series:
    """Label each score TP/FN/FP/TN against ``thresh``.

    A score equal to the threshold counts as a detection.
    """
    flagged = scores >= thresh
    labels = np.select(
        [is_injected & flagged, is_injected & ~flagged, ~is_injected & flagged],
        ["TP", "FN", "FP"],
        default="TN",
    )
    return pd.Series(pd.Categorical(labels, categories=CLASSES), index=scores.index, name="classification")


def tabulate_classification(df_scores: pd.DataFrame, thresh: float) -> pd.DataFrame:
    """Count distinct sites per parameter and class.

    ``df_scores`` needs ``site``, ``parameter_id``, ``score`` and
    ``is_injected``. Every parameter gets all four class columns, zero filled.
    """
    labelled = df_scores.assign(
        classification=classify(df_scores["score"], df_scores["is_injected"].astype(bool), thresh)
    )
    counts = (
        labelled.groupby(["parameter_id", "classification"], observed=False)["site"]
        .nunique()
        .unstack("classification", fill_value=0)
    )
    counts.columns = [str(c) for c in counts.columns]
    counts = counts.reindex(columns=CLASSES, fill_value=0).astype(int).reset_index()
    counts.columns.name = None
    return counts


def clopper_pearson(k: np.ndarray, n: np.ndarray, level: float = 0.95) -> Tuple[np.ndarray, np.ndarray]:
    """Exact binomial confidence bounds for ``k`` successes out of ``n``.

    Bounds are NaN where ``n`` is zero.
    """
    k = np.asarray(k, dtype=float)
    n = np.asarray(n, dtype=float)
    alpha = 1.0 - level
    with np.errstate(invalid="ignore", divide="ignore"):
        lower = np.where(k > 0, beta.ppf(alpha / 2, k, n - k + 1), 0.0)
        upper = np.where(k < n, beta.ppf(1 - alpha / 2, k + 1, n - k), 1.0)
    empty = n <= 0
    lower = np.where(empty, np.nan, lower)
    upper = np.where(empty, np.nan, upper)
    return lower, upper


def _rate(num: pd.Series, den: pd.Series) -> pd.Series:
    return num / den.where(den > 0)


def detection_rates(
    counts: pd.DataFrame,
    by: Sequence[str],
    ci_level: float = 0.95,
) -> pd.DataFrame:
    """Sum class counts over ``by`` groups and derive TPR/FPR.

    Rates come from the summed counts, not from averaging per-run rates.
    A rate whose denominator is zero is NaN.
    """
    summed = counts.groupby(list(by), sort=False, as_index=False)[CLASSES].sum()
    summed["tpr"] = _rate(summed["TP"], summed["TP"] + summed["FN"])
    summed["fpr"] = _rate(summed["FP"], summed["FP"] + summed["TN"])
    summed["tpr_lower"], summed["tpr_upper"] = clopper_pearson(
        summed["TP"], summed["TP"] + summed["FN"], ci_level
    )
    summed["fpr_lower"], summed["fpr_upper"] = clopper_pearson(
        summed["FP"], summed["FP"] + summed["TN"], ci_level
    )
    return summed
