import logging

import numpy as np
import pandas as pd

from ctas_validation.ctas.oracle import Oracle, OracleTuning

DATA_COLUMNS = [
    "subject_id",
    "parameter_id",
    "timepoint_1_name",
    "timepoint_2_name",
    "timepoint_rank",
    "result",
    "baseline",
]


def build_parameters(df: pd.DataFrame) -> pd.DataFrame:
    """Distinct parameters with per-parameter overrides left unset."""
    params = df[["parameter_id", "parameter_name", "parameter_category_1"]].drop_duplicates()
    return params.assign(
        parameter_category_2="no",
        parameter_category_3="no",
        time_point_count_min=np.nan,
        subject_count_min=np.nan,
        max_share_missing=np.nan,
        generate_change_from_baseline=np.nan,
        timeseries_features_to_calculate=np.nan,
        use_only_custom_timeseries=False,
    ).reset_index(drop=True)


def build_subjects(df: pd.DataFrame) -> pd.DataFrame:
    subjects = df[["subject_id", "site"]].drop_duplicates()
    return subjects.assign(country="no", region="no").reset_index(drop=True)


def get_ctas(
    df: pd.DataFrame,
    feats: str,
    oracle: Oracle,
    tuning: OracleTuning | None = None,
) -> pd.DataFrame:
    """Score every (site, parameter) pair of ``df`` with the oracle.

    The oracle is called once. Its per-timeseries values are reduced to the
    maximum per site and parameter. Pairs the oracle did not score get 0.

    Parameters
    ----------
    df : pd.DataFrame
        Canonical study data, possibly with injected sites.
    feats : str
        Timeseries features the oracle should calculate.
    oracle : Oracle
        Object with a ``score`` method.
    tuning : OracleTuning, optional
        Series filters and flags forwarded to the oracle.

    Returns
    -------
    pd.DataFrame
        Columns ``site``, ``parameter_id`` and ``score``.
    """
    logger = logging.getLogger("ctasval")
    tuning = tuning or OracleTuning()

    parameters = build_parameters(df)
    subjects = build_subjects(df)
    data = df.loc[:, DATA_COLUMNS].reset_index(drop=True)

    logger.debug(
        "Oracle call: rows=%d subjects=%d parameters=%d feats=%s",
        len(data), len(subjects), len(parameters), feats,
    )
    out = oracle.score(data, subjects, parameters, features=feats, tuning=tuning)

    site_scores = out.site_scores.loc[:, ["timeseries_id", "site", "fdr_corrected_pvalue_logp"]]
    timeseries = out.timeseries.loc[:, ["timeseries_id", "parameter_id"]].drop_duplicates()
    scored = (
        site_scores.merge(timeseries, on="timeseries_id", how="left")
        .groupby(["site", "parameter_id"], as_index=False, sort=False)["fdr_corrected_pvalue_logp"]
        .max()
        .rename(columns={"fdr_corrected_pvalue_logp": "score"})
    )

    pairs = df[["site", "parameter_id"]].drop_duplicates().reset_index(drop=True)
    if scored.empty:
        result = pairs.assign(score=0.0)
    else:
        result = pairs.merge(scored, on=["site", "parameter_id"], how="left")
        result["score"] = result["score"].fillna(0).astype(float)

    logger.debug(
        "Oracle scored %d of %d site/parameter pairs", int(len(scored)), len(pairs)
    )
    return result
