from dataclasses import dataclass
import logging

import numpy as np
import pandas as pd

from ctas_validation.ctas.adapter import get_ctas
from ctas_validation.ctas.oracle import Oracle, OracleTuning
from ctas_validation.experiments.injection import INJECTION_PREFIX, get_anomaly_data, is_injected
from ctas_validation.metrics.classification import tabulate_classification


@dataclass
class AnomalyScores:
    """Output of one injection/scoring run.

    ``result`` holds class counts per parameter when a threshold was given,
    otherwise the raw score table. ``anomaly`` holds the rows of the
    synthetic sites joined with their scores.
    """

    result: pd.DataFrame
    anomaly: pd.DataFrame


def get_anomaly_scores(
    df: pd.DataFrame,
    n_sites: int,
    fun_anomaly,
    anomaly_degree: float,
    feats: str,
    oracle: Oracle,
    thresh: float | None = None,
    tuning: OracleTuning | None = None,
    rng: np.random.Generator | None = None,
) -> AnomalyScores:
    """Inject synthetic sites, score them and optionally classify.

    Parameters
    ----------
    df : pd.DataFrame
        Canonical study data. Not modified.
    n_sites : int
        Number of synthetic sites to inject.
    fun_anomaly : str, AnomalyStrategy or callable
        Anomaly generator.
    anomaly_degree : float
        Magnitude passed to the generator.
    feats : str
        Features the oracle should calculate.
    oracle : Oracle
        Scoring backend.
    thresh : float, optional
        Score at or above which a site counts as flagged.
    tuning : OracleTuning, optional
        Oracle defaults.
    rng : np.random.Generator, optional
        Source of randomness for site sampling.
    """
    df_anomaly = get_anomaly_data(
        df,
        n_sites=n_sites,
        fun_anomaly=fun_anomaly,
        anomaly_degree=anomaly_degree,
        site_prefix=INJECTION_PREFIX,
        rng=rng,
    )

    df_ctas = get_ctas(df_anomaly, feats=feats, oracle=oracle, tuning=tuning)
    df_ctas["is_P"] = is_injected(df_ctas["site"])

    if thresh is not None:
        df_result = tabulate_classification(
            df_ctas.rename(columns={"is_P": "is_injected"}), thresh
        )
    else:
        df_result = df_ctas

    df_anomaly_filt = df_anomaly[is_injected(df_anomaly["site"])].merge(
        df_ctas[["site", "parameter_id", "score"]].drop_duplicates(),
        on=["site", "parameter_id"],
        how="left",
    )

    logging.getLogger("ctasval").debug(
        "Scored %d site/parameter pairs, %d injected",
        len(df_ctas), int(df_ctas["is_P"].sum()),
    )
    return AnomalyScores(result=df_result, anomaly=df_anomaly_filt.reset_index(drop=True))
