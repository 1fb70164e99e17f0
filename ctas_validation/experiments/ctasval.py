from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from itertools import product
import logging
from typing import Sequence

import numpy as np
import pandas as pd

from ctas_validation.anomalies import AnomalyStrategy, resolve
from ctas_validation.ctas.oracle import Oracle, OracleTuning, load_oracle
from ctas_validation.experiments.scoring import AnomalyScores, get_anomaly_scores
from ctas_validation.metrics.classification import detection_rates
from ctas_validation.utils.parallel import map_grid, spawn_seeds

DEFAULT_ANOMALY_DEGREE = (0, 0.5, 1, 5, 10, 50)
GRID_COLUMNS = ["iter", "anomaly_degree", "anomaly", "feature_set"]


@dataclass
class ValidationResult:
    """Aggregated detection rates and the injected observations behind them."""

    result: pd.DataFrame
    anomaly: pd.DataFrame


def build_grid(
    iterations: int,
    anomaly_degree: Sequence[float],
    strategies: Sequence[AnomalyStrategy],
    feature_sets: Sequence[str],
    seed: int | None = None,
) -> list[dict]:
    """Expand iterations x degrees x (anomaly, feature set) pairs.

    Each cell carries its own seed so it can run in any worker.
    """
    pairs = list(zip(strategies, feature_sets))
    cells = [
        {"iter": i, "anomaly_degree": degree, "strategy": strategy, "feature_set": feats}
        for i, degree, (strategy, feats) in product(range(1, iterations + 1), anomaly_degree, pairs)
    ]
    for cell, cell_seed in zip(cells, spawn_seeds(len(cells), seed)):
        cell["seed"] = int(cell_seed)
    return cells


def _run_cell(
    df: pd.DataFrame,
    oracle: Oracle,
    n_sites: int,
    thresh: float,
    tuning: OracleTuning,
    iter: int,
    anomaly_degree: float,
    strategy: AnomalyStrategy,
    feature_set: str,
    seed: int,
) -> AnomalyScores:
    logging.getLogger("ctasval").debug(
        "Cell start: iter=%d degree=%s anomaly=%s feats=%s", iter, anomaly_degree, strategy.name, feature_set
    )
    return get_anomaly_scores(
        df,
        n_sites=n_sites,
        fun_anomaly=strategy,
        anomaly_degree=anomaly_degree,
        feats=feature_set,
        oracle=oracle,
        thresh=thresh,
        tuning=tuning,
        rng=np.random.default_rng(seed),
    )


def ctasval(
    df: pd.DataFrame,
    fun_anomaly: Sequence,
    feats: Sequence[str] | None,
    oracle: Oracle | str,
    anomaly_degree: Sequence[float] = DEFAULT_ANOMALY_DEGREE,
    thresh: float = 1.0,
    iterations: int = 100,
    n_sites: int = 3,
    parallel: bool = False,
    n_jobs: int = -1,
    prefer: str | None = None,
    progress: bool = False,
    seed: int | None = None,
    tuning: OracleTuning | None = None,
    ci_level: float = 0.95,
) -> ValidationResult:
    """Measure how well the oracle detects injected anomalous sites.

    Every cell of ``iterations x anomaly_degree x zip(fun_anomaly, feats)``
    injects ``n_sites`` synthetic sites into ``df``, scores all sites once with
    the oracle and classifies each (site, parameter) against ``thresh``.
    Class counts are summed per degree, feature set and parameter and turned
    into true and false positive rates.

    Parameters
    ----------
    df : pd.DataFrame
        Canonical study data. Read only.
    fun_anomaly : sequence
        Anomaly generators, by registered name, strategy or callable.
    feats : sequence of str or None
        Feature set paired with each generator. ``None`` uses each
        strategy's default.
    oracle : Oracle or str
        Scoring backend or ``"module:attribute"`` import path.
    anomaly_degree : sequence of float
        Magnitudes to sweep.
    thresh : float
        Detection threshold on the score.
    iterations : int
        Replications per degree and generator.
    n_sites : int
        Synthetic sites injected per cell.
    parallel : bool
        Run cells in a joblib worker pool.
    n_jobs, prefer :
        Passed to :class:`joblib.Parallel`.
    progress : bool
        Show a tqdm progress bar.
    seed : int, optional
        Master seed. Identical seeds give identical output in both modes.
    tuning : OracleTuning, optional
        Oracle defaults.
    ci_level : float
        Confidence level of the Clopper-Pearson bounds.

    Returns
    -------
    ValidationResult
        ``result`` with counts, ``tpr``, ``fpr`` and their bounds;
        ``anomaly`` with every injected observation, its score and the grid
        coordinates.

    Raises
    ------
    ValueError
        On an invalid grid configuration, before any cell runs.
    """
    logger = logging.getLogger("ctasval")
    strategies = [resolve(f) for f in fun_anomaly]
    if feats is None:
        feats = [s.default_feature_set for s in strategies]
        if any(f is None for f in feats):
            raise ValueError("feats must be given for anomaly generators without a default feature set")
    if len(strategies) != len(feats):
        raise ValueError("Each 'fun_anomaly' must be paired with one 'feats'")
    if not strategies:
        raise ValueError("At least one anomaly generator is required")
    if thresh is None:
        raise ValueError("thresh is required to aggregate detection rates")
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1, got {iterations}")
    if len(anomaly_degree) == 0:
        raise ValueError("anomaly_degree must contain at least one value")
    if n_sites < 1:
        raise ValueError(f"n_sites must be at least 1, got {n_sites}")

    oracle = load_oracle(oracle)
    tuning = tuning or OracleTuning()
    cells = build_grid(iterations, list(anomaly_degree), strategies, list(feats), seed=seed)
    logger.info(
        "ctasval start: cells=%d iterations=%d degrees=%d pairs=%d n_sites=%d parallel=%s",
        len(cells), iterations, len(anomaly_degree), len(strategies), n_sites, parallel,
    )

    fn = partial(_run_cell, df, oracle, n_sites, thresh, tuning)
    outputs = map_grid(fn, cells, parallel=parallel, n_jobs=n_jobs, progress=progress, prefer=prefer)

    results = []
    anomalies = []
    for cell, out in zip(cells, outputs):
        results.append(out.result.assign(anomaly_degree=cell["anomaly_degree"], feature_set=cell["feature_set"]))
        coords = pd.DataFrame(
            {
                "iter": cell["iter"],
                "anomaly_degree": cell["anomaly_degree"],
                "anomaly": cell["strategy"].name,
                "feature_set": cell["feature_set"],
            },
            index=out.anomaly.index,
        )
        anomalies.append(pd.concat([coords, out.anomaly], axis=1))

    df_perf = detection_rates(
        pd.concat(results, ignore_index=True),
        by=["anomaly_degree", "feature_set", "parameter_id"],
        ci_level=ci_level,
    )
    df_anomaly = pd.concat(anomalies, ignore_index=True)

    logger.info("ctasval end: result_rows=%d anomaly_rows=%d", len(df_perf), len(df_anomaly))
    return ValidationResult(result=df_perf, anomaly=df_anomaly)
