"""Run a validation experiment described by a YAML config file."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import yaml

from ctas_validation.ctas.oracle import Oracle, OracleTuning
from ctas_validation.experiments.ctasval import DEFAULT_ANOMALY_DEGREE, ValidationResult, ctasval
from ctas_validation.utils.logging_utils import setup_logging

DEFAULT_CONFIG = Path(__file__).with_name("config.yaml")


def load_config(config_path: str | Path = DEFAULT_CONFIG) -> dict:
    """Parse a config file into keyword arguments for :func:`ctasval`."""
    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}

    fun_anomaly = []
    feats = []
    for entry in cfg.get("anomalies", []):
        if isinstance(entry, dict):
            name = entry.get("name")
            feature_set = entry.get("feature_set", name)
        elif isinstance(entry, str):
            name = entry
            feature_set = entry
        else:
            raise ValueError(f"Invalid anomaly entry: {entry}")
        if not name:
            raise ValueError(f"Anomaly entry without a name: {entry}")
        fun_anomaly.append(name)
        feats.append(str(feature_set))

    tuning_cfg = dict(cfg.get("oracle") or {})
    oracle_path = tuning_cfg.pop("path", None)
    try:
        tuning = OracleTuning(**tuning_cfg)
    except TypeError as e:
        raise ValueError(f"Invalid oracle settings: {e}") from None

    seed = cfg.get("seed")
    kwargs = {
        "fun_anomaly": fun_anomaly,
        "feats": feats,
        "anomaly_degree": [float(d) for d in cfg.get("anomaly_degree", DEFAULT_ANOMALY_DEGREE)],
        "thresh": float(cfg.get("thresh", 1.0)),
        "iterations": int(cfg.get("iterations", 100)),
        "n_sites": int(cfg.get("n_sites", 3)),
        "parallel": bool(cfg.get("parallel", False)),
        "n_jobs": int(cfg.get("parallel_jobs", -1)),
        "progress": bool(cfg.get("progress", False)),
        "seed": int(seed) if seed is not None else None,
        "ci_level": float(cfg.get("ci_level", 0.95)),
        "tuning": tuning,
    }
    if oracle_path is not None:
        kwargs["oracle"] = str(oracle_path)
    if cfg.get("log_file"):
        kwargs["log_file"] = str(cfg["log_file"])
    return kwargs


def run(
    config_path: str | Path,
    df: pd.DataFrame,
    oracle: Oracle | str | None = None,
    parallel_jobs: int | None = None,
    log_file: str | Path | None = None,
) -> ValidationResult:
    """Load ``config_path`` and run :func:`ctasval` on ``df``.

    ``oracle`` overrides ``oracle.path`` and ``log_file`` overrides
    ``log_file`` from the config file.
    """
    kwargs = load_config(config_path)
    config_log_file = kwargs.pop("log_file", None)
    log_file = log_file if log_file is not None else config_log_file
    if log_file is not None:
        setup_logging(log_file)
    if oracle is not None:
        kwargs["oracle"] = oracle
    if "oracle" not in kwargs:
        raise ValueError("No oracle given and no 'oracle.path' in config")
    if parallel_jobs is not None:
        kwargs["n_jobs"] = int(parallel_jobs)
        kwargs["parallel"] = parallel_jobs != 1

    logging.getLogger("ctasval").info("Running config %s", str(config_path))
    return ctasval(df, **kwargs)
