"""Boundary to the external anomaly-scoring algorithm (CTAS).

The validation engine only needs an object with a ``score`` method. The
algorithm behind it is not part of this package.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import importlib
from typing import Protocol, runtime_checkable

import pandas as pd


@dataclass(frozen=True)
class OracleTuning:
    """Study-wide defaults forwarded to the oracle unchanged."""

    default_minimum_timepoints_per_series: int = 3
    default_minimum_subjects_per_series: int = 3
    default_max_share_missing_timepoints_per_series: float = 0.5
    default_generate_change_from_baseline: bool = False
    autogenerate_timeseries: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class OracleResult:
    """Raw oracle output.

    ``site_scores`` has one row per (timeseries, site) with the column
    ``fdr_corrected_pvalue_logp``; ``timeseries`` maps ``timeseries_id`` to
    ``parameter_id``.
    """

    site_scores: pd.DataFrame
    timeseries: pd.DataFrame


@runtime_checkable
class Oracle(Protocol):
    def score(
        self,
        data: pd.DataFrame,
        subjects: pd.DataFrame,
        parameters: pd.DataFrame,
        *,
        features: str,
        tuning: OracleTuning,
    ) -> OracleResult:
        ...


def load_oracle(target: str | Oracle) -> Oracle:
    """Resolve ``"package.module:attribute"`` to an oracle instance.

    Classes are instantiated without arguments. Objects exposing ``score``
    are returned as they are.
    """
    if not isinstance(target, str):
        if not callable(getattr(target, "score", None)):
            raise TypeError(f"Oracle {target!r} does not provide a callable 'score'")
        return target

    module_name, _, attr = target.partition(":")
    if not attr:
        raise ValueError(f"Oracle path must look like 'module:attribute', got {target!r}")
    try:
        mod = importlib.import_module(module_name)
    except ImportError as e:
        raise ImportError(f"Cannot import oracle module '{module_name}': {e}") from e
    try:
        obj = getattr(mod, attr)
    except AttributeError as e:
        raise ImportError(f"Module '{module_name}' has no attribute '{attr}'") from e
    if isinstance(obj, type):
        obj = obj()
    return load_oracle(obj)
