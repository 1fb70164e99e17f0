"""Named anomaly generators.

Every generator takes ``(df, anomaly_degree, site=...)``, draws one synthetic
site from ``df`` and perturbs its ``result`` values. Generators that also
accept ``rng`` receive the cell's random generator. A degree of 0 leaves the
results untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
import inspect
from typing import Callable

import pandas as pd

from . import average
from . import sd

AnomalyFn = Callable[..., pd.DataFrame]


@dataclass(frozen=True)
class AnomalyStrategy:
    name: str
    fn: AnomalyFn
    default_feature_set: str | None = None
    description: str = ""
    takes_rng: bool = True

    def __call__(self, df, anomaly_degree, site="sample_site", rng=None) -> pd.DataFrame:
        if self.takes_rng:
            return self.fn(df, anomaly_degree, site=site, rng=rng)
        return self.fn(df, anomaly_degree, site=site)


ANOMALIES: dict[str, AnomalyStrategy] = {
    "average": AnomalyStrategy(
        "average", average.run, average.DEFAULT_FEATURES,
        "shift results by anomaly_degree standard deviations",
    ),
    "sd": AnomalyStrategy(
        "sd", sd.run, sd.DEFAULT_FEATURES,
        "scale deviations from the mean by 1 + anomaly_degree",
    ),
}


def _check_signature(fn: AnomalyFn) -> bool:
    """Validate ``fn`` and report whether it accepts ``rng``."""
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        # builtins without introspectable signatures
        return True
    params = sig.parameters.values()
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params):
        return True
    try:
        sig.bind(None, 0.0, site="sample_site")
    except TypeError as e:
        raise ValueError(
            f"Anomaly generator {fn!r} must accept (df, anomaly_degree, site=...): {e}"
        ) from None
    return "rng" in sig.parameters


def resolve(anomaly: str | AnomalyStrategy | AnomalyFn) -> AnomalyStrategy:
    """Return the strategy for a registered name, a strategy or a callable.

    Raises ``ValueError`` for unknown names and for callables whose signature
    cannot take ``(df, anomaly_degree, site=...)``.
    """
    if isinstance(anomaly, AnomalyStrategy):
        return anomaly
    if isinstance(anomaly, str):
        try:
            return ANOMALIES[anomaly]
        except KeyError:
            raise ValueError(
                f"Unknown anomaly '{anomaly}'. Available: {sorted(ANOMALIES)}"
            ) from None
    if callable(anomaly):
        takes_rng = _check_signature(anomaly)
        return AnomalyStrategy(getattr(anomaly, "__name__", repr(anomaly)), anomaly, takes_rng=takes_rng)
    raise ValueError(f"Cannot interpret {anomaly!r} as an anomaly generator")


__all__ = ["AnomalyStrategy", "ANOMALIES", "resolve", "average", "sd"]
