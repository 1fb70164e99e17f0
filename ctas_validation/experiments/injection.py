import logging

import numpy as np
import pandas as pd

from ctas_validation.anomalies import AnomalyStrategy, resolve

INJECTION_PREFIX = "sample_site"


def is_injected(sites: pd.Series, site_prefix: str = INJECTION_PREFIX) -> pd.Series:
    return sites.astype(str).str.startswith(site_prefix)


def get_anomaly_data(
    df: pd.DataFrame,
    n_sites: int,
    fun_anomaly,
    anomaly_degree: float,
    site_prefix: str = "site",
    rng: np.random.Generator | None = None,
) -> pd.DataFrame:
    """Append ``n_sites`` synthetic anomalous sites to ``df``.

    Sites are named ``{site_prefix}1`` .. ``{site_prefix}{n_sites}``. The
    ``method`` column written by anomaly generators is filled with its
    maximum over all rows.

    Raises
    ------
    ValueError
        If ``n_sites`` is not positive or a real site already starts with
        ``site_prefix``.
    """
    logger = logging.getLogger("ctasval")
    if n_sites < 1:
        raise ValueError(f"n_sites must be at least 1, got {n_sites}")
    clash = sorted(df.loc[is_injected(df["site"], site_prefix), "site"].astype(str).unique())
    if clash:
        raise ValueError(f"Real sites collide with injection prefix '{site_prefix}': {clash}")

    strategy: AnomalyStrategy = resolve(fun_anomaly)
    rng = rng if rng is not None else np.random.default_rng()

    site_data = [
        strategy(df, anomaly_degree, site=f"{site_prefix}{i}", rng=rng)
        for i in range(1, n_sites + 1)
    ]
    df_anomaly = pd.concat([df, *site_data], ignore_index=True)

    if "method" in df_anomaly.columns:
        methods = df_anomaly["method"].dropna()
        if len(methods):
            df_anomaly["method"] = methods.astype(str).max()

    logger.debug(
        "Injected %d sites with %s at degree %s: rows=%d",
        n_sites, strategy.name, anomaly_degree, len(df_anomaly),
    )
    return df_anomaly
