import numpy as np
import pandas as pd

from ctas_validation.utils.sampling import sample_site

DEFAULT_FEATURES = "average"


def run(
    df: pd.DataFrame,
    anomaly_degree: float,
    site: str = "sample_site",
    rng: np.random.Generator | None = None,
) -> pd.DataFrame:
    """Sample a synthetic site and shift its results upwards.

    Each result moves by ``anomaly_degree`` standard deviations of its
    parameter, measured on ``df``.
    """
    sampled = sample_site(df, site=site, rng=rng)
    sd = df.groupby("parameter_id")["result"].std()
    shift = sampled["parameter_id"].map(sd).fillna(0.0) * anomaly_degree
    sampled["result"] = sampled["result"] + shift
    sampled["method"] = "average"
    return sampled
