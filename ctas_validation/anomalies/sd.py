import numpy as np
import pandas as pd

from ctas_validation.utils.sampling import sample_site

DEFAULT_FEATURES = "sd"


def run(
    df: pd.DataFrame,
    anomaly_degree: float,
    site: str = "sample_site",
    rng: np.random.Generator | None = None,
) -> pd.DataFrame:
    """Sample a synthetic site and widen the spread of its results.

    Deviations from the parameter mean of ``df`` are scaled by
    ``1 + anomaly_degree``.
    """
    sampled = sample_site(df, site=site, rng=rng)
    mean = sampled["parameter_id"].map(df.groupby("parameter_id")["result"].mean())
    sampled["result"] = sampled["result"] + (sampled["result"] - mean) * anomaly_degree
    sampled["method"] = "sd"
    return sampled
