import logging

import numpy as np
import pandas as pd


def sample_site(
    df: pd.DataFrame,
    site: str = "sample_site",
    rng: np.random.Generator | None = None,
) -> pd.DataFrame:
    """Draw a synthetic site from the subjects of ``df``.

    For each parameter one existing site is picked at random and its number of
    distinct subjects becomes the cohort size for that parameter. Subjects are
    then ranked in a random order shared by all parameters and the first
    ``n`` subjects that have the parameter are kept. When fewer subjects carry a
    parameter than the target size, all of them are kept.

    Parameters
    ----------
    df : pd.DataFrame
        Canonical long-format study data with at least ``subject_id``,
        ``site`` and ``parameter_id``.
    site : str
        Label of the synthetic site. Subject ids are prefixed with it.
    rng : np.random.Generator, optional
        Source of randomness. A fresh unseeded generator is used if omitted.

    Returns
    -------
    pd.DataFrame
        Rows of the sampled subjects, relabelled to ``site``.
    """
    logger = logging.getLogger("ctasval")
    rng = rng if rng is not None else np.random.default_rng()

    n_pat = (
        df.groupby(["site", "parameter_id"], sort=True)["subject_id"]
        .nunique()
        .rename("n_pat_site_param")
        .reset_index()
    )
    # shuffling then keeping the first row per parameter picks one site uniformly
    n_pat = (
        n_pat.iloc[rng.permutation(len(n_pat))]
        .drop_duplicates("parameter_id")
        .loc[:, ["parameter_id", "n_pat_site_param"]]
    )

    subject_ids = df["subject_id"].unique()
    subject_random = pd.Series(rng.permutation(len(subject_ids)) + 1, index=subject_ids)

    out = df.assign(subject_random=df["subject_id"].map(subject_random))
    out["subject_random"] = out.groupby("parameter_id")["subject_random"].rank(method="dense")
    out = out.merge(n_pat, on="parameter_id", how="left")
    out = out[out["subject_random"] <= out["n_pat_site_param"]]

    out = out.drop(columns=["subject_random", "n_pat_site_param"]).reset_index(drop=True)
    out["site"] = site
    out["subject_id"] = site + "-" + out["subject_id"].astype(str)

    logger.debug(
        "Sampled site %s: subjects=%d rows=%d parameters=%d",
        site, out["subject_id"].nunique(), len(out), out["parameter_id"].nunique(),
    )
    return out
