"""Adapters from SDTM domains to the canonical long-format schema."""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

CANONICAL_COLUMNS = [
    "subject_id",
    "site",
    "parameter_id",
    "parameter_name",
    "parameter_category_1",
    "timepoint_1_name",
    "timepoint_2_name",
    "timepoint_rank",
    "result",
    "baseline",
]


def scramble_sites(dm: pd.DataFrame, rng: np.random.Generator | None = None) -> pd.DataFrame:
    """Return a copy of ``dm`` with SITEID permuted across subjects."""
    rng = rng if rng is not None else np.random.default_rng()
    out = dm.copy()
    out["SITEID"] = rng.permutation(out["SITEID"].to_numpy())
    return out


def _prep_sdtm(
    domain: pd.DataFrame,
    dm: pd.DataFrame,
    test_col: str,
    result_col: str,
    category: pd.Series | str,
    scramble: bool,
    rng: np.random.Generator | None,
) -> pd.DataFrame:
    required = {"USUBJID", "VISIT", "VISITNUM", test_col, result_col}
    missing = required - set(domain.columns)
    if missing:
        raise ValueError(f"Domain data is missing columns: {sorted(missing)}")
    if not {"USUBJID", "SITEID"} <= set(dm.columns):
        raise ValueError("DM data must contain USUBJID and SITEID")

    if scramble:
        dm = scramble_sites(dm, rng)

    df = domain.assign(
        timepoint_rank=domain["VISITNUM"],
        timepoint_1_name=domain["VISIT"].astype(str),
        result=domain[result_col],
        parameter_id=domain[test_col],
        parameter_name=domain[test_col],
        timepoint_2_name="no",
        baseline=np.nan,
        parameter_category_1=category,
    )
    sites = dm[["USUBJID", "SITEID"]].drop_duplicates()
    df = df.merge(sites, on="USUBJID", how="inner").rename(
        columns={"USUBJID": "subject_id", "SITEID": "site"}
    )
    logging.getLogger("ctasval").info(
        "Prepared %s data: rows=%d subjects=%d sites=%d scramble=%s",
        test_col, len(df), df["subject_id"].nunique(), df["site"].nunique(), scramble,
    )
    return df


def prep_sdtm_lb(
    lb: pd.DataFrame,
    dm: pd.DataFrame,
    scramble: bool = True,
    rng: np.random.Generator | None = None,
) -> pd.DataFrame:
    """Prepare SDTM LB (laboratory) data joined with DM sites.

    Parameters
    ----------
    lb : pd.DataFrame
        LB domain with USUBJID, VISIT, VISITNUM, LBTEST, LBSTRESN and LBCAT.
    dm : pd.DataFrame
        DM domain with USUBJID and SITEID.
    scramble : bool
        Permute SITEID across subjects before joining.
    rng : np.random.Generator, optional
        Generator used for scrambling.
    """
    if "LBCAT" not in lb.columns:
        raise ValueError("LB data is missing columns: ['LBCAT']")
    return _prep_sdtm(lb, dm, "LBTEST", "LBSTRESN", lb["LBCAT"], scramble, rng)


def prep_sdtm_vs(
    vs: pd.DataFrame,
    dm: pd.DataFrame,
    scramble: bool = True,
    rng: np.random.Generator | None = None,
) -> pd.DataFrame:
    """Prepare SDTM VS (vital signs) data joined with DM sites.

    VS carries no category, every row gets ``"no categories"``.
    """
    return _prep_sdtm(vs, dm, "VSTEST", "VSSTRESN", "no categories", scramble, rng)
