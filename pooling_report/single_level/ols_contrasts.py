"""
Single-Level (No Pooling) Contrasts
===================================

One OLS regression per outcome, each fully independent of the others:

    post_z ~ pre_z + C(group, Treatment(reference='unstable'))

Estimated marginal means are the model predictions at each group with
``pre_z`` held at the outcome's sample mean. Contrasts are weighted sums of
those means; the interval is estimate +/- 1.96 * SE, with the SE taken from
the coefficient covariance matrix.

An outcome that lost a whole training group to exclusion has no estimable
group means; its rows are reported as NaN with a warning.

Output:
    results/single_level_contrasts.csv
    results/single_level_emmeans.csv

Author: Research Team
Date: 2025-12
"""

from __future__ import annotations

import re
import warnings
from typing import Dict, Optional

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

from pooling_report.preprocessing.constants import (
    CONTRASTS,
    GROUP_LEVELS,
    REFERENCE_GROUP,
    SINGLE_LEVEL,
    Z_CRIT,
)

FORMULA = f"post_z ~ pre_z + C(group, Treatment(reference='{REFERENCE_GROUP}'))"

# treatment dummy names end in "[T.<level>]"
_LEVEL_PATTERN = re.compile(r"\[(?:T\.)?(?P<level>[^\]]+)\]$")


def contrast_matrix(contrasts: Optional[Dict[str, Dict[str, float]]] = None) -> pd.DataFrame:
    """Contrast weights as a (contrast x group) matrix in GROUP_LEVELS order."""
    contrasts = contrasts or CONTRASTS
    return pd.DataFrame(
        [[weights.get(level, 0.0) for level in GROUP_LEVELS] for weights in contrasts.values()],
        index=list(contrasts),
        columns=GROUP_LEVELS,
    )


def fit_outcome_ols(frame: pd.DataFrame):
    """Fit the per-outcome OLS model on standardized scores."""
    return smf.ols(FORMULA, data=frame).fit()


def missing_groups(frame: pd.DataFrame) -> list[str]:
    """Training groups with no complete (pre_z, post_z) rows in ``frame``."""
    complete = frame.dropna(subset=["pre_z", "post_z"])
    present = set(complete["group"].astype(str))
    return [level for level in GROUP_LEVELS if level not in present]


def _group_design(model, frame: pd.DataFrame) -> pd.DataFrame:
    """One design row per group at mean ``pre_z``, in the model's column order."""
    exog_names = list(model.model.exog_names)
    pre_mean = float(frame["pre_z"].mean())

    rows = []
    for level in GROUP_LEVELS:
        row = []
        for name in exog_names:
            if name == "Intercept":
                row.append(1.0)
            elif name == "pre_z":
                row.append(pre_mean)
            else:
                match = _LEVEL_PATTERN.search(name)
                if match is None:
                    raise ValueError(f"Unexpected term in single-level model: {name}")
                row.append(1.0 if match.group("level") == level else 0.0)
        rows.append(row)
    return pd.DataFrame(rows, index=GROUP_LEVELS, columns=exog_names)


def _unestimable_outcome(outcome: str, n: int) -> tuple[pd.DataFrame, pd.DataFrame]:
    weights = contrast_matrix()
    contrasts = pd.DataFrame({
        "model": SINGLE_LEVEL,
        "contrast": weights.index,
        "outcome": outcome,
        "estimate": np.nan,
        "se": np.nan,
        "lower": np.nan,
        "upper": np.nan,
        "n": n,
    })
    emmeans = pd.DataFrame({
        "outcome": outcome,
        "group": GROUP_LEVELS,
        "emmean": np.nan,
        "se": np.nan,
        "lower": np.nan,
        "upper": np.nan,
    })
    return contrasts, emmeans


def estimated_marginal_means(model, frame: pd.DataFrame) -> pd.DataFrame:
    """
    Group means of ``post_z`` at the mean of ``pre_z``.

    Returns
    -------
    pd.DataFrame
        One row per group: emmean, se, lower, upper.
    """
    design = _group_design(model, frame)
    params = model.params
    cov = model.cov_params()

    pred = design.values @ params.values
    se = np.sqrt(np.diag(design.values @ cov.values @ design.values.T))
    return pd.DataFrame({
        "group": GROUP_LEVELS,
        "emmean": pred,
        "se": se,
        "lower": pred - Z_CRIT * se,
        "upper": pred + Z_CRIT * se,
    })


def outcome_contrasts(frame: pd.DataFrame, outcome: str) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Fit one outcome and derive its contrasts.

    Parameters
    ----------
    frame : pd.DataFrame
        Standardized rows of a single outcome.
    outcome : str
        Outcome name written into the result rows.

    Returns
    -------
    tuple of pd.DataFrame
        (contrasts, emmeans) for this outcome only. All estimates are NaN
        when a training group has no rows for this outcome.
    """
    absent = missing_groups(frame)
    if absent:
        warnings.warn(
            f"{outcome}: no participants left in group(s) {absent}. "
            "Single-level contrasts set to NaN."
        )
        n = len(frame.dropna(subset=["pre_z", "post_z"]))
        return _unestimable_outcome(outcome, n)

    model = fit_outcome_ols(frame)
    design = _group_design(model, frame)
    weights = contrast_matrix()

    # rows of L map coefficients straight to contrast values
    L = weights.values @ design.values
    estimate = L @ model.params.values
    se = np.sqrt(np.diag(L @ model.cov_params().values @ L.T))

    contrasts = pd.DataFrame({
        "model": SINGLE_LEVEL,
        "contrast": weights.index,
        "outcome": outcome,
        "estimate": estimate,
        "se": se,
        "lower": estimate - Z_CRIT * se,
        "upper": estimate + Z_CRIT * se,
        "n": int(model.nobs),
    })

    emmeans = estimated_marginal_means(model, frame)
    emmeans.insert(0, "outcome", outcome)
    return contrasts, emmeans


def run_single_level(
    standardized: pd.DataFrame,
    verbose: bool = True,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Fit every outcome independently and stack the per-outcome results.

    Returns
    -------
    tuple of pd.DataFrame
        (contrasts, emmeans) across all outcomes.
    """
    contrast_frames = []
    emmean_frames = []
    for outcome, frame in standardized.groupby("outcome", sort=True, observed=True):
        contrasts, emmeans = outcome_contrasts(frame, str(outcome))
        contrast_frames.append(contrasts)
        emmean_frames.append(emmeans)

        if verbose:
            parts = [
                f"{row.contrast}: {row.estimate:.3f} [{row.lower:.3f}, {row.upper:.3f}]"
                for row in contrasts.itertuples()
            ]
            print(f"    {outcome} (N={contrasts['n'].iloc[0]}): " + "; ".join(parts))

    return (
        pd.concat(contrast_frames, ignore_index=True),
        pd.concat(emmean_frames, ignore_index=True),
    )
