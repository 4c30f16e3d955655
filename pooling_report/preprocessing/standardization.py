"""
Standardization Utilities
=========================

Pre-anchored z-scores for the paired outcome data.

Key features:
- Per outcome: mean and SD come from the pre timepoint only, and the same
  values standardize post (post is not re-centered on its own distribution)
- Consistent ddof: Uses ddof=1 (sample standard deviation) throughout
- Direction: completion-time outcomes are negated so that a larger z is
  always better performance

Usage:
    from pooling_report.preprocessing import standardize_outcomes

    standardized = standardize_outcomes(paired)

Author: Research Team
Date: 2025-12
"""

from __future__ import annotations

import warnings
from typing import Dict, Optional

import numpy as np
import pandas as pd

from .constants import HIGHER_IS_BETTER, OUTCOME_NAMES


# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def pre_anchored_parameters(pre: pd.Series, ddof: int = 1) -> tuple[float, float]:
    """Mean and SD of the pre-timepoint scores (NaN skipped)."""
    return float(pre.mean()), float(pre.std(ddof=ddof))


def outcome_direction(outcome: str) -> float:
    """+1 for higher-is-better outcomes, -1 for the reversed ones."""
    return 1.0 if outcome in HIGHER_IS_BETTER else -1.0


def standardize_outcome(
    frame: pd.DataFrame,
    outcome: str,
    ddof: int = 1,
    fill_constant: float = 0.0,
) -> pd.DataFrame:
    """
    Add ``pre_z`` and ``post_z`` to one outcome's paired rows.

    Parameters
    ----------
    frame : pd.DataFrame
        Rows of a single outcome with ``pre`` and ``post`` columns.
    outcome : str
        Outcome name, used to look up the scoring direction.
    ddof : int, default 1
        Delta degrees of freedom for the SD.
    fill_constant : float, default 0.0
        Value used when the pre SD is zero or undefined.

    Returns
    -------
    pd.DataFrame
        Copy of ``frame`` with the two z-columns.
    """
    result = frame.copy()
    mean_val, std_val = pre_anchored_parameters(result["pre"], ddof=ddof)

    if pd.isna(std_val) or std_val == 0:
        warnings.warn(
            f"{outcome}: constant or undefined pre SD ({std_val}). Filling with {fill_constant}."
        )
        result["pre_z"] = fill_constant
        result["post_z"] = fill_constant
        return result

    sign = outcome_direction(outcome)
    result["pre_z"] = sign * (result["pre"] - mean_val) / std_val
    result["post_z"] = sign * (result["post"] - mean_val) / std_val
    return result


def standardize_outcomes(paired: pd.DataFrame, ddof: int = 1) -> pd.DataFrame:
    """Standardize every outcome independently and stack the results."""
    frames = [
        standardize_outcome(frame, str(outcome), ddof=ddof)
        for outcome, frame in paired.groupby("outcome", sort=False, observed=True)
    ]
    result = pd.concat(frames, ignore_index=True)
    result["outcome"] = pd.Categorical(result["outcome"], categories=OUTCOME_NAMES)
    return result.sort_values(["outcome", "participant"]).reset_index(drop=True)


def standardization_parameters(
    paired: pd.DataFrame,
    ddof: int = 1,
    labels: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """Per-outcome standardization table (N, pre mean, pre SD, direction)."""
    rows = []
    for outcome, frame in paired.groupby("outcome", sort=False, observed=True):
        mean_val, std_val = pre_anchored_parameters(frame["pre"], ddof=ddof)
        row = {
            "outcome": outcome,
            "n": len(frame),
            "pre_mean": mean_val,
            "pre_sd": std_val,
            "post_mean_raw": float(frame["post"].mean()),
            "direction": "higher is better" if outcome_direction(outcome) > 0 else "higher is worse",
        }
        if labels:
            row["label"] = labels.get(outcome, outcome)
        rows.append(row)
    return pd.DataFrame(rows)


def check_standardized(standardized: pd.DataFrame, atol: float = 1e-8) -> bool:
    """True when every outcome's ``pre_z`` has mean 0 and SD 1."""
    for _, frame in standardized.groupby("outcome", observed=True):
        if len(frame) < 2:
            continue
        if not np.isclose(frame["pre_z"].mean(), 0.0, atol=atol):
            return False
        if not np.isclose(frame["pre_z"].std(ddof=1), 1.0, atol=atol):
            return False
    return True
