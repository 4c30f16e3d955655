"""
Hierarchical Analysis Utilities
===============================

Shared pieces of the partial-pooling suite.

This module provides:
- Sampler settings (SamplerConfig)
- Fixed-effect design matrix and coefficient names
- Contrast weights expressed over model coefficients
- Percentile summaries of posterior draws
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from pooling_report.preprocessing.constants import (
    CI_PERCENTILES,
    CONTRASTS,
    GROUP_LEVELS,
    REFERENCE_GROUP,
)

# =============================================================================
# SAMPLER SETTINGS
# =============================================================================

@dataclass
class SamplerConfig:
    """NUTS settings; warmup draws (tune) are discarded by pymc."""
    draws: int = 2000
    tune: int = 1000
    chains: int = 4
    cores: int = 1
    target_accept: float = 0.9
    random_seed: int = 42

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


# =============================================================================
# DESIGN
# =============================================================================

def group_coef_name(level: str) -> str:
    return f"group[{level}]"


NON_REFERENCE_GROUPS = [level for level in GROUP_LEVELS if level != REFERENCE_GROUP]
COEF_NAMES: List[str] = ["Intercept", "pre_z"] + [group_coef_name(g) for g in NON_REFERENCE_GROUPS]


def design_matrix(frame: pd.DataFrame) -> np.ndarray:
    """Treatment-coded fixed-effect design in COEF_NAMES order."""
    group = frame["group"].astype(str).to_numpy()
    columns = [np.ones(len(frame)), frame["pre_z"].to_numpy(dtype=float)]
    columns += [(group == level).astype(float) for level in NON_REFERENCE_GROUPS]
    return np.column_stack(columns)


def ordered_levels(values: pd.Series, declared: Sequence[str]) -> List[str]:
    """Observed levels in declared order; undeclared ones follow, sorted."""
    observed = set(values.astype(str))
    ordered = [level for level in declared if level in observed]
    return ordered + sorted(observed - set(ordered))


# =============================================================================
# CONTRASTS OVER COEFFICIENTS
# =============================================================================

def coefficient_contrast_weights(
    coef_names: Sequence[str],
    contrasts: Optional[Dict[str, Dict[str, float]]] = None,
) -> pd.DataFrame:
    """
    Contrast weights mapped from group means onto model coefficients.

    With weights summing to zero the intercept and the pre_z term cancel
    out of every contrast, and the reference group's effect is zero, so only
    the non-reference group coefficients carry weight.
    """
    contrasts = contrasts or CONTRASTS
    rows = []
    for weights in contrasts.values():
        row = np.zeros(len(coef_names))
        for level, w in weights.items():
            name = group_coef_name(level)
            if name in coef_names:
                row[list(coef_names).index(name)] = w
        rows.append(row)
    return pd.DataFrame(rows, index=list(contrasts), columns=list(coef_names))


# =============================================================================
# POSTERIOR SUMMARIES
# =============================================================================

def summarize_draws(
    draws: np.ndarray,
    percentiles: Sequence[float] = CI_PERCENTILES,
) -> Dict[str, float]:
    """
    Posterior mean and percentile interval of a per-draw quantity.

    Parameters
    ----------
    draws : np.ndarray
        One value per retained posterior draw (chains pooled).
    percentiles : (float, float)
        Lower and upper percentiles, default 2.5 / 97.5.

    Returns
    -------
    dict
        estimate, lower, upper
    """
    draws = np.asarray(draws, dtype=float).ravel()
    lower, upper = np.percentile(draws, percentiles)
    return {
        "estimate": float(draws.mean()),
        "lower": float(lower),
        "upper": float(upper),
    }
