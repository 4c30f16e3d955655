"""
Single-Level Analysis Suite
===========================

No-pooling analyses: one independent OLS model per outcome, plus the
group-level descriptive table.

Scripts:
    descriptive_statistics.py   - Demographics and raw scores by group
    ols_contrasts.py            - Per-outcome OLS, EMMs and contrasts
"""

from .descriptive_statistics import (
    DEMOGRAPHIC_VARS,
    compute_group_descriptives,
)
from .ols_contrasts import (
    FORMULA,
    contrast_matrix,
    fit_outcome_ols,
    missing_groups,
    estimated_marginal_means,
    outcome_contrasts,
    run_single_level,
)

__all__ = [
    'DEMOGRAPHIC_VARS',
    'compute_group_descriptives',
    'FORMULA',
    'contrast_matrix',
    'fit_outcome_ols',
    'missing_groups',
    'estimated_marginal_means',
    'outcome_contrasts',
    'run_single_level',
]
