"""
Hierarchical Analysis Suite
===========================

Partial-pooling analysis: one Bayesian multilevel model over all outcomes
and participants, fit with PyMC and summarized with ArviZ.

Scripts:
    partial_pooling.py   - Model, sampling, per-draw contrasts, diagnostics
"""

from ._utils import (
    SamplerConfig,
    COEF_NAMES,
    NON_REFERENCE_GROUPS,
    design_matrix,
    coefficient_contrast_weights,
    summarize_draws,
)
from .partial_pooling import (
    build_hierarchical_model,
    sample_posterior,
    outcome_contrast_draws,
    population_contrast_draws,
    summarize_contrast_draws,
    outcome_contrasts,
    population_contrasts,
    sampler_diagnostics,
    run_hierarchical,
)

__all__ = [
    'SamplerConfig',
    'COEF_NAMES',
    'NON_REFERENCE_GROUPS',
    'design_matrix',
    'coefficient_contrast_weights',
    'summarize_draws',
    'build_hierarchical_model',
    'sample_posterior',
    'outcome_contrast_draws',
    'population_contrast_draws',
    'summarize_contrast_draws',
    'outcome_contrasts',
    'population_contrasts',
    'sampler_diagnostics',
    'run_hierarchical',
]
