"""
Preprocessing Module
====================

Loading, reshaping and pre-anchored standardization of the trial workbook.

    from pooling_report.preprocessing import load_paired_dataset, standardize_outcomes
    participants, paired = load_paired_dataset("data/raw/exercise_ef_trial.xlsx")
    standardized = standardize_outcomes(paired)
"""

# Constants
from .constants import (
    RESULTS_DIR,
    DEFAULT_DATA_PATH,
    DEFAULT_SHEET_NAME,
    OUTCOMES,
    OUTCOME_NAMES,
    OUTCOME_LABELS,
    HIGHER_IS_BETTER,
    GROUP_LEVELS,
    REFERENCE_GROUP,
    CONTRASTS,
    SINGLE_LEVEL,
    HIERARCHICAL,
)

# Loaders (from loaders.py)
from .loaders import (
    outcome_columns,
    load_trial_workbook,
    normalize_group_series,
    select_analysis_columns,
    assign_participant_ids,
    to_long,
    to_paired,
    load_paired_dataset,
)

# Standardization (from standardization.py)
from .standardization import (
    pre_anchored_parameters,
    outcome_direction,
    standardize_outcome,
    standardize_outcomes,
    standardization_parameters,
    check_standardized,
)

__all__ = [
    'RESULTS_DIR',
    'DEFAULT_DATA_PATH',
    'DEFAULT_SHEET_NAME',
    'OUTCOMES',
    'OUTCOME_NAMES',
    'OUTCOME_LABELS',
    'HIGHER_IS_BETTER',
    'GROUP_LEVELS',
    'REFERENCE_GROUP',
    'CONTRASTS',
    'SINGLE_LEVEL',
    'HIERARCHICAL',
    'outcome_columns',
    'load_trial_workbook',
    'normalize_group_series',
    'select_analysis_columns',
    'assign_participant_ids',
    'to_long',
    'to_paired',
    'load_paired_dataset',
    'pre_anchored_parameters',
    'outcome_direction',
    'standardize_outcome',
    'standardize_outcomes',
    'standardization_parameters',
    'check_standardized',
]
