"""
Shared constants for data preprocessing and modeling.

Outcomes, groups and contrasts are declared once here; every per-outcome
computation iterates these lists.
"""

from pathlib import Path

# Directory paths
BASE_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = BASE_DIR / "data"
RAW_DIR = DATA_DIR / "raw"
DEFAULT_DATA_PATH = RAW_DIR / "exercise_ef_trial.xlsx"
RESULTS_DIR = BASE_DIR / "results"

# Spreadsheet layout
DEFAULT_SHEET_NAME = "Data"
RAW_ID_COL = "ID"
RAW_AGE_COL = "Age"
RAW_SCREENING_COL = "MoCA"
RAW_GROUP_COL = "Group"

# Raw -> internal column names for the participant-level columns
DEMOGRAPHIC_COLUMN_MAPPING = {
    RAW_ID_COL: "source_id",
    RAW_AGE_COL: "age",
    RAW_SCREENING_COL: "screening",
    RAW_GROUP_COL: "group",
}

TIMEPOINTS = ["pre", "post"]

# (column suffix, display label)
OUTCOMES = [
    ("TMTA", "Trail Making Test A (s)"),
    ("TMTB", "Trail Making Test B (s)"),
    ("StroopWord", "Stroop Word Reading (s)"),
    ("StroopColor", "Stroop Color Naming (s)"),
    ("StroopInterference", "Stroop Color-Word (s)"),
    ("DigitForward", "Digit Span Forward"),
    ("DigitBackward", "Digit Span Backward"),
]

OUTCOME_NAMES = [name for name, _ in OUTCOMES]
OUTCOME_LABELS = dict(OUTCOMES)

# Every other outcome is a completion time: larger raw values are worse
HIGHER_IS_BETTER = {"DigitForward", "DigitBackward"}

# Training conditions; the first level is the treatment-coding reference
GROUP_LEVELS = ["unstable", "stable_a", "stable_b"]
REFERENCE_GROUP = GROUP_LEVELS[0]

GROUP_LABELS = {
    "unstable": "Unstable training",
    "stable_a": "Stable training A",
    "stable_b": "Stable training B",
}

# Contrast weights over the group estimated marginal means
CONTRASTS = {
    "instability-vs-stability": {"unstable": -1.0, "stable_a": 0.5, "stable_b": 0.5},
    "stable-variant-A-vs-B": {"unstable": 0.0, "stable_a": -1.0, "stable_b": 1.0},
}

CONTRAST_LABELS = {
    "instability-vs-stability": "Stable (A+B)/2 - Unstable",
    "stable-variant-A-vs-B": "Stable B - Stable A",
}

# Contrasts whose figure also carries a zero reference line
ZERO_REFERENCE_CONTRASTS = {"instability-vs-stability"}

# Model-type tags
SINGLE_LEVEL = "single-level"
HIERARCHICAL = "hierarchical"
MODEL_TYPES = [SINGLE_LEVEL, HIERARCHICAL]

# Interval constants
Z_CRIT = 1.96                 # normal-approximation 95% CI
CI_PERCENTILES = (2.5, 97.5)  # percentile credible interval

# Hierarchical model priors
FIXED_EFFECT_PRIOR_SD = 2.5   # Normal(0, 2.5) on each fixed coefficient
RANDOM_SD_PRIOR_SCALE = 2.5   # HalfCauchy(0, 2.5) on each deviation SD
RESIDUAL_PRIOR_NU = 3         # HalfStudentT(3, 2.5) on the residual SD
RESIDUAL_PRIOR_SCALE = 2.5
LKJ_ETA = 1.0

# Convergence threshold for diagnostics
RHAT_WARN = 1.01
