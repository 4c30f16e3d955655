"""
Shared test fixtures: synthetic trial workbooks.

Scores are generated on a "performance" scale (higher = better) and mapped
to raw units, so completion-time outcomes come out with higher = worse.
"""

import numpy as np
import pandas as pd
import pytest

from pooling_report.preprocessing.constants import (
    GROUP_LEVELS,
    HIGHER_IS_BETTER,
    OUTCOME_NAMES,
)
from pooling_report.preprocessing import standardize_outcomes, to_long, to_paired
from pooling_report.preprocessing.loaders import assign_participant_ids, select_analysis_columns

RAW_SCALE = {
    "TMTA": (35.0, 8.0),
    "TMTB": (80.0, 20.0),
    "StroopWord": (50.0, 6.0),
    "StroopColor": (65.0, 9.0),
    "StroopInterference": (110.0, 18.0),
    "DigitForward": (8.0, 1.5),
    "DigitBackward": (5.0, 1.2),
}


def make_wide_trial(
    n_per_group=10,
    seed=0,
    effects=None,
    noise=0.5,
    outcomes=None,
):
    """
    Wide workbook-shaped frame: ID, Age, MoCA, Group, pre_/post_ columns.

    ``effects`` maps outcome -> {group: post shift in SD units}.
    """
    rng = np.random.default_rng(seed)
    outcomes = outcomes or OUTCOME_NAMES
    effects = effects or {}
    groups = np.repeat(GROUP_LEVELS, n_per_group)
    n = len(groups)

    df = pd.DataFrame({
        "ID": [f"P{i:03d}" for i in range(n)],
        "Age": rng.integers(60, 80, size=n),
        "MoCA": rng.integers(22, 30, size=n),
        "Group": groups,
    })
    ability = rng.normal(size=n)
    for outcome in outcomes:
        base, scale = RAW_SCALE.get(outcome, (50.0, 10.0))
        direction = 1.0 if outcome in HIGHER_IS_BETTER else -1.0
        shift = np.array([effects.get(outcome, {}).get(g, 0.0) for g in groups])
        perf_pre = ability + rng.normal(scale=noise, size=n)
        perf_post = 0.6 * perf_pre + shift + rng.normal(scale=noise, size=n)
        df[f"pre_{outcome}"] = base + direction * scale * perf_pre
        df[f"post_{outcome}"] = base + direction * scale * perf_post

    pre_cols = [f"pre_{o}" for o in outcomes]
    post_cols = [f"post_{o}" for o in outcomes]
    return df[["ID", "Age", "MoCA", "Group"] + pre_cols + post_cols]


@pytest.fixture
def wide_trial():
    return make_wide_trial()


@pytest.fixture
def workbook_path(tmp_path, wide_trial):
    path = tmp_path / "trial.xlsx"
    wide_trial.to_excel(path, sheet_name="Data", index=False)
    return path


@pytest.fixture
def paired(wide_trial):
    return to_paired(to_long(assign_participant_ids(select_analysis_columns(wide_trial))))


@pytest.fixture
def standardized(paired):
    return standardize_outcomes(paired)
