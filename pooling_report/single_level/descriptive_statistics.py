"""
Descriptive Statistics
======================

Table-1 style sample description by training group: N, mean and SD of age
and the screening score, plus the raw pre/post means of every outcome.

Output:
    results/descriptives_by_group.csv
"""

from __future__ import annotations

import pandas as pd

from pooling_report.preprocessing.constants import GROUP_LEVELS, OUTCOME_LABELS

DEMOGRAPHIC_VARS = [
    ("age", "Age (years)"),
    ("screening", "MoCA screening score"),
]


def _describe(series: pd.Series) -> dict:
    series = series.dropna()
    return {
        "N": len(series),
        "Mean": series.mean(),
        "SD": series.std(),
        "Min": series.min(),
        "Max": series.max(),
    }


def compute_group_descriptives(
    participants: pd.DataFrame,
    paired: pd.DataFrame,
) -> pd.DataFrame:
    """
    Describe demographics and raw outcome scores within each group.

    Parameters
    ----------
    participants : pd.DataFrame
        One row per participant (``age``, ``screening``, ``group``).
    paired : pd.DataFrame
        Paired outcome rows after per-outcome exclusion.

    Returns
    -------
    pd.DataFrame
        Long table: Group, Variable, Timepoint, N, Mean, SD, Min, Max.
    """
    rows = []
    groups = [("Total", participants, paired)] + [
        (
            level,
            participants[participants["group"] == level],
            paired[paired["group"] == level],
        )
        for level in GROUP_LEVELS
    ]

    for group_label, people, scores in groups:
        for col, label in DEMOGRAPHIC_VARS:
            rows.append({
                "Group": group_label,
                "Variable": label,
                "Timepoint": "",
                **_describe(people[col]),
            })
        for outcome, frame in scores.groupby("outcome", observed=False):
            for timepoint in ("pre", "post"):
                rows.append({
                    "Group": group_label,
                    "Variable": OUTCOME_LABELS.get(outcome, outcome),
                    "Timepoint": timepoint,
                    **_describe(frame[timepoint]),
                })

    return pd.DataFrame(rows)
