"""
Data loading and reshaping for the exercise-intervention workbook.

The workbook is wide: one row per participant, one column per
(timepoint, outcome) pair. Analyses use the paired shape, one row per
participant per outcome with ``pre`` and ``post`` columns.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from .constants import (
    DEFAULT_SHEET_NAME,
    DEMOGRAPHIC_COLUMN_MAPPING,
    GROUP_LEVELS,
    OUTCOME_NAMES,
    TIMEPOINTS,
)


def outcome_columns(outcomes: Optional[list[str]] = None) -> list[str]:
    """Raw ``<timepoint>_<Outcome>`` column names, pre block first."""
    outcomes = outcomes or OUTCOME_NAMES
    return [f"{tp}_{name}" for tp in TIMEPOINTS for name in outcomes]


def load_trial_workbook(
    path: Union[str, Path],
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> pd.DataFrame:
    """Read the participant sheet of the trial workbook."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trial workbook not found: {path}")
    return pd.read_excel(path, sheet_name=sheet_name)


def normalize_group_series(series: pd.Series) -> pd.Series:
    """
    Map group labels onto the three fixed training conditions.

    Labels are stripped and lower-cased, spaces and hyphens become
    underscores. Anything outside GROUP_LEVELS is an error, and so is a
    blank label.
    """
    blank = series.isna() | (series.astype(str).str.strip() == "")
    if blank.any():
        rows = [int(pos) + 1 for pos in np.flatnonzero(blank.to_numpy())]
        raise ValueError(f"Group label missing for {int(blank.sum())} row(s) (data rows {rows}).")

    cleaned = (
        series.astype(str)
        .str.strip()
        .str.lower()
        .str.replace(r"[\s\-]+", "_", regex=True)
    )
    unknown = sorted(set(cleaned.unique()) - set(GROUP_LEVELS))
    if unknown:
        raise ValueError(f"Unknown group labels: {unknown}. Valid groups: {GROUP_LEVELS}")
    return pd.Series(
        pd.Categorical(cleaned, categories=GROUP_LEVELS),
        index=series.index,
        name=series.name,
    )


def select_analysis_columns(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Keep the identifier, demographics, group and the 14 outcome columns.

    Raises
    ------
    KeyError
        If any required column is absent from the sheet.
    """
    required = list(DEMOGRAPHIC_COLUMN_MAPPING) + outcome_columns()
    missing = [col for col in required if col not in raw.columns]
    if missing:
        raise KeyError(f"Required columns missing from workbook: {missing}")

    df = raw[required].rename(columns=DEMOGRAPHIC_COLUMN_MAPPING).copy()
    df["group"] = normalize_group_series(df["group"])
    for col in ["age", "screening"] + outcome_columns():
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def assign_participant_ids(df: pd.DataFrame) -> pd.DataFrame:
    """Add a sequential ``participant`` id (1..N) in sheet order."""
    result = df.reset_index(drop=True).copy()
    result.insert(0, "participant", range(1, len(result) + 1))
    return result


def to_long(df: pd.DataFrame) -> pd.DataFrame:
    """One row per (participant, timepoint, outcome)."""
    id_vars = [col for col in df.columns if col not in outcome_columns()]
    long = df.melt(
        id_vars=id_vars,
        value_vars=outcome_columns(),
        var_name="measure",
        value_name="score",
    )
    parts = long["measure"].str.split("_", n=1, expand=True)
    long["timepoint"] = parts[0]
    long["outcome"] = parts[1]
    long = long.drop(columns="measure")
    return long.sort_values(["participant", "outcome", "timepoint"]).reset_index(drop=True)


def to_paired(long: pd.DataFrame) -> pd.DataFrame:
    """
    Pivot timepoints into ``pre``/``post`` columns.

    Exclusion is local: a participant missing either score for an outcome
    is dropped from that outcome only.
    """
    participant_cols = [
        col for col in long.columns if col not in ("timepoint", "score", "outcome")
    ]
    participants = long[participant_cols].drop_duplicates(subset="participant")

    paired = long.pivot(index=["participant", "outcome"], columns="timepoint", values="score")
    paired = paired.reindex(columns=TIMEPOINTS).reset_index()
    paired.columns.name = None
    paired = participants.merge(paired, on="participant", how="right")

    frames = [
        frame.dropna(subset=TIMEPOINTS)
        for _, frame in paired.groupby("outcome", sort=False, observed=True)
    ]
    paired = pd.concat(frames, ignore_index=True)
    paired["outcome"] = pd.Categorical(paired["outcome"], categories=OUTCOME_NAMES)
    paired["group"] = pd.Categorical(paired["group"], categories=GROUP_LEVELS)
    return paired.sort_values(["outcome", "participant"]).reset_index(drop=True)


def load_paired_dataset(
    path: Union[str, Path],
    sheet_name: str = DEFAULT_SHEET_NAME,
    verbose: bool = True,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Run the full load -> select -> id -> long -> paired chain.

    Returns
    -------
    tuple of pd.DataFrame
        (participants, paired). ``participants`` has one row per
        participant; ``paired`` one row per participant per outcome.
    """
    raw = load_trial_workbook(path, sheet_name=sheet_name)
    selected = assign_participant_ids(select_analysis_columns(raw))
    paired = to_paired(to_long(selected))

    participants = selected[["participant", "source_id", "age", "screening", "group"]]

    if verbose:
        print(f"  Loaded {len(participants)} participants from {Path(path).name} [{sheet_name}]")
        counts = paired.groupby("outcome", observed=False).size()
        for outcome, n in counts.items():
            dropped = len(participants) - n
            note = f" ({dropped} excluded: missing pre/post)" if dropped else ""
            print(f"    {outcome}: N={n}{note}")

    return participants, paired
