"""
Comparison Tables and Narrative
===============================

Stacks the single-level and hierarchical contrast tables, measures how much
partial pooling shrank the per-outcome estimates, and writes the Markdown
narrative of the report.

Output:
    results/contrast_comparison.csv
    results/shrinkage_summary.csv
    results/report.md

Author: Research Team
Date: 2025-12
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from pooling_report.preprocessing.constants import (
    CONTRAST_LABELS,
    GROUP_LABELS,
    HIERARCHICAL,
    MODEL_TYPES,
    OUTCOME_LABELS,
    OUTCOME_NAMES,
    SINGLE_LEVEL,
)
from pooling_report.utils import format_interval, get_output_dir

COMPARISON_COLUMNS = ["model", "contrast", "outcome", "estimate", "lower", "upper", "se", "n"]


def combine_contrast_tables(
    single_level: pd.DataFrame,
    hierarchical: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """Concatenate the contrast tables, tagged and ordered by model type."""
    frames = [single_level.assign(model=SINGLE_LEVEL)]
    if hierarchical is not None and len(hierarchical):
        frames.append(hierarchical.assign(model=HIERARCHICAL))

    combined = pd.concat(frames, ignore_index=True)
    combined = combined.reindex(columns=COMPARISON_COLUMNS)
    combined["outcome"] = combined["outcome"].astype(str)
    order = {name: i for i, name in enumerate(OUTCOME_NAMES)}
    combined["_order"] = combined["outcome"].map(order).fillna(len(order))
    combined["_model"] = combined["model"].map({m: i for i, m in enumerate(MODEL_TYPES)})
    combined = combined.sort_values(["contrast", "_order", "outcome", "_model"], kind="stable")
    return combined.drop(columns=["_order", "_model"]).reset_index(drop=True)


def shrinkage_summary(combined: pd.DataFrame) -> pd.DataFrame:
    """
    Across-outcome spread of the point estimates per model and contrast.

    ``variance_ratio`` is hierarchical / single-level; below 1 means the
    partial-pooling estimates sit closer together.
    """
    rows = []
    for contrast, frame in combined.groupby("contrast", sort=False):
        row = {"contrast": contrast}
        for model in MODEL_TYPES:
            est = frame.loc[frame["model"] == model, "estimate"]
            row[f"variance_{model}"] = float(est.var(ddof=1)) if len(est) > 1 else np.nan
            row[f"mean_{model}"] = float(est.mean()) if len(est) else np.nan
        single = row[f"variance_{SINGLE_LEVEL}"]
        hier = row[f"variance_{HIERARCHICAL}"]
        row["variance_ratio"] = hier / single if single and np.isfinite(hier) else np.nan
        rows.append(row)
    return pd.DataFrame(rows)


def _contrast_table_markdown(combined: pd.DataFrame, contrast: str) -> list[str]:
    subset = combined[combined["contrast"] == contrast]
    models = [m for m in MODEL_TYPES if m in set(subset["model"])]
    lines = [
        "| Outcome | " + " | ".join(models) + " |",
        "|---|" + "---|" * len(models),
    ]
    for outcome in pd.unique(subset["outcome"]):
        cells = []
        for model in models:
            row = subset[(subset["outcome"] == outcome) & (subset["model"] == model)]
            if row.empty:
                cells.append("NA")
            else:
                r = row.iloc[0]
                cells.append(format_interval(r["estimate"], r["lower"], r["upper"]))
        lines.append(f"| {OUTCOME_LABELS.get(outcome, outcome)} | " + " | ".join(cells) + " |")
    return lines


def build_narrative(
    participants: pd.DataFrame,
    combined: pd.DataFrame,
    population: Optional[pd.DataFrame] = None,
    shrinkage: Optional[pd.DataFrame] = None,
) -> str:
    """Markdown narrative of the sample, the contrasts and the shrinkage."""
    lines = ["# Exercise intervention and executive function", ""]

    counts = participants["group"].astype(str).value_counts()
    group_text = ", ".join(
        f"{GROUP_LABELS.get(level, level)} n={counts.get(level, 0)}" for level in GROUP_LABELS
    )
    lines += [
        "## Sample",
        "",
        f"{len(participants)} participants ({group_text}). Scores were standardized per "
        "outcome against the pre-test distribution and oriented so that higher values "
        "mean better performance.",
        "",
    ]

    lines += [
        "## Models",
        "",
        "- **Single-level (no pooling):** one OLS regression per outcome, "
        "`post_z ~ pre_z + group`; 95% normal-approximation intervals.",
        "- **Hierarchical (partial pooling):** one Bayesian multilevel model with "
        "intercept, pre-test and group effects varying by outcome and by participant; "
        "95% percentile credible intervals.",
        "",
    ]

    for contrast in pd.unique(combined["contrast"]):
        lines += [f"## {CONTRAST_LABELS.get(contrast, contrast)} (`{contrast}`)", ""]
        lines += _contrast_table_markdown(combined, contrast)
        lines.append("")

        if population is not None and len(population):
            pop = population[population["contrast"] == contrast]
            if len(pop):
                r = pop.iloc[0]
                lines += [
                    "Population-average hierarchical estimate: "
                    f"{format_interval(r['estimate'], r['lower'], r['upper'])}.",
                    "",
                ]

        if shrinkage is not None and len(shrinkage):
            sh = shrinkage[shrinkage["contrast"] == contrast]
            if len(sh) and np.isfinite(sh["variance_ratio"].iloc[0]):
                ratio = float(sh["variance_ratio"].iloc[0])
                direction = "narrower" if ratio < 1 else "wider"
                lines += [
                    f"Across outcomes the hierarchical estimates are {direction} than the "
                    f"single-level ones (variance ratio {ratio:.2f}).",
                    "",
                ]

    return "\n".join(lines)


def write_narrative(
    text: str,
    output_dir: Optional[Union[str, Path]] = None,
    filename: str = "report.md",
    verbose: bool = True,
) -> Path:
    path = get_output_dir(output_dir) / filename
    path.write_text(text, encoding="utf-8")
    if verbose:
        print(f"  Saved: {path}")
    return path
