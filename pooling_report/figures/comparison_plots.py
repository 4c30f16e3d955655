"""
Contrast Comparison Figures
===========================

Point-and-interval plots of every outcome's contrast, single-level and
hierarchical side by side. A dashed line marks the population-average
hierarchical estimate; the instability-vs-stability panel also gets a zero
line.

Output:
    results/contrast_<contrast>.png
    results/contrast_<contrast>.pdf
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")  # Headless backend
import matplotlib.pyplot as plt
import seaborn as sns

from pooling_report.preprocessing.constants import (
    CONTRAST_LABELS,
    HIERARCHICAL,
    MODEL_TYPES,
    OUTCOME_LABELS,
    OUTCOME_NAMES,
    ZERO_REFERENCE_CONTRASTS,
)
from pooling_report.utils import get_output_dir

sns.set_style("whitegrid")

MODEL_COLORS = dict(zip(MODEL_TYPES, sns.color_palette("Set2", len(MODEL_TYPES))))
DODGE = 0.18


def plot_contrast_comparison(
    combined: pd.DataFrame,
    population: Optional[pd.DataFrame],
    contrast: str,
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """
    Draw one contrast's outcome-by-model comparison onto ``ax``.

    Parameters
    ----------
    combined : pd.DataFrame
        Stacked contrast table (model, contrast, outcome, estimate, lower, upper).
    population : pd.DataFrame, optional
        Population-average hierarchical contrasts; adds the reference line.
    contrast : str
        Contrast to draw.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(9, 4.8))

    subset = combined[combined["contrast"] == contrast]
    outcomes = [o for o in OUTCOME_NAMES if o in set(subset["outcome"])]
    outcomes += sorted(set(subset["outcome"]) - set(outcomes))
    x = np.arange(len(outcomes), dtype=float)

    models = [m for m in MODEL_TYPES if m in set(subset["model"])]
    offsets = (np.arange(len(models)) - (len(models) - 1) / 2) * 2 * DODGE

    for model, offset in zip(models, offsets):
        rows = subset[subset["model"] == model].set_index("outcome").reindex(outcomes)
        y = rows["estimate"].to_numpy(dtype=float)
        yerr = np.vstack([
            y - rows["lower"].to_numpy(dtype=float),
            rows["upper"].to_numpy(dtype=float) - y,
        ])
        ax.errorbar(
            x + offset,
            y,
            yerr=yerr,
            fmt="o",
            color=MODEL_COLORS.get(model),
            ecolor=MODEL_COLORS.get(model),
            capsize=4,
            markersize=6,
            linewidth=1.5,
            label=model,
        )

    if population is not None and len(population):
        pop = population[population["contrast"] == contrast]
        if len(pop):
            ax.axhline(
                float(pop["estimate"].iloc[0]),
                color=MODEL_COLORS.get(HIERARCHICAL, "gray"),
                linestyle="--",
                linewidth=1.2,
                label="population average",
            )
    if contrast in ZERO_REFERENCE_CONTRASTS:
        ax.axhline(0, color="black", linewidth=1, linestyle="-", alpha=0.6)

    ax.set_xticks(x)
    ax.set_xticklabels([OUTCOME_LABELS.get(o, o) for o in outcomes], rotation=30, ha="right")
    ax.set_ylabel("Contrast (standardized post score)")
    ax.set_title(CONTRAST_LABELS.get(contrast, contrast))
    ax.grid(True, axis="x", alpha=0.2)
    ax.legend(frameon=False, fontsize=9)
    return ax


def save_contrast_figures(
    combined: pd.DataFrame,
    population: Optional[pd.DataFrame],
    output_dir: Optional[Union[str, Path]] = None,
    verbose: bool = True,
) -> list[Path]:
    """Render one figure per contrast as PNG and PDF."""
    output_dir = get_output_dir(output_dir)
    paths = []
    for contrast in pd.unique(combined["contrast"]):
        fig, ax = plt.subplots(figsize=(9, 4.8))
        plot_contrast_comparison(combined, population, contrast, ax=ax)
        fig.tight_layout()

        for ext in ("png", "pdf"):
            path = output_dir / f"contrast_{contrast}.{ext}"
            fig.savefig(path, dpi=160)
            paths.append(path)
            if verbose:
                print(f"  Saved: {path}")
        plt.close(fig)
    return paths
