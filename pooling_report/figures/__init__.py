"""Comparison figures for the single-level and hierarchical contrasts."""

from .comparison_plots import (
    MODEL_COLORS,
    plot_contrast_comparison,
    save_contrast_figures,
)

__all__ = [
    'MODEL_COLORS',
    'plot_contrast_comparison',
    'save_contrast_figures',
]
