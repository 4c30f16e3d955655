"""
Common Utilities for Report Scripts
===================================

Output paths, console formatting and table writing shared by every stage.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import pandas as pd

from pooling_report.preprocessing.constants import RESULTS_DIR


def get_output_dir(output_dir: Optional[Union[str, Path]] = None) -> Path:
    """Return (and create) the directory report artifacts are written to."""
    path = Path(output_dir) if output_dir is not None else RESULTS_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_table(
    df: pd.DataFrame,
    output_dir: Union[str, Path],
    filename: str,
    verbose: bool = True,
) -> Path:
    """Write a results table as UTF-8 CSV and report the path."""
    path = get_output_dir(output_dir) / filename
    df.to_csv(path, index=False, encoding="utf-8-sig")
    if verbose:
        print(f"  Saved: {path}")
    return path


def format_coefficient(value: float, decimals: int = 3) -> str:
    """Format coefficient for publication."""
    if pd.isna(value):
        return "NA"
    return f"{value:.{decimals}f}"


def format_interval(estimate: float, lower: float, upper: float, decimals: int = 2) -> str:
    """``estimate [lower, upper]`` with fixed decimals."""
    return (
        f"{format_coefficient(estimate, decimals)} "
        f"[{format_coefficient(lower, decimals)}, {format_coefficient(upper, decimals)}]"
    )


def print_section_header(title: str, width: int = 70) -> None:
    """Print formatted section header."""
    print("\n" + "=" * width)
    print(title)
    print("=" * width)
