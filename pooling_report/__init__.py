"""
No Pooling vs Partial Pooling Report
====================================

Exercise-intervention trial: seven executive-function outcomes measured
before and after three training conditions. The report compares
independent per-outcome OLS models with one Bayesian hierarchical model.

Pipeline:
    1. preprocessing   - load workbook, reshape, pre-anchored z-scores
    2. single_level    - descriptives, per-outcome OLS contrasts
    3. hierarchical    - joint multilevel model, per-draw contrasts
    4. reporting       - comparison table, shrinkage, figures, narrative

Usage:
    python -m pooling_report --data data/raw/exercise_ef_trial.xlsx
    python -m pooling_report --skip-hierarchical

    from pooling_report import run
    results = run("data/raw/exercise_ef_trial.xlsx")
"""

from __future__ import annotations

import sys
if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding='utf-8')

import warnings
from pathlib import Path
from typing import Dict, Optional, Union

from pooling_report.preprocessing import (
    DEFAULT_DATA_PATH,
    DEFAULT_SHEET_NAME,
    OUTCOME_LABELS,
    check_standardized,
    load_paired_dataset,
    standardization_parameters,
    standardize_outcomes,
)
from pooling_report.single_level import compute_group_descriptives, run_single_level
from pooling_report.reporting import (
    build_narrative,
    combine_contrast_tables,
    shrinkage_summary,
    write_narrative,
)
from pooling_report.utils import get_output_dir, print_section_header, save_table

__version__ = "0.1.0"


def run(
    data_path: Union[str, Path] = DEFAULT_DATA_PATH,
    sheet_name: str = DEFAULT_SHEET_NAME,
    output_dir: Optional[Union[str, Path]] = None,
    sampler_config=None,
    skip_hierarchical: bool = False,
    verbose: bool = True,
) -> Dict:
    """
    Run the full report.

    Parameters
    ----------
    data_path : str or Path
        Trial workbook.
    sheet_name : str
        Sheet holding one row per participant.
    output_dir : str or Path, optional
        Where tables, figures and report.md go (default: results/).
    sampler_config : SamplerConfig, optional
        NUTS settings for the hierarchical model.
    skip_hierarchical : bool
        Only run the single-level analysis.
    verbose : bool
        Print progress and results.

    Returns
    -------
    dict
        All intermediate and final tables, plus the InferenceData.
    """
    output_dir = get_output_dir(output_dir)
    results: Dict = {}

    if verbose:
        print_section_header("DATA PREPARATION")
    participants, paired = load_paired_dataset(data_path, sheet_name=sheet_name, verbose=verbose)
    standardized = standardize_outcomes(paired)
    if not check_standardized(standardized):
        warnings.warn("Standardized pre scores deviate from mean 0 / SD 1.")

    descriptives = compute_group_descriptives(participants, paired)
    parameters = standardization_parameters(paired, labels=OUTCOME_LABELS)
    save_table(descriptives, output_dir, "descriptives_by_group.csv", verbose=verbose)
    save_table(parameters, output_dir, "standardization_parameters.csv", verbose=verbose)
    results.update(
        participants=participants,
        paired=paired,
        standardized=standardized,
        descriptives=descriptives,
        standardization_parameters=parameters,
    )

    if verbose:
        print_section_header("SINGLE-LEVEL MODELS (NO POOLING)")
    single, emmeans = run_single_level(standardized, verbose=verbose)
    save_table(single, output_dir, "single_level_contrasts.csv", verbose=verbose)
    save_table(emmeans, output_dir, "single_level_emmeans.csv", verbose=verbose)
    results.update(single_level=single, emmeans=emmeans)

    hierarchical = None
    population = None
    if not skip_hierarchical:
        # pymc is heavy to import; only load it when the model runs
        from pooling_report.hierarchical import run_hierarchical, sampler_diagnostics

        if verbose:
            print_section_header("HIERARCHICAL MODEL (PARTIAL POOLING)")
        hierarchical, population, idata = run_hierarchical(
            standardized, config=sampler_config, verbose=verbose
        )
        diagnostics = sampler_diagnostics(idata)
        save_table(hierarchical, output_dir, "hierarchical_contrasts.csv", verbose=verbose)
        save_table(population, output_dir, "population_contrasts.csv", verbose=verbose)
        save_table(diagnostics, output_dir, "hierarchical_diagnostics.csv", verbose=verbose)
        results.update(
            hierarchical=hierarchical,
            population=population,
            diagnostics=diagnostics,
            idata=idata,
        )

    if verbose:
        print_section_header("COMPARISON")
    from pooling_report.figures import save_contrast_figures

    combined = combine_contrast_tables(single, hierarchical)
    shrinkage = shrinkage_summary(combined)
    save_table(combined, output_dir, "contrast_comparison.csv", verbose=verbose)
    save_table(shrinkage, output_dir, "shrinkage_summary.csv", verbose=verbose)
    figures = save_contrast_figures(combined, population, output_dir=output_dir, verbose=verbose)

    narrative = build_narrative(participants, combined, population, shrinkage)
    report_path = write_narrative(narrative, output_dir=output_dir, verbose=verbose)
    results.update(
        comparison=combined,
        shrinkage=shrinkage,
        figures=figures,
        report=report_path,
    )

    if verbose:
        print(f"\n  Report complete: {output_dir}")
    return results


__all__ = ['run', '__version__']
