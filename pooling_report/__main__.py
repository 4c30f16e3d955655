"""
Report CLI
==========

Command-line interface for the no-pooling vs partial-pooling report.

Usage:
    python -m pooling_report                                  # Default workbook
    python -m pooling_report --data trial.xlsx --sheet Data
    python -m pooling_report --draws 1000 --tune 1000 --chains 4
    python -m pooling_report --skip-hierarchical --quiet
"""

import argparse

from . import run
from .preprocessing.constants import DEFAULT_DATA_PATH, DEFAULT_SHEET_NAME, RESULTS_DIR


def main():
    parser = argparse.ArgumentParser(
        description="Exercise-intervention EF report: no pooling vs partial pooling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m pooling_report --data data/raw/exercise_ef_trial.xlsx
    python -m pooling_report --chains 4 --cores 4 --seed 7
    python -m pooling_report --skip-hierarchical
        """
    )

    parser.add_argument('--data', '-d', type=str, default=str(DEFAULT_DATA_PATH),
                        help='Trial workbook (.xlsx)')
    parser.add_argument('--sheet', type=str, default=DEFAULT_SHEET_NAME,
                        help='Sheet with one row per participant')
    parser.add_argument('--output', '-o', type=str, default=str(RESULTS_DIR),
                        help='Output directory for tables, figures and report.md')
    parser.add_argument('--draws', type=int, default=2000, help='Retained draws per chain')
    parser.add_argument('--tune', type=int, default=1000, help='Warmup draws per chain (discarded)')
    parser.add_argument('--chains', type=int, default=4, help='Number of MCMC chains')
    parser.add_argument('--cores', type=int, default=1, help='Chains sampled in parallel')
    parser.add_argument('--target-accept', type=float, default=0.9, help='NUTS target acceptance')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    parser.add_argument('--skip-hierarchical', action='store_true',
                        help='Run the single-level models only')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Suppress verbose output')

    args = parser.parse_args()

    sampler_config = None
    if not args.skip_hierarchical:
        from .hierarchical import SamplerConfig

        sampler_config = SamplerConfig(
            draws=args.draws,
            tune=args.tune,
            chains=args.chains,
            cores=args.cores,
            target_accept=args.target_accept,
            random_seed=args.seed,
        )

    run(
        data_path=args.data,
        sheet_name=args.sheet,
        output_dir=args.output,
        sampler_config=sampler_config,
        skip_hierarchical=args.skip_hierarchical,
        verbose=not args.quiet,
    )


if __name__ == "__main__":
    main()
