#!/usr/bin/env python3
"""Compare regressors on CAMELS basin attributes, tune the winner, score it on Test."""

import argparse
from pathlib import Path
from typing import List, Optional

import pandas as pd

from camels_ml.config.settings import Settings
from camels_ml.readers.camels_reader import read_camels_attributes, read_dataset
from camels_ml.selection.io import save_pipeline_report
from camels_ml.selection.pipeline import run_pipeline
from camels_ml.utils.helpers import (
    create_experiment_name,
    ensure_directory,
    format_duration,
    validate_file_exists,
)
from camels_ml.utils.logger import set_log_level, setup_logger


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Select and tune a regressor for a CAMELS basin attribute"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML configuration file"
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--dataset",
        type=Path,
        help="CSV with one row per basin (overrides data.path)"
    )
    source.add_argument(
        "--camels-dir",
        type=Path,
        help="Directory with camels_<group>.txt files (overrides data.camels_dir)"
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Base output directory (overrides runtime.output_dir)"
    )

    parser.add_argument(
        "--n-workers",
        type=int,
        help="Worker processes for fold evaluation (overrides runtime.n_workers)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides runtime.log_level)"
    )

    parser.add_argument(
        "--no-tuning",
        action="store_true",
        help="Skip hyperparameter tuning and finalize with fixed parameters"
    )

    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Configuration file (or defaults) with command line overrides applied."""
    if args.config:
        validate_file_exists(args.config, "Configuration file")
        settings = Settings.from_yaml(args.config)
    else:
        settings = Settings()

    if args.dataset:
        settings.data.path = args.dataset
        settings.data.camels_dir = None
    if args.camels_dir:
        settings.data.camels_dir = args.camels_dir
        settings.data.path = None
    if args.output_dir:
        settings.runtime.output_dir = args.output_dir
    if args.n_workers:
        settings.runtime.n_workers = max(1, args.n_workers)
    if args.log_level:
        settings.runtime.log_level = args.log_level
    if args.no_tuning:
        settings.tuning.enabled = False
    return settings


def load_basins(settings: Settings) -> pd.DataFrame:
    """Read the basin table named by the data section."""
    if settings.data.path is not None:
        return read_dataset(settings.data.path, settings.data.id_column)
    if settings.data.camels_dir is not None:
        return read_camels_attributes(
            settings.data.camels_dir,
            settings.data.attribute_groups,
            settings.data.id_column,
        )
    raise ValueError("No input data: set data.path or data.camels_dir (or pass --dataset)")


def main(argv: Optional[List[str]] = None) -> None:
    """Main model-selection function."""
    args = parse_arguments(argv)
    settings = load_settings(args)

    set_log_level(settings.runtime.log_level)
    logger = setup_logger("run_selection", level=settings.runtime.log_level)

    experiment_dir = settings.runtime.output_dir / create_experiment_name(
        extra_tags=[settings.data.target]
    )
    ensure_directory(experiment_dir)
    settings.to_yaml(experiment_dir / "config.yaml")

    logger.info(f"Target: {settings.data.target}")
    logger.info(f"Features: {settings.data.features}")
    logger.info(f"Output directory: {experiment_dir}")

    try:
        dataset = load_basins(settings)
        report = run_pipeline(dataset, settings)
        save_pipeline_report(report, experiment_dir)
    except Exception as e:
        logger.error(f"Model selection failed: {str(e)}", exc_info=True)
        raise

    print("\nMODEL SELECTION SUMMARY")
    print("=" * 50)
    print(f"Basins: {report.n_train} train / {report.n_test} test")
    print(f"Selected estimator: {report.winner}")
    if report.tuning is not None:
        print(f"Tuned parameters: {report.tuning.best_params}")
    for row in report.test_metrics.itertuples(index=False):
        print(f"Test {row.metric}: {row.value:.4f}")
    if not report.failures.empty:
        print(f"Failed folds: {len(report.failures)} (see failures.csv)")
    print(f"Elapsed: {format_duration(report.elapsed_seconds)}")
    print(f"\nResults saved to: {experiment_dir}")
    print("=" * 50)


if __name__ == "__main__":
    main()
