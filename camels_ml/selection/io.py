"""I/O utilities for saving model-selection results."""

from pathlib import Path

import joblib

from camels_ml.selection.pipeline import PipelineReport
from camels_ml.utils.helpers import ensure_directory, save_dict_to_yaml
from camels_ml.utils.logger import setup_logger

logger = setup_logger("selection_io")


def save_pipeline_report(report: PipelineReport, output_dir: Path) -> dict[str, Path]:
    """Write rankings, parameters, held-out results and the final model.

    Args:
        report: Finished pipeline report
        output_dir: Directory to save results

    Returns:
        Mapping from artefact name to the written path
    """
    ensure_directory(output_dir)
    paths = {
        "ranking": output_dir / "ranking.csv",
        "best_params": output_dir / "best_params.yaml",
        "test_metrics": output_dir / "test_metrics.csv",
        "test_predictions": output_dir / "test_predictions.csv",
        "failures": output_dir / "failures.csv",
        "model": output_dir / "final_model.joblib",
    }

    report.ranking.to_csv(paths["ranking"], index=False)
    report.test_metrics.to_csv(paths["test_metrics"], index=False)
    report.predictions.to_csv(paths["test_predictions"], index=False)
    report.failures.to_csv(paths["failures"], index=False)

    save_dict_to_yaml(
        {
            "estimator": report.winner,
            "kind": report.final.model.kind,
            "params": _plain(report.best_params),
            "tuned": _plain(report.tuning.best_params) if report.tuning else {},
            "n_train": report.n_train,
            "n_test": report.n_test,
        },
        paths["best_params"],
    )

    if report.tuning is not None:
        paths["tuning_trials"] = output_dir / "tuning_trials.csv"
        report.tuning.trials_frame().to_csv(paths["tuning_trials"], index=False)
        paths["tuning_ranking"] = output_dir / "tuning_ranking.csv"
        report.tuning.ranking().to_csv(paths["tuning_ranking"], index=False)

    joblib.dump(report.final.model, paths["model"])

    logger.info(f"Saved selection results to {output_dir}")
    return paths


def _plain(params: dict) -> dict:
    """Convert numpy scalars so the YAML stays human readable."""
    plain = {}
    for name, value in params.items():
        plain[name] = value.item() if hasattr(value, "item") else value
    return plain
