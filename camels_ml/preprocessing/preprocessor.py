"""Fit-once feature preprocessing.

`fit_preprocessor` walks the steps in order, learning each step's statistics
from the output of the previously fitted steps, and freezes them.
`apply_preprocessor` replays the frozen steps on any rows (fold train, fold
validation, test) without looking at those rows' statistics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from camels_ml.exceptions import SchemaError, TransformError
from camels_ml.preprocessing.steps import (
    DropColumns,
    DropMissing,
    EncodeCategorical,
    Interaction,
    LogTransform,
    Normalize,
    PreprocessingSpec,
    Step,
)
from camels_ml.utils.logger import setup_logger

logger = setup_logger("preprocessor")


@dataclass(frozen=True)
class NormalizeState:
    means: dict[str, float]
    stds: dict[str, float]


@dataclass(frozen=True)
class EncodeState:
    vocabularies: dict[str, tuple[str, ...]]


@dataclass(frozen=True)
class FrozenPreprocessor:
    """Preprocessing spec plus the statistics learned from the fitting rows."""

    spec: PreprocessingSpec
    states: tuple[Any, ...]
    target: str
    id_column: str | None
    feature_columns: tuple[str, ...]
    n_fit_rows: int

    def statistics(self) -> dict[str, Any]:
        """Learned statistics keyed by step position, for reporting and comparison."""
        stats: dict[str, Any] = {}
        for position, state in enumerate(self.states):
            if isinstance(state, NormalizeState):
                stats[f"{position}:normalize"] = {
                    "means": dict(state.means),
                    "stds": dict(state.stds),
                }
            elif isinstance(state, EncodeState):
                stats[f"{position}:encode"] = {
                    col: list(levels) for col, levels in state.vocabularies.items()
                }
        return stats


def _require(frame: pd.DataFrame, columns, step: Step) -> None:
    missing = [col for col in columns if col not in frame.columns]
    if missing:
        raise SchemaError(
            f"{type(step).__name__} requires missing column(s) {missing}"
        )


def _predictors(frame: pd.DataFrame, target: str, id_column: str | None) -> list[str]:
    return [col for col in frame.columns if col not in (target, id_column)]


def _fit_step(
    step: Step, frame: pd.DataFrame, target: str, id_column: str | None
) -> Any:
    """Learn whatever a step needs from the rows it is fitted on."""
    if isinstance(step, Normalize):
        if step.columns is None:
            columns = [
                col
                for col in _predictors(frame, target, id_column)
                if pd.api.types.is_numeric_dtype(frame[col])
                and not pd.api.types.is_bool_dtype(frame[col])
            ]
        else:
            _require(frame, step.columns, step)
            columns = list(step.columns)

        means, stds = {}, {}
        for col in columns:
            values = frame[col].astype(float)
            mean = float(values.mean())
            std = float(values.std(ddof=1))
            if not np.isfinite(std) or std == 0:
                logger.warning(
                    f"Column '{col}' has zero variance in {len(frame)} fitting rows; scaling by 1"
                )
                std = 1.0
            if not np.isfinite(mean):
                raise TransformError(f"Cannot normalize '{col}': no finite values to fit on")
            means[col] = mean
            stds[col] = std
        return NormalizeState(means=means, stds=stds)

    if isinstance(step, EncodeCategorical):
        _require(frame, step.columns, step)
        vocabularies = {
            col: tuple(sorted({str(v) for v in frame[col].dropna()}))
            for col in step.columns
        }
        return EncodeState(vocabularies=vocabularies)

    if isinstance(step, DropMissing):
        if step.columns is None:
            return tuple(_predictors(frame, target, id_column)) + (
                (target,) if target in frame.columns else ()
            )
        _require(frame, step.columns, step)
        return step.columns

    return None


def _apply_step(
    step: Step,
    state: Any,
    frame: pd.DataFrame,
    target: str,
) -> pd.DataFrame:
    """Apply one fitted step; never modifies ``frame`` in place."""
    if isinstance(step, DropColumns):
        _require(frame, step.columns, step)
        return frame.drop(columns=list(step.columns))

    if isinstance(step, LogTransform):
        # The target may be absent when predicting new rows.
        columns = [col for col in step.columns if col != target or col in frame.columns]
        _require(frame, columns, step)
        result = frame.copy()
        invalid_rows = pd.Series(False, index=result.index)
        for col in columns:
            shifted = result[col].astype(float) + step.offset
            invalid = shifted.notna() & (shifted <= 0)
            if invalid.any():
                if step.on_invalid == "fail":
                    raise TransformError(
                        f"log undefined for {int(invalid.sum())} non-positive value(s) "
                        f"in '{col}' (offset={step.offset})"
                    )
                invalid_rows |= invalid
        if invalid_rows.any():
            logger.debug(f"LogTransform dropped {int(invalid_rows.sum())} row(s)")
            result = result.loc[~invalid_rows].copy()
        for col in columns:
            result[col] = np.log(result[col].astype(float) + step.offset)
        return result

    if isinstance(step, Interaction):
        _require(frame, (step.left, step.right), step)
        result = frame.copy()
        result[step.output] = result[step.left].astype(float) * result[step.right].astype(float)
        return result

    if isinstance(step, EncodeCategorical):
        _require(frame, step.columns, step)
        result = frame.copy()
        for col in step.columns:
            as_text = result[col].map(lambda v: str(v) if pd.notna(v) else None)
            levels = state.vocabularies[col]
            if step.drop_first:
                levels = levels[1:]
            # Missing source values stay missing so a later DropMissing removes them
            missing = as_text.isna()
            for level in levels:
                result[f"{col}_{level}"] = (as_text == level).astype(float).mask(missing)
            result = result.drop(columns=[col])
        return result

    if isinstance(step, Normalize):
        _require(frame, state.means, step)
        result = frame.copy()
        for col, mean in state.means.items():
            result[col] = (result[col].astype(float) - mean) / state.stds[col]
        return result

    if isinstance(step, DropMissing):
        # The target may be absent when predicting new rows.
        columns = [col for col in state if col != target or col in frame.columns]
        _require(frame, columns, step)
        return frame.dropna(subset=columns)

    raise TypeError(f"Unsupported preprocessing step: {step!r}")


def fit_preprocessor(
    spec: PreprocessingSpec,
    rows: pd.DataFrame,
    target: str,
    id_column: str | None = None,
) -> FrozenPreprocessor:
    """Learn and freeze preprocessing statistics from ``rows`` only.

    Args:
        spec: Ordered preprocessing steps
        rows: Fitting rows (a fold's training portion, or the full Train split)
        target: Target column name, never treated as a predictor
        id_column: Identifier column, never treated as a predictor

    Returns:
        FrozenPreprocessor holding per-step statistics

    Raises:
        SchemaError: A step references a missing column
        TransformError: A step is undefined for a value under its policy
    """
    frame = rows
    states = []
    for step in spec.steps:
        state = _fit_step(step, frame, target, id_column)
        frame = _apply_step(step, state, frame, target)
        states.append(state)

    return FrozenPreprocessor(
        spec=spec,
        states=tuple(states),
        target=target,
        id_column=id_column,
        feature_columns=tuple(_predictors(frame, target, id_column)),
        n_fit_rows=len(rows),
    )


def apply_preprocessor(frozen: FrozenPreprocessor, rows: pd.DataFrame) -> pd.DataFrame:
    """Replay the frozen steps on ``rows``; a pure function of the frozen state."""
    frame = rows
    for step, state in zip(frozen.spec.steps, frozen.states):
        frame = _apply_step(step, state, frame, frozen.target)
    if frame is rows:
        frame = rows.copy()
    return frame


def feature_matrix(frozen: FrozenPreprocessor, transformed: pd.DataFrame) -> pd.DataFrame:
    """Select the fitted feature columns, in fitted order, from transformed rows."""
    missing = [col for col in frozen.feature_columns if col not in transformed.columns]
    if missing:
        raise SchemaError(f"Transformed rows are missing feature column(s) {missing}")
    return transformed.loc[:, list(frozen.feature_columns)]
