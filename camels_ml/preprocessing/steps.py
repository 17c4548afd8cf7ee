"""Preprocessing step definitions.

A preprocessing spec is an ordered tuple of immutable step values. Steps carry
only their configuration; statistics are learned by
:func:`camels_ml.preprocessing.preprocessor.fit_preprocessor`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Union

LOG_INVALID_POLICIES = ("fail", "drop")


def _as_tuple(values: Iterable[str] | str | None) -> tuple[str, ...] | None:
    if values is None:
        return None
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True)
class DropColumns:
    """Remove columns that should not reach the model (identifiers, leaky attributes)."""

    columns: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "columns", _as_tuple(self.columns))


@dataclass(frozen=True)
class LogTransform:
    """Natural log of ``value + offset``.

    Non-positive values either fail the step (``on_invalid="fail"``) or drop the
    offending rows (``on_invalid="drop"``). Missing values stay missing.
    """

    columns: tuple[str, ...]
    offset: float = 0.0
    on_invalid: str = "fail"

    def __post_init__(self):
        object.__setattr__(self, "columns", _as_tuple(self.columns))
        if self.on_invalid not in LOG_INVALID_POLICIES:
            raise ValueError(
                f"on_invalid must be one of {LOG_INVALID_POLICIES}, got '{self.on_invalid}'"
            )


@dataclass(frozen=True)
class Interaction:
    """Product of two columns, named ``{left}_x_{right}`` unless given a name."""

    left: str
    right: str
    name: str | None = None

    @property
    def output(self) -> str:
        return self.name or f"{self.left}_x_{self.right}"


@dataclass(frozen=True)
class EncodeCategorical:
    """One-hot encoding against the vocabulary seen at fit time."""

    columns: tuple[str, ...]
    drop_first: bool = True

    def __post_init__(self):
        object.__setattr__(self, "columns", _as_tuple(self.columns))


@dataclass(frozen=True)
class Normalize:
    """Centre and scale; ``columns=None`` means every numeric predictor."""

    columns: tuple[str, ...] | None = None

    def __post_init__(self):
        object.__setattr__(self, "columns", _as_tuple(self.columns))


@dataclass(frozen=True)
class DropMissing:
    """Drop rows with missing values; ``columns=None`` means predictors plus target."""

    columns: tuple[str, ...] | None = None

    def __post_init__(self):
        object.__setattr__(self, "columns", _as_tuple(self.columns))


Step = Union[DropColumns, LogTransform, Interaction, EncodeCategorical, Normalize, DropMissing]

STEP_TYPES = {
    "drop_columns": DropColumns,
    "log": LogTransform,
    "interaction": Interaction,
    "encode_categorical": EncodeCategorical,
    "normalize": Normalize,
    "drop_missing": DropMissing,
}


def validate_step_order(steps: tuple[Step, ...]) -> None:
    """Reject step sequences whose order would change or break the result.

    Raises:
        ValueError: If column removal follows a statistic-bearing step, a log
            transform follows an interaction built from the same column, or
            missing-row removal precedes a column-producing step.
    """
    seen_statistic = False
    interaction_inputs: set[str] = set()
    drop_missing_at: int | None = None

    for position, step in enumerate(steps):
        if isinstance(step, DropColumns) and seen_statistic:
            raise ValueError(
                f"Step {position} (DropColumns) must precede Normalize/EncodeCategorical"
            )
        if isinstance(step, LogTransform):
            late = interaction_inputs.intersection(step.columns)
            if late:
                raise ValueError(
                    f"Step {position} (LogTransform) must precede interactions using {sorted(late)}"
                )
        if isinstance(step, (Interaction, EncodeCategorical)) and drop_missing_at is not None:
            raise ValueError(
                f"DropMissing at step {drop_missing_at} must follow every column-producing step"
            )

        if isinstance(step, (Normalize, EncodeCategorical)):
            seen_statistic = True
        if isinstance(step, Interaction):
            interaction_inputs.update((step.left, step.right))
        if isinstance(step, DropMissing):
            drop_missing_at = position


@dataclass(frozen=True)
class PreprocessingSpec:
    """Ordered, validated sequence of preprocessing steps."""

    steps: tuple[Step, ...] = field(default_factory=tuple)

    def __post_init__(self):
        steps = tuple(self.steps)
        for step in steps:
            if not isinstance(step, tuple(STEP_TYPES.values())):
                raise TypeError(f"Unsupported preprocessing step: {step!r}")
        validate_step_order(steps)
        object.__setattr__(self, "steps", steps)

    def __len__(self) -> int:
        return len(self.steps)

    def describe(self) -> list[str]:
        """Human-readable step summary for logs and reports."""
        return [repr(step) for step in self.steps]
