"""Readers for CAMELS basin attribute tables.

CAMELS ships one semicolon-separated text file per attribute group
(``camels_clim.txt``, ``camels_soil.txt``, ...), each keyed by ``gauge_id``.
Identifiers are read as strings so USGS leading zeros survive.
"""

from functools import reduce
from pathlib import Path

import pandas as pd

from camels_ml.exceptions import SchemaError
from camels_ml.utils.helpers import validate_file_exists
from camels_ml.utils.logger import setup_logger

loader_logger = setup_logger("camels_reader")

CAMELS_ATTRIBUTE_GROUPS = ("clim", "geol", "soil", "topo", "vege", "hydro")


def check_unique_ids(dataset: pd.DataFrame, id_column: str) -> None:
    """Raise SchemaError unless ``id_column`` exists and holds unique values."""
    if id_column not in dataset.columns:
        raise SchemaError(f"Identifier column '{id_column}' not found")
    duplicated = dataset[id_column][dataset[id_column].duplicated()]
    if not duplicated.empty:
        raise SchemaError(
            f"Identifier column '{id_column}' has {len(duplicated)} duplicate value(s), "
            f"e.g. {duplicated.iloc[0]}"
        )


def read_camels_attributes(
    camels_dir: str | Path,
    groups: list[str] | tuple[str, ...] = CAMELS_ATTRIBUTE_GROUPS,
    id_column: str = "gauge_id",
) -> pd.DataFrame:
    """Read and outer-join CAMELS attribute files on the gauge identifier.

    Args:
        camels_dir: Directory containing ``camels_<group>.txt`` files
        groups: Attribute groups to join, in order
        id_column: Identifier column shared by all files

    Returns:
        One row per basin with every attribute column. A column present in
        several groups is kept from the first group that has it.
    """
    camels_dir = Path(camels_dir)
    frames = []
    seen_columns: set[str] = set()
    for group in groups:
        path = camels_dir / f"camels_{group}.txt"
        validate_file_exists(path, f"CAMELS '{group}' attributes")
        frame = pd.read_csv(path, sep=";", dtype={id_column: str})
        frame.columns = [col.strip() for col in frame.columns]
        check_unique_ids(frame, id_column)

        repeated = [c for c in frame.columns if c in seen_columns and c != id_column]
        if repeated:
            loader_logger.debug(f"Skipping repeated columns from '{group}': {repeated}")
            frame = frame.drop(columns=repeated)
        seen_columns.update(frame.columns)
        frames.append(frame)

    if not frames:
        raise ValueError("At least one attribute group is required")

    dataset = reduce(
        lambda left, right: pd.merge(left, right, on=id_column, how="outer"), frames
    )
    loader_logger.info(
        f"Joined {len(frames)} CAMELS attribute groups: "
        f"{len(dataset)} basins x {dataset.shape[1] - 1} attributes"
    )
    return dataset


def read_dataset(path: str | Path, id_column: str = "gauge_id") -> pd.DataFrame:
    """Read a single basin table (CSV with a header row)."""
    path = Path(path)
    validate_file_exists(path, "Dataset")
    dataset = pd.read_csv(path, dtype={id_column: str})
    check_unique_ids(dataset, id_column)
    loader_logger.info(f"Loaded {len(dataset)} basins from {path}")
    return dataset


def select_columns(
    dataset: pd.DataFrame, id_column: str, target: str, features: list[str]
) -> pd.DataFrame:
    """Keep the identifier, target and feature columns, in that order."""
    columns = [id_column, target, *[f for f in features if f not in (id_column, target)]]
    missing = [col for col in columns if col not in dataset.columns]
    if missing:
        raise SchemaError(f"Dataset is missing required column(s) {missing}")
    check_unique_ids(dataset, id_column)
    return dataset.loc[:, columns].copy()
