"""Train/test splitting and k-fold resampling of basin tables."""

from dataclasses import dataclass

import pandas as pd
from sklearn.model_selection import KFold, train_test_split

from camels_ml.utils.logger import setup_logger

logger = setup_logger("resampling")


@dataclass(frozen=True)
class Fold:
    """One cross-validation split of the training rows."""

    index: int
    train: pd.DataFrame
    validation: pd.DataFrame

    @property
    def id(self) -> str:
        return f"Fold{self.index + 1:02d}"


def initial_split(
    dataset: pd.DataFrame, proportion: float = 0.8, seed: int = 42
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Split rows into Train and Test without replacement.

    Args:
        dataset: Basin table
        proportion: Share of rows assigned to Train, in (0, 1)
        seed: Random seed; the same seed and proportion give the same split

    Returns:
        (train, test) copies of the selected rows
    """
    if not 0 < proportion < 1:
        raise ValueError(f"proportion must be in (0, 1), got {proportion}")

    n_train = int(len(dataset) * proportion)
    if n_train == 0 or n_train == len(dataset):
        raise ValueError(
            f"proportion {proportion} leaves an empty partition for {len(dataset)} rows"
        )

    train, test = train_test_split(
        dataset, train_size=n_train, random_state=seed, shuffle=True
    )
    logger.info(f"Initial split (seed={seed}): {len(train)} train / {len(test)} test rows")
    return train.copy(), test.copy()


def k_fold(train: pd.DataFrame, k: int = 10, seed: int = 42) -> tuple[Fold, ...]:
    """Partition Train into ``k`` folds whose validation parts cover every row once.

    Validation sizes differ by at most one row.
    """
    if k < 2:
        raise ValueError(f"k must be at least 2, got {k}")
    if k > len(train):
        raise ValueError(f"k={k} exceeds the {len(train)} available training rows")

    splitter = KFold(n_splits=k, shuffle=True, random_state=seed)
    folds = tuple(
        Fold(
            index=i,
            train=train.iloc[train_idx].copy(),
            validation=train.iloc[val_idx].copy(),
        )
        for i, (train_idx, val_idx) in enumerate(splitter.split(train))
    )
    logger.debug(
        f"{k}-fold resampling: validation sizes {[len(f.validation) for f in folds]}"
    )
    return folds
