"""Tests for the initial split and k-fold resampling."""

import pandas as pd
import pytest

from camels_ml.selection.resampling import initial_split, k_fold


class TestInitialSplit:
    """Test the Train/Test partition."""

    def test_sizes_and_disjointness(self, basins):
        train, test = initial_split(basins, proportion=0.8, seed=42)

        assert len(train) == 80
        assert len(test) == 20
        assert set(train["gauge_id"]).isdisjoint(test["gauge_id"])
        assert set(train["gauge_id"]) | set(test["gauge_id"]) == set(basins["gauge_id"])

    def test_reproducible(self, basins):
        first, _ = initial_split(basins, seed=7)
        second, _ = initial_split(basins, seed=7)
        pd.testing.assert_frame_equal(first, second)

    def test_seed_changes_split(self, basins):
        first, _ = initial_split(basins, seed=1)
        second, _ = initial_split(basins, seed=2)
        assert set(first["gauge_id"]) != set(second["gauge_id"])

    def test_floor_of_proportion(self, basins):
        train, test = initial_split(basins.iloc[:11], proportion=0.75)
        assert len(train) == 8
        assert len(test) == 3

    @pytest.mark.parametrize("proportion", [0.0, 1.0, -0.2, 1.5])
    def test_invalid_proportion(self, basins, proportion):
        with pytest.raises(ValueError, match="proportion"):
            initial_split(basins, proportion=proportion)

    def test_empty_partition(self, basins):
        with pytest.raises(ValueError, match="empty partition"):
            initial_split(basins.iloc[:1], proportion=0.5)

    def test_returns_copies(self, basins):
        train, _ = initial_split(basins)
        train["x1"] = 0.0
        assert (basins["x1"] != 0.0).all()


class TestKFold:
    """Test k-fold partitioning of the training rows."""

    def test_validation_covers_every_row_once(self, basins):
        train, _ = initial_split(basins)
        folds = k_fold(train, k=7, seed=3)

        validation_ids = pd.concat([f.validation["gauge_id"] for f in folds])
        assert len(folds) == 7
        assert validation_ids.is_unique
        assert set(validation_ids) == set(train["gauge_id"])

    def test_balanced_sizes(self, basins):
        train, _ = initial_split(basins)
        sizes = [len(f.validation) for f in k_fold(train, k=7)]
        assert max(sizes) - min(sizes) <= 1

    def test_train_and_validation_disjoint(self, basins):
        train, _ = initial_split(basins)
        for fold in k_fold(train, k=5):
            assert set(fold.train["gauge_id"]).isdisjoint(fold.validation["gauge_id"])
            assert len(fold.train) + len(fold.validation) == len(train)

    def test_fold_ids(self, basins):
        folds = k_fold(basins, k=3)
        assert [f.id for f in folds] == ["Fold01", "Fold02", "Fold03"]

    def test_reproducible(self, basins):
        first = k_fold(basins, k=4, seed=11)
        second = k_fold(basins, k=4, seed=11)
        for a, b in zip(first, second):
            pd.testing.assert_frame_equal(a.validation, b.validation)

    def test_too_few_folds(self, basins):
        with pytest.raises(ValueError, match="at least 2"):
            k_fold(basins, k=1)

    def test_more_folds_than_rows(self, basins):
        with pytest.raises(ValueError, match="exceeds"):
            k_fold(basins.iloc[:5], k=6)
