"""Tests for cross-validation configuration and fold management."""

import numpy as np
import pytest

from bayes_tuner.core.data.cv import CVConfig, CVFold, CVResult, FoldResult, create_folds


def _fold(idx):
    return CVFold(fold_idx=idx, train_indices=np.array([0, 1]), val_indices=np.array([2]))


class TestCVConfig:
    """Tests for CVConfig validation."""

    def test_defaults(self):
        """Verify default configuration."""
        config = CVConfig()

        assert config.n_splits == 5
        assert config.n_repeats == 1
        assert config.total_folds == 5

    def test_invalid_splits(self):
        """Verify fewer than two splits is rejected."""
        with pytest.raises(ValueError, match="n_splits"):
            CVConfig(n_splits=1)

    def test_invalid_repeats(self):
        """Verify zero repeats is rejected."""
        with pytest.raises(ValueError, match="n_repeats"):
            CVConfig(n_repeats=0)


class TestCreateFolds:
    """Tests for create_folds."""

    def test_folds_partition_rows(self):
        """Verify validation indices cover every row exactly once."""
        folds = create_folds(23, CVConfig(n_splits=4, random_state=0))

        val = np.concatenate([f.val_indices for f in folds])
        assert sorted(val) == list(range(23))
        for fold in folds:
            assert not set(fold.train_indices) & set(fold.val_indices)

    def test_deterministic(self):
        """Verify equal seeds give equal folds."""
        a = create_folds(30, CVConfig(n_splits=3, random_state=1))
        b = create_folds(30, CVConfig(n_splits=3, random_state=1))

        for fa, fb in zip(a, b):
            np.testing.assert_array_equal(fa.val_indices, fb.val_indices)

    def test_repeated_folds_indexed_globally(self):
        """Verify repeated CV numbers folds across repeats."""
        folds = create_folds(20, CVConfig(n_splits=4, n_repeats=2, random_state=0))

        assert [f.fold_idx for f in folds] == list(range(8))
        assert [f.repeat_idx for f in folds] == [0] * 4 + [1] * 4

    def test_too_few_rows(self):
        """Verify more folds than rows is rejected."""
        with pytest.raises(ValueError, match="Cannot split"):
            create_folds(3, CVConfig(n_splits=5))


class TestCVResult:
    """Tests for CVResult aggregation."""

    def test_sorted_by_fold_index(self):
        """Verify results are reassembled in fold order."""
        results = [
            FoldResult(fold=_fold(2), val_score=3.0),
            FoldResult(fold=_fold(0), val_score=1.0),
            FoldResult(fold=_fold(1), val_score=2.0),
        ]

        cv = CVResult(fold_results=results)

        assert [r.fold_idx for r in cv.fold_results] == [0, 1, 2]
        np.testing.assert_array_equal(cv.val_scores, [1.0, 2.0, 3.0])

    def test_mean_and_std(self):
        """Verify summary statistics."""
        cv = CVResult(
            fold_results=[
                FoldResult(fold=_fold(0), val_score=1.0, fit_time=0.5),
                FoldResult(fold=_fold(1), val_score=3.0, fit_time=1.5),
            ]
        )

        assert cv.mean_score == pytest.approx(2.0)
        assert cv.std_score == pytest.approx(1.0)
        assert cv.total_fit_time == pytest.approx(2.0)

    def test_mean_metrics(self):
        """Verify every metric is averaged across folds."""
        cv = CVResult(
            fold_results=[
                FoldResult(fold=_fold(0), val_score=1.0, metrics={"rmse": 1.0, "mape": 10.0}),
                FoldResult(fold=_fold(1), val_score=2.0, metrics={"rmse": 2.0, "mape": 20.0}),
            ]
        )

        assert cv.mean_metrics == {"rmse": 1.5, "mape": 15.0}
