"""Tests for configuration settings."""

from pathlib import Path

import pytest
import yaml

from camels_ml.config.settings import (
    DataConfig,
    EstimatorConfig,
    ResamplingConfig,
    SelectionConfig,
    Settings,
    StepConfig,
    TunableConfig,
    TuningConfig,
)
from camels_ml.preprocessing import Interaction, LogTransform

CONFIG_DIR = Path(__file__).resolve().parents[1] / "configs"


class TestDefaults:
    """Test default configuration values."""

    def test_data_defaults(self):
        config = DataConfig()
        assert config.target == "q_mean"
        assert config.id_column == "gauge_id"
        assert config.features == ["aridity", "p_mean"]

    def test_resampling_defaults(self):
        config = ResamplingConfig()
        assert config.proportion == 0.8
        assert config.folds == 10
        assert config.seed == 42

    def test_default_preprocessing(self):
        spec = Settings().preprocessing_spec()
        assert isinstance(spec.steps[0], LogTransform)
        assert spec.steps[0].on_invalid == "drop"
        assert isinstance(spec.steps[1], Interaction)
        assert spec.steps[1].output == "aridity_x_p_mean"

    def test_default_estimators(self):
        registry = Settings().registry()
        assert registry.names == ["linear_reg", "boost_tree", "rand_forest", "bag_mlp"]
        assert registry["boost_tree"].tunable["learning_rate"].log

    def test_selection_and_tuning_metrics(self):
        settings = Settings()
        assert settings.selection.metric == "rsq"
        assert settings.tuning.metric == "rmse"
        assert settings.tuning.grid_size == 25


class TestValidation:
    """Test rejection of invalid configurations."""

    @pytest.mark.parametrize("proportion", [0.0, 1.0])
    def test_proportion_bounds(self, proportion):
        with pytest.raises(ValueError):
            ResamplingConfig(proportion=proportion)

    def test_folds_minimum(self):
        with pytest.raises(ValueError):
            ResamplingConfig(folds=1)

    def test_unknown_metric(self):
        with pytest.raises(ValueError, match="metric must be one of"):
            SelectionConfig(metric="accuracy")

    def test_selection_metric_appended(self):
        config = SelectionConfig(metrics=["mae"], metric="kge")
        assert config.metrics == ["mae", "kge"]

    def test_step_requires_columns(self):
        with pytest.raises(ValueError, match="requires columns"):
            StepConfig(kind="log")

    def test_invalid_step_order(self):
        with pytest.raises(ValueError, match="DropColumns"):
            Settings(
                preprocessing=[
                    StepConfig(kind="normalize"),
                    StepConfig(kind="drop_columns", columns=["elev_mean"]),
                ]
            )

    def test_duplicate_estimator_names(self):
        with pytest.raises(ValueError, match="unique"):
            Settings(
                estimators=[
                    EstimatorConfig(name="m", kind="linear"),
                    EstimatorConfig(name="m", kind="null"),
                ]
            )

    def test_unknown_estimator_kind(self):
        with pytest.raises(ValueError, match="kind must be one of"):
            EstimatorConfig(name="svm", kind="svm")

    def test_unknown_estimator_parameter(self):
        with pytest.raises(ValueError, match="does not accept"):
            Settings(
                estimators=[EstimatorConfig(name="rf", kind="random_forest", params={"depth": 3})]
            )

    def test_tunable_range(self):
        with pytest.raises(ValueError, match="low must be < high"):
            TunableConfig(low=2, high=1)


class TestYaml:
    """Test YAML loading and saving."""

    def test_round_trip(self, tmp_path):
        settings = Settings(
            tuning=TuningConfig(grid_size=5),
            estimators=[
                EstimatorConfig(
                    name="rf",
                    kind="random_forest",
                    params={"n_estimators": 50},
                    tunable={"max_features": TunableConfig(low=0.2, high=1.0)},
                )
            ],
        )
        path = tmp_path / "settings.yaml"
        settings.to_yaml(path)
        loaded = Settings.from_yaml(path)

        assert loaded.model_dump() == settings.model_dump()

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.safe_dump({"resampling": {"folds": 5}}))
        settings = Settings.from_yaml(path)

        assert settings.resampling.folds == 5
        assert settings.resampling.proportion == 0.8
        assert settings.data.target == "q_mean"

    def test_shipped_config(self):
        settings = Settings.from_yaml(CONFIG_DIR / "camels_q_mean.yaml")

        assert settings.data.attribute_groups == ["clim", "hydro"]
        assert "nse" in settings.selection.metrics
        assert len(settings.registry()) == 4
