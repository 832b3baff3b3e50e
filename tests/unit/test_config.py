"""Unit tests for configuration management."""

import json

import pytest
from pydantic import ValidationError

from design_inspector.config import (
    CONFIG_FILENAME,
    DEFAULT_VARIANT_COLORS,
    DetectionConfig,
    GroupingConfig,
    InspectorConfig,
    SimilarityWeights,
    find_config_file,
    load_config,
    save_config,
)
from design_inspector.errors import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from inherited environment and working directory."""
    for var in (
        "DESIGN_INSPECTOR_THRESHOLD",
        "DESIGN_INSPECTOR_LOG_LEVEL",
        "DESIGN_INSPECTOR_STRICT",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestSimilarityWeights:
    """Tests for SimilarityWeights."""

    def test_defaults(self):
        """Test the default 0.6/0.2/0.1/0.1 weights."""
        weights = SimilarityWeights()

        assert weights.structure == 0.6
        assert weights.layout == 0.2
        assert weights.style == 0.1
        assert weights.content == 0.1

    def test_must_sum_to_one(self):
        """Test that weights not summing to 1 are rejected."""
        with pytest.raises(ValidationError, match="sum to 1.0"):
            SimilarityWeights(structure=0.5, layout=0.2, style=0.1, content=0.1)

    def test_range(self):
        """Test that negative weights are rejected."""
        with pytest.raises(ValidationError):
            SimilarityWeights(structure=1.2, layout=-0.2, style=0.0, content=0.0)


class TestGroupingConfig:
    """Tests for GroupingConfig."""

    def test_defaults(self):
        """Test default grouping settings."""
        config = GroupingConfig()

        assert config.similarity_threshold == 0.75
        assert config.childless_container_threshold_increase == 0.2
        assert config.dimension_tolerance == 0.2
        assert config.badge_size_ratio == 0.3
        assert config.min_group_size == 2

    def test_threshold_range(self):
        """Test that thresholds outside [0, 1] are rejected."""
        with pytest.raises(ValidationError):
            GroupingConfig(similarity_threshold=1.5)

    def test_min_group_size(self):
        """Test that singleton groups cannot be configured."""
        with pytest.raises(ValidationError):
            GroupingConfig(min_group_size=1)


class TestDetectionConfig:
    """Tests for DetectionConfig."""

    def test_defaults(self):
        """Test default detection settings."""
        config = DetectionConfig()
        assert config.min_group_size == 2
        assert config.label_prefix == "C"

    def test_empty_prefix(self):
        """Test that an empty label prefix is rejected."""
        with pytest.raises(ValidationError):
            DetectionConfig(label_prefix="")


class TestInspectorConfig:
    """Tests for InspectorConfig."""

    def test_defaults(self):
        """Test top-level defaults."""
        config = InspectorConfig()

        assert config.palette == DEFAULT_VARIANT_COLORS
        assert config.palette is not DEFAULT_VARIANT_COLORS
        assert config.default_variant == "Custom"
        assert config.strict_validation is True
        assert config.log_level == "INFO"
        assert config.log_format == "text"

    def test_log_level_normalized(self):
        """Test that log levels are upper-cased."""
        assert InspectorConfig(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError, match="Unknown log level"):
            InspectorConfig(log_level="loud")

    def test_invalid_log_format(self):
        """Test that unknown log formats are rejected."""
        with pytest.raises(ValidationError):
            InspectorConfig(log_format="xml")

    def test_from_dict_wraps_errors(self):
        """Test that from_dict raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            InspectorConfig.from_dict({"grouping": {"similarity_threshold": "high"}})

    def test_dict_round_trip(self):
        """Test to_dict then from_dict."""
        config = InspectorConfig(palette={"#000": "Dark"}, log_level="WARNING")
        assert InspectorConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, clean_env):
        """Test that no config file gives defaults."""
        assert load_config() == InspectorConfig()

    def test_file_in_directory(self, clean_env, tmp_path):
        """Test that a directory is searched for the config file."""
        (tmp_path / CONFIG_FILENAME).write_text(
            json.dumps({"grouping": {"similarity_threshold": 0.8}})
        )
        config = load_config(tmp_path)

        assert config.grouping.similarity_threshold == 0.8
        assert config.grouping.dimension_tolerance == 0.2

    def test_explicit_file(self, clean_env, tmp_path):
        """Test loading a named config file."""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"detection": {"label_prefix": "P"}}))

        assert load_config(path).detection.label_prefix == "P"

    def test_missing_explicit_file(self, clean_env, tmp_path):
        """Test that a missing named file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_invalid_json(self, clean_env, tmp_path):
        """Test that malformed JSON raises ConfigurationError."""
        path = tmp_path / CONFIG_FILENAME
        path.write_text("{bad")

        with pytest.raises(ConfigurationError, match="Cannot load configuration"):
            load_config(path)

    def test_non_object_root(self, clean_env, tmp_path):
        """Test that a JSON array root is rejected."""
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[1, 2]")

        with pytest.raises(ConfigurationError, match="JSON object"):
            load_config(path)

    def test_invalid_values(self, clean_env, tmp_path):
        """Test that values failing validation raise ConfigurationError."""
        path = tmp_path / CONFIG_FILENAME
        path.write_text(json.dumps({"grouping": {"min_group_size": 1}}))

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)
        assert exc_info.value.details == {"config_file": str(path)}

    def test_environment_overrides_file(self, clean_env, tmp_path):
        """Test that environment variables beat the file."""
        (tmp_path / CONFIG_FILENAME).write_text(
            json.dumps({"grouping": {"similarity_threshold": 0.8}, "log_level": "ERROR"})
        )
        clean_env.setenv("DESIGN_INSPECTOR_THRESHOLD", "0.65")
        clean_env.setenv("DESIGN_INSPECTOR_LOG_LEVEL", "debug")
        clean_env.setenv("DESIGN_INSPECTOR_STRICT", "false")

        config = load_config(tmp_path)

        assert config.grouping.similarity_threshold == 0.65
        assert config.log_level == "DEBUG"
        assert config.strict_validation is False

    def test_bad_threshold_variable(self, clean_env):
        """Test that a non-numeric threshold variable is rejected."""
        clean_env.setenv("DESIGN_INSPECTOR_THRESHOLD", "high")

        with pytest.raises(ConfigurationError, match="not a number"):
            load_config()

    def test_explicit_overrides_win(self, clean_env):
        """Test that keyword overrides beat the environment."""
        clean_env.setenv("DESIGN_INSPECTOR_THRESHOLD", "0.65")

        config = load_config(
            grouping__similarity_threshold=0.9, strict_validation=False
        )

        assert config.grouping.similarity_threshold == 0.9
        assert config.strict_validation is False

    def test_override_into_scalar_section(self, clean_env, tmp_path):
        """Test that an environment value aimed inside a scalar section is rejected."""
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"grouping": 5}))
        clean_env.setenv("DESIGN_INSPECTOR_THRESHOLD", "0.8")

        with pytest.raises(ConfigurationError, match="section 'grouping' must be an object"):
            load_config(tmp_path)

    def test_keyword_override_into_null_section(self, clean_env, tmp_path):
        """Test that a keyword override aimed inside a null section is rejected."""
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"grouping": None}))

        with pytest.raises(ConfigurationError, match="got NoneType"):
            load_config(tmp_path, grouping__similarity_threshold=0.9)


class TestSaveConfig:
    """Tests for save_config and find_config_file."""

    def test_save_and_reload(self, clean_env, tmp_path):
        """Test that a saved config loads back unchanged."""
        config = InspectorConfig(
            grouping=GroupingConfig(similarity_threshold=0.7),
            palette={"#111": "Ink"},
        )
        path = save_config(config, tmp_path)

        assert path == tmp_path / CONFIG_FILENAME
        assert find_config_file(tmp_path) == path
        assert load_config(path) == config

    def test_find_in_empty_directory(self, tmp_path):
        """Test that a directory without config finds nothing."""
        assert find_config_file(tmp_path) is None
