"""Unit tests for project configuration loading and threshold checks."""

import json

import pytest

from speclinter.config import (
    Config,
    ConfigManager,
    DEFAULT_CONFIG,
    config_path,
    load_config,
    write_config,
)


def _config(**sections):
    return Config.model_validate(sections)


@pytest.fixture
def manager():
    return ConfigManager()


class TestConfigDefaults:
    """Default values written by a fresh project."""

    def test_defaults(self):
        assert DEFAULT_CONFIG.generation.tasks_per_feature == 10
        assert DEFAULT_CONFIG.generation.test_framework == "vitest"
        assert DEFAULT_CONFIG.storage.tasks_dir == "./tasks"
        assert DEFAULT_CONFIG.storage.db_path == "./.speclinter/speclinter.db"
        assert DEFAULT_CONFIG.deduplication.similarity_threshold == 0.8
        assert DEFAULT_CONFIG.deduplication.default_strategy == "prompt"
        assert DEFAULT_CONFIG.context.fallback_stack == "node"

    def test_thresholds_default_to_zero(self):
        spec_analysis = DEFAULT_CONFIG.generation.spec_analysis
        assert spec_analysis.quality_threshold == 0
        assert spec_analysis.confidence_threshold == 0

    def test_json_uses_camel_case(self):
        data = json.loads(DEFAULT_CONFIG.to_json())

        assert data["generation"]["tasksPerFeature"] == 10
        assert data["generation"]["specAnalysis"]["qualityThreshold"] == 0
        assert data["generation"]["gherkinQuality"]["requireErrorScenarios"] is True
        assert data["grading"]["gradeThresholds"] == {"A": 90, "B": 80, "C": 70, "D": 60}
        assert data["deduplication"]["taskSimilarityThreshold"] == 0.9


class TestConfigFile:
    """Reading and writing .speclinter/config.json."""

    def test_write_then_load(self, tmp_path):
        config = _config(generation={"testFramework": "pytest"})

        path = write_config(tmp_path, config)

        assert path == config_path(tmp_path)
        assert load_config(tmp_path).generation.test_framework == "pytest"

    def test_load_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            load_config(tmp_path)

    def test_partial_file_fills_defaults(self, tmp_path):
        path = config_path(tmp_path)
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"storage": {"tasksDir": "./work"}}))

        config = load_config(tmp_path)

        assert config.storage.tasks_dir == "./work"
        assert config.generation.tasks_per_feature == 10


class TestConfigManager:
    """Cached access and validation."""

    def test_missing_config_falls_back_to_defaults(self, manager, tmp_path):
        config = manager.get_config(tmp_path)
        assert config.generation.tasks_per_feature == 10

    def test_malformed_config_falls_back_to_defaults(self, manager, tmp_path):
        path = config_path(tmp_path)
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        assert manager.get_config(tmp_path).storage.tasks_dir == "./tasks"

    def test_config_is_cached_until_cleared(self, manager, tmp_path):
        write_config(tmp_path, _config(generation={"tasksPerFeature": 5}))
        assert manager.get_config(tmp_path).generation.tasks_per_feature == 5

        write_config(tmp_path, _config(generation={"tasksPerFeature": 7}))
        assert manager.get_config(tmp_path).generation.tasks_per_feature == 5

        manager.clear_cache(tmp_path)
        assert manager.get_config(tmp_path).generation.tasks_per_feature == 7

    def test_validate_config_reports_ranges(self, manager):
        config = _config(
            generation={"specAnalysis": {"qualityThreshold": 150, "confidenceThreshold": 2}},
            deduplication={"similarityThreshold": -1},
        )

        result = manager.validate_config(config)

        assert not result.success
        assert result.error == "Configuration validation failed"
        assert len(result.data["errors"]) == 3

    def test_validate_config_warnings(self, manager):
        config = _config(generation={"tasksPerFeature": 60, "gherkinQuality": {"maxScenarioCount": 30}})

        result = manager.validate_config(config)

        assert result.success
        assert len(result.data["warnings"]) == 2

    def test_quality_threshold_check(self, manager, tmp_path):
        write_config(tmp_path, _config(generation={"specAnalysis": {"qualityThreshold": 70}}))

        assert manager.validate_quality_threshold(80, tmp_path, "task generation").success

        result = manager.validate_quality_threshold(60, tmp_path, "task generation")
        assert not result.success
        assert "does not meet task generation quality threshold" in result.error
        assert "min: 70" in result.error

    def test_confidence_threshold_check(self, manager, tmp_path):
        write_config(tmp_path, _config(generation={"specAnalysis": {"confidenceThreshold": 0.7}}))

        assert manager.validate_confidence_threshold(0.9, tmp_path).success
        assert not manager.validate_confidence_threshold(0.5, tmp_path).success

    def test_out_of_range_threshold_in_file(self, manager, tmp_path):
        write_config(tmp_path, _config(generation={"specAnalysis": {"qualityThreshold": 500}}))

        result = manager.validate_quality_threshold(90, tmp_path)

        assert not result.success
        assert result.error == "Invalid quality threshold in configuration"

    def test_update_config_writes_and_clears_cache(self, manager, tmp_path):
        write_config(tmp_path)
        manager.get_config(tmp_path)

        result = manager.update_config(tmp_path, {"deduplication": {"enabled": False}})

        assert result.success
        assert manager.get_config(tmp_path).deduplication.enabled is False
        assert load_config(tmp_path).deduplication.enabled is False

    def test_update_config_rejects_invalid_ranges(self, manager, tmp_path):
        write_config(tmp_path)

        result = manager.update_config(tmp_path, {"deduplication": {"similarityThreshold": 3}})

        assert not result.success
        assert load_config(tmp_path).deduplication.similarity_threshold == 0.8
