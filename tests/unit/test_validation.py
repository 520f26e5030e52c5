"""Unit tests for validation helpers and the standard error response."""

import errno

import pytest
from pydantic import BaseModel, ValidationError

from speclinter.validation import (
    ValidationResult,
    classify_error,
    create_error_response,
    missing_parameter_response,
    validate_ai_analysis,
    validate_config_thresholds,
    validate_project_context,
)


def pydantic_error():
    class Model(BaseModel):
        value: int

    try:
        Model.model_validate({"value": "nope"})
    except ValidationError as e:
        return e
    raise AssertionError("expected a validation error")


class TestValidationResult:
    def test_to_dict_omits_empty_fields(self):
        assert ValidationResult(success=True).to_dict() == {"success": True}

    def test_to_dict_full(self):
        result = ValidationResult(success=False, error="bad", data={"x": 1}, suggestions=["fix it"])
        assert result.to_dict() == {"success": False, "error": "bad", "data": {"x": 1}, "suggestions": ["fix it"]}


class TestValidateProjectContext:
    """Checks on the .speclinter directory."""

    def test_not_initialized(self, tmp_path):
        result = validate_project_context(tmp_path)

        assert not result.success
        assert result.error == "SpecLinter not initialized in this project"

    def test_missing_config(self, tmp_path):
        (tmp_path / ".speclinter").mkdir()

        assert validate_project_context(tmp_path).error == "SpecLinter configuration file missing"

    def test_corrupted_config(self, tmp_path):
        (tmp_path / ".speclinter").mkdir()
        (tmp_path / ".speclinter" / "config.json").write_text("{oops")

        assert validate_project_context(tmp_path).error == "SpecLinter configuration file is corrupted"

    def test_initialized(self, project):
        result = validate_project_context(project)

        assert result.success
        assert result.data["config_path"].endswith("config.json")


class TestValidateAIAnalysis:
    """Schema validation of AI payloads."""

    def test_valid_payload_returns_model(self, spec_analysis):
        result = validate_ai_analysis(spec_analysis, "AISpecAnalysisSchema")

        assert result.success
        assert result.data.quality.grade == "B"
        assert result.data.tasks[0].acceptance_criteria[0].startswith("Valid credentials")

    def test_invalid_payload_lists_errors(self, spec_analysis):
        spec_analysis["quality"]["score"] = 150
        del spec_analysis["tasks"][0]["title"]

        result = validate_ai_analysis(spec_analysis, "AISpecAnalysisSchema")

        assert not result.success
        assert result.error == "AI analysis response does not match expected schema: AISpecAnalysisSchema"
        paths = {e["path"] for e in result.data["validation_errors"]}
        assert paths == {"quality.score", "tasks.0.title"}
        assert any("speclinter_get_schema_help" in s for s in result.suggestions)

    def test_unknown_schema(self):
        with pytest.raises(KeyError):
            validate_ai_analysis({}, "NoSuchSchema")


class TestThresholds:
    def test_min(self):
        assert validate_config_thresholds(80, 70, "quality").success

        result = validate_config_thresholds(60, 70, "quality")
        assert result.error == "Value 60 does not meet quality threshold (min: 70)"

    def test_max(self):
        assert validate_config_thresholds(5, 10, "size", "max").success
        assert not validate_config_thresholds(15, 10, "size", "max").success


class TestErrorResponses:
    """Classification and the standard error payload."""

    @pytest.mark.parametrize("error,expected", [
        (FileNotFoundError(errno.ENOENT, "missing"), "file_system"),
        (ValueError("Value 10 does not meet quality threshold"), "configuration"),
        (ValueError("bad config"), "configuration"),
        (RuntimeError("AI analysis was empty"), "ai_analysis"),
        (RuntimeError("boom"), "unknown"),
    ])
    def test_classify(self, error, expected):
        assert classify_error(error) == expected

    def test_classify_pydantic_error(self):
        assert classify_error(pydantic_error()) == "validation"

    def test_context_hint(self):
        assert classify_error(RuntimeError("boom"), "ai_analysis") == "ai_analysis"

    def test_known_type_response(self):
        response = create_error_response(ValueError("threshold too low"), "parse_spec_process")

        assert response["success"] is False
        assert response["error"] == "Configuration validation failed"
        assert response["error_type"] == "configuration"
        assert response["internal_step"] == "parse_spec_process"
        assert response["debug_info"] == "threshold too low"
        assert response["suggestions"]
        assert response["recovery_actions"]

    def test_unknown_type_response(self):
        response = create_error_response(RuntimeError("boom"), "init_project")

        assert response["error"] == "boom"
        assert response["error_type"] == "unknown"
        assert response["recovery_actions"] == ["Retry the operation"]

    def test_key_error_message_is_not_quoted(self):
        response = create_error_response(KeyError("Task task_99 not found"), "update_task_status")

        assert response["error"] == "Task task_99 not found"

    def test_missing_parameter_response(self):
        response = missing_parameter_response("analysis", "feature_name")

        assert response["error"] == "Missing required parameters: analysis, feature_name"
        assert response["error_type"] == "validation"
