"""Shared validation helpers and the standard error response for tool boundaries."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .ai_schemas import format_validation_errors, get_schema

SPECLINTER_DIR = ".speclinter"
CONFIG_FILE = "config.json"


@dataclass(slots=True)
class ValidationResult:
    """Outcome of a check that reports instead of raising."""

    success: bool
    error: Optional[str] = None
    data: Any = None
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
        if self.data is not None:
            result["data"] = self.data
        if self.suggestions:
            result["suggestions"] = self.suggestions
        return result


def validate_project_context(root: Path) -> ValidationResult:
    """Check that ``root`` holds an initialized project with a readable config."""
    speclinter_dir = root / SPECLINTER_DIR
    config_path = speclinter_dir / CONFIG_FILE

    if not speclinter_dir.is_dir():
        return ValidationResult(
            success=False,
            error="SpecLinter not initialized in this project",
            suggestions=[
                "Run speclinter_init_project to initialize SpecLinter",
                "Ensure you are in the correct project directory",
                "Check if .speclinter directory exists",
            ],
        )

    if not config_path.is_file():
        return ValidationResult(
            success=False,
            error="SpecLinter configuration file missing",
            suggestions=[
                "Run speclinter_init_project to recreate configuration",
                "Check if .speclinter/config.json exists",
            ],
        )

    try:
        json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return ValidationResult(
            success=False,
            error="SpecLinter configuration file is corrupted",
            suggestions=[
                "Run speclinter_init_project with force_reinit: true",
                "Manually fix the JSON syntax in .speclinter/config.json",
            ],
        )

    return ValidationResult(
        success=True,
        data={
            "root_dir": str(root),
            "speclinter_dir": str(speclinter_dir),
            "config_path": str(config_path),
        },
    )


def validate_ai_analysis(analysis: Any, schema_name: str) -> ValidationResult:
    """Parse ``analysis`` with the named AI schema; ``data`` holds the model on success."""
    model = get_schema(schema_name)
    try:
        parsed = model.model_validate(analysis)
    except ValidationError as e:
        return ValidationResult(
            success=False,
            error=f"AI analysis response does not match expected schema: {schema_name}",
            data={
                "validation_errors": format_validation_errors(e),
                "schema_name": schema_name,
            },
            suggestions=[
                "Ensure all required fields are present",
                "Verify data types match schema requirements",
                f'Use speclinter_get_schema_help with schema_name: "{schema_name}" for examples',
            ],
        )
    return ValidationResult(success=True, data=parsed)


def validate_config_thresholds(
    value: float,
    threshold: float,
    threshold_name: str,
    comparison: str = "min",
) -> ValidationResult:
    is_valid = value >= threshold if comparison == "min" else value <= threshold
    if is_valid:
        return ValidationResult(success=True)
    return ValidationResult(
        success=False,
        error=f"Value {value} does not meet {threshold_name} threshold ({comparison}: {threshold})",
        suggestions=[
            f"Adjust the value to meet the {threshold_name} requirement",
            f"Consider modifying the {threshold_name} in configuration",
        ],
    )


def classify_error(error: BaseException, context: Optional[str] = None) -> str:
    message = str(error).lower()
    if isinstance(error, ValidationError):
        return "validation"
    if isinstance(error, OSError):
        return "file_system"
    if "threshold" in message or "config" in message:
        return "configuration"
    if context == "ai_analysis" or "ai analysis" in message:
        return "ai_analysis"
    return "unknown"


_ERROR_GUIDANCE: Dict[str, Dict[str, Any]] = {
    "validation": {
        "error": "Validation failed - data does not match expected format",
        "suggestions": [
            "Check data format and structure",
            "Ensure all required fields are present",
        ],
        "recovery_actions": [
            "Review input parameters",
            "Use speclinter_get_schema_help for examples",
        ],
    },
    "file_system": {
        "error": "File system operation failed",
        "suggestions": [
            "Check file and directory permissions",
            "Ensure files and directories exist",
        ],
        "recovery_actions": [
            "Run speclinter_init_project if not initialized",
            "Ensure project directory is accessible",
        ],
    },
    "configuration": {
        "error": "Configuration validation failed",
        "suggestions": [
            "Check configuration file format",
            "Verify threshold values are appropriate",
        ],
        "recovery_actions": [
            "Reset configuration with speclinter_init_project",
            "Manually edit .speclinter/config.json",
        ],
    },
    "ai_analysis": {
        "error": "AI analysis processing failed",
        "suggestions": [
            "Check AI analysis response format",
            "Ensure analysis matches expected schema",
        ],
        "recovery_actions": [
            "Retry with different analysis parameters",
            "Check schema documentation for correct format",
        ],
    },
}


def _error_message(error: BaseException) -> str:
    # str(KeyError) quotes its message
    if isinstance(error, KeyError) and error.args:
        return str(error.args[0])
    return str(error)


def create_error_response(
    error: BaseException,
    step: str = "unknown",
    context: Optional[str] = None,
) -> Dict[str, Any]:
    """Convert an exception raised inside a tool into the standard error payload."""
    error_type = classify_error(error, context)
    guidance = _ERROR_GUIDANCE.get(error_type)

    logging.getLogger("speclinter.errors").debug(
        f"Error response for step {step}: {error_type}",
        extra={"extra_fields": {"step": step, "error_type": error_type}},
    )

    if guidance is None:
        return {
            "success": False,
            "error": _error_message(error) or type(error).__name__,
            "error_type": "unknown",
            "internal_step": step,
            "debug_info": context or "No additional context available",
            "suggestions": [
                "Check input parameters and format",
                "Ensure all prerequisites are met",
            ],
            "recovery_actions": ["Retry the operation"],
        }

    return {
        "success": False,
        "error": guidance["error"],
        "error_type": error_type,
        "internal_step": step,
        "debug_info": _error_message(error),
        "suggestions": list(guidance["suggestions"]),
        "recovery_actions": list(guidance["recovery_actions"]),
    }


def missing_parameter_response(*names: str) -> Dict[str, Any]:
    return {
        "success": False,
        "error": f"Missing required parameters: {', '.join(names)}",
        "error_type": "validation",
        "suggestions": ["Provide all required parameters"],
    }
