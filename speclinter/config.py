"""Project configuration stored in ``.speclinter/config.json``."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .validation import CONFIG_FILE, SPECLINTER_DIR, ValidationResult, validate_config_thresholds


class _ConfigSection(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GradeThresholds(_ConfigSection):
    a: int = Field(90, alias="A")
    b: int = Field(80, alias="B")
    c: int = Field(70, alias="C")
    d: int = Field(60, alias="D")


class GradingConfig(_ConfigSection):
    strict_mode: bool = False
    min_word_count: int = 20
    require_acceptance_criteria: bool = True
    require_user_story: bool = False
    vague_terms: List[str] = Field(default_factory=lambda: ["fast", "easy", "good", "simple", "nice"])
    grade_thresholds: GradeThresholds = Field(default_factory=GradeThresholds)


class SpecAnalysisConfig(_ConfigSection):
    # Ranges are reported by ConfigManager.validate_config rather than rejected on load.
    quality_threshold: float = 0
    confidence_threshold: float = 0
    analysis_depth: Literal["quick", "standard", "comprehensive"] = "standard"
    task_complexity: Literal["basic", "standard", "comprehensive"] = "standard"


class GherkinQualityConfig(_ConfigSection):
    max_scenario_count: int = 10
    require_error_scenarios: bool = True


class GenerationConfig(_ConfigSection):
    tasks_per_feature: int = 10
    include_patterns: bool = True
    test_framework: str = "vitest"
    gherkin_style: Literal["declarative", "imperative"] = "declarative"
    spec_analysis: SpecAnalysisConfig = Field(default_factory=SpecAnalysisConfig)
    gherkin_quality: GherkinQualityConfig = Field(default_factory=GherkinQualityConfig)


class StorageConfig(_ConfigSection):
    tasks_dir: str = "./tasks"
    db_path: str = "./.speclinter/speclinter.db"
    use_git: bool = True


class ContextConfig(_ConfigSection):
    auto_detect: bool = True
    context_dir: str = "./.speclinter/context"
    fallback_stack: str = "node"


class DeduplicationConfig(_ConfigSection):
    enabled: bool = True
    similarity_threshold: float = 0.8
    default_strategy: Literal["prompt", "merge", "replace", "skip"] = "prompt"
    task_similarity_threshold: float = 0.9


class Config(_ConfigSection):
    version: str = "1.0.0"
    grading: GradingConfig = Field(default_factory=GradingConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    deduplication: DeduplicationConfig = Field(default_factory=DeduplicationConfig)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


DEFAULT_CONFIG = Config()


def config_path(root: Path) -> Path:
    return root / SPECLINTER_DIR / CONFIG_FILE


def load_config(root: Path) -> Config:
    """Read and validate the project config; raises on a missing or malformed file."""
    return Config.model_validate_json(config_path(root).read_text(encoding="utf-8"))


def write_config(root: Path, config: Config = DEFAULT_CONFIG) -> Path:
    path = config_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.to_json(), encoding="utf-8")
    return path


class ConfigManager:
    """Cached, validated access to project configuration."""

    CACHE_TTL = 5 * 60

    def __init__(self) -> None:
        self._cache: Dict[Path, Tuple[Config, float]] = {}
        self.logger = logging.getLogger("speclinter.config")

    def get_config(self, root: Path) -> Config:
        path = config_path(root)
        now = time.monotonic()

        cached = self._cache.get(path)
        if cached and now - cached[1] < self.CACHE_TTL:
            return cached[0]

        try:
            config = load_config(root)
        except (OSError, ValidationError, ValueError) as e:
            self.logger.warning(f"Failed to load config from {path}, using defaults: {e}")
            return DEFAULT_CONFIG.model_copy(deep=True)

        self._cache[path] = (config, now)
        return config

    def clear_cache(self, root: Optional[Path] = None) -> None:
        if root is None:
            self._cache.clear()
        else:
            self._cache.pop(config_path(root), None)

    @staticmethod
    def validate_config(config: Config) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []

        spec_analysis = config.generation.spec_analysis
        if not 0 <= spec_analysis.quality_threshold <= 100:
            errors.append("Quality threshold must be between 0 and 100")
        if not 0 <= spec_analysis.confidence_threshold <= 1:
            errors.append("Confidence threshold must be between 0 and 1")
        if not 0 <= config.deduplication.similarity_threshold <= 1:
            errors.append("Similarity threshold must be between 0 and 1")

        if config.generation.tasks_per_feature > 50:
            warnings.append("Tasks per feature is very high (>50), this may impact performance")
        if config.generation.gherkin_quality.max_scenario_count > 20:
            warnings.append("Max scenario count is very high (>20), this may impact readability")

        if errors:
            return ValidationResult(
                success=False,
                error="Configuration validation failed",
                data={"errors": errors, "warnings": warnings},
                suggestions=[
                    "Check configuration values are within valid ranges",
                    "Reset to default configuration if needed",
                ],
            )
        return ValidationResult(success=True, data={"warnings": warnings})

    def get_quality_threshold(self, root: Path) -> Tuple[float, bool]:
        threshold = self.get_config(root).generation.spec_analysis.quality_threshold
        return threshold, 0 <= threshold <= 100

    def get_confidence_threshold(self, root: Path) -> Tuple[float, bool]:
        threshold = self.get_config(root).generation.spec_analysis.confidence_threshold
        return threshold, 0 <= threshold <= 1

    def get_similarity_threshold(self, root: Path) -> Tuple[float, bool]:
        threshold = self.get_config(root).deduplication.similarity_threshold
        return threshold, 0 <= threshold <= 1

    def validate_quality_threshold(self, value: float, root: Path, operation: str = "operation") -> ValidationResult:
        threshold, is_valid = self.get_quality_threshold(root)
        if not is_valid:
            return ValidationResult(
                success=False,
                error="Invalid quality threshold in configuration",
                suggestions=["Update quality threshold to the 0-100 range"],
            )
        return validate_config_thresholds(value, threshold, f"{operation} quality", "min")

    def validate_confidence_threshold(self, value: float, root: Path, operation: str = "operation") -> ValidationResult:
        threshold, is_valid = self.get_confidence_threshold(root)
        if not is_valid:
            return ValidationResult(
                success=False,
                error="Invalid confidence threshold in configuration",
                suggestions=["Update confidence threshold to the 0-1 range"],
            )
        return validate_config_thresholds(value, threshold, f"{operation} confidence", "min")

    def update_config(self, root: Path, updates: Dict[str, Any]) -> ValidationResult:
        """Shallow-merge ``updates`` (camelCase sections) into the stored config."""
        current = self.get_config(root).model_dump(by_alias=True)
        current.update(updates)
        try:
            new_config = Config.model_validate(current)
        except ValidationError as e:
            return ValidationResult(success=False, error=f"Invalid configuration: {e}")

        validation = self.validate_config(new_config)
        if not validation.success:
            return validation

        write_config(root, new_config)
        self.clear_cache(root)
        return ValidationResult(success=True, data={"config": json.loads(new_config.to_json())})


config_manager = ConfigManager()
