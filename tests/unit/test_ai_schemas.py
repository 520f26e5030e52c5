"""Unit tests for the AI response schemas and their documentation."""

import pytest
from pydantic import ValidationError

from speclinter.ai_schemas import (
    AICodebaseAnalysisWithContext,
    AIFeatureValidation,
    AIGherkinAnalysis,
    AISpecParserAnalysis,
    AITaskGeneration,
    SCHEMAS,
    format_validation_errors,
    get_schema,
    json_schema,
)
from speclinter.schema_examples import (
    SCHEMA_USAGE,
    generate_minimal_example,
    get_schema_documentation,
    get_schema_help,
)


class TestSchemas:
    """Parsing camelCase payloads."""

    def test_feature_validation(self, feature_validation):
        parsed = AIFeatureValidation.model_validate(feature_validation)

        assert parsed.feature_name == "user-login"
        assert parsed.task_validations[0].implementation_status == "fully_implemented"
        assert parsed.test_coverage.coverage == 65

    def test_dump_round_trips_camel_case(self, gherkin_analysis):
        dumped = AIGherkinAnalysis.model_validate(gherkin_analysis).dump()

        assert dumped["qualityMetrics"]["coverageScore"] == 85
        assert dumped["feature"]["testingNotes"] == "Use a seeded database"
        assert "rules" not in dumped["feature"]

    def test_e2e_tests_alias(self, task_generation):
        parsed = AITaskGeneration.model_validate(task_generation)

        assert parsed.tasks[0].testing_strategy.e2e_tests == []
        assert "e2eTests" in parsed.dump()["tasks"][0]["testingStrategy"]

    def test_nested_schemas(self, spec_parser_analysis):
        parsed = AISpecParserAnalysis.model_validate(spec_parser_analysis)

        assert parsed.ai_metadata.model_confidence == 0.9
        assert parsed.quality_analysis.overall_score == 72

    def test_example_payloads_are_valid(self, codebase_analysis):
        AICodebaseAnalysisWithContext.model_validate(codebase_analysis)
        AICodebaseAnalysisWithContext.model_validate(generate_minimal_example())

    def test_ranges_are_enforced(self, feature_validation):
        feature_validation["qualityScore"] = 101
        feature_validation["aiInsights"]["confidence"] = 1.5

        with pytest.raises(ValidationError) as exc_info:
            AIFeatureValidation.model_validate(feature_validation)

        paths = {e["path"] for e in format_validation_errors(exc_info.value)}
        assert paths == {"qualityScore", "aiInsights.confidence"}

    def test_enums_are_enforced(self, gherkin_analysis):
        gherkin_analysis["feature"]["scenarios"][0]["type"] = "sunny_day"

        with pytest.raises(ValidationError):
            AIGherkinAnalysis.model_validate(gherkin_analysis)


class TestRegistry:
    def test_every_schema_is_documented(self):
        assert set(SCHEMA_USAGE) == set(SCHEMAS)

    def test_get_schema(self):
        assert get_schema("AIGherkinAnalysisSchema") is AIGherkinAnalysis

    def test_unknown_schema(self):
        with pytest.raises(KeyError, match="Unknown schema"):
            get_schema("Nope")

    def test_json_schema_uses_aliases(self):
        schema = json_schema("AIFeatureValidationSchema")

        assert "featureName" in schema["properties"]
        assert "featureName" in schema["required"]


class TestSchemaHelp:
    """The schema help tool."""

    def test_overview(self):
        result = get_schema_help()

        assert result["success"] is True
        assert len(result["available_schemas"]) == len(SCHEMAS)
        names = [s["name"] for s in result["available_schemas"]]
        assert "AIFeatureValidationSchema" in names

    def test_unknown(self):
        result = get_schema_help("Nope")

        assert result["success"] is False
        assert result["error"] == "Unknown schema: Nope"
        assert "AISpecAnalysisSchema" in result["available_schemas"]

    def test_combined_schema_has_example(self):
        result = get_schema_help("AICodebaseAnalysisWithContextSchema")

        assert result["documentation"]["structure"]["contextFiles"] == "AIContextFilesSchema object"
        assert result["example"]["analysis"]["techStack"]["language"] == "Python"

    def test_minimal_example(self):
        result = get_schema_help("AICodebaseAnalysisWithContextSchema", example_type="minimal")
        assert result["example"] == generate_minimal_example()

    def test_example_can_be_omitted(self):
        assert "example" not in get_schema_help("AICodebaseAnalysisWithContextSchema", include_example=False)

    def test_other_schemas_have_no_example(self):
        result = get_schema_help("AISpecAnalysisSchema")

        assert "example" not in result
        assert result["documentation"]["used_by"] == ["speclinter_parse_spec_process"]
        assert "properties" in result["documentation"]["json_schema"]

    def test_documentation_for_unknown_schema(self):
        assert get_schema_documentation("Nope")["description"] == "Unknown schema"
