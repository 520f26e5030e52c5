"""Unit tests for tool dependency checks and the workflow guide."""

from speclinter.workflow import (
    TOOL_DEPENDENCIES,
    get_workflow_guide,
    get_workflow_recommendations,
    has_codebase_analysis,
    validate_tool_dependencies,
)

LONG_CONTENT = "# Context\n\n" + "Real project content. " * 10


def write_context(root, project_md=LONG_CONTENT, patterns_md=LONG_CONTENT):
    context = root / ".speclinter" / "context"
    (context / "project.md").write_text(project_md)
    (context / "patterns.md").write_text(patterns_md)


def write_feature(root, name="user-login"):
    feature_dir = root / "tasks" / name
    feature_dir.mkdir(parents=True)
    (feature_dir / "task_01_login.md").write_text("# Task: Login\n")


class TestCodebaseAnalysisCheck:
    def test_missing_files(self, project):
        assert not has_codebase_analysis(project)

    def test_placeholder_content_does_not_count(self, project):
        write_context(project, project_md="# Project\n")
        assert not has_codebase_analysis(project)

    def test_real_content(self, project):
        write_context(project)
        assert has_codebase_analysis(project)


class TestValidateToolDependencies:
    """Project state required by each tool."""

    def test_unknown_tool(self):
        result = validate_tool_dependencies("speclinter_nope")

        assert not result.success
        assert result.error == "Unknown tool: speclinter_nope"

    def test_init_needs_nothing(self, tmp_path):
        result = validate_tool_dependencies("speclinter_init_project", {"project_root": str(tmp_path)})

        assert result.success
        assert result.data["warnings"] == []

    def test_uninitialized_project(self, tmp_path):
        result = validate_tool_dependencies("speclinter_parse_spec", {"project_root": str(tmp_path)})

        assert not result.success
        assert "Project not initialized" in result.data["errors"]
        assert "Run speclinter_init_project first" in result.suggestions

    def test_missing_recommendations_are_warnings(self, project):
        result = validate_tool_dependencies("speclinter_parse_spec", {"project_root": str(project)})

        assert result.success
        assert result.data["warnings"] == [
            "Recommended tool 'speclinter_analyze_codebase' has not been executed"
        ]

    def test_validation_requires_analysis_and_feature(self, project):
        args = {"project_root": str(project), "feature_name": "user-login"}

        result = validate_tool_dependencies("speclinter_validate_implementation", args)

        assert not result.success
        assert result.data["errors"] == [
            "Codebase analysis not performed",
            "Feature 'user-login' not found",
        ]

    def test_validation_with_everything_in_place(self, project):
        write_context(project)
        write_feature(project)
        args = {"project_root": str(project), "feature_name": "user-login"}

        result = validate_tool_dependencies("speclinter_validate_implementation", args)

        assert result.success
        assert result.data["warnings"] == []

    def test_project_root_from_environment(self, project, monkeypatch):
        monkeypatch.setenv("SPECLINTER_PROJECT_ROOT", str(project))

        assert validate_tool_dependencies("speclinter_find_similar").success


class TestWorkflowGuide:
    def test_recommendations(self):
        recommendations = get_workflow_recommendations("speclinter_validate_implementation")

        assert "Run speclinter_analyze_codebase for better context" in recommendations
        assert "Create feature with speclinter_parse_spec first" in recommendations

    def test_unknown_tool_recommendation(self):
        assert get_workflow_recommendations("nope") == ["Unknown tool - check tool name"]

    def test_guide(self):
        guide = get_workflow_guide()

        assert [step["tool"] for step in guide["workflow"]][:3] == [
            "speclinter_init_project",
            "speclinter_analyze_codebase",
            "speclinter_parse_spec",
        ]
        assert set(guide["tools"]) == set(TOOL_DEPENDENCIES)
        assert guide["tools"]["speclinter_init_project"]["requires_init"] is False
