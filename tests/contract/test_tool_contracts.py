"""
Contract tests for the MCP tool surface.

Every prepare tool hands back a prompt plus the schema and follow-up tool the
IDE must use; every failure, expected or not, comes back as a dict with
``success: False`` instead of an exception.
"""

import json
from unittest.mock import patch

import pytest

from speclinter import server
from speclinter.ai_schemas import SCHEMAS
from speclinter.config import config_manager
from speclinter.workflow import TOOL_DEPENDENCIES


PREPARE_CALLS = {
    "analyze_codebase": lambda root: server.speclinter_analyze_codebase_prepare(project_root=root),
    "parse_spec": lambda root: server.speclinter_parse_spec_prepare(
        "Users log in with email and password", "user-login", project_root=root
    ),
    "generate_gherkin": lambda root: server.speclinter_generate_gherkin_prepare(
        {"id": "task_01", "title": "Login"}, "user-login", project_root=root
    ),
    "analyze_spec_quality": lambda root: server.speclinter_analyze_spec_quality_prepare(
        "Users log in", "user-login", project_root=root
    ),
    "generate_tasks": lambda root: server.speclinter_generate_tasks_prepare(
        "Users log in", "user-login", project_root=root
    ),
    "analyze_spec_comprehensive": lambda root: server.speclinter_analyze_spec_comprehensive_prepare(
        "Users log in", "user-login", project_root=root
    ),
}


class TestPrepareContract:
    """Contract: prepare tools describe the analysis the IDE has to run."""

    @pytest.mark.parametrize("pair", sorted(PREPARE_CALLS))
    def test_prepare_shape(self, project, pair):
        """
        Given: An initialized project
        When: A prepare tool is called
        Then: It asks for an AI analysis, names a known schema and the matching process tool
        """
        result = PREPARE_CALLS[pair](str(project))

        assert result["success"] is True
        assert result["action"] == "ai_analysis_required"
        assert result["analysis_prompt"]
        assert result["schema"] in SCHEMAS
        assert result["follow_up_tool"] == f"speclinter_{pair}_process"
        assert result["project_root"] == str(project)
        assert result["next_steps"]

    def test_follow_up_tools_exist(self, project):
        for pair, call in PREPARE_CALLS.items():
            follow_up = call(str(project))["follow_up_tool"]
            assert hasattr(server, follow_up), pair

    def test_prepare_auto_initializes(self, tmp_path):
        """
        Given: A directory where SpecLinter was never initialized
        When: A prepare tool that needs storage is called
        Then: The project is initialized with defaults, context templates included
        """
        result = server.speclinter_parse_spec_prepare("Users log in", "user-login", project_root=str(tmp_path))

        assert result["success"] is True
        assert (tmp_path / ".speclinter" / "config.json").exists()
        assert (tmp_path / ".speclinter" / "context" / "project.md").exists()


class TestProcessContract:
    """Contract: process tools reject payloads that do not match their schema."""

    @pytest.mark.parametrize("tool,args", [
        ("speclinter_parse_spec_process", {"feature_name": "user-login"}),
        ("speclinter_find_similar_process", {}),
        ("speclinter_validate_implementation_process", {"feature_name": "user-login"}),
        ("speclinter_generate_gherkin_process", {"task_id": "task_01", "feature_name": "user-login"}),
        ("speclinter_analyze_spec_quality_process", {}),
        ("speclinter_generate_tasks_process", {"feature_name": "user-login"}),
        ("speclinter_analyze_spec_comprehensive_process", {"feature_name": "user-login"}),
    ])
    def test_schema_mismatch(self, project, tool, args):
        result = getattr(server, tool)(analysis={"unexpected": True}, project_root=str(project), **args)

        assert result["success"] is False
        assert result["error"].startswith("AI analysis response does not match expected schema: ")
        assert result["validation_errors"]
        assert all({"path", "message"} <= set(e) for e in result["validation_errors"])
        assert any("speclinter_get_schema_help" in s for s in result["suggestions"])

    def test_codebase_schema_mismatch_includes_help(self, project):
        result = server.speclinter_analyze_codebase_process(
            analysis={"analysis": {}, "contextFiles": {}}, project_root=str(project)
        )

        assert result["success"] is False
        assert result["schema_help"]["required_fields"]["contextFiles"]


class TestErrorContract:
    """Contract: exceptions never escape a tool."""

    def test_invalid_status(self, project, spec_analysis):
        server.speclinter_parse_spec_process(spec_analysis, "user-login", project_root=str(project))

        result = server.speclinter_update_task_status("user-login", "task_01", "done", project_root=str(project))

        assert result["success"] is False
        assert result["internal_step"] == "update_task_status"
        assert result["error"].startswith("Invalid status 'done'")
        assert result["recovery_actions"] == ["Retry the operation"]

    def test_unknown_task(self, project, spec_analysis):
        server.speclinter_parse_spec_process(spec_analysis, "user-login", project_root=str(project))

        result = server.speclinter_update_task_status(
            "user-login", "task_09", "completed", project_root=str(project)
        )

        assert result["success"] is False
        assert result["error"] == "Task task_09 not found"

    def test_file_system_error(self, project):
        with patch("speclinter.server.ai_tools.parse_spec_prepare", side_effect=OSError("disk full")):
            result = server.speclinter_parse_spec_prepare("Users log in", "user-login", project_root=str(project))

        assert result == {
            "success": False,
            "error": "File system operation failed",
            "error_type": "file_system",
            "internal_step": "parse_spec_prepare",
            "debug_info": "disk full",
            "suggestions": [
                "Check file and directory permissions",
                "Ensure files and directories exist",
            ],
            "recovery_actions": [
                "Run speclinter_init_project if not initialized",
                "Ensure project directory is accessible",
            ],
        }

    def test_errors_are_logged(self, project):
        with patch("speclinter.server.log_error_with_context") as log_error, \
                patch("speclinter.server.project.get_task_status", side_effect=RuntimeError("boom")):
            result = server.speclinter_get_task_status("user-login", project_root=str(project))

        assert result["error"] == "boom"
        log_error.assert_called_once()
        assert log_error.call_args[0][1]["operation"] == "get_task_status"

    def test_threshold_failure_is_a_configuration_error(self, project, task_generation):
        config = project / ".speclinter" / "config.json"
        data = json.loads(config.read_text())
        data["generation"]["specAnalysis"]["qualityThreshold"] = 95
        config.write_text(json.dumps(data))
        config_manager.clear_cache()

        result = server.speclinter_generate_tasks_process(task_generation, "user-login", project_root=str(project))

        assert result["success"] is False
        assert result["error_type"] == "configuration"
        assert result["internal_step"] == "quality_validation"


class TestProjectTools:
    """Contract: project lifecycle and status tools."""

    def test_init(self, tmp_path):
        result = server.speclinter_init_project(str(tmp_path))

        assert result["success"] is True
        assert result["message"] == "SpecLinter initialized successfully!"
        assert (tmp_path / ".speclinter" / "speclinter.db").exists()

    def test_init_twice(self, project):
        result = server.speclinter_init_project(str(project))

        assert result["success"] is False
        assert "already initialized" in result["message"]

    def test_force_reinit(self, project):
        assert server.speclinter_init_project(str(project), force_reinit=True)["success"] is True

    def test_task_status(self, project, spec_analysis):
        server.speclinter_parse_spec_process(spec_analysis, "user-login", project_root=str(project))
        server.speclinter_update_task_status("user-login", "task_01", "completed", project_root=str(project))
        server.speclinter_update_task_status("user-login", "task_02", "in_progress", project_root=str(project))

        status = server.speclinter_get_task_status("user-login", project_root=str(project))

        assert status["featureName"] == "user-login"
        assert status["totalTasks"] == 2
        assert status["completedTasks"] == 1
        assert status["overallStatus"] == "in_progress"

    def test_update_status(self, project, spec_analysis):
        server.speclinter_parse_spec_process(spec_analysis, "user-login", project_root=str(project))

        result = server.speclinter_update_task_status(
            "user-login", "task_02", "blocked", "Waiting on design", project_root=str(project)
        )

        assert result == {
            "task_id": "task_02",
            "feature_name": "user-login",
            "status": "blocked",
            "title": "Add lockout after failed attempts",
            "updated": True,
        }
        active = (project / "tasks" / "user-login" / "_active.md").read_text()
        assert "Add lockout after failed attempts" in active

    def test_schema_help(self):
        result = server.speclinter_get_schema_help("AISpecAnalysisSchema")

        assert result["success"] is True
        assert result["schema_name"] == "AISpecAnalysisSchema"

    def test_workflow_guide(self):
        assert set(server.speclinter_get_workflow_guide()["tools"]) == set(TOOL_DEPENDENCIES)


class TestFeaturesResource:
    """Contract: the features resource is a JSON document."""

    def test_uninitialized(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SPECLINTER_PROJECT_ROOT", str(tmp_path))

        data = json.loads(server.resource_features())

        assert data["features"] == []
        assert data["message"] == "SpecLinter not initialized"

    def test_lists_features(self, project, spec_analysis, monkeypatch):
        monkeypatch.setenv("SPECLINTER_PROJECT_ROOT", str(project))
        server.speclinter_parse_spec_process(spec_analysis, "user-login", project_root=str(project))

        data = json.loads(server.resource_features())

        assert data["project_root"] == str(project)
        assert [f["name"] for f in data["features"]] == ["user-login"]
        assert data["features"][0]["grade"] == "B"
