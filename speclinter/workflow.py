"""Tool ordering: which SpecLinter tools depend on which project state.

The checks are heuristics over the file tree. They report problems and
never block anything themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import config_manager
from .project import resolve_project_root
from .validation import CONFIG_FILE, SPECLINTER_DIR, ValidationResult

logger = logging.getLogger("speclinter.workflow")

MIN_CONTEXT_LENGTH = 100


@dataclass(slots=True)
class ToolDependencies:
    requires_init: bool = True
    requires_codebase_analysis: bool = False
    requires_feature: bool = False
    recommended_preceding_tools: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requires_init": self.requires_init,
            "requires_codebase_analysis": self.requires_codebase_analysis,
            "requires_feature": self.requires_feature,
            "recommended_preceding_tools": list(self.recommended_preceding_tools),
        }


INIT = "speclinter_init_project"
ANALYZE_CODEBASE = "speclinter_analyze_codebase"
PARSE_SPEC = "speclinter_parse_spec"

TOOL_DEPENDENCIES: Dict[str, ToolDependencies] = {
    INIT: ToolDependencies(requires_init=False),
    ANALYZE_CODEBASE: ToolDependencies(recommended_preceding_tools=[INIT]),
    PARSE_SPEC: ToolDependencies(recommended_preceding_tools=[INIT, ANALYZE_CODEBASE]),
    "speclinter_find_similar": ToolDependencies(recommended_preceding_tools=[INIT]),
    "speclinter_get_task_status": ToolDependencies(requires_feature=True, recommended_preceding_tools=[PARSE_SPEC]),
    "speclinter_update_task_status": ToolDependencies(requires_feature=True, recommended_preceding_tools=[PARSE_SPEC]),
    "speclinter_validate_implementation": ToolDependencies(
        requires_codebase_analysis=True,
        requires_feature=True,
        recommended_preceding_tools=[ANALYZE_CODEBASE, PARSE_SPEC],
    ),
    "speclinter_generate_gherkin": ToolDependencies(requires_feature=True, recommended_preceding_tools=[PARSE_SPEC]),
    "speclinter_analyze_spec_quality": ToolDependencies(recommended_preceding_tools=[INIT]),
    "speclinter_generate_tasks": ToolDependencies(recommended_preceding_tools=[INIT, ANALYZE_CODEBASE]),
    "speclinter_analyze_spec_comprehensive": ToolDependencies(recommended_preceding_tools=[INIT, ANALYZE_CODEBASE]),
}


def is_initialized(root: Path) -> bool:
    return (root / SPECLINTER_DIR / CONFIG_FILE).is_file()


def has_codebase_analysis(root: Path) -> bool:
    """Both ``project.md`` and ``patterns.md`` exist with real content."""
    context = root / SPECLINTER_DIR / "context"
    for name in ("project.md", "patterns.md"):
        path = context / name
        if not path.is_file():
            return False
        try:
            if len(path.read_text(encoding="utf-8").strip()) < MIN_CONTEXT_LENGTH:
                return False
        except OSError:
            return False
    return True


def _tasks_dir(root: Path) -> Path:
    return root / config_manager.get_config(root).storage.tasks_dir


def feature_exists(root: Path, feature_name: str) -> bool:
    feature_dir = _tasks_dir(root) / feature_name
    if not feature_dir.is_dir():
        return False
    return any(p.suffix in (".md", ".json") for p in feature_dir.iterdir())


def has_features(root: Path) -> bool:
    tasks_dir = _tasks_dir(root)
    return tasks_dir.is_dir() and any(tasks_dir.iterdir())


def tool_has_run(root: Path, tool_name: str) -> bool:
    if tool_name == INIT:
        return is_initialized(root)
    if tool_name == ANALYZE_CODEBASE:
        return has_codebase_analysis(root)
    if tool_name == PARSE_SPEC:
        return has_features(root)
    return True


def validate_tool_dependencies(tool_name: str, args: Optional[Dict[str, Any]] = None) -> ValidationResult:
    """Check the project state ``tool_name`` needs; missing recommendations are warnings."""
    args = args or {}
    dependencies = TOOL_DEPENDENCIES.get(tool_name)
    if dependencies is None:
        return ValidationResult(
            success=False,
            error=f"Unknown tool: {tool_name}",
            suggestions=[
                "Check tool name spelling",
                "Ensure tool is properly registered",
                "Review available tools documentation",
            ],
        )

    errors: List[str] = []
    warnings: List[str] = []
    suggestions: List[str] = []

    try:
        root = resolve_project_root(args.get("project_root"))

        if dependencies.requires_init and not is_initialized(root):
            errors.append("Project not initialized")
            suggestions.append("Run speclinter_init_project first")

        if dependencies.requires_codebase_analysis and not has_codebase_analysis(root):
            errors.append("Codebase analysis not performed")
            suggestions.append("Run speclinter_analyze_codebase first")

        feature_name = args.get("feature_name")
        if dependencies.requires_feature and feature_name and not feature_exists(root, feature_name):
            errors.append(f"Feature '{feature_name}' not found")
            suggestions.append("Run speclinter_parse_spec to create the feature first")

        for tool in dependencies.recommended_preceding_tools:
            if not tool_has_run(root, tool):
                warnings.append(f"Recommended tool '{tool}' has not been executed")
    except OSError as e:
        logger.warning(f"Dependency validation failed for {tool_name}: {e}")
        return ValidationResult(
            success=False,
            error=str(e),
            suggestions=[
                "Check project root path",
                "Ensure proper file permissions",
                "Verify project structure",
            ],
        )

    if errors:
        return ValidationResult(
            success=False,
            error="Tool dependency requirements not met",
            data={"errors": errors, "warnings": warnings},
            suggestions=suggestions,
        )
    return ValidationResult(success=True, data={"warnings": warnings})


def get_workflow_recommendations(tool_name: str) -> List[str]:
    dependencies = TOOL_DEPENDENCIES.get(tool_name)
    if dependencies is None:
        return ["Unknown tool - check tool name"]

    recommendations = []
    if dependencies.requires_init:
        recommendations.append("Ensure project is initialized with speclinter_init_project")
    if dependencies.requires_codebase_analysis:
        recommendations.append("Run speclinter_analyze_codebase for better context")
    if dependencies.requires_feature:
        recommendations.append("Create feature with speclinter_parse_spec first")
    if dependencies.recommended_preceding_tools:
        recommendations.append(f"Recommended preceding tools: {', '.join(dependencies.recommended_preceding_tools)}")
    return recommendations


def get_workflow_guide() -> Dict[str, Any]:
    """The recommended tool order plus each tool's requirements."""
    return {
        "workflow": [
            {
                "step": 1,
                "tool": INIT,
                "description": "Create .speclinter/, the config and the task directory",
            },
            {
                "step": 2,
                "tool": ANALYZE_CODEBASE,
                "description": "Generate project context files from the codebase",
                "phases": [f"{ANALYZE_CODEBASE}_prepare", f"{ANALYZE_CODEBASE}_process"],
            },
            {
                "step": 3,
                "tool": PARSE_SPEC,
                "description": "Grade a specification and save its tasks as a feature",
                "phases": [f"{PARSE_SPEC}_prepare", f"{PARSE_SPEC}_process"],
            },
            {
                "step": 4,
                "tool": "speclinter_generate_gherkin",
                "description": "Replace generic scenarios with task-specific Gherkin",
                "phases": ["speclinter_generate_gherkin_prepare", "speclinter_generate_gherkin_process"],
            },
            {
                "step": 5,
                "tool": "speclinter_update_task_status",
                "description": "Track progress while implementing",
            },
            {
                "step": 6,
                "tool": "speclinter_validate_implementation",
                "description": "Check the implementation against tasks and acceptance criteria",
                "phases": [
                    "speclinter_validate_implementation_prepare",
                    "speclinter_validate_implementation_process",
                ],
            },
        ],
        "two_phase_pattern": (
            "Prepare tools return an analysis prompt and a schema name. Run the analysis, "
            "then pass the JSON result to the matching process tool."
        ),
        "tools": {name: deps.to_dict() for name, deps in TOOL_DEPENDENCIES.items()},
    }
