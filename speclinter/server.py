"""MCP server exposing SpecLinter's tools over stdio."""

from __future__ import annotations

import json
import logging
from functools import wraps
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from . import ai_tools, project
from .schema_examples import get_schema_help
from .speclinter_logging import log_error_with_context, setup_logging
from .storage import NotInitializedError, Storage
from .validation import create_error_response
from .workflow import get_workflow_guide

mcp = FastMCP("speclinter")
logger = logging.getLogger("speclinter.server")


def guarded(step: str):
    """Turn an exception escaping a tool into the standard error response."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                log_error_with_context(e, {"operation": step, "arguments": sorted(kwargs)})
                return create_error_response(e, step)
        return wrapper
    return decorator


# ----------------------------------------------------------------------
# Project and task tools
# ----------------------------------------------------------------------

@mcp.tool()
@guarded("init_project")
def speclinter_init_project(project_root: Optional[str] = None, force_reinit: bool = False) -> Dict[str, Any]:
    """Initialize SpecLinter in a project: directories, config and database.

    Run this first, then speclinter_analyze_codebase_prepare."""
    return project.init_project(project_root, force_reinit)


@mcp.tool()
@guarded("get_task_status")
def speclinter_get_task_status(feature_name: str, project_root: Optional[str] = None) -> Dict[str, Any]:
    """Progress of a feature's tasks: totals, per-status counts and last update."""
    return project.get_task_status(feature_name, project_root)


@mcp.tool()
@guarded("update_task_status")
def speclinter_update_task_status(
    feature_name: str,
    task_id: str,
    status: str,
    notes: Optional[str] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """Set a task to not_started, in_progress, completed or blocked and refresh _active.md."""
    return project.update_task_status(feature_name, task_id, status, notes, project_root)


@mcp.tool()
@guarded("get_schema_help")
def speclinter_get_schema_help(
    schema_name: Optional[str] = None,
    include_example: bool = True,
    example_type: str = "complete",
) -> Dict[str, Any]:
    """Documentation, JSON Schema and examples for the AI analysis schemas."""
    return get_schema_help(schema_name, include_example, example_type)


@mcp.tool()
def speclinter_get_workflow_guide() -> Dict[str, Any]:
    """The recommended tool order and what each tool requires."""
    return get_workflow_guide()


# ----------------------------------------------------------------------
# Two-phase AI tools
# ----------------------------------------------------------------------

@mcp.tool()
@guarded("analyze_codebase_prepare")
def speclinter_analyze_codebase_prepare(
    project_root: Optional[str] = None,
    analysis_depth: str = "standard",
    max_files: int = 50,
    max_file_size: int = 50000,
) -> Dict[str, Any]:
    """STEP 1 of codebase analysis: collect project files and build the analysis prompt."""
    return ai_tools.analyze_codebase_prepare(project_root, analysis_depth, max_files, max_file_size)


@mcp.tool()
@guarded("analyze_codebase_process")
def speclinter_analyze_codebase_process(
    analysis: Dict[str, Any],
    context_files: Optional[Dict[str, Any]] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2 of codebase analysis: validate the analysis and write .speclinter/context/.

    Accepts AICodebaseAnalysisWithContextSchema, or the analysis and context_files
    separately, or an analysis alone (context files are then derived from it)."""
    return ai_tools.analyze_codebase_process(analysis, context_files, project_root)


@mcp.tool()
@guarded("parse_spec_prepare")
def speclinter_parse_spec_prepare(
    spec: str,
    feature_name: str,
    context: Optional[str] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 1 of spec parsing: build a prompt that grades the spec and extracts tasks."""
    return ai_tools.parse_spec_prepare(spec, feature_name, context, project_root)


@mcp.tool()
@guarded("parse_spec_process")
def speclinter_parse_spec_process(
    analysis: Dict[str, Any],
    feature_name: str,
    original_spec: Optional[str] = None,
    deduplication_strategy: str = "prompt",
    similarity_threshold: Optional[float] = None,
    skip_similarity_check: bool = False,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2 of spec parsing: save the tasks as a feature.

    deduplication_strategy is one of prompt, merge, replace or skip.
    TIP: Use speclinter_get_schema_help with schema_name="AISpecAnalysisSchema" for the format."""
    return ai_tools.parse_spec_process(
        analysis,
        feature_name,
        original_spec,
        deduplication_strategy,
        similarity_threshold,
        skip_similarity_check,
        project_root,
    )


@mcp.tool()
@guarded("find_similar_prepare")
def speclinter_find_similar_prepare(
    spec: str,
    threshold: float = 0.8,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 1 of similarity search: compare a spec with existing features."""
    return ai_tools.find_similar_prepare(spec, threshold, project_root)


@mcp.tool()
@guarded("find_similar_process")
def speclinter_find_similar_process(
    analysis: Dict[str, Any],
    threshold: float = 0.8,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2 of similarity search: filter by threshold and return recommendations."""
    return ai_tools.find_similar_process(analysis, threshold, project_root)


@mcp.tool()
@guarded("validate_implementation_prepare")
def speclinter_validate_implementation_prepare(
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 1 of validation: scan the codebase for the feature's implementation."""
    return ai_tools.validate_implementation_prepare(feature_name, project_root)


@mcp.tool()
@guarded("validate_implementation_process")
def speclinter_validate_implementation_process(
    analysis: Dict[str, Any],
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2 of validation: store the result and update task statuses."""
    return ai_tools.validate_implementation_process(analysis, feature_name, project_root)


@mcp.tool()
@guarded("generate_gherkin_prepare")
def speclinter_generate_gherkin_prepare(
    task: Dict[str, Any],
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 1 of Gherkin generation for one task."""
    return ai_tools.generate_gherkin_prepare(task, feature_name, project_root)


@mcp.tool()
@guarded("generate_gherkin_process")
def speclinter_generate_gherkin_process(
    analysis: Dict[str, Any],
    task_id: str,
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2 of Gherkin generation: write the .feature file."""
    return ai_tools.generate_gherkin_process(analysis, task_id, feature_name, project_root)


@mcp.tool()
@guarded("analyze_spec_quality_prepare")
def speclinter_analyze_spec_quality_prepare(
    spec: str,
    feature_name: str,
    context: Optional[str] = None,
    analysis_depth: str = "standard",
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 1 of spec quality analysis."""
    return ai_tools.analyze_spec_quality_prepare(spec, feature_name, context, analysis_depth, project_root)


@mcp.tool()
@guarded("analyze_spec_quality_process")
def speclinter_analyze_spec_quality_process(
    analysis: Dict[str, Any],
    feature_name: Optional[str] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2 of spec quality analysis: check confidence and summarize findings."""
    return ai_tools.analyze_spec_quality_process(analysis, feature_name, project_root)


@mcp.tool()
@guarded("generate_tasks_prepare")
def speclinter_generate_tasks_prepare(
    spec: str,
    feature_name: str,
    quality_analysis: Optional[Dict[str, Any]] = None,
    context: Optional[str] = None,
    task_complexity: str = "standard",
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 1 of task generation, optionally informed by a quality analysis."""
    return ai_tools.generate_tasks_prepare(
        spec, feature_name, quality_analysis, context, task_complexity, project_root
    )


@mcp.tool()
@guarded("generate_tasks_process")
def speclinter_generate_tasks_process(
    analysis: Dict[str, Any],
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2 of task generation: check coverage and convert tasks."""
    return ai_tools.generate_tasks_process(analysis, feature_name, project_root)


@mcp.tool()
@guarded("analyze_spec_comprehensive_prepare")
def speclinter_analyze_spec_comprehensive_prepare(
    spec: str,
    feature_name: str,
    context: Optional[str] = None,
    analysis_depth: str = "standard",
    focus_areas: Optional[List[str]] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 1 of the comprehensive analysis: quality, tasks, alignment and guidance at once."""
    return ai_tools.analyze_spec_comprehensive_prepare(
        spec, feature_name, context, analysis_depth, focus_areas, project_root
    )


@mcp.tool()
@guarded("analyze_spec_comprehensive_process")
def speclinter_analyze_spec_comprehensive_process(
    analysis: Dict[str, Any],
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    """STEP 2 of the comprehensive analysis: check thresholds and build the parse result."""
    return ai_tools.analyze_spec_comprehensive_process(analysis, feature_name, project_root)


# ----------------------------------------------------------------------
# Resources
# ----------------------------------------------------------------------

@mcp.resource("speclinter://features")
def resource_features() -> str:
    """Features stored in the current project, as JSON."""
    root = project.resolve_project_root()
    try:
        with Storage(root) as storage:
            features = storage.get_all_features()
    except NotInitializedError:
        return json.dumps({"project_root": str(root), "features": [], "message": "SpecLinter not initialized"})

    return json.dumps({"project_root": str(root), "features": features}, indent=2)


def main() -> None:
    setup_logging()
    logger.info("Starting SpecLinter MCP server on stdio")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
