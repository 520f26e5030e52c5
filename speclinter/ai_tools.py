"""Two-phase AI tools.

Each prepare function gathers local project data and returns a prompt plus
the name of the schema the analysis must follow. The IDE's model runs the
analysis and hands the JSON to the matching process function, which
validates it and persists or reports the result. No model is called here.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

from .ai_schemas import (
    AICodebaseAnalysis,
    AICodebaseAnalysisWithContext,
    AIContextFiles,
    AIFeatureValidation,
    AIGeneratedTask,
    AIGherkinAnalysis,
    AISimilarityAnalysis,
    AISpecAnalysis,
    AISpecParserAnalysis,
    AISpecQualityAnalysis,
    AITaskGeneration,
)
from .config import config_manager
from .context import ContextUpdater, load_project_context_from_files
from .gherkin import format_gherkin_from_analysis, gherkin_file_name, scenario_count
from .models import ParseResult, PatternRef, ProjectContext, SaveFeatureOptions, Task, format_task_id, slugify
from .project import resolve_project_root
from .prompts import (
    CODEBASE_ANALYSIS,
    CONTEXT_FILE_GENERATION,
    GHERKIN_GENERATION,
    SIMILARITY_ANALYSIS,
    SPEC_ANALYSIS,
    SPEC_PARSER_ANALYSIS,
    SPEC_QUALITY_ANALYSIS,
    TASK_GENERATION,
    fill,
)
from .scanner import collect_relevant_files, language_for, load_gherkin_scenarios, scan_feature_implementation
from .speclinter_logging import log_gherkin_generation, log_performance, log_tool_call, log_validation_stored
from .storage import Storage, StorageManager
from .validation import ValidationResult, create_error_response, missing_parameter_response, validate_ai_analysis
from .workflow import validate_tool_dependencies

logger = logging.getLogger("speclinter.ai_tools")

PRIORITY_ORDER = {"critical": 4, "high": 3, "medium": 2, "low": 1}
PROMPT_FILE_LIMIT = 2000

CODEBASE_SCHEMA_HELP = {
    "expected_format": "AICodebaseAnalysisWithContextSchema",
    "required_fields": {
        "analysis": {
            "techStack": "Object with frontend, backend, database, testing, buildTool, packageManager, language, confidence",
            "errorPatterns": "Array of pattern objects with name, description, example, confidence, locations",
            "apiPatterns": "Array of pattern objects (same structure as errorPatterns)",
            "testPatterns": "Array of pattern objects (same structure as errorPatterns)",
            "namingConventions": "Object with fileNaming, variableNaming, functionNaming, examples",
            "projectStructure": "Object with srcDir, testDir, configFiles, entryPoints, architecture, organizationPattern",
            "codeQuality": "Object with overallScore, maintainability, testCoverage, documentation, issues",
            "insights": "Array of strings",
            "recommendations": "Array of strings",
        },
        "contextFiles": {
            "projectMd": "Complete markdown content for project.md",
            "patternsMd": "Complete markdown content for patterns.md",
            "architectureMd": "Complete markdown content for architecture.md",
        },
    },
    "alternative_format": "analysis and contextFiles may also be passed as separate parameters",
    "get_example": 'Use speclinter_get_schema_help with schema_name="AICodebaseAnalysisWithContextSchema"',
}


def _open(project_root: Path) -> Storage:
    return StorageManager.create_initialized_storage(project_root)


def _schema_error(result: ValidationResult, project_root: Path, **extra) -> Dict[str, Any]:
    response = {
        "success": False,
        "error": result.error,
        "validation_errors": result.data["validation_errors"],
        "suggestions": result.suggestions,
        "project_root": str(project_root),
    }
    response.update(extra)
    return response


def _threshold_error(result: ValidationResult, step: str, project_root: Path) -> Dict[str, Any]:
    response = create_error_response(ValueError(result.error), step, "configuration")
    response["project_root"] = str(project_root)
    response["suggestions"] = result.suggestions
    return response


def _prompt_context(storage: Storage) -> Dict[str, str]:
    """Tech stack and pattern summaries used by the spec prompts."""
    project_context = storage.load_project_context()
    config = storage.get_config()

    if project_context and project_context.stack:
        tech_stack = ", ".join(f"{key}: {value}" for key, value in project_context.stack.items())
    else:
        tech_stack = config.context.fallback_stack

    if project_context and project_context.patterns:
        code_patterns = "\n".join(f"{p.name}: {p.description}" for p in project_context.patterns)
    else:
        code_patterns = "No specific patterns detected"

    architecture = load_project_context_from_files(storage.root)["projectStructure"]["architecture"]
    return {
        "techStack": tech_stack,
        "codePatterns": code_patterns,
        "architecture": architecture,
        "testFramework": config.generation.test_framework,
    }


def _describe_project_context(project_context: Optional[ProjectContext]) -> str:
    if project_context is None:
        return "No project context available"
    return "\n".join([
        f"- Tech Stack: {json.dumps(project_context.stack, indent=2)}",
        f"- Constraints: {', '.join(project_context.constraints) or 'None specified'}",
        f"- Standards: {', '.join(project_context.standards) or 'None specified'}",
        f"- Patterns: {', '.join(p.name for p in project_context.patterns) or 'None specified'}",
    ])


def _context_dict(project_context: Optional[ProjectContext]) -> Optional[Dict[str, Any]]:
    return project_context.to_dict() if project_context else None


# ----------------------------------------------------------------------
# Codebase analysis
# ----------------------------------------------------------------------

def _manifest_context(files) -> str:
    sections = []
    by_path = {f.path: f for f in files}

    package_json = by_path.get("package.json")
    if package_json is not None:
        try:
            data = json.loads(package_json.content)
        except ValueError:
            sections.append("**PACKAGE.JSON VALIDATION CONTEXT:** Could not parse package.json")
        else:
            sections.append("\n".join([
                "**PACKAGE.JSON VALIDATION CONTEXT:**",
                f"- Main Entry: {data.get('main') or 'Not specified'}",
                f"- Bin Entries: {json.dumps(data.get('bin') or {}, indent=2)}",
                f"- Scripts: {json.dumps(data.get('scripts') or {}, indent=2)}",
                f"- Dependencies: {', '.join(data.get('dependencies') or {}) or 'None'}",
                f"- DevDependencies: {', '.join(data.get('devDependencies') or {}) or 'None'}",
            ]))

    pyproject = by_path.get("pyproject.toml")
    if pyproject is not None:
        try:
            project = tomllib.loads(pyproject.content).get("project", {})
        except tomllib.TOMLDecodeError:
            sections.append("**PYPROJECT.TOML VALIDATION CONTEXT:** Could not parse pyproject.toml")
        else:
            extras = project.get("optional-dependencies") or {}
            sections.append("\n".join([
                "**PYPROJECT.TOML VALIDATION CONTEXT:**",
                f"- Name: {project.get('name') or 'Not specified'}",
                f"- Requires Python: {project.get('requires-python') or 'Not specified'}",
                f"- Scripts: {json.dumps(project.get('scripts') or {}, indent=2)}",
                f"- Dependencies: {', '.join(project.get('dependencies') or []) or 'None'}",
                f"- Optional Dependencies: {', '.join(extras) or 'None'}",
            ]))

    if sections:
        sections.append("Your analysis MUST agree with these manifests. Cross-reference every finding.")
    return "\n\n".join(sections)


@log_performance("analyze_codebase_prepare")
def analyze_codebase_prepare(
    project_root: Optional[str] = None,
    analysis_depth: str = "standard",
    max_files: int = 50,
    max_file_size: int = 50000,
) -> Dict[str, Any]:
    root = resolve_project_root(project_root)
    log_tool_call("speclinter_analyze_codebase", "prepare", project_root=str(root))

    files = collect_relevant_files(root, max_files, max_file_size)
    counts = {kind: sum(1 for f in files if f.type == kind) for kind in ("source", "config", "test", "doc")}

    file_blocks = "\n".join(
        f"\n### {f.path} ({f.type}, {f.size} bytes)\n```\n{f.content}\n```" for f in files
    )
    prompt = "\n\n".join([
        CODEBASE_ANALYSIS,
        "\n".join([
            "**Project Context:**",
            f"- Root Directory: {root}",
            f"- Analysis Depth: {analysis_depth}",
            f"- Files Collected: {len(files)}",
            f"- Source Files: {counts['source']}",
            f"- Config Files: {counts['config']}",
            f"- Test Files: {counts['test']}",
            f"- Documentation Files: {counts['doc']}",
        ]),
        _manifest_context(files),
        f"**Files to Analyze (Priority files listed first):**\n{file_blocks}",
        "\n".join([
            "**VALIDATION CHECKLIST:**",
            "- Tech stack claims match the manifest dependencies",
            "- Test framework matches the manifest scripts",
            "- Entry points come from the manifest",
            "- Every pattern names the files it was found in",
            "- Architecture claims have concrete evidence",
        ]),
        CONTEXT_FILE_GENERATION,
        "Provide both the codebase analysis AND the complete context files, "
        "matching AICodebaseAnalysisWithContextSchema.",
    ])

    return {
        "success": True,
        "action": "ai_analysis_required",
        "project_root": str(root),
        "analysis_prompt": prompt,
        "files_analyzed": len(files),
        "follow_up_tool": "speclinter_analyze_codebase_process",
        "schema": "AICodebaseAnalysisWithContextSchema",
        "next_steps": [
            "AI will analyze the collected files",
            "Generate project-specific context documentation",
            "Pass the result to speclinter_analyze_codebase_process",
        ],
    }


def analyze_codebase_process(
    analysis: Optional[Dict[str, Any]] = None,
    context_files: Optional[Dict[str, Any]] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not analysis:
        return {"success": False, "error": "Analysis data is required"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_analyze_codebase", "process", project_root=str(root))

    combined = "analysis" in analysis and "contextFiles" in analysis
    if context_files:
        parsed_analysis = validate_ai_analysis(analysis, "AICodebaseAnalysisSchema")
        parsed_files = validate_ai_analysis(context_files, "AIContextFilesSchema")
        for result in (parsed_analysis, parsed_files):
            if not result.success:
                return _schema_error(result, root, schema_help=CODEBASE_SCHEMA_HELP)
        codebase: AICodebaseAnalysis = parsed_analysis.data
        files: Optional[AIContextFiles] = parsed_files.data
    elif combined:
        result = validate_ai_analysis(analysis, "AICodebaseAnalysisWithContextSchema")
        if not result.success:
            return _schema_error(result, root, schema_help=CODEBASE_SCHEMA_HELP)
        with_context: AICodebaseAnalysisWithContext = result.data
        codebase, files = with_context.analysis, with_context.context_files
    else:
        result = validate_ai_analysis(analysis, "AICodebaseAnalysisSchema")
        if not result.success:
            return _schema_error(result, root, schema_help=CODEBASE_SCHEMA_HELP)
        # Context documents are derived from the analysis.
        codebase, files = result.data, None

    updated_files = ContextUpdater(root).update_context_files_from_ai(codebase, files)
    dumped = codebase.dump()

    return {
        "success": True,
        "project_root": str(root),
        "analysis": {
            "techStack": dumped["techStack"],
            "patternsFound": {
                "errorPatterns": len(codebase.error_patterns),
                "apiPatterns": len(codebase.api_patterns),
                "testPatterns": len(codebase.test_patterns),
            },
            "projectStructure": dumped["projectStructure"],
            "namingConventions": dumped["namingConventions"],
            "codeQuality": dumped["codeQuality"],
            "insights": codebase.insights,
            "recommendations": codebase.recommendations,
        },
        "updatedFiles": updated_files,
        "ai_confidence": codebase.tech_stack.confidence,
        "content_generation": "complete_ai_generated",
        "next_steps": [
            "Review the context files in .speclinter/context/",
            "Add manual patterns to patterns.md if needed",
            f"Code quality score: {codebase.code_quality.overall_score:g}/100",
        ],
    }


# ----------------------------------------------------------------------
# Spec parsing
# ----------------------------------------------------------------------

def parse_spec_prepare(
    spec: str,
    feature_name: str,
    context: Optional[str] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not spec or not feature_name:
        return missing_parameter_response("spec", "feature_name")

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_parse_spec", "prepare", feature_name=feature_name)

    with _open(root) as storage:
        project_context = storage.load_project_context()

    prompt = fill(
        SPEC_ANALYSIS,
        projectContext=_describe_project_context(project_context),
        specification=spec,
    )
    prompt += (
        f"\n\n**Additional Context:**\n{context or 'No additional context provided'}"
        f"\n\n**Feature Name:** {feature_name}"
    )

    return {
        "success": True,
        "action": "ai_analysis_required",
        "feature_name": feature_name,
        "project_root": str(root),
        "original_spec": spec,
        "analysis_prompt": prompt,
        "follow_up_tool": "speclinter_parse_spec_process",
        "schema": "AISpecAnalysisSchema",
        "project_context": _context_dict(project_context),
        "next_steps": [
            "AI will analyze the specification and extract tasks",
            "Pass the result and original_spec to speclinter_parse_spec_process",
            "Tasks will be saved and ready for implementation",
        ],
    }


def _tasks_from_spec_analysis(analysis: AISpecAnalysis, feature_name: str) -> List[Task]:
    tasks = []
    for index, ai_task in enumerate(analysis.tasks, start=1):
        slug = slugify(ai_task.title)
        tasks.append(Task(
            id=format_task_id(index),
            title=ai_task.title,
            slug=slug,
            summary=ai_task.summary,
            implementation=ai_task.implementation,
            feature_name=feature_name,
            acceptance_criteria=list(ai_task.acceptance_criteria),
            test_file=f"{slug}.feature",
            notes=ai_task.testing_notes,
            dependencies=list(ai_task.dependencies),
            relevant_patterns=[PatternRef(name=p, anchor=slugify(p)) for p in ai_task.relevant_patterns],
        ))
    return tasks


@log_performance("parse_spec_process")
def parse_spec_process(
    analysis: Optional[Dict[str, Any]],
    feature_name: str,
    original_spec: Optional[str] = None,
    deduplication_strategy: str = "prompt",
    similarity_threshold: Optional[float] = None,
    skip_similarity_check: bool = False,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not analysis:
        return {"success": False, "error": "No analysis data provided"}
    if not feature_name:
        return missing_parameter_response("feature_name")

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_parse_spec", "process", feature_name=feature_name)

    result = validate_ai_analysis(analysis, "AISpecAnalysisSchema")
    if not result.success:
        return _schema_error(result, root)
    spec_analysis: AISpecAnalysis = result.data

    tasks = _tasks_from_spec_analysis(spec_analysis, feature_name)
    quality = spec_analysis.quality
    parse_result = ParseResult(
        spec=original_spec or " ".join(quality.improvements),
        grade=quality.grade,
        score=round(quality.score),
        tasks=tasks,
        improvements=list(quality.improvements),
        missing_elements=[issue.message for issue in quality.issues],
    )
    options = SaveFeatureOptions(
        on_similar_found=deduplication_strategy,
        similarity_threshold=similarity_threshold,
        skip_similarity_check=skip_similarity_check,
    )

    with _open(root) as storage:
        saved = storage.save_feature(feature_name, tasks, parse_result, options)

    if saved.saved:
        next_steps = [
            f"Review the task files under the {feature_name} feature directory",
            "Generate Gherkin scenarios with speclinter_generate_gherkin_prepare",
            "Validate scope and assumptions with stakeholders",
        ]
    else:
        next_steps = [
            "Similar features were found and nothing was saved",
            "Re-run with deduplication_strategy 'merge' or 'replace' to save anyway",
        ]

    dumped = spec_analysis.dump()
    return {
        "success": True,
        "feature_name": feature_name,
        "saved": saved.saved,
        "grade": quality.grade,
        "score": quality.score,
        "tasks": [t.to_dict() for t in tasks],
        "files_created": saved.files,
        "merge_result": saved.merge_result.to_dict() if saved.merge_result else None,
        "duplicate_info": saved.duplicate_info.to_dict() if saved.duplicate_info else None,
        "ai_insights": {
            "technicalConsiderations": spec_analysis.technical_considerations,
            "businessValue": spec_analysis.business_value,
            "scope": dumped["scope"],
            "qualityIssues": dumped["quality"]["issues"],
            "strengths": quality.strengths,
        },
        "project_root": str(root),
        "next_steps": next_steps,
    }


# ----------------------------------------------------------------------
# Similarity
# ----------------------------------------------------------------------

def find_similar_prepare(
    spec: str,
    threshold: float = 0.8,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not spec:
        return missing_parameter_response("spec")

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_find_similar", "prepare")

    with _open(root) as storage:
        features = storage.get_all_features()

    if not features:
        return {
            "success": True,
            "similar_features": [],
            "message": "No existing features to compare against",
            "project_root": str(root),
        }

    existing = "\n".join(
        f"\n### Feature {index}: {feature['name']}\n{feature['spec']}\n"
        for index, feature in enumerate(features, start=1)
    )
    prompt = fill(SIMILARITY_ANALYSIS, specification=spec, existingFeatures=existing, threshold=threshold)

    return {
        "success": True,
        "action": "ai_analysis_required",
        "project_root": str(root),
        "analysis_prompt": prompt,
        "follow_up_tool": "speclinter_find_similar_process",
        "schema": "AISimilarityAnalysisSchema",
        "threshold": threshold,
        "existing_features_count": len(features),
        "next_steps": [
            "AI will compare the specification with existing features",
            "Pass the result to speclinter_find_similar_process",
        ],
    }


def find_similar_process(
    analysis: Optional[Dict[str, Any]],
    threshold: float = 0.8,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not analysis:
        return {"success": False, "error": "No analysis data provided"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_find_similar", "process")

    result = validate_ai_analysis(analysis, "AISimilarityAnalysisSchema")
    if not result.success:
        return _schema_error(result, root)
    similarity: AISimilarityAnalysis = result.data

    with _open(root) as storage:
        similar_features = [
            {
                "feature_name": f.feature_name,
                "similarity": f.similarity_score,
                "summary": "; ".join(f.similarity_reasons),
                "task_count": storage.get_task_count(f.feature_name),
                "status": "active",
                "ai_insights": {
                    "reasons": f.similarity_reasons,
                    "differences": f.differences,
                    "recommendation": f.recommendation,
                },
            }
            for f in similarity.similar_features
            if f.similarity_score >= threshold
        ]

    if similar_features:
        next_steps = [
            "Review similar features and their differences",
            "Merge, refactor or keep separate based on the recommendations",
        ]
    else:
        next_steps = ["No similar features found - proceed with implementation"]

    return {
        "success": True,
        "similar_features": similar_features,
        "ai_assessment": similarity.overall_assessment,
        "ai_confidence": similarity.confidence,
        "recommendations": [
            {
                "feature": f.feature_name,
                "action": f.recommendation,
                "reasoning": "; ".join(f.similarity_reasons),
            }
            for f in similarity.similar_features
        ],
        "project_root": str(root),
        "next_steps": next_steps,
    }


# ----------------------------------------------------------------------
# Implementation validation
# ----------------------------------------------------------------------

def _task_prompt_block(index: int, task: Task) -> str:
    criteria = "\n".join(f"- {c}" for c in task.acceptance_criteria)
    patterns = ", ".join(p.name for p in task.relevant_patterns) or "None specified"
    return (
        f"\n### Task {index}: {task.title}\n"
        f"**ID**: {task.id}\n"
        f"**Status**: {task.status}\n"
        f"**Summary**: {task.summary}\n"
        f"**Implementation Guidance**: {task.implementation}\n\n"
        f"**Acceptance Criteria**:\n{criteria}\n\n"
        f"**Relevant Patterns**: {patterns}\n"
    )


def _file_prompt_block(feature_file) -> str:
    content = feature_file.content
    shown = content[:PROMPT_FILE_LIMIT]
    if len(content) > PROMPT_FILE_LIMIT:
        shown += "\n... (truncated)"
    return (
        f"\n**File**: {feature_file.path}\n"
        f"**Type**: {feature_file.type}\n"
        f"**Relevance**: {round(feature_file.relevance * 100)}%\n"
        f"**Functions**: {', '.join(feature_file.functions) or 'None detected'}\n\n"
        f"```{language_for(feature_file.path)}\n{shown}\n```\n"
    )


@log_performance("validate_implementation_prepare")
def validate_implementation_prepare(feature_name: str, project_root: Optional[str] = None) -> Dict[str, Any]:
    if not feature_name:
        return create_error_response(
            ValueError("Feature name is required"),
            "parameter_validation",
            "missing_required_parameter",
        )

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_validate_implementation", "prepare", feature_name=feature_name)

    with _open(root) as storage:
        tasks = storage.get_feature_tasks(feature_name)
        if not tasks:
            return {
                "success": False,
                "error": f"Feature '{feature_name}' not found. Use speclinter_parse_spec to create it first.",
                "project_root": str(root),
            }
        status = storage.get_feature_status(feature_name)
        tasks_dir = storage.tasks_dir

    dependency_check = validate_tool_dependencies(
        "speclinter_validate_implementation",
        {"project_root": str(root), "feature_name": feature_name},
    )
    workflow_warnings = list((dependency_check.data or {}).get("warnings", []))
    if not dependency_check.success:
        workflow_warnings = (dependency_check.data or {}).get("errors", [dependency_check.error]) + workflow_warnings

    project_context = load_project_context_from_files(root)
    feature_files = scan_feature_implementation(root, feature_name, tasks)
    scenarios = load_gherkin_scenarios(root, tasks_dir, feature_name)

    if scenarios:
        gherkin_text = "\n".join(f"\n**File**: {s['file']}\n```gherkin\n{s['content']}\n```\n" for s in scenarios)
    else:
        gherkin_text = "No Gherkin scenarios found"

    if feature_files:
        files_text = "\n".join(_file_prompt_block(f) for f in feature_files)
    else:
        files_text = "No implementation files found"

    patterns_text = "\n".join(
        f"\n**{p['name']}** (Confidence: {round(p['confidence'] * 100)}%)\n{p['description']}\n"
        for p in project_context["patterns"][:5]
    ) or "No patterns available"

    tech_stack = project_context["techStack"]
    prompt = "\n".join([
        "# AI Implementation Validation Analysis",
        "",
        "You are an expert code reviewer validating a feature implementation against its tasks "
        "and acceptance criteria.",
        "",
        "## Feature Information",
        f"**Feature Name**: {feature_name}",
        f"**Total Tasks**: {len(tasks)}",
        f"**Current Status**: {status.overall_status}",
        f"**Completion**: {status.completed_tasks}/{status.total_tasks} tasks marked complete",
        "",
        "## Project Context",
        f"**Tech Stack**: {json.dumps(tech_stack, indent=2) if tech_stack else 'Not available'}",
        f"**Architecture**: {project_context['projectStructure']['architecture']}",
        f"**Code Patterns**: {len(project_context['patterns'])} patterns detected",
        "",
        "## Tasks to Validate",
        "\n".join(_task_prompt_block(i, t) for i, t in enumerate(tasks, start=1)),
        "",
        "## Gherkin Scenarios for Validation",
        gherkin_text,
        "",
        "## Implementation Files Found",
        files_text,
        "",
        "## Project Code Patterns",
        patterns_text,
        "",
        "## Validation Instructions",
        "",
        "Assess each task's implementation status, code quality and pattern compliance. Check every "
        "acceptance criterion against the code, then judge architectural alignment, test coverage, "
        "security and performance. Finish with prioritized next steps.",
        "",
        "Return a JSON response matching the AIFeatureValidationSchema.",
    ])

    return {
        "success": True,
        "action": "ai_analysis_required",
        "feature_name": feature_name,
        "project_root": str(root),
        "validation_prompt": prompt,
        "follow_up_tool": "speclinter_validate_implementation_process",
        "schema": "AIFeatureValidationSchema",
        "feature_context": {
            "tasks": len(tasks),
            "files_found": len(feature_files),
            "gherkin_scenarios": len(scenarios),
            "current_status": status.overall_status,
        },
        "workflow_warnings": workflow_warnings,
        "next_steps": [
            "AI will validate the implementation task by task",
            "Pass the result to speclinter_validate_implementation_process",
            "Validation will be saved for progress tracking",
        ],
    }


def generate_validation_summary(validation: AIFeatureValidation) -> Dict[str, Any]:
    task_validations = validation.task_validations
    implemented = sum(1 for t in task_validations if t.implementation_status == "fully_implemented")
    partial = sum(1 for t in task_validations if t.implementation_status == "partially_implemented")
    critical = [
        issue for t in task_validations for issue in t.code_quality_issues if issue.severity == "critical"
    ]
    coverage = validation.test_coverage.coverage

    actions = []
    if critical:
        actions.append(f"Address {len(critical)} critical code quality issues")
    if any(s.status == "vulnerable" for s in validation.security_considerations):
        actions.append("Fix security vulnerabilities identified")
    if coverage is not None and coverage < 70:
        actions.append("Improve test coverage (currently below 70%)")
    if partial:
        actions.append(f"Complete {partial} partially implemented tasks")

    if validation.quality_score >= 80:
        quality = "Good"
    elif validation.quality_score >= 60:
        quality = "Fair"
    else:
        quality = "Needs Improvement"

    if coverage is None:
        coverage_status = "Not assessed"
    elif coverage >= 80:
        coverage_status = "Good"
    elif coverage >= 60:
        coverage_status = "Fair"
    else:
        coverage_status = "Poor"

    if validation.completion_percentage >= 90:
        recommendation = "Feature is ready for production"
    elif validation.completion_percentage >= 70:
        recommendation = "Feature needs minor improvements"
    else:
        recommendation = "Feature requires significant work"

    secure = all(s.status == "secure" for s in validation.security_considerations)
    return {
        "implementation_progress": f"{implemented}/{len(task_validations)} tasks fully implemented",
        "quality_assessment": quality,
        "critical_issues_count": len(critical),
        "security_status": "Secure" if secure else "Has Concerns",
        "test_coverage_status": coverage_status,
        "immediate_actions": actions or ["Continue with planned development"],
        "overall_recommendation": recommendation,
    }


@log_performance("validate_implementation_process")
def validate_implementation_process(
    analysis: Optional[Dict[str, Any]],
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not analysis:
        return {"success": False, "error": "AI validation analysis is required"}
    if not feature_name:
        return {"success": False, "error": "Feature name is required"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_validate_implementation", "process", feature_name=feature_name)

    result = validate_ai_analysis(analysis, "AIFeatureValidationSchema")
    if not result.success:
        return _schema_error(result, root)
    validation: AIFeatureValidation = result.data

    status_updates = []
    with _open(root) as storage:
        if not storage.get_feature_tasks(feature_name):
            return {
                "success": False,
                "error": f"Feature '{feature_name}' not found. Use speclinter_parse_spec to create it first.",
                "project_root": str(root),
            }
        storage.update_validation_results(feature_name, validation.dump())

        for task_validation in validation.task_validations:
            task = storage.get_task(feature_name, task_validation.task_id)
            if task is None:
                continue

            if (
                task_validation.implementation_status == "fully_implemented"
                and task_validation.quality_score >= 80
                and task.status != "completed"
            ):
                new_status = "completed"
                note = f"Auto-updated based on AI validation (Quality Score: {task_validation.quality_score:g})"
            elif task_validation.implementation_status == "not_implemented" and task.status == "completed":
                new_status = "in_progress"
                note = "Reverted based on AI validation - implementation not found"
            else:
                continue

            storage.update_task_status(feature_name, task.id, new_status, note)
            logger.info(f"Validation moved {feature_name}/{task.id} from {task.status} to {new_status}")
            status_updates.append({"task_id": task.id, "from": task.status, "to": new_status})

        storage.update_active_file(feature_name)

    log_validation_stored(feature_name, validation.overall_status, round(validation.quality_score))

    summary = generate_validation_summary(validation)
    dumped = validation.dump()
    next_steps = sorted(dumped["nextSteps"], key=lambda step: PRIORITY_ORDER[step["priority"]], reverse=True)
    task_validations = validation.task_validations

    return {
        "success": True,
        "feature_name": feature_name,
        "project_root": str(root),
        "validation_results": {
            "overall_status": validation.overall_status,
            "completion_percentage": validation.completion_percentage,
            "quality_score": validation.quality_score,
            "tasks_validated": len(task_validations),
            "tasks_implemented": sum(
                1 for t in task_validations
                if t.implementation_status in ("fully_implemented", "partially_implemented")
            ),
            "critical_issues": sum(
                1 for t in task_validations for i in t.code_quality_issues if i.severity == "critical"
            ),
            "security_concerns": sum(1 for s in validation.security_considerations if s.status == "vulnerable"),
        },
        "task_details": [
            {
                "task_id": t.task_id,
                "title": t.title,
                "status": t.implementation_status,
                "quality_score": t.quality_score,
                "files": t.implementation_files,
                "issues": len(t.code_quality_issues),
                "recommendations": len(t.recommendations),
            }
            for t in task_validations
        ],
        "status_updates": status_updates,
        "architectural_assessment": dumped["architecturalAlignment"],
        "test_coverage": dumped["testCoverage"],
        "security_assessment": dumped["securityConsiderations"],
        "performance_assessment": dumped["performanceConsiderations"],
        "next_steps": next_steps,
        "ai_insights": dumped["aiInsights"],
        "summary": summary,
        "recommendations": summary["immediate_actions"] + [
            "Review detailed task validations for specific implementation guidance",
            "Address critical and high-priority issues first",
        ],
    }


# ----------------------------------------------------------------------
# Gherkin
# ----------------------------------------------------------------------

def generate_gherkin_prepare(
    task: Optional[Dict[str, Any]],
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not task or not feature_name:
        return {"success": False, "error": "Task and feature_name are required"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_generate_gherkin", "prepare", feature_name=feature_name, task_id=task.get("id"))

    with _open(root) as storage:
        test_framework = storage.get_config().generation.test_framework
    project_context = load_project_context_from_files(root)

    criteria = task.get("acceptanceCriteria")
    if isinstance(criteria, list) and criteria:
        criteria_text = "\n".join(f"{i}. {c}" for i, c in enumerate(criteria, start=1))
    else:
        criteria_text = "No specific acceptance criteria provided"

    tech_stack = project_context["techStack"]
    patterns = project_context["patterns"]
    prompt = fill(
        GHERKIN_GENERATION,
        taskTitle=task.get("title") or "Unknown Task",
        taskSummary=task.get("summary") or "No summary provided",
        implementation=task.get("implementation") or "No implementation details provided",
        acceptanceCriteria=criteria_text,
        techStack=", ".join(f"{k}: {v}" for k, v in tech_stack.items()) or "Tech stack not detected",
        testFramework=test_framework,
        codePatterns="\n".join(f"- {p['name']}: {p['description']}" for p in patterns)
        or "No specific code patterns detected",
        projectStructure=project_context["projectStructure"]["architecture"],
    )

    return {
        "success": True,
        "action": "ai_analysis_required",
        "task_id": task.get("id"),
        "feature_name": feature_name,
        "project_root": str(root),
        "analysis_prompt": prompt,
        "follow_up_tool": "speclinter_generate_gherkin_process",
        "schema": "AIGherkinAnalysisSchema",
        "project_context": project_context,
        "next_steps": [
            "AI will generate task-specific Gherkin scenarios",
            "Pass the result to speclinter_generate_gherkin_process",
            "Generated scenarios are written next to the task files",
        ],
    }


def generate_gherkin_process(
    analysis: Optional[Dict[str, Any]],
    task_id: str,
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not analysis or not task_id or not feature_name:
        return {"success": False, "error": "Analysis, task_id, and feature_name are required"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_generate_gherkin", "process", feature_name=feature_name, task_id=task_id)

    result = validate_ai_analysis(analysis, "AIGherkinAnalysisSchema")
    if not result.success:
        return _schema_error(result, root)
    gherkin: AIGherkinAnalysis = result.data

    with _open(root) as storage:
        gherkin_config = storage.get_config().generation.gherkin_quality
        gherkin_dir = storage.feature_dir(feature_name) / "gherkin"

    gherkin_dir.mkdir(parents=True, exist_ok=True)
    path = gherkin_dir / gherkin_file_name(task_id, gherkin.feature.title)
    path.write_text(format_gherkin_from_analysis(gherkin), encoding="utf-8")

    count = scenario_count(gherkin)
    warnings = []
    if count > gherkin_config.max_scenario_count:
        warnings.append(
            f"Generated {count} scenarios, above the configured maximum of {gherkin_config.max_scenario_count}"
        )
    all_scenarios = list(gherkin.feature.scenarios) + [s for r in gherkin.feature.rules or [] for s in r.scenarios]
    if gherkin_config.require_error_scenarios and not any(s.type == "error_handling" for s in all_scenarios):
        warnings.append("No error handling scenario was generated")

    log_gherkin_generation(feature_name, task_id, count)
    dumped = gherkin.dump()

    return {
        "success": True,
        "task_id": task_id,
        "feature_name": feature_name,
        "project_root": str(root),
        "gherkin_file": str(path),
        "scenario_count": count,
        "quality_metrics": dumped["qualityMetrics"],
        "automation_readiness": dumped["automationReadiness"],
        "ai_confidence": gherkin.ai_insights.confidence,
        "warnings": warnings,
        "next_steps": [
            f"Generated {count} specific scenarios",
            f"Coverage score: {gherkin.quality_metrics.coverage_score:g}/100",
            f"Automation readiness: {gherkin.automation_readiness.score:g}/100",
            "Review scenarios and customize as needed",
        ],
    }


# ----------------------------------------------------------------------
# Spec quality, task generation and comprehensive analysis
# ----------------------------------------------------------------------

def analyze_spec_quality_prepare(
    spec: str,
    feature_name: str,
    context: Optional[str] = None,
    analysis_depth: str = "standard",
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not spec or not feature_name:
        return {"success": False, "error": "Specification and feature name are required"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_analyze_spec_quality", "prepare", feature_name=feature_name)

    with _open(root) as storage:
        values = _prompt_context(storage)
        project_context = storage.load_project_context()

    prompt = fill(
        SPEC_QUALITY_ANALYSIS,
        specification=spec,
        projectContext=context or "No additional context provided",
        techStack=values["techStack"],
        codePatterns=values["codePatterns"],
        architecture=values["architecture"],
        teamLevel="standard",
    )

    return {
        "success": True,
        "action": "ai_analysis_required",
        "feature_name": feature_name,
        "project_root": str(root),
        "analysis_prompt": prompt,
        "follow_up_tool": "speclinter_analyze_spec_quality_process",
        "schema": "AISpecQualityAnalysisSchema",
        "analysis_depth": analysis_depth,
        "project_context": _context_dict(project_context),
        "next_steps": [
            "AI will evaluate clarity, completeness, testability, feasibility and business value",
            "Pass the result to speclinter_analyze_spec_quality_process",
        ],
    }


def analyze_spec_quality_process(
    analysis: Optional[Dict[str, Any]],
    feature_name: Optional[str] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not analysis:
        return {"success": False, "error": "No analysis data provided"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_analyze_spec_quality", "process", feature_name=feature_name)

    result = validate_ai_analysis(analysis, "AISpecQualityAnalysisSchema")
    if not result.success:
        return _schema_error(result, root)
    quality: AISpecQualityAnalysis = result.data

    confidence_check = config_manager.validate_confidence_threshold(
        quality.ai_insights.confidence, root, "spec quality analysis"
    )
    if not confidence_check.success:
        return _threshold_error(confidence_check, "confidence_validation", root)

    dumped = quality.dump()
    return {
        "success": True,
        "feature_name": feature_name,
        "project_root": str(root),
        "quality_analysis": {
            "overallScore": quality.overall_score,
            "grade": quality.grade,
            "qualityDimensions": dumped["qualityDimensions"],
            "issueCount": len(quality.semantic_issues),
            "strengthCount": len(quality.strengths),
            "improvementCount": len(quality.improvements),
        },
        "semantic_issues": [
            {
                "type": issue.type,
                "severity": issue.severity,
                "description": issue.description,
                "suggestion": issue.suggestion,
                "confidence": issue.confidence,
            }
            for issue in quality.semantic_issues
        ],
        "strengths": dumped["strengths"],
        "improvements": dumped["improvements"],
        "ai_insights": dumped["aiInsights"],
        "next_steps": [
            "Use the quality analysis for task generation",
            "Address high-priority improvements before implementation",
        ],
    }


def _task_from_generated(ai_task: AIGeneratedTask, index: int, feature_name: str, notes: str) -> Task:
    slug = slugify(ai_task.title)
    implementation = ai_task.implementation
    steps = "\n".join(f"- {step}" for step in implementation.technical_steps)
    return Task(
        id=format_task_id(index),
        title=ai_task.title,
        slug=slug,
        summary=ai_task.summary,
        implementation=(
            f"{implementation.approach}\n\nTechnical Steps:\n{steps}\n\n"
            f"Files: {', '.join(implementation.file_locations)}"
        ),
        feature_name=feature_name,
        acceptance_criteria=[ac.criteria for ac in ai_task.acceptance_criteria],
        test_file=f"{slug}.feature",
        notes=notes,
        dependencies=[d.task_title for d in ai_task.dependencies],
        relevant_patterns=[PatternRef(name=p, anchor=slugify(p)) for p in implementation.code_patterns],
    )


def generate_tasks_prepare(
    spec: str,
    feature_name: str,
    quality_analysis: Optional[Dict[str, Any]] = None,
    context: Optional[str] = None,
    task_complexity: str = "standard",
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not spec or not feature_name:
        return {"success": False, "error": "Specification and feature name are required"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_generate_tasks", "prepare", feature_name=feature_name)

    with _open(root) as storage:
        values = _prompt_context(storage)
        project_context = storage.load_project_context()

    if quality_analysis:
        key_issues = "; ".join(
            issue.get("description", "") for issue in (quality_analysis.get("semantic_issues") or [])[:3]
        )
        quality_text = "\n".join([
            f"Quality Score: {quality_analysis.get('overallScore', 'Unknown')}/100",
            f"Issues Found: {quality_analysis.get('issueCount', 0)}",
            f"Strengths: {quality_analysis.get('strengthCount', 0)}",
            f"Key Issues: {key_issues or 'None'}",
        ])
    else:
        quality_text = "No quality analysis provided"

    prompt = fill(
        TASK_GENERATION,
        specification=spec,
        qualityAnalysis=quality_text,
        projectContext=context or "No additional context provided",
        projectStructure="Unknown organization",
        taskComplexity=task_complexity,
        **values,
    )

    return {
        "success": True,
        "action": "ai_analysis_required",
        "feature_name": feature_name,
        "project_root": str(root),
        "analysis_prompt": prompt,
        "follow_up_tool": "speclinter_generate_tasks_process",
        "schema": "AITaskGenerationSchema",
        "task_complexity": task_complexity,
        "project_context": _context_dict(project_context),
        "next_steps": [
            "AI will break the specification into tasks with implementation guidance",
            "Pass the result to speclinter_generate_tasks_process",
        ],
    }


def generate_tasks_process(
    analysis: Optional[Dict[str, Any]],
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not analysis:
        return {"success": False, "error": "No analysis data provided"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_generate_tasks", "process", feature_name=feature_name)

    result = validate_ai_analysis(analysis, "AITaskGenerationSchema")
    if not result.success:
        return _schema_error(result, root)
    generation: AITaskGeneration = result.data

    quality_check = config_manager.validate_quality_threshold(
        generation.quality_metrics.coverage_score, root, "task generation"
    )
    if not quality_check.success:
        return _threshold_error(quality_check, "quality_validation", root)

    tasks = [
        _task_from_generated(
            ai_task,
            index,
            feature_name,
            notes=(
                f"Business Value: {ai_task.business_value.user_impact}\n"
                f"Complexity: {ai_task.estimated_effort.complexity}\n"
                f"Risks: {'; '.join(ai_task.implementation.risk_factors)}"
            ),
        )
        for index, ai_task in enumerate(generation.tasks, start=1)
    ]

    metrics = generation.quality_metrics
    dumped = generation.dump()
    return {
        "success": True,
        "feature_name": feature_name,
        "project_root": str(root),
        "tasks": [t.to_dict() for t in tasks],
        "task_generation": {
            "taskCount": metrics.task_count,
            "averageComplexity": metrics.average_complexity,
            "coverageScore": metrics.coverage_score,
            "actionabilityScore": metrics.actionability_score,
            "testabilityScore": metrics.testability_score,
        },
        "implementation_strategy": dumped["implementationStrategy"],
        "task_relationships": dumped["taskRelationships"],
        "next_steps": [
            "Review task dependencies and relationships",
            "Consider the implementation strategy phases",
            "Generate Gherkin scenarios for testing",
        ],
    }


def analyze_spec_comprehensive_prepare(
    spec: str,
    feature_name: str,
    context: Optional[str] = None,
    analysis_depth: str = "standard",
    focus_areas: Optional[List[str]] = None,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not spec or not feature_name:
        return {"success": False, "error": "Specification and feature name are required"}

    focus_areas = focus_areas or []
    root = resolve_project_root(project_root)
    log_tool_call("speclinter_analyze_spec_comprehensive", "prepare", feature_name=feature_name)

    with _open(root) as storage:
        values = _prompt_context(storage)
        project_context = storage.load_project_context()

    prompt = fill(
        SPEC_PARSER_ANALYSIS,
        specification=spec,
        projectStructure="Unknown organization",
        teamContext=context or "Standard development team",
        analysisDepth=analysis_depth,
        focusAreas=", ".join(focus_areas) or "General analysis",
        **values,
    )

    return {
        "success": True,
        "action": "ai_analysis_required",
        "feature_name": feature_name,
        "project_root": str(root),
        "analysis_prompt": prompt,
        "follow_up_tool": "speclinter_analyze_spec_comprehensive_process",
        "schema": "AISpecParserAnalysisSchema",
        "analysis_depth": analysis_depth,
        "focus_areas": focus_areas,
        "project_context": _context_dict(project_context),
        "next_steps": [
            "AI will assess quality, generate tasks and check project alignment",
            "Pass the result to speclinter_analyze_spec_comprehensive_process",
        ],
    }


def analyze_spec_comprehensive_process(
    analysis: Optional[Dict[str, Any]],
    feature_name: str,
    project_root: Optional[str] = None,
) -> Dict[str, Any]:
    if not analysis:
        return {"success": False, "error": "No analysis data provided"}

    root = resolve_project_root(project_root)
    log_tool_call("speclinter_analyze_spec_comprehensive", "process", feature_name=feature_name)

    result = validate_ai_analysis(analysis, "AISpecParserAnalysisSchema")
    if not result.success:
        return _schema_error(result, root)
    parsed: AISpecParserAnalysis = result.data
    quality = parsed.quality_analysis

    confidence_check = config_manager.validate_confidence_threshold(
        parsed.ai_metadata.model_confidence, root, "comprehensive spec analysis"
    )
    if not confidence_check.success:
        return _threshold_error(confidence_check, "confidence_validation", root)

    quality_check = config_manager.validate_quality_threshold(
        quality.overall_score, root, "comprehensive spec analysis"
    )
    if not quality_check.success:
        response = _threshold_error(quality_check, "quality_validation", root)
        response["data"] = {
            "quality_issues": [issue.dump() for issue in quality.semantic_issues[:5]],
        }
        return response

    tasks = []
    for index, ai_task in enumerate(parsed.task_generation.tasks, start=1):
        task = _task_from_generated(
            ai_task,
            index,
            feature_name,
            notes=(
                f"Business Value: {ai_task.business_value.user_impact}\n"
                f"Complexity: {ai_task.estimated_effort.complexity}\n"
                f"Priority: {ai_task.business_value.priority}"
            ),
        )
        task.implementation += f"\n\nRisks: {'; '.join(ai_task.implementation.risk_factors)}"
        tasks.append(task)

    parse_result = ParseResult(
        spec="Specification processed by AI analysis",
        grade=quality.grade,
        score=round(quality.overall_score),
        tasks=tasks,
        improvements=[imp.suggestion for imp in quality.improvements],
        missing_elements=[issue.description for issue in quality.semantic_issues],
    )

    dumped = parsed.dump()
    metrics = parsed.task_generation.quality_metrics
    return {
        "success": True,
        "feature_name": feature_name,
        "project_root": str(root),
        "parse_result": parse_result.to_dict(),
        "comprehensive_analysis": {
            "qualityAnalysis": {
                "overallScore": quality.overall_score,
                "grade": quality.grade,
                "qualityDimensions": dumped["qualityAnalysis"]["qualityDimensions"],
                "issueCount": len(quality.semantic_issues),
                "strengthCount": len(quality.strengths),
            },
            "taskGeneration": {
                "taskCount": metrics.task_count,
                "coverageScore": metrics.coverage_score,
                "actionabilityScore": metrics.actionability_score,
            },
            "projectAlignment": dumped["projectAlignment"],
            "businessContext": dumped["businessContext"],
            "implementationGuidance": dumped["implementationGuidance"],
        },
        "ai_insights": {
            "confidence": parsed.ai_metadata.model_confidence,
            "analysisDepth": parsed.ai_metadata.analysis_depth,
            "contextFactors": parsed.ai_metadata.context_factors,
            "recommendations": parsed.ai_metadata.recommendations,
        },
        "next_steps": [
            "Review business context and project alignment",
            "Consider the implementation guidance and risk areas",
            "Save the tasks with speclinter_parse_spec or generate Gherkin scenarios",
        ],
    }
