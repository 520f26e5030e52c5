"""Documentation and worked examples for the AI analysis schemas."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .ai_schemas import SCHEMAS, json_schema

SCHEMA_USAGE = {
    "AICodebaseAnalysisWithContextSchema": (
        "Combined codebase analysis and context files generation",
        ["speclinter_analyze_codebase_process"],
    ),
    "AICodebaseAnalysisSchema": (
        "Codebase analysis without context files; the files are derived from it",
        ["speclinter_analyze_codebase_process"],
    ),
    "AIContextFilesSchema": (
        "project.md, patterns.md and architecture.md contents",
        ["speclinter_analyze_codebase_process"],
    ),
    "AISpecAnalysisSchema": (
        "Specification analysis with quality assessment and task extraction",
        ["speclinter_parse_spec_process"],
    ),
    "AISimilarityAnalysisSchema": (
        "Semantic similarity between a specification and existing features",
        ["speclinter_find_similar_process"],
    ),
    "AIFeatureValidationSchema": (
        "Implementation validation against tasks and acceptance criteria",
        ["speclinter_validate_implementation_process"],
    ),
    "AIGherkinAnalysisSchema": (
        "Gherkin scenario generation with quality metrics",
        ["speclinter_generate_gherkin_process"],
    ),
    "AISpecQualityAnalysisSchema": (
        "Semantic quality assessment of a specification",
        ["speclinter_analyze_spec_quality_process"],
    ),
    "AITaskGenerationSchema": (
        "Task breakdown with implementation guidance",
        ["speclinter_generate_tasks_process"],
    ),
    "AISpecParserAnalysisSchema": (
        "Quality, tasks, alignment and guidance in one analysis",
        ["speclinter_analyze_spec_comprehensive_process"],
    ),
}

PROJECT_MD_EXAMPLE = """# SpecLinter

## Overview
SpecLinter is a local MCP server that turns natural-language specifications into graded,
testable development tasks.

## Stack (AI Confidence: 95%)
- **Backend**: MCP server (FastMCP)
- **Database**: SQLite
- **Testing**: pytest
- **Build Tool**: setuptools
- **Package Manager**: pip
- **Language**: Python

## Constraints
- Tools communicate over stdio
- The server never calls a model itself

## Standards
- Tools return plain dicts with a success flag
- Loggers are named speclinter.*
"""

PATTERNS_MD_EXAMPLE = """# AI-Discovered Code Patterns

## Error Handling Patterns

### Standard Error Response (Confidence: 90%)
Exceptions raised inside tools are converted into a dict with error_type and suggestions.

**Found in**: speclinter/server.py, speclinter/validation.py

```python
except Exception as e:
    return create_error_response(e, step=name)
```

## Testing Patterns

### Class-Grouped pytest Tests (Confidence: 85%)
Tests are grouped into TestXxx classes and use tmp_path for isolation.

**Found in**: tests/unit/test_storage.py

```python
class TestStorage:
    def test_save_feature(self, storage):
        ...
```
"""

ARCHITECTURE_MD_EXAMPLE = """# System Architecture

## Architecture Overview
A modular MCP server organized as one package with a module per concern.

## Two-Phase Tools
1. **Prepare**: collect local data and build an analysis prompt
2. **Process**: validate the analysis against a schema and persist the result

## Storage
SQLite holds features and tasks; markdown files mirror them for people to read.
"""


def generate_codebase_analysis_example() -> Dict[str, Any]:
    """A complete, valid ``AICodebaseAnalysisWithContextSchema`` payload."""
    return {
        "analysis": {
            "techStack": {
                "backend": "MCP server (FastMCP)",
                "database": "SQLite",
                "testing": "pytest",
                "buildTool": "setuptools",
                "packageManager": "pip",
                "language": "Python",
                "confidence": 0.95,
            },
            "errorPatterns": [
                {
                    "name": "Standard Error Response",
                    "description": "Exceptions raised inside tools become a dict with error_type and suggestions",
                    "example": "except Exception as e:\n    return create_error_response(e, step=name)",
                    "confidence": 0.9,
                    "locations": [
                        {"file": "speclinter/server.py", "lineStart": 30, "lineEnd": 45},
                        {"file": "speclinter/validation.py", "lineStart": 190, "lineEnd": 225},
                    ],
                }
            ],
            "apiPatterns": [
                {
                    "name": "FastMCP Tool Registration",
                    "description": "Tools are plain functions registered with a decorator",
                    "example": "@mcp.tool()\ndef speclinter_init_project(project_root=None): ...",
                    "confidence": 0.95,
                    "locations": [{"file": "speclinter/server.py"}],
                }
            ],
            "testPatterns": [
                {
                    "name": "Class-Grouped pytest Tests",
                    "description": "Tests grouped into TestXxx classes using tmp_path",
                    "example": "class TestStorage:\n    def test_save_feature(self, storage): ...",
                    "confidence": 0.85,
                    "locations": [{"file": "tests/unit/test_storage.py", "lineStart": 1, "lineEnd": 60}],
                }
            ],
            "namingConventions": {
                "fileNaming": "snake_case modules",
                "variableNaming": "snake_case",
                "functionNaming": "snake_case",
                "classNaming": "PascalCase",
                "constantNaming": "UPPER_SNAKE_CASE",
                "examples": [
                    {"type": "file", "example": "ai_tools.py", "convention": "snake_case"},
                    {"type": "variable", "example": "project_root", "convention": "snake_case"},
                    {"type": "function", "example": "parse_spec_process", "convention": "snake_case"},
                    {"type": "class", "example": "StorageManager", "convention": "PascalCase"},
                    {"type": "constant", "example": "DEFAULT_CONFIG", "convention": "UPPER_SNAKE_CASE"},
                ],
            },
            "projectStructure": {
                "srcDir": "speclinter",
                "testDir": "tests",
                "configFiles": ["pyproject.toml", ".speclinter/config.json"],
                "entryPoints": ["speclinter/cli.py", "speclinter/server.py"],
                "architecture": "modular",
                "organizationPattern": "one module per concern",
            },
            "codeQuality": {
                "overallScore": 85,
                "maintainability": 90,
                "testCoverage": 75,
                "documentation": 80,
                "issues": [
                    {
                        "type": "documentation",
                        "severity": "medium",
                        "description": "Some prompt builders lack docstrings",
                        "file": "speclinter/ai_tools.py",
                        "suggestion": "Document the prompt placeholders each builder fills",
                    }
                ],
            },
            "insights": [
                "Every AI payload is validated with pydantic before it is persisted",
                "Markdown files mirror the SQLite store",
            ],
            "recommendations": [
                "Add integration tests for the merge strategy",
                "Cache context file parsing between tool calls",
            ],
        },
        "contextFiles": {
            "projectMd": PROJECT_MD_EXAMPLE,
            "patternsMd": PATTERNS_MD_EXAMPLE,
            "architectureMd": ARCHITECTURE_MD_EXAMPLE,
        },
    }


def generate_minimal_example() -> Dict[str, Any]:
    """The smallest valid ``AICodebaseAnalysisWithContextSchema`` payload."""
    return {
        "analysis": {
            "techStack": {"language": "Python", "confidence": 0.8},
            "errorPatterns": [],
            "apiPatterns": [],
            "testPatterns": [],
            "namingConventions": {
                "fileNaming": "snake_case",
                "variableNaming": "snake_case",
                "functionNaming": "snake_case",
                "examples": [],
            },
            "projectStructure": {
                "srcDir": "src",
                "testDir": "tests",
                "configFiles": ["pyproject.toml"],
                "entryPoints": ["src/main.py"],
                "architecture": "modular",
                "organizationPattern": "by feature",
            },
            "codeQuality": {
                "overallScore": 80,
                "maintainability": 80,
                "documentation": 70,
                "issues": [],
            },
            "insights": ["Basic Python project structure"],
            "recommendations": ["Add more comprehensive analysis"],
        },
        "contextFiles": {
            "projectMd": "# Project\n\nBasic project documentation.",
            "patternsMd": "# Patterns\n\nNo specific patterns detected.",
            "architectureMd": "# Architecture\n\nModular Python architecture.",
        },
    }


def get_schema_documentation(schema_name: str) -> Dict[str, Any]:
    if schema_name not in SCHEMAS:
        return {
            "description": "Unknown schema",
            "suggestion": "Check the tool description for schema requirements",
        }

    description, used_by = SCHEMA_USAGE.get(schema_name, ("", []))
    documentation = {
        "description": description,
        "used_by": used_by,
        "json_schema": json_schema(schema_name),
    }
    if schema_name == "AICodebaseAnalysisWithContextSchema":
        documentation["structure"] = {
            "analysis": "AICodebaseAnalysisSchema object",
            "contextFiles": "AIContextFilesSchema object",
        }
    return documentation


def get_schema_help(
    schema_name: Optional[str] = None,
    include_example: bool = True,
    example_type: str = "complete",
) -> Dict[str, Any]:
    if not schema_name:
        return {
            "success": True,
            "available_schemas": [
                {"name": name, "description": description, "used_by": used_by}
                for name, (description, used_by) in SCHEMA_USAGE.items()
            ],
            "usage": "Call this tool with schema_name to get detailed documentation and examples",
        }

    if schema_name not in SCHEMAS:
        return {
            "success": False,
            "error": f"Unknown schema: {schema_name}",
            "available_schemas": sorted(SCHEMAS),
        }

    result = {
        "success": True,
        "schema_name": schema_name,
        "documentation": get_schema_documentation(schema_name),
    }
    if include_example and schema_name == "AICodebaseAnalysisWithContextSchema":
        if example_type == "minimal":
            result["example"] = generate_minimal_example()
        else:
            result["example"] = generate_codebase_analysis_example()
    return result
