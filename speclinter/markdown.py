"""Markdown and Gherkin documents written into the task tree and context dir."""

from __future__ import annotations

from typing import Iterable, List

from .models import FeatureStatus, Task

FOOTER = "*Generated by SpecLinter - Do not edit header metadata directly*"

PROJECT_TEMPLATE = """# Project Context

## Stack
- **Language**: [Your primary language]
- **Framework**: [Your main framework]
- **Database**: [Your database]
- **Testing**: [Your testing framework]

## Constraints
- [Add your project constraints here]

## Standards
- [Add your coding standards here]
"""

PATTERNS_TEMPLATE = """# Code Patterns

## Error Handling Pattern
Wrap fallible operations and return a structured error to the caller.

```
try:
    result = operation()
except OperationError as e:
    return {"success": False, "error": str(e)}
```

## API Response Pattern
Responses carry a success flag plus data or error.

```
{"success": True, "data": result}
```
"""

ARCHITECTURE_TEMPLATE = """# Architecture Decisions

## Overview
[Describe your system architecture]

## Key Design Decisions
- [Add key architectural decisions here]
"""

CONTEXT_TEMPLATES = {
    "project.md": PROJECT_TEMPLATE,
    "patterns.md": PATTERNS_TEMPLATE,
    "architecture.md": ARCHITECTURE_TEMPLATE,
}


def task_file_name(index: int, task: Task) -> str:
    """File name for the task at 0-based ``index``."""
    return f"task_{index + 1:02d}_{task.slug}.md"


def render_task(task: Task, feature_name: str) -> str:
    lines = [
        f"# Task: {task.title}",
        "",
        f"**ID**: {task.id}",
        f"**Status**: {task.status_emoji} {task.status}",
        f"**Feature**: {feature_name}",
    ]
    if task.dependencies:
        lines.append(f"**Dependencies**: {', '.join(task.dependencies)}")
    if task.blocks:
        lines.append(f"**Blocks**: {', '.join(task.blocks)}")

    lines += ["", "## Summary", task.summary, "", "## Implementation Details", task.implementation, ""]

    if task.relevant_patterns:
        lines.append("## Patterns to Follow")
        lines += [
            f"- {p.name}: See `.speclinter/context/patterns.md#{p.anchor}`"
            for p in task.relevant_patterns
        ]
        lines.append("")

    lines.append("## Acceptance Criteria")
    lines += [f"- [ ] {criterion}" for criterion in task.acceptance_criteria]
    lines += [
        "",
        "## Test Coverage",
        f"- **Gherkin**: `gherkin/{task.test_file}`",
        f"- **Target**: {task.coverage_target}",
        "",
        "## Implementation Notes",
        task.notes,
        "",
        "---",
        FOOTER,
    ]
    return "\n".join(lines) + "\n"


def render_basic_gherkin(task: Task) -> str:
    return (
        f"Feature: {task.title}\n"
        "\n"
        f"  Scenario: {task.title} - Happy Path\n"
        "    Given the system is ready\n"
        f"    When {task.summary}\n"
        "    Then the acceptance criteria are met\n"
        "\n"
        f"  Scenario: {task.title} - Error Handling\n"
        "    Given the system is ready\n"
        "    When an error occurs\n"
        "    Then it should be handled gracefully\n"
    )


def next_actions(tasks: Iterable[Task]) -> List[str]:
    tasks = list(tasks)
    actions = []
    blocked = [t for t in tasks if t.status == "blocked"]
    not_started = [t for t in tasks if t.status == "not_started"]
    if blocked:
        actions.append(f"Unblock {len(blocked)} blocked task(s)")
    if not_started:
        actions.append(f"Start work on: {not_started[0].title}")
    return actions


def render_active(status: FeatureStatus, tasks: List[Task]) -> str:
    lines = [
        f"# {status.feature_name} - Active Status",
        "",
        f"**Overall Progress**: {status.completed_tasks}/{status.total_tasks} tasks completed",
        f"**Status**: {status.overall_status}",
        f"**Last Updated**: {status.last_updated}",
        "",
        "## Tasks",
        "",
    ]
    for task in tasks:
        lines += [f"### {task.status_emoji} {task.title} ({task.id})", task.summary, ""]
        if task.status != "completed":
            lines += [f"**Next Steps**: {task.implementation}", ""]

    lines.append("## Next Actions")
    lines += [f"- {action}" for action in next_actions(tasks)]
    return "\n".join(lines) + "\n"
