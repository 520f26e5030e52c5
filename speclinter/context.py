"""Project context documents under ``.speclinter/context``.

The IDE's model writes these from a codebase analysis. SpecLinter reads
them back when it builds prompts for later tools.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from .ai_schemas import AICodebaseAnalysis, AICodePattern, AIContextFiles, AITechStack
from .speclinter_logging import log_context_update
from .validation import SPECLINTER_DIR

CONTEXT_FILES = ("project.md", "patterns.md", "architecture.md")

STACK_LABELS = {
    "frontend": "Frontend",
    "backend": "Backend",
    "database": "Database",
    "testing": "Testing",
    "build_tool": "Build Tool",
    "package_manager": "Package Manager",
    "language": "Language",
}

_STACK_SECTION = re.compile(r"^## Stack.*?(?=^## |\Z)", re.MULTILINE | re.DOTALL)
_PATTERN_BLOCK = re.compile(r"### (.+?) \(Confidence: (\d+)%\)\s*([^#]*?)(?=#|\Z)", re.DOTALL)

# Checked in order; first hit wins per field.
_STACK_KEYWORDS = {
    "language": ("TypeScript", "JavaScript", "Python"),
    "frontend": ("React", "Vue", "Angular"),
    "backend": ("Node.js", "Express", "FastAPI", "Django", "Flask"),
    "testing": ("Vitest", "Jest", "pytest"),
}
_ARCHITECTURE_KEYWORDS = (
    ("microservices", "Microservices"),
    ("monolith", "Monolith"),
    ("MCP", "MCP Server"),
)


def context_dir(root: Path) -> Path:
    return Path(root) / SPECLINTER_DIR / "context"


def _percent(value: float) -> int:
    return round(value * 100)


def _bullets(items: List[str], fallback: str) -> List[str]:
    return [f"- {item}" for item in items] if items else [f"- {fallback}"]


def stack_lines(tech_stack: AITechStack) -> List[str]:
    lines = []
    for attr, label in STACK_LABELS.items():
        value = getattr(tech_stack, attr)
        if value:
            lines.append(f"- **{label}**: {value}")
    return lines


def stack_section(tech_stack: AITechStack) -> str:
    lines = [f"## Stack (AI Confidence: {_percent(tech_stack.confidence)}%)"]
    lines += stack_lines(tech_stack)
    return "\n".join(lines) + "\n\n"


def _pattern_block(pattern: AICodePattern, fence: str) -> List[str]:
    found_in = ", ".join(loc.file for loc in pattern.locations) or "Multiple files"
    return [
        f"### {pattern.name} (Confidence: {_percent(pattern.confidence)}%)",
        pattern.description,
        "",
        f"**Found in**: {found_in}",
        "",
        f"```{fence}",
        pattern.example,
        "```",
        "",
    ]


def _quality_label(score: float) -> str:
    if score >= 85:
        return "Excellent"
    if score >= 70:
        return "Good"
    return "Needs Improvement"


def _naming_lines(analysis: AICodebaseAnalysis) -> List[str]:
    naming = analysis.naming_conventions
    lines = [
        f"- **File naming**: {naming.file_naming}",
        f"- **Variable naming**: {naming.variable_naming}",
        f"- **Function naming**: {naming.function_naming}",
    ]
    if naming.class_naming:
        lines.append(f"- **Class naming**: {naming.class_naming}")
    if naming.constant_naming:
        lines.append(f"- **Constant naming**: {naming.constant_naming}")
    return lines


def _render_project(analysis: AICodebaseAnalysis) -> str:
    stack = analysis.tech_stack
    structure = analysis.project_structure
    quality = analysis.code_quality

    if quality.overall_score >= 80:
        maturity = "high"
    elif quality.overall_score >= 60:
        maturity = "moderate"
    else:
        maturity = "developing"

    lines = [
        "# Project Context",
        "",
        "## Project Overview",
        f"This is a {stack.language or 'software'} project with a {structure.architecture} architecture. "
        f"The codebase shows {maturity} code quality.",
        "",
        stack_section(stack).rstrip("\n"),
        "",
        "## Architecture Decisions",
        f"- **Project Structure**: {structure.organization_pattern}",
        f"- **Entry Points**: {', '.join(structure.entry_points) or 'Standard application entry points'}",
        f"- **Configuration**: {', '.join(structure.config_files) or 'Standard configuration files'}",
        "",
        "## Code Quality Metrics",
        f"- **Overall Score**: {quality.overall_score:g}/100 ({_quality_label(quality.overall_score)})",
        f"- **Maintainability**: {quality.maintainability:g}/100",
        f"- **Test Coverage**: {_score_or_unassessed(quality.test_coverage)}",
        f"- **Documentation**: {quality.documentation:g}/100",
        "",
        "## Naming Conventions",
        *_naming_lines(analysis),
        "",
        "## Key Insights",
        *_bullets(analysis.insights, "No specific insights provided"),
        "",
        "## Development Recommendations",
        *_bullets(analysis.recommendations, "No specific recommendations provided"),
        "",
        "## Quality Issues",
    ]
    if quality.issues:
        for issue in quality.issues:
            lines.append(f"- **{issue.type}** ({issue.severity}): {issue.description}")
            if issue.suggestion:
                lines.append(f"  *Suggestion*: {issue.suggestion}")
    else:
        lines.append("- No significant quality issues detected")

    testing = "Well-tested codebase" if (quality.test_coverage or 0) >= 70 else "Testing coverage could be improved"
    if quality.maintainability >= 80:
        maintainability = "High maintainability with clear patterns"
    else:
        maintainability = "Moderate maintainability, room for improvement"
    lines += [
        "",
        "## Constraints",
        f"- Designed for a {structure.architecture} architecture",
        f"- {maintainability}",
        f"- {testing}",
    ]
    return "\n".join(lines) + "\n"


def _score_or_unassessed(score: Optional[float]) -> str:
    return "Not assessed" if score is None else f"{score:g}/100"


def _render_patterns(analysis: AICodebaseAnalysis) -> str:
    fence = (analysis.tech_stack.language or "").lower()
    lines = ["# AI-Discovered Code Patterns", ""]
    sections = (
        ("Error Handling Patterns", analysis.error_patterns, "No error patterns detected"),
        ("API Patterns", analysis.api_patterns, "No API patterns detected"),
        ("Testing Patterns", analysis.test_patterns, "No testing patterns detected"),
    )
    for title, patterns, empty in sections:
        lines += [f"## {title}", ""]
        if not patterns:
            lines += [empty, ""]
        for pattern in patterns:
            lines += _pattern_block(pattern, fence)

    lines += [
        "## AI Insights",
        *_bullets(analysis.insights, "No specific insights provided"),
        "",
        "## AI Recommendations",
        *_bullets(analysis.recommendations, "No specific recommendations provided"),
        "",
        "---",
        "",
        "# Manual Patterns",
        "",
        "Add your project-specific patterns below...",
    ]
    return "\n".join(lines) + "\n"


def _render_architecture(analysis: AICodebaseAnalysis) -> str:
    structure = analysis.project_structure
    quality = analysis.code_quality

    lines = [
        "# System Architecture",
        "",
        "## Architecture Overview",
        f"This project implements a **{structure.architecture}** architecture organized as "
        f"{structure.organization_pattern}.",
        "",
        "## Technology Stack",
        *stack_lines(analysis.tech_stack),
        "",
        "## Architecture Patterns",
    ]
    lines += [f"- **{p.name}**: {p.description}" for p in analysis.api_patterns] or [
        "- Standard architectural patterns implemented"
    ]
    lines += [
        "",
        "## Project Organization",
        f"- **Source Directory**: `{structure.src_dir}`",
        f"- **Test Directory**: `{structure.test_dir}`",
        f"- **Entry Points**: {', '.join(structure.entry_points) or 'Standard application entry points'}",
        f"- **Configuration**: {', '.join(structure.config_files) or 'Standard configuration files'}",
        "",
    ]

    for title, patterns, empty in (
        ("Error Handling Strategy", analysis.error_patterns, "Standard error handling throughout the codebase."),
        ("Testing Architecture", analysis.test_patterns, "Unit and integration tests."),
    ):
        lines += [f"## {title}", ""]
        if not patterns:
            lines += [empty, ""]
        for pattern in patterns:
            lines += [
                f"### {pattern.name}",
                pattern.description,
                "",
                f"**Implementation**: `{pattern.example}`",
                f"**Confidence**: {_percent(pattern.confidence)}%",
                "",
            ]

    lines += [
        "## Quality Metrics",
        f"- **Overall Score**: {quality.overall_score:g}/100 ({_quality_label(quality.overall_score)})",
        f"- **Maintainability**: {quality.maintainability:g}/100",
        f"- **Test Coverage**: {_score_or_unassessed(quality.test_coverage)}",
        f"- **Documentation**: {quality.documentation:g}/100",
        "",
        "## Development Standards",
        *_naming_lines(analysis),
        "",
        "## Architectural Insights",
        *_bullets(analysis.insights, "No specific insights provided"),
        "",
        "## Future Considerations",
        *_bullets(analysis.recommendations, "No specific recommendations provided"),
    ]
    return "\n".join(lines) + "\n"


def generate_context_files_from_analysis(analysis: AICodebaseAnalysis) -> AIContextFiles:
    """Derive all three context documents from an analysis alone."""
    return AIContextFiles(
        project_md=_render_project(analysis),
        patterns_md=_render_patterns(analysis),
        architecture_md=_render_architecture(analysis),
    )


def refresh_stack_section(content: str, tech_stack: AITechStack) -> str:
    """Replace the ``## Stack`` section, or add one after the title when absent."""
    section = stack_section(tech_stack)
    if _STACK_SECTION.search(content):
        return _STACK_SECTION.sub(lambda _: section, content, count=1)

    title, sep, rest = content.partition("\n")
    if title.startswith("# "):
        return f"{title}\n\n{section}" + rest.lstrip("\n")
    return section + content


class ContextUpdater:
    """Writes AI-generated context documents for one project."""

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self.context_dir = context_dir(self.root)
        self.logger = logging.getLogger("speclinter.context")

    def update_context_files_from_ai(
        self,
        analysis: AICodebaseAnalysis,
        context_files: Optional[AIContextFiles] = None,
    ) -> List[str]:
        if context_files is None:
            context_files = generate_context_files_from_analysis(analysis)

        self.context_dir.mkdir(parents=True, exist_ok=True)
        contents = {
            "project.md": refresh_stack_section(context_files.project_md, analysis.tech_stack),
            "patterns.md": context_files.patterns_md,
            "architecture.md": context_files.architecture_md,
        }

        written = []
        for name, content in contents.items():
            path = self.context_dir / name
            path.write_text(content, encoding="utf-8")
            written.append(str(path.relative_to(self.root)))

        self.logger.info(f"Updated {len(written)} context files")
        log_context_update(written, ai_confidence=analysis.tech_stack.confidence)
        return written


def extract_tech_stack(content: str) -> Dict[str, str]:
    stack = {}
    for key, keywords in _STACK_KEYWORDS.items():
        match = next((word for word in keywords if word in content), None)
        if match:
            stack[key] = match
    return stack


def extract_patterns(content: str) -> List[Dict[str, Any]]:
    return [
        {
            "name": name.strip(),
            "description": description.strip(),
            "confidence": int(confidence) / 100,
            "example": "",
        }
        for name, confidence, description in _PATTERN_BLOCK.findall(content)
    ]


def extract_architecture(content: str) -> str:
    for keyword, label in _ARCHITECTURE_KEYWORDS:
        if keyword in content:
            return label
    return "Unknown"


def load_project_context_from_files(root: Path | str) -> Dict[str, Any]:
    """Heuristic view of the context documents used in validation prompts."""
    directory = context_dir(Path(root))
    contents = {}
    for name in CONTEXT_FILES:
        path = directory / name
        contents[name] = path.read_text(encoding="utf-8") if path.is_file() else ""

    return {
        "techStack": extract_tech_stack(contents["project.md"]),
        "patterns": extract_patterns(contents["patterns.md"]),
        "projectStructure": {"architecture": extract_architecture(contents["architecture.md"])},
        "hasContext": any(contents.values()),
    }
