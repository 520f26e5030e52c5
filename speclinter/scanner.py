"""Local file collection for codebase analysis and implementation validation.

Nothing here interprets code. Files are gathered, classified and ranked so
the calling AI can read them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import Task

logger = logging.getLogger("speclinter.scanner")

SOURCE_EXTENSIONS = (".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".cs", ".go", ".rs", ".php", ".rb")
CONFIG_EXTENSIONS = (".json", ".yaml", ".yml", ".toml", ".ini", ".env")
TEST_MARKERS = (".test.ts", ".test.js", ".spec.ts", ".spec.js", ".feature")
DOC_EXTENSIONS = (".md", ".txt", ".rst")

PRIORITY_FILES = (
    "package.json",
    "tsconfig.json",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    ".gitignore",
    "README.md",
    "pyproject.toml",
)

SKIP_DIRECTORIES = {
    "node_modules", ".git", "dist", "build", ".next", "coverage",
    ".speclinter", "__pycache__", ".venv",
}

FEATURE_SOURCE_DIRS = ("src", "lib", "app", "components", "pages", "routes", "api", "services")
RELEVANT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py", ".go", ".rs", ".java", ".cs", ".php", ".rb")
FEATURE_TEST_MARKERS = (".test.", ".spec.", ".e2e.")

MAX_WALK_DEPTH = 3
FEATURE_FILE_LIMIT = 20
FEATURE_CONTENT_LIMIT = 5000

LANGUAGE_BY_EXTENSION = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "py": "python",
    "go": "go",
    "rs": "rust",
    "java": "java",
    "cs": "csharp",
    "php": "php",
    "rb": "ruby",
}

_JS_FUNCTION = re.compile(r"(?:function\s+(\w+)|const\s+(\w+)\s*=\s*(?:async\s+)?\(|(\w+)\s*:\s*(?:async\s+)?\()")
_JS_EXPORT = re.compile(r"export\s+(?:default\s+)?(?:const\s+|function\s+|class\s+)?(\w+)")
_PY_FUNCTION = re.compile(r"^\s*(?:async\s+)?def\s+(\w+)", re.MULTILINE)
_PY_EXPORT = re.compile(r"^(?:class|def|async\s+def)\s+([A-Za-z]\w*)", re.MULTILINE)


@dataclass(slots=True)
class CollectedFile:
    """A file gathered for codebase analysis."""

    path: str
    content: str
    type: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "type": self.type, "size": self.size}


@dataclass(slots=True)
class FeatureFile:
    """A file that looks related to a feature's implementation."""

    path: str
    type: str
    relevance: float
    content: str
    functions: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "type": self.type,
            "relevance": self.relevance,
            "functions": list(self.functions),
            "exports": list(self.exports),
        }


# ----------------------------------------------------------------------
# Codebase collection
# ----------------------------------------------------------------------

def classify_file(name: str) -> Optional[str]:
    """Return ``source``, ``config``, ``test`` or ``doc``; ``None`` for anything else."""
    lower = name.lower()
    if lower.endswith(CONFIG_EXTENSIONS) or name.startswith("."):
        return "config"
    if any(marker in lower for marker in TEST_MARKERS):
        return "test"
    if lower.endswith(DOC_EXTENSIONS):
        return "doc"
    if lower.endswith(SOURCE_EXTENSIONS):
        return "source"
    return None


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Skipping unreadable file {path}: {e}")
        return None


def collect_relevant_files(root: Path, max_files: int = 50, max_file_size: int = 50000) -> List[CollectedFile]:
    """Gather manifest, source, test and doc files under ``root``.

    Priority files come first. The walk stops at ``max_files`` and never
    descends more than three directories deep.
    """
    root = Path(root)
    files: List[CollectedFile] = []

    for name in PRIORITY_FILES:
        path = root / name
        if len(files) >= max_files or not path.is_file():
            continue
        size = path.stat().st_size
        if size > max_file_size:
            continue
        content = _read_text(path)
        if content is None:
            continue
        file_type = "doc" if name.endswith(".md") else "config"
        files.append(CollectedFile(path=name, content=content, type=file_type, size=size))

    _walk(root, root, files, max_files, max_file_size, depth=0)
    logger.debug(f"Collected {len(files)} files under {root}")
    return files


def _walk(
    root: Path,
    directory: Path,
    files: List[CollectedFile],
    max_files: int,
    max_file_size: int,
    depth: int,
) -> None:
    if depth > MAX_WALK_DEPTH or len(files) >= max_files:
        return

    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.debug(f"Skipping unreadable directory {directory}: {e}")
        return

    for entry in entries:
        if len(files) >= max_files:
            return

        if entry.is_dir():
            if entry.name not in SKIP_DIRECTORIES:
                _walk(root, entry, files, max_files, max_file_size, depth + 1)
            continue

        if not entry.is_file():
            continue
        if depth == 0 and entry.name in PRIORITY_FILES:
            continue

        file_type = classify_file(entry.name)
        if file_type is None:
            continue

        size = entry.stat().st_size
        if size > max_file_size:
            continue

        content = _read_text(entry)
        if content is None:
            continue

        files.append(CollectedFile(
            path=entry.relative_to(root).as_posix(),
            content=content,
            type=file_type,
            size=size,
        ))


# ----------------------------------------------------------------------
# Feature implementation scan
# ----------------------------------------------------------------------

def build_search_terms(feature_name: str, tasks: List[Task]) -> List[str]:
    terms = [feature_name.lower()]
    terms += [part.lower() for part in re.split(r"[-_]", feature_name)]
    for task in tasks:
        terms.append(task.title.lower())
        terms.append(task.slug)
        terms += [word.lower() for word in task.title.split()]

    unique = []
    for term in terms:
        if len(term) > 2 and term not in unique:
            unique.append(term)
    return unique


def is_relevant_file(name: str) -> bool:
    return name.endswith(RELEVANT_EXTENSIONS) or any(marker in name for marker in FEATURE_TEST_MARKERS)


def feature_file_type(name: str) -> str:
    if any(marker in name for marker in FEATURE_TEST_MARKERS):
        return "test"
    if "config" in name:
        return "config"
    if name.endswith((".md", ".txt", ".doc")):
        return "documentation"
    return "source"


def file_relevance(name: str, path: str, terms: List[str]) -> float:
    lower_name = name.lower()
    lower_path = path.lower()
    relevance = 0.0
    for term in terms:
        if term in lower_name:
            relevance += 0.5
        if term in lower_path:
            relevance += 0.3
    return min(relevance, 1.0)


def content_relevance(content: str, terms: List[str]) -> float:
    if not content:
        return 0.0
    lower = content.lower()
    relevance = sum(lower.count(term) / len(content) * 1000 for term in terms)
    return min(relevance, 1.0)


def _unique(names: List[str], limit: int = 10) -> List[str]:
    result = []
    for name in names:
        if name and name not in result:
            result.append(name)
    return result[:limit]


def extract_functions(content: str, name: str) -> List[str]:
    if name.endswith((".ts", ".tsx", ".js", ".jsx")):
        return _unique([next(g for g in m.groups() if g) for m in _JS_FUNCTION.finditer(content)])
    if name.endswith(".py"):
        return _unique(_PY_FUNCTION.findall(content))
    return []


def extract_exports(content: str, name: str) -> List[str]:
    if name.endswith((".ts", ".tsx", ".js", ".jsx")):
        return _unique(_JS_EXPORT.findall(content))
    if name.endswith(".py"):
        # Top-level public names stand in for exports.
        return _unique([n for n in _PY_EXPORT.findall(content) if not n.startswith("_")])
    return []


def scan_feature_implementation(root: Path, feature_name: str, tasks: List[Task]) -> List[FeatureFile]:
    """Rank files under the usual source directories by relevance to a feature."""
    root = Path(root)
    terms = build_search_terms(feature_name, tasks)
    found: Dict[str, FeatureFile] = {}

    for dirname in FEATURE_SOURCE_DIRS:
        directory = root / dirname
        if directory.is_dir():
            _scan_directory(root, directory, terms, found, max_depth=MAX_WALK_DEPTH, depth=0)

    _scan_directory(root, root, terms, found, max_depth=1, depth=0)

    ranked = sorted(found.values(), key=lambda f: f.relevance, reverse=True)
    return ranked[:FEATURE_FILE_LIMIT]


def _scan_directory(
    root: Path,
    directory: Path,
    terms: List[str],
    found: Dict[str, FeatureFile],
    max_depth: int,
    depth: int,
) -> None:
    if depth >= max_depth:
        return

    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError:
        return

    for entry in entries:
        if entry.is_dir():
            if not entry.name.startswith(".") and entry.name not in SKIP_DIRECTORIES:
                _scan_directory(root, entry, terms, found, max_depth, depth + 1)
            continue

        if not entry.is_file() or not is_relevant_file(entry.name):
            continue

        relative = entry.relative_to(root).as_posix()
        if relative in found:
            continue

        name_score = file_relevance(entry.name, relative, terms)
        if name_score <= 0.1:
            continue

        content = _read_text(entry)
        if content is None:
            continue

        relevance = max(name_score, content_relevance(content, terms))
        if relevance <= 0.2:
            continue

        if len(content) > FEATURE_CONTENT_LIMIT:
            shown = content[:FEATURE_CONTENT_LIMIT] + "\n... (truncated)"
        else:
            shown = content

        found[relative] = FeatureFile(
            path=relative,
            type=feature_file_type(entry.name),
            relevance=relevance,
            content=shown,
            functions=extract_functions(content, entry.name),
            exports=extract_exports(content, entry.name),
        )


def load_gherkin_scenarios(root: Path, tasks_dir: Path, feature_name: str) -> List[Dict[str, str]]:
    """Read every ``.feature`` file stored for ``feature_name``."""
    gherkin_dir = Path(root) / tasks_dir / feature_name / "gherkin"
    if not gherkin_dir.is_dir():
        return []

    scenarios = []
    for path in sorted(gherkin_dir.glob("*.feature")):
        content = _read_text(path)
        if content is not None:
            scenarios.append({"file": path.name, "content": content})
    return scenarios


def language_for(path: str) -> str:
    """Code fence language for ``path``."""
    ext = Path(path).suffix.lstrip(".")
    return LANGUAGE_BY_EXTENSION.get(ext, ext)
