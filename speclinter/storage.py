"""SQLite persistence plus the markdown task tree for SpecLinter features.

This module owns the project database (features, tasks, test results and
stored validations) and keeps ``tasks/<feature>/`` in step with it.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Config, DEFAULT_CONFIG, load_config, write_config
from .markdown import (
    CONTEXT_TEMPLATES,
    render_active,
    render_basic_gherkin,
    render_task,
    task_file_name,
)
from .models import (
    CodePatternSummary,
    DuplicateInfo,
    ExistingFeature,
    FeatureStatus,
    MergeResult,
    ParseResult,
    PatternRef,
    ProjectContext,
    SaveFeatureOptions,
    SaveFeatureResult,
    SimilarFeature,
    Task,
    TASK_STATUSES,
    TestResult,
    format_task_id,
    pattern_anchor,
)
from .similarity import calculate_similarity, merge_specs
from .speclinter_logging import (
    log_error_with_context,
    log_feature_merged,
    log_feature_saved,
    log_operation,
    log_performance,
    log_task_update,
)
from .validation import SPECLINTER_DIR

PROJECT_DIRECTORIES = (".speclinter", ".speclinter/context", ".speclinter/cache", "tasks")
GITIGNORE_CONTENT = "cache/\n*.db\n*.db-journal\n"

SCHEMA = """
CREATE TABLE IF NOT EXISTS features (
    id TEXT PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    spec TEXT NOT NULL,
    grade TEXT NOT NULL,
    score INTEGER NOT NULL,
    embedding BLOB,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT NOT NULL,
    feature_name TEXT NOT NULL,
    sequence INTEGER NOT NULL,
    title TEXT NOT NULL,
    slug TEXT NOT NULL,
    summary TEXT NOT NULL,
    implementation TEXT NOT NULL,
    status TEXT NOT NULL,
    acceptance_criteria TEXT NOT NULL,
    test_file TEXT NOT NULL,
    coverage_target TEXT NOT NULL,
    notes TEXT NOT NULL,
    dependencies TEXT,
    blocks TEXT,
    relevant_patterns TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (feature_name, id),
    FOREIGN KEY (feature_name) REFERENCES features(name)
);

CREATE TABLE IF NOT EXISTS test_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    feature_name TEXT NOT NULL,
    task_id TEXT,
    passed INTEGER NOT NULL,
    failed INTEGER NOT NULL,
    skipped INTEGER NOT NULL,
    coverage REAL NOT NULL,
    details TEXT NOT NULL,
    run_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (feature_name) REFERENCES features(name)
);

CREATE TABLE IF NOT EXISTS validation_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    feature_name TEXT NOT NULL,
    overall_status TEXT NOT NULL,
    completion_percentage REAL NOT NULL,
    quality_score REAL NOT NULL,
    analysis TEXT NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class NotInitializedError(RuntimeError):
    """Raised when a project has no ``.speclinter`` directory."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_section(content: str, section: str) -> Dict[str, str]:
    """Parse ``- **Key**: Value`` lines under the first line mentioning ``section``."""
    lines = content.split("\n")
    start = next((i for i, line in enumerate(lines) if section.lower() in line.lower()), None)
    if start is None:
        return {}

    result = {}
    for line in lines[start + 1:]:
        line = line.strip()
        if line.startswith("##"):
            break
        match = re.match(r"- \*\*(.+?)\*\*: (.+)", line)
        if match:
            result[match.group(1)] = match.group(2)
    return result


def _parse_list_section(content: str, section: str) -> List[str]:
    lines = content.split("\n")
    start = next((i for i, line in enumerate(lines) if section.lower() in line.lower()), None)
    if start is None:
        return []

    result = []
    for line in lines[start + 1:]:
        line = line.strip()
        if line.startswith("##"):
            break
        if line.startswith("-"):
            result.append(line[1:].strip())
    return result


def _parse_patterns(content: str) -> List[CodePatternSummary]:
    lines = content.split("\n")
    patterns = []
    for i, line in enumerate(lines):
        line = line.strip()
        if line.startswith("## "):
            name = line[3:]
            description = lines[i + 1].strip() if i + 1 < len(lines) else ""
            patterns.append(CodePatternSummary(name=name, description=description, anchor=pattern_anchor(name)))
    return patterns


class Storage:
    """Feature and task persistence for one project root."""

    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()
        self.speclinter_dir = self.root / SPECLINTER_DIR
        self.context_dir = self.speclinter_dir / "context"
        self.config: Optional[Config] = None
        self.tasks_dir = self.root / "tasks"
        self.conn: Optional[sqlite3.Connection] = None
        self.logger = logging.getLogger("speclinter.storage")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> "Storage":
        if not self.speclinter_dir.is_dir():
            raise NotInitializedError(
                'SpecLinter not initialized. Run "speclinter init" in your project root first.'
            )

        self.config = load_config(self.root)
        self.tasks_dir = (self.root / self.config.storage.tasks_dir).resolve()

        db_path = (self.root / self.config.storage.db_path).resolve()
        db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(SCHEMA)
        self.conn.commit()

        self.logger.debug(f"Storage initialized at {db_path}")
        return self

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "Storage":
        if self.conn is None:
            self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def db(self) -> sqlite3.Connection:
        if self.conn is None:
            raise RuntimeError("Storage not initialized")
        return self.conn

    def get_config(self) -> Config:
        if self.config is None:
            raise RuntimeError("Storage not initialized")
        return self.config

    def feature_dir(self, feature_name: str) -> Path:
        return self.tasks_dir / feature_name

    # ------------------------------------------------------------------
    # Project context
    # ------------------------------------------------------------------

    def load_project_context(self) -> Optional[ProjectContext]:
        """Parse the context documents; ``None`` when none of them yields anything."""
        context = ProjectContext()

        project_md = self.context_dir / "project.md"
        if project_md.is_file():
            content = project_md.read_text(encoding="utf-8")
            context.stack = _parse_section(content, "Stack")
            context.constraints = _parse_list_section(content, "Constraints")
            context.standards = _parse_list_section(content, "Standards")

        patterns_md = self.context_dir / "patterns.md"
        if patterns_md.is_file():
            context.patterns = _parse_patterns(patterns_md.read_text(encoding="utf-8"))

        return None if context.is_empty() else context

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    @log_performance("save_feature")
    def save_feature(
        self,
        feature_name: str,
        tasks: List[Task],
        parse_result: ParseResult,
        options: Optional[SaveFeatureOptions] = None,
    ) -> SaveFeatureResult:
        """Persist a feature, consulting the deduplication policy first.

        ``prompt`` and ``skip`` return without writing anything and carry the
        duplicate report; ``merge`` folds the new tasks into the existing
        feature; ``replace`` overwrites.
        """
        options = options or SaveFeatureOptions()
        issues = options.validate()
        if issues:
            raise ValueError("; ".join(issues))

        config = self.get_config()
        existing = self.get_existing_feature(feature_name)

        if not options.skip_similarity_check and config.deduplication.enabled:
            threshold = (
                options.similarity_threshold
                if options.similarity_threshold is not None
                else config.deduplication.similarity_threshold
            )
            similar = [
                f for f in self.find_similar(parse_result.spec, threshold)
                if f.feature_name != feature_name
            ]

            if similar or existing:
                duplicate_info = DuplicateInfo(
                    type="exact_match" if existing else "similar_features",
                    similar_features=similar,
                    recommended_action=self.get_recommended_action(similar, existing),
                    existing_feature=existing,
                )
                strategy = options.on_similar_found or config.deduplication.default_strategy
                self.logger.info(
                    f"Duplicate check for {feature_name}: {duplicate_info.type}, strategy {strategy}",
                    extra={"extra_fields": {
                        "feature_name": feature_name,
                        "duplicate_type": duplicate_info.type,
                        "strategy": strategy,
                    }},
                )

                if strategy == "merge":
                    return self.merge_with_existing(feature_name, tasks, parse_result, duplicate_info)
                if strategy != "replace":
                    return SaveFeatureResult(files=[], duplicate_info=duplicate_info)

        files = self._save_feature_internal(feature_name, tasks, parse_result)
        return SaveFeatureResult(files=files)

    @staticmethod
    def get_recommended_action(
        similar: List[SimilarFeature],
        existing: Optional[ExistingFeature] = None,
    ) -> str:
        if existing is not None:
            return "replace"
        if not similar:
            return "merge"

        highest = max(f.score for f in similar)
        if highest > 0.95:
            return "skip"
        if highest > 0.8:
            return "merge"
        return "rename"

    def merge_with_existing(
        self,
        feature_name: str,
        new_tasks: List[Task],
        parse_result: ParseResult,
        duplicate_info: DuplicateInfo,
    ) -> SaveFeatureResult:
        """Append the new tasks that are not near-duplicates of existing ones.

        With only similar features, the merge lands in the best-scoring one.
        """
        target = duplicate_info.existing_feature
        if target is None:
            best = duplicate_info.similar_features[0]
            target = self.get_existing_feature(best.feature_name)
            if target is None:
                raise KeyError(f"Feature '{best.feature_name}' not found")

        task_threshold = self.get_config().deduplication.task_similarity_threshold
        existing_tasks = self.get_feature_tasks(target.name)

        unique = [
            task for task in new_tasks
            if not any(
                calculate_similarity(task.summary, old.summary) > task_threshold
                for old in existing_tasks
            )
        ]
        for offset, task in enumerate(unique, start=len(existing_tasks) + 1):
            task.id = format_task_id(offset)
            task.feature_name = target.name

        merged_tasks = existing_tasks + unique
        merged_result = ParseResult(
            spec=merge_specs(target.spec, parse_result.spec),
            grade=parse_result.grade,
            score=parse_result.score,
            tasks=merged_tasks,
            improvements=parse_result.improvements,
            missing_elements=parse_result.missing_elements,
        )

        with log_operation("merge_feature", feature_name=target.name):
            files = self._save_feature_internal(target.name, merged_tasks, merged_result)

        skipped = len(new_tasks) - len(unique)
        log_feature_merged(target.name, len(unique), skipped)
        return SaveFeatureResult(
            files=files,
            duplicate_info=duplicate_info,
            merge_result=MergeResult(
                files=files,
                merged_tasks=merged_tasks,
                original_task_count=len(existing_tasks),
                new_task_count=len(unique),
                duplicate_tasks_skipped=skipped,
            ),
        )

    def _save_feature_internal(
        self,
        feature_name: str,
        tasks: List[Task],
        parse_result: ParseResult,
    ) -> List[str]:
        feature_dir = self.feature_dir(feature_name)
        gherkin_dir = feature_dir / "gherkin"

        try:
            with log_operation("save_feature_files", feature_name=feature_name, task_count=len(tasks)):
                gherkin_dir.mkdir(parents=True, exist_ok=True)
                for stale in feature_dir.glob("task_*.md"):
                    stale.unlink()

                feature_id = f"feat_{int(datetime.now().timestamp() * 1000)}"
                with self.db:
                    self.db.execute(
                        "INSERT OR REPLACE INTO features (id, name, spec, grade, score) VALUES (?, ?, ?, ?, ?)",
                        (feature_id, feature_name, parse_result.spec, parse_result.grade, parse_result.score),
                    )
                    self.db.execute("DELETE FROM tasks WHERE feature_name = ?", (feature_name,))
                    for sequence, task in enumerate(tasks):
                        task.feature_name = feature_name
                        self._insert_task(task, sequence)

                created: List[str] = []
                for index, task in enumerate(tasks):
                    task_path = feature_dir / task_file_name(index, task)
                    task_path.write_text(render_task(task, feature_name), encoding="utf-8")
                    created.append(str(task_path))

                    if task.test_file:
                        gherkin_path = gherkin_dir / task.test_file
                        gherkin_path.write_text(render_basic_gherkin(task), encoding="utf-8")
                        created.append(str(gherkin_path))

                meta_path = feature_dir / "meta.json"
                meta_path.write_text(json.dumps({
                    "featureName": feature_name,
                    "grade": parse_result.grade,
                    "score": parse_result.score,
                    "taskCount": len(tasks),
                    "createdAt": _now(),
                }, indent=2), encoding="utf-8")
                created.append(str(meta_path))

                created.append(str(self.update_active_file(feature_name)))
        except (OSError, sqlite3.Error) as e:
            log_error_with_context(e, {"operation": "save_feature", "feature_name": feature_name})
            raise

        log_feature_saved(feature_name, len(tasks), grade=parse_result.grade)
        return created

    def _insert_task(self, task: Task, sequence: int) -> None:
        self.db.execute(
            """
            INSERT OR REPLACE INTO tasks (
                id, feature_name, sequence, title, slug, summary, implementation, status,
                acceptance_criteria, test_file, coverage_target, notes,
                dependencies, blocks, relevant_patterns
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.id,
                task.feature_name,
                sequence,
                task.title,
                task.slug,
                task.summary,
                task.implementation,
                task.status,
                json.dumps(task.acceptance_criteria),
                task.test_file,
                task.coverage_target,
                task.notes,
                json.dumps(task.dependencies),
                json.dumps(task.blocks),
                json.dumps([p.to_dict() for p in task.relevant_patterns]),
            ),
        )

    def get_existing_feature(self, feature_name: str) -> Optional[ExistingFeature]:
        row = self.db.execute("SELECT * FROM features WHERE name = ?", (feature_name,)).fetchone()
        if row is None:
            return None
        return ExistingFeature(
            name=row["name"],
            spec=row["spec"],
            grade=row["grade"],
            score=row["score"],
            task_count=self.get_task_count(feature_name),
        )

    def get_all_features(self) -> List[Dict[str, Any]]:
        rows = self.db.execute("SELECT name, spec, grade, score, created_at FROM features ORDER BY name").fetchall()
        return [dict(row) for row in rows]

    def find_similar(self, spec: str, threshold: float = 0.8) -> List[SimilarFeature]:
        """Stored features scoring at least ``threshold`` against ``spec``, best first."""
        results = []
        for row in self.db.execute("SELECT name, spec FROM features").fetchall():
            score = calculate_similarity(spec, row["spec"])
            if score >= threshold:
                results.append(SimilarFeature(
                    feature_name=row["name"],
                    score=score,
                    summary=row["spec"][:100] + "...",
                    task_count=self.get_task_count(row["name"]),
                ))
        results.sort(key=lambda f: f.score, reverse=True)
        return results

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def get_task_count(self, feature_name: str) -> int:
        row = self.db.execute("SELECT COUNT(*) AS count FROM tasks WHERE feature_name = ?", (feature_name,)).fetchone()
        return row["count"]

    def get_feature_tasks(self, feature_name: str) -> List[Task]:
        rows = self.db.execute(
            "SELECT * FROM tasks WHERE feature_name = ? ORDER BY sequence", (feature_name,)
        ).fetchall()
        return [self._row_to_task(row) for row in rows]

    def get_task(self, feature_name: str, task_id: str) -> Optional[Task]:
        row = self.db.execute(
            "SELECT * FROM tasks WHERE feature_name = ? AND id = ?", (feature_name, task_id)
        ).fetchone()
        return self._row_to_task(row) if row else None

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            slug=row["slug"],
            summary=row["summary"],
            implementation=row["implementation"],
            feature_name=row["feature_name"],
            status=row["status"],
            acceptance_criteria=json.loads(row["acceptance_criteria"]),
            test_file=row["test_file"],
            coverage_target=row["coverage_target"],
            notes=row["notes"],
            dependencies=json.loads(row["dependencies"] or "[]"),
            blocks=json.loads(row["blocks"] or "[]"),
            relevant_patterns=[PatternRef.from_dict(p) for p in json.loads(row["relevant_patterns"] or "[]")],
        )

    def get_feature_status(self, feature_name: str) -> FeatureStatus:
        return FeatureStatus.from_tasks(feature_name, self.get_feature_tasks(feature_name), _now())

    def update_task_status(
        self,
        feature_name: str,
        task_id: str,
        status: str,
        notes: Optional[str] = None,
    ) -> Task:
        if status not in TASK_STATUSES:
            raise ValueError(f"Invalid status '{status}'. Expected one of: {', '.join(TASK_STATUSES)}")

        with self.db:
            self.db.execute(
                "UPDATE tasks SET status = ?, notes = ?, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ? AND feature_name = ?",
                (status, notes or "", task_id, feature_name),
            )

        task = self.get_task(feature_name, task_id)
        if task is None:
            raise KeyError(f"Task {task_id} not found")

        log_task_update(feature_name, task_id, status)
        return task

    def update_active_file(self, feature_name: str) -> Path:
        status = self.get_feature_status(feature_name)
        tasks = self.get_feature_tasks(feature_name)

        active_path = self.feature_dir(feature_name) / "_active.md"
        active_path.parent.mkdir(parents=True, exist_ok=True)
        active_path.write_text(render_active(status, tasks), encoding="utf-8")
        return active_path

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def update_test_results(self, feature_name: str, results: TestResult, task_id: Optional[str] = None) -> None:
        with self.db:
            self.db.execute(
                "INSERT INTO test_results (feature_name, task_id, passed, failed, skipped, coverage, details) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    feature_name,
                    task_id,
                    results.passed,
                    results.failed,
                    results.skipped,
                    results.coverage or 0.0,
                    json.dumps(results.details),
                ),
            )

    def update_validation_results(self, feature_name: str, analysis: Dict[str, Any]) -> None:
        """Store an implementation validation (camelCase payload) for ``feature_name``."""
        with self.db:
            self.db.execute(
                "INSERT INTO validation_results "
                "(feature_name, overall_status, completion_percentage, quality_score, analysis) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    feature_name,
                    analysis["overallStatus"],
                    analysis["completionPercentage"],
                    analysis["qualityScore"],
                    json.dumps(analysis),
                ),
            )

    def get_validation_results(self, feature_name: str) -> Optional[Dict[str, Any]]:
        row = self.db.execute(
            "SELECT analysis, created_at FROM validation_results WHERE feature_name = ? "
            "ORDER BY id DESC LIMIT 1",
            (feature_name,),
        ).fetchone()
        if row is None:
            return None
        result = json.loads(row["analysis"])
        result["validatedAt"] = row["created_at"]
        return result


def create_project_layout(root: Path, config: Config = DEFAULT_CONFIG, overwrite: bool = False) -> List[str]:
    """Create the project directories, config and ``.gitignore``.

    Existing config and ``.gitignore`` files are kept unless ``overwrite``.
    """
    created = []
    for directory in PROJECT_DIRECTORIES:
        (root / directory).mkdir(parents=True, exist_ok=True)
        created.append(directory)

    config_file = root / SPECLINTER_DIR / "config.json"
    if overwrite or not config_file.exists():
        write_config(root, config)

    gitignore = root / SPECLINTER_DIR / ".gitignore"
    if overwrite or not gitignore.exists():
        gitignore.write_text(GITIGNORE_CONTENT, encoding="utf-8")

    return created


def create_context_templates(context_dir: Path) -> List[Path]:
    """Write placeholder context documents that do not exist yet."""
    written = []
    for filename, content in CONTEXT_TEMPLATES.items():
        path = context_dir / filename
        if not path.exists():
            path.write_text(content, encoding="utf-8")
            written.append(path)
    return written


class StorageManager:
    """Storage factory that bootstraps uninitialized projects."""

    @staticmethod
    def create_initialized_storage(root: Path | str) -> Storage:
        logger = logging.getLogger("speclinter.storage")
        storage = Storage(root)
        try:
            return storage.initialize()
        except NotInitializedError:
            logger.warning("SpecLinter not initialized. Auto-initializing with default configuration...")

        StorageManager.auto_initialize(storage.root)
        storage.initialize()
        logger.info(f"SpecLinter auto-initialized at {storage.root}")
        return storage

    @staticmethod
    def auto_initialize(root: Path) -> None:
        try:
            create_project_layout(root)
            create_context_templates(root / SPECLINTER_DIR / "context")
        except OSError as e:
            raise OSError(f"Failed to auto-initialize SpecLinter: {e}") from e
