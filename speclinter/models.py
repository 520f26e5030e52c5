"""Data models for SpecLinter features and tasks.

These records move between storage, the file tree and tool responses.
``to_dict`` emits the camelCase keys the IDE sees.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TASK_STATUSES = ("not_started", "in_progress", "completed", "blocked")
DEDUPLICATION_STRATEGIES = ("prompt", "merge", "replace", "skip")

STATUS_EMOJI = {
    "completed": "✅",
    "in_progress": "🔄",
    "blocked": "🚫",
}


def status_emoji(status: str) -> str:
    return STATUS_EMOJI.get(status, "⏳")


def slugify(text: str) -> str:
    """Lowercase ``text`` and collapse runs of other characters into ``-``."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower())


def format_task_id(index: int) -> str:
    """Task id for the 1-based ``index``."""
    return f"task_{index:02d}"


def pattern_anchor(name: str) -> str:
    return re.sub(r"\s+", "-", name.lower())


@dataclass(slots=True)
class PatternRef:
    name: str
    anchor: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "anchor": self.anchor}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternRef":
        return cls(name=data["name"], anchor=data.get("anchor") or pattern_anchor(data["name"]))


@dataclass(slots=True)
class Task:
    """A unit of work generated from a feature specification."""

    id: str
    title: str
    slug: str
    summary: str
    implementation: str
    feature_name: str
    status: str = "not_started"
    acceptance_criteria: List[str] = field(default_factory=list)
    test_file: str = ""
    coverage_target: str = "90%"
    notes: str = ""
    dependencies: List[str] = field(default_factory=list)
    blocks: List[str] = field(default_factory=list)
    relevant_patterns: List[PatternRef] = field(default_factory=list)

    @property
    def status_emoji(self) -> str:
        return status_emoji(self.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "summary": self.summary,
            "implementation": self.implementation,
            "status": self.status,
            "statusEmoji": self.status_emoji,
            "featureName": self.feature_name,
            "acceptanceCriteria": list(self.acceptance_criteria),
            "testFile": self.test_file,
            "coverageTarget": self.coverage_target,
            "notes": self.notes,
            "dependencies": list(self.dependencies),
            "blocks": list(self.blocks),
            "relevantPatterns": [p.to_dict() for p in self.relevant_patterns],
        }


@dataclass(slots=True)
class ParseResult:
    """Graded analysis of a specification."""

    spec: str
    grade: str
    score: int
    tasks: List[Task] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    missing_elements: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spec": self.spec,
            "grade": self.grade,
            "score": self.score,
            "tasks": [t.to_dict() for t in self.tasks],
            "improvements": list(self.improvements),
            "missingElements": list(self.missing_elements),
        }


@dataclass(slots=True)
class FeatureStatus:
    feature_name: str
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    blocked_tasks: int
    overall_status: str
    last_updated: str

    @classmethod
    def from_tasks(cls, feature_name: str, tasks: List[Task], last_updated: str) -> "FeatureStatus":
        statuses = [t.status for t in tasks]
        completed = statuses.count("completed")
        in_progress = statuses.count("in_progress")
        blocked = statuses.count("blocked")

        # An empty feature has nothing outstanding.
        if completed == len(statuses):
            overall = "completed"
        elif in_progress:
            overall = "in_progress"
        elif blocked:
            overall = "blocked"
        else:
            overall = "not_started"

        return cls(
            feature_name=feature_name,
            total_tasks=len(statuses),
            completed_tasks=completed,
            in_progress_tasks=in_progress,
            blocked_tasks=blocked,
            overall_status=overall,
            last_updated=last_updated,
        )

    @property
    def progress_percent(self) -> int:
        if not self.total_tasks:
            return 0
        return round(self.completed_tasks / self.total_tasks * 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureName": self.feature_name,
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "inProgressTasks": self.in_progress_tasks,
            "blockedTasks": self.blocked_tasks,
            "overallStatus": self.overall_status,
            "lastUpdated": self.last_updated,
        }


@dataclass(slots=True)
class TestResult:
    __test__ = False

    passed: int
    failed: int
    skipped: int
    coverage: Optional[float] = None
    details: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class SimilarFeature:
    feature_name: str
    score: float
    summary: str
    task_count: int
    status: str = "active"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureName": self.feature_name,
            "score": self.score,
            "summary": self.summary,
            "taskCount": self.task_count,
            "status": self.status,
        }


@dataclass(slots=True)
class ExistingFeature:
    name: str
    spec: str
    grade: str
    score: int
    task_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "spec": self.spec,
            "grade": self.grade,
            "score": self.score,
            "taskCount": self.task_count,
        }


@dataclass(slots=True)
class DuplicateInfo:
    type: str
    similar_features: List[SimilarFeature]
    recommended_action: str
    existing_feature: Optional[ExistingFeature] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type,
            "similarFeatures": [f.to_dict() for f in self.similar_features],
            "recommendedAction": self.recommended_action,
        }
        if self.existing_feature is not None:
            result["existingFeature"] = self.existing_feature.to_dict()
        return result


@dataclass(slots=True)
class MergeResult:
    files: List[str]
    merged_tasks: List[Task]
    original_task_count: int
    new_task_count: int
    duplicate_tasks_skipped: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": list(self.files),
            "mergedTasks": [t.to_dict() for t in self.merged_tasks],
            "originalTaskCount": self.original_task_count,
            "newTaskCount": self.new_task_count,
            "duplicateTasksSkipped": self.duplicate_tasks_skipped,
        }


@dataclass(slots=True)
class SaveFeatureOptions:
    on_similar_found: Optional[str] = None
    similarity_threshold: Optional[float] = None
    skip_similarity_check: bool = False

    def validate(self) -> List[str]:
        issues = []
        if self.on_similar_found and self.on_similar_found not in DEDUPLICATION_STRATEGIES:
            issues.append(f"Unknown deduplication strategy '{self.on_similar_found}'")
        if self.similarity_threshold is not None and not 0 <= self.similarity_threshold <= 1:
            issues.append("Similarity threshold must be between 0 and 1")
        return issues


@dataclass(slots=True)
class SaveFeatureResult:
    files: List[str]
    duplicate_info: Optional[DuplicateInfo] = None
    merge_result: Optional[MergeResult] = None

    @property
    def saved(self) -> bool:
        return bool(self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": list(self.files),
            "duplicateInfo": self.duplicate_info.to_dict() if self.duplicate_info else None,
            "mergeResult": self.merge_result.to_dict() if self.merge_result else None,
        }


@dataclass(slots=True)
class CodePatternSummary:
    name: str
    description: str
    anchor: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "description": self.description, "anchor": self.anchor}


@dataclass(slots=True)
class ProjectContext:
    """Stack, constraints and patterns parsed from the context documents."""

    stack: Dict[str, str] = field(default_factory=dict)
    constraints: List[str] = field(default_factory=list)
    standards: List[str] = field(default_factory=list)
    patterns: List[CodePatternSummary] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.stack or self.constraints or self.standards or self.patterns)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stack": dict(self.stack),
            "constraints": list(self.constraints),
            "standards": list(self.standards),
            "patterns": [p.to_dict() for p in self.patterns],
        }
