"""Unit tests for SpecLinter data models."""

from speclinter.models import (
    DuplicateInfo,
    ExistingFeature,
    FeatureStatus,
    ParseResult,
    PatternRef,
    ProjectContext,
    SaveFeatureOptions,
    SaveFeatureResult,
    SimilarFeature,
    Task,
    format_task_id,
    pattern_anchor,
    slugify,
)


def make_task(task_id="task_01", status="not_started", **kwargs):
    defaults = dict(
        id=task_id,
        title="Create login endpoint",
        slug="create-login-endpoint",
        summary="POST /login",
        implementation="Add a route",
        feature_name="user-login",
        status=status,
    )
    defaults.update(kwargs)
    return Task(**defaults)


class TestHelpers:
    """Naming helpers shared by storage and markdown."""

    def test_slugify(self):
        assert slugify("Create login endpoint") == "create-login-endpoint"
        assert slugify("Add OAuth 2.0 (Google)") == "add-oauth-2-0-google-"

    def test_format_task_id(self):
        assert format_task_id(1) == "task_01"
        assert format_task_id(12) == "task_12"

    def test_pattern_anchor(self):
        assert pattern_anchor("Error Handling Pattern") == "error-handling-pattern"


class TestTask:
    """Test cases for Task."""

    def test_to_dict_is_camel_case(self):
        task = make_task(acceptance_criteria=["Returns 200"], relevant_patterns=[PatternRef("API", "api")])

        data = task.to_dict()

        assert data["featureName"] == "user-login"
        assert data["acceptanceCriteria"] == ["Returns 200"]
        assert data["relevantPatterns"] == [{"name": "API", "anchor": "api"}]
        assert data["statusEmoji"] == "⏳"

    def test_status_emoji(self):
        assert make_task(status="completed").status_emoji == "✅"
        assert make_task(status="in_progress").status_emoji == "🔄"
        assert make_task(status="blocked").status_emoji == "🚫"


class TestParseResult:
    def test_to_dict(self):
        result = ParseResult(spec="spec", grade="B", score=82, tasks=[make_task()], missing_elements=["user story"])

        data = result.to_dict()

        assert data["grade"] == "B"
        assert data["tasks"][0]["id"] == "task_01"
        assert data["missingElements"] == ["user story"]


class TestFeatureStatus:
    """Aggregation of task statuses."""

    def test_counts(self):
        tasks = [
            make_task("task_01", "completed"),
            make_task("task_02", "in_progress"),
            make_task("task_03", "blocked"),
            make_task("task_04"),
        ]

        status = FeatureStatus.from_tasks("user-login", tasks, "now")

        assert status.total_tasks == 4
        assert status.completed_tasks == 1
        assert status.in_progress_tasks == 1
        assert status.blocked_tasks == 1
        assert status.overall_status == "in_progress"
        assert status.progress_percent == 25

    def test_all_completed(self):
        tasks = [make_task("task_01", "completed"), make_task("task_02", "completed")]
        assert FeatureStatus.from_tasks("f", tasks, "now").overall_status == "completed"

    def test_blocked_without_progress(self):
        tasks = [make_task("task_01", "blocked"), make_task("task_02")]
        assert FeatureStatus.from_tasks("f", tasks, "now").overall_status == "blocked"

    def test_not_started(self):
        assert FeatureStatus.from_tasks("f", [make_task()], "now").overall_status == "not_started"

    def test_empty_feature_counts_as_completed(self):
        status = FeatureStatus.from_tasks("f", [], "now")

        assert status.overall_status == "completed"
        assert status.progress_percent == 0

    def test_to_dict(self):
        data = FeatureStatus.from_tasks("user-login", [make_task()], "2026-01-01").to_dict()

        assert data == {
            "featureName": "user-login",
            "totalTasks": 1,
            "completedTasks": 0,
            "inProgressTasks": 0,
            "blockedTasks": 0,
            "overallStatus": "not_started",
            "lastUpdated": "2026-01-01",
        }


class TestDeduplicationModels:
    """Duplicate reports and save options."""

    def test_duplicate_info_with_existing_feature(self):
        info = DuplicateInfo(
            type="exact_match",
            similar_features=[SimilarFeature("user-login", 0.9, "Login...", 2)],
            recommended_action="replace",
            existing_feature=ExistingFeature("user-login", "spec", "B", 82, 2),
        )

        data = info.to_dict()

        assert data["recommendedAction"] == "replace"
        assert data["similarFeatures"][0]["taskCount"] == 2
        assert data["existingFeature"]["taskCount"] == 2

    def test_duplicate_info_without_existing_feature(self):
        info = DuplicateInfo(type="similar_features", similar_features=[], recommended_action="merge")
        assert "existingFeature" not in info.to_dict()

    def test_save_options_validate(self):
        assert SaveFeatureOptions(on_similar_found="merge", similarity_threshold=0.5).validate() == []

        issues = SaveFeatureOptions(on_similar_found="ignore", similarity_threshold=1.5).validate()
        assert len(issues) == 2

    def test_save_result_saved(self):
        assert SaveFeatureResult(files=["a.md"]).saved
        assert not SaveFeatureResult(files=[]).saved
        assert SaveFeatureResult(files=[]).to_dict() == {"files": [], "duplicateInfo": None, "mergeResult": None}


class TestProjectContext:
    def test_is_empty(self):
        assert ProjectContext().is_empty()
        assert not ProjectContext(constraints=["No ORMs"]).is_empty()
