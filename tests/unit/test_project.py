"""Unit tests for project root resolution and initialization."""

import pytest

from speclinter.project import PROJECT_ROOT_ENV, find_project_root, init_project, resolve_project_root


@pytest.fixture(autouse=True)
def no_root_env(monkeypatch):
    monkeypatch.delenv(PROJECT_ROOT_ENV, raising=False)


class TestFindProjectRoot:
    def test_start_is_root(self, project):
        assert find_project_root(project) == project

    def test_walks_up_from_nested_dir(self, project):
        nested = project / "src" / "auth" / "handlers"
        nested.mkdir(parents=True)

        assert find_project_root(nested) == project

    def test_nearest_ancestor_wins(self, project):
        inner = project / "packages" / "api"
        (inner / ".speclinter").mkdir(parents=True)
        nested = inner / "src"
        nested.mkdir()

        assert find_project_root(nested) == inner

    def test_no_project(self, tmp_path):
        assert find_project_root(tmp_path) is None


class TestResolveProjectRoot:
    """Argument, then environment, then nearest ancestor, then cwd."""

    def test_explicit_argument_beats_environment(self, project, tmp_path_factory, monkeypatch):
        other = tmp_path_factory.mktemp("other")
        monkeypatch.setenv(PROJECT_ROOT_ENV, str(other))

        assert resolve_project_root(str(project)) == project

    def test_environment_beats_ancestor(self, project, tmp_path_factory, monkeypatch):
        other = tmp_path_factory.mktemp("other").resolve()
        monkeypatch.setenv(PROJECT_ROOT_ENV, str(other))
        monkeypatch.chdir(project)

        assert resolve_project_root() == other

    def test_ancestor_from_nested_cwd(self, project, monkeypatch):
        nested = project / "src" / "auth"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert resolve_project_root() == project

    def test_falls_back_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert resolve_project_root() == tmp_path.resolve()

    def test_empty_argument_is_ignored(self, project, monkeypatch):
        monkeypatch.chdir(project)

        assert resolve_project_root("") == project


class TestInitProject:
    def test_creates_layout(self, tmp_path):
        result = init_project(str(tmp_path))

        assert result["success"] is True
        assert result["directories_created"] == [".speclinter", ".speclinter/context", ".speclinter/cache", "tasks"]
        assert (tmp_path / ".speclinter" / ".gitignore").read_text() == "cache/\n*.db\n*.db-journal\n"

    def test_nested_tool_call_uses_initialized_root(self, project, monkeypatch):
        nested = project / "docs"
        nested.mkdir()
        monkeypatch.chdir(nested)

        assert init_project()["success"] is False
        assert not (nested / ".speclinter").exists()
