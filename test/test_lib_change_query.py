#!/usr/bin/env python3
"""Tests for monorepo_check.change_query."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from monorepo_check.change_query import ChangedProjects, ChangeSummary
from monorepo_check.project_graph import ProjectGraph, build_project_nodes


@pytest.fixture
def changed_monorepo(monorepo_graph: ProjectGraph) -> ChangedProjects:
    """Monorepo snapshot with changes in :libs:base (2 files) and :tools:codegen (1 file)."""
    nodes = build_project_nodes(
        monorepo_graph,
        {
            ":libs:base": ["libs/base/A.kt", "libs/base/B.kt"],
            ":tools:codegen": ["tools/codegen/Gen.kt"],
        },
    )
    return ChangedProjects(list(nodes.values()))


class TestChangedProjectsQueries:
    """Test the query facade over a snapshot."""

    def test_changed_projects(self, changed_monorepo: ChangedProjects) -> None:
        assert changed_monorepo.get_changed_projects() == ["base", "common", "app1", "app2", "codegen"]
        assert changed_monorepo.get_changed_project_paths() == [":libs:base", ":libs:common", ":apps:app1", ":apps:app2", ":tools:codegen"]
        assert changed_monorepo.get_changed_project_count() == 5

    def test_all_projects(self, changed_monorepo: ChangedProjects) -> None:
        assert len(changed_monorepo) == 8
        assert changed_monorepo.get_all_projects()[:3] == ["root", "libs", "base"]
        assert changed_monorepo.get_all_project_paths()[-1] == ":tools:codegen"

    def test_find_project_by_name(self, changed_monorepo: ChangedProjects) -> None:
        project = changed_monorepo.find_project_by_name("app1")
        assert project is not None
        assert project.fully_qualified_path == ":apps:app1"
        assert changed_monorepo.find_project_by_name(":apps:app2") is not None
        assert changed_monorepo.find_project_by_name("missing") is None

    def test_direct_changes(self, changed_monorepo: ChangedProjects) -> None:
        direct = changed_monorepo.get_projects_with_direct_changes()
        assert [project.name for project in direct] == ["base", "codegen"]
        assert changed_monorepo.get_direct_change_paths() == [":libs:base", ":tools:codegen"]

    def test_prefix_queries(self, changed_monorepo: ChangedProjects) -> None:
        assert changed_monorepo.get_changed_project_paths_with_prefix(":apps") == [":apps:app1", ":apps:app2"]
        assert changed_monorepo.get_changed_project_names_with_prefix(":libs") == ["base", "common"]
        assert changed_monorepo.get_changed_project_paths_with_prefix(":app") == [":apps:app1", ":apps:app2"]
        assert changed_monorepo.get_changed_projects_with_prefix(":nothing") == []

    def test_prefix_is_case_sensitive(self, changed_monorepo: ChangedProjects) -> None:
        assert changed_monorepo.get_changed_project_paths_with_prefix(":Apps") == []

    def test_changed_file_counts(self, changed_monorepo: ChangedProjects) -> None:
        assert changed_monorepo.get_changed_file_count_by_project() == {
            ":libs:base": 2,
            ":libs:common": 0,
            ":apps:app1": 0,
            ":apps:app2": 0,
            ":tools:codegen": 1,
        }

    def test_changed_files(self, changed_monorepo: ChangedProjects) -> None:
        assert changed_monorepo.get_all_changed_files() == {"libs/base/A.kt", "libs/base/B.kt", "tools/codegen/Gen.kt"}
        assert changed_monorepo.get_total_changed_files_count() == 3
        assert changed_monorepo.has_any_changes()

    def test_projects_depending_on(self, changed_monorepo: ChangedProjects) -> None:
        dependents = changed_monorepo.get_projects_depending_on("base")
        assert [project.fully_qualified_path for project in dependents] == [":libs:common", ":apps:app1", ":apps:app2"]
        assert [project.name for project in changed_monorepo.get_projects_depending_on(":libs:common")] == ["app1"]
        assert changed_monorepo.get_projects_depending_on("unknown") == []

    def test_transitive_dependents_exclude_self(self, chain_graph: ProjectGraph) -> None:
        """Dependents of the chain's base are common and app, never base itself."""
        changed = ChangedProjects(list(build_project_nodes(chain_graph).values()))
        assert [project.name for project in changed.get_projects_depending_on("base")] == ["common", "app"]

    def test_no_changes(self, monorepo_graph: ProjectGraph) -> None:
        changed = ChangedProjects(list(build_project_nodes(monorepo_graph).values()))
        assert changed.get_changed_projects() == []
        assert changed.get_changed_project_count() == 0
        assert not changed.has_any_changes()
        assert changed.get_changed_file_count_by_project() == {}

    def test_repr(self, changed_monorepo: ChangedProjects) -> None:
        assert repr(changed_monorepo) == "ChangedProjects(total=8, changed=5, files=3)"


class TestRootProjectHandling:
    """Test that the root is only affected by its own files."""

    def test_root_reached_through_dependency_is_not_affected(self, make_graph) -> None:
        graph = make_graph({":": [":submodule"], ":submodule": []})
        nodes = build_project_nodes(graph, {":submodule": ["submodule/A.kt"]})
        changed = ChangedProjects(list(nodes.values()))
        assert changed.get_changed_project_paths() == [":submodule"]
        assert nodes[":"].has_changes()

    def test_root_with_own_files_is_affected(self, make_graph) -> None:
        graph = make_graph({":": [], ":submodule": []})
        nodes = build_project_nodes(graph, {":": ["build.gradle.kts"]})
        changed = ChangedProjects(list(nodes.values()))
        assert changed.get_changed_project_paths() == [":"]

    def test_custom_root_path(self, make_graph) -> None:
        graph = make_graph({":platform": [":lib"], ":lib": []}, directories={":platform": ""})
        nodes = build_project_nodes(graph, {":lib": ["lib/A.kt"]})
        assert ChangedProjects(list(nodes.values()), root_project_path=":platform").get_changed_project_paths() == [":lib"]
        assert ChangedProjects(list(nodes.values()), root_project_path=None).get_changed_project_paths() == [":platform", ":lib"]


class TestChangeSummary:
    """Test summary generation."""

    def test_summary(self, changed_monorepo: ChangedProjects) -> None:
        summary = changed_monorepo.get_summary()
        assert summary.total_projects == 8
        assert summary.changed_projects == 2
        assert summary.affected_projects == 5
        assert summary.total_changed_files == 3
        assert summary.project_names == [":libs:base", ":tools:codegen"]

    def test_to_dict(self) -> None:
        summary = ChangeSummary(total_projects=3, changed_projects=1, affected_projects=2, total_changed_files=4, project_names=[":a"], affected_project_names=[":a", ":b"])
        assert summary.to_dict() == {
            "total_projects": 3,
            "changed_projects": 1,
            "affected_projects": 2,
            "total_changed_files": 4,
            "project_names": [":a"],
            "affected_project_names": [":a", ":b"],
        }

    def test_format(self) -> None:
        summary = ChangeSummary(total_projects=3, changed_projects=1, affected_projects=2, total_changed_files=4, project_names=[":a"], affected_project_names=[":a", ":b"])
        text = summary.format()
        assert text.startswith("Change Summary:")
        assert "Affected Projects (including dependents): 2" in text
        assert "All Affected: :a, :b" in text
