#!/usr/bin/env python3
"""Tests for monorepo_check.detection (full detection cycle without git)."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from monorepo_check.detection import detect_changed_projects
from monorepo_check.project_graph import ProjectGraph


class TestDetectChangedProjects:
    """Test mapping, exclusion and closure combined."""

    def test_no_changes(self, monorepo_graph: ProjectGraph) -> None:
        result = detect_changed_projects(monorepo_graph, [])
        assert result.all_affected_projects == frozenset()
        assert dict(result.changed_files_map) == {}
        assert len(result.metadata_map) == len(monorepo_graph)

    def test_dependency_change_affects_dependents(self, monorepo_graph: ProjectGraph) -> None:
        result = detect_changed_projects(monorepo_graph, ["libs/base/src/Base.kt"])
        assert result.all_affected_projects == {":libs:base", ":libs:common", ":apps:app1", ":apps:app2"}
        assert result.directly_changed_projects == [":libs:base"]
        assert result.transitively_affected_projects == [":apps:app1", ":apps:app2", ":libs:common"]

    def test_containers_are_not_reported(self, monorepo_graph: ProjectGraph) -> None:
        result = detect_changed_projects(monorepo_graph, ["apps/app1/src/App.kt"])
        assert ":apps" in result.changed_files_map
        assert result.all_affected_projects == {":apps:app1"}

    def test_root_only_with_own_files(self, monorepo_graph: ProjectGraph) -> None:
        result = detect_changed_projects(monorepo_graph, ["libs/base/src/Base.kt"])
        assert ":" not in result.all_affected_projects

        result = detect_changed_projects(monorepo_graph, ["libs/base/src/Base.kt", "build.gradle.kts"])
        assert ":" in result.all_affected_projects
        assert result.changed_files_map[":"] == ("build.gradle.kts",)

    def test_root_reached_through_dependencies(self, make_graph) -> None:
        graph = make_graph({":": [":submodule"], ":submodule": []})
        result = detect_changed_projects(graph, ["submodule/src/main/A.kt"])
        assert result.all_affected_projects == {":submodule"}
        assert result.changed_projects().get_changed_project_paths() == [":submodule"]

    def test_unowned_files_are_ignored(self, make_graph) -> None:
        graph = make_graph({":a": [], ":b": [":a"]})
        result = detect_changed_projects(graph, ["docs/README.md"])
        assert result.all_affected_projects == frozenset()

    def test_deepest_owner_only(self, monorepo_graph: ProjectGraph) -> None:
        result = detect_changed_projects(monorepo_graph, ["apps/app1/src/App.kt"], deepest_owner_only=True)
        assert list(result.changed_files_map) == [":apps:app1"]

    def test_project_excludes(self, make_graph) -> None:
        graph = make_graph({":api": [], ":app": [":api"]}, excludes={":api": ["generated/.*"]})
        result = detect_changed_projects(graph, ["api/generated/Client.kt"])
        assert result.all_affected_projects == frozenset()

        result = detect_changed_projects(graph, ["api/generated/Client.kt", "api/src/Api.kt"])
        assert result.changed_files_map[":api"] == ("api/src/Api.kt",)
        assert result.all_affected_projects == {":api", ":app"}

    def test_cyclic_graph(self, make_graph) -> None:
        graph = make_graph({":a": [":b"], ":b": [":a"], ":c": [":c", ":a"]})
        result = detect_changed_projects(graph, ["b/File.kt"])
        assert result.all_affected_projects == {":a", ":b", ":c"}

    def test_snapshot_matches_result(self, monorepo_graph: ProjectGraph) -> None:
        result = detect_changed_projects(monorepo_graph, ["libs/common/src/Common.kt"])
        common = result.metadata_map[":libs:common"]
        assert common.changed_files == ("libs/common/src/Common.kt",)
        assert result.metadata_map[":apps:app1"].has_changes()
        assert not result.metadata_map[":apps:app2"].has_changes()
        assert result.changed_projects().get_changed_project_paths() == [":libs", ":libs:common", ":apps:app1"]

    def test_result_is_repeatable(self, monorepo_graph: ProjectGraph) -> None:
        files = ["libs/base/src/Base.kt", "tools/codegen/Gen.kt"]
        first = detect_changed_projects(monorepo_graph, files)
        second = detect_changed_projects(monorepo_graph, files)
        assert first.all_affected_projects == second.all_affected_projects
        assert dict(first.changed_files_map) == dict(second.changed_files_map)
