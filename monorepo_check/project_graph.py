#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Project graph and immutable project snapshot nodes.

A ProjectGraph holds the monorepo's build units ("projects") and their declared
project-to-project dependency edges. A detection cycle turns the graph plus a
changed-files map into a snapshot of ProjectNode objects which is never mutated
afterward.

Edges point from a dependent to its dependency, so the successors of a project
are what it depends on and its predecessors are its dependents.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import networkx as nx

from .constants import DIRECTORY_SEPARATOR, PROJECT_PATH_SEPARATOR, ROOT_PROJECT_NAME
from .graph_utils import find_strongly_connected_components, iter_reachable

logger = logging.getLogger(__name__)


def default_project_name(path: str) -> str:
    """Short name of a project: the last segment of its fully qualified path."""
    segments = [segment for segment in path.split(PROJECT_PATH_SEPARATOR) if segment]
    return segments[-1] if segments else ROOT_PROJECT_NAME


def default_project_directory(path: str) -> str:
    """Conventional directory of a project (":libs:common" -> "libs/common")."""
    segments = [segment for segment in path.split(PROJECT_PATH_SEPARATOR) if segment]
    return DIRECTORY_SEPARATOR.join(segments)


@dataclass(frozen=True)
class ProjectSpec:
    """Identity and declared dependencies of one project, as supplied by a topology provider.

    Attributes:
        path: Fully qualified, colon-delimited path (root is ":")
        name: Short name, unique only among siblings
        directory: Directory relative to the repository root ("" for root)
        dependencies: Declared dependency paths, in declaration order
        exclude_patterns: Regexes matched against project-relative file paths
        buildable: False for container projects that have no build of their own
    """

    path: str
    name: str = ""
    directory: Optional[str] = None
    dependencies: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    buildable: bool = True

    def resolved_name(self) -> str:
        return self.name or default_project_name(self.path)

    def resolved_directory(self) -> str:
        if self.directory is None:
            return default_project_directory(self.path)
        return self.directory


class ProjectGraph:
    """Directed dependency graph of the monorepo's projects.

    Built in a single pass by from_specs(); callers never observe a partially
    built graph. Project paths must be unique, the topology provider enforces
    that before the graph is built.
    """

    def __init__(self, graph: "nx.DiGraph[str]"):
        self._graph = graph

    @classmethod
    def from_specs(cls, specs: Iterable[ProjectSpec]) -> "ProjectGraph":
        """Build a graph from project specs.

        Dependencies on unknown projects are dropped; self-dependencies are
        kept as self loops.
        """
        specs = list(specs)
        graph: nx.DiGraph[str] = nx.DiGraph()

        for spec in specs:
            graph.add_node(
                spec.path,
                name=spec.resolved_name(),
                directory=spec.resolved_directory(),
                buildable=spec.buildable,
                exclude_patterns=tuple(spec.exclude_patterns),
            )

        dropped = 0
        for spec in specs:
            for dep in spec.dependencies:
                if dep not in graph:
                    logger.debug("Ignoring dependency of %s on unknown project %s", spec.path, dep)
                    dropped += 1
                    continue
                graph.add_edge(spec.path, dep)

        logger.debug(
            "Built project graph with %s projects and %s dependency edges (%s unresolved dropped)",
            graph.number_of_nodes(),
            graph.number_of_edges(),
            dropped,
        )
        return cls(graph)

    @property
    def nx_graph(self) -> "nx.DiGraph[str]":
        """Underlying NetworkX graph (dependent -> dependency). Treat as read-only."""
        return self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __contains__(self, path: object) -> bool:
        return path in self._graph

    def has_project(self, path: str) -> bool:
        return path in self._graph

    @property
    def project_paths(self) -> List[str]:
        """All project paths in enumeration (insertion) order."""
        return list(self._graph.nodes())

    def name_of(self, path: str) -> str:
        return str(self._graph.nodes[path]["name"])

    def directory_of(self, path: str) -> str:
        return str(self._graph.nodes[path]["directory"])

    def is_buildable(self, path: str) -> bool:
        return bool(self._graph.nodes[path]["buildable"])

    def exclude_patterns_of(self, path: str) -> Tuple[str, ...]:
        return tuple(self._graph.nodes[path]["exclude_patterns"])

    def dependencies_of(self, path: str) -> List[str]:
        """Direct dependencies of a project in declaration order; empty if unknown."""
        if path not in self._graph:
            return []
        return list(self._graph.successors(path))

    def dependents_of(self, path: str) -> List[str]:
        """Projects that declare a direct dependency on the given project."""
        if path not in self._graph:
            return []
        return list(self._graph.predecessors(path))

    def project_directories(self) -> Dict[str, str]:
        """Mapping of project path to its repository-relative directory."""
        return {path: self.directory_of(path) for path in self._graph.nodes()}

    def project_excludes(self) -> Dict[str, Tuple[str, ...]]:
        """Per-project exclude patterns, only for projects that declare any."""
        return {path: self.exclude_patterns_of(path) for path in self._graph.nodes() if self.exclude_patterns_of(path)}

    @property
    def root_path(self) -> Optional[str]:
        """Path of the root project: the one whose directory is the repository root."""
        for path in self._graph.nodes():
            if not self.directory_of(path).strip("/\\"):
                return path
        return None

    def find_cycles(self) -> Tuple[List[Set[str]], List[str]]:
        """Dependency cycles and self-dependencies, usually a misconfiguration."""
        return find_strongly_connected_components(self._graph)


@dataclass(frozen=True, eq=False)
class ProjectNode:
    """One project inside an immutable change snapshot.

    Dependencies are resolved through the snapshot index the node was built
    in, so the same node instance is shared by every dependent and cycles need
    no special construction order. Equality and hashing use the fully
    qualified path only.
    """

    name: str
    fully_qualified_path: str
    dependency_paths: Tuple[str, ...] = ()
    changed_files: Tuple[str, ...] = ()
    snapshot_index: Mapping[str, "ProjectNode"] = field(default_factory=lambda: MappingProxyType({}), repr=False)

    @property
    def dependencies(self) -> Tuple["ProjectNode", ...]:
        """Direct dependencies; paths missing from the snapshot are skipped."""
        return tuple(self.snapshot_index[path] for path in self.dependency_paths if path in self.snapshot_index)

    def has_direct_changes(self) -> bool:
        """True if files changed inside this project itself."""
        return bool(self.changed_files)

    def has_changes(self) -> bool:
        """True if this project or anything it depends on (transitively) has direct changes."""
        if self.changed_files:
            return True
        return any(dep.changed_files for dep in iter_reachable(self, _node_dependencies))

    def depends_on(self, name_or_path: str) -> bool:
        """True if the dependency closure contains a project with this name or path."""
        for dep in iter_reachable(self, _node_dependencies):
            if dep.name == name_or_path or dep.fully_qualified_path == name_or_path:
                return True
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectNode):
            return NotImplemented
        return self.fully_qualified_path == other.fully_qualified_path

    def __hash__(self) -> int:
        return hash(self.fully_qualified_path)

    def __repr__(self) -> str:
        return (
            f"ProjectNode(name='{self.name}', fully_qualified_path='{self.fully_qualified_path}', "
            f"dependencies={len(self.dependency_paths)}, changed_files={len(self.changed_files)} files)"
        )


def _node_dependencies(node: ProjectNode) -> Sequence[ProjectNode]:
    return node.dependencies


def build_project_nodes(graph: ProjectGraph, changed_files_map: Optional[Mapping[str, Sequence[str]]] = None) -> Mapping[str, ProjectNode]:
    """Build the immutable snapshot of every project in the graph.

    Two passes: first collect identities and resolved edges, then create each
    node into a shared path-keyed index. Nothing is mutated once this returns.

    Args:
        graph: Project graph
        changed_files_map: Project path -> files changed directly inside it

    Returns:
        Read-only mapping of project path to ProjectNode, in graph order
    """
    changed_files_map = changed_files_map or {}

    identities: List[Tuple[str, str, Tuple[str, ...]]] = []
    for path in graph.project_paths:
        identities.append((path, graph.name_of(path), tuple(graph.dependencies_of(path))))

    index: Dict[str, ProjectNode] = {}
    snapshot = MappingProxyType(index)
    for path, name, dependency_paths in identities:
        index[path] = ProjectNode(
            name=name,
            fully_qualified_path=path,
            dependency_paths=dependency_paths,
            changed_files=tuple(changed_files_map.get(path, ())),
            snapshot_index=snapshot,
        )

    return snapshot


def describe_node(node: ProjectNode, affected: Optional[bool] = None) -> Dict[str, Any]:
    """Plain dictionary view of a node for JSON export.

    "affected" defaults to has_changes(); callers that apply the root rule pass their own verdict.
    """
    return {
        "name": node.name,
        "path": node.fully_qualified_path,
        "dependencies": list(node.dependency_paths),
        "changed_files": list(node.changed_files),
        "has_direct_changes": node.has_direct_changes(),
        "has_changes": node.has_changes(),
        "affected": node.has_changes() if affected is None else affected,
    }
