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
"""Compute the set of projects affected by a change.

A project is affected when files changed directly inside it, or when anything
it depends on (directly or transitively) changed. The canonical computation is
a worklist over the inverted dependency edges starting from the directly
changed projects; find_all_affected_projects_by_ancestors() is the equivalent
NetworkX formulation and is kept for cross-checking.
"""

import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .graph_utils import build_reverse_dependencies, compute_reverse_transitive_closure
from .project_graph import ProjectGraph, ProjectNode

logger = logging.getLogger(__name__)


def build_dependents_index(graph: ProjectGraph) -> Dict[str, Set[str]]:
    """Invert every declared dependency edge.

    Args:
        graph: Project graph

    Returns:
        Project path -> projects that declare a direct dependency on it
    """
    return build_reverse_dependencies(graph.nx_graph)


def _known_projects(graph: ProjectGraph, directly_changed: Iterable[str]) -> List[str]:
    known = []
    for path in directly_changed:
        if path in graph:
            known.append(path)
        else:
            logger.debug("Ignoring change in unknown project %s", path)
    return known


def find_all_affected_projects(graph: ProjectGraph, directly_changed: Iterable[str]) -> Set[str]:
    """Find all projects affected by changes, including everything depending on them.

    Breadth-first worklist over the dependents index. A project enters the
    affected set at most once, so cycles and self-dependencies terminate.

    Args:
        graph: Project graph
        directly_changed: Paths of projects with direct file changes

    Returns:
        Paths of all affected projects (direct changes plus transitive dependents)
    """
    dependents_index = build_dependents_index(graph)

    all_affected: Set[str] = set()
    to_process: Deque[str] = deque()
    for path in _known_projects(graph, directly_changed):
        if path not in all_affected:
            all_affected.add(path)
            to_process.append(path)
    direct_count = len(all_affected)

    while to_process:
        current = to_process.popleft()
        for dependent in dependents_index.get(current, ()):
            if dependent not in all_affected:
                all_affected.add(dependent)
                to_process.append(dependent)

    logger.debug("Affected closure: %s projects from %s directly changed", len(all_affected), direct_count)
    return all_affected


def find_all_affected_projects_by_ancestors(graph: ProjectGraph, directly_changed: Iterable[str]) -> Set[str]:
    """Same closure as find_all_affected_projects(), computed with NetworkX ancestors."""
    all_affected: Set[str] = set()
    for path in _known_projects(graph, directly_changed):
        all_affected.add(path)
        all_affected.update(compute_reverse_transitive_closure(graph.nx_graph, path))
    return all_affected


def find_affected_via(node: ProjectNode) -> List[str]:
    """Sorted paths of the direct dependencies through which a node is affected."""
    return sorted(dep.fully_qualified_path for dep in node.dependencies if dep.has_changes())


def exclude_root_project(affected: Iterable[str], root_path: Optional[str], changed_files_map: Mapping[str, Sequence[str]]) -> Set[str]:
    """Drop the root project from an affected set unless it owns changed files itself."""
    result = set(affected)
    if root_path is not None and root_path in result and not changed_files_map.get(root_path):
        logger.debug("Excluding root project %s: affected only through dependencies", root_path)
        result.discard(root_path)
    return result


def warn_about_cycles(graph: ProjectGraph) -> int:
    """Log dependency cycles and self-dependencies; they are tolerated, not rejected.

    Returns:
        Number of cycles plus self-dependencies found
    """
    cycles, self_loops = graph.find_cycles()
    for cycle in cycles:
        logger.warning("Circular project dependency: %s", ", ".join(sorted(cycle)))
    for path in self_loops:
        logger.warning("Project %s declares a dependency on itself", path)
    return len(cycles) + len(self_loops)
