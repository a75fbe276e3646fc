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
"""One change detection cycle: changed files in, immutable affected-project snapshot out."""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from .change_query import ChangedProjects
from .file_mapper import apply_project_excludes, map_changed_files_to_projects
from .impact_analyzer import exclude_root_project, find_all_affected_projects, warn_about_cycles
from .project_graph import ProjectGraph, ProjectNode, build_project_nodes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeDetectionResult:
    """Outcome of a detection cycle.

    Attributes:
        metadata_map: Project path -> snapshot node, in graph order
        changed_files_map: Project path -> files changed directly inside it
        all_affected_projects: Paths of buildable projects affected directly or transitively
        root_project_path: Path of the root project, if the graph has one
    """

    metadata_map: Mapping[str, ProjectNode]
    changed_files_map: Mapping[str, Sequence[str]]
    all_affected_projects: FrozenSet[str]
    root_project_path: Optional[str] = None

    def changed_projects(self) -> ChangedProjects:
        """Query facade over every project in the snapshot."""
        return ChangedProjects(list(self.metadata_map.values()), root_project_path=self.root_project_path)

    @property
    def directly_changed_projects(self) -> List[str]:
        return [path for path in self.changed_files_map if path in self.all_affected_projects]

    @property
    def transitively_affected_projects(self) -> List[str]:
        return sorted(path for path in self.all_affected_projects if path not in self.changed_files_map)


def detect_changed_projects(graph: ProjectGraph, changed_files: Iterable[str], deepest_owner_only: bool = False) -> ChangeDetectionResult:
    """Map changed files onto projects and compute everything they affect.

    The changed files are expected to be repository-relative, forward-slash,
    deduplicated and already filtered by the global exclude patterns.

    Args:
        graph: Project graph
        changed_files: Changed file paths
        deepest_owner_only: Attribute each file only to its most specific project

    Returns:
        ChangeDetectionResult built in one pass
    """
    files = list(changed_files)
    project_directories = graph.project_directories()

    changed_files_map = map_changed_files_to_projects(project_directories, files, deepest_owner_only=deepest_owner_only)
    changed_files_map = apply_project_excludes(changed_files_map, project_directories, graph.project_excludes())

    warn_about_cycles(graph)

    metadata_map = build_project_nodes(graph, changed_files_map)

    affected = find_all_affected_projects(graph, changed_files_map.keys())
    affected = exclude_root_project(affected, graph.root_path, changed_files_map)

    buildable_affected = set()
    for path in affected:
        if graph.is_buildable(path):
            buildable_affected.add(path)
        else:
            logger.debug("Excluding %s from affected projects: not buildable", path)

    logger.info("Changed files count: %s", len(files))
    logger.info("All affected projects (including dependents): %s", ", ".join(sorted(buildable_affected)) or "none")

    return ChangeDetectionResult(
        metadata_map=metadata_map,
        changed_files_map=_freeze_changed_files(changed_files_map),
        all_affected_projects=frozenset(buildable_affected),
        root_project_path=graph.root_path,
    )


def _freeze_changed_files(changed_files_map: Mapping[str, List[str]]) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({path: tuple(files) for path, files in changed_files_map.items()})
