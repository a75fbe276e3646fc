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
"""Read-only queries over a computed change snapshot."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from .constants import ROOT_PROJECT_PATH
from .project_graph import ProjectNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeSummary:
    """Summary of changes across all projects.

    Attributes:
        total_projects: Number of projects in the snapshot
        changed_projects: Projects with direct changes
        affected_projects: Projects affected directly or through dependencies
        total_changed_files: Sum of per-project direct changed-file counts
        project_names: Paths of projects with direct changes
        affected_project_names: Paths of all affected projects
    """

    total_projects: int
    changed_projects: int
    affected_projects: int
    total_changed_files: int
    project_names: List[str] = field(default_factory=list)
    affected_project_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_projects": self.total_projects,
            "changed_projects": self.changed_projects,
            "affected_projects": self.affected_projects,
            "total_changed_files": self.total_changed_files,
            "project_names": list(self.project_names),
            "affected_project_names": list(self.affected_project_names),
        }

    def format(self) -> str:
        lines = [
            "Change Summary:",
            f"  Total Projects: {self.total_projects}",
            f"  Changed Projects (direct): {self.changed_projects}",
            f"  Affected Projects (including dependents): {self.affected_projects}",
            f"  Total Changed Files: {self.total_changed_files}",
            f"  Direct Changes: {', '.join(self.project_names)}",
            f"  All Affected: {', '.join(self.affected_project_names)}",
        ]
        return "\n".join(lines)


class ChangedProjects:
    """Query facade over an ordered sequence of ProjectNode snapshots.

    Holds no state besides the snapshot; every query is recomputed from it.
    Lookups return an empty collection or None instead of raising.

    The root project is only reported as affected when files changed directly
    inside it, never when it is merely reached through its dependencies.
    """

    def __init__(self, projects: Sequence[ProjectNode], root_project_path: Optional[str] = ROOT_PROJECT_PATH):
        self._projects = tuple(projects)
        self._root_project_path = root_project_path

    @property
    def projects(self) -> Sequence[ProjectNode]:
        return self._projects

    def is_affected(self, project: ProjectNode) -> bool:
        """True if the project has changes, applying the root rule."""
        if project.fully_qualified_path == self._root_project_path:
            return project.has_direct_changes()
        return project.has_changes()

    def _affected(self) -> List[ProjectNode]:
        return [project for project in self._projects if self.is_affected(project)]

    def get_changed_projects(self) -> List[str]:
        """Names of projects affected by changes, directly or through dependencies."""
        return [project.name for project in self._affected()]

    def get_changed_project_paths(self) -> List[str]:
        """Fully qualified paths of projects affected by changes."""
        return [project.fully_qualified_path for project in self._affected()]

    def get_changed_project_count(self) -> int:
        return len(self._affected())

    def get_all_projects(self) -> List[str]:
        return [project.name for project in self._projects]

    def get_all_project_paths(self) -> List[str]:
        return [project.fully_qualified_path for project in self._projects]

    def find_project_by_name(self, name: str) -> Optional[ProjectNode]:
        """First project whose short name or fully qualified path equals name."""
        for project in self._projects:
            if project.name == name or project.fully_qualified_path == name:
                return project
        return None

    def get_projects_with_direct_changes(self) -> List[ProjectNode]:
        """Projects with changed files of their own, not only dependency changes."""
        return [project for project in self._projects if project.has_direct_changes()]

    def get_direct_change_paths(self) -> List[str]:
        return [project.fully_qualified_path for project in self.get_projects_with_direct_changes()]

    def get_changed_projects_with_prefix(self, prefix: str) -> List[ProjectNode]:
        """Affected projects whose fully qualified path starts with prefix.

        Plain, case-sensitive string prefix: ":app" matches ":apps:app1" as well as ":app".
        """
        return [project for project in self._affected() if project.fully_qualified_path.startswith(prefix)]

    def get_changed_project_names_with_prefix(self, prefix: str) -> List[str]:
        return [project.name for project in self.get_changed_projects_with_prefix(prefix)]

    def get_changed_project_paths_with_prefix(self, prefix: str) -> List[str]:
        return [project.fully_qualified_path for project in self.get_changed_projects_with_prefix(prefix)]

    def get_changed_file_count_by_project(self) -> Dict[str, int]:
        """Direct changed-file count for every affected project (0 for dependency-only)."""
        return {project.fully_qualified_path: len(project.changed_files) for project in self._affected()}

    def get_all_changed_files(self) -> Set[str]:
        all_files: Set[str] = set()
        for project in self._projects:
            all_files.update(project.changed_files)
        return all_files

    def get_total_changed_files_count(self) -> int:
        """Sum of per-project direct changed files; not deduplicated."""
        return sum(len(project.changed_files) for project in self._projects)

    def has_any_changes(self) -> bool:
        return any(self.is_affected(project) for project in self._projects)

    def get_projects_depending_on(self, project_name: str) -> List[ProjectNode]:
        """Projects that depend on the given project (by name or path), directly or transitively."""
        return [project for project in self._projects if project.depends_on(project_name)]

    def get_summary(self) -> ChangeSummary:
        direct = self.get_projects_with_direct_changes()
        affected = self._affected()
        return ChangeSummary(
            total_projects=len(self._projects),
            changed_projects=len(direct),
            affected_projects=len(affected),
            total_changed_files=self.get_total_changed_files_count(),
            project_names=[project.fully_qualified_path for project in direct],
            affected_project_names=[project.fully_qualified_path for project in affected],
        )

    def __len__(self) -> int:
        return len(self._projects)

    def __repr__(self) -> str:
        return (
            f"ChangedProjects(total={len(self._projects)}, changed={self.get_changed_project_count()}, "
            f"files={self.get_total_changed_files_count()})"
        )
