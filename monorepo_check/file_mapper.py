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
"""Map changed files to the projects that physically contain them.

Ownership is decided by directory prefix. The root project (the one whose
directory is the repository root) only owns files that are not inside any
other project's directory. Nested non-root projects are not disambiguated by
default: a file under both "apps/" and "apps/app1/" belongs to both unless
deepest_owner_only is requested.
"""

import re
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence

from .constants import DIRECTORY_SEPARATOR

logger = logging.getLogger(__name__)


def normalize_project_directory(directory: str) -> str:
    """Normalize a project directory into a slash-terminated prefix.

    Leading separators are stripped, backslashes become forward slashes and a
    trailing slash is appended, except for the root directory which stays "".

    Args:
        directory: Directory relative to the repository root

    Returns:
        Normalized prefix (e.g. "libs/common/") or "" for the root
    """
    normalized = directory.replace("\\", DIRECTORY_SEPARATOR).lstrip(DIRECTORY_SEPARATOR).rstrip(DIRECTORY_SEPARATOR)
    if not normalized:
        return ""
    return normalized + DIRECTORY_SEPARATOR


def _owns_file(prefix: str, child_prefixes: Sequence[str], changed_file: str) -> bool:
    if prefix:
        return changed_file.startswith(prefix)
    # Root rule: only files outside every other project's directory
    return not any(changed_file.startswith(child) for child in child_prefixes)


def _map_to_deepest_owner(prefixes: Mapping[str, str], changed_files: List[str]) -> Dict[str, List[str]]:
    by_depth = sorted(((prefix, path) for path, prefix in prefixes.items() if prefix), key=lambda item: len(item[0]), reverse=True)
    root_path: Optional[str] = next((path for path, prefix in prefixes.items() if not prefix), None)

    owned: Dict[str, List[str]] = {path: [] for path in prefixes}
    for changed_file in changed_files:
        owner = next((path for prefix, path in by_depth if changed_file.startswith(prefix)), root_path)
        if owner is None:
            logger.debug("No project owns changed file %s", changed_file)
            continue
        owned[owner].append(changed_file)

    return {path: files for path, files in owned.items() if files}


def map_changed_files_to_projects(
    project_directories: Mapping[str, str], changed_files: Iterable[str], deepest_owner_only: bool = False
) -> Dict[str, List[str]]:
    """Map changed files to their containing projects.

    Args:
        project_directories: Project path -> directory relative to the repository root,
            in graph enumeration order
        changed_files: Changed file paths relative to the repository root (forward slashes)
        deepest_owner_only: Assign each file only to the most specific project directory

    Returns:
        Project path -> changed files owned by it. Projects keep graph order, files keep
        input order, and projects without files are omitted. Files owned by no project
        are dropped.
    """
    files = list(changed_files)
    if not files:
        return {}

    prefixes = {path: normalize_project_directory(directory) for path, directory in project_directories.items()}

    if deepest_owner_only:
        result = _map_to_deepest_owner(prefixes, files)
    else:
        child_prefixes = [prefix for prefix in prefixes.values() if prefix]
        result = {}
        for path, prefix in prefixes.items():
            owned = [changed_file for changed_file in files if _owns_file(prefix, child_prefixes, changed_file)]
            if owned:
                result[path] = owned

    logger.debug("Mapped %s changed files onto %s projects", len(files), len(result))
    return result


def find_projects_with_changed_files(
    project_directories: Mapping[str, str], changed_files: Iterable[str], deepest_owner_only: bool = False
) -> List[str]:
    """Paths of the projects that directly contain changed files."""
    return list(map_changed_files_to_projects(project_directories, changed_files, deepest_owner_only).keys())


def _compile_patterns(patterns: Iterable[str]) -> List[Pattern[str]]:
    return [re.compile(pattern) for pattern in patterns]


def apply_project_excludes(
    changed_files_map: Mapping[str, Sequence[str]],
    project_directories: Mapping[str, str],
    project_excludes: Mapping[str, Sequence[str]],
) -> Dict[str, List[str]]:
    """Drop files matching a project's own exclude patterns.

    Patterns are full-match regexes applied to the path relative to the project
    directory, so "generated/.*" declared by a project in "api" matches
    "api/generated/Code.kt". Projects left without files are removed.

    Args:
        changed_files_map: Project path -> changed files
        project_directories: Project path -> directory relative to the repository root
        project_excludes: Project path -> exclude regexes

    Returns:
        Filtered project path -> changed files mapping
    """
    filtered_map: Dict[str, List[str]] = {}

    for path, files in changed_files_map.items():
        patterns = _compile_patterns(project_excludes.get(path, ()))
        if not patterns:
            if files:
                filtered_map[path] = list(files)
            continue

        prefix = normalize_project_directory(project_directories.get(path, ""))
        kept = []
        for changed_file in files:
            local_file = changed_file[len(prefix) :] if prefix and changed_file.startswith(prefix) else changed_file
            if not any(pattern.fullmatch(local_file) for pattern in patterns):
                kept.append(changed_file)

        excluded = len(files) - len(kept)
        if excluded > 0:
            logger.debug("[%s] Per-project excludes removed %s file(s)", path, excluded)
        if kept:
            filtered_map[path] = kept

    return filtered_map
