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
"""Load the monorepo project topology from a JSON manifest.

Manifest format::

    {
      "settings": {"baseBranch": "main", "excludePatterns": [".*\\\\.md"]},
      "projects": [
        {"path": ":"},
        {"path": ":libs:base"},
        {"path": ":libs:common", "dependencies": [":libs:base"]},
        {"path": ":apps", "buildable": false},
        {"path": ":apps:app", "directory": "applications/app",
         "dependencies": [":libs:common"], "excludePatterns": ["generated/.*"]}
      ]
    }

Only "path" is required. "name" defaults to the last path segment and
"directory" to the path segments joined by "/". This is the only place that
rejects malformed topology: the engine itself assumes unique paths.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Sequence, Set, Tuple

from .config import MonorepoCheckConfig, validate_patterns
from .constants import PROJECT_PATH_SEPARATOR, DuplicateProjectError, TopologyError
from .project_graph import ProjectGraph, ProjectSpec

logger = logging.getLogger(__name__)

_PROJECT_KEYS = {"path", "name", "directory", "dependencies", "excludePatterns", "buildable"}


def _string_list(value: Any, what: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TopologyError(f"{what} must be a list of strings")
    return tuple(value)


def normalize_manifest_directory(directory: str, path: str) -> str:
    """Repository-relative directory with "." segments removed ("." and "" are the root).

    Raises:
        TopologyError: If the directory leaves the repository ("..")
    """
    segments = [segment for segment in directory.replace("\\", "/").split("/") if segment not in ("", ".")]
    if ".." in segments:
        raise TopologyError(f"Project {path}: 'directory' must stay inside the repository: '{directory}'")
    return "/".join(segments)


def parse_project_spec(entry: Any, index: int) -> ProjectSpec:
    """Validate and convert one manifest project entry.

    Raises:
        TopologyError: If the entry is malformed
    """
    if not isinstance(entry, Mapping):
        raise TopologyError(f"Project entry #{index} must be an object")

    unknown = set(entry) - _PROJECT_KEYS
    if unknown:
        raise TopologyError(f"Project entry #{index} has unknown keys: {', '.join(sorted(unknown))}")

    path = entry.get("path")
    if not isinstance(path, str) or not path.startswith(PROJECT_PATH_SEPARATOR):
        raise TopologyError(f"Project entry #{index} needs a 'path' starting with '{PROJECT_PATH_SEPARATOR}'")

    name = entry.get("name", "")
    directory = entry.get("directory")
    buildable = entry.get("buildable", True)
    if not isinstance(name, str):
        raise TopologyError(f"Project {path}: 'name' must be a string")
    if directory is not None and not isinstance(directory, str):
        raise TopologyError(f"Project {path}: 'directory' must be a string")
    if directory is not None:
        directory = normalize_manifest_directory(directory, path)
    if not isinstance(buildable, bool):
        raise TopologyError(f"Project {path}: 'buildable' must be true or false")

    exclude_patterns = _string_list(entry.get("excludePatterns"), f"Project {path}: 'excludePatterns'")
    validate_patterns(list(exclude_patterns), path)

    return ProjectSpec(
        path=path,
        name=name,
        directory=directory,
        dependencies=_string_list(entry.get("dependencies"), f"Project {path}: 'dependencies'"),
        exclude_patterns=exclude_patterns,
        buildable=buildable,
    )


def parse_project_specs(entries: Sequence[Any]) -> List[ProjectSpec]:
    """Validate all manifest project entries, rejecting duplicate paths.

    Raises:
        TopologyError: If the list is malformed
        DuplicateProjectError: If two entries share a path
    """
    if not isinstance(entries, list):
        raise TopologyError("'projects' must be a list")

    specs = []
    seen: Set[str] = set()
    for index, entry in enumerate(entries):
        spec = parse_project_spec(entry, index)
        if spec.path in seen:
            raise DuplicateProjectError(spec.path)
        seen.add(spec.path)
        specs.append(spec)
    return specs


def parse_manifest(data: Any) -> Tuple[ProjectGraph, MonorepoCheckConfig]:
    """Build the project graph and settings from decoded manifest JSON."""
    if not isinstance(data, Mapping):
        raise TopologyError("Manifest must be a JSON object")
    if "projects" not in data:
        raise TopologyError("Manifest has no 'projects' list")

    config = MonorepoCheckConfig.from_settings(data.get("settings"))
    specs = parse_project_specs(data["projects"])
    graph = ProjectGraph.from_specs(specs)
    return graph, config


def load_manifest(manifest_path: str) -> Tuple[ProjectGraph, MonorepoCheckConfig]:
    """Read and validate a project manifest file.

    Args:
        manifest_path: Path to the JSON manifest

    Returns:
        Tuple of (project graph, settings)

    Raises:
        TopologyError: If the file cannot be read or is malformed
    """
    path = Path(manifest_path)
    logger.info("Loading project manifest %s...", path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise TopologyError(f"Project manifest not found: {path}") from e
    except json.JSONDecodeError as e:
        raise TopologyError(f"Project manifest {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise TopologyError(f"Failed to read project manifest {path}: {e}") from e

    graph, config = parse_manifest(data)
    logger.info("Found %s projects in manifest", len(graph))
    return graph, config
