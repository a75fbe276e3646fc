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
"""Reporting and export of change detection results."""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import networkx as nx
from networkx.readwrite import json_graph

from .constants import FILE_DISPLAY_LIMIT, SUPPORTED_GRAPH_FORMATS, GraphExportError
from .detection import ChangeDetectionResult
from .file_mapper import normalize_project_directory
from .impact_analyzer import find_affected_via
from .project_graph import ProjectGraph, describe_node

logger = logging.getLogger(__name__)


def build_display_files(files: Sequence[str], project_directory: str) -> List[str]:
    """Changed files shown relative to their project directory, sorted."""
    prefix = normalize_project_directory(project_directory)
    display = []
    for changed_file in files:
        if prefix and changed_file.startswith(prefix):
            display.append(changed_file[len(prefix) :])
        else:
            display.append(changed_file)
    return sorted(display)


def build_report(header: str, result: ChangeDetectionResult, project_directories: Optional[Mapping[str, str]] = None) -> str:
    """Build the changed-projects report.

    Directly changed projects are listed with their files (relative to the
    project directory, capped at FILE_DISPLAY_LIMIT). Projects affected only
    through dependencies follow, annotated with the dependencies that carry
    the change.

    Args:
        header: First line of the report (e.g. "Changed projects:")
        result: Detection result
        project_directories: Project path -> directory, used to shorten file paths

    Returns:
        Report text without a trailing newline
    """
    if not result.all_affected_projects:
        return "No projects have changed."

    project_directories = project_directories or {}
    lines = [header]

    for project_path in sorted(result.directly_changed_projects):
        lines.append("")
        lines.append(f"  {project_path}")
        files = build_display_files(result.changed_files_map.get(project_path, ()), project_directories.get(project_path, ""))
        for display_file in files[:FILE_DISPLAY_LIMIT]:
            lines.append(f"    - {display_file}")
        if len(files) > FILE_DISPLAY_LIMIT:
            lines.append(f"    ... and {len(files) - FILE_DISPLAY_LIMIT} more")

    transitively_affected = result.transitively_affected_projects
    if transitively_affected:
        lines.append("")
        width = max(len(path) for path in transitively_affected)
        for project_path in transitively_affected:
            node = result.metadata_map.get(project_path)
            via = ", ".join(find_affected_via(node)) if node is not None else ""
            annotation = f"  (affected via {via})" if via else ""
            lines.append(f"  {project_path.ljust(width)}{annotation}".rstrip())

    return "\n".join(lines)


def write_changed_projects_file(output_path: str, affected_projects: Iterable[str]) -> List[str]:
    """Write affected project paths, one per line, for CI scripts.

    An empty file is written when nothing changed, so downstream scripts can
    always rely on the file existing.

    Returns:
        The sorted project paths that were written
    """
    projects = sorted(affected_projects)
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    content = "\n".join(projects)
    if content:
        content += "\n"
    path.write_text(content, encoding="utf-8")

    if projects:
        logger.info("Wrote %s changed project(s) to %s: %s", len(projects), path, ", ".join(projects))
    else:
        logger.info("No projects have changed - wrote empty output file: %s", path)
    return projects


def result_to_dict(result: ChangeDetectionResult) -> Dict[str, Any]:
    """JSON-ready view of a detection result, with deterministic ordering."""
    changed = result.changed_projects()
    return {
        "summary": changed.get_summary().to_dict(),
        "affected_projects": sorted(result.all_affected_projects),
        "changed_files": {path: list(files) for path, files in sorted(result.changed_files_map.items())},
        "projects": [describe_node(node, affected=changed.is_affected(node)) for node in result.metadata_map.values()],
    }


def export_result_json(output_path: str, result: ChangeDetectionResult) -> None:
    """Write the detection result as indented JSON."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result_to_dict(result), f, indent=2, sort_keys=True)
        f.write("\n")
    logger.info("Wrote change detection result to %s", path)


def export_affected_graph(graph: ProjectGraph, result: ChangeDetectionResult, output_path: str) -> None:
    """Export the dependency graph annotated with change state.

    Every node carries "name", "directory", "affected", "direct" and
    "changed_files" (count) attributes. The format follows the file extension:
    .graphml or .json (NetworkX node-link data).

    Raises:
        GraphExportError: For an unsupported extension or a write failure
    """
    ext = os.path.splitext(output_path)[1].lower()
    if ext not in SUPPORTED_GRAPH_FORMATS:
        raise GraphExportError(f"Unsupported graph format '{ext}' (expected one of: {', '.join(SUPPORTED_GRAPH_FORMATS)})")

    annotated: nx.DiGraph[str] = nx.DiGraph()
    for path in graph.project_paths:
        changed = result.changed_files_map.get(path, ())
        annotated.add_node(
            path,
            name=graph.name_of(path),
            directory=graph.directory_of(path),
            affected=path in result.all_affected_projects,
            direct=bool(changed),
            changed_files=len(changed),
        )
    annotated.add_edges_from(graph.nx_graph.edges())

    try:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        if ext == ".graphml":
            nx.write_graphml(annotated, output_path)
        else:
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(json_graph.node_link_data(annotated), f, indent=2)
    except (OSError, nx.NetworkXError) as e:
        raise GraphExportError(f"Failed to export graph to {output_path}: {e}") from e

    logger.info("Exported graph with %s projects to %s", annotated.number_of_nodes(), output_path)
