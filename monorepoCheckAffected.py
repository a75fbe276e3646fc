#!/usr/bin/env python3
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
"""Detect which monorepo projects are affected by changed files.

PURPOSE:
    Tells a CI pipeline or developer which projects need to be built and
    tested, so only what is necessary gets rebuilt.

WHAT IT DOES:
    - Loads the project topology (projects, directories, dependencies) from a JSON manifest
    - Collects changed files from git (branch mode or ref mode), minus exclude patterns
    - Maps changed files to the projects whose directories contain them
    - Expands the directly changed projects to everything depending on them
    - Prints a report, and optionally writes the affected list / JSON / graph export

MODES:
    Branch mode (default): changes on the current branch since it diverged from the
    base branch, plus uncommitted, staged and (optionally) untracked files.
    Ref mode (--from-ref): changes between a specific commit ref and HEAD.

OUTPUT:
    - Directly changed projects with their changed files
    - Projects affected through dependencies, with the dependencies that carry the change
    - Optional: one affected project path per line (--write-output)

REQUIREMENTS:
    - Python 3.8+
    - networkx, GitPython, colorama

EXAMPLES:
    # Compare the current branch against main
    ./monorepoCheckAffected.py monorepo.json

    # Changes since the previous commit, written for a CI script
    ./monorepoCheckAffected.py monorepo.json --from-ref HEAD~1 --write-output

    # Only list affected apps
    ./monorepoCheckAffected.py monorepo.json --prefix :apps --paths-only
"""

import os
import sys
import argparse
import logging
from typing import Dict, List, Optional

from monorepo_check.color_utils import Colors, configure_color, print_error, print_success, print_warning
from monorepo_check.config import MonorepoCheckConfig
from monorepo_check.constants import EXIT_KEYBOARD_INTERRUPT, EXIT_RUNTIME_ERROR, EXIT_SUCCESS, ArgumentError, MonorepoCheckError
from monorepo_check.detection import ChangeDetectionResult, detect_changed_projects
from monorepo_check.git_utils import filter_excluded_files, find_git_repo, get_changed_files_from_ref, get_changed_files_since_base_branch
from monorepo_check.report import build_report, export_affected_graph, export_result_json, write_changed_projects_file
from monorepo_check.topology import load_manifest


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Detect which monorepo projects are affected by changed files.",
        epilog="""
Settings not given on the command line come from the manifest's "settings"
section, then from built-in defaults (base branch "main", ref "HEAD~1").
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("manifest", metavar="MANIFEST", help="Path to the JSON project manifest")

    parser.add_argument("--repo", default=None, help="Directory inside the git repository (default: manifest directory)")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--base-branch", default=None, help="Base branch to compare the current branch against")
    mode.add_argument("--from-ref", nargs="?", const="", default=None, metavar="REF", help="Compare REF..HEAD instead of the base branch (REF defaults to the configured commit ref)")
    mode.add_argument("--changed-files", nargs="+", default=None, metavar="FILE", help="Use these repository-relative files instead of asking git")

    parser.add_argument("--exclude", action="append", default=None, metavar="REGEX", help="Exclude changed files fully matching REGEX (repeatable, added to manifest patterns)")

    untracked = parser.add_mutually_exclusive_group()
    untracked.add_argument("--include-untracked", dest="include_untracked", action="store_true", default=None, help="Count untracked files as changed")
    untracked.add_argument("--no-untracked", dest="include_untracked", action="store_false", default=None, help="Ignore untracked files")

    parser.add_argument("--deepest-owner", action="store_true", default=None, help="Attribute each file only to its most specific project directory")

    parser.add_argument("--prefix", default=None, help="Only report affected projects whose path starts with PREFIX")
    parser.add_argument("--paths-only", action="store_true", help="Print affected project paths only, one per line")
    parser.add_argument("--summary", action="store_true", help="Print the change summary after the report")

    parser.add_argument("--write-output", nargs="?", const="", default=None, metavar="FILE", help="Write affected project paths to FILE (default: configured output file)")
    parser.add_argument("--export-json", default=None, metavar="FILE", help="Write the full detection result as JSON")
    parser.add_argument("--export-graph", default=None, metavar="FILE", help="Export the annotated dependency graph (.graphml or .json)")

    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging output")

    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace, manifest_config: MonorepoCheckConfig) -> MonorepoCheckConfig:
    """Apply command-line overrides on top of manifest settings."""
    exclude_patterns = None
    if args.exclude:
        exclude_patterns = list(manifest_config.exclude_patterns) + list(args.exclude)

    return manifest_config.with_overrides(
        base_branch=args.base_branch,
        commit_ref=args.from_ref or None,
        include_untracked=args.include_untracked,
        exclude_patterns=exclude_patterns,
        deepest_owner_only=args.deepest_owner,
        output_file=args.write_output or None,
    )


def collect_changed_files(args: argparse.Namespace, config: MonorepoCheckConfig, repo_start: str) -> List[str]:
    """Changed files from the command line or from git, depending on the mode."""
    if args.changed_files is not None:
        return filter_excluded_files(list(dict.fromkeys(args.changed_files)), config.exclude_patterns)

    repo_dir = find_git_repo(repo_start)
    if repo_dir is None:
        raise ArgumentError(f"Not inside a git repository: {repo_start}")

    if args.from_ref is not None:
        logging.info("Commit ref: %s", config.commit_ref)
        return get_changed_files_from_ref(repo_dir, config.commit_ref, config.exclude_patterns)

    logging.info("Base branch: %s", config.base_branch)
    logging.info("Include untracked: %s", config.include_untracked)
    return get_changed_files_since_base_branch(repo_dir, config.base_branch, config.include_untracked, config.exclude_patterns)


def print_results(args: argparse.Namespace, config: MonorepoCheckConfig, result: ChangeDetectionResult, project_directories: Dict[str, str]) -> None:
    """Print the report (or bare paths) to stdout."""
    changed = result.changed_projects()

    if args.prefix is not None:
        selected = sorted(path for path in changed.get_changed_project_paths_with_prefix(args.prefix) if path in result.all_affected_projects)
    else:
        selected = sorted(result.all_affected_projects)

    if args.paths_only:
        for path in selected:
            print(path)
        return

    if args.from_ref is not None:
        header = f"Changed projects (since {config.commit_ref}):"
    else:
        header = "Changed projects:"

    if args.prefix is not None:
        if selected:
            print(f"{Colors.BRIGHT}Affected projects matching '{args.prefix}':{Colors.RESET}")
            for path in selected:
                print(f"  {Colors.CYAN}{path}{Colors.RESET}")
        else:
            print_warning(f"No affected projects match '{args.prefix}'", prefix=False)
    else:
        report = build_report(header, result, project_directories)
        if result.all_affected_projects:
            first, _, rest = report.partition("\n")
            print(f"{Colors.BRIGHT}{first}{Colors.RESET}")
            if rest:
                print(rest)
        else:
            print_success(report)

    if args.summary:
        print()
        print(changed.get_summary().format())


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the affected-projects tool.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parse_arguments(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    configure_color(no_color=args.no_color)

    graph, manifest_config = load_manifest(args.manifest)
    config = resolve_config(args, manifest_config)

    repo_start = args.repo or os.path.dirname(os.path.abspath(args.manifest))
    changed_files = collect_changed_files(args, config, repo_start)

    result = detect_changed_projects(graph, changed_files, deepest_owner_only=config.deepest_owner_only)
    project_directories = graph.project_directories()

    print_results(args, config, result, project_directories)

    if args.write_output is not None:
        write_changed_projects_file(config.output_file, result.all_affected_projects)
    if args.export_json:
        export_result_json(args.export_json, result)
    if args.export_graph:
        export_affected_graph(graph, result, args.export_graph)

    return EXIT_SUCCESS


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user", prefix=False)
        sys.exit(EXIT_KEYBOARD_INTERRUPT)
    except MonorepoCheckError as e:
        print_error(str(e))
        sys.exit(e.exit_code)
    except Exception as e:
        logging.error("Unexpected error: %s", e)
        if logging.getLogger().level == logging.DEBUG:
            import traceback

            traceback.print_exc()
        sys.exit(EXIT_RUNTIME_ERROR)


if __name__ == "__main__":
    run()
