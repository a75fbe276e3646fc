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
"""Pytest configuration and shared fixtures for monorepoCheck tests.

Fixture Complexity Levels:
- simple: 2-5 projects, used for the documented change scenarios
- monorepo: ~8 projects with nested containers, used for pipeline and report tests
- git: a throwaway repository with a base branch and a feature branch

Fixture Scopes:
- function: Default, recreated for each test
"""

import sys
import shutil
import tempfile
import subprocess
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Sequence
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from monorepo_check.project_graph import ProjectGraph, ProjectSpec

GraphFactory = Callable[..., ProjectGraph]

GIT_AVAILABLE = shutil.which("git") is not None


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for tests.

    Scope: function (default)
    Use for: File I/O operations that need isolation
    """
    tmpdir = tempfile.mkdtemp(prefix="monorepocheck_test_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def make_graph() -> GraphFactory:
    """Factory building a ProjectGraph from {path: [dependency paths]}.

    Directories default to the path segments joined by "/" (":" is the root).
    Use for: Small hand-written topologies
    """

    def _make(
        dependencies: Dict[str, Sequence[str]],
        directories: Optional[Dict[str, str]] = None,
        buildable: Optional[Dict[str, bool]] = None,
        excludes: Optional[Dict[str, Sequence[str]]] = None,
    ) -> ProjectGraph:
        directories = directories or {}
        buildable = buildable or {}
        excludes = excludes or {}
        specs = [
            ProjectSpec(
                path=path,
                directory=directories.get(path),
                dependencies=tuple(deps),
                buildable=buildable.get(path, True),
                exclude_patterns=tuple(excludes.get(path, ())),
            )
            for path, deps in dependencies.items()
        ]
        return ProjectGraph.from_specs(specs)

    return _make


@pytest.fixture
def chain_graph(make_graph: GraphFactory) -> ProjectGraph:
    """base <- common <- app chain with a root project.

    Scope: function
    Use for: Transitive (depth 2) scenarios
    """
    return make_graph({":": [], ":base": [], ":common": [":base"], ":app": [":common"]})


@pytest.fixture
def monorepo_graph(make_graph: GraphFactory) -> ProjectGraph:
    """Realistic monorepo layout.

    Structure:
        :                      (root, build scripts)
        :libs                  (container, not buildable)
        :libs:base
        :libs:common           -> :libs:base
        :apps                  (container, not buildable)
        :apps:app1             -> :libs:common
        :apps:app2             -> :libs:base
        :tools:codegen         (standalone)
    """
    return make_graph(
        {
            ":": [],
            ":libs": [],
            ":libs:base": [],
            ":libs:common": [":libs:base"],
            ":apps": [],
            ":apps:app1": [":libs:common"],
            ":apps:app2": [":libs:base"],
            ":tools:codegen": [],
        },
        buildable={":libs": False, ":apps": False},
    )


def run_git(repo_dir: str, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=repo_dir, check=True, capture_output=True, text=True)
    return result.stdout


def write_files(repo_dir: str, files: List[str], content: str = "content\n") -> None:
    for rel_path in files:
        path = Path(repo_dir) / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


@pytest.fixture
def mock_git_repo(temp_dir: str) -> Generator[str, None, None]:
    """Create a git repository with a "main" branch and a "feature" branch.

    History:
        main:    initial commit with every project's sources
        feature: one commit changing libs/base/src/Base.kt
    Working tree on "feature":
        - apps/app1/src/App.kt modified (unstaged)
        - tools/codegen/Gen.kt modified and staged
        - docs/notes.md untracked

    Scope: function
    Requires: git command available
    """
    if not GIT_AVAILABLE:
        pytest.skip("git not available")

    repo_dir = temp_dir
    run_git(repo_dir, "init")
    run_git(repo_dir, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(repo_dir, "config", "user.email", "test@example.com")
    run_git(repo_dir, "config", "user.name", "Test User")
    run_git(repo_dir, "config", "commit.gpgsign", "false")

    write_files(
        repo_dir,
        [
            "build.gradle.kts",
            "libs/base/src/Base.kt",
            "libs/common/src/Common.kt",
            "apps/app1/src/App.kt",
            "apps/app2/src/App.kt",
            "tools/codegen/Gen.kt",
        ],
    )
    run_git(repo_dir, "add", ".")
    run_git(repo_dir, "commit", "-m", "Initial commit")

    run_git(repo_dir, "checkout", "-b", "feature")
    write_files(repo_dir, ["libs/base/src/Base.kt"], "changed on feature\n")
    run_git(repo_dir, "commit", "-am", "Change base")

    write_files(repo_dir, ["apps/app1/src/App.kt"], "work in progress\n")
    write_files(repo_dir, ["tools/codegen/Gen.kt"], "staged\n")
    run_git(repo_dir, "add", "tools/codegen/Gen.kt")
    write_files(repo_dir, ["docs/notes.md"])

    yield repo_dir
