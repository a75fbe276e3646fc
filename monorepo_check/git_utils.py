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
"""Utilities for discovering changed files with Git.

Two modes are supported:

- Branch mode: files changed on the current branch since it diverged from a
  base branch (three-dot diff), plus uncommitted, staged and optionally
  untracked files. Failures are logged and degrade to partial results.
- Ref mode: files changed between an explicit commit ref and HEAD (two-dot
  diff). An unknown ref is an error.

All returned paths are relative to the repository root, use forward slashes,
are deduplicated in discovery order and have the global exclude patterns
already applied.
"""

import re
import logging
from typing import Iterable, List, Optional, Sequence

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from git.exc import GitError

from .constants import CHANGED_FILES_LOG_PREVIEW, GIT_COMMAND_TIMEOUT, REMOTE_PREFIX, GitRepositoryError

logger = logging.getLogger(__name__)


def find_git_repo(start_path: str) -> Optional[str]:
    """Find the git repository root by searching upward from start_path.

    Args:
        start_path: Directory to start searching from

    Returns:
        Absolute path to git repository root, or None if not found
    """
    try:
        repo = Repo(start_path, search_parent_directories=True)
        repo_root = repo.working_tree_dir
        if repo_root is not None:
            logger.debug("Found git repository at: %s", repo_root)
            return str(repo_root)
    except (InvalidGitRepositoryError, NoSuchPathError, GitError):
        pass
    return None


def _split_name_only(output: str) -> List[str]:
    return [line.strip().replace("\\", "/") for line in output.splitlines() if line.strip()]


def _unique(files: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(files))


def ref_exists(repo: Repo, ref: str) -> bool:
    """True if ref resolves to an existing object in the repository."""
    try:
        repo.git.rev_parse("--verify", "--quiet", ref)
        return True
    except GitCommandError:
        return False


def resolve_base_branch_ref(repo: Repo, base_branch: str) -> Optional[str]:
    """Resolve a base branch name to a ref that exists in the repository.

    Preference order:
     1. A remote ref supplied by the caller (e.g. "origin/main") is used as-is.
     2. The remote tracking ref "origin/<base_branch>".
     3. The local branch <base_branch>.

    Returns:
        The resolved ref, or None if no candidate exists
    """
    if base_branch.startswith(REMOTE_PREFIX):
        return base_branch if ref_exists(repo, base_branch) else None

    remote_ref = f"{REMOTE_PREFIX}{base_branch}"
    if ref_exists(repo, remote_ref):
        return remote_ref
    if ref_exists(repo, base_branch):
        return base_branch
    return None


def filter_excluded_files(files: Sequence[str], exclude_patterns: Sequence[str]) -> List[str]:
    """Drop files that fully match any exclude regex.

    Args:
        files: Repository-relative file paths
        exclude_patterns: Regular expressions

    Returns:
        Files that match no pattern, in input order
    """
    if not exclude_patterns:
        return list(files)

    compiled = [re.compile(pattern) for pattern in exclude_patterns]
    kept = [f for f in files if not any(pattern.fullmatch(f) for pattern in compiled)]

    excluded = len(files) - len(kept)
    if excluded > 0:
        logger.info("Excluded %s changed files using %s patterns", excluded, len(exclude_patterns))
    return kept


def _open_repo(repo_dir: str) -> Optional[Repo]:
    try:
        return Repo(repo_dir, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return None


def _diff_name_only(repo: Repo, *args: str) -> List[str]:
    return _split_name_only(repo.git.diff("--name-only", *args, kill_after_timeout=GIT_COMMAND_TIMEOUT))


def _log_changed_files(changed_files: Sequence[str]) -> None:
    logger.info("Total changed files detected: %s", len(changed_files))
    if changed_files:
        preview = ", ".join(changed_files[:CHANGED_FILES_LOG_PREVIEW])
        more = "..." if len(changed_files) > CHANGED_FILES_LOG_PREVIEW else ""
        logger.info("Changed files: %s%s", preview, more)


def get_changed_files_since_base_branch(
    repo_dir: str, base_branch: str, include_untracked: bool = True, exclude_patterns: Sequence[str] = ()
) -> List[str]:
    """Get files changed on the current branch, including uncommitted work.

    Combines the three-dot diff against the resolved base branch, working tree
    changes, staged changes and (optionally) untracked files. A missing
    repository or unresolvable base branch is a warning, not an error.

    Args:
        repo_dir: Directory inside the git repository
        base_branch: Base branch name or remote ref
        include_untracked: Whether untracked files count as changed
        exclude_patterns: Regexes of files to ignore

    Returns:
        Changed file paths relative to the repository root
    """
    repo = _open_repo(repo_dir)
    if repo is None:
        logger.warning("Not a git repository: %s", repo_dir)
        return []

    changed_files: List[str] = []

    resolved_ref = resolve_base_branch_ref(repo, base_branch)
    if resolved_ref is None:
        logger.warning(
            "Could not resolve base branch '%s' as a remote (%s%s) or local ref - skipping branch comparison. "
            "Check that 'baseBranch' is set correctly.",
            base_branch,
            REMOTE_PREFIX,
            base_branch,
        )
    else:
        try:
            branch_changes = _diff_name_only(repo, f"{resolved_ref}...HEAD")
            logger.info("Files from branch comparison: %s", len(branch_changes))
            changed_files.extend(branch_changes)
        except GitCommandError as e:
            logger.warning("Could not diff against '%s': %s", resolved_ref, e)

    try:
        working_tree = _diff_name_only(repo, "HEAD")
        logger.info("Working tree changes: %s", len(working_tree))
        changed_files.extend(working_tree)
    except GitCommandError as e:
        logger.warning("Could not get working tree changes: %s", e)

    try:
        staged = _diff_name_only(repo, "--cached")
        logger.info("Staged files: %s", len(staged))
        changed_files.extend(staged)
    except GitCommandError as e:
        logger.warning("Could not get staged files: %s", e)

    if include_untracked:
        try:
            untracked = [path.replace("\\", "/") for path in repo.untracked_files]
            logger.info("Untracked files: %s", len(untracked))
            changed_files.extend(untracked)
        except GitCommandError as e:
            logger.warning("Could not get untracked files: %s", e)

    result = filter_excluded_files(_unique(changed_files), exclude_patterns)
    _log_changed_files(result)
    return result


def get_changed_files_from_ref(repo_dir: str, commit_ref: str, exclude_patterns: Sequence[str] = ()) -> List[str]:
    """Get files changed between commit_ref and HEAD.

    Args:
        repo_dir: Directory inside the git repository
        commit_ref: Commit SHA, tag or ref expression (e.g. "HEAD~1")
        exclude_patterns: Regexes of files to ignore

    Returns:
        Changed file paths relative to the repository root

    Raises:
        GitRepositoryError: If repo_dir is not a repository or commit_ref does not exist
    """
    repo = _open_repo(repo_dir)
    if repo is None:
        raise GitRepositoryError(f"Not a git repository: {repo_dir}")

    if not ref_exists(repo, commit_ref):
        raise GitRepositoryError(f"Commit ref '{commit_ref}' does not exist in this repository. Check the value passed as the commit ref.")

    try:
        changed_files = _diff_name_only(repo, commit_ref, "HEAD")
    except GitCommandError as e:
        raise GitRepositoryError(f"Git command failed: {e}") from e

    result = filter_excluded_files(_unique(changed_files), exclude_patterns)
    _log_changed_files(result)
    return result
