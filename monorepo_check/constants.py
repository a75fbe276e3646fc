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
"""Shared constants for monorepoCheck tools.

This module provides centralized constants used across the change-impact engine
and its command line front end, plus the exception hierarchy the tools raise.
"""

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# Project Topology Constants
# =============================================================================

PROJECT_PATH_SEPARATOR = ":"  # Separator between fully qualified path segments
ROOT_PROJECT_PATH = ":"  # Fully qualified path of the root/container project
ROOT_PROJECT_NAME = "root"  # Short name used when the manifest does not give one
DIRECTORY_SEPARATOR = "/"  # Changed files and project directories use forward slashes

# =============================================================================
# Change Detection Defaults
# =============================================================================

DEFAULT_BASE_BRANCH = "main"
DEFAULT_COMMIT_REF = "HEAD~1"
DEFAULT_INCLUDE_UNTRACKED = True
DEFAULT_OUTPUT_FILE = "build/monorepo/changed-projects.txt"
REMOTE_PREFIX = "origin/"

# =============================================================================
# Performance Constants
# =============================================================================

GIT_COMMAND_TIMEOUT = 30  # Timeout for git commands (seconds)

# =============================================================================
# Display Limits
# =============================================================================

FILE_DISPLAY_LIMIT = 50  # Maximum changed files listed per project in reports
CHANGED_FILES_LOG_PREVIEW = 5  # Changed files echoed at INFO level

# =============================================================================
# Graph Export Constants
# =============================================================================

SUPPORTED_GRAPH_FORMATS = [".graphml", ".json"]

# =============================================================================
# Exception Classes
# =============================================================================


class MonorepoCheckError(Exception):
    """Base exception for all monorepoCheck errors.

    All monorepoCheck exceptions carry an exit_code attribute that indicates
    what exit code the program should use when this error is caught at the
    main entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


# Validation errors (EXIT_INVALID_ARGS)
class ValidationError(MonorepoCheckError):
    """Raised when input validation fails (arguments, manifests, refs)."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class ArgumentError(ValidationError):
    """Raised when command-line arguments are invalid."""


class TopologyError(ValidationError):
    """Raised when the project manifest is missing or malformed."""


class DuplicateProjectError(TopologyError):
    """Raised when two projects share a fully qualified path."""

    def __init__(self, path: str):
        super().__init__(f"Duplicate project path in manifest: '{path}'")
        self.path = path


class GitRepositoryError(ValidationError):
    """Raised when git repository validation fails."""


# Analysis/processing errors (EXIT_RUNTIME_ERROR)
class AnalysisError(MonorepoCheckError):
    """Raised when analysis or processing operations fail."""


class GraphExportError(AnalysisError):
    """Raised when the annotated dependency graph cannot be written."""
