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
"""Configuration for change detection.

Settings come from the optional "settings" section of the project manifest
(camelCase keys, mirroring how monorepo build configuration is usually
written) and can be overridden from the command line.
"""

import re
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .constants import (
    DEFAULT_BASE_BRANCH,
    DEFAULT_COMMIT_REF,
    DEFAULT_INCLUDE_UNTRACKED,
    DEFAULT_OUTPUT_FILE,
    TopologyError,
)

logger = logging.getLogger(__name__)

# Manifest key -> MonorepoCheckConfig attribute
_SETTING_KEYS = {
    "baseBranch": "base_branch",
    "commitRef": "commit_ref",
    "includeUntracked": "include_untracked",
    "excludePatterns": "exclude_patterns",
    "deepestOwnerOnly": "deepest_owner_only",
    "outputFile": "output_file",
}


@dataclass(frozen=True)
class MonorepoCheckConfig:
    """Change detection settings.

    Attributes:
        base_branch: Branch compared against in branch mode ("main" or "origin/main")
        commit_ref: Commit ref compared against HEAD in ref mode
        include_untracked: Whether untracked files count as changed in branch mode
        exclude_patterns: Regexes; changed files fully matching any are ignored
        deepest_owner_only: Attribute each file only to its most specific project
        output_file: Where the affected project list is written
    """

    base_branch: str = DEFAULT_BASE_BRANCH
    commit_ref: str = DEFAULT_COMMIT_REF
    include_untracked: bool = DEFAULT_INCLUDE_UNTRACKED
    exclude_patterns: Tuple[str, ...] = ()
    deepest_owner_only: bool = False
    output_file: str = DEFAULT_OUTPUT_FILE

    @classmethod
    def from_settings(cls, settings: Optional[Mapping[str, Any]]) -> "MonorepoCheckConfig":
        """Build a config from a manifest "settings" section.

        Raises:
            TopologyError: On unknown keys, wrong value types or invalid regexes
        """
        if settings is None:
            return cls()
        if not isinstance(settings, Mapping):
            raise TopologyError("'settings' must be an object")

        values: Dict[str, Any] = {}
        for key, value in settings.items():
            attr = _SETTING_KEYS.get(key)
            if attr is None:
                raise TopologyError(f"Unknown setting '{key}' (expected one of: {', '.join(sorted(_SETTING_KEYS))})")
            values[attr] = value

        config = cls(**_freeze_patterns(values))
        config.validate()
        return config

    def with_overrides(self, **overrides: Any) -> "MonorepoCheckConfig":
        """Copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        config = replace(self, **_freeze_patterns(changes))
        config.validate()
        return config

    def validate(self) -> None:
        for name in ("base_branch", "commit_ref", "output_file"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise TopologyError(f"Setting '{name}' must be a non-empty string")
        for name in ("include_untracked", "deepest_owner_only"):
            if not isinstance(getattr(self, name), bool):
                raise TopologyError(f"Setting '{name}' must be true or false")
        validate_patterns(self.exclude_patterns, "excludePatterns")

    def to_dict(self) -> Dict[str, Any]:
        values = {key: getattr(self, attr) for key, attr in _SETTING_KEYS.items()}
        values["excludePatterns"] = list(self.exclude_patterns)
        return values


def _freeze_patterns(values: Dict[str, Any]) -> Dict[str, Any]:
    if "exclude_patterns" not in values:
        return values
    patterns = values["exclude_patterns"]
    if not isinstance(patterns, (list, tuple)) or not all(isinstance(p, str) for p in patterns):
        raise TopologyError("Setting 'exclude_patterns' must be a list of strings")
    return dict(values, exclude_patterns=tuple(patterns))


def validate_patterns(patterns: Sequence[str], owner: str) -> None:
    """Compile every regex once so a typo fails before any detection runs.

    Raises:
        TopologyError: If a pattern is not a valid regular expression
    """
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            raise TopologyError(f"Invalid exclude pattern '{pattern}' in {owner}: {e}") from e
