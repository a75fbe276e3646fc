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
"""Console colors for the affected-projects CLI, on top of colorama."""

import os
import sys
import logging
from typing import Optional, TextIO

from colorama import Fore, Style, init

logger = logging.getLogger(__name__)

# Escape codes are always emitted; configure_color() blanks them when unwanted
init(autoreset=False, strip=False)


class Colors:
    """Escape codes used by the report and the status messages."""

    RED = Fore.RED
    GREEN = Fore.GREEN
    YELLOW = Fore.YELLOW
    CYAN = Fore.CYAN

    RESET = Style.RESET_ALL
    BRIGHT = Style.BRIGHT

    @staticmethod
    def disable() -> None:
        for attr in ("RED", "GREEN", "YELLOW", "CYAN", "RESET", "BRIGHT"):
            setattr(Colors, attr, "")


def colored(text: str, color: str = "") -> str:
    """Wrap text in a color code, or return it unchanged when the code is empty."""
    if not color:
        return text
    return f"{color}{text}{Colors.RESET}"


def _emit(text: str, color: str, file: Optional[TextIO], label: str, prefix: bool) -> None:
    message = f"{label}: {text}" if prefix else text
    print(colored(message, color), file=file)


def print_success(text: str, file: Optional[TextIO] = None, prefix: bool = False) -> None:
    """Print a green message to stdout, used for the affected-projects report."""
    _emit(text, Colors.GREEN, file or sys.stdout, "Success", prefix)


def print_error(text: str, file: Optional[TextIO] = None, prefix: bool = True) -> None:
    """Print a red "Error: " message to stderr."""
    _emit(text, Colors.RED, file or sys.stderr, "Error", prefix)


def print_warning(text: str, file: Optional[TextIO] = None, prefix: bool = True) -> None:
    """Print a yellow "Warning: " message to stderr."""
    _emit(text, Colors.YELLOW, file or sys.stderr, "Warning", prefix)


def should_use_color(no_color: bool = False) -> bool:
    """True when stdout is a terminal and neither --no-color nor NO_COLOR asks otherwise."""
    if no_color or os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


def configure_color(no_color: bool = False) -> bool:
    """Blank every escape code for the rest of the process unless colors should be used.

    Returns:
        True if colors stay enabled
    """
    enabled = should_use_color(no_color=no_color)
    if not enabled:
        logger.debug("Color output disabled")
        Colors.disable()
    return enabled
