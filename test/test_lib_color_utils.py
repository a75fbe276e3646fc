#!/usr/bin/env python3
"""Tests for monorepo_check/color_utils.py"""

import io
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from monorepo_check.color_utils import Colors, colored, configure_color, print_error, print_success, print_warning, should_use_color


class FakeTty(io.StringIO):
    def isatty(self) -> bool:
        return True


class TestColored:
    """Tests for colored function."""

    def test_basic_coloring(self) -> None:
        """Test basic color application."""
        result = colored("test", Colors.RED)
        assert "test" in result

    def test_no_color(self) -> None:
        """Text without a color code is returned unchanged."""
        assert colored("test", "") == "test"


class TestPrintFunctions:
    """Tests for print_* convenience functions."""

    def test_print_success(self) -> None:
        output = io.StringIO()
        print_success("done", file=output)
        assert "done" in output.getvalue()
        assert "Success:" not in output.getvalue()

    def test_print_error_prefix(self) -> None:
        output = io.StringIO()
        print_error("broken", file=output)
        assert "Error: broken" in output.getvalue()

    def test_print_warning_without_prefix(self) -> None:
        output = io.StringIO()
        print_warning("careful", file=output, prefix=False)
        assert "Warning:" not in output.getvalue()
        assert "careful" in output.getvalue()

    def test_print_error_defaults_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        print_error("broken")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error: broken" in captured.err


class TestShouldUseColor:
    """Tests for color detection."""

    def test_terminal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "stdout", FakeTty())
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert should_use_color()

    def test_no_color_flag_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "stdout", FakeTty())
        assert not should_use_color(no_color=True)

    def test_not_a_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "stdout", io.StringIO())
        assert not should_use_color()

    def test_no_color_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "stdout", FakeTty())
        monkeypatch.setenv("NO_COLOR", "1")
        assert not should_use_color()


class TestConfigureColor:
    """Tests for switching colors off process-wide."""

    def test_disable_blanks_codes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for attr in ("RED", "GREEN", "YELLOW", "CYAN", "RESET", "BRIGHT"):
            monkeypatch.setattr(Colors, attr, getattr(Colors, attr))
        assert not configure_color(no_color=True)
        assert Colors.RED == ""
        assert Colors.BRIGHT == ""
        assert colored("plain", Colors.GREEN) == "plain"
