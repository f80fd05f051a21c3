"""Tests for the output formatting system."""

from __future__ import annotations

import json

import pytest

from paywalls.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    is_headless,
    reset_output,
    set_output,
)


@pytest.fixture(autouse=True)
def _plain_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("NO_COLOR", "TERM", "CI", "CODESPACES", "SSH_CONNECTION"):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Colour and headless detection
# ---------------------------------------------------------------------------


class TestEnvironmentDetection:
    def test_no_color_env(self, monkeypatch) -> None:
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color()

    def test_dumb_terminal(self, monkeypatch) -> None:
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color()

    def test_color_enabled_by_default(self) -> None:
        assert not _should_disable_color()

    def test_headless_flags(self) -> None:
        assert is_headless(headless_flag=True)
        assert is_headless(json_flag=True)

    @pytest.mark.parametrize("var", ["CI", "CODESPACES", "SSH_CONNECTION"])
    def test_headless_env(self, monkeypatch, var) -> None:
        monkeypatch.setattr("paywalls.output._is_tty", lambda: True)
        monkeypatch.setenv(var, "1")
        assert is_headless()

    def test_non_tty_is_headless(self, monkeypatch) -> None:
        monkeypatch.setattr("paywalls.output._is_tty", lambda: False)
        assert is_headless()

    def test_interactive_tty(self, monkeypatch) -> None:
        monkeypatch.setattr("paywalls.output._is_tty", lambda: True)
        assert not is_headless()


# ---------------------------------------------------------------------------
# Stream discipline
# ---------------------------------------------------------------------------


class TestHumanMode:
    def test_auto_resolves_to_plain_off_tty(self) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_info_goes_to_stderr(self, capsys) -> None:
        OutputManager(no_color=True).info("hello")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "hello" in captured.err

    def test_markers(self, capsys) -> None:
        out = OutputManager(no_color=True)
        out.success("done")
        out.warning("careful")
        out.error("broken")
        err = capsys.readouterr().err
        assert "✓ done" in err
        assert "⚠ careful" in err
        assert "✗ broken" in err

    def test_quiet_suppresses_info_not_errors(self, capsys) -> None:
        out = OutputManager(no_color=True, quiet=True)
        out.info("hidden")
        out.error("shown")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_debug_only_when_verbose(self, capsys) -> None:
        OutputManager(no_color=True).debug("quiet")
        OutputManager(no_color=True, verbose=True).debug("loud")
        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "[debug] loud" in err

    def test_failure_multiline(self, capsys) -> None:
        OutputManager(no_color=True).failure("Unable to X.", "because", "do Y")
        err = capsys.readouterr().err
        assert "✗ Unable to X." in err
        assert "  Reason: because" in err
        assert "  Fix: do Y" in err

    def test_tick_has_no_newline(self, capsys) -> None:
        out = OutputManager(no_color=True)
        out.tick(".")
        out.tick("!")
        assert capsys.readouterr().err == ".!"

    def test_plain_table(self, capsys) -> None:
        OutputManager(format=OutputFormat.PLAIN).print_table(["A", "B"], [["1", "2"]])
        assert capsys.readouterr().out == "A\tB\n1\t2\n"


class TestJsonMode:
    def test_json_suppresses_human_output(self, capsys) -> None:
        out = OutputManager(format=OutputFormat.JSON)
        out.info("x")
        out.success("x")
        out.warning("x")
        out.error("x")
        out.tick()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_emit_single_line(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).emit({"status": "pending", "n": 1})
        out = capsys.readouterr().out
        assert out.count("\n") == 1
        assert json.loads(out) == {"status": "pending", "n": 1}

    def test_failure_record(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).failure("Unable to X.", "because", "do Y")
        assert json.loads(capsys.readouterr().out) == {
            "error": "Unable to X.",
            "reason": "because",
            "resolution": "do Y",
        }

    def test_failure_omits_empty_fields(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).failure("Unable to X.")
        assert json.loads(capsys.readouterr().out) == {"error": "Unable to X."}

    def test_json_table(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).print_table(["A"], [["1"], ["2"]])
        assert json.loads(capsys.readouterr().out) == [{"A": "1"}, {"A": "2"}]


class TestGlobalOutput:
    def test_lazy_default(self) -> None:
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self) -> None:
        out = OutputManager(format=OutputFormat.JSON)
        set_output(out)
        assert get_output() is out
        reset_output()
        assert get_output() is not out
