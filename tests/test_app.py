"""Tests for the root application: version, help, flags and the entry point."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from paywalls import __version__
from paywalls.app import app, main


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"paywalls {__version__}" in result.output

    def test_help_lists_commands(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("register", "balance", "receipts", "topup", "doctor"):
            assert command in result.output

    def test_unknown_command(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["bogus"])
        assert result.exit_code != 0

    def test_root_flags_reach_commands(self, cli_runner, isolated_config, fake_api) -> None:
        result = cli_runner.invoke(
            app,
            ["--json", "--base-url", "https://root.test", "doctor"],
            obj={"transport": fake_api.transport},
        )
        assert result.stdout.lstrip().startswith("{")
        assert str(fake_api.requests[0].url).startswith("https://root.test/")


class TestMain:
    def test_unexpected_error_writes_crash_log(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _boom() -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr("paywalls.app.app", _boom)
        monkeypatch.setattr("paywalls.app._setup_signal_handlers", lambda: None)

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "paywalls" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()

    def test_paywalls_error_renders_reason_and_fix(self, isolated_config, monkeypatch, capsys) -> None:
        from paywalls.exceptions import ApiError

        def _fail() -> None:
            raise ApiError("Unable to X.", reason="because", resolution="do Y")

        monkeypatch.setattr("paywalls.app.app", _fail)
        monkeypatch.setattr("paywalls.app._setup_signal_handlers", lambda: None)

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "Unable to X." in err
        assert "Reason: because" in err
        assert "Fix: do Y" in err
        assert not (isolated_config / "data" / "paywalls" / "logs").exists()

    def test_keyboard_interrupt_exits_130(self, isolated_config, monkeypatch) -> None:
        def _interrupt() -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr("paywalls.app.app", _interrupt)
        monkeypatch.setattr("paywalls.app._setup_signal_handlers", lambda: None)

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 130

    def test_signal_handler_installed(self, monkeypatch) -> None:
        import signal

        previous = signal.getsignal(signal.SIGINT)
        monkeypatch.setattr("paywalls.app.app", lambda: sys.exit(0))
        try:
            with pytest.raises(SystemExit):
                main()
            assert signal.getsignal(signal.SIGINT) is not previous
        finally:
            signal.signal(signal.SIGINT, previous)
