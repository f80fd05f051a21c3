"""Typer application and CLI entry point for paywalls.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``register``, ``balance``, ``receipts``,
``topup``/``fund``, ``doctor``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`paywalls.config`: Configuration layering.
    :mod:`paywalls.commands.common`: Per-command output and error handling.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from paywalls import __version__
from paywalls.commands.balance import balance_command
from paywalls.commands.doctor import doctor_command
from paywalls.commands.receipts import receipts_command
from paywalls.commands.register import register_command
from paywalls.commands.topup import topup_command
from paywalls.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="paywalls",
    help="Developer CLI for paywalls.net: register, check your wallet, and diagnose setup.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("register")(register_command)
app.command("balance")(balance_command)
app.command("receipts")(receipts_command)
app.command("topup")(topup_command)
app.command("fund", hidden=True)(topup_command)
app.command("doctor")(doctor_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"paywalls {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # httpcore logs every connection event at DEBUG.
    logging.getLogger("httpcore").setLevel(logging.INFO)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output machine-readable JSON (implies --headless)."
    ),
    headless: bool = typer.Option(
        False, "--headless", help="Disable color, browser auto-open, and interactive prompts."
    ),
    force: bool = typer.Option(
        False, "--force", help="Overwrite existing credentials."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="API base URL override."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Stores the global flags in the Typer context so that sub-commands can
    merge them with their own. Keys already present in ``ctx.obj`` (for
    example an injected HTTP transport) are preserved.
    """
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["headless"] = headless
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose
    ctx.obj["base_url"] = base_url


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from paywalls.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``paywalls`` console script.

    Unhandled :class:`~paywalls.exceptions.PaywallsError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from paywalls.exceptions import PaywallsError
        from paywalls.output import error, get_output

        if isinstance(exc, PaywallsError):
            get_output().failure(exc.message, exc.reason, exc.resolution)
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
