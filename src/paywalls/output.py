"""Output formatting system with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- primary data only (JSON records, tables, the verification
  URL in headless mode). This is what downstream tools pipe and parse.
* **stderr** -- all human diagnostics (progress, status, errors,
  suggestions). Never contaminates the data stream.
* **Machine mode** -- ``--json`` emits exactly one JSON object per record on
  stdout and suppresses human diagnostics entirely.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and headless
  mode.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding format preferences,
   Rich consoles, and the verbose flag. Created once in
   :func:`~paywalls.app.main_callback` and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`, etc.)
   that delegate to the global ``OutputManager`` instance.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

_HEADLESS_ENV_VARS = ("CI", "CODESPACES", "SSH_CONNECTION")


class OutputFormat(str, Enum):
    """Enumeration of supported output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` otherwise. ``--json`` forces ``JSON``.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Central manager for all CLI output with stdout/stderr discipline.

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential informational messages on stderr.
        verbose: Enable debug-level messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        if self._format == OutputFormat.JSON:
            self._no_color = True

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_json(self) -> bool:
        """Whether machine-readable JSON mode is active."""
        return self._format == OutputFormat.JSON

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def _human(self) -> bool:
        return not self._quiet and not self.is_json

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    def emit(self, record: dict[str, Any]) -> None:
        """Print one JSON record on a single stdout line."""
        self.print_data(json.dumps(record, ensure_ascii=False, default=str))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich mode** -- styled :class:`~rich.table.Table`.
        * **JSON mode** -- array of objects keyed by header names.
        * **Plain mode** -- tab-separated values, one row per line.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, ensure_ascii=False))

        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))

        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message to stderr. Suppressed in JSON/quiet mode."""
        if self._human:
            self._write_err(message, None)

    def success(self, message: str) -> None:
        """Print a green ``✓`` success line to stderr. Suppressed in JSON/quiet mode."""
        if self._human:
            self._write_err(f"✓ {message}", "green")

    def warning(self, message: str) -> None:
        """Print a yellow ``⚠`` warning to stderr. Suppressed only in JSON mode."""
        if not self.is_json:
            self._write_err(f"⚠ {message}", "yellow")

    def error(self, message: str) -> None:
        """Print a red ``✗`` error to stderr. Suppressed only in JSON mode."""
        if not self.is_json:
            self._write_err(f"✗ {message}", "bold red")

    def suggest(self, message: str) -> None:
        """Print a dimmed next-step suggestion to stderr."""
        if self._human:
            self._write_err(message, "dim")

    def dim(self, message: str) -> None:
        if self._human:
            self._write_err(message, "dim")

    def debug(self, message: str) -> None:
        """Print a debug message to stderr. Only shown when ``--verbose`` is active."""
        if self._verbose:
            self._write_err(f"[debug] {message}", "dim")

    def tick(self, mark: str = ".") -> None:
        """Write a single progress mark to stderr without a newline."""
        if self._human:
            sys.stderr.write(mark)
            sys.stderr.flush()

    def newline(self) -> None:
        if self._human:
            sys.stderr.write("\n")
            sys.stderr.flush()

    def failure(
        self,
        message: str,
        reason: Optional[str] = None,
        resolution: Optional[str] = None,
    ) -> None:
        """Report a fatal failure.

        JSON mode emits ``{"error", "reason", "resolution"}`` on stdout; human
        mode renders the same information as multi-line text on stderr.
        """
        if self.is_json:
            record = {"error": message}
            if reason:
                record["reason"] = reason
            if resolution:
                record["resolution"] = resolution
            self.emit(record)
            return
        self.error(message)
        if reason:
            self._write_err(f"  Reason: {reason}", None)
        if resolution:
            self._write_err(f"  Fix: {resolution}", "dim")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _write_err(self, text: str, style: Optional[str]) -> None:
        if self._no_color:
            print(text, file=sys.stderr, flush=True)
        else:
            self._stderr.print(text, style=style, markup=False, highlight=False)


# ------------------------------------------------------------------ #
# Environment detection
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Check if color should be disabled per clig.dev.

    Returns True when NO_COLOR env var is set (any value) or TERM=dumb.
    """
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


def is_headless(headless_flag: bool = False, json_flag: bool = False) -> bool:
    """Detect a non-interactive context where no browser should be opened.

    Headless when ANY of:

    * ``--headless`` or ``--json`` was given
    * ``CI``, ``CODESPACES`` or ``SSH_CONNECTION`` is set
    * stdout is not a TTY
    """
    if headless_flag or json_flag:
        return True
    if any(os.environ.get(var) is not None for var in _HEADLESS_ENV_VARS):
        return True
    return not _is_tty()


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def info(message: str) -> None:
    """Print info message to stderr via the global OutputManager."""
    get_output().info(message)


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def success(message: str) -> None:
    """Print success message to stderr via the global OutputManager."""
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    """Print debug message to stderr via the global OutputManager."""
    get_output().debug(message)


def emit(record: dict[str, Any]) -> None:
    """Print a JSON record to stdout via the global OutputManager."""
    get_output().emit(record)
