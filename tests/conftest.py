"""Shared test fixtures for paywalls.

Provides isolated config environments, a scripted fake API served through
:class:`httpx.MockTransport`, deterministic clock/browser/interrupt fakes
for the device flow, and a CLI runner. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from paywalls.output import OutputFormat, OutputManager, reset_output, set_output

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    clears all PAYWALLS_* and headless-detection environment variables,
    disables colour so human output is plain text, and changes the working
    directory to tmp_path (so no stray ``.env`` is picked up).

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("NO_COLOR", "1")

    for var in [
        "PAYWALLS_API_KEY",
        "PAYWALLS_BASE_URL",
        "PAYWALLS_ACCOUNT_ID",
        "CI",
        "CODESPACES",
        "SSH_CONNECTION",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def credentials_path(isolated_config: Path) -> Path:
    return isolated_config / "config" / "paywalls" / "credentials.json"


@pytest.fixture
def write_credentials(credentials_path: Path) -> Callable[..., Path]:
    """Return a helper that writes a credentials file with the given fields."""

    def _write(**fields: Any) -> Path:
        record = {"api_key": "TEST-01-APIKEY123", "base_url": "https://api.paywalls.net"}
        record.update(fields)
        credentials_path.parent.mkdir(parents=True, exist_ok=True)
        credentials_path.write_text(json.dumps(record))
        return credentials_path

    return _write


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code=status_code, json=data)


class FakeApi:
    """Scripted HTTP server behind an :class:`httpx.MockTransport`.

    Routes map ``"METHOD /path"`` to a list of replies consumed in order;
    the last reply repeats once the list is exhausted. A reply is an
    :class:`httpx.Response`, an exception to raise, or a callable taking
    the request.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, route: str, *replies: Reply) -> FakeApi:
        self.routes.setdefault(route, []).extend(replies)
        return self

    def calls(self, route: str) -> list[httpx.Request]:
        method, path = route.split(" ", 1)
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.method} {request.url.path}"
        replies = self.routes.get(key)
        if not replies:
            return json_response({"error": "not_found"}, 404)
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply) and not isinstance(reply, httpx.Response):
            return reply(request)
        return reply

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


# ---------------------------------------------------------------------------
# Device flow fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Records requested sleeps and advances a virtual monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []
        self.on_sleep: Optional[Callable[[int], None]] = None

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.on_sleep is not None:
            self.on_sleep(len(self.sleeps))

    def monotonic(self) -> float:
        return self.now


class FakeLauncher:
    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.opened: list[tuple[str, bool]] = []

    def open(self, url: str, incognito: bool = False) -> bool:
        self.opened.append((url, incognito))
        return self.result


class FakeGuard:
    """Stand-in for the SIGINT guard; tests flip :attr:`cancelled` directly."""

    def __init__(self) -> None:
        self.cancelled = False
        self.entered = 0
        self.exited = 0

    def __call__(self) -> FakeGuard:
        return self

    def __enter__(self) -> FakeGuard:
        self.entered += 1
        return self

    def __exit__(self, *args: object) -> None:
        self.exited += 1


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def guard() -> FakeGuard:
    return FakeGuard()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
