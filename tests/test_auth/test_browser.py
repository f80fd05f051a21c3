"""Tests for browser launching."""

from __future__ import annotations

import webbrowser

import pytest

from paywalls.auth import browser
from paywalls.auth.browser import SystemBrowserLauncher, private_window_commands

URL = "https://paywalls.net/device?code=ABCD-1234"


class TestPrivateWindowCommands:
    @pytest.mark.parametrize("system", ["Darwin", "Linux", "Windows"])
    def test_url_is_last_argument(self, system: str) -> None:
        commands = private_window_commands(URL, system)
        assert commands
        assert all(argv[-1] == URL for argv in commands)

    def test_chrome_tried_first_on_linux(self) -> None:
        assert private_window_commands(URL, "Linux")[0][0] == "google-chrome"

    def test_unknown_platform(self) -> None:
        assert private_window_commands(URL, "Plan9") == []


class TestSystemBrowserLauncher:
    def test_default_browser(self, monkeypatch) -> None:
        opened: list[str] = []
        monkeypatch.setattr(webbrowser, "open", lambda url: opened.append(url) or True)

        assert SystemBrowserLauncher().open(URL)
        assert opened == [URL]

    def test_browser_error_returns_false(self, monkeypatch) -> None:
        def _fail(url: str) -> bool:
            raise webbrowser.Error("no browser")

        monkeypatch.setattr(webbrowser, "open", _fail)

        assert SystemBrowserLauncher().open(URL) is False

    def test_incognito_falls_back_without_private_browser(self, monkeypatch) -> None:
        opened: list[str] = []
        monkeypatch.setattr(browser.shutil, "which", lambda name: None)
        monkeypatch.setattr(webbrowser, "open", lambda url: opened.append(url) or True)

        assert SystemBrowserLauncher().open(URL, incognito=True)
        assert opened == [URL]

    def test_incognito_launches_private_window(self, monkeypatch) -> None:
        launched: list[list[str]] = []

        class _Popen:
            def __init__(self, argv, **kwargs) -> None:
                launched.append(argv)

        monkeypatch.setattr(browser.platform, "system", lambda: "Linux")
        monkeypatch.setattr(browser.shutil, "which", lambda name: f"/usr/bin/{name}")
        monkeypatch.setattr(browser.subprocess, "Popen", _Popen)
        monkeypatch.setattr(webbrowser, "open", lambda url: pytest.fail("fallback used"))

        assert SystemBrowserLauncher().open(URL, incognito=True)
        assert launched == [["google-chrome", "--incognito", URL]]
