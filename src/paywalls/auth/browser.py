"""Browser launching for the device authorization flow.

:class:`SystemBrowserLauncher` opens the verification URL with
:mod:`webbrowser`. With ``incognito=True`` it first tries a private window
in Chrome, then Firefox, and falls back to the default browser.

Launch failures are never fatal: the URL is always shown to the operator as
well, so a missing browser only means they have to open it themselves.
"""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess
import webbrowser
from typing import Protocol

logger = logging.getLogger(__name__)


class BrowserLauncher(Protocol):
    def open(self, url: str, incognito: bool = False) -> bool:
        """Open *url*; return ``True`` if a browser was launched."""
        ...


def private_window_commands(url: str, system: str) -> list[list[str]]:
    """Candidate argv lists that open *url* in a private window on *system*."""
    if system == "Darwin":
        return [
            ["open", "-na", "Google Chrome", "--args", "--incognito", url],
            ["open", "-a", "Firefox", "--args", "-private-window", url],
        ]
    if system == "Linux":
        return [
            ["google-chrome", "--incognito", url],
            ["chromium", "--incognito", url],
            ["firefox", "-private-window", url],
        ]
    if system == "Windows":
        return [["cmd", "/c", "start", "", "chrome", "--incognito", url]]
    return []


class SystemBrowserLauncher:
    """Launch the operator's browser on this machine."""

    def open(self, url: str, incognito: bool = False) -> bool:
        if incognito and self._open_private(url):
            return True
        try:
            return webbrowser.open(url)
        except webbrowser.Error as exc:
            logger.debug("webbrowser.open failed: %s", exc)
            return False

    def _open_private(self, url: str) -> bool:
        system = platform.system()
        for argv in private_window_commands(url, system):
            if shutil.which(argv[0]) is None:
                continue
            try:
                if system == "Darwin":
                    # `open` exits non-zero when the application is not installed.
                    result = subprocess.run(argv, capture_output=True, timeout=10, check=False)
                    if result.returncode == 0:
                        return True
                    continue
                subprocess.Popen(
                    argv,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
                return True
            except (OSError, subprocess.SubprocessError) as exc:
                logger.debug("Private window launch %s failed: %s", argv[0], exc)
        return False
