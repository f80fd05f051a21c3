"""Persistent credential store for the single paywalls account.

Stores one :class:`~paywalls.models.Credentials` record in
``~/.config/paywalls/credentials.json`` (honouring ``$XDG_CONFIG_HOME``).
Files are written atomically via :func:`~paywalls.config.atomic_write` with
``0o600`` permissions so the API key is never world-readable, even
momentarily.

The on-disk shape is fixed by other paywalls clients::

    {
      "api_key": "...",
      "account_id": "...",
      "base_url": "https://api.paywalls.net"
    }

See Also:
    :class:`~paywalls.auth.device_flow.DeviceAuthorizationFlow` -- the only
    writer of this file during normal operation.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from paywalls.config import atomic_write, get_credentials_path
from paywalls.exceptions import ConfigError
from paywalls.models import Credentials

logger = logging.getLogger(__name__)


class CredentialStore:
    """Read/write the credentials record.

    Args:
        path: Optional explicit file path. Defaults to
            :func:`~paywalls.config.get_credentials_path`, resolved at
            construction time.

    Example::

        store = CredentialStore()
        store.save(Credentials(api_key="key", account_id="acct"))
        assert store.load().api_key == "key"
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or get_credentials_path()

    @property
    def path(self) -> Path:
        """The filesystem path to the credentials file."""
        return self._path

    def save(self, credentials: Credentials) -> None:
        """Persist *credentials* atomically with ``0o600`` permissions.

        Raises:
            ConfigError: If the file cannot be written.
        """
        text = json.dumps(credentials.model_dump(mode="json"), indent=2) + "\n"
        try:
            atomic_write(self._path, text, mode=0o600)
        except OSError as exc:
            raise ConfigError(
                "Unable to save credentials.",
                reason=f"Could not write {self._path}: {exc}",
                resolution="Check permissions on the config directory and try again.",
            ) from exc
        logger.debug("Saved credentials to %s", self._path)

    def load(self) -> Optional[Credentials]:
        """Load the stored record.

        Returns:
            The :class:`~paywalls.models.Credentials`, or ``None`` if the file
            does not exist or cannot be parsed.
        """
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return Credentials.model_validate(data)
        except (ValueError, ValidationError, OSError) as exc:
            # ValueError covers both JSON and UTF-8 decode errors.
            logger.debug("Ignoring unreadable credentials file %s: %s", self._path, exc)
            return None

    def exists(self) -> bool:
        """Return ``True`` if a record with a non-empty API key is stored."""
        entry = self.load()
        return entry is not None and bool(entry.api_key)

    def clear(self) -> None:
        """Delete the credentials file. No-op when it is already gone."""
        if self._path.is_file():
            self._path.unlink()
