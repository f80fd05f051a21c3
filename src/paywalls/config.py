"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for paywalls:

* **Directory layout** -- XDG Base Directory style on every platform:
  ``$XDG_CONFIG_HOME/paywalls/`` (default ``~/.config/paywalls/``) holds
  ``credentials.json``; ``$XDG_DATA_HOME/paywalls/`` (default
  ``~/.local/share/paywalls/``) holds crash logs.
* **Precedence resolution** -- :func:`resolve_config` merges explicit
  overrides, environment variables, a project-local ``.env`` file, and the
  credentials file into a :class:`~paywalls.models.PaywallsConfig`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written credentials
file behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

from paywalls.models import DEFAULT_BASE_URL, Credentials, KeySource, PaywallsConfig

logger = logging.getLogger(__name__)

_APP_NAME = "paywalls"
_CREDENTIALS_FILENAME = "credentials.json"
_DOTENV_FILENAME = ".env"

ENV_API_KEY = "PAYWALLS_API_KEY"
ENV_BASE_URL = "PAYWALLS_BASE_URL"
ENV_ACCOUNT_ID = "PAYWALLS_ACCOUNT_ID"


# --- XDG path resolution ---


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory (not created until something is written).

    Returns:
        ``$XDG_CONFIG_HOME/paywalls`` or ``~/.config/paywalls``.
    """
    return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_credentials_path() -> Path:
    """Return the fixed per-user credentials file path."""
    return get_config_dir() / _CREDENTIALS_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is given
    the permissions are applied before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Layers ---


def load_dotenv_layer(directory: Optional[Path] = None) -> dict[str, str]:
    """Read ``PAYWALLS_*`` values from ``.env`` in *directory* (default: cwd).

    Values are parsed by python-dotenv but never exported into
    ``os.environ``. Keys with empty values are dropped.
    """
    path = (directory or Path.cwd()) / _DOTENV_FILENAME
    if not path.is_file():
        return {}
    values = dotenv_values(path)
    return {
        key: value
        for key, value in values.items()
        if key in (ENV_API_KEY, ENV_BASE_URL, ENV_ACCOUNT_ID) and value
    }


def load_credentials_layer() -> Optional[Credentials]:
    """Load the credentials file layer, or ``None`` if absent or unreadable."""
    from paywalls.auth.credential_store import CredentialStore

    return CredentialStore().load()


def _first(*candidates: tuple[Optional[str], Optional[KeySource]]) -> tuple[Optional[str], Optional[KeySource]]:
    for value, source in candidates:
        if value:
            return value, source
    return None, None


def resolve_config(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    account_id: Optional[str] = None,
) -> PaywallsConfig:
    """Resolve configuration with the full precedence chain.

    Precedence (high to low):
        1. Explicit overrides (CLI flags, SDK arguments)
        2. Environment variables (``PAYWALLS_API_KEY``, ``PAYWALLS_BASE_URL``,
           ``PAYWALLS_ACCOUNT_ID``)
        3. ``./.env`` file (same keys)
        4. Credentials file (``~/.config/paywalls/credentials.json``)
        5. Default base URL

    Empty strings at any layer are treated as absent.

    Returns:
        The effective :class:`~paywalls.models.PaywallsConfig`.
    """
    dotenv = load_dotenv_layer()
    creds = load_credentials_layer()
    file_key = creds.api_key if creds else None
    file_base = creds.base_url if creds else None
    file_account = creds.account_id if creds else None

    key, key_source = _first(
        (api_key, KeySource.OVERRIDE),
        (os.environ.get(ENV_API_KEY), KeySource.ENVIRONMENT),
        (dotenv.get(ENV_API_KEY), KeySource.DOTENV),
        (file_key, KeySource.CREDENTIALS_FILE),
    )
    url, _ = _first(
        (base_url, None),
        (os.environ.get(ENV_BASE_URL), None),
        (dotenv.get(ENV_BASE_URL), None),
        (file_base, None),
    )
    account, _ = _first(
        (account_id, None),
        (os.environ.get(ENV_ACCOUNT_ID), None),
        (dotenv.get(ENV_ACCOUNT_ID), None),
        (file_account, None),
    )

    config = PaywallsConfig(
        api_key=key or "",
        account_id=account,
        base_url=(url or DEFAULT_BASE_URL).rstrip("/"),
        api_key_source=key_source,
    )
    logger.debug(
        "Resolved config: base_url=%s account_id=%s key_source=%s",
        config.base_url,
        config.account_id,
        key_source.value if key_source else None,
    )
    return config


def has_credentials() -> bool:
    """Return ``True`` when any configuration layer supplies an API key."""
    return resolve_config().has_api_key


def save_credentials(
    api_key: str,
    account_id: Optional[str],
    base_url: Optional[str] = None,
) -> Path:
    """Persist a credentials record to the per-user credentials file.

    Args:
        api_key: The API key to store.
        account_id: The account public id returned alongside the key.
        base_url: The base URL the key was issued for (default production).

    Returns:
        The path of the written file.
    """
    from paywalls.auth.credential_store import CredentialStore

    store = CredentialStore()
    store.save(
        Credentials(
            api_key=api_key,
            account_id=account_id,
            base_url=base_url or DEFAULT_BASE_URL,
        )
    )
    return store.path
