"""Exception hierarchy for paywalls.

All exceptions inherit from :class:`PaywallsError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`paywalls.exit_codes`
plus the two pieces of information every failure report shows the operator:
the underlying ``reason`` and a concrete ``resolution`` step.

Commands run inside :func:`paywalls.commands.common.command_errors`, which
renders any ``PaywallsError`` (multi-line text, or a single JSON object in
``--json`` mode) and exits with the error's code.

Subclass hierarchy::

    PaywallsError (exit 1)
    +-- ConfigError
    +-- ConnectionError_
    +-- AuthError
    +-- NotFoundError
    +-- ApiError
    +-- CredentialsExistError
    +-- DeviceFlowError
    |   +-- DeviceCodeExpiredError
    |   +-- AccessDeniedError
    |   +-- RegistrationFailedError
    +-- RegistrationCancelled (exit 130)
"""

from __future__ import annotations

from typing import Optional

from paywalls.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


class PaywallsError(Exception):
    """Base exception for all paywalls errors.

    Args:
        message: One-line failure summary.
        reason: Optional explanation of the underlying cause.
        resolution: Optional remediation the operator can act on.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        resolution: Optional[str] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.resolution = resolution
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(PaywallsError):
    """Raised for configuration problems (unwritable credentials file, bad values)."""


class ConnectionError_(PaywallsError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """


class AuthError(PaywallsError):
    """Raised when no API key is configured or the API rejects it."""


class NotFoundError(PaywallsError):
    """Raised when a wallet or receipt does not exist (HTTP 404)."""


class ApiError(PaywallsError):
    """Raised when the API answers with an unexpected non-2xx status."""


class CredentialsExistError(PaywallsError):
    """Raised by ``register`` when credentials exist and ``--force`` was not given."""


class DeviceFlowError(PaywallsError):
    """Base class for terminal failures of the device authorization flow."""


class DeviceCodeExpiredError(DeviceFlowError):
    """The device code expired before the operator approved it."""


class AccessDeniedError(DeviceFlowError):
    """The operator (or the server) explicitly denied the authorization."""


class RegistrationFailedError(DeviceFlowError):
    """The code request failed or the token endpoint returned something unrecognised."""


class RegistrationCancelled(PaywallsError):
    """The operator interrupted registration. Not an error, but a distinct exit path."""

    exit_code = EXIT_CANCELLED
