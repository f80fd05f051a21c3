"""paywalls -- developer CLI and SDK for the paywalls.net content marketplace.

The CLI registers a machine through a device-code flow, then reads the
account's wallet balance and transaction receipts and diagnoses
configuration problems. All business logic lives in the remote API; this
package orchestrates HTTP calls, formats output, and keeps one credentials
file.

Typical workflow::

    paywalls register        # approve in the browser, store an API key
    paywalls balance         # check the wallet
    paywalls doctor          # diagnose configuration/connectivity

SDK usage::

    from paywalls import ApiClient, resolve_config

    with ApiClient(resolve_config()) as client:
        print(client.get("/api/me").body)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG paths and layered configuration resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting with Rich support.
    diagnostics: The ``doctor`` check sequence.
"""

__version__ = "0.1.0"

from paywalls.auth.credential_store import CredentialStore  # noqa: E402
from paywalls.auth.device_flow import DeviceAuthorizationFlow  # noqa: E402
from paywalls.client import ApiClient, ApiResponse  # noqa: E402
from paywalls.config import has_credentials, resolve_config, save_credentials  # noqa: E402
from paywalls.models import Credentials, PaywallsConfig  # noqa: E402

__all__ = [
    "ApiClient",
    "ApiResponse",
    "CredentialStore",
    "Credentials",
    "DeviceAuthorizationFlow",
    "PaywallsConfig",
    "__version__",
    "has_credentials",
    "resolve_config",
    "save_credentials",
]
