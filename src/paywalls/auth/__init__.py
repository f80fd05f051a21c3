"""Authentication subsystem for paywalls.

* :mod:`~paywalls.auth.credential_store` -- the single credentials file.
* :mod:`~paywalls.auth.device_session` -- the device-flow state machine.
* :mod:`~paywalls.auth.device_flow` -- the registration orchestrator.
* :mod:`~paywalls.auth.browser` -- browser launching for the verification URL.
"""

from paywalls.auth.credential_store import CredentialStore
from paywalls.auth.device_flow import DeviceAuthorizationFlow, InterruptGuard, SystemClock
from paywalls.auth.device_session import DeviceSession, Outcome, classify_token_response, transition

__all__ = [
    "CredentialStore",
    "DeviceAuthorizationFlow",
    "DeviceSession",
    "InterruptGuard",
    "Outcome",
    "SystemClock",
    "classify_token_response",
    "transition",
]
