"""Device-code registration flow (:rfc:`8628` Device Authorization Grant).

A developer runs ``paywalls register`` in a terminal, confirms in a browser,
and ends up with a stored API key.

Flow:
    1. Refuse to start if an API key is already configured, unless forced.
       No network call happens before this check.
    2. ``POST /api/device/code`` to obtain ``device_code`` + ``user_code``.
       Any failure here is fatal.
    3. Show the code and URL; open the browser unless headless.
    4. Poll ``POST /api/device/token`` every ``interval`` seconds until the
       session reaches a terminal state (see
       :mod:`paywalls.auth.device_session`). Network errors, pending and
       slow-down answers are absorbed by the loop.
    5. On ``authorized`` only: persist ``{api_key, account_id, base_url}``
       through :class:`~paywalls.auth.credential_store.CredentialStore`.

The wait between polls, the browser, and Ctrl-C handling are injectable
(:class:`Clock`, :class:`~paywalls.auth.browser.BrowserLauncher`,
:class:`InterruptGuard`) so the loop is deterministic under test.
"""

from __future__ import annotations

import logging
import signal
import socket
import threading
import time
from types import FrameType
from typing import Any, Callable, Optional, Protocol

import httpx
from pydantic import ValidationError

from paywalls.auth.browser import BrowserLauncher, SystemBrowserLauncher
from paywalls.auth.credential_store import CredentialStore
from paywalls.auth.device_session import (
    AuthorizationPending,
    DeadlinePassed,
    DeviceSession,
    Interrupted,
    Outcome,
    PollNetworkError,
    PollResponse,
    classify_token_response,
    transition,
)
from paywalls.client import ApiClient
from paywalls.exceptions import (
    AccessDeniedError,
    ConnectionError_,
    CredentialsExistError,
    DeviceCodeExpiredError,
    RegistrationCancelled,
    RegistrationFailedError,
)
from paywalls.models import Credentials, DeviceCodeGrant, PaywallsConfig
from paywalls.output import OutputManager, get_output

logger = logging.getLogger(__name__)

DEVICE_CODE_PATH = "/api/device/code"
DEVICE_TOKEN_PATH = "/api/device/token"


class Clock(Protocol):
    def sleep(self, seconds: float) -> None: ...

    def monotonic(self) -> float: ...


class SystemClock:
    """Wall-clock implementation of :class:`Clock`."""

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def monotonic(self) -> float:
        return time.monotonic()


class InterruptGuard:
    """Scoped SIGINT handler for the polling loop.

    While active, Ctrl-C only sets :attr:`cancelled`; the loop notices it
    between iterations. The previous handler is restored on exit whatever
    the outcome. Outside the main thread signals cannot be handled, so the
    guard is inert there.
    """

    def __init__(self, signum: int = signal.SIGINT) -> None:
        self._signum = signum
        self._previous: Any = None
        self._installed = False
        self.cancelled = False

    def __enter__(self) -> InterruptGuard:
        if threading.current_thread() is threading.main_thread():
            self._previous = signal.signal(self._signum, self._handle)
            self._installed = True
        return self

    def __exit__(self, *args: object) -> None:
        if self._installed:
            signal.signal(
                self._signum,
                self._previous if self._previous is not None else signal.SIG_DFL,
            )
            self._installed = False

    def _handle(self, signum: int, frame: Optional[FrameType]) -> None:
        logger.debug("Interrupt received; cancelling device authorization")
        self.cancelled = True


class DeviceAuthorizationFlow:
    """Register this machine and obtain an API key.

    Args:
        config: Resolved configuration. Its ``api_key`` drives the
            already-registered guard and its ``base_url`` selects the API.
        store: Where the issued credentials are written.
        output: Output manager for operator-facing messages.
        force: Overwrite existing credentials.
        headless: Never launch a browser; print the URL to stdout instead.
        incognito: Open the verification URL in a private window.
        clock: Sleep/monotonic capability.
        launcher: Browser capability.
        interrupt_guard: Factory for the scoped interrupt handler.
        transport: Optional :class:`httpx.BaseTransport` for the API client.
        client_name: Device name sent with the code request (default: host
            name).

    Example::

        flow = DeviceAuthorizationFlow(resolve_config(), CredentialStore())
        credentials = flow.run()
    """

    def __init__(
        self,
        config: PaywallsConfig,
        store: Optional[CredentialStore] = None,
        output: Optional[OutputManager] = None,
        force: bool = False,
        headless: bool = False,
        incognito: bool = False,
        clock: Optional[Clock] = None,
        launcher: Optional[BrowserLauncher] = None,
        interrupt_guard: Callable[[], InterruptGuard] = InterruptGuard,
        transport: Optional[httpx.BaseTransport] = None,
        client_name: Optional[str] = None,
    ) -> None:
        self._config = config
        self._store = store or CredentialStore()
        self._output = output or get_output()
        self._force = force
        self._headless = headless
        self._incognito = incognito
        self._clock = clock or SystemClock()
        self._launcher = launcher or SystemBrowserLauncher()
        self._interrupt_guard = interrupt_guard
        self._transport = transport
        self._client_name = client_name or socket.gethostname()

    @property
    def store(self) -> CredentialStore:
        return self._store

    def run(self) -> Credentials:
        """Run the whole flow and return the persisted credentials.

        Raises:
            CredentialsExistError: An API key is configured and ``force`` is off.
            RegistrationFailedError: The code request failed or the token
                endpoint answered with something unrecognised.
            DeviceCodeExpiredError: The code expired before approval.
            AccessDeniedError: Authorization was denied.
            RegistrationCancelled: The operator pressed Ctrl-C while waiting.
        """
        self._check_guard()

        # No API key: the device code is the bootstrap credential.
        anonymous = PaywallsConfig(base_url=self._config.base_url)
        with ApiClient(anonymous, transport=self._transport) as client:
            self._output.info("Registering device...")
            session = self.request_code(client)
            self._announce(session)
            session = self.poll(client, session)

        return self._finish(session)

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def _check_guard(self) -> None:
        if self._force or not self._config.has_api_key:
            return
        source = self._config.api_key_source.value if self._config.api_key_source else "unknown"
        raise CredentialsExistError(
            "Credentials already exist.",
            reason=f"An API key is already configured (source: {source}, file: {self._store.path}).",
            resolution="Run 'paywalls register --force' to overwrite.",
        )

    def request_code(self, client: ApiClient) -> DeviceSession:
        """``POST /api/device/code`` and start a session. Any failure is fatal."""
        try:
            response = client.post(DEVICE_CODE_PATH, {"client_name": self._client_name})
        except ConnectionError_ as exc:
            raise RegistrationFailedError(
                "Cannot reach API.",
                reason=f"Network error contacting {client.base_url}.",
                resolution="Check your internet connection and base URL.",
            ) from exc

        if not response.success:
            raise RegistrationFailedError(
                "Failed to initiate registration.",
                reason=f"Server returned HTTP {response.status_code}.",
                resolution="Try again later. If the problem persists, contact support.",
            )

        try:
            code = DeviceCodeGrant.model_validate(response.body)
        except ValidationError as exc:
            raise RegistrationFailedError(
                "Failed to initiate registration.",
                reason="Device code response is missing required fields.",
                resolution="Try again later. If the problem persists, contact support.",
            ) from exc

        logger.debug("Device code issued; expires_in=%ss interval=%ss", code.expires_in, code.interval)
        return DeviceSession.start(code, self._clock.monotonic())

    def _announce(self, session: DeviceSession) -> None:
        url = session.verification_uri_complete
        out = self._output
        if out.is_json:
            out.emit(
                {
                    "status": Outcome.PENDING.value,
                    "user_code": session.user_code,
                    "verification_uri_complete": url,
                    "expires_in": session.expires_in,
                }
            )
        else:
            out.info(f"\nYour code is: {session.user_code}\n")
            out.info("Open this URL to authorize:")
            out.info(f"  {url}\n")
            out.info(
                f"Waiting for authorization... (expires in {session.expires_in // 60} minutes)"
            )

        if self._headless:
            if not out.is_json:
                out.print_data(url)
            return

        if not self._launcher.open(url, incognito=self._incognito):
            out.warning("Could not open a browser. Open the URL above manually.")

    def poll(self, client: ApiClient, session: DeviceSession) -> DeviceSession:
        """Poll the token endpoint until *session* reaches a terminal outcome.

        The interrupt handler is installed for the duration of the loop only.
        Cancellation is checked between iterations, never mid-request.
        """
        with self._interrupt_guard() as guard:
            while not session.is_terminal:
                if guard.cancelled:
                    session = transition(session, Interrupted())
                    break

                self._clock.sleep(session.poll_interval_ms / 1000)

                if guard.cancelled:
                    session = transition(session, Interrupted())
                    break
                if self._clock.monotonic() >= session.expires_at:
                    session = transition(session, DeadlinePassed())
                    break

                event = self._exchange(client, session)
                if guard.cancelled:
                    session = transition(session, Interrupted())
                    break

                session = transition(session, event)
                logger.debug(
                    "Poll %d: %s -> %s (interval %d ms)",
                    session.polls,
                    type(event).__name__,
                    session.outcome.value,
                    session.poll_interval_ms,
                )
                if isinstance(event, AuthorizationPending):
                    self._output.tick(".")
                elif isinstance(event, PollNetworkError):
                    self._output.tick("!")

        return session

    def _exchange(self, client: ApiClient, session: DeviceSession) -> PollResponse:
        try:
            response = client.post(DEVICE_TOKEN_PATH, session.token_request())
        except ConnectionError_ as exc:
            return PollNetworkError(str(exc.reason or exc))
        return classify_token_response(response)

    def _finish(self, session: DeviceSession) -> Credentials:
        outcome = session.outcome
        if outcome == Outcome.AUTHORIZED:
            if session.grant is None:
                raise RegistrationFailedError(
                    "Unexpected response.",
                    reason="Authorized session carries no API key.",
                    resolution="Try again. Run 'paywalls register'.",
                )
            credentials = Credentials(
                api_key=session.grant.api_key,
                account_id=session.grant.account_id,
                base_url=self._config.base_url,
            )
            self._store.save(credentials)
            return credentials

        self._output.newline()
        if outcome == Outcome.ABORTED:
            raise RegistrationCancelled("Registration cancelled.")
        if outcome == Outcome.EXPIRED:
            raise DeviceCodeExpiredError(
                "Device code expired.",
                reason="The code was not approved before it expired.",
                resolution="Run 'paywalls register' again.",
            )
        if outcome == Outcome.DENIED:
            raise AccessDeniedError(
                "Authorization denied.",
                resolution="Contact support if this is unexpected.",
            )
        raise RegistrationFailedError(
            "Unexpected response.",
            reason=session.detail or "Unknown",
            resolution="Try again. Run 'paywalls register'.",
        )
