"""Device authorization session and its transition function (:rfc:`8628`).

The polling protocol is modelled as a small explicit state machine:

* :class:`DeviceSession` -- an immutable snapshot of one authorization
  attempt (device code, deadline, current poll interval, outcome).
* Events -- what a single loop iteration observed. Server answers are
  :data:`PollResponse` variants produced by :func:`classify_token_response`;
  :class:`Interrupted` and :class:`DeadlinePassed` are raised locally.
* :func:`transition` -- a pure ``(DeviceSession, event) -> DeviceSession``
  function with no I/O, so every protocol rule is testable without a
  network.

Transition table (from ``pending``; terminal sessions never change)::

    TokenIssued           -> authorized
    AuthorizationPending  -> pending (unchanged interval)
    SlowDown              -> pending, interval += 5000 ms
    PollNetworkError      -> pending
    ExpiredToken          -> expired
    DeadlinePassed        -> expired
    AccessDenied          -> denied
    Interrupted           -> aborted
    UnexpectedResponse    -> failed
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Optional, Union

from pydantic import ValidationError

from paywalls.client.response import ApiResponse
from paywalls.models import DeviceCodeGrant, TokenGrant

GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
"""Fixed ``grant_type`` sent with every token-exchange call."""

SLOW_DOWN_INCREMENT_MS = 5000
"""Server-mandated backoff added to the poll interval on ``slow_down``."""


class Outcome(str, enum.Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    EXPIRED = "expired"
    DENIED = "denied"
    ABORTED = "aborted"
    FAILED = "protocol_error"


TERMINAL_OUTCOMES = frozenset(
    {Outcome.AUTHORIZED, Outcome.EXPIRED, Outcome.DENIED, Outcome.ABORTED, Outcome.FAILED}
)


# --- Events ---


@dataclass(frozen=True)
class TokenIssued:
    grant: TokenGrant


@dataclass(frozen=True)
class AuthorizationPending:
    pass


@dataclass(frozen=True)
class SlowDown:
    pass


@dataclass(frozen=True)
class ExpiredToken:
    pass


@dataclass(frozen=True)
class AccessDenied:
    pass


@dataclass(frozen=True)
class UnexpectedResponse:
    status_code: int
    error: str


@dataclass(frozen=True)
class PollNetworkError:
    message: str


@dataclass(frozen=True)
class Interrupted:
    pass


@dataclass(frozen=True)
class DeadlinePassed:
    pass


PollResponse = Union[
    TokenIssued,
    AuthorizationPending,
    SlowDown,
    ExpiredToken,
    AccessDenied,
    UnexpectedResponse,
    PollNetworkError,
]
FlowEvent = Union[PollResponse, Interrupted, DeadlinePassed]

_ERROR_EVENTS = {
    "authorization_pending": AuthorizationPending(),
    "slow_down": SlowDown(),
    "expired_token": ExpiredToken(),
    "access_denied": AccessDenied(),
}


# --- Session ---


@dataclass(frozen=True)
class DeviceSession:
    """One device authorization attempt.

    Attributes:
        device_code: Opaque server token identifying this attempt.
        user_code: Code the operator confirms in the browser.
        verification_uri: Short verification URL.
        verification_uri_complete: Verification URL with the code pre-filled.
        expires_in: Lifetime in seconds as issued by the server.
        expires_at: Deadline on the flow's monotonic clock.
        poll_interval_ms: Current wait before each token-exchange call.
        outcome: Current state; see :class:`Outcome`.
        polls: Number of token-exchange attempts made so far.
        grant: The issued API key once ``authorized``.
        detail: Human-readable detail for ``failed`` sessions.
    """

    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str
    expires_in: int
    expires_at: float
    poll_interval_ms: int
    outcome: Outcome = Outcome.PENDING
    polls: int = 0
    grant: Optional[TokenGrant] = None
    detail: Optional[str] = None

    @classmethod
    def start(cls, code: DeviceCodeGrant, now: float) -> DeviceSession:
        """Create a pending session from a code-issuance response issued at *now*."""
        return cls(
            device_code=code.device_code,
            user_code=code.user_code,
            verification_uri=code.verification_uri,
            verification_uri_complete=code.verification_uri_complete,
            expires_in=code.expires_in,
            expires_at=now + code.expires_in,
            poll_interval_ms=max(code.interval, 0) * 1000,
        )

    @property
    def is_terminal(self) -> bool:
        return self.outcome in TERMINAL_OUTCOMES

    def token_request(self) -> dict[str, str]:
        """Body of the ``POST /api/device/token`` call."""
        return {"device_code": self.device_code, "grant_type": GRANT_TYPE}


def classify_token_response(response: ApiResponse) -> PollResponse:
    """Map a token-endpoint HTTP result onto a :data:`PollResponse` variant.

    A 2xx body must carry an ``api_key``; anything else is an
    :class:`UnexpectedResponse`. Non-2xx bodies are classified by their
    ``error`` code alone.
    """
    if response.success:
        if isinstance(response.body, dict):
            try:
                return TokenIssued(TokenGrant.model_validate(response.body))
            except ValidationError:
                pass
        return UnexpectedResponse(response.status_code, "missing api_key in token response")

    code = response.error_code
    event = _ERROR_EVENTS.get(code or "")
    if event is not None:
        return event
    return UnexpectedResponse(response.status_code, code or "Unknown")


def transition(session: DeviceSession, event: FlowEvent) -> DeviceSession:
    """Apply *event* to *session* and return the next session.

    Terminal sessions are returned unchanged, so a second token issuance can
    never re-authorize an already finished attempt.
    """
    if session.is_terminal:
        return session

    if isinstance(event, Interrupted):
        return replace(session, outcome=Outcome.ABORTED)
    if isinstance(event, DeadlinePassed):
        return replace(session, outcome=Outcome.EXPIRED)

    session = replace(session, polls=session.polls + 1)

    if isinstance(event, TokenIssued):
        return replace(session, outcome=Outcome.AUTHORIZED, grant=event.grant)
    if isinstance(event, (AuthorizationPending, PollNetworkError)):
        return session
    if isinstance(event, SlowDown):
        return replace(session, poll_interval_ms=session.poll_interval_ms + SLOW_DOWN_INCREMENT_MS)
    if isinstance(event, ExpiredToken):
        return replace(session, outcome=Outcome.EXPIRED)
    if isinstance(event, AccessDenied):
        return replace(session, outcome=Outcome.DENIED)
    if isinstance(event, UnexpectedResponse):
        return replace(
            session,
            outcome=Outcome.FAILED,
            detail=f"HTTP {event.status_code}: {event.error}",
        )
    raise TypeError(f"Unknown device flow event: {event!r}")
