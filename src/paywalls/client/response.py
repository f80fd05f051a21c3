"""Normalised API responses.

:class:`ApiResponse` is what every :class:`~paywalls.client.ApiClient` call
returns, whatever the HTTP status. Callers branch on :attr:`ApiResponse.success`
instead of catching exceptions; only connection-level failures raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx


@dataclass
class ApiResponse:
    """Result of one API call.

    Attributes:
        status_code: The HTTP status code.
        body: Parsed JSON, raw text for non-JSON payloads, or ``None`` when
            the response had no content.
        headers: Response headers (lower-cased keys).
    """

    status_code: int
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """``True`` for any 2xx status."""
        return 200 <= self.status_code < 300

    @property
    def error_code(self) -> Optional[str]:
        """The ``error`` field of a JSON object body, if any."""
        if isinstance(self.body, dict):
            value = self.body.get("error")
            return str(value) if value is not None else None
        return None

    def error_summary(self) -> str:
        """Short ``HTTP <status>: <error>`` text for failure reports."""
        detail = self.error_code
        if detail is None and isinstance(self.body, dict):
            detail = self.body.get("message")
        if detail is None and isinstance(self.body, str) and self.body.strip():
            detail = self.body.strip()[:200]
        return f"HTTP {self.status_code}: {detail or 'Unknown error'}"

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> ApiResponse:
        return cls(
            status_code=response.status_code,
            body=extract_response_data(response),
            headers={k.lower(): v for k, v in response.headers.items()},
        )


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns ``None``
    for responses with no content.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        pass

    return response.text
