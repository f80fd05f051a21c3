"""Synchronous HTTP client for the paywalls API.

This module provides :class:`ApiClient`, the transport used by every command
and by the device authorization flow. It wraps :class:`httpx.Client` and
layers on:

- **Auth injection** -- ``Authorization: Bearer <api_key>`` whenever a key is
  configured. Registration runs without one.
- **Normalised results** -- every HTTP status comes back as an
  :class:`~paywalls.client.response.ApiResponse`; non-2xx is data, not an
  exception.
- **Connection error mapping** -- timeouts, DNS failures and refused
  connections raise :class:`~paywalls.exceptions.ConnectionError_`.

Requests are not retried; the only retrying caller is the device flow's
polling loop.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from paywalls import __version__
from paywalls.client.response import ApiResponse
from paywalls.exceptions import ConnectionError_
from paywalls.models import DEFAULT_BASE_URL, PaywallsConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class ApiClient:
    """Authenticated client for the paywalls API.

    Must be used as a context manager so that the underlying connection pool
    is opened and closed properly.

    Args:
        config: Resolved configuration supplying ``api_key`` and ``base_url``.
            When omitted, an anonymous client for the default base URL is
            created.
        transport: Optional :class:`httpx.BaseTransport`; tests pass an
            :class:`httpx.MockTransport`.
        timeout: Per-request timeout in seconds.

    Example::

        with ApiClient(resolve_config()) as client:
            me = client.get("/api/me")
            if me.success:
                print(me.body["account_id"])
    """

    def __init__(
        self,
        config: Optional[PaywallsConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._config = config or PaywallsConfig()
        self._transport = transport
        self._timeout = timeout
        self._client: Optional[httpx.Client] = None

    @property
    def api_key(self) -> str:
        return self._config.api_key

    @property
    def base_url(self) -> str:
        return self._config.base_url or DEFAULT_BASE_URL

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ApiClient:
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        json_body: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> ApiResponse:
        """Send a request and return the normalised response.

        Args:
            method: HTTP method.
            path: URL path appended to the base URL.
            json_body: Optional JSON-serialisable request body.
            params: Optional query parameters.

        Returns:
            An :class:`~paywalls.client.response.ApiResponse` for any HTTP
            status.

        Raises:
            ConnectionError_: On network-level failures.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        headers = self._build_headers()
        kwargs: dict[str, Any] = {"headers": headers}
        if json_body is not None:
            kwargs["json"] = json_body
        if params:
            kwargs["params"] = params

        logger.debug("%s %s%s", method.upper(), self.base_url, path)
        try:
            response = self._client.request(method.upper(), path, **kwargs)
        except httpx.TransportError as exc:
            logger.debug("%s %s failed: %s", method.upper(), path, exc)
            raise ConnectionError_(
                "Cannot reach API.",
                reason=f"Network error contacting {self.base_url}: {exc}",
                resolution="Check your internet connection and base URL.",
            ) from exc

        logger.debug("%s %s -> HTTP %d", method.upper(), path, response.status_code)
        return ApiResponse.from_httpx(response)

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> ApiResponse:
        """Send a GET request."""
        return self.request("GET", path, params=params)

    def post(self, path: str, json_body: Optional[Any] = None) -> ApiResponse:
        """Send a POST request with an optional JSON body."""
        return self.request("POST", path, json_body=json_body)

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": f"paywalls/{__version__}",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers
