"""HTTP client module for paywalls.

Provides :class:`ApiClient`, a blocking client backed by :class:`httpx.Client`
with bearer auth injection, and :class:`ApiResponse`, the normalised result
every call returns.

Example::

    from paywalls.client import ApiClient

    with ApiClient(config) as client:
        resp = client.get("/api/health")
"""

from paywalls.client.api_client import ApiClient
from paywalls.client.response import ApiResponse

__all__ = ["ApiClient", "ApiResponse"]
