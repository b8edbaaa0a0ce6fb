"""HTTP transport gateway for the console API.

Single chokepoint for network calls. Every failure is returned as an ``Err``
outcome; nothing raised by the transport escapes ``call``.
"""

import logging
from typing import Any

import httpx

from ..api.outcome import Err, ErrorKind, Ok, Outcome, RequestDescriptor

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    """Pull the server-supplied ``detail`` from an error body if there is one."""
    generic = f"HTTP error! status: {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        return generic

    if not isinstance(payload, dict):
        return generic

    detail = payload.get("detail")
    if isinstance(detail, str) and detail.strip():
        return detail
    if isinstance(detail, list):
        # Request validation errors arrive as a list of {"msg": ...} entries
        messages = [item.get("msg") for item in detail if isinstance(item, dict) and item.get("msg")]
        if messages:
            return "; ".join(messages)
    return generic


class TransportGateway:
    """Async JSON-over-HTTP client wrapper.

    No retries happen here; retry policy belongs to the caller.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "TransportGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def call(self, descriptor: RequestDescriptor) -> Outcome[Any]:
        """Issue one request and settle it into an outcome."""
        logger.debug(f"Calling {descriptor}")
        try:
            response = await self._client.request(
                descriptor.method,
                descriptor.path,
                params=descriptor.query or None,
                json=descriptor.body,
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            message = str(e) or e.__class__.__name__
            logger.error(f"API Error [{descriptor.path}]: {message}")
            return Err(ErrorKind.NETWORK, message)

        if not response.is_success:
            message = _error_detail(response)
            logger.error(f"API Error [{descriptor.path}]: {message}")
            return Err(ErrorKind.HTTP, message, status_code=response.status_code)

        if response.status_code == 204:
            return Ok(None)

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"API Error [{descriptor.path}]: invalid JSON body ({e})")
            return Err(
                ErrorKind.DECODE,
                f"Response body is not valid JSON: {e}",
                status_code=response.status_code,
            )

        return Ok(payload)
