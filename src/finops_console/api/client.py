"""
Typed client for the console API.

Wraps the transport gateway and shapes raw JSON into the contract models.
Like the gateway, ``fetch`` never raises: shape violations become
``Err(decode)`` outcomes.
"""

import logging
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..utils.http_client import TransportGateway
from .endpoints import ContractRequest, report_download_path
from .outcome import Err, ErrorKind, Ok, Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _summarize_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"Unexpected response shape at {location}: {first.get('msg')}"


def decode(outcome: Outcome[Any], response_type: Any, path: str = "") -> Outcome[Any]:
    """Validate the body of an ``Ok`` outcome against ``response_type``."""
    if not outcome.is_ok:
        return outcome
    try:
        return Ok(_adapter(response_type).validate_python(outcome.value))
    except ValidationError as e:
        message = _summarize_validation_error(e)
        logger.error(f"API Error [{path}]: {message}")
        return Err(ErrorKind.DECODE, message)


class FinOpsApiClient:
    """Client for the FinOps console API."""

    def __init__(self, gateway: TransportGateway):
        self.gateway = gateway

    async def fetch(self, request: ContractRequest[T]) -> Outcome[T]:
        raw = await self.gateway.call(request.descriptor)
        return decode(raw, request.response_type, request.descriptor.path)

    def report_download_url(self, filename: str) -> str:
        """Absolute download link for a report; no request is made."""
        return self.gateway.url_for(report_download_path(filename))

    async def aclose(self) -> None:
        await self.gateway.aclose()
