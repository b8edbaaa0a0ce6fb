"""Transport and caching utilities."""

from .cache import ResultCache
from .http_client import TransportGateway

__all__ = ["ResultCache", "TransportGateway"]
