"""
Console API contract: outcome types, response models, endpoint descriptors
and the typed client.
"""

from .client import FinOpsApiClient
from .outcome import Err, ErrorKind, Ok, Outcome, RequestDescriptor

__all__ = ["FinOpsApiClient", "Err", "ErrorKind", "Ok", "Outcome", "RequestDescriptor"]
