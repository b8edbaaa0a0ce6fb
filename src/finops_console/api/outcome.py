"""
Outcome types shared by the transport gateway and the orchestration layer.

Every request settles into exactly one ``Ok`` or ``Err``. Outcomes are frozen:
a retry produces a new outcome that replaces the old one, it never edits it.
"""

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure taxonomy surfaced to views."""

    NETWORK = "network"
    HTTP = "http"
    DECODE = "decode"
    DISABLED = "disabled"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    status_code: int | None = None

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_disabled(self) -> bool:
        """Disabled features render as information, not as an error banner."""
        return self.kind is ErrorKind.DISABLED

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.HTTP and self.status_code == 404


Outcome = Union[Ok[T], Err]


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable description of one call against the console API.

    ``params`` holds the query string as sorted ``(name, value)`` pairs so two
    descriptors for the same request compare (and hash) equal.
    """

    path: str
    method: str = "GET"
    params: tuple[tuple[str, str], ...] = ()
    body: Any = field(default=None, compare=False, hash=False)

    @classmethod
    def build(
        cls,
        path: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> "RequestDescriptor":
        """Build a descriptor, dropping unset query parameters."""
        pairs = []
        for name, value in (params or {}).items():
            if value is None or value is False:
                continue
            if value is True:
                value = "true"
            pairs.append((name, str(value)))
        return cls(path=path, method=method.upper(), params=tuple(sorted(pairs)), body=body)

    @property
    def query(self) -> dict[str, str]:
        return dict(self.params)

    @property
    def cache_key(self) -> str:
        """Stable identity of the request, used as the result cache key."""
        key_data = {
            "method": self.method,
            "path": self.path,
            "params": list(self.params),
            "body": self.body,
        }
        key_str = json.dumps(key_data, sort_keys=True, default=str)
        return hashlib.sha256(key_str.encode()).hexdigest()[:32]

    def __str__(self) -> str:
        if not self.params:
            return f"{self.method} {self.path}"
        query = "&".join(f"{name}={value}" for name, value in self.params)
        return f"{self.method} {self.path}?{query}"
