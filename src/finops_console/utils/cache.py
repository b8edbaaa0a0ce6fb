"""
Result cache for orchestration outcomes.

Holds the last settled outcome for each request identity. Slots are replaced
wholesale and guarded by a per-key generation counter: a completion handler
may only write the slot for the generation it was issued, so a response that
settles after a newer trigger is dropped instead of overwriting newer state.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from ..api.outcome import Outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheSlot:
    outcome: Outcome[Any]
    generation: int
    stored_at: float


class ResultCache:
    """In-memory outcome store for one view."""

    def __init__(self, namespace: str = "default"):
        self.namespace = namespace
        self._slots: dict[str, CacheSlot] = {}
        self._generations: dict[str, int] = {}

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def issue(self, key: str) -> int:
        """Start a new generation for ``key`` and return its id."""
        full_key = self._key(key)
        generation = self._generations.get(full_key, 0) + 1
        self._generations[full_key] = generation
        return generation

    def current_generation(self, key: str) -> int:
        return self._generations.get(self._key(key), 0)

    def is_current(self, key: str, generation: int) -> bool:
        return self.current_generation(key) == generation

    def settle(self, key: str, generation: int, outcome: Outcome[Any]) -> bool:
        """Store ``outcome`` if ``generation`` is still the latest issued one.

        Returns False when the outcome is stale and was discarded.
        """
        if not self.is_current(key, generation):
            logger.debug(
                f"Dropping stale outcome for {self._key(key)} "
                f"(generation {generation}, current {self.current_generation(key)})"
            )
            return False

        self._slots[self._key(key)] = CacheSlot(
            outcome=outcome, generation=generation, stored_at=time.time()
        )
        return True

    def store(self, key: str, outcome: Outcome[Any]) -> None:
        """Overwrite the slot for ``key`` under a fresh generation."""
        self.settle(key, self.issue(key), outcome)

    def get(self, key: str) -> Outcome[Any] | None:
        slot = self._slots.get(self._key(key))
        return slot.outcome if slot else None

    def slot(self, key: str) -> CacheSlot | None:
        return self._slots.get(self._key(key))

    def delete(self, key: str) -> bool:
        """Forget the outcome for ``key``; in-flight generations become stale."""
        full_key = self._key(key)
        self._generations[full_key] = self._generations.get(full_key, 0) + 1
        return self._slots.pop(full_key, None) is not None

    def clear(self) -> None:
        for full_key in list(self._generations):
            self._generations[full_key] += 1
        self._slots.clear()

    def keys(self) -> list[str]:
        prefix = f"{self.namespace}:"
        return [key[len(prefix):] for key in self._slots]

    def stats(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "entries": len(self._slots),
            "errors": sum(1 for slot in self._slots.values() if not slot.outcome.is_ok),
        }
