"""
Fan-out orchestration for console views.

A view issues a batch of independent requests concurrently and only resolves
once every request has settled. Required sources are aggregated fail-fast:
the first error in declaration order invalidates the whole snapshot. Optional
sources settle on their own and never change the view's status.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..api.client import FinOpsApiClient
from ..api.endpoints import ContractRequest
from ..api.outcome import Err, ErrorKind, Ok, Outcome
from ..utils.cache import ResultCache

logger = logging.getLogger(__name__)

ConsistencyCheck = Callable[[Mapping[str, Any]], str | None]
StateListener = Callable[["ViewState"], None]


class ViewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


@dataclass(frozen=True)
class ViewState:
    """Immutable snapshot of one view."""

    status: ViewStatus = ViewStatus.IDLE
    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    optional: Mapping[str, Outcome[Any]] = field(default_factory=lambda: MappingProxyType({}))
    error: Err | None = None
    generation: int = 0

    @property
    def is_ready(self) -> bool:
        return self.status is ViewStatus.READY

    @property
    def is_loading(self) -> bool:
        return self.status is ViewStatus.LOADING

    def value(self, name: str) -> Any:
        return self.values[name]

    def optional_value(self, name: str) -> Any | None:
        """Value of an optional source, or None if it failed or never ran."""
        outcome = self.optional.get(name)
        if outcome is None or not outcome.is_ok:
            return None
        return outcome.value


class FanOutOrchestrator:
    """Loads a fixed batch of requests for one view."""

    def __init__(
        self,
        client: FinOpsApiClient,
        name: str,
        requests: Sequence[ContractRequest],
        optional: Sequence[ContractRequest] = (),
        cache: ResultCache | None = None,
        check: ConsistencyCheck | None = None,
    ):
        names = [request.name for request in (*requests, *optional)]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate source names in view {name}: {names}")

        self.client = client
        self.name = name
        self.requests = tuple(requests)
        self.optional = tuple(optional)
        self.cache = cache or ResultCache(namespace=name)
        self.check = check
        self._state = ViewState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ViewState:
        return self._state

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _set_state(self, state: ViewState) -> None:
        self._state = state
        for listener in self._listeners:
            listener(state)

    async def load(self) -> ViewState:
        """Issue the whole batch and resolve the view once all have settled."""
        generation = self.cache.issue(self.name)
        self._set_state(
            ViewState(
                status=ViewStatus.LOADING,
                values=self._state.values,
                optional=self._state.optional,
                generation=generation,
            )
        )
        logger.info(
            f"Loading view '{self.name}' (generation {generation}, "
            f"{len(self.requests)} required, {len(self.optional)} optional)"
        )

        batch = (*self.requests, *self.optional)
        outcomes = await asyncio.gather(*(self.client.fetch(request) for request in batch))

        if not self.cache.is_current(self.name, generation):
            logger.debug(f"Discarding stale batch for view '{self.name}' (generation {generation})")
            return self._state

        for request, outcome in zip(batch, outcomes):
            self.cache.store(request.cache_key, outcome)

        required = outcomes[: len(self.requests)]
        optional = MappingProxyType(
            {
                request.name: outcome
                for request, outcome in zip(self.optional, outcomes[len(self.requests) :])
            }
        )

        first_error = next((outcome for outcome in required if not outcome.is_ok), None)
        if first_error is not None:
            return self._resolve_error(first_error, optional, generation)

        values = MappingProxyType(
            {request.name: outcome.value for request, outcome in zip(self.requests, required)}
        )

        if self.check is not None:
            problem = self.check(values)
            if problem:
                return self._resolve_error(Err(ErrorKind.DECODE, problem), optional, generation)

        state = ViewState(
            status=ViewStatus.READY, values=values, optional=optional, generation=generation
        )
        self.cache.settle(self.name, generation, Ok(values))
        self._set_state(state)
        logger.info(f"View '{self.name}' ready")
        return state

    async def retry(self) -> ViewState:
        """Manual retry: re-issue the entire batch."""
        return await self.load()

    def _resolve_error(
        self, error: Err, optional: Mapping[str, Outcome[Any]], generation: int
    ) -> ViewState:
        state = ViewState(
            status=ViewStatus.ERRORED, optional=optional, error=error, generation=generation
        )
        self.cache.settle(self.name, generation, error)
        self._set_state(state)
        logger.warning(f"View '{self.name}' errored ({error.kind.value}): {error.message}")
        return state
