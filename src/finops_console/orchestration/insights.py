"""
AI insight tab controller.

Keeps one cached outcome per insight kind and a single selected-kind pointer.
Each trigger re-fetches its kind; results for other kinds stay cached but
hidden. Generation ids guarantee the newest trigger of a kind wins even when
an older request settles later.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..api import endpoints
from ..api.client import FinOpsApiClient
from ..api.endpoints import ContractRequest
from ..api.models import AIStatus
from ..api.outcome import Err, ErrorKind, Ok, Outcome
from ..utils.cache import ResultCache

logger = logging.getLogger(__name__)

DISABLED_FALLBACK_MESSAGE = "AI features are not enabled on the server."


class InsightKind(str, Enum):
    FULL_ANALYSIS = "full-analysis"
    SPIKE_EXPLANATION = "spike-explanation"
    EXECUTIVE_SUMMARY = "executive-summary"
    PRIORITIZATION = "prioritization"
    BUDGET_SUGGESTION = "budget-suggestion"
    UTILIZATION = "utilization"
    FREE_FORM_ANSWER = "free-form-answer"


class InsightResult(BaseModel):
    """Generated insight text plus whatever structured data came with it."""

    model_config = ConfigDict(frozen=True)

    kind: InsightKind
    text: str
    question: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class _InsightSource:
    build: Callable[..., ContractRequest]
    text_field: str
    metadata_fields: tuple[str, ...] = ()


_SOURCES: dict[InsightKind, _InsightSource] = {
    InsightKind.FULL_ANALYSIS: _InsightSource(
        endpoints.ai_analyze, "analysis", ("model", "project_id", "billing_month", "generated_at")
    ),
    InsightKind.SPIKE_EXPLANATION: _InsightSource(
        endpoints.ai_explain_spike, "explanation", ("current_month", "last_month", "change_pct")
    ),
    InsightKind.EXECUTIVE_SUMMARY: _InsightSource(
        endpoints.ai_executive_summary, "summary", ("project_id", "billing_month")
    ),
    InsightKind.PRIORITIZATION: _InsightSource(
        endpoints.ai_prioritize_recommendations, "prioritization", ("total_recommendations",)
    ),
    InsightKind.BUDGET_SUGGESTION: _InsightSource(
        endpoints.ai_suggest_budgets, "suggestions", ("current_month_cost", "ytd_cost")
    ),
    InsightKind.UTILIZATION: _InsightSource(
        endpoints.ai_analyze_utilization, "analysis", ("total_resources", "idle_resources")
    ),
    InsightKind.FREE_FORM_ANSWER: _InsightSource(endpoints.ai_ask, "answer", ("generated_at",)),
}


class InsightTabController:
    """Mutually exclusive selector over independently cached insights."""

    def __init__(self, client: FinOpsApiClient, cache: ResultCache | None = None):
        self.client = client
        self.cache = cache or ResultCache(namespace="insights")
        self._status: Outcome[AIStatus] | None = None
        self._selected: InsightKind | None = None
        self._in_flight = 0

    @property
    def selected(self) -> InsightKind | None:
        return self._selected

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def ai_status(self) -> Outcome[AIStatus] | None:
        return self._status

    @property
    def results(self) -> Mapping[InsightKind, Outcome[InsightResult]]:
        cached = {kind: self.cache.get(kind.value) for kind in InsightKind}
        return MappingProxyType({kind: outcome for kind, outcome in cached.items() if outcome})

    @property
    def active(self) -> Outcome[InsightResult] | None:
        """Outcome of the selected kind, or None when nothing is selected."""
        if self._selected is None:
            return None
        return self.cache.get(self._selected.value)

    async def check_status(self) -> Outcome[AIStatus]:
        self._status = await self.client.fetch(endpoints.ai_status())
        if self._status.is_ok:
            logger.info(
                f"AI status: enabled={self._status.value.enabled} "
                f"provider={self._status.value.provider} model={self._status.value.model}"
            )
        return self._status

    def _gate(self, status: Outcome[AIStatus]) -> Err | None:
        if not status.is_ok:
            return status
        if not status.value.enabled:
            return Err(ErrorKind.DISABLED, status.value.message or DISABLED_FALLBACK_MESSAGE)
        return None

    def _request_for(self, kind: InsightKind, question: str | None, refresh: bool) -> ContractRequest:
        source = _SOURCES[kind]
        if kind is InsightKind.FREE_FORM_ANSWER:
            return source.build(question or "")
        if kind is InsightKind.FULL_ANALYSIS:
            return source.build(refresh=refresh)
        return source.build()

    async def trigger(
        self, kind: InsightKind, question: str | None = None, refresh: bool = False
    ) -> Outcome[InsightResult]:
        """Select ``kind`` and fetch a fresh result for it.

        Raises ValueError for a free-form trigger without a question.
        """
        kind = InsightKind(kind)
        request = self._request_for(kind, question, refresh)

        self._selected = kind
        generation = self.cache.issue(kind.value)
        status = self._status
        # A failed status lookup is retried on the next trigger
        if status is None or not status.is_ok:
            status = await self.check_status()

        gate = self._gate(status)
        if gate is not None:
            logger.info(f"Insight '{kind.value}' not requested: {gate.message}")
            self.cache.settle(kind.value, generation, gate)
            return gate

        self._in_flight += 1
        try:
            response = await self.client.fetch(request)
        finally:
            self._in_flight -= 1

        outcome = self._to_result(kind, response, question)
        if not self.cache.settle(kind.value, generation, outcome):
            logger.debug(f"Superseded insight '{kind.value}' (generation {generation}) discarded")
        return outcome

    def clear(self, kind: InsightKind) -> None:
        """Drop the cached result for ``kind``; a cleared selection becomes neutral."""
        kind = InsightKind(kind)
        self.cache.delete(kind.value)
        if self._selected is kind:
            self._selected = None

    def _to_result(
        self, kind: InsightKind, response: Outcome[Any], question: str | None
    ) -> Outcome[InsightResult]:
        if not response.is_ok:
            return response

        source = _SOURCES[kind]
        payload = response.value
        return Ok(
            InsightResult(
                kind=kind,
                text=getattr(payload, source.text_field),
                question=question.strip() if kind is InsightKind.FREE_FORM_ANSWER else None,
                metadata={name: getattr(payload, name) for name in source.metadata_fields},
            )
        )
