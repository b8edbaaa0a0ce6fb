"""
View orchestration for the console.

Fan-out loading of views, forecast reconciliation, AI insight tabs, report
lifecycle and the session context.
"""

from .context import AppContext, ContextSnapshot
from .fanout import FanOutOrchestrator, ViewState, ViewStatus
from .forecast import ForecastOverlapError, ForecastReconciler, Timeline
from .insights import InsightKind, InsightResult, InsightTabController
from .reports import ReportLifecycleManager

__all__ = [
    "AppContext",
    "ContextSnapshot",
    "FanOutOrchestrator",
    "ViewState",
    "ViewStatus",
    "ForecastOverlapError",
    "ForecastReconciler",
    "Timeline",
    "InsightKind",
    "InsightResult",
    "InsightTabController",
    "ReportLifecycleManager",
]
