"""
Forecast reconciliation.

Merges the monthly cost history and the daily probabilistic forecast into one
ordinal timeline for rendering. The two series keep their native granularity;
nothing is interpolated or resampled.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum

from ..api.models import CostTrendItem, ForecastSeries, Trend
from ..api.outcome import Err, ErrorKind

logger = logging.getLogger(__name__)


class ForecastOverlapError(ValueError):
    """Raised when a forecast does not start after the last historical month."""


class Affordance(str, Enum):
    WARNING = "warning"
    POSITIVE = "positive"
    NEUTRAL = "neutral"


TREND_AFFORDANCES = {
    Trend.INCREASING: Affordance.WARNING,
    Trend.DECREASING: Affordance.POSITIVE,
    Trend.STABLE: Affordance.NEUTRAL,
}


def trend_affordance(trend: Trend | None) -> Affordance:
    """Map a reported trend to its display affordance; unknown trends are neutral."""
    return TREND_AFFORDANCES.get(trend, Affordance.NEUTRAL)


@dataclass(frozen=True)
class TimelinePoint:
    index: int
    label: str
    actual: float | None = None
    predicted: float | None = None
    lower: float | None = None
    upper: float | None = None

    @property
    def is_forecast(self) -> bool:
        return self.predicted is not None

    @property
    def has_band(self) -> bool:
        return self.lower is not None and self.upper is not None


@dataclass(frozen=True)
class Timeline:
    points: tuple[TimelinePoint, ...]
    rejected: tuple[Err, ...]
    trend: Trend | None
    confidence: float | None
    total_predicted_cost: float | None

    @property
    def affordance(self) -> Affordance:
        return trend_affordance(self.trend)

    @property
    def history(self) -> tuple[TimelinePoint, ...]:
        return tuple(point for point in self.points if not point.is_forecast)

    @property
    def forecast(self) -> tuple[TimelinePoint, ...]:
        return tuple(point for point in self.points if point.is_forecast)


def forecast_label(day: date) -> str:
    """Day-month label; never collides with a month-only history label."""
    return day.strftime("%m-%d")


def _starts_after(last_item: CostTrendItem, first_day: date) -> bool:
    """Whether a forecast starting on ``first_day`` begins after ``last_item``.

    Year-less labels only give the calendar month, so a forecast starting in the
    last history month or the month before it is treated as overlapping. Any
    other month is read as the months that follow, wrapping over the year end.
    """
    year, month = last_item.month_key
    if year is None:
        previous_month = 12 if month == 1 else month - 1
        return first_day.month not in (month, previous_month)
    return (first_day.year, first_day.month) > (year, month)


class ForecastReconciler:
    """Builds the combined history plus forecast timeline."""

    def check_overlap(self, history: Sequence[CostTrendItem], forecast: ForecastSeries) -> None:
        """Raise ForecastOverlapError unless ``forecast`` starts after ``history``."""
        first_day = forecast.first_date
        if history and first_day is not None and not _starts_after(history[-1], first_day):
            raise ForecastOverlapError(
                f"Forecast starting {first_day} overlaps history ending {history[-1].month}"
            )

    def merge(
        self, history: Sequence[CostTrendItem], forecast: ForecastSeries | None
    ) -> Timeline:
        points: list[TimelinePoint] = []
        for item in history:
            points.append(TimelinePoint(index=len(points), label=item.month, actual=item.cost))

        if forecast is None:
            return Timeline(
                points=tuple(points),
                rejected=(),
                trend=None,
                confidence=None,
                total_predicted_cost=None,
            )

        self.check_overlap(history, forecast)

        rejected: list[Err] = []
        for forecast_point in forecast.forecast_points:
            if not forecast_point.has_valid_band:
                rejected.append(
                    Err(
                        ErrorKind.DECODE,
                        f"Forecast point {forecast_point.date} has bounds "
                        f"[{forecast_point.lower_bound}, {forecast_point.upper_bound}] "
                        f"that do not contain {forecast_point.predicted_cost}",
                    )
                )
                continue
            points.append(
                TimelinePoint(
                    index=len(points),
                    label=forecast_label(forecast_point.date),
                    predicted=forecast_point.predicted_cost,
                    lower=forecast_point.lower_bound,
                    upper=forecast_point.upper_bound,
                )
            )

        if rejected:
            logger.warning(f"Rejected {len(rejected)} forecast point(s) with inverted bounds")

        return Timeline(
            points=tuple(points),
            rejected=tuple(rejected),
            trend=forecast.trend,
            confidence=forecast.model_confidence,
            total_predicted_cost=forecast.total_predicted_cost,
        )
