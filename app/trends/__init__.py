"""
Trend Series Module

Date bucketing for charts and calendars: sort ascending, drop empty
values, never aggregate same-day entries.
"""

from .models import SeriesPoint, CalendarEvent
from .series import (
    to_series,
    biomarker_trend,
    body_metric_series,
    BODY_METRIC_FIELDS,
    refill_events,
    bloodwork_events,
    days_until,
    as_datetime,
)

__all__ = [
    "SeriesPoint",
    "CalendarEvent",
    "to_series",
    "biomarker_trend",
    "body_metric_series",
    "BODY_METRIC_FIELDS",
    "refill_events",
    "bloodwork_events",
    "days_until",
    "as_datetime",
]
