"""Chart and calendar shapes consumed by the dashboards."""

from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel


class SeriesPoint(BaseModel):
    """One plotted point."""
    date: date
    value: float
    label: Optional[str] = None


class CalendarEvent(BaseModel):
    """All-day calendar entry for refills and blood-work dates."""
    id: str
    title: str
    start: date
    end: date
    all_day: bool = True
    type: Literal["refill", "completed", "requested"]
    status: Optional[str] = None
