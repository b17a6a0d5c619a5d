"""
Chart and calendar series.

Turns time-stamped records (mappings or models) into ascending,
chart-ready sequences. Entries without a value are dropped; same-day
duplicates stay as separate points.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Iterable, List, Optional, Union

from .models import SeriesPoint, CalendarEvent


DateLike = Union[date, datetime, str]


def field_value(record: Any, name: str) -> Any:
    """Read a field from a mapping or an object."""
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def as_datetime(value: DateLike) -> datetime:
    """
    Normalize date / datetime / ISO string to a naive UTC datetime.

    Naive values are taken as already UTC so that mixed inputs sort together.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime.combine(value, time.min)


def as_date(value: DateLike) -> date:
    return as_datetime(value).date()


def to_series(
    records: Iterable[Any],
    date_field: str,
    value_field: str,
    label_format: Optional[str] = None,
) -> List[SeriesPoint]:
    """
    Project records to {date, value} points sorted ascending by date.

    Records with a missing value or date are skipped. Sorting is stable, so
    same-timestamp entries keep their input order.
    """
    keyed = []
    for record in records:
        value = field_value(record, value_field)
        raw_date = field_value(record, date_field)
        if value is None or raw_date is None:
            continue
        keyed.append((as_datetime(raw_date), float(value)))

    keyed.sort(key=lambda item: item[0])

    return [
        SeriesPoint(
            date=moment.date(),
            value=value,
            label=moment.strftime(label_format) if label_format else None,
        )
        for moment, value in keyed
    ]


def biomarker_trend(records: Iterable[Any], biomarker: str) -> List[SeriesPoint]:
    """Values of one biomarker across blood-work records, labelled "Mon YYYY"."""
    flattened = []
    for record in records:
        biomarkers = field_value(record, "biomarkers") or {}
        entry = biomarkers.get(biomarker)
        if entry is None:
            continue
        flattened.append({
            "date": field_value(record, "date"),
            "value": field_value(entry, "value"),
        })
    return to_series(flattened, "date", "value", label_format="%b %Y")


BODY_METRIC_FIELDS = (
    "weight_lbs",
    "chest_inches",
    "waist_inches",
    "hip_inches",
    "arm_inches",
    "thigh_inches",
)


def body_metric_series(metrics: Iterable[Any], metric: str) -> List[SeriesPoint]:
    """One measurement over time. Unknown metric names raise ValueError."""
    if metric not in BODY_METRIC_FIELDS:
        raise ValueError(f"Unknown body metric: {metric}")
    return to_series(metrics, "measured_at", metric, label_format="%b %d")


def days_until(target: DateLike, today: Optional[date] = None) -> int:
    """Whole days from today to target (negative when overdue)."""
    today = today or datetime.now(timezone.utc).date()
    return (as_date(target) - today).days


def refill_events(prescriptions: Iterable[Any]) -> List[CalendarEvent]:
    """All-day refill events for prescriptions that have a refill date."""
    events = []
    for p in prescriptions:
        refill_date = field_value(p, "refill_date")
        if not refill_date:
            continue
        day = as_date(refill_date)
        product_name = field_value(p, "product_name") or "Medication"
        events.append(CalendarEvent(
            id=f"refill-{field_value(p, 'id')}",
            title=f"Refill: {product_name}",
            start=day,
            end=day,
            type="refill",
        ))
    return sorted(events, key=lambda e: e.start)


def bloodwork_events(records: Iterable[Any], requests: Iterable[Any]) -> List[CalendarEvent]:
    """Completed labs plus requested draws, merged in date order."""
    events = []
    for lab in records:
        day = as_date(field_value(lab, "date"))
        events.append(CalendarEvent(
            id=str(field_value(lab, "id")),
            title="Completed Blood Work",
            start=day,
            end=day,
            type="completed",
        ))
    for req in requests:
        day = as_date(field_value(req, "requested_date"))
        status = field_value(req, "status")
        status = getattr(status, "value", status)
        events.append(CalendarEvent(
            id=str(field_value(req, "id")),
            title=f"Request: {status}",
            start=day,
            end=day,
            type="requested",
            status=status,
        ))
    return sorted(events, key=lambda e: e.start)
