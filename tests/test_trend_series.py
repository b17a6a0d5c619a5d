"""
Chart and Calendar Series Tests
===============================
Ascending order, empty-value filtering, no same-day aggregation.
"""

from datetime import date, datetime, timezone

import pytest

from app.trends import (
    biomarker_trend,
    bloodwork_events,
    body_metric_series,
    days_until,
    refill_events,
    to_series,
)
from app.trends.series import as_datetime


class TestToSeries:

    def test_drops_missing_values_and_sorts(self):
        records = [
            {"date": "2024-03-01", "value": 10},
            {"date": "2024-01-01", "value": None},
            {"date": "2024-02-01", "value": 20},
        ]
        points = to_series(records, "date", "value")
        assert [(p.date, p.value) for p in points] == [
            (date(2024, 2, 1), 20.0),
            (date(2024, 3, 1), 10.0),
        ]

    def test_same_day_entries_kept_separately(self):
        records = [
            {"day": date(2024, 1, 5), "v": 1},
            {"day": date(2024, 1, 5), "v": 2},
        ]
        assert [p.value for p in to_series(records, "day", "v")] == [1.0, 2.0]

    def test_missing_field_is_skipped(self):
        assert to_series([{"date": "2024-01-01"}], "date", "value") == []

    def test_mixed_date_types(self):
        records = [
            {"at": datetime(2024, 1, 2, 23, 0, tzinfo=timezone.utc), "v": 2},
            {"at": "2024-01-01T10:00:00Z", "v": 1},
            {"at": date(2024, 1, 3), "v": 3},
        ]
        assert [p.value for p in to_series(records, "at", "v")] == [1.0, 2.0, 3.0]

    def test_label_format(self):
        points = to_series([{"d": "2024-03-15", "v": 1}], "d", "v", label_format="%b %Y")
        assert points[0].label == "Mar 2024"

    def test_empty_input(self):
        assert to_series([], "date", "value") == []

    def test_repeated_calls_match(self):
        records = [{"date": "2024-02-01", "value": 2}, {"date": "2024-01-01", "value": 1}]
        assert to_series(records, "date", "value") == to_series(records, "date", "value")


class TestAsDatetime:

    def test_aware_converted_to_utc(self):
        value = datetime.fromisoformat("2024-01-01T20:00:00-05:00")
        assert as_datetime(value) == datetime(2024, 1, 2, 1, 0)

    def test_plain_date_is_midnight(self):
        assert as_datetime(date(2024, 1, 1)) == datetime(2024, 1, 1, 0, 0)


class TestDomainSeries:

    def test_biomarker_trend(self):
        records = [
            {"date": "2024-06-01", "biomarkers": {"Ferritin": {"value": 80}}},
            {"date": "2024-01-01", "biomarkers": {"Ferritin": {"value": 40}}},
            {"date": "2024-03-01", "biomarkers": {"Vitamin D": {"value": 30}}},
            {"date": "2024-04-01", "biomarkers": None},
        ]
        points = biomarker_trend(records, "Ferritin")
        assert [(p.label, p.value) for p in points] == [("Jan 2024", 40.0), ("Jun 2024", 80.0)]

    def test_body_metric_series(self):
        metrics = [
            {"measured_at": "2024-02-01", "weight_lbs": 190, "waist_inches": None},
            {"measured_at": "2024-01-01", "weight_lbs": 195, "waist_inches": 36},
        ]
        assert [p.value for p in body_metric_series(metrics, "weight_lbs")] == [195.0, 190.0]
        assert [p.value for p in body_metric_series(metrics, "waist_inches")] == [36.0]

    def test_body_metric_series_rejects_unknown_metric(self):
        with pytest.raises(ValueError):
            body_metric_series([], "neck_inches")


class TestCalendar:

    def test_refill_events(self):
        prescriptions = [
            {"id": "rx-2", "product_name": "BPC-157", "refill_date": "2024-05-20"},
            {"id": "rx-1", "product_name": None, "refill_date": "2024-05-01"},
            {"id": "rx-3", "product_name": "Testosterone", "refill_date": None},
        ]
        events = refill_events(prescriptions)
        assert [e.id for e in events] == ["refill-rx-1", "refill-rx-2"]
        assert events[0].title == "Refill: Medication"
        assert events[0].all_day
        assert events[0].start == events[0].end == date(2024, 5, 1)

    def test_bloodwork_events_merge_in_order(self):
        records = [{"id": "bw-1", "date": "2024-04-10"}]
        requests = [
            {"id": "req-1", "requested_date": "2024-05-01", "status": "approved"},
            {"id": "req-0", "requested_date": "2024-03-01", "status": "completed"},
        ]
        events = bloodwork_events(records, requests)
        assert [e.id for e in events] == ["req-0", "bw-1", "req-1"]
        assert events[1].title == "Completed Blood Work"
        assert events[2].title == "Request: approved"
        assert events[2].status == "approved"

    def test_days_until(self):
        today = date(2024, 5, 1)
        assert days_until("2024-05-11", today=today) == 10
        assert days_until(date(2024, 4, 29), today=today) == -2
