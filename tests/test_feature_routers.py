"""
Fitness, Body Metric, Lifestyle and Patient Endpoint Tests
"""

from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from app.admin.router import admin_dashboard
from app.body_metrics.router import get_body_metric_series, get_latest_body_metric
from app.fitness.models import LiftType
from app.fitness.router import get_current_prs, get_lift_history
from app.lifestyle.router import list_provider_meeting_notes
from app.patients.router import get_refill_calendar, list_patients


def lift(lift_type, weight, reps, recorded_at):
    return {
        "id": f"{lift_type}-{recorded_at}",
        "patient_id": "patient-1",
        "lift_type": lift_type,
        "weight_lbs": weight,
        "reps": reps,
        "recorded_at": recorded_at,
    }


class TestFitnessEndpoints:

    def test_current_prs(self, fake_db, patient_caller):
        fake_db([
            lift("squat", 225, 3, "2024-03-01"),
            lift("squat", 245, 1, "2024-02-01"),
            lift("bench_press", 185, 5, "2024-01-15"),
        ])
        result = get_current_prs(patient_id=None, caller=patient_caller)
        assert [(r.lift_type.value, r.weight_lbs) for r in result["data"]] == [
            ("bench_press", 185),
            ("squat", 245),
        ]

    def test_lift_history_ascending(self, fake_db, patient_caller):
        conn = fake_db([
            lift("deadlift", 405, 1, "2024-04-01"),
            lift("deadlift", 365, 3, "2024-01-01"),
        ])
        result = get_lift_history(LiftType.DEADLIFT, patient_id=None, caller=patient_caller)
        assert [p.weight_lbs for p in result["data"]] == [365, 405]
        assert "deadlift" in conn.cursor().executed[0][1]

    def test_np_without_plan_forbidden(self, fake_db, np_caller):
        fake_db(None)
        with pytest.raises(HTTPException) as exc:
            get_current_prs(patient_id="patient-1", caller=np_caller)
        assert exc.value.status_code == 403


class TestBodyMetricEndpoints:

    def test_unknown_metric(self, patient_caller):
        with pytest.raises(HTTPException) as exc:
            get_body_metric_series("neck_inches", patient_id=None, caller=patient_caller)
        assert exc.value.status_code == 400

    def test_series_oldest_first(self, fake_db, patient_caller):
        fake_db([
            {"id": "m-2", "patient_id": "patient-1", "measured_at": "2024-02-01", "weight_lbs": 188},
            {"id": "m-1", "patient_id": "patient-1", "measured_at": "2024-01-01", "weight_lbs": 192},
        ])
        result = get_body_metric_series("weight_lbs", patient_id=None, caller=patient_caller)
        assert [p.value for p in result["data"]] == [192.0, 188.0]

    def test_latest_when_empty(self, fake_db, patient_caller):
        fake_db(None)
        assert get_latest_body_metric(patient_id=None, caller=patient_caller) == {"success": True, "data": None}


class TestLifestyleEndpoints:

    def test_meeting_notes_for_assigned_provider(self, fake_db, np_caller):
        fake_db({"id": "plan-1"}, [
            {
                "datetime": datetime(2024, 5, 2, 15, 0, tzinfo=timezone.utc),
                "notes": "Discussed sleep",
                "first_name": "Jordan",
                "last_name": "Reyes",
            },
            {
                "datetime": datetime(2024, 4, 1, 15, 0, tzinfo=timezone.utc),
                "notes": "Intake",
                "first_name": None,
                "last_name": None,
            },
        ])
        result = list_provider_meeting_notes(patient_id="patient-1", caller=np_caller)
        assert [n.provider_name for n in result["data"]] == ["Jordan Reyes", "Provider"]


class TestPatientEndpoints:

    def test_patients_only_for_staff(self, patient_caller):
        with pytest.raises(HTTPException) as exc:
            list_patients(caller=patient_caller)
        assert exc.value.status_code == 403

    def test_np_list_scoped_to_own_plans(self, fake_db, np_caller):
        conn = fake_db([{"id": "patient-1", "first_name": "Ana", "plan_status": "active"}])
        result = list_patients(caller=np_caller)
        assert [p.id for p in result["data"]] == ["patient-1"]
        sql, params = conn.cursor().executed[0]
        assert "WHERE tp.provider_id = %s" in sql
        assert params == ("provider-np",)

    def test_md_list_unscoped(self, fake_db, md_caller):
        conn = fake_db([])
        list_patients(caller=md_caller)
        assert "WHERE" not in conn.cursor().executed[0][0]

    def test_refill_calendar(self, fake_db, patient_caller):
        fake_db([
            {"id": "rx-1", "product_name": "Testosterone Cypionate", "dosage": "100 mg", "quantity": 1,
             "refill_date": "2024-06-01", "status": "active"},
            {"id": "rx-2", "product_name": "Anastrozole", "dosage": "0.5 mg", "quantity": 8,
             "refill_date": None, "status": "active"},
        ])
        events = get_refill_calendar(patient_id=None, caller=patient_caller)["data"]
        assert [e.title for e in events] == ["Refill: Testosterone Cypionate"]


class TestAdminDashboard:

    def test_admin_only(self, md_caller):
        with pytest.raises(HTTPException) as exc:
            admin_dashboard(caller=md_caller)
        assert exc.value.detail == "Only admins can view the dashboard"

    def test_counts_and_lists(self, fake_db, admin_caller):
        fake_db(
            {"count": 42}, {"count": 3}, {"count": 17}, {"count": 9}, {"count": 4},
            [],
            [{"id": "patient-1", "first_name": "Ana", "last_name": "Diaz"}],
        )
        data = admin_dashboard(caller=admin_caller)["data"]
        assert data["stats"] == {
            "total_patients": 42,
            "total_providers": 3,
            "active_products": 17,
            "appointments_this_month": 9,
            "new_patients_this_week": 4,
        }
        assert data["todays_appointments"] == []
        assert data["recent_patients"][0]["first_name"] == "Ana"
