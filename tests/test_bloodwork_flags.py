"""
Blood Work Flag Rule - Regression Tests
=======================================
1. Classification against two-sided, one-sided and missing ranges
2. Stored BiomarkerValue construction
3. Record-level helpers (summary, names, trend change)
4. Determinism
"""

import pytest
from pydantic import ValidationError

from app.bloodwork.flags import (
    build_biomarker_map,
    build_biomarker_value,
    flag_biomarker,
    flag_summary,
    trend_change,
    unique_biomarkers,
)
from app.bloodwork.models import BiomarkerFlag, BiomarkerInput, BloodWorkRecord


# ============================================================
# TEST: CLASSIFICATION
# ============================================================

class TestFlagBiomarker:

    @pytest.mark.parametrize("value,expected", [
        (90, BiomarkerFlag.LOW),
        (150, BiomarkerFlag.NORMAL),
        (250, BiomarkerFlag.HIGH),
    ])
    def test_two_sided_range(self, value, expected):
        assert flag_biomarker(value, 100, 200) == expected

    def test_no_range_is_unflagged(self):
        assert flag_biomarker(150, None, None) is None

    def test_bounds_are_normal(self):
        assert flag_biomarker(100, 100, 200) == BiomarkerFlag.NORMAL
        assert flag_biomarker(200, 100, 200) == BiomarkerFlag.NORMAL

    def test_low_bound_only(self):
        assert flag_biomarker(20, 30, None) == BiomarkerFlag.LOW
        assert flag_biomarker(5000, 30, None) == BiomarkerFlag.NORMAL

    def test_high_bound_only(self):
        assert flag_biomarker(6.1, None, 5.6) == BiomarkerFlag.HIGH
        assert flag_biomarker(0.1, None, 5.6) == BiomarkerFlag.NORMAL

    def test_zero_bound_counts_as_present(self):
        assert flag_biomarker(-1, 0, None) == BiomarkerFlag.LOW

    def test_flag_values_serialize_as_strings(self):
        assert flag_biomarker(90, 100, 200).value == "low"

    def test_repeated_calls_match(self):
        results = {flag_biomarker(175.5, 100, 200) for _ in range(10)}
        assert results == {BiomarkerFlag.NORMAL}


# ============================================================
# TEST: STORED VALUES
# ============================================================

class TestBuildBiomarkerValue:

    def test_flag_derived_from_range(self):
        value = build_biomarker_value(850, "ng/dL", 264, 916)
        assert value.flag == BiomarkerFlag.NORMAL
        assert value.unit == "ng/dL"

    def test_flag_none_iff_no_bounds(self):
        assert build_biomarker_value(42, "ng/mL").flag is None
        assert build_biomarker_value(42, "ng/mL", ref_low=30).flag is not None

    def test_value_is_immutable(self):
        value = build_biomarker_value(42, "ng/mL", 30, 100)
        with pytest.raises(ValidationError):
            value.value = 10

    def test_map_keeps_last_duplicate(self):
        entries = [
            BiomarkerInput(name="Ferritin", value=20, unit="ng/mL", reference_low=30, reference_high=400),
            BiomarkerInput(name="Ferritin", value=120, unit="ng/mL", reference_low=30, reference_high=400),
        ]
        result = build_biomarker_map(entries)
        assert list(result) == ["Ferritin"]
        assert result["Ferritin"].value == 120
        assert result["Ferritin"].flag == BiomarkerFlag.NORMAL


# ============================================================
# TEST: RECORD HELPERS
# ============================================================

@pytest.fixture
def records():
    return [
        BloodWorkRecord(
            id="bw-2", patient_id="patient-1", date="2024-06-01", lab_source="quest",
            biomarkers={
                "Testosterone": {"value": 250, "unit": "ng/dL", "reference_low": 264,
                                 "reference_high": 916, "flag": "low"},
                "Vitamin D": {"value": 45, "unit": "ng/mL", "reference_low": None,
                              "reference_high": None, "flag": None},
            },
        ),
        BloodWorkRecord(
            id="bw-1", patient_id="patient-1", date="2024-01-15", lab_source="labcorp",
            biomarkers={
                "Testosterone": {"value": 300, "unit": "ng/dL", "reference_low": 264,
                                 "reference_high": 916, "flag": "normal"},
                "Estradiol": {"value": 60, "unit": "pg/mL", "reference_low": 10,
                              "reference_high": 40, "flag": "high"},
            },
        ),
        BloodWorkRecord(id="bw-0", patient_id="patient-1", date="2023-12-01", lab_source="other"),
    ]


class TestRecordHelpers:

    def test_flag_summary_counts(self, records):
        summary = flag_summary(records[0].biomarkers)
        assert (summary.low, summary.normal, summary.high, summary.unflagged) == (1, 0, 0, 1)

    def test_flag_summary_accepts_raw_json(self):
        summary = flag_summary({"A": {"flag": "high"}, "B": {"flag": "normal"}})
        assert summary.high == 1
        assert summary.normal == 1

    def test_flag_summary_empty(self):
        assert flag_summary(None).model_dump() == {"low": 0, "normal": 0, "high": 0, "unflagged": 0}

    def test_unique_biomarkers_sorted(self, records):
        assert unique_biomarkers(records) == ["Estradiol", "Testosterone", "Vitamin D"]

    def test_trend_change_up(self):
        change = trend_change(110, 100)
        assert change.direction == "up"
        assert change.percent == pytest.approx(10.0)

    def test_trend_change_down(self):
        change = trend_change(250, 300)
        assert change.direction == "down"
        assert change.percent == pytest.approx(16.6667, rel=1e-3)

    def test_trend_change_small_is_stable(self):
        assert trend_change(101, 100).direction == "stable"

    def test_trend_change_from_zero(self):
        change = trend_change(5, 0)
        assert change.direction == "stable"
        assert change.percent == 0.0
