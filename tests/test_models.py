"""
Request Model Validation Tests
==============================
Input rules enforced at the API boundary and section validation on read.
"""

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from app.bloodwork.models import BiomarkerInput, ManualEntryRequest
from app.body_metrics.models import BodyMetricCreate
from app.fitness.models import FitnessNoteCreate, PersonalRecordCreate
from app.lifestyle.models import LifestyleNoteCreate, provider_display_name
from app.patients.models import Address, PatientUpdate
from app.treatment_plans.models import MedicationTiming, TreatmentPlan


def error_text(exc_info) -> str:
    return str(exc_info.value)


class TestBloodWorkInput:

    def test_value_must_be_positive(self):
        with pytest.raises(ValidationError):
            BiomarkerInput(name="Ferritin", value=0, unit="ng/mL")

    def test_name_and_unit_trimmed(self):
        entry = BiomarkerInput(name="  Ferritin ", value=50, unit=" ng/mL ")
        assert (entry.name, entry.unit) == ("Ferritin", "ng/mL")

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError) as exc:
            BiomarkerInput(name="   ", value=50, unit="ng/mL")
        assert "Biomarker name is required" in error_text(exc)

    def test_manual_entry_needs_a_biomarker(self):
        with pytest.raises(ValidationError):
            ManualEntryRequest(date="2024-01-01", lab_source="quest", biomarkers=[])

    def test_unknown_lab_rejected(self):
        with pytest.raises(ValidationError):
            ManualEntryRequest(
                date="2024-01-01",
                lab_source="mayo",
                biomarkers=[{"name": "A1C", "value": 5.4, "unit": "%"}],
            )


class TestFitnessInput:

    def test_weight_and_reps_positive(self):
        with pytest.raises(ValidationError):
            PersonalRecordCreate(lift_type="squat", weight_lbs=0, reps=5, recorded_at="2024-01-01")
        with pytest.raises(ValidationError):
            PersonalRecordCreate(lift_type="squat", weight_lbs=100, reps=0, recorded_at="2024-01-01")

    def test_unknown_lift_rejected(self):
        with pytest.raises(ValidationError):
            PersonalRecordCreate(lift_type="curl", weight_lbs=50, reps=10, recorded_at="2024-01-01")

    def test_note_content_required(self):
        with pytest.raises(ValidationError) as exc:
            FitnessNoteCreate(content="  ", note_date="2024-01-01")
        assert "Note content is required" in error_text(exc)

    def test_lifestyle_note_trimmed(self):
        assert LifestyleNoteCreate(content=" slept 8h ", note_date="2024-01-01").content == "slept 8h"


class TestBodyMetricInput:

    def test_requires_one_measurement(self):
        with pytest.raises(ValidationError) as exc:
            BodyMetricCreate(measured_at="2024-01-01", notes="forgot the tape")
        assert "At least one measurement is required" in error_text(exc)

    def test_single_measurement_is_enough(self):
        assert BodyMetricCreate(measured_at="2024-01-01", waist_inches=34).waist_inches == 34


class TestPatientUpdate:

    @pytest.fixture
    def address(self):
        return {"street": "1 Main St", "city": "Austin", "state": "TX", "zip": "78701"}

    def test_state_must_be_uppercase(self, address):
        with pytest.raises(ValidationError) as exc:
            Address(**{**address, "state": "tx"})
        assert "State must be 2 uppercase letters" in error_text(exc)

    def test_zip_five_digits(self, address):
        with pytest.raises(ValidationError):
            Address(**{**address, "zip": "7870"})

    def test_phone_needs_ten_digits(self):
        with pytest.raises(ValidationError):
            PatientUpdate(first_name="Ana", last_name="Diaz", phone="555-1234")
        assert PatientUpdate(first_name="Ana", last_name="Diaz", phone="(512) 555-1234").phone

    def test_dob_in_past(self):
        with pytest.raises(ValidationError):
            PatientUpdate(first_name="Ana", last_name="Diaz", date_of_birth=date.today() + timedelta(days=1))

    def test_names_required(self):
        with pytest.raises(ValidationError) as exc:
            PatientUpdate(first_name=" ", last_name="Diaz")
        assert "First name is required" in error_text(exc)

    def test_billing_copies_shipping(self, address):
        update = PatientUpdate(
            first_name="Ana",
            last_name="Diaz",
            shipping_address=address,
            billing_address={**address, "street": "PO Box 9"},
            same_billing_as_shipping=True,
        )
        assert update.resolved_billing_address() == update.shipping_address

    def test_billing_kept_when_not_same(self, address):
        update = PatientUpdate(
            first_name="Ana",
            last_name="Diaz",
            shipping_address=address,
            billing_address={**address, "street": "PO Box 9"},
        )
        assert update.resolved_billing_address().street == "PO Box 9"


class TestTreatmentPlanSections:

    def test_sections_parsed_from_stored_json(self):
        plan = TreatmentPlan.model_validate({
            "id": "plan-1",
            "patient_id": "patient-1",
            "status": "active",
            "training": {"frequency": "4x/week", "exercises": [{"name": "Squat", "sets": 5, "reps": "5"}]},
            "peptides_data": [{"name": "BPC-157", "dosage": "250 mcg", "frequency": "daily",
                               "timing": "morning", "injection_site": "abdomen"}],
        })
        assert plan.training.exercises[0].sets == 5
        assert plan.peptides_data[0].timing == MedicationTiming.MORNING

    def test_unknown_timing_rejected(self):
        with pytest.raises(ValidationError):
            TreatmentPlan.model_validate({
                "patient_id": "patient-1",
                "supplements_data": [{"name": "Zinc", "dosage": "30 mg", "frequency": "daily", "timing": "noon"}],
            })

    def test_negative_macros_rejected(self):
        with pytest.raises(ValidationError):
            TreatmentPlan.model_validate({"patient_id": "patient-1", "nutrition": {"protein": -10}})


class TestProviderDisplayName:

    def test_full_name(self):
        assert provider_display_name("Sam", "Lee") == "Sam Lee"

    def test_fallback(self):
        assert provider_display_name(None, "") == "Provider"


class TestStoredSectionKeys:

    def test_camel_case_row(self):
        plan = TreatmentPlan.model_validate({
            "patient_id": "patient-1",
            "nutrition": {"calories": 2400, "generalNotes": "Starting targets."},
            "lifestyle_behaviors": {"generalNotes": "Walk daily"},
            "prescriptions_data": [{"name": "Testosterone Cypionate", "dosage": "100 mg",
                                    "frequency": "weekly", "timing": "morning", "startDate": "2024-02-01"}],
            "peptides_data": [{"name": "BPC-157", "dosage": "250 mcg", "frequency": "daily",
                               "timing": "evening", "injectionSite": "Subcutaneous"}],
        })
        assert plan.nutrition.general_notes == "Starting targets."
        assert plan.lifestyle_behaviors.general_notes == "Walk daily"
        assert plan.prescriptions_data[0].start_date == date(2024, 2, 1)
        assert plan.peptides_data[0].injection_site == "Subcutaneous"

    def test_stored_form_is_camel_case(self):
        plan = TreatmentPlan.model_validate({
            "patient_id": "patient-1",
            "training": {"frequency": "3x/week", "general_notes": "Deload every 4th week"},
        })
        assert plan.training.model_dump(by_alias=True)["generalNotes"] == "Deload every 4th week"
