"""
Tests for intake reconciliation.
"""

import pytest
from datetime import date

from casepacket.errors import MalformedExtractionResult
from casepacket.services.packet_pipeline.case_catalog import CATALOG, CaseType, Question, QuestionType
from casepacket.services.packet_pipeline.date_normalizer import DateNormalizer
from casepacket.services.packet_pipeline.reconciler import IntakeReconciler, is_absent


NAME = Question("name", "Full Name", QuestionType.TEXT, extract_key="name")
DOB = Question("dob", "Date of Birth", QuestionType.DATE, extract_key="dob")
GENDER = Question("gender", "Gender", QuestionType.SELECT, extract_key="gender",
                  options=("-- Select --", "Female", "Male"))
AGREED = Question("agreed", "Agreed", QuestionType.CHECKBOX, extract_key="agreed")
MANUAL = Question("manual", "Manual only", QuestionType.CHECKBOX)


@pytest.fixture
def reconciler():
    return IntakeReconciler(dates=DateNormalizer(today=date(2024, 3, 5)))


class TestAbsentValues:
    @pytest.mark.parametrize("value", [None, "", "   ", "null", "NULL", "Null"])
    def test_absent(self, value):
        assert is_absent(value)

    @pytest.mark.parametrize("value", ["Maria", False, 0, "nullable"])
    def test_present(self, value):
        assert not is_absent(value)


class TestReconcile:
    def test_null_literal_is_skipped_and_date_normalized(self, reconciler):
        result = reconciler.reconcile({}, {"name": "null", "dob": "1990-01-01"}, [NAME, DOB])

        assert result.form_data == {"dob": "1990-01-01"}
        assert result.populated_count == 1
        assert [s.question_id for s in result.skipped] == ["name"]
        assert result.skipped[0].reason == "no value"

    def test_unmatched_select_is_skipped_others_populated(self, reconciler):
        result = reconciler.reconcile({}, {"name": " Ana Ruiz ", "gender": "unknown"}, [NAME, GENDER])

        assert result.form_data == {"name": "Ana Ruiz"}
        assert "gender" not in result.form_data
        assert "doesn't match options" in result.skipped[0].reason

    def test_invalid_date_is_reported(self, reconciler):
        result = reconciler.reconcile({}, {"dob": "sometime"}, [DOB])
        assert result.populated_count == 0
        assert result.skipped[0].reason == 'invalid date format: "sometime"'

    @pytest.mark.parametrize("raw,expected", [
        (True, True), ("yes", True), ("X", True), (False, False), ("no", False), ("0", False),
    ])
    def test_checkbox_values(self, reconciler, raw, expected):
        result = reconciler.reconcile({}, {"agreed": raw}, [AGREED])
        assert result.form_data["agreed"] is expected

    def test_unrecognized_checkbox_is_skipped(self, reconciler):
        result = reconciler.reconcile({}, {"agreed": "maybe"}, [AGREED])
        assert "agreed" not in result.form_data
        assert "unrecognized checkbox value" in result.skipped[0].reason

    def test_questions_without_extract_key_are_ignored(self, reconciler):
        result = reconciler.reconcile({"manual": True}, {"manual": False}, [MANUAL])
        assert result.form_data == {"manual": True}
        assert result.skipped == []

    def test_existing_values_survive_and_input_is_not_mutated(self, reconciler):
        current = {"name": "Old Name", "gender": "Male"}
        result = reconciler.reconcile(current, {"name": "New Name"}, [NAME, GENDER])

        assert current == {"name": "Old Name", "gender": "Male"}
        assert result.form_data == {"name": "New Name", "gender": "Male"}

    @pytest.mark.parametrize("record", [["name", "Ana"], "name: Ana", None, 42])
    def test_non_mapping_record_fails(self, reconciler, record):
        with pytest.raises(MalformedExtractionResult):
            reconciler.reconcile({}, record, [NAME])

    def test_i130_intake_record(self, reconciler):
        case = CATALOG.get(CaseType.I130_ADJUSTMENT)
        extracted = {
            "petitioner_name": " Maria Lopez ",
            "petitioner_dob": "March 3, 1980",
            "petitioner_gender": "F",
            "beneficiary_name": "Jose Lopez",
            "beneficiary_dob": "07/15/1982",
            "relationship_pet_ben": "wife",
            "sponsor_name": "null",
            "sponsor_dob": None,
        }
        result = reconciler.reconcile({}, extracted, case.questions)

        assert result.form_data == {
            "petitioner_name": "Maria Lopez",
            "petitioner_dob": "1980-03-03",
            "petitioner_gender": "Female",
            "beneficiary_name": "Jose Lopez",
            "beneficiary_dob": "1982-07-15",
            "relationship": "Spouse",
        }
        assert result.populated_count == 6
        assert {s.question_id for s in result.skipped} == {"sponsor_name", "sponsor_dob"}


class TestSummary:
    def test_partial(self, reconciler):
        result = reconciler.reconcile({}, {"name": "Ana", "dob": "null"}, [NAME, DOB])
        assert result.summary() == (
            "Successfully populated 1 field(s) from the intake document. "
            "Skipped: Date of Birth (no value)."
        )

    def test_nothing_populated(self, reconciler):
        result = reconciler.reconcile({}, {"dob": "null"}, [DOB])
        assert result.summary().startswith("No fields could be populated.")

    def test_no_questions(self, reconciler):
        result = reconciler.reconcile({}, {}, [])
        assert result.summary() == "No matching data was found in the intake document."
        assert result.to_dict()["message"] == result.summary()
