"""
Tests for template assembly and per-case substitution maps.
"""

import pytest
from datetime import date

from casepacket.errors import UnresolvedPlaceholderError
from casepacket.services.packet_pipeline.assembler import (
    NO_DOCUMENTS_LINE, TemplateAssembler, assemble, canonical_token, find_tokens,
    format_doc_list, with_case_defaults,
)
from casepacket.services.packet_pipeline.case_catalog import CATALOG, CaseType
from casepacket.services.packet_pipeline.date_normalizer import DateNormalizer
from casepacket.services.packet_pipeline.templates import TEMPLATES


@pytest.fixture
def assembler():
    return TemplateAssembler(dates=DateNormalizer(today=date(2024, 3, 5)))


def _empty_buckets(case):
    return {tab: [] for tab in case.tabs}


class TestAssemble:
    def test_every_occurrence_is_replaced(self):
        text = assemble("{{NAME}} and {{NAME}} again, {{ NAME }}.", {"NAME": "Ana"})
        assert text == "Ana and Ana again, Ana."

    def test_apostrophe_glyphs_fold_to_one_token(self):
        text = assemble("{{TODAY’S DATE}} / {{TODAY'S DATE}}", {"TODAY'S DATE": "March 5, 2024"})
        assert text == "March 5, 2024 / March 5, 2024"

    def test_historical_spellings_resolve(self):
        assert canonical_token("PETITITONER'S NAME") == "PETITIONER'S NAME"
        assert canonical_token("HIM/HER DEPENDING ON PETITITIONER’S GENDER") == \
            "HIM/HER DEPENDING ON PETITIONER'S GENDER"
        assert canonical_token("client's name here") == "CLIENT'S NAME"

    def test_missing_substitution_raises(self):
        with pytest.raises(UnresolvedPlaceholderError) as exc_info:
            assemble("Dear {{NAME}}, born {{DOB}}", {"NAME": "Ana"})
        assert exc_info.value.tokens == ["DOB"]

    def test_values_cannot_reintroduce_delimiters(self):
        text = assemble("Body: {{BODY}}", {"BODY": "see {{{{NAME}}}} here"})
        assert "{{" not in text and "}}" not in text
        assert text == "Body: see {NAME} here"

    def test_adjacent_values_cannot_join_into_delimiters(self):
        with pytest.raises(UnresolvedPlaceholderError) as exc_info:
            assemble("{{A}}{{B}}", {"A": "x{", "B": "{y"})
        assert exc_info.value.tokens == ["{{"]

    def test_extra_substitutions_are_allowed(self):
        assert assemble("Hi {{NAME}}", {"NAME": "Ana", "UNUSED": "x"}) == "Hi Ana"


class TestDocLists:
    def test_empty_tab_renders_placeholder_line(self):
        assert format_doc_list([]) == NO_DOCUMENTS_LINE
        assert format_doc_list(None) == NO_DOCUMENTS_LINE
        assert format_doc_list(["  "]) == NO_DOCUMENTS_LINE

    def test_documents_are_bulleted_in_order(self):
        assert format_doc_list(["Passport of Petitioner", "Birth certificate of Petitioner"]) == \
            "- Passport of Petitioner\n- Birth certificate of Petitioner"


class TestTemplates:
    @pytest.mark.parametrize("case_type", list(CaseType))
    def test_vocabulary_matches_template_tokens(self, case_type):
        template = TEMPLATES[case_type]
        assert find_tokens(template.text) == set(template.vocabulary)
        assert set(template.tab_tokens) == set(CATALOG.get(case_type).tabs)

    @pytest.mark.parametrize("case_type", list(CaseType))
    def test_blank_form_assembles_without_residual_tokens(self, assembler, case_type):
        case = CATALOG.get(case_type)
        document = assembler.generate(case, {}, _empty_buckets(case), narrative="Narrative text.")
        assert "{{" not in document
        assert "}}" not in document
        assert NO_DOCUMENTS_LINE in document


class TestI130:
    def _form(self, **overrides):
        form = {
            "petitioner_name": "John Smith",
            "petitioner_dob": "1980-03-03",
            "petitioner_gender": "Male",
            "beneficiary_name": "Ana Smith",
            "beneficiary_dob": "1982-07-15",
            "relationship": "Spouse",
            "sponsor_name": "Pat Jones",
        }
        form.update(overrides)
        return form

    def test_gendered_relationship(self, assembler):
        case = CATALOG.get(CaseType.I130_ADJUSTMENT)
        document = assembler.generate(case, self._form(), {"A": ["Passport of Petitioner"]})

        assert document.startswith("March 5, 2024")
        assert "being petitioned by his United States citizen husband, John Smith." in document
        assert "Petitioner: John Smith DOB: 03/03/1980" in document
        assert "- Passport of Petitioner" in document

    def test_female_and_neutral_forms(self, assembler):
        case = CATALOG.get(CaseType.I130_ADJUSTMENT)
        female = assembler.generate(case, self._form(petitioner_gender="Female"), {})
        neutral = assembler.generate(case, self._form(petitioner_gender="-- Select --"), {})

        assert "her United States citizen wife" in female
        assert "their United States citizen spouse" in neutral

    def test_sponsor_defaults_to_petitioner(self, assembler):
        case = CATALOG.get(CaseType.I130_ADJUSTMENT)
        form = self._form(sponsor_name="", sponsor_is_petitioner=True)
        document = assembler.generate(case, form, {})
        assert "Sponsor: John Smith" in document

    def test_with_case_defaults_copies_petitioner(self):
        data = with_case_defaults({"petitioner_name": "John", "petitioner_dob": "1980-03-03",
                                   "sponsor_is_petitioner": True})
        assert data["sponsor_name"] == "John"
        assert data["sponsor_dob"] == "1980-03-03"


class TestNarrativeCases:
    def test_vawa_substitutions(self, assembler):
        case = CATALOG.get(CaseType.VAWA)
        form = {
            "petitioner_name": "Maria Lopez",
            "petitioner_gender": "Female",
            "abuser_name": "Carlos Lopez",
            "abuser_dob": "1975-11-02",
            "abuser_status": "U.S. Citizen",
            "abuser_gender": "Male",
            "relationship": "Spouse",
        }
        subs = assembler.build_substitutions(case, form, {}, narrative="• Physical Abuse",
                                             extras={"cohabitation_address": "12 Elm St, Austin, TX"})

        assert subs["ABUSER_STATUS"] == "United States citizen"
        assert subs["ABUSER_RELATIONSHIP"] == "husband"
        assert subs["ABUSER_RELATIONSHIP_UPPER"] == "HUSBAND"
        assert subs["ABUSER_FIRST_NAME"] == "Carlos"
        assert subs["ABUSER_DOB_PLACEHOLDER"] == "November 2, 1975"
        assert subs["COHABITATION_ADDRESS"] == "12 Elm St, Austin, TX"
        assert subs["ABUSE_SUMMARY"] == "• Physical Abuse"

        document = assembler.generate(case, form, {}, "• Physical Abuse")
        assert "because her United States citizen husband, Carlos Lopez" in document
        assert "[Address not found in declaration]" in document

    def test_vawa_neutral_pronouns(self, assembler):
        case = CATALOG.get(CaseType.VAWA)
        subs = assembler.build_substitutions(case, {"petitioner_name": "Sam"}, {})
        assert subs["PETITIONER_PERSONAL_PRONOUN"] == "they"
        assert subs["HIM/HER DEPENDING ON PETITIONER'S GENDER"] == "them"
        assert subs["ABUSER_STATUS"] == "abusive"

    def test_u_visa_application_jurisdiction_line(self, assembler):
        case = CATALOG.get(CaseType.U_VISA_APPLICATION)
        with_agency = assembler.build_substitutions(case, {"certifying_agency": "Austin Police Department"}, {})
        without = assembler.build_substitutions(case, {}, {})

        assert with_agency["JURISDICTION_REPORT"] == "- Austin Police Department report of Petitioner's victimization"
        assert without["JURISDICTION_REPORT"] == ""
        assert without["CRIME_TYPE"] == "a qualifying criminal activity"

    def test_narrative_fills_its_slot(self, assembler):
        case = CATALOG.get(CaseType.NATURALIZATION)
        document = assembler.generate(case, {"applicant_name": "Li Wei", "applicant_gender": "F"},
                                      {"B": ["Tax returns 2020-2023"]}, narrative="LEGAL TEXT")
        assert "LEGAL ARGUMENT\n\nLEGAL TEXT" in document
        assert "Law Firm Name represents Li Wei, in her application" in document
        assert "- Tax returns 2020-2023" in document
