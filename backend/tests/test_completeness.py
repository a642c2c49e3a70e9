"""
Tests for evidence bucketing and the minimum-document check.
"""

import pytest
from unittest.mock import MagicMock

from casepacket.services.packet_pipeline.case_catalog import CATALOG, CaseType
from casepacket.services.packet_pipeline.completeness import (
    UNABLE_TO_VERIFY, CompletenessChecker, CompletenessVerdict, RequirementVerdictService, bucket_documents,
)


@pytest.fixture
def checker():
    return CompletenessChecker()


class TestBucketing:
    def test_documents_grouped_in_order(self):
        case = CATALOG.get(CaseType.NATURALIZATION)
        buckets = bucket_documents([
            {"description": "Birth certificate of Applicant", "tab": "A"},
            {"description": "Green card of Applicant", "tabLabel": "a"},
            {"description": "Tax returns", "tab": "B"},
        ], case)
        assert buckets == {
            "A": ["Birth certificate of Applicant", "Green card of Applicant"],
            "B": ["Tax returns"],
        }

    def test_unknown_or_missing_tab_goes_to_default(self):
        case = CATALOG.get(CaseType.I130_ADJUSTMENT)
        buckets = bucket_documents([
            {"description": "Utility bill", "tab": "Z"},
            {"description": "Lease"},
        ], case)
        assert buckets[case.default_tab] == ["Utility bill", "Lease"]

    def test_malformed_items_are_ignored(self):
        case = CATALOG.get(CaseType.NATURALIZATION)
        buckets = bucket_documents(["Passport", None, {"description": "", "tab": "A"}], case)
        assert buckets == {"A": [], "B": []}

    @pytest.mark.parametrize("payload", [42, "Passport", None])
    def test_non_list_payload_buckets_nothing(self, payload):
        case = CATALOG.get(CaseType.NATURALIZATION)
        assert bucket_documents(payload, case) == {"A": [], "B": []}

    def test_check_with_non_list_payload_still_returns_verdict(self, checker):
        verdict = checker.check(42, CATALOG.get(CaseType.I130_ADJUSTMENT))
        assert verdict.has_minimum is False
        assert len(verdict.missing) == 6


class TestRequirementRules:
    def test_i130_complete_packet(self, checker):
        case = CATALOG.get(CaseType.I130_ADJUSTMENT)
        verdict = checker.check([
            {"description": "Birth certificate of Petitioner", "tab": "A"},
            {"description": "Passport of Petitioner", "tab": "A"},
            {"description": "Birth certificate of Beneficiary", "tab": "B"},
            {"description": "Employment Authorization card of Beneficiary", "tab": "B"},
            {"description": "Driver's license of Sponsor", "tab": "E"},
            {"description": "Tax records of Sponsor (2023)", "tab": "E"},
        ], case)
        assert verdict.has_minimum
        assert verdict.missing == []

    def test_i130_empty_packet_lists_everything(self, checker):
        case = CATALOG.get(CaseType.I130_ADJUSTMENT)
        verdict = checker.check([], case)
        assert not verdict.has_minimum
        assert len(verdict.missing) == 6
        assert verdict.missing[0] == "Birth certificate of Petitioner"
        assert verdict.missing[-1] == "Tax records of Sponsor"

    def test_document_in_wrong_tab_does_not_count(self, checker):
        case = CATALOG.get(CaseType.NATURALIZATION)
        verdict = checker.check([
            {"description": "Birth certificate of Applicant", "tab": "B"},
            {"description": "Permanent resident card", "tab": "A"},
            {"description": "FBI background check", "tab": "B"},
        ], case)
        assert verdict.missing == ["Birth certificate of Applicant"]

    def test_vawa_order_and_abuser_name(self, checker):
        case = CATALOG.get(CaseType.VAWA)
        verdict = checker.check([
            {"description": "Birth certificate of Petitioner", "tab": "A"},
            {"description": "Passport of Petitioner", "tab": "A"},
            {"description": "Declaration of Petitioner", "tab": "C"},
        ], case, identity={"abuser_name": "Carlos Lopez"})

        assert verdict.missing == [
            "Birth certificate of abuser (Carlos Lopez)",
            "At least one additional document under Tab C (besides Declaration of Petitioner)",
            "FBI background check or local criminal history record of Petitioner",
        ]

    def test_vawa_complete(self, checker):
        case = CATALOG.get(CaseType.VAWA)
        verdict = checker.check([
            {"description": "Birth certificate of Petitioner", "tab": "A"},
            {"description": "Passport of Petitioner", "tab": "A"},
            {"description": "Birth certificate of Carlos", "tab": "B"},
            {"description": "Marriage certificate", "tab": "C"},
            {"description": "FBI background check of Petitioner", "tab": "D"},
        ], case, identity={"abuser_name": "Carlos Lopez"})
        assert verdict.has_minimum

    @pytest.mark.parametrize("case_type", [
        CaseType.U_VISA_CERTIFICATION, CaseType.U_VISA_APPLICATION, CaseType.T_VISA,
    ])
    def test_case_types_without_rules_pass(self, checker, case_type):
        assert checker.check([], CATALOG.get(case_type)).has_minimum


class TestDegradation:
    def test_collaborator_error_degrades(self):
        service = MagicMock(spec=RequirementVerdictService)
        service.verdict.side_effect = RuntimeError("model unavailable")
        verdict = CompletenessChecker(service).check([], CATALOG.get(CaseType.VAWA))

        assert verdict.has_minimum is False
        assert verdict.missing == [UNABLE_TO_VERIFY]

    def test_wrong_return_type_degrades(self):
        service = MagicMock(spec=RequirementVerdictService)
        service.verdict.return_value = {"has_minimum": True}
        verdict = CompletenessChecker(service).check([], CATALOG.get(CaseType.VAWA))
        assert verdict.to_dict() == CompletenessVerdict.unable_to_verify().to_dict()

    def test_non_string_identity_values_are_dropped(self):
        service = MagicMock(spec=RequirementVerdictService)
        service.verdict.return_value = CompletenessVerdict(True)
        CompletenessChecker(service).check([], CATALOG.get(CaseType.VAWA),
                                           identity={"abuser_name": "Carlos", "flag": True})
        _, _, identity = service.verdict.call_args.args
        assert identity == {"abuser_name": "Carlos"}
