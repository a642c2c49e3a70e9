"""
Tests for the generation workflow state machine.
"""

import pytest

from casepacket.errors import (
    EmptyExtractableText, GenerationInProgressError, MissingRequiredField,
    NarrativeGenerationError, UnknownCaseType, UnsupportedInputFormat,
)
from casepacket.services.evidence_reader import ExtractedEvidence, UploadedEvidence
from casepacket.services.packet_pipeline.assembler import NO_DOCUMENTS_LINE
from casepacket.services.packet_pipeline.case_catalog import CaseType
from casepacket.services.packet_pipeline.completeness import UNABLE_TO_VERIFY
from casepacket.services.packet_pipeline.workflow import GenerationWorkflow, WorkflowState


EVIDENCE = [
    ExtractedEvidence("birth_certificate.pdf", "Certificate of Birth issued to Li Wei"),
    ExtractedEvidence("green_card.pdf", "Permanent Resident Card, Li Wei"),
]


@pytest.fixture
def naturalization(classifier, narrative_service):
    workflow = GenerationWorkflow(CaseType.NATURALIZATION, classifier=classifier,
                                  narrative_service=narrative_service)
    workflow.store.set_field("applicant_name", "Li Wei")
    workflow.store.set_field("applicant_gender", "Female")
    workflow.store.set_field("applicant_dob", "1990-05-01")
    return workflow


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_phases_in_order(self, naturalization):
        result = await naturalization.generate(EVIDENCE)

        assert result.state == WorkflowState.DONE
        assert naturalization.state == WorkflowState.DONE
        assert [h.state for h in result.history] == [
            WorkflowState.READING_EVIDENCE,
            WorkflowState.CLASSIFYING,
            WorkflowState.CHECKING_COMPLETENESS,
            WorkflowState.ASSEMBLING,
            WorkflowState.DONE,
        ]

    @pytest.mark.asyncio
    async def test_document_verdict_and_buckets(self, naturalization, narrative_service):
        result = await naturalization.generate(EVIDENCE)

        assert result.verdict.has_minimum
        assert result.buckets["A"] == ["Birth certificate of Applicant", "Permanent resident card of Applicant"]
        assert "Applicant: Li Wei" in result.document
        assert "DOB: 05/01/1990" in result.document
        assert narrative_service.text in result.document
        assert "{{" not in result.document
        assert result.to_dict()["state"] == "done"

    @pytest.mark.asyncio
    async def test_collaborators_receive_case_context(self, naturalization, classifier, narrative_service):
        await naturalization.generate(EVIDENCE)

        documents, case_type, identity = classifier.calls[0]
        assert [d["fileName"] for d in documents] == ["birth_certificate.pdf", "green_card.pdf"]
        assert case_type == CaseType.NATURALIZATION
        assert identity["applicant_name"] == "Li Wei"
        assert narrative_service.calls[0][0] == CaseType.NATURALIZATION

    @pytest.mark.asyncio
    async def test_case_without_narrative_slot(self):
        workflow = GenerationWorkflow(CaseType.I130_ADJUSTMENT)
        workflow.store.publish({
            "petitioner_name": "John Smith",
            "beneficiary_name": "Ana Smith",
            "sponsor_is_petitioner": True,
        })
        result = await workflow.generate([])

        assert result.state == WorkflowState.DONE
        assert result.narrative == ""
        assert "Sponsor: John Smith" in result.document

    @pytest.mark.asyncio
    async def test_narrative_extras_reach_the_template(self):
        from_declaration = {"cohabitation_address": "12 Elm St, Austin, TX"}

        class Narrative:
            def generate(self, case_type, facts):
                return {"text": "• Physical Abuse", **from_declaration}

        workflow = GenerationWorkflow(CaseType.VAWA, narrative_service=Narrative())
        workflow.store.publish({"petitioner_name": "Maria Lopez", "pasted_narrative": "He hit me."})
        result = await workflow.generate([])

        assert "at 12 Elm St, Austin, TX." in result.document
        assert "• Physical Abuse" in result.document


class TestDegradation:
    @pytest.mark.asyncio
    async def test_classifier_failure_yields_empty_tabs(self, naturalization, failing_classifier):
        naturalization.classifier = failing_classifier
        result = await naturalization.generate(EVIDENCE)

        assert result.state == WorkflowState.DONE
        assert result.buckets == {"A": [], "B": []}
        assert NO_DOCUMENTS_LINE in result.document
        assert not result.verdict.has_minimum

    @pytest.mark.asyncio
    async def test_verdict_failure_does_not_block_assembly(self, naturalization):
        naturalization.checker.verdict_service = None
        result = await naturalization.generate(EVIDENCE)

        assert result.state == WorkflowState.DONE
        assert result.verdict.missing == [UNABLE_TO_VERIFY]


class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_required_fields(self, classifier, narrative_service):
        workflow = GenerationWorkflow(CaseType.T_VISA, classifier=classifier,
                                      narrative_service=narrative_service)
        workflow.store.set_field("client_name", "Rosa Diaz")

        with pytest.raises(MissingRequiredField) as exc_info:
            await workflow.generate(EVIDENCE)

        assert exc_info.value.missing == ["Trafficking Type", "Paste Applicant's Declaration Here"]
        assert workflow.state == WorkflowState.FAILED
        assert classifier.calls == []
        assert narrative_service.calls == []

    @pytest.mark.asyncio
    async def test_narrative_failure_is_fatal(self, naturalization, failing_narrative_service):
        naturalization.narrative_service = failing_narrative_service

        with pytest.raises(NarrativeGenerationError):
            await naturalization.generate(EVIDENCE)

        assert naturalization.state == WorkflowState.FAILED
        assert naturalization.error == "Failed to generate narrative: upstream timeout"
        assert naturalization.history[-1].state == WorkflowState.FAILED

    @pytest.mark.asyncio
    async def test_blank_evidence_text(self, naturalization):
        with pytest.raises(EmptyExtractableText):
            await naturalization.generate([ExtractedEvidence("scan.pdf", "   ")])
        assert naturalization.state == WorkflowState.FAILED

    @pytest.mark.asyncio
    async def test_unsupported_upload(self, naturalization):
        with pytest.raises(UnsupportedInputFormat):
            await naturalization.generate([UploadedEvidence("photo.png", "image/png", b"\x89PNG")])
        assert naturalization.state == WorkflowState.FAILED

    @pytest.mark.asyncio
    async def test_retrigger_after_failure(self, naturalization, failing_narrative_service, narrative_service):
        naturalization.narrative_service = failing_narrative_service
        with pytest.raises(NarrativeGenerationError):
            await naturalization.generate(EVIDENCE)

        naturalization.narrative_service = narrative_service
        result = await naturalization.generate(EVIDENCE)
        assert result.state == WorkflowState.DONE
        assert naturalization.error is None


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_no_concurrent_generation(self, naturalization):
        naturalization.state = WorkflowState.CLASSIFYING

        with pytest.raises(GenerationInProgressError):
            await naturalization.generate(EVIDENCE)
        with pytest.raises(GenerationInProgressError):
            naturalization.reset()

    def test_reset_clears_form_data(self, naturalization):
        naturalization.reset()
        assert len(naturalization.store) == 0
        assert naturalization.state == WorkflowState.IDLE

    def test_select_case_switches_schema(self, naturalization):
        naturalization.select_case("vawa")
        assert naturalization.case.case_type == CaseType.VAWA
        assert naturalization.store.snapshot() == {}

    def test_unknown_case_type(self):
        with pytest.raises(UnknownCaseType):
            GenerationWorkflow("h-1b")

    def test_apply_extraction_publishes(self):
        workflow = GenerationWorkflow(CaseType.NATURALIZATION)
        result = workflow.apply_extraction({"applicant_name": "Li Wei", "applicant_dob": "May 1990"})

        assert result.populated_count == 2
        assert workflow.store.get("applicant_dob") == "1990-05-01"
        assert workflow.missing_required_fields(workflow.store.snapshot()) == []
