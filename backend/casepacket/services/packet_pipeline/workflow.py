"""
Generation Workflow
===================

One workflow instance per selected case. A generation passes through a
strict phase order:

    IDLE -> READING_EVIDENCE -> CLASSIFYING -> CHECKING_COMPLETENESS -> ASSEMBLING -> DONE

FAILED is reachable from any phase on an unrecoverable error and is
terminal until the next trigger. Classification and completeness failures
degrade instead of failing. Nothing is retried automatically and there is
no cancellation; switching case type resets the workflow.
"""

import asyncio
import logging
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from casepacket.errors import (
    GenerationInProgressError, MissingRequiredField, NarrativeGenerationError, PacketError,
)
from casepacket.services.evidence_reader import Evidence, EvidenceReader
from casepacket.services.packet_pipeline.assembler import TemplateAssembler, with_case_defaults
from casepacket.services.packet_pipeline.case_catalog import CATALOG, SELECT_SENTINEL, CaseDefinition
from casepacket.services.packet_pipeline.completeness import (
    CompletenessChecker, CompletenessVerdict, bucket_documents,
)
from casepacket.services.packet_pipeline.form_store import FormDataStore
from casepacket.services.packet_pipeline.reconciler import IntakeReconciler, ReconciliationResult

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    IDLE = "idle"
    READING_EVIDENCE = "reading_evidence"
    CLASSIFYING = "classifying"
    CHECKING_COMPLETENESS = "checking_completeness"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


ACTIVE_STATES = {
    WorkflowState.READING_EVIDENCE,
    WorkflowState.CLASSIFYING,
    WorkflowState.CHECKING_COMPLETENESS,
    WorkflowState.ASSEMBLING,
}


@dataclass
class StatusEntry:
    state: WorkflowState
    message: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, str]:
        return {'state': self.state.value, 'message': self.message, 'timestamp': self.timestamp}


@dataclass
class GenerationResult:
    document: str
    narrative: str
    verdict: CompletenessVerdict
    buckets: Dict[str, List[str]]
    state: WorkflowState
    history: List[StatusEntry]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'document': self.document,
            'narrative': self.narrative,
            'verdict': self.verdict.to_dict(),
            'buckets': self.buckets,
            'state': self.state.value,
            'history': [h.to_dict() for h in self.history],
        }


class GenerationWorkflow:
    """Drives one user-triggered document generation for a case."""

    def __init__(
        self,
        case_type,
        reader: Optional[EvidenceReader] = None,
        classifier=None,
        narrative_service=None,
        checker: Optional[CompletenessChecker] = None,
        assembler: Optional[TemplateAssembler] = None,
        reconciler: Optional[IntakeReconciler] = None,
    ):
        self.case: CaseDefinition = CATALOG.get(case_type)
        self.reader = reader or EvidenceReader()
        self.classifier = classifier
        self.narrative_service = narrative_service
        self.checker = checker or CompletenessChecker()
        self.assembler = assembler or TemplateAssembler()
        self.reconciler = reconciler or IntakeReconciler()
        self.store = FormDataStore(self.case)
        self.state = WorkflowState.IDLE
        self.status = "Ready"
        self.history: List[StatusEntry] = []
        self.error: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES

    def _transition(self, state: WorkflowState, message: str):
        self.state = state
        self.status = message
        self.history.append(StatusEntry(state, message))
        logger.info(f"[{self.case.case_type.value}] {state.value}: {message}")

    def _fail(self, error: Exception):
        self.error = getattr(error, 'message', None) or str(error)
        self._transition(WorkflowState.FAILED, self.error)

    def reset(self):
        """Clear form data and return to IDLE. Not allowed mid-generation."""
        if self.is_active:
            raise GenerationInProgressError("Cannot reset while a generation is running.")
        self.store.clear()
        self.state = WorkflowState.IDLE
        self.status = "Ready"
        self.history = []
        self.error = None

    def select_case(self, case_type):
        """Switch case type, abandoning any previous form data."""
        self.reset()
        self.case = CATALOG.get(case_type)
        self.store = FormDataStore(self.case)

    def apply_extraction(self, extracted: Any) -> ReconciliationResult:
        """Reconcile an extraction record against a snapshot and publish it."""
        result = self.reconciler.reconcile(self.store.snapshot(), extracted, self.case.questions)
        self.store.publish(result.form_data)
        logger.info(result.summary())
        return result

    def missing_required_fields(self, form_data: Dict[str, Any]) -> List[str]:
        data = with_case_defaults(form_data)
        missing = []
        for question_id in self.case.required_fields:
            value = data.get(question_id)
            if isinstance(value, str):
                value = value.strip()
            if not value or value == SELECT_SENTINEL:
                question = self.case.question(question_id)
                missing.append(question.label if question else question_id)
        return missing

    def _identity(self, form_data: Dict[str, Any]) -> Dict[str, str]:
        return {
            q.id: form_data[q.id] for q in self.case.questions
            if q.id != 'pasted_narrative' and isinstance(form_data.get(q.id), str) and form_data[q.id]
        }

    async def generate(self, evidence: Sequence[Evidence]) -> GenerationResult:
        """
        Run one generation from the current form data and evidence.

        Raises:
            GenerationInProgressError: a generation is already running.
            PacketError: any fatal error; the workflow is left FAILED.
        """
        if self.is_active:
            raise GenerationInProgressError("A generation is already in progress.")
        self.history = []
        self.error = None

        form_data = with_case_defaults(self.store.snapshot())
        try:
            missing = self.missing_required_fields(form_data)
            if missing:
                raise MissingRequiredField(missing)

            self._transition(WorkflowState.READING_EVIDENCE, f"Reading {len(evidence)} evidence file(s)...")
            documents = await self.reader.read_all(evidence)

            self._transition(WorkflowState.CLASSIFYING, "AI is analyzing all evidence...")
            identity = self._identity(form_data)
            classified = await self._classify(documents, identity)
            buckets = bucket_documents(classified, self.case)

            self._transition(WorkflowState.CHECKING_COMPLETENESS, "Checking minimum required documents...")
            verdict = self.checker.check_buckets(buckets, self.case, identity)

            self._transition(WorkflowState.ASSEMBLING, "Assembling final document...")
            narrative, extras = await self._narrative(form_data)
            document = self.assembler.generate(self.case, form_data, buckets, narrative, extras)

        except PacketError as e:
            self._fail(e)
            raise
        except Exception as e:
            logger.error(f"Generation failed unexpectedly: {e}", exc_info=True)
            self._fail(e)
            raise

        self._transition(WorkflowState.DONE, "Documents generated successfully.")
        return GenerationResult(
            document=document,
            narrative=narrative,
            verdict=verdict,
            buckets=buckets,
            state=self.state,
            history=list(self.history),
        )

    async def _classify(self, documents, identity: Dict[str, str]) -> List[Dict[str, str]]:
        if self.classifier is None or not documents:
            return []
        payload = [d.to_dict() for d in documents]
        try:
            return await asyncio.to_thread(self.classifier.classify, payload, self.case, identity)
        except Exception as e:
            logger.warning(f"Classification degraded to an empty document list: {e}")
            return []

    async def _narrative(self, form_data: Dict[str, Any]):
        if not self.case.narrative_slot:
            return "", {}
        if self.narrative_service is None:
            raise NarrativeGenerationError("No narrative service is configured for this case type.")
        result = await asyncio.to_thread(self.narrative_service.generate, self.case.case_type, form_data)
        extras = {k: v for k, v in result.items() if k != 'text'}
        return result.get('text', ''), extras
