"""
Packet Pipeline API Routes
==========================

REST API endpoints for intake reconciliation and packet generation.

Endpoints:
- GET  /api/v1/packets/case-types - List supported case types
- GET  /api/v1/packets/case-types/{case_type}/questions - Intake questions for a case type
- POST /api/v1/packets/intake/reconcile - Reconcile an extraction record into form data
- POST /api/v1/packets/intake/extract - Extract intake data from document text and reconcile it
- POST /api/v1/packets/generate - Run the generation workflow
- POST /api/v1/packets/completeness - Check classified evidence against minimum documents
- GET  /api/v1/packets/health - Collaborator availability
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from fastapi import APIRouter, Depends, HTTPException

from casepacket.errors import MalformedExtractionResult
from casepacket.models import (
    CaseTypeSummary, CompletenessRequest, CompletenessResponse, ExtractRequest,
    GenerateRequest, GenerateResponse, QuestionOut, QuestionsResponse,
    ReconcileRequest, ReconcileResponse,
)
from casepacket.services.ai_service import AIClient, DocumentClassifier, ExtractionService, NarrativeService
from casepacket.services.evidence_reader import EvidenceReader, ExtractedEvidence
from casepacket.services.packet_pipeline import (
    CATALOG, CaseDefinition, CompletenessChecker, GenerationWorkflow, IntakeReconciler, bucket_documents,
)
from casepacket.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/packets", tags=["Packet Pipeline"])


# ============================================================================
# Service Instances (Singletons)
# ============================================================================

_rate_limiter_instance: Optional[RateLimiter] = None
_ai_client_instance: Optional[AIClient] = None


def get_rate_limiter() -> RateLimiter:
    """Get or create the shared AI call budget."""
    global _rate_limiter_instance

    if _rate_limiter_instance is None:
        _rate_limiter_instance = RateLimiter()
        logger.info("Initialized RateLimiter singleton")

    return _rate_limiter_instance


def get_ai_client() -> AIClient:
    """Get or create the AI client."""
    global _ai_client_instance

    if _ai_client_instance is None:
        _ai_client_instance = AIClient(rate_limiter=get_rate_limiter())
        logger.info(f"Initialized AIClient singleton (available={_ai_client_instance.is_available})")

    return _ai_client_instance


def get_extraction_service() -> ExtractionService:
    return ExtractionService(get_ai_client())


def get_classifier() -> DocumentClassifier:
    return DocumentClassifier(get_ai_client())


def get_narrative_service() -> NarrativeService:
    return NarrativeService(get_ai_client())


class PrecomputedClassifier:
    """Classifier stand-in that returns documents the caller already classified."""

    def __init__(self, items: List[Dict[str, str]]):
        self.items = items

    def classify(self, documents, case: CaseDefinition, case_context=None) -> List[Dict[str, str]]:
        return list(self.items)


def _case_summary(case: CaseDefinition) -> CaseTypeSummary:
    return CaseTypeSummary(
        case_type=case.case_type.value,
        title=case.title,
        tabs=dict(case.tabs),
        default_tab=case.default_tab,
        required_fields=list(case.required_fields),
        evidence_label=case.evidence_label,
    )


def _reconcile(case_type: str, form_data: Mapping[str, Any], extracted: Any) -> ReconcileResponse:
    case = CATALOG.get(case_type)
    result = IntakeReconciler().reconcile(form_data, extracted, case.questions)
    return ReconcileResponse(**result.to_dict())


# ============================================================================
# API Endpoints
# ============================================================================

@router.get("/case-types", response_model=List[CaseTypeSummary])
async def list_case_types() -> List[CaseTypeSummary]:
    """List the supported case types with their evidence tabs."""
    return [_case_summary(CATALOG.get(ct)) for ct in CATALOG.case_types]


@router.get("/case-types/{case_type}/questions", response_model=QuestionsResponse)
async def get_questions(case_type: str) -> QuestionsResponse:
    """Intake questions for one case type."""
    case = CATALOG.get(case_type)
    return QuestionsResponse(
        case_type=case.case_type.value,
        questions=[QuestionOut(**q.to_dict()) for q in case.questions],
    )


@router.post("/intake/reconcile", response_model=ReconcileResponse)
async def reconcile_intake(request: ReconcileRequest) -> ReconcileResponse:
    """
    Reconcile an extraction record against the case schema.

    Dates are normalized to YYYY-MM-DD, select values are matched onto
    declared options, and anything that cannot be reconciled is reported
    as skipped.
    """
    return _reconcile(request.case_type, request.form_data, request.extracted)


@router.post("/intake/extract", response_model=ReconcileResponse)
async def extract_intake(
    request: ExtractRequest,
    extraction_service: ExtractionService = Depends(get_extraction_service),
) -> ReconcileResponse:
    """
    Extract intake data from document text, then reconcile it.

    The text must be readable (not a scanned image). The extraction
    collaborator's response is never trusted and goes through reconciliation.
    """
    case = CATALOG.get(request.case_type)
    document = EvidenceReader().read_intake(ExtractedEvidence(request.file_name, request.text))

    try:
        extracted = extraction_service.extract(document.text, case.case_type)
    except ValueError as e:
        raise MalformedExtractionResult(f"Extraction response was not valid JSON: {e}")

    logger.info(f"Extracted intake data from {request.file_name} for {case.case_type.value}")
    return _reconcile(case.case_type.value, request.form_data, extracted)


@router.post("/generate", response_model=GenerateResponse)
async def generate_packet(
    request: GenerateRequest,
    classifier: DocumentClassifier = Depends(get_classifier),
    narrative_service: NarrativeService = Depends(get_narrative_service),
) -> GenerateResponse:
    """
    Run the generation workflow on pre-extracted evidence text.

    Phases: reading evidence, classifying, checking completeness, assembling.
    Classification and completeness problems degrade; missing required
    fields, unreadable evidence and narrative failures abort with an error.
    """
    if request.classified is not None:
        classifier = PrecomputedClassifier([d.model_dump() for d in request.classified])

    workflow = GenerationWorkflow(
        request.case_type,
        classifier=classifier,
        narrative_service=narrative_service,
    )
    for question_id, value in request.form_data.items():
        try:
            workflow.store.set_field(question_id, value)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

    evidence = [ExtractedEvidence(e.file_name, e.text) for e in request.evidence]
    result = await workflow.generate(evidence)
    return GenerateResponse(**result.to_dict())


@router.post("/completeness", response_model=CompletenessResponse)
async def check_completeness(request: CompletenessRequest) -> CompletenessResponse:
    """Bucket classified documents by tab and run the minimum-document check."""
    case = CATALOG.get(request.case_type)
    buckets = bucket_documents([d.model_dump() for d in request.classified], case)
    verdict = CompletenessChecker().check_buckets(buckets, case, request.identity)
    return CompletenessResponse(verdict=verdict.to_dict(), buckets=buckets)


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Health check for the packet pipeline.

    Returns availability of the AI collaborators.
    """
    client = get_ai_client()
    return {
        "status": "healthy",
        "components": {
            "case_catalog": {"status": "ready", "case_types": len(CATALOG.case_types)},
            "extraction": "ready" if client.is_available else "unavailable",
            "classification": "ready" if client.is_available else "fallback",
            "narrative": "ready" if client.is_available else "unavailable",
            "completeness": "ready",
        },
        "rate_limit": get_rate_limiter().get_stats(),
    }
