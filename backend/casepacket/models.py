"""
Pydantic models for API request/response schemas.
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field
from datetime import datetime


FormValue = Union[bool, str]


class RateLimitStatus(BaseModel):
    """Rate limit status response model."""
    total_calls: int
    max_calls: int
    remaining_calls: int
    calls_by_service: Dict[str, int]
    rate_limiting_enabled: bool = True


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime


class QuestionOut(BaseModel):
    """Intake question definition."""
    id: str
    label: str
    type: str = Field(..., description="text | date | select | textarea | checkbox")
    extract_key: Optional[str] = None
    options: List[str] = []
    placeholder: Optional[str] = None


class CaseTypeSummary(BaseModel):
    """Catalog entry for one case type."""
    case_type: str
    title: str
    tabs: Dict[str, str]
    default_tab: str
    required_fields: List[str]
    evidence_label: str = ""


class QuestionsResponse(BaseModel):
    case_type: str
    questions: List[QuestionOut]


class SkippedFieldOut(BaseModel):
    question_id: str
    label: str
    reason: str


class ReconcileRequest(BaseModel):
    """Reconcile an already-extracted record against a case schema."""
    case_type: str
    extracted: Any = Field(..., description="Raw extraction record (object of extract_key -> value)")
    form_data: Dict[str, FormValue] = Field(default_factory=dict, description="Current form data")


class ReconcileResponse(BaseModel):
    form_data: Dict[str, FormValue]
    populated_count: int
    skipped: List[SkippedFieldOut] = []
    message: str


class ExtractRequest(BaseModel):
    """Extract and reconcile intake data from document text."""
    case_type: str
    file_name: str = "intake"
    text: str
    form_data: Dict[str, FormValue] = Field(default_factory=dict)


class EvidenceText(BaseModel):
    """Evidence file with its text already extracted."""
    file_name: str
    text: str


class ClassifiedDocument(BaseModel):
    description: str
    tab: str = Field(..., description="Tab label, e.g. 'A'")


class GenerateRequest(BaseModel):
    """Run the document generation workflow."""
    case_type: str
    form_data: Dict[str, FormValue] = Field(default_factory=dict)
    evidence: List[EvidenceText] = []
    classified: Optional[List[ClassifiedDocument]] = Field(
        None, description="Pre-classified evidence; skips AI classification when provided"
    )


class VerdictOut(BaseModel):
    has_minimum: bool
    missing: List[str] = []


class StatusEntryOut(BaseModel):
    state: str
    message: str
    timestamp: str


class GenerateResponse(BaseModel):
    document: str
    narrative: str = ""
    verdict: VerdictOut
    buckets: Dict[str, List[str]]
    state: str
    history: List[StatusEntryOut] = []


class CompletenessRequest(BaseModel):
    case_type: str
    classified: List[ClassifiedDocument] = []
    identity: Dict[str, str] = Field(default_factory=dict)


class CompletenessResponse(BaseModel):
    verdict: VerdictOut
    buckets: Dict[str, List[str]]
