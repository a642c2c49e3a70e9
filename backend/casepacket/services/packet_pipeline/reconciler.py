"""
Intake reconciliation: folds an untyped extraction record into form data.

Each question is reconciled independently. Per-field failures degrade to a
skipped-field report; only a record that is not a mapping at all fails the
whole operation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from casepacket.errors import MalformedExtractionResult
from casepacket.services.packet_pipeline.case_catalog import Question, QuestionType
from casepacket.services.packet_pipeline.date_normalizer import DateNormalizer, DATES
from casepacket.services.packet_pipeline.option_matcher import OptionMatcher, MATCHER

logger = logging.getLogger(__name__)

FormValue = Union[str, bool]
FormData = Dict[str, FormValue]

_TRUE_STRINGS = {'true', 'yes', 'y', '1', 'x', 'checked'}
_FALSE_STRINGS = {'false', 'no', 'n', '0'}


@dataclass
class SkippedField:
    question_id: str
    label: str
    reason: str

    def __str__(self) -> str:
        return f"{self.label} ({self.reason})"

    def to_dict(self) -> Dict[str, str]:
        return {'question_id': self.question_id, 'label': self.label, 'reason': self.reason}


@dataclass
class ReconciliationResult:
    form_data: FormData
    populated_count: int
    skipped: List[SkippedField] = field(default_factory=list)

    def summary(self) -> str:
        """User-facing message describing what the extraction populated."""
        if self.populated_count > 0:
            message = f"Successfully populated {self.populated_count} field(s) from the intake document."
            if self.skipped:
                message += " Skipped: " + ", ".join(str(s) for s in self.skipped) + "."
            return message
        if self.skipped:
            return (
                "No fields could be populated. The document may not contain the expected information. "
                "Skipped: " + ", ".join(str(s) for s in self.skipped) + "."
            )
        return "No matching data was found in the intake document."

    def to_dict(self) -> Dict[str, Any]:
        return {
            'form_data': dict(self.form_data),
            'populated_count': self.populated_count,
            'skipped': [s.to_dict() for s in self.skipped],
            'message': self.summary(),
        }


def is_absent(value: Any) -> bool:
    """None, blank strings and the literal string "null" in any case count as absent."""
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return not stripped or stripped.lower() == 'null'
    return False


class IntakeReconciler:
    """Dispatches each extracted value by question type onto the form schema."""

    def __init__(self, matcher: Optional[OptionMatcher] = None,
                 dates: Optional[DateNormalizer] = None):
        self.matcher = matcher or MATCHER
        self.dates = dates or DATES

    def reconcile(self, form_data: Mapping[str, FormValue], extracted: Any,
                  questions: Sequence[Question]) -> ReconciliationResult:
        if not isinstance(extracted, Mapping):
            raise MalformedExtractionResult(
                f"Extraction result must be an object, got {type(extracted).__name__}."
            )

        updated: FormData = dict(form_data)
        populated = 0
        skipped: List[SkippedField] = []

        for question in questions:
            if not question.extract_key:
                continue
            raw = extracted.get(question.extract_key)
            if is_absent(raw):
                skipped.append(SkippedField(question.id, question.label, "no value"))
                continue

            value, reason = self._convert(question, raw)
            if value is None:
                logger.warning(f"Skipped {question.id}: {reason}")
                skipped.append(SkippedField(question.id, question.label, reason))
                continue

            logger.debug(f"Populated {question.id} = {value!r}")
            updated[question.id] = value
            populated += 1

        return ReconciliationResult(form_data=updated, populated_count=populated, skipped=skipped)

    def _convert(self, question: Question, raw: Any) -> Tuple[Optional[FormValue], str]:
        if question.type == QuestionType.SELECT:
            outcome = self.matcher.match(raw, question.options, question.vocabulary)
            return outcome.value, outcome.reason or ""

        if question.type == QuestionType.DATE:
            parsed = self.dates.parse(raw if isinstance(raw, str) else str(raw))
            if parsed is None:
                return None, f'invalid date format: "{raw}"'
            return parsed, ""

        if question.type == QuestionType.CHECKBOX:
            if isinstance(raw, bool):
                return raw, ""
            lowered = str(raw).strip().lower()
            if lowered in _TRUE_STRINGS:
                return True, ""
            if lowered in _FALSE_STRINGS:
                return False, ""
            return None, f'unrecognized checkbox value: "{raw}"'

        # text / textarea
        return str(raw).strip(), ""
