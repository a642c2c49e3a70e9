"""
Form data store for one workflow.

Writers never mutate the live mapping: manual edits replace one key under
the lock, and reconciliation publishes a full replacement built from a
snapshot.
"""

import logging
from threading import Lock
from typing import Dict, Optional

from casepacket.services.packet_pipeline.case_catalog import CaseDefinition, QuestionType
from casepacket.services.packet_pipeline.date_normalizer import DateNormalizer, DATES
from casepacket.services.packet_pipeline.reconciler import FormData, FormValue

logger = logging.getLogger(__name__)


class FormDataStore:
    """Holds FormData for the currently selected case."""

    def __init__(self, case: CaseDefinition, initial: Optional[FormData] = None,
                 dates: Optional[DateNormalizer] = None):
        self.case = case
        self.dates = dates or DATES
        self._data: FormData = dict(initial or {})
        self._lock = Lock()

    def snapshot(self) -> FormData:
        with self._lock:
            return dict(self._data)

    def publish(self, data: FormData):
        """Atomically replace the stored form data."""
        with self._lock:
            self._data = dict(data)
        logger.debug(f"Published form data with {len(data)} field(s)")

    def set_field(self, question_id: str, value: FormValue):
        """Manual edit of one field; select and date values are validated."""
        question = self.case.question(question_id)
        if question is None:
            raise ValueError(f"Unknown field {question_id!r} for case type {self.case.case_type.value}")

        if question.type == QuestionType.SELECT and value not in question.options:
            raise ValueError(f"{value!r} is not an option for {question.label}")
        if question.type == QuestionType.DATE and value and self.dates.parse(str(value)) != value:
            raise ValueError(f"{question.label} must be an ISO date (YYYY-MM-DD)")
        if question.type == QuestionType.CHECKBOX:
            value = bool(value)

        with self._lock:
            self._data[question_id] = value

    def get(self, question_id: str, default=None):
        with self._lock:
            return self._data.get(question_id, default)

    def clear(self):
        with self._lock:
            self._data = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def to_dict(self) -> Dict[str, FormValue]:
        return self.snapshot()
