"""
Shared test fixtures: fake AI collaborators and an async API client.
"""

import os
import pytest
from datetime import date
from typing import AsyncGenerator, Dict, List
from httpx import AsyncClient, ASGITransport

# Configure test environment BEFORE importing app
os.environ["AI_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["ENABLE_RATE_LIMITING"] = "true"

from casepacket.errors import NarrativeGenerationError, SecondaryCheckFailure
from casepacket.main import app
from casepacket.routes.packet_pipeline import (
    get_classifier, get_extraction_service, get_narrative_service,
)
from casepacket.services.packet_pipeline.date_normalizer import DateNormalizer


# =============================================================================
# Fake Collaborators
# =============================================================================

class FakeClassifier:
    """Returns a fixed classification and records what it was asked."""

    def __init__(self, items: List[Dict[str, str]] = None):
        self.items = items or []
        self.calls = []

    def classify(self, documents, case, case_context=None):
        self.calls.append((documents, case.case_type, dict(case_context or {})))
        return list(self.items)


class FailingClassifier:
    def classify(self, documents, case, case_context=None):
        raise SecondaryCheckFailure("classifier offline")


class FakeNarrativeService:
    def __init__(self, text: str = "The Applicant meets every requirement.", **extras):
        self.text = text
        self.extras = extras
        self.calls = []

    def generate(self, case_type, facts):
        self.calls.append((case_type, dict(facts)))
        return {'text': self.text, **self.extras}


class FailingNarrativeService:
    def generate(self, case_type, facts):
        raise NarrativeGenerationError("Failed to generate narrative: upstream timeout")


class FakeExtractionService:
    def __init__(self, record):
        self.record = record
        self.calls = []

    def extract(self, document_text, case_type):
        self.calls.append((document_text, case_type))
        return self.record


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def fixed_dates() -> DateNormalizer:
    return DateNormalizer(today=date(2024, 3, 5))


@pytest.fixture
def narrative_service() -> FakeNarrativeService:
    return FakeNarrativeService()


@pytest.fixture
def failing_narrative_service() -> FailingNarrativeService:
    return FailingNarrativeService()


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier([
        {"description": "Birth certificate of Applicant", "tab": "A"},
        {"description": "Permanent resident card of Applicant", "tab": "A"},
        {"description": "FBI background check of Applicant", "tab": "B"},
    ])


@pytest.fixture
def failing_classifier() -> FailingClassifier:
    return FailingClassifier()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with offline collaborators."""
    app.dependency_overrides[get_narrative_service] = lambda: FakeNarrativeService()
    app.dependency_overrides[get_classifier] = lambda: FakeClassifier()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def override_extraction():
    """Install a fake extraction service returning ``record``."""
    def _install(record) -> FakeExtractionService:
        service = FakeExtractionService(record)
        app.dependency_overrides[get_extraction_service] = lambda: service
        return service
    return _install
