"""
Evidence reading for intake and generation.

Binary parsing (PDF / Word to text) is an external collaborator passed in as
``text_extractor``. This module validates formats, enforces the
readable-text rules and fans reads out concurrently.
"""
import re
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

from casepacket.config import Config
from casepacket.errors import EmptyExtractableText, UnsupportedInputFormat

logger = logging.getLogger(__name__)

PDF_TYPES = {'application/pdf'}
WORD_TYPES = {'application/vnd.openxmlformats-officedocument.wordprocessingml.document'}
SUPPORTED_EXTENSIONS = ('.pdf', '.docx')

TextExtractor = Callable[[str, bytes], str]


@dataclass
class UploadedEvidence:
    """Raw upload awaiting text extraction."""
    file_name: str
    content_type: str
    data: bytes


@dataclass
class ExtractedEvidence:
    """Evidence whose text has already been extracted."""
    file_name: str
    text: str

    def to_dict(self):
        return {'fileName': self.file_name, 'text': self.text}


Evidence = Union[UploadedEvidence, ExtractedEvidence]


def is_supported(file_name: str, content_type: Optional[str] = None) -> bool:
    content_type = (content_type or '').split(';')[0].strip().lower()
    if content_type in PDF_TYPES or content_type in WORD_TYPES:
        return True
    return (file_name or '').lower().endswith(SUPPORTED_EXTENSIONS)


def has_readable_text(text: str, min_chars: Optional[int] = None) -> bool:
    """Enough characters and at least one real word (three letters)."""
    min_chars = Config.MIN_READABLE_CHARS if min_chars is None else min_chars
    stripped = (text or '').strip()
    return len(stripped) >= min_chars and re.search(r'[A-Za-z]{3,}', stripped) is not None


class EvidenceReader:
    """Turns uploads into text, validating format and readability."""

    def __init__(self, text_extractor: Optional[TextExtractor] = None):
        self.text_extractor = text_extractor

    def read(self, evidence: Evidence) -> ExtractedEvidence:
        """
        Raises:
            UnsupportedInputFormat: upload is neither PDF nor Word.
            EmptyExtractableText: no selectable text could be recovered.
        """
        if isinstance(evidence, ExtractedEvidence):
            text = evidence.text or ''
        else:
            if not is_supported(evidence.file_name, evidence.content_type):
                raise UnsupportedInputFormat(
                    f"Unsupported file type for {evidence.file_name}. Please upload a PDF or Word (.docx) document."
                )
            if self.text_extractor is None:
                raise UnsupportedInputFormat(
                    f"No text extractor is configured for {evidence.file_name}; submit extracted text instead."
                )
            text = self.text_extractor(evidence.file_name, evidence.data) or ''

        if not text.strip():
            raise EmptyExtractableText(
                f"No readable text found in {evidence.file_name}. "
                "The file may be a scanned image; please upload a document with selectable text."
            )
        logger.debug(f"Read {evidence.file_name}: {len(text)} chars")
        return ExtractedEvidence(file_name=evidence.file_name, text=text)

    def read_intake(self, evidence: Evidence) -> ExtractedEvidence:
        """Like ``read`` but also requires enough readable text for extraction."""
        extracted = self.read(evidence)
        if not has_readable_text(extracted.text):
            raise EmptyExtractableText(
                f"Could not extract enough readable text from {extracted.file_name}. "
                "The document may be scanned or image-based."
            )
        return extracted

    async def read_all(self, evidence: Sequence[Evidence]) -> List[ExtractedEvidence]:
        """Read every file concurrently; the first failure propagates."""
        tasks = [asyncio.to_thread(self.read, item) for item in evidence]
        results = await asyncio.gather(*tasks)
        logger.info(f"Read {len(results)} evidence file(s)")
        return list(results)
