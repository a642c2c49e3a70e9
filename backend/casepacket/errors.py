"""
Error taxonomy for intake reconciliation and packet generation.

Fatal errors abort the active extraction or generation attempt and their
message is shown to the user verbatim. SecondaryCheckFailure is raised by
classification and completeness collaborators and is always degraded by the
workflow instead of aborting assembly.
"""
from typing import List, Optional


class PacketError(Exception):
    """Base class for all packet assistant errors."""
    
    status_code: int = 400
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedInputFormat(PacketError):
    """Upload is not a PDF or Word document."""


class EmptyExtractableText(PacketError):
    """Source document has no selectable text (e.g. a scanned PDF)."""


class MalformedExtractionResult(PacketError):
    """Extraction response is not a well-formed record."""
    
    status_code = 422


class MissingRequiredField(PacketError):
    """A case-specific required identity field is absent at generation time."""
    
    status_code = 422
    
    def __init__(self, missing: List[str], message: Optional[str] = None):
        self.missing = list(missing)
        super().__init__(
            message or
            f"Please fill out the following required fields before generating: {', '.join(self.missing)}."
        )


class SecondaryCheckFailure(PacketError):
    """Classification or completeness collaborator error."""
    
    status_code = 502


class UnknownCaseType(PacketError):
    """Case type is not part of the catalog."""
    
    status_code = 404
    
    def __init__(self, case_type: str):
        self.case_type = case_type
        super().__init__(f"Unknown case type: {case_type!r}")


class UnresolvedPlaceholderError(PacketError):
    """Assembly left a placeholder token unresolved."""
    
    status_code = 500
    
    def __init__(self, tokens: List[str]):
        self.tokens = sorted(set(tokens))
        super().__init__(
            "Template assembly left unresolved placeholders: " +
            ", ".join("{{" + t + "}}" for t in self.tokens)
        )


class NarrativeGenerationError(PacketError):
    """Narrative / legal-argument collaborator failed."""
    
    status_code = 502


class ServiceUnavailableError(PacketError):
    """AI collaborator is not configured or the call budget is exhausted."""
    
    status_code = 503


class GenerationInProgressError(PacketError):
    """A generation is already running for this workflow."""
    
    status_code = 409
