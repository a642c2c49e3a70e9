"""
Immigration Packet Pipeline
===========================

Intake reconciliation and document assembly for immigration filing packets.

Pipeline Stages:
1. INTAKE: extraction record -> reconciled form data (dates, select options)
2. EVIDENCE: read uploaded evidence and classify it into tabs
3. COMPLETENESS: check classified tabs against minimum document rules
4. ASSEMBLY: fill the case template from form data, grammar and tab lists

Design Principles:
- Extracted values are never trusted; each field is converted by question type
- A select field is never populated with a guessed option
- Generated documents never contain unresolved {{TOKEN}} placeholders
- Secondary checks degrade; they never abort generation
"""

from .case_catalog import CATALOG, CaseCatalog, CaseDefinition, CaseType, Question, QuestionType
from .date_normalizer import DateNormalizer
from .option_matcher import MatchOutcome, MatchStrategy, OptionMatcher
from .reconciler import IntakeReconciler, ReconciliationResult, SkippedField
from .form_store import FormDataStore
from .assembler import TemplateAssembler, assemble
from .completeness import CompletenessChecker, CompletenessVerdict, RequirementVerdictService, bucket_documents
from .workflow import GenerationResult, GenerationWorkflow, WorkflowState

__all__ = [
    'CATALOG',
    'CaseCatalog',
    'CaseDefinition',
    'CaseType',
    'Question',
    'QuestionType',
    'DateNormalizer',
    'MatchOutcome',
    'MatchStrategy',
    'OptionMatcher',
    'IntakeReconciler',
    'ReconciliationResult',
    'SkippedField',
    'FormDataStore',
    'TemplateAssembler',
    'assemble',
    'CompletenessChecker',
    'CompletenessVerdict',
    'RequirementVerdictService',
    'bucket_documents',
    'GenerationResult',
    'GenerationWorkflow',
    'WorkflowState',
]
