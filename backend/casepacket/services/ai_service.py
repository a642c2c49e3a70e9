"""
AI collaborators for intake extraction, evidence classification and narrative drafting.

All calls go to an OpenAI-compatible chat completions endpoint via requests.
Responses are never trusted: extraction output is reconciled against the case
schema downstream, classification falls back to keyword heuristics, and
narrative failures abort generation with a user-facing message.
"""
import re
import json
import time
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from casepacket.config import Config
from casepacket.errors import (
    NarrativeGenerationError, SecondaryCheckFailure, ServiceUnavailableError,
)
from casepacket.services.packet_pipeline.case_catalog import CaseDefinition, CaseType, CATALOG
from casepacket.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Evidence text sent per document is capped to keep prompts bounded
MAX_EVIDENCE_CHARS = 5000


def parse_json_payload(raw_text: str) -> Any:
    """
    Parse JSON from a model response.

    Tries the raw text, a fenced code block, then the outermost object and
    array spans.

    Raises:
        ValueError: if no candidate parses.
    """
    trimmed = (raw_text or '').strip()
    attempts = [trimmed]

    fenced = re.search(r'```(?:json)?([\s\S]*?)```', trimmed, re.IGNORECASE)
    if fenced:
        attempts.append(fenced.group(1).strip())

    obj = re.search(r'\{[\s\S]*\}', trimmed)
    if obj:
        attempts.append(obj.group(0))

    arr = re.search(r'\[[\s\S]*\]', trimmed)
    if arr:
        attempts.append(arr.group(0))

    seen = set()
    for candidate in attempts:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            logger.debug(f"Failed JSON parse attempt: {candidate[:120]!r}")

    raise ValueError("Unable to parse JSON payload from model response.")


class AIClient:
    """Thin chat-completions client with rate-limit retry and call budgeting."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[int] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.api_key = api_key if api_key is not None else Config.AI_API_KEY
        self.api_base = (api_base or Config.AI_API_BASE).rstrip('/')
        self.model_name = model_name or Config.AI_MODEL
        self.timeout = timeout or Config.AI_TIMEOUT
        self.max_retries = Config.AI_MAX_RETRIES
        self.retry_base_delay = Config.AI_RETRY_BASE_DELAY
        self.rate_limiter = rate_limiter or RateLimiter()

    @property
    def is_available(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def complete(self, prompt: str, service: str, system_prompt: Optional[str] = None,
                 max_tokens: int = 4000) -> str:
        """
        Send one chat completion and return the message content.

        Raises:
            ServiceUnavailableError: no API key, or the call budget is exhausted.
            requests.RequestException: transport or HTTP errors after retries.
        """
        if not self.is_available:
            raise ServiceUnavailableError("AI API key is not configured. Set AI_API_KEY in the environment.")

        can_call, reason = self.rate_limiter.can_make_call(service)
        if not can_call:
            raise ServiceUnavailableError(reason)

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": self.model_name,
            "messages": messages,
            "temperature": 0.0,
            "max_tokens": max_tokens
        }

        for attempt in range(self.max_retries + 1):
            response = requests.post(
                f"{self.api_base}/chat/completions",
                headers=headers,
                json=payload,
                timeout=self.timeout
            )
            self.rate_limiter.record_call(service)

            if response.status_code == 429 and attempt < self.max_retries:
                delay = self.retry_base_delay * (2 ** attempt)
                logger.warning(
                    f"Rate limit hit for {service} (attempt {attempt + 1}/{self.max_retries + 1}). "
                    f"Retrying in {delay:.1f}s..."
                )
                time.sleep(delay)
                continue

            response.raise_for_status()
            result_data = response.json()
            return result_data['choices'][0]['message']['content']

        raise ServiceUnavailableError(f"Rate limit retries exhausted for {service}")

    def complete_json(self, prompt: str, service: str, system_prompt: Optional[str] = None) -> Any:
        return parse_json_payload(self.complete(prompt, service, system_prompt))


class ExtractionService:
    """Extracts intake facts from document text as a raw, untrusted record."""

    SYSTEM_PROMPT = """You are an expert paralegal AI extracting case facts from immigration intake documents.
Return ONLY a JSON object. Use null for any value that is not present in the text. Never guess."""

    PROMPT_TEMPLATE = """Analyze the following intake document for a {title} case.
Extract the fields below and return them as a JSON object with exactly these keys:

{fields}

For dates, return them in any common format found in the text.
For select fields, return one of the listed options where possible.
If information is missing, use null for the value.

Document:
\"\"\"
{text}
\"\"\""""

    def __init__(self, client: Optional[AIClient] = None):
        self.client = client or AIClient()

    def build_prompt(self, document_text: str, case: CaseDefinition) -> str:
        lines = []
        for q in case.questions:
            if not q.extract_key:
                continue
            hint = q.label
            if q.selectable_options:
                hint += f" (one of: {', '.join(q.selectable_options)})"
            lines.append(f'- "{q.extract_key}": {hint}')
        return self.PROMPT_TEMPLATE.format(title=case.title, fields='\n'.join(lines), text=document_text)

    def extract(self, document_text: str, case_type) -> Any:
        """
        Returns whatever the model produced, parsed as JSON.

        Raises:
            ServiceUnavailableError: AI not configured or budget exhausted.
            ValueError: response is not parseable JSON.
        """
        case = CATALOG.get(case_type)
        prompt = self.build_prompt(document_text, case)
        logger.info(f"Extracting intake data for {case.case_type.value} ({len(document_text)} chars)")
        return self.client.complete_json(prompt, service='extraction', system_prompt=self.SYSTEM_PROMPT)


class DocumentClassifier:
    """
    Classifies evidence documents into tab labels.

    Uses the AI model when available and falls back to keyword heuristics
    when it is not configured or the call fails.
    """

    PROMPT_TEMPLATE = """You are an expert paralegal classifying immigration evidence for a {title} packet.

Tabs:
{tabs}

Case parties:
{parties}

For each document below, write a short description in the style "Passport of Petitioner" or
"Birth certificate of Beneficiary" and assign it to one tab.
Return ONLY a JSON array of objects: [{{"description": "...", "tab": "A"}}]

Documents:
{documents}"""

    # (pattern over lowercase filename + text, description, preferred tabs in order)
    HEURISTICS = [
        (r'passport|pasaporte', "Passport", ('A',)),
        (r'consular|matr[ií]cula', "Consular identification", ('A',)),
        (r'birth', "Birth certificate", ('A', 'B')),
        (r'driver|licen[cs]e', "Driver's license", ('A',)),
        (r'permanent resident|green card|i-551', "Permanent resident card", ('A',)),
        (r'fbi|federal bureau of investigation', "FBI background check", ('D', 'B')),
        (r'police|criminal background|clearance', "Police clearance letter", ('D', 'B')),
        (r'supplement b|i-918', "Form I-918 Supplement B", ('A',)),
        (r'marriage', "Marriage certificate", ('C',)),
        (r'photo|pictures|imagenes|fotos', "Family photographs", ('C',)),
        (r'utility|bill|statement|bank|lease', "Proof of joint residence", ('C', 'F')),
        (r'tax|w-2|1099|irs', "Tax records", ('E', 'A')),
        (r'letter of support|support letter|reference', "Letter of support", ('D', 'E')),
    ]

    def __init__(self, client: Optional[AIClient] = None):
        self.client = client or AIClient()

    def classify(self, documents: List[Mapping[str, str]], case: CaseDefinition,
                 case_context: Optional[Mapping[str, Any]] = None) -> List[Dict[str, str]]:
        """
        Args:
            documents: list of {"fileName": ..., "text": ...}
            case: case definition (supplies tabs)
            case_context: identity fields used to name the parties

        Raises:
            SecondaryCheckFailure: only when both the model and the heuristic
                cannot produce a list.
        """
        if not documents:
            return []

        if self.client.is_available:
            try:
                items = self._classify_with_ai(documents, case, case_context or {})
                logger.info(f"AI classified {len(items)} document(s) for {case.case_type.value}")
                return items
            except Exception as e:
                logger.error(f"AI classification failed: {e}. Using heuristic fallback.")

        try:
            return [self._classify_heuristic(doc, case) for doc in documents]
        except (TypeError, AttributeError) as e:
            raise SecondaryCheckFailure(f"Document classification failed: {e}")

    def _classify_with_ai(self, documents, case: CaseDefinition, context: Mapping) -> List[Dict[str, str]]:
        tabs = '\n'.join(f"- Tab {label}: {heading}" for label, heading in case.tabs.items())
        parties = '\n'.join(f"- {k}: {v}" for k, v in context.items() if isinstance(v, str) and v) or "- (not provided)"
        docs = '\n\n'.join(
            f"--- {d.get('fileName', 'document')} ---\n{str(d.get('text', ''))[:MAX_EVIDENCE_CHARS]}"
            for d in documents
        )
        prompt = self.PROMPT_TEMPLATE.format(title=case.title, tabs=tabs, parties=parties, documents=docs)
        data = self.client.complete_json(prompt, service='classification')
        if isinstance(data, Mapping):
            data = data.get('documents', [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of classified documents, got {type(data).__name__}")
        return [
            {'description': str(item.get('description', '')).strip(), 'tab': str(item.get('tab', '')).strip()}
            for item in data if isinstance(item, Mapping)
        ]

    def _classify_heuristic(self, document: Mapping[str, str], case: CaseDefinition) -> Dict[str, str]:
        file_name = str(document.get('fileName', ''))
        haystack = f"{file_name} {document.get('text', '')[:MAX_EVIDENCE_CHARS]}".lower()
        for pattern, description, tabs in self.HEURISTICS:
            if re.search(pattern, haystack):
                tab = next((t for t in tabs if t in case.tabs), case.default_tab)
                return {'description': description, 'tab': tab}

        stem = re.sub(r'\.[A-Za-z0-9]+$', '', file_name).replace('_', ' ').replace('-', ' ').strip()
        return {'description': stem or 'Supporting document', 'tab': case.default_tab}


def format_abuse_summary(summary: Mapping[str, Any]) -> str:
    """Render categorized abuse items as bulleted sections."""
    sections = []
    for category in ('psychological', 'verbal', 'physical', 'financial'):
        items = summary.get(category) or []
        lines = []
        for item in items:
            if not isinstance(item, Mapping):
                continue
            subtitle = item.get('subtitle') or item.get('title') or '[No subtitle]'
            description = item.get('description') or item.get('text') or '[No description]'
            lines.append(f"• {subtitle}: {description}")
        body = '\n'.join(lines) or '- [No abuse items found in this category]'
        sections.append(f"• {category.title()} Abuse\n{body}")
    return '\n\n'.join(sections)


class NarrativeService:
    """Drafts the free-text narrative slot for a case (legal argument, abuse summary, letter body)."""

    SYSTEM_PROMPT = """You are an expert immigration attorney drafting filings for USCIS and law enforcement agencies.
Write in a formal, persuasive legal register. Do not invent facts that are not in the materials provided."""

    INSTRUCTIONS = {
        CaseType.U_VISA_CERTIFICATION: (
            "Write the body of a letter to a law enforcement agency requesting Form I-918 Supplement B. "
            "Include a detailed factual recitation of the victim's narrative and how the victim was "
            "emotionally, physically, or financially impacted."
        ),
        CaseType.U_VISA_APPLICATION: (
            "Write the legal argument for a Petition for U Nonimmigrant Status covering the qualifying "
            "crime, substantial abuse, possession of information, helpfulness to authorities and "
            "admissibility."
        ),
        CaseType.T_VISA: (
            "Write the legal argument for an Application for T Nonimmigrant Status covering the severe "
            "form of trafficking (force, fraud, or coercion), physical presence on account of trafficking, "
            "compliance with reasonable requests from law enforcement, and extreme hardship."
        ),
        CaseType.NATURALIZATION: (
            "Write the legal argument for an N-400 Application for Naturalization covering lawful permanent "
            "residence, continuous residence, physical presence, good moral character and attachment to "
            "the Constitution."
        ),
    }

    VAWA_PROMPT = """Summarize the abuse described in the following declaration.
Return ONLY a JSON object:
{{"abuse_summary": {{"psychological": [{{"subtitle": "...", "description": "..."}}],
  "verbal": [], "physical": [], "financial": []}},
  "cohabitation_address": "address shared with the abuser, or null"}}

Declaration:
\"\"\"
{declaration}
\"\"\""""

    def __init__(self, client: Optional[AIClient] = None):
        self.client = client or AIClient()

    def generate(self, case_type, facts: Mapping[str, Any]) -> Dict[str, str]:
        """
        Returns {"text": narrative, ...extras} for the case's narrative slot.

        Raises:
            NarrativeGenerationError: on any collaborator failure.
        """
        case = CATALOG.get(case_type)
        try:
            if case.case_type == CaseType.VAWA:
                return self._vawa_summary(facts)
            return {'text': self._narrative(case, facts)}
        except NarrativeGenerationError:
            raise
        except Exception as e:
            logger.error(f"Narrative generation failed for {case.case_type.value}: {e}", exc_info=True)
            raise NarrativeGenerationError(f"Failed to generate narrative: {e}")

    def _narrative(self, case: CaseDefinition, facts: Mapping[str, Any]) -> str:
        fact_lines = '\n'.join(
            f"- {k}: {v}" for k, v in facts.items() if k != 'pasted_narrative' and v not in (None, '')
        )
        prompt = (
            f"{self.INSTRUCTIONS.get(case.case_type, 'Write the legal argument for this case.')}\n\n"
            f"Case facts:\n{fact_lines or '- (none provided)'}\n\n"
            f"Client declaration:\n\"\"\"\n{facts.get('pasted_narrative') or '[Declaration not provided]'}\n\"\"\"\n\n"
            "Return plain text only."
        )
        text = self.client.complete(prompt, service='narrative', system_prompt=self.SYSTEM_PROMPT).strip()
        if not text:
            raise NarrativeGenerationError("The narrative service returned an empty response.")
        return text

    def _vawa_summary(self, facts: Mapping[str, Any]) -> Dict[str, str]:
        declaration = str(facts.get('pasted_narrative') or '').strip()
        if not declaration:
            raise NarrativeGenerationError("A petitioner declaration is required to summarize the abuse.")
        data = self.client.complete_json(
            self.VAWA_PROMPT.format(declaration=declaration), service='narrative', system_prompt=self.SYSTEM_PROMPT
        )
        if not isinstance(data, Mapping) or not isinstance(data.get('abuse_summary'), Mapping):
            raise NarrativeGenerationError("AI call returned incomplete data. Expected 'abuse_summary' object.")
        result = {'text': format_abuse_summary(data['abuse_summary'])}
        address = data.get('cohabitation_address')
        if isinstance(address, str) and address.strip() and address.strip().lower() != 'null':
            result['cohabitation_address'] = address.strip()
        return result
