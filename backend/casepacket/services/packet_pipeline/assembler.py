"""
Template Assembler
==================

Fills a case template's {{TOKEN}} placeholders from form data, derived
grammar values, tab document lists and the narrative text.

``assemble`` is a pure function over (template text, substitution map).
Every occurrence of a token is replaced, historical token spellings fold
onto one canonical name, and the result is rescanned: any surviving
``{{...}}`` raises UnresolvedPlaceholderError.
"""

import re
import logging
from typing import Dict, List, Mapping, Optional, Set

from casepacket.errors import UnresolvedPlaceholderError
from casepacket.services.packet_pipeline.case_catalog import CaseDefinition, CaseType, SELECT_SENTINEL
from casepacket.services.packet_pipeline.date_normalizer import DateNormalizer, DATES
from casepacket.services.packet_pipeline.grammar import first_name, pronouns_for, relationship_noun
from casepacket.services.packet_pipeline.templates import CaseTemplate, TEMPLATES

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r'\{\{([^{}]+)\}\}')
NO_DOCUMENTS_LINE = "- [No Documents Classified for this Tab]"

_APOSTROPHES = re.compile(r"[’‘ʼ′`]")
_WHITESPACE = re.compile(r'\s+')

# Misspelled token names that still appear in firm templates.
TOKEN_ALIASES = {
    "PETITITONER'S NAME": "PETITIONER'S NAME",
    "PETITTIONER'S RELATIONSHIP": "PETITIONER'S RELATIONSHIP",
    "PETITIONER_POSSESIVE_PRONOUN": "PETITIONER_POSSESSIVE_PRONOUN",
    "PETITIONER_POSSESSIVEL_PRONOUN": "PETITIONER_POSSESSIVE_PRONOUN",
    "HIM/HER DEPENDING ON PETITITIONER'S GENDER": "HIM/HER DEPENDING ON PETITIONER'S GENDER",
    "CLIENT'S NAME HERE": "CLIENT'S NAME",
}


def canonical_token(name: str) -> str:
    """Fold apostrophe glyphs, collapse whitespace, resolve historical aliases."""
    folded = _APOSTROPHES.sub("'", name)
    folded = _WHITESPACE.sub(' ', folded).strip().upper()
    return TOKEN_ALIASES.get(folded, folded)


def find_tokens(text: str) -> Set[str]:
    """Canonical names of every placeholder in ``text``."""
    return {canonical_token(m.group(1)) for m in TOKEN_RE.finditer(text)}


def _sanitize(value) -> str:
    text = '' if value is None else str(value)
    # Substituted values must never reintroduce delimiters.
    while '{{' in text or '}}' in text:
        text = text.replace('{{', '{').replace('}}', '}')
    return text


def assemble(template: str, substitutions: Mapping[str, str]) -> str:
    """
    Replace every placeholder in ``template`` using ``substitutions``.

    Keys of ``substitutions`` are canonicalized the same way as tokens, so
    callers may use any historical spelling.

    Raises:
        UnresolvedPlaceholderError: if a token has no substitution or any
            delimiter pair survives assembly.
    """
    values = {canonical_token(k): _sanitize(v) for k, v in substitutions.items()}

    missing = find_tokens(template) - set(values)
    if missing:
        raise UnresolvedPlaceholderError(sorted(missing))

    result = TOKEN_RE.sub(lambda m: values[canonical_token(m.group(1))], template)

    leftover = TOKEN_RE.findall(result)
    if leftover:
        raise UnresolvedPlaceholderError(leftover)
    # Adjacent values can still join into a delimiter pair
    stray = [d for d in ('{{', '}}') if d in result]
    if stray:
        raise UnresolvedPlaceholderError(stray)
    return result


def format_doc_list(descriptions: Optional[List[str]]) -> str:
    items = [d.strip() for d in (descriptions or []) if d and d.strip()]
    if not items:
        return NO_DOCUMENTS_LINE
    return '\n'.join(f"- {d}" for d in items)


def with_case_defaults(form_data: Mapping) -> Dict:
    """Copy of form data with the sponsor taken from the petitioner when flagged."""
    data = dict(form_data)
    if data.get('sponsor_is_petitioner') is True:
        data['sponsor_name'] = data.get('petitioner_name', '')
        data['sponsor_dob'] = data.get('petitioner_dob', '')
    return data


def _text(form_data: Mapping, key: str, fallback: str = '') -> str:
    value = form_data.get(key)
    if value is None or isinstance(value, bool):
        return fallback
    value = str(value).strip()
    if not value or value == SELECT_SENTINEL:
        return fallback
    return value


class TemplateAssembler:
    """Builds per-case substitution maps and assembles the cover letter."""

    def __init__(self, templates: Optional[Dict[CaseType, CaseTemplate]] = None,
                 dates: Optional[DateNormalizer] = None):
        self.templates = templates or TEMPLATES
        self.dates = dates or DATES

    def template_for(self, case: CaseDefinition) -> CaseTemplate:
        return self.templates[case.case_type]

    def build_substitutions(self, case: CaseDefinition, form_data: Mapping,
                            buckets: Mapping[str, List[str]], narrative: str = '',
                            extras: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        template = self.template_for(case)
        extras = extras or {}
        subs: Dict[str, str] = {"TODAY'S DATE": self.dates.today_long()}

        for tab, token in template.tab_tokens.items():
            subs[token] = format_doc_list(buckets.get(tab))

        builder = getattr(self, f"_build_{case.case_type.name.lower()}")
        subs.update(builder(form_data, extras))

        if case.narrative_slot:
            subs[case.narrative_slot] = narrative
        return subs

    def generate(self, case: CaseDefinition, form_data: Mapping,
                 buckets: Mapping[str, List[str]], narrative: str = '',
                 extras: Optional[Mapping[str, str]] = None) -> str:
        template = self.template_for(case)
        subs = self.build_substitutions(case, form_data, buckets, narrative, extras)
        document = assemble(template.text, subs)
        logger.info(f"Assembled {case.case_type.value} document ({len(document)} chars)")
        return document

    def _fmt(self, form_data: Mapping, key: str, fallback: str) -> str:
        return self.dates.format(_text(form_data, key)) or fallback

    def _build_i130_adjustment(self, form_data: Mapping, extras: Mapping) -> Dict[str, str]:
        petitioner = _text(form_data, 'petitioner_name', '[Petitioner Name Missing]')
        sponsor = _text(with_case_defaults(form_data), 'sponsor_name')
        gender = form_data.get('petitioner_gender')
        return {
            "PETITIONER'S NAME": petitioner,
            "PETITIONER'S DOB": self._fmt(form_data, 'petitioner_dob', '[DOB Not Provided]'),
            "BENEFICIARY'S NAME": _text(form_data, 'beneficiary_name', '[Beneficiary Name Missing]'),
            "BENEFICIARY'S DOB": self._fmt(form_data, 'beneficiary_dob', '[DOB Not Provided]'),
            "SPONSOR'S NAME": sponsor or '[Sponsor Name Missing]',
            "PETITIONER'S PRONOUN": pronouns_for(gender).possessive,
            "PETITIONER'S RELATIONSHIP": relationship_noun(form_data.get('relationship'), gender) or 'relative',
        }

    def _build_u_visa_certification(self, form_data: Mapping, extras: Mapping) -> Dict[str, str]:
        pronouns = pronouns_for(form_data.get('victim_gender'))
        return {
            "CLIENT'S NAME": _text(form_data, 'victim_name', '[Victim Name Missing]'),
            "CLIENT_POSSESSIVE_PRONOUN": pronouns.possessive,
            "CLIENT_OBJECT_PRONOUN": pronouns.object,
        }

    def _build_vawa(self, form_data: Mapping, extras: Mapping) -> Dict[str, str]:
        pronouns = pronouns_for(form_data.get('petitioner_gender'))
        abuser_name = _text(form_data, 'abuser_name')
        relationship = relationship_noun(form_data.get('relationship'), form_data.get('abuser_gender'))
        status = _text(form_data, 'abuser_status').lower()
        if status == 'u.s. citizen':
            status_text = 'United States citizen'
        elif status:
            status_text = status
        else:
            status_text = 'abusive'
        address = _text(form_data, 'cohabitation_address') or extras.get('cohabitation_address') or ''
        return {
            "PETITIONER_NAME": _text(form_data, 'petitioner_name', '[Petitioner Name Missing]'),
            "PETITIONER_DOB": self._fmt(form_data, 'petitioner_dob', '[DOB Not Provided]'),
            "PETITIONER_PRONOUN": pronouns.possessive,
            "PETITIONER_PRONOUN_OBJ": pronouns.object,
            "PETITIONER_PERSONAL_PRONOUN": pronouns.subject,
            "PETITIONER_POSSESSIVE_PRONOUN": pronouns.possessive,
            "HIM/HER DEPENDING ON PETITIONER'S GENDER": pronouns.object,
            "ABUSER_NAME": abuser_name or '[Abuser Name Missing]',
            "ABUSER_FIRST_NAME": first_name(abuser_name) or '[Abuser First Name Missing]',
            "ABUSER_STATUS": status_text,
            "ABUSER_RELATIONSHIP": relationship or '[Relationship Missing]',
            "ABUSER_RELATIONSHIP_UPPER": (relationship or '[Relationship Missing]').upper(),
            "ABUSER_DOB_PLACEHOLDER": self.dates.format_long(_text(form_data, 'abuser_dob')),
            "COHABITATION_ADDRESS": address.strip() or '[Address not found in declaration]',
        }

    def _build_u_visa_application(self, form_data: Mapping, extras: Mapping) -> Dict[str, str]:
        pronouns = pronouns_for(form_data.get('petitioner_gender'))
        agency = _text(form_data, 'certifying_agency') or extras.get('certifying_agency', '')
        return {
            "PETITIONER_NAME": _text(form_data, 'petitioner_name', '[Petitioner Name Missing]'),
            "PETITIONER_DOB": self._fmt(form_data, 'petitioner_dob', '[DOB Not Provided]'),
            "PETITIONER_PRONOUN": pronouns.possessive,
            "PETITIONER_PERSONAL_PRONOUN": pronouns.subject,
            "CRIME_TYPE": _text(form_data, 'crime_type') or 'a qualifying criminal activity',
            "JURISDICTION_REPORT": f"- {agency} report of Petitioner's victimization" if agency else '',
        }

    def _build_t_visa(self, form_data: Mapping, extras: Mapping) -> Dict[str, str]:
        pronouns = pronouns_for(form_data.get('applicant_gender'))
        return {
            "CLIENT_NAME": _text(form_data, 'client_name', '[Applicant Name Missing]'),
            "APPLICANT_DOB": self._fmt(form_data, 'applicant_dob', '[DOB Not Provided]'),
            "APPLICANT_PRONOUN": pronouns.possessive,
            "APPLICANT_PERSONAL_PRONOUN": pronouns.subject,
            "COUNTRY_OF_ORIGIN": _text(form_data, 'country_of_origin', '[Not provided]'),
            "TRAFFICKING_TYPE": _text(form_data, 'trafficking_type', 'trafficking').lower(),
            "TRAFFICKER_NAME": _text(form_data, 'trafficker_name', 'the trafficker'),
            "ENTRY_DATE": self._fmt(form_data, 'entry_date', '[Date Not Provided]'),
            "DERIVATIVE_NAMES": _text(form_data, 'derivative_names', 'N/A'),
            "INADMISSIBILITY_GROUNDS": _text(form_data, 'inadmissibility_grounds', 'None identified'),
        }

    def _build_naturalization(self, form_data: Mapping, extras: Mapping) -> Dict[str, str]:
        return {
            "DATE": self.dates.today_long(),
            "APPLICANT'S NAME": _text(form_data, 'applicant_name', '[Applicant Name Missing]'),
            "APPLICANT_DOB": self._fmt(form_data, 'applicant_dob', '[DOB Not Provided]'),
            "PERMANENT_RESIDENCE_DATE": self._fmt(form_data, 'permanent_residence_date', '[Date Not Provided]'),
            "APPLICANT_PRONOUN": pronouns_for(form_data.get('applicant_gender')).possessive,
        }
