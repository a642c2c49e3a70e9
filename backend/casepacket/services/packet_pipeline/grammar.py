"""
Gender and relationship grammar for generated documents.

Inference never errors: missing, "Other" or unrecognized gender values
resolve to the neutral plural forms.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Pronouns:
    subject: str
    object: str
    possessive: str


PRONOUNS = {
    Gender.MALE: Pronouns("he", "him", "his"),
    Gender.FEMALE: Pronouns("she", "her", "her"),
    Gender.NEUTRAL: Pronouns("they", "them", "their"),
}

# relationship -> (male, female, neutral)
RELATIONSHIP_NOUNS = {
    'spouse': ("husband", "wife", "spouse"),
    'child': ("son", "daughter", "child"),
}


def infer_gender(value) -> Gender:
    normalized = str(value or '').strip().lower()
    if normalized in ('male', 'm'):
        return Gender.MALE
    if normalized in ('female', 'f'):
        return Gender.FEMALE
    return Gender.NEUTRAL


def pronouns_for(value) -> Pronouns:
    return PRONOUNS[infer_gender(value)]


def relationship_noun(relationship, gender_value) -> Optional[str]:
    """Gendered noun for a relationship select value, None when unknown."""
    forms = RELATIONSHIP_NOUNS.get(str(relationship or '').strip().lower())
    if forms is None:
        return None
    gender = infer_gender(gender_value)
    if gender == Gender.MALE:
        return forms[0]
    if gender == Gender.FEMALE:
        return forms[1]
    return forms[2]


def first_name(full_name) -> str:
    parts = str(full_name or '').split()
    return parts[0] if parts else ''
