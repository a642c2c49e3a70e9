"""
Option Matcher
==============

Resolves free-text extracted values onto a closed set of select options.

Strategies run in fixed priority order and the first success wins:

1. EXACT         case-insensitive equality
2. CAPITALIZED   equality against the capitalized input
3. ABBREVIATION  declarative table keyed by vocabulary class
4. PREFIX        option prefixes input or input prefixes option
5. KEYWORD       whole-word containment, small vocabularies only

A value that matches nothing is left unset. A legal form is never
auto-populated with a guessed option.
"""

import re
import logging
from enum import Enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from casepacket.services.packet_pipeline.case_catalog import SELECT_SENTINEL

logger = logging.getLogger(__name__)

# Keyword containment is only trusted for vocabularies at most this large.
MAX_KEYWORD_VOCABULARY = 3

# vocabulary class -> {normalized abbreviation: canonical option (lowercase)}
ABBREVIATIONS: Dict[str, Dict[str, str]] = {
    'gender': {
        'm': 'male',
        'f': 'female',
        'man': 'male',
        'woman': 'female',
        'masculino': 'male',
        'femenino': 'female',
    },
    'relationship': {
        'husband': 'spouse',
        'wife': 'spouse',
        'son': 'child',
        'daughter': 'child',
    },
    'immigration_status': {
        'usc': 'u.s. citizen',
        'citizen': 'u.s. citizen',
        'us citizen': 'u.s. citizen',
        'lpr': 'lawful permanent resident',
        'green card holder': 'lawful permanent resident',
    },
    'trafficking_type': {
        'sex': 'sex trafficking',
        'labor': 'labor trafficking',
        'labour': 'labor trafficking',
    },
}


class MatchStrategy(str, Enum):
    EXACT = "exact"
    CAPITALIZED = "capitalized"
    ABBREVIATION = "abbreviation"
    PREFIX = "prefix"
    KEYWORD = "keyword"
    NONE = "none"


@dataclass
class MatchOutcome:
    """Diagnostic result of one match attempt."""
    value: Optional[str]
    strategy: MatchStrategy
    reason: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.value is not None

    def to_dict(self) -> Dict:
        return {
            'value': self.value,
            'strategy': self.strategy.value,
            'reason': self.reason,
        }


def normalize(raw) -> str:
    """Trim, strip surrounding quotes, lower-case."""
    return str(raw).strip().strip('"\'').strip().lower()


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _contains_word(haystack: str, needle: str) -> bool:
    return re.search(r'\b' + re.escape(needle) + r'\b', haystack) is not None


class OptionMatcher:
    """Table-driven resolution of raw values onto declared options."""

    def __init__(self, abbreviations: Optional[Dict[str, Dict[str, str]]] = None):
        self.abbreviations = abbreviations if abbreviations is not None else ABBREVIATIONS

    def infer_vocabulary(self, options: Sequence[str]) -> Optional[str]:
        """Pick the vocabulary class whose targets all appear among the options."""
        lowered = {opt.lower() for opt in options}
        for vocabulary, table in self.abbreviations.items():
            if set(table.values()) <= lowered:
                return vocabulary
        return None

    def match(self, raw_value, options: Sequence[str],
              vocabulary: Optional[str] = None) -> MatchOutcome:
        candidates = [opt for opt in options if opt.strip().lower() != SELECT_SENTINEL.lower()]
        if raw_value is None:
            return MatchOutcome(None, MatchStrategy.NONE, "no value")
        value = normalize(raw_value)
        if not value:
            return MatchOutcome(None, MatchStrategy.NONE, "no value")

        # 1. exact, case-insensitive
        for opt in candidates:
            if opt.lower() == value:
                return MatchOutcome(opt, MatchStrategy.EXACT)

        # 2. capitalized form of the normalized input
        capitalized = _capitalize(value)
        for opt in candidates:
            if opt == capitalized:
                return MatchOutcome(opt, MatchStrategy.CAPITALIZED)

        # 3. abbreviation table
        vocabulary = vocabulary or self.infer_vocabulary(candidates)
        table = self.abbreviations.get(vocabulary or '', {})
        target = table.get(value)
        if target:
            for opt in candidates:
                if opt.lower() == target:
                    return MatchOutcome(opt, MatchStrategy.ABBREVIATION)

        # 4. prefix containment in either direction
        for opt in candidates:
            lowered = opt.lower()
            if value.startswith(lowered) or lowered.startswith(value):
                return MatchOutcome(opt, MatchStrategy.PREFIX)

        # 5. keyword containment, only for small closed vocabularies
        if 0 < len(candidates) <= MAX_KEYWORD_VOCABULARY:
            hits = self._keyword_hits(value, candidates, table)
            if len(hits) == 1:
                return MatchOutcome(hits[0], MatchStrategy.KEYWORD)
            if len(hits) > 1:
                logger.debug(f"Ambiguous keyword match for {value!r}: {hits}")

        return MatchOutcome(
            None,
            MatchStrategy.NONE,
            f'value "{raw_value}" doesn\'t match options: {", ".join(candidates)}',
        )

    def _keyword_hits(self, value: str, candidates: List[str], table: Dict[str, str]) -> List[str]:
        hits = []
        for opt in candidates:
            lowered = opt.lower()
            keys = [lowered] + [abbr for abbr, target in table.items() if target == lowered and len(abbr) > 1]
            if any(_contains_word(value, key) for key in keys):
                hits.append(opt)
        return hits


MATCHER = OptionMatcher()
