"""
Completeness checking over classified evidence.

The checker owns bucketing (unknown tab labels land in the case's default
tab) and request construction. The sufficiency judgment itself belongs to
a verdict collaborator; any failure there degrades to an "unable to verify"
verdict so generation always continues.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from casepacket.errors import SecondaryCheckFailure
from casepacket.services.packet_pipeline.case_catalog import CaseDefinition, CaseType
from casepacket.services.packet_pipeline.grammar import first_name

logger = logging.getLogger(__name__)

UNABLE_TO_VERIFY = "Unable to verify documents"


@dataclass
class CompletenessVerdict:
    has_minimum: bool
    missing: List[str] = field(default_factory=list)

    @classmethod
    def unable_to_verify(cls) -> 'CompletenessVerdict':
        return cls(has_minimum=False, missing=[UNABLE_TO_VERIFY])

    def to_dict(self) -> Dict:
        return {'has_minimum': self.has_minimum, 'missing': list(self.missing)}


def bucket_documents(classified: Iterable, case: CaseDefinition) -> Dict[str, List[str]]:
    """
    Group classified documents by tab, preserving order.

    Items are mappings with a description and a tab label ("tab" or
    "tabLabel"). Unknown or missing labels route to the case's default tab.
    """
    buckets: Dict[str, List[str]] = {tab: [] for tab in case.tabs}
    if not isinstance(classified, Iterable) or isinstance(classified, (str, bytes)):
        if classified is not None:
            logger.warning(f"Ignoring malformed classification payload: {classified!r}")
        classified = []
    for item in classified:
        if not isinstance(item, Mapping):
            logger.warning(f"Ignoring malformed classification item: {item!r}")
            continue
        description = str(item.get('description') or '').strip()
        if not description:
            continue
        tab = str(item.get('tab') or item.get('tabLabel') or '').strip().upper()
        if tab not in buckets:
            logger.debug(f"Unknown tab {tab!r} for {description!r}, using Tab {case.default_tab}")
            tab = case.default_tab
        buckets[tab].append(description)
    return buckets


@dataclass(frozen=True)
class Requirement:
    """A document that must appear in at least one of ``tabs``."""
    message: str
    tabs: Tuple[str, ...]
    patterns: Tuple[str, ...]

    def satisfied(self, buckets: Mapping[str, List[str]]) -> bool:
        for tab in self.tabs:
            for desc in buckets.get(tab, []):
                if any(re.search(p, desc, re.IGNORECASE) for p in self.patterns):
                    return True
        return False


def _either_order(a: str, b: str) -> Tuple[str, str]:
    return (f"{a}.*{b}", f"{b}.*{a}")


I130_REQUIREMENTS = (
    Requirement("Birth certificate of Petitioner", ("A",),
                _either_order("birth certificate", "petitioner")),
    Requirement("Identification document of Petitioner (passport, driver's license, or consular ID)", ("A",),
                _either_order("passport", "petitioner") + _either_order("driver.*license", "petitioner")
                + ("consular.*identification.*petitioner", "petitioner.*consular", "identification.*petitioner")),
    Requirement("Birth certificate of Beneficiary", ("B",),
                _either_order("birth certificate", "beneficiary")),
    Requirement("Identification document of Beneficiary (passport, driver's license, consular ID, "
                "or Employment Authorization card)", ("B",),
                _either_order("passport", "beneficiary") + _either_order("driver.*license", "beneficiary")
                + _either_order("employment authorization", "beneficiary")
                + ("consular.*identification.*beneficiary", "beneficiary.*consular",
                   r"\bead\b.*beneficiary", "identification.*beneficiary")),
    Requirement("Identification document of Sponsor (passport, driver's license, birth certificate, "
                "or naturalization certificate)", ("E",),
                _either_order("passport", "sponsor") + _either_order("driver.*license", "sponsor")
                + _either_order("birth certificate", "sponsor")
                + ("naturalization.*certificate.*sponsor", "sponsor.*naturalization", "identification.*sponsor")),
    Requirement("Tax records of Sponsor", ("E",),
                ("tax.*record.*sponsor", "sponsor.*tax", "irs.*sponsor", "w-2.*sponsor",
                 "1099.*sponsor", "tax return.*sponsor")),
)

VAWA_REQUIREMENTS = (
    Requirement("Birth certificate of Petitioner", ("A",),
                _either_order("birth certificate", "petitioner")),
    Requirement("Passport, Consular ID, or Driver's License of Petitioner", ("A",),
                _either_order("passport", "petitioner") + _either_order("driver.*license", "petitioner")
                + ("consular.*identification", "matr[ií]cula.*consular", "driving.*license.*petitioner")),
    Requirement("FBI background check or local criminal history record of Petitioner", ("D",),
                ("fbi.*background", "fbi.*check", "criminal.*background", "criminal.*history",
                 "criminal.*record", "police.*clearance", "police.*criminal", "clearance.*letter")),
)

NATURALIZATION_REQUIREMENTS = (
    Requirement("Birth certificate of Applicant", ("A",), ("birth certificate",)),
    Requirement("Legal Permanent Residence card of Applicant", ("A",),
                ("legal permanent resident", "permanent resident card", "lpr card", "green card",
                 "form i-551", "permanent residence")),
    Requirement("Criminal record of Applicant (FBI background check, police clearance, or criminal history)", ("B",),
                ("criminal record", "criminal history", "criminal background", "fbi.*background",
                 "fbi.*check", "police.*criminal", "police.*clearance", "clearance.*letter",
                 "criminal.*clearance")),
)


class RequirementVerdictService:
    """
    Deterministic verdict collaborator built from per-case requirement rules.

    Case types without rules always report the minimum as met.
    """

    RULES: Dict[CaseType, Tuple[Requirement, ...]] = {
        CaseType.I130_ADJUSTMENT: I130_REQUIREMENTS,
        CaseType.VAWA: VAWA_REQUIREMENTS,
        CaseType.NATURALIZATION: NATURALIZATION_REQUIREMENTS,
    }

    def verdict(self, case_type: CaseType, buckets: Mapping[str, List[str]],
                identity: Mapping[str, str]) -> CompletenessVerdict:
        rules = self.RULES.get(case_type, ())
        if case_type == CaseType.VAWA:
            # identity documents, then abuser and Tab C checks, then criminal record
            missing = [r.message for r in rules[:2] if not r.satisfied(buckets)]
            missing += self._vawa_extra_checks(buckets, identity)
            missing += [r.message for r in rules[2:] if not r.satisfied(buckets)]
        else:
            missing = [r.message for r in rules if not r.satisfied(buckets)]
        return CompletenessVerdict(has_minimum=not missing, missing=missing)

    def _vawa_extra_checks(self, buckets: Mapping[str, List[str]],
                           identity: Mapping[str, str]) -> List[str]:
        missing = []
        abuser_name = str(identity.get('abuser_name') or '').strip()
        abuser_first = first_name(abuser_name).lower()

        def names_abuser(desc: str) -> bool:
            lowered = desc.lower()
            if re.search("abuser.*birth certificate|birth certificate.*abuser", lowered):
                return True
            return 'birth certificate' in lowered and bool(abuser_first) and abuser_first in lowered

        candidates = buckets.get('B', []) + buckets.get('A', []) + buckets.get('E', [])
        if not any(names_abuser(d) for d in candidates):
            citizen_doc = any('birth certificate' in d.lower() and 'citizen' in d.lower()
                              for d in buckets.get('B', []))
            if not (abuser_name and citizen_doc):
                missing.append(f"Birth certificate of abuser ({abuser_name})" if abuser_name
                               else "Birth certificate of abuser")

        supporting = [d for d in buckets.get('C', [])
                      if not re.search("declaration.*petitioner", d, re.IGNORECASE)]
        if not supporting:
            missing.append("At least one additional document under Tab C (besides Declaration of Petitioner)")
        return missing


class CompletenessChecker:
    """Buckets classified evidence and asks the verdict collaborator for a judgment."""

    def __init__(self, verdict_service: Optional[RequirementVerdictService] = None):
        self.verdict_service = verdict_service or RequirementVerdictService()

    def check(self, classified: Iterable, case: CaseDefinition,
              identity: Optional[Mapping[str, str]] = None) -> CompletenessVerdict:
        buckets = bucket_documents(classified, case)
        return self.check_buckets(buckets, case, identity)

    def check_buckets(self, buckets: Mapping[str, List[str]], case: CaseDefinition,
                      identity: Optional[Mapping[str, str]] = None) -> CompletenessVerdict:
        identity = {k: v for k, v in (identity or {}).items() if isinstance(v, str)}
        try:
            verdict = self.verdict_service.verdict(case.case_type, buckets, identity)
            if not isinstance(verdict, CompletenessVerdict):
                raise SecondaryCheckFailure(f"Verdict collaborator returned {type(verdict).__name__}")
        except Exception as e:
            logger.error(f"Completeness check failed for {case.case_type.value}: {e}", exc_info=True)
            return CompletenessVerdict.unable_to_verify()

        logger.info(
            f"Completeness for {case.case_type.value}: has_minimum={verdict.has_minimum}, "
            f"missing={len(verdict.missing)}"
        )
        return verdict
