"""
Case Catalog
============

Static per-case-type configuration: intake questions, evidence tabs,
required identity fields and the narrative slot filled by the narrative
collaborator.

The catalog is CLOSED - case types outside this set are rejected with
UnknownCaseType rather than silently ignored.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from casepacket.errors import UnknownCaseType


SELECT_SENTINEL = "-- Select --"


class CaseType(str, Enum):
    """Supported immigration case types."""
    I130_ADJUSTMENT = "i-130-adjustment"
    U_VISA_CERTIFICATION = "u-visa-certification"
    VAWA = "vawa"
    U_VISA_APPLICATION = "u-visa-application"
    T_VISA = "t-visa"
    NATURALIZATION = "naturalization"


class QuestionType(str, Enum):
    """Input types for intake questions."""
    TEXT = "text"
    DATE = "date"
    SELECT = "select"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class Question:
    """Schema for a single intake form field."""
    id: str
    label: str
    type: QuestionType
    extract_key: Optional[str] = None
    options: Tuple[str, ...] = ()
    placeholder: Optional[str] = None
    vocabulary: Optional[str] = None  # abbreviation table class for select fields

    @property
    def selectable_options(self) -> List[str]:
        """Options excluding the "no selection" sentinel."""
        return [opt for opt in self.options if opt.strip().lower() != SELECT_SENTINEL.lower()]

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'label': self.label,
            'type': self.type.value,
            'extract_key': self.extract_key,
            'options': list(self.options),
            'placeholder': self.placeholder,
        }


@dataclass(frozen=True)
class CaseDefinition:
    """Everything the pipeline needs to know about one case type."""
    case_type: CaseType
    title: str
    questions: Tuple[Question, ...]
    tabs: Dict[str, str]            # tab label -> heading
    default_tab: str                # bucket for unknown tab labels
    required_fields: Tuple[str, ...]
    narrative_slot: Optional[str]   # the one token the narrative collaborator fills
    evidence_label: str = ""

    def question(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    @property
    def tab_labels(self) -> List[str]:
        return list(self.tabs.keys())


def _select(id: str, label: str, options: List[str], extract_key: str,
            vocabulary: Optional[str] = None) -> Question:
    return Question(
        id=id,
        label=label,
        type=QuestionType.SELECT,
        extract_key=extract_key,
        options=tuple([SELECT_SENTINEL] + options),
        vocabulary=vocabulary,
    )


def _text(id: str, label: str, extract_key: Optional[str] = None,
          placeholder: Optional[str] = None) -> Question:
    return Question(id=id, label=label, type=QuestionType.TEXT,
                    extract_key=extract_key or id, placeholder=placeholder)


def _date(id: str, label: str, extract_key: Optional[str] = None) -> Question:
    return Question(id=id, label=label, type=QuestionType.DATE, extract_key=extract_key or id)


def _textarea(id: str, label: str, extract_key: Optional[str] = None,
              placeholder: Optional[str] = None) -> Question:
    return Question(id=id, label=label, type=QuestionType.TEXTAREA,
                    extract_key=extract_key or id, placeholder=placeholder)


_CASES: Dict[CaseType, CaseDefinition] = {
    CaseType.I130_ADJUSTMENT: CaseDefinition(
        case_type=CaseType.I130_ADJUSTMENT,
        title="Family Petition I-130 w/ Adjustment of Status",
        questions=(
            _text("petitioner_name", "Petitioner's Full Name"),
            _date("petitioner_dob", "Petitioner's Date of Birth"),
            _select("petitioner_gender", "Petitioner's Gender", ["Female", "Male"],
                    "petitioner_gender", vocabulary="gender"),
            _text("beneficiary_name", "Beneficiary's Full Name"),
            _date("beneficiary_dob", "Beneficiary's Date of Birth"),
            _select("relationship", "Relationship between Petitioner and Beneficiary",
                    ["Spouse", "Child"], "relationship_pet_ben", vocabulary="relationship"),
            _text("sponsor_name", "Sponsor's Full Name"),
            _date("sponsor_dob", "Sponsor's Date of Birth"),
            Question(id="sponsor_is_petitioner", label="Check this box if Sponsor is the Petitioner",
                     type=QuestionType.CHECKBOX),
        ),
        tabs={
            "A": "Documents establishing identity, nationality, and income of Petitioner",
            "B": "Documents establishing identity, nationality, and lawful entry of Beneficiary",
            "C": "Documents establishing bona-fide relationship of Beneficiary and Petitioner",
            "D": "Documents establishing Beneficiary's good moral character and ties to the United States",
            "E": "Documents establishing identity, nationality, and income of Sponsor",
        },
        default_tab="E",
        required_fields=("petitioner_name", "beneficiary_name", "sponsor_name"),
        narrative_slot=None,
        evidence_label="Upload I-130 evidence (PDF only):",
    ),
    CaseType.U_VISA_CERTIFICATION: CaseDefinition(
        case_type=CaseType.U_VISA_CERTIFICATION,
        title="U-Visa Certification Request",
        questions=(
            _text("victim_name", "Victim's Full Name"),
            _select("victim_gender", "Victim's Gender", ["Female", "Male", "Other"],
                    "victim_gender", vocabulary="gender"),
            _textarea("pasted_narrative", "Paste Victim's Declaration Here"),
        ),
        tabs={
            "A": "Police report and law enforcement records",
            "B": "Other supporting documents",
        },
        default_tab="B",
        required_fields=("victim_name", "victim_gender", "pasted_narrative"),
        narrative_slot="LETTER_BODY",
        evidence_label="REQUIRED: Upload Police Report (PDF only):",
    ),
    CaseType.VAWA: CaseDefinition(
        case_type=CaseType.VAWA,
        title="VAWA Self-Petition",
        questions=(
            _text("petitioner_name", "Petitioner's Full Name (Victim)"),
            _date("petitioner_dob", "Petitioner's Date of Birth"),
            _select("petitioner_gender", "Petitioner's Gender", ["Female", "Male"],
                    "petitioner_gender", vocabulary="gender"),
            _text("abuser_name", "Abuser's Full Name"),
            _date("abuser_dob", "Abuser's Date of Birth"),
            _select("abuser_status", "Abuser's Status",
                    ["U.S. Citizen", "Lawful Permanent Resident"], "abuser_status",
                    vocabulary="immigration_status"),
            _select("relationship", "Relationship to Abuser", ["Spouse", "Child"],
                    "relationship_pet_abuser", vocabulary="relationship"),
            _select("abuser_gender", "Abuser's Gender", ["Female", "Male"],
                    "abuser_gender", vocabulary="gender"),
            _textarea("cohabitation_address", "Address Shared with Abuser"),
            _textarea("pasted_narrative", "Paste Petitioner's Declaration Here"),
        ),
        tabs={
            "A": "Documents establishing identity & current status of Petitioner",
            "B": "Documents establishing proof of abuser's citizenship status",
            "C": "Documents establishing the qualifying relationship, residence with abuser & abuse/cruelty",
            "D": "Documents establishing good moral character of Petitioner",
            "E": "Documents further establishing Petitioner's ties to the United States",
        },
        default_tab="E",
        required_fields=("petitioner_name", "pasted_narrative"),
        narrative_slot="ABUSE_SUMMARY",
        evidence_label="REQUIRED: Upload VAWA evidence (PDF only):",
    ),
    CaseType.U_VISA_APPLICATION: CaseDefinition(
        case_type=CaseType.U_VISA_APPLICATION,
        title="U-Visa Application",
        questions=(
            _text("petitioner_name", "Petitioner's Full Name"),
            _date("petitioner_dob", "Petitioner's Date of Birth"),
            _select("petitioner_gender", "Petitioner's Gender", ["Female", "Male", "Other"],
                    "petitioner_gender", vocabulary="gender"),
            _text("crime_type", "Qualifying Crime (from Supplement B)"),
            _text("certifying_agency", "Certifying Agency or Jurisdiction"),
            _textarea("pasted_narrative", "Paste Petitioner's Declaration Here"),
        ),
        tabs={
            "A": "Documents establishing the qualifying crime and substantial physical or mental abuse",
            "B": "Documents establishing the Petitioner's cooperation with the authorities",
            "C": "Biographic information of Petitioner",
            "E": "Documents establishing good moral character of the Petitioner",
            "F": "Documents proving physical presence and ties to the United States of Petitioner",
        },
        default_tab="F",
        required_fields=("petitioner_name",),
        narrative_slot="LEGAL_ARGUMENT",
        evidence_label="Upload U-Visa Application evidence (PDF only):",
    ),
    CaseType.T_VISA: CaseDefinition(
        case_type=CaseType.T_VISA,
        title="T-Visa Application",
        questions=(
            _text("client_name", "Applicant's Full Name"),
            _date("applicant_dob", "Applicant's Date of Birth"),
            _select("applicant_gender", "Applicant's Gender", ["Female", "Male", "Other"],
                    "applicant_gender", vocabulary="gender"),
            _text("country_of_origin", "Country of Origin"),
            _select("trafficking_type", "Trafficking Type",
                    ["Sex Trafficking", "Labor Trafficking"], "trafficking_type",
                    vocabulary="trafficking_type"),
            _date("entry_date", "Entry Date to United States"),
            _text("trafficker_name", "Trafficker's Name"),
            _textarea("original_promise", "Original Promise/Recruitment Method",
                      placeholder="e.g., promised a waitress job, romantic relationship, etc."),
            _textarea("derivative_names", "Derivative Names (if applicable)",
                      placeholder="List names separated by commas, or leave blank if none"),
            _textarea("inadmissibility_grounds", "Inadmissibility Grounds (if any)",
                      placeholder="e.g., unlawful presence, working without authorization, etc."),
            _textarea("pasted_narrative", "Paste Applicant's Declaration Here"),
        ),
        tabs={
            "A": "Documents establishing identity of the Applicant",
            "B": "Documents establishing victimization by a severe form of trafficking",
            "C": "Documents establishing compliance with reasonable requests from law enforcement",
            "D": "Documents establishing physical presence, good moral character and hardship",
        },
        default_tab="D",
        required_fields=("client_name", "trafficking_type", "pasted_narrative"),
        narrative_slot="LEGAL_ARGUMENT",
        evidence_label="Upload T-Visa evidence (PDF only):",
    ),
    CaseType.NATURALIZATION: CaseDefinition(
        case_type=CaseType.NATURALIZATION,
        title="Naturalization Application",
        questions=(
            _text("applicant_name", "Applicant's Full Name"),
            _date("applicant_dob", "Applicant's Date of Birth"),
            _date("permanent_residence_date", "Date of Permanent Residence"),
            _select("applicant_gender", "Applicant's Gender", ["Female", "Male"],
                    "applicant_gender", vocabulary="gender"),
        ),
        tabs={
            "A": "Documents establishing identity & current status of the Applicant",
            "B": "Documents establishing good moral character, residence and ties to the United States",
        },
        default_tab="B",
        required_fields=("applicant_name",),
        narrative_slot="LEGAL_ARGUMENT",
        evidence_label="Upload Naturalization evidence (PDF only):",
    ),
}


class CaseCatalog:
    """
    Lookup utilities over the static case configuration.

    Thread-safe: all data is immutable after initialization.
    """

    def __init__(self, cases: Optional[Dict[CaseType, CaseDefinition]] = None):
        self._cases = dict(cases or _CASES)

    @property
    def case_types(self) -> List[CaseType]:
        return list(self._cases.keys())

    def resolve(self, case_type) -> CaseType:
        """Coerce a string or CaseType into a catalog member, rejecting unknown values."""
        if isinstance(case_type, CaseType):
            return case_type
        try:
            return CaseType(str(case_type).strip().lower())
        except ValueError:
            raise UnknownCaseType(str(case_type))

    def get(self, case_type) -> CaseDefinition:
        resolved = self.resolve(case_type)
        if resolved not in self._cases:
            raise UnknownCaseType(resolved.value)
        return self._cases[resolved]


# Global singleton instance
CATALOG = CaseCatalog()
