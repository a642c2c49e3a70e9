"""
Cover letter templates keyed by case type.

Each template declares its fixed token vocabulary (canonical token names)
and which token receives the document list for each evidence tab. Some
templates still carry historical token spellings; the assembler folds them
onto the canonical names.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet

from casepacket.services.packet_pipeline.case_catalog import CaseType


@dataclass(frozen=True)
class CaseTemplate:
    text: str
    vocabulary: FrozenSet[str]
    tab_tokens: Dict[str, str] = field(default_factory=dict)


_CLOSING = """Should you need anything further, please do not hesitate to contact me. We appreciate your timely attention to this matter.

Respectfully,

_______________________
Attorney's Name
Attorney at Law"""


I130_TEMPLATE = CaseTemplate(
    text="""{{TODAY'S DATE}}

USCIS
Attn: I-130 (Box 4053)
2500 Westfield Drive
Elgin, IL 60124-7836

RE: I-130 Petition for Alien Relative and I-485 Adjustment of Status
Petitioner: {{PETITITONER'S NAME}} DOB: {{PETITIONER'S DOB}}
Beneficiary: {{BENEFICIARY'S NAME}} DOB: {{BENEFICIARY'S DOB}}
Sponsor: {{SPONSOR'S NAME}}

To Whom It May Concern:

Please find enclosed an I-130 and I-485 application packet with {{BENEFICIARY'S NAME}} as beneficiary, being petitioned by {{PETITIONER'S PRONOUN}} United States citizen {{PETITTIONER'S RELATIONSHIP}}, {{PETITITONER'S NAME}}. Please find attached to the packet the following forms:
- Form G-28, Notice of Entry of Appearance as Attorney or Accredited Representative for Petitioner;
- Form G-28, Notice of Entry of Appearance as Attorney or Accredited Representative for Beneficiary;
- Form I-130, Petition for Alien Relative;
- Form I-485, Application To Register Permanent Residence or Adjust Status;
- Form I-765, Application For Employment Authorization; and
- Form I-864, Affidavit of Support Under Section 213A Of The INA for Sponsor.

TAB A – DOCUMENTS ESTABLISHING IDENTITY, NATIONALITY, AND INCOME OF PETITIONER
{{LIST OF PETITIONER DOCUMENTS}}

TAB B - DOCUMENTS ESTABLISHING IDENTITY, NATIONALITY, AND LAWFUL ENTRY TO THE UNITED STATES OF BENEFICIARY
{{LIST OF BENEFICIARY DOCUMENTS}}

TAB C - DOCUMENTS ESTABLISHING BONA-FIDE RELATIONSHIP OF BENEFICIARY AND PETITIONER
{{LIST OF RELATIONSHIP DOCUMENTS}}

TAB D – DOCUMENTS ESTABLISHING BENEFICIARY'S GOOD MORAL CHARACTER AND TIES TO THE UNITED STATES
{{LIST OF BENEFICIARY GMC DOCUMENTS}}

TAB E - DOCUMENTS ESTABLISHING IDENTITY, NATIONALITY, AND INCOME OF SPONSOR
{{LIST OF SPONSOR DOCUMENTS}}

""" + _CLOSING,
    vocabulary=frozenset({
        "TODAY'S DATE", "PETITIONER'S NAME", "PETITIONER'S DOB", "BENEFICIARY'S NAME",
        "BENEFICIARY'S DOB", "SPONSOR'S NAME", "PETITIONER'S PRONOUN", "PETITIONER'S RELATIONSHIP",
        "LIST OF PETITIONER DOCUMENTS", "LIST OF BENEFICIARY DOCUMENTS",
        "LIST OF RELATIONSHIP DOCUMENTS", "LIST OF BENEFICIARY GMC DOCUMENTS",
        "LIST OF SPONSOR DOCUMENTS",
    }),
    tab_tokens={
        "A": "LIST OF PETITIONER DOCUMENTS",
        "B": "LIST OF BENEFICIARY DOCUMENTS",
        "C": "LIST OF RELATIONSHIP DOCUMENTS",
        "D": "LIST OF BENEFICIARY GMC DOCUMENTS",
        "E": "LIST OF SPONSOR DOCUMENTS",
    },
)


U_VISA_CERTIFICATION_TEMPLATE = CaseTemplate(
    text="""{{TODAY'S DATE}}

RE: Request for Form I-918 Supplement B, U Nonimmigrant Status Certification
Victim: {{CLIENT'S NAME}}

To Whom It May Concern:

Law Firm Name represents {{CLIENT'S NAME}} in {{CLIENT_POSSESSIVE_PRONOUN}} immigration case. I am writing to respectfully request that your office issue a U-Visa certification for {{CLIENT'S NAME}}, a direct victim of a qualifying criminal activity.

Under federal law, a U-Visa is available to victims of certain qualifying crimes who have suffered substantial physical or mental abuse as a result of a crime that occurred within the United States, possess information about the crime, and have been helpful, are being helpful, or are likely to be helpful in the investigation or prosecution of the crime. This certification is a prerequisite for the U-Visa application. In {{CLIENT'S NAME HERE}}'s case, the facts as well as the applicable federal and state law demonstrate that {{CLIENT'S NAME HERE}} meets the eligibility requirements for a U-Visa certification.

{{LETTER_BODY}}

In consideration of the above, I respectfully request that your office issue the U-Visa certification for {{CLIENT'S NAME}}. The certification will enable {{CLIENT_OBJECT_PRONOUN}} to proceed with {{CLIENT_POSSESSIVE_PRONOUN}} U-Visa application. Enclosed you will find:
{{TAB_A_DOCS}}
{{TAB_B_DOCS}}

""" + _CLOSING,
    vocabulary=frozenset({
        "TODAY'S DATE", "CLIENT'S NAME", "CLIENT_POSSESSIVE_PRONOUN", "CLIENT_OBJECT_PRONOUN",
        "LETTER_BODY", "TAB_A_DOCS", "TAB_B_DOCS",
    }),
    tab_tokens={"A": "TAB_A_DOCS", "B": "TAB_B_DOCS"},
)


VAWA_TEMPLATE = CaseTemplate(
    text="""{{TODAY’S DATE}}

USCIS Nebraska Service Center
Attn: VAWA Unit
850 S St.
Lincoln, NE 68508

RE: I-360, Petition for Amerasian, Widow(er), or Special Immigrant (VAWA Self-Petition)
Petitioner: {{PETITIONER_NAME}}
DOB: {{PETITIONER_DOB}}

To Whom It May Concern:

Law Firm Name represents {{PETITIONER_NAME}} in {{PETITIONER_PRONOUN}} self-petition under the Violence Against Women Act and accompanying application for Adjustment of Status.

The Petitioner qualifies for the I-360 because {{PETITIONER_PRONOUN}} {{ABUSER_STATUS}} {{ABUSER_RELATIONSHIP}}, {{ABUSER_NAME}}, herein referred to as “{{ABUSER_FIRST_NAME}}”, has abused {{PETITIONER_PRONOUN_OBJ}} as follows:

{{ABUSE_SUMMARY}}

TAB A – DOCUMENTS ESTABLISHING IDENTITY & CURRENT STATUS OF PETITIONER
{{TAB_A_DOCS}}

TAB B – DOCUMENTS ESTABLISHING PROOF OF ABUSIVE {{ABUSER_RELATIONSHIP_UPPER}}’S CITIZENSHIP STATUS
{{TAB_B_DOCS}}

TAB C – DOCUMENTS ESTABLISHING THE QUALIFYING RELATIONSHIP, RESIDENCE WITH ABUSIVE {{ABUSER_RELATIONSHIP_UPPER}} & ABUSE/CRUELTY
- Declaration of Petitioner
{{TAB_C_DOCS}}

TAB D – DOCUMENTS ESTABLISHING GOOD MORAL CHARACTER OF PETITIONER
{{TAB_D_DOCS}}

TAB E – DOCUMENTS FURTHER ESTABLISHING PETITIONER’S TIES TO THE UNITED STATES
{{TAB_E_DOCS}}

LEGAL ARGUMENT

A. The Petitioner Shared a Residence with {{PETITIONER_POSSESIVE_PRONOUN}} Abusive {{ABUSER_RELATIONSHIP}}
Although the Petitioner need not have lived in the United States, {{PETITIONER_PERSONAL_PRONOUN}} must show that {{PETITIONER_PERSONAL_PRONOUN}} has resided with the abuser. INA §§204(a)(1)(A)(iii)(II)(dd) and 204(a)(1)(B)(ii)(II)(dd). The Petitioner has resided with {{PETITIONER_POSSESSIVE_PRONOUN}} {{ABUSER_RELATIONSHIP}}, born {{ABUSER_DOB_PLACEHOLDER}}, at {{COHABITATION_ADDRESS}}.

B. The Petitioner Is a Person of Good Moral Character
The Petitioner has done {{PETITIONER_POSSESSIVEL_PRONOUN}} best to comply with the laws of the United States. Based on the qualities {{PETITIONER_PERSONAL_PRONOUN}} exhibits to all who know {{HIM/HER DEPENDING ON PETITITIONER'S GENDER}}, the Petitioner is of the highest moral character and deserves to remain in the United States.

C. The Petitioner’s {{ABUSER_RELATIONSHIP}} Subjected {{HIM/HER DEPENDING ON PETITITIONER’S GENDER}} to Extreme Cruelty
The Petitioner’s declaration describes the abuse that {{PETITIONER_PERSONAL_PRONOUN}} endured while living with {{PETITIONER_POSSESSIVE_PRONOUN}} {{ABUSER_RELATIONSHIP}}. {{ABUSER_FIRST_NAME}} has repeatedly subjected {{HIM/HER DEPENDING ON PETITITIONER'S GENDER}} to extreme cruelty and abuse.

The Petitioner is eligible to file a self-petition and, accordingly, USCIS should approve {{PETITIONER_POSSESSIVE_PRONOUN}} I-360 petition.

""" + _CLOSING,
    vocabulary=frozenset({
        "TODAY'S DATE", "PETITIONER_NAME", "PETITIONER_DOB", "PETITIONER_PRONOUN",
        "PETITIONER_PRONOUN_OBJ", "PETITIONER_PERSONAL_PRONOUN", "PETITIONER_POSSESSIVE_PRONOUN",
        "HIM/HER DEPENDING ON PETITIONER'S GENDER", "ABUSER_NAME", "ABUSER_FIRST_NAME",
        "ABUSER_STATUS", "ABUSER_RELATIONSHIP", "ABUSER_RELATIONSHIP_UPPER", "ABUSER_DOB_PLACEHOLDER",
        "ABUSE_SUMMARY", "COHABITATION_ADDRESS",
        "TAB_A_DOCS", "TAB_B_DOCS", "TAB_C_DOCS", "TAB_D_DOCS", "TAB_E_DOCS",
    }),
    tab_tokens={"A": "TAB_A_DOCS", "B": "TAB_B_DOCS", "C": "TAB_C_DOCS",
                "D": "TAB_D_DOCS", "E": "TAB_E_DOCS"},
)


U_VISA_APPLICATION_TEMPLATE = CaseTemplate(
    text="""{{TODAY'S DATE}}

USCIS Nebraska Service Center
Attn: I-918
850 S St.
Lincoln, NE 68508

RE: I-918, Petition for U Nonimmigrant Status
Petitioner: {{PETITIONER_NAME}}
DOB: {{PETITIONER_DOB}}

To Whom It May Concern:

Law Firm Name represents {{PETITIONER_NAME}} in {{PETITIONER_PRONOUN}} Petition for U Nonimmigrant Status. The Petitioner qualifies for the I-918 because {{PETITIONER_PERSONAL_PRONOUN}} was a direct victim of {{CRIME_TYPE}}.

Attached, please find the following forms and supporting documents:
- Form G-28, Notice of Entry of Appearance as Attorney or Accredited Representative for Petitioner;
- Form I-192, Advance for Permission to Enter as a Nonimmigrant of Petitioner;
- Form I-765, Application for Employment Authorization of Petitioner; and
- Form I-918, Petition for U Nonimmigrant Status of Petitioner.

TAB A - DOCUMENTS ESTABLISHING THE QUALIFYING CRIME AND SUBSTANTIAL PHYSICAL OR MENTAL ABUSE
- Declaration of Petitioner
- Form I-918 Supplement B, U Nonimmigrant Status Certification Completed and Signed
{{JURISDICTION_REPORT}}
{{TAB_A_DOCS}}

TAB B - DOCUMENTS ESTABLISHING EVIDENCE OF THE PETITIONER'S COOPERATION WITH THE AUTHORITIES
{{TAB_B_DOCS}}

TAB C - BIOGRAPHIC INFORMATION OF PETITIONER
{{TAB_C_DOCS}}

TAB E - DOCUMENTS ESTABLISHING GOOD MORAL CHARACTER OF THE PETITIONER
{{TAB_E_DOCS}}

TAB F - DOCUMENTS PROVING PHYSICAL PRESENCE AND TIES TO THE UNITED STATES OF PETITIONER
{{TAB_F_DOCS}}

LEGAL ARGUMENT

{{LEGAL_ARGUMENT}}

""" + _CLOSING,
    vocabulary=frozenset({
        "TODAY'S DATE", "PETITIONER_NAME", "PETITIONER_DOB", "PETITIONER_PRONOUN",
        "PETITIONER_PERSONAL_PRONOUN", "CRIME_TYPE", "JURISDICTION_REPORT",
        "TAB_A_DOCS", "TAB_B_DOCS", "TAB_C_DOCS", "TAB_E_DOCS", "TAB_F_DOCS", "LEGAL_ARGUMENT",
    }),
    tab_tokens={"A": "TAB_A_DOCS", "B": "TAB_B_DOCS", "C": "TAB_C_DOCS",
                "E": "TAB_E_DOCS", "F": "TAB_F_DOCS"},
)


T_VISA_TEMPLATE = CaseTemplate(
    text="""{{TODAY'S DATE}}

USCIS Vermont Service Center
Attn: T-Visa Unit
38 River Road
Essex Junction, VT 05479-0001

RE: I-914, Application for T Nonimmigrant Status
Applicant: {{CLIENT_NAME}}
DOB: {{APPLICANT_DOB}}
Country of Origin: {{COUNTRY_OF_ORIGIN}}

To Whom It May Concern:

Law Firm Name represents {{CLIENT_NAME}} in {{APPLICANT_PRONOUN}} Application for T Nonimmigrant Status. The Applicant is a victim of a severe form of trafficking in persons, namely {{TRAFFICKING_TYPE}}, perpetrated by {{TRAFFICKER_NAME}}, and {{APPLICANT_PERSONAL_PRONOUN}} entered the United States on {{ENTRY_DATE}}.

Derivative family members: {{DERIVATIVE_NAMES}}
Grounds of inadmissibility addressed by Form I-192: {{INADMISSIBILITY_GROUNDS}}

TAB A - DOCUMENTS ESTABLISHING IDENTITY OF THE APPLICANT
{{TAB_A_DOCS}}

TAB B - DOCUMENTS ESTABLISHING VICTIMIZATION BY A SEVERE FORM OF TRAFFICKING
- Declaration of Applicant
{{TAB_B_DOCS}}

TAB C - DOCUMENTS ESTABLISHING COMPLIANCE WITH REASONABLE REQUESTS FROM LAW ENFORCEMENT
{{TAB_C_DOCS}}

TAB D - DOCUMENTS ESTABLISHING PHYSICAL PRESENCE, GOOD MORAL CHARACTER AND HARDSHIP
{{TAB_D_DOCS}}

LEGAL ARGUMENT

{{LEGAL_ARGUMENT}}

""" + _CLOSING,
    vocabulary=frozenset({
        "TODAY'S DATE", "CLIENT_NAME", "APPLICANT_DOB", "COUNTRY_OF_ORIGIN", "APPLICANT_PRONOUN",
        "APPLICANT_PERSONAL_PRONOUN", "TRAFFICKING_TYPE", "TRAFFICKER_NAME", "ENTRY_DATE",
        "DERIVATIVE_NAMES", "INADMISSIBILITY_GROUNDS",
        "TAB_A_DOCS", "TAB_B_DOCS", "TAB_C_DOCS", "TAB_D_DOCS", "LEGAL_ARGUMENT",
    }),
    tab_tokens={"A": "TAB_A_DOCS", "B": "TAB_B_DOCS", "C": "TAB_C_DOCS", "D": "TAB_D_DOCS"},
)


NATURALIZATION_TEMPLATE = CaseTemplate(
    text="""{{DATE}}

U.S. Department of Homeland Security
USCIS
Attn: N-400 (Box 21251)
2108 E. Elliot Rd.
Tempe, AZ 85284-1806

RE: N-400 Application
Applicant: {{APPLICANT'S NAME}}
DOB: {{APPLICANT_DOB}}
Permanent Resident Since: {{PERMANENT_RESIDENCE_DATE}}

To Whom It May Concern:

Law Firm Name represents {{APPLICANT'S NAME}}, in {{APPLICANT_PRONOUN}} application for naturalization.

Our firm is filing Form N-400 and in support of this application, please find the following documents enclosed:
- Form G-28
- Form N-400

TAB A - DOCUMENTS ESTABLISHING IDENTITY & CURRENT STATUS OF THE APPLICANT:
{{TAB_A_DOCUMENTS}}

TAB B - DOCUMENTS ESTABLISHING GOOD MORAL CHARACTER, RESIDENCE AND TIES TO THE UNITED STATES OF THE APPLICANT:
{{TAB_B_DOCUMENTS}}

LEGAL ARGUMENT

{{LEGAL_ARGUMENT}}

""" + _CLOSING,
    vocabulary=frozenset({
        "DATE", "APPLICANT'S NAME", "APPLICANT_DOB", "PERMANENT_RESIDENCE_DATE",
        "APPLICANT_PRONOUN", "TAB_A_DOCUMENTS", "TAB_B_DOCUMENTS", "LEGAL_ARGUMENT",
    }),
    tab_tokens={"A": "TAB_A_DOCUMENTS", "B": "TAB_B_DOCUMENTS"},
)


TEMPLATES: Dict[CaseType, CaseTemplate] = {
    CaseType.I130_ADJUSTMENT: I130_TEMPLATE,
    CaseType.U_VISA_CERTIFICATION: U_VISA_CERTIFICATION_TEMPLATE,
    CaseType.VAWA: VAWA_TEMPLATE,
    CaseType.U_VISA_APPLICATION: U_VISA_APPLICATION_TEMPLATE,
    CaseType.T_VISA: T_VISA_TEMPLATE,
    CaseType.NATURALIZATION: NATURALIZATION_TEMPLATE,
}
