# =============================================================================
# core/checklist.py - Compliance Checklist Catalog & Validation
# =============================================================================
# The bidding checklist is one flat `company_checklist` row per company with
# one column per item. This module holds the item catalog and the pure
# functions that grade a checklist row:
# - validate_for_jurisdiction / validate_for_application
# - critical_items_missing
# - checklist_summary
#
# An item counts as complete when its boolean is true or its text value is
# non-blank.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

# Percentage of a jurisdiction's items required before applying
APPLY_THRESHOLD = 80


class ChecklistCategory(str, Enum):
    STATE = "State"
    COUNTY = "County"
    CITY = "City"
    ALL = "All"


@dataclass(frozen=True)
class ChecklistItem:
    field: str
    label: str
    category: ChecklistCategory
    input_type: str = "boolean"

    @property
    def id(self) -> str:
        return self.field


def _items(category: ChecklistCategory, *rows: tuple[str, str] | tuple[str, str, str]) -> list[ChecklistItem]:
    return [ChecklistItem(row[0], row[1], category, *(row[2:])) for row in rows]


CHECKLIST_ITEMS: list[ChecklistItem] = [
    *_items(
        ChecklistCategory.STATE,
        ("business_license_state", "Business License"),
        ("business_license_number_state", "Business License Number", "text"),
        ("secretary_of_state_registration_state", "Secretary of State Registration"),
        ("secretary_of_state_number_state", "Secretary of State Number", "text"),
        ("federal_ein_state", "Federal EIN (Tax ID)"),
        ("federal_ein_value_state", "Federal EIN Number", "text"),
        ("ca_sellers_permit_state", "CA Seller's Permit (if applicable)"),
        ("insurance_certificates_state", "Insurance Certificates"),
        ("financial_statements_state", "Financial Statements (2-3 years)"),
        ("references_past_performance_state", "References / Past Performance"),
        ("capability_statement_state", "Capability Statement"),
        ("resumes_key_staff_state", "Resumes of Key Staff"),
        ("certifications_sb_dvbe_dbe_state", "Certifications (SB, DVBE, DBE, etc.)"),
        ("certification_numbers_state", "Certification Numbers", "text"),
        ("cal_eprocure_registration", "Cal eProcure Registration"),
        ("cal_eprocure_number", "Cal eProcure Number", "text"),
        ("payee_data_record_std_204", "Payee Data Record (STD 204)"),
        ("darfur_contracting_act_certification_std_843", "Darfur Contracting Act Certification (STD 843)"),
        ("contractor_certification_clauses_ccc_04", "Contractor Certification Clauses (CCC-04 or latest)"),
        ("bidder_declaration_form_gspd_05_105", "Bidder Declaration Form (GSPD-05-105)"),
        ("civil_rights_compliance_certification", "Civil Rights Compliance Certification"),
    ),
    *_items(
        ChecklistCategory.COUNTY,
        ("business_license_county", "Business License"),
        ("secretary_of_state_registration_county", "Secretary of State Registration"),
        ("federal_ein_county", "Federal EIN (Tax ID)"),
        ("ca_sellers_permit_county", "CA Seller's Permit (if applicable)"),
        ("insurance_certificates_county", "Insurance Certificates"),
        ("financial_statements_county", "Financial Statements (2-3 years)"),
        ("references_past_performance_county", "References / Past Performance"),
        ("capability_statement_county", "Capability Statement"),
        ("resumes_key_staff_county", "Resumes of Key Staff"),
        ("certifications_sb_dvbe_dbe_county", "Certifications (SB, DVBE, DBE, etc.)"),
        ("county_vendor_registration", "County Vendor Registration"),
        ("w9_county_payee_form", "W-9 or County Payee Form"),
        ("insurance_certificates_naming_county", "Insurance Certificates (naming county)"),
        ("debarment_suspension_certification_county", "Debarment / Suspension Certification"),
        ("conflict_of_interest_statement_county", "Conflict of Interest Statement"),
        ("non_collusion_declaration_county", "Non-Collusion Declaration"),
        ("technical_proposal_pricing_sheet_county", "Technical Proposal / Pricing Sheet"),
    ),
    *_items(
        ChecklistCategory.CITY,
        ("business_license_city", "Business License"),
        ("secretary_of_state_registration_city", "Secretary of State Registration"),
        ("federal_ein_city", "Federal EIN (Tax ID)"),
        ("ca_sellers_permit_city", "CA Seller's Permit (if applicable)"),
        ("insurance_certificates_city", "Insurance Certificates"),
        ("financial_statements_city", "Financial Statements (2-3 years)"),
        ("references_past_performance_city", "References / Past Performance"),
        ("capability_statement_city", "Capability Statement"),
        ("resumes_key_staff_city", "Resumes of Key Staff"),
        ("certifications_sb_dvbe_dbe_city", "Certifications (SB, DVBE, DBE, etc.)"),
        ("city_vendor_registration", "City Vendor Registration"),
        ("w9_form_city", "W-9 Form"),
        ("insurance_certificates_naming_city", "Insurance Certificates (naming city)"),
        ("city_business_license", "City Business License"),
        ("non_collusion_affidavit_city", "Non-Collusion Affidavit"),
        ("subcontractor_list_construction_city", "Subcontractor List (if construction)"),
        ("eeo_certification_city", "EEO Certification"),
        ("signed_addenda_acknowledgments_city", "Signed Addenda Acknowledgments"),
        ("pricing_sheet_cost_proposal_city", "Pricing Sheet / Cost Proposal"),
    ),
    *_items(
        ChecklistCategory.ALL,
        ("legal_business_name_dba", "Legal Business Name + DBA(s)"),
        ("legal_business_name_value", "Legal Business Name", "text"),
        ("duns_uei_number", "DUNS / UEI Number"),
        ("duns_uei_value", "DUNS / UEI Number Value", "text"),
        ("naics_unspsc_codes", "NAICS / UNSPSC Codes"),
        ("sam_gov_registration", "SAM.gov Registration"),
        ("bonding_capacity_construction", "Bonding Capacity (if construction)"),
        ("project_approach_technical_proposal", "Project Approach / Technical Proposal"),
        ("key_personnel_availability", "Key Personnel Availability"),
        ("pricing_justification_cost_breakdown", "Pricing Justification / Cost Breakdown"),
    ),
]

ITEMS_BY_FIELD: dict[str, ChecklistItem] = {item.field: item for item in CHECKLIST_ITEMS}

CRITICAL_FIELDS = (
    "business_license_state",
    "business_license_county",
    "business_license_city",
    "federal_ein_state",
    "federal_ein_county",
    "federal_ein_city",
    "insurance_certificates_state",
    "insurance_certificates_county",
    "insurance_certificates_city",
    "financial_statements_state",
    "financial_statements_county",
    "financial_statements_city",
    "legal_business_name_dba",
    "duns_uei_number",
    "naics_unspsc_codes",
)


def items_for(category: ChecklistCategory | str) -> list[ChecklistItem]:
    category = ChecklistCategory(category)
    return [item for item in CHECKLIST_ITEMS if item.category == category]


def is_item_complete(checklist: dict[str, Any], item: ChecklistItem) -> bool:
    value = checklist.get(item.field)
    if item.input_type == "boolean":
        return value is True
    return value is not None and str(value).strip() != ""


def _percentage(done: int, total: int) -> int:
    # Half-up rounding, so 62.5 reports as 63
    return int(done * 100 / total + 0.5) if total else 100


# =============================================================================
# Validation
# =============================================================================

def validate_for_jurisdiction(
    checklist: dict[str, Any],
    jurisdiction: ChecklistCategory | str,
) -> dict[str, Any]:
    """
    Grade a checklist against one jurisdiction's items.

    Returns:
        dict with is_complete, missing_items (labels), recommendations,
        completion_percentage (rounded int) and can_apply (>= 80%)

    Example:
        result = validate_for_jurisdiction(row, "State")
        if not result["can_apply"]:
            ...
    """
    jurisdiction = ChecklistCategory(jurisdiction)
    items = items_for(jurisdiction)
    missing = [item.label for item in items if not is_item_complete(checklist, item)]
    percentage = _percentage(len(items) - len(missing), len(items))

    recommendations = []
    if missing:
        recommendations.append(
            f"Complete the {len(missing)} missing {jurisdiction.value.lower()} requirements"
        )
        if len(missing) <= 3:
            recommendations.append(
                "You're almost ready! Complete the remaining items to improve your competitive position."
            )
        else:
            recommendations.append(
                "Focus on completing the most critical items first: Business License, "
                "Insurance Certificates, and Financial Statements."
            )
    else:
        recommendations.append(f"Excellent! All {jurisdiction.value} requirements are complete.")

    return {
        "jurisdiction": jurisdiction.value,
        "is_complete": not missing,
        "missing_items": missing,
        "recommendations": recommendations,
        "completion_percentage": percentage,
        "can_apply": percentage >= APPLY_THRESHOLD,
    }


def validate_for_application(
    checklist: dict[str, Any],
    jurisdictions: Iterable[ChecklistCategory | str],
) -> dict[str, Any]:
    """Grade a checklist across every jurisdiction an application touches."""
    jurisdictions = [ChecklistCategory(j) for j in jurisdictions]
    missing: list[str] = []
    total = 0
    done = 0

    for jurisdiction in jurisdictions:
        result = validate_for_jurisdiction(checklist, jurisdiction)
        missing.extend(result["missing_items"])
        count = len(items_for(jurisdiction))
        total += count
        done += count - len(result["missing_items"])

    percentage = _percentage(done, total)

    recommendations = []
    if missing:
        recommendations.append(
            f"You have {len(missing)} missing requirements across {len(jurisdictions)} jurisdictions"
        )
        if len(missing) <= 5:
            recommendations.append("You're very close to being fully prepared for government contracting!")
        elif len(missing) <= 10:
            recommendations.append("Good progress! Focus on completing the most common requirements first.")
        else:
            recommendations.append(
                "Consider starting with smaller jurisdictions or focusing on your strongest areas first."
            )
    else:
        recommendations.append(
            "Perfect! You're fully prepared for government contracting across all jurisdictions."
        )

    return {
        "jurisdictions": [j.value for j in jurisdictions],
        "is_complete": not missing,
        "missing_items": missing,
        "recommendations": recommendations,
        "completion_percentage": percentage,
        "can_apply": percentage >= APPLY_THRESHOLD,
    }


def critical_items_missing(checklist: dict[str, Any]) -> list[str]:
    """Labels of incomplete critical items, in CRITICAL_FIELDS order."""
    return [
        ITEMS_BY_FIELD[field].label
        for field in CRITICAL_FIELDS
        if not is_item_complete(checklist, ITEMS_BY_FIELD[field])
    ]


def checklist_summary(checklist: dict[str, Any]) -> dict[str, Any]:
    """Completion totals overall and per jurisdiction."""
    by_jurisdiction = {category.value: 0 for category in ChecklistCategory}
    completed = 0
    for item in CHECKLIST_ITEMS:
        if is_item_complete(checklist, item):
            completed += 1
            by_jurisdiction[item.category.value] += 1

    return {
        "total_items": len(CHECKLIST_ITEMS),
        "completed_items": completed,
        "completion_percentage": _percentage(completed, len(CHECKLIST_ITEMS)),
        "by_jurisdiction": by_jurisdiction,
        "critical_items_missing": len(critical_items_missing(checklist)),
    }


def boolean_fields() -> set[str]:
    return {item.field for item in CHECKLIST_ITEMS if item.input_type == "boolean"}
