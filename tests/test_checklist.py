# =============================================================================
# tests/test_checklist.py - Bidding Checklist Tests
# =============================================================================
# Tests for the checklist catalog and the pure grading functions.
# =============================================================================

import pytest

from core.checklist import (
    APPLY_THRESHOLD,
    CHECKLIST_ITEMS,
    CRITICAL_FIELDS,
    ITEMS_BY_FIELD,
    ChecklistCategory,
    boolean_fields,
    checklist_summary,
    critical_items_missing,
    is_item_complete,
    items_for,
    validate_for_application,
    validate_for_jurisdiction,
)


def completed(*categories: ChecklistCategory, text: str = "ABC-123") -> dict:
    """A checklist row with every item in `categories` filled in."""
    row = {}
    for category in categories:
        for item in items_for(category):
            row[item.field] = True if item.input_type == "boolean" else text
    return row


class TestCatalog:

    def test_item_counts(self):
        assert len(items_for("State")) == 21
        assert len(items_for(ChecklistCategory.COUNTY)) == 17
        assert len(items_for(ChecklistCategory.CITY)) == 19
        assert len(items_for(ChecklistCategory.ALL)) == 10
        assert len(CHECKLIST_ITEMS) == 67

    def test_fields_are_unique(self):
        assert len(ITEMS_BY_FIELD) == len(CHECKLIST_ITEMS)

    def test_critical_fields_exist(self):
        assert all(field in ITEMS_BY_FIELD for field in CRITICAL_FIELDS)

    def test_text_items_are_not_boolean(self):
        assert "federal_ein_value_state" not in boolean_fields()
        assert "federal_ein_state" in boolean_fields()

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            items_for("Federal")


class TestItemCompletion:

    def test_boolean_requires_true(self):
        item = ITEMS_BY_FIELD["business_license_state"]

        assert is_item_complete({"business_license_state": True}, item)
        assert not is_item_complete({"business_license_state": "yes"}, item)
        assert not is_item_complete({}, item)

    def test_text_requires_non_blank(self):
        item = ITEMS_BY_FIELD["cal_eprocure_number"]

        assert is_item_complete({"cal_eprocure_number": "12345"}, item)
        assert not is_item_complete({"cal_eprocure_number": "   "}, item)
        assert not is_item_complete({"cal_eprocure_number": None}, item)


class TestValidateForJurisdiction:

    def test_complete_jurisdiction(self):
        result = validate_for_jurisdiction(completed(ChecklistCategory.CITY), "City")

        assert result["is_complete"]
        assert result["missing_items"] == []
        assert result["completion_percentage"] == 100
        assert result["can_apply"]
        assert result["recommendations"] == ["Excellent! All City requirements are complete."]

    def test_empty_jurisdiction(self):
        result = validate_for_jurisdiction({}, ChecklistCategory.ALL)

        assert not result["is_complete"]
        assert len(result["missing_items"]) == 10
        assert result["completion_percentage"] == 0
        assert not result["can_apply"]
        assert result["recommendations"][0] == "Complete the 10 missing all requirements"

    def test_almost_ready(self):
        row = completed(ChecklistCategory.ALL)
        row["sam_gov_registration"] = False
        row["duns_uei_value"] = ""

        result = validate_for_jurisdiction(row, "All")

        assert result["completion_percentage"] == 80
        assert result["can_apply"]
        assert "You're almost ready!" in result["recommendations"][1]

    def test_threshold(self):
        assert APPLY_THRESHOLD == 80


class TestValidateForApplication:

    def test_combines_jurisdictions(self):
        row = completed(ChecklistCategory.CITY)

        result = validate_for_application(row, ["City", "All"])

        assert result["jurisdictions"] == ["City", "All"]
        assert len(result["missing_items"]) == 10
        # 19 of 29 items
        assert result["completion_percentage"] == 66
        assert not result["can_apply"]
        assert "Good progress!" in result["recommendations"][1]

    def test_fully_prepared(self):
        row = completed(*ChecklistCategory)

        result = validate_for_application(row, list(ChecklistCategory))

        assert result["is_complete"]
        assert result["recommendations"][0].startswith("Perfect!")


class TestSummary:

    def test_empty_checklist(self):
        summary = checklist_summary({})

        assert summary["total_items"] == 67
        assert summary["completed_items"] == 0
        assert summary["completion_percentage"] == 0
        assert summary["critical_items_missing"] == len(CRITICAL_FIELDS)

    def test_partial_checklist(self):
        row = completed(ChecklistCategory.STATE)

        summary = checklist_summary(row)

        assert summary["completed_items"] == 21
        assert summary["by_jurisdiction"] == {"State": 21, "County": 0, "City": 0, "All": 0}
        # 21 / 67 = 31.3%
        assert summary["completion_percentage"] == 31

    def test_critical_labels_in_order(self):
        row = completed(ChecklistCategory.STATE, ChecklistCategory.COUNTY, ChecklistCategory.CITY)

        assert critical_items_missing(row) == [
            "Legal Business Name + DBA(s)",
            "DUNS / UEI Number",
            "NAICS / UNSPSC Codes",
        ]
