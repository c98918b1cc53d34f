"""Tests for the remediation view contract."""

import pytest

from src.models.validation import ContactInfo, ValidationResult
from src.services.remediation import (
    RemediationAction,
    RemediationKind,
    build_remediation_view,
    classify_missing_requirement,
)
from tests.utils.assertions import assert_never_forces_completion


def denial(missing_requirement: str, contact_info: ContactInfo = None) -> ValidationResult:
    return ValidationResult(
        can_complete=False,
        message="Blocked",
        missing_requirement=missing_requirement,
        contact_info=contact_info,
    )


@pytest.mark.unit
@pytest.mark.parametrize("descriptor,kind", [
    ("log_call_buyer_agent", RemediationKind.CALL_REQUIREMENT),
    ("log_call_listing_agent", RemediationKind.CALL_REQUIREMENT),
    ("log_call_borrower", RemediationKind.CALL_REQUIREMENT),
    ("log_note_borrower", RemediationKind.ANY_ACTIVITY_REQUIREMENT),
    ("log_any_activity", RemediationKind.ANY_ACTIVITY_REQUIREMENT),
    ("field_populated:appr_date_time", RemediationKind.FIELD_REQUIREMENT),
    ("field_value:loan_status=SUB", RemediationKind.FIELD_REQUIREMENT),
    ("status_change:pipeline_stage_id=S1", RemediationKind.FIELD_REQUIREMENT),
    ("compound:log_call_borrower|field_populated:appr_date_time", RemediationKind.COMPOUND_REQUIREMENT),
    ("auto_complete_only", RemediationKind.AUTO_COMPLETE_ONLY),
    ("manual_completion_blocked", RemediationKind.AUTO_COMPLETE_ONLY),
    ("log_call_appraiser", RemediationKind.UNRECOGNIZED_REQUIREMENT),
    ("field_value:loan_status", RemediationKind.UNRECOGNIZED_REQUIREMENT),
])
def test_classify_missing_requirement(descriptor, kind):
    """Test descriptor classification for presentation."""
    assert classify_missing_requirement(descriptor) == kind


@pytest.mark.unit
def test_call_view_offers_log_call_with_contact():
    """Test call requirements show the contact and a Log Call Now action."""
    contact = ContactInfo(name="Dana Reyes", phone="555-0101", type="buyer_agent", id="A1")

    view = build_remediation_view(denial("log_call_buyer_agent", contact))

    assert view.kind == RemediationKind.CALL_REQUIREMENT
    assert view.contact_info == contact
    assert view.action_types == [RemediationAction.DISMISS, RemediationAction.LOG_CALL]
    assert view.actions[-1].label == "Log Call Now"
    assert view.actions[-1].primary is True


@pytest.mark.unit
def test_activity_view_opens_lead():
    """Test note/any-activity requirements open the lead to log activity."""
    contact = ContactInfo(name="Borrower", type="borrower", id="L1")

    view = build_remediation_view(denial("log_note_borrower", contact))

    assert view.kind == RemediationKind.ANY_ACTIVITY_REQUIREMENT
    assert view.contact_info == contact
    assert view.actions[-1].action == RemediationAction.OPEN_LEAD_ACTIVITY
    assert view.actions[-1].label == "Open Lead to Log Activity"


@pytest.mark.unit
@pytest.mark.parametrize("descriptor", [
    "field_value:package_status=Complete,Waived",
    "compound:log_call_borrower|field_populated:appr_date_time",
])
def test_field_and_compound_views_open_lead(descriptor):
    """Test field and compound requirements show the update notice and Open Lead."""
    view = build_remediation_view(denial(descriptor))

    assert "Update the required field(s) on the lead" in view.notice
    assert view.action_types == [RemediationAction.DISMISS, RemediationAction.OPEN_LEAD]
    assert view.contact_info is None


@pytest.mark.unit
@pytest.mark.parametrize("descriptor", ["auto_complete_only", "manual_completion_blocked", "log_call_appraiser"])
def test_informational_views_only_dismiss(descriptor):
    """Test auto-complete-only and unknown requirements never offer a way to complete."""
    view = build_remediation_view(denial(descriptor))

    assert_never_forces_completion(view)
    assert view.notice


@pytest.mark.unit
def test_auto_complete_view_title():
    """Test the auto-complete view is informational."""
    view = build_remediation_view(denial("auto_complete_only"))

    assert view.title == "Task Completes Automatically"
    assert view.actions[0].label == "Close"


@pytest.mark.unit
def test_allowed_result_has_no_remediation():
    """Test building a view for an allowed result is an error."""
    with pytest.raises(ValueError, match="only available for denied"):
        build_remediation_view(ValidationResult.allowed())


@pytest.mark.unit
def test_view_serializes_for_api():
    """Test the view dumps to plain JSON types."""
    view = build_remediation_view(denial("log_call_borrower"))

    dumped = view.model_dump(mode="json")

    assert dumped["kind"] == "call_requirement"
    assert dumped["actions"][1] == {"action": "log_call", "label": "Log Call Now", "primary": True}
