"""Tests for Task and validation result models."""

import pytest
from src.models.task import Task, TaskContact
from src.models.validation import ContactInfo, ValidationResult
from tests.fixtures.tasks import task_with_relations


@pytest.mark.unit
def test_task_defaults():
    """Test task creation with defaults."""
    task = Task(id="T1", title="Order appraisal")

    assert task.status == "To Do"
    assert task.priority == "Medium"
    assert task.completion_requirement_type is None
    assert task.is_done is False


@pytest.mark.unit
def test_task_from_joined_row(borrower_lead, buyer_agent):
    """Test that a joined row populates lead, borrower and agents."""
    row = task_with_relations("log_call_buyer_agent", lead=borrower_lead, buyer_agent=buyer_agent)
    row["assignee"] = {"id": "U1"}  # extra joins are ignored

    task = Task.model_validate(row)

    assert task.lead.buyer_agent_id == "A1"
    assert task.borrower.full_name == "Pat Morgan"
    assert task.buyer_agent.phone == "555-0101"
    assert task.created_at.year == 2024


@pytest.mark.unit
def test_agent_id_falls_back_to_borrower():
    """Test agent foreign key resolution prefers the lead, then the borrower."""
    task = Task(
        lead=TaskContact(id="L1"),
        borrower=TaskContact(id="L1", listing_agent_id="A9"),
    )

    assert task.agent_id("listing_agent_id") == "A9"
    assert task.agent_id("buyer_agent_id") is None


@pytest.mark.unit
def test_borrower_phone_prefers_lead():
    """Test borrower phone comes from the lead before the borrower record."""
    task = Task(lead=TaskContact(phone="555-1111"), borrower=TaskContact(phone="555-2222"))
    assert task.borrower_phone() == "555-1111"

    task = Task(lead=TaskContact(), borrower=TaskContact(phone="555-2222"))
    assert task.borrower_phone() == "555-2222"


@pytest.mark.unit
def test_contact_full_name_skips_missing_parts():
    """Test full name never renders placeholders for missing parts."""
    assert TaskContact(first_name="Pat").full_name == "Pat"
    assert TaskContact().full_name == ""


@pytest.mark.unit
def test_validation_result_payload_uses_camel_case():
    """Test the JSON payload keeps the camelCase contract and drops empty keys."""
    result = ValidationResult(
        can_complete=False,
        message="You must add a note for the borrower before completing this task",
        missing_requirement="log_note_borrower",
        contact_info=ContactInfo(name="Borrower", type="borrower", id="L1"),
    )

    assert result.to_payload() == {
        "canComplete": False,
        "message": "You must add a note for the borrower before completing this task",
        "missingRequirement": "log_note_borrower",
        "contactInfo": {"name": "Borrower", "type": "borrower", "id": "L1"},
    }
    assert ValidationResult.allowed().to_payload() == {"canComplete": True}


@pytest.mark.unit
def test_validation_result_accepts_camel_case_input():
    """Test results round in from camelCase JSON."""
    result = ValidationResult.model_validate({"canComplete": True})
    assert result.can_complete is True


@pytest.mark.unit
def test_contact_info_rejects_unknown_type():
    """Test contact type is restricted to the three roles."""
    with pytest.raises(ValueError):
        ContactInfo(name="Someone", type="lender")
