"""Remediation view for a blocked task completion.

Maps a denied ValidationResult to what the task screens render: which
notice to show, who to contact, and which actions to offer. Tasks that
only complete automatically never get an action that could force them
to Done.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from src.models.requirement import (
    CALL_KINDS,
    FIELD_KINDS,
    RequirementKind,
    parse_requirement,
)
from src.models.validation import ContactInfo, ValidationResult
from src.utils.errors import RequirementParseError


class RemediationKind(str, Enum):
    """Presentation class of a missing requirement."""
    FIELD_REQUIREMENT = "field_requirement"
    CALL_REQUIREMENT = "call_requirement"
    ANY_ACTIVITY_REQUIREMENT = "any_activity_requirement"
    AUTO_COMPLETE_ONLY = "auto_complete_only"
    COMPOUND_REQUIREMENT = "compound_requirement"
    UNRECOGNIZED_REQUIREMENT = "unrecognized_requirement"


class RemediationAction(str, Enum):
    LOG_CALL = "log_call"
    OPEN_LEAD_ACTIVITY = "open_lead_activity"
    OPEN_LEAD = "open_lead"
    DISMISS = "dismiss"


class ActionButton(BaseModel):
    action: RemediationAction
    label: str
    primary: bool = False


class RemediationView(BaseModel):
    """Render instructions for the requirement modal."""
    kind: RemediationKind
    title: str
    message: str
    notice: Optional[str] = Field(None, description="Secondary guidance below the message")
    contact_info: Optional[ContactInfo] = None
    actions: list[ActionButton] = Field(default_factory=list)

    @property
    def action_types(self) -> list[RemediationAction]:
        return [button.action for button in self.actions]


FIELD_NOTICE = "Update the required field(s) on the lead, then complete the task."
AUTO_COMPLETE_NOTICE = "No action is needed. This task will be marked Done automatically."
UNRECOGNIZED_NOTICE = "An administrator needs to fix this task's completion requirement."

_CANCEL = ActionButton(action=RemediationAction.DISMISS, label="Cancel")
_CLOSE = ActionButton(action=RemediationAction.DISMISS, label="Close", primary=True)


def classify_missing_requirement(descriptor: Optional[str]) -> RemediationKind:
    """Classify a missingRequirement descriptor for presentation."""
    try:
        requirement = parse_requirement(descriptor)
    except RequirementParseError:
        return RemediationKind.UNRECOGNIZED_REQUIREMENT

    if requirement.kind in CALL_KINDS:
        return RemediationKind.CALL_REQUIREMENT
    if requirement.kind in (RequirementKind.LOG_NOTE_BORROWER, RequirementKind.LOG_ANY_ACTIVITY):
        return RemediationKind.ANY_ACTIVITY_REQUIREMENT
    if requirement.kind in FIELD_KINDS:
        return RemediationKind.FIELD_REQUIREMENT
    if requirement.kind == RequirementKind.COMPOUND:
        return RemediationKind.COMPOUND_REQUIREMENT
    if requirement.kind == RequirementKind.AUTO_COMPLETE_ONLY:
        return RemediationKind.AUTO_COMPLETE_ONLY
    return RemediationKind.UNRECOGNIZED_REQUIREMENT


def build_remediation_view(result: ValidationResult) -> RemediationView:
    """Build the modal contents for a denied completion."""
    if result.can_complete:
        raise ValueError("Remediation is only available for denied completions")

    kind = classify_missing_requirement(result.missing_requirement)
    message = result.message or "This task cannot be completed yet"

    if kind == RemediationKind.CALL_REQUIREMENT:
        return RemediationView(
            kind=kind,
            title="Cannot Complete Task",
            message=message,
            contact_info=result.contact_info,
            actions=[
                _CANCEL,
                ActionButton(action=RemediationAction.LOG_CALL, label="Log Call Now", primary=True),
            ],
        )

    if kind == RemediationKind.ANY_ACTIVITY_REQUIREMENT:
        return RemediationView(
            kind=kind,
            title="Cannot Complete Task",
            message=message,
            contact_info=result.contact_info,
            actions=[
                _CANCEL,
                ActionButton(
                    action=RemediationAction.OPEN_LEAD_ACTIVITY,
                    label="Open Lead to Log Activity",
                    primary=True,
                ),
            ],
        )

    if kind in (RemediationKind.FIELD_REQUIREMENT, RemediationKind.COMPOUND_REQUIREMENT):
        return RemediationView(
            kind=kind,
            title="Cannot Complete Task",
            message=message,
            notice=FIELD_NOTICE,
            actions=[
                _CANCEL,
                ActionButton(action=RemediationAction.OPEN_LEAD, label="Open Lead", primary=True),
            ],
        )

    if kind == RemediationKind.AUTO_COMPLETE_ONLY:
        return RemediationView(
            kind=kind,
            title="Task Completes Automatically",
            message=message,
            notice=AUTO_COMPLETE_NOTICE,
            actions=[_CLOSE],
        )

    return RemediationView(
        kind=kind,
        title="Cannot Complete Task",
        message=message,
        notice=UNRECOGNIZED_NOTICE,
        actions=[_CLOSE],
    )
