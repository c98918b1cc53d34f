"""Lead status-change and pipeline-stage guard rules.

A status value (e.g. disclosure_status -> Sent) or a pipeline stage can only
be set once the lead carries the fields or uploaded files it depends on.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from src.utils.fields import is_populated


class StatusChangeRule(BaseModel):
    requires: tuple[str, ...] = Field(..., description="Lead fields that must be populated")
    message: str
    action_label: Optional[str] = None
    action_type: Optional[Literal["upload_file", "set_field"]] = None


class PipelineStageRule(BaseModel):
    requires: tuple[str, ...]
    message: str
    action_label: Optional[str] = None
    bypass_field: Optional[str] = Field(None, description="Lead field whose value can waive the rule")
    bypass_values: tuple[str, ...] = ()


def _upload(requires: str, message: str, action_label: str) -> StatusChangeRule:
    return StatusChangeRule(requires=(requires,), message=message, action_label=action_label, action_type="upload_file")


def _set_field(requires: tuple[str, ...], message: str, action_label: str) -> StatusChangeRule:
    return StatusChangeRule(requires=requires, message=message, action_label=action_label, action_type="set_field")


STATUS_CHANGE_RULES: dict[str, dict[str, StatusChangeRule]] = {
    "disclosure_status": {
        "Ordered": _upload(
            "disc_file",
            "You must upload a Disclosure document before setting status to Ordered",
            "Upload Disclosure Package",
        ),
        "Sent": _upload(
            "disc_file",
            "You must upload a Disclosure document before setting status to Sent",
            "Upload Disclosure Package",
        ),
        "Signed": _upload(
            "disc_file",
            "Upload the signed disclosures to change status to Signed",
            "Upload Signed Disclosures",
        ),
    },
    "loan_status": {
        "AWC": _upload(
            "initial_approval_file",
            "Upload the initial approval to change status to AWC",
            "Upload Initial Approval",
        ),
    },
    "appraisal_status": {
        "Scheduled": _set_field(
            ("appr_date_time",),
            "Set the appraisal date/time to change status to Scheduled",
            "Set Appraisal Date/Time",
        ),
        "Received": _upload(
            "appraisal_file",
            "Upload the appraisal report to change status to Received",
            "Upload Appraisal Report",
        ),
    },
    "title_status": {
        "Ordered": _set_field(
            ("title_eta",),
            "Enter a Title ETA before setting status to Ordered",
            "Set Title ETA",
        ),
        "Received": _upload(
            "title_file",
            "Upload the title work to change status to Received",
            "Upload Title File",
        ),
    },
    "hoi_status": {
        "Received": _upload(
            "insurance_policy_file",
            "Upload the HOI policy to change status to Received",
            "Upload HOI Policy",
        ),
    },
    "insurance_status": {
        "Received": _upload(
            "insurance_file",
            "Upload the HOI policy to change status to Received",
            "Upload HOI Policy",
        ),
    },
    "package_status": {
        "Final": _upload(
            "fcp_file",
            "Upload the final closing package to change status to Final",
            "Upload Final Closing Package",
        ),
    },
    "condo_status": {
        "Ordered": _set_field(
            ("condo_ordered_date", "condo_eta"),
            "Enter Order Date and ETA before setting status to Ordered",
            "Set Order Details",
        ),
        "Approved": _upload(
            "condo_file",
            "Upload condo documents to change status to Approved",
            "Upload Condo Documents",
        ),
    },
}

PIPELINE_STAGE_RULES: dict[str, PipelineStageRule] = {
    "pending-app": PipelineStageRule(
        requires=("lead_strength", "likely_to_apply"),
        message="Please update Lead Strength and Likely to Apply before moving to Pending App",
        action_label="Update Lead Details",
    ),
    "active": PipelineStageRule(
        requires=("contract_file",),
        message="Please upload a contract before moving to Active pipeline",
        action_label="Upload Contract",
        bypass_field="pr_type",
        bypass_values=("R", "HELOC"),
    ),
}


class StatusChangeValidation(BaseModel):
    is_valid: bool
    rule: Optional[StatusChangeRule] = None
    field_name: Optional[str] = None
    new_value: Optional[str] = None


class PipelineValidation(BaseModel):
    is_valid: bool
    rule: Optional[PipelineStageRule] = None
    stage_key: Optional[str] = None
    missing_fields: list[str] = Field(default_factory=list)


def validate_status_change(field_name: str, new_value: str, lead: dict) -> StatusChangeValidation:
    """Check that a lead may take a new status value."""
    rule = STATUS_CHANGE_RULES.get(field_name, {}).get(new_value)
    if rule is None:
        return StatusChangeValidation(is_valid=True)

    for required in rule.requires:
        if not is_populated(lead.get(required)):
            return StatusChangeValidation(
                is_valid=False,
                rule=rule,
                field_name=field_name,
                new_value=new_value,
            )

    return StatusChangeValidation(is_valid=True)


def validate_pipeline_stage_change(
    stage_key: str,
    lead: dict,
    bypass_refinance: bool = False,
) -> PipelineValidation:
    """Check that a lead may move into a pipeline stage."""
    rule = PIPELINE_STAGE_RULES.get(stage_key)
    if rule is None:
        return PipelineValidation(is_valid=True)

    # Refinances skip the contract requirement
    if rule.bypass_field and rule.bypass_values:
        if bypass_refinance or lead.get(rule.bypass_field) in rule.bypass_values:
            return PipelineValidation(is_valid=True)

    missing_fields = [field for field in rule.requires if not is_populated(lead.get(field))]
    if missing_fields:
        return PipelineValidation(
            is_valid=False,
            rule=rule,
            stage_key=stage_key,
            missing_fields=missing_fields,
        )

    return PipelineValidation(is_valid=True)
