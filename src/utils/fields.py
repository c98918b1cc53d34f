"""Lead field display labels and value predicates."""

from typing import Any

FIELD_LABELS: dict[str, str] = {
    "appr_date_time": "Appraisal Date/Time",
    "lock_expiration_date": "Lock Expiration Date",
    "package_status": "Package Status",
    "title_status": "Title Status",
    "title_eta": "Title ETA",
    "loan_status": "Loan Status",
    "disclosure_status": "Disclosure Status",
    "epo_status": "EPO Status",
    "appraisal_status": "Appraisal Status",
    "hoi_status": "HOI Status",
    "insurance_status": "Insurance Status",
    "condo_status": "Condo Status",
    "condo_ordered_date": "Condo Order Date",
    "condo_eta": "Condo ETA",
    "pipeline_stage_id": "Pipeline Stage",
    "lead_strength": "Lead Strength",
    "likely_to_apply": "Likely to Apply",
    "pr_type": "Purchase/Refinance Type",
}


# Lead columns that store ids; values are shown by name
PIPELINE_STAGE_NAMES: dict[str, str] = {
    "44d74bfb-c4f3-4f7d-a69e-e47ac67a5945": "Pending App",
    "a4e162e0-5421-4d17-8ad5-4b1195bbc995": "Screening",
    "09162eec-d2b2-48e5-86d0-9e66ee8b2af7": "Pre-Qualified",
    "3cbf38ff-752e-4163-a9a3-1757499b4945": "Pre-Approved",
    "76eb2e82-e1d9-4f2d-a57d-2120a25696db": "Active",
    "acdfc6ba-7cbc-47af-a8c6-380d77aef6dd": "Past Clients",
}

VALUE_LABELS: dict[str, dict[str, str]] = {
    "pipeline_stage_id": PIPELINE_STAGE_NAMES,
}


def value_label(field_name: str, value: str) -> str:
    """Display form of a field value; id-valued fields show a name, or a generic label when unknown."""
    names = VALUE_LABELS.get(field_name)
    if names is None:
        return value
    return names.get(value, f"the required {field_label(field_name).lower()}")


def field_label(field_name: str) -> str:
    """Human-readable label for a lead column."""
    if field_name in FIELD_LABELS:
        return FIELD_LABELS[field_name]
    return " ".join(part.capitalize() for part in field_name.split("_") if part)


def is_populated(value: Any) -> bool:
    """
    Whether a lead field holds a value.

    Only None and blank strings count as empty. Zero and False are
    legitimate stored values and count as populated.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True
