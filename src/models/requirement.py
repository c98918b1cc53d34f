"""Task completion requirement models and descriptor grammar."""

import re
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from src.utils.errors import RequirementParseError
from src.utils.fields import field_label, value_label


class RequirementKind(str, Enum):
    """Completion requirement kinds."""
    NONE = "none"
    LOG_CALL_BUYER_AGENT = "log_call_buyer_agent"
    LOG_CALL_LISTING_AGENT = "log_call_listing_agent"
    LOG_CALL_BORROWER = "log_call_borrower"
    LOG_NOTE_BORROWER = "log_note_borrower"
    LOG_ANY_ACTIVITY = "log_any_activity"
    FIELD_POPULATED = "field_populated"
    FIELD_VALUE = "field_value"
    STATUS_CHANGE = "status_change"
    COMPOUND = "compound"
    AUTO_COMPLETE_ONLY = "auto_complete_only"
    UNRECOGNIZED = "unrecognized"


CALL_KINDS = frozenset({
    RequirementKind.LOG_CALL_BUYER_AGENT,
    RequirementKind.LOG_CALL_LISTING_AGENT,
    RequirementKind.LOG_CALL_BORROWER,
})

ACTIVITY_KINDS = CALL_KINDS | {
    RequirementKind.LOG_NOTE_BORROWER,
    RequirementKind.LOG_ANY_ACTIVITY,
}

FIELD_KINDS = frozenset({
    RequirementKind.FIELD_POPULATED,
    RequirementKind.FIELD_VALUE,
    RequirementKind.STATUS_CHANGE,
})

# Kinds allowed inside a compound descriptor
EVALUABLE_KINDS = ACTIVITY_KINDS | FIELD_KINDS

_EXACT_KINDS = {
    "log_call_buyer_agent": RequirementKind.LOG_CALL_BUYER_AGENT,
    "log_call_listing_agent": RequirementKind.LOG_CALL_LISTING_AGENT,
    "log_call_borrower": RequirementKind.LOG_CALL_BORROWER,
    "log_note_borrower": RequirementKind.LOG_NOTE_BORROWER,
    "log_any_activity": RequirementKind.LOG_ANY_ACTIVITY,
    "auto_complete_only": RequirementKind.AUTO_COMPLETE_ONLY,
    "manual_completion_blocked": RequirementKind.AUTO_COMPLETE_ONLY,
}

_FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

COMPOUND_SEPARATOR = "|"


class Requirement(BaseModel):
    """Parsed completion requirement (tagged by kind)."""
    model_config = ConfigDict(frozen=True)

    kind: RequirementKind = Field(..., description="Requirement kind")
    descriptor: Optional[str] = Field(None, description="Raw descriptor string as stored on the task")
    field_name: Optional[str] = Field(None, description="Lead column for field kinds")
    allowed_values: tuple[str, ...] = Field(
        default=(),
        description="Declared allow-list for field_value/status_change (never alias-expanded)"
    )
    parts: tuple["Requirement", ...] = Field(default=(), description="Sub-requirements for compound kind")

    def model_post_init(self, __context: Any) -> None:
        """Validate that the payload matches the kind."""
        if self.kind in FIELD_KINDS:
            if not self.field_name:
                raise ValueError(f"{self.kind.value} requires a field_name")
        elif self.field_name is not None:
            raise ValueError(f"{self.kind.value} does not take a field_name")

        needs_values = self.kind in (RequirementKind.FIELD_VALUE, RequirementKind.STATUS_CHANGE)
        if needs_values and not self.allowed_values:
            raise ValueError(f"{self.kind.value} requires allowed_values")
        if not needs_values and self.allowed_values:
            raise ValueError(f"{self.kind.value} does not take allowed_values")

        if self.kind == RequirementKind.COMPOUND:
            if not self.parts:
                raise ValueError("compound requires at least one part")
        elif self.parts:
            raise ValueError(f"{self.kind.value} does not take parts")

    @property
    def value_labels(self) -> list[str]:
        """Declared allow-list as shown to users (stage ids become stage names)."""
        return list(dict.fromkeys(value_label(self.field_name, value) for value in self.allowed_values))

    @property
    def is_gated(self) -> bool:
        """Whether this requirement can block completion."""
        return self.kind != RequirementKind.NONE


Requirement.model_rebuild()


def _parse_field_name(descriptor: str, field_name: str) -> str:
    field_name = field_name.strip()
    if not field_name:
        raise RequirementParseError(descriptor, "missing field name")
    if not _FIELD_NAME_PATTERN.match(field_name):
        raise RequirementParseError(descriptor, f"invalid field name '{field_name}'")
    return field_name


def _parse_allow_list(descriptor: str, payload: str) -> tuple[str, tuple[str, ...]]:
    field_part, sep, values_part = payload.partition("=")
    if not sep:
        raise RequirementParseError(descriptor, "expected '<field>=<value>[,<value>...]'")
    field_name = _parse_field_name(descriptor, field_part)
    values = tuple(value.strip() for value in values_part.split(",") if value.strip())
    if not values:
        raise RequirementParseError(descriptor, "allow-list is empty")
    return field_name, values


def parse_requirement(descriptor: Optional[str]) -> Requirement:
    """
    Parse a completion requirement descriptor into a Requirement.

    Missing, blank and "none" descriptors parse to the NONE kind. Strings
    that match no known shape parse to UNRECOGNIZED. Known parameterized
    kinds with a malformed payload raise RequirementParseError.
    """
    if descriptor is None:
        return Requirement(kind=RequirementKind.NONE)

    raw = descriptor.strip()
    if not raw or raw == RequirementKind.NONE.value:
        return Requirement(kind=RequirementKind.NONE, descriptor=descriptor)

    if raw in _EXACT_KINDS:
        return Requirement(kind=_EXACT_KINDS[raw], descriptor=raw)

    prefix, sep, payload = raw.partition(":")
    if not sep:
        return Requirement(kind=RequirementKind.UNRECOGNIZED, descriptor=raw)

    # Parse errors carry the descriptor exactly as stored on the task
    if prefix == RequirementKind.FIELD_POPULATED.value:
        return Requirement(
            kind=RequirementKind.FIELD_POPULATED,
            descriptor=raw,
            field_name=_parse_field_name(descriptor, payload),
        )

    if prefix in (RequirementKind.FIELD_VALUE.value, RequirementKind.STATUS_CHANGE.value):
        field_name, values = _parse_allow_list(descriptor, payload)
        return Requirement(
            kind=RequirementKind(prefix),
            descriptor=raw,
            field_name=field_name,
            allowed_values=values,
        )

    if prefix == RequirementKind.COMPOUND.value:
        parts = []
        for chunk in payload.split(COMPOUND_SEPARATOR):
            try:
                part = parse_requirement(chunk)
            except RequirementParseError as e:
                raise RequirementParseError(descriptor, f"compound part '{chunk.strip()}': {e.reason}") from e
            if part.kind not in EVALUABLE_KINDS:
                raise RequirementParseError(
                    descriptor, f"compound part '{chunk.strip()}' is not an evaluable requirement"
                )
            parts.append(part)
        return Requirement(kind=RequirementKind.COMPOUND, descriptor=raw, parts=tuple(parts))

    return Requirement(kind=RequirementKind.UNRECOGNIZED, descriptor=raw)


# Labels for the descriptors offered in the task automation editor
REQUIREMENT_LABELS: dict[str, str] = {
    "log_call_borrower": "Log call with borrower",
    "log_call_buyer_agent": "Log call with buyer's agent",
    "log_call_listing_agent": "Log call with listing agent",
    "log_note_borrower": "Log note for borrower",
    "field_populated:appr_date_time": "Appraisal date/time populated",
    "field_populated:lock_expiration_date": "Lock expiration date populated",
    "field_value:package_status=Final": "Package Status = Final",
    "field_value:title_status=Received": "Title Status = Received",
    "field_value:loan_status=AWC": "Loan Status = AWC",
    "field_value:loan_status=SUB": "Loan Status = SUB",
    "field_value:disclosure_status=Ordered,Sent,Signed": "Disclosure Status = Ordered/Sent/Signed",
    "field_value:epo_status=Sent": "EPO Status = Sent",
}

_KIND_LABELS = {
    RequirementKind.LOG_ANY_ACTIVITY: "Log any activity for borrower",
    RequirementKind.AUTO_COMPLETE_ONLY: "Completed automatically",
}


def describe_requirement(requirement: Requirement) -> str:
    """Human-readable label for a parsed requirement."""
    if requirement.kind == RequirementKind.NONE:
        return "—"
    if requirement.descriptor in REQUIREMENT_LABELS:
        return REQUIREMENT_LABELS[requirement.descriptor]
    if requirement.kind in _KIND_LABELS:
        return _KIND_LABELS[requirement.kind]

    if requirement.kind == RequirementKind.FIELD_POPULATED:
        return f"{field_label(requirement.field_name)} populated"
    if requirement.kind == RequirementKind.FIELD_VALUE:
        return f"{field_label(requirement.field_name)} = {'/'.join(requirement.allowed_values)}"
    if requirement.kind == RequirementKind.STATUS_CHANGE:
        return f"{field_label(requirement.field_name)} changed to {'/'.join(requirement.allowed_values)}"
    if requirement.kind == RequirementKind.COMPOUND:
        return " + ".join(describe_requirement(part) for part in requirement.parts)

    return requirement.descriptor or ""


def get_completion_requirement_label(descriptor: Optional[str]) -> str:
    """Human-readable label for a stored descriptor string."""
    try:
        requirement = parse_requirement(descriptor)
    except RequirementParseError:
        return descriptor or ""
    return describe_requirement(requirement)
