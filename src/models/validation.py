"""Task completion validation result models."""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ContactType = Literal["buyer_agent", "listing_agent", "borrower"]
OutcomeReason = Literal["evidence", "vacuous", "missing", "store_error"]


class ContactInfo(BaseModel):
    """Party to contact in order to satisfy a requirement."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., description="Contact name, or a role label when the record is not joined")
    phone: Optional[str] = Field(None, description="Phone number from whichever joined record has it")
    type: ContactType = Field(..., description="Contact role")
    id: Optional[str] = Field(None, description="Agent or lead ID")


class ValidationResult(BaseModel):
    """Outcome of a task completion attempt."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    can_complete: bool = Field(..., description="Whether the task may transition to Done")
    message: Optional[str] = Field(None, description="Why completion is denied")
    missing_requirement: Optional[str] = Field(
        None,
        description="Echo of the descriptor that blocked completion"
    )
    contact_info: Optional[ContactInfo] = Field(None, description="Remediation target")

    @classmethod
    def allowed(cls) -> "ValidationResult":
        return cls(can_complete=True)

    def to_payload(self) -> dict:
        """JSON-ready camelCase payload without empty keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ResolverOutcome(BaseModel):
    """What a prerequisite resolver found."""
    satisfied: bool
    reason: OutcomeReason
    subject_id: Optional[str] = Field(None, description="Agent or lead ID the evidence was looked up for")

    @classmethod
    def vacuous(cls) -> "ResolverOutcome":
        return cls(satisfied=True, reason="vacuous")
