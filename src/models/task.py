"""Task models."""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

TASK_STATUS_DONE = "Done"


class TaskContact(BaseModel):
    """Joined lead, borrower or agent record on a task."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    buyer_agent_id: Optional[str] = Field(None, description="Buyer's agent ID (leads only)")
    listing_agent_id: Optional[str] = Field(None, description="Listing agent ID (leads only)")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Task(BaseModel):
    """Borrower task with its joined relations."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    title: str = Field(default="", description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: str = Field(
        default="To Do",
        description="Status: To Do, In Progress, Done, Working on it, Need help"
    )
    priority: str = Field(default="Medium", description="Priority: Low, Medium, High, Critical")
    borrower_id: Optional[str] = Field(None, description="Lead ID the task belongs to")
    assignee_id: Optional[str] = Field(None, description="Assigned user ID")
    completion_requirement_type: Optional[str] = Field(
        None,
        description="Completion requirement descriptor (e.g. log_call_borrower, field_value:loan_status=SUB)"
    )
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    lead: Optional[TaskContact] = None
    borrower: Optional[TaskContact] = None
    buyer_agent: Optional[TaskContact] = None
    listing_agent: Optional[TaskContact] = None

    @property
    def is_done(self) -> bool:
        return self.status == TASK_STATUS_DONE

    def agent_id(self, foreign_key: str) -> Optional[str]:
        """Resolve an agent foreign key from the lead, falling back to the borrower."""
        for record in (self.lead, self.borrower):
            if record is not None and getattr(record, foreign_key):
                return getattr(record, foreign_key)
        return None

    def borrower_phone(self) -> Optional[str]:
        for record in (self.lead, self.borrower):
            if record is not None and record.phone:
                return record.phone
        return None
