"""Activity evidence models - call logs and notes recorded against agents and leads."""

from enum import Enum
from pydantic import BaseModel, Field


class ActivityKind(str, Enum):
    """Activity evidence kinds."""
    CALL = "call"
    NOTE = "note"


class ActivityFilter(str, Enum):
    """Column an activity lookup is keyed on."""
    AGENT_ID = "agent_id"
    LEAD_ID = "lead_id"


class ActivitySource(BaseModel):
    """Where a kind of activity evidence is stored."""
    table: str = Field(..., description="Supabase table name")
    timestamp_column: str = Field(..., description="Column ordering rows newest first")


ACTIVITY_SOURCES: dict[tuple[ActivityKind, ActivityFilter], ActivitySource] = {
    (ActivityKind.CALL, ActivityFilter.AGENT_ID): ActivitySource(
        table="agent_call_logs", timestamp_column="created_at"
    ),
    (ActivityKind.CALL, ActivityFilter.LEAD_ID): ActivitySource(
        table="call_logs", timestamp_column="timestamp"
    ),
    (ActivityKind.NOTE, ActivityFilter.LEAD_ID): ActivitySource(
        table="notes", timestamp_column="created_at"
    ),
}
