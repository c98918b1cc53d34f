"""Task fixtures shaped like rows returned by TaskStore.get_task_with_relations."""

from typing import Optional


def task_with_relations(
    completion_requirement_type: Optional[str],
    borrower_id: Optional[str] = "L1",
    lead: Optional[dict] = None,
    buyer_agent: Optional[dict] = None,
    listing_agent: Optional[dict] = None,
    task_id: str = "T1",
) -> dict:
    """Joined task row; the borrower lead is exposed as both lead and borrower."""
    return {
        "id": task_id,
        "title": "Follow up on file",
        "status": "To Do",
        "priority": "Medium",
        "borrower_id": borrower_id,
        "completion_requirement_type": completion_requirement_type,
        "created_at": "2024-12-01T15:30:00+00:00",
        "lead": lead,
        "borrower": lead,
        "buyer_agent": buyer_agent,
        "listing_agent": listing_agent,
    }


def buyer_agent_call_task(lead: dict, agent: Optional[dict] = None) -> dict:
    return task_with_relations("log_call_buyer_agent", borrower_id=lead["id"], lead=lead, buyer_agent=agent)


def listing_agent_call_task(lead: dict, agent: Optional[dict] = None) -> dict:
    return task_with_relations("log_call_listing_agent", borrower_id=lead["id"], lead=lead, listing_agent=agent)
