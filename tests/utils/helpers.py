"""Test helper functions and in-memory stores."""

import json
from typing import Any, Dict, Optional

from src.models.activity import ActivityFilter, ActivityKind


class InMemoryActivityStore:
    """Activity store backed by lists of rows, counting lookups."""

    def __init__(self):
        self.rows: dict[tuple[ActivityKind, ActivityFilter], list[dict]] = {}
        self.calls = 0

    def add(self, kind: ActivityKind, filter_key: ActivityFilter, value: str, **fields: Any) -> None:
        self.rows.setdefault((kind, filter_key), []).append({filter_key.value: value, **fields})

    async def query_latest(self, kind: ActivityKind, filter_key: ActivityFilter, value: str) -> Optional[dict]:
        self.calls += 1
        matches = [row for row in self.rows.get((kind, filter_key), []) if row[filter_key.value] == value]
        return matches[-1] if matches else None


class InMemoryLeadStore:
    """Lead store backed by a dict of lead rows."""

    def __init__(self, leads: Optional[dict[str, dict]] = None):
        self.leads = leads or {}
        self.calls = 0

    async def fetch_column(self, lead_id: str, column: str) -> Any:
        self.calls += 1
        return self.leads.get(lead_id, {}).get(column)


class InMemoryTaskStore:
    """Task store backed by a dict of task rows."""

    def __init__(self, tasks: Optional[dict[str, dict]] = None):
        self.tasks = tasks or {}
        self.done_batches: list[list[str]] = []

    async def get_task_with_relations(self, task_id: str) -> Optional[dict]:
        return self.tasks.get(task_id)

    async def get_open_tasks_for_lead(self, lead_id: str) -> list[dict]:
        return [
            task for task in self.tasks.values()
            if task.get("borrower_id") == lead_id and task.get("status") != "Done"
        ]

    async def mark_tasks_done(self, task_ids: list[str]) -> None:
        self.done_batches.append(list(task_ids))
        for task_id in task_ids:
            self.tasks[task_id]["status"] = "Done"


def create_vercel_request(
    method: str = "GET",
    path: str = "/api/tasks/validate",
    body: Dict[str, Any] = None,
    query: Dict[str, str] = None,
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    return {
        "method": method,
        "path": path,
        "headers": {"content-type": "application/json"},
        "body": json.dumps(body) if isinstance(body, dict) else body,
        "query": query or {},
    }
