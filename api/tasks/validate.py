"""Task completion check endpoint - can the task be marked Done, and if not, what to show."""

import asyncio
from typing import Optional

from src.models.task import Task
from src.services.remediation import build_remediation_view
from src.services.supabase_client import TaskStore
from src.services.task_completion import TaskCompletionValidator
from src.utils.errors import TaskNotFoundError
from src.utils.logging import correlation_context, get_structured_logger, setup_logging
from src.utils.responses import json_response

setup_logging()
logger = get_structured_logger(__name__)

GENERIC_ERROR = "Could not verify task requirements, please try again"


async def check_task(
    task_id: str,
    task_store: Optional[TaskStore] = None,
    validator: Optional[TaskCompletionValidator] = None,
) -> dict:
    """Load a task with its relations and validate it for completion."""
    task_store = task_store or TaskStore()
    validator = validator or TaskCompletionValidator()

    row = await task_store.get_task_with_relations(task_id)
    if row is None:
        raise TaskNotFoundError(f"Task not found: {task_id}")

    task = Task.model_validate(row)
    result = await validator.validate(task)
    return {
        "result": result.to_payload(),
        "remediation": None if result.can_complete else build_remediation_view(result).model_dump(mode="json"),
    }


def handler(request):
    """Validate a task for completion (GET ?task_id=...)."""
    with correlation_context():
        query_params = request.get("query", {}) or {}
        task_id = query_params.get("task_id")
        if not task_id:
            return json_response(400, {"error": "task_id is required"})

        try:
            payload = asyncio.run(check_task(task_id))
        except TaskNotFoundError as e:
            return json_response(404, {"error": str(e)})
        except Exception as e:
            logger.error("Task completion check failed", exc_info=True, task_id=task_id, error=str(e))
            return json_response(500, {"error": GENERIC_ERROR})

        return json_response(200, payload)
