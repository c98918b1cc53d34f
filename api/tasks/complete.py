"""Task completion endpoint - mark a task Done once its requirement passes."""

import asyncio
from typing import Optional

from api.tasks.validate import GENERIC_ERROR, check_task
from src.services.supabase_client import TaskStore
from src.services.task_completion import TaskCompletionValidator
from src.utils.errors import TaskNotFoundError
from src.utils.logging import correlation_context, get_structured_logger, setup_logging
from src.utils.responses import json_response, parse_json_body

setup_logging()
logger = get_structured_logger(__name__)


async def complete_task(
    task_id: str,
    task_store: Optional[TaskStore] = None,
    validator: Optional[TaskCompletionValidator] = None,
) -> tuple[bool, dict]:
    """Validate and, when allowed, write the Done status. Returns (completed, payload)."""
    task_store = task_store or TaskStore()
    payload = await check_task(task_id, task_store=task_store, validator=validator)
    if not payload["result"]["canComplete"]:
        return False, payload

    await task_store.mark_tasks_done([task_id])
    logger.info("Task completed", task_id=task_id)
    return True, payload


def handler(request):
    """Complete a task (POST {"task_id": ...})."""
    with correlation_context():
        try:
            body = parse_json_body(request)
        except ValueError:
            return json_response(400, {"error": "Invalid JSON body"})

        task_id = body.get("task_id")
        if not task_id:
            return json_response(400, {"error": "task_id is required"})

        try:
            completed, payload = asyncio.run(complete_task(task_id))
        except TaskNotFoundError as e:
            return json_response(404, {"error": str(e)})
        except Exception as e:
            logger.error("Task completion failed", exc_info=True, task_id=task_id, error=str(e))
            return json_response(500, {"error": GENERIC_ERROR})

        if not completed:
            return json_response(409, payload)
        return json_response(200, {"ok": True, **payload})
