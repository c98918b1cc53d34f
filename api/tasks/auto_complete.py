"""Auto-completion endpoint - called after a call, note or lead field update is recorded."""

import asyncio
from typing import Optional

from pydantic import ValidationError

from src.services.task_auto_completion import AutoCompletionResult, TaskAutoCompleter
from src.utils.logging import correlation_context, get_structured_logger, setup_logging
from src.utils.responses import json_response, parse_json_body

setup_logging()
logger = get_structured_logger(__name__)

EVENTS = ("call", "note", "field_update")


async def dispatch_event(body: dict, completer: Optional[TaskAutoCompleter] = None) -> AutoCompletionResult:
    """Route a recorded event to the matching auto-completion. Raises ValueError on bad input."""
    completer = completer or TaskAutoCompleter()
    lead_id = body.get("lead_id")
    event = body.get("event")
    if not lead_id:
        raise ValueError("lead_id is required")
    if event not in EVENTS:
        raise ValueError(f"event must be one of {', '.join(EVENTS)}")

    if event == "call":
        return await completer.after_call(lead_id, body.get("call_type") or "")
    if event == "note":
        return await completer.after_note(lead_id)

    field_name = body.get("field_name")
    if not field_name:
        raise ValueError("field_name is required for field_update")
    return await completer.after_field_update(lead_id, field_name, body.get("field_value"))


def handler(request):
    """Auto-complete tasks for a recorded event."""
    with correlation_context():
        try:
            body = parse_json_body(request)
            result = asyncio.run(dispatch_event(body))
        except ValidationError as e:
            # Stored data failed to load, not a bad request
            logger.error("Auto-completion failed on stored data", exc_info=True, error=str(e))
            return json_response(500, {"error": "Auto-completion failed"})
        except ValueError as e:
            return json_response(400, {"error": str(e)})
        except Exception as e:
            logger.error("Auto-completion failed", exc_info=True, error=str(e))
            return json_response(500, {"error": "Auto-completion failed"})

        return json_response(200, {"ok": True, **result.model_dump()})
