"""Auto-complete open tasks once the activity or field change they wait on is recorded."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from src.models.requirement import (
    CALL_KINDS,
    Requirement,
    RequirementKind,
    parse_requirement,
)
from src.models.task import Task
from src.services.requirement_resolvers import (
    DEFAULT_VALUE_ALIASES,
    ValueAliases,
    matches_allowed_value,
)
from src.services.supabase_client import TaskStore
from src.utils.errors import RequirementParseError, SupabaseError
from src.utils.fields import is_populated
from src.utils.logging import get_structured_logger
from src.utils.task_config import TaskCompletionConfig

logger = get_structured_logger(__name__)


class AutoCompletionResult(BaseModel):
    """Tasks flipped to Done by one recorded event."""
    completed_count: int = 0
    task_titles: list[str] = Field(default_factory=list)


class TaskAutoCompleter:
    """Completes a lead's open tasks whose requirement a new event satisfies."""

    def __init__(
        self,
        task_store: Optional[TaskStore] = None,
        value_aliases: Optional[ValueAliases] = None,
        window_days: Optional[int] = None,
    ):
        self.task_store = task_store or TaskStore()
        self.value_aliases = DEFAULT_VALUE_ALIASES if value_aliases is None else value_aliases
        self.window_days = TaskCompletionConfig.AUTO_COMPLETE_WINDOW_DAYS if window_days is None else window_days

    async def after_call(self, lead_id: str, call_type: str) -> AutoCompletionResult:
        """Complete tasks waiting on a call of this type."""
        kind = RequirementKind(call_type)
        if kind not in CALL_KINDS:
            raise ValueError(f"Not a call requirement: {call_type}")

        satisfied_kinds = {kind}
        if kind == RequirementKind.LOG_CALL_BORROWER:
            satisfied_kinds.add(RequirementKind.LOG_ANY_ACTIVITY)

        return await self._complete_matching(
            lead_id,
            lambda requirement: requirement.kind in satisfied_kinds,
            trigger=call_type,
        )

    async def after_note(self, lead_id: str) -> AutoCompletionResult:
        """Complete tasks waiting on a borrower note."""
        satisfied_kinds = {RequirementKind.LOG_NOTE_BORROWER, RequirementKind.LOG_ANY_ACTIVITY}
        return await self._complete_matching(
            lead_id,
            lambda requirement: requirement.kind in satisfied_kinds,
            trigger="log_note_borrower",
        )

    async def after_field_update(self, lead_id: str, field_name: str, field_value: Any) -> AutoCompletionResult:
        """Complete field-gated tasks that the new value satisfies."""

        def satisfied(requirement: Requirement) -> bool:
            if requirement.field_name != field_name:
                return False
            if requirement.kind == RequirementKind.FIELD_POPULATED:
                return is_populated(field_value)
            if requirement.kind in (RequirementKind.FIELD_VALUE, RequirementKind.STATUS_CHANGE):
                return matches_allowed_value(
                    field_name, field_value, requirement.allowed_values, self.value_aliases
                )
            return False

        return await self._complete_matching(lead_id, satisfied, trigger=f"field_update:{field_name}")

    async def _complete_matching(
        self,
        lead_id: str,
        satisfied: Callable[[Requirement], bool],
        trigger: str,
    ) -> AutoCompletionResult:
        try:
            rows = await self.task_store.get_open_tasks_for_lead(lead_id)
        except SupabaseError as e:
            logger.error("Failed to load tasks for auto-completion", lead_id=lead_id, trigger=trigger, error=str(e))
            return AutoCompletionResult()

        cutoff = datetime.now(timezone.utc) - timedelta(days=self.window_days)
        to_complete: list[Task] = []
        for row in rows:
            try:
                task = Task.model_validate(row)
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed task row",
                    task_id=row.get("id"),
                    error_count=e.error_count(),
                )
                continue
            if not self._is_recent(task, cutoff):
                continue
            try:
                requirement = parse_requirement(task.completion_requirement_type)
            except RequirementParseError as e:
                logger.warning("Skipping task with malformed requirement", task_id=task.id, error=str(e))
                continue
            if satisfied(requirement):
                to_complete.append(task)

        if not to_complete:
            return AutoCompletionResult()

        try:
            await self.task_store.mark_tasks_done([task.id for task in to_complete])
        except SupabaseError as e:
            logger.error("Failed to auto-complete tasks", lead_id=lead_id, trigger=trigger, error=str(e))
            return AutoCompletionResult()

        logger.info(
            "Auto-completed tasks",
            lead_id=lead_id,
            trigger=trigger,
            completed_count=len(to_complete),
            task_ids=[task.id for task in to_complete],
        )
        return AutoCompletionResult(
            completed_count=len(to_complete),
            task_titles=[task.title for task in to_complete],
        )

    @staticmethod
    def _is_recent(task: Task, cutoff: datetime) -> bool:
        if task.created_at is None:
            return False
        created_at = task.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return created_at >= cutoff


async def auto_complete_tasks_after_call(lead_id: str, call_type: str) -> AutoCompletionResult:
    return await TaskAutoCompleter().after_call(lead_id, call_type)


async def auto_complete_tasks_after_note(lead_id: str) -> AutoCompletionResult:
    return await TaskAutoCompleter().after_note(lead_id)


async def auto_complete_tasks_after_field_update(
    lead_id: str, field_name: str, field_value: Any
) -> AutoCompletionResult:
    return await TaskAutoCompleter().after_field_update(lead_id, field_name, field_value)
