"""Task completion validation - decide whether a task may be marked Done."""

from typing import Optional, Union

from src.models.requirement import Requirement, RequirementKind, parse_requirement
from src.models.task import Task
from src.models.validation import ContactInfo, ResolverOutcome, ValidationResult
from src.services.requirement_resolvers import (
    RESOLVERS,
    ActivityLookup,
    LeadFieldLookup,
    ResolverContext,
    ValueAliases,
)
from src.services.supabase_client import ActivityStore, LeadStore
from src.utils.fields import field_label
from src.utils.logging import get_structured_logger, log_timing
from src.utils.task_config import TaskCompletionConfig

logger = get_structured_logger(__name__)

MESSAGES = {
    RequirementKind.LOG_CALL_BUYER_AGENT: "You must log a call with the buyer's agent before completing this task",
    RequirementKind.LOG_CALL_LISTING_AGENT: "You must log a call with the listing agent before completing this task",
    RequirementKind.LOG_CALL_BORROWER: "You must log a call with the borrower before completing this task",
    RequirementKind.LOG_NOTE_BORROWER: "You must add a note for the borrower before completing this task",
    RequirementKind.LOG_ANY_ACTIVITY: (
        "You must log a call or add a note for the borrower before completing this task"
    ),
    RequirementKind.AUTO_COMPLETE_ONLY: (
        "This task is completed automatically once its requirement is met and cannot be marked complete manually"
    ),
    RequirementKind.UNRECOGNIZED: (
        "This task has an unrecognized completion requirement and cannot be completed. "
        "Contact an administrator to correct it."
    ),
}


def _denial_message(requirement: Requirement) -> str:
    # Field messages show the declared allow-list, never the alias-expanded one
    if requirement.kind == RequirementKind.FIELD_POPULATED:
        return f"{field_label(requirement.field_name)} must be populated before completing this task"
    if requirement.kind == RequirementKind.FIELD_VALUE:
        values = " or ".join(requirement.value_labels)
        return f"{field_label(requirement.field_name)} must be {values} before completing this task"
    if requirement.kind == RequirementKind.STATUS_CHANGE:
        values = " or ".join(requirement.value_labels)
        return f"{field_label(requirement.field_name)} must be changed to {values} before completing this task"
    return MESSAGES[requirement.kind]


def _contact_info(task: Task, requirement: Requirement, outcome: ResolverOutcome) -> Optional[ContactInfo]:
    if requirement.kind == RequirementKind.LOG_CALL_BUYER_AGENT:
        agent = task.buyer_agent
        return ContactInfo(
            name=(agent.full_name if agent else "") or "Buyer's Agent",
            phone=agent.phone if agent else None,
            type="buyer_agent",
            id=outcome.subject_id,
        )

    if requirement.kind == RequirementKind.LOG_CALL_LISTING_AGENT:
        agent = task.listing_agent
        return ContactInfo(
            name=(agent.full_name if agent else "") or "Listing Agent",
            phone=agent.phone if agent else None,
            type="listing_agent",
            id=outcome.subject_id,
        )

    if requirement.kind in (
        RequirementKind.LOG_CALL_BORROWER,
        RequirementKind.LOG_NOTE_BORROWER,
        RequirementKind.LOG_ANY_ACTIVITY,
    ):
        borrower = task.borrower
        return ContactInfo(
            name=(borrower.full_name if borrower else "") or "Borrower",
            phone=task.borrower_phone(),
            type="borrower",
            id=outcome.subject_id,
        )

    return None


class TaskCompletionValidator:
    """
    Evaluates a task's completion requirement against activity and lead data.

    Performs reads only. Each call is independent; validating the same task
    twice with no data change in between gives the same result.
    """

    def __init__(
        self,
        activity_store: Optional[ActivityLookup] = None,
        lead_store: Optional[LeadFieldLookup] = None,
        value_aliases: Optional[ValueAliases] = None,
        block_unknown_requirements: Optional[bool] = None,
    ):
        self.context = ResolverContext(
            activity_store=activity_store or ActivityStore(),
            lead_store=lead_store or LeadStore(),
            value_aliases=value_aliases,
        )
        if block_unknown_requirements is None:
            block_unknown_requirements = TaskCompletionConfig.blocks_unknown_requirements()
        self.block_unknown_requirements = block_unknown_requirements

    async def validate(self, task: Union[Task, dict]) -> ValidationResult:
        """Validate a task (model or joined row) for completion."""
        if isinstance(task, dict):
            task = Task.model_validate(task)

        # Fast path: no parsing, no I/O
        descriptor = task.completion_requirement_type
        if descriptor is None or descriptor.strip() in ("", RequirementKind.NONE.value):
            return ValidationResult.allowed()

        requirement = parse_requirement(descriptor)

        with log_timing("task_completion.validate", logger=logger, task_id=task.id):
            result = await self._evaluate(task, requirement)

        logger.info(
            "Task completion validated",
            task_id=task.id,
            requirement_kind=requirement.kind.value,
            can_complete=result.can_complete,
        )
        return result

    async def _evaluate(self, task: Task, requirement: Requirement) -> ValidationResult:
        if requirement.kind == RequirementKind.NONE:
            return ValidationResult.allowed()

        if requirement.kind == RequirementKind.AUTO_COMPLETE_ONLY:
            return self._deny(requirement, MESSAGES[RequirementKind.AUTO_COMPLETE_ONLY])

        if requirement.kind == RequirementKind.UNRECOGNIZED:
            logger.warning(
                "Unrecognized completion requirement",
                task_id=task.id,
                requirement=requirement.descriptor,
                blocked=self.block_unknown_requirements,
            )
            if not self.block_unknown_requirements:
                return ValidationResult.allowed()
            return self._deny(requirement, MESSAGES[RequirementKind.UNRECOGNIZED])

        if requirement.kind == RequirementKind.COMPOUND:
            for part in requirement.parts:
                result = await self._evaluate_single(task, part)
                if not result.can_complete:
                    # UI branches on the full compound descriptor
                    return result.model_copy(update={"missing_requirement": requirement.descriptor})
            return ValidationResult.allowed()

        return await self._evaluate_single(task, requirement)

    async def _evaluate_single(self, task: Task, requirement: Requirement) -> ValidationResult:
        resolver = RESOLVERS[requirement.kind]
        outcome = await resolver(task, requirement, self.context)
        if outcome.satisfied:
            return ValidationResult.allowed()

        return ValidationResult(
            can_complete=False,
            message=_denial_message(requirement),
            missing_requirement=requirement.descriptor,
            contact_info=_contact_info(task, requirement, outcome),
        )

    @staticmethod
    def _deny(requirement: Requirement, message: str) -> ValidationResult:
        return ValidationResult(
            can_complete=False,
            message=message,
            missing_requirement=requirement.descriptor,
        )


async def validate_task_completion(
    task: Union[Task, dict],
    activity_store: Optional[ActivityLookup] = None,
    lead_store: Optional[LeadFieldLookup] = None,
    value_aliases: Optional[ValueAliases] = None,
) -> ValidationResult:
    """Validate a task for completion using the given (or default Supabase) stores."""
    validator = TaskCompletionValidator(
        activity_store=activity_store,
        lead_store=lead_store,
        value_aliases=value_aliases,
    )
    return await validator.validate(task)
