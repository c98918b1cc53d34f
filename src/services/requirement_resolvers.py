"""Prerequisite resolvers - look up evidence that satisfies a completion requirement.

Every resolver has the same shape: ``(task, requirement, context) -> ResolverOutcome``.
A requirement whose target structurally cannot exist (no agent assigned, no
borrower on the task) passes vacuously. A failed store query is logged and
treated as missing evidence, so completion stays blocked.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol

from src.models.activity import ActivityFilter, ActivityKind
from src.models.requirement import Requirement, RequirementKind
from src.models.task import Task
from src.models.validation import ResolverOutcome
from src.utils.errors import SupabaseError
from src.utils.fields import is_populated
from src.utils.logging import get_structured_logger, mask_sensitive_data

logger = get_structured_logger(__name__)

ValueAliases = dict[tuple[str, str], tuple[str, ...]]

# Values accepted in addition to a declared allow-list entry
DEFAULT_VALUE_ALIASES: ValueAliases = {
    ("loan_status", "SUB"): ("SUV",),
}


class ActivityLookup(Protocol):
    async def query_latest(
        self, kind: ActivityKind, filter_key: ActivityFilter, value: str
    ) -> Optional[dict]: ...


class LeadFieldLookup(Protocol):
    async def fetch_column(self, lead_id: str, column: str) -> Any: ...


class ResolverContext:
    """Store handles and alias table shared by the resolvers of one validator."""

    def __init__(
        self,
        activity_store: ActivityLookup,
        lead_store: LeadFieldLookup,
        value_aliases: Optional[ValueAliases] = None,
    ):
        self.activity_store = activity_store
        self.lead_store = lead_store
        self.value_aliases = DEFAULT_VALUE_ALIASES if value_aliases is None else value_aliases


Resolver = Callable[[Task, Requirement, ResolverContext], Awaitable[ResolverOutcome]]


def expand_allowed_values(
    field_name: str,
    allowed_values: tuple[str, ...],
    aliases: ValueAliases,
) -> frozenset[str]:
    """Allow-list plus every alias registered for one of its values."""
    accepted = set(allowed_values)
    for value in allowed_values:
        accepted.update(aliases.get((field_name, value), ()))
    return frozenset(accepted)


def matches_allowed_value(
    field_name: str,
    value: Any,
    allowed_values: tuple[str, ...],
    aliases: ValueAliases,
) -> bool:
    if value is None:
        return False
    return str(value) in expand_allowed_values(field_name, allowed_values, aliases)


async def _has_activity(
    context: ResolverContext,
    kind: ActivityKind,
    filter_key: ActivityFilter,
    subject_id: str,
    requirement: Requirement,
) -> ResolverOutcome:
    try:
        row = await context.activity_store.query_latest(kind, filter_key, subject_id)
    except SupabaseError as e:
        logger.error(
            "Activity lookup failed, blocking completion",
            requirement=requirement.descriptor,
            activity_kind=kind.value,
            subject_id=subject_id,
            error=mask_sensitive_data(str(e)),
        )
        return ResolverOutcome(satisfied=False, reason="store_error", subject_id=subject_id)

    if row is None:
        return ResolverOutcome(satisfied=False, reason="missing", subject_id=subject_id)
    return ResolverOutcome(satisfied=True, reason="evidence", subject_id=subject_id)


async def _fetch_field(
    context: ResolverContext,
    lead_id: str,
    requirement: Requirement,
) -> tuple[bool, Any]:
    """Fetch the requirement's lead column. Returns (ok, value)."""
    try:
        value = await context.lead_store.fetch_column(lead_id, requirement.field_name)
    except SupabaseError as e:
        logger.error(
            "Lead field lookup failed, blocking completion",
            requirement=requirement.descriptor,
            field_name=requirement.field_name,
            lead_id=lead_id,
            error=mask_sensitive_data(str(e)),
        )
        return False, None
    return True, value


def _agent_call_resolver(foreign_key: str) -> Resolver:
    async def resolve(task: Task, requirement: Requirement, context: ResolverContext) -> ResolverOutcome:
        agent_id = task.agent_id(foreign_key)
        if not agent_id:
            return ResolverOutcome.vacuous()
        return await _has_activity(
            context, ActivityKind.CALL, ActivityFilter.AGENT_ID, agent_id, requirement
        )

    resolve.__name__ = f"resolve_{foreign_key.removesuffix('_id')}_call"
    return resolve


resolve_buyer_agent_call = _agent_call_resolver("buyer_agent_id")
resolve_listing_agent_call = _agent_call_resolver("listing_agent_id")


async def resolve_borrower_call(task: Task, requirement: Requirement, context: ResolverContext) -> ResolverOutcome:
    if not task.borrower_id:
        return ResolverOutcome.vacuous()
    return await _has_activity(
        context, ActivityKind.CALL, ActivityFilter.LEAD_ID, task.borrower_id, requirement
    )


async def resolve_borrower_note(task: Task, requirement: Requirement, context: ResolverContext) -> ResolverOutcome:
    if not task.borrower_id:
        return ResolverOutcome.vacuous()
    return await _has_activity(
        context, ActivityKind.NOTE, ActivityFilter.LEAD_ID, task.borrower_id, requirement
    )


async def resolve_any_activity(task: Task, requirement: Requirement, context: ResolverContext) -> ResolverOutcome:
    """A borrower call or a borrower note, checked in that order."""
    if not task.borrower_id:
        return ResolverOutcome.vacuous()

    call = await _has_activity(
        context, ActivityKind.CALL, ActivityFilter.LEAD_ID, task.borrower_id, requirement
    )
    if call.satisfied:
        return call

    note = await _has_activity(
        context, ActivityKind.NOTE, ActivityFilter.LEAD_ID, task.borrower_id, requirement
    )
    if note.satisfied:
        return note
    if "store_error" in (call.reason, note.reason):
        return ResolverOutcome(satisfied=False, reason="store_error", subject_id=task.borrower_id)
    return note


async def resolve_field_populated(task: Task, requirement: Requirement, context: ResolverContext) -> ResolverOutcome:
    if not task.borrower_id:
        return ResolverOutcome.vacuous()

    ok, value = await _fetch_field(context, task.borrower_id, requirement)
    if not ok:
        return ResolverOutcome(satisfied=False, reason="store_error", subject_id=task.borrower_id)
    if not is_populated(value):
        return ResolverOutcome(satisfied=False, reason="missing", subject_id=task.borrower_id)
    return ResolverOutcome(satisfied=True, reason="evidence", subject_id=task.borrower_id)


async def resolve_field_value(task: Task, requirement: Requirement, context: ResolverContext) -> ResolverOutcome:
    """Current lead value must be in the allow-list or one of its aliases."""
    if not task.borrower_id:
        return ResolverOutcome.vacuous()

    ok, value = await _fetch_field(context, task.borrower_id, requirement)
    if not ok:
        return ResolverOutcome(satisfied=False, reason="store_error", subject_id=task.borrower_id)
    if not matches_allowed_value(
        requirement.field_name, value, requirement.allowed_values, context.value_aliases
    ):
        return ResolverOutcome(satisfied=False, reason="missing", subject_id=task.borrower_id)
    return ResolverOutcome(satisfied=True, reason="evidence", subject_id=task.borrower_id)


RESOLVERS: dict[RequirementKind, Resolver] = {
    RequirementKind.LOG_CALL_BUYER_AGENT: resolve_buyer_agent_call,
    RequirementKind.LOG_CALL_LISTING_AGENT: resolve_listing_agent_call,
    RequirementKind.LOG_CALL_BORROWER: resolve_borrower_call,
    RequirementKind.LOG_NOTE_BORROWER: resolve_borrower_note,
    RequirementKind.LOG_ANY_ACTIVITY: resolve_any_activity,
    RequirementKind.FIELD_POPULATED: resolve_field_populated,
    RequirementKind.FIELD_VALUE: resolve_field_value,
    RequirementKind.STATUS_CHANGE: resolve_field_value,
}
