"""Tests for prerequisite resolvers."""

import pytest

from src.models.requirement import EVALUABLE_KINDS, parse_requirement
from src.models.task import Task
from src.services.requirement_resolvers import (
    DEFAULT_VALUE_ALIASES,
    RESOLVERS,
    ResolverContext,
    expand_allowed_values,
    matches_allowed_value,
    resolve_any_activity,
    resolve_borrower_note,
    resolve_buyer_agent_call,
    resolve_field_populated,
    resolve_field_value,
)
from src.utils.errors import SupabaseError


@pytest.mark.unit
def test_every_evaluable_kind_has_a_resolver():
    """Test the dispatch table covers every kind a task can be gated on."""
    assert set(RESOLVERS) == set(EVALUABLE_KINDS)


@pytest.mark.unit
def test_expand_allowed_values_adds_registered_aliases():
    """Test alias expansion for loan_status SUB."""
    accepted = expand_allowed_values("loan_status", ("SUB", "AWC"), DEFAULT_VALUE_ALIASES)

    assert accepted == {"SUB", "SUV", "AWC"}


@pytest.mark.unit
def test_expand_allowed_values_without_aliases():
    """Test fields with no alias entries keep their allow-list."""
    assert expand_allowed_values("loan_status", ("AWC",), DEFAULT_VALUE_ALIASES) == {"AWC"}
    assert expand_allowed_values("loan_status", ("SUB",), {}) == {"SUB"}


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    ("SUB", True),
    ("SUV", True),
    ("sub", False),
    (None, False),
    ("", False),
])
def test_matches_allowed_value(value, expected):
    """Test allow-list matching is exact and alias-aware."""
    assert matches_allowed_value("loan_status", value, ("SUB",), DEFAULT_VALUE_ALIASES) is expected


@pytest.mark.unit
@pytest.mark.asyncio
async def test_agent_call_store_error_fails_closed(activity_store, lead_store, caplog):
    """Test a failed call-log query blocks completion and is logged."""
    activity_store.query_latest.side_effect = SupabaseError("timeout")
    task = Task(lead={"id": "L1", "buyer_agent_id": "A1"})
    context = ResolverContext(activity_store, lead_store)

    outcome = await resolve_buyer_agent_call(task, parse_requirement("log_call_buyer_agent"), context)

    assert outcome.satisfied is False
    assert outcome.reason == "store_error"
    assert outcome.subject_id == "A1"
    assert "Activity lookup failed" in caplog.text


@pytest.mark.unit
@pytest.mark.asyncio
async def test_note_store_error_fails_closed(activity_store, lead_store):
    """Test a failed notes query blocks completion."""
    activity_store.query_latest.side_effect = SupabaseError("boom")
    task = Task(borrower_id="L1")

    outcome = await resolve_borrower_note(
        task, parse_requirement("log_note_borrower"), ResolverContext(activity_store, lead_store)
    )

    assert outcome.satisfied is False
    assert outcome.reason == "store_error"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_field_store_error_fails_closed(activity_store, lead_store):
    """Test a failed lead fetch is treated like a missing value."""
    lead_store.fetch_column.side_effect = SupabaseError("permission denied")
    context = ResolverContext(activity_store, lead_store)
    task = Task(borrower_id="L1")

    populated = await resolve_field_populated(task, parse_requirement("field_populated:appr_date_time"), context)
    value = await resolve_field_value(task, parse_requirement("field_value:loan_status=SUB"), context)

    assert (populated.satisfied, populated.reason) == (False, "store_error")
    assert (value.satisfied, value.reason) == (False, "store_error")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_any_activity_reports_store_error(activity_store, lead_store):
    """Test any-activity reports a store error when nothing was found and a lookup failed."""
    activity_store.query_latest.side_effect = [SupabaseError("down"), None]
    task = Task(borrower_id="L1")

    outcome = await resolve_any_activity(
        task, parse_requirement("log_any_activity"), ResolverContext(activity_store, lead_store)
    )

    assert outcome.satisfied is False
    assert outcome.reason == "store_error"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_vacuous_outcome(activity_store, lead_store):
    """Test the vacuous outcome shape."""
    outcome = await resolve_buyer_agent_call(
        Task(), parse_requirement("log_call_buyer_agent"), ResolverContext(activity_store, lead_store)
    )

    assert outcome.satisfied is True
    assert outcome.reason == "vacuous"
    assert outcome.subject_id is None


@pytest.mark.unit
def test_context_defaults_to_builtin_aliases(activity_store, lead_store):
    """Test the resolver context falls back to the built-in alias table."""
    assert ResolverContext(activity_store, lead_store).value_aliases is DEFAULT_VALUE_ALIASES
    assert ResolverContext(activity_store, lead_store, value_aliases={}).value_aliases == {}
