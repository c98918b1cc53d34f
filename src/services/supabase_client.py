"""Supabase client wrapper with async context manager support and store handles."""

import os
from datetime import datetime, timezone
from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.models.activity import ACTIVITY_SOURCES, ActivityFilter, ActivityKind
from src.models.task import TASK_STATUS_DONE
from src.utils.errors import ConfigurationError, SupabaseError
from src.utils.task_config import TaskCompletionConfig
import logging

logger = logging.getLogger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None

TASK_COLUMNS = (
    "id, title, description, due_date, status, priority, assignee_id, borrower_id, "
    "created_at, updated_at, deleted_at, completion_requirement_type"
)
TASK_BORROWER_JOIN = (
    "borrower:leads!tasks_borrower_id_fkey(id, first_name, last_name, phone, buyer_agent_id, listing_agent_id)"
)


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
            postgrest_client_timeout=TaskCompletionConfig.SUPABASE_QUERY_TIMEOUT_SECONDS,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


async def close_supabase_client() -> None:
    """Close Supabase client connections."""
    global _client
    if _client:
        # Supabase-py doesn't have explicit close, but we can clear the reference
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self, client: Optional[Client] = None):
        self._explicit_client = client
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        """Enter async context."""
        self.client = self._explicit_client or get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context."""
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


class ActivityStore:
    """Read access to call logs and notes."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    async def query_latest(
        self,
        kind: ActivityKind,
        filter_key: ActivityFilter,
        value: str,
    ) -> Optional[dict]:
        """Return the newest activity row matching the filter, or None."""
        source = ACTIVITY_SOURCES.get((kind, filter_key))
        if source is None:
            raise ValueError(f"No activity source for {kind.value} by {filter_key.value}")

        async with SupabaseClient(self._client) as client:
            try:
                result = (
                    client.table(source.table)
                    .select("*")
                    .eq(filter_key.value, value)
                    .order(source.timestamp_column, desc=True)
                    .limit(1)
                    .execute()
                )
            except Exception as e:
                raise SupabaseError(f"Failed to query {source.table}: {e}")

        return result.data[0] if result.data and len(result.data) > 0 else None


class LeadStore:
    """Read access to single lead columns."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    async def fetch_column(self, lead_id: str, column: str) -> Any:
        """Fetch the current value of one lead column (None when the lead is missing)."""
        async with SupabaseClient(self._client) as client:
            try:
                result = client.table("leads").select(column).eq("id", lead_id).limit(1).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to fetch lead column {column}: {e}")

        if result.data and len(result.data) > 0:
            return result.data[0].get(column)
        return None


class TaskStore:
    """Task reads with joined relations, and the completion write."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    async def get_task_with_relations(self, task_id: str) -> Optional[dict]:
        """Get a non-deleted task with its borrower lead and agents attached."""
        async with SupabaseClient(self._client) as client:
            try:
                result = (
                    client.table("tasks")
                    .select(f"{TASK_COLUMNS}, {TASK_BORROWER_JOIN}")
                    .eq("id", task_id)
                    .is_("deleted_at", "null")
                    .limit(1)
                    .execute()
                )
                if not result.data:
                    return None
                task = dict(result.data[0])

                borrower = task.get("borrower") or {}
                task["lead"] = task.get("borrower")
                task["buyer_agent"] = self._get_agent(client, borrower.get("buyer_agent_id"))
                task["listing_agent"] = self._get_agent(client, borrower.get("listing_agent_id"))
                return task
            except Exception as e:
                raise SupabaseError(f"Failed to get task {task_id}: {e}")

    @staticmethod
    def _get_agent(client: Client, agent_id: Optional[str]) -> Optional[dict]:
        # Buyer and listing agents both live in buyer_agents
        if not agent_id:
            return None
        result = (
            client.table("buyer_agents")
            .select("id, first_name, last_name, phone")
            .eq("id", agent_id)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    async def get_open_tasks_for_lead(self, lead_id: str) -> list[dict]:
        """Get non-deleted tasks for a lead that are not Done."""
        async with SupabaseClient(self._client) as client:
            try:
                result = (
                    client.table("tasks")
                    .select("id, title, status, completion_requirement_type, created_at")
                    .eq("borrower_id", lead_id)
                    .neq("status", TASK_STATUS_DONE)
                    .is_("deleted_at", "null")
                    .execute()
                )
                return result.data if result.data else []
            except Exception as e:
                raise SupabaseError(f"Failed to get open tasks for lead {lead_id}: {e}")

    async def mark_tasks_done(self, task_ids: list[str]) -> None:
        """Set tasks to Done."""
        if not task_ids:
            return
        async with SupabaseClient(self._client) as client:
            try:
                client.table("tasks").update({
                    "status": TASK_STATUS_DONE,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                }).in_("id", task_ids).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to mark tasks done: {e}")
