"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import AsyncMock, MagicMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builders chain back to themselves."""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "eq", "neq", "is_", "in_", "order", "limit", "update"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    client.table.return_value = query
    client.query = query
    return client


@pytest.fixture
def activity_store():
    """Activity store spy with no matching rows."""
    store = AsyncMock()
    store.query_latest = AsyncMock(return_value=None)
    return store


@pytest.fixture
def lead_store():
    """Lead store spy returning None for every column."""
    store = AsyncMock()
    store.fetch_column = AsyncMock(return_value=None)
    return store


@pytest.fixture
def buyer_agent():
    return {"id": "A1", "first_name": "Dana", "last_name": "Reyes", "phone": "555-0101"}


@pytest.fixture
def listing_agent():
    return {"id": "A2", "first_name": "Sam", "last_name": "Ortiz", "phone": "555-0102"}


@pytest.fixture
def borrower_lead():
    return {
        "id": "L1",
        "first_name": "Pat",
        "last_name": "Morgan",
        "phone": "555-0199",
        "buyer_agent_id": "A1",
        "listing_agent_id": "A2",
    }


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
