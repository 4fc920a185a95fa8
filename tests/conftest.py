"""Shared pytest fixtures and configuration."""

import os
import pytest

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from tasklite.models.session import SessionContext
from tasklite.services.feedback import Notifier, NotificationPermission
from tasklite.services.task_store import TaskStore
from tests.utils.factories import CURRENT_USER_ID
from tests.utils.fakes import FakeGateway


@pytest.fixture
def fake_gateway(monkeypatch):
    """In-memory Supabase tables patched in place of the gateway helpers."""
    gateway = FakeGateway()
    gateway.install(monkeypatch)
    return gateway


@pytest.fixture
def session():
    return SessionContext(user_id=CURRENT_USER_ID)


@pytest.fixture
def notifications():
    """Messages delivered through a granted notifier."""
    return []


@pytest.fixture
def notifier(notifications):
    return Notifier(sink=notifications.append, permission=NotificationPermission.GRANTED)


@pytest.fixture
def store(fake_gateway, session, notifier):
    """TaskStore signed in as the current user, backed by the fake gateway."""
    task_store = TaskStore(notifier=notifier)
    task_store.session = session
    return task_store
