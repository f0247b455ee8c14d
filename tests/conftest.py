"""Shared fixtures.

Every test runs in its own temporary working directory with the
in-memory storage backend, so no stray ``.env`` or ``.spendsmart``
directory in the source tree can leak into a test.
"""

import pytest
from datetime import date
from types import SimpleNamespace
from typing import Optional

from spendsmart.audit import AuditLogger, InMemoryAuditStorage
from spendsmart.config import get_settings
from spendsmart.ledger import ExpenseLedger
from spendsmart.services.storage import (
    AppStateRepository,
    DocumentStoreInterface,
    InMemoryDocumentStore,
    StorageError,
)
from spendsmart.training import TrainingSetManager


TODAY = date(2024, 5, 17)


class FailingDocumentStore(DocumentStoreInterface):
    """Store whose writes always fail."""

    def __init__(self):
        self.attempts = 0

    def load(self, key: str) -> Optional[str]:
        return None

    def save(self, key: str, blob: str) -> None:
        self.attempts += 1
        raise StorageError("disk full")


class FakeModel:
    """
    Stands in for a Gemini model.

    Replies with the queued texts in order, or raises the queued exception.
    Prompts are recorded for inspection.
    """

    def __init__(self, *replies):
        self._replies = list(replies)
        self.prompts = []

    async def generate_content_async(self, prompt: str):
        self.prompts.append(prompt)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply)


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(storage=audit_storage)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def repository(store):
    return AppStateRepository(store)


@pytest.fixture
def training_set(repository, audit_logger):
    return TrainingSetManager(repository=repository, audit_logger=audit_logger)


@pytest.fixture
def ledger(training_set, repository, audit_logger):
    return ExpenseLedger(
        training_set=training_set,
        repository=repository,
        audit_logger=audit_logger,
        clock=lambda: TODAY,
    )


def event_types(audit_storage):
    """Audited event types, oldest first."""
    return [event.event_type for event in reversed(audit_storage.get_recent_events(1000))]
