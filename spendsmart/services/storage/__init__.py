"""
Storage Services Package

Provides the abstract document store interface, concrete backends, and
the typed repository the ledger, training set and preferences save through.
"""

from spendsmart.services.storage.interface import (
    CorruptDocumentError,
    DocumentStoreInterface,
    StorageError,
)
from spendsmart.services.storage.backends import (
    FileDocumentStore,
    InMemoryDocumentStore,
)
from spendsmart.services.storage.repository import AppStateRepository

__all__ = [
    # Interfaces
    "DocumentStoreInterface",
    # Exceptions
    "CorruptDocumentError",
    "StorageError",
    # Backends
    "FileDocumentStore",
    "InMemoryDocumentStore",
    # Repository
    "AppStateRepository",
]
