"""Services package."""

from spendsmart.services.storage import (
    AppStateRepository,
    CorruptDocumentError,
    DocumentStoreInterface,
    FileDocumentStore,
    InMemoryDocumentStore,
    StorageError,
)

__all__ = [
    "AppStateRepository",
    "CorruptDocumentError",
    "DocumentStoreInterface",
    "FileDocumentStore",
    "InMemoryDocumentStore",
    "StorageError",
]
