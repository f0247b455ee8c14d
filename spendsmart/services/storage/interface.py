"""
Abstract Document Store Interface

DESIGN DECISION: The app keeps its state as a handful of whole
documents (expenses, training hints, colors, currency), each saved in
full after every change. We define an abstract key/value interface so:
1. Browser local storage, a directory of files, or memory can back it
2. Tests use in-memory storage
3. The ledger never knows where its snapshot goes

The interface is intentionally tiny - load a blob, save a blob.
"""

from abc import ABC, abstractmethod
from typing import Optional


class DocumentStoreInterface(ABC):
    """
    Abstract interface for whole-document storage.

    Any backend must implement these two methods.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        """
        Load a document.

        Args:
            key: Document key

        Returns:
            The stored blob, or None if nothing was saved under the key
        """
        pass

    @abstractmethod
    def save(self, key: str, blob: str) -> None:
        """
        Save a document, replacing any previous version.

        Args:
            key: Document key
            blob: Serialized document

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDocumentError(StorageError):
    """A stored document could not be parsed."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Document '{key}' is unreadable: {message}")
