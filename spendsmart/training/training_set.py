"""
Training Set Manager

Keeps the bounded set of (description → correct category) hints that is
sent to the classifier with every prediction request.

RULES:
- One entry per description. Descriptions are matched case-insensitively
  after trimming, so "Coffee" and " coffee " are the same key.
- Updating an existing entry replaces its category in place. Its place
  in the eviction order does not move.
- When a new entry pushes the set past the limit, the entry inserted
  longest ago is evicted (FIFO, not LRU).

The bound caps the prompt size per request and keeps the classifier
biased toward recent corrections.
"""

from typing import Optional

from spendsmart.audit import AuditLogger
from spendsmart.models.audit import AuditEventBuilder
from spendsmart.models.expense import Category, TrainingExample
from spendsmart.services.storage import AppStateRepository, StorageError


DEFAULT_TRAINING_SET_LIMIT = 20


def normalize_description(description: str) -> str:
    """Key used to match descriptions: trimmed and case-folded."""
    return description.strip().casefold()


class TrainingSetManager:
    """
    Bounded, deduplicated set of classifier hints.

    Postcondition of every mutating method: the set has been handed to
    the repository for saving (failures are audited, never raised).
    """

    def __init__(
        self,
        repository: Optional[AppStateRepository] = None,
        examples: Optional[list[TrainingExample]] = None,
        limit: int = DEFAULT_TRAINING_SET_LIMIT,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if limit < 1:
            raise ValueError("Training set limit must be at least 1")
        self._repository = repository
        self._limit = limit
        self._audit_logger = audit_logger or AuditLogger()
        # dict keeps insertion order, which is the eviction order
        self._entries: dict[str, TrainingExample] = {}

        for example in examples or []:
            self._put(example.description, example.correct_category)
        self._evict_overflow(audit=False)

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, description: object) -> bool:
        if not isinstance(description, str):
            return False
        return normalize_description(description) in self._entries

    def get(self, description: str) -> Optional[TrainingExample]:
        return self._entries.get(normalize_description(description))

    def snapshot(self) -> list[TrainingExample]:
        """Current hints, oldest first. Passed verbatim to the classifier."""
        return list(self._entries.values())

    def upsert(self, description: str, category: Category) -> TrainingExample:
        """
        Record a correction.

        The most recent correction for a description always wins.
        """
        replaced = normalize_description(description) in self._entries
        example = self._put(description, category)
        self._audit_logger.log(
            AuditEventBuilder.training_example_upserted(
                description=example.description,
                category=example.correct_category.value,
                replaced=replaced,
                size=len(self._entries),
            )
        )
        self._evict_overflow()
        self._save()
        return example

    def add_if_absent(self, description: str, category: Category) -> bool:
        """
        Record a confirmation.

        A confirmation never overwrites an existing entry: a correction
        for the same description is the stronger signal.

        Returns True if a new entry was added.
        """
        if description in self:
            return False
        self.upsert(description, category)
        return True

    def _put(self, description: str, category: Category) -> TrainingExample:
        example = TrainingExample(description=description, correct_category=category)
        # Assigning to an existing key keeps its position
        self._entries[normalize_description(description)] = example
        return example

    def _evict_overflow(self, audit: bool = True) -> None:
        while len(self._entries) > self._limit:
            oldest_key = next(iter(self._entries))
            evicted = self._entries.pop(oldest_key)
            if audit:
                self._audit_logger.log(
                    AuditEventBuilder.training_example_evicted(
                        evicted.description,
                        evicted.correct_category.value,
                    )
                )

    def _save(self) -> None:
        if self._repository is None:
            return
        try:
            self._repository.save_training_examples(self.snapshot())
        except StorageError as e:
            self._audit_logger.log_storage_failed("training", str(e))
