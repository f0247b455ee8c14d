"""Training set package."""

from spendsmart.training.training_set import (
    DEFAULT_TRAINING_SET_LIMIT,
    TrainingSetManager,
    normalize_description,
)

__all__ = [
    "DEFAULT_TRAINING_SET_LIMIT",
    "TrainingSetManager",
    "normalize_description",
]
