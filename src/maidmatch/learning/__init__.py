"""
Persistencia de learning data.
"""

from maidmatch.learning.store import (
    InMemoryLearningStore,
    JsonFileLearningStore,
    LearningStore,
    get_learning_store,
)

__all__ = [
    "InMemoryLearningStore",
    "JsonFileLearningStore",
    "LearningStore",
    "get_learning_store",
]
