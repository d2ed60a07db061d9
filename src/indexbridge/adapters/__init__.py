"""Adapters between domain objects and search index batches.

An adapter classifies objects into index/delete groups, hands every batch to
a handler and resolves search hits back into objects.
"""

from .base import BaseAdapter
from .batching import Action, BatchConfiguration, ClassifiedGroup, dispatch, partition
from .object_adapter import ObjectAdapter
from .policy import FieldRef, Predicate, current_object, should_delete

__all__ = [
    "Action",
    "BaseAdapter",
    "BatchConfiguration",
    "ClassifiedGroup",
    "FieldRef",
    "ObjectAdapter",
    "Predicate",
    "current_object",
    "dispatch",
    "partition",
    "should_delete",
]
