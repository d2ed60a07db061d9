"""Bridge persisted domain objects and a search index.

Adapters classify objects into index/delete batches and hand each batch to a
handler (usually a search index ``bulk`` method); they also resolve search
hits back into domain objects.
"""

from indexbridge.adapters.base import BaseAdapter
from indexbridge.adapters.batching import Action, BatchConfiguration, dispatch, partition
from indexbridge.adapters.object_adapter import ObjectAdapter
from indexbridge.adapters.policy import FieldRef, Predicate, current_object, should_delete
from indexbridge.exceptions import ConfigurationError, IndexBridgeError

__all__ = [
    "Action",
    "BaseAdapter",
    "BatchConfiguration",
    "ConfigurationError",
    "FieldRef",
    "IndexBridgeError",
    "ObjectAdapter",
    "Predicate",
    "current_object",
    "dispatch",
    "partition",
    "should_delete",
]
