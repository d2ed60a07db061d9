"""Abstract search interface for indexing and querying documents.

Defines the minimal surface for search backends (e.g., Whoosh), enabling
extensibility and testability via a common contract. `bulk()` is the batch
handler adapters hand their classified groups to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, List

from indexbridge.adapters.batching import Action, ClassifiedGroup
from indexbridge.exceptions import SearchError


@dataclass(slots=True)
class SearchResult:
    """Represents a single search hit."""

    document_id: str
    score: float
    title: str = ""
    snippet: str | None = None


class BaseSearch(ABC):
    """Abstract interface for search index implementations."""

    @abstractmethod
    def index_documents(self, items: Iterable[Any]) -> None:
        """Index or reindex a batch of documents."""

    @abstractmethod
    def delete_documents(self, ids: Iterable[Any]) -> None:
        """Remove documents from the index by their IDs."""

    @abstractmethod
    def search(self, query: str, *, limit: int = 10, offset: int = 0) -> List[SearchResult]:
        """Execute a search query and return ranked results."""
        raise NotImplementedError

    def bulk(self, group: ClassifiedGroup) -> bool:
        """Apply one classified batch: index the INDEX group, delete the DELETE group."""
        to_index = group.get(Action.INDEX, [])
        to_delete = group.get(Action.DELETE, [])
        if to_index:
            self.index_documents(to_index)
        if to_delete:
            self.delete_documents(document_id(obj) for obj in to_delete)
        return True


def document_id(obj: Any) -> str:
    """Index id for an object: its ``id`` attribute or key, or the value itself."""
    if isinstance(obj, Mapping):
        value = obj.get("id")
    else:
        value = getattr(obj, "id", obj)
    if value is None:
        raise SearchError(f"Cannot determine index id for {obj!r}")
    return str(value)
