"""Indexer: one adapter wired to one search index.

The adapter decides what goes into the index and how hits are loaded back;
the index stores documents and answers queries.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from indexbridge.adapters.base import BaseAdapter
from indexbridge.search.base_search import BaseSearch

logger = logging.getLogger(__name__)


class Indexer:
    """Imports objects into a search index and resolves search hits."""

    def __init__(self, adapter: BaseAdapter, index: BaseSearch) -> None:
        self.adapter = adapter
        self.index = index

    @property
    def name(self) -> str:
        return self.adapter.type_name

    def import_(self, *objects: Any, batch_size: Optional[int] = None) -> bool:
        """Index or remove ``objects`` (everything the adapter knows when empty).

        Returns True when every batch was applied successfully.
        """
        ok = self.adapter.import_objects(*objects, handler=self.index.bulk, batch_size=batch_size)
        logger.info("Import into %s finished (success=%s)", self.name, ok)
        return ok

    def search(self, query: str, *, limit: int = 10, **load_options: Any) -> List[Any]:
        """Run ``query`` and return the matching domain objects in rank order.

        Hits whose object can no longer be loaded are skipped.
        """
        hits = self.index.search(query, limit=limit)
        loaded = self.adapter.load(hits, **load_options)
        return [obj for obj in loaded if obj is not None]

    def __repr__(self) -> str:
        return f"Indexer({self.name!r})"
