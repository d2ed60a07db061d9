"""Whoosh-backed search index.

Keeps the index in RAM by default, or on disk when a directory is given.
Domain objects are turned into index rows by a serializer; the default one
reads ``id``, ``title`` and ``text``/``content`` from attributes or keys.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from whoosh import index as whoosh_index
from whoosh import scoring
from whoosh.analysis import StemmingAnalyzer
from whoosh.fields import ID, TEXT, Schema
from whoosh.filedb.filestore import RamStorage
from whoosh.qparser import MultifieldParser, OrGroup

from indexbridge.exceptions import SearchError

from .base_search import BaseSearch, SearchResult, document_id

logger = logging.getLogger(__name__)

Serializer = Callable[[Any], Dict[str, Any]]


def _field(obj: Any, *names: str) -> str:
    for name in names:
        value = obj.get(name) if isinstance(obj, Mapping) else getattr(obj, name, None)
        if value:
            return str(value)
    return ""


def default_serializer(obj: Any) -> Dict[str, Any]:
    """Build an index row from common attribute names."""
    content = _field(obj, "text", "content", "body")
    # Prefer explicit title, else fallback to first 120 chars of text
    title = _field(obj, "title", "name") or content.strip()[:120]
    return {"id": document_id(obj), "title": title, "content": content}


def _make_schema() -> Schema:
    analyzer = StemmingAnalyzer()
    return Schema(
        id=ID(stored=True, unique=True),
        title=TEXT(stored=True, analyzer=analyzer, field_boost=1.8),
        # Store content for snippet highlighting
        content=TEXT(stored=True, analyzer=analyzer),
    )


class WhooshIndex(BaseSearch):
    """Search index implementation on top of Whoosh."""

    def __init__(
        self, serializer: Optional[Serializer] = None, *, path: str | Path | None = None
    ) -> None:
        self.serializer = serializer or default_serializer
        schema = _make_schema()
        if path is None:
            self._index = RamStorage().create_index(schema)
        else:
            directory = Path(path)
            directory.mkdir(parents=True, exist_ok=True)
            if whoosh_index.exists_in(str(directory)):
                self._index = whoosh_index.open_dir(str(directory))
            else:
                self._index = whoosh_index.create_in(str(directory), schema)

    def doc_count(self) -> int:
        """Number of live documents in the index."""
        return self._index.doc_count()

    def _row(self, item: Any) -> Dict[str, str]:
        row = self.serializer(item)
        return {
            "id": str(row.get("id") or document_id(item)),
            "title": str(row.get("title") or ""),
            "content": str(row.get("content") or ""),
        }

    def index_documents(self, items: Iterable[Any]) -> None:
        writer = self._index.writer(limitmb=32)
        count = 0
        try:
            for item in items:
                writer.update_document(**self._row(item))
                count += 1
        except Exception as exc:
            writer.cancel()
            raise SearchError(f"Failed to index documents: {exc}") from exc
        writer.commit()
        logger.debug("Indexed %d documents", count)

    def delete_documents(self, ids: Iterable[Any]) -> None:
        writer = self._index.writer(limitmb=32)
        count = 0
        try:
            for doc_id in ids:
                count += writer.delete_by_term("id", str(doc_id))
        except Exception as exc:
            writer.cancel()
            raise SearchError(f"Failed to delete documents: {exc}") from exc
        writer.commit()
        logger.debug("Deleted %d documents", count)

    def search(self, query: str, *, limit: int = 10, offset: int = 0) -> List[SearchResult]:
        if not query or not str(query).strip() or limit <= 0:
            return []

        with self._index.searcher(weighting=scoring.BM25F()) as searcher:
            parser = MultifieldParser(["title", "content"], schema=self._index.schema, group=OrGroup)
            try:
                q = parser.parse(query)
            except Exception:
                # On parse failure, fall back to raw string as a phrase query
                q = parser.parse('"' + query.replace('"', " ") + '"')
            results = searcher.search(q, limit=max(0, int(offset)) + int(limit))
            results.fragmenter.charlimit = 300
            out: List[SearchResult] = []
            for hit in list(results)[max(0, offset):]:
                try:
                    snippet = hit.highlights("content", top=2) or ""
                except Exception:
                    snippet = ""
                out.append(
                    SearchResult(
                        document_id=hit["id"],
                        score=float(hit.score or 0.0),
                        title=hit.get("title", ""),
                        snippet=snippet,
                    )
                )
        return out
