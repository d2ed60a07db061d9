"""Adapter for SQLAlchemy ORM models.

Imports accept model instances, primary key values, or nothing at all (the
whole table is streamed in primary key order). Ids that no longer exist in the
database are sent to the handler in the delete group so the index can drop
them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from sqlalchemy import Select, inspect as sa_inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import InstanceState, Session, sessionmaker

from indexbridge.adapters.base import BaseAdapter
from indexbridge.adapters.batching import (
    BatchHandler,
    ClassifiedGroup,
    classify,
    dispatch_groups,
    partition,
)
from indexbridge.adapters.policy import Probe
from indexbridge.exceptions import ConfigurationError, LoadError
from indexbridge.storage.database import session_scope

logger = logging.getLogger(__name__)


def orm_deleted(obj: Any) -> Optional[bool]:
    """Probe: instances deleted in their ORM session count as destroyed."""
    state = sa_inspect(obj, raiseerr=False)
    if not isinstance(state, InstanceState):
        return None
    return state.deleted or state.was_deleted


def hit_id(hit: Any) -> Any:
    """Extract the document id from a search hit (SearchResult, mapping or object)."""
    if hit is None:
        return None
    if isinstance(hit, Mapping):
        return hit.get("id")
    for attr in ("document_id", "id"):
        if hasattr(hit, attr):
            return getattr(hit, attr)
    return hit


class SQLAlchemyAdapter(BaseAdapter):
    """Adapter bridging a mapped model class and a search index.

    Parameters
    ----------
    model:
        Mapped class with a single-column primary key.
    session_factory:
        Used to open sessions for id lookups, full-table imports and `load`.
    scope:
        Optional function narrowing the base ``select(model)`` statement
        (e.g. ``lambda stmt: stmt.where(Document.archived.is_(False))``).
    """

    def __init__(
        self,
        model: type,
        session_factory: sessionmaker[Session],
        *,
        scope: Optional[Callable[[Select[Any]], Select[Any]]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(model, **kwargs)
        self.session_factory = session_factory
        self.scope = scope

        mapper = sa_inspect(model, raiseerr=False)
        if mapper is None or not hasattr(mapper, "primary_key"):
            raise ConfigurationError(f"{model!r} is not a mapped SQLAlchemy class")
        if len(mapper.primary_key) != 1:
            raise ConfigurationError(f"{model.__name__} must have a single-column primary key")
        self._pk_column = mapper.primary_key[0]
        self._pk_attr = mapper.get_property_by_column(self._pk_column).key

    @property
    def name(self) -> str:
        return self.target.__name__

    @property
    def probes(self) -> Sequence[Probe]:
        return (orm_deleted,)

    def _select(self) -> Select[Any]:
        stmt = select(self.target)
        return self.scope(stmt) if self.scope else stmt

    def _coerce_id(self, value: Any) -> Any:
        try:
            python_type = self._pk_column.type.python_type
        except NotImplementedError:
            return value
        if isinstance(value, python_type):
            return value
        try:
            return python_type(value)
        except (TypeError, ValueError):
            return value

    def import_objects(
        self, *objects: Any, handler: BatchHandler, batch_size: Optional[int] = None
    ) -> bool:
        objects = self._flatten(objects)
        size = self.config.batch_size if batch_size is None else batch_size

        if not objects:
            return self._import_objects(self._iter_all(size), handler, batch_size)
        return dispatch_groups(self._object_groups(partition(objects, size)), handler)

    def _iter_all(self, size: int) -> Iterator[Any]:
        """Stream every row of the scope using keyset pagination on the primary key."""
        pk = getattr(self.target, self._pk_attr)
        last = None
        with session_scope(self.session_factory) as session:
            while True:
                stmt = self._select().order_by(pk).limit(size)
                if last is not None:
                    stmt = stmt.where(pk > last)
                rows = session.scalars(stmt).all()
                if not rows:
                    return
                yield from rows
                last = getattr(rows[-1], self._pk_attr)

    def _is_missing(self, obj: Any) -> bool:
        # After id resolution only ids without a row are left as non-instances
        return not isinstance(obj, self.target)

    def _object_groups(self, batches: Iterator[List[Any]]) -> Iterator[ClassifiedGroup]:
        """Resolve ids to rows batch by batch and classify each batch in input order.

        Ids with no row in the scope stay in place as bare ids and land in the
        delete group.
        """
        pk = getattr(self.target, self._pk_attr)
        with session_scope(self.session_factory) as session:
            for batch in batches:
                wanted = [self._coerce_id(o) for o in batch if not isinstance(o, self.target)]
                found: Dict[Any, Any] = {}
                if wanted:
                    stmt = self._select().where(pk.in_(list(dict.fromkeys(wanted))))
                    found = {getattr(row, self._pk_attr): row for row in session.scalars(stmt)}

                resolved = []
                for obj in batch:
                    if isinstance(obj, self.target):
                        resolved.append(obj)
                    else:
                        key = self._coerce_id(obj)
                        resolved.append(found.get(key, key))
                missing = sum(1 for o in resolved if self._is_missing(o))
                if missing:
                    logger.debug("%d %s ids not found, scheduling delete", missing, self.name)
                yield classify(
                    resolved,
                    self.config,
                    on_deprecation=self.on_deprecation,
                    probes=self.probes,
                    force_delete=self._is_missing,
                )

    def load(
        self, hits: Iterable[Any], *, session: Optional[Session] = None, **kwargs: Any
    ) -> List[Any]:
        ids = [hit_id(hit) for hit in hits]
        wanted = [self._coerce_id(i) for i in ids if i is not None]
        if not wanted:
            return [None] * len(ids)

        pk = getattr(self.target, self._pk_attr)
        stmt = self._select().where(pk.in_(list(dict.fromkeys(wanted))))
        try:
            if session is not None:
                rows = session.scalars(stmt).all()
            else:
                with session_scope(self.session_factory) as own:
                    rows = own.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise LoadError(f"Failed to load {self.name} records: {exc}") from exc

        found: Dict[Any, Any] = {getattr(row, self._pk_attr): row for row in rows}
        return [None if i is None else found.get(self._coerce_id(i)) for i in ids]
