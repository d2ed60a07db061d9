"""Adapter for arbitrary Python objects.

Objects are indexed as given. The target may be a class or just a name; when
it is a class it can optionally provide ``all()`` (objects to import when none
are passed) and ``load(hits)`` (hit resolution).
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional

from indexbridge.adapters.base import BaseAdapter
from indexbridge.adapters.batching import BatchHandler


def camelize(name: str) -> str:
    """``blog_post`` -> ``BlogPost``; already camel-cased names are kept."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


class ObjectAdapter(BaseAdapter):
    """Adapter for plain objects, dicts, dataclasses, etc."""

    def __init__(
        self,
        target: Any,
        *,
        loader: Optional[Callable[[List[Any]], Iterable[Any]]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(target, **kwargs)
        self.loader = loader

    @property
    def name(self) -> str:
        if isinstance(self.target, str):
            return camelize(self.target)
        return self.target.__name__

    def import_objects(
        self, *objects: Any, handler: BatchHandler, batch_size: Optional[int] = None
    ) -> bool:
        objects = self._flatten(objects)
        if not objects:
            source = getattr(self.target, "all", None)
            if not callable(source):
                return True
            objects = tuple(source())
        return self._import_objects(objects, handler, batch_size)

    def load(self, hits: Iterable[Any], **kwargs: Any) -> List[Any]:
        hits = list(hits)
        loader = self.loader
        if loader is None:
            target_load = getattr(self.target, "load", None)
            if not callable(target_load):
                return hits
            loader = target_load
        loaded = list(loader(hits, **kwargs))[: len(hits)]
        return loaded + [None] * (len(hits) - len(loaded))
