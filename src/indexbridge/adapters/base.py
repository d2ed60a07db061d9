"""Base adapter interface.

An adapter knows how to feed one kind of domain object (plain objects, ORM
models, ...) into a search index and how to turn search hits back into those
objects. Concrete implementations should subclass `BaseAdapter` and implement
`name`, `import_objects()` and `load()`.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from functools import cached_property
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from indexbridge.adapters.batching import (
    BatchConfiguration,
    BatchHandler,
    dispatch,
)
from indexbridge.adapters.policy import DeprecationSink, Probe

# A single argument of these types is unpacked by import_objects
_COLLECTIONS = (list, tuple, set, frozenset, Iterator)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def underscore(name: str) -> str:
    """Convert a camel-cased name to snake case (``BlogPost`` -> ``blog_post``)."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class BaseAdapter(ABC):
    """Abstract adapter contract.

    Parameters
    ----------
    target:
        The adapted type (a class, a model, or a plain name).
    batch_size:
        Objects per batch handed to the import handler (default 1000).
    delete_if:
        Optional delete policy: an attribute name or a predicate.
    on_deprecation:
        Channel for deprecation notices raised while classifying objects.
    options:
        Adapter-specific options, kept in `options`.
    """

    def __init__(
        self,
        target: Any,
        *,
        batch_size: Optional[int] = None,
        delete_if: Any = None,
        on_deprecation: Optional[DeprecationSink] = None,
        **options: Any,
    ) -> None:
        self.target = target
        self.options = options
        self.on_deprecation = on_deprecation
        self.config = BatchConfiguration.build(batch_size=batch_size, delete_if=delete_if)

    @property
    @abstractmethod
    def name(self) -> str:
        """Camel-cased name of the adapted type, e.g. ``"Product"``."""

    @cached_property
    def type_name(self) -> str:
        """Underscored `name`, used to name the index type (``"product"``)."""
        return underscore(self.name)

    @property
    def probes(self) -> Sequence[Probe]:
        """Extra destroyed-probes consulted after the built-in ones."""
        return ()

    @abstractmethod
    def import_objects(
        self, *objects: Any, handler: BatchHandler, batch_size: Optional[int] = None
    ) -> bool:
        """Split objects into batches and pass each classified batch to ``handler``.

        Every batch reaches the handler as ``{Action.DELETE: [...], Action.INDEX: [...]}``.
        Returns True if all handler calls returned True, False otherwise.
        """

    @abstractmethod
    def load(self, hits: Iterable[Any], **kwargs: Any) -> List[Any]:
        """Return the loaded object for every hit, ``None`` where it cannot be loaded."""
        raise NotImplementedError

    @staticmethod
    def _flatten(objects: Tuple[Any, ...]) -> Tuple[Any, ...]:
        """Unpack a single collection or iterator argument into its items."""
        if len(objects) == 1 and isinstance(objects[0], _COLLECTIONS):
            return tuple(objects[0])
        return objects

    def _import_objects(
        self, objects: Iterable[Any], handler: BatchHandler, batch_size: Optional[int] = None
    ) -> bool:
        config = self.config
        if batch_size is not None:
            config = BatchConfiguration(batch_size=batch_size, delete_if=config.delete_if)
        return dispatch(
            objects,
            config,
            handler,
            on_deprecation=self.on_deprecation,
            probes=self.probes,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
