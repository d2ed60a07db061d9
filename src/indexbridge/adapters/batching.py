"""Batch partitioning and dispatch of classified import batches."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from itertools import islice
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from indexbridge.adapters.policy import (
    DeletePolicy,
    DeprecationSink,
    FieldRef,
    Predicate,
    Probe,
    build_delete_policy,
    should_delete,
)
from indexbridge.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

BATCH_SIZE = 1000


class Action(str, Enum):
    """What the handler must do with a group of objects."""

    INDEX = "index"
    DELETE = "delete"


ClassifiedGroup = Dict[Action, List[Any]]
BatchHandler = Callable[[ClassifiedGroup], bool]


def _check_batch_size(batch_size: Any) -> int:
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise ConfigurationError(f"batch_size must be a positive integer, got {batch_size!r}")
    return batch_size


@dataclass(frozen=True, slots=True)
class BatchConfiguration:
    """Immutable import options shared by every batch of a run."""

    batch_size: int = BATCH_SIZE
    delete_if: Optional[DeletePolicy] = None

    def __post_init__(self) -> None:
        _check_batch_size(self.batch_size)
        if self.delete_if is not None and not isinstance(self.delete_if, (FieldRef, Predicate)):
            raise ConfigurationError(
                "delete_if must be a FieldRef or Predicate; use BatchConfiguration.build()"
            )

    @classmethod
    def build(cls, *, batch_size: Optional[int] = None, delete_if: Any = None) -> BatchConfiguration:
        """Create a configuration from raw option values."""
        return cls(
            batch_size=BATCH_SIZE if batch_size is None else batch_size,
            delete_if=build_delete_policy(delete_if),
        )


def partition(objects: Iterable[Any], batch_size: int) -> Iterator[List[Any]]:
    """Return an iterator of consecutive slices holding at most ``batch_size`` items.

    ``batch_size`` is checked eagerly, before any object is consumed.
    """
    _check_batch_size(batch_size)
    return _slices(iter(objects), batch_size)


def _slices(it: Iterator[Any], size: int) -> Iterator[List[Any]]:
    while True:
        batch = list(islice(it, size))
        if not batch:
            return
        yield batch


def classify(
    batch: Iterable[Any],
    config: BatchConfiguration,
    *,
    on_deprecation: Optional[DeprecationSink] = None,
    probes: Iterable[Probe] = (),
    force_delete: Optional[Callable[[Any], bool]] = None,
) -> ClassifiedGroup:
    """Group a batch by action, keeping input order inside each group.

    Objects for which ``force_delete`` returns True go to the delete group
    without consulting the policy. Only non-empty actions appear in the result.
    """
    probes = tuple(probes)
    group: ClassifiedGroup = {}
    for obj in batch:
        delete = (force_delete is not None and force_delete(obj)) or should_delete(
            obj, config.delete_if, on_deprecation=on_deprecation, probes=probes
        )
        group.setdefault(Action.DELETE if delete else Action.INDEX, []).append(obj)
    return group


def dispatch(
    objects: Iterable[Any],
    config: BatchConfiguration,
    handler: BatchHandler,
    *,
    on_deprecation: Optional[DeprecationSink] = None,
    probes: Iterable[Probe] = (),
) -> bool:
    """Classify ``objects`` batch by batch and pass every group to ``handler``.

    Returns True only if every handler call returned a truthy value. A falsy
    result does not stop the run: later batches are still dispatched. An
    exception raised by the handler propagates immediately and no further
    batches are processed. Empty input returns True without calling the
    handler.
    """
    probes = tuple(probes)
    groups = (
        classify(batch, config, on_deprecation=on_deprecation, probes=probes)
        for batch in partition(objects, config.batch_size)
    )
    return dispatch_groups(groups, handler)


def dispatch_groups(groups: Iterable[ClassifiedGroup], handler: BatchHandler) -> bool:
    """Pass already classified groups to ``handler`` and AND the results.

    Same result and failure semantics as `dispatch`; groups are consumed
    lazily, one at a time.
    """
    results: List[bool] = []
    for number, group in enumerate(groups, start=1):
        logger.debug(
            "Dispatching batch %d: index=%d delete=%d",
            number,
            len(group.get(Action.INDEX, ())),
            len(group.get(Action.DELETE, ())),
        )
        ok = bool(handler(group))
        if not ok:
            logger.warning("Handler reported failure for batch %d", number)
        results.append(ok)
    return all(results)
