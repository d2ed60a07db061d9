"""Delete-policy resolution for objects passed to an import.

Every object handed to an adapter import ends up either indexed or removed
from the index. The decision is made by probing the object for optional
capabilities, in a fixed priority order:

1. a legacy ``delete_from_index()`` method (deprecated, reported through the
   deprecation channel);
2. the adapter's configured ``delete_if`` policy;
3. a ``destroyed`` attribute or method;
4. a ``"_destroyed"`` key when the object is a mapping;
5. any extra probes registered by the adapter.

The first truthy answer wins. A missing capability is skipped, never an error.
"""

from __future__ import annotations

import inspect
import logging
import warnings
from collections.abc import Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from indexbridge.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DeprecationSink = Callable[[str], None]
Probe = Callable[[Any], Optional[bool]]

LEGACY_HOOK_MESSAGE = (
    "`delete_from_index` method on indexed objects is deprecated and will be "
    "removed soon. Use the adapter `delete_if` option instead."
)

_NO_OBJECT = object()
_current: ContextVar[Any] = ContextVar("indexbridge_current_object", default=_NO_OBJECT)


def current_object() -> Any:
    """Return the object a zero-argument ``delete_if`` predicate is evaluated for.

    Raises ``LookupError`` outside of a predicate evaluation.
    """
    obj = _current.get()
    if obj is _NO_OBJECT:
        raise LookupError("current_object() is only available inside a delete_if predicate")
    return obj


@contextmanager
def bound_object(obj: Any) -> Iterator[Any]:
    """Bind ``obj`` as the current object for the duration of the block."""
    token = _current.set(obj)
    try:
        yield obj
    finally:
        _current.reset(token)


@dataclass(frozen=True, slots=True)
class FieldRef:
    """``delete_if`` given as the name of an attribute or zero-argument method."""

    name: str

    def evaluate(self, obj: Any) -> Any:
        if isinstance(obj, Mapping) and (self.name in obj or not hasattr(obj, self.name)):
            return obj.get(self.name)
        value = getattr(obj, self.name)
        return value() if callable(value) else value


@dataclass(frozen=True, slots=True)
class Predicate:
    """``delete_if`` given as a function.

    ``unary`` predicates receive the object as their only argument; the others
    are called without arguments and read the object via ``current_object()``.
    """

    fn: Callable[..., Any]
    unary: bool

    @classmethod
    def from_callable(cls, fn: Callable[..., Any]) -> Predicate:
        return cls(fn=fn, unary=_takes_one_argument(fn))

    def evaluate(self, obj: Any) -> Any:
        if self.unary:
            return self.fn(obj)
        with bound_object(obj):
            return self.fn()


DeletePolicy = Union[FieldRef, Predicate]


def _takes_one_argument(fn: Callable[..., Any]) -> bool:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        # Some builtins expose no signature
        return True

    positional = [
        p
        for p in sig.parameters.values()
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    required = [p for p in positional if p.default is inspect.Parameter.empty]
    required_kwonly = [
        p
        for p in sig.parameters.values()
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]
    if len(required) > 1 or required_kwonly:
        raise ConfigurationError(
            f"delete_if predicate {fn!r} must accept zero or one positional argument"
        )
    return len(required) == 1


def build_delete_policy(value: Any) -> Optional[DeletePolicy]:
    """Normalize a user-supplied ``delete_if`` value into a policy.

    Accepts ``None``, an attribute name, a callable, or an already built
    ``FieldRef``/``Predicate``. Raises ``ConfigurationError`` for anything else.
    """
    if value is None or isinstance(value, (FieldRef, Predicate)):
        return value
    if isinstance(value, str):
        if not value:
            raise ConfigurationError("delete_if attribute name must not be empty")
        return FieldRef(value)
    if callable(value):
        return Predicate.from_callable(value)
    raise ConfigurationError(
        f"Unsupported delete_if value of type {type(value).__name__}; "
        "expected an attribute name or a callable"
    )


def warn_deprecated(message: str) -> None:
    """Default deprecation channel: a ``DeprecationWarning`` plus a log record."""
    logger.warning(message)
    warnings.warn(message, DeprecationWarning, stacklevel=3)


def _destroyed_probe(obj: Any) -> Optional[bool]:
    if not hasattr(obj, "destroyed"):
        return None
    value = getattr(obj, "destroyed")
    return bool(value() if callable(value) else value)


def _mapping_probe(obj: Any) -> Optional[bool]:
    if not isinstance(obj, Mapping):
        return None
    return bool(obj.get("_destroyed"))


def should_delete(
    obj: Any,
    delete_if: Optional[DeletePolicy] = None,
    *,
    on_deprecation: Optional[DeprecationSink] = None,
    probes: Iterable[Probe] = (),
) -> bool:
    """Return True if ``obj`` must be removed from the index."""
    delete: Any = False

    hook = getattr(obj, "delete_from_index", None)
    if callable(hook):
        (on_deprecation or warn_deprecated)(LEGACY_HOOK_MESSAGE)
        delete = hook()

    if not delete and delete_if is not None:
        delete = delete_if.evaluate(obj)

    if not delete:
        for probe in (_destroyed_probe, _mapping_probe, *probes):
            if probe(obj):
                return True

    return bool(delete)
