"""Signature overrides.

Any callable may declare its own signature under the reserved ``SIG``
marker. When present the override is authoritative and no source is read.

Objects that refuse new attributes (builtins, bound methods, slotted or
frozen instances) get their override recorded in a side table keyed by
identity instead. A bound method is identified by its instance and
function, since every attribute access builds a new method object. The
side table holds strong references, so an entry lives until
``clear_signature`` removes it.
"""

from __future__ import annotations

import logging
import threading
import types
from collections.abc import Mapping
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Reserved attribute name; dunder-namespaced so ordinary attributes never clash.
SIG = "__sigscribe_signature__"

# Upper bound on __func__ / __wrapped__ hops when looking for an override
_MAX_CHAIN = 16

_side_table: dict[tuple[int, ...], tuple[tuple[Any, ...], Any]] = {}
_side_lock = threading.Lock()


def _referents(obj: Any) -> tuple[Any, ...]:
    if isinstance(obj, types.MethodType):
        return (obj.__self__, obj.__func__)
    return (obj,)


def _side_key(referents: tuple[Any, ...]) -> tuple[int, ...]:
    return tuple(id(ref) for ref in referents)


def _side_lookup(obj: Any) -> tuple[tuple[int, ...], Any] | None:
    """Return ``(key, value)`` of the side-table entry for ``obj``, if any."""
    referents = _referents(obj)
    key = _side_key(referents)
    with _side_lock:
        entry = _side_table.get(key)
    if entry is None:
        return None
    stored, value = entry
    # ids can be reused after collection; the stored refs keep ours alive
    if all(a is b for a, b in zip(stored, referents)):
        return key, value
    return None


def set_signature(obj: T, value: Any) -> T:
    """Attach ``value`` as the signature override of ``obj`` and return ``obj``.

    ``None`` removes the override instead.
    """
    if value is None:
        clear_signature(obj)
        return obj

    if not isinstance(obj, types.MethodType):
        try:
            setattr(obj, SIG, value)
            return obj
        except (AttributeError, TypeError):
            pass

    referents = _referents(obj)
    with _side_lock:
        _side_table[_side_key(referents)] = (referents, value)
    logger.debug("Override for %s kept in side table", type(obj).__name__)
    return obj


def lookup_attr(obj: Any, name: str, default: Any = None) -> Any:
    """``getattr`` that also treats a failing ``__getattr__`` as missing.

    Objects such as ``AttrDict`` raise KeyError (or anything else) for
    unknown attributes.
    """
    try:
        return getattr(obj, name, default)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Attribute %s of %s raised %s", name, type(obj).__name__, type(exc).__name__)
        return default


def _namespace(obj: Any) -> Mapping | None:
    try:
        namespace = vars(obj)
    except Exception:  # noqa: BLE001
        return None
    return namespace if isinstance(namespace, Mapping) else None


def _own_override(obj: Any) -> Any:
    """Override stored for ``obj`` itself, ignoring anything inherited."""
    found = _side_lookup(obj)
    if found is not None:
        return found[1]

    if isinstance(obj, types.MethodType):
        return None
    namespace = _namespace(obj)
    if namespace is None:
        return None
    return namespace.get(SIG)


def get_override(obj: Any) -> Any:
    """Return the override declared for ``obj``, or ``None``.

    A subclass never sees its parent class's override. Bound methods and
    ``functools.wraps`` wrappers fall back to the function they wrap.
    """
    current = obj
    for _ in range(_MAX_CHAIN):
        if current is None:
            return None
        value = _own_override(current)
        if value is not None:
            return value
        current = lookup_attr(current, "__func__") or lookup_attr(current, "__wrapped__")
    return None


def has_override(obj: Any) -> bool:
    return get_override(obj) is not None


def clear_signature(obj: Any) -> bool:
    """Remove the override of ``obj``. Returns True if one was removed."""
    removed = False
    found = _side_lookup(obj)
    if found is not None:
        with _side_lock:
            removed = _side_table.pop(found[0], None) is not None

    if isinstance(obj, types.MethodType):
        return removed
    namespace = _namespace(obj)
    if namespace is not None and SIG in namespace:
        delattr(obj, SIG)
        removed = True
    return removed


def signature(value: Any) -> Callable[[T], T]:
    """Decorator declaring a signature override at definition time.

    Example:
        @signature("function fetch(url: str, *, timeout: float)")
        def fetch(*args, **kwargs):
            ...
    """
    def decorate(obj: T) -> T:
        return set_signature(obj, value)
    return decorate
