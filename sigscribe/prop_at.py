"""Nested value lookup by dotted path.

    data = {"cats": [{"name": "Sally"}, {"name": "Rose"}]}

    at(data, "cats.1.name")            -> "Rose"
    at(data, ["cats", 1, "name"])      -> "Rose"
    at(data, "cats.1.name", "Brie")    -> "Brie" (and data is updated)
    at(data, "I.do.not.exist")         -> raises InvalidPathError
    at_nicely(data, "I.do.not.exist")  -> None

Mappings are indexed by key, sequences by integer position and anything
else by attribute.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from typing import Any

from .errors import InvalidObjectError, InvalidPathError

logger = logging.getLogger(__name__)

MISSING: Any = object()

_LOOKUP_ERRORS = (LookupError, AttributeError, TypeError, ValueError)


def split_path(path: str | Sequence[Any]) -> list[Any]:
    """Turn ``"a.b.1"`` into ``["a", "b", "1"]``; sequences are copied."""
    if isinstance(path, str):
        return path.split(".") if path else []
    return list(path)


def _mapping_key(container: Mapping, key: Any) -> Any:
    if key not in container and isinstance(key, str) and key.lstrip("-").isdigit():
        return int(key)
    return key


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _step(current: Any, key: Any) -> Any:
    if isinstance(current, Mapping):
        return current[_mapping_key(current, key)]
    if _is_sequence(current):
        return current[int(key)]
    return getattr(current, str(key))


def _assign(current: Any, key: Any, value: Any) -> None:
    if isinstance(current, MutableMapping):
        current[_mapping_key(current, key)] = value
    elif isinstance(current, MutableSequence):
        current[int(key)] = value
    else:
        setattr(current, str(key), value)


def at(
    obj: Any,
    path: str | Sequence[Any],
    set_to: Any = MISSING,
    play_nice: bool = False,
) -> Any:
    """Read, and optionally assign, the value at ``path`` inside ``obj``.

    Args:
        obj: Root object. Mappings, sequences and plain objects all work.
        path: Dotted string (numeric parts index sequences) or a list of keys.
        set_to: When given, the final step is assigned this value first.
        play_nice: Return None instead of raising for unreachable paths.

    Raises:
        InvalidObjectError: ``obj`` is None.
        InvalidPathError: Some step of ``path`` does not exist.
    """
    if obj is None:
        if play_nice:
            return None
        raise InvalidObjectError(type(obj).__name__)

    keys = split_path(path)
    try:
        if set_to is not MISSING:
            if not keys:
                raise ValueError("Cannot assign to an empty path")
            parent = obj
            for key in keys[:-1]:
                parent = _step(parent, key)
            _assign(parent, keys[-1], set_to)

        current = obj
        for key in keys:
            current = _step(current, key)
        return current
    except _LOOKUP_ERRORS as error:
        if play_nice:
            return None
        logger.error(
            "Cannot reach into the beyond! Tried: %s",
            "".join(f"[{key!r}]" for key in keys) or "<root>",
        )
        raise InvalidPathError(path) from error


def at_nicely(obj: Any, path: str | Sequence[Any], set_to: Any = MISSING) -> Any:
    """``at`` with ``play_nice=True``: unreachable paths give None."""
    return at(obj, path, set_to, play_nice=True)
