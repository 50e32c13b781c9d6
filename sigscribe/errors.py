"""Error types raised around the signature engine.

The resolver itself never raises for unparseable source; these errors come
from the surrounding helpers (nested lookups, CLI target loading, config).

Each error carries the offending value as data and formats the same way
whether it is printed, interpolated into an f-string or passed to ``str``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

logger = logging.getLogger(__name__)


class SigscribeError(Exception):
    """Base error. Wraps another exception or a plain message.

    Attributes missing on the wrapper are looked up on the wrapped
    exception, so a ``SigscribeError(OSError(...))`` still exposes
    ``errno`` and ``filename``.

    Subclasses must describe themselves through ``__str__``; one that
    doesn't is reported when the class is defined.
    """

    def __init__(self, error: BaseException | str):
        message = str(error)
        super().__init__(message)
        self.message = message
        self.error: BaseException = error if isinstance(error, BaseException) else self

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__str__ is Exception.__str__:
            logger.warning(
                "Class %s does not override __str__() to describe the cause "
                "of this named error. Please remedy this.",
                cls.__name__,
            )

    def __getattr__(self, name: str) -> Any:
        if name == "error" or name.startswith("__"):
            raise AttributeError(name)
        wrapped = self.__dict__.get("error")
        if wrapped is None or wrapped is self:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            )
        return getattr(wrapped, name)

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)


def _dotted(path: str | Sequence[Any]) -> str:
    if isinstance(path, str):
        return path
    return ".".join(str(part) for part in path)


class InvalidObjectError(SigscribeError, TypeError):
    """A value of the wrong type was given where an object was expected."""

    def __init__(self, value_type: str, message: str | None = None):
        super().__init__(message or f"Invalid object: Received type {value_type}")
        self.value_type = value_type

    def __str__(self) -> str:
        return f"{type(self).__name__}: {self.message} (type: {self.value_type})"


class InvalidPathError(SigscribeError, LookupError):
    """A dotted path could not be followed to a value."""

    def __init__(self, path: str | Sequence[Any], message: str | None = None):
        super().__init__(message or f"Invalid path: {_dotted(path)}")
        self.path = path

    def __str__(self) -> str:
        return f"{type(self).__name__}: {self.message} (path: {_dotted(self.path)})"


class ConfigError(SigscribeError, ValueError):
    """A sigscribe.yaml file could not be loaded or failed validation."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{type(self).__name__}: {self.message} (file: {self.path})"
        return f"{type(self).__name__}: {self.message}"
