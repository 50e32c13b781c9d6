"""Turn command-line target strings into live callables.

Accepted forms:
  package.module:Name.attr   explicit module / attribute split
  package.module.Name        longest importable prefix is the module
"""

from __future__ import annotations

import importlib
import inspect
import logging
from collections.abc import Iterator
from types import ModuleType
from typing import Any, Callable

from .errors import InvalidObjectError, InvalidPathError
from .prop_at import at

logger = logging.getLogger(__name__)


def import_module(name: str, target: str | None = None) -> ModuleType:
    """Import ``name``; failures become InvalidPathError on ``target``.

    Anything the module raises while executing counts as a failure too.
    """
    try:
        return importlib.import_module(name)
    except Exception as exc:  # noqa: BLE001
        raise InvalidPathError(target or name, f"Cannot import module {name!r}: {exc!r}") from exc


def _import_longest_prefix(target: str) -> tuple[ModuleType, str]:
    parts = target.split(".")
    for size in range(len(parts), 0, -1):
        name = ".".join(parts[:size])
        try:
            module = importlib.import_module(name)
        except ModuleNotFoundError as exc:
            # Only step back when the candidate itself is missing, not one of its imports
            if exc.name and (name == exc.name or name.startswith(exc.name + ".")):
                continue
            raise InvalidPathError(target, f"Cannot import module {name!r}: {exc!r}") from exc
        except Exception as exc:  # noqa: BLE001
            raise InvalidPathError(target, f"Cannot import module {name!r}: {exc!r}") from exc
        return module, ".".join(parts[size:])

    raise InvalidPathError(target, f"No importable module in {target!r}")


def load_target(target: str) -> Callable[..., Any]:
    """Resolve ``target`` to a callable.

    Raises:
        InvalidPathError: The module cannot be imported or the attribute
            path does not exist.
        InvalidObjectError: The resolved value is not callable.
    """
    target = target.strip()
    if not target:
        raise InvalidPathError(target, "Empty target")

    if ":" in target:
        module_name, _, attr_path = target.partition(":")
        module = import_module(module_name, target)
    else:
        module, attr_path = _import_longest_prefix(target)

    value: Any = module
    if attr_path:
        try:
            value = at(module, attr_path)
        except InvalidPathError as exc:
            raise InvalidPathError(
                target, f"{module.__name__!r} has no attribute path {attr_path!r}"
            ) from exc
        except Exception as exc:  # noqa: BLE001
            # properties and __getattr__ hooks can raise anything
            raise InvalidPathError(
                target, f"Reading {attr_path!r} from {module.__name__!r} failed: {exc!r}"
            ) from exc

    if not callable(value):
        raise InvalidObjectError(type(value).__name__, f"Target {target!r} is not callable")

    logger.debug("Loaded target %s", target)
    return value


def iter_module_callables(
    module: ModuleType, include_private: bool = False
) -> Iterator[tuple[str, Callable[..., Any]]]:
    """Yield ``(name, obj)`` for functions and classes defined in ``module``.

    Imported names are skipped. Order follows the module namespace, which is
    definition order for ordinary modules.
    """
    for name, value in vars(module).items():
        if not include_private and name.startswith("_"):
            continue
        if not (inspect.isfunction(value) or inspect.isclass(value)):
            continue
        if getattr(value, "__module__", None) != module.__name__:
            continue
        yield name, value
