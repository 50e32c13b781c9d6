"""Signature extraction from callable source.

``resolve_signature(obj)`` turns a function or class into a short,
single-line signature such as ``function add(a, b)`` or
``class Point(x, y)``:

1. An override declared under the ``SIG`` marker wins outright; no source
   is read.
2. Otherwise the source comes from ``inspect.getsource``, comments are
   stripped from all of it, and the text is classified as class-like (it
   starts with ``class``) or function-like.
3. Class-like source takes its parameters from the constructor; function
   source from its own parameter list. Parameter text is kept verbatim
   except that whitespace runs collapse to one space.

The output always reads ``function`` for function-like source, whatever
keyword (``def``, ``async def``, ``lambda``, arrow, method shorthand) was
used. A class without an explicit constructor renders as ``class Name()``.

This is a diagnostic aid. Unrecognised or unavailable source never raises;
it degrades to ``function name()`` / ``class Name()`` built from the
object's name, or to an empty string when there is no name at all.
Nothing is cached: every call re-reads the source.
"""

from __future__ import annotations

import functools
import inspect
import logging
import re
import textwrap
import types
from typing import Any, Callable

from .errors import InvalidObjectError
from .markers import get_override, lookup_attr, set_signature
from .sig_types import SignatureParts
from .source_scanner import (
    BRACE,
    PYTHON,
    Dialect,
    collapse_whitespace,
    find_closing,
    find_top_level,
    get_dialect,
    mask_strings,
    skip_decorators,
    split_top_level,
    strip_comments,
)

logger = logging.getLogger(__name__)

_IDENT = r"(?:[^\W\d]|\$)[\w$]*"
_CLASS_HEAD = re.compile(rf"class\b\s*({_IDENT})?")
_NAMED_CALL = re.compile(rf"(?<![\w$.])({_IDENT})\s*\(")
_LAMBDA = re.compile(r"(?<![\w$.])lambda\b")
_ARROW_PARAM = re.compile(rf"(?:async\s+)?({_IDENT})\s*=>")
_RECEIVER = re.compile(rf"\s*{_IDENT}\s*(?::.*)?", re.DOTALL)

# Words that can precede "(" without naming a function
_NOT_NAMES = frozenset({
    "if", "elif", "while", "for", "switch", "catch", "with", "return",
    "not", "and", "or", "in", "is", "await", "yield", "typeof", "new",
    "print", "super", "assert", "del", "lambda", "function",
})


# ----------------------------------------------------------
# Parameter helpers
# ----------------------------------------------------------

def _normalize_params(text: str, dialect: Dialect) -> str:
    """Collapse whitespace and drop a dangling trailing comma."""
    params = collapse_whitespace(text)
    items = split_top_level(params, ",", dialect)
    if len(items) > 1 and not items[-1].strip():
        params = ",".join(items[:-1]).strip()
    return params


def _drop_receiver(params: str, dialect: Dialect) -> str:
    """Remove ``self`` (and a following bare ``/``) from constructor params."""
    items = split_top_level(params, ",", dialect)
    if not items or not _RECEIVER.fullmatch(items[0]):
        return params
    rest = items[1:]
    if rest and rest[0].strip() == "/":
        rest = rest[1:]
    return ",".join(rest).strip()


def _params_at(text: str, open_index: int, dialect: Dialect) -> tuple[str, int] | None:
    """Parameter text of the list opening at ``open_index`` and the index past it.

    Returns None unless the list balances and a body opener follows.
    """
    close = find_closing(text, open_index, dialect)
    if close == -1:
        return None
    tail = text[close + 1:].lstrip()
    if not tail.startswith(dialect.body_openers):
        return None
    return text[open_index + 1:close], close + 1


# ----------------------------------------------------------
# Function shape
# ----------------------------------------------------------

def _leading_definition(text: str, dialect: Dialect, name_hint: str | None) -> SignatureParts | None:
    """``def name(...)`` / ``function name(...)`` at the very start."""
    match = re.match(rf"{dialect.function_keyword}({_IDENT})?\s*\(", text)
    if not match:
        return None
    found = _params_at(text, match.end() - 1, dialect)
    if found is None:
        return None
    name = match.group(1) or name_hint or dialect.anonymous_name
    return SignatureParts("function", name, _normalize_params(found[0], dialect))


def _python_lambda(text: str, name_hint: str | None) -> SignatureParts | None:
    match = _LAMBDA.search(text)
    if not match:
        return None
    colon = find_top_level(text, ":", match.end(), PYTHON)
    if colon == -1:
        return None
    params = _normalize_params(text[match.end():colon], PYTHON)
    return SignatureParts("function", name_hint or PYTHON.anonymous_name, params)


def _leading_arrow(text: str, name_hint: str | None) -> SignatureParts | None:
    """``(a, b) => ...`` or ``a => ...`` at the very start."""
    name = name_hint or BRACE.anonymous_name
    match = re.match(r"(?:async\s*)?\(", text)
    if match:
        close = find_closing(text, match.end() - 1, BRACE)
        if close != -1 and text[close + 1:].lstrip().startswith("=>"):
            params = _normalize_params(text[match.end():close], BRACE)
            return SignatureParts("function", name, params)
        return None
    match = _ARROW_PARAM.match(text)
    if match:
        return SignatureParts("function", name, match.group(1))
    return None


def _first_named_call(text: str, dialect: Dialect) -> SignatureParts | None:
    """First ``name(...)`` followed by a body opener anywhere in the text."""
    for match in _NAMED_CALL.finditer(text):
        name = match.group(1)
        if name in _NOT_NAMES:
            continue
        found = _params_at(text, match.end() - 1, dialect)
        if found is not None:
            return SignatureParts("function", name, _normalize_params(found[0], dialect))
    return None


def _function_parts(text: str, dialect: Dialect, name_hint: str | None) -> SignatureParts | None:
    parts = _leading_definition(text, dialect, name_hint)
    if parts is not None:
        return parts
    if dialect.name == PYTHON.name:
        parts = _python_lambda(text, name_hint)
    else:
        parts = _leading_arrow(text, name_hint)
    if parts is not None:
        return parts
    return _first_named_call(text, dialect)


# ----------------------------------------------------------
# Class shape
# ----------------------------------------------------------

def _python_constructor(text: str, header_end: int) -> str | None:
    """Parameters of ``__init__`` declared directly in the class body."""
    body = text[header_end:]
    lines = body.split("\n")
    body_indent = next(
        (len(line) - len(line.lstrip()) for line in lines[1:] if line.strip()),
        None,
    )
    if body_indent is None:
        return None

    pattern = re.compile(rf"^([ \t]*){PYTHON.constructor}\s*\(", re.MULTILINE)
    # Docstrings may quote a constructor; match on the masked copy only
    for match in pattern.finditer(mask_strings(body, PYTHON)):
        if len(match.group(1)) != body_indent:
            continue
        found = _params_at(body, match.end() - 1, PYTHON)
        if found is not None:
            params = _normalize_params(found[0], PYTHON)
            return _drop_receiver(params, PYTHON)
    return None


def _brace_constructor(text: str) -> str | None:
    pattern = re.compile(rf"(?<![\w$.]){BRACE.constructor}\s*\(")
    for match in pattern.finditer(mask_strings(text, BRACE)):
        close = find_closing(text, match.end() - 1, BRACE)
        if close != -1 and text[close + 1:].lstrip().startswith("{"):
            return _normalize_params(text[match.end():close], BRACE)
    return None


def _class_parts(text: str, dialect: Dialect, name_hint: str | None) -> SignatureParts:
    head = _CLASS_HEAD.match(text)
    declared = head.group(1) if head else None
    if declared == "extends":
        declared = None
    name = declared or name_hint or dialect.anonymous_name
    header_end = head.end() if head else 0

    if dialect.name == PYTHON.name:
        # Skip the base list so its parentheses are not mistaken for anything
        rest = text[header_end:].lstrip()
        if rest.startswith("("):
            close = find_closing(text, text.index("(", header_end), PYTHON)
            if close != -1:
                header_end = close + 1
        params = _python_constructor(text, header_end)
    else:
        params = _brace_constructor(text[header_end:])

    return SignatureParts("class", name, params or "")


# ----------------------------------------------------------
# Public API
# ----------------------------------------------------------

def parse_signature(
    source: str,
    dialect: Dialect | str | None = None,
    name_hint: str | None = None,
) -> SignatureParts | None:
    """Classify and pick apart ``source``.

    Returns None when no function-like shape can be recognised. Class-like
    source always yields parts, with empty params when no constructor is
    found.
    """
    dialect = get_dialect(dialect)
    cleaned = strip_comments(source, dialect)
    cleaned = skip_decorators(cleaned, dialect)

    if re.match(r"class\b", cleaned):
        return _class_parts(cleaned, dialect, name_hint)
    return _function_parts(cleaned, dialect, name_hint)


def signature_from_source(
    source: str,
    dialect: Dialect | str | None = None,
    name_hint: str | None = None,
) -> str:
    """Signature string for raw source text; "" when nothing is recognised.

    >>> signature_from_source("function add(a, b) { return a + b }", "brace")
    'function add(a, b)'
    """
    parts = parse_signature(source, dialect, name_hint)
    if parts is None:
        if name_hint:
            return f"function {name_hint}()"
        return ""
    return parts.text


def get_source(obj: Any) -> str | None:
    """Dedented source of ``obj``, or None when Python cannot find it."""
    try:
        source = inspect.getsource(obj)
    except (OSError, TypeError, ValueError) as exc:
        logger.debug("Source unavailable for %s: %s", _name_of(obj) or type(obj).__name__, exc)
        return None
    except Exception as exc:  # noqa: BLE001
        # inspect reads __wrapped__ and friends, which a custom __getattr__ may break
        logger.debug("Source lookup failed for %s: %r", _name_of(obj) or type(obj).__name__, exc)
        return None
    return textwrap.dedent(source)


def _name_of(obj: Any) -> str | None:
    name = lookup_attr(obj, "__name__")
    if isinstance(name, str) and name:
        return name
    if callable(obj) and not isinstance(obj, type):
        return type(obj).__name__
    return None


def _fallback(obj: Any, name: str | None) -> str:
    if not name:
        return ""
    if inspect.isclass(lookup_attr(obj, "__wrapped__", obj)):
        return f"class {name}()"
    return f"function {name}()"


def describe(obj: Any) -> dict[str, Any]:
    """Signature of ``obj`` plus the pieces it was built from.

    Keys: ``signature``, ``shape``, ``name``, ``params`` and ``overridden``.
    Shape, name and params are None for overrides and degraded results.
    """
    override = get_override(obj)
    if override is not None:
        return {
            "signature": str(override),
            "shape": None,
            "name": None,
            "params": None,
            "overridden": True,
        }

    name = _name_of(obj)
    if not callable(obj):
        logger.debug("Not a callable: %s", type(obj).__name__)
        return {
            "signature": "",
            "shape": None,
            "name": name,
            "params": None,
            "overridden": False,
        }

    parts = None
    source = get_source(obj)
    if source is not None:
        parts = parse_signature(source, PYTHON, name)
        if parts is None:
            logger.debug(
                "Unrecognised source shape for %s", name,
                extra={"data": {"name": name, "source": source}},
            )

    if parts is None:
        return {
            "signature": _fallback(obj, name),
            "shape": None,
            "name": name,
            "params": None,
            "overridden": False,
        }
    return {
        "signature": parts.text,
        "shape": parts.shape,
        "name": parts.name,
        "params": parts.params,
        "overridden": False,
    }


def resolve_signature(obj: Any) -> str:
    """Canonical signature string of a function or class.

    Never raises for unparseable or missing source; see module docs.
    """
    return describe(obj)["signature"]


# ----------------------------------------------------------
# Explicit opt-in wrapper
# ----------------------------------------------------------

class Signed:
    """Wrap a callable so that it answers ``.signature()``.

    Calls pass straight through; ``__wrapped__`` gives the original back.

        @signed
        def add(a, b):
            return a + b

        add(1, 2)          # 3
        add.signature()    # 'function add(a, b)'
    """

    def __init__(self, func: Callable[..., Any], override: Any = None):
        if not callable(func):
            raise InvalidObjectError(
                type(func).__name__, "Only callables can be signed"
            )
        functools.update_wrapper(self, func)
        if override is not None:
            set_signature(self, override)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.__wrapped__(*args, **kwargs)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return types.MethodType(self, instance)

    def signature(self) -> str:
        return resolve_signature(self)

    def __repr__(self) -> str:
        return f"<Signed {self.signature()}>"


def signed(func: Any = None, /) -> Any:
    """Decorator form of ``Signed``.

    ``@signed`` parses the source; ``@signed("...")`` declares an override.
    """
    if func is None or isinstance(func, str):
        override = func

        def decorate(target: Callable[..., Any]) -> Signed:
            return Signed(target, override)
        return decorate
    return Signed(func)
