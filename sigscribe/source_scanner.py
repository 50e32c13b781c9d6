"""Bounded text scanning over callable source.

Two source dialects are understood:

- ``python``: ``#`` comments, single/triple quoted strings, ``def`` bodies.
- ``brace``: C-family / JavaScript text with ``//`` and ``/* */`` comments,
  ``'``, ``"`` and backtick strings, ``{`` bodies.

Nothing here builds a syntax tree. String literals are skipped so that
comment markers and brackets inside them are left alone, and brackets are
balanced by counting, which keeps nested default expressions intact.
"""

from __future__ import annotations

import re
from typing import NamedTuple


class Dialect(NamedTuple):
    """Lexical rules for one family of source text."""

    name: str
    line_comment: str
    block_comment: tuple[str, str] | None
    quotes: str
    triple_quotes: bool
    # Regex for the optional keyword in front of a function name
    function_keyword: str
    # Regex naming the constructor inside a class body
    constructor: str
    # What may follow a parameter list to open the body
    body_openers: tuple[str, ...]
    # Name used when the source declares none
    anonymous_name: str


PYTHON = Dialect(
    name="python",
    line_comment="#",
    block_comment=None,
    quotes="'\"",
    triple_quotes=True,
    function_keyword=r"(?:async\s+)?def\s+",
    constructor=r"(?:async\s+)?def\s+__init__",
    body_openers=(":", "->"),
    anonymous_name="<lambda>",
)

BRACE = Dialect(
    name="brace",
    line_comment="//",
    block_comment=("/*", "*/"),
    quotes="'\"`",
    triple_quotes=False,
    function_keyword=r"(?:async\s+)?function\b\s*\*?\s*",
    constructor=r"constructor",
    body_openers=("{", "=>"),
    anonymous_name="anonymous",
)

DIALECTS: dict[str, Dialect] = {
    PYTHON.name: PYTHON,
    BRACE.name: BRACE,
}

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())
_WHITESPACE = re.compile(r"(?:\r\n|\n|\r|\s)+")
_DECORATOR = re.compile(r"\s*@\s*[\w$.]+\s*")
_NOT_NEWLINE = re.compile(r"[^\r\n]")


def get_dialect(dialect: Dialect | str | None) -> Dialect:
    """Look up a dialect by name. ``None`` means python."""
    if dialect is None:
        return PYTHON
    if isinstance(dialect, Dialect):
        return dialect
    try:
        return DIALECTS[dialect.lower()]
    except KeyError:
        known = ", ".join(sorted(DIALECTS))
        raise ValueError(f"Unknown dialect {dialect!r} (known: {known})") from None


def string_end(text: str, start: int, dialect: Dialect = PYTHON) -> int:
    """Index just past the string literal opening at ``start``.

    Unterminated single-line strings stop at the newline; anything else
    unterminated runs to the end of the text.
    """
    quote = text[start]
    delimiter = quote
    if dialect.triple_quotes and text.startswith(quote * 3, start):
        delimiter = quote * 3
    multiline = len(delimiter) == 3 or quote == "`"

    i = start + len(delimiter)
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if text.startswith(delimiter, i):
            return i + len(delimiter)
        if ch == "\n" and not multiline:
            return i
        i += 1
    return n


def strip_comments(source: str, dialect: Dialect | str | None = None) -> str:
    """Remove line and block comments from the whole source.

    Line comments go up to (not including) the newline. Block comments,
    including multi-line ones, are replaced by a single space so that the
    tokens on either side stay apart.
    """
    dialect = get_dialect(dialect)
    line_marker = dialect.line_comment
    block = dialect.block_comment

    out: list[str] = []
    run_start = 0
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        if ch in dialect.quotes:
            i = string_end(source, i, dialect)
            continue
        if line_marker and source.startswith(line_marker, i):
            out.append(source[run_start:i])
            newline = source.find("\n", i)
            i = n if newline == -1 else newline
            run_start = i
            continue
        if block and source.startswith(block[0], i):
            out.append(source[run_start:i])
            out.append(" ")
            close = source.find(block[1], i + len(block[0]))
            i = n if close == -1 else close + len(block[1])
            run_start = i
            continue
        i += 1
    out.append(source[run_start:])
    return "".join(out)


def mask_strings(text: str, dialect: Dialect | str | None = None) -> str:
    """Blank out string literals, quotes included.

    Length and newlines are preserved, so indices and line indentation in
    the result line up with ``text``.
    """
    dialect = get_dialect(dialect)
    out: list[str] = []
    run_start = 0
    i = 0
    n = len(text)
    while i < n:
        if text[i] in dialect.quotes:
            end = string_end(text, i, dialect)
            out.append(text[run_start:i])
            out.append(_NOT_NEWLINE.sub(" ", text[i:end]))
            i = run_start = end
            continue
        i += 1
    out.append(text[run_start:])
    return "".join(out)


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def find_closing(text: str, open_index: int, dialect: Dialect | str | None = None) -> int:
    """Return the index of the bracket balancing ``text[open_index]``.

    Returns -1 when the bracket never balances or a mismatched closer
    turns up first.
    """
    dialect = get_dialect(dialect)
    if open_index >= len(text) or text[open_index] not in _OPENERS:
        return -1

    expected: list[str] = []
    i = open_index
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in dialect.quotes:
            i = string_end(text, i, dialect)
            continue
        if ch in _OPENERS:
            expected.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not expected or ch != expected[-1]:
                return -1
            expected.pop()
            if not expected:
                return i
        i += 1
    return -1


def find_top_level(
    text: str, target: str, start: int = 0, dialect: Dialect | str | None = None
) -> int:
    """Index of the first ``target`` outside brackets and strings, or -1."""
    dialect = get_dialect(dialect)
    depth = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in dialect.quotes:
            i = string_end(text, i, dialect)
            continue
        if depth == 0 and text.startswith(target, i):
            return i
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and depth:
            depth -= 1
        i += 1
    return -1


def split_top_level(
    text: str, sep: str = ",", dialect: Dialect | str | None = None
) -> list[str]:
    """Split at separators that sit outside brackets and strings.

    ``sep.join(result) == text`` always holds.
    """
    dialect = get_dialect(dialect)
    parts: list[str] = []
    start = 0
    while True:
        index = find_top_level(text, sep, start, dialect)
        if index == -1:
            parts.append(text[start:])
            return parts
        parts.append(text[start:index])
        start = index + len(sep)


def skip_decorators(text: str, dialect: Dialect | str | None = None) -> str:
    """Drop leading ``@decorator`` / ``@decorator(...)`` lines."""
    dialect = get_dialect(dialect)
    pos = 0
    while True:
        match = _DECORATOR.match(text, pos)
        if not match:
            return text[pos:].lstrip()
        pos = match.end()
        while pos < len(text) and text[pos] in "([":
            close = find_closing(text, pos, dialect)
            if close == -1:
                return text.lstrip()
            pos = close + 1
