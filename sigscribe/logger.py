"""Structured logging for sigscribe.

Every module logs through ``logging.getLogger(__name__)`` under the
``sigscribe`` hierarchy. Nothing is emitted until ``configure_logging`` is
called (the CLI does so); library users keep full control otherwise.

Configuration via environment variables:
  SIGSCRIBE_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
  SIGSCRIBE_LOG_FILE: optional path to also write logs to a file

A record logged with ``extra={"callable": fn}`` gets the resolved
signature of ``fn`` attached to its JSON entry. Source text is never
written out, only its length.
"""

from __future__ import annotations

import json
import logging
import os
import sys

from .signatures import resolve_signature

ROOT_LOGGER = "sigscribe"

# Keys whose values hold source text and must be redacted.
_REDACT_CONTENT_KEYS = frozenset({"source", "text", "code"})


def redact_value(key: str, value: object) -> object:
    """Replace source-bearing values with a length indicator like "<512 chars>"."""
    if key in _REDACT_CONTENT_KEYS:
        if isinstance(value, str):
            return f"<{len(value)} chars>"
        return "<redacted>"
    return value


def redact_data(data: dict | None) -> dict:
    """Redact a structured ``data`` dict for safe logging."""
    if not data:
        return {}
    return {key: redact_value(key, value) for key, value in data.items()}


# ── Formatters ────────────────────────────────────────────────────────


class _JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if isinstance(data, dict):
            entry["data"] = redact_data(data)
        elif data is not None:
            entry["data"] = data

        target = getattr(record, "callable", None)
        if target is not None:
            entry["signature"] = resolve_signature(target)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


_PLAIN_FORMAT = "%(levelname)s %(name)s: %(message)s"


# ── Logger setup ──────────────────────────────────────────────────────

_CONFIGURED = False


def configure_logging(
    level: str | int | None = None,
    json_output: bool = True,
    force: bool = False,
) -> logging.Logger:
    """Configure the sigscribe root logger (idempotent unless ``force``).

    Args:
        level: Level name or number. Falls back to SIGSCRIBE_LOG_LEVEL, then INFO.
        json_output: Structured JSON lines instead of plain text.
        force: Drop previously installed handlers and configure again.

    Returns:
        The ``sigscribe`` root logger.
    """
    global _CONFIGURED  # noqa: PLW0603
    root = logging.getLogger(ROOT_LOGGER)
    if _CONFIGURED and not force:
        return root
    _CONFIGURED = True

    for handler in list(root.handlers):
        root.removeHandler(handler)

    if level is None:
        level = os.environ.get("SIGSCRIBE_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(level)

    formatter: logging.Formatter = _JSONFormatter() if json_output else logging.Formatter(_PLAIN_FORMAT)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    root.addHandler(stderr_handler)

    log_file = os.environ.get("SIGSCRIBE_LOG_FILE")
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(_JSONFormatter())
        root.addHandler(file_handler)

    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the sigscribe hierarchy.

    Args:
        name: Short component name (e.g. "cli") or a dotted module path.

    Returns:
        A Logger that inherits the sigscribe root configuration.
    """
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
