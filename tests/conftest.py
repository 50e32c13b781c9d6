"""Shared test fixtures for sigscribe tests."""

import logging
import sys

import pytest

from sigscribe import logger as sig_logger


class _StdoutHandler(logging.Handler):
    """A handler that always writes to the *current* sys.stdout.

    Unlike StreamHandler(sys.stdout), this resolves sys.stdout at emit-time
    so it works with pytest's capsys fixture.
    """

    def emit(self, record):
        try:
            msg = self.format(record)
            sys.stdout.write(msg + "\n")
            sys.stdout.flush()
        except Exception:
            self.handleError(record)


@pytest.fixture(autouse=True)
def _setup_logging():
    """Route all sigscribe loggers to stdout so capsys can capture them."""
    handler = _StdoutHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(logging.DEBUG)

    root_logger = logging.getLogger("sigscribe")
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)
    root_logger.propagate = False

    yield

    root_logger.removeHandler(handler)


@pytest.fixture
def fresh_logging(monkeypatch):
    """Let configure_logging() run again inside the test."""
    monkeypatch.setattr(sig_logger, "_CONFIGURED", False)


@pytest.fixture
def isolated_cwd(tmp_path, monkeypatch):
    """Empty working directory and home, so no user config is picked up."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr("pathlib.Path.home", lambda: home)
    monkeypatch.chdir(tmp_path)
    return tmp_path
