#!/usr/bin/env python3
"""
sigscribe CLI - Entry point for pip-installed package.

Handles config discovery, initialization, and prints signatures for
import targets, whole modules, or raw source files.
"""

import argparse
import json
import shutil
import sys
from pathlib import Path

from . import __version__
from .config import (
    CONFIG_FILENAME,
    find_config,
    get_default_config_path,
    load_extended_config,
    load_config,
)
from .errors import ConfigError, SigscribeError
from .logger import configure_logging, get_logger
from .sig_types import GREEN, NC, RED, YELLOW
from .signatures import describe, parse_signature
from .targets import import_module, iter_module_callables, load_target

logger = get_logger("cli")


class _Palette:
    """Terminal colors, or empty strings when color is off."""

    def __init__(self, enabled: bool):
        self.red = RED if enabled else ""
        self.yellow = YELLOW if enabled else ""
        self.green = GREEN if enabled else ""
        self.nc = NC if enabled else ""


def _configured_color(config_path: Path | None) -> bool:
    """``output.color`` from the config file, read even when it fails validation."""
    if config_path is None or not config_path.is_file():
        return True
    try:
        loaded = load_extended_config(config_path)
    except (ConfigError, OSError):
        return True
    output = loaded.get("output")
    if not isinstance(output, dict):
        return True
    return output.get("color", True) is not False


def init_config(target: Path = Path(CONFIG_FILENAME), palette: _Palette | None = None) -> bool:
    """Initialize sigscribe.yaml in current project."""
    palette = palette or _Palette(True)
    if target.exists():
        print(f"{palette.yellow}{target} already exists{palette.nc}")
        return False

    default_config = get_default_config_path()
    if not default_config.exists():
        print(f"{palette.red}ERROR: Default config not found at {default_config}{palette.nc}")
        return False

    shutil.copy(default_config, target)
    print(f"{palette.green}Created {target}{palette.nc}")
    return True


def _emit(records: list[dict], as_json: bool, palette: _Palette) -> None:
    if as_json:
        print(json.dumps(records, indent=2, ensure_ascii=False))
        return
    for record in records:
        if record.get("error"):
            print(f"{palette.red}ERROR{palette.nc} {record['target']}: {record['error']}", file=sys.stderr)
        else:
            print(record["signature"])


def describe_targets(targets: list[str]) -> list[dict]:
    """One record per target; load failures carry an ``error`` entry."""
    records = []
    for target in targets:
        try:
            obj = load_target(target)
        except SigscribeError as exc:
            logger.debug("Target failed: %s", target, exc_info=True)
            records.append({"target": target, "error": str(exc)})
            continue
        records.append({"target": target, **describe(obj)})
    return records


def describe_module(module_name: str, include_private: bool = False) -> list[dict]:
    """Records for every function and class defined in ``module_name``."""
    module = import_module(module_name)
    return [
        {"target": f"{module_name}:{name}", **describe(obj)}
        for name, obj in iter_module_callables(module, include_private)
    ]


def describe_source(path: str, dialect: str) -> dict:
    """Record for raw source text read from ``path`` (``-`` is stdin)."""
    if path == "-":
        text = sys.stdin.read()
    else:
        text = Path(path).read_text(encoding="utf-8")

    parts = parse_signature(text, dialect)
    if parts is None:
        return {"target": path, "signature": "", "shape": None, "name": None,
                "params": None, "overridden": False}
    return {"target": path, "signature": parts.text, "shape": parts.shape,
            "name": parts.name, "params": parts.params, "overridden": False}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sigscribe",
        description="sigscribe - readable signatures for functions and classes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sigscribe json:dumps                 Signature of one callable
  sigscribe collections.OrderedDict    Module prefix found automatically
  sigscribe --module textwrap          Every public function/class of a module
  sigscribe --source snippet.js --dialect brace
  sigscribe --json json:loads          Structured output
  sigscribe --init                     Create sigscribe.yaml
        """,
    )
    parser.add_argument("targets", nargs="*", help="module:attr or dotted path to a callable")
    parser.add_argument("--version", "-v", action="version", version=f"sigscribe {__version__}")
    parser.add_argument("--module", "-m", help="List signatures of every callable in a module")
    parser.add_argument("--private", action="store_true", help="Include _private names with --module")
    parser.add_argument("--source", "-s", help="Read raw source from a file ('-' for stdin)")
    parser.add_argument("--dialect", "-d", help="Source dialect for --source: python or brace")
    parser.add_argument("--json", action="store_true", help="Emit JSON records")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--config", "-c", help=f"Path to {CONFIG_FILENAME}")
    parser.add_argument("--init", action="store_true", help=f"Initialize {CONFIG_FILENAME}")
    parser.add_argument("--validate", action="store_true", help="Validate YAML config")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config) if args.config else find_config()
    palette = _Palette(not args.no_color and _configured_color(config_path))

    # Handle init (doesn't need a valid config)
    if args.init:
        return 0 if init_config(palette=palette) else 1

    if args.validate:
        if config_path is None:
            print(f"{palette.yellow}No {CONFIG_FILENAME} found, defaults apply{palette.nc}")
            return 0
        try:
            load_config(config_path)
        except ConfigError as exc:
            print(f"{palette.red}INVALID{palette.nc} {exc}")
            return 1
        print(f"{palette.green}Config OK{palette.nc} {config_path}")
        return 0

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        print(f"{palette.red}ERROR: {exc}{palette.nc}", file=sys.stderr)
        return 1

    configure_logging(
        level="DEBUG" if args.verbose else config["logging"]["level"],
        json_output=config["logging"]["json"],
    )

    palette = _Palette(config["output"]["color"] and not args.no_color)

    if not (args.targets or args.module or args.source):
        parser.print_usage(sys.stderr)
        return 1

    records: list[dict] = []
    if args.source:
        dialect = args.dialect or config["dialect"]
        try:
            records.append(describe_source(args.source, dialect))
        except (OSError, ValueError) as exc:
            records.append({"target": args.source, "error": str(exc)})

    if args.module:
        include_private = args.private or config["output"]["include_private"]
        try:
            records.extend(describe_module(args.module, include_private))
        except SigscribeError as exc:
            records.append({"target": args.module, "error": str(exc)})

    records.extend(describe_targets(args.targets))

    _emit(records, args.json, palette)
    return 1 if any(r.get("error") for r in records) else 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
