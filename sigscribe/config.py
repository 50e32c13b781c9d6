"""
sigscribe config management with extends/inheritance support.

Supports:
- Local file: extends: "./base.yaml"
- Multiple extends: extends: ["./base.yaml", "./team.yaml"]

Keys (defaults in DEFAULT_CONFIG):
- dialect: "python" or "brace", used for --source input
- logging.level / logging.json
- output.color / output.include_private
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path

import yaml

from .errors import ConfigError
from .source_scanner import DIALECTS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "sigscribe.yaml"

# YAML bomb protection
MAX_CONFIG_BYTES = 1_000_000
MAX_YAML_ALIASES = 100

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_CONFIG: dict = {
    "version": "1.0",
    "dialect": "python",
    "logging": {
        "level": "INFO",
        "json": True,
    },
    "output": {
        "color": True,
        "include_private": False,
    },
}


def safe_yaml_load(stream):
    """yaml.safe_load replacement with alias bomb protection."""
    class _Loader(yaml.SafeLoader):
        def compose_node(self, parent, index):
            if self.check_event(yaml.AliasEvent):
                count = getattr(self, "_alias_count", 0) + 1
                if count > MAX_YAML_ALIASES:
                    raise yaml.YAMLError(f"YAML alias limit exceeded (max {MAX_YAML_ALIASES})")
                self._alias_count = count
            return super().compose_node(parent, index)
    return yaml.load(stream, Loader=_Loader)


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Override wins for conflicts.

    Special handling for lists: extends/appends instead of replace.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result:
            if isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            elif isinstance(result[key], list) and isinstance(value, list):
                result[key] = result[key] + value
            else:
                result[key] = value
        else:
            result[key] = value

    return result


def find_config() -> Path | None:
    """Find sigscribe.yaml in project or user home."""
    # Priority order:
    # 1. ./sigscribe.yaml (project root)
    # 2. ./config/sigscribe.yaml
    # 3. ~/.config/sigscribe/sigscribe.yaml
    candidates = [
        Path(CONFIG_FILENAME),
        Path("config") / CONFIG_FILENAME,
        Path.home() / ".config" / "sigscribe" / CONFIG_FILENAME,
    ]

    for path in candidates:
        if path.exists():
            return path

    return None


def get_default_config_path() -> Path:
    """Get path to the bundled default.yaml template."""
    return Path(__file__).parent / "data" / "default.yaml"


def _read_yaml(config_path: Path) -> dict:
    if config_path.stat().st_size > MAX_CONFIG_BYTES:
        raise ConfigError("Config file too large (max 1MB)", str(config_path))

    try:
        with open(config_path, encoding="utf-8") as f:
            data = safe_yaml_load(f)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" at line {mark.line + 1}" if mark else ""
        raise ConfigError(f"Invalid YAML{where}: {e}", str(config_path)) from e
    except OSError as e:
        raise ConfigError(f"Cannot read config: {e.strerror or e}", str(config_path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping", str(config_path))
    return data


def load_extended_config(
    config_path: Path,
    seen_paths: set[str] | None = None
) -> dict:
    """Load config with extends resolution.

    Args:
        config_path: Path to the config file
        seen_paths: Set of already-loaded paths (circular reference detection)

    Returns:
        Merged config dict
    """
    if seen_paths is None:
        seen_paths = set()

    path_key = str(config_path.resolve())
    if path_key in seen_paths:
        logger.warning("Circular config reference detected: %s", config_path)
        return {}

    seen_paths.add(path_key)

    config = _read_yaml(config_path)

    extends = config.pop("extends", None)
    if not extends:
        return config

    if isinstance(extends, str):
        extends = [extends]

    merged: dict = {}
    for parent_ref in extends:
        parent_config = resolve_extends(str(parent_ref), config_path.parent, seen_paths)
        if parent_config:
            merged = deep_merge(merged, parent_config)

    # Child config overrides parents
    return deep_merge(merged, config)


def resolve_extends(ref: str, base_dir: Path, seen_paths: set[str]) -> dict | None:
    """Resolve a single extends reference relative to ``base_dir``."""
    if ref.startswith(("http://", "https://")):
        logger.warning("Remote config extends not supported: %s", ref)
        return None

    local_path = Path(ref) if ref.startswith("/") else base_dir / ref
    if local_path.exists():
        return load_extended_config(local_path, seen_paths.copy())

    logger.warning("Config file not found: %s", local_path)
    return None


def validate_config(config: dict) -> list[str]:
    """Return a list of problems; empty when the config is usable."""
    problems: list[str] = []

    dialect = config.get("dialect")
    if not isinstance(dialect, str) or dialect.lower() not in DIALECTS:
        problems.append(
            f"dialect must be one of {', '.join(sorted(DIALECTS))} (got {dialect!r})"
        )

    log_config = config.get("logging")
    if not isinstance(log_config, dict):
        problems.append("logging must be a mapping")
    else:
        level = log_config.get("level")
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            problems.append(f"logging.level must be one of {', '.join(LOG_LEVELS)} (got {level!r})")
        if not isinstance(log_config.get("json"), bool):
            problems.append("logging.json must be true or false")

    output = config.get("output")
    if not isinstance(output, dict):
        problems.append("output must be a mapping")
    else:
        for key in ("color", "include_private"):
            if not isinstance(output.get(key), bool):
                problems.append(f"output.{key} must be true or false")

    return problems


def load_config(config_path: Path | str | None = None) -> dict:
    """Load sigscribe.yaml on top of DEFAULT_CONFIG.

    Args:
        config_path: Path to config file. If None, searches default locations
            and falls back to the defaults when nothing is found.

    Raises:
        ConfigError: The file is missing, unreadable, or fails validation.
    """
    if config_path is None:
        config_path = find_config()
        if config_path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILENAME)
            return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError("Config file not found", str(config_path))

    loaded = load_extended_config(config_path)
    config = deep_merge(copy.deepcopy(DEFAULT_CONFIG), loaded)

    problems = validate_config(config)
    if problems:
        raise ConfigError("; ".join(problems), str(config_path))

    logger.debug("Loaded config from %s", config_path)
    return config
