"""Constants and configuration loading."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from matcha.errors import ConfigurationError

# Joins suite names into a fully-qualified case name, e.g. "a#b#c".
NAME_SEPARATOR = "#"

CONFIG_FILE = "matcha.yaml"
DEFAULT_REPORTER = "pretty"

# ---------------------------------------------------------------------------
# Measurement engine defaults (seconds unless noted)
# ---------------------------------------------------------------------------

DEFAULT_DELAY = 0.005
DEFAULT_INIT_COUNT = 1
DEFAULT_MAX_TIME = 5.0
DEFAULT_MIN_SAMPLES = 5
DEFAULT_MIN_TIME = 0.05

_CONFIG_KEYS = frozenset({"reporter", "grep", "options"})


@dataclass(frozen=True)
class MatchaConfig:
    """Settings read from ``matcha.yaml``. Command-line flags take precedence."""

    reporter: str | None = None
    grep: str | None = None
    options: Mapping[str, Any] = field(default_factory=lambda: dict[str, Any]())


def config_file(project_root: Path) -> Path:
    """Return the default config file path for a project."""
    return project_root / CONFIG_FILE


def load_config(path: Path, *, required: bool = False) -> MatchaConfig:
    """Load a config file.

    A missing file yields the defaults unless *required* is set.
    """
    if not path.exists():
        if required:
            msg = f"Config file not found: {path}"
            raise ConfigurationError(msg)
        return MatchaConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Could not read config file {path}: {exc}"
        raise ConfigurationError(msg) from exc

    if raw is None:
        return MatchaConfig()
    if not isinstance(raw, dict):
        msg = f"Config file {path} must contain a mapping"
        raise ConfigurationError(msg)

    unknown = set(raw) - _CONFIG_KEYS
    if unknown:
        msg = f"Unknown keys in {path}: {', '.join(sorted(unknown))}"
        raise ConfigurationError(msg)

    options = raw.get("options") or {}
    if not isinstance(options, dict):
        msg = f"'options' in {path} must be a mapping"
        raise ConfigurationError(msg)

    reporter = raw.get("reporter")
    grep = raw.get("grep")
    return MatchaConfig(
        reporter=str(reporter) if reporter is not None else None,
        grep=str(grep) if grep is not None else None,
        options=options,
    )
