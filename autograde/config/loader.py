# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader — reads YAML from disk and produces a validated, frozen ProjectConfig.

The loading pipeline is deliberately simple and linear:
  1. Read raw text from the file
  2. Parse as YAML into a plain dict
  3. Hand the dict to pydantic for schema validation
  4. Return the frozen, immutable config object

If anything goes wrong at any step, we fail immediately with a clear error.
A broken grading config should stop the run before a single submission gets
a wrong score.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from autograde.config.exceptions import ConfigLoadError, ConfigValidationError
from autograde.config.schema import ProjectConfig

DEFAULT_CONFIG_NAME = "config.yaml"


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    We explicitly check for file existence before parsing, because
    yaml.safe_load gives cryptic errors on missing files.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't valid YAML.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def load_config(config_path: Path) -> ProjectConfig:
    """
    Load, validate, and freeze a project config file.

    This is the single entry point for config loading. After it returns the
    config is structurally valid, type-safe and immutable. `<file`
    references inside tests are *not* resolved here — that happens when the
    config is turned into a TestSuite, relative to the project directory.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (missing fields, wrong types, unknown keys).
    """
    raw_data = _read_yaml_file(config_path)

    try:
        config = ProjectConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err

    return config


def resolve_config_path(project_dir: Path, config_file: Path | None) -> Path:
    """
    Work out where the config lives.

    A relative path is taken relative to the project directory (that's where
    instructors keep it, next to the submissions). No path means
    <project>/config.yaml.
    """
    if config_file is None:
        return project_dir / DEFAULT_CONFIG_NAME
    if config_file.is_absolute():
        return config_file
    return project_dir / config_file
