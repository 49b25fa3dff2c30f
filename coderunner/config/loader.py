# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Turns YAML into a frozen CodeRunnerConfig.

Two ways in: `load_config` for a file on disk (what the CLI's --config uses)
and `parse_config` for YAML already in memory. Both end in the same
validation step, and both fail with a ConfigError subclass instead of
falling back to defaults, so a broken config stops the CLI before any
fragment runs.
"""

from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from coderunner.config.exceptions import ConfigLoadError, ConfigValidationError
from coderunner.config.schema import CodeRunnerConfig


def _parse_mapping(text: str, source: str) -> dict[str, Any]:
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {source}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"{source} must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )
    return parsed


def _validate(data: dict[str, Any], source: str) -> CodeRunnerConfig:
    try:
        return CodeRunnerConfig.model_validate(data)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {source}:\n{err}") from err


def parse_config(text: str, source: str = "<string>") -> CodeRunnerConfig:
    """
    Validate YAML text into a CodeRunnerConfig.

    `source` only shows up in error messages.

    Raises:
        ConfigLoadError: The text isn't YAML, or isn't a mapping at the top.
        ConfigValidationError: The mapping doesn't fit the schema.
    """
    return _validate(_parse_mapping(text, source), source)


def load_config(config_path: Union[str, Path]) -> CodeRunnerConfig:
    """
    Read a YAML config file and validate it.

    Missing paths and directories are reported before yaml gets involved,
    since yaml's own errors for those are unhelpful.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (missing fields, wrong types, unknown keys).
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigLoadError(f"Config file not found: {path}")
    if not path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise ConfigLoadError(f"Cannot read config file {path}: {err}") from err

    return parse_config(text, source=str(path))
