# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Custom exceptions for the configuration system.

We keep these separate from the evaluator's error taxonomy so that the CLI
can tell "your YAML is broken" apart from "your code fragment is broken"
without importing the evaluator.
"""


class ConfigError(Exception):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a config file cannot be read from disk or parsed as YAML."""


class ConfigValidationError(ConfigError):
    """
    Raised when a config file parses fine but fails schema validation.
    This covers missing required fields, type mismatches, out-of-range values,
    and any other structural problem.
    """
