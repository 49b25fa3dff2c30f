# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the coderunner CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code. The CLI itself never prints; results and failures go through the
structured logger. Whatever a fragment prints is its own business and goes
straight to stdout.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from coderunner.cli.exit_codes import (
    CONFIG_ERROR,
    RUNTIME_ERROR,
    SUCCESS,
    USER_ERROR,
    VALIDATION_ERROR,
)
from coderunner.config.exceptions import ConfigError
from coderunner.config.loader import load_config
from coderunner.config.schema import CodeRunnerConfig, EvaluatorConfig
from coderunner.evaluator.core import DynamicEvaluator
from coderunner.evaluator.errors import (
    CompilationFailedError,
    InvalidArgumentError,
)
from coderunner.evaluator.models import EvaluationOutcome
from coderunner.logging.logger import get_logger
from coderunner.runtime.bootstrap import bootstrap, set_deterministic_seed

# How much of a compilation error message the demo shows.
DEMO_MESSAGE_LIMIT = 120


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, Optional[CodeRunnerConfig], logging.Logger]:
    """
    The shared setup that every command needs: load config, run bootstrap.

    Returns a tuple of (exit_code, config, logger). If exit_code is not SUCCESS,
    the caller should return it immediately.
    """
    logger = get_logger(f"coderunner.cli.{command_name}", log_level=args.log_level)

    config = None
    if args.config is not None:
        try:
            config = load_config(Path(args.config))
        except ConfigError as err:
            logger.error(
                "Configuration error",
                extra={"command": command_name, "error": str(err)},
            )
            return CONFIG_ERROR, None, logger

    if config is not None:
        bootstrap(config.global_config, seed_override=args.seed)
    else:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )
        if args.seed is not None:
            set_deterministic_seed(args.seed)

    return SUCCESS, config, logger


def _build_evaluator(config: Optional[CodeRunnerConfig], log_level: str) -> DynamicEvaluator:
    evaluator_config = config.evaluator if config is not None else EvaluatorConfig()
    return DynamicEvaluator(
        evaluator_config,
        logger=get_logger("coderunner.evaluator", log_level=log_level),
    )


def parse_variable(text: str) -> tuple[str, Any]:
    """
    Parse one `--var KEY=VALUE` argument.

    The value is read as a YAML scalar, so `x=10` gives the int 10,
    `ratio=0.5` a float, `on=true` a bool and `name=Alice` the string "Alice".
    Quote it (`name="10"`) to force a string. Key validation is left to the
    evaluator, which reports bad keys the same way for every caller.

    Raises:
        ValueError: If there's no `=` or the value isn't valid YAML.
    """
    key, sep, raw_value = text.partition("=")
    if not sep:
        raise ValueError(f"Expected KEY=VALUE, got '{text}'")

    try:
        value = yaml.safe_load(raw_value) if raw_value else ""
    except yaml.YAMLError as err:
        raise ValueError(f"Cannot parse value for '{key}': {err}") from err

    return key.strip(), value


def _read_fragment(args: argparse.Namespace) -> str:
    if args.file is not None:
        return Path(args.file).read_text(encoding="utf-8")
    return args.code


def _exit_code_for(outcome: EvaluationOutcome) -> int:
    if outcome.success:
        return SUCCESS
    if isinstance(outcome.error, InvalidArgumentError):
        return USER_ERROR
    if isinstance(outcome.error, CompilationFailedError):
        return VALIDATION_ERROR
    return RUNTIME_ERROR


def handle_run(args: argparse.Namespace) -> int:
    """Evaluate one fragment, given inline or from a file, and log its result."""
    exit_code, config, logger = _load_and_bootstrap(args, "run")
    if exit_code != SUCCESS:
        return exit_code

    try:
        bindings = dict(parse_variable(item) for item in args.var or [])
    except ValueError as err:
        logger.error("Invalid variable", extra={"command": "run", "error": str(err)})
        return USER_ERROR

    try:
        fragment = _read_fragment(args)
    except (OSError, UnicodeDecodeError) as err:
        logger.error(
            "Cannot read fragment file",
            extra={"command": "run", "file": args.file, "error": str(err)},
        )
        return USER_ERROR

    evaluator = _build_evaluator(config, args.log_level)
    outcome = evaluator.run(fragment, bindings)

    if outcome.success:
        logger.info(
            "Evaluation result",
            extra={
                "command": "run",
                "unit_name": outcome.unit_name,
                "result": repr(outcome.value),
                "result_type": type(outcome.value).__name__,
            },
        )
        return SUCCESS

    extra: dict[str, Any] = {
        "command": "run",
        "stage": outcome.stage.value,
        "error_type": type(outcome.error).__name__,
        "error": str(outcome.error),
    }
    if isinstance(outcome.error, CompilationFailedError):
        extra["diagnostics"] = [str(d) for d in outcome.error.diagnostics]
    logger.error("Command failed", extra=extra)
    return _exit_code_for(outcome)


_DEMO_EXAMPLES: list[tuple[str, str, Optional[dict[str, Any]]]] = [
    (
        "Simple hello world",
        'print("Hello from dynamic Python code!")',
        None,
    ),
    (
        "Using variables",
        """
print("Name: " + name)
print("Age: " + str(age))
print("Salary: " + str(salary))
bonus = salary * 0.1
print("Bonus: " + str(bonus))
""",
        {"name": "John", "age": 30, "salary": 50000.5},
    ),
    (
        "Calculations",
        """
total = int(x) + int(y)
product = int(x) * int(y)
print(f"x = {x}, y = {y}")
print(f"Sum = {total}")
print(f"Product = {product}")
""",
        {"x": 10, "y": 20},
    ),
    (
        "Returning a value",
        "return x + y",
        {"x": 10, "y": 20},
    ),
    (
        "Invalid code",
        "This is not valid code!",
        None,
    ),
]


def handle_demo(args: argparse.Namespace) -> int:
    """
    Run a fixed set of example fragments and log what each one returns.

    A fragment that fails to compile is logged with a truncated message and
    the demo carries on with the next example.
    """
    exit_code, config, logger = _load_and_bootstrap(args, "demo")
    if exit_code != SUCCESS:
        return exit_code

    evaluator = _build_evaluator(config, args.log_level)
    logger.info("coderunner demo started", extra={"examples": len(_DEMO_EXAMPLES)})

    try:
        for title, fragment, bindings in _DEMO_EXAMPLES:
            try:
                value = evaluator.evaluate(fragment, bindings)
            except CompilationFailedError as err:
                message = err.message
                if len(message) > DEMO_MESSAGE_LIMIT:
                    message = message[:DEMO_MESSAGE_LIMIT] + "..."
                logger.info(
                    "Example failed to compile",
                    extra={"example": title, "error": message},
                )
                continue
            logger.info("Example finished", extra={"example": title, "result": repr(value)})
    except Exception as err:
        logger.error(
            "Runtime error",
            extra={"command": "demo", "error": str(err)},
            exc_info=True,
        )
        return RUNTIME_ERROR

    logger.info("coderunner demo done")
    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Display version, environment and evaluator configuration."""
    exit_code, config, logger = _load_and_bootstrap(args, "info")
    if exit_code != SUCCESS:
        return exit_code

    from coderunner import __version__
    from coderunner.runtime.environment import get_system_info

    system_info = get_system_info()
    evaluator_config = config.evaluator if config is not None else EvaluatorConfig()

    logger.info(
        "System information",
        extra={
            "coderunner_version": __version__,
            "python_version": system_info.python_version,
            "implementation": system_info.implementation,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "optimize_flag": system_info.optimize_flag,
            "recursion_limit": system_info.recursion_limit,
            "config": args.config,
            "references": evaluator_config.references,
            "optional_references": evaluator_config.optional_references,
        },
    )
    return SUCCESS
