# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
coderunner: compile and run Python code fragments with named variables.

The public surface is small:

    from coderunner import evaluate

    evaluate("return x + y", {"x": 10, "y": 20})   # -> 30

Everything else (config, logging, CLI) exists to support that one call.
"""

__version__ = "0.1.0"

from coderunner.evaluator.core import DynamicEvaluator, evaluate  # noqa: E402
from coderunner.evaluator.errors import (  # noqa: E402
    CodeRunnerError,
    CompilationFailedError,
    ExecutionFailedError,
    IntegrityError,
    InvalidArgumentError,
)
from coderunner.evaluator.models import NO_VALUE  # noqa: E402

__all__ = [
    "NO_VALUE",
    "CodeRunnerError",
    "CompilationFailedError",
    "DynamicEvaluator",
    "ExecutionFailedError",
    "IntegrityError",
    "InvalidArgumentError",
    "evaluate",
]
