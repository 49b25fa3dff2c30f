# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the dynamic evaluator.

Four things can go wrong with an evaluation, and each one gets its own type so
callers can react to exactly the failure they care about:

  InvalidArgumentError  : bad fragment or binding key, caught before compiling
  CompilationFailedError: the generated unit doesn't compile
  IntegrityError        : the compiled unit has no usable entry point
  ExecutionFailedError  : the fragment itself raised while running

Toolchain exceptions (SyntaxError, ImportError, ...) never escape raw;
they get translated into one of these, with the original kept as the cause.
"""

from typing import Optional

from coderunner.evaluator.models import Diagnostic


class CodeRunnerError(Exception):
    """Base for all evaluator errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvalidArgumentError(CodeRunnerError, ValueError):
    """
    Raised for an empty or non-string fragment, or a binding key that isn't a
    usable identifier. Nothing has been compiled when this is raised.
    """


class CompilationFailedError(CodeRunnerError):
    """
    Raised when the generated unit has at least one error-severity diagnostic.

    `diagnostics` holds the errors (never empty); `warnings` holds whatever
    warning-severity diagnostics came out of the same compilation.
    """

    def __init__(
        self,
        diagnostics: tuple[Diagnostic, ...],
        warnings: tuple[Diagnostic, ...] = (),
    ) -> None:
        self.diagnostics = diagnostics
        self.warnings = warnings
        super().__init__(format_diagnostics(diagnostics))


class IntegrityError(CodeRunnerError):
    """Raised when a compiled unit doesn't expose a callable entry point."""


class ExecutionFailedError(CodeRunnerError):
    """
    Raised when the fragment raised during execution.

    `cause` is the original exception (it's also chained as __cause__), and
    `traceback_text` holds its formatted traceback, captured while the
    fragment's source was still registered so the lines are readable.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        traceback_text: str = "",
    ) -> None:
        super().__init__(message, cause=cause)
        self.traceback_text = traceback_text


def format_diagnostics(diagnostics: tuple[Diagnostic, ...]) -> str:
    """Build the `Compilation errors:` message, one diagnostic per line."""
    lines = ["Compilation errors:"]
    lines.extend(str(diagnostic) for diagnostic in diagnostics)
    return "\n".join(lines)
