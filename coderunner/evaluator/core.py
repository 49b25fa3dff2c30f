# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The dynamic evaluator: compile a code fragment and run it with named variables.

One call goes through a straight line of stages, and a failure at any of them
ends the call:

    validate -> render -> compile -> load -> execute

  validate  the fragment is a non-blank string and every binding key is a
            usable identifier. Nothing has touched the compiler yet.
  render    the fragment is wrapped in a generated unit (see template.py)
  compile   the compiler service turns the text into a code object, or a list
            of diagnostics explaining why it couldn't
  load      the unit runs into a fresh module and its entry point is found
  execute   the entry point is called with the bindings mapping

There's no retry, no caching of compiled units and no state carried between
calls. Each call gets a unit name with a fresh uuid4 in it, so concurrent
calls in the same process never step on each other.

Fragments are trusted code. They run in-process with full access to the
interpreter, exactly like code you'd `import`. Don't feed this anything you
wouldn't run yourself.
"""

import logging
import time
import traceback
import uuid
from collections.abc import Mapping
from typing import Any, Optional

from coderunner.config.schema import EvaluatorConfig
from coderunner.evaluator.compiler import CompilerService, PythonCompiler
from coderunner.evaluator.errors import (
    CodeRunnerError,
    CompilationFailedError,
    ExecutionFailedError,
)
from coderunner.evaluator.loader import LoadedUnit
from coderunner.evaluator.models import Diagnostic, EvaluationOutcome, Stage
from coderunner.evaluator.template import (
    render_program,
    validate_bindings,
    validate_fragment,
)
from coderunner.logging.logger import get_logger
from coderunner.utils.hashing import short_digest


class DynamicEvaluator:
    """
    Compiles and runs code fragments.

    An evaluator holds only its (frozen) config, its compiler and its logger,
    so one instance can be shared freely. `evaluate` raises on failure, `run`
    reports failures in the returned EvaluationOutcome instead.
    """

    def __init__(
        self,
        config: Optional[EvaluatorConfig] = None,
        compiler: Optional[CompilerService] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config if config is not None else EvaluatorConfig()
        self._logger = logger if logger is not None else get_logger(__name__)
        self._compiler = (
            compiler
            if compiler is not None
            else PythonCompiler(self._config, logger=self._logger)
        )

    @property
    def config(self) -> EvaluatorConfig:
        return self._config

    def new_unit_name(self) -> str:
        return f"{self._config.unit_name_prefix}_{uuid.uuid4().hex}"

    def evaluate(self, code: str, bindings: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Compile `code` and run it with `bindings` as local variables.

        Returns whatever the fragment returns, or NO_VALUE when it finishes
        without a `return` statement.

        Raises:
            InvalidArgumentError: empty fragment or bad binding key.
            CompilationFailedError: the generated unit didn't compile.
            IntegrityError: the compiled unit has no entry point.
            ExecutionFailedError: the fragment raised while running.
        """
        outcome = self.run(code, bindings)
        if outcome.error is not None:
            raise outcome.error
        return outcome.value

    def run(self, code: str, bindings: Optional[Mapping[str, Any]] = None) -> EvaluationOutcome:
        """
        Same pipeline as evaluate(), but never raises a CodeRunnerError.

        The outcome records the stage the call reached, the compiler's
        diagnostics (warnings included) and, on failure, the error with its
        original cause attached.
        """
        start = time.monotonic()
        stage = Stage.VALIDATE
        unit_name: Optional[str] = None
        diagnostics: tuple[Diagnostic, ...] = ()

        try:
            fragment = validate_fragment(code)
            binding_names = validate_bindings(bindings)

            stage = Stage.COMPILE
            unit_name = self.new_unit_name()
            program = render_program(fragment, binding_names, unit_name)
            result = self._compiler.compile(program, unit_name)
            diagnostics = result.diagnostics

            for warning in result.warnings:
                self._logger.warning(
                    "Compiler warning",
                    extra={"unit_name": unit_name, "diagnostic": str(warning)},
                )

            if not result.success or result.unit is None:
                raise CompilationFailedError(result.errors, warnings=result.warnings)

            stage = Stage.LOAD
            with LoadedUnit(result.unit, log=self._logger) as entry_point:
                stage = Stage.EXECUTE
                value = self._invoke(entry_point, bindings)

        except CodeRunnerError as err:
            elapsed = time.monotonic() - start
            if self._config.log_failures:
                self._logger.error(
                    "Evaluation failed",
                    extra={
                        "unit_name": unit_name,
                        "stage": stage.value,
                        "error_type": type(err).__name__,
                        "error": err.message,
                    },
                )
            return EvaluationOutcome(
                success=False,
                stage=stage,
                error=err,
                unit_name=unit_name,
                diagnostics=diagnostics,
                elapsed_seconds=elapsed,
            )

        elapsed = time.monotonic() - start
        self._logger.debug(
            "Fragment evaluated",
            extra={
                "unit_name": unit_name,
                "source_digest": short_digest(program.source),
                "bindings": list(binding_names),
                "result_type": type(value).__name__,
                "elapsed_seconds": round(elapsed, 6),
            },
        )
        return EvaluationOutcome(
            success=True,
            stage=Stage.DONE,
            value=value,
            unit_name=unit_name,
            diagnostics=diagnostics,
            elapsed_seconds=elapsed,
        )

    def _invoke(
        self,
        entry_point: Any,
        bindings: Optional[Mapping[str, Any]],
    ) -> Any:
        """
        Call the entry point and translate anything the fragment raises.

        Only Exception subclasses are translated. KeyboardInterrupt and
        SystemExit aren't failures of the fragment, so they keep going up.
        """
        try:
            return entry_point(bindings if bindings is not None else {})
        except Exception as err:
            raise ExecutionFailedError(
                f"{type(err).__name__}: {err}",
                cause=err,
                traceback_text="".join(traceback.format_exception(err)),
            ) from err


_default_evaluator: Optional[DynamicEvaluator] = None


def _get_default_evaluator() -> DynamicEvaluator:
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = DynamicEvaluator()
    return _default_evaluator


def evaluate(
    code: str,
    bindings: Optional[Mapping[str, Any]] = None,
    *,
    config: Optional[EvaluatorConfig] = None,
) -> Any:
    """
    Compile and run a code fragment, returning what it returns.

        >>> evaluate("return x + y", {"x": 10, "y": 20})
        30

    Without a `config`, a shared default evaluator is used.
    """
    evaluator = DynamicEvaluator(config) if config is not None else _get_default_evaluator()
    return evaluator.evaluate(code, bindings)
