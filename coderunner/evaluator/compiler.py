# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Compiler service for generated units.

This is the part that hands generated source to CPython's own compiler. We
don't parse or generate bytecode ourselves; we call `ast.parse` and `compile`,
capture everything they say, and translate it into Diagnostic records that
point back at the caller's fragment.

A compilation goes through three steps:
  1. Resolve references, the modules bound into every unit's namespace.
     Required ones must import; optional ones are best-effort.
  2. Parse the generated text, and (optionally) check that every module the
     fragment imports can actually be found.
  3. Compile the tree to a code object, and make sure the fragment didn't
     turn the entry point into a generator.

A parser or compiler that gives up on a valid but enormous fragment
(RecursionError, MemoryError) is reported as a diagnostic like any other
failure.

Errors from every step are collected before deciding, so one failed
compilation reports everything that's wrong, not just the first problem.

The evaluator only depends on the CompilerService protocol, so tests (or a
future non-CPython backend) can swap in their own implementation.
"""

import ast
import importlib
import importlib.util
import inspect
import logging
import sys
import threading
import time
import types
import warnings
from typing import Optional, Protocol

from coderunner.config.schema import EvaluatorConfig
from coderunner.evaluator.models import (
    CompiledUnit,
    CompileResult,
    Diagnostic,
    Origin,
    RenderedProgram,
    Severity,
)
from coderunner.evaluator.template import ENTRY_POINT
from coderunner.logging.logger import get_logger

UNRESOLVED_REFERENCE = "UnresolvedReference"
UNRESOLVED_IMPORT = "UnresolvedImport"
GENERATOR_FRAGMENT = "GeneratorFragment"

# Scopes whose bodies run when they are called, not when the fragment runs.
_NESTED_SCOPES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda, ast.ClassDef)

# warnings.catch_warnings swaps process-wide state, so concurrent compilations
# take turns capturing.
_WARNINGS_LOCK = threading.Lock()


class CompilerService(Protocol):
    """Anything that can turn a rendered program into a CompileResult."""

    def compile(self, program: RenderedProgram, unit_name: str) -> CompileResult:
        ...


def unit_filename(unit_name: str) -> str:
    """The pseudo-filename a unit is compiled under, e.g. `<DynamicUnit_3f2a...>`."""
    return f"<{unit_name}>"


def locate(program: RenderedProgram, line: Optional[int], column: Optional[int]) -> tuple[int, int, Origin]:
    """
    Translate a (line, column) in the generated unit into the caller's terms.

    Locations inside the fragment come back relative to the fragment, with
    the indentation we added taken off the column. Anything else (a stray
    continuation swallowing our trailer, say) is reported against the unit.
    """
    line = line or 0
    column = column or 0
    if line and program.contains_line(line):
        fragment_column = max(column - program.indent, 1) if column else 0
        return line - program.fragment_start + 1, fragment_column, Origin.FRAGMENT
    return line, column, Origin.SCAFFOLD


def _syntax_diagnostic(err: SyntaxError, program: RenderedProgram) -> Diagnostic:
    line, column, origin = locate(program, err.lineno, err.offset)
    return Diagnostic(
        severity=Severity.ERROR,
        code=type(err).__name__,
        message=err.msg or str(err),
        line=line,
        column=column,
        origin=origin,
    )


def _warning_diagnostic(caught: warnings.WarningMessage, program: RenderedProgram) -> Diagnostic:
    line, column, origin = locate(program, caught.lineno, 0)
    return Diagnostic(
        severity=Severity.WARNING,
        code=caught.category.__name__,
        message=str(caught.message),
        line=line,
        column=column,
        origin=origin,
    )


def _toolchain_diagnostic(err: Exception) -> Diagnostic:
    """A parser or compiler failure that isn't about a particular line, e.g. nesting too deep."""
    return Diagnostic(
        severity=Severity.ERROR,
        code=type(err).__name__,
        message=str(err) or "The compiler ran out of resources",
        origin=Origin.SCAFFOLD,
    )


def _entry_code(code: types.CodeType) -> Optional[types.CodeType]:
    for const in code.co_consts:
        if isinstance(const, types.CodeType) and const.co_name == ENTRY_POINT:
            return const
    return None


def _direct_yield(tree: ast.Module) -> Optional[ast.expr]:
    """
    The first `yield`/`yield from` that belongs to the entry point itself.

    Nested function, lambda and class bodies are skipped; a generator the
    fragment defines for its own use is fine.
    """
    entry = next(
        (node for node in tree.body if isinstance(node, ast.FunctionDef) and node.name == ENTRY_POINT),
        None,
    )
    if entry is None:
        return None

    found: list[ast.expr] = []
    pending: list[ast.AST] = list(entry.body)
    while pending:
        node = pending.pop()
        if isinstance(node, (ast.Yield, ast.YieldFrom)):
            found.append(node)
        if not isinstance(node, _NESTED_SCOPES):
            pending.extend(ast.iter_child_nodes(node))

    return min(found, key=lambda node: (node.lineno, node.col_offset), default=None)


def _module_exists(name: str) -> bool:
    if name in sys.modules:
        return True
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def _import_reference(name: str) -> tuple[str, types.ModuleType]:
    """
    Import a reference and return the name it's bound under.

    Mirrors what `import a.b` does: the submodule gets imported, but the
    namespace receives the top-level package `a`.
    """
    importlib.import_module(name)
    top_level = name.partition(".")[0]
    return top_level, sys.modules[top_level]


class PythonCompiler:
    """Compiles generated units with the running interpreter's compiler."""

    def __init__(
        self,
        config: Optional[EvaluatorConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config if config is not None else EvaluatorConfig()
        self._logger = logger if logger is not None else get_logger(__name__)

    def compile(self, program: RenderedProgram, unit_name: str) -> CompileResult:
        start = time.monotonic()
        filename = unit_filename(unit_name)
        diagnostics: list[Diagnostic] = []

        references = self.resolve_references(diagnostics)
        code: Optional[types.CodeType] = None

        with _WARNINGS_LOCK, warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            tree = self._parse(program, filename, diagnostics)
            if tree is not None:
                if self._config.check_imports:
                    diagnostics.extend(self.check_imports(tree, program))
                code = self._compile_tree(tree, program, filename, diagnostics)
                if code is not None:
                    diagnostics.extend(self.check_entry_point(tree, code, program))

        diagnostics.extend(
            _warning_diagnostic(message, program)
            for message in caught
            if message.filename == filename
        )
        # parse and compile can both warn about the same construct
        unique = tuple(dict.fromkeys(diagnostics))

        success = code is not None and not any(d.is_error for d in unique)
        elapsed = time.monotonic() - start

        self._logger.debug(
            "Compilation finished",
            extra={
                "unit_name": unit_name,
                "success": success,
                "errors": sum(1 for d in unique if d.is_error),
                "warnings": sum(1 for d in unique if not d.is_error),
                "elapsed_seconds": round(elapsed, 6),
            },
        )

        unit = None
        if success:
            unit = CompiledUnit(
                name=unit_name,
                filename=filename,
                code=code,
                program=program,
                references=references,
            )

        return CompileResult(
            success=success,
            unit=unit,
            diagnostics=unique,
            elapsed_seconds=elapsed,
        )

    def resolve_references(self, diagnostics: list[Diagnostic]) -> dict[str, types.ModuleType]:
        """
        Import the configured reference modules.

        A required reference that won't import becomes an error diagnostic.
        An optional one becomes a warning and resolution carries on with the
        rest. Importing runs arbitrary module code, so any Exception counts
        as a failed import rather than escaping as a toolchain error.
        """
        bound: dict[str, types.ModuleType] = {}

        for name in self._config.references:
            try:
                alias, module = _import_reference(name)
            except Exception as err:
                diagnostics.append(Diagnostic(
                    severity=Severity.ERROR,
                    code=UNRESOLVED_REFERENCE,
                    message=f"Cannot import required reference '{name}': {err}",
                    origin=Origin.SCAFFOLD,
                ))
                continue
            bound[alias] = module

        for name in self._config.optional_references:
            try:
                alias, module = _import_reference(name)
            except Exception as err:
                self._logger.warning(
                    "Optional reference skipped",
                    extra={"reference": name, "error": str(err)},
                )
                diagnostics.append(Diagnostic(
                    severity=Severity.WARNING,
                    code=UNRESOLVED_REFERENCE,
                    message=f"Optional reference '{name}' not loaded: {err}",
                    origin=Origin.SCAFFOLD,
                ))
                continue
            bound[alias] = module

        return bound

    def check_imports(self, tree: ast.Module, program: RenderedProgram) -> list[Diagnostic]:
        """
        Report imports in the fragment whose module can't be found.

        Only the top-level package is looked up; finding it doesn't import
        it. Relative imports can never work in a unit, since it has no
        parent package.
        """
        found: list[Diagnostic] = []

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                names = [alias.name for alias in node.names]
            elif isinstance(node, ast.ImportFrom):
                if node.level:
                    line, column, origin = locate(program, node.lineno, node.col_offset + 1)
                    found.append(Diagnostic(
                        severity=Severity.ERROR,
                        code=UNRESOLVED_IMPORT,
                        message="Relative import has no parent package",
                        line=line,
                        column=column,
                        origin=origin,
                    ))
                    continue
                names = [node.module] if node.module else []
            else:
                continue

            for name in names:
                top_level = name.partition(".")[0]
                if _module_exists(top_level):
                    continue
                line, column, origin = locate(program, node.lineno, node.col_offset + 1)
                found.append(Diagnostic(
                    severity=Severity.ERROR,
                    code=UNRESOLVED_IMPORT,
                    message=f"No module named '{top_level}'",
                    line=line,
                    column=column,
                    origin=origin,
                ))

        return found

    def check_entry_point(
        self,
        tree: ast.Module,
        code: types.CodeType,
        program: RenderedProgram,
    ) -> list[Diagnostic]:
        """
        Report a fragment that would turn the entry point into a generator.

        A `yield` in the fragment makes calling the entry point return a
        generator without running a single line of the fragment, so its
        result and its exceptions would never be seen.
        """
        entry = _entry_code(code)
        if entry is None or not entry.co_flags & (inspect.CO_GENERATOR | inspect.CO_ASYNC_GENERATOR):
            return []

        node = _direct_yield(tree)
        line, column, origin = locate(
            program,
            node.lineno if node is not None else None,
            node.col_offset + 1 if node is not None else None,
        )
        return [Diagnostic(
            severity=Severity.ERROR,
            code=GENERATOR_FRAGMENT,
            message="'yield' is not allowed at the top level of a fragment",
            line=line,
            column=column,
            origin=origin,
        )]

    def _parse(
        self,
        program: RenderedProgram,
        filename: str,
        diagnostics: list[Diagnostic],
    ) -> Optional[ast.Module]:
        try:
            return ast.parse(program.source, filename=filename, mode="exec")
        except SyntaxError as err:
            diagnostics.append(_syntax_diagnostic(err, program))
        except ValueError as err:
            # null bytes on interpreters that don't report them as SyntaxError
            diagnostics.append(Diagnostic(
                severity=Severity.ERROR,
                code=type(err).__name__,
                message=str(err),
                origin=Origin.FRAGMENT,
            ))
        except (RecursionError, MemoryError) as err:
            diagnostics.append(_toolchain_diagnostic(err))
        return None

    def _compile_tree(
        self,
        tree: ast.Module,
        program: RenderedProgram,
        filename: str,
        diagnostics: list[Diagnostic],
    ) -> Optional[types.CodeType]:
        try:
            return compile(
                tree,
                filename,
                "exec",
                dont_inherit=True,
                optimize=self._config.optimize,
            )
        except SyntaxError as err:
            diagnostics.append(_syntax_diagnostic(err, program))
        except (RecursionError, MemoryError) as err:
            diagnostics.append(_toolchain_diagnostic(err))
        return None
