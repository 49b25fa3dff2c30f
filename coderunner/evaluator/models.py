# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data models for the evaluation pipeline.

These are the types that get passed between the template, the compiler, the
loader and the evaluator. They're frozen dataclasses because nothing should
modify a program or a diagnostic after it's been produced. A compiled unit
that changed between compile and load would be a bug.
"""

import enum
import types
from dataclasses import dataclass, field
from typing import Any, Optional


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"


class Stage(str, enum.Enum):
    """Pipeline stages, in the order a call goes through them."""

    VALIDATE = "validate"
    COMPILE = "compile"
    LOAD = "load"
    EXECUTE = "execute"
    DONE = "done"


class Origin(str, enum.Enum):
    """Whether a diagnostic points into the caller's fragment or our scaffolding."""

    FRAGMENT = "fragment"
    SCAFFOLD = "scaffold"


class _NoValueType:
    """
    Type of the NO_VALUE sentinel.

    A fragment that finishes without `return` produces NO_VALUE, while one that
    says `return None` produces None. The two are different so a
    caller can tell "nothing came back" from "None came back". NO_VALUE is falsy
    and survives copy/pickle as the same object.
    """

    _instance: Optional["_NoValueType"] = None

    def __new__(cls) -> "_NoValueType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> tuple[type, tuple[()]]:
        return (_NoValueType, ())


NO_VALUE = _NoValueType()


@dataclass(frozen=True)
class Diagnostic:
    """
    One message from the compiler.

    `line` and `column` are 1-based. For Origin.FRAGMENT they're relative to
    the caller's fragment; for Origin.SCAFFOLD they're relative to the whole
    generated unit. Either may be 0 when the compiler gave no location
    (e.g. a reference module that failed to import).
    """

    severity: Severity
    code: str
    message: str
    line: int = 0
    column: int = 0
    origin: Origin = Origin.FRAGMENT

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        return (
            f"{self.origin.value}({self.line},{self.column}): "
            f"{self.severity.value} {self.code}: {self.message}"
        )


@dataclass(frozen=True)
class RenderedProgram:
    """
    The generated source of one unit, plus where the fragment sits inside it.

    `fragment_start` is the 1-based line of the fragment's first line in
    `source`, `fragment_lines` how many lines it spans, and `indent` the width
    of the indentation we added in front of each of its lines.
    """

    source: str
    fragment_start: int
    fragment_lines: int
    indent: int
    binding_names: tuple[str, ...] = ()

    def contains_line(self, line: int) -> bool:
        return self.fragment_start <= line < self.fragment_start + self.fragment_lines


@dataclass(frozen=True)
class CompiledUnit:
    """A compiled, not-yet-loaded unit: its unique name, code object and references."""

    name: str
    filename: str
    code: types.CodeType
    program: RenderedProgram
    references: dict[str, types.ModuleType] = field(default_factory=dict)


@dataclass(frozen=True)
class CompileResult:
    """What came back from trying to compile a generated unit."""

    success: bool
    unit: Optional[CompiledUnit]
    diagnostics: tuple[Diagnostic, ...]
    elapsed_seconds: float

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.is_error)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if not d.is_error)


@dataclass(frozen=True)
class EvaluationOutcome:
    """
    Result of one evaluation, success or failure, without raising.

    On success `value` is whatever the fragment produced (possibly NO_VALUE)
    and `error` is None. On failure `value` is NO_VALUE, `error` is the
    CodeRunnerError that evaluate() would have raised, and `stage` says where
    the pipeline stopped.
    """

    success: bool
    stage: Stage
    value: Any = NO_VALUE
    error: Optional[Exception] = None
    unit_name: Optional[str] = None
    diagnostics: tuple[Diagnostic, ...] = ()
    elapsed_seconds: float = 0.0
