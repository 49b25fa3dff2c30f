# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for the pipeline data models."""

import copy
import dataclasses
import pickle

import pytest

from coderunner.evaluator.models import (
    NO_VALUE,
    CompileResult,
    Diagnostic,
    EvaluationOutcome,
    Origin,
    Severity,
    Stage,
)


class TestNoValue:
    def test_is_falsy_and_not_none(self) -> None:
        assert not NO_VALUE
        assert NO_VALUE is not None

    def test_repr(self) -> None:
        assert repr(NO_VALUE) == "NO_VALUE"

    def test_survives_copy_and_pickle(self) -> None:
        assert copy.copy(NO_VALUE) is NO_VALUE
        assert copy.deepcopy(NO_VALUE) is NO_VALUE
        assert pickle.loads(pickle.dumps(NO_VALUE)) is NO_VALUE


class TestCompileResult:
    def test_splits_errors_and_warnings(self) -> None:
        error = Diagnostic(Severity.ERROR, "SyntaxError", "invalid syntax", 1, 1)
        warning = Diagnostic(Severity.WARNING, "SyntaxWarning", "odd", 2, 0)
        result = CompileResult(
            success=False,
            unit=None,
            diagnostics=(warning, error),
            elapsed_seconds=0.0,
        )

        assert result.errors == (error,)
        assert result.warnings == (warning,)

    def test_scaffold_origin_in_str(self) -> None:
        diagnostic = Diagnostic(
            Severity.WARNING,
            "UnresolvedReference",
            "Optional reference 'nope' not loaded",
            origin=Origin.SCAFFOLD,
        )
        assert str(diagnostic).startswith("scaffold(0,0): warning UnresolvedReference:")


class TestEvaluationOutcome:
    def test_defaults(self) -> None:
        outcome = EvaluationOutcome(success=True, stage=Stage.DONE)
        assert outcome.value is NO_VALUE
        assert outcome.error is None
        assert outcome.diagnostics == ()

    def test_is_frozen(self) -> None:
        outcome = EvaluationOutcome(success=True, stage=Stage.DONE)
        with pytest.raises(dataclasses.FrozenInstanceError):
            outcome.success = False  # type: ignore[misc]
