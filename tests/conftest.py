# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for coderunner tests.

Fixtures here are available to every test file automatically.
We keep them minimal: just the stuff that multiple test modules need.
"""

import logging
import textwrap
from pathlib import Path

import pytest

from coderunner.config.schema import EvaluatorConfig
from coderunner.evaluator.compiler import PythonCompiler
from coderunner.evaluator.core import DynamicEvaluator
from coderunner.evaluator.models import CompileResult, RenderedProgram


class SpyCompiler:
    """Wraps a real compiler and counts how often it's asked to compile."""

    def __init__(self, inner: PythonCompiler) -> None:
        self.inner = inner
        self.calls = 0

    def compile(self, program: RenderedProgram, unit_name: str) -> CompileResult:
        self.calls += 1
        return self.inner.compile(program, unit_name)


@pytest.fixture()
def test_logger() -> logging.Logger:
    """
    A plain logger that propagates to the root logger, so caplog sees it.
    The JSON logger writes straight to stdout, which would get mixed up with
    whatever the fragments under test print.
    """
    return logging.getLogger("coderunner.test.evaluator")


@pytest.fixture()
def evaluator_config() -> EvaluatorConfig:
    return EvaluatorConfig()


@pytest.fixture()
def spy_compiler(evaluator_config: EvaluatorConfig, test_logger: logging.Logger) -> SpyCompiler:
    return SpyCompiler(PythonCompiler(evaluator_config, logger=test_logger))


@pytest.fixture()
def evaluator(
    evaluator_config: EvaluatorConfig,
    spy_compiler: SpyCompiler,
    test_logger: logging.Logger,
) -> DynamicEvaluator:
    return DynamicEvaluator(evaluator_config, compiler=spy_compiler, logger=test_logger)


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """
    Create a minimal valid config YAML file in a temp directory.

    This is the smallest config that passes schema validation.
    Tests that need specific config values should write their own files.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "coderunner-test"
          seed: 42
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """A config file that's valid YAML but fails schema validation (missing required field)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "coderunner-test"
          seed: 42
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
