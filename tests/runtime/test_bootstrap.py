# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the runtime bootstrap and environment checks.

Determinism tests run the same thing twice and compare: a fragment drawing
from `random` after the same seed must see the same numbers.
"""

import logging
import random

import pytest

from coderunner.config.schema import GlobalConfig
from coderunner.runtime.bootstrap import bootstrap, set_deterministic_seed
from coderunner.runtime.environment import check_minimum_python, get_system_info


def _drop_runtime_handlers() -> None:
    logger = logging.getLogger("coderunner.runtime")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


@pytest.fixture(autouse=True)
def _fresh_runtime_logger() -> None:
    """Every test starts and ends with no handlers on the runtime logger."""
    _drop_runtime_handlers()
    yield  # type: ignore[misc]
    _drop_runtime_handlers()


class TestDeterministicSeed:
    def test_same_seed_same_sequence(self) -> None:
        set_deterministic_seed(42)
        first = [random.random() for _ in range(5)]
        set_deterministic_seed(42)
        second = [random.random() for _ in range(5)]
        assert first == second

    def test_evaluated_fragment_sees_seeded_random(self, evaluator) -> None:  # type: ignore[no-untyped-def]
        fragment = "import random\nreturn [random.randint(0, 1000) for _ in range(3)]"
        set_deterministic_seed(7)
        first = evaluator.evaluate(fragment)
        set_deterministic_seed(7)
        assert evaluator.evaluate(fragment) == first


class TestBootstrap:
    def test_config_seed_is_applied(self) -> None:
        bootstrap(GlobalConfig(config_version="1.0.0", seed=11, log_level="ERROR"))
        drawn = random.random()
        set_deterministic_seed(11)
        assert random.random() == drawn

    def test_seed_override_wins(self) -> None:
        bootstrap(
            GlobalConfig(config_version="1.0.0", seed=11, log_level="ERROR"),
            seed_override=12,
        )
        drawn = random.random()
        set_deterministic_seed(12)
        assert random.random() == drawn

    def test_log_file_is_created(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        log_file = tmp_path / "run.log"
        bootstrap(GlobalConfig(config_version="1.0.0", log_level="DEBUG", log_file=str(log_file)))
        for handler in logging.getLogger("coderunner.runtime").handlers:
            handler.flush()
        assert "bootstrap complete" in log_file.read_text(encoding="utf-8")

    def test_log_file_added_after_earlier_setup(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        bootstrap(GlobalConfig(config_version="1.0.0", log_level="ERROR"))
        log_file = tmp_path / "later.log"
        bootstrap(GlobalConfig(config_version="1.0.0", log_level="DEBUG", log_file=str(log_file)))
        for handler in logging.getLogger("coderunner.runtime").handlers:
            handler.flush()
        assert "bootstrap complete" in log_file.read_text(encoding="utf-8")


class TestEnvironment:
    def test_current_interpreter_passes(self) -> None:
        check_minimum_python()

    @pytest.mark.parametrize("version", [(3, 9, 18), (3, 10), (2, 7)])
    def test_old_interpreter_is_rejected(self, version: tuple[int, ...]) -> None:
        with pytest.raises(RuntimeError, match="requires Python >= 3.11"):
            check_minimum_python(version)

    def test_newer_version_passes(self) -> None:
        check_minimum_python((3, 14, 0))
        check_minimum_python((4, 0))

    def test_system_info_fields(self) -> None:
        info = get_system_info()
        assert info.python_version.count(".") == 2
        assert info.implementation
        assert info.recursion_limit > 0
        assert info.optimize_flag in (0, 1, 2)
