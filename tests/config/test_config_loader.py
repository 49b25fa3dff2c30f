# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the config loader, the one way the CLI turns a YAML file into config.

We test:
  1. Valid YAML loads into a frozen, correct config object
  2. A missing evaluator section falls back to its defaults
  3. Missing, unknown or mistyped fields raise ConfigValidationError
  4. Broken YAML and bad paths raise ConfigLoadError
"""

import textwrap
from pathlib import Path

import pytest

from coderunner.config.exceptions import ConfigError, ConfigLoadError, ConfigValidationError
from coderunner.config.loader import load_config, parse_config


def _write(tmp_path: Path, name: str, content: str) -> Path:
    config_file = tmp_path / name
    config_file.write_text(textwrap.dedent(content), encoding="utf-8")
    return config_file


class TestLoadValidConfig:
    def test_loads_minimal_valid_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.project_name == "coderunner-test"
        assert config.global_config.seed == 42
        assert config.global_config.config_version == "1.0.0"

    def test_evaluator_section_defaults(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.evaluator.unit_name_prefix == "DynamicUnit"
        assert config.evaluator.references == ["math", "collections"]
        assert config.evaluator.check_imports is True

    def test_loads_evaluator_section(self, tmp_path: Path) -> None:
        config_file = _write(tmp_path, "full.yaml", """\
            global:
              config_version: "1.0.0"
            evaluator:
              unit_name_prefix: "Snippet"
              references: ["json"]
              optional_references: ["statistics"]
              check_imports: false
              optimize: 1
              log_failures: false
        """)

        config = load_config(config_file)
        assert config.evaluator.unit_name_prefix == "Snippet"
        assert config.evaluator.references == ["json"]
        assert config.evaluator.optional_references == ["statistics"]
        assert config.evaluator.check_imports is False
        assert config.evaluator.optimize == 1

    def test_shipped_example_config_loads(self) -> None:
        example = Path(__file__).resolve().parents[2] / "configs" / "coderunner.yaml"
        config = load_config(example)
        assert config.global_config.project_name == "coderunner"


class TestLoadInvalidConfig:
    def test_missing_required_field_raises_validation_error(
        self, invalid_config_file: Path
    ) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(invalid_config_file)

    def test_unknown_evaluator_field_raises_validation_error(self, tmp_path: Path) -> None:
        config_file = _write(tmp_path, "unknown_field.yaml", """\
            global:
              config_version: "1.0.0"
            evaluator:
              timeout_seconds: 5
        """)
        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_wrong_type_raises_validation_error(self, tmp_path: Path) -> None:
        config_file = _write(tmp_path, "wrong_type.yaml", """\
            global:
              config_version: "1.0.0"
              seed: "not_a_number"
        """)
        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_broken_yaml_raises_load_error(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(broken_yaml_file)

    def test_non_mapping_yaml_raises_load_error(self, tmp_path: Path) -> None:
        config_file = _write(tmp_path, "list.yaml", "- just\n- a list\n")
        with pytest.raises(ConfigLoadError):
            load_config(config_file)

    def test_nonexistent_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path / "does_not_exist.yaml")

    def test_directory_path_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)

    def test_errors_share_a_base_class(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(broken_yaml_file)


class TestConfigImmutability:
    def test_cannot_mutate_frozen_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(Exception):
            config.global_config.seed = 999  # type: ignore[misc]

    def test_cannot_mutate_evaluator_section(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(Exception):
            config.evaluator.check_imports = False  # type: ignore[misc]


class TestParseConfig:
    def test_parses_in_memory_yaml(self) -> None:
        config = parse_config('global:\n  config_version: "1.0.0"\n  seed: 3\n')
        assert config.global_config.seed == 3

    def test_source_appears_in_errors(self) -> None:
        with pytest.raises(ConfigLoadError, match="inline-settings"):
            parse_config("[1, 2]", source="inline-settings")

    def test_accepts_string_paths(self, tmp_config_file: Path) -> None:
        assert load_config(str(tmp_config_file)).global_config.seed == 42
