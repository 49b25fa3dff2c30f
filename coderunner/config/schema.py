# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for coderunner.

Every config section gets its own frozen pydantic model. Frozen means once you
create it, you cannot mutate it. An evaluator holds on to its config for its
whole lifetime, so a config that changes under it would be a bug.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings that apply to the whole process: observability
    (log_level, log_file), project identity and an optional seed for
    fragments that use `random`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="coderunner", description="Human-readable project identifier"
    )
    seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Seed for Python's random module; left alone when unset",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging verbosity",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )


class EvaluatorConfig(BaseModel):
    """
    Knobs for the dynamic evaluator.

    `references` are modules every generated unit gets pre-imported into its
    namespace. If one of them can't be imported the compilation fails.
    `optional_references` are loaded best-effort: a module that fails to
    import is reported as a warning and simply left out.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    unit_name_prefix: str = Field(
        default="DynamicUnit",
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
        description="Prefix of the unique name each compiled unit gets",
    )
    references: list[str] = Field(
        default_factory=lambda: ["math", "collections"],
        description="Modules that must be importable and are bound into every unit",
    )
    optional_references: list[str] = Field(
        default_factory=list,
        description="Modules bound into every unit when importable, skipped otherwise",
    )
    check_imports: bool = Field(
        default=True,
        description="Report imports in the fragment that can't be resolved as compile errors",
    )
    optimize: int = Field(
        default=-1,
        ge=-1,
        le=2,
        description="Optimization level passed to compile(); -1 follows the interpreter",
    )
    log_failures: bool = Field(
        default=True,
        description="Log every failed evaluation at ERROR level before raising",
    )


class CodeRunnerConfig(BaseModel):
    """
    Top-level config container.

    A YAML file must have a `global:` section. The `evaluator:` section is
    optional and falls back to EvaluatorConfig's defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    evaluator: EvaluatorConfig = Field(default_factory=EvaluatorConfig)
