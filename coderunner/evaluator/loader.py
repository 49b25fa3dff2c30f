# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Loading compiled units into the running process.

Every unit is executed into its own brand-new module object. The module is
never registered in sys.modules, so nothing outside the current call can reach
it, and once the call drops its references it's gone. Two calls never share a
namespace, even for identical fragments.

The only process-wide thing a unit touches is linecache: its source is
registered there while it's loaded so tracebacks from the fragment show real
lines instead of blanks. LoadedUnit takes it out again on every exit path.
"""

import linecache
import logging
import types
from collections.abc import Callable
from types import TracebackType
from typing import Any, Optional

from coderunner.evaluator.errors import ExecutionFailedError, IntegrityError
from coderunner.evaluator.models import NO_VALUE, CompiledUnit
from coderunner.evaluator.template import ENTRY_POINT, NO_VALUE_NAME
from coderunner.logging.logger import get_logger

logger = get_logger(__name__)

EntryPoint = Callable[..., Any]


def _register_source(unit: CompiledUnit) -> None:
    source = unit.program.source
    # mtime=None marks the entry as not backed by a file, so checkcache leaves it alone
    linecache.cache[unit.filename] = (
        len(source),
        None,
        source.splitlines(keepends=True),
        unit.filename,
    )


def release_unit(unit: CompiledUnit) -> None:
    """Forget everything the process holds about a unit. Safe to call twice."""
    linecache.cache.pop(unit.filename, None)


def load_unit(unit: CompiledUnit) -> types.ModuleType:
    """
    Execute a compiled unit into a fresh module and return the module.

    The namespace is seeded with the unit's reference modules and the
    NO_VALUE sentinel before the code runs. The unit's top level only defines
    the entry point, so this should never fail; if it somehow does, the
    failure is reported as an ExecutionFailedError rather than leaking.
    """
    _register_source(unit)

    module = types.ModuleType(unit.name)
    module.__file__ = unit.filename
    namespace = module.__dict__
    namespace.update(unit.references)
    namespace[NO_VALUE_NAME] = NO_VALUE

    try:
        exec(unit.code, namespace)
    except Exception as err:
        raise ExecutionFailedError(
            f"Loading unit {unit.name} failed: {err}",
            cause=err,
        ) from err

    return module


def resolve_entry_point(module: types.ModuleType, unit_name: str) -> EntryPoint:
    """
    Look up the unit's entry point by name.

    Raises:
        IntegrityError: If the module doesn't define a callable entry point.
    """
    entry = module.__dict__.get(ENTRY_POINT)
    if entry is None or not callable(entry):
        raise IntegrityError(
            f"Unit {unit_name} does not expose a callable '{ENTRY_POINT}'"
        )
    return entry


class LoadedUnit:
    """
    Context manager that loads a unit on enter and releases it on exit.

    Usage:
        with LoadedUnit(compiled) as entry_point:
            result = entry_point(bindings)
        # source is unregistered here, even if entry_point raised

    If loading itself fails, the unit is released before the error
    propagates, since __exit__ never runs for a failed __enter__.
    """

    def __init__(self, unit: CompiledUnit, log: Optional[logging.Logger] = None) -> None:
        self._unit = unit
        self._logger = log if log is not None else logger
        self._module: Optional[types.ModuleType] = None

    @property
    def module(self) -> Optional[types.ModuleType]:
        return self._module

    def __enter__(self) -> EntryPoint:
        try:
            self._module = load_unit(self._unit)
            entry = resolve_entry_point(self._module, self._unit.name)
        except Exception:
            self._release()
            raise
        self._logger.debug("Unit loaded", extra={"unit_name": self._unit.name})
        return entry

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._release()

    def _release(self) -> None:
        release_unit(self._unit)
        self._module = None
        self._logger.debug("Unit released", extra={"unit_name": self._unit.name})
