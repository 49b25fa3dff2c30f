# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Facts about the interpreter that fragments will be compiled by.

There's no separate compiler to version: whatever Python runs coderunner also
parses and compiles every fragment. So the interpreter's version decides
which syntax a fragment may use, and its flags (e.g. -O) decide what
`optimize=-1` means.
"""

import platform
import sys
from typing import NamedTuple, Optional

MINIMUM_PYTHON = (3, 11)


class SystemInfo(NamedTuple):
    """Snapshot of the interpreter, as logged by `coderunner info`."""

    python_version: str
    implementation: str
    platform: str
    architecture: str
    optimize_flag: int
    recursion_limit: int


def check_minimum_python(version: Optional[tuple[int, ...]] = None) -> None:
    """
    Fail unless the interpreter (or the given version tuple) is 3.11 or newer.

    Raises:
        RuntimeError: naming both the required and the found version.
    """
    found = tuple(version if version is not None else sys.version_info[:2])
    if found[:2] < MINIMUM_PYTHON:
        required = ".".join(str(part) for part in MINIMUM_PYTHON)
        current = ".".join(str(part) for part in found[:2])
        raise RuntimeError(
            f"coderunner requires Python >= {required}, but you're running {current}."
        )


def get_system_info() -> SystemInfo:
    return SystemInfo(
        python_version=platform.python_version(),
        implementation=platform.python_implementation(),
        platform=platform.system(),
        architecture=platform.machine(),
        optimize_flag=sys.flags.optimize,
        recursion_limit=sys.getrecursionlimit(),
    )
