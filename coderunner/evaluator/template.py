# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Input validation and program synthesis.

A fragment isn't a module on its own: it may `return`, and it expects the
caller's bindings to exist as local variables. So we wrap it in a small
generated module with a single entry point:

    def execute(__bindings__):
        age = None
        name = None
        if __bindings__ is not None:
            if 'age' in __bindings__:
                age = __bindings__['age']
            if 'name' in __bindings__:
                name = __bindings__['name']
        # fragment begins
        <the fragment, indented into the body>
        # fragment ends
        return __no_value__

Binding keys get spliced straight into that text, which is why every key is
checked against the identifier grammar before anything is rendered. A key
like `x = 1; import os` never gets near the template.
"""

import keyword
import re
import textwrap
from collections.abc import Mapping
from typing import Any, Optional

from coderunner.evaluator.errors import InvalidArgumentError
from coderunner.evaluator.models import RenderedProgram

ENTRY_POINT = "execute"
BINDINGS_PARAMETER = "__bindings__"
NO_VALUE_NAME = "__no_value__"

# Names the scaffolding itself uses. A binding with one of these names would
# shadow the scaffolding, so they're refused like any other invalid key.
RESERVED_NAMES = frozenset({BINDINGS_PARAMETER, NO_VALUE_NAME})

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

INDENT = " " * 4

_HEADER = '''\
# Generated unit {unit_name}. Do not edit.
def {entry_point}({parameter}):
'''


def validate_fragment(code: object) -> str:
    """Return the fragment if it's a non-blank string, raise InvalidArgumentError otherwise."""
    if not isinstance(code, str):
        raise InvalidArgumentError(
            f"Code fragment must be a string, got {type(code).__name__}"
        )
    if not code.strip():
        raise InvalidArgumentError("Code fragment is empty")
    return code


def validate_bindings(bindings: Optional[Mapping[str, Any]]) -> tuple[str, ...]:
    """
    Check every binding key and return them sorted.

    Sorting keeps the generated text stable for the same set of names, no
    matter what order the caller built their dict in.

    Raises:
        InvalidArgumentError: naming the first offending key.
    """
    if bindings is None:
        return ()
    if not isinstance(bindings, Mapping):
        raise InvalidArgumentError(
            f"Bindings must be a mapping, got {type(bindings).__name__}"
        )

    for key in bindings:
        if not isinstance(key, str):
            raise InvalidArgumentError(
                f"Binding key {key!r} is not a string ({type(key).__name__})"
            )
        if key in RESERVED_NAMES:
            raise InvalidArgumentError(
                f"Binding key '{key}' is reserved for the generated code"
            )
        if keyword.iskeyword(key):
            raise InvalidArgumentError(
                f"Binding key '{key}' is a Python keyword and cannot be a variable name"
            )
        if IDENTIFIER_PATTERN.fullmatch(key) is None:
            raise InvalidArgumentError(
                f"Binding key '{key}' is not a valid identifier"
            )

    return tuple(sorted(bindings))


def render_program(
    code: str,
    binding_names: tuple[str, ...],
    unit_name: str,
) -> RenderedProgram:
    """
    Build the source text of one unit around an already-validated fragment.

    The fragment is dedented and then re-indented into the entry point's body,
    so callers can pass code that is indented however they like, as long as
    it's consistent. Line numbers inside the fragment are preserved, which is
    what lets diagnostics point back at the caller's own lines.
    """
    fragment = textwrap.dedent(code.replace("\r\n", "\n").replace("\r", "\n"))
    if not fragment.endswith("\n"):
        fragment += "\n"

    parts = [
        _HEADER.format(
            unit_name=unit_name,
            entry_point=ENTRY_POINT,
            parameter=BINDINGS_PARAMETER,
        )
    ]

    for name in binding_names:
        parts.append(f"{INDENT}{name} = None\n")

    if binding_names:
        parts.append(f"{INDENT}if {BINDINGS_PARAMETER} is not None:\n")
        for name in binding_names:
            parts.append(f"{INDENT * 2}if {name!r} in {BINDINGS_PARAMETER}:\n")
            parts.append(f"{INDENT * 3}{name} = {BINDINGS_PARAMETER}[{name!r}]\n")

    parts.append(f"{INDENT}# fragment begins\n")
    head = "".join(parts)
    fragment_start = head.count("\n") + 1

    body = textwrap.indent(fragment, INDENT)
    tail = f"{INDENT}# fragment ends\n{INDENT}return {NO_VALUE_NAME}\n"

    return RenderedProgram(
        source=head + body + tail,
        fragment_start=fragment_start,
        fragment_lines=fragment.count("\n"),
        indent=len(INDENT),
        binding_names=binding_names,
    )
