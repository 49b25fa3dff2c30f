# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI exit codes.

These are the only exit codes the CLI uses. A failed compilation is a
validation error (the input didn't pass the compiler), while a fragment that
compiled but blew up at run time is a runtime error.
"""

SUCCESS: int = 0
USER_ERROR: int = 1
CONFIG_ERROR: int = 2
RUNTIME_ERROR: int = 3
VALIDATION_ERROR: int = 4
