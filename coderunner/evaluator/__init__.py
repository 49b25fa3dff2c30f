# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Dynamic evaluation of Python code fragments.

Subsystems:
  - template: binding validation and generation of the unit's source
  - compiler: CPython compilation with diagnostics mapped to the fragment
  - loader: fresh-module loading, entry point lookup, release
  - core: the evaluator pipeline tying it all together
  - errors / models: the error taxonomy and the records passed between stages
"""
