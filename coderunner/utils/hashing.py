# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Hashing helpers.

Generated units are never persisted, but we still want to be able to tell two
log lines about the same program apart from two about different programs.
A short digest of the source does that without dumping the source into logs.
"""

import hashlib


def compute_sha256_text(text: str) -> str:
    """Compute the SHA256 hex digest of a string, encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def short_digest(text: str, length: int = 12) -> str:
    """First `length` hex characters of the text's SHA256 digest."""
    if length < 1:
        raise ValueError(f"Digest length must be positive, got {length}")
    return compute_sha256_text(text)[:length]
