"""Hashing utilities for content identity tokens.

Remote stores hand out opaque content identities. These helpers produce
compatible tokens where no remote identity exists: git-style blob ids for
the in-memory store, and composite digests for synthetic directories.
"""

import hashlib
from typing import Iterable, Tuple


def compute_blob_token(content: bytes) -> str:
    """Compute the git blob id of content.

    Matches the `sha` GitHub reports for files, so tokens from the
    in-memory store look like tokens from the real API.

    Args:
        content: Raw file bytes

    Returns:
        40-character hex SHA-1
    """
    sha1 = hashlib.sha1()
    sha1.update(f"blob {len(content)}\0".encode("utf-8"))
    sha1.update(content)
    return sha1.hexdigest()


def compute_composite_digest(components: Iterable[Tuple[str, str]]) -> str:
    """Compute a digest over (name, token) pairs of a directory's entries.

    Uses null-byte domain separation so ("AB", "C") and ("A", "BC")
    hash differently.

    Args:
        components: (name, token) pairs; order does not matter

    Returns:
        64-character hex digest (BLAKE2b)

    Example:
        >>> compute_composite_digest([("a.txt", "e69de29b..."), ("src", "4b825dc6...")])
    """
    h = hashlib.blake2b(digest_size=32)
    h.update(b"\x00TREE\x00")
    for name, token in sorted(components):
        h.update(b"\x00")
        h.update(name.encode("utf-8"))
        h.update(b"\x00")
        h.update(token.encode("utf-8"))
        h.update(b"\x00")
    return h.hexdigest()


__all__ = [
    "compute_blob_token",
    "compute_composite_digest",
]
