"""MD5 helpers for content-addressed cache keys.

The hashes identify identical image payloads across pastes; they are
**not** used for security purposes.
"""

from __future__ import annotations

import hashlib


def md5_hash(data: str) -> str:
    """Return the hex-encoded MD5 digest of *data*.

    The string is encoded as UTF-8 before hashing.

    Examples
    --------
    >>> md5_hash("hello")
    '5d41402abc4b2a76b9719d911017c592'
    """
    return hashlib.md5(data.encode("utf-8")).hexdigest()

