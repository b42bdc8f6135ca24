"""Content-addressed upload cache.

Maps a source identity to the URL it was uploaded to, so the same image
pasted or dropped twice is uploaded once.  The identity is the file's
stable path when it has one; pathless sources (clipboard bytes) are
keyed by a hash of their encoded payload.

The cache lives in memory for the orchestrator's lifetime.  It has no
eviction: entries are only removed one by one with :meth:`delete` or all
at once with :meth:`clear` (after a batch delete and on shutdown).
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterator

from imgbed.image.detect import mime_to_extension, sniff_mime
from imgbed.observability import get_logger, log_fields
from imgbed.utils.hashing import md5_hash

log = get_logger("imgbed.cache")


def cache_key(path: str | None, payload: str, mime_type: str = "image/png") -> str:
    """Derive the cache key for an upload source.

    Parameters
    ----------
    path:
        The source file's stable path, or ``None``/``""`` for pathless
        sources.
    payload:
        The encoded (``data:`` URL) content.  Only the base64 body after
        the comma is hashed, so the declared MIME type does not matter.
    mime_type:
        Extension for hash keys when the bytes cannot be sniffed.

    Returns
    -------
    str
        *path* itself, or ``"<md5 of base64 body><ext>"``.  Identical
        bytes always hash identically.
    """
    if path:
        return path
    _, _, body = payload.partition(",")
    return f"{md5_hash(body or payload)}{mime_to_extension(_sniff_base64(body) or mime_type)}"


def _sniff_base64(body: str) -> str | None:
    try:
        head = base64.b64decode(body[:16], validate=True)
    except (binascii.Error, ValueError):
        return None
    return sniff_mime(head)


class UploadCache:
    """In-memory ``key -> remote URL`` store.

    Writes are only made after a confirmed upload.  Each key holds at
    most one URL; writing an existing key overwrites it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        url = self._entries.get(key)
        if url is not None:
            log.debug("cache hit", extra=log_fields(op="cache_get", key=key, url=url))
        return url

    def set(self, key: str, url: str) -> None:
        self._entries[key] = url

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        if self._entries:
            log.debug("cache cleared", extra=log_fields(op="cache_clear", entries=len(self._entries)))
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
