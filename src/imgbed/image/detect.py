"""Image source classification and MIME helpers.

Decides whether a reference points at the network, whether its host is
block-listed, and which MIME type a byte buffer carries.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Iterable
from urllib.parse import urlparse

from imgbed.models import ImageReference

# Map of magic bytes to MIME types for sniffing.
_MAGIC_BYTES: list[tuple[bytes, str]] = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"RIFF", "image/webp"),  # RIFF....WEBP (checked below)
    (b"<svg", "image/svg+xml"),
    (b"<?xml", "image/svg+xml"),
    (b"BM", "image/bmp"),
]

_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
}

DEFAULT_MIME = "application/octet-stream"


def is_network_url(src: str) -> bool:
    """Return ``True`` for fully-qualified ``http(s)`` URLs."""
    parsed = urlparse(src.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _domain_of(entry: str) -> str:
    """Reduce a block-list entry to a host; ``https://a.b/x`` -> ``a.b``."""
    entry = entry.strip()
    if "://" in entry:
        return urlparse(entry).hostname or ""
    return entry


def has_block_domain(src: str, block_domains: Iterable[str]) -> bool:
    """Return ``True`` when the host of *src* matches a block-list entry.

    An entry matches when the host contains it, so ``blocked.com``
    blocks ``img.blocked.com``; entries written as URLs are reduced to
    their host first.  Sources that are not URLs never match.
    """
    host = urlparse(src).hostname
    if not host:
        return False
    for entry in block_domains:
        domain = _domain_of(entry)
        if domain and domain in host:
            return True
    return False


def network_candidates(
    refs: Iterable[ImageReference],
    block_domains: Iterable[str],
) -> list[ImageReference]:
    """Filter *refs* down to network images whose host is not blocked."""
    blocked = tuple(block_domains)
    return [
        ref for ref in refs
        if is_network_url(ref.path) and not has_block_domain(ref.path, blocked)
    ]


def sniff_mime(data: bytes) -> str | None:
    """Attempt to detect the MIME type from the first bytes of *data*."""
    for magic, mime in _MAGIC_BYTES:
        if data[:len(magic)] == magic:
            if magic == b"RIFF" and data[8:12] != b"WEBP":
                continue
            return mime
    return None


def guess_mime(data: bytes, name: str = "", declared: str | None = None) -> str:
    """Pick the MIME type for an image buffer.

    A non-empty *declared* type (blob type or ``Content-Type`` header)
    wins; otherwise the bytes are sniffed, then the file extension of
    *name* is consulted.
    """
    if declared:
        return declared.split(";", 1)[0].strip().lower()
    mime = sniff_mime(data)
    if mime:
        return mime
    if name:
        guessed, _ = mimetypes.guess_type(name)
        if guessed:
            return guessed
    return DEFAULT_MIME


def mime_to_extension(mime_type: str) -> str:
    """Map a MIME type to a file extension (``.bin`` when unknown)."""
    return _EXTENSIONS.get(mime_type, ".bin")
