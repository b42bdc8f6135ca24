"""Public data models for imgbed.

This module contains every value type, enum, and result dataclass
referenced by the pipeline.  All types are plain dataclasses with no
behaviour beyond what is needed for structural equality, hashing (where
frozen), and the small conversions noted per class.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from imgbed.errors import ImgbedUploadError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class AltType(str, Enum):
    """Alt-text policy applied when a placeholder is replaced."""

    NONE = "none"
    """Empty alt text."""

    FILENAME = "filename"
    """Use the source file name."""

    CUSTOM = "custom"
    """Use ``config.alt_text``."""


class LinkSyntax(str, Enum):
    """Which Markdown syntax an :class:`ImageReference` was parsed from."""

    BRACKET = "bracket"
    """``![name](path)``"""

    WIKI = "wiki"
    """``![[path|display]]``"""


class JobState(str, Enum):
    """Lifecycle states for one upload job."""

    PENDING = "pending"
    """Placeholder inserted; no work started."""

    ENCODING = "encoding"
    """Reading or fetching bytes and producing the data URL."""

    CACHE_CHECK = "cache_check"
    """Deriving the cache key and consulting the cache."""

    UPLOADING = "uploading"
    """Gateway round-trip in flight."""

    PATCHING = "patching"
    """Replacing the placeholder or reference in the document."""

    DONE = "done"
    """The document holds the final image link."""

    FAILED = "failed"
    """Encoding or upload failed; the failure marker was written."""


class UploadStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Pipeline values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageReference:
    """An image link found in a document snapshot.

    Attributes
    ----------
    path:
        Vault-relative path, bare file name, or an ``http(s)`` URL.
    name:
        Display name.  For bracket links this is the alt text; for wiki
        links it is the path's stem plus the verbatim ``|display`` suffix.
    source:
        The exact document substring to replace once resolved.
    syntax:
        The syntax the reference was parsed from.
    origin_file:
        Host file handle backing the reference, when the host knows one.
    """

    path: str
    name: str
    source: str
    syntax: LinkSyntax = LinkSyntax.BRACKET
    origin_file: Any | None = field(default=None, compare=False)


@dataclass(frozen=True)
class EncodedImage:
    """The transportable form of an image.

    Attributes
    ----------
    data:
        A ``data:<mime>;base64,<payload>`` URL.
    size:
        Size of the raw bytes.
    mime_type:
        MIME type declared by the source (or sniffed from the bytes).
    """

    data: str
    size: int
    mime_type: str


@dataclass
class UploadJob:
    """One image on its way to the server.

    Attributes
    ----------
    placeholder_id:
        Suffix of the placeholder token anchoring this job, or ``""`` for
        jobs that replace pre-existing reference text.
    name:
        File name sent to the server.
    size:
        Raw byte size.
    mime_type:
        MIME type of the bytes.
    payload:
        The ``data:`` URL.
    """

    placeholder_id: str
    name: str
    size: int
    mime_type: str
    payload: str

    @classmethod
    def from_encoded(
        cls,
        placeholder_id: str,
        name: str,
        encoded: EncodedImage,
    ) -> UploadJob:
        return cls(
            placeholder_id=placeholder_id,
            name=name,
            size=encoded.size,
            mime_type=encoded.mime_type,
            payload=encoded.data,
        )


@dataclass(frozen=True)
class UploadResult:
    """Uniform outcome of :meth:`UploadGateway.upload`.

    The gateway never raises; callers inspect :attr:`status` or call
    :meth:`raise_for_status` to turn a failure into an exception.
    """

    status: UploadStatus
    url: str = ""
    message: str = ""
    error: ImgbedUploadError | None = None

    @classmethod
    def success(cls, url: str) -> UploadResult:
        return cls(status=UploadStatus.OK, url=url)

    @classmethod
    def failure(cls, error: ImgbedUploadError) -> UploadResult:
        return cls(status=UploadStatus.ERROR, message=error.message, error=error)

    @property
    def ok(self) -> bool:
        return self.status == UploadStatus.OK

    def raise_for_status(self) -> str:
        """Return the URL, or raise the captured upload error."""
        if self.ok:
            return self.url
        if self.error is not None:
            raise self.error
        raise ImgbedUploadError(message=self.message or "Upload failed")
