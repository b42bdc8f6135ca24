"""imgbed -- paste, drop and re-host Markdown images on a self-hosted image server.

Public re-exports
-----------------

* **Orchestration:** :class:`UploadOrchestrator`, :class:`UploadGateway`,
  :class:`ImageEncoder`, :class:`UploadCache`
* **Configuration:** :class:`ImgbedConfig`
* **Errors:** Every :class:`ImgbedError` subclass and :class:`ErrorCode`
* **Models:** Value types and enums
* **Host adapters:** :class:`TextEditor`, :class:`LocalVault` and friends

Usage::

    from imgbed import ImgbedConfig, PasteEvent, TextEditor, UploadOrchestrator

    config = ImgbedConfig(server_url="https://img.example.com", upload_api="/api/upload")
    async with UploadOrchestrator(config) as orchestrator:
        orchestrator.handle_paste(event, editor)
"""

from __future__ import annotations

# ── Orchestration ───────────────────────────────────────────────────────
from imgbed.cache import UploadCache, cache_key

# ── Configuration ───────────────────────────────────────────────────────
from imgbed.config import FRONTMATTER_KEY, ImgbedConfig

# ── Errors ──────────────────────────────────────────────────────────────
from imgbed.errors import (
    ErrorCode,
    ImgbedConfigError,
    ImgbedDeleteError,
    ImgbedEligibilityError,
    ImgbedEncodingError,
    ImgbedError,
    ImgbedFetchError,
    ImgbedImageNotFoundError,
    ImgbedUploadError,
    ImgbedUploadResponseError,
    ImgbedUploadTransportError,
)
from imgbed.gateway import UploadGateway, build_http_client, normalize_url

# ── Host adapters ───────────────────────────────────────────────────────
from imgbed.host import (
    BlobFile,
    Clipboard,
    DocumentFrontmatter,
    DropEvent,
    LocalVault,
    LogNotifier,
    PasteEvent,
    Position,
    TextEditor,
)
from imgbed.i18n import Translator
from imgbed.image import ImageEncoder, JobStateMachine, extract_image_links

# ── Models ──────────────────────────────────────────────────────────────
from imgbed.models import (
    AltType,
    EncodedImage,
    ImageReference,
    JobState,
    LinkSyntax,
    UploadJob,
    UploadResult,
    UploadStatus,
)
from imgbed.orchestrator import DELETE_COMMAND_ID, UPLOAD_ALL_COMMAND_ID, UploadOrchestrator
from imgbed.patcher import render_markdown_image, replace_first_occurrence

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Orchestration
    "UploadOrchestrator",
    "DELETE_COMMAND_ID",
    "UPLOAD_ALL_COMMAND_ID",
    "UploadGateway",
    "ImageEncoder",
    "UploadCache",
    "JobStateMachine",
    "build_http_client",
    "cache_key",
    "extract_image_links",
    "normalize_url",
    "render_markdown_image",
    "replace_first_occurrence",
    "Translator",
    # Configuration
    "ImgbedConfig",
    "FRONTMATTER_KEY",
    # Error base + code enum
    "ImgbedError",
    "ErrorCode",
    "ImgbedConfigError",
    "ImgbedEligibilityError",
    # Encoding errors
    "ImgbedEncodingError",
    "ImgbedFetchError",
    "ImgbedImageNotFoundError",
    # Upload / delete errors
    "ImgbedUploadError",
    "ImgbedUploadTransportError",
    "ImgbedUploadResponseError",
    "ImgbedDeleteError",
    # Models
    "AltType",
    "LinkSyntax",
    "JobState",
    "UploadStatus",
    "ImageReference",
    "EncodedImage",
    "UploadJob",
    "UploadResult",
    # Host adapters
    "Position",
    "TextEditor",
    "BlobFile",
    "Clipboard",
    "PasteEvent",
    "DropEvent",
    "LocalVault",
    "DocumentFrontmatter",
    "LogNotifier",
]
