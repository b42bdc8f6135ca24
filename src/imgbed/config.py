"""Configuration for imgbed.

:class:`ImgbedConfig` is a frozen dataclass that captures every setting
the upload pipeline reads.  The surrounding application owns the
settings; each operation treats its config instance as an immutable
snapshot.

Persisted settings (the camelCase mapping written by the settings panel)
are converted with :meth:`ImgbedConfig.from_mapping`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

from imgbed.errors import ImgbedConfigError
from imgbed.models import AltType

FRONTMATTER_KEY = "upload-image"
"""Front-matter key that force-enables upload for a single document."""

DEFAULT_IMAGE_QUALITY = 40

# camelCase settings key -> dataclass field.  ``imageQuailty`` is the
# misspelt key older settings files were written with.
_MAPPING_KEYS: dict[str, str] = {
    "enableUpload": "enable_upload",
    "serverUrl": "server_url",
    "uploadApi": "upload_api",
    "imageQuality": "image_quality",
    "imageQuailty": "image_quality",
    "workDir": "work_dir",
    "workOnNetwork": "work_on_network",
    "workOnNetWork": "work_on_network",
    "altType": "alt_type",
    "altText": "alt_text",
    "imageSize": "image_size",
    "deleteSource": "delete_source",
    "applyImage": "apply_image",
    "blockDomains": "block_domains",
    "language": "language",
}


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImgbedConfig:
    """Complete configuration for the upload pipeline.

    Parameters
    ----------
    enable_upload:
        Master switch for paste/drop upload.  A document whose front-matter
        sets ``upload-image: true`` is eligible regardless.
    server_url:
        Image server root, without a trailing ``/``.
    upload_api:
        Upload endpoint path, starting with ``/``.  Joined to
        ``server_url`` to form the upload URL.
    image_quality:
        Quality hint (1-100) forwarded to the server.
    work_dir:
        Destination sub-directory hint on the server (``appid`` field).
        Empty means the server's root resource directory.
    work_on_network:
        Re-host ``http(s)`` images found in pasted text and, for the
        upload-all command, in the document.
    alt_type:
        Alt-text policy for pasted/dropped images.

        * ``"none"`` -- empty alt text.
        * ``"filename"`` -- the file name.
        * ``"custom"`` -- :attr:`alt_text`.
    alt_text:
        Alt text used when ``alt_type="custom"``.
    image_size:
        Optional display width; rendered as an ``|<N>`` alt suffix.
    delete_source:
        Move a local image to the vault trash after its reference has
        been replaced by the uploaded URL.
    apply_image:
        When the clipboard carries both text and an image file, upload the
        image (``True``) or leave the paste to the editor (``False``).
    block_domains:
        Host substrings excluded from network re-hosting.  The server's
        own host is always excluded, see :meth:`effective_block_domains`.
    language:
        Locale of user-visible strings (``"en"`` or ``"zh"``).
    base_dir:
        Vault root used to resolve vault-relative image paths.
    timeout_seconds:
        HTTP timeout for uploads, deletes and image fetches.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    debug_dump_payload:
        Log the (redacted) upload request and response bodies.
    """

    # ── Switches ────────────────────────────────────────────────────────
    enable_upload: bool = True

    work_on_network: bool = False

    apply_image: bool = True

    delete_source: bool = False

    # ── Server ──────────────────────────────────────────────────────────
    server_url: str = ""

    upload_api: str = ""

    image_quality: int = DEFAULT_IMAGE_QUALITY

    work_dir: str = ""

    block_domains: tuple[str, ...] = field(default_factory=tuple)

    # ── Rendering ───────────────────────────────────────────────────────
    alt_type: AltType = AltType.NONE

    alt_text: str = ""

    image_size: str = ""

    language: str = "en"

    # ── Local files ─────────────────────────────────────────────────────
    base_dir: str | None = None

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = field(default=None, compare=False)

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Normalise enum/sequence fields and validate values."""
        try:
            object.__setattr__(self, "alt_type", AltType(self.alt_type))
        except ValueError as exc:
            raise ValueError(
                f"alt_type must be one of {[a.value for a in AltType]}, got {self.alt_type!r}"
            ) from exc
        if isinstance(self.block_domains, str):
            domains = self.block_domains.split(",")
        else:
            domains = list(self.block_domains)
        object.__setattr__(
            self,
            "block_domains",
            tuple(d.strip() for d in domains if d and d.strip()),
        )

        if not 1 <= self.image_quality <= 100:
            raise ValueError(f"image_quality must be within 1..100, got {self.image_quality}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.server_url.endswith("/"):
            raise ValueError(f"server_url must not end with '/', got {self.server_url!r}")
        if self.upload_api and not self.upload_api.startswith("/"):
            raise ValueError(f"upload_api must start with '/', got {self.upload_api!r}")
        if self.language not in ("en", "zh"):
            raise ValueError(f"language must be 'en' or 'zh', got {self.language!r}")

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_upload_configured(self) -> bool:
        """Global switch on and both server URL and upload API set."""
        return bool(self.enable_upload and self.server_url and self.upload_api)

    @property
    def upload_url(self) -> str:
        return f"{self.server_url}{self.upload_api}"

    @property
    def server_host(self) -> str:
        return urlparse(self.server_url).hostname or ""

    def effective_block_domains(self) -> tuple[str, ...]:
        """Configured block domains plus the server's own host."""
        host = self.server_host
        if host and host not in self.block_domains:
            return (*self.block_domains, host)
        return self.block_domains

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> ImgbedConfig:
        """Build a config from a persisted camelCase settings mapping.

        Unknown keys are ignored; missing keys keep their defaults.
        Keyword *overrides* use dataclass field names and win over *data*.

        Raises
        ------
        ImgbedConfigError
            If a value cannot be coerced or fails validation.
        """
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _MAPPING_KEYS.get(key)
            if name is None or value is None:
                continue
            kwargs[name] = value
        kwargs.update(overrides)

        if "image_quality" in kwargs:
            raw = kwargs["image_quality"]
            try:
                # The settings panel stores text; empty means default.
                kwargs["image_quality"] = int(raw) if str(raw).strip() else DEFAULT_IMAGE_QUALITY
            except (TypeError, ValueError) as exc:
                raise ImgbedConfigError(
                    message=f"imageQuality is not a number: {raw!r}",
                    context={"field": "image_quality", "value": raw},
                    cause=exc,
                ) from exc
        if "image_size" in kwargs:
            kwargs["image_size"] = str(kwargs["image_size"]).strip()

        try:
            return cls(**kwargs)
        except ValueError as exc:
            raise ImgbedConfigError(
                message=str(exc),
                context={"value": {k: v for k, v in kwargs.items() if k != "metrics"}},
                cause=exc,
            ) from exc

    def replace(self, **changes: Any) -> ImgbedConfig:
        """Return a copy with *changes* applied (the instance is frozen)."""
        return dataclasses.replace(self, **changes)
