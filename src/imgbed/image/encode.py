"""Image encoding: any image source to a base64 data URL.

Three kinds of source are accepted:

* a host :class:`~imgbed.host.FileHandle` (clipboard or dropped file),
* a vault-relative path, read through a :class:`~imgbed.host.Vault`,
* an ``http(s)`` URL, fetched with ``GET``.

The whole byte buffer is materialised before encoding; there is no
streaming encode.
"""

from __future__ import annotations

import base64
from typing import Any

import httpx

from imgbed.errors import ImgbedEncodingError, ImgbedFetchError
from imgbed.host import Vault
from imgbed.image.detect import guess_mime
from imgbed.models import EncodedImage
from imgbed.observability import NoopMetricsHook, get_logger, log_fields

log = get_logger("imgbed.image.encode")


def to_data_url(data: bytes, mime_type: str) -> str:
    """Return ``data:<mime>;base64,<payload>`` for *data*."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class ImageEncoder:
    """Turn image sources into :class:`EncodedImage` values.

    Parameters
    ----------
    vault:
        Resolves vault-relative paths.  Required for :meth:`encode_path`.
    client:
        HTTP client used for network sources.  Required for
        :meth:`encode_url`.
    metrics:
        Optional :class:`~imgbed.observability.MetricsHook`.
    """

    def __init__(
        self,
        vault: Vault | None = None,
        client: httpx.AsyncClient | None = None,
        metrics: Any | None = None,
    ) -> None:
        self._vault = vault
        self._client = client
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def encode(self, source: Any, from_network: bool = False) -> EncodedImage:
        """Encode *source*.

        A string is fetched when *from_network* is true and read from the
        vault otherwise; anything else is treated as a file handle.

        Raises
        ------
        ImgbedEncodingError
            If the source cannot be read, the fetch does not succeed, or
            the resulting buffer is empty.
        """
        try:
            if isinstance(source, str):
                if from_network:
                    return await self.encode_url(source)
                return await self.encode_path(source)
            return await self.encode_file(source)
        except ImgbedEncodingError as exc:
            self._metrics.increment(
                "imgbed.encode_failure_total",
                tags={"code": getattr(exc.code, "value", exc.code)},
            )
            log.warning(
                "encoding failed",
                extra=log_fields(op="encode", src=_describe(source), error=exc.message),
            )
            raise

    async def encode_file(self, handle: Any) -> EncodedImage:
        name = getattr(handle, "name", "")
        try:
            data = await handle.read()
        except OSError as exc:
            raise ImgbedEncodingError(
                message=f"Failed to read file: {name}",
                context={"src": name, "reason": "read_error"},
                cause=exc,
            ) from exc
        return self.encode_bytes(data, name=name, declared_type=getattr(handle, "type", None))

    async def encode_path(self, path: str) -> EncodedImage:
        if self._vault is None:
            raise ImgbedEncodingError(
                message=f"No vault configured to read {path}",
                context={"src": path, "reason": "no_vault"},
            )
        data = await self._vault.read_bytes(path)
        return self.encode_bytes(data, name=path)

    async def encode_url(self, url: str) -> EncodedImage:
        if self._client is None:
            raise ImgbedFetchError(
                message=f"No HTTP client configured to fetch {url}",
                context={"src": url},
            )
        try:
            response = await self._client.get(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise ImgbedFetchError(
                message=f"Failed to fetch image: {url}",
                context={"src": url},
                cause=exc,
            ) from exc
        if response.status_code != 200:
            raise ImgbedFetchError(
                message=f"Fetching {url} returned HTTP {response.status_code}",
                context={"src": url, "status_code": response.status_code},
            )
        return self.encode_bytes(
            response.content,
            name=url,
            declared_type=response.headers.get("content-type"),
        )

    def encode_bytes(
        self,
        data: bytes,
        name: str = "",
        declared_type: str | None = None,
    ) -> EncodedImage:
        """Encode an in-memory buffer.

        Raises
        ------
        ImgbedEncodingError
            If *data* is empty.
        """
        if not data:
            raise ImgbedEncodingError(
                message=f"Image data is empty: {name}",
                context={"src": name, "reason": "empty"},
            )
        mime_type = guess_mime(data, name=name, declared=declared_type)
        return EncodedImage(data=to_data_url(data, mime_type), size=len(data), mime_type=mime_type)


def _describe(source: Any) -> str:
    if isinstance(source, str):
        return source
    return getattr(source, "name", type(source).__name__)
