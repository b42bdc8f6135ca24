"""HTTP gateway to the image server.

Two endpoints are used:

* ``POST {server_url}{upload_api}`` -- form body ``name, size, type,
  quality, appid, data`` (the base64 data URL last).  The server answers
  ``{"code": 0, "data": {"url": "..."}}`` or ``{"code": <n>, "msg": "..."}``.
* ``GET {server_url}/api/deleteAll?url=[<json array of paths>]`` -- the
  server answers ``{"success": bool, "msg": "..."}``.

:meth:`UploadGateway.upload` never raises: every transport, status and
parse failure is returned as :meth:`UploadResult.failure`.
"""

from __future__ import annotations

import json
import time
from urllib.parse import urlparse
from typing import Any

import httpx

from imgbed.cache import UploadCache
from imgbed.config import ImgbedConfig
from imgbed.errors import (
    ImgbedDeleteError,
    ImgbedUploadError,
    ImgbedUploadResponseError,
    ImgbedUploadTransportError,
)
from imgbed.i18n import DELETE_FAILED, Translator
from imgbed.image.detect import is_network_url
from imgbed.image.extract import extract_image_links
from imgbed.models import UploadJob, UploadResult
from imgbed.observability import NoopMetricsHook, get_logger, log_fields
from imgbed.utils.redact import redact

log = get_logger("imgbed.gateway")

DELETE_API = "/api/deleteAll"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def build_http_client(config: ImgbedConfig) -> httpx.AsyncClient:
    """Create the shared async HTTP client for uploads, deletes and fetches."""
    proxy: httpx.URL | str | None = config.http_proxy
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.timeout_seconds),
        proxy=proxy,
    )


def normalize_url(server_url: str, raw_url: str) -> str:
    """Turn the server-relative URL of an upload into an absolute one.

    The server reports paths such as ``./img/a.png`` or ``/img/a.png``;
    the leading ``.`` is stripped and the path joined to *server_url*
    with exactly one ``/``.  Absolute ``http(s)`` URLs pass through.

    Examples
    --------
    >>> normalize_url("https://cdn.example.com", "/img/abc.png")
    'https://cdn.example.com/img/abc.png'
    >>> normalize_url("https://cdn.example.com", "./img/abc.png")
    'https://cdn.example.com/img/abc.png'
    """
    if is_network_url(raw_url):
        return raw_url
    path = raw_url[1:] if raw_url.startswith("./") else raw_url
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{server_url.rstrip('/')}{path}"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _server_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        return str(body.get("msg") or body.get("message") or default)
    return default


def _dump_payload(method: str, url: str, payload: dict | None, status: int | None, body: Any) -> None:
    """Log a redacted debug dump of one request/response pair."""
    dump: dict[str, Any] = {"method": method, "url": url}
    if payload is not None:
        dump["request_body"] = payload
    if status is not None:
        dump["response_status"] = status
    if body is not None:
        dump["response_body"] = body
    log.debug("payload dump", extra=log_fields(op="dump", **redact(dump)))


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class UploadGateway:
    """Upload and delete round-trips against the configured server.

    Parameters
    ----------
    config:
        Supplies ``server_url``, ``upload_api``, the quality and
        work-directory hints, and HTTP settings.
    cache:
        The shared upload cache; cleared after a successful batch delete.
    client:
        Optional pre-built HTTP client.  When omitted the gateway builds
        and owns one, and :meth:`close` closes it.
    """

    def __init__(
        self,
        config: ImgbedConfig,
        cache: UploadCache,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._owns_client = client is None
        self._client = client if client is not None else build_http_client(config)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._translate = Translator(config.language)

    # -- upload ------------------------------------------------------------

    def build_form(self, job: UploadJob) -> dict[str, Any]:
        """Request body for *job*; ``data`` is always the last field."""
        return {
            "name": job.name,
            "size": job.size,
            "type": job.mime_type,
            "quality": self._config.image_quality,
            "appid": self._config.work_dir,
            "data": job.payload,
        }

    async def upload(self, job: UploadJob) -> UploadResult:
        """Upload *job* and return the absolute URL of the stored image.

        Returns
        -------
        UploadResult
            ``ok`` with the normalised URL, or ``error`` carrying the
            server's message (or a transport description).
        """
        try:
            url = await self._upload(job)
        except ImgbedUploadError as exc:
            self._metrics.increment(
                "imgbed.upload_failure_total",
                tags={"code": getattr(exc.code, "value", exc.code)},
            )
            log.warning(
                "upload failed",
                extra=log_fields(op="upload", name=job.name, code=exc.code, error=exc.message),
            )
            return UploadResult.failure(exc)

        self._metrics.increment("imgbed.upload_success_total")
        log.info("upload ok", extra=log_fields(op="upload", name=job.name, size=job.size, url=url))
        return UploadResult.success(url)

    async def _upload(self, job: UploadJob) -> str:
        endpoint = self._config.upload_url
        if not self._config.server_url or not self._config.upload_api:
            raise ImgbedUploadResponseError(
                message="Server URL and upload API must both be configured",
                context={"url": endpoint},
            )
        form = self.build_form(job)

        t0 = time.monotonic()
        try:
            response = await self._client.post(endpoint, data=form)
        except httpx.HTTPError as exc:
            self._metrics.increment("imgbed.requests_total", tags={"op": "upload", "status": "error"})
            raise ImgbedUploadTransportError(
                message=f"Upload request failed: {exc}",
                context={"url": endpoint, "name": job.name},
                cause=exc,
            ) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000
        self._metrics.increment(
            "imgbed.requests_total",
            tags={"op": "upload", "status": str(response.status_code)},
        )
        self._metrics.timing("imgbed.request_duration_ms", elapsed_ms, tags={"op": "upload"})

        body = _response_body(response)
        if self._config.debug_dump_payload:
            _dump_payload("POST", endpoint, form, response.status_code, body)

        if response.status_code != 200 or (isinstance(body, dict) and body.get("success") is False):
            raise ImgbedUploadResponseError(
                message=_server_message(body, f"Upload failed with HTTP {response.status_code}"),
                context={"url": endpoint, "status_code": response.status_code},
            )
        if not isinstance(body, dict):
            raise ImgbedUploadResponseError(
                message="Upload response is not a JSON object",
                context={"url": endpoint, "status_code": response.status_code},
            )

        app_code = body.get("code")
        if app_code != 0:
            raise ImgbedUploadResponseError(
                message=_server_message(body, f"Upload rejected with code {app_code}"),
                context={"url": endpoint, "status_code": response.status_code, "app_code": app_code},
            )

        data = body.get("data")
        raw_url = data.get("url") if isinstance(data, dict) else None
        if not isinstance(raw_url, str) or not raw_url:
            raise ImgbedUploadResponseError(
                message="Upload response carries no URL",
                context={"url": endpoint, "status_code": response.status_code, "app_code": app_code},
            )
        return normalize_url(self._config.server_url, raw_url)

    # -- delete ------------------------------------------------------------

    async def delete(self, selection_text: str) -> list[str]:
        """Delete the server-hosted images linked in *selection_text*.

        Returns the original link text of every deleted image.  See
        :meth:`delete_images`.
        """
        removed, _ = await self.delete_images(selection_text)
        return removed

    async def delete_images(self, selection_text: str) -> tuple[list[str], str]:
        """Delete the server-hosted images linked in *selection_text*.

        Only ``http(s)`` references whose host is exactly the configured
        server's host are sent.  Nothing is requested when there are none.

        Returns
        -------
        tuple[list[str], str]
            The original link text of every deleted image, for the caller
            to strip from the document, and the server's message.  The
            upload cache is cleared.

        Raises
        ------
        ImgbedDeleteError
            If the request fails or the server does not report success.
            Nothing is considered removed in that case.
        """
        server_url = self._config.server_url
        server_host = self._config.server_host
        refs = [
            ref for ref in extract_image_links(selection_text)
            if is_network_url(ref.path) and server_host
            and urlparse(ref.path).hostname == server_host
        ]
        if not refs:
            return [], ""

        paths = [ref.path.replace(server_url, ".", 1) for ref in refs]
        endpoint = f"{server_url}{DELETE_API}"
        params = {"url": f"[{json.dumps(paths)}]"}

        try:
            response = await self._client.get(endpoint, params=params)
        except httpx.HTTPError as exc:
            self._metrics.increment("imgbed.delete_total", tags={"status": "error"})
            raise ImgbedDeleteError(
                message=f"Delete request failed: {exc}",
                context={"url": endpoint, "paths": paths},
                cause=exc,
            ) from exc

        body = _response_body(response)
        if self._config.debug_dump_payload:
            _dump_payload("GET", endpoint, params, response.status_code, body)

        if not isinstance(body, dict) or body.get("success") is not True:
            self._metrics.increment("imgbed.delete_total", tags={"status": "failed"})
            raise ImgbedDeleteError(
                message=_server_message(body, self._translate(DELETE_FAILED)),
                context={"url": endpoint, "paths": paths, "status_code": response.status_code},
            )

        self._metrics.increment("imgbed.delete_total", value=len(refs), tags={"status": "ok"})
        log.info(
            "images deleted",
            extra=log_fields(op="delete", count=len(refs), server_message=body.get("msg")),
        )
        # Which cached keys pointed at the deleted URLs is not tracked.
        self._cache.clear()
        return [ref.source for ref in refs], str(body.get("msg") or "")

    # -- lifecycle ---------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> UploadGateway:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
