"""Upload orchestration.

:class:`UploadOrchestrator` is the entry point hosts wire their editor
events and commands to:

* :meth:`~UploadOrchestrator.handle_paste` / :meth:`~UploadOrchestrator.handle_drop`
  -- synchronous event handlers.  Placeholders are inserted before they
  return; the uploads run as background tasks.
* :meth:`~UploadOrchestrator.upload_all` -- upload every local (and,
  with ``work_on_network``, remote) image linked in the document.
* :meth:`~UploadOrchestrator.delete_uploaded` -- delete the server-hosted
  images in the current selection and strip their links.

Each job runs ``PENDING -> ENCODING -> CACHE_CHECK -> [UPLOADING ->]
PATCHING -> DONE`` strictly in sequence; encode and upload failures end
it in ``FAILED`` with a notice (and a failure marker where a placeholder
was inserted).  Jobs run concurrently with each other and only meet at
the shared cache.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Iterable, Sequence
from typing import Any

import httpx

from imgbed.cache import UploadCache, cache_key
from imgbed.config import FRONTMATTER_KEY, ImgbedConfig
from imgbed.errors import (
    ImgbedDeleteError,
    ImgbedEligibilityError,
    ImgbedEncodingError,
    ImgbedError,
    ImgbedUploadError,
)
from imgbed.gateway import UploadGateway, build_http_client
from imgbed.host import (
    Clipboard,
    DocumentFrontmatter,
    DropEvent,
    Editor,
    FileHandle,
    FrontmatterSource,
    LocalVault,
    LogNotifier,
    Notifier,
    PasteEvent,
    Vault,
)
from imgbed.i18n import (
    CMD_DELETE,
    CMD_UPLOAD_ALL,
    COUNT,
    DELETED,
    ENABLE_FIRST,
    LOCAL_UPLOADED,
    NETWORK_UPLOADED,
    NETWORK_UPLOADING,
    Translator,
)
from imgbed.image.detect import has_block_domain, is_network_url, network_candidates
from imgbed.image.encode import ImageEncoder
from imgbed.image.extract import extract_image_links
from imgbed.image.state import JobStateMachine
from imgbed.models import ImageReference, JobState, UploadJob
from imgbed.observability import NoopMetricsHook, get_logger, log_fields
from imgbed.patcher import (
    failure_marker,
    new_placeholder,
    placeholder_text,
    render_markdown_image,
    replace_first_occurrence,
)

log = get_logger("imgbed.orchestrator")

DELETE_COMMAND_ID = "upload-image-delete"
UPLOAD_ALL_COMMAND_ID = "upload-image-current-md-file"


def _image_files(files: Iterable[FileHandle]) -> list[FileHandle]:
    return [f for f in files if f.type.startswith("image")]


class UploadOrchestrator:
    """Drive paste, drop and command uploads for one host session.

    Parameters
    ----------
    config:
        Settings snapshot used for every operation.
    vault:
        Reads and trashes vault-relative files.  Defaults to a
        :class:`~imgbed.host.LocalVault` over ``config.base_dir`` when set.
    notifier:
        Receives transient user notices.  Defaults to
        :class:`~imgbed.host.LogNotifier`.
    frontmatter:
        Front-matter of the active document.  When omitted, the
        front-matter of the editor passed to each call is read.
    cache:
        Shared upload cache.  A fresh one is created when omitted.
    gateway, encoder:
        Overrides for the HTTP-facing collaborators.  When either is
        omitted the orchestrator builds one on a shared HTTP client that
        it owns and closes in :meth:`aclose`.
    """

    def __init__(
        self,
        config: ImgbedConfig,
        vault: Vault | None = None,
        notifier: Notifier | None = None,
        frontmatter: FrontmatterSource | None = None,
        cache: UploadCache | None = None,
        gateway: UploadGateway | None = None,
        encoder: ImageEncoder | None = None,
    ) -> None:
        self.config = config
        self.cache = cache if cache is not None else UploadCache()
        self.notifier = notifier if notifier is not None else LogNotifier()
        self.translate = Translator(config.language)
        if vault is None and config.base_dir:
            vault = LocalVault(config.base_dir)
        self.vault = vault
        self._frontmatter = frontmatter
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

        self._client: httpx.AsyncClient | None = None
        if gateway is None or encoder is None:
            self._client = build_http_client(config)
        self.gateway = gateway if gateway is not None else UploadGateway(
            config, self.cache, client=self._client,
        )
        self.encoder = encoder if encoder is not None else ImageEncoder(
            vault=vault, client=self._client, metrics=self._metrics,
        )
        self._tasks: set[asyncio.Task[Any]] = set()

    def commands(self) -> dict[str, str]:
        """Command id to translated display name, for the host's palette."""
        return {
            DELETE_COMMAND_ID: self.translate(CMD_DELETE),
            UPLOAD_ALL_COMMAND_ID: self.translate(CMD_UPLOAD_ALL),
        }

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def enable_plugin(self, editor: Editor | None = None) -> bool:
        """Return ``True`` when uploads are allowed for the active document.

        ``upload-image: true`` in the front-matter always enables upload.
        Otherwise ``enable_upload`` must be on and both ``server_url`` and
        ``upload_api`` set.
        """
        source = self._frontmatter
        if source is None and editor is not None:
            source = DocumentFrontmatter(editor)
        if source is not None and source.get(FRONTMATTER_KEY, False) is True:
            return True
        return self.config.is_upload_configured

    def hit_clipboard(self, clipboard: Clipboard) -> bool:
        """Return ``True`` when a paste should be handled as an image upload."""
        if not _image_files(clipboard.files):
            return False
        if clipboard.get_data("text"):
            return self.config.apply_image
        return True

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def handle_paste(self, event: PasteEvent, editor: Editor) -> list[asyncio.Task[Any]]:
        """Handle a paste event; must be called from the running event loop.

        Returns the spawned job tasks (empty when the paste is left to
        the editor).
        """
        if not self.enable_plugin(editor):
            return []
        clipboard = event.clipboard_data

        tasks: list[asyncio.Task[Any]] = []
        if self.config.work_on_network:
            refs = network_candidates(
                extract_image_links(clipboard.get_data("text/plain")),
                self.config.effective_block_domains(),
            )
            if refs:
                tasks.extend(self.update_network_images(refs, editor))

        if not self.hit_clipboard(clipboard):
            return tasks
        event.prevent_default()
        tasks.extend(self.upload_files(editor, _image_files(clipboard.files)))
        return tasks

    def handle_drop(self, event: DropEvent, editor: Editor) -> list[asyncio.Task[Any]]:
        """Handle a drop event; ``ctrl_key`` leaves the drop to the editor."""
        if not self.enable_plugin(editor):
            return []
        if event.ctrl_key:
            return []
        files = _image_files(event.files)
        if not files:
            return []
        event.prevent_default()
        return self.upload_files(editor, files)

    # ------------------------------------------------------------------
    # Placeholder jobs
    # ------------------------------------------------------------------

    def upload_files(self, editor: Editor, files: Sequence[FileHandle]) -> list[asyncio.Task[Any]]:
        """Insert one placeholder per file and start its upload job."""
        tasks = []
        for handle in files:
            placeholder_id = new_placeholder(editor, self.translate)
            editor.replace_selection(placeholder_text(placeholder_id, self.translate) + "\n\n")
            tasks.append(self._spawn(self._run_file_job(editor, handle, placeholder_id)))
        return tasks

    async def _run_file_job(self, editor: Editor, handle: FileHandle, placeholder_id: str) -> str | None:
        machine = JobStateMachine(placeholder_id)
        placeholder = placeholder_text(placeholder_id, self.translate)
        try:
            url = await self._resolve(
                machine,
                handle,
                name=handle.name,
                path=getattr(handle, "path", None),
            )
        except (ImgbedEncodingError, ImgbedUploadError) as exc:
            machine.fail()
            self._notify_failure(exc, src=handle.name)
            replace_first_occurrence(editor, placeholder, failure_marker(self.translate))
            return None

        replace_first_occurrence(editor, placeholder, render_markdown_image(handle.name, url, self.config))
        machine.transition(JobState.DONE)
        return url

    # ------------------------------------------------------------------
    # Reference jobs
    # ------------------------------------------------------------------

    def update_network_images(
        self,
        refs: Iterable[ImageReference],
        editor: Editor,
    ) -> list[asyncio.Task[Any]]:
        """Re-host each remote image in *refs* and rewrite its link."""
        return [
            self._spawn(self._run_reference_job(editor, ref, from_network=True))
            for ref in refs
        ]

    async def upload_all(self, editor: Editor) -> list[str | None]:
        """Upload every image linked in *editor*'s document.

        Local references are always included; remote ones only with
        ``work_on_network`` and when their host is not block-listed.

        Returns
        -------
        list[str | None]
            The new URL per processed reference, ``None`` where it failed.
            Empty, after a notice, when uploads are not enabled.
        """
        try:
            self._require_eligible(editor)
        except ImgbedEligibilityError as exc:
            log.warning("upload all skipped", extra=log_fields(op="upload_all", code=exc.code, error=exc.message))
            self.notifier.notify(exc.message)
            return []

        blocked = self.config.effective_block_domains()
        jobs: list[Coroutine[Any, Any, str | None]] = []
        for ref in extract_image_links(editor.get_value()):
            if is_network_url(ref.path):
                if self.config.work_on_network and not has_block_domain(ref.path, blocked):
                    jobs.append(self._run_reference_job(editor, ref, from_network=True))
            else:
                jobs.append(self._run_reference_job(editor, ref, from_network=False))
        if not jobs:
            return []
        return list(await asyncio.gather(*jobs))

    async def _run_reference_job(self, editor: Editor, ref: ImageReference, from_network: bool) -> str | None:
        machine = JobStateMachine(ref.path)
        if from_network:
            self.notifier.notify(self.translate(NETWORK_UPLOADING, path=ref.path))
        source: Any = ref.origin_file if ref.origin_file is not None else ref.path
        try:
            url = await self._resolve(
                machine,
                source,
                name=ref.name,
                path=ref.path,
                from_network=from_network,
            )
        except (ImgbedEncodingError, ImgbedUploadError) as exc:
            machine.fail()
            self._notify_failure(exc, src=ref.path)
            return None

        replace_first_occurrence(editor, ref.source, f"![{ref.name}]({url})", replace_all=True)
        machine.transition(JobState.DONE)
        if from_network:
            self.notifier.notify(self.translate(NETWORK_UPLOADED, url=url))
        else:
            self.notifier.notify(self.translate(LOCAL_UPLOADED, path=ref.path))
            if self.config.delete_source:
                await self._trash_source(ref.path)
        return url

    async def _trash_source(self, path: str) -> None:
        if self.vault is None:
            return
        try:
            await self.vault.trash(path)
        except (ImgbedError, OSError) as exc:
            log.warning("could not trash source", extra=log_fields(op="trash", src=path, error=str(exc)))

    # ------------------------------------------------------------------
    # Shared pipeline
    # ------------------------------------------------------------------

    async def _resolve(
        self,
        machine: JobStateMachine,
        source: Any,
        name: str,
        path: str | None,
        from_network: bool = False,
    ) -> str:
        """Encode *source*, then return its cached or freshly uploaded URL."""
        machine.transition(JobState.ENCODING)
        encoded = await self.encoder.encode(source, from_network=from_network)

        machine.transition(JobState.CACHE_CHECK)
        key = cache_key(path, encoded.data, encoded.mime_type)
        cached = self.cache.get(key)
        if cached is not None:
            self._metrics.increment("imgbed.cache_hits_total")
            machine.transition(JobState.PATCHING)
            return cached

        machine.transition(JobState.UPLOADING)
        result = await self.gateway.upload(UploadJob.from_encoded(machine.job_id, name, encoded))
        url = result.raise_for_status()
        self.cache.set(key, url)
        machine.transition(JobState.PATCHING)
        return url

    def _notify_failure(self, exc: ImgbedError, src: str) -> None:
        log.error(
            "upload job failed",
            extra=log_fields(op="job", src=src, code=exc.code, error=exc.message, context=exc.context),
        )
        self.notifier.notify(exc.message)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._job_finished)
        self._metrics.gauge("imgbed.jobs_in_flight", len(self._tasks))
        return task

    def _job_finished(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        self._metrics.gauge("imgbed.jobs_in_flight", len(self._tasks))

    # ------------------------------------------------------------------
    # Delete command
    # ------------------------------------------------------------------

    async def delete_uploaded(self, editor: Editor) -> list[str]:
        """Delete the uploaded images linked in the current selection.

        On success every deleted link is removed from the document.  A
        failure leaves the document untouched and shows a notice.
        """
        try:
            self._require_eligible(editor)
            removed, message = await self.gateway.delete_images(editor.get_selection())
        except (ImgbedEligibilityError, ImgbedDeleteError) as exc:
            log.warning("delete skipped", extra=log_fields(op="delete", code=exc.code, error=exc.message))
            self.notifier.notify(exc.message)
            return []

        if not removed:
            return []
        for source in removed:
            replace_first_occurrence(editor, source, "", replace_all=True)
        self.cache.clear()
        self.notifier.notify(
            f"{message or self.translate(DELETED)} {self.translate(COUNT)}: {len(removed)}"
        )
        return removed

    def _require_eligible(self, editor: Editor) -> None:
        if not self.enable_plugin(editor):
            raise ImgbedEligibilityError(
                message=self.translate(ENABLE_FIRST),
                context={
                    "server_url_set": bool(self.config.server_url),
                    "upload_api_set": bool(self.config.upload_api),
                },
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait until every job started so far (and any it starts) has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        """Clear the cache and close the HTTP client this instance owns."""
        self.cache.clear()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> UploadOrchestrator:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.join()
        await self.aclose()
