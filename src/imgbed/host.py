"""Host collaborators.

The pipeline talks to its host editor through the small structural
interfaces below.  Any object with the right methods works; the concrete
classes in this module cover the common cases and are what the test
suite drives the pipeline with:

* :class:`TextEditor` -- in-memory line/column text buffer.
* :class:`BlobFile` -- in-memory file handle (clipboard or drop entry).
* :class:`Clipboard`, :class:`PasteEvent`, :class:`DropEvent` -- trigger
  payloads; hosts translate their native events into these.
* :class:`LocalVault` -- vault-relative file access below a base directory.
* :class:`DocumentFrontmatter` -- YAML front-matter of an editor's text.
* :class:`LogNotifier` -- notices written to the structured log.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NamedTuple, Protocol, runtime_checkable

import frontmatter
import yaml

from imgbed.errors import ImgbedImageNotFoundError
from imgbed.observability import get_logger, log_fields

log = get_logger("imgbed.host")

TRASH_DIR = ".trash"


class Position(NamedTuple):
    """Zero-based line/column address inside a document."""

    line: int
    ch: int


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

@runtime_checkable
class Editor(Protocol):
    """The editing surface of the active document."""

    def get_value(self) -> str: ...

    def replace_range(self, text: str, from_pos: Position, to_pos: Position | None = None) -> None: ...

    def replace_selection(self, text: str) -> None: ...

    def get_selection(self) -> str: ...

    def get_cursor(self) -> Position: ...

    def set_cursor(self, pos: Position) -> None: ...


@runtime_checkable
class FileHandle(Protocol):
    """A file offered by a paste or drop event."""

    name: str
    type: str
    size: int

    async def read(self) -> bytes: ...


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class FrontmatterSource(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


class Vault(Protocol):
    async def read_bytes(self, path: str) -> bytes: ...

    async def trash(self, path: str) -> None: ...


# ---------------------------------------------------------------------------
# Editor buffer
# ---------------------------------------------------------------------------

class TextEditor:
    """In-memory :class:`Editor` over a single string.

    Selection is the half-open range between an anchor and the cursor.
    Replacing the selection leaves the cursor after the inserted text.
    """

    def __init__(self, text: str = "", cursor: Position | None = None) -> None:
        self._text = text
        end = self._position(len(text))
        self._anchor: Position = cursor or end
        self._head: Position = cursor or end
        self._scroll: tuple[float, float] = (0.0, 0.0)

    # -- addressing --------------------------------------------------------

    def _offset(self, pos: Position) -> int:
        lines = self._text.split("\n")
        line = min(max(pos.line, 0), len(lines) - 1)
        ch = min(max(pos.ch, 0), len(lines[line]))
        return sum(len(text) + 1 for text in lines[:line]) + ch

    def _position(self, offset: int) -> Position:
        before = self._text[:offset]
        line = before.count("\n")
        return Position(line, offset - (before.rfind("\n") + 1))

    def _span(self) -> tuple[int, int]:
        a, b = self._offset(self._anchor), self._offset(self._head)
        return min(a, b), max(a, b)

    # -- Editor ------------------------------------------------------------

    def get_value(self) -> str:
        return self._text

    def set_value(self, text: str) -> None:
        self._text = text
        self._anchor = self._head = self._position(len(text))

    def replace_range(self, text: str, from_pos: Position, to_pos: Position | None = None) -> None:
        start = self._offset(from_pos)
        end = self._offset(to_pos) if to_pos is not None else start
        cursor = self._offset(self._head)
        self._text = self._text[:start] + text + self._text[end:]
        # Keep the cursor on the same logical character.
        if cursor >= end:
            cursor += len(text) - (end - start)
        elif cursor > start:
            cursor = start + len(text)
        self._anchor = self._head = self._position(cursor)

    def replace_selection(self, text: str) -> None:
        start, end = self._span()
        self._text = self._text[:start] + text + self._text[end:]
        self._anchor = self._head = self._position(start + len(text))

    def get_selection(self) -> str:
        start, end = self._span()
        return self._text[start:end]

    def set_selection(self, anchor: Position, head: Position | None = None) -> None:
        self._anchor = anchor
        self._head = head if head is not None else anchor

    def get_cursor(self) -> Position:
        return self._position(self._offset(self._head))

    def set_cursor(self, pos: Position) -> None:
        self._anchor = self._head = pos

    def get_scroll_info(self) -> dict[str, float]:
        left, top = self._scroll
        return {"left": left, "top": top}

    def scroll_to(self, left: float, top: float) -> None:
        self._scroll = (left, top)


# ---------------------------------------------------------------------------
# Trigger payloads
# ---------------------------------------------------------------------------

@dataclass
class BlobFile:
    """In-memory :class:`FileHandle`.

    ``path`` is set only when the file comes from a known location (a
    file dragged from the vault); clipboard images have none.
    """

    name: str
    type: str
    content: bytes
    path: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    async def read(self) -> bytes:
        return self.content


@dataclass
class Clipboard:
    files: Sequence[FileHandle] = ()
    items: dict[str, str] = field(default_factory=dict)

    def get_data(self, mime: str) -> str:
        if mime == "text":
            mime = "text/plain"
        return self.items.get(mime, "")


@dataclass
class _CancelableEvent:
    default_prevented: bool = field(default=False, init=False)

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass
class PasteEvent(_CancelableEvent):
    clipboard_data: Clipboard = field(default_factory=Clipboard)


@dataclass
class DropEvent(_CancelableEvent):
    files: Sequence[FileHandle] = ()
    ctrl_key: bool = False
    """Modifier requesting "insert as local link"; upload is skipped."""


# ---------------------------------------------------------------------------
# Vault, front-matter, notices
# ---------------------------------------------------------------------------

class LocalVault:
    """Vault-relative file access below *base_dir*.

    Paths that resolve outside *base_dir* are rejected, so untrusted
    Markdown cannot read arbitrary files.
    """

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir).resolve()

    def resolve(self, path: str) -> Path:
        resolved = (self.base_dir / path.lstrip("/")).resolve()
        if not resolved.is_relative_to(self.base_dir):
            raise ImgbedImageNotFoundError(
                message=f"Image path escapes the vault: {path}",
                context={"src": path, "resolved_path": str(resolved)},
            )
        return resolved

    async def read_bytes(self, path: str) -> bytes:
        resolved = self.resolve(path)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, resolved.read_bytes)
        except OSError as exc:
            raise ImgbedImageNotFoundError(
                message=f"Failed to read image file: {path}",
                context={"src": path, "resolved_path": str(resolved)},
                cause=exc,
            ) from exc

    async def trash(self, path: str) -> None:
        """Move *path* into the vault's ``.trash`` folder."""
        source = self.resolve(path)
        trash_dir = self.base_dir / TRASH_DIR
        target = trash_dir / source.name
        counter = 1
        while target.exists():
            target = trash_dir / f"{source.stem} {counter}{source.suffix}"
            counter += 1

        def _move() -> None:
            trash_dir.mkdir(exist_ok=True)
            shutil.move(str(source), str(target))

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, _move)
        log.info("source moved to trash", extra=log_fields(op="trash", src=path, target=str(target)))


class DocumentFrontmatter:
    """Read-only front-matter lookup on an editor's current text.

    The text is parsed on every lookup, so edits made since the previous
    call are seen.  Malformed front-matter reads as empty metadata.
    """

    def __init__(self, editor: Editor) -> None:
        self._editor = editor

    def metadata(self) -> dict[str, Any]:
        try:
            post = frontmatter.loads(self._editor.get_value())
        except yaml.YAMLError as exc:
            log.debug("unreadable front-matter", extra=log_fields(error=str(exc)))
            return {}
        return dict(post.metadata)

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata().get(key, default)


class LogNotifier:
    """:class:`Notifier` that writes notices to the structured log."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
        log.info("notice", extra=log_fields(op="notice", notice=message))
