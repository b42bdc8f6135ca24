"""Tests for the bundled host adapters."""

from __future__ import annotations

import pytest

from imgbed.errors import ImgbedImageNotFoundError
from imgbed.host import (
    BlobFile,
    Clipboard,
    DocumentFrontmatter,
    DropEvent,
    Editor,
    FileHandle,
    LocalVault,
    LogNotifier,
    PasteEvent,
    Position,
    TextEditor,
)

# ---------------------------------------------------------------------------
# TextEditor
# ---------------------------------------------------------------------------


class TestTextEditor:
    def test_satisfies_protocol(self):
        assert isinstance(TextEditor(), Editor)

    def test_cursor_defaults_to_end(self):
        editor = TextEditor("ab\ncd")
        assert editor.get_cursor() == Position(1, 2)

    def test_replace_selection_moves_cursor_after_insert(self):
        editor = TextEditor("hello world", cursor=Position(0, 6))
        editor.replace_selection("big ")
        assert editor.get_value() == "hello big world"
        assert editor.get_cursor() == Position(0, 10)

    def test_replace_selection_replaces_selected_text(self):
        editor = TextEditor("hello world")
        editor.set_selection(Position(0, 0), Position(0, 5))
        assert editor.get_selection() == "hello"
        editor.replace_selection("bye")
        assert editor.get_value() == "bye world"

    def test_multiline_insert(self):
        editor = TextEditor("", cursor=Position(0, 0))
        editor.replace_selection("a\n\n")
        assert editor.get_cursor() == Position(2, 0)

    def test_replace_range_keeps_cursor_on_same_character(self):
        editor = TextEditor("AAA\nBBB", cursor=Position(1, 1))
        editor.replace_range("longer", Position(0, 0), Position(0, 3))
        assert editor.get_value() == "longer\nBBB"
        assert editor.get_cursor() == Position(1, 1)

    def test_replace_range_same_line_before_cursor_shifts_it(self):
        editor = TextEditor("ab TOKEN cd", cursor=Position(0, 11))
        editor.replace_range("X", Position(0, 3), Position(0, 8))
        assert editor.get_value() == "ab X cd"
        assert editor.get_cursor() == Position(0, 7)

    def test_insert_without_end_position(self):
        editor = TextEditor("ac")
        editor.replace_range("b", Position(0, 1))
        assert editor.get_value() == "abc"

    def test_positions_are_clamped(self):
        editor = TextEditor("ab")
        editor.replace_range("!", Position(5, 99))
        assert editor.get_value() == "ab!"

    def test_scroll_round_trip(self):
        editor = TextEditor()
        editor.scroll_to(3.0, 40.0)
        assert editor.get_scroll_info() == {"left": 3.0, "top": 40.0}

    def test_set_value(self):
        editor = TextEditor("old")
        editor.set_value("new\ntext")
        assert editor.get_value() == "new\ntext"
        assert editor.get_cursor() == Position(1, 4)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEvents:
    async def test_blob_file(self):
        blob = BlobFile("a.png", "image/png", b"1234")
        assert isinstance(blob, FileHandle)
        assert blob.size == 4
        assert await blob.read() == b"1234"

    def test_clipboard_text_alias(self):
        clipboard = Clipboard(items={"text/plain": "hi"})
        assert clipboard.get_data("text") == "hi"
        assert clipboard.get_data("text/html") == ""

    def test_prevent_default(self):
        paste = PasteEvent()
        drop = DropEvent(ctrl_key=True)
        assert not paste.default_prevented
        paste.prevent_default()
        drop.prevent_default()
        assert paste.default_prevented and drop.default_prevented


# ---------------------------------------------------------------------------
# LocalVault
# ---------------------------------------------------------------------------


class TestLocalVault:
    async def test_read_bytes(self, tmp_path):
        (tmp_path / "a.png").write_bytes(b"png")
        assert await LocalVault(tmp_path).read_bytes("a.png") == b"png"

    async def test_leading_slash_is_vault_relative(self, tmp_path):
        (tmp_path / "a.png").write_bytes(b"png")
        assert await LocalVault(tmp_path).read_bytes("/a.png") == b"png"

    def test_escape_rejected(self, tmp_path):
        with pytest.raises(ImgbedImageNotFoundError):
            LocalVault(tmp_path / "v").resolve("../outside.png")

    async def test_trash_moves_file(self, tmp_path):
        (tmp_path / "a.png").write_bytes(b"1")
        vault = LocalVault(tmp_path)
        await vault.trash("a.png")
        assert not (tmp_path / "a.png").exists()
        assert (tmp_path / ".trash" / "a.png").read_bytes() == b"1"

    async def test_trash_name_collision(self, tmp_path):
        vault = LocalVault(tmp_path)
        (tmp_path / "a.png").write_bytes(b"1")
        await vault.trash("a.png")
        (tmp_path / "a.png").write_bytes(b"2")
        await vault.trash("a.png")
        assert (tmp_path / ".trash" / "a 1.png").read_bytes() == b"2"


# ---------------------------------------------------------------------------
# Front-matter and notices
# ---------------------------------------------------------------------------


class TestDocumentFrontmatter:
    def test_reads_key(self):
        editor = TextEditor("---\nupload-image: true\ntags: [a]\n---\nbody\n")
        assert DocumentFrontmatter(editor).get("upload-image") is True

    def test_missing_front_matter(self):
        assert DocumentFrontmatter(TextEditor("just text")).get("upload-image", False) is False

    def test_sees_later_edits(self):
        editor = TextEditor("body")
        fm = DocumentFrontmatter(editor)
        assert fm.get("upload-image") is None
        editor.set_value("---\nupload-image: true\n---\nbody")
        assert fm.get("upload-image") is True

    def test_malformed_yaml_reads_as_empty(self):
        editor = TextEditor("---\nkey: [unclosed\n---\nbody")
        assert DocumentFrontmatter(editor).metadata() == {}


class TestLogNotifier:
    def test_records_messages(self):
        notifier = LogNotifier()
        notifier.notify("one")
        notifier.notify("two")
        assert notifier.messages == ["one", "two"]
