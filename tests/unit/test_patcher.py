"""Tests for document patching, placeholders and alt-text rendering."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from imgbed.config import ImgbedConfig
from imgbed.host import Position, TextEditor
from imgbed.i18n import Translator
from imgbed.patcher import (
    alt_text_for,
    failure_marker,
    new_placeholder,
    placeholder_text,
    render_markdown_image,
    replace_first_occurrence,
)


class TestReplaceFirstOccurrence:
    def test_only_first_matching_line_changes(self):
        editor = TextEditor("a TOKEN b\nTOKEN\nc TOKEN")
        assert replace_first_occurrence(editor, "TOKEN", "X") == 1
        assert editor.get_value() == "a X b\nTOKEN\nc TOKEN"

    def test_replace_all_lines(self):
        editor = TextEditor("TOKEN\nkeep\nTOKEN TOKEN")
        assert replace_first_occurrence(editor, "TOKEN", "", replace_all=True) == 2
        # One occurrence per line.
        assert editor.get_value() == "\nkeep\n TOKEN"

    def test_missing_target(self):
        editor = TextEditor("nothing")
        assert replace_first_occurrence(editor, "TOKEN", "X") == 0
        assert editor.get_value() == "nothing"

    def test_empty_target_is_noop(self):
        editor = TextEditor("abc")
        assert replace_first_occurrence(editor, "", "X") == 0

    def test_uses_replace_range(self):
        editor = TextEditor("one\ntwo TOKEN")
        with patch.object(editor, "replace_range", wraps=editor.replace_range) as spy:
            replace_first_occurrence(editor, "TOKEN", "X")
        spy.assert_called_once_with("X", Position(1, 4), Position(1, 9))


class TestPlaceholders:
    def test_english_text(self):
        assert placeholder_text("ab12c") == "![🕔Uploading file...ab12c]()"

    def test_localised_text(self):
        assert placeholder_text("ab12c", Translator("zh")) == "![🕔正在上传文件...ab12c]()"

    def test_id_shape(self):
        pid = new_placeholder(TextEditor())
        assert len(pid) == 5
        assert pid.isalnum() and pid == pid.lower()

    def test_id_regenerated_while_present(self):
        editor = TextEditor(placeholder_text("aaaaa"))
        with patch("imgbed.patcher.random.choices", side_effect=[list("aaaaa"), list("bbbbb")]):
            assert new_placeholder(editor) == "bbbbb"

    def test_failure_marker(self):
        assert failure_marker() == "❌upload failed, check dev console"
        assert failure_marker(Translator("zh")) == "❌上传失败，请检查开发者工具"


class TestAltText:
    @pytest.mark.parametrize(
        ("kwargs", "expected"),
        [
            ({"alt_type": "none"}, ""),
            ({"alt_type": "filename"}, "shot.png"),
            ({"alt_type": "custom", "alt_text": "figure"}, "figure"),
            ({"alt_type": "filename", "image_size": "300"}, "shot.png|300"),
            ({"alt_type": "none", "image_size": "300"}, "|300"),
        ],
    )
    def test_policy(self, kwargs, expected):
        assert alt_text_for("shot.png", ImgbedConfig(**kwargs)) == expected

    def test_render(self):
        config = ImgbedConfig(alt_type="filename")
        assert render_markdown_image("shot.png", "https://cdn.x/a", config) == "![shot.png](https://cdn.x/a)"
