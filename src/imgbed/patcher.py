"""Document patching.

Placeholders and original image links are located by plain substring
search over the editor's lines and replaced through
``Editor.replace_range``.  Each pending job owns a unique placeholder, so
replacing the first occurrence only ever touches that job's anchor.
"""

from __future__ import annotations

import random
import string

from imgbed.config import ImgbedConfig
from imgbed.host import Editor, Position
from imgbed.i18n import UPLOAD_FAILED, UPLOADING, Translator
from imgbed.models import AltType

PLACEHOLDER_ID_LENGTH = 5
_ID_ALPHABET = string.digits + string.ascii_lowercase


def replace_first_occurrence(
    editor: Editor,
    target: str,
    replacement: str,
    replace_all: bool = False,
) -> int:
    """Replace *target* with *replacement* in *editor*.

    Lines are scanned top to bottom and the first occurrence on a line is
    replaced.  Without *replace_all* the scan stops after the first
    matching line; other lines are left untouched.

    Returns
    -------
    int
        Number of replacements made.
    """
    if not target:
        return 0
    replaced = 0
    lines = editor.get_value().split("\n")
    for i, line in enumerate(lines):
        ch = line.find(target)
        if ch == -1:
            continue
        editor.replace_range(replacement, Position(i, ch), Position(i, ch + len(target)))
        replaced += 1
        if not replace_all:
            break
    return replaced


def placeholder_text(placeholder_id: str, translate: Translator | None = None) -> str:
    """``![🕔Uploading file...<id>]()`` in the translator's locale."""
    label = translate(UPLOADING) if translate is not None else UPLOADING
    return f"![{label}{placeholder_id}]()"


def new_placeholder(editor: Editor, translate: Translator | None = None) -> str:
    """Return a fresh placeholder id not present in *editor*'s text."""
    text = editor.get_value()
    while True:
        placeholder_id = "".join(random.choices(_ID_ALPHABET, k=PLACEHOLDER_ID_LENGTH))
        if placeholder_text(placeholder_id, translate) not in text:
            return placeholder_id


def failure_marker(translate: Translator | None = None) -> str:
    return translate(UPLOAD_FAILED) if translate is not None else UPLOAD_FAILED


def alt_text_for(name: str, config: ImgbedConfig) -> str:
    """Apply the alt-text policy and the optional ``|<size>`` suffix."""
    if config.alt_type is AltType.FILENAME:
        alt = name
    elif config.alt_type is AltType.CUSTOM:
        alt = config.alt_text
    else:
        alt = ""
    if config.image_size:
        alt = f"{alt}|{config.image_size}"
    return alt


def render_markdown_image(name: str, url: str, config: ImgbedConfig) -> str:
    """Final Markdown for an uploaded image, e.g. ``![shot.png](https://...)``."""
    return f"![{alt_text_for(name, config)}]({url})"
