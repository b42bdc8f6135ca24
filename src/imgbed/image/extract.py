"""Image link extraction.

Two independent parsers scan a document snapshot, one per syntax:

* :func:`parse_bracket_links` -- ``![name](path)``, ``![name](<path>)``,
  ``![name](path "title")`` and ``![name](http(s)://...)``.
* :func:`parse_wiki_links` -- ``![[path]]`` and ``![[path|display]]``.

:func:`extract_image_links` merges them (bracket matches first) and drops
every reference whose ``path`` was already seen.  Extraction never
mutates its input, so calling it twice on the same text yields the same
list.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from pathlib import PurePosixPath

from imgbed.models import ImageReference, LinkSyntax

# Alternatives are tried left to right at each position:
#   1. angle-bracket path with an extension
#   2. bare path with an extension and optional quoted title
#   3. any http(s) URL
# Alt text stops at the first ``]`` and paths are matched lazily so that
# two links on one line never merge into a single match.
_BRACKET_RE = re.compile(
    r"!\[(?P<alt1>[^\]\n]*)\]\(<(?P<path1>\S+?\.\w+)>\)"
    r"|!\[(?P<alt2>[^\]\n]*)\]\((?P<path2>\S+?\.\w+)(?:\s+\"[^\"]*\")?\)"
    r"|!\[(?P<alt3>[^\]\n]*)\]\((?P<path3>https?://[^\s)]*)\)"
)

_WIKI_RE = re.compile(r"!\[\[(?P<path>.*?)(?P<display>\s*?\|.*?)?\]\]")


def parse_bracket_links(text: str) -> Iterator[ImageReference]:
    """Yield every bracket-syntax image link in *text*, in document order."""
    for match in _BRACKET_RE.finditer(text):
        for n in ("1", "2", "3"):
            path = match.group(f"path{n}")
            if path is not None:
                yield ImageReference(
                    path=path,
                    name=match.group(f"alt{n}"),
                    source=match.group(0),
                    syntax=LinkSyntax.BRACKET,
                )
                break


def parse_wiki_links(text: str) -> Iterator[ImageReference]:
    """Yield every wiki-syntax image embed in *text*, in document order.

    ``name`` is the path's file stem, followed by the ``|display``
    segment verbatim when one is present.
    """
    for match in _WIKI_RE.finditer(text):
        path = match.group("path")
        name = PurePosixPath(path).stem
        display = match.group("display")
        if display:
            name = f"{name}{display}"
        yield ImageReference(
            path=path,
            name=name,
            source=match.group(0),
            syntax=LinkSyntax.WIKI,
        )


def merge_unique(*streams: Iterable[ImageReference]) -> list[ImageReference]:
    """Concatenate *streams*, keeping the first reference per ``path``."""
    seen: set[str] = set()
    merged: list[ImageReference] = []
    for stream in streams:
        for ref in stream:
            if ref.path in seen:
                continue
            seen.add(ref.path)
            merged.append(ref)
    return merged


def extract_image_links(text: str) -> list[ImageReference]:
    """Return the image references in *text*, deduplicated by path.

    Parameters
    ----------
    text:
        Full document text (or any fragment, such as a selection).

    Returns
    -------
    list[ImageReference]
        Bracket-syntax references in document order, then wiki-syntax
        references in document order, each path appearing once.
    """
    return merge_unique(parse_bracket_links(text), parse_wiki_links(text))
