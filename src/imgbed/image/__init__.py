"""Image pipeline: finding, classifying, encoding and tracking images.

Exports
-------
extract_image_links
    Ordered, path-deduplicated image references of a document.
is_network_url / has_block_domain / network_candidates
    Classify references and apply the block list.
guess_mime / mime_to_extension
    MIME helpers.
ImageEncoder
    Turn a file handle, vault path or URL into a base64 data URL.
JobStateMachine
    Track one upload job and enforce valid transitions.
"""

from .detect import guess_mime, has_block_domain, is_network_url, mime_to_extension, network_candidates
from .encode import ImageEncoder, to_data_url
from .extract import extract_image_links, parse_bracket_links, parse_wiki_links
from .state import JobStateMachine

__all__ = [
    "ImageEncoder",
    "JobStateMachine",
    "extract_image_links",
    "guess_mime",
    "has_block_domain",
    "is_network_url",
    "mime_to_extension",
    "network_candidates",
    "parse_bracket_links",
    "parse_wiki_links",
    "to_data_url",
]
