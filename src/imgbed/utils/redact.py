"""Payload redaction for safe logging.

Upload bodies carry the whole image as a base64 data URL.  Before any
request or response body is logged, :func:`redact` replaces

* **base64 data URIs** (``data:<mime>;base64,...``) with
  ``<data_uri:N_bytes>``, and
* **binary values** (``bytes`` or long non-printable strings) with
  ``<binary:N_bytes>``.
"""

from __future__ import annotations

import base64
import binascii
import copy
import re
from typing import Any

# Matches RFC 2397 data URIs with base64 encoding.
_DATA_URI_RE = re.compile(
    r"data:[a-zA-Z0-9_.+-]*/?[a-zA-Z0-9_.+-]*;base64,[A-Za-z0-9+/=]+"
)

# A string value longer than this that looks like raw bytes is binary.
_BINARY_LENGTH_THRESHOLD = 256


def _estimate_data_uri_bytes(uri: str) -> int:
    """Return the decoded byte length of a data URI."""
    b64_part = uri.split(";base64,", 1)[-1]
    try:
        return len(base64.b64decode(b64_part, validate=True))
    except (binascii.Error, ValueError):
        return len(b64_part) * 3 // 4


def _looks_binary(value: str) -> bool:
    if len(value) < _BINARY_LENGTH_THRESHOLD:
        return False
    non_printable = sum(
        1
        for ch in value[:512]
        if not ch.isprintable() and ch not in ("\n", "\r", "\t")
    )
    return non_printable > len(value[:512]) * 0.1


def _redact_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _redact_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact_value(item) for item in value]
    if isinstance(value, str):
        if _DATA_URI_RE.search(value):
            value = _DATA_URI_RE.sub(
                lambda m: f"<data_uri:{_estimate_data_uri_bytes(m.group(0))}_bytes>",
                value,
            )
        if _looks_binary(value):
            return f"<binary:{len(value.encode('utf-8'))}_bytes>"
        return value
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def redact(payload: dict) -> dict:
    """Return a deep copy of *payload* with image data redacted.

    The original *payload* is never mutated.

    Examples
    --------
    >>> redact({"name": "a.png", "data": "data:image/png;base64,aGVsbG8="})
    {'name': 'a.png', 'data': '<data_uri:5_bytes>'}
    """
    return _redact_value(copy.deepcopy(payload))
