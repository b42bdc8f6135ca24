from .hashing import md5_hash
from .redact import redact

__all__ = [
    "md5_hash",
    "redact",
]
