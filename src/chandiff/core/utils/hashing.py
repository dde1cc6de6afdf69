"""Content fingerprints for stored revisions"""

import hashlib


def sha256(content: str) -> str:
    """Hex SHA-256 of the UTF-8 text (64 chars, fits the String(64) column)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def short_hash(digest: str, length: int = 12) -> str:
    return digest[:length]
