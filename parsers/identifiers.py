"""Deterministic note identifier generation."""

import hashlib
from datetime import datetime
from typing import Optional

from .timestamps import describe_timestamp

ID_KEY_SEPARATOR = '||'
ID_DIGEST_BYTES = 16


def generate_note_id(created: Optional[datetime], title: str, content: str) -> str:
    """
    Compute the stable identifier for a note.

    The key is the creation timestamp description, ``||``, then the title
    (or the full content when the title is empty). The id is the lowercase
    hex of the first 16 bytes of the key's SHA-256 digest.

    Args:
        created: Creation timestamp or None
        title: Note title
        content: Raw ENML content

    Returns:
        32-character lowercase hex string
    """
    key = f"{describe_timestamp(created)}{ID_KEY_SEPARATOR}{title if title else content}"
    digest = hashlib.sha256(key.encode('utf-8')).digest()
    return digest[:ID_DIGEST_BYTES].hex()


__all__ = ['generate_note_id']
