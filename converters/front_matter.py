"""Front matter header for exported Markdown notes."""

import json
from typing import List

from models import Note
from parsers.timestamps import format_iso_timestamp

FRONT_MATTER_DELIMITER = '---'


def front_matter_lines(note: Note) -> List[str]:
    """Ordered ``key: value`` lines, each emitted only when its value is present."""
    lines = [f"title: {json.dumps(note.title, ensure_ascii=False)}"]
    if note.created is not None:
        lines.append(f"created: {format_iso_timestamp(note.created)}")
    if note.updated is not None:
        lines.append(f"lastEdited: {format_iso_timestamp(note.updated)}")
    lines.append(f"id: {note.id}")
    if note.tags:
        lines.append(f"tags: {', '.join(note.tags)}")
    if note.source is not None:
        lines.append(f"source: {note.source}")
    if note.source_url is not None:
        lines.append(f"source_url: {note.source_url}")
    return lines


def build_front_matter(note: Note) -> str:
    """
    Build the header block that precedes a note's Markdown body.

    The block is delimited by ``---`` lines and followed by a blank line,
    so the body can be appended directly.
    """
    lines = [FRONT_MATTER_DELIMITER, *front_matter_lines(note), FRONT_MATTER_DELIMITER]
    return '\n'.join(lines) + '\n\n'


__all__ = ['build_front_matter', 'front_matter_lines']
