"""Finder ``.localized`` display names for exported note directories.

macOS shows a directory named ``<name>.localized`` under the display name
found in ``<name>.localized/.localized/Base.strings`` (and in the parent's
``.localized/Base.strings``). Each file holds lines of the form::

    "<note id>" = "<escaped title>";
"""

import logging
import re
from pathlib import Path
from typing import Dict

logger = logging.getLogger('evernote_markdown_exporter.exporters.localized_strings')

LOCALIZED_DIR = '.localized'
STRINGS_FILE = 'Base.strings'

_ENTRY_RE = re.compile(r'"((?:[^"\\]|\\.)+)"\s*=\s*"((?:[^"\\]|\\.)+)";')


def escape_strings_value(text: str) -> str:
    """Escape a title for a ``.strings`` value."""
    return (
        text.replace('\\', '\\\\')
        .replace('"', '\\"')
        .replace('\t', '\\t')
        .replace('\n', ' ')
        .replace('\r', '')
    )


def display_name(note_id: str, title: str) -> str:
    """Escaped display name, falling back to the id for untitled notes."""
    return escape_strings_value(title if title else note_id)


def format_entry(key: str, value: str) -> str:
    return f'"{key}" = "{value}";'


def read_strings_file(path: Path) -> Dict[str, str]:
    """
    Read the entries of an existing ``.strings`` file.

    Values are returned still escaped. A missing or undecodable file yields
    no entries.
    """
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable strings file {path}: {e}")
        return {}
    return {match.group(1): match.group(2) for match in _ENTRY_RE.finditer(text)}


def write_strings_file(path: Path, entries: Dict[str, str]) -> None:
    """Write entries as sorted lines."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = sorted(format_entry(key, value) for key, value in entries.items())
    path.write_text('\n'.join(lines), encoding='utf-8')


def update_localized_names(output_dir: Path, note_dir: Path, note_id: str, title: str) -> str:
    """
    Register a note's display name.

    Merges the entry into ``<output>/.localized/Base.strings`` and writes the
    note's own ``<note_dir>/.localized/Base.strings``.

    Args:
        output_dir: Export root directory
        note_dir: The note's ``<id>.localized`` directory
        note_id: Note identifier
        title: Note title (may be empty)

    Returns:
        The escaped display name that was written
    """
    value = display_name(note_id, title)

    base_path = Path(output_dir) / LOCALIZED_DIR / STRINGS_FILE
    entries = read_strings_file(base_path)
    entries[note_id] = value
    write_strings_file(base_path, entries)

    write_strings_file(Path(note_dir) / LOCALIZED_DIR / STRINGS_FILE, {note_id: value})

    logger.debug(f"Localized name for {note_id}: {value}")
    return value


__all__ = [
    'escape_strings_value',
    'display_name',
    'read_strings_file',
    'write_strings_file',
    'update_localized_names'
]
