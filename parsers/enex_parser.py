"""Top-level ENEX container parser."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from lxml import etree

from exceptions import ContainerParseError
from models import Note
from .note_builder import NoteBuilder, child_elements

logger = logging.getLogger('evernote_markdown_exporter.parsers.enex_parser')


class EnexParser:
    """
    Parses an ENEX export container into Note records.

    The container must be well-formed; a malformed container raises
    ContainerParseError since no note can be recovered from it. Individual
    notes that fail to build are logged and skipped.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the parser.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger('evernote_markdown_exporter.parsers.enex_parser')
        self.builder = NoteBuilder(logger=self.logger.getChild('note_builder'))
        self.version: Optional[str] = None
        self.stats = {
            'notes_found': 0,
            'notes_parsed': 0,
            'notes_skipped': 0
        }

    def parse_file(self, path: Union[str, Path]) -> List[Note]:
        """Read and parse a container from disk."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ContainerParseError(f"Cannot read ENEX container {path}: {e}") from e

        self.logger.info(f"Parsing ENEX container: {path}")
        return self.parse(data)

    def parse(self, data: Union[bytes, str]) -> List[Note]:
        """
        Parse container bytes into notes, in document order.

        Args:
            data: Raw container document

        Returns:
            List of Note records

        Raises:
            ContainerParseError: If the container is empty or not well-formed
        """
        if isinstance(data, str):
            data = data.encode('utf-8')
        if not data or not data.strip():
            raise ContainerParseError("ENEX container is empty")

        # DTD is never fetched or validated
        parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            load_dtd=False,
            huge_tree=True,
            remove_blank_text=False
        )
        try:
            root = etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            raise ContainerParseError(f"Malformed ENEX container: {e}") from e

        if root is None:
            raise ContainerParseError("ENEX container has no root element")

        self.version = root.get('version')
        if self.version:
            self.logger.info(f"Parsing ENEX version: {self.version}")

        notes = []
        note_elements = child_elements(root, 'note')
        self.stats['notes_found'] = len(note_elements)

        for index, element in enumerate(note_elements):
            try:
                notes.append(self.builder.build(element))
                self.stats['notes_parsed'] += 1
            except Exception as e:
                self.stats['notes_skipped'] += 1
                self.logger.error(f"Skipping note {index}: {e}", exc_info=True)

        self.logger.info(
            f"Parsed {self.stats['notes_parsed']}/{self.stats['notes_found']} notes"
        )
        return notes


def parse_enex(data: Union[bytes, str], logger: Optional[logging.Logger] = None) -> List[Note]:
    """Convenience wrapper around :meth:`EnexParser.parse`."""
    return EnexParser(logger=logger).parse(data)


__all__ = ['EnexParser', 'parse_enex']
