"""Converters package for ENML to Markdown conversion."""

import logging

from .front_matter import build_front_matter
from .markdown_converter import MarkdownConverter, asset_path, render_note
from .markup_tree import build_markup_tree

logger = logging.getLogger('evernote_markdown_exporter.converters')


def convert_note(note, logger=None):
    """
    Convenience function to convert a Note's ENML content to Markdown.

    This runs the full pipeline:
    1. Front matter generation from note metadata
    2. ENML normalization and parsing into a markup tree
    3. Recursive Markdown rendering
    4. Metadata tracking in note.conversion_metadata

    Content that cannot be parsed is kept verbatim under the front matter.

    Args:
        note: Note object with ENML content in note.content
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        bool: True if conversion succeeded, False otherwise

    Example:
        >>> from converters import convert_note
        >>> from models import Note
        >>> note = Note(id='abc', title='Test', content='<en-note><p>Hi</p></en-note>')
        >>> convert_note(note)
        True
        >>> note.markdown_content.endswith('Hi')
        True
    """
    if logger is None:
        logger = logging.getLogger('evernote_markdown_exporter.converters')

    converter = MarkdownConverter(logger=logger)
    return converter.convert_note(note)


__all__ = [
    'convert_note',
    'render_note',
    'asset_path',
    'build_front_matter',
    'build_markup_tree',
    'MarkdownConverter'
]
