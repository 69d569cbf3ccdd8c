"""Parse ENML fragments into a single-rooted BeautifulSoup tree."""

import logging
import re
from html.entities import name2codepoint
from typing import Optional

from bs4 import BeautifulSoup, Tag
from lxml import etree

from exceptions import MarkupParseError

logger = logging.getLogger('evernote_markdown_exporter.converters.markup_tree')

NOTE_ROOT = 'en-note'
LIST_TAGS = ('ul', 'ol')

_XML_ENTITIES = {'amp', 'lt', 'gt', 'quot', 'apos'}

_XML_DECLARATION_RE = re.compile(r'^\s*<\?xml\b[^>]*\?>\s*', re.IGNORECASE)
_DOCTYPE_RE = re.compile(r'^\s*<!DOCTYPE\s[^>\[]*(?:\[[^\]]*\])?\s*>\s*', re.IGNORECASE)
_ROOT_OPEN_RE = re.compile(r'<en-note[\s>/]')
_NAMED_ENTITY_RE = re.compile(r'&([A-Za-z][A-Za-z0-9]*);')


def _replace_entity(match: re.Match) -> str:
    name = match.group(1)
    if name in _XML_ENTITIES or name not in name2codepoint:
        return match.group(0)
    return f'&#{name2codepoint[name]};'


def normalize_fragment(fragment: str) -> str:
    """
    Prepare a raw ENML fragment for XML parsing.

    Strips surrounding whitespace and any XML declaration or DOCTYPE prolog,
    rewrites XHTML named entities as numeric references, and wraps the
    fragment in a synthetic ``en-note`` root unless it already starts with
    one. Whitespace inside the fragment is left untouched.
    """
    text = fragment.strip()
    text = _XML_DECLARATION_RE.sub('', text, count=1)
    text = _DOCTYPE_RE.sub('', text, count=1)
    text = text.strip()
    text = _NAMED_ENTITY_RE.sub(_replace_entity, text)

    if not _ROOT_OPEN_RE.match(text):
        text = f'<{NOTE_ROOT}>{text}</{NOTE_ROOT}>'
    return text


def build_markup_tree(fragment: Optional[str]) -> Tag:
    """
    Build the element tree for a note's content.

    Args:
        fragment: Raw ENML content of a note

    Returns:
        The root ``en-note`` Tag; its ``.parent`` chain ends at the document

    Raises:
        MarkupParseError: If the normalized fragment is not well-formed XML
    """
    text = normalize_fragment(fragment or '')

    # BeautifulSoup recovers from broken markup, so well-formedness is checked first
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        etree.fromstring(text.encode('utf-8'), parser)
    except etree.XMLSyntaxError as e:
        raise MarkupParseError(f"Malformed note content: {e}") from e

    soup = BeautifulSoup(text, 'xml')
    root = next((child for child in soup.children if isinstance(child, Tag)), None)
    if root is None:
        raise MarkupParseError("Note content has no root element")

    logger.debug(f"Built markup tree rooted at <{root.name}>")
    return root


def tag_name(node) -> Optional[str]:
    """Lower-cased tag name of an element, None for text and the document node."""
    if not isinstance(node, Tag) or isinstance(node, BeautifulSoup):
        return None
    return node.name.lower() if node.name else None


def parent_name(node) -> Optional[str]:
    """Lower-cased tag name of the node's parent element, if any."""
    return tag_name(node.parent)


def ancestors(node):
    """Yield the element ancestors of a node, nearest first."""
    parent = node.parent
    while parent is not None and not isinstance(parent, BeautifulSoup):
        yield parent
        parent = parent.parent


def has_ancestor(node, name: str) -> bool:
    """Check whether any element above ``node`` has the given tag name."""
    return any(tag_name(parent) == name for parent in ancestors(node))


def has_child(node, name: str) -> bool:
    return any(tag_name(child) == name for child in node.children)


def list_depth(node) -> int:
    """Count the ``ul``/``ol`` elements above ``node``."""
    return sum(1 for parent in ancestors(node) if tag_name(parent) in LIST_TAGS)


__all__ = [
    'NOTE_ROOT',
    'normalize_fragment',
    'build_markup_tree',
    'tag_name',
    'parent_name',
    'ancestors',
    'has_ancestor',
    'has_child',
    'list_depth'
]
