"""ENML to Markdown renderer and per-note conversion orchestrator."""

import html
import logging
import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from bs4 import Tag
from bs4.element import (
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
)

from exceptions import MarkupParseError
from models import Note
from .front_matter import build_front_matter
from .markup_tree import (
    build_markup_tree,
    has_ancestor,
    has_child,
    list_depth,
    parent_name,
    tag_name,
)

logger = logging.getLogger('evernote_markdown_exporter.converters.markdown_converter')

BLOCK_SEPARATOR = '\n\n'
LIST_INDENT = '    '
ASSET_DIRECTORY = 'assets'

_HEADING_RE = re.compile(r'^h([1-6])$')
_BACKGROUND_URL_RE = re.compile(
    r'background(?:-image)?\s*:\s*url\(\s*([\'"]?)(.*?)\1\s*\)',
    re.IGNORECASE
)

# Closed tag set; anything else falls through to convert_passthrough
TAG_HANDLERS = {
    'en-note': 'convert_en_note',
    'div': 'convert_div',
    'p': 'convert_p',
    'img': 'convert_img',
    'br': 'convert_br',
    'b': 'convert_b',
    'strong': 'convert_b',
    'i': 'convert_i',
    'em': 'convert_i',
    'a': 'convert_a',
    'ul': 'convert_list',
    'ol': 'convert_list',
    'li': 'convert_li',
    'code': 'convert_code',
    'pre': 'convert_pre',
    'en-todo': 'convert_en_todo',
    'blockquote': 'convert_blockquote',
    'hr': 'convert_hr',
    'table': 'convert_table',
    'thead': 'convert_table_section',
    'tbody': 'convert_table_section',
    'tfoot': 'convert_table_section',
    'tr': 'convert_tr',
    'th': 'convert_cell',
    'td': 'convert_cell',
    'en-media': 'convert_en_media',
}

_SKIPPED_NODES = (Comment, ProcessingInstruction, Declaration, Doctype)


def asset_path(resource_hash: str) -> str:
    """Relative path an exported attachment is written to and linked from."""
    return f"{ASSET_DIRECTORY}/{resource_hash}"


class MarkdownConverter:
    """
    Renders ENML markup trees as Markdown.

    Rendering is a recursive walk: every element is dispatched on its
    lower-cased tag name to a ``convert_*`` method that receives the
    element and returns text. Context (parent tag, ancestors, list depth)
    is read from the tree itself, so the output for a node depends only on
    the node and its position in the tree.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize markdown converter with logger."""
        self.logger = logger or logging.getLogger('evernote_markdown_exporter.converters.markdown_converter')

    # Note-level API

    def convert_note(self, note: Note) -> bool:
        """
        Render a note and store the result on it.

        Sets ``note.markdown_content`` and updates
        ``note.conversion_metadata``. Content that cannot be parsed or
        rendered is kept raw under the front matter with status
        ``partial``. Never raises: an unexpected error marks the note as
        failed and stores the same raw fallback.

        Args:
            note: Note produced by the ENEX parser

        Returns:
            bool: False only on an unexpected failure; True otherwise,
            including the raw-content fallback
        """
        self.logger.debug(f"Converting note {note.id} to markdown")

        try:
            markdown, warnings, converted = self._render(note)
            note.markdown_content = markdown
            self._update_conversion_metadata(note, markdown, warnings, converted)
            return True

        except Exception as e:
            self.logger.error(f"Conversion failed for note {note.id}: {str(e)}")
            note.markdown_content = self._fallback(note)
            self._update_failed_conversion_metadata(note, str(e))
            return False

    def render_note(self, note: Note) -> str:
        """Front matter followed by the rendered body, or by the raw content if it cannot be parsed or rendered."""
        markdown, _, _ = self._render(note)
        return markdown

    def convert_fragment(self, fragment: str) -> str:
        """Render a standalone ENML fragment without front matter."""
        return self.convert(build_markup_tree(fragment))

    def convert(self, root: Tag) -> str:
        """Render a markup tree built by :func:`build_markup_tree`."""
        return self.render(root)

    def _render(self, note: Note) -> Tuple[str, List[str], bool]:
        warnings = []
        header = build_front_matter(note)

        try:
            root = build_markup_tree(note.content)
        except MarkupParseError as e:
            message = f"Note {note.id}: content left unconverted: {e}"
            self.logger.warning(message)
            warnings.append(message)
            return header + note.content, warnings, False

        for media in root.find_all('en-media'):
            media_hash = media.get('hash')
            if media_hash and note.resource_by_hash(media_hash) is None:
                message = f"Note {note.id}: en-media references missing resource {media_hash}"
                self.logger.debug(message)
                warnings.append(message)

        try:
            body = self.convert(root)
        except Exception as e:
            # RecursionError on deeply nested but well-formed markup lands here too
            message = f"Note {note.id}: rendering failed, content left unconverted: {e!r}"
            self.logger.warning(message)
            warnings.append(message)
            return header + note.content, warnings, False

        return header + body, warnings, True

    def _fallback(self, note: Note) -> str:
        try:
            return build_front_matter(note) + note.content
        except Exception:
            return note.content

    def _update_conversion_metadata(self, note: Note, markdown: str, warnings: List[str],
                                    converted: bool) -> None:
        """Update note conversion metadata with conversion statistics."""
        note.conversion_metadata.update({
            'conversion_status': 'success' if converted else 'partial',
            'conversion_warnings': list(warnings),
            'markdown_length': len(markdown),
            'resources_total': len(note.resources),
            'resources_with_payload': len(note.resources_with_payload()),
            'conversion_timestamp': datetime.now(timezone.utc).isoformat()
        })

    def _update_failed_conversion_metadata(self, note: Note, error_message: str) -> None:
        """Update metadata for failed conversions."""
        note.conversion_metadata.update({
            'conversion_status': 'failed',
            'conversion_error': error_message,
            'conversion_timestamp': datetime.now(timezone.utc).isoformat()
        })

    # Tree walk

    def render(self, node: Any) -> str:
        """Render any node: element, text leaf or skipped markup."""
        if isinstance(node, _SKIPPED_NODES):
            return ''
        if isinstance(node, NavigableString):
            return str(node)
        if not isinstance(node, Tag):
            return ''

        name = tag_name(node) or ''
        heading = _HEADING_RE.match(name)
        if heading:
            return self.convert_heading(node, int(heading.group(1)))

        handler = getattr(self, TAG_HANDLERS.get(name, 'convert_passthrough'))
        return handler(node)

    def render_children(self, el: Tag) -> str:
        return ''.join(self.render(child) for child in el.children)

    def _render_structural_children(self, el: Tag) -> str:
        """Render children, skipping whitespace-only text between structural elements."""
        parts = []
        for child in el.children:
            if isinstance(child, NavigableString) and not str(child).strip():
                continue
            parts.append(self.render(child))
        return ''.join(parts)

    # Tag handlers

    def convert_en_note(self, el: Tag) -> str:
        return self.render_children(el).strip()

    def convert_div(self, el: Tag) -> str:
        """
        Separate inline runs from blocks.

        A rendered child containing a blank line is a block. Inline text
        accumulated before a block (and at the end) is trimmed and flushed
        as its own paragraph.
        """
        result = ''
        pending = ''

        for child in el.children:
            text = self.render(child)
            if BLOCK_SEPARATOR in text:
                if pending.strip():
                    result += pending.strip() + BLOCK_SEPARATOR
                pending = ''
                result += text
            else:
                pending += text

        if pending.strip():
            result += pending.strip() + BLOCK_SEPARATOR

        if not result:
            background = self._background_image(el.get('style'))
            if background:
                return f"![]({background}){BLOCK_SEPARATOR}"

        return result

    def _background_image(self, style: Optional[str]) -> Optional[str]:
        if not style:
            return None
        match = _BACKGROUND_URL_RE.search(style)
        if not match or not match.group(2).strip():
            return None
        return match.group(2).strip()

    def convert_p(self, el: Tag) -> str:
        parts = []
        for child in el.children:
            text = self.render(child).replace('\n', ' ').strip()
            if text:
                parts.append(text)
        return ' '.join(parts).strip() + BLOCK_SEPARATOR

    def convert_img(self, el: Tag) -> str:
        return f"![{el.get('alt', '')}]({el.get('src', '')})"

    def convert_br(self, el: Tag) -> str:
        return '\n'

    def convert_b(self, el: Tag) -> str:
        text = self.render_children(el).strip()
        return f"**{text}**" if text else ''

    def convert_i(self, el: Tag) -> str:
        text = self.render_children(el).strip()
        return f"*{text}*" if text else ''

    def convert_a(self, el: Tag) -> str:
        href = el.get('href', '')
        text = self.render_children(el).strip()
        return f"[{text or href}]({href})"

    def convert_list(self, el: Tag) -> str:
        # Not trimmed: a nested list must start on its own line inside its item
        return '\n' + self._render_structural_children(el) + '\n'

    def convert_li(self, el: Tag) -> str:
        indent = LIST_INDENT * max(list_depth(el) - 1, 0)
        marker = '1. ' if parent_name(el) == 'ol' else '* '
        return f"{indent}{marker}{self.render_children(el).strip()}\n"

    def convert_code(self, el: Tag) -> str:
        text = self.render_children(el).strip()

        if parent_name(el) == 'p':
            return f"`{text}`"

        if '\n' in text:
            return f"```\n{text}\n```{BLOCK_SEPARATOR}"

        return f"`{text}`"

    def convert_pre(self, el: Tag) -> str:
        if has_ancestor(el, 'code') or has_child(el, 'code'):
            return self.render_children(el)
        return f"`{self.render_children(el).strip()}`"

    def convert_en_todo(self, el: Tag) -> str:
        checked = (el.get('checked') or '').strip().lower() == 'true'
        marker = '[x] ' if checked else '[ ] '
        if has_ancestor(el, 'li'):
            return marker
        return '- ' + marker

    def convert_blockquote(self, el: Tag) -> str:
        text = self.render_children(el).strip()
        quoted = '\n'.join(f"> {line}" for line in text.split('\n'))

        if parent_name(el) in ('p', 'blockquote'):
            return quoted + '\n'
        return quoted + BLOCK_SEPARATOR

    def convert_heading(self, el: Tag, level: int) -> str:
        return f"{'#' * level} {self.render_children(el).strip()}{BLOCK_SEPARATOR}"

    def convert_hr(self, el: Tag) -> str:
        return f"{BLOCK_SEPARATOR}---{BLOCK_SEPARATOR}"

    def convert_table(self, el: Tag) -> str:
        inner = self._render_structural_children(el).strip()
        return f"<table>\n{inner}\n</table>{BLOCK_SEPARATOR}"

    def convert_table_section(self, el: Tag) -> str:
        return self._render_structural_children(el)

    def convert_tr(self, el: Tag) -> str:
        return f"<tr>{self._render_structural_children(el)}</tr>\n"

    def convert_cell(self, el: Tag) -> str:
        name = tag_name(el)
        return f"<{name}>{self.render_children(el).strip()}</{name}>"

    def convert_en_media(self, el: Tag) -> str:
        """
        Reference an embedded attachment by its content hash.

        Images with usable dimensions become raw ``<img>`` tags so the size
        survives; other images become Markdown images and everything else a
        link. Non-numeric dimensions are ignored.
        """
        mime = (el.get('type') or '').strip().lower()
        path = asset_path(el.get('hash', ''))
        alt = el.get('alt')

        if mime.startswith('image/'):
            width = self._dimension(el, 'width')
            height = self._dimension(el, 'height')
            if width is None and height is None:
                return f"![{alt or ''}]({path})"

            attributes = [('src', path)]
            if alt is not None:
                attributes.append(('alt', alt))
            if width is not None:
                attributes.append(('width', width))
            if height is not None:
                attributes.append(('height', height))
            rendered = ' '.join(f'{key}="{html.escape(str(value), quote=True)}"' for key, value in attributes)
            return f"<img {rendered} />"

        return f"[{alt or 'attachment'}]({path})"

    def _dimension(self, el: Tag, name: str) -> Optional[int]:
        value = el.get(name)
        if value is None:
            return None
        try:
            return int(value.strip())
        except ValueError:
            self.logger.debug(f"Ignoring non-numeric en-media {name}: {value!r}")
            return None

    def convert_passthrough(self, el: Tag) -> str:
        if el.contents:
            return self.render_children(el)
        return el.get_text()


def render_note(note: Note, logger: Optional[logging.Logger] = None) -> str:
    """Render a note to Markdown with its front matter."""
    return MarkdownConverter(logger=logger).render_note(note)


__all__ = [
    'MarkdownConverter',
    'TAG_HANDLERS',
    'asset_path',
    'render_note'
]
