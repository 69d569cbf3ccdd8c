"""Build Note and Resource records from ENEX ``note`` elements."""

import base64
import binascii
import logging
import re
from datetime import datetime
from typing import Callable, Dict, List, Optional

from lxml import etree

from exceptions import ResourceDecodeFailure, TimestampParseFailure
from models import Note, NoteAttributes, Resource, ResourceAttributes
from .identifiers import generate_note_id
from .timestamps import parse_enex_timestamp

logger = logging.getLogger('evernote_markdown_exporter.parsers.note_builder')

_WHITESPACE_RE = re.compile(r'\s+')


def decode_base64(text: Optional[str]) -> bytes:
    """
    Decode an ENEX base64 payload.

    Three strategies are tried in order and the first success wins:

    1. strict decoding (any non-alphabet character fails)
    2. lenient decoding that discards non-alphabet characters
    3. decoding after stripping all whitespace and repairing padding

    Args:
        text: Raw text of a ``data`` or ``alternate-data`` element

    Returns:
        Decoded bytes

    Raises:
        ResourceDecodeFailure: If every strategy fails
    """
    if text is None:
        raise ResourceDecodeFailure("No base64 payload")

    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        pass

    try:
        return base64.b64decode(text, validate=False)
    except (binascii.Error, ValueError):
        pass

    cleaned = _WHITESPACE_RE.sub('', text).rstrip('=')
    cleaned += '=' * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ResourceDecodeFailure(f"Could not decode base64 payload ({len(text)} chars): {e}") from e


def _local_name(element: etree._Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ''
    return etree.QName(tag).localname


def child_elements(element: etree._Element, name: str) -> List[etree._Element]:
    return [child for child in element if _local_name(child) == name]


def _first(element: etree._Element, name: str) -> Optional[etree._Element]:
    for child in element:
        if _local_name(child) == name:
            return child
    return None


def _text_of(element: etree._Element) -> str:
    return ''.join(element.itertext())


class NoteBuilder:
    """
    Converts one ENEX ``note`` element into a :class:`Note`.

    Every child element is optional. Missing text becomes an empty string,
    missing lists become empty, and missing or malformed optional fields
    become ``None``. Recoverable problems are logged and recorded in
    ``note.conversion_metadata['parse_warnings']``.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('evernote_markdown_exporter.parsers.note_builder')
        self._warnings: List[str] = []

    def build(self, element: etree._Element) -> Note:
        """Build a Note from a ``note`` element."""
        self._warnings = []

        title = self._string(element, 'title') or ''
        content = self._string(element, 'content') or ''
        created = self._timestamp(element, 'created')
        updated = self._timestamp(element, 'updated')
        tags = [_text_of(tag) for tag in child_elements(element, 'tag')]

        attributes = None
        attributes_element = _first(element, 'note-attributes')
        if attributes_element is not None:
            attributes = self._note_attributes(attributes_element)

        resources = []
        for index, resource_element in enumerate(child_elements(element, 'resource')):
            resources.append(self.build_resource(resource_element, index))

        note = Note(
            id=generate_note_id(created, title, content),
            title=title,
            content=content,
            created=created,
            updated=updated,
            tags=tags,
            attributes=attributes,
            resources=resources
        )
        note.conversion_metadata['parse_warnings'] = list(self._warnings)

        self.logger.debug(
            f"Built note {note.id} '{title}' "
            f"({len(tags)} tags, {len(resources)} resources)"
        )
        return note

    def build_resource(self, element: etree._Element, index: int = 0) -> Resource:
        """
        Build a Resource from a ``resource`` element.

        A payload that is empty or cannot be decoded leaves ``data`` as
        ``None``; the remaining fields are still populated.
        """
        resource = Resource()

        data_element = _first(element, 'data')
        if data_element is not None:
            try:
                resource.data = decode_base64(_text_of(data_element)) or None
            except ResourceDecodeFailure as e:
                self._warn(f"Resource {index}: payload dropped: {e}", resource.warnings)

        resource.mime = (self._string(element, 'mime') or '').strip()
        resource.width = self._integer(element, 'width')
        resource.height = self._integer(element, 'height')
        resource.duration = self._integer(element, 'duration')
        resource.recognition = self._string(element, 'recognition')

        alternate_element = _first(element, 'alternate-data')
        if alternate_element is not None:
            try:
                resource.alternate_data = decode_base64(_text_of(alternate_element)) or None
            except ResourceDecodeFailure as e:
                self._warn(f"Resource {index}: alternate payload dropped: {e}", resource.warnings)

        attributes_element = _first(element, 'resource-attributes')
        if attributes_element is not None:
            resource.attributes = self._resource_attributes(attributes_element)

        return resource

    def _note_attributes(self, element: etree._Element) -> NoteAttributes:
        return NoteAttributes(
            subject_date=self._timestamp(element, 'subject-date'),
            latitude=self._number(element, 'latitude'),
            longitude=self._number(element, 'longitude'),
            altitude=self._number(element, 'altitude'),
            author=self._string(element, 'author'),
            source=self._string(element, 'source'),
            source_url=self._string(element, 'source-url'),
            source_application=self._string(element, 'source-application'),
            reminder_order=self._integer(element, 'reminder-order'),
            reminder_time=self._timestamp(element, 'reminder-time'),
            reminder_done_time=self._timestamp(element, 'reminder-done-time'),
            place_name=self._string(element, 'place-name'),
            content_class=self._string(element, 'content-class'),
            application_data=self._application_data(element)
        )

    def _resource_attributes(self, element: etree._Element) -> ResourceAttributes:
        attachment = self._string(element, 'attachment')
        return ResourceAttributes(
            source_url=self._string(element, 'source-url'),
            timestamp=self._timestamp(element, 'timestamp'),
            latitude=self._number(element, 'latitude'),
            longitude=self._number(element, 'longitude'),
            altitude=self._number(element, 'altitude'),
            camera_make=self._string(element, 'camera-make'),
            camera_model=self._string(element, 'camera-model'),
            reco_type=self._string(element, 'reco-type'),
            file_name=self._string(element, 'file-name'),
            attachment=attachment.strip().lower() == 'true' if attachment is not None else None,
            application_data=self._application_data(element)
        )

    def _application_data(self, element: etree._Element) -> Dict[str, str]:
        # later duplicates win
        data = {}
        for entry in child_elements(element, 'application-data'):
            key = entry.get('key')
            if key is None:
                self.logger.debug("Skipping application-data entry without key")
                continue
            data[key] = _text_of(entry)
        return data

    def _string(self, element: etree._Element, name: str) -> Optional[str]:
        child = _first(element, name)
        if child is None:
            return None
        return _text_of(child)

    def _timestamp(self, element: etree._Element, name: str) -> Optional[datetime]:
        value = self._string(element, name)
        if value is None:
            return None
        try:
            return parse_enex_timestamp(value)
        except TimestampParseFailure as e:
            self._warn(f"Field '{name}' ignored: {e}")
            return None

    def _integer(self, element: etree._Element, name: str) -> Optional[int]:
        return self._convert(element, name, int)

    def _number(self, element: etree._Element, name: str) -> Optional[float]:
        return self._convert(element, name, float)

    def _convert(self, element: etree._Element, name: str, cast: Callable):
        value = self._string(element, name)
        if value is None:
            return None
        try:
            return cast(value.strip())
        except ValueError:
            self.logger.debug(f"Dropping malformed {name} value: {value!r}")
            return None

    def _warn(self, message: str, sink: Optional[List[str]] = None) -> None:
        self.logger.warning(message)
        self._warnings.append(message)
        if sink is not None:
            sink.append(message)


__all__ = ['NoteBuilder', 'child_elements', 'decode_base64']
