"""Data models for the Evernote ENEX to Markdown export pipeline."""

import base64
import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _b64(value: Optional[bytes]) -> Optional[str]:
    return base64.b64encode(value).decode('ascii') if value is not None else None


@dataclass
class NoteAttributes:
    """Optional descriptive metadata attached to a note.

    Every field is optional; ``None`` means the element was absent (or
    unparsable) in the source, never zero or empty.
    """

    subject_date: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    author: Optional[str] = None
    source: Optional[str] = None
    source_url: Optional[str] = None
    source_application: Optional[str] = None
    reminder_order: Optional[int] = None
    reminder_time: Optional[datetime] = None
    reminder_done_time: Optional[datetime] = None
    place_name: Optional[str] = None
    content_class: Optional[str] = None
    application_data: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize note attributes to dictionary."""
        return {
            'subject_date': _isoformat(self.subject_date),
            'latitude': self.latitude,
            'longitude': self.longitude,
            'altitude': self.altitude,
            'author': self.author,
            'source': self.source,
            'source_url': self.source_url,
            'source_application': self.source_application,
            'reminder_order': self.reminder_order,
            'reminder_time': _isoformat(self.reminder_time),
            'reminder_done_time': _isoformat(self.reminder_done_time),
            'place_name': self.place_name,
            'content_class': self.content_class,
            'application_data': dict(self.application_data)
        }


@dataclass
class ResourceAttributes:
    """Optional metadata attached to a resource (attachment)."""

    source_url: Optional[str] = None
    timestamp: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    reco_type: Optional[str] = None
    file_name: Optional[str] = None
    attachment: Optional[bool] = None
    application_data: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize resource attributes to dictionary."""
        return {
            'source_url': self.source_url,
            'timestamp': _isoformat(self.timestamp),
            'latitude': self.latitude,
            'longitude': self.longitude,
            'altitude': self.altitude,
            'camera_make': self.camera_make,
            'camera_model': self.camera_model,
            'reco_type': self.reco_type,
            'file_name': self.file_name,
            'attachment': self.attachment,
            'application_data': dict(self.application_data)
        }


@dataclass
class Resource:
    """A binary attachment embedded in a note."""

    data: Optional[bytes] = None
    mime: str = ''
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[int] = None
    recognition: Optional[str] = None
    attributes: Optional[ResourceAttributes] = None
    alternate_data: Optional[bytes] = None
    warnings: List[str] = field(default_factory=list)
    _md5_source: Optional[bytes] = field(default=None, init=False, repr=False, compare=False)
    _md5_cache: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    @property
    def md5(self) -> Optional[str]:
        """Hex MD5 of the payload, the value ``en-media`` tags reference as ``hash``.

        ``None`` when there is no payload. The digest is cached until
        ``data`` is replaced.
        """
        if not self.has_payload():
            return None
        if self._md5_source is not self.data:
            self._md5_cache = hashlib.md5(self.data).hexdigest()
            self._md5_source = self.data
        return self._md5_cache

    @property
    def size(self) -> int:
        """Payload size in bytes (0 when absent)."""
        return len(self.data) if self.data is not None else 0

    @property
    def file_name(self) -> Optional[str]:
        return self.attributes.file_name if self.attributes else None

    def has_payload(self) -> bool:
        """Check if the resource carries a non-empty payload."""
        return bool(self.data)

    def to_dict(self, include_data: bool = False) -> Dict[str, Any]:
        """Serialize resource to dictionary.

        Args:
            include_data: Embed payloads as base64 strings instead of only
                their hash and size

        Returns:
            Dictionary representation of the resource
        """
        result = {
            'mime': self.mime,
            'hash': self.md5,
            'size': self.size,
            'width': self.width,
            'height': self.height,
            'duration': self.duration,
            'recognition': self.recognition,
            'attributes': self.attributes.to_dict() if self.attributes else None
        }
        if include_data:
            result['data'] = _b64(self.data)
            result['alternate_data'] = _b64(self.alternate_data)
        return result


@dataclass
class Note:
    """A single Evernote note with metadata, ENML content and resources."""

    id: str
    title: str = ''
    content: str = ''  # ENML fragment
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)
    attributes: Optional[NoteAttributes] = None
    resources: List[Resource] = field(default_factory=list)
    markdown_content: Optional[str] = None
    conversion_metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Initialize default conversion metadata if empty."""
        if not self.conversion_metadata:
            self.conversion_metadata = {
                'conversion_status': 'pending',
                'parse_warnings': [],
                'conversion_warnings': []
            }

    @property
    def markdown(self) -> str:
        """Front matter plus rendered Markdown body, computed on demand."""
        if self.markdown_content is not None:
            return self.markdown_content

        from converters.markdown_converter import MarkdownConverter
        return MarkdownConverter().render_note(self)

    @property
    def source(self) -> Optional[str]:
        return self.attributes.source if self.attributes else None

    @property
    def source_url(self) -> Optional[str]:
        return self.attributes.source_url if self.attributes else None

    def resource_by_hash(self, md5_hash: str) -> Optional[Resource]:
        """Find the resource an ``en-media`` hash refers to."""
        for resource in self.resources:
            if resource.md5 == md5_hash:
                return resource
        return None

    def resources_with_payload(self) -> List[Resource]:
        """Resources that yield an exported asset file."""
        return [resource for resource in self.resources if resource.has_payload()]

    def to_dict(self, include_data: bool = False) -> Dict[str, Any]:
        """Serialize note to dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'created': _isoformat(self.created),
            'updated': _isoformat(self.updated),
            'tags': list(self.tags),
            'attributes': self.attributes.to_dict() if self.attributes else None,
            'resources': [resource.to_dict(include_data) for resource in self.resources]
        }

    def __eq__(self, other: Any) -> bool:
        """Compare notes by ID."""
        if not isinstance(other, Note):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash note by ID."""
        return hash(self.id)


__all__ = [
    'Note',
    'NoteAttributes',
    'Resource',
    'ResourceAttributes'
]
