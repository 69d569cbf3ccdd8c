"""Export package writing converted Evernote notes to the filesystem.

Package Structure:
- markdown_exporter: Orchestrates per-note directory export
- attachment_manager: Writes resource payloads to ``assets/<hash>``
- localized_strings: Maintains Finder ``.localized`` display names

Configuration Referenced:
- export.output_directory: Base output path for exported notes
- export.limit: Maximum number of notes to export (0 = all)
- export.localized_names: ``<id>.localized`` directories and Base.strings files
- export.write_json / export.write_html: Optional side files per note
- export.set_file_dates: Apply note and resource timestamps as mtimes
"""

from .attachment_manager import AttachmentManager
from .localized_strings import update_localized_names
from .markdown_exporter import MarkdownExporter

__all__ = [
    'MarkdownExporter',
    'AttachmentManager',
    'update_localized_names'
]
