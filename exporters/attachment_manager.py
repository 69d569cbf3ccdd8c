"""Attachment manager for writing, deduplicating, and dating note resources."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from tqdm import tqdm

from converters.markdown_converter import ASSET_DIRECTORY
from models import Note, Resource


def set_file_times(path: Path, modified: Optional[datetime]) -> None:
    """Apply a timestamp as the access and modification time of a path."""
    if modified is None:
        return
    stamp = modified.timestamp()
    os.utime(path, (stamp, stamp))


class AttachmentManager:
    """
    Writes the resources of a single note to its ``assets`` directory.

    This manager:
    1. Skips resources without a decoded payload
    2. Names each file after the payload's MD5 hash, matching ``en-media`` references
    3. Deduplicates identical payloads within the note
    4. Applies the resource timestamp as the file modification time
    """

    def __init__(
        self,
        config: Dict[str, Any],
        note_dir: Path,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the attachment manager.

        Args:
            config: Configuration dictionary
            note_dir: Note output directory
            logger: Logger instance
        """
        self.config = config
        self.note_dir = Path(note_dir)
        self.assets_dir = self.note_dir / ASSET_DIRECTORY
        self.logger = logger or logging.getLogger('evernote_markdown_exporter.exporters.attachment_manager')

        export_config = config.get('export', {})
        self.set_file_dates = export_config.get('set_file_dates', True)
        self.show_progress = export_config.get('progress_bars', True)

        # {md5: path}
        self.file_hash_cache = {}

        self.stats = {
            'total_resources': 0,
            'saved': 0,
            'skipped': 0,
            'failed': 0,
            'deduplicated': 0,
            'total_size_bytes': 0
        }

    def process_resources(self, note: Note) -> Dict[str, int]:
        """
        Write all resources of a note.

        Args:
            note: Note instance

        Returns:
            Statistics dictionary
        """
        if not note.resources:
            return self.get_stats()

        if not note.resources_with_payload():
            self.logger.debug(f"Note {note.id} has no resource payloads to write")
            self.stats['total_resources'] += len(note.resources)
            self.stats['skipped'] += len(note.resources)
            return self.get_stats()

        self.assets_dir.mkdir(parents=True, exist_ok=True)
        self.logger.debug(f"Processing {len(note.resources)} resource(s) for note '{note.title}'")

        resources_iter = note.resources
        if self._should_show_progress() and len(note.resources) > 1:
            resources_iter = tqdm(
                note.resources,
                desc=f"Assets: {note.title[:30]}",
                leave=False
            )

        for index, resource in enumerate(resources_iter):
            self.stats['total_resources'] += 1

            if not resource.has_payload():
                self.logger.debug(f"Resource {index} of note {note.id} has no payload - skipping")
                self.stats['skipped'] += 1
                continue

            try:
                saved_path = self._deduplicate_and_save(resource)
                self.stats['saved'] += 1
                self.stats['total_size_bytes'] += resource.size
                self.logger.debug(
                    f"Saved resource '{resource.file_name or index}' ({resource.mime}) -> {saved_path}"
                )

            except OSError as e:
                self.logger.error(
                    f"Error writing resource '{resource.file_name or index}' of note {note.id}: {e}",
                    exc_info=True
                )
                resource.warnings.append(f"Export failed: {e}")
                self.stats['failed'] += 1

        return self.get_stats()

    def _deduplicate_and_save(self, resource: Resource) -> Path:
        """
        Save a resource payload under its content hash.

        Args:
            resource: Resource with a payload

        Returns:
            Saved file path
        """
        content_hash = resource.md5

        if content_hash in self.file_hash_cache:
            self.stats['deduplicated'] += 1
            return self.file_hash_cache[content_hash]

        target = self.assets_dir / content_hash
        target.write_bytes(resource.data)

        if self.set_file_dates and resource.attributes is not None:
            set_file_times(target, resource.attributes.timestamp)

        self.file_hash_cache[content_hash] = target
        return target

    def get_asset_path(self, resource: Resource) -> Optional[Path]:
        """Return the written path of a resource, or None if it was not saved."""
        if not resource.has_payload():
            return None
        return self.file_hash_cache.get(resource.md5)

    def _should_show_progress(self) -> bool:
        """Check if progress bars should be displayed."""
        if not self.show_progress:
            return False
        if not sys.stdout.isatty():
            return False
        return True

    def get_stats(self) -> Dict[str, int]:
        """Get resource processing statistics."""
        return self.stats.copy()


__all__ = ['AttachmentManager', 'set_file_times']
