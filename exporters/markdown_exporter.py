"""Main exporter writing converted Evernote notes to per-note directories."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from converters.markdown_converter import MarkdownConverter
from logger import ProgressTracker
from models import Note
from .attachment_manager import AttachmentManager, set_file_times
from .localized_strings import update_localized_names

MARKDOWN_FILE = 'content.md'
HTML_FILE = 'content.html'
JSON_FILE = 'content.json'


class MarkdownExporter:
    """
    Orchestrates export of parsed notes to local directories.

    Each note gets ``<output>/<id>.localized/`` (or ``<output>/<id>/``)
    containing:
    1. ``content.md``: front matter and rendered Markdown
    2. ``content.html``: the raw ENML fragment
    3. ``content.json``: the serialized note record
    4. ``assets/<hash>``: one file per resource payload
    """

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None, output_dir: Optional[str] = None):
        """
        Initialize the markdown exporter.

        Args:
            config: Configuration dictionary with export settings
            logger: Logger instance
            output_dir: Optional output directory override (takes precedence over config)
        """
        self.config = config
        self.logger = logger or logging.getLogger('evernote_markdown_exporter.exporters.markdown_exporter')

        export_config = config.get('export', {})
        self.output_directory = Path(output_dir) if output_dir else Path(export_config.get('output_directory', './Evernote'))
        self.limit = export_config.get('limit', 0)
        self.localized_names = export_config.get('localized_names', True)
        self.write_json = export_config.get('write_json', True)
        self.write_html = export_config.get('write_html', True)
        self.json_include_data = export_config.get('json_include_data', False)
        self.set_file_dates = export_config.get('set_file_dates', True)
        self.show_progress = export_config.get('progress_bars', True)

        self.converter = MarkdownConverter(logger=self.logger.getChild('converter'))

        self.stats = {
            'total_notes': 0,
            'notes_exported': 0,
            'notes_unconverted': 0,
            'notes_failed': 0,
            'total_resources_saved': 0,
            'total_resources_skipped': 0,
            'total_resources_failed': 0,
            'total_resources_size_bytes': 0
        }

        self.exported_directories: List[Path] = []

    def select_notes(self, notes: List[Note]) -> List[Note]:
        """Apply the configured note limit (0 exports everything)."""
        if self.limit and self.limit > 0:
            return notes[:self.limit]
        return list(notes)

    def export_notes(self, notes: List[Note]) -> Dict[str, Any]:
        """
        Export notes, continuing past individual failures.

        Args:
            notes: Notes produced by the ENEX parser

        Returns:
            Statistics dictionary with export results
        """
        self.logger.info(f"Starting markdown export to {self.output_directory}")

        try:
            self.output_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Failed to create output directory: {e}")
            raise

        selected = self.select_notes(notes)
        self.stats['total_notes'] = len(selected)

        show_progress = self.show_progress and sys.stdout.isatty()
        with ProgressTracker(total_items=len(selected), item_type='notes', logger=self.logger,
                             show_progress=show_progress) as tracker:
            for note in selected:
                try:
                    self.export_note(note)
                    tracker.increment(success=True, label=note.title)
                except Exception as e:
                    self.logger.error(f"Failed to export note {note.id} '{note.title}': {e}", exc_info=True)
                    note.conversion_metadata.setdefault('export_errors', []).append(str(e))
                    self.stats['notes_failed'] += 1
                    tracker.increment(success=False, label=note.title)

        self._log_export_summary()

        return self.stats.copy()

    def note_directory(self, note: Note) -> Path:
        """Directory a note is exported to."""
        name = f"{note.id}.localized" if self.localized_names else note.id
        return self.output_directory / name

    def export_note(self, note: Note) -> Path:
        """
        Export a single note.

        Args:
            note: Note instance (converted on demand if needed)

        Returns:
            The note's output directory
        """
        if note.markdown_content is None:
            self.converter.convert_note(note)
        if note.conversion_metadata.get('conversion_status') != 'success':
            self.stats['notes_unconverted'] += 1

        note_dir = self.note_directory(note)
        note_dir.mkdir(parents=True, exist_ok=True)

        if self.localized_names:
            update_localized_names(self.output_directory, note_dir, note.id, note.title)

        if self.write_json:
            self._write_json(note, note_dir / JSON_FILE)

        if self.write_html:
            (note_dir / HTML_FILE).write_text(note.content, encoding='utf-8')

        (note_dir / MARKDOWN_FILE).write_text(note.markdown_content, encoding='utf-8')

        attachment_manager = AttachmentManager(config=self.config, note_dir=note_dir, logger=self.logger)
        resource_stats = attachment_manager.process_resources(note)
        self.stats['total_resources_saved'] += resource_stats['saved']
        self.stats['total_resources_skipped'] += resource_stats['skipped']
        self.stats['total_resources_failed'] += resource_stats['failed']
        self.stats['total_resources_size_bytes'] += resource_stats['total_size_bytes']

        # Directory mtime last, after its contents stop changing
        if self.set_file_dates and note.created is not None:
            set_file_times(note_dir, note.updated or note.created)

        self.stats['notes_exported'] += 1
        self.exported_directories.append(note_dir)
        self.logger.debug(f"Exported note {note.id} -> {note_dir}")

        return note_dir

    def _write_json(self, note: Note, path: Path) -> None:
        record = note.to_dict(include_data=self.json_include_data)
        record['conversion'] = {
            key: value for key, value in note.conversion_metadata.items()
            if key != 'conversion_timestamp'
        }
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(record, f, indent=2, ensure_ascii=False)

    def _log_export_summary(self) -> None:
        """Log final export statistics."""
        self.logger.info("=" * 60)
        self.logger.info("MARKDOWN EXPORT SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Notes exported: {self.stats['notes_exported']}/{self.stats['total_notes']}")
        if self.stats['notes_unconverted'] > 0:
            self.logger.info(f"Notes with unconverted content: {self.stats['notes_unconverted']}")
        self.logger.info(f"Notes failed: {self.stats['notes_failed']}")
        self.logger.info(f"Resources saved: {self.stats['total_resources_saved']}")
        self.logger.info(f"Resources without payload: {self.stats['total_resources_skipped']}")
        self.logger.info(f"Resources failed: {self.stats['total_resources_failed']}")
        self.logger.info(f"Total resources size: {format_bytes(self.stats['total_resources_size_bytes'])}")
        self.logger.info(f"Output directory: {self.output_directory}")
        self.logger.info("=" * 60)


def format_bytes(bytes_val: float) -> str:
    """Format bytes to human-readable string."""
    if bytes_val == 0:
        return "0 B"

    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_val < 1024.0:
            return f"{bytes_val:.1f} {unit}"
        bytes_val /= 1024.0
    return f"{bytes_val:.1f} TB"


__all__ = ['MarkdownExporter', 'format_bytes']
