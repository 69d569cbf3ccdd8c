"""Tests for exporting notes to per-note directories."""

import json
import os
from datetime import datetime, timezone

import pytest

from config_loader import ConfigLoader
from exporters import AttachmentManager, MarkdownExporter, update_localized_names
from exporters.localized_strings import escape_strings_value, read_strings_file
from exporters.markdown_exporter import format_bytes
from models import Note, Resource, ResourceAttributes
from parsers.identifiers import generate_note_id

CREATED = datetime(2025, 1, 22, 12, 0, 0, tzinfo=timezone.utc)
UPDATED = datetime(2025, 1, 23, 8, 0, 0, tzinfo=timezone.utc)
ASSET_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def make_note(title='Trip', content='<en-note><div>Body</div></en-note>', resources=None, created=CREATED):
    return Note(
        id=generate_note_id(created, title, content),
        title=title,
        content=content,
        created=created,
        updated=UPDATED if created else None,
        resources=resources or []
    )


@pytest.fixture
def config():
    config = ConfigLoader.defaults()
    config['export']['progress_bars'] = False
    return config


@pytest.fixture
def image():
    return Resource(data=b'png-bytes', mime='image/png',
                    attributes=ResourceAttributes(file_name='a.png', timestamp=ASSET_TIME))


class TestMarkdownExporter:
    """Directory layout and side files."""

    def test_note_directory_layout(self, tmp_path, config, image):
        note = make_note(resources=[image])

        MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([note])

        note_dir = tmp_path / f"{note.id}.localized"
        assert (note_dir / 'content.md').read_text(encoding='utf-8').endswith('---\n\nBody')
        assert (note_dir / 'content.html').read_text(encoding='utf-8') == note.content
        assert (note_dir / 'assets' / image.md5).read_bytes() == b'png-bytes'
        assert (note_dir / '.localized' / 'Base.strings').read_text(encoding='utf-8') == f'"{note.id}" = "Trip";'

    def test_json_record(self, tmp_path, config, image):
        note = make_note(resources=[image])

        MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([note])

        with open(tmp_path / f"{note.id}.localized" / 'content.json', encoding='utf-8') as f:
            record = json.load(f)
        assert record['id'] == note.id
        assert record['resources'][0]['hash'] == image.md5
        assert 'data' not in record['resources'][0]
        assert record['conversion']['conversion_status'] == 'success'
        assert 'conversion_timestamp' not in record['conversion']

    def test_stats_and_deduplication(self, tmp_path, config, image):
        duplicate = Resource(data=b'png-bytes', mime='image/png')
        empty = Resource(mime='application/pdf')
        note = make_note(resources=[image, empty, duplicate])

        stats = MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([note])

        assert stats['notes_exported'] == 1
        assert stats['notes_failed'] == 0
        assert stats['total_resources_saved'] == 2
        assert stats['total_resources_skipped'] == 1
        assert os.listdir(tmp_path / f"{note.id}.localized" / 'assets') == [image.md5]

    def test_file_dates(self, tmp_path, config, image):
        note = make_note(resources=[image])

        MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([note])

        note_dir = tmp_path / f"{note.id}.localized"
        assert os.path.getmtime(note_dir) == pytest.approx(UPDATED.timestamp())
        assert os.path.getmtime(note_dir / 'assets' / image.md5) == pytest.approx(ASSET_TIME.timestamp())

    def test_root_strings_file_is_merged_and_sorted(self, tmp_path, config):
        (tmp_path / '.localized').mkdir()
        (tmp_path / '.localized' / 'Base.strings').write_text('"zzz" = "Old";', encoding='utf-8')
        first = make_note(title='B note')
        second = make_note(title='A note')

        MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([first, second])

        lines = (tmp_path / '.localized' / 'Base.strings').read_text(encoding='utf-8').split('\n')
        assert lines == sorted(lines)
        assert len(lines) == 3
        assert '"zzz" = "Old";' in lines
        assert f'"{first.id}" = "B note";' in lines

    def test_plain_directories(self, tmp_path, config):
        config['export']['localized_names'] = False
        note = make_note()

        MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([note])

        assert (tmp_path / note.id / 'content.md').exists()
        assert not (tmp_path / '.localized').exists()

    def test_optional_files_disabled(self, tmp_path, config):
        config['export']['write_json'] = False
        config['export']['write_html'] = False
        note = make_note()

        MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([note])

        names = sorted(os.listdir(tmp_path / f"{note.id}.localized"))
        assert names == ['.localized', 'content.md']

    def test_limit(self, tmp_path, config):
        config['export']['limit'] = 1
        notes = [make_note(title='one'), make_note(title='two')]

        stats = MarkdownExporter(config, output_dir=str(tmp_path)).export_notes(notes)

        assert stats['total_notes'] == 1
        assert (tmp_path / f"{notes[0].id}.localized").is_dir()
        assert not (tmp_path / f"{notes[1].id}.localized").exists()

    def test_failed_note_does_not_stop_export(self, tmp_path, config):
        blocked = make_note(title='blocked')
        ok = make_note(title='ok')
        (tmp_path / f"{blocked.id}.localized").write_text('in the way', encoding='utf-8')

        stats = MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([blocked, ok])

        assert stats['notes_failed'] == 1
        assert stats['notes_exported'] == 1
        assert (tmp_path / f"{ok.id}.localized" / 'content.md').exists()
        assert blocked.conversion_metadata['export_errors']

    def test_unparsable_content_is_counted(self, tmp_path, config):
        note = make_note(content='<div>open')

        stats = MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([note])

        assert stats['notes_unconverted'] == 1
        assert stats['notes_exported'] == 1

    def test_note_without_created_date(self, tmp_path, config):
        note = make_note(title='', content='<en-note>x</en-note>', created=None)

        MarkdownExporter(config, output_dir=str(tmp_path)).export_notes([note])

        strings = tmp_path / f"{note.id}.localized" / '.localized' / 'Base.strings'
        assert strings.read_text(encoding='utf-8') == f'"{note.id}" = "{note.id}";'

    def test_output_directory_from_config(self, tmp_path, config):
        config['export']['output_directory'] = str(tmp_path / 'out')

        exporter = MarkdownExporter(config)
        exporter.export_notes([make_note()])

        assert exporter.exported_directories[0].parent == tmp_path / 'out'


class TestAttachmentManager:

    def test_no_payloads_creates_no_assets_dir(self, tmp_path, config):
        note = make_note(resources=[Resource(mime='image/png')])

        stats = AttachmentManager(config, tmp_path).process_resources(note)

        assert stats['skipped'] == 1
        assert not (tmp_path / 'assets').exists()

    def test_asset_path(self, tmp_path, config, image):
        manager = AttachmentManager(config, tmp_path)
        manager.process_resources(make_note(resources=[image]))

        assert manager.get_asset_path(image) == tmp_path / 'assets' / image.md5
        assert manager.get_asset_path(Resource()) is None

    def test_file_dates_disabled(self, tmp_path, config, image):
        config['export']['set_file_dates'] = False
        AttachmentManager(config, tmp_path).process_resources(make_note(resources=[image]))

        assert os.path.getmtime(tmp_path / 'assets' / image.md5) != pytest.approx(ASSET_TIME.timestamp())


class TestLocalizedStrings:

    def test_escaping(self):
        assert escape_strings_value('a\\b"c\td\ne\r') == 'a\\\\b\\"c\\td e'

    def test_round_trip_of_escaped_values(self, tmp_path):
        update_localized_names(tmp_path, tmp_path / 'n.localized', 'n', 'Say "hi"')

        entries = read_strings_file(tmp_path / '.localized' / 'Base.strings')
        assert entries == {'n': 'Say \\"hi\\"'}

    def test_missing_file(self, tmp_path):
        assert read_strings_file(tmp_path / 'nope.strings') == {}


def test_format_bytes():
    assert format_bytes(0) == '0 B'
    assert format_bytes(512) == '512.0 B'
    assert format_bytes(2048) == '2.0 KB'
