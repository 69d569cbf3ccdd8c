"""Tests for the front matter header and note models."""

import base64
from datetime import datetime, timezone

from converters.front_matter import build_front_matter, front_matter_lines
from models import Note, NoteAttributes, Resource, ResourceAttributes

CREATED = datetime(2025, 1, 22, 12, 0, 0, tzinfo=timezone.utc)
UPDATED = datetime(2025, 2, 1, 9, 30, 15, tzinfo=timezone.utc)


class TestFrontMatter:

    def test_all_fields_in_order(self):
        note = Note(
            id='abc',
            title='Trip',
            created=CREATED,
            updated=UPDATED,
            tags=['travel', '2025'],
            attributes=NoteAttributes(source='web.clip', source_url='https://example.com')
        )

        assert build_front_matter(note) == (
            '---\n'
            'title: "Trip"\n'
            'created: 2025-01-22T12:00:00Z\n'
            'lastEdited: 2025-02-01T09:30:15Z\n'
            'id: abc\n'
            'tags: travel, 2025\n'
            'source: web.clip\n'
            'source_url: https://example.com\n'
            '---\n'
            '\n'
        )

    def test_minimal_note(self):
        assert front_matter_lines(Note(id='abc')) == ['title: ""', 'id: abc']

    def test_title_is_escaped(self):
        lines = front_matter_lines(Note(id='abc', title='Say "hi"\\now'))

        assert lines[0] == 'title: "Say \\"hi\\"\\\\now"'

    def test_non_ascii_title_kept_verbatim(self):
        assert front_matter_lines(Note(id='abc', title='Café'))[0] == 'title: "Café"'

    def test_attributes_without_source(self):
        note = Note(id='abc', attributes=NoteAttributes(author='Sam'))

        assert front_matter_lines(note) == ['title: ""', 'id: abc']


class TestModels:

    def test_resource_hash_and_size(self):
        resource = Resource(data=b'abc', mime='text/plain')

        assert resource.md5 == '900150983cd24fb0d6963f7d28e17f72'
        assert resource.size == 3
        assert resource.has_payload()

    def test_resource_without_payload(self):
        resource = Resource(mime='image/png')

        assert resource.md5 is None
        assert resource.size == 0
        assert not resource.has_payload()

    def test_resource_to_dict(self):
        resource = Resource(
            data=b'abc',
            mime='text/plain',
            attributes=ResourceAttributes(file_name='a.txt', timestamp=CREATED)
        )

        record = resource.to_dict()
        assert record['hash'] == '900150983cd24fb0d6963f7d28e17f72'
        assert record['attributes']['file_name'] == 'a.txt'
        assert record['attributes']['timestamp'] == '2025-01-22T12:00:00+00:00'
        assert 'data' not in record

        assert resource.to_dict(include_data=True)['data'] == base64.b64encode(b'abc').decode('ascii')
        assert resource.file_name == 'a.txt'

    def test_note_to_dict(self):
        note = Note(id='abc', title='T', created=CREATED, tags=['x'], resources=[Resource(data=b'1')])

        record = note.to_dict()

        assert record['id'] == 'abc'
        assert record['created'] == '2025-01-22T12:00:00+00:00'
        assert record['updated'] is None
        assert record['tags'] == ['x']
        assert len(record['resources']) == 1

    def test_default_conversion_metadata(self):
        note = Note(id='abc')

        assert note.conversion_metadata['conversion_status'] == 'pending'
        assert note.markdown_content is None

    def test_notes_compare_by_id(self):
        assert Note(id='abc', title='one') == Note(id='abc', title='two')
        assert len({Note(id='abc'), Note(id='abc'), Note(id='def')}) == 2

    def test_resource_by_hash(self):
        resource = Resource(data=b'abc')
        note = Note(id='abc', resources=[Resource(), resource])

        assert note.resource_by_hash('900150983cd24fb0d6963f7d28e17f72') is resource
        assert note.resource_by_hash('0' * 32) is None

    def test_resource_hash_is_computed_once(self):
        resource = Resource(data=b'abc')

        assert resource.md5 is resource.md5

    def test_resource_hash_follows_replaced_payload(self):
        resource = Resource(data=b'abc')
        first = resource.md5
        resource.data = b'abcd'

        assert resource.md5 != first
        assert resource.md5 == 'e2fc714c4727ee9395f324cd2e7f331f'

    def test_empty_payload_has_no_hash(self):
        resource = Resource(data=b'')

        assert resource.md5 is None
        assert resource.to_dict()['hash'] is None
