"""Tests for ENEX timestamps and note identifiers."""

from datetime import datetime, timedelta, timezone

import pytest

from exceptions import TimestampParseFailure
from parsers.identifiers import generate_note_id
from parsers.timestamps import describe_timestamp, format_iso_timestamp, parse_enex_timestamp

NOON = datetime(2025, 1, 22, 12, 0, 0, tzinfo=timezone.utc)


class TestTimestamps:

    def test_parse(self):
        assert parse_enex_timestamp('20250122T120000Z') == NOON

    def test_parse_result_is_utc_aware(self):
        assert parse_enex_timestamp('20250122T120000Z').tzinfo == timezone.utc

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_enex_timestamp('\n  20250122T120000Z ') == NOON

    @pytest.mark.parametrize('value', ['2025-01-22T12:00:00Z', '20250122T120000', '20251322T120000Z', ''])
    def test_malformed(self, value):
        with pytest.raises(TimestampParseFailure):
            parse_enex_timestamp(value)

    def test_missing(self):
        with pytest.raises(TimestampParseFailure):
            parse_enex_timestamp(None)

    def test_iso_rendering(self):
        assert format_iso_timestamp(NOON) == '2025-01-22T12:00:00Z'

    def test_iso_rendering_converts_to_utc(self):
        plus_one = datetime(2025, 1, 22, 13, 0, 0, tzinfo=timezone(timedelta(hours=1)))

        assert format_iso_timestamp(plus_one) == '2025-01-22T12:00:00Z'

    def test_description(self):
        assert describe_timestamp(NOON) == '2025-01-22 12:00:00 +0000'

    def test_description_of_missing_timestamp(self):
        assert describe_timestamp(None) == ''


class TestNoteIdentifiers:
    """Identifiers are pinned; changing them renames every export directory."""

    def test_title_key(self):
        assert generate_note_id(NOON, 'Hello', '<en-note/>') == '44f797c5e65e43d2c6bacca8063db6dc'

    def test_content_key_when_title_empty(self):
        assert generate_note_id(NOON, '', 'World') == '7be316d3d872c5aca4790f84692c9fc0'

    def test_missing_timestamp(self):
        assert generate_note_id(None, 'Hello', '') == '4d8160a6ea29c47e71de961dd6f0ca64'

    def test_parsed_timestamp_gives_same_id(self):
        created = parse_enex_timestamp('20250122T120000Z')

        assert generate_note_id(created, 'Hello', '') == '44f797c5e65e43d2c6bacca8063db6dc'

    def test_naive_timestamp_is_treated_as_utc(self):
        naive = datetime(2025, 1, 22, 12, 0, 0)

        assert generate_note_id(naive, 'Hello', '') == generate_note_id(NOON, 'Hello', '')

    def test_content_ignored_when_title_present(self):
        assert generate_note_id(NOON, 'Hello', 'a') == generate_note_id(NOON, 'Hello', 'b')

    def test_format(self):
        note_id = generate_note_id(NOON, 'Anything', '')

        assert len(note_id) == 32
        assert note_id == note_id.lower()
        int(note_id, 16)

    def test_different_timestamps_differ(self):
        later = NOON + timedelta(seconds=1)

        assert generate_note_id(NOON, 'Hello', '') != generate_note_id(later, 'Hello', '')
