"""Parsers for ENEX containers, notes and resources."""

from .enex_parser import EnexParser, parse_enex
from .identifiers import generate_note_id
from .note_builder import NoteBuilder, decode_base64
from .timestamps import describe_timestamp, format_iso_timestamp, parse_enex_timestamp

__all__ = [
    'EnexParser',
    'parse_enex',
    'NoteBuilder',
    'decode_base64',
    'generate_note_id',
    'parse_enex_timestamp',
    'format_iso_timestamp',
    'describe_timestamp'
]
