#!/usr/bin/env python3
"""
Evernote ENEX Export Tool - Main CLI Entry Point

Converts the notes of an Evernote ENEX export into per-note directories
holding Markdown with front matter, the raw ENML, a JSON record and the
note's attachments.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from config_loader import ConfigLoader, get_nested
from exceptions import ContainerParseError
from exporters import MarkdownExporter
from logger import log_config, log_section, setup_logging
from models import Note
from parsers import EnexParser

__version__ = "1.0.0"


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='ever',
        description="A tool for working with Evernote ENEX files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export every note
  ever export notes.enex -o ./Evernote

  # Export the first 10 notes
  ever export notes.enex -o ./Evernote -l 10

  # Preview without writing
  ever export notes.enex --dry-run

  # Verbose logging to a file
  ever export notes.enex -o ./Evernote -vv --log-file ever.log
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    export = subparsers.add_parser(
        'export',
        help='Export an ENEX file to markdown and assets',
        description='Export an ENEX file to markdown and assets'
    )

    export.add_argument(
        'input_path',
        help='Path to the ENEX file to export'
    )

    export.add_argument(
        '-o', '--output-dir',
        dest='output_dir',
        type=str,
        help='Directory to export to (default: export.output_directory or ./Evernote)'
    )

    export.add_argument(
        '-l', '--limit',
        type=int,
        default=None,
        help='Maximum number of notes to export (0 for all)'
    )

    export.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration YAML file'
    )

    export.add_argument(
        '--dry-run',
        action='store_true',
        help='List the notes that would be exported without writing anything'
    )

    export.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars'
    )

    export.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file (rotated at 10 MB)'
    )

    export.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def run_export(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Parse the container and export its notes."""
    input_path = Path(args.input_path).expanduser().resolve()
    print(f"Parsing: {input_path}")

    try:
        notes = EnexParser(logger=logger).parse_file(input_path)
    except ContainerParseError as e:
        logger.error(f"Cannot parse ENEX container: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Found {len(notes)} notes")

    exporter = MarkdownExporter(config, logger=logger)
    selected = exporter.select_notes(notes)

    if args.dry_run:
        _print_export_preview(selected, exporter.output_directory)
        return 0

    stats = exporter.export_notes(notes)

    print(f"Successfully exported {stats['notes_exported']} notes to {exporter.output_directory.resolve()}")
    if stats['notes_failed'] > 0:
        logger.warning(f"Export completed with {stats['notes_failed']} failed notes")
        return 1
    return 0


def _print_export_preview(notes: List[Note], output_directory: Path) -> None:
    """Print the notes a real run would export."""
    print("\n" + "=" * 60)
    print("EXPORT PREVIEW (DRY RUN)")
    print("=" * 60)
    print(f"\nOutput directory: {output_directory}")
    print(f"Notes to export: {len(notes)}")
    print("-" * 60)
    for note in notes:
        payloads = len(note.resources_with_payload())
        print(f"  {note.id}  {note.title or '(untitled)'}  [{payloads}/{len(note.resources)} resources]")
    print("\n" + "=" * 60)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        if args.config:
            config = ConfigLoader.load(args.config)
        else:
            config = ConfigLoader.defaults()

        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)

        logger = setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level')
        )

        log_section("Evernote ENEX Export Tool")
        logger.info(f"Version: {__version__}")
        log_config(config)

        return run_export(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
