"""Tests for the ever CLI and logging setup."""

import logging
import os

import pytest

from ever import create_argument_parser, main
from logger import LOGGER_NAME, ProgressTracker, format_elapsed, setup_logging

CONTAINER = '''<?xml version="1.0" encoding="UTF-8"?>
<en-export version="10.0">
  <note>
    <title>One</title>
    <content><![CDATA[<en-note><div>first</div></en-note>]]></content>
    <created>20250122T120000Z</created>
  </note>
  <note>
    <title>Two</title>
    <content><![CDATA[<en-note><div>second</div></en-note>]]></content>
    <created>20250122T130000Z</created>
  </note>
</en-export>
'''


@pytest.fixture(autouse=True)
def restore_logger():
    """setup_logging reconfigures the package logger; undo it after each test."""
    project_logger = logging.getLogger(LOGGER_NAME)
    level = project_logger.level
    handlers = list(project_logger.handlers)
    yield
    for handler in project_logger.handlers:
        if handler not in handlers:
            handler.close()
    project_logger.handlers[:] = handlers
    project_logger.setLevel(level)


@pytest.fixture
def enex_file(tmp_path):
    path = tmp_path / 'notes.enex'
    path.write_text(CONTAINER, encoding='utf-8')
    return path


def exported_dirs(output):
    return sorted(name for name in os.listdir(output) if name.endswith('.localized') and name != '.localized')


class TestExportCommand:

    def test_export(self, tmp_path, enex_file, capsys):
        output = tmp_path / 'out'

        assert main(['export', str(enex_file), '-o', str(output), '--no-progress']) == 0

        assert len(exported_dirs(output)) == 2
        assert 'Found 2 notes' in capsys.readouterr().out

    def test_limit(self, tmp_path, enex_file):
        output = tmp_path / 'out'

        assert main(['export', str(enex_file), '-o', str(output), '-l', '1', '--no-progress']) == 0

        assert len(exported_dirs(output)) == 1

    def test_dry_run_writes_nothing(self, tmp_path, enex_file, capsys):
        output = tmp_path / 'out'

        assert main(['export', str(enex_file), '-o', str(output), '--dry-run']) == 0

        assert not output.exists()
        captured = capsys.readouterr().out
        assert 'DRY RUN' in captured
        assert 'One' in captured and 'Two' in captured

    def test_malformed_container(self, tmp_path, capsys):
        path = tmp_path / 'broken.enex'
        path.write_text('<en-export><note></en-export>', encoding='utf-8')

        assert main(['export', str(path), '-o', str(tmp_path / 'out')]) == 1
        assert 'ERROR' in capsys.readouterr().err

    def test_missing_input(self, tmp_path):
        assert main(['export', str(tmp_path / 'missing.enex'), '-o', str(tmp_path / 'out')]) == 1

    def test_invalid_limit(self, tmp_path, enex_file):
        assert main(['export', str(enex_file), '-o', str(tmp_path / 'out'), '-l', '-1']) == 2

    def test_missing_config(self, tmp_path, enex_file):
        assert main(['export', str(enex_file), '--config', str(tmp_path / 'nope.yaml')]) == 2

    def test_config_file(self, tmp_path, enex_file):
        output = tmp_path / 'from-config'
        config = tmp_path / 'config.yaml'
        config.write_text(
            f"export:\n  output_directory: {output}\n  localized_names: false\n  progress_bars: false\n",
            encoding='utf-8'
        )

        assert main(['export', str(enex_file), '--config', str(config)]) == 0

        assert len([name for name in os.listdir(output) if not name.startswith('.')]) == 2
        assert not (output / '.localized').exists()

    def test_log_file(self, tmp_path, enex_file):
        log_file = tmp_path / 'ever.log'

        main(['export', str(enex_file), '-o', str(tmp_path / 'out'), '--no-progress',
              '--log-file', str(log_file), '-v'])

        assert 'Parsed 2/2 notes' in log_file.read_text(encoding='utf-8')

    def test_subcommand_is_required(self):
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args([])


class TestLogging:

    def test_verbosity_levels(self):
        assert setup_logging(verbosity=0).level == logging.WARNING
        assert setup_logging(verbosity=1).level == logging.INFO
        assert setup_logging(verbosity=2).level == logging.DEBUG

    def test_explicit_level_wins(self):
        assert setup_logging(verbosity=2, level='error').level == logging.ERROR

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            setup_logging(level='LOUD')

    def test_handlers_are_replaced(self):
        setup_logging()
        project_logger = setup_logging()

        assert len(project_logger.handlers) == 1


class TestProgressTracker:

    def test_counts(self):
        with ProgressTracker(total_items=3, item_type='notes') as tracker:
            tracker.increment(success=True)
            tracker.increment(success=False, label='broken')
            tracker.increment()

        stats = tracker.get_stats()
        assert stats['processed'] == 3
        assert stats['successful'] == 2
        assert stats['failed'] == 1
        assert stats['success_rate'] == pytest.approx(200 / 3)

    def test_empty_run(self):
        with ProgressTracker(total_items=0) as tracker:
            pass

        assert tracker.get_stats()['success_rate'] == 0


@pytest.mark.parametrize('seconds, expected', [
    (5, '5.0s'),
    (65, '1m 5s'),
    (3725, '1h 2m 5s'),
])
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected
