"""Structured logging infrastructure with verbosity levels and progress tracking."""

import logging
import logging.handlers
import time
from typing import Any, Dict, Optional

import colorlog
from tqdm import tqdm

LOGGER_NAME = 'evernote_markdown_exporter'


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with configurable verbosity levels.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional path to log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit log level string

    Returns:
        Configured logger instance

    Raises:
        ValueError: If ``level`` is not a standard level name
    """
    if level:
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(allowed_levels)}"
            )
        log_level = getattr(logging, level_upper)
    else:
        if verbosity >= 2:
            log_level = logging.DEBUG
        elif verbosity >= 1:
            log_level = logging.INFO
        else:
            log_level = logging.WARNING

    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    # Root stays at WARNING to keep dependencies quiet
    logging.basicConfig(
        level=logging.WARNING,
        format=log_format,
        datefmt=date_format
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)

            logger.info(f"Logging to file: {log_file}")
            logger.info(f"Log level: {logging.getLevelName(log_level)}")
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {str(e)}")
    else:
        logger.info(f"Console logging only. Level: {logging.getLevelName(log_level)}")

    return logger


class ProgressTracker:
    """
    Context manager counting processed notes (or other items).

    Logs progress every 10 items and on each failure, optionally drives a
    tqdm bar, and logs a summary on exit whose level reflects the failure
    count.
    """

    def __init__(
        self,
        total_items: int,
        item_type: str = "items",
        logger: Optional[logging.Logger] = None,
        show_progress: bool = False
    ):
        """
        Initialize progress tracker.

        Args:
            total_items: Total number of items to process
            item_type: Description of item type (e.g., "notes", "resources")
            logger: Logger instance
            show_progress: Display a tqdm progress bar while processing
        """
        self.total_items = total_items
        self.item_type = item_type
        self.processed_items = 0
        self.successful_items = 0
        self.failed_items = 0
        self.start_time: Optional[float] = None
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.show_progress = show_progress
        self._bar: Optional[tqdm] = None

    def __enter__(self) -> 'ProgressTracker':
        self.start_time = time.time()
        self.logger.info(f"Starting processing of {self.total_items} {self.item_type}")
        if self.show_progress:
            self._bar = tqdm(total=self.total_items, desc=self.item_type.capitalize(), unit=self.item_type)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._bar is not None:
            self._bar.close()
            self._bar = None

        if self.start_time is None:
            return

        stats = self.get_stats()
        if self.failed_items > 0 and self.failed_items == self.total_items:
            log_method = self.logger.error
        elif self.failed_items > 0:
            log_method = self.logger.warning
        else:
            log_method = self.logger.info

        log_method(f"=== Progress Summary: {self.item_type.upper()} ===")
        log_method(
            f"{stats['successful']}/{stats['total']} {self.item_type} succeeded, "
            f"{stats['failed']} failed ({stats['success_rate']:.1f}%) "
            f"in {stats['elapsed_time_formatted']}"
        )

    def increment(self, success: bool = True, label: Optional[str] = None) -> None:
        """
        Record one processed item.

        Args:
            success: Whether the item was processed successfully
            label: Optional item label shown on the progress bar
        """
        self.processed_items += 1
        if success:
            self.successful_items += 1
        else:
            self.failed_items += 1

        if self._bar is not None:
            if label:
                self._bar.set_postfix_str(label[:40])
            self._bar.update(1)

        if self.processed_items % 10 == 0 or not success:
            remaining = self.total_items - self.processed_items
            self.logger.info(
                f"Processed {self.processed_items}/{self.total_items} {self.item_type} "
                f"({remaining} remaining) - Last: {'Success' if success else 'Failed'}"
            )

    def get_stats(self) -> Dict[str, Any]:
        """Get current progress statistics."""
        elapsed = time.time() - self.start_time if self.start_time is not None else 0.0
        return {
            'total': self.total_items,
            'processed': self.processed_items,
            'successful': self.successful_items,
            'failed': self.failed_items,
            'success_rate': (self.successful_items / self.total_items * 100) if self.total_items else 0,
            'elapsed_time': elapsed,
            'elapsed_time_formatted': format_elapsed(elapsed)
        }


def format_elapsed(seconds: float) -> str:
    """Format elapsed time as ``12.3s``, ``4m 5s`` or ``1h 2m 3s``."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m {secs}s"


def log_section(title: str) -> None:
    """
    Log a decorative section header.

    Args:
        title: Section title to display
    """
    logger = logging.getLogger(LOGGER_NAME)

    separator = "=" * 60
    logger.info("")
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)
    logger.info("")


def log_config(config: Dict[str, Any]) -> None:
    """
    Log the effective configuration.

    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(LOGGER_NAME)

    log_section("Configuration")

    export_settings = config.get('export', {})
    logger.info(f"Output Directory: {export_settings.get('output_directory', './Evernote')}")
    limit = export_settings.get('limit', 0)
    logger.info(f"Note Limit: {limit if limit else 'All Notes'}")
    logger.info(f"Localized Names: {export_settings.get('localized_names', True)}")
    logger.info(f"Write JSON: {export_settings.get('write_json', True)}")
    logger.info(f"Write HTML: {export_settings.get('write_html', True)}")
    logger.info(f"Embed Payloads in JSON: {export_settings.get('json_include_data', False)}")
    logger.info(f"Set File Dates: {export_settings.get('set_file_dates', True)}")
    logger.info(f"Progress Bars: {export_settings.get('progress_bars', True)}")

    logger.info("")

    logging_settings = config.get('logging', {})
    logger.info(f"Log Level: {logging_settings.get('level') or 'From Verbosity'}")
    logger.info(f"Log File: {logging_settings.get('file') or 'Not Set'}")


__all__ = [
    'LOGGER_NAME',
    'setup_logging',
    'ProgressTracker',
    'format_elapsed',
    'log_section',
    'log_config'
]
