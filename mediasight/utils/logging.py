"""
Logging utilities for MediaSight
Provides structured logging and catalog audit statistics
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

import colorlog

logger = logging.getLogger(__name__)

PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
COLOR_FORMAT = '%(log_color)s%(asctime)s - %(name)s - %(levelname)s%(reset)s - %(message)s'


class StructuredLogger:
    """Provides structured logging with metadata"""

    def __init__(self, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Initialize structured logger

        Args:
            name: Logger name
            metadata: Default metadata to include in all logs
        """
        self.logger = logging.getLogger(name)
        self.metadata = metadata or {}

    def bind(self, **kwargs) -> 'StructuredLogger':
        """Return a logger that also attaches the given metadata"""
        return StructuredLogger(self.logger.name, {**self.metadata, **kwargs})

    def _format_message(self, message: str, **kwargs) -> str:
        data = {**self.metadata, **kwargs}
        if data:
            return f"{message} | {json.dumps(data, default=str, sort_keys=True)}"
        return message

    def debug(self, message: str, **kwargs):
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs):
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, **kwargs):
        self.logger.error(self._format_message(message, **kwargs))


class AuditStats:
    """Tracks catalog audit statistics"""

    def __init__(self):
        self.start_time = datetime.now()
        self.total_entries = 0
        self.audited_entries = 0
        self.passed_entries = 0
        self.failed_entries = 0
        self.status_counts: Dict[str, int] = {}
        self.scores: List[int] = []
        self.errors: List[Dict[str, Any]] = []

    def set_total(self, total: int):
        self.total_entries = total

    def add_result(self, passed: bool, status: Optional[str] = None, score: Optional[int] = None):
        """
        Add one compliance result

        Args:
            passed: Whether the entry met the platform's bar
            status: Compliance status name
            score: Compliance score (0-100)
        """
        self.audited_entries += 1
        if passed:
            self.passed_entries += 1
        else:
            self.failed_entries += 1
        if status:
            self.status_counts[status] = self.status_counts.get(status, 0) + 1
        if score is not None:
            self.scores.append(score)

    def add_error(self, entry: str, error: str):
        """Record an entry that could not be audited at all"""
        self.errors.append({
            'entry': entry,
            'error': error,
            'time': datetime.now(),
        })

    @property
    def has_failures(self) -> bool:
        return bool(self.errors) or self.failed_entries > 0

    def get_elapsed_time(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()

    def get_average_score(self) -> float:
        if not self.scores:
            return 0.0
        return sum(self.scores) / len(self.scores)

    def get_summary(self) -> Dict[str, Any]:
        return {
            'total_entries': self.total_entries,
            'audited_entries': self.audited_entries,
            'passed_entries': self.passed_entries,
            'failed_entries': self.failed_entries,
            'pass_rate': (self.passed_entries / self.audited_entries * 100)
                         if self.audited_entries > 0 else 0,
            'status_counts': dict(sorted(self.status_counts.items())),
            'average_score': self.get_average_score(),
            'errors': len(self.errors),
            'elapsed_time': self.get_elapsed_time(),
        }

    def print_summary(self):
        """Print audit summary to console"""
        summary = self.get_summary()

        print("\n" + "=" * 60)
        print("AUDIT SUMMARY")
        print("=" * 60)
        print(f"Catalog entries:  {summary['total_entries']}")
        print(f"Audited:          {summary['audited_entries']}")
        print(f"Passed:           {summary['passed_entries']} ({summary['pass_rate']:.1f}%)")
        print(f"Failed:           {summary['failed_entries']}")
        print(f"Average score:    {summary['average_score']:.1f}")

        if summary['status_counts']:
            print("\nStatus breakdown:")
            for status, count in summary['status_counts'].items():
                print(f"  - {status}: {count}")

        print(f"\nErrors:           {summary['errors']}")
        print(f"Elapsed time:     {summary['elapsed_time']:.1f}s")
        print("=" * 60)

        if self.errors:
            print("\nERRORS:")
            for error in self.errors[:10]:
                print(f"  - {error['entry']}: {error['error']}")
            if len(self.errors) > 10:
                print(f"  ... and {len(self.errors) - 10} more errors")


def setup_console_logging(level: str = "INFO", color: bool = True,
                          log_format: str = PLAIN_FORMAT):
    """
    Setup console logging with optional color support

    Logs go to stderr so command output on stdout stays machine-readable.

    Args:
        level: Logging level name
        color: Whether to use colored output on a terminal
        log_format: Format string for plain output
    """
    console_handler = logging.StreamHandler(sys.stderr)

    if color and sys.stderr.isatty():
        formatter = colorlog.ColoredFormatter(
            COLOR_FORMAT,
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        )
    else:
        formatter = logging.Formatter(log_format)

    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, '_mediasight_console', False):
            root_logger.removeHandler(handler)
    console_handler._mediasight_console = True
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(console_handler)
