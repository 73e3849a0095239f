import logging
import os
import re
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class SensitiveDataFilter(logging.Filter):
    """Filter to mask credentials in log records."""

    PATTERNS = [
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'((?:access|refresh)?_?token["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(client_secret["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(bearer\s+)([^\s,}\'\"]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'\blsk_[0-9a-f-]{8,}', re.IGNORECASE), 'lsk_***MASKED***'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask sensitive data in the message and its arguments."""
        if isinstance(record.msg, str):
            record.msg = self._mask_value(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._mask_value(arg) for arg in record.args)

        return True

    def _mask_value(self, value):
        if isinstance(value, str):
            for pattern, replacement in self.PATTERNS:
                value = pattern.sub(replacement, value)
        return value


def setup_logging(component_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Configure logging for one LanShare component.

    The component logger and the ``hub``/``cli``/``common`` package loggers
    share a single stdout handler, so module loggers obtained through
    :func:`get_logger` are formatted and filtered the same way.

    Args:
        component_name: Name of the component (e.g. 'hub', 'cli')
        log_level: DEBUG, INFO, WARNING or ERROR. Defaults to the LOG_LEVEL
            env var, then INFO

    Returns:
        The component logger
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())

    for name in {component_name, 'hub', 'cli', 'common'}:
        package_logger = logging.getLogger(name)
        package_logger.setLevel(level)
        if not any(isinstance(f, SensitiveDataFilter) for h in package_logger.handlers for f in h.filters):
            package_logger.addHandler(handler)
        package_logger.propagate = False

    return logging.getLogger(component_name)


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
