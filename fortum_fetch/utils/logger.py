"""Logging configuration for fortum-fetch."""

import logging
import sys
from pathlib import Path
from typing import Optional


# Component to log file mapping
COMPONENT_LOG_FILES = {
    'auth': 'auth.log',
    'api': 'api.log',
    'output': 'output.log',
    'main': 'main.log',
}


def _get_component_from_logger_name(name: str) -> str:
    """Determine component from logger name.

    Args:
        name: Logger name (e.g., 'fortum_fetch.auth.authenticator')

    Returns:
        Component name or 'main' if no match
    """
    if 'auth' in name:
        return 'auth'
    elif '.api' in name or 'client' in name:
        return 'api'
    elif 'output' in name or 'template' in name:
        return 'output'
    else:
        return 'main'


class ComponentFilter(logging.Filter):
    """Filter that only allows records from a specific component."""

    def __init__(self, component: str):
        super().__init__()
        self.component = component

    def filter(self, record: logging.LogRecord) -> bool:
        """Check if record belongs to this component."""
        return _get_component_from_logger_name(record.name) == self.component


def setup_logging(
    log_level: str = "INFO",
    log_to_console: bool = True,
    log_dir: Optional[Path] = None
) -> None:
    """Configure logging for the application.

    Console output goes to stderr, since stdout carries the access token and
    usage rows. Component log files are only written when log_dir is given.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_console: Whether to log to console (default: True)
        log_dir: Directory for component log files (default: no files)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    detailed_formatter = logging.Formatter(
        fmt='[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        fmt='[%(levelname)s] %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    # Console shows WARNING+ unless DEBUG is requested
    if log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_level = logging.DEBUG if numeric_level == logging.DEBUG else logging.WARNING
        console_handler.setLevel(console_level)
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_dir:
        log_directory = Path(log_dir)
        log_directory.mkdir(parents=True, exist_ok=True)
        for component, filename in COMPONENT_LOG_FILES.items():
            handler = logging.FileHandler(log_directory / filename, mode='a', encoding='utf-8')
            handler.setLevel(numeric_level)
            handler.setFormatter(detailed_formatter)
            handler.addFilter(ComponentFilter(component))
            root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("playwright").setLevel(logging.WARNING)


def mask_secret(value: Optional[str], visible: int = 6) -> str:
    """Shorten a token for log output.

    Args:
        value: Secret value (token)
        visible: Number of leading characters to keep

    Returns:
        Masked representation safe for logs
    """
    if not value:
        return "(empty)"
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}... ({len(value)} chars)"
