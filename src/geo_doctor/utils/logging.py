"""Centralized logging configuration for geo-doctor runs.

Every module obtains its logger through `get_logger(__name__)`; the CLI calls
`setup_logging()` (or `setup_logging_from_config()`) once per invocation so that
record-level load warnings, analyzer progress and gate failures share a single
format on the console and, optionally, in a log file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Track if logging has been configured to avoid reconfiguration
_logging_configured = False


def setup_logging(
    log_level: str = "INFO", log_file: Optional[str] = None, force: bool = False
) -> None:
    """Configure root logger with consistent formatting and handlers.

    This function sets up the root logger with:
    - A console handler (stderr) with the specified log level
    - An optional file handler if log_file is provided
    - Consistent formatting: [YYYY-MM-DD HH:MM:SS] [LEVEL] [MODULE] Message

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to "INFO".
        log_file: Optional path to log file. If provided, creates a file handler
            and ensures the directory exists. Defaults to None.
        force: Reconfigure even if logging was already set up. The CLI uses this
            so that repeated in-process invocations pick up a new level.

    Example:
        >>> setup_logging(log_level="DEBUG", log_file="__reports/geo-doctor.log")
        >>> logger = get_logger(__name__)
        >>> logger.info("Doctor started")
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    level = getattr(logging, str(log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _logging_configured = True


def setup_logging_from_config(
    config: Dict[str, Any], log_level: Optional[str] = None
) -> None:
    """Configure logging from the `logging` section of a loaded configuration.

    Args:
        config: Configuration dictionary as returned by `load_config()`.
        log_level: Optional level that takes precedence over the configured one
            (used for the `--log-level` CLI flag).
    """
    logging_config = config.get("logging", {}) or {}
    level = log_level or logging_config.get("level", "INFO")
    setup_logging(log_level=level, log_file=logging_config.get("file"), force=True)


def get_logger(name: str) -> logging.Logger:
    """Get module-specific logger.

    The logger inherits configuration from the root logger set up by
    `setup_logging()`.

    Args:
        name: Logger name, typically `__name__` of the calling module.

    Returns:
        Logger instance configured with the root logger settings.
    """
    return logging.getLogger(name)
