"""Logging setup for the application."""

import logging
import sys


def setup_logger(log_level: str = "INFO", name: str = "devpulse_extractor") -> logging.Logger:
    """
    Set up and configure application logger.

    Creates a logger with a simple, readable format suitable for CLI output.
    The BigQuery and urllib3 client libraries are kept at WARNING so the
    per-request API log lines stay readable.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        name: Logger name (default: devpulse_extractor)

    Returns:
        logging.Logger: Configured logger instance
    """
    # Convert string to logging level
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # Configure root logger
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stdout,
        force=True,  # Override any existing configuration
    )

    for noisy in ("urllib3", "google.auth", "google.cloud.bigquery"):
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.WARNING))

    # Get named logger and set its level explicitly
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    return logger
