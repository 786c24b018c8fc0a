"""
Centralized logging configuration for the TraceCast service.

Pipeline modules only call ``logging.getLogger(__name__)``; entry points
(the FastAPI backend and scripts) call ``setup_logging`` once.

Log levels:
    DEBUG: Request payload sizes, per-path coercion details
    INFO: Stage timings (fetch, preparation, AI processing, total)
    WARNING: Failed inference attempts, low confidence, retries
    ERROR: Model chain exhaustion, unexpected pipeline failures

Usage:
    from logging_config import setup_logging

    logger = setup_logging("tracecast")
    logger.info("Backend started")
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Module loggers that make up the pipeline; configured together so their
# records reach the same handlers as the entry point logger.
PIPELINE_LOGGERS = ("api", "vectorization", "storage")


def setup_logging(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure and return a logger instance.

    The pipeline module loggers are attached to the same handlers.

    Args:
        name: Logger name for the entry point
        level: Logging level (default: INFO)
        log_file: Optional path to write logs to file
        console_output: Whether to output to console (default: True)

    Returns:
        Configured logger instance
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = []
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logger = logging.getLogger(name)
    for target in (logger, *(logging.getLogger(n) for n in PIPELINE_LOGGERS)):
        target.setLevel(level)
        # Remove existing handlers to avoid duplicates
        target.handlers.clear()
        for handler in handlers:
            target.addHandler(handler)

    return logger
