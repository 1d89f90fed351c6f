"""Loguru setup for the meme pipeline.

Pipeline modules log with structured keyword extras (activity_id, mood,
attempts). The console sink appends them to the line when present, and the
optional file sink writes one JSON record per line so they stay queryable.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
)


def _console_format(record: dict[str, Any]) -> str:
    fmt = CONSOLE_FORMAT
    if record["extra"]:
        fmt += " | <dim>{extra}</dim>"
    return fmt + "\n{exception}"


def setup_logger(
    level: str = "INFO",
    log_file: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace loguru's default sink with the pipeline's sinks.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional JSON-lines log file
        rotation: File rotation size or interval
        retention: How long rotated files are kept
    """
    logger.remove()
    logger.add(sys.stderr, format=_console_format, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=level,
            serialize=True,
            rotation=rotation,
            retention=retention,
            diagnose=False,
        )

    logger.bind(log_file=str(log_file) if log_file else None).debug(f"Logger initialized with level={level}")
