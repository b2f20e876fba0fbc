"""
Log sink setup.

The terminal belongs to the blessed player screen, so loguru writes to a
rotating file only; nothing is logged to stderr once this has run.
"""

from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_loguru(log_file: Path, level: str = "INFO") -> int:
    """
    Replace loguru's default stderr sink with a rotating file sink.

    Args:
        log_file: Path to log file (parent directories are created)
        level: Minimum level written (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The loguru sink id, for ``logger.remove``
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        log_file,
        rotation="10 MB",
        retention=5,
        level=level,
        format=LOG_FORMAT,
        backtrace=False,
        diagnose=level == "DEBUG",  # Variable values in tracebacks only when debugging
        enqueue=False,
    )

    logger.info(f"Logging to {log_file} (level={level})")
    return sink_id
