import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)


def setup_logger(*, json_logs: bool = False, level: str = "INFO", log_dir: str | None = "logs") -> None:
    """Configure loguru for the scanner.

    Console goes to stderr so the CLI's JSON result on stdout stays clean.
    Console level controlled by LOG_LEVEL env (default: INFO). When
    ``log_dir`` is set, a daily file captures DEBUG so provider fallbacks
    can be traced after a scan.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stderr, serialize=True, level=console_level)
    else:
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    if log_dir:
        logger.add(
            os.path.join(log_dir, "scanner_{time:YYYY-MM-DD}.log"),
            rotation="20 MB",
            retention="3 days",
            compression="gz",
            level="DEBUG",
            serialize=json_logs,
        )
