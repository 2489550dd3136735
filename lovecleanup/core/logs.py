"""Loguru setup for LoveCleanup processes."""

import sys
from pathlib import Path

from loguru import logger

from lovecleanup.core.config import Settings, get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(settings: Settings | None = None, level: str | None = None) -> None:
    """Configure loguru based on settings.

    Replaces the default handler with a colorized stderr sink and, when
    ``lovecleanup_log_dir`` is set, a daily-rotated file sink.

    Args:
        settings: Optional settings override. Uses cached settings if not provided.
        level: Console level override (the CLI keeps chat output quiet).
    """
    settings = settings or get_settings()
    logger.remove()  # Remove default handler

    if settings.lovecleanup_debug:
        level = "DEBUG"
    elif level is None:
        level = settings.lovecleanup_log_level

    if settings.lovecleanup_log_dir:
        logs_dir = Path(settings.lovecleanup_log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(logs_dir / "lovecleanup_{time:YYYY-MM-DD}.log"),
            rotation="1 day",
            retention="7 days",
            level=settings.lovecleanup_log_level,
            format=LOG_FORMAT,
        )

    logger.add(
        sys.stderr,
        level=level,
        format=LOG_FORMAT,
        colorize=True,
    )
