"""
Logging setup.

Configures the loguru logger with a rotating file sink.
"""

from loguru import logger

from triangle_engine.config.settings import settings


def setup_logging() -> int:
    """
    Configure logger with file rotation.

    Returns:
        Handler ID of the file sink
    """
    handler_id = logger.add(
        settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(f"Triangle engine logging started ({settings.environment})")
    return handler_id
