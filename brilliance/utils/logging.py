"""
Brilliance Logging
Sink configuration and request-scoped loggers on top of loguru.

Request context (request id, image source, pass counts) travels as bound
``extra`` fields and is rendered after the message.
"""
import sys
from typing import Any, Optional

from loguru import logger

from brilliance.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}"


def configure_logging(level: Optional[str] = None,
                      serialize: Optional[bool] = None,
                      sink: Any = None) -> str:
    """
    Replace loguru's default handler with the service sink.

    Args:
        level: Minimum level, ``BRILLIANCE_LOG_LEVEL`` when omitted
        serialize: Emit JSON lines, ``BRILLIANCE_LOG_JSON`` when omitted
        sink: Any loguru sink, stdout when omitted

    Returns:
        The level the sink was installed with
    """
    level = (level or config.LOG_LEVEL).upper()
    logger.remove()
    logger.add(
        sink or sys.stdout,
        format=LOG_FORMAT,
        level=level,
        serialize=config.LOG_JSON if serialize is None else serialize,
    )
    return level


def request_logger(request_id: str, **context):
    """Logger bound to one extraction request; ``context`` adds more fields."""
    return logger.bind(request_id=request_id, **context)
