# legalchat/core/logging.py
import logging
import sys
from pathlib import Path
from typing import Optional

from legalchat.core.config import settings
from legalchat.observability.logging import ContextFilter


def setup_logging(
        log_level: Optional[str] = None,
        log_file: Optional[str] = None
) -> None:
    """
    Setup logging configuration
    """
    level = log_level or settings.LOG_LEVEL
    log_file = log_file or settings.LOG_FILE

    # Create logs directory if needed
    if log_file:
        log_path = Path(log_file).parent
        log_path.mkdir(parents=True, exist_ok=True)

    log_format = (
        "%(asctime)s - %(name)s - %(levelname)s - "
        "[%(request_id)s user=%(user_id)s conv=%(conversation_id)s] %(message)s"
    )
    date_format = "%Y-%m-%d %H:%M:%S"

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    context_filter = ContextFilter()
    for handler in handlers:
        handler.addFilter(context_filter)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True
    )

    # Set specific loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {level}")
