import logging
import sys
from typing import Any, Callable, MutableMapping, Optional, cast

import structlog

from infrastructure.config import settings

# Type alias for structlog processor
Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configures structured logging globally using structlog.

    At INFO and above: JSON lines for log aggregation
    At DEBUG: human-readable console format
    """
    level = (level or settings.LOG_LEVEL).upper()

    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=level,
    )

    for noisy_logger in ["apscheduler", "uvicorn.access"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    renderer: Processor = cast(
        Processor,
        (
            structlog.dev.ConsoleRenderer(colors=True)
            if level == "DEBUG"
            else structlog.processors.JSONRenderer()
        ),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
