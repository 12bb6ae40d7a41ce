# quotebook/core/logging_config.py
import logging
import sys

import structlog


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure structlog + standard logging.
    Logs go to stdout as JSON, one event per line.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Global logger, import it wherever you need it
logger = structlog.get_logger("quotebook")
