"""structlog configuration for command-line use.

Library modules only call ``structlog.get_logger()``; nothing is configured
until an application (such as the CLI) calls ``setup_logging``.
"""

import logging
import logging.config
from typing import Any

import structlog
from structlog.dev import ConsoleRenderer


def setup_logging(*, debug: bool = False, json: bool = False) -> None:
    """Route structlog through the stdlib logging module to stderr.

    Args:
        debug: Emit debug events; otherwise only warnings and above.
        json: Render events as JSON lines instead of console text.
    """
    timestamper = structlog.processors.TimeStamper(fmt="iso")
    pre_chain: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "colored": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": ConsoleRenderer(colors=True),
                    "foreign_pre_chain": pre_chain,
                },
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.processors.JSONRenderer(),
                    "foreign_pre_chain": pre_chain,
                },
            },
            "handlers": {
                "stderr": {
                    "level": "DEBUG",
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "json" if json else "colored",
                },
            },
            "loggers": {
                "": {
                    "handlers": ["stderr"],
                    "level": "DEBUG" if debug else "WARNING",
                },
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
