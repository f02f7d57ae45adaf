"""Configures structlog for command line runs.

Log records go through the standard library so that one structlog pipeline
feeds two handlers: a human readable console renderer on stderr and an
append-only file under the log directory, one file per command and day
(``logs/<command>-YYYYMMDD.log``).
"""

import logging
from datetime import date
from pathlib import Path

import structlog

SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def log_file_path(log_dir: Path, command_name: str, today: date | None = None) -> Path:
    """Return the dated log file path for a command."""
    today = today or date.today()
    return log_dir / f"{command_name}-{today.strftime('%Y%m%d')}.log"


def configure_logging(command_name: str, log_dir: Path, debug: bool = False) -> Path:
    """Configure structlog and the root logger for a command run.

    Returns:
        The path of the log file that this run appends to.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_file_path(log_dir, command_name)
    level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=False),
            ],
        )
    )

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event", "logger"]),
            ],
        )
    )

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)
    root_logger.setLevel(level)

    # githubkit and httpx are chatty at debug level.
    for noisy_logger in ("httpx", "httpcore", "githubkit"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    return log_path
