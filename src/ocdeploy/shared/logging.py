"""Logging configuration for ocdeploy.

Configures structlog on top of stdlib logging. Operator-facing messages go
through ocdeploy.output; the logger carries diagnostic events only and never
sees init output.
"""

import logging
import sys
from pathlib import Path

import structlog

VERBOSITY_LEVELS = {0: "warning", 1: "info"}


def level_for_verbosity(verbose: int) -> str:
    """Map the count of -v flags to a level name."""
    return VERBOSITY_LEVELS.get(verbose, "debug")


def _build_handler(log_file: str | Path | None, log_level: int) -> logging.Handler:
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    return handler


def configure_logging(
    level: str = "warning",
    log_file: str | Path | None = None,
    json_output: bool = False,
) -> None:
    """Configure stdlib logging and structlog for one installer run.

    Args:
        level: Level name (debug, info, warning, error, critical).
        log_file: Append events to this file instead of stderr. Its parent
            directory is created if needed.
        json_output: Render one JSON object per event instead of console text.

    Usage:
        ocdeploy install            -> configure_logging("warning")
        ocdeploy -vv install        -> configure_logging("debug")
        ocdeploy --log-file F --log-json install
                                    -> configure_logging("warning", log_file=F, json_output=True)
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logging.basicConfig(
        level=log_level,
        handlers=[_build_handler(log_file, log_level)],
        format="%(message)s",
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])
    else:
        # No ANSI codes: output may be a file.
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to ``name`` (typically ``__name__``)."""
    return structlog.get_logger(name)
