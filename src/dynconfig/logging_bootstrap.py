# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.dev import ConsoleRenderer
from structlog.stdlib import (
    ProcessorFormatter,
)

if TYPE_CHECKING:
    from structlog.typing import Processor

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
TIMESTAMP_FORMAT_MICROS = "%Y-%m-%d %H:%M:%S.%f"


def build_pre_chain(
    *,
    timestamps: bool = True,
    time_micros: bool = False,
    thread_names: bool = False,
) -> list[Processor]:
    """
    Return the processors shared by structlog events and stdlib records.

    The ``-logtimestamps``, ``-logtimemicros`` and ``-logthreadnames``
    options map onto the three keyword arguments.
    """
    processors: list[Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if timestamps:
        fmt = TIMESTAMP_FORMAT_MICROS if time_micros else TIMESTAMP_FORMAT
        processors.append(structlog.processors.TimeStamper(fmt=fmt, utc=True))
    if thread_names:
        processors.append(
            structlog.processors.CallsiteParameterAdder([structlog.processors.CallsiteParameter.THREAD_NAME])
        )
    processors.extend(
        [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,  # Converts exc_info to string if present
            structlog.processors.UnicodeDecoder(),
        ]
    )
    return processors


def bootstrap_logging(level: int = logging.INFO) -> None:
    """
    Configure a minimal structlog setup.

    Used from process entry until `LoggingManager` has read the logging
    options, and by the CLI, which never opens ``debug.log``. Logs to stderr
    in a human-readable format. Does nothing if structlog is already
    configured.
    """
    if structlog.is_configured():
        return

    pre_chain_processors = build_pre_chain()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,  # Filter by level early in the pipeline
            *pre_chain_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,  # Hands off to standard logging
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_formatter = ProcessorFormatter(
        processor=ConsoleRenderer(colors=True),
        foreign_pre_chain=[
            *pre_chain_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),  # For standard log messages with args
        ],
    )
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)
